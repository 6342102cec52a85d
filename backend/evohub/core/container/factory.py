"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container with environment-appropriate implementations.
"""

from prometheus_client import CollectorRegistry

from evohub.adapters.health import KeyValueHealthProbe
from evohub.adapters.kv import InMemoryKeyValueStore, RedisKeyValueStore
from evohub.adapters.metrics import (
    PrometheusHttpMetrics,
    PrometheusMeteringMetrics,
    PrometheusMetricsRenderer,
)
from evohub.core.config import Settings
from evohub.core.config.enums import KeyValueBackend
from evohub.core.container.container import Container
from evohub.core.health.service import HealthService
from evohub.core.logging import logger
from evohub.core.metrics_service import PrometheusMetricsService
from evohub.core.protocols import KeyValueStore
from evohub.core.rate_limiter import RateLimiterRegistry, default_presets
from evohub.domains.credits.ledger import CreditLedger
from evohub.domains.credits.video_quota import VideoQuotaLedger
from evohub.domains.metering.service import MeteringService
from evohub.domains.usage.counters import UsageCounterStore


def create_container(settings: Settings) -> Container:
    """Build the container with production dependencies.

    Args:
        settings: Application settings

    Returns:
        Fully constructed container ready for use
    """
    kv = _create_kv_store(settings)
    metrics = _create_metrics_service(settings)

    usage_counters = UsageCounterStore(kv)
    credit_ledger = CreditLedger(
        kv,
        validity_months=settings.CREDIT_PACK_VALIDITY_MONTHS,
        grace_days=settings.CREDIT_PACK_GRACE_DAYS,
    )
    video_quota = VideoQuotaLedger(kv)
    metering = MeteringService(
        kv,
        usage_counters,
        credit_ledger,
        video_quota,
        metrics.metering,
        prompt_user_limit=settings.PROMPT_USER_LIMIT,
        prompt_guest_limit=settings.PROMPT_GUEST_LIMIT,
    )

    return Container(
        kv=kv,
        usage_counters=usage_counters,
        credit_ledger=credit_ledger,
        video_quota=video_quota,
        metering=metering,
        rate_limiters=_create_rate_limiters(settings),
        health=HealthService(critical=[KeyValueHealthProbe(kv)]),
        metrics=metrics,
    )


# ---------------------------------------------------------------------------
# Private factory functions
# ---------------------------------------------------------------------------


def _create_kv_store(settings: Settings) -> KeyValueStore:
    """Pick the KV backend.

    The in-memory store keeps everything in this process and loses it on
    restart; it is meant for local runs and tests.
    """
    if settings.KV_BACKEND == KeyValueBackend.REDIS:
        logger.info(f"Using Redis KV store at {settings.REDIS_HOST}:{settings.REDIS_PORT}")
        return RedisKeyValueStore.from_url(settings.redis_url)

    if settings.is_production:
        logger.warning("In-memory KV store in production; usage will not survive restarts")
    return InMemoryKeyValueStore(cleanup_interval_seconds=settings.KV_CLEANUP_INTERVAL_SECONDS)


def _create_rate_limiters(settings: Settings) -> RateLimiterRegistry:
    return RateLimiterRegistry(
        default_presets(settings.is_development),
        enabled=settings.RATE_LIMIT_ENABLED,
        cleanup_interval_seconds=settings.RATE_LIMIT_CLEANUP_INTERVAL_SECONDS,
    )


def _create_metrics_service(settings: Settings) -> PrometheusMetricsService:
    """Build the PrometheusMetricsService with Prometheus adapters and a shared registry."""
    registry = CollectorRegistry()
    return PrometheusMetricsService(
        http=PrometheusHttpMetrics(registry=registry),
        metering=PrometheusMeteringMetrics(registry=registry),
        renderer=PrometheusMetricsRenderer(registry=registry),
        host=settings.METRICS_HOST,
        port=settings.METRICS_PORT,
    )
