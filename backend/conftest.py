"""Root conftest for pytest configuration and shared fixtures.

Loaded before every colocated test package under ``evohub/``, so the fake
fixtures and the test container below are available everywhere.
"""

import os

import pytest

pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables, set before any evohub module import.
# setdefault keeps real env vars (CI) intact.
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("KV_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_CLEANUP_INTERVAL_SECONDS", "0")
os.environ.setdefault("KV_CLEANUP_INTERVAL_SECONDS", "0")
os.environ.setdefault("METRICS_ENABLED", "false")
os.environ.setdefault("ALLOWED_ORIGINS", "")


# ---------------------------------------------------------------------------
# Shared fake fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_kv():
    """Dict-backed KeyValueStore that records writes."""
    from evohub.adapters.kv.fake import FakeKeyValueStore

    return FakeKeyValueStore()


@pytest.fixture
def fake_http_metrics():
    """Fake HttpMetrics that records requests."""
    from evohub.adapters.metrics import FakeHttpMetrics

    return FakeHttpMetrics()


@pytest.fixture
def fake_metering_metrics():
    """Fake MeteringMetrics with counters per label set."""
    from evohub.adapters.metrics import FakeMeteringMetrics

    return FakeMeteringMetrics()


@pytest.fixture
def fake_metrics_service(fake_http_metrics, fake_metering_metrics):
    from evohub.core.fakes.metrics_service import FakeMetricsService

    return FakeMetricsService(fake_http_metrics, fake_metering_metrics)


@pytest.fixture
def fake_health():
    """FakeHealthService answering ``ready`` until told otherwise."""
    from evohub.core.health.fakes import FakeHealthService

    return FakeHealthService()


@pytest.fixture
def fake_metering():
    """FakeMeteringService with canned results."""
    from evohub.domains.metering.fakes.service import FakeMeteringService

    return FakeMeteringService()


@pytest.fixture
def rate_limiters():
    """Registry with the default presets and no background cleanup."""
    from evohub.core.rate_limiter import RateLimiterRegistry, default_presets

    return RateLimiterRegistry(default_presets(), cleanup_interval_seconds=0)


# ---------------------------------------------------------------------------
# Test container
# ---------------------------------------------------------------------------


@pytest.fixture
def test_container(
    fake_kv, fake_metering_metrics, fake_metrics_service, fake_health, rate_limiters
):
    """A Container with real stores over the fake KV and fake infrastructure.

    The metering service is the real one so API tests exercise the full
    charge path. Swap parts with ``replace()``:

        test_container.replace(metering=fake_metering)
    """
    from evohub.core.container import Container
    from evohub.domains.credits.ledger import CreditLedger
    from evohub.domains.credits.video_quota import VideoQuotaLedger
    from evohub.domains.metering.service import MeteringService
    from evohub.domains.usage.counters import UsageCounterStore

    usage_counters = UsageCounterStore(fake_kv)
    credit_ledger = CreditLedger(fake_kv)
    video_quota = VideoQuotaLedger(fake_kv)
    return Container(
        kv=fake_kv,
        usage_counters=usage_counters,
        credit_ledger=credit_ledger,
        video_quota=video_quota,
        metering=MeteringService(
            fake_kv, usage_counters, credit_ledger, video_quota, fake_metering_metrics
        ),
        rate_limiters=rate_limiters,
        health=fake_health,
        metrics=fake_metrics_service,
    )
