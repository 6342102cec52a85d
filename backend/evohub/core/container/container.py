"""Dependency Injection Container.

The container is an immutable dataclass holding protocol implementations.
It has no construction logic; that belongs in the factory.
"""

from dataclasses import dataclass, replace
from typing import Any

from evohub.core.protocols import HealthServiceProtocol, KeyValueStore, MetricsService
from evohub.core.rate_limiter import RateLimiterRegistry
from evohub.domains.credits.protocols import CreditLedgerProtocol, VideoQuotaProtocol
from evohub.domains.metering.protocols import MeteringServiceProtocol
from evohub.domains.usage.protocols import UsageCounterStoreProtocol


@dataclass(frozen=True)
class Container:
    """Immutable container holding all protocol implementations.

    Usage:
        # FastAPI endpoints: use Inject() to pull individual protocols
        from evohub.api.deps import Inject
        async def my_endpoint(metering: MeteringServiceProtocol = Inject(MeteringServiceProtocol)):
            ...

        # Testing: construct directly with fakes (see backend/conftest.py)
        test_container = Container(kv=FakeKeyValueStore(), ...)
    """

    # Key-value backend shared by all stores
    kv: KeyValueStore

    # Usage and credit stores
    usage_counters: UsageCounterStoreProtocol
    credit_ledger: CreditLedgerProtocol
    video_quota: VideoQuotaProtocol

    # Metering service composing the stores
    metering: MeteringServiceProtocol

    # Named in-memory rate limiters
    rate_limiters: RateLimiterRegistry

    # Health service, readiness check facade
    health: HealthServiceProtocol

    # Metrics (HTTP, metering via MetricsService facade)
    metrics: MetricsService

    def replace(self, **changes: Any) -> "Container":
        """Create a new container with some dependencies replaced.

            modified = container.replace(metering=FakeMeteringService())
        """
        return replace(self, **changes)
