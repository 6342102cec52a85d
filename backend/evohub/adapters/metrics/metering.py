"""Metering metrics adapters (Prometheus + Fake).

Counts successful charges by funding source, credit tenths consumed and
requests turned away by a daily or monthly quota.
"""

from collections import Counter as TallyCounter

from prometheus_client import CollectorRegistry, Counter

from evohub.core.protocols.metrics import MeteringMetrics


class PrometheusMeteringMetrics(MeteringMetrics):
    """Prometheus-backed metering counters."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

        self._charges = Counter(
            "evohub_metering_charges_total",
            "Successful tool charges",
            ["tool", "owner_type", "source"],
            registry=self._registry,
        )

        self._credits_consumed = Counter(
            "evohub_metering_credits_consumed_tenths_total",
            "Credit tenths consumed from packs",
            ["tool"],
            registry=self._registry,
        )

        self._quota_denied = Counter(
            "evohub_metering_quota_denied_total",
            "Requests rejected by a usage quota",
            ["tool", "scope"],
            registry=self._registry,
        )

    def record_charge(self, tool: str, owner_type: str, source: str) -> None:
        self._charges.labels(tool=tool, owner_type=owner_type, source=source).inc()

    def record_credits_consumed(self, tool: str, tenths: int) -> None:
        if tenths > 0:
            self._credits_consumed.labels(tool=tool).inc(tenths)

    def record_quota_denied(self, tool: str, scope: str) -> None:
        self._quota_denied.labels(tool=tool, scope=scope).inc()


# ---------------------------------------------------------------------------
# Fake
# ---------------------------------------------------------------------------


class FakeMeteringMetrics(MeteringMetrics):
    """In-memory spy implementing the MeteringMetrics protocol."""

    def __init__(self) -> None:
        self.charges: TallyCounter[tuple[str, str, str]] = TallyCounter()
        self.credits_consumed: TallyCounter[str] = TallyCounter()
        self.quota_denied: TallyCounter[tuple[str, str]] = TallyCounter()

    def record_charge(self, tool: str, owner_type: str, source: str) -> None:
        self.charges[(tool, owner_type, source)] += 1

    def record_credits_consumed(self, tool: str, tenths: int) -> None:
        self.credits_consumed[tool] += tenths

    def record_quota_denied(self, tool: str, scope: str) -> None:
        self.quota_denied[(tool, scope)] += 1

    def clear(self) -> None:
        """Reset all recorded state."""
        self.charges.clear()
        self.credits_consumed.clear()
        self.quota_denied.clear()
