"""Core protocols for dependency injection.

Domain-specific protocols (usage counters, credit ledger, metering) live in
their respective domains/ directories. This module keeps cross-cutting
infrastructure protocols only.
"""

from evohub.core.protocols.health import HealthProbe, HealthServiceProtocol
from evohub.core.protocols.kv_store import KeyValueStore
from evohub.core.protocols.metrics import (
    HttpMetrics,
    MeteringMetrics,
    MetricsRenderer,
    MetricsService,
)

__all__ = [
    "HealthProbe",
    "HealthServiceProtocol",
    "HttpMetrics",
    "KeyValueStore",
    "MeteringMetrics",
    "MetricsRenderer",
    "MetricsService",
]
