"""Usage counters: per-owner daily, monthly and rolling-window usage in the KV store."""

from evohub.domains.usage.counters import UsageCounterStore
from evohub.domains.usage.exceptions import QuotaExceededError
from evohub.domains.usage.protocols import UsageCounterStoreProtocol
from evohub.domains.usage.types import IncrementResult, UsageCounter

__all__ = [
    "IncrementResult",
    "QuotaExceededError",
    "UsageCounter",
    "UsageCounterStore",
    "UsageCounterStoreProtocol",
]
