"""Usage domain protocols.

UsageCounterStoreProtocol: per-owner counters persisted in the KV store.
"""

from typing import Optional, Protocol, runtime_checkable

from evohub.domains.usage.types import IncrementResult, UsageCounter


@runtime_checkable
class UsageCounterStoreProtocol(Protocol):
    """Read and increment usage counters for ``(prefix, ownerType, ownerId)``."""

    async def get_usage(self, key: str) -> Optional[UsageCounter]:
        """Return the stored counter for *key*, or None."""
        ...

    async def increment_with_ttl(self, key: str, limit: int, ttl_seconds: int) -> IncrementResult:
        """Increment a counter that expires after *ttl_seconds*."""
        ...

    async def increment_daily(
        self, prefix: str, owner_type: str, owner_id: str, limit: int
    ) -> IncrementResult:
        """Increment the calendar-day counter."""
        ...

    async def increment_monthly(
        self, prefix: str, owner_type: str, owner_id: str, limit: int
    ) -> IncrementResult:
        """Increment the calendar-month counter."""
        ...

    async def increment_rolling_window(
        self, key: str, limit: int, window_seconds: int
    ) -> IncrementResult:
        """Increment a rolling window counter stored under *key*."""
        ...

    async def increment_daily_rolling(
        self,
        prefix: str,
        owner_type: str,
        owner_id: str,
        limit: int,
        window_seconds: int = ...,
    ) -> IncrementResult:
        """Increment the owner's rolling 24h counter."""
        ...

    async def release_daily_rolling(self, prefix: str, owner_type: str, owner_id: str) -> None:
        """Undo one rolling 24h increment."""
        ...

    async def get_daily_rolling(
        self, prefix: str, owner_type: str, owner_id: str
    ) -> Optional[UsageCounter]:
        """Return the owner's rolling 24h counter if its window is still open."""
        ...

    async def increment_monthly_no_ttl(
        self, prefix: str, owner_type: str, owner_id: str, limit: int
    ) -> IncrementResult:
        """Increment the legacy monthly counter without an expiry."""
        ...

    async def increment_monthly_by(
        self, prefix: str, owner_type: str, owner_id: str, delta_credits: float
    ) -> int:
        """Add fractional credits to the legacy monthly counter, returning tenths."""
        ...

    async def release_monthly_by(
        self, prefix: str, owner_type: str, owner_id: str, delta_credits: float
    ) -> int:
        """Undo part of the legacy monthly counter, returning tenths."""
        ...

    async def get_monthly_usage_tenths(self, prefix: str, owner_type: str, owner_id: str) -> int:
        """Return the legacy monthly counter in tenths."""
        ...

    async def claim_once(self, key: str, ttl_seconds: Optional[int] = None) -> bool:
        """Set an idempotency marker. Returns False when it already existed."""
        ...

    async def has_marker(self, key: str) -> bool:
        """Whether an idempotency marker is set at *key*."""
        ...
