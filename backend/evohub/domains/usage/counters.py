"""Usage counter store.

Counters are JSON documents ``{"count": int, "resetAt": int}`` stored in the
key-value backend. The store owns the read-modify-write of each counter and
serialises it per key with an ``asyncio.Lock``, so concurrent requests from
one owner inside this process never lose an increment.
"""

import asyncio
import json
import math
import time
from typing import Callable, Optional

from evohub.core.locks import KeyedLocks
from evohub.core.logging import logger
from evohub.core.protocols.kv_store import KeyValueStore
from evohub.domains.usage import keys
from evohub.domains.usage.periods import (
    DAY_SECONDS,
    end_of_month_epoch_seconds,
    round_half_up,
    seconds_until_end_of_day,
    seconds_until_end_of_month,
)
from evohub.domains.usage.protocols import UsageCounterStoreProtocol
from evohub.domains.usage.types import IncrementResult, UsageCounter


def _as_int(value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


class UsageCounterStore(UsageCounterStoreProtocol):
    """KV-backed counters with calendar, rolling and tenths-based variants."""

    def __init__(self, kv: KeyValueStore, clock: Callable[[], float] = time.time) -> None:
        """Initialize with a key-value backend and an epoch-seconds clock."""
        self._kv = kv
        self._clock = clock
        self._locks = KeyedLocks()

    def _get_lock(self, key: str) -> asyncio.Lock:
        return self._locks(key)

    def _now(self) -> int:
        return math.floor(self._clock())

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------

    async def _read_json(self, key: str) -> Optional[dict]:
        raw = await self._kv.get(key)
        if raw is None:
            return None
        try:
            obj = json.loads(raw)
        except ValueError:
            logger.warning(f"[UsageCounters] Ignoring malformed value at '{key}'")
            return None
        return obj if isinstance(obj, dict) else None

    async def get_usage(self, key: str) -> Optional[UsageCounter]:
        """Return the counter stored at *key*, or None if absent or malformed."""
        obj = await self._read_json(key)
        if obj is None:
            return None
        return UsageCounter(count=_as_int(obj.get("count")), reset_at=_as_int(obj.get("resetAt")))

    async def _write(self, key: str, usage: UsageCounter, ttl_seconds: Optional[int]) -> None:
        await self._kv.put(key, json.dumps(usage.to_json()), ttl_seconds=ttl_seconds)

    # ------------------------------------------------------------------
    # Fixed TTL counters
    # ------------------------------------------------------------------

    async def increment_with_ttl(self, key: str, limit: int, ttl_seconds: int) -> IncrementResult:
        """Increment *key*, keeping its first ``resetAt`` and refreshing the TTL."""
        async with self._get_lock(key):
            current = await self.get_usage(key)
            if current is None:
                current = UsageCounter(count=0, reset_at=self._now() + ttl_seconds)
            usage = UsageCounter(count=current.count + 1, reset_at=current.reset_at)
            await self._write(key, usage, ttl_seconds)
        return IncrementResult(allowed=usage.count <= limit, usage=usage)

    async def increment_daily(
        self, prefix: str, owner_type: str, owner_id: str, limit: int
    ) -> IncrementResult:
        now = self._clock()
        key = keys.daily_key(prefix, owner_type, owner_id, now)
        return await self.increment_with_ttl(key, limit, seconds_until_end_of_day(now))

    async def increment_monthly(
        self, prefix: str, owner_type: str, owner_id: str, limit: int
    ) -> IncrementResult:
        now = self._clock()
        key = keys.monthly_key(prefix, owner_type, owner_id, now)
        return await self.increment_with_ttl(key, limit, seconds_until_end_of_month(now))

    # ------------------------------------------------------------------
    # Rolling windows
    # ------------------------------------------------------------------

    async def increment_rolling_window(
        self, key: str, limit: int, window_seconds: int
    ) -> IncrementResult:
        """Increment *key*, opening a fresh window once the stored one has elapsed."""
        async with self._get_lock(key):
            existing = await self.get_usage(key)
            now = self._now()
            if existing is None or now >= existing.reset_at:
                usage = UsageCounter(count=1, reset_at=now + window_seconds)
                ttl = window_seconds
            else:
                usage = UsageCounter(count=existing.count + 1, reset_at=existing.reset_at)
                ttl = max(1, existing.reset_at - now)
            await self._write(key, usage, ttl)
        return IncrementResult(allowed=usage.count <= limit, usage=usage)

    async def increment_daily_rolling(
        self,
        prefix: str,
        owner_type: str,
        owner_id: str,
        limit: int,
        window_seconds: int = DAY_SECONDS,
    ) -> IncrementResult:
        key = keys.rolling_daily_key(prefix, owner_type, owner_id)
        return await self.increment_rolling_window(key, limit, window_seconds)

    async def release_daily_rolling(self, prefix: str, owner_type: str, owner_id: str) -> None:
        """Take back one increment from the open rolling window, never below zero."""
        key = keys.rolling_daily_key(prefix, owner_type, owner_id)
        async with self._get_lock(key):
            existing = await self.get_usage(key)
            now = self._now()
            if existing is None or now >= existing.reset_at or existing.count <= 0:
                return
            usage = UsageCounter(count=existing.count - 1, reset_at=existing.reset_at)
            await self._write(key, usage, max(1, existing.reset_at - now))

    async def get_daily_rolling(
        self, prefix: str, owner_type: str, owner_id: str
    ) -> Optional[UsageCounter]:
        """Return the rolling counter, or None once its window has elapsed."""
        usage = await self.get_usage(keys.rolling_daily_key(prefix, owner_type, owner_id))
        if usage is None or self._now() >= usage.reset_at:
            return None
        return usage

    # ------------------------------------------------------------------
    # Legacy monthly counters (no TTL)
    # ------------------------------------------------------------------

    async def increment_monthly_no_ttl(
        self, prefix: str, owner_type: str, owner_id: str, limit: int
    ) -> IncrementResult:
        """Increment the month-stamped counter. The key itself rolls over monthly."""
        now = self._clock()
        key = keys.legacy_monthly_key(prefix, owner_type, owner_id, now)
        async with self._get_lock(key):
            obj = await self._read_json(key) or {}
            count = _as_int(obj.get("count")) + 1
            obj["count"] = count
            await self._kv.put(key, json.dumps(obj))
        usage = UsageCounter(count=count, reset_at=end_of_month_epoch_seconds(now))
        return IncrementResult(allowed=count <= limit, usage=usage)

    async def increment_monthly_by(
        self, prefix: str, owner_type: str, owner_id: str, delta_credits: float
    ) -> int:
        """Add *delta_credits* (may be fractional) and return the new total in tenths."""
        now = self._clock()
        key = keys.legacy_monthly_key(prefix, owner_type, owner_id, now)
        async with self._get_lock(key):
            obj = await self._read_json(key) or {}
            tenths = self._tenths_from(obj) + max(0, round_half_up(delta_credits * 10))
            await self._kv.put(key, json.dumps({"count": tenths // 10, "countTenths": tenths}))
        return tenths

    async def release_monthly_by(
        self, prefix: str, owner_type: str, owner_id: str, delta_credits: float
    ) -> int:
        """Subtract *delta_credits* from the monthly counter, never below zero."""
        now = self._clock()
        key = keys.legacy_monthly_key(prefix, owner_type, owner_id, now)
        async with self._get_lock(key):
            obj = await self._read_json(key) or {}
            tenths = max(0, self._tenths_from(obj) - max(0, round_half_up(delta_credits * 10)))
            await self._kv.put(key, json.dumps({"count": tenths // 10, "countTenths": tenths}))
        return tenths

    async def get_monthly_usage_tenths(self, prefix: str, owner_type: str, owner_id: str) -> int:
        key = keys.legacy_monthly_key(prefix, owner_type, owner_id, self._clock())
        return self._tenths_from(await self._read_json(key) or {})

    @staticmethod
    def _tenths_from(obj: dict) -> int:
        if "countTenths" in obj:
            return max(0, _as_int(obj.get("countTenths")))
        return max(0, _as_int(obj.get("count")) * 10)

    # ------------------------------------------------------------------
    # Idempotency markers
    # ------------------------------------------------------------------

    async def claim_once(self, key: str, ttl_seconds: Optional[int] = None) -> bool:
        async with self._get_lock(key):
            if await self._kv.get(key) is not None:
                return False
            await self._kv.put(key, "1", ttl_seconds=ttl_seconds)
        return True

    async def has_marker(self, key: str) -> bool:
        return await self._kv.get(key) is not None
