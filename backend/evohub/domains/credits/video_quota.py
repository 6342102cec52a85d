"""Monthly video allowance measured in tenths.

Usage per user and UTC month is stored as a bare integer string. Each charge
writes a transaction marker so a retried job is never counted twice.
"""

import asyncio
import time
from typing import Callable

from evohub.core.locks import KeyedLocks
from evohub.core.protocols.kv_store import KeyValueStore
from evohub.domains.credits.exceptions import InsufficientQuotaError
from evohub.domains.credits.protocols import VideoQuotaProtocol
from evohub.domains.usage.periods import round_half_up, seconds_until_end_of_month, year_month


def video_quota_key(user_id: str, ym: str) -> str:
    return f"ai:quota:video:tenths:{user_id}:{ym}"


def video_quota_tx_key(user_id: str, ym: str, tx_key: str) -> str:
    return f"ai:quota:video:tx:{user_id}:{ym}:{tx_key}"


def _parse_used(raw) -> int:
    try:
        used = int(raw)
    except (TypeError, ValueError):
        return 0
    return used if used > 0 else 0


class VideoQuotaLedger(VideoQuotaProtocol):
    """Per-user monthly video quota over the KV store."""

    def __init__(self, kv: KeyValueStore, clock: Callable[[], float] = time.time) -> None:
        self._kv = kv
        self._clock = clock
        self._locks = KeyedLocks()

    def _get_lock(self, user_id: str) -> asyncio.Lock:
        return self._locks(user_id)

    async def get_used_tenths(self, user_id: str) -> int:
        ym = year_month(self._clock())
        return _parse_used(await self._kv.get(video_quota_key(user_id, ym)))

    async def get_remaining_tenths(self, user_id: str, limit_tenths: int) -> int:
        return max(0, limit_tenths - await self.get_used_tenths(user_id))

    async def consume(
        self, user_id: str, limit_tenths: int, amount_tenths: float, tx_key: str
    ) -> bool:
        """Add *amount_tenths* to this month's usage.

        Raises:
            InsufficientQuotaError: If the new total would exceed *limit_tenths*.
        """
        now = self._clock()
        ym = year_month(now)
        tx = video_quota_tx_key(user_id, ym, tx_key)
        async with self._get_lock(user_id):
            if await self._kv.get(tx):
                return False

            key = video_quota_key(user_id, ym)
            used = _parse_used(await self._kv.get(key))
            amount = max(0, round_half_up(amount_tenths))
            limit = max(0, round_half_up(limit_tenths))
            if used + amount > limit:
                raise InsufficientQuotaError(needed_tenths=amount, remaining_tenths=limit - used)

            await self._kv.put(key, str(used + amount))
            await self._kv.put(tx, "1", ttl_seconds=seconds_until_end_of_month(now))
        return True
