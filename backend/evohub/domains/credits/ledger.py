"""Credit ledger: per-user credit packs consumed oldest-first.

Packs for a user live in one JSON list under ``ai:credits:user:{id}:packs``.
Every consumption is keyed by a job id; the result is stored under
``ai:credits:consume:{userId}:{jobId}`` and replayed on retries, so a job is
never charged twice.

Pack mutation and consumption for a user run under one ``asyncio.Lock`` so
the list read and the list write cannot interleave with another request.
"""

import asyncio
import json
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from evohub.core.exceptions import ValidationException
from evohub.core.locks import KeyedLocks
from evohub.core.logging import logger
from evohub.core.protocols.kv_store import KeyValueStore
from evohub.domains.credits.exceptions import InsufficientCreditsError
from evohub.domains.credits.protocols import CreditLedgerProtocol
from evohub.domains.credits.types import ConsumptionResult, CreditPack, PackUsage
from evohub.domains.usage.periods import round_half_up

DEFAULT_VALIDITY_MONTHS = 6
DEFAULT_GRACE_DAYS = 14


def packs_key(user_id: str) -> str:
    return f"ai:credits:user:{user_id}:packs"


def consume_record_key(user_id: str, job_id: str) -> str:
    return f"ai:credits:consume:{user_id}:{job_id}"


def add_months_with_grace(
    start_ms: int,
    months: int = DEFAULT_VALIDITY_MONTHS,
    grace_days: int = DEFAULT_GRACE_DAYS,
) -> int:
    """Return ``start_ms`` shifted by calendar *months* plus *grace_days*.

    The day of month is kept; a day the target month does not have spills
    over into the following month (Aug 31 + 6 months is Mar 3).
    """
    millis = start_ms % 1000
    start = datetime.fromtimestamp(start_ms // 1000, tz=timezone.utc)
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    base = datetime(
        year, month, 1, start.hour, start.minute, start.second, tzinfo=timezone.utc
    ) + timedelta(days=start.day - 1)
    return int(base.timestamp()) * 1000 + millis + grace_days * 24 * 60 * 60 * 1000


class CreditLedger(CreditLedgerProtocol):
    """KV-backed credit ledger with FIFO consumption and per-job idempotency."""

    def __init__(
        self,
        kv: KeyValueStore,
        clock: Callable[[], float] = time.time,
        validity_months: int = DEFAULT_VALIDITY_MONTHS,
        grace_days: int = DEFAULT_GRACE_DAYS,
    ) -> None:
        """Initialize the ledger.

        Args:
            kv: Key-value backend holding packs and consumption records.
            clock: Epoch-seconds time source.
            validity_months: Calendar months a pack stays valid.
            grace_days: Extra days added after the validity period.
        """
        self._kv = kv
        self._clock = clock
        self._validity_months = validity_months
        self._grace_days = grace_days
        self._locks = KeyedLocks()

    def _get_lock(self, user_id: str) -> asyncio.Lock:
        return self._locks(user_id)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    # ------------------------------------------------------------------
    # Packs
    # ------------------------------------------------------------------

    async def _read_packs(self, user_id: str) -> list[CreditPack]:
        raw = await self._kv.get(packs_key(user_id))
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except ValueError:
            logger.error(f"[CreditLedger] Unreadable pack list for user {user_id}")
            return []
        if not isinstance(items, list):
            return []
        return [CreditPack.from_json(p) for p in items if isinstance(p, dict)]

    async def _write_packs(self, user_id: str, packs: list[CreditPack]) -> None:
        await self._kv.put(packs_key(user_id), json.dumps([p.to_json() for p in packs]))

    async def add_credit_pack_tenths(
        self,
        user_id: str,
        pack_id: str,
        units_tenths: float,
        created_at_ms: Optional[int] = None,
    ) -> CreditPack:
        """Add a pack of *units_tenths*. Re-adding an existing pack id is a no-op."""
        created_at = created_at_ms if created_at_ms is not None else self._now_ms()
        async with self._get_lock(user_id):
            packs = await self._read_packs(user_id)
            for existing in packs:
                if existing.id == pack_id:
                    return existing

            pack = CreditPack(
                id=pack_id,
                units_tenths=max(0, round_half_up(units_tenths)),
                created_at=created_at,
                expires_at=add_months_with_grace(
                    created_at, self._validity_months, self._grace_days
                ),
            )
            packs.append(pack)
            await self._write_packs(user_id, packs)

        logger.info(
            f"[CreditLedger] Added pack '{pack_id}' ({pack.units_tenths} tenths) "
            f"for user {user_id}"
        )
        return pack

    async def list_active_packs(
        self, user_id: str, now_ms: Optional[int] = None
    ) -> list[CreditPack]:
        now = now_ms if now_ms is not None else self._now_ms()
        packs = await self._read_packs(user_id)
        return sorted((p for p in packs if p.is_active(now)), key=lambda p: p.created_at)

    async def get_balance_tenths(self, user_id: str, now_ms: Optional[int] = None) -> int:
        packs = await self.list_active_packs(user_id, now_ms)
        return sum(p.units_tenths for p in packs)

    # ------------------------------------------------------------------
    # Consumption
    # ------------------------------------------------------------------

    async def consume_tenths(
        self, user_id: str, amount_tenths: float, job_id: str, *, strict: bool = False
    ) -> ConsumptionResult:
        """Consume credits FIFO across active packs, at most once per *job_id*.

        Consumption is partial when the balance is short unless *strict* is
        set. The balance check and the deduction share the per-user lock, so
        two requests cannot both spend the same units.

        Raises:
            ValidationException: For a non-positive amount or a missing job id.
            InsufficientCreditsError: In strict mode when the balance is short.
                Nothing is deducted and no record is written.
        """
        amount = round_half_up(amount_tenths)
        if amount <= 0:
            raise ValidationException("Amount must be positive")
        if not job_id:
            raise ValidationException("job_id is required for credit consumption")

        record_key = consume_record_key(user_id, job_id)
        async with self._get_lock(user_id):
            replay = await self._load_record(record_key)
            if replay is not None:
                replay.idempotent = True
                return replay

            now = self._now_ms()
            packs = await self._read_packs(user_id)
            active = sorted((p for p in packs if p.is_active(now)), key=lambda p: p.created_at)
            balance = sum(p.units_tenths for p in active)
            if strict and balance < amount:
                raise InsufficientCreditsError(amount, balance, message="insufficient_credits")

            to_consume = amount
            breakdown: list[PackUsage] = []
            for pack in active:
                if to_consume <= 0:
                    break
                take = min(pack.units_tenths, to_consume)
                pack.units_tenths -= take
                to_consume -= take
                breakdown.append(PackUsage(pack_id=pack.id, used_tenths=take))

            await self._write_packs(user_id, packs)
            result = ConsumptionResult(
                total_requested_tenths=amount,
                total_consumed_tenths=amount - to_consume,
                remaining_tenths=sum(p.units_tenths for p in packs if p.is_active(now)),
                breakdown=breakdown,
                idempotent=False,
            )
            await self._kv.put(record_key, json.dumps(result.to_json()))

        if not result.fully_consumed:
            logger.warning(
                f"[CreditLedger] Partial consumption for user {user_id} job {job_id}: "
                f"{result.total_consumed_tenths}/{amount} tenths"
            )
        return result

    async def _load_record(self, record_key: str) -> Optional[ConsumptionResult]:
        raw = await self._kv.get(record_key)
        if not raw:
            return None
        try:
            obj = json.loads(raw)
        except ValueError:
            return None
        return ConsumptionResult.from_json(obj) if isinstance(obj, dict) else None
