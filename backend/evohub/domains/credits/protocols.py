"""Credit domain protocols."""

from typing import Optional, Protocol, runtime_checkable

from evohub.domains.credits.types import ConsumptionResult, CreditPack


@runtime_checkable
class CreditLedgerProtocol(Protocol):
    """Per-user credit packs consumed oldest-first."""

    async def add_credit_pack_tenths(
        self,
        user_id: str,
        pack_id: str,
        units_tenths: float,
        created_at_ms: Optional[int] = None,
    ) -> CreditPack:
        """Add a pack; a pack id that already exists is left untouched."""
        ...

    async def list_active_packs(
        self, user_id: str, now_ms: Optional[int] = None
    ) -> list[CreditPack]:
        """Return unexpired, non-empty packs ordered by creation time."""
        ...

    async def get_balance_tenths(self, user_id: str, now_ms: Optional[int] = None) -> int:
        """Sum of active pack units."""
        ...

    async def consume_tenths(
        self, user_id: str, amount_tenths: float, job_id: str, *, strict: bool = False
    ) -> ConsumptionResult:
        """Consume up to *amount_tenths* once per *job_id*; all or nothing when *strict*."""
        ...


@runtime_checkable
class VideoQuotaProtocol(Protocol):
    """Monthly video allowance in tenths, separate from credit packs."""

    async def get_used_tenths(self, user_id: str) -> int:
        """Tenths used in the current UTC month."""
        ...

    async def get_remaining_tenths(self, user_id: str, limit_tenths: int) -> int:
        """``max(0, limit - used)`` for the current UTC month."""
        ...

    async def consume(
        self, user_id: str, limit_tenths: int, amount_tenths: float, tx_key: str
    ) -> bool:
        """Consume once per *tx_key*. Returns False when already applied."""
        ...
