"""Credit ledger types.

Amounts are integer tenths of a display credit. Timestamps are epoch
milliseconds, matching what the dashboard renders.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CreditPack:
    """A block of credits that expires at ``expires_at``."""

    id: str
    units_tenths: int
    created_at: int
    expires_at: int

    def is_active(self, now_ms: int) -> bool:
        return self.units_tenths > 0 and self.expires_at > now_ms

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "unitsTenths": self.units_tenths,
            "createdAt": self.created_at,
            "expiresAt": self.expires_at,
        }

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "CreditPack":
        return cls(
            id=str(obj.get("id", "")),
            units_tenths=int(obj.get("unitsTenths") or 0),
            created_at=int(obj.get("createdAt") or 0),
            expires_at=int(obj.get("expiresAt") or 0),
        )


@dataclass(frozen=True)
class PackUsage:
    """Tenths taken from one pack during a consumption."""

    pack_id: str
    used_tenths: int


@dataclass
class ConsumptionResult:
    """Outcome of consuming credits for one job."""

    total_requested_tenths: int
    total_consumed_tenths: int
    remaining_tenths: int
    breakdown: list[PackUsage] = field(default_factory=list)
    idempotent: bool = False

    @property
    def fully_consumed(self) -> bool:
        return self.total_consumed_tenths >= self.total_requested_tenths

    def to_json(self) -> dict[str, Any]:
        return {
            "totalRequestedTenths": self.total_requested_tenths,
            "totalConsumedTenths": self.total_consumed_tenths,
            "remainingTenths": self.remaining_tenths,
            "breakdown": [
                {"packId": b.pack_id, "usedTenths": b.used_tenths} for b in self.breakdown
            ],
            "idempotent": self.idempotent,
        }

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "ConsumptionResult":
        return cls(
            total_requested_tenths=int(obj.get("totalRequestedTenths") or 0),
            total_consumed_tenths=int(obj.get("totalConsumedTenths") or 0),
            remaining_tenths=int(obj.get("remainingTenths") or 0),
            breakdown=[
                PackUsage(pack_id=str(b.get("packId")), used_tenths=int(b.get("usedTenths") or 0))
                for b in obj.get("breakdown") or []
            ],
            idempotent=bool(obj.get("idempotent", False)),
        )


__all__ = ["ConsumptionResult", "CreditPack", "PackUsage"]
