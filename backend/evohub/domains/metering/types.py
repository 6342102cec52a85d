"""Metering domain types.

Results are plain dataclasses; ``to_json`` renders the camelCase shape the
dashboard and tool clients consume. Timestamps are epoch milliseconds.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from evohub.domains.credits.types import PackUsage


@dataclass(frozen=True)
class UsageOverview:
    """Current usage of one tool for one owner."""

    used: float
    limit: float
    reset_at: Optional[int] = None

    def to_json(self) -> dict[str, Any]:
        return {"used": self.used, "limit": self.limit, "resetAt": self.reset_at}


@dataclass
class ImageChargeResult:
    """Outcome of charging one image enhancer job."""

    job_id: str
    cost: float
    plan_portion_tenths: int
    credits_portion_tenths: int
    daily: UsageOverview
    monthly_used_tenths: int
    monthly_limit_tenths: int
    credits_remaining_tenths: Optional[int] = None
    idempotent: bool = False

    def to_json(self) -> dict[str, Any]:
        return {
            "jobId": self.job_id,
            "cost": self.cost,
            "planPortionTenths": self.plan_portion_tenths,
            "creditsPortionTenths": self.credits_portion_tenths,
            "daily": self.daily.to_json(),
            "monthlyUsedTenths": self.monthly_used_tenths,
            "monthlyLimitTenths": self.monthly_limit_tenths,
            "creditsRemainingTenths": self.credits_remaining_tenths,
            "idempotent": self.idempotent,
        }

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "ImageChargeResult":
        daily = obj.get("daily") or {}
        return cls(
            job_id=str(obj.get("jobId", "")),
            cost=float(obj.get("cost") or 0),
            plan_portion_tenths=int(obj.get("planPortionTenths") or 0),
            credits_portion_tenths=int(obj.get("creditsPortionTenths") or 0),
            daily=UsageOverview(
                used=daily.get("used") or 0,
                limit=daily.get("limit") or 0,
                reset_at=daily.get("resetAt"),
            ),
            monthly_used_tenths=int(obj.get("monthlyUsedTenths") or 0),
            monthly_limit_tenths=int(obj.get("monthlyLimitTenths") or 0),
            credits_remaining_tenths=obj.get("creditsRemainingTenths"),
            idempotent=bool(obj.get("idempotent", False)),
        )


@dataclass
class VideoChargeResult:
    """Outcome of charging one video job.

    Either credits were taken from packs (``credits`` > 0, ``balance`` set) or
    the plan's monthly video quota paid for it (``quota`` True).
    """

    job_id: str
    tier: str
    credits: float
    balance: Optional[int] = None
    quota: bool = False
    idempotent: bool = False

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "jobId": self.job_id,
            "tier": self.tier,
            "credits": self.credits,
            "idempotent": self.idempotent,
        }
        if self.quota:
            payload["quota"] = True
        else:
            payload["balance"] = self.balance
        return payload

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "VideoChargeResult":
        return cls(
            job_id=str(obj.get("jobId", "")),
            tier=str(obj.get("tier", "")),
            credits=float(obj.get("credits") or 0),
            balance=obj.get("balance"),
            quota=bool(obj.get("quota", False)),
            idempotent=bool(obj.get("idempotent", False)),
        )


@dataclass
class BillingSummary:
    """Dashboard billing card for a signed-in user."""

    plan: str
    credits_remaining: int
    credits_remaining_tenths: int
    monthly_limit: int
    monthly_used: float
    period_ends_at: int
    tools: dict[str, UsageOverview] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        return {
            "plan": self.plan,
            "creditsRemaining": self.credits_remaining,
            "creditsRemainingTenths": self.credits_remaining_tenths,
            "monthlyLimit": self.monthly_limit,
            "monthlyUsed": self.monthly_used,
            "periodEndsAt": self.period_ends_at,
            "tools": {name: usage.to_json() for name, usage in self.tools.items()},
        }


@dataclass
class AdminDeductResult:
    """Outcome of an administrative credit deduction."""

    user_id: str
    requested: int
    deducted: int
    requested_tenths: int
    deducted_tenths: int
    remaining_tenths: int
    balance: int
    breakdown: list[PackUsage]
    idempotent: bool
    job_id: str

    def to_json(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "requested": self.requested,
            "deducted": self.deducted,
            "requestedTenths": self.requested_tenths,
            "deductedTenths": self.deducted_tenths,
            "remainingTenths": self.remaining_tenths,
            "balance": self.balance,
            "breakdown": [
                {"packId": b.pack_id, "usedTenths": b.used_tenths} for b in self.breakdown
            ],
            "idempotent": self.idempotent,
            "jobId": self.job_id,
        }
