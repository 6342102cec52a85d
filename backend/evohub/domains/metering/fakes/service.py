"""Fake metering service for testing."""

from typing import Any, Optional

from evohub.core.shared_models import Owner, Tool
from evohub.domains.credits.types import CreditPack
from evohub.domains.entitlements.types import Plan
from evohub.domains.metering.types import (
    AdminDeductResult,
    BillingSummary,
    ImageChargeResult,
    UsageOverview,
    VideoChargeResult,
)


class FakeMeteringService:
    """In-memory fake for MeteringServiceProtocol.

    Usage is seeded per tool; charge methods return pre-configured results.
    ``fail_with`` makes the next call raise the given exception.
    """

    def __init__(self) -> None:
        """Initialize with default limits and an empty call log."""
        self._limits: dict[Tool, float] = {tool: 10 for tool in Tool}
        self._usage: dict[Tool, UsageOverview] = {}
        self._image_result: Optional[ImageChargeResult] = None
        self._video_result: Optional[VideoChargeResult] = None
        self._summary: Optional[BillingSummary] = None
        self._deduct_result: Optional[AdminDeductResult] = None
        self._error: Optional[Exception] = None
        self._calls: list[tuple[Any, ...]] = []

    @property
    def calls(self) -> list[tuple[Any, ...]]:
        return self._calls

    def seed_usage(self, tool: Tool, usage: UsageOverview) -> None:
        self._usage[tool] = usage
        self._limits[tool] = usage.limit

    def set_image_result(self, result: ImageChargeResult) -> None:
        self._image_result = result

    def set_video_result(self, result: VideoChargeResult) -> None:
        self._video_result = result

    def set_billing_summary(self, summary: BillingSummary) -> None:
        self._summary = summary

    def set_deduct_result(self, result: AdminDeductResult) -> None:
        self._deduct_result = result

    def fail_with(self, error: Exception) -> None:
        self._error = error

    def _raise_if_failing(self) -> None:
        if self._error is not None:
            error, self._error = self._error, None
            raise error

    def get_limit(self, tool: Tool, owner: Owner, plan: Optional[Plan]) -> float:
        return self._limits[tool]

    async def get_tool_usage(
        self, tool: Tool, owner: Owner, plan: Optional[Plan]
    ) -> UsageOverview:
        self._calls.append(("get_tool_usage", tool, owner, plan))
        self._raise_if_failing()
        return self._usage.get(tool, UsageOverview(used=0, limit=self._limits[tool]))

    async def consume_tool_usage(
        self,
        tool: Tool,
        owner: Owner,
        plan: Optional[Plan],
        job_id: Optional[str] = None,
    ) -> UsageOverview:
        """Bump the seeded usage by one."""
        self._calls.append(("consume_tool_usage", tool, owner, plan, job_id))
        self._raise_if_failing()
        current = self._usage.get(tool, UsageOverview(used=0, limit=self._limits[tool]))
        updated = UsageOverview(
            used=current.used + 1, limit=current.limit, reset_at=current.reset_at
        )
        self._usage[tool] = updated
        return updated

    async def charge_image_job(
        self,
        owner: Owner,
        plan: Optional[Plan],
        job_id: str,
        model_slug: str,
        scale: Optional[int] = None,
        face_enhance: bool = False,
    ) -> ImageChargeResult:
        self._calls.append(
            ("charge_image_job", owner, plan, job_id, model_slug, scale, face_enhance)
        )
        self._raise_if_failing()
        if self._image_result is None:
            raise RuntimeError("FakeMeteringService.image_result not configured")
        return self._image_result

    async def charge_video_job(
        self, owner: Owner, plan: Optional[Plan], job_id: str, tier: str
    ) -> VideoChargeResult:
        self._calls.append(("charge_video_job", owner, plan, job_id, tier))
        self._raise_if_failing()
        if self._video_result is None:
            raise RuntimeError("FakeMeteringService.video_result not configured")
        return self._video_result

    async def get_billing_summary(self, user_id: str, plan: Optional[Plan]) -> BillingSummary:
        self._calls.append(("get_billing_summary", user_id, plan))
        self._raise_if_failing()
        if self._summary is None:
            raise RuntimeError("FakeMeteringService.billing_summary not configured")
        return self._summary

    async def admin_deduct_credits(
        self,
        user_id: str,
        amount: Optional[float] = None,
        idempotency_key: Optional[str] = None,
        strict: bool = True,
        actor_id: Optional[str] = None,
    ) -> AdminDeductResult:
        self._calls.append(
            ("admin_deduct_credits", user_id, amount, idempotency_key, strict, actor_id)
        )
        self._raise_if_failing()
        if self._deduct_result is None:
            raise RuntimeError("FakeMeteringService.deduct_result not configured")
        return self._deduct_result

    async def grant_credit_pack(
        self,
        user_id: str,
        units: float,
        pack_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> CreditPack:
        """Return a pack that never expires."""
        self._calls.append(("grant_credit_pack", user_id, units, pack_id, actor_id))
        self._raise_if_failing()
        return CreditPack(
            id=pack_id or "fake-pack",
            units_tenths=int(units * 10),
            created_at=0,
            expires_at=2**53,
        )
