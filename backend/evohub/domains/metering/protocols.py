"""Metering domain protocols.

MeteringServiceProtocol: the only thing tool, dashboard and admin
endpoints need injected to check and charge usage.
"""

from typing import Optional, Protocol, runtime_checkable

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


@runtime_checkable
class MeteringServiceProtocol(Protocol):
    """Usage checks and charges across all metered tools."""

    def get_limit(self, tool: Tool, owner: Owner, plan: Optional[Plan]) -> float:
        """Effective limit of *tool* for *owner* on *plan*."""
        ...

    async def get_tool_usage(
        self, tool: Tool, owner: Owner, plan: Optional[Plan]
    ) -> UsageOverview:
        """Current usage of *tool* for *owner*."""
        ...

    async def consume_tool_usage(
        self,
        tool: Tool,
        owner: Owner,
        plan: Optional[Plan],
        job_id: Optional[str] = None,
    ) -> UsageOverview:
        """Count one use of a daily-capped tool."""
        ...

    async def charge_image_job(
        self,
        owner: Owner,
        plan: Optional[Plan],
        job_id: str,
        model_slug: str,
        scale: Optional[int] = None,
        face_enhance: bool = False,
    ) -> ImageChargeResult:
        """Charge one image enhancer job against plan allowance, then credits."""
        ...

    async def charge_video_job(
        self, owner: Owner, plan: Optional[Plan], job_id: str, tier: str
    ) -> VideoChargeResult:
        """Charge one video job against credits, then the monthly video quota."""
        ...

    async def get_billing_summary(self, user_id: str, plan: Optional[Plan]) -> BillingSummary:
        """Dashboard billing summary for a signed-in user."""
        ...

    async def admin_deduct_credits(
        self,
        user_id: str,
        amount: Optional[float] = None,
        idempotency_key: Optional[str] = None,
        strict: bool = True,
        actor_id: Optional[str] = None,
    ) -> AdminDeductResult:
        """Remove credits from a user's packs on behalf of an administrator."""
        ...

    async def grant_credit_pack(
        self,
        user_id: str,
        units: float,
        pack_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> CreditPack:
        """Issue a credit pack of *units* credits."""
        ...
