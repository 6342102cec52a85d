"""Dashboard data for the signed-in user."""

from fastapi import APIRouter

from evohub.api.context import ApiContext
from evohub.api.deps import Inject, api_guard
from evohub.api.envelope import ok
from evohub.domains.metering.protocols import MeteringServiceProtocol

router = APIRouter()


@router.get("/billing-summary")
async def billing_summary(
    ctx: ApiContext = api_guard(require_auth=True),
    metering: MeteringServiceProtocol = Inject(MeteringServiceProtocol),
) -> dict:
    """Plan, credit balance, monthly image allowance and per-tool usage."""
    summary = await metering.get_billing_summary(ctx.user_id, ctx.plan)
    return ok(summary.to_json())
