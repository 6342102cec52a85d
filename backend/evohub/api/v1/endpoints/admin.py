"""Administrative endpoints: credit adjustments and rate limiter inspection."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from evohub.api.context import ApiContext
from evohub.api.deps import Inject, api_guard, require_internal_credit_ops
from evohub.api.envelope import ok
from evohub.core.rate_limiter import RateLimiterRegistry
from evohub.domains.metering.protocols import MeteringServiceProtocol
from evohub.schemas.metering import AdminDeductRequest, CreditGrantRequest
from evohub.schemas.rate_limit import LimiterResetResult

router = APIRouter()


@router.post("/credits/grant", dependencies=[Depends(require_internal_credit_ops)])
async def grant_credits(
    body: CreditGrantRequest,
    ctx: ApiContext = api_guard("sensitiveAction", require_admin=True, enforce_csrf_token=True),
    metering: MeteringServiceProtocol = Inject(MeteringServiceProtocol),
) -> dict:
    """Issue a credit pack. Re-using ``packId`` returns the existing pack."""
    pack = await metering.grant_credit_pack(
        body.user_id, body.units, pack_id=body.pack_id, actor_id=ctx.user_id
    )
    return ok({"userId": body.user_id, "pack": pack.to_json()})


@router.post("/credits/deduct", dependencies=[Depends(require_internal_credit_ops)])
async def deduct_credits(
    body: AdminDeductRequest,
    ctx: ApiContext = api_guard("sensitiveAction", require_admin=True, enforce_csrf_token=True),
    metering: MeteringServiceProtocol = Inject(MeteringServiceProtocol),
) -> dict:
    """Deduct credits FIFO across the user's packs."""
    result = await metering.admin_deduct_credits(
        body.user_id,
        amount=body.amount,
        idempotency_key=body.idempotency_key,
        strict=body.strict,
        actor_id=ctx.user_id,
    )
    return ok(result.to_json())


@router.get("/rate-limits")
async def list_rate_limits(
    name: Optional[str] = Query(None),
    ctx: ApiContext = api_guard(require_admin=True),
    rate_limiters: RateLimiterRegistry = Inject(RateLimiterRegistry),
) -> dict:
    states = rate_limiters.get_state(name)
    return ok([state.model_dump(by_alias=True) for state in states])


@router.delete("/rate-limits/{name}/{key}")
async def reset_rate_limit(
    name: str,
    key: str,
    ctx: ApiContext = api_guard(require_admin=True),
    rate_limiters: RateLimiterRegistry = Inject(RateLimiterRegistry),
) -> dict:
    """Forget one key of a limiter so its next request opens a new window."""
    rate_limiters.get(name)
    reset = rate_limiters.reset_key(name, key)
    ctx.logger.info(f"Rate limit reset {name}/{key}: {reset}")
    result = LimiterResetResult(
        name=name,
        key=key,
        reset=reset,
        detail=None if reset else "Key had no active window",
    )
    return ok(result.model_dump())
