"""Per-tool usage endpoints for guests and signed-in users."""

from typing import Any, Optional

from fastapi import APIRouter, Query, Response

from evohub.api.context import ApiContext
from evohub.api.deps import Inject, api_guard
from evohub.api.envelope import ok
from evohub.core.config import settings
from evohub.core.shared_models import Owner, OwnerType, Tool
from evohub.domains.entitlements.types import get_entitlements_for, get_video_entitlements
from evohub.domains.metering.protocols import MeteringServiceProtocol
from evohub.schemas.metering import ConsumeUsageRequest

router = APIRouter()

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

# Placeholder owners used only to resolve per-owner-type limits
_ANY_USER = Owner(OwnerType.USER, "-")
_ANY_GUEST = Owner(OwnerType.GUEST, "-")


def mask_owner_id(owner_id: str) -> str:
    """Last four characters and the length, e.g. ``…c0de(36)``."""
    return f"…{owner_id[-4:]}({len(owner_id)})" if owner_id else ""


def _entitlements_json(tool: Tool, ctx: ApiContext) -> dict[str, Any]:
    if tool == Tool.VIDEO:
        video = get_video_entitlements(ctx.plan)
        return {"monthlyCreditsTenths": video.monthly_credits_tenths, "tiers": list(video.tiers)}
    ent = get_entitlements_for(ctx.plan, is_guest=not ctx.is_authenticated)
    return {
        "monthlyImages": ent.monthly_images,
        "dailyBurstCap": ent.daily_burst_cap,
        "maxUpscale": ent.max_upscale,
        "faceEnhance": ent.face_enhance,
    }


@router.get("/{tool}")
async def get_usage(
    tool: Tool,
    response: Response,
    debug: Optional[str] = Query(None),
    ctx: ApiContext = api_guard("api"),
    metering: MeteringServiceProtocol = Inject(MeteringServiceProtocol),
) -> dict:
    """Current usage of *tool* for the caller, with both owner types' limits."""
    usage = await metering.get_tool_usage(tool, ctx.owner, ctx.plan)
    plan = ctx.plan.value if ctx.plan else None

    data: dict[str, Any] = {
        "ownerType": ctx.owner.owner_type.value,
        "usage": usage.to_json(),
        "limits": {
            "user": metering.get_limit(tool, _ANY_USER, ctx.plan),
            "guest": metering.get_limit(tool, _ANY_GUEST, None),
        },
        "entitlements": _entitlements_json(tool, ctx),
    }
    if plan:
        data["plan"] = plan
    if debug == "1":
        data["debug"] = {
            "ownerId": mask_owner_id(ctx.owner.owner_id),
            "limitResolved": usage.limit,
            "env": settings.ENVIRONMENT.value,
        }

    response.headers.update(NO_CACHE_HEADERS)
    response.headers["X-Usage-OwnerType"] = ctx.owner.owner_type.value
    response.headers["X-Usage-Plan"] = plan or ""
    response.headers["X-Usage-Limit"] = str(usage.limit)
    return ok(data)


@router.post("/{tool}/consume")
async def consume_usage(
    tool: Tool,
    response: Response,
    body: Optional[ConsumeUsageRequest] = None,
    ctx: ApiContext = api_guard("aiJobs"),
    metering: MeteringServiceProtocol = Inject(MeteringServiceProtocol),
) -> dict:
    """Count one use of prompt, voice or web scraper. Refused once the daily limit is used."""
    job_id = body.job_id if body else None
    usage = await metering.consume_tool_usage(tool, ctx.owner, ctx.plan, job_id=job_id)
    ctx.logger.info(f"Consumed {tool.value} usage ({usage.used}/{usage.limit})")

    response.headers.update(NO_CACHE_HEADERS)
    return ok({"ownerType": ctx.owner.owner_type.value, "usage": usage.to_json()})
