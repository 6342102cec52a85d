"""Video job charges."""

from fastapi import APIRouter

from evohub.api.context import ApiContext
from evohub.api.deps import Inject, api_guard
from evohub.api.envelope import ok
from evohub.domains.metering.protocols import MeteringServiceProtocol
from evohub.schemas.metering import VideoChargeRequest

router = APIRouter()


@router.post("/charges")
async def charge_video(
    body: VideoChargeRequest,
    ctx: ApiContext = api_guard("aiJobs", require_auth=True),
    metering: MeteringServiceProtocol = Inject(MeteringServiceProtocol),
) -> dict:
    """Charge one video job from credit packs, falling back to the monthly quota."""
    result = await metering.charge_video_job(ctx.owner, ctx.plan, body.job_id, body.tier)
    ctx.logger.info(f"Video charge {result.job_id} ({result.tier}): quota={result.quota}")
    return ok(result.to_json())
