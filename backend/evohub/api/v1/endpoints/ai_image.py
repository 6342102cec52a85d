"""Image enhancer charges."""

from fastapi import APIRouter

from evohub.api.context import ApiContext
from evohub.api.deps import Inject, api_guard
from evohub.api.envelope import ok
from evohub.domains.metering.protocols import MeteringServiceProtocol
from evohub.schemas.metering import ImageChargeRequest

router = APIRouter()


@router.post("/charges")
async def charge_image(
    body: ImageChargeRequest,
    ctx: ApiContext = api_guard("aiGenerate"),
    metering: MeteringServiceProtocol = Inject(MeteringServiceProtocol),
) -> dict:
    """Charge one enhancer run against the plan's allowance, then credits.

    Retrying with the same ``jobId`` returns the original charge.
    """
    result = await metering.charge_image_job(
        ctx.owner,
        ctx.plan,
        body.job_id,
        body.model,
        scale=body.scale,
        face_enhance=body.face_enhance,
    )
    ctx.logger.info(
        f"Image charge {result.job_id}: cost={result.cost} idempotent={result.idempotent}"
    )
    return ok(result.to_json())
