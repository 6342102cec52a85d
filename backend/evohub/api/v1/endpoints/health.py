"""Liveness and readiness probes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from evohub.api.deps import Inject
from evohub.core.config import settings
from evohub.core.protocols import HealthServiceProtocol
from evohub.schemas.health import LivenessReport, ReadinessReport

router = APIRouter()


@router.get("")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/live", response_model=LivenessReport)
async def live() -> LivenessReport:
    return LivenessReport()


@router.get("/ready", response_model=ReadinessReport, responses={503: {"model": ReadinessReport}})
async def ready(
    health_service: HealthServiceProtocol = Inject(HealthServiceProtocol),
) -> JSONResponse:
    """503 while the KV store is unreachable or the process is draining."""
    report = await health_service.check_readiness(debug=settings.DEBUG)
    return JSONResponse(
        report.model_dump(mode="json"),
        status_code=200 if report.status == "ready" else 503,
    )
