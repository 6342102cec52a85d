"""Payloads of the ``/api/health`` probes.

These are returned as-is, without the API envelope, so orchestrators can read
``status`` directly.
"""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProbeStatus(str, Enum):
    up = "up"
    down = "down"
    skipped = "skipped"


class ProbeResult(BaseModel):
    """Outcome of one backing-store probe."""

    status: ProbeStatus
    latency_ms: Optional[float] = Field(None, description="Round trip of the probe call.")
    error: Optional[str] = Field(
        None, description="Failure category, or the raw error message in debug mode."
    )


class ReadinessReport(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"status": "not_ready", "checks": {"kv": {"status": "down"}}},
        }
    )

    status: Literal["ready", "not_ready"]
    checks: dict[str, ProbeResult] = Field(default_factory=dict)


class LivenessReport(BaseModel):
    status: Literal["alive"] = "alive"
