"""Request bodies of the metering endpoints.

Clients send camelCase; the models accept snake_case too.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ConsumeUsageRequest(_CamelModel):
    """One use of a daily-capped tool. Repeating ``jobId`` is not counted again."""

    job_id: Optional[str] = Field(None, alias="jobId", max_length=128)


class ImageChargeRequest(_CamelModel):
    """Charge for one image enhancer run."""

    job_id: str = Field(..., alias="jobId", min_length=1, max_length=128)
    model: str = Field(..., min_length=1, description="Enhancer model slug")
    scale: Optional[int] = Field(None, ge=1, le=8)
    face_enhance: bool = Field(False, alias="faceEnhance")


class VideoChargeRequest(_CamelModel):
    """Charge for one video job."""

    job_id: str = Field(..., alias="jobId", min_length=1, max_length=128)
    tier: str = Field(..., description="Output tier, e.g. 720p")


class CreditGrantRequest(_CamelModel):
    """Issue a credit pack to a user."""

    user_id: str = Field(..., alias="userId", min_length=1)
    units: float = Field(..., gt=0, le=100_000, description="Credits, one decimal")
    pack_id: Optional[str] = Field(None, alias="packId", max_length=128)


class AdminDeductRequest(_CamelModel):
    """Deduct credits from a user. ``strict`` refuses when the balance is short."""

    user_id: str = Field(..., alias="userId", min_length=1)
    amount: Optional[float] = None
    idempotency_key: Optional[str] = Field(None, alias="idempotencyKey")
    strict: bool = True
