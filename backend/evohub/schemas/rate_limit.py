"""Rate limit schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class RateLimitResult(BaseModel):
    """Outcome of a single rate limit check.

    Stored on ``request.state`` so the headers middleware can emit the
    ``RateLimit-*`` headers.
    """

    allowed: bool
    retry_after: float = Field(0.0, description="Seconds until the window resets")
    limit: int
    remaining: int


class RateLimitEntry(BaseModel):
    """Active counter for one key of a limiter."""

    key: str
    count: int
    reset_at: int = Field(..., serialization_alias="resetAt", description="Epoch milliseconds")


class LimiterState(BaseModel):
    """Snapshot of one named limiter."""

    name: str
    max_requests: int = Field(..., serialization_alias="maxRequests")
    window_seconds: float = Field(..., serialization_alias="windowSeconds")
    entries: list[RateLimitEntry] = Field(default_factory=list)


class LimiterResetResult(BaseModel):
    """Result of resetting one limiter key."""

    name: str
    key: str
    reset: bool
    detail: Optional[str] = None
