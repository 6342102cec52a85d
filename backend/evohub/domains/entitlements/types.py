"""Plan entitlements for the metered AI tools.

Each plan maps to a set of per-tool allowances. Guests get their own, smaller
table regardless of plan. Monthly video allowances are expressed in tenths so
they can be compared directly with credit balances.
"""

from dataclasses import dataclass
from enum import Enum

from evohub.core.exceptions import ValidationException


class Plan(str, Enum):
    """Subscription plans."""

    FREE = "free"
    PRO = "pro"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


@dataclass(frozen=True)
class ToolEntitlements:
    """Allowances for the image enhancer and the burst caps of the other tools."""

    monthly_images: int
    daily_burst_cap: int
    max_upscale: int
    face_enhance: bool


@dataclass(frozen=True)
class VideoEntitlements:
    """Monthly video allowance (tenths) and the tiers a plan may render."""

    monthly_credits_tenths: int
    tiers: tuple[str, ...]


GUEST_ENTITLEMENTS = ToolEntitlements(
    monthly_images=30, daily_burst_cap=3, max_upscale=2, face_enhance=False
)

PLAN_ENTITLEMENTS: dict[Plan, ToolEntitlements] = {
    Plan.FREE: ToolEntitlements(
        monthly_images=200, daily_burst_cap=20, max_upscale=2, face_enhance=False
    ),
    Plan.PRO: ToolEntitlements(
        monthly_images=1000, daily_burst_cap=60, max_upscale=4, face_enhance=True
    ),
    Plan.PREMIUM: ToolEntitlements(
        monthly_images=3000, daily_burst_cap=150, max_upscale=8, face_enhance=True
    ),
    Plan.ENTERPRISE: ToolEntitlements(
        monthly_images=10000, daily_burst_cap=500, max_upscale=8, face_enhance=True
    ),
}

VIDEO_ENTITLEMENTS: dict[Plan, VideoEntitlements] = {
    Plan.FREE: VideoEntitlements(monthly_credits_tenths=0, tiers=("720p",)),
    Plan.PRO: VideoEntitlements(monthly_credits_tenths=1000, tiers=("720p", "1080p")),
    Plan.PREMIUM: VideoEntitlements(monthly_credits_tenths=3000, tiers=("720p", "1080p")),
    Plan.ENTERPRISE: VideoEntitlements(monthly_credits_tenths=10000, tiers=("720p", "1080p")),
}

# Credits charged per video job, by output tier
TIER_CREDITS: dict[str, float] = {
    "720p": 5,
    "1080p": 8,
}

# Base cost in credits of one enhancer run, by model slug
ENHANCER_MODEL_COSTS: dict[str, float] = {
    "nightmareai/real-esrgan": 1.0,
    "tencentarc/gfpgan": 1.0,
    "sczhou/codeformer": 1.0,
    "topazlabs/image-upscale": 4.0,
    "philz1337x/clarity-upscaler": 2.0,
}

_HIGH_SCALE_SURCHARGE = 0.5
_FACE_ENHANCE_SURCHARGE = 0.5


def parse_plan(value) -> Plan:
    """Return the plan named by *value*, falling back to ``free``."""
    if isinstance(value, Plan):
        return value
    try:
        return Plan(str(value).strip().lower())
    except ValueError:
        return Plan.FREE


def get_entitlements_for(plan: Plan | None, *, is_guest: bool = False) -> ToolEntitlements:
    """Image entitlements for a plan, or the guest table for anonymous owners."""
    if is_guest:
        return GUEST_ENTITLEMENTS
    return PLAN_ENTITLEMENTS.get(plan or Plan.FREE, PLAN_ENTITLEMENTS[Plan.FREE])


def get_video_entitlements(plan: Plan | None) -> VideoEntitlements:
    return VIDEO_ENTITLEMENTS.get(plan or Plan.FREE, VIDEO_ENTITLEMENTS[Plan.FREE])


def video_tier_cost_tenths(tier: str) -> int:
    """Credits for a video tier, in tenths."""
    if tier not in TIER_CREDITS:
        raise ValidationException(f"Unsupported video tier '{tier}'")
    return int(round(TIER_CREDITS[tier] * 10))


def compute_enhancer_cost(
    model_slug: str, scale: int | None = None, face_enhance: bool = False
) -> float:
    """Credits for one image enhancer run.

    Base model cost, plus a surcharge for 4x and larger upscales and for
    face enhancement. Rounded to one decimal.
    """
    if model_slug not in ENHANCER_MODEL_COSTS:
        raise ValidationException(f"Unsupported model '{model_slug}'")
    cost = ENHANCER_MODEL_COSTS[model_slug]
    if scale is not None and scale >= 4:
        cost += _HIGH_SCALE_SURCHARGE
    if face_enhance:
        cost += _FACE_ENHANCE_SURCHARGE
    return round(cost, 1)


def validate_enhancer_options(
    entitlements: ToolEntitlements, scale: int | None, face_enhance: bool
) -> None:
    """Reject options the owner's entitlements do not include."""
    if scale is not None and scale > entitlements.max_upscale:
        raise ValidationException(
            f"Unsupported value for 'scale': max {entitlements.max_upscale}x on this plan"
        )
    if face_enhance and not entitlements.face_enhance:
        raise ValidationException("Unsupported parameter 'face_enhance' on this plan")
