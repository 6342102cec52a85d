"""Plan entitlements and tool pricing."""

from evohub.domains.entitlements.types import (
    GUEST_ENTITLEMENTS,
    PLAN_ENTITLEMENTS,
    TIER_CREDITS,
    Plan,
    ToolEntitlements,
    VideoEntitlements,
    compute_enhancer_cost,
    get_entitlements_for,
    get_video_entitlements,
    parse_plan,
    validate_enhancer_options,
    video_tier_cost_tenths,
)

__all__ = [
    "GUEST_ENTITLEMENTS",
    "PLAN_ENTITLEMENTS",
    "TIER_CREDITS",
    "Plan",
    "ToolEntitlements",
    "VideoEntitlements",
    "compute_enhancer_cost",
    "get_entitlements_for",
    "get_video_entitlements",
    "parse_plan",
    "validate_enhancer_options",
    "video_tier_cost_tenths",
]
