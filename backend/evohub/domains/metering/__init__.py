"""Metering: usage checks and charges for the AI tools."""

from evohub.domains.metering.protocols import MeteringServiceProtocol
from evohub.domains.metering.service import MeteringService
from evohub.domains.metering.types import (
    AdminDeductResult,
    BillingSummary,
    ImageChargeResult,
    UsageOverview,
    VideoChargeResult,
)

__all__ = [
    "AdminDeductResult",
    "BillingSummary",
    "ImageChargeResult",
    "MeteringService",
    "MeteringServiceProtocol",
    "UsageOverview",
    "VideoChargeResult",
]
