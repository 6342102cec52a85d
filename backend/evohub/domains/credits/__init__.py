"""Credits: tenths-based credit packs and the monthly video quota."""

from evohub.domains.credits.exceptions import InsufficientCreditsError, InsufficientQuotaError
from evohub.domains.credits.ledger import CreditLedger
from evohub.domains.credits.protocols import CreditLedgerProtocol, VideoQuotaProtocol
from evohub.domains.credits.types import ConsumptionResult, CreditPack, PackUsage
from evohub.domains.credits.video_quota import VideoQuotaLedger

__all__ = [
    "ConsumptionResult",
    "CreditLedger",
    "CreditLedgerProtocol",
    "CreditPack",
    "InsufficientCreditsError",
    "InsufficientQuotaError",
    "PackUsage",
    "VideoQuotaLedger",
    "VideoQuotaProtocol",
]
