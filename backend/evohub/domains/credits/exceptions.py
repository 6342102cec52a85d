"""Credit ledger exceptions."""

from typing import Optional

from evohub.core.exceptions import InvalidStateError


class InsufficientCreditsError(InvalidStateError):
    """Raised when a strict deduction exceeds the active balance."""

    def __init__(
        self,
        requested_tenths: int,
        balance_tenths: int,
        message: Optional[str] = None,
    ) -> None:
        """Initialize with the requested amount and available balance in tenths."""
        self.requested_tenths = requested_tenths
        self.balance_tenths = balance_tenths
        super().__init__(
            message or "Insufficient credits",
            {"requestedTenths": requested_tenths, "balanceTenths": balance_tenths},
        )


class InsufficientQuotaError(InvalidStateError):
    """Raised when a monthly video quota cannot cover a charge."""

    def __init__(self, needed_tenths: int, remaining_tenths: int) -> None:
        """Initialize with the amount needed and what is left this month."""
        self.needed_tenths = needed_tenths
        self.remaining_tenths = remaining_tenths
        super().__init__(
            "insufficient_quota",
            {"neededTenths": needed_tenths, "remainingTenths": remaining_tenths},
        )
