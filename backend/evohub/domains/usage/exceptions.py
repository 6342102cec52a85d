"""Usage domain exceptions."""

from typing import Optional

from evohub.core.exceptions import ApiErrorType, InvalidStateError


class QuotaExceededError(InvalidStateError):
    """Raised when an owner has used up a daily or monthly allowance."""

    error_type = ApiErrorType.FORBIDDEN

    def __init__(
        self,
        scope: str,
        used: float,
        limit: float,
        message: Optional[str] = None,
    ) -> None:
        """Initialize with the exhausted scope (``daily``/``monthly``) and its counters."""
        self.scope = scope
        self.used = used
        self.limit = limit
        super().__init__(
            message or "Usage limit reached",
            {"scope": scope, "used": used, "limit": limit},
        )
