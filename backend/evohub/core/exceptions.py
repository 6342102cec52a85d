"""Shared exceptions module.

Every API-facing exception carries an ``ApiErrorType``; the HTTP status is
derived from ``ERROR_STATUS_CODES`` so handlers never hard-code codes.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError


class ApiErrorType(str, Enum):
    """Error categories rendered in the ``error.type`` envelope field."""

    VALIDATION_ERROR = "validation_error"
    AUTH_ERROR = "auth_error"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    CONFLICT = "conflict"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    DB_ERROR = "db_error"
    SUBSCRIPTION_ACTIVE = "subscription_active"


ERROR_STATUS_CODES: dict[ApiErrorType, int] = {
    ApiErrorType.VALIDATION_ERROR: 400,
    ApiErrorType.AUTH_ERROR: 401,
    ApiErrorType.FORBIDDEN: 403,
    ApiErrorType.NOT_FOUND: 404,
    ApiErrorType.METHOD_NOT_ALLOWED: 405,
    ApiErrorType.CONFLICT: 409,
    ApiErrorType.RATE_LIMIT: 429,
    ApiErrorType.SERVER_ERROR: 500,
    ApiErrorType.DB_ERROR: 500,
    ApiErrorType.SUBSCRIPTION_ACTIVE: 400,
}


class EvohubException(Exception):
    """Base exception for Evohub services."""

    error_type: ApiErrorType = ApiErrorType.SERVER_ERROR

    def __init__(self, message: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        """Create a new EvohubException instance.

        Args:
        ----
            message (str, optional): The error message.
            details (dict, optional): Extra structured context for the client.

        """
        self.message = message or "Internal server error"
        self.details = details
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        """HTTP status code for this exception's error type."""
        return ERROR_STATUS_CODES[self.error_type]


class ValidationException(EvohubException):
    """Exception raised when client input is rejected."""

    error_type = ApiErrorType.VALIDATION_ERROR

    def __init__(self, message: Optional[str] = "Invalid request", details=None):
        """Create a new ValidationException instance."""
        super().__init__(message, details)


class AuthenticationException(EvohubException):
    """Exception raised when a request requires an authenticated user."""

    error_type = ApiErrorType.AUTH_ERROR

    def __init__(self, message: Optional[str] = "Authentication required", details=None):
        """Create a new AuthenticationException instance."""
        super().__init__(message, details)


class PermissionException(EvohubException):
    """Exception raised when a user does not have the necessary permissions to perform an action."""

    error_type = ApiErrorType.FORBIDDEN

    def __init__(
        self,
        message: Optional[str] = "User does not have the right to perform this action",
        details=None,
    ):
        """Create a new PermissionException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.
            details (dict, optional): Extra structured context.

        """
        super().__init__(message, details)


class NotFoundException(EvohubException):
    """Exception raised when an object is not found."""

    error_type = ApiErrorType.NOT_FOUND

    def __init__(self, message: Optional[str] = "Object not found", details=None):
        """Create a new NotFoundException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.
            details (dict, optional): Extra structured context.

        """
        super().__init__(message, details)


class MethodNotAllowedException(EvohubException):
    """Exception raised when a route does not accept the request method."""

    error_type = ApiErrorType.METHOD_NOT_ALLOWED

    def __init__(self, allowed_methods: list[str], message: Optional[str] = None):
        """Create a new MethodNotAllowedException instance.

        Args:
        ----
            allowed_methods (list[str]): Methods advertised in the ``Allow`` header.
            message (str, optional): Custom error message.

        """
        self.allowed_methods = sorted(set(allowed_methods))
        super().__init__(message or "Method Not Allowed")


class ConflictException(EvohubException):
    """Exception raised when a write conflicts with existing state."""

    error_type = ApiErrorType.CONFLICT

    def __init__(self, message: Optional[str] = "Conflict", details=None):
        """Create a new ConflictException instance."""
        super().__init__(message, details)


class RateLimitExceededException(EvohubException):
    """Exception raised when API rate limit is exceeded."""

    error_type = ApiErrorType.RATE_LIMIT

    def __init__(
        self,
        retry_after: float,
        limit: int,
        remaining: int,
        message: Optional[str] = None,
    ):
        """Create a new RateLimitExceededException instance.

        Args:
        ----
            retry_after (float): Seconds until rate limit resets.
            limit (int): Maximum requests allowed in the window.
            remaining (int): Requests remaining in current window.
            message (str, optional): Custom error message.

        """
        self.retry_after = retry_after
        self.limit = limit
        self.remaining = remaining
        super().__init__(message or "Rate limit exceeded", {"retryAfter": int(retry_after)})


class InvalidStateError(EvohubException):
    """Exception raised when an object is in an invalid state.

    Base class for domain errors raised when stored usage or ledger state
    does not allow the requested operation.
    """

    error_type = ApiErrorType.VALIDATION_ERROR

    def __init__(self, message: Optional[str] = "Object is in an invalid state", details=None):
        """Create a new InvalidStateError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.
            details (dict, optional): Extra structured context.

        """
        super().__init__(message, details)


class KeyValueStoreError(EvohubException):
    """Exception raised when the key-value backend cannot be reached."""

    error_type = ApiErrorType.DB_ERROR

    def __init__(self, message: Optional[str] = "Key-value store unavailable"):
        """Create a new KeyValueStoreError instance."""
        super().__init__(message)


def unpack_validation_error(exc: ValidationError) -> dict:
    """Unpack a Pydantic validation error into a dictionary.

    Args:
    ----
        exc (ValidationError): The Pydantic validation error.

    Returns:
    -------
        dict: The dictionary representation of the validation error.

    """
    error_messages = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        message = error["msg"]
        error_messages.append({field: message})

    return {"errors": error_messages}
