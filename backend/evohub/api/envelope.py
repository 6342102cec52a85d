"""Response envelopes.

Success: ``{"success": true, "data": ...}``.
Failure: ``{"success": false, "error": {"type", "message", "details"?}}``.
"""

from typing import Any, Optional

from fastapi.responses import JSONResponse

from evohub.core.exceptions import ERROR_STATUS_CODES, ApiErrorType


def ok(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def error_body(
    error_type: ApiErrorType, message: str, details: Optional[dict[str, Any]] = None
) -> dict[str, Any]:
    error: dict[str, Any] = {"type": error_type.value, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "error": error}


def error_response(
    error_type: ApiErrorType,
    message: str,
    details: Optional[dict[str, Any]] = None,
    *,
    status_code: Optional[int] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Render an error envelope. The status defaults to the one mapped to *error_type*."""
    return JSONResponse(
        status_code=status_code or ERROR_STATUS_CODES[error_type],
        content=error_body(error_type, message, details),
        headers=headers,
    )
