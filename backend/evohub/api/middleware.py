"""Middleware and exception handlers for the FastAPI application.

Every error leaves the service as an error envelope (see ``envelope.py``).
"""

import time
import traceback
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from evohub.api.envelope import error_response
from evohub.core.config import settings
from evohub.core.exceptions import (
    ApiErrorType,
    EvohubException,
    MethodNotAllowedException,
    RateLimitExceededException,
    unpack_validation_error,
)
from evohub.core.logging import logger
from evohub.core.security_logger import log_api_error

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=(), interest-cohort=()",
}

_HTTP_STATUS_ERROR_TYPES = {
    401: ApiErrorType.AUTH_ERROR,
    403: ApiErrorType.FORBIDDEN,
    404: ApiErrorType.NOT_FOUND,
    405: ApiErrorType.METHOD_NOT_ALLOWED,
    409: ApiErrorType.CONFLICT,
    429: ApiErrorType.RATE_LIMIT,
}


async def add_request_id(request: Request, call_next: callable) -> Response:
    """Generate a request ID for tracing and echo it in ``X-Request-Id``."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-Id"] = request_id
    return response


async def log_requests(request: Request, call_next: callable) -> Response:
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time
    logger.with_context(request_id=getattr(request.state, "request_id", None)).info(
        f"Handled request {request.method} {request.url.path} in {duration:.2f} seconds. "
        f"Response code: {response.status_code}"
    )
    return response


async def security_headers_middleware(request: Request, call_next: callable) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


async def exception_logging_middleware(request: Request, call_next: callable) -> Response:
    """Turn unhandled exceptions into a ``server_error`` envelope.

    The traceback is always logged; the exception text only reaches the
    client when ``DEBUG`` is set.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")
        log_api_error(
            request.url.path,
            {"method": request.method, "error": exc.__class__.__name__},
            ip_address=request.client.host if request.client else None,
        )

        message = "Internal server error"
        details = None
        if settings.DEBUG:
            message = f"Internal Server Error: {exc.__class__.__name__}: {exc}"
            details = {"trace": traceback.format_exc()}
        return error_response(ApiErrorType.SERVER_ERROR, message, details)


async def rate_limit_headers_middleware(request: Request, call_next: callable) -> Response:
    """Add ``RateLimit-*`` headers when a route guard checked a limiter."""
    response = await call_next(request)

    rate_limit_result = getattr(request.state, "rate_limit_result", None)
    if rate_limit_result:
        response.headers["RateLimit-Limit"] = str(rate_limit_result.limit)
        response.headers["RateLimit-Remaining"] = str(rate_limit_result.remaining)
        response.headers["RateLimit-Reset"] = str(int(time.time() + rate_limit_result.retry_after))

    return response


# Exception handlers
async def evohub_exception_handler(request: Request, exc: EvohubException) -> JSONResponse:
    """Render any EvohubException with the status mapped to its error type."""
    headers = None
    if isinstance(exc, MethodNotAllowedException):
        headers = {"Allow": ", ".join(exc.allowed_methods)}
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc}")
    return error_response(exc.error_type, exc.message, exc.details, headers=headers)


async def rate_limit_exception_handler(
    request: Request, exc: RateLimitExceededException
) -> JSONResponse:
    """429 with ``Retry-After`` and ``RateLimit-*`` headers."""
    reset_timestamp = int(time.time() + exc.retry_after)
    return error_response(
        ApiErrorType.RATE_LIMIT,
        exc.message,
        exc.details,
        headers={
            "Retry-After": str(max(1, int(exc.retry_after))),
            "RateLimit-Limit": str(exc.limit),
            "RateLimit-Remaining": str(exc.remaining),
            "RateLimit-Reset": str(reset_timestamp),
        },
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body, query or path parameters failed schema validation."""
    error_messages = unpack_validation_error(exc)
    logger.warning(f"Validation error on {request.method} {request.url.path}: {error_messages}")
    return error_response(ApiErrorType.VALIDATION_ERROR, "Invalid request", error_messages)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing errors raised by Starlette itself: unknown paths and wrong methods."""
    error_type = _HTTP_STATUS_ERROR_TYPES.get(exc.status_code)
    if error_type is None:
        error_type = (
            ApiErrorType.SERVER_ERROR if exc.status_code >= 500 else ApiErrorType.VALIDATION_ERROR
        )
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(
        error_type,
        message,
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


# Probes, docs and the scrape endpoint stay out of the traffic metrics.
_UNMETERED = ("/api/health", "/metrics", "/docs", "/redoc", "/openapi.json", "/favicon.ico")


def _is_unmetered(path: str) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in _UNMETERED)


def _route_template(request: Request) -> str:
    """Matched route template, e.g. ``/api/usage/{tool}``, or ``unmatched``."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


async def http_metrics_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Feed ``request.app.state.http_metrics`` with one record per API request."""
    if _is_unmetered(request.url.path):
        return await call_next(request)

    metrics = request.app.state.http_metrics
    method = request.method
    metrics.request_started(method)
    started = time.perf_counter()
    status_code = 500
    size = None
    try:
        response = await call_next(request)
        status_code = response.status_code
        content_length = response.headers.get("content-length")
        size = int(content_length) if content_length is not None else None
        return response
    finally:
        metrics.request_finished(
            method,
            _route_template(request),
            status_code,
            time.perf_counter() - started,
            size,
        )
