"""Same-origin and double-submit CSRF checks for state-changing requests."""

import hmac
from collections.abc import Iterable
from typing import Optional
from urllib.parse import urlsplit

from fastapi import Request

from evohub.core.exceptions import PermissionException
from evohub.core.security_logger import log_suspicious_activity

UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

CSRF_HEADER = "X-CSRF-Token"
CSRF_COOKIE = "csrf_token"


def normalize_origin(value: Optional[str]) -> Optional[str]:
    """Reduce a URL or bare host to ``scheme://host[:port]``.

    Values without a scheme are read as https. Returns None when nothing
    usable is left.
    """
    if not value:
        return None
    value = value.strip()
    if "://" not in value:
        value = f"https://{value}"
    try:
        parts = urlsplit(value)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"


def origin_from_headers(request: Request) -> Optional[str]:
    """The caller's origin: ``Origin`` if present, else derived from ``Referer``."""
    origin = request.headers.get("origin")
    if origin:
        return normalize_origin(origin)
    return normalize_origin(request.headers.get("referer"))


def allowed_origins_for(
    request: Request, configured: Iterable[str] = (), extra: Iterable[str] = ()
) -> list[str]:
    """The request's own origin, then configured and per-route origins, deduplicated."""
    candidates = [f"{request.url.scheme}://{request.url.netloc}", *configured, *extra]
    allowed: list[str] = []
    for candidate in candidates:
        origin = normalize_origin(candidate)
        if origin and origin not in allowed:
            allowed.append(origin)
    return allowed


def verify_same_origin(
    request: Request,
    *,
    configured: Iterable[str] = (),
    extra: Iterable[str] = (),
    ip_address: Optional[str] = None,
) -> None:
    """Reject unsafe requests whose Origin/Referer is not allowed.

    Raises:
        PermissionException: ``Missing Origin/Referer header`` or ``Origin not allowed``.
    """
    if request.method not in UNSAFE_METHODS:
        return

    origin = origin_from_headers(request)
    if origin is None:
        raise PermissionException("Missing Origin/Referer header")

    allowed = allowed_origins_for(request, configured, extra)
    if origin not in allowed:
        log_suspicious_activity(
            ip_address,
            {
                "reason": "csrf_origin_rejected",
                "endpoint": request.url.path,
                "origin": origin,
                "allowed_origins": allowed,
            },
        )
        raise PermissionException("Origin not allowed")


def verify_csrf_token(request: Request, *, ip_address: Optional[str] = None) -> None:
    """Double-submit check: the ``X-CSRF-Token`` header must equal the ``csrf_token`` cookie.

    Raises:
        PermissionException: ``Invalid CSRF token``.
    """
    header_token = request.headers.get(CSRF_HEADER)
    cookie_token = request.cookies.get(CSRF_COOKIE)
    if (
        not header_token
        or not cookie_token
        or not hmac.compare_digest(header_token.encode(), cookie_token.encode())
    ):
        log_suspicious_activity(
            ip_address,
            {
                "reason": "csrf_token_mismatch",
                "endpoint": request.url.path,
                "has_header": bool(header_token),
                "has_cookie": bool(cookie_token),
            },
        )
        raise PermissionException("Invalid CSRF token")
