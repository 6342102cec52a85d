"""Dependencies that are used in the API endpoints."""

import uuid
from typing import Optional, get_type_hints

from fastapi import Depends, Header, Request, Response

from evohub.api.context import ApiContext, AuthenticatedUser
from evohub.api.csrf import verify_csrf_token, verify_same_origin
from evohub.core import container as container_mod
from evohub.core.config import settings
from evohub.core.container import Container
from evohub.core.exceptions import AuthenticationException, PermissionException
from evohub.core.logging import logger
from evohub.core.rate_limiter import RateLimiterRegistry
from evohub.core.security_logger import (
    log_api_access,
    log_auth_failure,
    log_permission_denied,
)
from evohub.core.shared_models import Owner, OwnerType, UserRole
from evohub.domains.entitlements.types import parse_plan


def _extract_client_ip(request: Request) -> str:
    """Client IP, preferring the first hop of ``X-Forwarded-For``."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _parse_role(value: Optional[str]) -> UserRole:
    try:
        return UserRole((value or "").strip().lower())
    except ValueError:
        return UserRole.USER


def _issue_guest_cookie(request: Request, response: Response) -> str:
    guest_id = str(uuid.uuid4())
    response.set_cookie(
        settings.GUEST_COOKIE_NAME,
        guest_id,
        max_age=settings.GUEST_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
    )
    return guest_id


async def get_context(
    request: Request,
    response: Response,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_email: Optional[str] = Header(None, alias="X-User-Email"),
    x_user_plan: Optional[str] = Header(None, alias="X-User-Plan"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> ApiContext:
    """Create the API context for the request.

    Signed-in users are identified by the gateway's ``X-User-*`` headers.
    Everyone else is a guest keyed by the guest cookie, which is issued on
    first contact.
    """
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    ip_address = _extract_client_ip(request)

    user: Optional[AuthenticatedUser] = None
    if x_user_id and x_user_id.strip():
        user = AuthenticatedUser(
            id=x_user_id.strip(),
            email=x_user_email,
            plan=parse_plan(x_user_plan),
            role=_parse_role(x_user_role),
        )
        owner = Owner(OwnerType.USER, user.id)
    else:
        guest_id = request.cookies.get(settings.GUEST_COOKIE_NAME)
        if not guest_id:
            guest_id = _issue_guest_cookie(request, response)
        owner = Owner(OwnerType.GUEST, guest_id)

    ctx = ApiContext(
        request_id=request_id,
        owner=owner,
        ip_address=ip_address,
        user=user,
        logger=logger.with_context(
            request_id=request_id,
            owner_type=owner.owner_type.value,
            owner_id=owner.owner_id,
        ),
    )
    request.state.api_context = ctx
    return ctx


def get_container() -> Container:
    """Get the DI container. Initialized at startup."""
    c = container_mod.container
    if c is None:
        raise RuntimeError("Container not initialized. Call initialize_container() first.")
    return c


# ---------------------------------------------------------------------------
# Protocol Injection
# ---------------------------------------------------------------------------

# Cache of protocol_type → Container field name, built once at first call.
_INJECT_CACHE: dict[type, str] = {}


def _resolve_field_name(protocol_type: type) -> str:
    """Find which Container field matches the given protocol type."""
    if not _INJECT_CACHE:
        for name, hint in get_type_hints(Container).items():
            _INJECT_CACHE[hint] = name

    field_name = _INJECT_CACHE.get(protocol_type)
    if field_name is None:
        available = list(_INJECT_CACHE.values())
        raise TypeError(
            f"No binding for {protocol_type.__name__} in Container. Available fields: {available}"
        )
    return field_name


def Inject(protocol_type: type):  # noqa: N802 - uppercase to match FastAPI convention
    """Resolve a protocol implementation from the DI container.

    Usage::

        @router.get("/")
        async def read(metering: MeteringServiceProtocol = Inject(MeteringServiceProtocol)):
            ...
    """
    field_name = _resolve_field_name(protocol_type)

    def _resolve(c: Container = Depends(get_container)):
        return getattr(c, field_name)

    return Depends(_resolve)


# ---------------------------------------------------------------------------
# Route guards
# ---------------------------------------------------------------------------


def api_guard(
    limiter: Optional[str] = None,
    *,
    require_auth: bool = False,
    require_admin: bool = False,
    enforce_csrf_token: bool = False,
    allowed_origins: tuple[str, ...] = (),
):
    """Build the guard dependency for a route.

    Checks run in order: rate limit, same-origin (unsafe methods only),
    optional double-submit CSRF token, authentication, admin role. Passing
    requests are logged as ``API_ACCESS``.

    Returns:
        A ``Depends`` resolving to the request's ``ApiContext``.
    """

    async def _guard(
        request: Request,
        ctx: ApiContext = Depends(get_context),
        rate_limiters: RateLimiterRegistry = Inject(RateLimiterRegistry),
    ) -> ApiContext:
        path = request.url.path

        if limiter is not None:
            key = f"{ctx.ip_address}:{ctx.user_id or 'anonymous'}"
            request.state.rate_limit_result = await rate_limiters.check(
                limiter, key, ip_address=ctx.ip_address, target_resource=path
            )

        if not settings.AUTH_CSRF_RELAXED:
            verify_same_origin(
                request,
                configured=settings.allowed_origins,
                extra=allowed_origins,
                ip_address=ctx.ip_address,
            )
        if enforce_csrf_token:
            verify_csrf_token(request, ip_address=ctx.ip_address)

        if (require_auth or require_admin) and ctx.user is None:
            log_auth_failure(ctx.ip_address, {"reason": "unauthenticated", "endpoint": path})
            raise AuthenticationException("Unauthorized")

        if require_admin and not ctx.is_admin:
            log_permission_denied(ctx.user_id, path, {"required_role": UserRole.ADMIN.value})
            raise PermissionException("Insufficient permissions")

        log_api_access(
            ctx.user_id, ctx.ip_address, {"endpoint": path, "method": request.method}
        )
        return ctx

    return Depends(_guard)


async def require_internal_credit_ops() -> None:
    """Admin credit adjustments are off in production unless explicitly enabled."""
    if settings.is_production and not settings.INTERNAL_CREDIT_GRANT:
        raise PermissionException("Credit adjust is disabled")
