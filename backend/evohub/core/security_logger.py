"""Security event logging.

Every event is emitted through the contextual logger with a fixed set of
dimensions (``security_event``, ``user_id``, ``ip_address``,
``target_resource``, ``details``) so security dashboards can filter on them.
The level depends on the event type.
"""

import logging
import time
from enum import Enum
from typing import Any, Optional

from evohub.core.logging import ContextualLogger, logger


class SecurityEventType(str, Enum):
    """Kinds of security-relevant events."""

    AUTH_SUCCESS = "AUTH_SUCCESS"
    AUTH_FAILURE = "AUTH_FAILURE"
    PASSWORD_RESET = "PASSWORD_RESET"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"
    API_ACCESS = "API_ACCESS"
    API_ERROR = "API_ERROR"
    USER_EVENT = "USER_EVENT"


SECURITY_EVENT_LEVELS: dict[SecurityEventType, int] = {
    SecurityEventType.AUTH_SUCCESS: logging.INFO,
    SecurityEventType.API_ACCESS: logging.INFO,
    SecurityEventType.USER_EVENT: logging.INFO,
    SecurityEventType.AUTH_FAILURE: logging.ERROR,
    SecurityEventType.PERMISSION_DENIED: logging.ERROR,
    SecurityEventType.API_ERROR: logging.ERROR,
    SecurityEventType.RATE_LIMIT_EXCEEDED: logging.ERROR,
    SecurityEventType.SUSPICIOUS_ACTIVITY: logging.ERROR,
    SecurityEventType.PASSWORD_RESET: logging.WARNING,
}

_security_logger: ContextualLogger = logger.with_context(log_stream="security")


def log_security_event(
    event_type: SecurityEventType,
    details: Optional[dict[str, Any]] = None,
    *,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    target_resource: Optional[str] = None,
) -> None:
    """Log a security event at the level assigned to its type."""
    details = details or {}
    level = SECURITY_EVENT_LEVELS.get(event_type, logging.INFO)
    event_logger = _security_logger.with_context(
        security_event=event_type.value,
        user_id=user_id,
        ip_address=ip_address,
        target_resource=target_resource,
    )
    message = f"Security Event: {event_type.value}"
    user_message = details.get("message")
    if isinstance(user_message, str):
        message = f"{message} - {user_message}"
    event_logger.log(level, message, extra={"details": details})


def log_auth_success(user_id: str, ip_address: Optional[str], details=None) -> None:
    log_security_event(
        SecurityEventType.AUTH_SUCCESS, details, user_id=user_id, ip_address=ip_address
    )


def log_auth_failure(ip_address: Optional[str], details=None) -> None:
    log_security_event(SecurityEventType.AUTH_FAILURE, details, ip_address=ip_address)


def log_password_reset(user_id: str, ip_address: Optional[str], details=None) -> None:
    log_security_event(
        SecurityEventType.PASSWORD_RESET, details, user_id=user_id, ip_address=ip_address
    )


def log_permission_denied(user_id: Optional[str], target_resource: str, details=None) -> None:
    log_security_event(
        SecurityEventType.PERMISSION_DENIED,
        details,
        user_id=user_id,
        target_resource=target_resource,
    )


def log_rate_limit_exceeded(ip_address: Optional[str], target_resource: str, details=None) -> None:
    log_security_event(
        SecurityEventType.RATE_LIMIT_EXCEEDED,
        details,
        ip_address=ip_address,
        target_resource=target_resource,
    )


def log_suspicious_activity(ip_address: Optional[str], details=None) -> None:
    log_security_event(SecurityEventType.SUSPICIOUS_ACTIVITY, details, ip_address=ip_address)


def log_api_error(
    target_resource: str,
    details=None,
    *,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> None:
    log_security_event(
        SecurityEventType.API_ERROR,
        details,
        user_id=user_id,
        ip_address=ip_address,
        target_resource=target_resource,
    )


def log_api_access(user_id: Optional[str], ip_address: Optional[str], details=None) -> None:
    """Log an API access. The target is ``details['endpoint']`` or ``details['path']``."""
    details = details or {}
    target = details.get("endpoint") or details.get("path") or "unknown"
    log_security_event(
        SecurityEventType.API_ACCESS,
        details,
        user_id=user_id or "anonymous",
        ip_address=ip_address or "unknown",
        target_resource=str(target),
    )


def log_user_event(user_id: str, event_type: str, details=None) -> None:
    log_security_event(
        SecurityEventType.USER_EVENT, {"event_type": event_type, **(details or {})}, user_id=user_id
    )


# ---------------------------------------------------------------------------
# Metric lines routed through the log pipeline
# ---------------------------------------------------------------------------


def _log_metric(kind: str, name: str, value: float, dims: Optional[dict[str, Any]]) -> None:
    metric: dict[str, Any] = {"kind": kind, "name": name, "value": value}
    if dims:
        metric["dims"] = dims
    logger.info("METRIC", extra={"type": "METRIC", "metric": metric, "ts": int(time.time() * 1000)})


def log_metric_counter(name: str, value: float = 1, dims: Optional[dict[str, Any]] = None) -> None:
    _log_metric("counter", name, value, dims)


def log_metric_gauge(name: str, value: float, dims: Optional[dict[str, Any]] = None) -> None:
    _log_metric("gauge", name, value, dims)


def log_metric_timing(name: str, ms: float, dims: Optional[dict[str, Any]] = None) -> None:
    _log_metric("timing", name, ms, dims)
