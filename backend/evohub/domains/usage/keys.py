"""KV key builders for usage counters.

Calendar keys embed the UTC date so a new key is used each day or month;
rolling keys are stable and rely on the stored ``resetAt`` instead.
"""

from evohub.domains.usage.periods import utc_datetime


def daily_key(prefix: str, owner_type: str, owner_id: str, now: float) -> str:
    """``{prefix}:daily:{YYYY-MM-DD}:{ownerType}:{ownerId}``."""
    stamp = utc_datetime(now).strftime("%Y-%m-%d")
    return f"{prefix}:daily:{stamp}:{owner_type}:{owner_id}"


def monthly_key(prefix: str, owner_type: str, owner_id: str, now: float) -> str:
    """``{prefix}:monthly:{YYYY-MM}:{ownerType}:{ownerId}``."""
    stamp = utc_datetime(now).strftime("%Y-%m")
    return f"{prefix}:monthly:{stamp}:{owner_type}:{owner_id}"


def rolling_daily_key(prefix: str, owner_type: str, owner_id: str) -> str:
    """``{prefix}:usage:{ownerType}:{ownerId}``."""
    return f"{prefix}:usage:{owner_type}:{owner_id}"


def legacy_monthly_key(prefix: str, owner_type: str, owner_id: str, now: float) -> str:
    """``{prefix}:usage:month:{ownerType}:{ownerId}:{YYYYMM}``."""
    stamp = utc_datetime(now).strftime("%Y%m")
    return f"{prefix}:usage:month:{owner_type}:{owner_id}:{stamp}"


def usage_tx_key(prefix: str, owner_type: str, owner_id: str, job_id: str) -> str:
    """Idempotency marker for one consumption event."""
    return f"{prefix}:usage:tx:{owner_type}:{owner_id}:{job_id}"
