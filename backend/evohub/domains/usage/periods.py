"""Calendar helpers for UTC-aligned usage windows.

All functions take ``now`` as epoch seconds so callers can pass an
injected clock. Day and month boundaries end at ``23:59:59.999`` UTC.
"""

import math
from datetime import datetime, timedelta, timezone

DAY_SECONDS = 24 * 60 * 60

_END_OF_DAY_OFFSET = timedelta(hours=23, minutes=59, seconds=59, milliseconds=999)


def utc_datetime(now: float) -> datetime:
    """Return *now* (epoch seconds) as an aware UTC datetime."""
    return datetime.fromtimestamp(now, tz=timezone.utc)


def _start_of_day(now: float) -> datetime:
    d = utc_datetime(now)
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def _last_day_of_month(now: float) -> datetime:
    d = utc_datetime(now)
    if d.month == 12:
        first_of_next = datetime(d.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        first_of_next = datetime(d.year, d.month + 1, 1, tzinfo=timezone.utc)
    return first_of_next - timedelta(days=1)


def end_of_day(now: float) -> datetime:
    """Return the last millisecond of the UTC day containing *now*."""
    return _start_of_day(now) + _END_OF_DAY_OFFSET


def end_of_month(now: float) -> datetime:
    """Return the last millisecond of the UTC month containing *now*."""
    return _last_day_of_month(now) + _END_OF_DAY_OFFSET


def seconds_until_end_of_day(now: float) -> int:
    """TTL in whole seconds until the end of the UTC day, never below 1."""
    return max(1, math.ceil(end_of_day(now).timestamp() - now))


def seconds_until_end_of_month(now: float) -> int:
    """TTL in whole seconds until the end of the UTC month, never below 1."""
    return max(1, math.ceil(end_of_month(now).timestamp() - now))


def end_of_month_epoch_seconds(now: float) -> int:
    """Epoch seconds of the end of the UTC month, rounded up."""
    return math.ceil(end_of_month(now).timestamp())


def end_of_month_epoch_ms(now: float) -> int:
    """Epoch milliseconds of the end of the UTC month."""
    return int(round(end_of_month(now).timestamp() * 1000))


def year_month(now: float) -> str:
    """Compact ``YYYYMM`` stamp of the UTC month containing *now*."""
    return utc_datetime(now).strftime("%Y%m")


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded towards +infinity."""
    return math.floor(value + 0.5)
