"""
Datetime utilities for the coupon allocator.

All persisted timestamps are UTC. Some backends (SQLite) hand naive
datetimes back, so reads go through ensure_timezone_aware.
"""
from datetime import datetime, timezone
from typing import Optional
import logging

logger = logging.getLogger("coupon_allocator.utils.datetime")


def ensure_timezone_aware(
    dt: Optional[datetime],
    default_timezone: timezone = timezone.utc,
    field_name: Optional[str] = None
) -> Optional[datetime]:
    """
    Ensure a datetime object has timezone information.

    Args:
        dt: Datetime object to ensure has timezone info
        default_timezone: Timezone to use if dt is naive (default: UTC)
        field_name: Optional field name for logging context

    Returns:
        Timezone-aware datetime object or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        field_info = f" for {field_name}" if field_name else ""
        logger.debug(f"Converting naive datetime{field_info} to {default_timezone.tzname(None)}")
        return dt.replace(tzinfo=default_timezone)

    return dt


def format_iso_datetime(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return ensure_timezone_aware(dt).isoformat()


def get_current_datetime() -> datetime:
    """Current datetime in UTC."""
    return datetime.now(timezone.utc)


def seconds_until(
    dt: Optional[datetime],
    reference_time: Optional[datetime] = None
) -> int:
    """
    Whole seconds from reference_time (default: now) until dt, floored at 0.
    """
    if dt is None:
        return 0

    dt = ensure_timezone_aware(dt)
    if reference_time is None:
        reference_time = get_current_datetime()
    else:
        reference_time = ensure_timezone_aware(reference_time)

    return max(0, int((dt - reference_time).total_seconds()))
