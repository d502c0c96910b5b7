"""Time, date and timezone utilities.

Every helper takes the timezone it works in explicitly; nothing here reads
the server's local timezone.
"""

import logging
import re
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")


def utc_now() -> datetime:
    """Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def resolve_timezone(name: str | None, default: str) -> ZoneInfo:
    """Resolve an IANA timezone name, falling back to ``default``.

    Args:
        name: Configured timezone name (may be empty or unknown)
        default: Timezone name used when ``name`` cannot be resolved

    Returns:
        ZoneInfo for the resolved zone
    """
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {name!r}, falling back to {default}")
    return ZoneInfo(default)


def local_now(tz: ZoneInfo, now: datetime | None = None) -> datetime:
    """Return ``now`` (or the current instant) expressed in ``tz``."""
    instant = now or utc_now()
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(tz)


def parse_iso_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` date.

    Raises:
        ValueError: If the value is not a real calendar date in that format
    """
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD")
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_month(value: str) -> tuple[int, int]:
    """Parse a ``YYYY-MM`` month into ``(year, month)``.

    Raises:
        ValueError: If the value is malformed or the month is out of range
    """
    match = _MONTH_RE.match(value) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid month {value!r}, expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise ValueError(f"Invalid month {value!r}, expected YYYY-MM")
    return year, month


def parse_time_of_day(value: str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a time.

    Raises:
        ValueError: If the value is malformed or out of range
    """
    if not isinstance(value, str) or not _TIME_RE.match(value):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return time.fromisoformat(value)


def format_time_of_day(value: time | datetime) -> str:
    """Format a time (or the time part of a datetime) as ``HH:MM``."""
    return value.strftime("%H:%M")
