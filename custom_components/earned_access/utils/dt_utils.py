# File: utils/dt_utils.py
"""Date and time utilities for Earned Access.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.
   Uses standard library: datetime, zoneinfo, dateutil.

⚠️ CLOCK PURITY: nothing in this module reads the wall clock. Every function
   takes the instant it works on as an argument; the host owns the clock.

Functions:
    - set_default_timezone / get_default_timezone: Timezone for naive inputs
    - dt_normalize: Make a datetime timezone-aware
    - dt_to_zone: Wall-clock time of an instant in a timezone
    - dt_local_date: Calendar date of an instant
    - dt_date_key: "YYYY-MM-DD" key of an instant
    - dt_parse_date: Parse date strings
    - dt_parse: Normalize datetime inputs (string, date, datetime)
    - dt_utc_offset_minutes: UTC offset carried by an instant
    - dt_add_seconds / dt_seconds_until: Whole-second arithmetic
    - dt_days_before: Date arithmetic for retention windows
    - dt_format_duration: Format seconds as a compact string
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
import logging
import math
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

# Third-party date utilities (no HA dependency)
from dateutil.relativedelta import relativedelta

if TYPE_CHECKING:
    from datetime import tzinfo

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: tzinfo = ZoneInfo("UTC")

DATE_KEY_FORMAT = "%Y-%m-%d"


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: tzinfo) -> None:
    """Set the default timezone applied to naive datetimes.

    Call this during integration setup to configure the user's timezone.

    Args:
        tz: tzinfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> tzinfo:
    """Get the current default timezone.

    Returns:
        The configured default timezone
    """
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Normalization
# ==============================================================================


def dt_normalize(dt_obj: datetime, tz: tzinfo | None = None) -> datetime:
    """Return a timezone-aware datetime.

    Aware values are returned unchanged so the UTC offset the caller supplied
    (the device offset at call time) is preserved. Naive values are taken as
    wall-clock time in `tz` or the default timezone.

    Args:
        dt_obj: Datetime, aware or naive
        tz: Optional timezone for naive values

    Returns:
        Timezone-aware datetime
    """
    if dt_obj.tzinfo is None or dt_obj.utcoffset() is None:
        return dt_obj.replace(tzinfo=tz or DEFAULT_TIME_ZONE)
    return dt_obj


def dt_to_zone(dt_obj: datetime, tz: tzinfo | None = None) -> datetime:
    """Return an instant as wall-clock time in `tz`.

    Naive values are taken as wall-clock time in `tz` (or the default
    timezone). Without `tz`, aware values keep the offset they carry.

    Example:
        2027-01-01T02:05:00+00:00 in America/New_York
        → 2026-12-31T21:05:00-05:00
    """
    aware = dt_normalize(dt_obj, tz)
    if tz is None:
        return aware
    return aware.astimezone(tz)


def dt_local_date(dt_obj: datetime, tz: tzinfo | None = None) -> date:
    """Return the local calendar date of an instant.

    With `tz` the instant is converted first; otherwise the date is read in
    the offset the instant carries.

    Example:
        2025-04-07T23:30:00-05:00 → datetime.date(2025, 4, 7)
    """
    aware = dt_normalize(dt_obj)
    if tz is not None:
        aware = aware.astimezone(tz)
    return aware.date()


def dt_date_key(dt_obj: datetime, tz: tzinfo | None = None) -> str:
    """Return the "YYYY-MM-DD" key of the local date of an instant.

    Example:
        "2025-04-07"
    """
    return dt_local_date(dt_obj, tz).strftime(DATE_KEY_FORMAT)


def dt_utc_offset_minutes(dt_obj: datetime) -> int:
    """Return the UTC offset in whole minutes carried by an instant."""
    offset = dt_normalize(dt_obj).utcoffset() or timedelta()
    return int(offset.total_seconds() // 60)


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts "YYYY-MM-DD" keys and full ISO datetimes (date part only).

    Args:
        date_str: Date string to parse, or None

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(date_str).date()
    except ValueError:
        _LOGGER.debug("Unparseable date string: %s", date_str)
        return None


def dt_parse(
    dt_input: str | date | datetime | None,
    default_tzinfo: tzinfo | None = None,
) -> datetime | None:
    """Normalize various datetime input formats to an aware datetime.

    Args:
        dt_input: String, date or datetime to normalize, or None
        default_tzinfo: Timezone to use if the input is naive
                        (defaults to DEFAULT_TIME_ZONE if None)

    Returns:
        Aware datetime, or None if the input could not be parsed.

    Example:
        >>> dt_parse("2025-04-15T08:00:00+02:00")
        datetime.datetime(2025, 4, 15, 8, 0, tzinfo=...)
    """
    if not dt_input:
        return None

    result: datetime | None = None

    if isinstance(dt_input, datetime):
        result = dt_input
    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, datetime.min.time())
    elif isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input)
        except ValueError:
            parsed_date = dt_parse_date(dt_input)
            if parsed_date is None:
                return None
            result = datetime.combine(parsed_date, datetime.min.time())
    else:
        return None

    return dt_normalize(result, default_tzinfo)


# ==============================================================================
# Arithmetic
# ==============================================================================


def dt_add_seconds(dt_obj: datetime, seconds: int) -> datetime:
    """Return `dt_obj` shifted by a whole number of seconds."""
    return dt_normalize(dt_obj) + timedelta(seconds=seconds)


def dt_seconds_until(target: datetime, now: datetime) -> int:
    """Return whole seconds from `now` until `target`, never negative.

    Partial seconds round up so a deadline that has not been reached never
    reports zero.
    """
    delta = (dt_normalize(target) - dt_normalize(now)).total_seconds()
    return max(0, math.ceil(delta))


def dt_days_before(day: date, days: int) -> date:
    """Return the calendar date `days` days before `day`."""
    return day - relativedelta(days=days)


def dt_as_utc_iso(dt_obj: datetime | None) -> str | None:
    """Return an ISO string in UTC, or None."""
    if dt_obj is None:
        return None
    return dt_normalize(dt_obj).astimezone(UTC).isoformat()


# ==============================================================================
# Formatting
# ==============================================================================


def dt_format_duration(seconds: int | None) -> str:
    """Format a number of seconds into a compact duration string.

    Returns:
        Duration string like "1h 30m", or "0" if None/zero.

    Examples:
        dt_format_duration(5400) → "1h 30m"
        dt_format_duration(600) → "10m"
        dt_format_duration(45) → "45s"
    """
    if not seconds or seconds <= 0:
        return "0"

    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 and hours == 0:
        parts.append(f"{secs}s")

    return " ".join(parts) if parts else "0"
