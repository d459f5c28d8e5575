# File: utils/dt_utils.py
"""Date and time utilities for the pharmacy checklist engine.

Pure Python date/time functions. All of them can be unit tested without a
running application; only the dt_now_* / dt_today_* helpers read the wall
clock, and no engine calls them on the status path.

Uses standard library: datetime, zoneinfo, plus dateutil for calendar
anchoring (week starts, last weekday of a month).

Functions:
    - set_default_timezone / get_default_timezone: business timezone config
    - dt_today_local / dt_now_local / dt_now_utc: current date/time
    - as_utc / as_local / start_of_local_day: timezone conversion
    - dt_parse_date / dt_parse / dt_to_utc: input normalization
    - dt_parse_time / time_to_minutes: time-of-day handling
    - dt_local_date / dt_combine_local: date <-> local moment conversion
    - week_monday / week_saturday / last_weekday_of_month: calendar anchors
    - dt_format_short: display formatting for due hints
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
import logging
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

# Third-party date utilities
from dateutil.relativedelta import MO, relativedelta

from ..const import DEFAULT_TIME_ZONE_NAME, SUNDAY_WEEKDAY_INDEX

if TYPE_CHECKING:
    from datetime import tzinfo

    from dateutil.relativedelta import weekday

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants
# ==============================================================================

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo(DEFAULT_TIME_ZONE_NAME)

# Display constant
DISPLAY_UNKNOWN = "Unknown"


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the business timezone for all dt_utils functions.

    Call this once during application setup when the pharmacy does not
    operate in Australia/Sydney.

    Args:
        tz: ZoneInfo object representing the business timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current business timezone.

    Returns:
        The configured default timezone (ZoneInfo object)
    """
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in the business timezone.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Today's date in the specified timezone.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in the business timezone (timezone-aware)."""
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info)


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC timezone.

    Args:
        dt_obj: Datetime object; naive values are taken as business-local

    Returns:
        Datetime in UTC timezone
    """
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to the business timezone.

    Args:
        dt_obj: Datetime object; naive values are taken as UTC
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        # Backend timestamps without offset are UTC
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


def start_of_local_day(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Get the start of day (00:00:00) for a datetime in local timezone.

    Args:
        dt_obj: Datetime object (can be in any timezone)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime at 00:00:00 in local timezone (timezone-aware)
    """
    local_dt = as_local(dt_obj, tz)
    return local_dt.replace(hour=0, minute=0, second=0, microsecond=0)


def dt_local_date(dt_obj: datetime, tz: ZoneInfo | None = None) -> date:
    """Return the business-local calendar date of a moment.

    A completion stamped 2026-03-02T14:30Z is 2026-03-03 in Sydney; status
    rules always work on this local date.
    """
    return as_local(dt_obj, tz).date()


def dt_combine_local(
    day: date, time_of_day: time, tz: ZoneInfo | None = None
) -> datetime:
    """Build the timezone-aware local moment for a date at a time of day."""
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.combine(day, time_of_day, tzinfo=tz_info)


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(date_str: str | date | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts formats:
    - "2025-04-07" (ISO format)
    - "2025-04-07T10:00:00+10:00" (ISO datetime; date part is used)
    - "07/04/2025" (Australian day-first format)
    - "2025/04/07"

    Args:
        date_str: Date string (or date) to parse, or None

    Returns:
        datetime.date or None if parsing fails.
    """
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    if not date_str or not isinstance(date_str, str):
        return None

    value = date_str.strip()

    try:
        return date.fromisoformat(value)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        pass

    for fmt in ("%d/%m/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

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
        Timezone-aware datetime, or None if the input could not be parsed.

    Example:
        >>> dt_parse("2025-04-15")
        datetime.datetime(2025, 4, 15, 0, 0, tzinfo=ZoneInfo('Australia/Sydney'))
    """
    if not dt_input:
        return None

    tz_info = default_tzinfo or DEFAULT_TIME_ZONE
    result: datetime | None = None

    if isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input.strip())
        except ValueError:
            parsed_date = dt_parse_date(dt_input)
            if parsed_date is None:
                return None
            result = datetime.combine(parsed_date, datetime.min.time())

    elif isinstance(dt_input, datetime):
        result = dt_input

    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, datetime.min.time())

    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=tz_info)

    return result


def dt_to_utc(dt_input: str | datetime | None) -> datetime | None:
    """Parse a timestamp and convert to UTC.

    Backend completion timestamps are UTC; a naive string is therefore
    read as UTC rather than business-local.

    Example:
        "2025-04-07T14:30:00" → datetime.datetime(2025, 4, 7, 14, 30, tzinfo=UTC)
    """
    parsed = dt_parse(dt_input, default_tzinfo=UTC)
    if parsed is None:
        return None
    return parsed.astimezone(UTC)


def dt_parse_time(time_str: str | time | None) -> time | None:
    """Parse a time-of-day string ("HH:MM" or "HH:MM:SS").

    Args:
        time_str: Time string (or time) to parse, or None

    Returns:
        datetime.time, or None when missing or malformed.
    """
    if isinstance(time_str, time):
        return time_str
    if not time_str or not isinstance(time_str, str):
        return None

    parts = time_str.strip().split(":")
    if len(parts) not in (2, 3):
        return None

    try:
        hour = int(parts[0])
        minute = int(parts[1])
        second = int(parts[2]) if len(parts) == 3 else 0
    except ValueError:
        return None

    if not (0 <= hour <= 23 and 0 <= minute <= 59 and 0 <= second <= 59):
        _LOGGER.debug("Time out of range: %s", time_str)
        return None

    return time(hour, minute, second)


def time_to_minutes(time_of_day: time) -> int:
    """Return minutes since midnight for a time of day."""
    return time_of_day.hour * 60 + time_of_day.minute


# ==============================================================================
# Calendar Anchors
# ==============================================================================


def week_monday(day: date) -> date:
    """Return the Monday that starts the Mon–Sat working week of a date.

    Sunday is not part of any working week; it is anchored to the week
    that follows it.
    """
    if day.weekday() == SUNDAY_WEEKDAY_INDEX:
        return day + timedelta(days=1)
    return day + relativedelta(weekday=MO(-1))


def week_saturday(day: date) -> date:
    """Return the Saturday that ends the working week of a date."""
    return week_monday(day) + timedelta(days=5)


def last_weekday_of_month(day: date, target: weekday) -> date:
    """Return the last given weekday in the month of a date.

    Example:
        >>> last_weekday_of_month(date(2026, 10, 4), SA)
        datetime.date(2026, 10, 31)
    """
    return day + relativedelta(day=31, weekday=target(-1))


def first_of_month(day: date) -> date:
    """Return the first day of the month of a date."""
    return day.replace(day=1)


# ==============================================================================
# Date/Time Formatting
# ==============================================================================


def dt_format_short(
    day: date | None,
    time_of_day: time | None = None,
) -> str:
    """Format a date (and optional time) as a short due hint.

    Formats as:
    - "Thu, 4 Oct 17:00" (with time)
    - "Thu, 4 Oct" (date only)

    Returns:
        Formatted string, or "Unknown" if day is None.
    """
    if day is None:
        return DISPLAY_UNKNOWN

    label = f"{day.strftime('%a')}, {day.day} {day.strftime('%b')}"
    if time_of_day is not None:
        return f"{label} {time_of_day.strftime('%H:%M')}"
    return label
