# File: const.py
"""Constants for the pharmacy checklist scheduling engine.

This file centralizes the recurrence vocabulary, status names, data keys,
defaults and ranking tables used across the engines so that every caller
(checklist pages, admin views, count endpoints) shares one definition.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General / Package Information
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# Business timezone (fixed civil timezone all dates are evaluated in)
DEFAULT_TIME_ZONE_NAME = "Australia/Sydney"

# ------------------------------------------------------------------------------------------------
# Data Keys
# ------------------------------------------------------------------------------------------------

# Task definition
DATA_TASK_CREATED_AT = "created_at"
DATA_TASK_CUSTOM_ORDER = "custom_order"
DATA_TASK_DESCRIPTION = "description"
DATA_TASK_DUE_DATE = "due_date"
DATA_TASK_DUE_TIME = "due_time"
DATA_TASK_END_DATE = "end_date"
DATA_TASK_FREQUENCIES = "frequencies"
DATA_TASK_ID = "id"
DATA_TASK_PUBLISH_DELAY = "publish_delay"
DATA_TASK_RESPONSIBILITIES = "responsibilities"
DATA_TASK_START_DATE = "start_date"
DATA_TASK_TITLE = "title"

# Task instance
DATA_INSTANCE_COMPLETION = "completion"
DATA_INSTANCE_DATE = "instance_date"
DATA_INSTANCE_TASK = "task"

# Completion (single or per-position)
DATA_COMPLETION_COMPLETED_AT = "completed_at"
DATA_COMPLETION_IS_COMPLETED = "is_completed"
DATA_COMPLETION_POSITION_NAME = "position_name"

# Holiday records
DATA_HOLIDAY_DATE = "date"
DATA_HOLIDAY_NAME = "name"
DATA_HOLIDAY_REGION = "region"

# Checklist configuration
CONF_DEFAULT_DUE_TIME = "default_due_time"
CONF_HOLIDAY_REGION = "holiday_region"
CONF_POSITION_ORDER = "position_order"
CONF_TIMEZONE = "timezone"

# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_DUE_TIME = "17:00"
DEFAULT_HOLIDAY_REGION = "National"

# Administrator custom order sentinel ("not set, use default ordering")
CUSTOM_ORDER_UNSET = 999999

# Lock time applied to every auto-locking recurrence
END_OF_DAY_HOUR = 23
END_OF_DAY_MINUTE = 59

# Business-day arithmetic
BUSINESS_DAYS_TO_START_OF_MONTH_DUE = 5
MIN_BUSINESS_DAYS_IN_END_OF_MONTH_WEEK = 5
SUNDAY_WEEKDAY_INDEX = 6
DAYS_MONDAY_TO_SATURDAY = 5

# Safety limit for day-walking loops
MAX_DATE_CALCULATION_ITERATIONS = 100

# Display priority for a responsibility missing from the position order
POSITION_ORDER_UNKNOWN = 9999

# ------------------------------------------------------------------------------------------------
# Recurrence Codes
# ------------------------------------------------------------------------------------------------
FREQUENCY_ONCE_OFF = "once_off"
FREQUENCY_ONCE_OFF_STICKY = "once_off_sticky"
FREQUENCY_EVERY_DAY = "every_day"
FREQUENCY_ONCE_WEEKLY = "once_weekly"
FREQUENCY_MONDAY = "monday"
FREQUENCY_TUESDAY = "tuesday"
FREQUENCY_WEDNESDAY = "wednesday"
FREQUENCY_THURSDAY = "thursday"
FREQUENCY_FRIDAY = "friday"
FREQUENCY_SATURDAY = "saturday"
FREQUENCY_ONCE_MONTHLY = "once_monthly"
FREQUENCY_START_OF_EVERY_MONTH = "start_of_every_month"
FREQUENCY_END_OF_EVERY_MONTH = "end_of_every_month"

# Month-specific variants are built as <prefix><mon>
FREQUENCY_START_OF_MONTH_PREFIX = "start_of_month_"
FREQUENCY_END_OF_MONTH_PREFIX = "end_of_month_"

MONTH_ABBREVIATIONS = (
    "jan",
    "feb",
    "mar",
    "apr",
    "may",
    "jun",
    "jul",
    "aug",
    "sep",
    "oct",
    "nov",
    "dec",
)

FREQUENCIES_START_OF_MONTH_SPECIFIC = tuple(
    f"{FREQUENCY_START_OF_MONTH_PREFIX}{mon}" for mon in MONTH_ABBREVIATIONS
)
FREQUENCIES_END_OF_MONTH_SPECIFIC = tuple(
    f"{FREQUENCY_END_OF_MONTH_PREFIX}{mon}" for mon in MONTH_ABBREVIATIONS
)

FREQUENCIES_ONCE_OFF = frozenset({FREQUENCY_ONCE_OFF, FREQUENCY_ONCE_OFF_STICKY})

# Python weekday index (Monday=0) for each specific-weekday code
WEEKDAY_FREQUENCIES: dict[str, int] = {
    FREQUENCY_MONDAY: 0,
    FREQUENCY_TUESDAY: 1,
    FREQUENCY_WEDNESDAY: 2,
    FREQUENCY_THURSDAY: 3,
    FREQUENCY_FRIDAY: 4,
    FREQUENCY_SATURDAY: 5,
}

FREQUENCIES_START_OF_MONTH = frozenset(
    {FREQUENCY_START_OF_EVERY_MONTH, *FREQUENCIES_START_OF_MONTH_SPECIFIC}
)
FREQUENCIES_END_OF_MONTH = frozenset(
    {FREQUENCY_END_OF_EVERY_MONTH, *FREQUENCIES_END_OF_MONTH_SPECIFIC}
)

# Legacy codes still found in older task rows
FREQUENCY_ALIASES: dict[str, str] = {
    "daily": FREQUENCY_EVERY_DAY,
    "weekly": FREQUENCY_ONCE_WEEKLY,
    "monthly": FREQUENCY_ONCE_MONTHLY,
    "every_month": FREQUENCY_ONCE_MONTHLY,
    "start_every_month": FREQUENCY_START_OF_EVERY_MONTH,
    "end_every_month": FREQUENCY_END_OF_EVERY_MONTH,
}

# ------------------------------------------------------------------------------------------------
# Frequency Families
# ------------------------------------------------------------------------------------------------
FAMILY_ONCE_OFF = "once_off"
FAMILY_EVERY_DAY = "every_day"
FAMILY_ONCE_WEEKLY = "once_weekly"
FAMILY_SPECIFIC_WEEKDAY = "specific_weekday"
FAMILY_START_OF_MONTH = "start_of_month"
FAMILY_ONCE_MONTHLY = "once_monthly"
FAMILY_END_OF_MONTH = "end_of_month"
FAMILY_UNKNOWN = "unknown"

# ------------------------------------------------------------------------------------------------
# Statuses
# ------------------------------------------------------------------------------------------------
STATUS_NOT_VISIBLE = "not_visible"
STATUS_NOT_DUE_YET = "not_due_yet"
STATUS_DUE_TODAY = "due_today"
STATUS_OVERDUE = "overdue"
STATUS_MISSED = "missed"
STATUS_COMPLETED = "completed"

# Severity used when combining several recurrence codes (highest wins)
STATUS_SEVERITY: dict[str, int] = {
    STATUS_NOT_VISIBLE: 0,
    STATUS_NOT_DUE_YET: 1,
    STATUS_DUE_TODAY: 2,
    STATUS_OVERDUE: 3,
    STATUS_MISSED: 4,
}

# Statuses reported by count_statuses (not_visible is never counted)
COUNTED_STATUSES = (
    STATUS_COMPLETED,
    STATUS_DUE_TODAY,
    STATUS_OVERDUE,
    STATUS_MISSED,
    STATUS_NOT_DUE_YET,
)

# ------------------------------------------------------------------------------------------------
# Ordering
# ------------------------------------------------------------------------------------------------

# Fixed frequency-priority ranking (lower sorts first)
FREQUENCY_RANK: dict[str, int] = {
    FREQUENCY_ONCE_OFF: 0,
    FREQUENCY_ONCE_OFF_STICKY: 1,
    FREQUENCY_EVERY_DAY: 2,
    FREQUENCY_ONCE_WEEKLY: 3,
    FREQUENCY_MONDAY: 4,
    FREQUENCY_TUESDAY: 5,
    FREQUENCY_WEDNESDAY: 6,
    FREQUENCY_THURSDAY: 7,
    FREQUENCY_FRIDAY: 8,
    FREQUENCY_SATURDAY: 9,
    FREQUENCY_ONCE_MONTHLY: 10,
    FREQUENCY_START_OF_EVERY_MONTH: 11,
    **{
        code: 12 + index
        for index, code in enumerate(FREQUENCIES_START_OF_MONTH_SPECIFIC)
    },
    FREQUENCY_END_OF_EVERY_MONTH: 24,
    **{
        code: 25 + index for index, code in enumerate(FREQUENCIES_END_OF_MONTH_SPECIFIC)
    },
}
FREQUENCY_RANK_UNKNOWN = 99

# ------------------------------------------------------------------------------------------------
# Degraded-mode warnings
# ------------------------------------------------------------------------------------------------
WARNING_UNKNOWN_FREQUENCY = "unrecognized recurrence code {code!r}"
WARNING_ONCE_OFF_WITHOUT_DUE_DATE = "once-off task has no due date"
WARNING_INVALID_INSTANCE_DATE = "unparseable instance date {value!r}"
WARNING_INVALID_DUE_DATE = "unparseable due date {value!r}"
WARNING_INVALID_DUE_TIME = "unparseable due time {value!r}"
WARNING_HOLIDAYS_NOT_LOADED = "holiday data not loaded for {year}"
WARNING_NO_BUSINESS_DAY = "no business day available between {start} and {end}"
WARNING_NO_FREQUENCIES = "task has no recurrence codes"
