"""Type definitions for pharmacy checklist data structures.

Task, instance and completion records arrive from the backend as plain
dicts, so they are described with TypedDict (static analysis only) and
accessed through the ``const.DATA_*`` keys with ``.get()`` defaults. Output
records produced by the engines (cutoffs, checklist entries) are
dataclasses defined next to the engine that builds them.

IMPORTANT: This file must NOT import from engines or managers to avoid
circular dependencies. Only import from typing.

NOTE: TypedDict does NOT enforce types at runtime. Every engine tolerates
missing keys, strings where dates are expected, and unparseable values.
"""

from datetime import date, datetime
from typing import NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

TaskId = str  # UUID string
PositionName = str  # Display name or slug, e.g. "Pharmacist (Primary)"
RecurrenceCode = str  # FREQUENCY_* constant from const.py
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"
ISODate = str  # ISO 8601 date string (no time) "2026-01-18"
TimeOfDay = str  # "HH:MM" or "HH:MM:SS"


# =============================================================================
# Task Definition
# =============================================================================


class TaskData(TypedDict):
    """Administrator-configured task definition."""

    id: TaskId
    title: str
    description: NotRequired[str]
    responsibilities: list[PositionName]
    categories: NotRequired[list[str]]
    frequencies: list[RecurrenceCode]  # Ordered; several codes may apply
    due_time: NotRequired[TimeOfDay | None]  # Default "17:00"
    due_date: NotRequired[ISODate | date | None]  # Required for once-off codes
    custom_order: NotRequired[int | None]  # 999999 = not set
    created_at: NotRequired[ISODatetime | datetime | None]
    publish_delay: NotRequired[ISODate | date | None]
    start_date: NotRequired[ISODate | date | None]
    end_date: NotRequired[ISODate | date | None]


# =============================================================================
# Completions and Instances
# =============================================================================


class CompletionData(TypedDict, total=False):
    """One completion, either role-scoped or one position's entry.

    A role-scoped view carries a single CompletionData; the admin
    cross-position view carries a list of them, one per position.
    """

    position_name: PositionName
    completed_by: str
    completed_at: ISODatetime | datetime | None  # UTC timestamp
    is_completed: bool


class TaskInstanceData(TypedDict):
    """One occurrence of a task anchored to a nominal date."""

    task: TaskData
    instance_date: ISODate | date
    completion: NotRequired[CompletionData | list[CompletionData] | None]


# =============================================================================
# Calendar and Configuration
# =============================================================================


class HolidayData(TypedDict):
    """Public holiday record as supplied by the holiday source."""

    date: ISODate | date
    name: NotRequired[str]
    region: NotRequired[str | None]


class ChecklistConfig(TypedDict, total=False):
    """Configuration for ChecklistManager.

    All fields are optional (total=False); const.py supplies the defaults.
    """

    timezone: str  # IANA zone name, default "Australia/Sydney"
    default_due_time: TimeOfDay  # Default "17:00"
    holiday_region: str  # Region kept alongside national holidays
    position_order: dict[PositionName, int]  # Display priority per position
