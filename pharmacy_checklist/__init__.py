"""Pharmacy checklist task scheduling and status resolution engine.

Decides, for any task on any date, when it appears, when it is due, when it
is missed and what status a viewer sees, using the pharmacy's business-day
calendar.
"""

from .engines import (
    CalendarAuthority,
    CompletionAggregator,
    CutoffCalculator,
    EffectiveStatus,
    FrequencyCutoff,
    HolidayLoadError,
    OrderingPolicy,
    StatusResolver,
    ViewerContext,
)
from .managers import ChecklistEntry, ChecklistManager

__all__ = [
    "CalendarAuthority",
    "ChecklistEntry",
    "ChecklistManager",
    "CompletionAggregator",
    "CutoffCalculator",
    "EffectiveStatus",
    "FrequencyCutoff",
    "HolidayLoadError",
    "OrderingPolicy",
    "StatusResolver",
    "ViewerContext",
]
