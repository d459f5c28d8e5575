"""Engine modules for the pharmacy checklist.

Contains specialized computation engines:
- calendar_engine: Public holidays and business-day arithmetic
- schedule_engine: Frequency cutoff calculation per recurrence code
- status_engine: Five-state status resolution with completion carry-over
- completion_engine: Multi-position completion aggregation
- ordering_engine: Display ordering of checklist tasks
"""

# Use relative imports within package to avoid mypy module resolution issues
from .calendar_engine import CalendarAuthority, HolidayLoadError
from .completion_engine import CompletionAggregator, EffectiveStatus, ViewerContext
from .ordering_engine import OrderingPolicy
from .schedule_engine import CutoffCalculator, FrequencyCutoff
from .status_engine import StatusResolver

__all__ = [
    "CalendarAuthority",
    "CompletionAggregator",
    "CutoffCalculator",
    "EffectiveStatus",
    "FrequencyCutoff",
    "HolidayLoadError",
    "OrderingPolicy",
    "StatusResolver",
    "ViewerContext",
]
