"""Test helpers for pharmacy checklist tests.

    from tests.helpers import SYDNEY, HOLIDAYS_2026, sydney, make_task

Reference calendar (2026, Australia/Sydney):
- Thu 1 Jan New Year's Day, Mon 26 Jan Australia Day
- Fri 3 Apr Good Friday, Mon 6 Apr Easter Monday, Sat 25 Apr Anzac Day
- Mon 5 Oct Labour Day (NSW only)
- Fri 25 Dec Christmas Day, Sat 26 Dec Boxing Day, Mon 28 Dec Boxing Day (additional)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

SYDNEY = ZoneInfo("Australia/Sydney")

HOLIDAYS_2026: list[dict[str, Any]] = [
    {"date": "2026-01-01", "name": "New Year's Day", "region": "National"},
    {"date": "2026-01-26", "name": "Australia Day", "region": "National"},
    {"date": "2026-04-03", "name": "Good Friday", "region": "National"},
    {"date": "2026-04-06", "name": "Easter Monday", "region": "National"},
    {"date": "2026-04-25", "name": "Anzac Day", "region": "National"},
    {"date": "2026-10-05", "name": "Labour Day", "region": "NSW"},
    {"date": "2026-12-25", "name": "Christmas Day", "region": "National"},
    {"date": "2026-12-26", "name": "Boxing Day", "region": "National"},
    {"date": "2026-12-28", "name": "Boxing Day (additional)", "region": "National"},
]

# Years marked loaded so no cutoff is degraded by missing holiday data
LOADED_YEARS = (2025, 2026, 2027)


def sydney(
    year: int, month: int, day: int, hour: int = 12, minute: int = 0
) -> datetime:
    """Create a Sydney-local aware datetime."""
    return datetime(year, month, day, hour, minute, tzinfo=SYDNEY)


def make_task(task_id: str = "task-1", **overrides: Any) -> dict[str, Any]:
    """Build a task record with sensible defaults."""
    task: dict[str, Any] = {
        "id": task_id,
        "title": f"Task {task_id}",
        "description": f"Task {task_id}",
        "responsibilities": ["Pharmacist (Primary)"],
        "frequencies": ["every_day"],
    }
    task.update(overrides)
    return task
