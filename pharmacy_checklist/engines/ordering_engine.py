"""Ordering Engine - Deterministic display order for checklist tasks.

Tasks are compared on, in order:
  1. Administrator custom order (assigned orders first, numerically)
  2. Due time, minutes since midnight (default 17:00)
  3. Best (lowest) frequency rank across the task's recurrence codes
  4. Display priority of the first listed responsibility
  5. Description, case-insensitive

The order only depends on task data and the configured position order.
The viewing date is accepted so every caller shares one signature.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import dt_parse_time, time_to_minutes
from ..utils.position_utils import responsibility_variants
from .schedule_engine import CutoffCalculator

if TYPE_CHECKING:
    from ..type_defs import TaskData

SortKey = tuple[int, int, int, int, int, str]


class OrderingPolicy:
    """Total order over tasks for checklist display."""

    def __init__(
        self,
        position_order: Mapping[str, int] | None = None,
        *,
        default_due_time: str = const.DEFAULT_DUE_TIME,
    ) -> None:
        """Initialize the policy.

        Args:
            position_order: Display priority per position name (lower first);
                names are matched in slug form
            default_due_time: Due time assumed when a task sets none
        """
        self._position_order: dict[str, int] = {}
        for name, priority in (position_order or {}).items():
            for variant in responsibility_variants(name):
                self._position_order.setdefault(variant, priority)

        default = dt_parse_time(default_due_time) or dt_parse_time(
            const.DEFAULT_DUE_TIME
        )
        self._default_due_minutes = time_to_minutes(default)

    # =========================================================================
    # Public API
    # =========================================================================

    def sort_key(
        self,
        task: TaskData | dict[str, Any],
        viewing_date: date | None = None,
    ) -> SortKey:
        """Return the key that orders a task under this policy."""
        custom_order = self.custom_order(task)
        return (
            0 if custom_order is not None else 1,
            custom_order if custom_order is not None else 0,
            self.due_minutes(task),
            self.frequency_rank(task),
            self.position_rank(task),
            self.description_key(task),
        )

    def compare(
        self,
        task_a: TaskData | dict[str, Any],
        task_b: TaskData | dict[str, Any],
        viewing_date: date | None = None,
    ) -> int:
        """Compare two tasks, returning -1, 0 or 1."""
        key_a = self.sort_key(task_a, viewing_date)
        key_b = self.sort_key(task_b, viewing_date)
        return (key_a > key_b) - (key_a < key_b)

    def sort(
        self,
        tasks: Iterable[TaskData | dict[str, Any]],
        viewing_date: date | None = None,
    ) -> list[TaskData | dict[str, Any]]:
        """Return tasks in display order (stable for equal keys)."""
        return sorted(
            tasks,
            key=cmp_to_key(lambda a, b: self.compare(a, b, viewing_date)),
        )

    # =========================================================================
    # Key components
    # =========================================================================

    @staticmethod
    def custom_order(task: TaskData | dict[str, Any]) -> int | None:
        """Return the administrator-assigned order, or None when unset."""
        value = task.get(const.DATA_TASK_CUSTOM_ORDER)
        if value is None or isinstance(value, bool):
            return None
        try:
            order = int(value)
        except (TypeError, ValueError):
            const.LOGGER.debug("OrderingPolicy: Ignoring invalid custom order %r", value)
            return None
        return order if order < const.CUSTOM_ORDER_UNSET else None

    @staticmethod
    def description_key(task: TaskData | dict[str, Any]) -> str:
        """Return the case-folded description (title when there is none)."""
        text = task.get(const.DATA_TASK_DESCRIPTION) or task.get(const.DATA_TASK_TITLE)
        return str(text or "").casefold()

    def due_minutes(self, task: TaskData | dict[str, Any]) -> int:
        """Return the task's due time in minutes since midnight."""
        due_time = dt_parse_time(task.get(const.DATA_TASK_DUE_TIME))
        if due_time is None:
            return self._default_due_minutes
        return time_to_minutes(due_time)

    @staticmethod
    def frequency_rank(task: TaskData | dict[str, Any]) -> int:
        """Return the best rank among the task's recurrence codes."""
        ranks = [
            const.FREQUENCY_RANK.get(
                CutoffCalculator.normalize_frequency(code), const.FREQUENCY_RANK_UNKNOWN
            )
            for code in task.get(const.DATA_TASK_FREQUENCIES) or []
        ]
        return min(ranks, default=const.FREQUENCY_RANK_UNKNOWN)

    def position_rank(self, task: TaskData | dict[str, Any]) -> int:
        """Return the display priority of the first listed responsibility."""
        responsibilities = task.get(const.DATA_TASK_RESPONSIBILITIES) or []
        if not responsibilities:
            return const.POSITION_ORDER_UNKNOWN
        for variant in responsibility_variants(responsibilities[0]):
            if variant in self._position_order:
                return self._position_order[variant]
        return const.POSITION_ORDER_UNKNOWN
