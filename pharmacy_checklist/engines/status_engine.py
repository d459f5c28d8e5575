"""Status Engine - Resolve the display status of a task instance.

This engine provides pure functions that turn per-code FrequencyCutoffs,
an as-of moment and a viewing date into one of:

    not_visible < not_due_yet < due_today < overdue < missed   (+ completed)

Resolution order:
  1. Visibility window (before anchor / after end) → not_visible
  2. Completion carry-over per code → completed, or re-opened new cycle
  3. Five-state cutoff rules per code
  4. Combine codes: most severe wins; completed only yields to statuses
     that demand action (due_today, overdue, missed)

ARCHITECTURE: Stateless apart from the injected CutoffCalculator used to
recompute cycles for carry-over. The wall clock is never read; the caller
passes the as-of moment.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import (
    as_local,
    dt_local_date,
    dt_parse_date,
    dt_to_utc,
    get_default_timezone,
)

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from ..type_defs import CompletionData, TaskData
    from .schedule_engine import CutoffCalculator, FrequencyCutoff


class StatusResolver:
    """Resolve task statuses from cutoffs, completions and an as-of moment."""

    def __init__(
        self,
        calculator: CutoffCalculator,
        *,
        tz: ZoneInfo | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            calculator: Cutoff calculator used to recompute carry-over cycles
            tz: Business timezone override (defaults to dt_utils default)
        """
        self._calculator = calculator
        self._tz = tz

    @property
    def calculator(self) -> CutoffCalculator:
        """The CutoffCalculator this resolver recomputes cycles with."""
        return self._calculator

    @property
    def tz(self) -> ZoneInfo:
        """Business timezone in effect."""
        return self._tz or get_default_timezone()

    # =========================================================================
    # Public API
    # =========================================================================

    def resolve(
        self,
        task: TaskData | dict[str, Any],
        cutoffs: Mapping[str, FrequencyCutoff],
        as_of: datetime,
        viewing_date: date | str,
        completion: CompletionData | dict[str, Any] | None = None,
        *,
        instance_date: date | str | None = None,
    ) -> str:
        """Resolve the status of one task instance for a viewing date.

        Args:
            task: Task definition (visibility fields, due date/time)
            cutoffs: Per-code cutoffs of the instance being viewed
            as_of: Current moment (aware; naive is read as business-local)
            viewing_date: Date the viewer is looking at
            completion: Completion for the position/view in question
            instance_date: Instance anchor, used when the completion has
                no timestamp (defaults to the viewing date)

        Returns:
            One of the STATUS_* constants.
        """
        moment = self.normalize_moment(as_of)
        today = dt_local_date(moment, self.tz)
        viewing = self._resolve_viewing_date(viewing_date, today)

        if not self.is_visible(task, viewing):
            return const.STATUS_NOT_VISIBLE

        fallback_date = dt_parse_date(instance_date) or viewing
        completion_date = self.get_completion_date(completion, fallback_date, self.tz)

        if not cutoffs:
            const.LOGGER.warning(
                "StatusResolver: Task %s has no recurrence codes, defaulting status",
                task.get(const.DATA_TASK_ID),
            )
            if completion_date == viewing:
                return const.STATUS_COMPLETED
            return const.STATUS_DUE_TODAY

        statuses = [
            self._resolve_code(task, code, cutoff, moment, today, viewing, completion_date)
            for code, cutoff in cutoffs.items()
        ]
        return self.combine_statuses(statuses)

    def resolve_instance(
        self,
        task: TaskData | dict[str, Any],
        instance_date: date | str,
        as_of: datetime,
        viewing_date: date | str,
        completion: CompletionData | dict[str, Any] | None = None,
    ) -> str:
        """Compute the task's cutoffs at an instance date, then resolve."""
        moment = self.normalize_moment(as_of)
        cutoffs = self._calculator.compute_task_cutoffs(
            task, instance_date, fallback_date=dt_local_date(moment, self.tz)
        )
        return self.resolve(
            task,
            cutoffs,
            moment,
            viewing_date,
            completion,
            instance_date=instance_date,
        )

    def resolve_cutoff_status(
        self,
        cutoff: FrequencyCutoff,
        as_of: datetime,
        viewing_date: date,
    ) -> str:
        """Apply the five-state rules to a single uncompleted cutoff.

        Rules:
          - viewing < appearance → not_due_yet
          - viewing == due: today → missed/overdue/due_today by time of
            day; any other date → due_today
          - viewing > due: missed past the lock date, else overdue
          - otherwise (between appearance and due) → not_due_yet
        """
        moment = self.normalize_moment(as_of)
        today = dt_local_date(moment, self.tz)

        if viewing_date < cutoff.appearance_date:
            return const.STATUS_NOT_DUE_YET

        if viewing_date == cutoff.due_date:
            if viewing_date != today:
                return const.STATUS_DUE_TODAY
            lock_moment = cutoff.lock_moment(self.tz)
            if lock_moment is not None and moment >= lock_moment:
                return const.STATUS_MISSED
            if moment >= cutoff.due_moment(self.tz):
                return const.STATUS_OVERDUE
            return const.STATUS_DUE_TODAY

        if viewing_date > cutoff.due_date:
            if cutoff.lock_date is None:
                return const.STATUS_OVERDUE
            if viewing_date > cutoff.lock_date:
                return const.STATUS_MISSED
            lock_moment = cutoff.lock_moment(self.tz)
            if (
                viewing_date == today
                and lock_moment is not None
                and moment >= lock_moment
            ):
                return const.STATUS_MISSED
            return const.STATUS_OVERDUE

        return const.STATUS_NOT_DUE_YET

    def is_completion_current(
        self,
        task: TaskData | dict[str, Any],
        completion: CompletionData | dict[str, Any] | None,
        viewing_date: date,
        *,
        instance_date: date | None = None,
    ) -> bool:
        """Check whether a completion still shows as completed on a date.

        True when, for any of the task's codes, the viewing date falls in
        [completion date, carry window end] of the cycle the completion
        belongs to.
        """
        completion_date = self.get_completion_date(
            completion, instance_date or viewing_date, self.tz
        )
        if completion_date is None or viewing_date < completion_date:
            return False

        codes = task.get(const.DATA_TASK_FREQUENCIES) or []
        if not codes:
            return completion_date == viewing_date
        return any(
            self._completion_covers(task, code, completion_date, viewing_date)
            for code in codes
        )

    # =========================================================================
    # Static helpers
    # =========================================================================

    @staticmethod
    def combine_statuses(statuses: Iterable[str]) -> str:
        """Combine per-code statuses into the task's single status.

        The most severe non-completed status wins. A completed code wins
        over not_visible / not_due_yet but not over a code that is due,
        overdue or missed.
        """
        collected = list(statuses)
        active = [status for status in collected if status != const.STATUS_COMPLETED]
        worst = max(active, key=const.STATUS_SEVERITY.__getitem__, default=None)

        if const.STATUS_COMPLETED in collected and (
            worst is None
            or const.STATUS_SEVERITY[worst]
            < const.STATUS_SEVERITY[const.STATUS_DUE_TODAY]
        ):
            return const.STATUS_COMPLETED
        return worst or const.STATUS_NOT_VISIBLE

    @staticmethod
    def get_visibility_window(
        task: TaskData | dict[str, Any],
        tz: ZoneInfo | None = None,
    ) -> tuple[date | None, date | None]:
        """Derive (visibility anchor, visibility end) for a task.

        The anchor is the latest of the creation timestamp's local date, the
        publish-delay date and the start date. Unparseable values are logged
        and ignored.
        """
        candidates: list[date] = []

        created_raw = task.get(const.DATA_TASK_CREATED_AT)
        if created_raw:
            created_at = dt_to_utc(created_raw)
            if created_at is None:
                const.LOGGER.warning(
                    "StatusResolver: Ignoring invalid created_at %r", created_raw
                )
            else:
                candidates.append(dt_local_date(created_at, tz))

        for key in (const.DATA_TASK_PUBLISH_DELAY, const.DATA_TASK_START_DATE):
            raw_value = task.get(key)
            if not raw_value:
                continue
            parsed = dt_parse_date(raw_value)
            if parsed is None:
                const.LOGGER.warning(
                    "StatusResolver: Ignoring invalid %s %r", key, raw_value
                )
                continue
            candidates.append(parsed)

        end_raw = task.get(const.DATA_TASK_END_DATE)
        end = dt_parse_date(end_raw) if end_raw else None
        if end_raw and end is None:
            const.LOGGER.warning("StatusResolver: Ignoring invalid end_date %r", end_raw)

        return (max(candidates) if candidates else None), end

    def is_visible(self, task: TaskData | dict[str, Any], viewing_date: date) -> bool:
        """Check the viewing date against the task's visibility window."""
        anchor, end = self.get_visibility_window(task, self.tz)
        if anchor is not None and viewing_date < anchor:
            return False
        return end is None or viewing_date <= end

    @staticmethod
    def get_completion_date(
        completion: CompletionData | dict[str, Any] | None,
        instance_date: date,
        tz: ZoneInfo | None = None,
    ) -> date | None:
        """Return the local date a completion happened on.

        Returns None when there is no completion or it is not marked
        completed. A completion without a (valid) timestamp falls back to
        the instance date.
        """
        if not completion:
            return None
        if not completion.get(const.DATA_COMPLETION_IS_COMPLETED, True):
            return None

        completed_at = dt_to_utc(completion.get(const.DATA_COMPLETION_COMPLETED_AT))
        if completed_at is None:
            return instance_date
        return dt_local_date(completed_at, tz)

    def normalize_moment(self, as_of: datetime) -> datetime:
        """Make the as-of moment timezone-aware (naive is business-local)."""
        if as_of.tzinfo is None:
            return as_of.replace(tzinfo=self.tz)
        return as_local(as_of, self.tz)

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _resolve_code(
        self,
        task: TaskData | dict[str, Any],
        code: str,
        cutoff: FrequencyCutoff,
        moment: datetime,
        today: date,
        viewing_date: date,
        completion_date: date | None,
    ) -> str:
        """Resolve one code, applying completion carry-over first."""
        if completion_date is None or viewing_date < completion_date:
            return self.resolve_cutoff_status(cutoff, moment, viewing_date)

        if self._completion_covers(task, code, completion_date, viewing_date):
            return const.STATUS_COMPLETED

        if viewing_date > today:
            # Future cycles are never due from today's vantage point
            return const.STATUS_NOT_DUE_YET

        # Completion expired: re-open as a fresh cycle anchored at the viewing date
        fresh = self._calculator.compute_cutoffs(
            viewing_date,
            code,
            task.get(const.DATA_TASK_DUE_DATE),
            task.get(const.DATA_TASK_DUE_TIME),
            fallback_date=today,
        )
        return self.resolve_cutoff_status(fresh, moment, viewing_date)

    def _completion_covers(
        self,
        task: TaskData | dict[str, Any],
        code: str,
        completion_date: date,
        viewing_date: date,
    ) -> bool:
        """Check whether the completion's cycle still covers the viewing date."""
        completion_cutoff = self._calculator.compute_cutoffs(
            completion_date,
            code,
            task.get(const.DATA_TASK_DUE_DATE),
            task.get(const.DATA_TASK_DUE_TIME),
        )
        window_end = completion_cutoff.carry_window_end
        if window_end is None:
            return True
        return viewing_date <= max(window_end, completion_date)

    def _resolve_viewing_date(self, viewing_date: date | str, today: date) -> date:
        """Parse the viewing date, defaulting to the as-of date."""
        parsed = dt_parse_date(viewing_date)
        if parsed is not None:
            return parsed
        const.LOGGER.warning(
            "StatusResolver: Invalid viewing date %r, using %s", viewing_date, today
        )
        return today
