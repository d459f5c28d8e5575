"""Checklist Manager - Build the checklist for one viewing date.

This manager wires the engines into the per-date flow the checklist pages
and dashboards use:

    CalendarAuthority.load → CutoffCalculator (per code)
        → CompletionAggregator / StatusResolver (per task)
        → OrderingPolicy (whole list)

ARCHITECTURE:
- ChecklistManager = orchestration and configuration (holds engine instances)
- Engines = pure calculation (no I/O, no clock reads)

The only side effect is the holiday load triggered on the injected
CalendarAuthority.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .. import const
from ..engines.calendar_engine import CalendarAuthority
from ..engines.completion_engine import CompletionAggregator, ViewerContext
from ..engines.ordering_engine import OrderingPolicy
from ..engines.schedule_engine import CutoffCalculator
from ..engines.status_engine import StatusResolver
from ..utils.dt_utils import as_local, dt_parse_date, get_default_timezone

if TYPE_CHECKING:
    from ..engines.calendar_engine import HolidayLoader
    from ..engines.schedule_engine import FrequencyCutoff
    from ..type_defs import ChecklistConfig, TaskData, TaskInstanceData


@dataclass(frozen=True)
class ChecklistEntry:
    """One row of a built checklist.

    Attributes:
        task: Task definition
        instance_date: Nominal date of the instance shown
        status: Effective STATUS_* for the viewer
        cutoffs: Per-code cutoffs (normalized code → FrequencyCutoff)
        completed_positions: Positions whose completion is current
        degraded: True when any cutoff (or the task itself) needed a fallback
        task_warnings: Fallbacks recorded for the task rather than a code
    """

    task: TaskData | dict[str, Any]
    instance_date: date
    status: str
    cutoffs: dict[str, FrequencyCutoff] = field(default_factory=dict)
    completed_positions: tuple[str, ...] = ()
    degraded: bool = False
    task_warnings: tuple[str, ...] = ()

    @property
    def task_id(self) -> str | None:
        """ID of the task this entry shows."""
        return self.task.get(const.DATA_TASK_ID)

    @property
    def warnings(self) -> tuple[str, ...]:
        """All fallback warnings recorded on the entry and its cutoffs."""
        return self.task_warnings + tuple(
            warning for cutoff in self.cutoffs.values() for warning in cutoff.warnings
        )

    def describe_due(self) -> str | None:
        """Due hint of the first recurrence code, e.g. "due Thu, 4 Oct 17:00"."""
        for cutoff in self.cutoffs.values():
            return cutoff.describe_due()
        return None


class ChecklistManager:
    """Build, sort and count checklist entries for a viewing date.

    Responsibilities:
    - Load holiday years around the viewing date
    - Compute cutoffs, resolve statuses, drop hidden tasks
    - Sort for display and count statuses for dashboards

    NOT responsible for:
    - Fetching tasks, completions or holidays (callers supply them)
    - Persisting completions
    """

    def __init__(
        self,
        calendar: CalendarAuthority | None = None,
        config: ChecklistConfig | None = None,
        *,
        holiday_loader: HolidayLoader | None = None,
    ) -> None:
        """Initialize the ChecklistManager.

        Args:
            calendar: Calendar to use; built from holiday_loader and the
                configured region when omitted
            config: Optional ChecklistConfig overrides
            holiday_loader: Loader for a calendar built by the manager
        """
        self._config: ChecklistConfig = config or {}
        self._tz = self._resolve_timezone(self._config.get(const.CONF_TIMEZONE))
        default_due_time = self._config.get(
            const.CONF_DEFAULT_DUE_TIME, const.DEFAULT_DUE_TIME
        )

        self.calendar = calendar or CalendarAuthority(
            holiday_loader,
            region=self._config.get(const.CONF_HOLIDAY_REGION),
        )
        self.calculator = CutoffCalculator(
            self.calendar, default_due_time=default_due_time
        )
        self.resolver = StatusResolver(self.calculator, tz=self._tz)
        self.aggregator = CompletionAggregator(self.resolver)
        self.ordering = OrderingPolicy(
            self._config.get(const.CONF_POSITION_ORDER),
            default_due_time=default_due_time,
        )

    @property
    def tz(self) -> ZoneInfo:
        """Business timezone used by this manager."""
        return self._tz

    # =========================================================================
    # Public API
    # =========================================================================

    def build_checklist(
        self,
        items: Iterable[TaskInstanceData | TaskData | dict[str, Any]],
        viewing_date: date | str,
        as_of: datetime,
        viewer: ViewerContext | None = None,
    ) -> list[ChecklistEntry]:
        """Build the sorted checklist a viewer sees on a date.

        Args:
            items: Task instances, or bare tasks (instance date = viewing date)
            viewing_date: Date being viewed
            as_of: Current moment
            viewer: Viewer context; defaults to the all-positions view

        Returns:
            Visible entries in display order.
        """
        viewer = viewer or ViewerContext()
        viewing = self._resolve_viewing_date(viewing_date, as_of)
        self.calendar.load(viewing.year)
        business_day = self.calendar.is_business_day(viewing)

        entries: list[ChecklistEntry] = []
        for item in items:
            task, instance_date, completions = self._unpack(item, viewing)

            if not business_day and self._is_every_day_only(task):
                continue

            cutoffs = self.calculator.compute_task_cutoffs(
                task, instance_date, fallback_date=viewing
            )
            effective = self.aggregator.effective_status(
                task,
                cutoffs,
                completions,
                viewer,
                as_of,
                viewing,
                instance_date=instance_date,
            )
            if effective.status == const.STATUS_NOT_VISIBLE:
                continue

            task_warnings = () if cutoffs else (const.WARNING_NO_FREQUENCIES,)
            entries.append(
                ChecklistEntry(
                    task=task,
                    instance_date=instance_date,
                    status=effective.status,
                    cutoffs=cutoffs,
                    completed_positions=effective.completed_positions,
                    degraded=bool(task_warnings)
                    or any(cutoff.degraded for cutoff in cutoffs.values()),
                    task_warnings=task_warnings,
                )
            )

        entries.sort(key=lambda entry: self.ordering.sort_key(entry.task, viewing))

        const.LOGGER.debug(
            "ChecklistManager: Built %d entries for %s (viewer=%s)",
            len(entries),
            viewing,
            viewer.position or "all positions",
        )
        return entries

    @staticmethod
    def count_statuses(entries: Iterable[ChecklistEntry]) -> dict[str, int]:
        """Count entries per status (not_visible is never counted)."""
        counts = dict.fromkeys(const.COUNTED_STATUSES, 0)
        for entry in entries:
            if entry.status in counts:
                counts[entry.status] += 1
        return counts

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _unpack(
        self,
        item: TaskInstanceData | TaskData | dict[str, Any],
        viewing_date: date,
    ) -> tuple[dict[str, Any], date, Any]:
        """Split an item into (task, instance date, completions)."""
        if const.DATA_INSTANCE_TASK not in item:
            return item, viewing_date, None

        raw_date = item.get(const.DATA_INSTANCE_DATE)
        instance_date = dt_parse_date(raw_date)
        if instance_date is None:
            const.LOGGER.warning(
                "ChecklistManager: Invalid instance date %r, using %s",
                raw_date,
                viewing_date,
            )
            instance_date = viewing_date
        return (
            item[const.DATA_INSTANCE_TASK],
            instance_date,
            item.get(const.DATA_INSTANCE_COMPLETION),
        )

    @staticmethod
    def _is_every_day_only(task: TaskData | dict[str, Any]) -> bool:
        """Check whether every_day is the task's only recurrence family."""
        families = {
            CutoffCalculator.get_family(code)
            for code in task.get(const.DATA_TASK_FREQUENCIES) or []
        }
        return families == {const.FAMILY_EVERY_DAY}

    def _resolve_viewing_date(self, viewing_date: date | str, as_of: datetime) -> date:
        """Parse the viewing date, defaulting to the as-of local date."""
        parsed = dt_parse_date(viewing_date)
        if parsed is not None:
            return parsed
        moment = as_of if as_of.tzinfo else as_of.replace(tzinfo=self._tz)
        fallback = as_local(moment, self._tz).date()
        const.LOGGER.warning(
            "ChecklistManager: Invalid viewing date %r, using %s",
            viewing_date,
            fallback,
        )
        return fallback

    @staticmethod
    def _resolve_timezone(name: str | None) -> ZoneInfo:
        """Return the configured timezone, falling back to the default."""
        if not name:
            return get_default_timezone()
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            const.LOGGER.warning(
                "ChecklistManager: Unknown timezone %r, using %s",
                name,
                get_default_timezone(),
            )
            return get_default_timezone()
