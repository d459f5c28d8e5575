"""Completion Engine - Multi-position completion aggregation.

A task assigned to several responsibilities is completed independently by
each position. This engine reduces the per-position completion rows to the
status one viewer should see:

- Single-position view: only the viewer's own position's completions count,
  and the latest one still inside its carry window is used.
- All-positions view: completed while ANY position's completion is still
  inside its carry window; otherwise the task resolves as uncompleted.

ARCHITECTURE: Stateless wrapper around StatusResolver. The list of
completing positions is returned alongside the status for display; it
never influences the status itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import dt_local_date, dt_parse_date
from ..utils.position_utils import responsibilities_match

if TYPE_CHECKING:
    from ..type_defs import CompletionData, TaskData
    from .schedule_engine import FrequencyCutoff
    from .status_engine import StatusResolver


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class ViewerContext:
    """Who is looking at the checklist.

    Attributes:
        position: Position/responsibility being viewed; None means the
                  unfiltered all-positions (administrator) view
    """

    position: str | None = None

    @property
    def is_all_positions(self) -> bool:
        """True for the unfiltered administrator view."""
        return not self.position


@dataclass(frozen=True)
class EffectiveStatus:
    """Aggregated status for one task and viewer.

    Attributes:
        status: STATUS_* constant to display
        completed_positions: Display names of positions whose completion
                             is current on the viewing date
    """

    status: str
    completed_positions: tuple[str, ...] = ()


# =============================================================================
# COMPLETION AGGREGATOR
# =============================================================================


class CompletionAggregator:
    """Combine per-position completions into a viewer's effective status."""

    def __init__(self, resolver: StatusResolver) -> None:
        """Initialize the aggregator.

        Args:
            resolver: StatusResolver used for every per-completion check
        """
        self._resolver = resolver

    @property
    def resolver(self) -> StatusResolver:
        """The StatusResolver this aggregator delegates to."""
        return self._resolver

    def effective_status(
        self,
        task: TaskData | dict[str, Any],
        cutoffs: Mapping[str, FrequencyCutoff],
        completions: CompletionData | list[CompletionData] | None,
        viewer: ViewerContext,
        as_of: datetime,
        viewing_date: date | str,
        *,
        instance_date: date | str | None = None,
    ) -> EffectiveStatus:
        """Resolve the status a viewer sees for one task instance.

        Args:
            task: Task definition
            cutoffs: Per-code cutoffs of the instance being viewed
            completions: Single role-scoped completion, or one row per position
            viewer: Viewer context (position or all positions)
            as_of: Current moment
            viewing_date: Date being viewed
            instance_date: Instance anchor for timestamp-less completions

        Returns:
            EffectiveStatus with the display status and completing positions.
        """
        rows = self.normalize_completions(completions)
        moment = self._resolver.normalize_moment(as_of)
        viewing = dt_parse_date(viewing_date) or dt_local_date(
            moment, self._resolver.tz
        )
        anchor = dt_parse_date(instance_date) or viewing

        current = [
            row
            for row in rows
            if self._resolver.is_completion_current(
                task, row, viewing, instance_date=anchor
            )
        ]

        if viewer.is_all_positions:
            completion = self._latest(current, anchor)
            completed_positions = self.completed_position_names(current)
            const.LOGGER.debug(
                "CompletionAggregator: Task %s all-positions view, %d of %d current",
                task.get(const.DATA_TASK_ID),
                len(current),
                len(rows),
            )
        else:
            own = self.position_completions(current, viewer.position)
            completion = self._latest(own, anchor)
            completed_positions = self.completed_position_names(own)

        status = self._resolver.resolve(
            task,
            cutoffs,
            moment,
            viewing,
            completion,
            instance_date=anchor,
        )
        return EffectiveStatus(status=status, completed_positions=completed_positions)

    # =========================================================================
    # Static helpers
    # =========================================================================

    @staticmethod
    def normalize_completions(
        completions: CompletionData | list[CompletionData] | None,
    ) -> list[CompletionData]:
        """Return completions as a list of rows marked completed."""
        if not completions:
            return []
        rows = [completions] if isinstance(completions, Mapping) else list(completions)
        return [
            row
            for row in rows
            if row and row.get(const.DATA_COMPLETION_IS_COMPLETED, True)
        ]

    @staticmethod
    def position_completions(
        completions: list[CompletionData],
        position: str | None,
    ) -> list[CompletionData]:
        """Return the completions belonging to a position, in row order.

        A row without a position name is a role-scoped completion and
        applies to whichever position is viewing.
        """
        return [
            row
            for row in completions
            if not row.get(const.DATA_COMPLETION_POSITION_NAME)
            or responsibilities_match(
                position, row.get(const.DATA_COMPLETION_POSITION_NAME)
            )
        ]

    @staticmethod
    def completed_position_names(completions: list[CompletionData]) -> tuple[str, ...]:
        """Return unique display names of completing positions, in row order."""
        names: list[str] = []
        for row in completions:
            name = row.get(const.DATA_COMPLETION_POSITION_NAME)
            if name and name not in names:
                names.append(name)
        return tuple(names)

    def _latest(
        self, completions: list[CompletionData], instance_date: date
    ) -> CompletionData | None:
        """Return the most recent completion, or None when there is none."""
        if not completions:
            return None
        return max(
            completions,
            key=lambda row: self._resolver.get_completion_date(
                row, instance_date, self._resolver.tz
            ),
        )
