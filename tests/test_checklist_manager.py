"""Tests for ChecklistManager - building a checklist for one viewing date."""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from pharmacy_checklist import const
from pharmacy_checklist.engines.calendar_engine import CalendarAuthority, HolidayLoadError
from pharmacy_checklist.engines.completion_engine import ViewerContext
from pharmacy_checklist.managers.checklist_manager import (
    ChecklistEntry,
    ChecklistManager,
)
from pharmacy_checklist.utils.dt_utils import get_default_timezone
from tests.helpers import HOLIDAYS_2026, LOADED_YEARS, make_task, sydney


def holiday_loader(year: int) -> list[dict[str, Any]]:
    """Return the reference holidays for 2026, none for other years."""
    return HOLIDAYS_2026 if year == 2026 else []


@pytest.fixture
def manager() -> ChecklistManager:
    """Return a NSW manager with a loader-backed calendar."""
    return ChecklistManager(
        config={
            "holiday_region": "NSW",
            "position_order": {"Pharmacist (Primary)": 1, "Pharmacy Assistant/s": 2},
        },
        holiday_loader=holiday_loader,
    )


@pytest.fixture
def tasks() -> list[dict[str, Any]]:
    """Return a small mixed task list."""
    return [
        make_task("weekly", frequencies=["once_weekly"]),
        make_task("future", frequencies=["every_day"], start_date="2026-11-01"),
        make_task("monday", frequencies=["monday"]),
        make_task("daily", frequencies=["every_day"], due_time="08:00"),
    ]


# =============================================================================
# TEST: BUILD CHECKLIST
# =============================================================================


class TestBuildChecklist:
    """Test build_checklist end to end."""

    def test_statuses_visibility_and_order(
        self, manager: ChecklistManager, tasks: list[dict[str, Any]]
    ) -> None:
        """Hidden tasks are dropped and the rest sorted for display."""
        entries = manager.build_checklist(tasks, "2026-10-20", sydney(2026, 10, 20, 9))

        assert [entry.task_id for entry in entries] == ["daily", "weekly", "monday"]
        assert [entry.status for entry in entries] == [
            const.STATUS_OVERDUE,
            const.STATUS_NOT_DUE_YET,
            const.STATUS_OVERDUE,
        ]
        assert all(entry.instance_date == date(2026, 10, 20) for entry in entries)
        assert not any(entry.degraded for entry in entries)

    def test_loads_holiday_years(self, manager: ChecklistManager) -> None:
        """Building a checklist loads the viewing year and its neighbours."""
        manager.build_checklist([], date(2026, 10, 20), sydney(2026, 10, 20))
        assert all(manager.calendar.is_loaded(year) for year in LOADED_YEARS)

    def test_every_day_skipped_on_sunday(
        self, manager: ChecklistManager, tasks: list[dict[str, Any]]
    ) -> None:
        """Daily-only tasks are not listed on a Sunday."""
        entries = manager.build_checklist(tasks, "2026-10-18", sydney(2026, 10, 18, 9))

        assert [entry.task_id for entry in entries] == ["weekly", "monday"]
        assert all(entry.status == const.STATUS_NOT_DUE_YET for entry in entries)

    def test_every_day_skipped_on_public_holiday(
        self, manager: ChecklistManager
    ) -> None:
        """Daily-only tasks are not listed on Labour Day."""
        daily = make_task("daily")
        mixed = make_task("mixed", frequencies=["every_day", "once_weekly"])
        entries = manager.build_checklist(
            [daily, mixed], "2026-10-05", sydney(2026, 10, 5, 9)
        )
        assert [entry.task_id for entry in entries] == ["mixed"]

    def test_instances_with_completions(self, manager: ChecklistManager) -> None:
        """Instance records carry their own date and completion rows."""
        task = make_task(
            "shared", responsibilities=["Pharmacist (Primary)", "Pharmacy Assistant/s"]
        )
        instance = {
            "task": task,
            "instance_date": "2026-10-20",
            "completion": [
                {
                    "position_name": "Pharmacist (Primary)",
                    "completed_at": "2026-10-20T10:00:00+11:00",
                    "is_completed": True,
                }
            ],
        }

        admin = manager.build_checklist(
            [instance], "2026-10-20", sydney(2026, 10, 20, 18)
        )
        assistant = manager.build_checklist(
            [instance],
            "2026-10-20",
            sydney(2026, 10, 20, 18),
            ViewerContext(position="Pharmacy Assistant/s"),
        )

        assert admin[0].status == const.STATUS_COMPLETED
        assert admin[0].completed_positions == ("Pharmacist (Primary)",)
        assert assistant[0].status == const.STATUS_OVERDUE

    def test_invalid_instance_date_uses_viewing_date(
        self, manager: ChecklistManager
    ) -> None:
        """An unparseable instance date falls back to the viewing date."""
        entries = manager.build_checklist(
            [{"task": make_task(), "instance_date": "garbage"}],
            "2026-10-20",
            sydney(2026, 10, 20, 9),
        )
        assert entries[0].instance_date == date(2026, 10, 20)

    def test_failed_holiday_load_marks_degraded(self) -> None:
        """Entries computed without holiday data are flagged degraded."""

        def failing_loader(year: int) -> list[str]:
            raise HolidayLoadError(year, "offline")

        manager = ChecklistManager(holiday_loader=failing_loader)
        entries = manager.build_checklist(
            [make_task(frequencies=["once_weekly"])],
            "2026-10-20",
            sydney(2026, 10, 20, 9),
        )

        assert entries[0].degraded
        assert const.WARNING_HOLIDAYS_NOT_LOADED.format(year=2026) in entries[0].warnings

    def test_task_without_codes_marks_degraded(self, manager: ChecklistManager) -> None:
        """A task with no recurrence codes is listed as due_today and degraded."""
        entries = manager.build_checklist(
            [make_task("bare", frequencies=[])], "2026-10-20", sydney(2026, 10, 20, 9)
        )

        assert entries[0].status == const.STATUS_DUE_TODAY
        assert entries[0].degraded
        assert entries[0].warnings == (const.WARNING_NO_FREQUENCIES,)
        assert entries[0].describe_due() is None

    def test_injected_calendar(self) -> None:
        """An injected calendar is used as-is."""
        calendar = CalendarAuthority.from_holidays(
            HOLIDAYS_2026, years=LOADED_YEARS, region="NSW"
        )
        manager = ChecklistManager(calendar)
        assert manager.calendar is calendar
        assert manager.calculator.calendar is calendar


# =============================================================================
# TEST: ENTRIES AND COUNTS
# =============================================================================


class TestEntriesAndCounts:
    """Test ChecklistEntry helpers and count_statuses."""

    def test_count_statuses(
        self, manager: ChecklistManager, tasks: list[dict[str, Any]]
    ) -> None:
        """Counts cover every reported status, zero-filled."""
        entries = manager.build_checklist(tasks, "2026-10-20", sydney(2026, 10, 20, 9))
        assert ChecklistManager.count_statuses(entries) == {
            const.STATUS_COMPLETED: 0,
            const.STATUS_DUE_TODAY: 0,
            const.STATUS_OVERDUE: 2,
            const.STATUS_MISSED: 0,
            const.STATUS_NOT_DUE_YET: 1,
        }

    def test_not_visible_never_counted(self) -> None:
        """not_visible entries are ignored by the counts."""
        entry = ChecklistEntry(
            task=make_task(),
            instance_date=date(2026, 10, 20),
            status=const.STATUS_NOT_VISIBLE,
        )
        assert sum(ChecklistManager.count_statuses([entry]).values()) == 0

    def test_describe_due(
        self, manager: ChecklistManager, tasks: list[dict[str, Any]]
    ) -> None:
        """Entries expose the due hint of their first code."""
        entries = manager.build_checklist(tasks, "2026-10-20", sydney(2026, 10, 20, 9))
        assert entries[0].describe_due() == "due Tue, 20 Oct 08:00"

    def test_entry_without_cutoffs(self) -> None:
        """An entry without cutoffs has no hint and no warnings."""
        entry = ChecklistEntry(
            task=make_task(), instance_date=date(2026, 10, 20), status="due_today"
        )
        assert entry.describe_due() is None
        assert entry.warnings == ()


# =============================================================================
# TEST: CONFIGURATION
# =============================================================================


class TestConfiguration:
    """Test ChecklistConfig handling."""

    def test_unknown_timezone_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        """An unknown timezone name falls back to the default zone."""
        manager = ChecklistManager(config={"timezone": "Mars/Olympus_Mons"})
        assert manager.tz == get_default_timezone()
        assert "Mars/Olympus_Mons" in caplog.text

    def test_default_due_time_config(self) -> None:
        """The configured default due time reaches the calculator."""
        manager = ChecklistManager(
            CalendarAuthority.from_holidays([], years=LOADED_YEARS),
            config={"default_due_time": "12:00"},
        )
        entries = manager.build_checklist(
            [make_task()], "2026-10-20", sydney(2026, 10, 20, 13)
        )
        assert entries[0].status == const.STATUS_OVERDUE
