"""Shared fixtures for pharmacy checklist tests."""

from __future__ import annotations

import pytest

from pharmacy_checklist.engines.calendar_engine import CalendarAuthority
from pharmacy_checklist.engines.completion_engine import CompletionAggregator
from pharmacy_checklist.engines.schedule_engine import CutoffCalculator
from pharmacy_checklist.engines.status_engine import StatusResolver
from tests.helpers import HOLIDAYS_2026, LOADED_YEARS, SYDNEY


@pytest.fixture
def calendar() -> CalendarAuthority:
    """Return a NSW calendar with the 2026 reference holidays loaded."""
    return CalendarAuthority.from_holidays(
        HOLIDAYS_2026, years=LOADED_YEARS, region="NSW"
    )


@pytest.fixture
def calculator(calendar: CalendarAuthority) -> CutoffCalculator:
    """Return a cutoff calculator over the reference calendar."""
    return CutoffCalculator(calendar)


@pytest.fixture
def resolver(calculator: CutoffCalculator) -> StatusResolver:
    """Return a status resolver in the Sydney timezone."""
    return StatusResolver(calculator, tz=SYDNEY)


@pytest.fixture
def aggregator(resolver: StatusResolver) -> CompletionAggregator:
    """Return a completion aggregator over the resolver."""
    return CompletionAggregator(resolver)
