"""Tests for utils/dt_utils.py - date/time parsing and calendar anchors."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

from dateutil.relativedelta import FR, SA
from freezegun import freeze_time
import pytest

from pharmacy_checklist import const
from pharmacy_checklist.utils import dt_utils
from pharmacy_checklist.utils.dt_utils import (
    as_local,
    as_utc,
    dt_combine_local,
    dt_format_short,
    dt_local_date,
    dt_parse,
    dt_parse_date,
    dt_parse_time,
    dt_to_utc,
    dt_today_local,
    last_weekday_of_month,
    start_of_local_day,
    time_to_minutes,
    week_monday,
    week_saturday,
)
from tests.helpers import SYDNEY


@pytest.fixture
def restore_timezone() -> Iterator[None]:
    """Restore the default timezone after a test changes it."""
    original = dt_utils.get_default_timezone()
    yield
    dt_utils.set_default_timezone(original)


# =============================================================================
# Current time
# =============================================================================


class TestCurrentTime:
    """Wall-clock helpers, frozen with freezegun."""

    @freeze_time("2026-10-17 14:30:00", tz_offset=0)
    def test_today_local_crosses_midnight(self) -> None:
        """14:30 UTC on the 17th is already the 18th in Sydney."""
        assert dt_today_local() == date(2026, 10, 18)

    @freeze_time("2026-10-17 14:30:00", tz_offset=0)
    def test_today_with_timezone_override(self) -> None:
        """An explicit timezone overrides the default."""
        assert dt_today_local(ZoneInfo("UTC")) == date(2026, 10, 17)

    @freeze_time("2026-10-18 01:00:00", tz_offset=0)
    def test_now_helpers_are_aware(self) -> None:
        """now helpers return aware datetimes in the right zone."""
        assert dt_utils.dt_now_utc() == datetime(2026, 10, 18, 1, 0, tzinfo=UTC)
        assert dt_utils.dt_now_local().hour == 12

    def test_default_timezone_from_const(self) -> None:
        """The business timezone defaults to the configured constant."""
        assert dt_utils.get_default_timezone() == ZoneInfo(const.DEFAULT_TIME_ZONE_NAME)

    def test_set_default_timezone(self, restore_timezone: None) -> None:
        """The business timezone can be reconfigured."""
        perth = ZoneInfo("Australia/Perth")
        dt_utils.set_default_timezone(perth)
        assert dt_utils.get_default_timezone() is perth


# =============================================================================
# Conversion
# =============================================================================


class TestConversion:
    """Timezone conversion helpers."""

    def test_local_date_of_utc_moment(self) -> None:
        """2026-03-02 14:30 UTC is 3 March in Sydney."""
        moment = datetime(2026, 3, 2, 14, 30, tzinfo=UTC)
        assert dt_local_date(moment, SYDNEY) == date(2026, 3, 3)

    def test_as_local_treats_naive_as_utc(self) -> None:
        """Naive datetimes passed to as_local are UTC."""
        assert as_local(datetime(2026, 10, 20, 7, 0), SYDNEY).hour == 18

    def test_as_utc_treats_naive_as_local(self) -> None:
        """Naive datetimes passed to as_utc are business-local."""
        assert as_utc(datetime(2026, 10, 20, 18, 0)) == datetime(
            2026, 10, 20, 7, 0, tzinfo=UTC
        )

    def test_start_of_local_day(self) -> None:
        """Start of day is midnight in the business timezone."""
        start = start_of_local_day(datetime(2026, 10, 20, 7, 0, tzinfo=UTC), SYDNEY)
        assert (start.date(), start.hour, start.minute) == (date(2026, 10, 20), 0, 0)

    def test_combine_local(self) -> None:
        """dt_combine_local builds an aware local moment."""
        moment = dt_combine_local(date(2026, 10, 20), time(17, 0), SYDNEY)
        assert moment.tzinfo is SYDNEY
        assert moment.astimezone(UTC) == datetime(2026, 10, 20, 6, 0, tzinfo=UTC)


# =============================================================================
# Parsing
# =============================================================================


class TestParsing:
    """Input normalization."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2026-10-20", date(2026, 10, 20)),
            ("2026-10-20T08:00:00+11:00", date(2026, 10, 20)),
            ("20/10/2026", date(2026, 10, 20)),
            ("2026/10/20", date(2026, 10, 20)),
            (" 2026-10-20 ", date(2026, 10, 20)),
            (date(2026, 10, 20), date(2026, 10, 20)),
            (datetime(2026, 10, 20, 9, 0), date(2026, 10, 20)),
            ("20 October", None),
            ("", None),
            (None, None),
        ],
    )
    def test_dt_parse_date(self, value: object, expected: date | None) -> None:
        """Dates parse from the accepted formats, else None."""
        assert dt_parse_date(value) == expected

    def test_dt_parse_naive_gets_default_zone(self) -> None:
        """A naive string is placed in the requested zone."""
        parsed = dt_parse("2026-10-20T09:00:00", default_tzinfo=SYDNEY)
        assert parsed == datetime(2026, 10, 20, 9, 0, tzinfo=SYDNEY)
        assert dt_parse("nonsense") is None

    def test_dt_to_utc(self) -> None:
        """Timestamps convert to UTC; naive ones are already UTC."""
        assert dt_to_utc("2026-10-20T08:00:00+11:00") == datetime(
            2026, 10, 19, 21, 0, tzinfo=UTC
        )
        assert dt_to_utc("2026-10-20T08:00:00") == datetime(
            2026, 10, 20, 8, 0, tzinfo=UTC
        )
        assert dt_to_utc(None) is None

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("09:00", time(9, 0)),
            ("17:30:15", time(17, 30, 15)),
            (time(6, 45), time(6, 45)),
            ("24:00", None),
            ("9", None),
            ("ab:cd", None),
            (None, None),
        ],
    )
    def test_dt_parse_time(self, value: object, expected: time | None) -> None:
        """Times parse from HH:MM[:SS], else None."""
        assert dt_parse_time(value) == expected

    def test_time_to_minutes(self) -> None:
        """Minutes since midnight."""
        assert time_to_minutes(time(17, 0)) == 1020


# =============================================================================
# Anchors and formatting
# =============================================================================


class TestAnchors:
    """Week and month anchors."""

    @pytest.mark.parametrize(
        ("day", "monday"),
        [
            (date(2026, 10, 19), date(2026, 10, 19)),
            (date(2026, 10, 21), date(2026, 10, 19)),
            (date(2026, 10, 24), date(2026, 10, 19)),
            (date(2026, 10, 18), date(2026, 10, 19)),
        ],
    )
    def test_week_monday(self, day: date, monday: date) -> None:
        """Mon–Sat map to their Monday; Sunday maps to the next day."""
        assert week_monday(day) == monday

    def test_week_saturday(self) -> None:
        """Saturday closes the working week."""
        assert week_saturday(date(2026, 10, 21)) == date(2026, 10, 24)

    def test_last_weekday_of_month(self) -> None:
        """Last Saturday and Friday of October 2026."""
        assert last_weekday_of_month(date(2026, 10, 4), SA) == date(2026, 10, 31)
        assert last_weekday_of_month(date(2026, 10, 4), FR) == date(2026, 10, 30)

    def test_format_short(self) -> None:
        """Short due hint formatting."""
        assert dt_format_short(date(2026, 10, 22), time(17, 0)) == "Thu, 22 Oct 17:00"
        assert dt_format_short(date(2026, 10, 22)) == "Thu, 22 Oct"
        assert dt_format_short(None) == "Unknown"
