"""Calendar Engine - Public holidays and business-day arithmetic.

A business day is any day that is not a Sunday and not a public holiday.
Saturdays are business days unless they are holidays; several monthly and
weekly rules rely on that when they resolve "last Saturday of the month".

Holiday data is loaded per calendar year through an injected loader and
cached on the CalendarAuthority instance for its lifetime. Loading a year
also loads its neighbours so week/month boundary arithmetic never reads an
unloaded year. A year that is not loaded simply has no holidays; callers
that care (the cutoff calculator) check is_loaded() and flag the result
as degraded.

ARCHITECTURE: No global state. Every engine that needs holiday answers
receives the CalendarAuthority it should use.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date, timedelta
from typing import TYPE_CHECKING

from dateutil.rrule import DAILY, rrule

from .. import const
from ..utils.dt_utils import dt_parse_date

if TYPE_CHECKING:
    from ..type_defs import HolidayData

HolidayLoader = Callable[[int], Iterable["HolidayData | str | date"]]


class HolidayLoadError(Exception):
    """Raised by a holiday loader when a year's holidays cannot be fetched.

    Attributes:
        year: The calendar year that failed to load
    """

    def __init__(self, year: int, reason: str = "") -> None:
        """Initialize HolidayLoadError.

        Args:
            year: The calendar year that failed to load
            reason: Optional description from the holiday source
        """
        self.year = year
        message = f"Could not load public holidays for {year}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CalendarAuthority:
    """Holiday set plus business-day queries.

    The loader is any callable returning the holidays of one year, as ISO
    strings, dates or ``{date, name, region}`` records. Region filtering
    keeps national holidays (no region, or ``"National"``) plus those of the
    configured region.
    """

    def __init__(
        self,
        loader: HolidayLoader | None = None,
        *,
        region: str | None = None,
    ) -> None:
        """Initialize the calendar.

        Args:
            loader: Callable returning the holidays for a given year
            region: Region whose local holidays apply in addition to
                national ones (None = national only)
        """
        self._loader = loader
        self._region = region
        self._holidays: dict[int, dict[date, str]] = {}
        self._loaded_years: set[int] = set()

    @classmethod
    def from_holidays(
        cls,
        holidays: Iterable[HolidayData | str | date],
        *,
        years: Iterable[int] | None = None,
        region: str | None = None,
    ) -> CalendarAuthority:
        """Build a calendar from an in-memory holiday list.

        Args:
            holidays: Holiday records, ISO strings or dates
            years: Years to mark as loaded even when they hold no holiday;
                defaults to the years the holidays fall in
            region: Region filter (see class docstring)

        Returns:
            A calendar with no loader; only the given years count as loaded.
        """
        calendar = cls(region=region)
        calendar.add_holidays(holidays, years=years)
        return calendar

    # =========================================================================
    # Loading
    # =========================================================================

    def load(self, year: int) -> None:
        """Load a year and its immediate neighbours (idempotent).

        Loader failures are logged and leave the year unloaded so the next
        call retries it.
        """
        for target_year in (year - 1, year, year + 1):
            self._load_year(target_year)

    def ensure_loaded(self, start: date, end: date) -> None:
        """Load every year touched by a date range, plus neighbours."""
        for year in range(start.year, end.year + 1):
            self.load(year)

    def is_loaded(self, year: int) -> bool:
        """Check whether holiday data for a year is available."""
        return year in self._loaded_years

    def missing_years(self, *days: date) -> list[int]:
        """Return the sorted years among the given dates that are not loaded."""
        return sorted({day.year for day in days if day.year not in self._loaded_years})

    def add_holidays(
        self,
        holidays: Iterable[HolidayData | str | date],
        *,
        years: Iterable[int] | None = None,
    ) -> None:
        """Add holidays directly and mark their years as loaded.

        Args:
            holidays: Holiday records, ISO strings or dates
            years: Years to mark as loaded; defaults to the holidays' years
        """
        touched: set[int] = set()
        for holiday in holidays:
            parsed = self._parse_holiday(holiday)
            if parsed is None:
                continue
            holiday_date, name = parsed
            self._holidays.setdefault(holiday_date.year, {})[holiday_date] = name
            touched.add(holiday_date.year)

        marked = set(years) if years is not None else touched
        self._loaded_years.update(marked)

    def _load_year(self, year: int) -> None:
        """Load one year through the loader unless already cached."""
        if year in self._loaded_years or self._loader is None:
            return

        try:
            records = list(self._loader(year))
        except (HolidayLoadError, ValueError) as err:
            const.LOGGER.warning(
                "CalendarAuthority: Holiday load failed for %s: %s", year, err
            )
            return

        self._holidays.setdefault(year, {})
        self.add_holidays(records, years=[year])
        const.LOGGER.debug(
            "CalendarAuthority: Loaded %d holidays for %s",
            len(self._holidays.get(year, {})),
            year,
        )

    def _parse_holiday(
        self, holiday: HolidayData | str | date
    ) -> tuple[date, str] | None:
        """Normalize one holiday input to (date, name), applying region filter."""
        if isinstance(holiday, dict):
            region = holiday.get(const.DATA_HOLIDAY_REGION)
            if not self._region_applies(region):
                return None
            raw_date = holiday.get(const.DATA_HOLIDAY_DATE)
            name = holiday.get(const.DATA_HOLIDAY_NAME) or ""
        else:
            raw_date = holiday
            name = ""

        holiday_date = dt_parse_date(raw_date)
        if holiday_date is None:
            const.LOGGER.warning(
                "CalendarAuthority: Ignoring holiday with invalid date: %s", raw_date
            )
            return None
        return holiday_date, name

    def _region_applies(self, region: str | None) -> bool:
        """Check whether a holiday's region is national or the configured one."""
        if not region or region == const.DEFAULT_HOLIDAY_REGION:
            return True
        return self._region is not None and region.lower() == self._region.lower()

    # =========================================================================
    # Queries
    # =========================================================================

    def is_holiday(self, day: date) -> bool:
        """Check whether a date is a public holiday (False if year unloaded)."""
        return day in self._holidays.get(day.year, {})

    def holiday_name(self, day: date) -> str | None:
        """Return the holiday's display name, or None if not a holiday."""
        year_holidays = self._holidays.get(day.year, {})
        if day not in year_holidays:
            return None
        return year_holidays[day]

    def is_business_day(self, day: date) -> bool:
        """Check whether a date is a business day (not Sunday, not holiday)."""
        return day.weekday() != const.SUNDAY_WEEKDAY_INDEX and not self.is_holiday(day)

    # =========================================================================
    # Business-day arithmetic
    # =========================================================================

    def next_business_day(self, day: date) -> date:
        """Return the first business day strictly after a date."""
        return self._walk(day, 1)

    def previous_business_day(self, day: date) -> date:
        """Return the last business day strictly before a date."""
        return self._walk(day, -1)

    def shift_to_business_day(self, day: date, *, forward: bool = True) -> date:
        """Return the date itself if a business day, else walk to the nearest one.

        Args:
            day: Starting date
            forward: Walk forward (True) or backward (False)
        """
        if self.is_business_day(day):
            return day
        return self._walk(day, 1 if forward else -1)

    def add_business_days(self, day: date, count: int) -> date:
        """Advance a date by a number of business days.

        The start date itself is never counted; a negative count walks
        backwards.
        """
        step = 1 if count >= 0 else -1
        result = day
        for _ in range(abs(count)):
            result = self._walk(result, step)
        return result

    def count_business_days(self, start: date, end: date) -> int:
        """Count business days in an inclusive date range."""
        if end < start:
            return 0
        return sum(
            1
            for occurrence in rrule(DAILY, dtstart=start, until=end)
            if self.is_business_day(occurrence.date())
        )

    def business_days_between(self, start: date, end: date) -> list[date]:
        """Return the business days of an inclusive date range, in order."""
        if end < start:
            return []
        return [
            occurrence.date()
            for occurrence in rrule(DAILY, dtstart=start, until=end)
            if self.is_business_day(occurrence.date())
        ]

    def _walk(self, day: date, step: int) -> date:
        """Step one day at a time until a business day is reached."""
        current = day
        for _ in range(const.MAX_DATE_CALCULATION_ITERATIONS):
            current += timedelta(days=step)
            if self.is_business_day(current):
                return current

        const.LOGGER.warning(
            "CalendarAuthority: Max iterations reached walking from %s", day
        )
        return day
