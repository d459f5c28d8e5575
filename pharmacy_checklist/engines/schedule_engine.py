"""Schedule Engine - Frequency cutoff calculation for pharmacy checklist tasks.

Given a task instance's nominal date and ONE recurrence code, computes when
the instance appears, when it is due, when it locks (becomes missed) and how
long a completion carries over:

    Family              Appearance                 Due                     Lock
    once_off(_sticky)   instance (or due if <)     explicit due date       never
    every_day           instance                   instance                instance 23:59
    once_weekly         first biz day Mon–Sat      last biz day Mon–Sat    due 23:59
    monday … saturday   target day, holiday-shift  = appearance            last biz day of week
    start of month      first biz day of month     +5 business days        last Saturday (biz)
    once_monthly        first biz day of month     last Saturday (biz)     due 23:59
    end of month        Monday of final ≥5-day wk  last Saturday (biz)     due 23:59

Calendar arithmetic uses `dateutil.relativedelta` for week and month
anchors and the CalendarAuthority for holiday shifts.

The calculator never raises for malformed task data. Every fallback is
logged and recorded on the returned FrequencyCutoff (degraded + warnings).

IMPORTANT: This module must NOT import from managers to avoid circular
imports. Only import from const.py, type_defs.py, utils and sibling engines.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Any, ClassVar

from dateutil.relativedelta import SA

from .. import const
from ..utils.dt_utils import (
    dt_combine_local,
    dt_format_short,
    dt_parse_date,
    dt_parse_time,
    dt_today_local,
    first_of_month,
    last_weekday_of_month,
    week_monday,
)

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from ..type_defs import TaskData
    from .calendar_engine import CalendarAuthority


LOCK_TIME = time(const.END_OF_DAY_HOUR, const.END_OF_DAY_MINUTE)


# =============================================================================
# FREQUENCY CUTOFF DATA STRUCTURE
# =============================================================================


@dataclass(frozen=True)
class FrequencyCutoff:
    """Cutoffs for one (task instance, recurrence code) pair.

    Attributes:
        frequency: Normalized recurrence code the cutoff was computed for
        family: FAMILY_* constant of that code
        appearance_date: First date the instance is visible
        due_date: Date the instance should be completed by
        due_time: Time of day on due_date after which it is overdue
        lock_date: Date after which an incomplete instance is missed
                   (None = never locks, once-off tasks)
        lock_time: Time of day on lock_date the lock applies (None with lock_date)
        carry_window_start: First date a completion of this cycle covers
        carry_window_end: Last date a completion of this cycle shows as
                          completed (None = unbounded)
        degraded: True when any fallback was applied
        warnings: Human-readable description of each fallback applied
    """

    frequency: str
    family: str
    appearance_date: date
    due_date: date
    due_time: time
    lock_date: date | None
    lock_time: time | None
    carry_window_start: date
    carry_window_end: date | None
    degraded: bool = False
    warnings: tuple[str, ...] = ()

    def due_moment(self, tz: ZoneInfo | None = None) -> datetime:
        """Return the local moment the instance becomes overdue."""
        return dt_combine_local(self.due_date, self.due_time, tz)

    def lock_moment(self, tz: ZoneInfo | None = None) -> datetime | None:
        """Return the local moment the instance locks, or None if it never does."""
        if self.lock_date is None:
            return None
        return dt_combine_local(self.lock_date, self.lock_time or LOCK_TIME, tz)

    def in_carry_window(self, day: date) -> bool:
        """Check whether a date falls inside this cycle's carry window."""
        if day < self.carry_window_start:
            return False
        return self.carry_window_end is None or day <= self.carry_window_end

    def describe_due(self) -> str:
        """Return a display hint such as "due Thu, 4 Oct 17:00"."""
        return f"due {dt_format_short(self.due_date, self.due_time)}"


# =============================================================================
# CUTOFF CALCULATOR
# =============================================================================


class CutoffCalculator:
    """Pure calculator turning (instance date, recurrence code) into cutoffs.

    The only collaborator is the CalendarAuthority, read for holiday answers.
    Holiday data must be loaded by the caller beforehand; an unloaded year is
    treated as having no holidays and the cutoff is flagged degraded.
    """

    FAMILY_BY_FREQUENCY: ClassVar[dict[str, str]] = {
        const.FREQUENCY_ONCE_OFF: const.FAMILY_ONCE_OFF,
        const.FREQUENCY_ONCE_OFF_STICKY: const.FAMILY_ONCE_OFF,
        const.FREQUENCY_EVERY_DAY: const.FAMILY_EVERY_DAY,
        const.FREQUENCY_ONCE_WEEKLY: const.FAMILY_ONCE_WEEKLY,
        const.FREQUENCY_ONCE_MONTHLY: const.FAMILY_ONCE_MONTHLY,
        **dict.fromkeys(const.WEEKDAY_FREQUENCIES, const.FAMILY_SPECIFIC_WEEKDAY),
        **dict.fromkeys(const.FREQUENCIES_START_OF_MONTH, const.FAMILY_START_OF_MONTH),
        **dict.fromkeys(const.FREQUENCIES_END_OF_MONTH, const.FAMILY_END_OF_MONTH),
    }

    def __init__(
        self,
        calendar: CalendarAuthority,
        *,
        default_due_time: str = const.DEFAULT_DUE_TIME,
    ) -> None:
        """Initialize the calculator.

        Args:
            calendar: Holiday / business-day authority to consult
            default_due_time: Due time used when a task sets none ("HH:MM")
        """
        self._calendar = calendar
        self._default_due_time = dt_parse_time(default_due_time) or time(17, 0)

    @property
    def calendar(self) -> CalendarAuthority:
        """The CalendarAuthority this calculator reads."""
        return self._calendar

    # =========================================================================
    # Vocabulary helpers
    # =========================================================================

    @staticmethod
    def normalize_frequency(code: str | None) -> str:
        """Normalize a recurrence code (case, whitespace, legacy aliases).

        Example:
            " Monday " → "monday", "start_every_month" → "start_of_every_month"
        """
        if not code or not isinstance(code, str):
            return ""
        normalized = code.strip().lower().replace("-", "_").replace(" ", "_")
        return const.FREQUENCY_ALIASES.get(normalized, normalized)

    @classmethod
    def get_family(cls, code: str | None) -> str:
        """Return the FAMILY_* constant of a recurrence code."""
        return cls.FAMILY_BY_FREQUENCY.get(
            cls.normalize_frequency(code), const.FAMILY_UNKNOWN
        )

    @classmethod
    def is_known_frequency(cls, code: str | None) -> bool:
        """Check whether a code belongs to the recurrence vocabulary."""
        return cls.get_family(code) != const.FAMILY_UNKNOWN

    # =========================================================================
    # Public API
    # =========================================================================

    def compute_cutoffs(
        self,
        instance_date: date | str | None,
        recurrence_code: str | None,
        due_date: date | str | None = None,
        due_time: time | str | None = None,
        *,
        fallback_date: date | None = None,
    ) -> FrequencyCutoff:
        """Compute the cutoffs of one recurrence code for an instance date.

        Args:
            instance_date: Nominal date the instance was generated for
            recurrence_code: One code of the recurrence vocabulary
            due_date: Explicit due date (used by once-off codes only)
            due_time: Explicit due time; defaults to the configured due time
            fallback_date: Date used when instance_date cannot be parsed
                (callers pass the as-of date; defaults to today)

        Returns:
            FrequencyCutoff for the code. Never raises for malformed input.
        """
        warnings: list[str] = []
        anchor = self._resolve_instance_date(instance_date, fallback_date, warnings)
        resolved_time = self._resolve_due_time(due_time, warnings)
        frequency = self.normalize_frequency(recurrence_code)
        family = self.FAMILY_BY_FREQUENCY.get(frequency, const.FAMILY_UNKNOWN)

        if family == const.FAMILY_ONCE_OFF:
            window = self._once_off(anchor, due_date, warnings)
        elif family == const.FAMILY_EVERY_DAY:
            window = self._single_day(anchor)
        elif family == const.FAMILY_ONCE_WEEKLY:
            window = self._once_weekly(anchor, warnings)
        elif family == const.FAMILY_SPECIFIC_WEEKDAY:
            window = self._specific_weekday(
                anchor, const.WEEKDAY_FREQUENCIES[frequency], warnings
            )
        elif family == const.FAMILY_START_OF_MONTH:
            window = self._start_of_month(
                self._month_anchor(anchor, frequency), warnings
            )
        elif family == const.FAMILY_ONCE_MONTHLY:
            window = self._once_monthly(anchor, warnings)
        elif family == const.FAMILY_END_OF_MONTH:
            window = self._end_of_month(
                self._month_anchor(anchor, frequency), warnings
            )
        else:
            const.LOGGER.warning(
                "CutoffCalculator: Unrecognized recurrence code %r, "
                "falling back to single-day cutoff",
                recurrence_code,
            )
            warnings.append(const.WARNING_UNKNOWN_FREQUENCY.format(code=recurrence_code))
            window = self._single_day(anchor)

        appearance, due, lock, carry_start, carry_end = window
        self._check_holiday_years(
            warnings, anchor, appearance, due, lock or due, carry_end or due
        )

        cutoff = FrequencyCutoff(
            frequency=frequency,
            family=family,
            appearance_date=appearance,
            due_date=due,
            due_time=resolved_time,
            lock_date=lock,
            lock_time=LOCK_TIME if lock is not None else None,
            carry_window_start=carry_start,
            carry_window_end=carry_end,
            degraded=bool(warnings),
            warnings=tuple(warnings),
        )
        const.LOGGER.debug(
            "CutoffCalculator: %s @ %s → appear=%s due=%s lock=%s carry=%s..%s",
            frequency,
            anchor,
            appearance,
            due,
            lock,
            carry_start,
            carry_end,
        )
        return cutoff

    def compute_task_cutoffs(
        self,
        task: TaskData | dict[str, Any],
        instance_date: date | str | None,
        *,
        fallback_date: date | None = None,
    ) -> dict[str, FrequencyCutoff]:
        """Compute cutoffs for every recurrence code of a task.

        Codes are evaluated independently and never merged; duplicates
        (after normalization) are computed once.

        Returns:
            Mapping of normalized code → FrequencyCutoff, in task order.
        """
        cutoffs: dict[str, FrequencyCutoff] = {}
        for code in task.get(const.DATA_TASK_FREQUENCIES) or []:
            normalized = self.normalize_frequency(code)
            if normalized in cutoffs:
                continue
            cutoffs[normalized] = self.compute_cutoffs(
                instance_date,
                code,
                task.get(const.DATA_TASK_DUE_DATE),
                task.get(const.DATA_TASK_DUE_TIME),
                fallback_date=fallback_date,
            )
        return cutoffs

    # =========================================================================
    # Private: input resolution
    # =========================================================================

    def _resolve_instance_date(
        self,
        instance_date: date | str | None,
        fallback_date: date | None,
        warnings: list[str],
    ) -> date:
        """Parse the instance date, falling back to the as-of date."""
        parsed = dt_parse_date(instance_date)
        if parsed is not None:
            return parsed

        fallback = fallback_date or dt_today_local()
        const.LOGGER.warning(
            "CutoffCalculator: Invalid instance date %r, using %s",
            instance_date,
            fallback,
        )
        warnings.append(const.WARNING_INVALID_INSTANCE_DATE.format(value=instance_date))
        return fallback

    def _resolve_due_time(self, due_time: time | str | None, warnings: list[str]) -> time:
        """Parse the explicit due time, defaulting when absent or invalid."""
        if due_time is None or due_time == "":
            return self._default_due_time

        parsed = dt_parse_time(due_time)
        if parsed is not None:
            return parsed

        const.LOGGER.warning(
            "CutoffCalculator: Invalid due time %r, using %s",
            due_time,
            self._default_due_time,
        )
        warnings.append(const.WARNING_INVALID_DUE_TIME.format(value=due_time))
        return self._default_due_time

    def _check_holiday_years(self, warnings: list[str], *days: date) -> None:
        """Flag the cutoff degraded for every touched year lacking holidays."""
        for year in self._calendar.missing_years(*days):
            const.LOGGER.debug(
                "CutoffCalculator: Holidays for %s not loaded, ignoring holidays",
                year,
            )
            warnings.append(const.WARNING_HOLIDAYS_NOT_LOADED.format(year=year))

    # =========================================================================
    # Private: per-family windows
    # Each returns (appearance, due, lock, carry_start, carry_end)
    # =========================================================================

    def _once_off(
        self,
        anchor: date,
        due_date: date | str | None,
        warnings: list[str],
    ) -> tuple[date, date, date | None, date, date | None]:
        """Once-off: explicit due date, never locks, unbounded carry."""
        due = dt_parse_date(due_date)
        if due is None:
            if due_date:
                const.LOGGER.warning(
                    "CutoffCalculator: Invalid once-off due date %r, "
                    "using instance date %s",
                    due_date,
                    anchor,
                )
                warnings.append(const.WARNING_INVALID_DUE_DATE.format(value=due_date))
            else:
                const.LOGGER.warning(
                    "CutoffCalculator: Once-off task has no due date, "
                    "using instance date %s",
                    anchor,
                )
                warnings.append(const.WARNING_ONCE_OFF_WITHOUT_DUE_DATE)
            due = anchor

        appearance = min(anchor, due)
        return appearance, due, None, appearance, None

    def _single_day(
        self, anchor: date
    ) -> tuple[date, date, date | None, date, date | None]:
        """Every day (and unknown codes): everything on the instance date."""
        return anchor, anchor, anchor, anchor, anchor

    def _once_weekly(
        self, anchor: date, warnings: list[str]
    ) -> tuple[date, date, date | None, date, date | None]:
        """Once weekly: first to last business day of the Mon–Sat week."""
        monday = week_monday(anchor)
        saturday = monday + timedelta(days=const.DAYS_MONDAY_TO_SATURDAY)
        business_days = self._calendar.business_days_between(monday, saturday)

        if not business_days:
            self._warn_no_business_day(monday, saturday, warnings)
            return monday, saturday, saturday, monday, saturday

        appearance, due = business_days[0], business_days[-1]
        return appearance, due, due, appearance, due

    def _specific_weekday(
        self, anchor: date, target_weekday: int, warnings: list[str]
    ) -> tuple[date, date, date | None, date, date | None]:
        """Specific weekday: target day with holiday shift, locks at week end."""
        monday = week_monday(anchor)
        saturday = monday + timedelta(days=const.DAYS_MONDAY_TO_SATURDAY)
        target = monday + timedelta(days=target_weekday)
        business_days = self._calendar.business_days_between(monday, saturday)

        if not business_days:
            self._warn_no_business_day(monday, saturday, warnings)
            return target, target, saturday, target, saturday

        if self._calendar.is_business_day(target):
            appearance = target
        else:
            earlier = [day for day in business_days if day < target]
            later = [day for day in business_days if day > target]
            if target_weekday != 0 and earlier:
                # Tue–Sat try the nearest earlier business day first
                appearance = earlier[-1]
            elif later:
                appearance = later[0]
            else:
                appearance = earlier[-1]
            const.LOGGER.debug(
                "CutoffCalculator: %s is a holiday, shifted to %s", target, appearance
            )

        lock = business_days[-1]
        return appearance, appearance, lock, appearance, lock

    def _start_of_month(
        self, anchor: date, warnings: list[str]
    ) -> tuple[date, date, date | None, date, date | None]:
        """Start of month: first business day, due +5 business days."""
        appearance = self._first_business_day_of_month(anchor)
        lock = self._last_business_saturday(anchor, warnings)
        due = self._calendar.add_business_days(
            appearance, const.BUSINESS_DAYS_TO_START_OF_MONTH_DUE
        )
        due = min(due, lock)
        return appearance, due, lock, appearance, lock

    def _once_monthly(
        self, anchor: date, warnings: list[str]
    ) -> tuple[date, date, date | None, date, date | None]:
        """Once monthly: first business day through last business Saturday."""
        appearance = self._first_business_day_of_month(anchor)
        due = self._last_business_saturday(anchor, warnings)
        return appearance, due, due, appearance, due

    def _end_of_month(
        self, anchor: date, warnings: list[str]
    ) -> tuple[date, date, date | None, date, date | None]:
        """End of month: Monday of the final week with ≥5 business days."""
        due = self._last_business_saturday(anchor, warnings)
        monday = week_monday(due)
        month_start = first_of_month(anchor)

        while (
            self._calendar.count_business_days(monday, due)
            < const.MIN_BUSINESS_DAYS_IN_END_OF_MONTH_WEEK
            and monday - timedelta(days=7) >= month_start
        ):
            monday -= timedelta(days=7)

        appearance = self._calendar.shift_to_business_day(monday)
        if appearance > due:
            self._warn_no_business_day(monday, due, warnings)
            appearance = monday

        week_end = monday + timedelta(days=const.DAYS_MONDAY_TO_SATURDAY)
        return appearance, due, due, appearance, min(week_end, due)

    # =========================================================================
    # Private: calendar helpers
    # =========================================================================

    def _month_anchor(self, anchor: date, frequency: str) -> date:
        """Resolve a month-specific code to the month it next applies in.

        Every-month codes return the anchor unchanged. A code such as
        "start_of_month_mar" evaluated in May anchors to March of next year.
        """
        for prefix in (
            const.FREQUENCY_START_OF_MONTH_PREFIX,
            const.FREQUENCY_END_OF_MONTH_PREFIX,
        ):
            if not frequency.startswith(prefix):
                continue
            month = const.MONTH_ABBREVIATIONS.index(frequency[len(prefix) :]) + 1
            if month == anchor.month:
                return anchor
            year = anchor.year if month > anchor.month else anchor.year + 1
            return date(year, month, 1)
        return anchor

    def _first_business_day_of_month(self, anchor: date) -> date:
        """Return the first business day of the anchor's month."""
        return self._calendar.shift_to_business_day(first_of_month(anchor))

    def _last_business_saturday(self, anchor: date, warnings: list[str]) -> date:
        """Return the month's last Saturday, pulled back if it is a holiday."""
        saturday = last_weekday_of_month(anchor, SA)
        if self._calendar.is_business_day(saturday):
            return saturday

        earlier = self._calendar.previous_business_day(saturday)
        if earlier.month != saturday.month or earlier >= saturday:
            self._warn_no_business_day(first_of_month(saturday), saturday, warnings)
            return saturday
        return earlier

    def _warn_no_business_day(
        self, start: date, end: date, warnings: list[str]
    ) -> None:
        """Record that a range had no business day to shift onto."""
        const.LOGGER.warning(
            "CutoffCalculator: No business day between %s and %s", start, end
        )
        warnings.append(const.WARNING_NO_BUSINESS_DAY.format(start=start, end=end))
