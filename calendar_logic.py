"""Pure calendar calculations — no UI dependencies."""

from __future__ import annotations

import calendar
import enum
from dataclasses import dataclass
from datetime import date, timedelta

from exceptions import ComputationFailure

DAY_ABBR = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

DAYS_PER_WEEK = 7


class PaginationDirection(enum.Enum):
    """Which way a cursor walks away from the anchor month."""

    BACKWARD = "backward"
    FORWARD = "forward"


@dataclass(frozen=True)
class Week:
    first_day: date
    last_day: date

    @property
    def days(self) -> list[date]:
        return [self.first_day + timedelta(days=i) for i in range(DAYS_PER_WEEK)]


@dataclass(frozen=True)
class Month:
    """A calendar month with its weeks padded to full 7-day rows."""

    year: int
    month: int
    weeks: tuple[Week, ...]

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month


def _first_weekday(start_week_with_sunday: bool) -> int:
    return calendar.SUNDAY if start_week_with_sunday else calendar.MONDAY


def offset_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Return (year, month) shifted by ``delta`` months."""
    total = (year * 12 + month - 1) + delta
    return total // 12, total % 12 + 1


def weekday_index(day: date, start_week_with_sunday: bool = False) -> int:
    """Return the 1-based column of ``day``: 1 is the first day of the week."""
    return (day.weekday() - _first_weekday(start_week_with_sunday)) % DAYS_PER_WEEK + 1


def compute_month(
    base: tuple[int, int],
    page_offset: int,
    start_week_with_sunday: bool = False,
) -> Month:
    """Return the month ``page_offset`` months away from ``base``.

    The first week starts on the configured week-start day on or before the
    1st, the last week ends on or after the final day of the month. Padding
    days from the neighbouring months are part of the weeks. Date bounds are
    never applied here; see :func:`is_past_boundary`.

    Raises:
        ComputationFailure: the target month lies outside the supported
            date range.
    """
    base_year, base_month = base
    year, month = offset_month(base_year, base_month, page_offset)
    cal = calendar.Calendar(firstweekday=_first_weekday(start_week_with_sunday))
    try:
        rows = cal.monthdatescalendar(year, month)
    except (ValueError, OverflowError) as exc:
        raise ComputationFailure(
            f"cannot build month {year}-{month:02d} "
            f"(offset {page_offset} from {base_year}-{base_month:02d})"
        ) from exc
    weeks = tuple(Week(first_day=row[0], last_day=row[-1]) for row in rows)
    return Month(year=year, month=month, weeks=weeks)


def is_past_boundary(
    month: Month,
    min_date: date | None,
    max_date: date | None,
    direction: PaginationDirection,
) -> bool:
    """Return True if no further month should be requested in ``direction``.

    The padded week range is compared against the bound, so a month whose
    leading or trailing padding already reaches the bound is the last page.
    """
    if direction is PaginationDirection.BACKWARD:
        return min_date is not None and min_date >= month.weeks[0].first_day
    return max_date is not None and max_date <= month.weeks[-1].last_day


def month_grid(month: Month) -> list[list[date | None]]:
    """Return one row per week; days outside the month are None."""
    return [
        [day if month.contains(day) else None for day in week.days]
        for week in month.weeks
    ]


def day_headers(start_week_with_sunday: bool = False) -> list[str]:
    """Return weekday abbreviations in column order."""
    if start_week_with_sunday:
        return DAY_ABBR[-1:] + DAY_ABBR[:-1]
    return list(DAY_ABBR)


def weekend_columns(start_week_with_sunday: bool = False) -> set[int]:
    """Return the 0-based columns holding Saturday and Sunday."""
    return {0, 6} if start_week_with_sunday else {5, 6}


def day_of_year(d: date) -> int:
    """Return the 1-based day-of-year for the given date."""
    return d.timetuple().tm_yday
