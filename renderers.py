"""Default text renderers for month headers and day cells.

Any callable with the same signature can replace these; the window only
ever calls them, it never subclasses anything.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Sequence

from calendar_logic import Week

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

MonthRenderer = Callable[[int, int, Sequence[Week]], str]
DayRenderer = Callable[[date], str]
DayPressed = Callable[[date], None]


def default_month_header(year: int, month: int, weeks: Sequence[Week] = ()) -> str:
    """Return e.g. ``"January 2021"``."""
    return f"{MONTH_NAMES[month - 1]} {year}"


def default_day_label(day: date) -> str:
    return str(day.day)
