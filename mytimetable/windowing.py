"""
Week- and month-aligned date windows.

The week view is Monday based (ISO), the month grid is Sunday based with a
fixed 6 x 7 layout so every month fits regardless of its first weekday.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Union

from mytimetable.model import DateWindow

GRID_DAYS = 42


def _as_date(day: Union[date, datetime]) -> date:
    if isinstance(day, datetime):
        return day.date()
    return day


def start_of_week(day: Union[date, datetime]) -> date:
    """Monday on or before day (Sunday counts as day 7 of the previous week)."""
    d = _as_date(day)
    return d - timedelta(days=d.isoweekday() - 1)


def week_window(day: Union[date, datetime], weeks: int = 1) -> DateWindow:
    if weeks < 1:
        raise ValueError(f"weeks must be >= 1, got {weeks}")
    start = start_of_week(day)
    return DateWindow(start, start + timedelta(days=7 * weeks - 1))


def month_grid(year: int, month: int) -> DateWindow:
    """Sunday on or before the 1st of the month through 41 days later."""
    first = date(year, month, 1)
    start = first - timedelta(days=first.isoweekday() % 7)
    return DateWindow(start, start + timedelta(days=GRID_DAYS - 1))


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def iter_dates(start: date, end: date) -> Iterator[date]:
    return DateWindow(start, end).days()
