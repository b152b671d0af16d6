"""
Current / next occurrence.

Canonical order is ascending (date, start_minute), ties broken by the order of
the definitions in the snapshot. Intervals are half-open: a class ending at
10:30 is no longer current at 10:30.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from mytimetable.clock import date_only, minute_of_day
from mytimetable.model import Occurrence, Resolution


def canonical_key(occ: Occurrence) -> tuple[date, int, int]:
    return (occ.date, occ.start_minute, occ.order)


def canonical_sort(occurrences: Iterable[Occurrence]) -> list[Occurrence]:
    return sorted(occurrences, key=canonical_key)


def resolve(occurrences: Iterable[Occurrence], now: datetime) -> Resolution:
    """
    Pick the in-progress and the upcoming occurrence relative to now.

    now must come from CalendarClock.now(); its wall-clock date and minute are
    compared directly with the occurrences.
    If several occurrences are in progress, the first in canonical order wins.
    """
    today = date_only(now)
    current_minute = minute_of_day(now)

    current: Optional[Occurrence] = None
    upcoming: Optional[Occurrence] = None
    upcoming_today: Optional[Occurrence] = None

    for occ in canonical_sort(occurrences):
        if occ.date < today:
            continue
        if occ.date > today:
            # Today is fully scanned once a later date shows up
            if upcoming is None:
                upcoming = occ
            break
        if current is None and occ.start_minute <= current_minute < occ.end_minute:
            current = occ
        elif occ.start_minute > current_minute and upcoming_today is None:
            upcoming_today = occ
            upcoming = occ

    return Resolution(current=current, next=upcoming, next_today=upcoming_today)
