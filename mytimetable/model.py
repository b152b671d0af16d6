"""
Central data model definitions used across the project.

This module defines the canonical structure of the timetable objects so that:
- all modules share the same field names
- definitions (stored) and occurrences (computed) are never confused
- everything derived from a definition can be used as a dict key

EventDefinition is the only stored object. Occurrence, TrackAssignment and
Resolution are recomputed for every query and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterator, Optional, Tuple, FrozenSet


@dataclass(frozen=True)
class EventDefinition:
    """
    One recurring weekly class session as stored in timetable.json.

    start_time/end_time stay as 'HH:MM' strings: they are checked when the
    definition is expanded, so a typo in one entry only drops that entry.
    """

    title: str
    identifier: str
    location: str
    instructor_name: str
    weekdays: Tuple[str, ...]
    valid_from: date
    valid_until: date
    start_time: str
    end_time: str
    exception_dates: FrozenSet[str] = field(default_factory=frozenset)
    instructor_email: str = ""
    contact_email: str = ""


@dataclass(frozen=True)
class Occurrence:
    """
    One concrete calendar-dated instance of an EventDefinition.

    order is the index of the definition in the snapshot it was expanded
    from; it breaks ties between occurrences starting at the same minute.
    """

    definition: EventDefinition
    order: int
    date: date
    start_minute: int
    end_minute: int

    @property
    def iso_date(self) -> str:
        return self.date.isoformat()

    def overlaps(self, other: "Occurrence") -> bool:
        # start < other_end AND end > other_start, on the same date
        return (
            self.date == other.date
            and self.start_minute < other.end_minute
            and self.end_minute > other.start_minute
        )


@dataclass(frozen=True)
class TrackAssignment:
    """Horizontal lane of an occurrence within its day."""

    track: int
    total_tracks: int


@dataclass(frozen=True)
class Resolution:
    current: Optional[Occurrence] = None
    next: Optional[Occurrence] = None
    next_today: Optional[Occurrence] = None


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range over which occurrences are expanded."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        return max((self.end - self.start).days + 1, 0)
