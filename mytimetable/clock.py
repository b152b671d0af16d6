"""
Calendar clock: "what time is it" in one fixed civil timezone.

Everything downstream (expander, resolver, layout) works on plain dates and
minutes since local midnight. Only this module knows about the UTC offset, so
"today" computed from the clock and dates read from timetable.json always
agree.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from mytimetable.errors import MalformedTime

# Sunday first, matching date.isoweekday() % 7
WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

_WEEKDAY_LOOKUP = {}
for _name in WEEKDAYS:
    _WEEKDAY_LOOKUP[_name.lower()] = _name
    _WEEKDAY_LOOKUP[_name[:3].lower()] = _name
_WEEKDAY_LOOKUP.update({"tues": "Tuesday", "thur": "Thursday", "thurs": "Thursday"})

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_offset(text: str) -> int:
    """
    Convert '+HH:MM', '-HHMM' or 'UTC' to minutes east of UTC.
    Raises ValueError for anything else.
    """
    s = text.strip()
    if s.upper() in {"UTC", "Z", "GMT", ""}:
        return 0
    m = _OFFSET_RE.match(s)
    if not m:
        raise ValueError(f"Invalid UTC offset: {text!r}")
    sign_s, hh_s, mm_s = m.groups()
    hh = int(hh_s)
    mm = int(mm_s)
    if hh > 23 or mm > 59:
        raise ValueError(f"Invalid UTC offset: {text!r}")
    sign = 1 if sign_s == "+" else -1
    return sign * (hh * 60 + mm)


class CalendarClock:
    """
    Current instant in a fixed-offset civil timezone.

    source returns the current instant as an aware datetime (any zone);
    tests pass a lambda returning a fixed moment.
    """

    def __init__(self, utc_offset_minutes: int = 0, source: Optional[Callable[[], datetime]] = None) -> None:
        self.tz = timezone(timedelta(minutes=utc_offset_minutes))
        self._source = source or _utc_now

    @classmethod
    def from_offset(cls, text: str, source: Optional[Callable[[], datetime]] = None) -> "CalendarClock":
        return cls(_parse_offset(text), source=source)

    def now(self) -> datetime:
        return self._source().astimezone(self.tz)

    def today(self) -> date:
        return date_only(self.now())


def date_only(instant: datetime) -> date:
    return instant.date()


def minute_of_day(instant: datetime) -> int:
    return instant.hour * 60 + instant.minute


def weekday_of(day: date) -> str:
    return WEEKDAYS[day.isoweekday() % 7]


def to_iso_date(day: date) -> str:
    return day.isoformat()


def parse_iso_date(text: str) -> date:
    """
    Parse 'YYYY-MM-DD'. Raises ValueError for invalid dates.
    """
    return datetime.strptime(text.strip(), "%Y-%m-%d").date()


def parse_hhmm(text: str) -> int:
    """
    Convert 'HH:MM' to minutes since midnight.
    Raises MalformedTime for invalid formats.
    """
    m = _HHMM_RE.match(str(text).strip())
    if not m:
        raise MalformedTime(f"Invalid time format: {text!r}")
    h = int(m.group(1))
    mins = int(m.group(2))
    if not (0 <= h <= 23 and 0 <= mins <= 59):
        raise MalformedTime(f"Invalid time value: {text!r}")
    return h * 60 + mins


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_weekday(name: str) -> Optional[str]:
    """
    Map 'Mon', 'monday', 'MONDAY' ... to the canonical long name.
    Returns None for names that are not weekdays.
    """
    return _WEEKDAY_LOOKUP.get(str(name).strip().lower())
