"""
Error kinds for event definitions and the timetable store.

The expander never raises these to its caller: a broken definition is skipped
and reported as a DefinitionIssue next to the occurrences, so one bad entry
cannot hide the rest of the timetable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mytimetable.model import EventDefinition


class ErrorKind(str, Enum):
    MALFORMED_TIME = "malformed_time"
    INVALID_RANGE = "invalid_range"
    EMPTY_WEEKDAY_SET = "empty_weekday_set"
    INVALID_DEFINITION = "invalid_definition"


class TimetableError(Exception):
    """Base exception for all timetable errors."""

    pass


class DefinitionError(TimetableError):
    """A definition that can never produce a valid occurrence.

    Subclasses narrow kind down to the specific problem.
    """

    kind = ErrorKind.INVALID_DEFINITION


class MalformedTime(DefinitionError):
    """A time string not matching HH:MM."""

    kind = ErrorKind.MALFORMED_TIME


class InvalidRange(DefinitionError):
    """valid_from after valid_until, or start time not before end time."""

    kind = ErrorKind.INVALID_RANGE


class EmptyWeekdaySet(DefinitionError):
    """No (known) weekday selected."""

    kind = ErrorKind.EMPTY_WEEKDAY_SET


class StorageError(TimetableError):
    """An import file that is not a timetable (JSON array of records)."""

    pass


@dataclass(frozen=True)
class DefinitionIssue:
    """
    One definition excluded from an expansion, and why.

    index is the position of the definition in the snapshot passed to expand().
    """

    definition: "EventDefinition"
    index: int
    kind: ErrorKind
    message: str
