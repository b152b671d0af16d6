"""
Occurrence expansion.

Turns weekly-recurring definitions into concrete dated occurrences inside an
inclusive date window. An occurrence exists for date D iff:
    weekday(D) in weekdays
    AND valid_from <= D <= valid_until
    AND D not in exception_dates

Definitions are validated one by one. A broken definition is skipped and
reported in ExpansionResult.issues; it never stops the others.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Sequence

from mytimetable.clock import normalize_weekday, parse_hhmm, weekday_of
from mytimetable.errors import DefinitionError, DefinitionIssue, EmptyWeekdaySet, InvalidRange
from mytimetable.logging import get_logger
from mytimetable.model import EventDefinition, Occurrence
from mytimetable.resolve import canonical_sort

log = get_logger(__name__)


@dataclass
class ExpansionResult:
    occurrences: list[Occurrence] = field(default_factory=list)
    issues: list[DefinitionIssue] = field(default_factory=list)


def validate_definition(definition: EventDefinition) -> tuple[int, int]:
    """
    Check one definition and return its (start_minute, end_minute).

    Raises MalformedTime, InvalidRange or EmptyWeekdaySet.
    """
    start = parse_hhmm(definition.start_time)
    end = parse_hhmm(definition.end_time)
    if start >= end:
        raise InvalidRange(f"start time {definition.start_time} is not before end time {definition.end_time}")
    if definition.valid_from > definition.valid_until:
        raise InvalidRange(
            f"valid_from {definition.valid_from.isoformat()} is after valid_until {definition.valid_until.isoformat()}"
        )
    if not _weekday_set(definition):
        raise EmptyWeekdaySet("no weekday selected")
    return start, end


def _weekday_set(definition: EventDefinition) -> set[str]:
    names = (normalize_weekday(d) for d in definition.weekdays)
    return {n for n in names if n}


def expand(definitions: Sequence[EventDefinition], window_start: date, window_end: date) -> ExpansionResult:
    """
    Expand all definitions over [window_start, window_end].

    Occurrences come back in canonical order (date, start, definition order).
    """
    result = ExpansionResult()

    for index, definition in enumerate(definitions):
        try:
            start_minute, end_minute = validate_definition(definition)
        except DefinitionError as e:
            log.warning(
                "definition_skipped",
                index=index,
                title=definition.title,
                kind=e.kind.value,
                reason=str(e),
            )
            result.issues.append(DefinitionIssue(definition, index, e.kind, str(e)))
            continue

        # Only walk the part of the window the definition is valid in
        first = max(window_start, definition.valid_from)
        last = min(window_end, definition.valid_until)
        if first > last:
            continue

        weekdays = _weekday_set(definition)
        day = first
        while day <= last:
            if weekday_of(day) in weekdays and day.isoformat() not in definition.exception_dates:
                result.occurrences.append(Occurrence(definition, index, day, start_minute, end_minute))
            day += timedelta(days=1)

    result.occurrences = canonical_sort(result.occurrences)
    return result


def occurrences_on(definitions: Sequence[EventDefinition], day: date) -> list[Occurrence]:
    """All occurrences of a single day (one cell of the month grid)."""
    return expand(definitions, day, day).occurrences


def group_by_date(occurrences: Sequence[Occurrence]) -> dict[date, list[Occurrence]]:
    """
    Bucket occurrences per date. Dates and the lists inside are in
    canonical order.
    """
    by_date: dict[date, list[Occurrence]] = defaultdict(list)
    for occ in canonical_sort(occurrences):
        by_date[occ.date].append(occ)
    return dict(by_date)
