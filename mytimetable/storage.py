"""
Persistent storage for the user's event definitions.

This module manages one JSON file (by default mytimetable/data/timetable.json,
see config.py) holding a JSON array of records in the web app's format:

    {"crn": "...", "title": "...", "profName": "...", "profEmail": "...",
     "contactEmail": "...", "location": "...",
     "startDate": "2025-09-01", "endDate": "2025-11-29",
     "startTime": "09:00", "endTime": "10:30",
     "weekdays": ["Monday"], "exceptions": ["2025-09-29"]}

Loading is defensive (a missing or corrupt file is an empty timetable),
importing is strict (a file that is not a timetable is rejected).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from mytimetable.clock import normalize_weekday, parse_iso_date
from mytimetable.config import get_config
from mytimetable.errors import StorageError
from mytimetable.logging import get_logger
from mytimetable.model import EventDefinition

log = get_logger(__name__)


def _default_store_path() -> Path:
    """
    Return the configured path of the timetable file.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    return get_config().store_path


def _resolve(path: str | Path | None) -> Path:
    return Path(path) if path is not None else _default_store_path()


def _text(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    return "" if value is None else str(value).strip()


def _string_list(record: dict[str, Any], key: str) -> list[str]:
    """
    Read a list-of-strings field. A single string counts as a one-element list.
    Raises ValueError for any other type.
    """
    value = record.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list, got {type(value).__name__}")
    return [str(x).strip() for x in value if str(x).strip()]


def _exception_dates(record: dict[str, Any]) -> frozenset[str]:
    """
    Exception dates normalised to YYYY-MM-DD. Unparseable values are dropped.
    """
    out: set[str] = set()
    for raw in _string_list(record, "exceptions"):
        try:
            out.add(parse_iso_date(raw).isoformat())
        except ValueError:
            log.warning("exception_date_dropped", title=record.get("title"), value=raw)
    return frozenset(out)


def definition_from_dict(record: dict[str, Any]) -> EventDefinition:
    """
    Build an EventDefinition from one stored record.

    Raises ValueError if startDate/endDate are missing or not ISO dates, or if
    weekdays/exceptions are neither a list nor a string.
    Unknown weekday names are dropped; times are kept as written.
    """
    weekdays: list[str] = []
    for raw in _string_list(record, "weekdays"):
        name = normalize_weekday(raw)
        if name and name not in weekdays:
            weekdays.append(name)

    exceptions = _exception_dates(record)

    return EventDefinition(
        title=_text(record, "title"),
        identifier=_text(record, "crn"),
        location=_text(record, "location"),
        instructor_name=_text(record, "profName"),
        instructor_email=_text(record, "profEmail"),
        contact_email=_text(record, "contactEmail"),
        weekdays=tuple(weekdays),
        valid_from=parse_iso_date(_text(record, "startDate")),
        valid_until=parse_iso_date(_text(record, "endDate")),
        start_time=_text(record, "startTime"),
        end_time=_text(record, "endTime"),
        exception_dates=exceptions,
    )


def definition_to_dict(definition: EventDefinition) -> dict[str, Any]:
    return {
        "crn": definition.identifier,
        "title": definition.title,
        "profName": definition.instructor_name,
        "profEmail": definition.instructor_email,
        "contactEmail": definition.contact_email,
        "location": definition.location,
        "startDate": definition.valid_from.isoformat(),
        "endDate": definition.valid_until.isoformat(),
        "startTime": definition.start_time,
        "endTime": definition.end_time,
        "weekdays": list(definition.weekdays),
        "exceptions": sorted(definition.exception_dates),
    }


def _definitions_from_records(records: list[Any]) -> list[EventDefinition]:
    out: list[EventDefinition] = []
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            log.warning("record_skipped", index=i, reason="not an object")
            continue
        try:
            out.append(definition_from_dict(record))
        except ValueError as e:
            log.warning("record_skipped", index=i, title=record.get("title"), reason=str(e))
    return out


def load_definitions(path: str | Path | None = None) -> list[EventDefinition]:
    """
    Load all definitions from the timetable file.

    Returns an empty list if the file does not exist or is invalid.
    Single broken records are skipped with a warning.
    """
    store_path = _resolve(path)

    # First run: file does not exist yet -> empty timetable
    if not store_path.exists():
        return []

    try:
        data = json.loads(store_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        log.warning("store_unreadable", path=str(store_path), reason=str(e))
        return []

    if not isinstance(data, list):
        log.warning("store_unreadable", path=str(store_path), reason="not a JSON array")
        return []

    return _definitions_from_records(data)


def save_definitions(definitions: Iterable[EventDefinition], path: str | Path | None = None) -> None:
    """
    Save definitions to the timetable file, in the given order.

    Creates parent directories if needed.
    """
    store_path = _resolve(path)
    store_path.parent.mkdir(parents=True, exist_ok=True)

    payload = [definition_to_dict(d) for d in definitions]
    store_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def import_definitions(source: str | Path, path: str | Path | None = None) -> list[EventDefinition]:
    """
    Replace the stored timetable with the contents of source.

    Raises StorageError if source cannot be read or is not a JSON array.
    """
    src = Path(source)
    try:
        data = json.loads(src.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise StorageError(f"Cannot read timetable file {src}: {e}") from e

    if not isinstance(data, list):
        raise StorageError(f"Invalid format in {src}: expected a JSON array")

    definitions = _definitions_from_records(data)
    save_definitions(definitions, path)
    return definitions


def export_definitions(out_path: str | Path, path: str | Path | None = None) -> int:
    """
    Copy the stored timetable to out_path. Returns number of definitions.
    """
    definitions = load_definitions(path)
    save_definitions(definitions, out_path)
    return len(definitions)
