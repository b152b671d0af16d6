"""
iCalendar (.ics) export.

Each definition becomes one recurring VEVENT (weekly RRULE plus one EXDATE per
exception date), so the file can be imported into:
- Google Calendar
- Outlook
- Apple Calendar

Times are written as floating local times, i.e. in the timetable's own clock.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Sequence

from mytimetable.clock import format_hhmm, normalize_weekday, parse_iso_date
from mytimetable.expand import expand
from mytimetable.logging import get_logger
from mytimetable.model import EventDefinition

log = get_logger(__name__)

_BYDAY = {
    "Monday": "MO",
    "Tuesday": "TU",
    "Wednesday": "WE",
    "Thursday": "TH",
    "Friday": "FR",
    "Saturday": "SA",
    "Sunday": "SU",
}


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_local(day: date, minutes: int) -> str:
    """
    Convert date + minutes since midnight to 'YYYYMMDDTHHMM00'.
    """
    return f"{day.strftime('%Y%m%d')}T{format_hhmm(minutes).replace(':', '')}00"


def _exdates(definition: EventDefinition, start_minute: int) -> list[str]:
    out: list[str] = []
    for raw in sorted(definition.exception_dates):
        try:
            d = parse_iso_date(raw)
        except ValueError:
            continue
        # the expander matches exceptions against YYYY-MM-DD exactly
        if d.isoformat() != raw:
            continue
        # exceptions outside the validity range have no effect
        if definition.valid_from <= d <= definition.valid_until:
            out.append(_dt_local(d, start_minute))
    return out


def export_definitions_to_ics(definitions: Sequence[EventDefinition], out_path: str | Path) -> int:
    """
    Export definitions to an .ics file. Returns number of exported events.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//MyTimetable//EN")
    lines.append("CALSCALE:GREGORIAN")

    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")

    count = 0
    for index, definition in enumerate(definitions):
        # First occurrence gives DTSTART; invalid definitions come back as issues
        result = expand([definition], definition.valid_from, definition.valid_until)
        if result.issues or not result.occurrences:
            log.info("ics_definition_skipped", index=index, title=definition.title)
            continue

        first = result.occurrences[0]
        weekdays = {normalize_weekday(d) for d in definition.weekdays}
        byday = ",".join(code for name, code in _BYDAY.items() if name in weekdays)

        summary = f"{definition.identifier} {definition.title}".strip() or "MyTimetable Class"
        uid = f"{definition.identifier or 'class'}-{_dt_local(first.date, first.start_minute)}-{index}@mytimetable"

        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{_ics_escape(uid)}")
        lines.append(f"DTSTAMP:{dtstamp}")
        lines.append(f"DTSTART:{_dt_local(first.date, first.start_minute)}")
        lines.append(f"DTEND:{_dt_local(first.date, first.end_minute)}")
        lines.append(f"RRULE:FREQ=WEEKLY;BYDAY={byday};UNTIL={definition.valid_until.strftime('%Y%m%d')}T235959")
        for exdate in _exdates(definition, first.start_minute):
            lines.append(f"EXDATE:{exdate}")
        lines.append(f"SUMMARY:{_ics_escape(summary)}")
        if definition.location:
            lines.append(f"LOCATION:{_ics_escape(definition.location)}")
        if definition.instructor_name:
            lines.append(f"DESCRIPTION:{_ics_escape('Instructor: ' + definition.instructor_name)}")
        lines.append("END:VEVENT")
        count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return count
