"""
CLI (Command Line Interface).

Terminal commands for managing and viewing the weekly timetable, e.g.:

    mytimetable add --title "Algorithms" --days Mon,Wed --from 2025-09-01 --until 2025-11-29 --start 09:00 --end 10:30
    mytimetable list
    mytimetable show 0
    mytimetable edit 0 --start 10:15 --end 11:45
    mytimetable week
    mytimetable month --year 2025 --month 9
    mytimetable status
    mytimetable layout 2025-09-01
    mytimetable conflicts
    mytimetable export-ics timetable.ics

Every command reads a fresh snapshot of the stored definitions and hands it to
the engine (expand / resolve / layout); nothing is cached between commands.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from mytimetable.clock import (
    WEEKDAYS,
    CalendarClock,
    format_hhmm,
    normalize_weekday,
    parse_iso_date,
    weekday_of,
)
from mytimetable.config import get_config
from mytimetable.conflicts import find_conflicts
from mytimetable.errors import TimetableError
from mytimetable.expand import ExpansionResult, expand, group_by_date, validate_definition
from mytimetable.export_ics import export_definitions_to_ics
from mytimetable.layout import layout, layout_days
from mytimetable.logging import setup_logging
from mytimetable.model import EventDefinition, Occurrence, Resolution
from mytimetable.resolve import resolve
from mytimetable.storage import (
    export_definitions,
    import_definitions,
    load_definitions,
    save_definitions,
)
from mytimetable.windowing import month_grid, week_window

console = Console()

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def _clock() -> CalendarClock:
    return CalendarClock.from_offset(get_config().utc_offset)


def _time_range(occ: Occurrence) -> str:
    return f"{format_hhmm(occ.start_minute)} - {format_hhmm(occ.end_minute)}"


def _occurrence_line(occ: Occurrence, with_date: bool = False) -> str:
    d = occ.definition
    bits = [_time_range(occ), d.title or "(no title)"]
    if d.identifier:
        bits.append(f"({d.identifier})")
    if d.location:
        bits.append(f"@ {d.location}")
    line = " ".join(bits)
    if with_date:
        line = f"{occ.date.strftime('%a %b')} {occ.date.day} {line}"
    return line


def _report_issues(result: ExpansionResult) -> None:
    for issue in result.issues:
        title = issue.definition.title or "(no title)"
        console.print(f"[yellow]Skipped #{issue.index} {title}: {issue.message}[/]")


def _status_lines(resolution: Resolution) -> list[str]:
    if resolution.current:
        c = resolution.current
        current = f"Current: {c.definition.title} @ {c.definition.location} ({_time_range(c)})"
    else:
        current = "Current: No class in progress"
    if resolution.next:
        n = resolution.next
        upcoming = f"Next: {_occurrence_line(n, with_date=True)}"
    else:
        upcoming = "Next: No upcoming classes"
    lines = [current, upcoming]
    if resolution.next_today and resolution.next_today is not resolution.next:
        lines.append(f"Next today: {_occurrence_line(resolution.next_today)}")
    return lines


def _parse_day(text: Optional[str], default: date) -> date:
    return parse_iso_date(text) if text else default


def _cmd_list(args: argparse.Namespace) -> int:
    """
    Print all stored definitions with their index.
    """
    definitions = load_definitions(args.data)
    if not definitions:
        console.print("No classes yet.")
        return 0

    table = Table(title="Classes", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Class")
    table.add_column("Repeat")
    table.add_column("Time")
    table.add_column("Valid")
    table.add_column("Except")
    for i, d in enumerate(definitions):
        label = f"[bold cyan]{d.identifier}[/] {d.title}" if d.identifier else d.title
        if d.instructor_name:
            label += f" [magenta]{d.instructor_name}[/]"
        table.add_row(
            str(i),
            label,
            ", ".join(w[:3] for w in d.weekdays),
            f"{d.start_time} - {d.end_time}",
            f"{d.valid_from.isoformat()} .. {d.valid_until.isoformat()}",
            str(len(d.exception_dates)),
        )
    console.print(table)
    return 0


def _parse_days(text: str) -> Optional[tuple[str, ...]]:
    """
    Parse a comma separated weekday list. Returns None (after printing the
    offending name) if a name is unknown.
    """
    weekdays: list[str] = []
    for raw in text.split(","):
        if not raw.strip():
            continue
        name = normalize_weekday(raw)
        if name is None:
            console.print(f"Unknown weekday: {raw.strip()!r}")
            return None
        if name not in weekdays:
            weekdays.append(name)
    return tuple(weekdays)


def _cmd_add(args: argparse.Namespace) -> int:
    """
    Validate a new definition and append it to the store.
    """
    weekdays = _parse_days(args.days)
    if weekdays is None:
        return 1

    definition = EventDefinition(
        title=args.title.strip(),
        identifier=(args.id or "").strip(),
        location=(args.location or "").strip(),
        instructor_name=(args.instructor or "").strip(),
        instructor_email=(args.instructor_email or "").strip(),
        contact_email=(args.contact_email or "").strip(),
        weekdays=weekdays,
        valid_from=parse_iso_date(args.valid_from),
        valid_until=parse_iso_date(args.valid_until),
        start_time=args.start.strip(),
        end_time=args.end.strip(),
        exception_dates=frozenset(parse_iso_date(x).isoformat() for x in args.exceptions),
    )
    validate_definition(definition)

    definitions = load_definitions(args.data)
    definitions.append(definition)
    save_definitions(definitions, args.data)
    console.print(f"Added: #{len(definitions) - 1} {definition.title}")
    return 0


def _pick(definitions: list[EventDefinition], index: int) -> Optional[EventDefinition]:
    if not (0 <= index < len(definitions)):
        console.print(f"No class with index {index} (have {len(definitions)}).")
        return None
    return definitions[index]


def _cmd_show(args: argparse.Namespace) -> int:
    """
    Print every field of one definition.
    """
    definitions = load_definitions(args.data)
    d = _pick(definitions, args.index)
    if d is None:
        return 1

    table = Table(title=f"#{args.index} {d.title}", box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Title", d.title)
    table.add_row("CRN", d.identifier)
    table.add_row("Location", d.location)
    table.add_row("Instructor", d.instructor_name)
    table.add_row("Instructor email", d.instructor_email)
    table.add_row("Contact email", d.contact_email)
    table.add_row("Repeat", ", ".join(d.weekdays))
    table.add_row("Time", f"{d.start_time} - {d.end_time}")
    table.add_row("Start date", d.valid_from.isoformat())
    table.add_row("End date", d.valid_until.isoformat())
    table.add_row("Except", ", ".join(sorted(d.exception_dates)))
    console.print(table)
    return 0


def _cmd_edit(args: argparse.Namespace) -> int:
    """
    Change selected fields of a definition. Options left out keep their value;
    the result is validated like a new definition before it is saved.
    """
    definitions = load_definitions(args.data)
    definition = _pick(definitions, args.index)
    if definition is None:
        return 1

    changes: dict[str, object] = {}
    for option, field in (
        ("title", "title"),
        ("id", "identifier"),
        ("location", "location"),
        ("instructor", "instructor_name"),
        ("instructor_email", "instructor_email"),
        ("contact_email", "contact_email"),
        ("start", "start_time"),
        ("end", "end_time"),
    ):
        value = getattr(args, option)
        if value is not None:
            changes[field] = value.strip()
    if args.days is not None:
        weekdays = _parse_days(args.days)
        if weekdays is None:
            return 1
        changes["weekdays"] = weekdays
    if args.valid_from is not None:
        changes["valid_from"] = parse_iso_date(args.valid_from)
    if args.valid_until is not None:
        changes["valid_until"] = parse_iso_date(args.valid_until)

    if not changes:
        console.print("Nothing to change.")
        return 0

    edited = replace(definition, **changes)
    validate_definition(edited)

    definitions[args.index] = edited
    save_definitions(definitions, args.data)
    console.print(f"Updated: #{args.index} {edited.title}")
    return 0


def _cmd_remove(args: argparse.Namespace) -> int:
    definitions = load_definitions(args.data)
    definition = _pick(definitions, args.index)
    if definition is None:
        return 1

    del definitions[args.index]
    save_definitions(definitions, args.data)
    console.print(f"Removed: {definition.title} (remaining: {len(definitions)})")
    return 0


def _cmd_skip(args: argparse.Namespace) -> int:
    """
    Add an exception date to a definition (class cancelled on that day).
    """
    definitions = load_definitions(args.data)
    definition = _pick(definitions, args.index)
    if definition is None:
        return 1

    day = parse_iso_date(args.date).isoformat()
    if day in definition.exception_dates:
        console.print(f"Already skipped: {definition.title} on {day}")
        return 0

    definitions[args.index] = replace(definition, exception_dates=definition.exception_dates | {day})
    save_definitions(definitions, args.data)
    console.print(f"Skipped: {definition.title} on {day}")
    return 0


def _cmd_clear(args: argparse.Namespace) -> int:
    if not args.yes:
        console.print("Refusing to clear all classes without --yes.")
        return 1
    save_definitions([], args.data)
    console.print("Cleared all classes.")
    return 0


def _cmd_week(args: argparse.Namespace) -> int:
    """
    Print the occurrences of one or more weeks, day by day, with track labels
    for overlapping classes, followed by the current/next status.
    """
    clock = _clock()
    now = clock.now()
    window = week_window(_parse_day(args.date, now.date()), weeks=args.weeks)

    definitions = load_definitions(args.data)
    result = expand(definitions, window.start, window.end)
    _report_issues(result)

    tracks = layout_days(result.occurrences)
    by_date = group_by_date(result.occurrences)

    console.print(f"\n=== Week of {window.start.isoformat()} ===")
    for day in window.days():
        console.print(f"\n[bold]{weekday_of(day)} {day.isoformat()}[/]")
        day_occurrences = by_date.get(day, [])
        if not day_occurrences:
            console.print("  —")
            continue
        for occ in day_occurrences:
            assignment = tracks[day][occ]
            lane = ""
            if assignment.total_tracks > 1:
                lane = f" (track {assignment.track + 1}/{assignment.total_tracks})"
            console.print(f"  - {_occurrence_line(occ)}{lane}")

    console.print("")
    for line in _status_lines(resolve(result.occurrences, now)):
        console.print(line)
    return 0


def _cmd_month(args: argparse.Namespace) -> int:
    """
    Print a 6 x 7 month grid (Sunday first) with the classes of each day.
    """
    today = _clock().today()
    year = args.year if args.year is not None else today.year
    month = args.month if args.month is not None else today.month
    if not (1 <= month <= 12):
        console.print(f"Invalid month: {month}")
        return 1

    grid = month_grid(year, month)
    definitions = load_definitions(args.data)
    result = expand(definitions, grid.start, grid.end)
    _report_issues(result)
    by_date = group_by_date(result.occurrences)

    table = Table(title=f"{MONTH_NAMES[month - 1]} {year}", box=box.SIMPLE, show_lines=True)
    for name in WEEKDAYS:
        table.add_column(name[:3])

    row: list[str] = []
    for day in grid.days():
        style = "dim" if day.month != month else ("bold reverse" if day == today else "bold")
        cell = [f"[{style}]{day.day}[/]"]
        for occ in by_date.get(day, []):
            cell.append(f"{occ.definition.title} {format_hhmm(occ.start_minute)}")
        row.append("\n".join(cell))
        if len(row) == 7:
            table.add_row(*row)
            row = []
    console.print(table)
    return 0


def _cmd_status(args: argparse.Namespace) -> int:
    """
    Print the current and next class. Looks ahead args.weeks weeks.
    """
    now = _clock().now()
    window = week_window(now, weeks=args.weeks)

    definitions = load_definitions(args.data)
    result = expand(definitions, window.start, window.end)
    _report_issues(result)

    for line in _status_lines(resolve(result.occurrences, now)):
        console.print(line)
    return 0


def _cmd_layout(args: argparse.Namespace) -> int:
    """
    Print the track assignment of one day.
    """
    day = parse_iso_date(args.date)
    definitions = load_definitions(args.data)
    result = expand(definitions, day, day)
    _report_issues(result)

    if not result.occurrences:
        console.print(f"No classes on {day.isoformat()}.")
        return 0

    assignments = layout(result.occurrences)
    table = Table(title=f"{weekday_of(day)} {day.isoformat()}", box=box.SIMPLE)
    table.add_column("Track", justify="right")
    table.add_column("Of", justify="right")
    table.add_column("Class")
    for occ in result.occurrences:
        a = assignments[occ]
        table.add_row(str(a.track), str(a.total_tracks), _occurrence_line(occ))
    console.print(table)
    return 0


def _cmd_conflicts(args: argparse.Namespace) -> int:
    """
    Print all overlapping class pairs in the requested weeks.
    """
    clock = _clock()
    window = week_window(_parse_day(args.date, clock.today()), weeks=args.weeks)

    definitions = load_definitions(args.data)
    result = expand(definitions, window.start, window.end)
    _report_issues(result)

    confs = find_conflicts(result.occurrences)
    if not confs:
        console.print("No conflicts found.")
        return 0

    console.print(f"Conflicts found: {len(confs)}")
    for a, b in confs:
        console.print(f"- {a.iso_date}: {_occurrence_line(a)}  <->  {_occurrence_line(b)}")
    return 0


def _cmd_export_json(args: argparse.Namespace) -> int:
    n = export_definitions(args.out, args.data)
    console.print(f"Exported {n} classes to: {args.out}")
    return 0


def _cmd_import_json(args: argparse.Namespace) -> int:
    definitions = import_definitions(args.source, args.data)
    console.print(f"Imported {len(definitions)} classes from: {args.source}")
    return 0


def _cmd_export_ics(args: argparse.Namespace) -> int:
    """
    Export all classes into an iCalendar (.ics) file.
    """
    definitions = load_definitions(args.data)
    if not definitions:
        console.print("No classes to export.")
        return 0

    out_path = Path(args.out)
    if out_path.suffix.lower() != ".ics":
        out_path = out_path.with_suffix(".ics")

    n = export_definitions_to_ics(definitions, out_path)
    console.print(f"Exported {n} classes to: {out_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="mytimetable", description="MyTimetable CLI")
    parser.add_argument("--data", type=Path, default=None, help="Timetable JSON file (default: from config)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List all classes")

    p_add = sub.add_parser("add", help="Add a weekly class")
    p_add.add_argument("--title", required=True, help="Class title")
    p_add.add_argument("--id", default="", help="Course code / CRN")
    p_add.add_argument("--location", default="")
    p_add.add_argument("--instructor", default="")
    p_add.add_argument("--instructor-email", default="")
    p_add.add_argument("--contact-email", default="")
    p_add.add_argument("--days", required=True, help="Weekdays, comma separated (e.g. Mon,Wed)")
    p_add.add_argument("--from", dest="valid_from", required=True, help="First date (YYYY-MM-DD)")
    p_add.add_argument("--until", dest="valid_until", required=True, help="Last date (YYYY-MM-DD)")
    p_add.add_argument("--start", required=True, help="Start time (HH:MM)")
    p_add.add_argument("--end", required=True, help="End time (HH:MM)")
    p_add.add_argument(
        "--except", dest="exceptions", action="append", default=[], help="Date without class (repeatable)"
    )

    p_show = sub.add_parser("show", help="Show all details of a class")
    p_show.add_argument("index", type=int, help="Index as shown by 'list'")

    p_edit = sub.add_parser("edit", help="Change fields of a class")
    p_edit.add_argument("index", type=int, help="Index as shown by 'list'")
    p_edit.add_argument("--title", default=None)
    p_edit.add_argument("--id", default=None, help="Course code / CRN")
    p_edit.add_argument("--location", default=None)
    p_edit.add_argument("--instructor", default=None)
    p_edit.add_argument("--instructor-email", default=None)
    p_edit.add_argument("--contact-email", default=None)
    p_edit.add_argument("--days", default=None, help="Weekdays, comma separated (e.g. Mon,Wed)")
    p_edit.add_argument("--from", dest="valid_from", default=None, help="First date (YYYY-MM-DD)")
    p_edit.add_argument("--until", dest="valid_until", default=None, help="Last date (YYYY-MM-DD)")
    p_edit.add_argument("--start", default=None, help="Start time (HH:MM)")
    p_edit.add_argument("--end", default=None, help="End time (HH:MM)")

    p_remove = sub.add_parser("remove", help="Remove class by index")
    p_remove.add_argument("index", type=int, help="Index as shown by 'list'")

    p_skip = sub.add_parser("skip", help="Cancel one date of a class")
    p_skip.add_argument("index", type=int, help="Index as shown by 'list'")
    p_skip.add_argument("date", type=str, help="Date (YYYY-MM-DD)")

    p_clear = sub.add_parser("clear", help="Remove all classes")
    p_clear.add_argument("--yes", action="store_true", help="Confirm")

    p_week = sub.add_parser("week", help="Show the week containing a date")
    p_week.add_argument("--date", default=None, help="Any date in the week (default: today)")
    p_week.add_argument("--weeks", type=int, default=1, help="Number of weeks")

    p_month = sub.add_parser("month", help="Show a month grid")
    p_month.add_argument("--year", type=int, default=None)
    p_month.add_argument("--month", type=int, default=None)

    p_status = sub.add_parser("status", help="Show current and next class")
    p_status.add_argument("--weeks", type=int, default=4, help="Weeks to look ahead")

    p_layout = sub.add_parser("layout", help="Show track layout of one day")
    p_layout.add_argument("date", type=str, help="Date (YYYY-MM-DD)")

    p_conf = sub.add_parser("conflicts", help="Show overlapping classes")
    p_conf.add_argument("--date", default=None, help="Any date in the first week (default: today)")
    p_conf.add_argument("--weeks", type=int, default=1, help="Number of weeks")

    p_export_json = sub.add_parser("export-json", help="Export classes to a JSON file")
    p_export_json.add_argument("out", type=str, help="Output file path")

    p_import_json = sub.add_parser("import-json", help="Replace classes with a JSON file")
    p_import_json.add_argument("source", type=str, help="Input file path")

    p_export_ics = sub.add_parser("export-ics", help="Export classes to .ics")
    p_export_ics.add_argument("out", type=str, help="Output file path (e.g. out.ics)")

    return parser


COMMANDS = {
    "list": _cmd_list,
    "add": _cmd_add,
    "show": _cmd_show,
    "edit": _cmd_edit,
    "remove": _cmd_remove,
    "skip": _cmd_skip,
    "clear": _cmd_clear,
    "week": _cmd_week,
    "month": _cmd_month,
    "status": _cmd_status,
    "layout": _cmd_layout,
    "conflicts": _cmd_conflicts,
    "export-json": _cmd_export_json,
    "import-json": _cmd_import_json,
    "export-ics": _cmd_export_ics,
}


def main(argv: Sequence[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    handler = COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(2)

    try:
        code = handler(args)
    except (TimetableError, ValueError) as e:
        console.print(f"Error: {e}")
        code = 1
    raise SystemExit(code)
