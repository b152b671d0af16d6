"""
Unit tests for the timetable JSON store.

Storage contract:
- Missing/invalid file -> empty list
- Broken single records are skipped, the rest is kept
- JSON schema: array of records with the web app keys (crn, startDate, ...)
- Import is strict: anything but a JSON array raises StorageError
"""

import json
import tempfile
import unittest
from datetime import date
from pathlib import Path

from mytimetable.errors import StorageError
from mytimetable.expand import expand
from mytimetable.model import EventDefinition
from mytimetable.storage import (
    definition_from_dict,
    export_definitions,
    import_definitions,
    load_definitions,
    save_definitions,
)

RECORD = {
    "crn": "CS301",
    "title": "Algorithms",
    "profName": "Dr. Ada",
    "profEmail": "ada@example.edu",
    "contactEmail": "",
    "location": "Room 101",
    "startDate": "2025-09-01",
    "endDate": "2025-11-29",
    "startTime": "09:00",
    "endTime": "10:30",
    "weekdays": ["Monday", "Wednesday"],
    "exceptions": ["2025-09-29"],
}


class TestStorage(unittest.TestCase):
    def test_load_missing_file_returns_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "missing.json"
            self.assertEqual(load_definitions(p), [])

    def test_load_corrupt_file_returns_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "timetable.json"
            p.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_definitions(p), [])
            p.write_text('{"a": 1}', encoding="utf-8")
            self.assertEqual(load_definitions(p), [])

    def test_record_mapping(self) -> None:
        d = definition_from_dict(RECORD)
        self.assertEqual(d.identifier, "CS301")
        self.assertEqual(d.instructor_name, "Dr. Ada")
        self.assertEqual(d.instructor_email, "ada@example.edu")
        self.assertEqual(d.weekdays, ("Monday", "Wednesday"))
        self.assertEqual(d.valid_from, date(2025, 9, 1))
        self.assertEqual(d.valid_until, date(2025, 11, 29))
        self.assertEqual(d.exception_dates, frozenset({"2025-09-29"}))

    def test_weekday_names_are_normalized(self) -> None:
        d = definition_from_dict({**RECORD, "weekdays": ["mon", "Monday", "Fri", "nope"]})
        self.assertEqual(d.weekdays, ("Monday", "Friday"))

    def test_save_and_load_roundtrip(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "nested" / "timetable.json"
            original = [definition_from_dict(RECORD), definition_from_dict({**RECORD, "title": "Databases"})]
            save_definitions(original, p)

            self.assertEqual(load_definitions(p), original)
            data = json.loads(p.read_text(encoding="utf-8"))
            self.assertEqual(data[0], RECORD)

    def test_broken_records_are_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "timetable.json"
            records = [RECORD, {**RECORD, "startDate": "someday"}, "garbage", {**RECORD, "title": "Kept"}]
            p.write_text(json.dumps(records), encoding="utf-8")

            self.assertEqual([x.title for x in load_definitions(p)], ["Algorithms", "Kept"])

    def test_non_list_weekdays_skip_only_that_record(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "timetable.json"
            records = [{**RECORD, "weekdays": 5}, {**RECORD, "exceptions": {"a": 1}}, {**RECORD, "title": "Kept"}]
            p.write_text(json.dumps(records), encoding="utf-8")

            self.assertEqual([x.title for x in load_definitions(p)], ["Kept"])

        with self.assertRaises(ValueError):
            definition_from_dict({**RECORD, "weekdays": 5})

    def test_single_string_counts_as_one_element_list(self) -> None:
        d = definition_from_dict({**RECORD, "weekdays": "Tue", "exceptions": "2025-09-30"})
        self.assertEqual(d.weekdays, ("Tuesday",))
        self.assertEqual(d.exception_dates, frozenset({"2025-09-30"}))

    def test_exception_dates_are_normalized(self) -> None:
        d = definition_from_dict({**RECORD, "exceptions": ["2025-9-29", "someday", " 2025-10-06 "]})
        self.assertEqual(d.exception_dates, frozenset({"2025-09-29", "2025-10-06"}))

        result = expand([d], date(2025, 9, 29), date(2025, 10, 1))
        self.assertEqual([o.date for o in result.occurrences], [date(2025, 10, 1)])

    def test_malformed_time_is_kept_for_the_expander(self) -> None:
        d = definition_from_dict({**RECORD, "startTime": "9h"})
        self.assertIsInstance(d, EventDefinition)
        self.assertEqual(d.start_time, "9h")


class TestImportExport(unittest.TestCase):
    def test_import_replaces_store(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            store = Path(d) / "timetable.json"
            save_definitions([definition_from_dict({**RECORD, "title": "Old"})], store)

            src = Path(d) / "import.json"
            src.write_text(json.dumps([RECORD]), encoding="utf-8")
            imported = import_definitions(src, store)

            self.assertEqual([x.title for x in imported], ["Algorithms"])
            self.assertEqual([x.title for x in load_definitions(store)], ["Algorithms"])

    def test_import_rejects_non_array(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            store = Path(d) / "timetable.json"
            src = Path(d) / "import.json"
            src.write_text(json.dumps(RECORD), encoding="utf-8")
            with self.assertRaises(StorageError):
                import_definitions(src, store)
            self.assertFalse(store.exists())

    def test_import_rejects_invalid_json(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            src = Path(d) / "import.json"
            src.write_text("nope", encoding="utf-8")
            with self.assertRaises(StorageError):
                import_definitions(src, Path(d) / "timetable.json")

    def test_export_copies_store(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            store = Path(d) / "timetable.json"
            out = Path(d) / "backup.json"
            save_definitions([definition_from_dict(RECORD)], store)

            self.assertEqual(export_definitions(out, store), 1)
            self.assertEqual(json.loads(out.read_text(encoding="utf-8")), [RECORD])


if __name__ == "__main__":
    unittest.main()
