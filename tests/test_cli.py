"""
Tests for CLI entry points.

These tests focus on:
- Basic CLI argument validation (exit codes)
- Persistence through the CLI using a temporary timetable file
  (to avoid touching real user data during tests)
"""

import io
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from mytimetable.cli import main
from mytimetable.storage import load_definitions

ADD_ALGORITHMS = [
    "add",
    "--title", "Algorithms",
    "--id", "CS301",
    "--days", "Mon,Wed",
    "--from", "2025-09-01",
    "--until", "2025-11-29",
    "--start", "10:00",
    "--end", "11:00",
    "--except", "2025-09-29",
]

ADD_SEMINAR = [
    "add",
    "--title", "Seminar",
    "--days", "Monday",
    "--from", "2025-09-01",
    "--until", "2025-11-29",
    "--start", "10:30",
    "--end", "11:30",
]


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.store = self.dir / "timetable.json"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, *argv: str) -> tuple[int, str]:
        buf = io.StringIO()
        with redirect_stdout(buf):
            with self.assertRaises(SystemExit) as ctx:
                main(["--data", str(self.store), *argv])
        return ctx.exception.code, buf.getvalue()

    def test_missing_argument_exits_nonzero(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            main(["layout"])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_add_and_list(self) -> None:
        code, _ = self._run(*ADD_ALGORITHMS)
        self.assertEqual(code, 0)

        definitions = load_definitions(self.store)
        self.assertEqual(len(definitions), 1)
        self.assertEqual(definitions[0].weekdays, ("Monday", "Wednesday"))
        self.assertEqual(definitions[0].exception_dates, frozenset({"2025-09-29"}))

        code, out = self._run("list")
        self.assertEqual(code, 0)
        self.assertIn("Algorithms", out)

    def test_add_rejects_invalid_definitions(self) -> None:
        bad_time = [*ADD_SEMINAR[:-4], "--start", "10h30", "--end", "11:30"]
        reversed_times = [*ADD_SEMINAR[:-4], "--start", "12:00", "--end", "11:30"]
        bad_day = [*ADD_SEMINAR[:3], "--days", "Funday", *ADD_SEMINAR[5:]]
        for argv in (bad_time, reversed_times, bad_day):
            with self.subTest(argv=argv):
                code, _ = self._run(*argv)
                self.assertEqual(code, 1)
        self.assertEqual(load_definitions(self.store), [])

    def test_remove_and_skip(self) -> None:
        self._run(*ADD_ALGORITHMS)
        self._run(*ADD_SEMINAR)

        code, _ = self._run("skip", "1", "2025-09-08")
        self.assertEqual(code, 0)
        self.assertEqual(load_definitions(self.store)[1].exception_dates, frozenset({"2025-09-08"}))

        code, _ = self._run("remove", "5")
        self.assertEqual(code, 1)

        code, _ = self._run("remove", "0")
        self.assertEqual(code, 0)
        self.assertEqual([d.title for d in load_definitions(self.store)], ["Seminar"])

    def test_edit_changes_only_given_fields(self) -> None:
        self._run(*ADD_ALGORITHMS)

        code, _ = self._run(
            "edit", "0",
            "--title", "Advanced Algorithms",
            "--days", "Tue,Thu",
            "--start", "14:00",
            "--end", "15:30",
            "--instructor-email", "ada@example.edu",
        )
        self.assertEqual(code, 0)

        [d] = load_definitions(self.store)
        self.assertEqual(d.title, "Advanced Algorithms")
        self.assertEqual(d.weekdays, ("Tuesday", "Thursday"))
        self.assertEqual((d.start_time, d.end_time), ("14:00", "15:30"))
        self.assertEqual(d.instructor_email, "ada@example.edu")
        self.assertEqual(d.identifier, "CS301")
        self.assertEqual(d.exception_dates, frozenset({"2025-09-29"}))

    def test_edit_rejects_invalid_result(self) -> None:
        self._run(*ADD_ALGORITHMS)
        before = load_definitions(self.store)

        for argv in (["edit", "0", "--start", "12:00"], ["edit", "0", "--days", "Funday"], ["edit", "3", "--title", "x"]):
            with self.subTest(argv=argv):
                code, _ = self._run(*argv)
                self.assertEqual(code, 1)
        self.assertEqual(load_definitions(self.store), before)

    def test_show_prints_every_field(self) -> None:
        self._run(
            *ADD_ALGORITHMS,
            "--instructor", "Dr. Ada",
            "--instructor-email", "ada@example.edu",
            "--contact-email", "office@example.edu",
        )

        code, out = self._run("show", "0")
        self.assertEqual(code, 0)
        for text in (
            "CS301", "Dr. Ada", "ada@example.edu", "office@example.edu",
            "Monday, Wednesday", "2025-09-01", "2025-11-29", "10:00 - 11:00", "2025-09-29",
        ):
            self.assertIn(text, out)

        code, _ = self._run("show", "1")
        self.assertEqual(code, 1)

    def test_month_zero_is_rejected(self) -> None:
        code, out = self._run("month", "--year", "2025", "--month", "0")
        self.assertEqual(code, 1)
        self.assertIn("Invalid month: 0", out)

    def test_clear_requires_confirmation(self) -> None:
        self._run(*ADD_SEMINAR)
        code, _ = self._run("clear")
        self.assertEqual(code, 1)
        self.assertEqual(len(load_definitions(self.store)), 1)

        code, _ = self._run("clear", "--yes")
        self.assertEqual(code, 0)
        self.assertEqual(load_definitions(self.store), [])

    def test_views(self) -> None:
        self._run(*ADD_ALGORITHMS)
        self._run(*ADD_SEMINAR)

        code, out = self._run("layout", "2025-09-01")
        self.assertEqual(code, 0)
        self.assertIn("Seminar", out)

        code, out = self._run("conflicts", "--date", "2025-09-01")
        self.assertEqual(code, 0)
        self.assertIn("Conflicts found: 1", out)

        code, out = self._run("week", "--date", "2025-09-01")
        self.assertEqual(code, 0)
        self.assertIn("track 2/2", out)

        for argv in (["month", "--year", "2025", "--month", "9"], ["status"]):
            with self.subTest(argv=argv):
                code, _ = self._run(*argv)
                self.assertEqual(code, 0)

    def test_export_and_import(self) -> None:
        self._run(*ADD_ALGORITHMS)

        code, _ = self._run("export-ics", str(self.dir / "out"))
        self.assertEqual(code, 0)
        self.assertIn("RRULE:FREQ=WEEKLY", (self.dir / "out.ics").read_text(encoding="utf-8"))

        backup = self.dir / "backup.json"
        code, _ = self._run("export-json", str(backup))
        self.assertEqual(code, 0)

        self._run("clear", "--yes")
        code, _ = self._run("import-json", str(backup))
        self.assertEqual(code, 0)
        self.assertEqual([d.title for d in load_definitions(self.store)], ["Algorithms"])

        broken = self.dir / "broken.json"
        broken.write_text('{"title": "x"}', encoding="utf-8")
        code, _ = self._run("import-json", str(broken))
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
