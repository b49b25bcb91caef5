from __future__ import annotations

import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import datetime
from pathlib import Path
from unittest import mock

from seventyfive import __version__
from seventyfive.app import EXIT_FAILED_DAY, build_service, main
from seventyfive.challenge import ChallengeService
from seventyfive.clock import FixedClock
from seventyfive.database import ChallengeDatabase
from seventyfive.paths import DATA_DIR_ENV, data_directory, database_path, photos_directory
from seventyfive.photos import PhotoStore


class CommandLineTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.base = Path(self._tmp.name)
        self.clock = FixedClock(datetime(2024, 1, 5, 12, 0))

    def _factory(self, data_dir: Path | None) -> ChallengeService:
        return ChallengeService(
            db=ChallengeDatabase(self.base / "seventyfive.sqlite3"),
            clock=self.clock,
            photos=PhotoStore(self.base / "photos"),
        )

    def _run(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(argv), service_factory=self._factory)
        return code, out.getvalue(), err.getvalue()

    def test_version(self) -> None:
        code, out, _ = self._run("--version")
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), __version__)

    def test_status_before_onboarding(self) -> None:
        code, out, _ = self._run("status")
        self.assertEqual(code, 0)
        self.assertIn("No challenge yet", out)

    def test_start_then_track_today(self) -> None:
        code, out, _ = self._run("start", "--day-end", "01:00")
        self.assertEqual(code, 0)
        self.assertIn("Day ends at 1:00 AM", out)

        code, out, _ = self._run("done", "water")
        self.assertEqual(code, 0)
        self.assertIn("1/7", out)

        code, out, _ = self._run("today")
        self.assertEqual(code, 0)
        self.assertIn("Day 1 of 75", out)
        self.assertIn("[x] water", out)

    def test_missed_day_reported_and_restart(self) -> None:
        self._run("start", "--date", "2024-01-01")

        code, out, _ = self._run("today")
        self.assertEqual(code, EXIT_FAILED_DAY)
        self.assertIn("Day 5 of 75", out)
        self.assertIn("Day 1", out)
        self.assertIn("Challenge failed", out)

        code, out, _ = self._run("restart", "--yes")
        self.assertEqual(code, 0)
        self.assertIn("Day 1 of 75", out)

        code, _, _ = self._run("today")
        self.assertEqual(code, 0)

    def test_done_only_targets_today(self) -> None:
        self._run("start", "--date", "2024-01-01")
        with self.assertRaises(SystemExit) as ctx:
            self._run("done", "water", "--day", "1")
        self.assertEqual(ctx.exception.code, 2)

        code, out, _ = self._run("done", "water")
        self.assertEqual(code, 0)
        self.assertIn("Day 5:", out)

        code, _, _ = self._run("today")
        self.assertEqual(code, EXIT_FAILED_DAY)

    def test_unknown_log_level_is_a_usage_error(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self._run("--log-level", "loud", "status")
        self.assertEqual(ctx.exception.code, 2)

    def test_log_level_is_case_insensitive(self) -> None:
        code, out, _ = self._run("--log-level", "debug", "status")
        self.assertEqual(code, 0)
        self.assertIn("No challenge yet", out)

    def test_domain_errors_exit_with_message(self) -> None:
        code, _, err = self._run("day-end", "02:00")
        self.assertEqual(code, 1)
        self.assertIn("Error:", err)

    def test_picture_needs_photo_command(self) -> None:
        self._run("start")
        code, out, _ = self._run("done", "progress_picture")
        self.assertEqual(code, 1)
        self.assertIn("seventyfive photo", out)

    def test_commands_need_onboarding(self) -> None:
        code, _, err = self._run("today")
        self.assertEqual(code, 1)
        self.assertIn("onboarding", err)

    def test_stats_and_history(self) -> None:
        self._run("start")
        self._run("done", "diet")
        code, out, _ = self._run("stats")
        self.assertEqual(code, 0)
        self.assertIn("Total tasks completed: 1", out)

        code, out, _ = self._run("history")
        self.assertEqual(code, 0)
        self.assertIn(" 1@", out)
        self.assertIn("75.", out)

    def test_reset(self) -> None:
        self._run("start")
        code, _, _ = self._run("reset", "-y")
        self.assertEqual(code, 0)
        _, out, _ = self._run("status")
        self.assertIn("No challenge yet", out)

    def test_data_directory_override(self) -> None:
        with mock.patch.dict(os.environ, {DATA_DIR_ENV: str(self.base)}):
            self.assertEqual(data_directory(), self.base)
            self.assertEqual(database_path(), self.base / "seventyfive.sqlite3")

    def test_build_service_lays_out_data_dir(self) -> None:
        service = build_service(self.base / "data")
        self.assertTrue(photos_directory(self.base / "data").is_dir())
        self.assertTrue(service.needs_onboarding())


if __name__ == "__main__":
    unittest.main()
