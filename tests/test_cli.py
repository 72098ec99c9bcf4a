from __future__ import annotations

from contextlib import redirect_stdout
from datetime import date, timedelta
import io
import json
import os
from pathlib import Path
import tempfile
import unittest
from unittest import mock

from deadlines.cli import main
from deadlines.deadline_store import DEADLINES_KEY
from deadlines.settings import CONFIG_ENV, DATA_ENV, LOG_LEVEL_ENV

_CLEAN_ENV = {k: v for k, v in os.environ.items() if k not in (CONFIG_ENV, DATA_ENV, LOG_LEVEL_ENV)}


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        env_patch = mock.patch.dict(os.environ, _CLEAN_ENV, clear=True)
        env_patch.start()
        self.addCleanup(env_patch.stop)
        self.data_path = Path(tmp.name) / "defaults.json"
        self.data_path.write_text(json.dumps({DEADLINES_KEY: []}), encoding="utf-8")
        self.config = Path(tmp.name) / "config.yaml"
        self.config.write_text(f"data_path: {self.data_path}\nlog_level: WARNING\n", encoding="utf-8")

    def _run(self, *args: str) -> tuple[int, str]:
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(["--config", str(self.config), *args])
        return code, out.getvalue()

    def _saved(self) -> list[dict]:
        return json.loads(self.data_path.read_text(encoding="utf-8"))[DEADLINES_KEY]

    def test_add_list_rename_remove(self) -> None:
        code, out = self._run("add", "--name", "Ship release", "--date", "2099-01-15")
        self.assertEqual(code, 0)
        deadline_id = out.strip()
        self.assertEqual([d["id"] for d in self._saved()], [deadline_id])

        code, out = self._run("list")
        self.assertEqual(code, 0)
        self.assertIn("Ship release", out)
        self.assertIn(deadline_id, out)

        code, _ = self._run("rename", "--id", deadline_id, "--name", "Ship v2")
        self.assertEqual(code, 0)
        self.assertEqual(self._saved()[0]["name"], "Ship v2")

        code, _ = self._run("remove", "--id", deadline_id)
        self.assertEqual(code, 0)
        self.assertEqual(self._saved(), [])

    def test_add_with_month_and_day(self) -> None:
        code, _ = self._run("add", "--name", "Review", "--month", "12", "--day", "31")
        self.assertEqual(code, 0)
        self.assertTrue(self._saved()[0]["date"].endswith("-12-31"))

    def test_invalid_input_leaves_store_untouched(self) -> None:
        self.assertEqual(self._run("add", "--name", "Bad", "--date", "2026-02-30")[0], 2)
        self.assertEqual(self._run("add", "--name", "Bad", "--month", "2", "--day", "30")[0], 2)
        self.assertEqual(self._run("add", "--name", " ", "--date", "2099-01-01")[0], 2)
        self.assertEqual(self._run("add", "--name", "No date")[0], 2)
        self.assertEqual(self._saved(), [])

    def test_unknown_id_returns_one(self) -> None:
        self.assertEqual(self._run("remove", "--id", "nope")[0], 1)
        self.assertEqual(self._run("rename", "--id", "nope", "--name", "x")[0], 1)

    def test_cleanup_reports_removed_count(self) -> None:
        self.data_path.write_text(
            json.dumps({DEADLINES_KEY: [{"id": "1", "name": "Ancient", "date": "2000-01-01"}]}),
            encoding="utf-8",
        )
        code, out = self._run("list")
        self.assertEqual(code, 0)
        self.assertIn("No deadlines.", out)
        code, out = self._run("cleanup")
        self.assertIn("Removed 0", out)

    def test_cleanup_counts_deadlines_swept_while_loading(self) -> None:
        old = (date.today() - timedelta(days=30)).isoformat()
        self.data_path.write_text(
            json.dumps({DEADLINES_KEY: [{"id": "x", "name": "Old", "date": old}]}),
            encoding="utf-8",
        )
        code, out = self._run("cleanup")
        self.assertEqual(code, 0)
        self.assertIn("Removed 1 overdue deadline(s)", out)
        self.assertEqual(self._saved(), [])

    def test_ids_from_first_list_work_in_next_command(self) -> None:
        self.data_path.unlink()
        code, out = self._run("list")
        self.assertEqual(code, 0)
        first_id = out.splitlines()[0].rsplit("(", 1)[1].rstrip(")")

        code, out = self._run("remove", "--id", first_id)
        self.assertEqual(code, 0, out)
        code, out = self._run("list")
        self.assertNotIn(first_id, out)
        self.assertEqual(len(out.splitlines()), 2)


if __name__ == "__main__":
    unittest.main()
