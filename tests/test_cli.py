import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import date
from pathlib import Path
from unittest.mock import patch

import cli


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.addCleanup(self._td.cleanup)
        self.root = Path(self._td.name)
        self.journal = self.root / "Journal"
        self.journal.mkdir()
        env = {
            "DAYLOG_WORKSPACE": str(self.root),
            "DAYLOG_JOURNAL_DIR": str(self.journal),
            "DAYLOG_TODAY_HEADER": "## Today",
            "DAYLOG_STORAGE": "local",
            "DAYLOG_LOG_DIR": str(self.root / "logs"),
        }
        patchers = [
            patch.dict(os.environ, env, clear=False),
            patch.object(Path, "home", return_value=self.root / "home"),
            patch.object(Path, "cwd", return_value=self.root),
        ]
        for p in patchers:
            p.start()
            self.addCleanup(p.stop)

    def _run(self, *argv: str):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = cli.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_add_then_list(self) -> None:
        code, out, _ = self._run("standup", "done", "-t", "9:30")
        self.assertEqual(code, 0)
        self.assertEqual(out, "")

        code, _, _ = self._run("had", "-t", "08:00", "breakfast")
        self.assertEqual(code, 0)

        note = self.journal / f"{date.today().isoformat()}.md"
        self.assertIn("## Today\n- **08:00** had breakfast\n- **09:30** standup done\n", note.read_text(encoding="utf-8"))

        code, out, _ = self._run("-l")
        self.assertEqual(code, 0)
        self.assertIn("- **08:00** had breakfast", out)
        self.assertLess(out.index("08:00"), out.index("09:30"))

        logs = list((self.root / "logs").glob("*.log"))
        self.assertEqual(len(logs), 1)
        self.assertIn("added - **09:30** standup done", logs[0].read_text(encoding="utf-8"))

    def test_no_arguments_lists(self) -> None:
        code, out, _ = self._run()
        self.assertEqual(code, 0)
        self.assertIn("No log entries found for today", out)

    def test_json_output(self) -> None:
        code, out, _ = self._run("--json", "coffee", "--time", "7:05")
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertTrue(payload["success"])
        self.assertEqual(payload["data"]["entry"], "- **07:05** coffee")
        self.assertTrue(payload["data"]["created_new_note"])

        code, out, _ = self._run("--json", "coffee", "-t", "24:00")
        self.assertEqual(code, 1)
        payload = json.loads(out)
        self.assertEqual(payload["error"]["type"], "INVALID_TIME_FORMAT")

    def test_future_reference_is_rejected(self) -> None:
        code, out, err = self._run("--json", "meeting prep @tomorrow")
        self.assertEqual(code, 1)
        payload = json.loads(out)
        self.assertTrue(payload["rejected"])
        self.assertEqual(payload["error"]["type"], "FUTURE_DATE")
        self.assertEqual(list(self.journal.iterdir()), [])

    def test_time_without_message(self) -> None:
        code, _, err = self._run("-t", "10:00")
        self.assertEqual(code, 1)
        self.assertIn("must also provide a message", err)

    def test_missing_section_shows_tip(self) -> None:
        note = self.journal / f"{date.today().isoformat()}.md"
        note.write_text("# today\n\n## Notes\n", encoding="utf-8")
        code, _, err = self._run("something")
        self.assertEqual(code, 1)
        self.assertIn('contains a "## Today" header', err)
        self.assertEqual(note.read_text(encoding="utf-8"), "# today\n\n## Notes\n")

    def test_missing_journal_dir(self) -> None:
        with patch.dict(os.environ, {"DAYLOG_JOURNAL_DIR": str(self.root / "missing")}):
            code, _, err = self._run("something")
        self.assertEqual(code, 1)
        self.assertIn("does not exist", err)

    def test_init_writes_sample_config(self) -> None:
        target = self.root / "cfg" / "daylog.json"
        code, out, _ = self._run("--init", "--config", str(target))
        self.assertEqual(code, 0)
        self.assertIn(str(target), out)
        self.assertEqual(json.loads(target.read_text(encoding="utf-8"))["todayHeader"], "## Today")


if __name__ == "__main__":
    unittest.main()
