import io
import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest.mock import patch
from urllib import error

from config import LogConfig
from journal import AddEntryRequest, ErrorKind, NoteNotFound, StorageError, add_entry, list_entries
from storage import LocalStorage, VaultStorage, build_storage


class TestLocalStorage(unittest.TestCase):
    def test_round_trip_and_dirs(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            journal = Path(td) / "nested" / "Journal"
            storage = LocalStorage()
            path = str(journal / "2026-10-19.md")

            self.assertFalse(storage.exists(path))
            with self.assertRaises(FileNotFoundError):
                storage.read(path)

            storage.ensure_dir(str(journal))
            storage.ensure_dir(str(journal))
            storage.write(path, "# 2026-10-19\n\n## Today\n- **09:00** ü\n")

            self.assertTrue(storage.exists(path))
            self.assertEqual(storage.read(path), "# 2026-10-19\n\n## Today\n- **09:00** ü\n")
            self.assertEqual([p.name for p in journal.iterdir()], ["2026-10-19.md"])

    def test_add_entry_creates_file_on_disk(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            journal = Path(td) / "Journal"
            config = LogConfig(journal_dir=str(journal))
            result = add_entry(AddEntryRequest("first", "07:45"), config, LocalStorage())

            self.assertTrue(result.success)
            text = Path(result.data.path).read_text(encoding="utf-8")
            self.assertIn("## Today\n- **07:45** first\n", text)

    def test_undecodable_note_is_a_read_failure(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            note = Path(td) / "2026-10-19.md"
            note.write_bytes(b"## Today\n- **09:00** caf\xe9\n")
            with self.assertRaises(StorageError):
                LocalStorage().read(str(note))

            config = LogConfig(journal_dir=td)
            now = datetime(2026, 10, 19, 13, 30)
            listed = list_entries(config, LocalStorage(), now=now)
            self.assertEqual(listed.error.kind, ErrorKind.STORAGE_READ_FAILURE)
            added = add_entry(AddEntryRequest("more"), config, LocalStorage(), now=now)
            self.assertEqual(added.error.kind, ErrorKind.STORAGE_READ_FAILURE)
            self.assertEqual(note.read_bytes(), b"## Today\n- **09:00** caf\xe9\n")



class TestVaultStorage(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = VaultStorage("https://127.0.0.1:27124/", token="secret")

    def test_read_sends_auth_and_vault_path(self) -> None:
        with patch("storage.request.urlopen", return_value=io.BytesIO("## Today\n".encode("utf-8"))) as urlopen:
            self.assertEqual(self.storage.read("/Journal/2026-10-19.md"), "## Today\n")

        req = urlopen.call_args[0][0]
        self.assertEqual(req.get_method(), "GET")
        self.assertEqual(req.full_url, "https://127.0.0.1:27124/vault/Journal/2026-10-19.md")
        self.assertEqual(req.get_header("Authorization"), "Bearer secret")

    def test_write_puts_markdown(self) -> None:
        with patch("storage.request.urlopen", return_value=io.BytesIO(b"")) as urlopen:
            self.storage.write("Journal/2026-10-19.md", "## Today\n- **09:00** x")

        req = urlopen.call_args[0][0]
        self.assertEqual(req.get_method(), "PUT")
        self.assertEqual(req.data, "## Today\n- **09:00** x".encode("utf-8"))
        self.assertEqual(req.get_header("Content-type"), "text/markdown")

    def test_exists_maps_404(self) -> None:
        not_found = error.HTTPError("url", 404, "Not Found", None, None)
        with patch("storage.request.urlopen", side_effect=not_found):
            self.assertFalse(self.storage.exists("Journal/2026-10-19.md"))
            with self.assertRaises(NoteNotFound):
                self.storage.read("Journal/2026-10-19.md")

        with patch("storage.request.urlopen", return_value=io.BytesIO(b"x")):
            self.assertTrue(self.storage.exists("Journal/2026-10-19.md"))

    def test_other_failures_raise_storage_error(self) -> None:
        server_error = error.HTTPError("url", 500, "Server Error", None, None)
        with patch("storage.request.urlopen", side_effect=server_error):
            with self.assertRaises(StorageError):
                self.storage.exists("Journal/2026-10-19.md")

        with patch("storage.request.urlopen", side_effect=error.URLError("connection refused")):
            with self.assertRaises(StorageError):
                self.storage.write("Journal/2026-10-19.md", "x")

    def test_ensure_dir_makes_no_request(self) -> None:
        with patch("storage.request.urlopen") as urlopen:
            self.storage.ensure_dir("Journal")
        urlopen.assert_not_called()

    def test_exists_then_read_fetches_once(self) -> None:
        with patch("storage.request.urlopen", return_value=io.BytesIO(b"## Today\n")) as urlopen:
            self.assertTrue(self.storage.exists("Journal/2026-10-19.md"))
            self.assertEqual(self.storage.read("Journal/2026-10-19.md"), "## Today\n")
        self.assertEqual(urlopen.call_count, 1)

    def test_undecodable_body(self) -> None:
        with patch("storage.request.urlopen", return_value=io.BytesIO(b"caf\xe9")):
            with self.assertRaises(StorageError):
                self.storage.read("Journal/2026-10-19.md")

    def test_certificate_checking(self) -> None:
        self.assertIsNotNone(self.storage._context)
        self.assertIsNone(VaultStorage("https://vault.example", verify=True)._context)



class TestBuildStorage(unittest.TestCase):
    def test_selects_backend(self) -> None:
        self.assertIsInstance(build_storage(LogConfig(journal_dir="/j")), LocalStorage)
        vault = build_storage(LogConfig(journal_dir="Journal", storage="vault", vault_url="http://localhost:27123"))
        self.assertIsInstance(vault, VaultStorage)
        self.assertIsNotNone(vault._context)
        checked = build_storage(
            LogConfig(journal_dir="Journal", storage="vault", vault_url="https://vault.example", vault_verify=True)
        )
        self.assertIsNone(checked._context)
        with self.assertRaises(RuntimeError):
            build_storage(LogConfig(journal_dir="Journal", storage="vault"))


if __name__ == "__main__":
    unittest.main()
