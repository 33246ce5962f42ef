import ssl
from pathlib import Path
from typing import Optional, Tuple
from urllib import error, parse, request

from config import LogConfig
from core_tools._utils import atomic_write_text
from journal import NoteNotFound, Storage, StorageError


class LocalStorage:
    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def read(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise StorageError(f"{path} is not valid UTF-8: {exc}") from exc

    def write(self, path: str, text: str) -> None:
        atomic_write_text(Path(path), text)

    def ensure_dir(self, path: str) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)


class VaultStorage:
    """Notes inside an Obsidian vault, via the Local REST API plugin.

    Paths are vault-relative. Folders are created by the API on write, so
    ``ensure_dir`` has nothing to do. The body fetched by ``exists`` is kept
    for the ``read`` that follows, so a note is downloaded once.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10, verify: bool = False):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._fetched: Optional[Tuple[str, bytes]] = None
        self._context = None
        if not verify:
            # The plugin serves a self-signed certificate by default
            self._context = ssl.create_default_context()
            self._context.check_hostname = False
            self._context.verify_mode = ssl.CERT_NONE

    def _url(self, path: str) -> str:
        return f"{self.base_url}/vault/{parse.quote(path.lstrip('/'))}"

    def _request(self, method: str, path: str, body: Optional[bytes] = None) -> bytes:
        headers = {"Accept": "text/markdown"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if body is not None:
            headers["Content-Type"] = "text/markdown"
        req = request.Request(self._url(path), data=body, headers=headers, method=method)
        try:
            with request.urlopen(req, timeout=self.timeout, context=self._context) as resp:
                return resp.read()
        except error.HTTPError as exc:
            if exc.code == 404:
                raise NoteNotFound(f"Not found in vault: {path}") from exc
            raise StorageError(f"Vault API error {exc.code} for {method} {path}") from exc
        except error.URLError as exc:
            raise StorageError(f"Vault API unreachable: {exc.reason}") from exc

    def exists(self, path: str) -> bool:
        try:
            body = self._request("GET", path)
        except NoteNotFound:
            self._fetched = None
            return False
        self._fetched = (path, body)
        return True

    def read(self, path: str) -> str:
        fetched, self._fetched = self._fetched, None
        body = fetched[1] if fetched and fetched[0] == path else self._request("GET", path)
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StorageError(f"{path} is not valid UTF-8: {exc}") from exc

    def write(self, path: str, text: str) -> None:
        self._fetched = None
        self._request("PUT", path, text.encode("utf-8"))

    def ensure_dir(self, path: str) -> None:
        return None


def build_storage(config: LogConfig) -> Storage:
    if config.storage == "vault":
        if not config.vault_url:
            raise RuntimeError("Missing DAYLOG_VAULT_URL for vault storage")
        return VaultStorage(config.vault_url, config.vault_token, verify=config.vault_verify)
    return LocalStorage()
