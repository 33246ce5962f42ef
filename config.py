import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from core_tools._utils import atomic_write_json, load_json, load_workspace_env, resolve_workspace


DEFAULT_TODAY_HEADER = "## Today"
STORAGE_BACKENDS = ("local", "vault")

# Config file key -> LogConfig field
_FILE_KEYS = {
    "journalDir": "journal_dir",
    "journal_dir": "journal_dir",
    "todayHeader": "today_header",
    "today_header": "today_header",
    "storage": "storage",
    "vaultUrl": "vault_url",
    "vault_url": "vault_url",
    "vaultToken": "vault_token",
    "vault_token": "vault_token",
    "vaultVerify": "vault_verify",
    "vault_verify": "vault_verify",
    "logDir": "log_dir",
    "log_dir": "log_dir",
}

_ENV_KEYS = {
    "DAYLOG_JOURNAL_DIR": "journal_dir",
    "DAYLOG_TODAY_HEADER": "today_header",
    "DAYLOG_STORAGE": "storage",
    "DAYLOG_VAULT_URL": "vault_url",
    "DAYLOG_VAULT_TOKEN": "vault_token",
    "DAYLOG_VAULT_VERIFY": "vault_verify",
    "DAYLOG_LOG_DIR": "log_dir",
}


@dataclass(frozen=True)
class LogConfig:
    journal_dir: str
    today_header: str = DEFAULT_TODAY_HEADER
    storage: str = "local"
    vault_url: Optional[str] = None
    vault_token: Optional[str] = None
    vault_verify: bool = False
    log_dir: Optional[Path] = None
    source: Optional[Path] = None
    warnings: Tuple[str, ...] = field(default=(), compare=False)


def default_journal_dir() -> str:
    return str(Path.home() / "Documents" / "Journal")


def config_paths(explicit: Optional[str] = None) -> List[Path]:
    """Config file locations, most preferred first."""
    paths = []
    if explicit:
        paths.append(Path(explicit).expanduser())
    home = Path.home()
    paths.extend(
        [
            home / ".daylog.json",
            home / ".config" / "daylog.json",
            Path.cwd() / ".daylog.json",
        ]
    )
    return paths


def _read_config_file(paths: List[Path], warnings: List[str]) -> Tuple[Dict[str, str], Optional[Path]]:
    for path in paths:
        if not path.exists():
            continue
        try:
            raw = load_json(path, {})
        except (OSError, json.JSONDecodeError) as exc:
            warnings.append(f"Failed to load config from {path}: {exc}")
            continue
        if not isinstance(raw, dict):
            warnings.append(f"Ignoring {path}: expected a JSON object")
            continue
        values = {}
        for key, value in raw.items():
            name = _FILE_KEYS.get(key)
            if name and isinstance(value, bool):
                value = "true" if value else "false"
            if name and isinstance(value, str) and value.strip():
                values[name] = value.strip()
        return values, path
    return {}, None


def resolve_config(
    config_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace: Optional[Path] = None,
) -> LogConfig:
    """Build a fully populated config: environment, then config file, then defaults."""
    env = os.environ if env is None else env
    warnings: List[str] = []

    values: Dict[str, str] = {"journal_dir": default_journal_dir(), "today_header": DEFAULT_TODAY_HEADER}
    file_values, source = _read_config_file(config_paths(config_path), warnings)
    values.update(file_values)
    for key, name in _ENV_KEYS.items():
        raw = env.get(key, "")
        if raw.strip():
            values[name] = raw.strip()

    storage = values.get("storage", "local").lower()
    if storage not in STORAGE_BACKENDS:
        warnings.append(f"Unknown storage backend {storage!r}, using local")
        storage = "local"

    log_dir: Optional[Path] = None
    if values.get("log_dir"):
        log_dir = Path(values["log_dir"]).expanduser()
    elif workspace is not None:
        log_dir = workspace / "data" / "logs"

    journal_dir = values["journal_dir"]
    if storage == "local":
        journal_dir = str(Path(journal_dir).expanduser())

    return LogConfig(
        journal_dir=journal_dir,
        today_header=values["today_header"],
        storage=storage,
        vault_url=values.get("vault_url"),
        vault_token=values.get("vault_token"),
        vault_verify=values.get("vault_verify", "false").lower() in ("1", "true", "yes", "on"),
        log_dir=log_dir,
        source=source,
        warnings=tuple(warnings),
    )


def create_sample_config(path: Optional[str] = None) -> Path:
    target = Path(path).expanduser() if path else config_paths()[0]
    sample = {
        "journalDir": default_journal_dir(),
        "todayHeader": DEFAULT_TODAY_HEADER,
        "storage": "local",
        "vaultUrl": "https://127.0.0.1:27124",
        "vaultToken": "",
        "vaultVerify": False,
        "$comments": {
            "journalDir": "Directory holding one YYYY-MM-DD.md note per day (vault-relative for storage=vault)",
            "todayHeader": "Header line that starts the section entries are added to",
            "storage": "local (files on disk) or vault (Obsidian Local REST API)",
            "vaultVerify": "Check the vault TLS certificate; the plugin ships a self-signed one",
        },
    }
    atomic_write_json(target, sample)
    return target


def validate_config(config: LogConfig) -> List[str]:
    problems = []
    if config.storage == "vault":
        if not config.vault_url:
            problems.append("Vault storage needs DAYLOG_VAULT_URL (or vaultUrl in the config file)")
        return problems

    journal_dir = Path(config.journal_dir)
    if not journal_dir.is_dir():
        problems.append(f"Journal directory does not exist: {journal_dir}")
    elif not os.access(journal_dir, os.W_OK):
        problems.append(f"Journal directory is not writable: {journal_dir}")
    return problems


def get_allowed_users(var: str = "ALLOWED_USERS") -> List[str]:
    raw = os.environ.get(var, "")
    if not raw.strip():
        return []
    parts = [p.strip() for p in raw.replace(";", ",").split(",")]
    return [p for p in parts if p]
