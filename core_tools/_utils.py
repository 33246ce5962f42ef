import json
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv


def resolve_workspace(workspace_arg: Optional[str] = None, required: bool = True) -> Optional[Path]:
    if workspace_arg:
        return Path(workspace_arg).expanduser().resolve()

    env = os.environ.get("DAYLOG_WORKSPACE")
    if env:
        return Path(env).expanduser().resolve()

    # Fallback: if current working directory looks like workspace
    cwd = Path.cwd()
    if (cwd / ".env").exists() or (cwd / "data").exists():
        return cwd.resolve()

    if not required:
        return None
    raise RuntimeError("Workspace path not provided. Set DAYLOG_WORKSPACE or pass --workspace.")


def load_workspace_env(workspace: Optional[Path]) -> None:
    if workspace is None:
        return
    env_path = workspace / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=True)


def load_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8", newline="") as f:
        f.write(text)
    tmp.replace(path)


def atomic_write_json(path: Path, data: Any) -> None:
    atomic_write_text(path, json.dumps(data, ensure_ascii=False, indent=2) + "\n")


def iso_now() -> str:
    return datetime.now().isoformat(timespec="seconds")


def log_line(log_dir: Optional[Path], text: str) -> None:
    if log_dir is None:
        return
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{datetime.now().date().isoformat()}.log"
    with log_file.open("a", encoding="utf-8") as f:
        f.write(f"[{iso_now()}] {text}\n")


def cleanup_logs(log_dir: Optional[Path], days: int = 14) -> None:
    if log_dir is None or not log_dir.exists():
        return
    cutoff = datetime.now().date() - timedelta(days=days)
    for path in log_dir.glob("*.log"):
        try:
            date = datetime.fromisoformat(path.stem).date()
        except ValueError:
            continue
        if date < cutoff:
            path.unlink(missing_ok=True)
