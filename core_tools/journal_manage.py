import argparse
import json
import sys
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from config import load_workspace_env, resolve_config, resolve_workspace
from core_tools._utils import log_line
from journal import AddEntryRequest, add_entry, list_entries
from storage import build_storage


def add(config, text: str, time: Optional[str] = None) -> bool:
    result = add_entry(AddEntryRequest(message=text, override_time=time), config, build_storage(config))
    if result.success:
        log_line(config.log_dir, f"journal_manage add: {result.data.rendered_line}")
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return result.success


def list_today(config) -> bool:
    result = list_entries(config, build_storage(config))
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return result.success


def main() -> None:
    parser = argparse.ArgumentParser(description="Add to or list today's journal note")
    parser.add_argument("--config", default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    add_p = sub.add_parser("add")
    add_p.add_argument("--text", required=True)
    add_p.add_argument("--time", default=None)

    sub.add_parser("list")

    args = parser.parse_args()
    workspace = resolve_workspace(required=False)
    load_workspace_env(workspace)
    config = resolve_config(args.config, workspace=workspace)

    if args.cmd == "add":
        ok = add(config, args.text, args.time)
    else:
        ok = list_today(config)
    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:
        print(json.dumps({"success": False, "error": str(exc)}))
        sys.exit(1)
