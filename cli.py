#!/usr/bin/env python3
"""
daylog - timestamped entries in today's daily note.

Usage:
  daylog "Had a productive morning call"
  daylog -t 09:30 "Retrospective meeting notes"
  daylog "had lunch @an hour ago"
  daylog "drank coffee @yesterday"       (writes to yesterday's note)
  daylog -l                              (list today's entries)
  daylog --init                          (create a sample config file)
"""

import argparse
import json
import sys
from typing import List, Optional

from config import create_sample_config, load_workspace_env, resolve_config, resolve_workspace, validate_config
from core_tools._utils import log_line
from journal import AddEntryRequest, ErrorKind, Result, add_entry, list_entries
from messages import describe_add, describe_error, describe_list
from storage import build_storage


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daylog",
        description="Add a timestamped entry to today's note, or list today's entries.",
        epilog="Append @<time> to a message for natural language times, e.g. \"lunch @an hour ago\".",
    )
    parser.add_argument("message", nargs="*", help="entry text; without it today's entries are listed")
    parser.add_argument("-t", "--time", default=None, help="override timestamp (HH:mm)")
    parser.add_argument("-l", "--list", action="store_true", help="list today's log entries")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for details, -vv for debug output")
    parser.add_argument("--init", action="store_true", help="create a sample configuration file")
    parser.add_argument("--config", default=None, help="path to a JSON config file")
    parser.add_argument("--workspace", default=None)
    parser.add_argument("--json", action="store_true", help="print a JSON result envelope")
    return parser


def _emit(lines: List[str], stream=None) -> None:
    for line in lines:
        print(line, file=stream or sys.stdout)


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_intermixed_args(argv)
    verbose = args.verbose

    def vlog(text: str) -> None:
        if verbose >= 1:
            print(text, file=sys.stderr)

    def vvlog(text: str) -> None:
        if verbose >= 2:
            print(text, file=sys.stderr)

    vvlog(f"📋 Parsed arguments: {vars(args)}")

    workspace = resolve_workspace(args.workspace, required=False)
    load_workspace_env(workspace)

    if args.init:
        target = create_sample_config(args.config)
        print(f"✅ Created sample config file: {target}")
        return 0

    config = resolve_config(args.config, workspace=workspace)
    for warning in config.warnings:
        print(f"⚠️  {warning}", file=sys.stderr)
    if config.source:
        vlog(f"📄 Loaded config from: {config.source}")
    else:
        vvlog("📄 Using default configuration (no config file found)")

    problems = validate_config(config)
    if problems:
        _emit([f"❌ {p}" for p in problems], sys.stderr)
        return 1

    message = " ".join(args.message).strip()
    storage = build_storage(config)

    if message and not args.list:
        vvlog(f"📝 Adding entry: {message!r} with time: {args.time or 'auto'}")
        result = add_entry(AddEntryRequest(message=message, override_time=args.time), config, storage)
        if result.success:
            log_line(config.log_dir, f"added {result.data.rendered_line} to {result.data.path}")
            if args.json:
                print(json.dumps(result.to_dict(), ensure_ascii=False))
            elif verbose:
                _emit(describe_add(result, config.today_header), sys.stderr)
            return 0
    elif args.time and not args.list:
        result = Result.fail(ErrorKind.INVALID_ARGUMENTS, "When using -t/--time, you must also provide a message")
    else:
        result = list_entries(config, storage)
        if result.success:
            if args.json:
                print(json.dumps(result.to_dict(), ensure_ascii=False))
            else:
                _emit(describe_list(result, config.today_header))
                vlog(f"📊 Total entries: {len(result.data.entries)}")
            return 0

    log_line(config.log_dir, f"{result.error.kind.value}: {result.error.message}")
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False))
    else:
        _emit(describe_error(result.error, config.today_header), sys.stderr)
        if result.error.kind is ErrorKind.INVALID_ARGUMENTS:
            print("💡 Use 'daylog --help' to see usage instructions.", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
