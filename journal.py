"""Add and list entries of the daily note.

Both operations return a ``Result`` instead of raising; callers decide how to
present failures. A note is read at most once and written at most once per call.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Protocol, TypeVar

from config import LogConfig
from entries import (
    LogEntry,
    SectionNotFound,
    join_lines,
    locate_section,
    merge_entry,
    note_template,
    section_entries,
    split_lines,
)
from timeparse import format_clock, parse_clock, resolve


T = TypeVar("T")

_LINE_BREAK_RE = re.compile(r"\s*[\r\n]+\s*")


class ErrorKind(str, Enum):
    SECTION_NOT_FOUND = "SECTION_NOT_FOUND"
    INVALID_TIME_FORMAT = "INVALID_TIME_FORMAT"
    STORAGE_READ_FAILURE = "STORAGE_READ_FAILURE"
    STORAGE_WRITE_FAILURE = "STORAGE_WRITE_FAILURE"
    INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
    FUTURE_DATE = "FUTURE_DATE"


class Status(str, Enum):
    OK = "ok"
    FAILED = "failed"
    REJECTED = "rejected"


class StorageError(Exception):
    pass


class NoteNotFound(StorageError):
    pass


class Storage(Protocol):
    def exists(self, path: str) -> bool: ...

    def read(self, path: str) -> str: ...

    def write(self, path: str, text: str) -> None: ...

    def ensure_dir(self, path: str) -> None: ...


@dataclass(frozen=True)
class LogError:
    kind: ErrorKind
    message: str
    cause: Optional[BaseException] = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class Result(Generic[T]):
    status: Status
    data: Optional[T] = None
    error: Optional[LogError] = None

    @property
    def success(self) -> bool:
        return self.status is Status.OK

    @property
    def rejected(self) -> bool:
        return self.status is Status.REJECTED

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        return cls(Status.OK, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str, cause: Optional[BaseException] = None) -> "Result[T]":
        status = Status.REJECTED if kind is ErrorKind.FUTURE_DATE else Status.FAILED
        return cls(status, error=LogError(kind, message, cause))

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            data = self.data.to_dict() if hasattr(self.data, "to_dict") else self.data
            return {"success": True, "data": data}
        return {"success": False, "rejected": self.rejected, "error": self.error.to_dict()}


@dataclass(frozen=True)
class AddEntryRequest:
    message: str
    override_time: Optional[str] = None


@dataclass(frozen=True)
class AddEntryResult:
    rendered_line: str
    total_entry_count: int
    created_new_note: bool
    note_date: date
    path: str
    resolved_natural_language_time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry": self.rendered_line,
            "total_entries": self.total_entry_count,
            "created_new_note": self.created_new_note,
            "date": self.note_date.isoformat(),
            "path": self.path,
            "parsed_time": self.resolved_natural_language_time,
        }


@dataclass(frozen=True)
class ListEntriesResult:
    entries: List[LogEntry]
    filename: str
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "path": self.path,
            "entries": [entry.to_dict() for entry in self.entries],
        }


def note_filename(day: date) -> str:
    return f"{day.isoformat()}.md"


def note_path(journal_dir: str, day: date) -> str:
    return f"{journal_dir.rstrip('/')}/{note_filename(day)}"


def add_entry(
    request: AddEntryRequest,
    config: LogConfig,
    storage: Storage,
    now: Optional[datetime] = None,
) -> Result[AddEntryResult]:
    now = now or datetime.now()

    if not isinstance(request.message, str) or not request.message.strip():
        return Result.fail(ErrorKind.INVALID_ARGUMENTS, "A log message is required")

    # An entry is a single line; chat clients send multi-line text
    message = _LINE_BREAK_RE.sub(" ", request.message.strip())
    resolution = resolve(message, now)
    reference = resolution.reference
    if reference is not None and reference.is_future_date:
        return Result.fail(
            ErrorKind.FUTURE_DATE,
            f"Cannot log entries for a future date: {message!r}",
        )
    if not resolution.message:
        return Result.fail(ErrorKind.INVALID_ARGUMENTS, "A log message is required before the @ time reference")

    if request.override_time is not None:
        time_of_day = parse_clock(request.override_time)
        if time_of_day is None:
            return Result.fail(
                ErrorKind.INVALID_TIME_FORMAT,
                f'Invalid time format: "{request.override_time}". Please use HH:mm format (e.g., 14:30)',
            )
    elif reference is not None and reference.time_of_day is not None:
        time_of_day = reference.time_of_day
    else:
        time_of_day = now.time().replace(second=0, microsecond=0)

    day = now.date()
    if reference is not None and reference.target_date is not None:
        day = reference.target_date
    path = note_path(config.journal_dir, day)

    try:
        if storage.exists(path):
            text = storage.read(path)
            created = False
        else:
            text = note_template(day, config.today_header)
            created = True
    except (OSError, StorageError, UnicodeDecodeError) as exc:
        return Result.fail(ErrorKind.STORAGE_READ_FAILURE, f"Could not read {path}: {exc}", exc)

    lines = split_lines(text)
    try:
        section = locate_section(lines, config.today_header)
    except SectionNotFound as exc:
        return Result.fail(ErrorKind.SECTION_NOT_FOUND, str(exc), exc)

    entry = LogEntry(time_of_day=time_of_day, message=resolution.message)
    updated, ordered = merge_entry(lines, section, entry)

    try:
        if created:
            storage.ensure_dir(config.journal_dir)
        storage.write(path, join_lines(updated))
    except (OSError, StorageError) as exc:
        return Result.fail(ErrorKind.STORAGE_WRITE_FAILURE, f"Could not write {path}: {exc}", exc)

    parsed_time = None
    natural = reference is not None and reference.is_natural_language and reference.recognized
    if natural and request.override_time is None:
        parsed_time = format_clock(time_of_day)

    return Result.ok(
        AddEntryResult(
            rendered_line=entry.raw,
            total_entry_count=len(ordered),
            created_new_note=created,
            note_date=day,
            path=path,
            resolved_natural_language_time=parsed_time,
        )
    )


def list_entries(
    config: LogConfig,
    storage: Storage,
    now: Optional[datetime] = None,
) -> Result[ListEntriesResult]:
    day = (now or datetime.now()).date()
    filename = note_filename(day)
    path = note_path(config.journal_dir, day)

    try:
        if not storage.exists(path):
            return Result.ok(ListEntriesResult(entries=[], filename=filename, path=path))
        text = storage.read(path)
    except (OSError, StorageError, UnicodeDecodeError) as exc:
        return Result.fail(ErrorKind.STORAGE_READ_FAILURE, f"Could not read {path}: {exc}", exc)

    lines = split_lines(text)
    try:
        section = locate_section(lines, config.today_header)
    except SectionNotFound as exc:
        return Result.fail(ErrorKind.SECTION_NOT_FOUND, str(exc), exc)

    return Result.ok(ListEntriesResult(entries=section_entries(lines, section), filename=filename, path=path))
