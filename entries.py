import re
from dataclasses import dataclass
from datetime import date, time
from typing import List, Optional, Sequence, Tuple

from timeparse import format_clock


DEFAULT_HEADER = "## Today"
TOP_LEVEL_HEADER = "## "

# "- **09:05** message", bold markers optional, one- or two-digit hour
_ENTRY_RE = re.compile(r"^-\s+(?:\*\*)?(\d{1,2}):(\d{2})(?:\*\*)?(?:\s+(.*))?$")


class SectionNotFound(Exception):
    def __init__(self, header: str):
        super().__init__(
            f'Could not find "{header}" header in the daily note. '
            "Make sure the header exists or create it manually."
        )
        self.header = header


@dataclass(frozen=True)
class LogEntry:
    time_of_day: time
    message: str

    @property
    def raw(self) -> str:
        return render_entry(self.time_of_day, self.message)

    @property
    def timestamp(self) -> str:
        return format_clock(self.time_of_day)

    @property
    def sort_key(self) -> int:
        return self.time_of_day.hour * 60 + self.time_of_day.minute

    def to_dict(self) -> dict:
        return {"time": self.timestamp, "message": self.message, "raw": self.raw}


@dataclass(frozen=True)
class Section:
    """Half-open line range; ``start`` is the header line itself."""

    start: int
    end: int

    def content_range(self) -> range:
        return range(self.start + 1, self.end)


def render_entry(time_of_day: time, message: str) -> str:
    return f"- **{format_clock(time_of_day)}** {message}"


def parse_entry(line: str) -> Optional[LogEntry]:
    match = _ENTRY_RE.match(line)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return LogEntry(time_of_day=time(hour, minute), message=match.group(3) or "")


def split_lines(text: str) -> List[str]:
    return text.split("\n")


def join_lines(lines: Sequence[str]) -> str:
    return "\n".join(lines)


def locate_section(lines: Sequence[str], header: str = DEFAULT_HEADER) -> Section:
    start = None
    for index, line in enumerate(lines):
        if line.strip() == header:
            start = index
            break
    if start is None:
        raise SectionNotFound(header)

    end = len(lines)
    for index in range(start + 1, len(lines)):
        if lines[index].startswith(TOP_LEVEL_HEADER):
            end = index
            break
    return Section(start=start, end=end)


def sort_entries(entries: Sequence[LogEntry]) -> List[LogEntry]:
    # sorted() is stable: equal timestamps keep their merge order
    return sorted(entries, key=lambda entry: entry.sort_key)


def section_entries(lines: Sequence[str], section: Section) -> List[LogEntry]:
    found = []
    for index in section.content_range():
        entry = parse_entry(lines[index])
        if entry:
            found.append(entry)
    return sort_entries(found)


def merge_entry(
    lines: Sequence[str], section: Section, new_entry: LogEntry
) -> Tuple[List[str], List[LogEntry]]:
    """Rewrite the section with ``new_entry`` added, all entries in time order.

    Entry lines are pulled out of the section and the sorted block is put back
    right under the header. Other lines inside the section keep their relative
    order but all end up below the block, even prose that sat between entries.
    """
    kept_before: List[str] = []
    extracted: List[LogEntry] = []
    for index in section.content_range():
        entry = parse_entry(lines[index])
        if entry:
            extracted.append(entry)
        else:
            kept_before.append(lines[index])

    ordered = sort_entries(extracted + [new_entry])
    updated = list(lines[: section.start + 1])
    updated.extend(entry.raw for entry in ordered)
    updated.extend(kept_before)
    updated.extend(lines[section.end :])
    return updated, ordered


def note_template(day: date, header: str = DEFAULT_HEADER) -> str:
    return f"# {day.isoformat()}\n\n{header}\n\n"
