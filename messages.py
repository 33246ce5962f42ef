"""User-facing text shared by the CLI and the chat bots."""

import re
from dataclasses import dataclass
from typing import List, Optional

from journal import AddEntryResult, ErrorKind, ListEntriesResult, LogError, Result


CHAT_HELP = """Send a message to log it under today's note.

  had lunch                      logged at the current time
  code review @14:30             logged at 14:30
  had lunch @an hour ago         natural language time
  drank coffee @yesterday        goes to yesterday's note
  at 09:30 retro notes           explicit timestamp
  list                           today's entries

Future dates are not allowed."""

_AT_RE = re.compile(r"^/?at\s+(\d{1,2}:\d{1,2})(?:\s+(.*))?$", re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True)
class ChatCommand:
    action: str
    message: str = ""
    override_time: Optional[str] = None


def parse_chat_command(text: Optional[str]) -> Optional[ChatCommand]:
    cleaned = (text or "").strip()
    if not cleaned:
        return None
    word = cleaned.lower()
    if word in ("list", "/list", "ls", "today"):
        return ChatCommand("list")
    if word in ("help", "/help", "/start", "?"):
        return ChatCommand("help")
    match = _AT_RE.match(cleaned)
    if match:
        return ChatCommand("add", message=(match.group(2) or "").strip(), override_time=match.group(1))
    return ChatCommand("add", message=cleaned)


def describe_error(error: LogError, today_header: Optional[str] = None) -> List[str]:
    lines = [f"❌ {error.message}"]
    if error.kind is ErrorKind.SECTION_NOT_FOUND and today_header:
        lines.append(f'💡 Tip: Make sure your daily note contains a "{today_header}" header.')
    elif error.kind is ErrorKind.INVALID_TIME_FORMAT:
        lines.append("💡 Use a 24h time such as 09:30 or 14:15.")
    return lines


def describe_add(result: Result[AddEntryResult], today_header: Optional[str] = None) -> List[str]:
    if not result.success:
        return describe_error(result.error, today_header)
    data = result.data
    lines = [f"✅ {data.rendered_line}"]
    if data.created_new_note:
        lines.append(f"📄 Created new daily note: {data.note_date.isoformat()}")
    if data.resolved_natural_language_time:
        lines.append(f"🤖 Parsed time reference to: {data.resolved_natural_language_time}")
    lines.append(f"📊 {data.total_entry_count} entries in {data.note_date.isoformat()}")
    return lines


def describe_list(result: Result[ListEntriesResult], today_header: Optional[str] = None) -> List[str]:
    if not result.success:
        return describe_error(result.error, today_header)
    data = result.data
    if not data.entries:
        return [f"📋 No log entries found for today in {data.filename}"]
    lines = [f"📋 Today's log entries ({data.filename}):", ""]
    lines.extend(entry.raw for entry in data.entries)
    return lines


def split_text(text: str, limit: int = 3800) -> List[str]:
    if len(text) <= limit:
        return [text]
    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks
