"""Resolve the time reference trailing a log message.

A message may end with ``@<reference>``:

  "code review @14:30"         exact time, today
  "had lunch @an hour ago"     natural language, today
  "drank coffee @yesterday"    natural language, redirected to yesterday's note
  "standup @this morning at 9am"
  "meeting prep @tomorrow"     future date, rejected by the caller

Anything the interpreter does not understand is left in the message untouched.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

import dateparser


MARKER = "@"

_CLOCK_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5]?[0-9])$")

# "5", "12th", "the 3rd": dateparser reads these as a month or a day of another month
_BARE_NUMBER_RE = re.compile(r"^(?:the\s+)?\d+(?:st|nd|rd|th)?$", re.IGNORECASE)

_DAY_PERIOD_RE = re.compile(r"\b(?:in the\s+)?(morning|afternoon|evening|night)\b")

_EXPLICIT_TIME_RE = re.compile(
    r"\d\s*(?:am|pm)\b|\d:\d|\bnoon\b|\bmidnight\b|\b(?:hour|minute|second|hr|min|sec)s?\b"
)

DAY_PERIODS = {
    "morning": "06:00",
    "afternoon": "15:00",
    "evening": "20:00",
    "night": "22:00",
}


@dataclass(frozen=True)
class ParsedTimeReference:
    time_of_day: Optional[time] = None
    target_date: Optional[date] = None
    is_future_date: bool = False
    recognized: bool = True
    is_natural_language: bool = False

    @property
    def timestamp(self) -> Optional[str]:
        return format_clock(self.time_of_day) if self.time_of_day is not None else None


@dataclass(frozen=True)
class TimeResolution:
    message: str
    reference: Optional[ParsedTimeReference] = None


def parse_clock(text: str) -> Optional[time]:
    """Strict ``H:mm`` / ``HH:mm`` check; also takes a one-digit minute."""
    match = _CLOCK_RE.match(text.strip())
    if not match:
        return None
    return time(int(match.group(1)), int(match.group(2)))


def validate_time_format(text: str) -> bool:
    return parse_clock(text) is not None


def format_clock(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def format_time(text: str) -> str:
    value = parse_clock(text)
    if value is None:
        raise ValueError(f"Invalid time format: {text!r}")
    return format_clock(value)


def normalize_reference(reference: str) -> str:
    """Rewrite parts of the day into clock times dateparser understands.

    "this morning at 9am" -> "today at 9am", "yesterday afternoon" -> "yesterday 15:00".
    """
    text = " ".join(reference.lower().split())
    text = re.sub(r"\blast night\b", "yesterday night", text)
    text = re.sub(r"\btonight\b", "today night", text)
    match = _DAY_PERIOD_RE.search(text)
    if not match:
        return text
    text = " ".join((text[: match.start()] + " " + text[match.end() :]).split())
    text = re.sub(r"^this\b", "today", text)
    if not _EXPLICIT_TIME_RE.search(text):
        text = f"{text} {DAY_PERIODS[match.group(1)]}".strip()
    return text


def interpret(reference: str, now: datetime) -> Optional[datetime]:
    """Natural language reference -> datetime, or None when not understood.

    A reference that names a day but no time of day keeps the current time.
    """
    if _BARE_NUMBER_RE.match(reference.strip()):
        return None
    text = normalize_reference(reference)
    settings = {
        "RELATIVE_BASE": now,
        "RETURN_AS_TIMEZONE_AWARE": False,
        "PREFER_DATES_FROM": "past",
        "PREFER_DAY_OF_MONTH": "first",
    }
    try:
        parsed = dateparser.parse(text, languages=["en"], settings=settings)
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None:
        return None
    if not _EXPLICIT_TIME_RE.search(text):
        parsed = parsed.replace(hour=now.hour, minute=now.minute)
    return parsed


def resolve(raw: str, now: Optional[datetime] = None) -> TimeResolution:
    now = now or datetime.now()
    index = raw.rfind(MARKER)
    if index == -1:
        return TimeResolution(message=raw.strip())

    message = raw[:index].strip()
    reference = raw[index + 1 :].strip()
    if not reference:
        return TimeResolution(message=raw.strip())

    clock = parse_clock(reference)
    if clock is not None:
        return TimeResolution(message=message, reference=ParsedTimeReference(time_of_day=clock))

    parsed = interpret(reference, now)
    if parsed is None:
        return TimeResolution(
            message=raw.strip(),
            reference=ParsedTimeReference(recognized=False, is_natural_language=True),
        )

    today = now.date()
    if parsed.date() > today:
        return TimeResolution(
            message=message,
            reference=ParsedTimeReference(is_future_date=True, is_natural_language=True),
        )

    return TimeResolution(
        message=message,
        reference=ParsedTimeReference(
            time_of_day=parsed.time().replace(second=0, microsecond=0),
            target_date=parsed.date() if parsed.date() != today else None,
            is_natural_language=True,
        ),
    )
