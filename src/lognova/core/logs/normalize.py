"""Mapping of raw source records onto the unified LogEntry shape."""

import re
from datetime import datetime, timezone
from typing import Any

from lognova.core.logs.base import LogEntry, LogLevel
from lognova.core.utils import ensure_utc

# ANSI CSI (colours, cursor moves) and OSC (window titles) sequences
_ANSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
_NEWLINE_RE = re.compile(r"[\r\n]+")
# C0 controls except TAB, plus DEL and lone ESC
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")

_RFC3339_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[T ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:?\d{2})?$"
)


def clean_message(text: str) -> str:
    """Strip escape sequences, control characters and trailing whitespace."""
    text = _ANSI_RE.sub("", text)
    text = _NEWLINE_RE.sub(" ", text)
    text = _CONTROL_RE.sub("", text)
    return text.rstrip()


def normalize(
    entry_id: str,
    message: str,
    source: str,
    level: LogLevel = LogLevel.INFO,
    timestamp: datetime | None = None,
    retrieved_at: datetime | None = None,
) -> LogEntry | None:
    """Build a LogEntry, or None when the message is blank.

    Args:
        entry_id: Identifier unique within the batch
        message: Raw message text
        source: Logical origin name
        level: Normalized level
        timestamp: Event time reported by the source, if any
        retrieved_at: Fallback timestamp for sources without event time

    Returns:
        The entry, or None if nothing printable remains
    """
    cleaned = clean_message(message)
    if not cleaned.strip():
        return None

    if timestamp is None:
        timestamp = retrieved_at or datetime.now(timezone.utc)

    return LogEntry(
        id=entry_id,
        timestamp=ensure_utc(timestamp),
        level=level,
        message=cleaned,
        source=source,
    )


def parse_priority(value: Any) -> LogLevel:
    """Map a syslog priority (0-7) to a LogLevel.

    <= 3 is ERROR, 4 is WARN, anything else (including missing) is INFO.
    """
    try:
        priority = int(value)
    except (TypeError, ValueError):
        return LogLevel.INFO

    if priority <= 3:
        return LogLevel.ERROR
    if priority <= 4:
        return LogLevel.WARN
    return LogLevel.INFO


def parse_rfc3339(text: str) -> datetime | None:
    """Parse an RFC3339 timestamp with up to nanosecond precision.

    Fractional seconds beyond microseconds are truncated. Returns None when the
    text is not a timestamp.
    """
    match = _RFC3339_RE.match(text.strip())
    if not match:
        return None

    date_part, time_part, fraction, offset = match.groups()
    iso = f"{date_part}T{time_part}"
    if fraction:
        iso += "." + fraction[:6].ljust(6, "0")
    if offset is None or offset == "Z":
        iso += "+00:00"
    elif ":" not in offset:
        iso += f"{offset[:3]}:{offset[3:]}"
    else:
        iso += offset

    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        return None
