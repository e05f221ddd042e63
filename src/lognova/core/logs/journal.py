"""systemd journal log source implementation."""

import json
import re
from datetime import datetime, timezone
from typing import Any

from lognova.config import JournalConfig
from lognova.core.exceptions import ParseFailure, SourceUnavailableError
from lognova.core.logging import get_logger
from lognova.core.logs.base import (
    LogEntry,
    LogLevel,
    LogQuery,
    LogSource,
    LogSourceFactory,
    SourceDescriptor,
    SourceType,
)
from lognova.core.logs.filters import QUERY
from lognova.core.logs.normalize import normalize, parse_priority
from lognova.core.utils import to_epoch_seconds

logger = get_logger(__name__)

# "at this severity or worse" thresholds for journalctl -p
PRIORITY_THRESHOLDS = {
    LogLevel.ERROR: "3",
    LogLevel.WARN: "4",
    LogLevel.INFO: "6",
}

DEFAULT_SOURCE = "system"


def journal_time(value: datetime, round_up: bool = False) -> str:
    """Format an instant the way journalctl --since/--until accept epochs."""
    return f"@{to_epoch_seconds(value, round_up=round_up)}"


def build_journal_args(query: LogQuery, max_lines: int) -> list[str]:
    """Translate a query into journalctl arguments.

    Args:
        query: Log query
        max_lines: Line cap applied when no time range is given

    Returns:
        Argument vector (without the executable)
    """
    args = ["-o", "json"]

    if query.source_id:
        args.extend(["-u", query.source_id])
    if query.start is not None:
        args.extend(["--since", journal_time(query.start)])
    if query.end is not None:
        args.extend(["--until", journal_time(query.end, round_up=True)])
    if query.level is not None and query.level in PRIORITY_THRESHOLDS:
        args.extend(["-p", PRIORITY_THRESHOLDS[query.level]])
    if query.query:
        args.extend(["--grep", re.escape(query.query), "--case-sensitive=false"])
    if not query.has_time_range:
        args.extend(["-n", str(query.tail or max_lines)])

    return args


def parse_journal_line(line: str, index: int) -> LogEntry | None:
    """Parse one line of ``journalctl -o json`` output.

    Raises:
        ParseFailure: The line is not a JSON object
    """
    try:
        record = json.loads(line)
    except ValueError as e:
        raise ParseFailure(f"invalid JSON: {e}", source="journal")
    if not isinstance(record, dict):
        raise ParseFailure("record is not an object", source="journal")

    return normalize(
        entry_id=str(record.get("__CURSOR") or f"journal-{index}"),
        message=_decode_field(record.get("MESSAGE")),
        source=_decode_field(record.get("_SYSTEMD_UNIT")) or DEFAULT_SOURCE,
        level=parse_priority(record.get("PRIORITY")),
        timestamp=_realtime(record.get("__REALTIME_TIMESTAMP")),
    )


def _decode_field(value: Any) -> str:
    """Journal fields are strings, or byte arrays when not valid UTF-8."""
    if value is None:
        return ""
    if isinstance(value, list):
        try:
            return bytes(value).decode("utf-8", errors="replace")
        except (TypeError, ValueError):
            return ""
    return str(value)


def _realtime(value: Any) -> datetime | None:
    """Microsecond epoch -> millisecond-precision instant."""
    try:
        millis = int(value) // 1000
    except (TypeError, ValueError):
        return None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def parse_journal_output(output: str) -> list[LogEntry]:
    """Parse journalctl JSON output, dropping malformed or blank records."""
    entries: list[LogEntry] = []
    dropped = 0

    for index, line in enumerate(output.splitlines()):
        if not line.strip():
            continue
        try:
            entry = parse_journal_line(line, index)
        except ParseFailure as e:
            dropped += 1
            logger.debug("Dropping journal record", line=index, error=e.message)
            continue
        if entry is not None:
            entries.append(entry)

    if dropped:
        logger.info("Dropped malformed journal records", count=dropped)
    return entries


class JournalLogSource(LogSource):
    """Log source for the systemd journal via journalctl."""

    # -p is a threshold and --since/--until are whole seconds, so exact level
    # and time matching stay in the filter engine
    pushed_down = frozenset({QUERY})

    def __init__(self, systemd_client: Any, config: JournalConfig | None = None):
        """Initialize journal log source.

        Args:
            systemd_client: SystemdClient instance
            config: Journal configuration (defaults apply when omitted)
        """
        self._client = systemd_client
        self._config = config or JournalConfig()

    @property
    def name(self) -> str:
        return "journal"

    def search(self, query: LogQuery) -> list[LogEntry]:
        """Query the journal."""
        args = build_journal_args(query, self._config.max_lines)
        output = self._client.journalctl(args)
        return parse_journal_output(output)

    def list_sources(self, fallback: bool = True) -> list[SourceDescriptor]:
        """List service units.

        Args:
            fallback: Substitute the configured placeholder list when
                systemctl is unavailable

        Returns:
            Unit descriptors
        """
        try:
            units = self._client.list_service_units()
        except SourceUnavailableError as e:
            if not fallback:
                raise
            logger.warning("Using placeholder service list", error=e.message)
            return [
                SourceDescriptor(
                    id=placeholder.name,
                    name=placeholder.name,
                    state=placeholder.state,
                    metadata={"description": placeholder.description, "placeholder": True},
                )
                for placeholder in self._config.fallback_services
            ]

        return [
            SourceDescriptor(
                id=unit.get("unit", ""),
                name=unit.get("unit", ""),
                state=unit.get("active", "unknown"),
                metadata={
                    "description": unit.get("description", ""),
                    "load": unit.get("load", ""),
                    "sub": unit.get("sub", ""),
                },
            )
            for unit in units
            if isinstance(unit, dict) and unit.get("unit")
        ]


LogSourceFactory.register(SourceType.JOURNAL, JournalLogSource)
