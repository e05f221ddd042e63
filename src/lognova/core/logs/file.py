"""Plain-text log file source implementation."""

import os
import re
from datetime import datetime, timezone
from pathlib import Path

from lognova.config import FileSourceConfig
from lognova.core.exceptions import SourceUnavailableError
from lognova.core.logging import get_logger
from lognova.core.logs.base import (
    LogEntry,
    LogLevel,
    LogQuery,
    LogSource,
    LogSourceFactory,
    SourceType,
)
from lognova.core.logs.normalize import normalize

logger = get_logger(__name__)

BLOCK_SIZE = 64 * 1024

# nginx error log: "2024/01/15 10:30:45 [error] ..." (local time)
_ERROR_LOG_TS = re.compile(r"^(\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2})\b")
# common/combined log format: "... [15/Jan/2024:10:30:45 +0000] ..."
_CLF_TS = re.compile(r"\[(\d{2}/[A-Za-z]{3}/\d{4}:\d{2}:\d{2}:\d{2} [+-]\d{4})\]")


def read_tail(path: Path, max_lines: int, block_size: int = BLOCK_SIZE) -> list[str]:
    """Read the last ``max_lines`` lines of a file.

    Seeks backwards in blocks so only the tail of large files is read.
    """
    if max_lines <= 0:
        return []

    with open(path, "rb") as f:
        f.seek(0, os.SEEK_END)
        position = f.tell()
        data = b""

        # One extra newline is needed to know the first kept line is complete
        while position > 0 and data.count(b"\n") <= max_lines:
            read_size = min(block_size, position)
            position -= read_size
            f.seek(position)
            data = f.read(read_size) + data

    raw_lines = data.split(b"\n")
    if raw_lines and raw_lines[-1] == b"":
        raw_lines.pop()
    if position > 0 and raw_lines:
        # First line may be a partial one cut by the block boundary
        raw_lines = raw_lines[1:]

    return [
        line.decode("utf-8", errors="replace").rstrip("\r")
        for line in raw_lines[-max_lines:]
    ]


def parse_line_timestamp(line: str) -> datetime | None:
    """Extract an nginx error-log or common-log-format timestamp."""
    match = _ERROR_LOG_TS.match(line)
    if match:
        try:
            local = datetime.strptime(match.group(1), "%Y/%m/%d %H:%M:%S")
        except ValueError:
            return None
        return local.astimezone(timezone.utc)

    match = _CLF_TS.search(line)
    if match:
        try:
            return datetime.strptime(match.group(1), "%d/%b/%Y:%H:%M:%S %z")
        except ValueError:
            return None

    return None


class FileLogSource(LogSource):
    """Log source for one configured plain-text file."""

    def __init__(self, config: FileSourceConfig | None = None):
        """Initialize file log source.

        Args:
            config: File source configuration (defaults apply when omitted)
        """
        self._config = config or FileSourceConfig()
        self._markers = [
            (marker, LogLevel(level)) for marker, level in self._config.level_markers.items()
        ]

    @property
    def name(self) -> str:
        return "file"

    @property
    def path(self) -> Path:
        return self._config.get_path()

    def search(self, query: LogQuery) -> list[LogEntry]:
        """Read the tail of the file.

        A missing file yields a single ERROR entry instead of an error, so the
        caller always has something to render.
        """
        path = self.path
        max_lines = query.tail or self._config.max_lines
        retrieved_at = datetime.now(timezone.utc)

        try:
            lines = read_tail(path, max_lines)
        except FileNotFoundError:
            logger.warning("Log file not found", path=str(path))
            return [
                LogEntry(
                    id="file-missing",
                    timestamp=retrieved_at,
                    level=LogLevel.ERROR,
                    message=f"Log file not found: {path}",
                    source=self._config.source_name,
                )
            ]
        except IsADirectoryError:
            raise SourceUnavailableError(f"Log path is a directory: {path}", source="file")
        except PermissionError:
            raise SourceUnavailableError(
                f"Cannot read log file {path}. Check permissions.", source="file"
            )
        except OSError as e:
            raise SourceUnavailableError(f"Cannot read log file {path}: {e}", source="file")

        entries: list[LogEntry] = []
        for line in lines:
            timestamp = parse_line_timestamp(line) if self._config.parse_timestamps else None
            entry = normalize(
                entry_id=f"file-{len(entries)}",
                message=line,
                source=self._config.source_name,
                level=self.detect_level(line),
                timestamp=timestamp,
                retrieved_at=retrieved_at,
            )
            if entry is not None:
                entries.append(entry)

        return entries

    def detect_level(self, line: str) -> LogLevel:
        """Level from the first literal marker found; INFO otherwise."""
        for marker, level in self._markers:
            if marker in line:
                return level
        return LogLevel.INFO


LogSourceFactory.register(SourceType.FILE, FileLogSource)
