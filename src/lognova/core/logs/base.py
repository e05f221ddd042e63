"""Base classes for log source abstractions."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar

from lognova.core.exceptions import InvalidFilterError, ValidationError
from lognova.core.logging import get_logger
from lognova.core.utils import ensure_utc, parse_time

logger = get_logger(__name__)


class LogLevel(str, Enum):
    """Normalized log severity levels."""

    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"
    DEBUG = "DEBUG"
    UNKNOWN = "UNKNOWN"


ALL_LEVELS = "ALL"


class SourceType(str, Enum):
    """Log origins the service knows how to read."""

    CONTAINER = "CONTAINER"
    JOURNAL = "JOURNAL"
    FILE = "FILE"

    @classmethod
    def parse(cls, value: "str | SourceType") -> "SourceType":
        """Parse a source type, accepting the legacy DOCKER/SYSTEMD names."""
        if isinstance(value, SourceType):
            return value
        aliases = {"DOCKER": "CONTAINER", "SYSTEMD": "JOURNAL"}
        normalized = value.strip().upper()
        normalized = aliases.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(t.value for t in cls)
            raise ValidationError(f"Unknown source type: {value}. Choose from: {choices}")


@dataclass
class LogEntry:
    """Represents a single normalized log entry."""

    id: str
    timestamp: datetime
    level: LogLevel
    message: str
    source: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "message": self.message,
            "source": self.source,
        }

    def format(self, show_source: bool = True) -> str:
        """Format log entry for display."""
        ts = self.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        level_str = f"[{self.level.value}]"
        source_str = f"[{self.source}]" if show_source else ""
        parts = [ts, level_str, source_str, self.message]
        return " ".join(p for p in parts if p)


@dataclass
class SourceDescriptor:
    """A container or service that logs can be requested for."""

    id: str
    name: str
    state: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "state": self.state,
            "metadata": self.metadata,
        }


@dataclass
class LogQuery:
    """Query parameters for one log request.

    ``start`` and ``end`` accept datetimes or strings (ISO-8601, date only or
    relative such as ``-1h``). A string that cannot be parsed is dropped to
    "no bound" and recorded in ``warnings``.
    """

    source_type: SourceType = SourceType.JOURNAL
    source_id: str | None = None

    # Filtering
    query: str | None = None  # Free-text search
    level: LogLevel | None = None  # None means ALL
    start: datetime | None = None
    end: datetime | None = None

    # Only honoured when no time bound is set
    tail: int | None = None

    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Normalize loosely typed request values."""
        self.source_type = SourceType.parse(self.source_type)
        self.source_id = self.source_id or None
        self.query = self.query.strip() if self.query and self.query.strip() else None
        self.level = self._parse_level(self.level)
        self.start = self._parse_bound("start", self.start)
        self.end = self._parse_bound("end", self.end)

        if self.tail is not None and self.tail < 1:
            raise ValidationError("tail must be a positive number of lines")

    @staticmethod
    def _parse_level(value: "LogLevel | str | None") -> LogLevel | None:
        if value is None or isinstance(value, LogLevel):
            return value
        normalized = value.strip().upper()
        if normalized in ("", ALL_LEVELS):
            return None
        if normalized == "WARNING":
            normalized = "WARN"
        try:
            return LogLevel(normalized)
        except ValueError:
            choices = ", ".join([ALL_LEVELS] + [l.value for l in LogLevel])
            raise ValidationError(f"Unknown level: {value}. Choose from: {choices}")

    def _parse_bound(self, name: str, value: "datetime | str | None") -> datetime | None:
        if value is None:
            return None
        if isinstance(value, datetime):
            return ensure_utc(value)
        if isinstance(value, str) and not value.strip():
            return None
        try:
            if not isinstance(value, str):
                raise ValueError(f"expected a time string, got {type(value).__name__}")
            return parse_time(value)
        except ValueError as e:
            error = InvalidFilterError(f"Ignoring invalid {name} bound '{value}': {e}", field=name)
            self.warnings.append(error.message)
            logger.info(error.message)
            return None

    @property
    def has_time_range(self) -> bool:
        """Whether a start or end bound is set."""
        return self.start is not None or self.end is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source_type": self.source_type.value,
            "source_id": self.source_id,
            "query": self.query,
            "level": self.level.value if self.level else ALL_LEVELS,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "tail": self.tail,
        }


class LogSource(ABC):
    """Abstract base class for log sources.

    ``pushed_down`` names the predicates a source applies natively; the
    service runs the filter engine for the rest.
    """

    pushed_down: ClassVar[frozenset[str]] = frozenset()

    @property
    @abstractmethod
    def name(self) -> str:
        """Get log source name."""
        pass

    @abstractmethod
    def search(self, query: LogQuery) -> list[LogEntry]:
        """Retrieve entries for a query.

        Args:
            query: Log query parameters

        Returns:
            Normalized entries in the order the backend produced them
        """
        pass

    def list_sources(self) -> list[SourceDescriptor]:
        """List the containers or units this source can read."""
        raise ValidationError(f"{self.name} does not support source listing")

    def close(self) -> None:
        """Clean up resources."""
        pass

    def __enter__(self) -> "LogSource":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class LogSourceFactory:
    """Factory for creating log sources."""

    _sources: dict[SourceType, type[LogSource]] = {}

    @classmethod
    def register(cls, source_type: SourceType, source_class: type[LogSource]) -> None:
        """Register a log source type."""
        cls._sources[source_type] = source_class

    @classmethod
    def create(cls, source_type: SourceType, **kwargs: Any) -> LogSource:
        """Create a log source instance.

        Args:
            source_type: Source type to build
            **kwargs: Source-specific configuration

        Returns:
            LogSource instance
        """
        if source_type not in cls._sources:
            available = [t.value for t in cls._sources]
            raise ValidationError(
                f"Unknown log source: {source_type}. Available: {available}"
            )
        return cls._sources[source_type](**kwargs)

    @classmethod
    def available_sources(cls) -> list[SourceType]:
        """Get list of registered source types."""
        return list(cls._sources.keys())
