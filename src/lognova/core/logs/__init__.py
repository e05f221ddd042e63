"""Log source abstractions for unified log access."""

from lognova.core.logs.base import (
    LogEntry,
    LogLevel,
    LogQuery,
    LogSource,
    LogSourceFactory,
    SourceDescriptor,
    SourceType,
)

__all__ = [
    "LogEntry",
    "LogLevel",
    "LogQuery",
    "LogSource",
    "LogSourceFactory",
    "SourceDescriptor",
    "SourceType",
]
