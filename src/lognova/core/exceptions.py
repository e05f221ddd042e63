"""Custom exceptions for lognova."""

from typing import Any


class LogNovaError(Exception):
    """Base exception for all lognova errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ConfigError(LogNovaError):
    """Configuration-related errors."""

    pass


class ValidationError(LogNovaError):
    """Input validation errors."""

    pass


class LogsError(LogNovaError):
    """Errors raised while reading a log source."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.source = source


class NotFoundError(LogsError):
    """A source identifier did not resolve to anything."""

    pass


class SourceUnavailableError(LogsError):
    """Backend unreachable, tool missing, permission denied or timed out."""

    pass


class ParseFailure(LogsError):
    """A single raw record could not be parsed.

    Raised per record and absorbed by the adapter; never fatal to a batch.
    """

    pass


class InvalidFilterError(LogNovaError):
    """A filter bound could not be parsed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.field = field


class TimeoutError(LogNovaError):
    """Operation timeout errors."""

    def __init__(
        self,
        message: str,
        timeout_seconds: float | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.timeout_seconds = timeout_seconds
