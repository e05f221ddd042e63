"""Core utilities and shared components for lognova."""

# Note: Import context lazily to avoid circular imports
# Use: from lognova.core.context import LogNovaContext, pass_context
from lognova.core.exceptions import (
    LogNovaError,
    ConfigError,
    NotFoundError,
    SourceUnavailableError,
    ValidationError,
)
from lognova.core.output import OutputFormatter, console

__all__ = [
    "LogNovaError",
    "ConfigError",
    "NotFoundError",
    "SourceUnavailableError",
    "ValidationError",
    "OutputFormatter",
    "console",
]
