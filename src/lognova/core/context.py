"""Click context object for sharing state across commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from lognova.config import LogNovaConfig, ProfileConfig, get_default_config
from lognova.core.logging import StructuredLogger, Verbosity, setup_logging
from lognova.core.output import OutputFormat, OutputFormatter

if TYPE_CHECKING:
    from lognova.core.logs.service import LogService


class LogNovaContext:
    """Shared context object for lognova commands.

    This object is passed through Click's context mechanism and provides
    access to configuration, the log service, and output utilities.
    """

    def __init__(
        self,
        config: LogNovaConfig | None = None,
        profile: str | None = None,
        output_format: OutputFormat | None = None,
        verbose: int = 0,
        quiet: bool = False,
        color: bool = True,
    ):
        self._config = config or get_default_config()
        self._profile_name = profile or "default"

        # Output settings (CLI overrides config)
        self._output_format = output_format or self._config.global_settings.output_format
        self._verbose = verbose
        self._quiet = quiet
        if self._config.global_settings.color == "never":
            color = False
        self._color = color

        if verbose >= 2:
            log_level = Verbosity.DEBUG
        elif verbose >= 1:
            log_level = Verbosity.INFO
        elif quiet:
            log_level = Verbosity.ERROR
        else:
            log_level = self._config.global_settings.verbosity

        setup_logging(log_level, rich_output=color)
        self._logger = StructuredLogger("context")

        self._output = OutputFormatter(
            format=self._output_format,
            color=color,
            quiet=quiet,
        )

        # Lazy-loaded service
        self._service: LogService | None = None

    @property
    def config(self) -> LogNovaConfig:
        """Get the loaded configuration."""
        return self._config

    @property
    def profile(self) -> ProfileConfig:
        """Get the current profile configuration."""
        return self._config.get_profile(self._profile_name)

    @property
    def profile_name(self) -> str:
        """Get the current profile name."""
        return self._profile_name

    @property
    def output(self) -> OutputFormatter:
        """Get the output formatter."""
        return self._output

    @property
    def output_format(self) -> OutputFormat:
        """Get the output format."""
        return self._output_format

    @property
    def verbose(self) -> int:
        """Get verbosity level."""
        return self._verbose

    @property
    def quiet(self) -> bool:
        """Check if quiet mode is enabled."""
        return self._quiet

    @property
    def color(self) -> bool:
        """Check if color output is enabled."""
        return self._color

    @property
    def logger(self) -> StructuredLogger:
        """Get the context logger."""
        return self._logger

    @property
    def service(self) -> "LogService":
        """Get or create the log service."""
        if self._service is None:
            from lognova.core.logs.service import LogService

            self._service = LogService(self.profile)
        return self._service

    def close(self) -> None:
        """Release backend connections."""
        if self._service is not None:
            self._service.close()
            self._service = None


# Click decorator for passing context
pass_context = click.make_pass_decorator(LogNovaContext, ensure=True)
