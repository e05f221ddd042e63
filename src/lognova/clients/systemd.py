"""Runner for the systemd command-line tools (journalctl, systemctl)."""

import json
import shutil
import subprocess
from typing import Any

from lognova.config import JournalConfig
from lognova.core.exceptions import SourceUnavailableError
from lognova.core.logging import get_logger

logger = get_logger(__name__)


class SystemdClient:
    """Runs journalctl and systemctl as argument vectors, never via a shell."""

    def __init__(self, config: JournalConfig):
        self._config = config

    @property
    def timeout(self) -> int:
        return self._config.timeout

    def _resolve(self, executable: str) -> str:
        path = shutil.which(executable)
        if not path:
            raise SourceUnavailableError(f"{executable} not found on PATH", source="journal")
        return path

    def run(self, executable: str, args: list[str], timeout: float | None = None) -> str:
        """Run a tool and return its stdout.

        subprocess.run kills the child on timeout or interrupt before the
        exception propagates.

        Args:
            executable: Tool name or path
            args: Arguments, passed as-is
            timeout: Seconds before the child is killed

        Returns:
            Decoded stdout

        Raises:
            SourceUnavailableError: Tool missing, non-zero exit or timeout
        """
        cmd = [self._resolve(executable)] + args
        timeout = timeout or self._config.timeout
        logger.debug("Running command", cmd=" ".join(cmd), timeout=timeout)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired:
            raise SourceUnavailableError(
                f"{executable} timed out after {timeout}s", source="journal"
            )
        except OSError as e:
            raise SourceUnavailableError(f"Failed to run {executable}: {e}", source="journal")

        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise SourceUnavailableError(
                f"{executable} exited with status {result.returncode}",
                source="journal",
                details={"stderr": stderr} if stderr else None,
            )

        return result.stdout

    def journalctl(self, args: list[str], timeout: float | None = None) -> str:
        """Run journalctl with --no-pager."""
        return self.run(self._config.journalctl, ["--no-pager"] + args, timeout=timeout)

    def systemctl(self, args: list[str], timeout: float | None = None) -> str:
        """Run systemctl with --no-pager."""
        return self.run(self._config.systemctl, ["--no-pager"] + args, timeout=timeout)

    def list_service_units(
        self,
        active_only: bool = False,
        timeout: float | None = None,
    ) -> list[dict[str, Any]]:
        """List service units as systemctl's JSON objects."""
        args = ["list-units", "--type=service", "--output=json"]
        args.append("--state=active" if active_only else "--all")

        output = self.systemctl(args, timeout=timeout)
        try:
            units = json.loads(output or "[]")
        except ValueError as e:
            raise SourceUnavailableError(f"Failed to parse systemctl output: {e}", source="journal")

        if not isinstance(units, list):
            raise SourceUnavailableError("Unexpected systemctl output", source="journal")
        return units
