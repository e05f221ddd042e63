"""Request dispatch across log sources."""

from typing import Any

from lognova.config import ProfileConfig
from lognova.core.exceptions import ValidationError
from lognova.core.logging import get_logger
from lognova.core.logs.base import (
    LogEntry,
    LogQuery,
    LogSource,
    LogSourceFactory,
    SourceDescriptor,
    SourceType,
)
from lognova.core.logs.filters import apply_filters
from lognova.core.logs.stats import StatsAggregator, StatsSnapshot

# Register source implementations with the factory
from lognova.core.logs import docker as _docker  # noqa: F401
from lognova.core.logs import file as _file  # noqa: F401
from lognova.core.logs import journal as _journal  # noqa: F401

logger = get_logger(__name__)


class LogService:
    """Single entry point for log, listing and stats requests.

    Holds only read-only configuration and the backend clients; every
    request builds its own source and entries.
    """

    def __init__(
        self,
        profile: ProfileConfig,
        docker_client: Any = None,
        systemd_client: Any = None,
    ):
        self._profile = profile
        self._docker_client = docker_client
        self._systemd_client = systemd_client

    @property
    def docker_client(self) -> Any:
        """Get or create the Docker client."""
        if self._docker_client is None:
            from lognova.clients.docker import DockerClient

            self._docker_client = DockerClient(self._profile.docker)
        return self._docker_client

    @property
    def systemd_client(self) -> Any:
        """Get or create the systemd tools runner."""
        if self._systemd_client is None:
            from lognova.clients.systemd import SystemdClient

            self._systemd_client = SystemdClient(self._profile.journal)
        return self._systemd_client

    def source(self, source_type: SourceType | str) -> LogSource:
        """Build the source for a source type."""
        source_type = SourceType.parse(source_type)
        if source_type == SourceType.CONTAINER:
            return LogSourceFactory.create(
                source_type, docker_client=self.docker_client, config=self._profile.docker
            )
        if source_type == SourceType.JOURNAL:
            return LogSourceFactory.create(
                source_type, systemd_client=self.systemd_client, config=self._profile.journal
            )
        return LogSourceFactory.create(source_type, config=self._profile.file)

    def query(self, query: LogQuery) -> list[LogEntry]:
        """Run a log request.

        Args:
            query: Request parameters

        Returns:
            Matching entries, oldest first
        """
        log = logger.bind(source=query.source_type.value, source_id=query.source_id)

        with self.source(query.source_type) as source:
            entries = source.search(query)
            residual = apply_filters(entries, query, skip=source.pushed_down)

        log.debug("Query complete", retrieved=len(entries), returned=len(residual))
        # Stable sort keeps source order for equal timestamps
        return sorted(residual, key=lambda entry: entry.timestamp)

    def list_sources(self, source_type: SourceType | str) -> list[SourceDescriptor]:
        """List containers or service units."""
        source_type = SourceType.parse(source_type)
        if source_type == SourceType.FILE:
            raise ValidationError("The file source has a single configured path; nothing to list")

        with self.source(source_type) as source:
            return source.list_sources()

    def stats(self) -> StatsSnapshot:
        """Collect a dashboard snapshot."""
        aggregator = StatsAggregator(
            docker_client=self.docker_client,
            systemd_client=self.systemd_client,
            config=self._profile.stats,
        )
        return aggregator.collect()

    def close(self) -> None:
        """Release backend connections."""
        if self._docker_client is not None and hasattr(self._docker_client, "close"):
            self._docker_client.close()

    def __enter__(self) -> "LogService":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
