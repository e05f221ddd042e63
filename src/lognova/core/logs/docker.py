"""Docker container logs source implementation."""

import struct
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from lognova.config import DockerConfig
from lognova.core.exceptions import NotFoundError, ParseFailure, ValidationError
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
from lognova.core.logs.normalize import normalize, parse_rfc3339
from lognova.core.utils import to_epoch_seconds

logger = get_logger(__name__)

STDIN = 0
STDOUT = 1
STDERR = 2

# [stream:1][reserved:3][length:4, big-endian]
_HEADER = struct.Struct(">BxxxL")
HEADER_SIZE = _HEADER.size


@dataclass(frozen=True)
class Frame:
    """One payload chunk of a multiplexed container stream."""

    stream: int
    payload: bytes


def demultiplex(data: bytes) -> list[Frame]:
    """Split a multiplexed stdout/stderr body into frames.

    Every frame is consumed by its declared length; payload bytes are never
    inspected. A truncated trailing frame is dropped with a warning.

    Args:
        data: Raw response body

    Returns:
        Frames in stream order
    """
    frames: list[Frame] = []
    offset = 0
    total = len(data)

    while offset < total:
        try:
            frames.append(_read_frame(data, offset))
        except ParseFailure as e:
            logger.warning("Dropping truncated stream frame", offset=offset, error=e.message)
            break
        offset += HEADER_SIZE + len(frames[-1].payload)

    return frames


def _read_frame(data: bytes, offset: int) -> Frame:
    if len(data) - offset < HEADER_SIZE:
        raise ParseFailure(f"incomplete header ({len(data) - offset} bytes)", source="docker")

    stream, length = _HEADER.unpack_from(data, offset)
    start = offset + HEADER_SIZE
    end = start + length
    if end > len(data):
        raise ParseFailure(
            f"payload declares {length} bytes, {len(data) - start} available",
            source="docker",
        )
    return Frame(stream=stream, payload=data[start:end])


def split_lines(frames: list[Frame]) -> list[tuple[int, bytes]]:
    """Reassemble frame payloads into lines, per stream.

    A line (or a multi-byte character) split over several frames of the same
    stream is joined before the newline split.

    Returns:
        (stream, line bytes) pairs in completion order
    """
    pending: dict[int, bytes] = {}
    lines: list[tuple[int, bytes]] = []

    for frame in frames:
        buffer = pending.get(frame.stream, b"") + frame.payload
        *complete, remainder = buffer.split(b"\n")
        lines.extend((frame.stream, line) for line in complete)
        pending[frame.stream] = remainder

    for stream, remainder in pending.items():
        if remainder:
            lines.append((stream, remainder))

    return lines


class ContainerLogSource(LogSource):
    """Log source for Docker container stdout/stderr."""

    # since/until are whole seconds, so exact bounds stay in the filter engine
    pushed_down: frozenset[str] = frozenset()

    def __init__(self, docker_client: Any, config: DockerConfig | None = None):
        """Initialize container log source.

        Args:
            docker_client: DockerClient instance
            config: Docker configuration (defaults apply when omitted)
        """
        self._client = docker_client
        self._config = config or DockerConfig()

    @property
    def name(self) -> str:
        return "docker"

    def search(self, query: LogQuery) -> list[LogEntry]:
        """Fetch the logs of one container."""
        if not query.source_id:
            raise ValidationError("A container name or ID is required")

        container = self.resolve(query.source_id)
        container_id = container["Id"]
        source = _container_name(container) or query.source_id

        params: dict[str, Any] = {"timestamps": self._config.timestamps}
        if query.has_time_range:
            # The backend's tail does not compose with time windows
            if query.start is not None:
                params["since"] = to_epoch_seconds(query.start)
            if query.end is not None:
                params["until"] = to_epoch_seconds(query.end, round_up=True)
        else:
            params["tail"] = query.tail or self._config.default_tail

        logger.debug("Fetching container logs", container=source, **params)
        body = self._client.container_logs(container_id, **params)

        if self._is_tty(container_id):
            lines = [(STDOUT, line) for line in body.split(b"\n")]
        else:
            lines = split_lines(demultiplex(body))

        retrieved_at = datetime.now(timezone.utc)
        entries: list[LogEntry] = []
        for stream, raw in lines:
            text = raw.decode("utf-8", errors="replace")
            timestamp = None
            if self._config.timestamps:
                timestamp, text = _split_timestamp(text)

            entry = normalize(
                entry_id=f"docker-{len(entries)}",
                message=text,
                source=source,
                level=LogLevel.INFO,
                timestamp=timestamp,
                retrieved_at=retrieved_at,
            )
            if entry is not None:
                entries.append(entry)

        return entries

    def resolve(self, identifier: str) -> dict[str, Any]:
        """Resolve a name substring or ID prefix to a container.

        The first container in listing order that matches wins.
        """
        for container in self._client.list_containers(all=True):
            names = container.get("Names") or []
            if any(identifier in name for name in names):
                return container
            if container.get("Id", "").startswith(identifier):
                return container

        raise NotFoundError(f"Container not found: {identifier}", source="docker")

    def _is_tty(self, container_id: str) -> bool:
        details = self._client.inspect_container(container_id)
        return bool((details.get("Config") or {}).get("Tty"))

    def list_sources(self) -> list[SourceDescriptor]:
        """List all containers, running or not."""
        return [
            SourceDescriptor(
                id=container["Id"][:12],
                name=_container_name(container),
                state=container.get("State", "unknown"),
                metadata={
                    "image": container.get("Image", ""),
                    "status": container.get("Status", ""),
                },
            )
            for container in self._client.list_containers(all=True)
        ]

    def count_running(self) -> int:
        """Count running containers."""
        return len(self._client.list_containers(all=False))


def _container_name(container: dict[str, Any]) -> str:
    names = container.get("Names") or [""]
    return names[0].lstrip("/")


def _split_timestamp(text: str) -> tuple[datetime | None, str]:
    """Split the RFC3339Nano prefix Docker adds with timestamps=1."""
    stamp, sep, rest = text.partition(" ")
    timestamp = parse_rfc3339(stamp) if sep else parse_rfc3339(text)
    if timestamp is None:
        return None, text
    return timestamp, rest


LogSourceFactory.register(SourceType.CONTAINER, ContainerLogSource)
