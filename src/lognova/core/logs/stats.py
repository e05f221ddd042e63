"""Cross-source dashboard statistics.

Five independent collectors run concurrently; each one is bounded by its own
timeout and falls back to a default value on any failure, so one broken
backend never blanks out the rest of the snapshot.
"""

import asyncio
import random
import re
from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from lognova.config import StatsConfig
from lognova.core.async_utils import run_blocking, run_sync
from lognova.core.logging import get_logger
from lognova.core.logs.journal import journal_time

logger = get_logger(__name__)

UNKNOWN_SIZE = "Unknown"

# "Archived and active journals take up 1.2G in the file system."
_DISK_USAGE_RE = re.compile(r"take up\s+(\d+(?:\.\d+)?\s*[KMGTPE]?i?B?)\b", re.IGNORECASE)


@dataclass
class VolumePoint:
    """One bucket of the volume series."""

    time: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "count": self.count}


@dataclass
class StatsSnapshot:
    """Point-in-time summary across sources."""

    disk_usage: str = UNKNOWN_SIZE
    error_count: int = 0
    warn_count: int = 0
    active_containers: int = 0
    active_services: int = 0
    volume_series: list[VolumePoint] = field(default_factory=list)
    simulated_volume: bool = True
    collected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    failures: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "disk_usage": self.disk_usage,
            "error_count": self.error_count,
            "warn_count": self.warn_count,
            "active_containers": self.active_containers,
            "active_services": self.active_services,
            "volume_series": [point.to_dict() for point in self.volume_series],
            "simulated_volume": self.simulated_volume,
            "collected_at": self.collected_at.isoformat(),
        }


def parse_disk_usage(output: str) -> str:
    """Pull the human-readable size out of ``journalctl --disk-usage``."""
    match = _DISK_USAGE_RE.search(output)
    if not match:
        return UNKNOWN_SIZE
    return match.group(1).replace(" ", "")


def simulated_volume_series(
    buckets: int,
    bucket_minutes: int,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> list[VolumePoint]:
    """Placeholder volume series.

    Not derived from real counts: there is no time-series store. Produces
    ``buckets`` points ending at the bucket containing ``now``.
    """
    now = now or datetime.now(timezone.utc)
    rng = rng or random.Random()
    step = timedelta(minutes=bucket_minutes)
    minutes = (now.minute // bucket_minutes) * bucket_minutes
    last = now.replace(minute=minutes, second=0, microsecond=0)

    return [
        VolumePoint(
            time=(last - step * (buckets - 1 - i)).strftime("%H:%M"),
            count=rng.randint(100, 400),
        )
        for i in range(buckets)
    ]


class StatsAggregator:
    """Collects a StatsSnapshot from the container and journal backends."""

    def __init__(
        self,
        docker_client: Any,
        systemd_client: Any,
        config: StatsConfig | None = None,
    ):
        """Initialize the aggregator.

        Args:
            docker_client: DockerClient shared with the container source
            systemd_client: SystemdClient shared with the journal source
            config: Stats configuration
        """
        self._docker = docker_client
        self._systemd = systemd_client
        self._config = config or StatsConfig()

    def collect(self) -> StatsSnapshot:
        """Collect a snapshot synchronously."""
        return run_sync(self.collect_async())

    async def collect_async(self) -> StatsSnapshot:
        """Fan out all collectors and join on every one of them."""
        snapshot = StatsSnapshot()
        collectors: list[tuple[str, Callable[[], Any]]] = [
            ("active_containers", self.active_containers),
            ("active_services", self.active_services),
            ("disk_usage", self.disk_usage),
            ("error_count", self.error_count),
            ("warn_count", self.warn_count),
        ]

        # Timed-out workers are abandoned rather than joined
        executor = ThreadPoolExecutor(
            max_workers=len(collectors), thread_name_prefix="lognova-stats"
        )
        try:
            results = await asyncio.gather(
                *[
                    self._run_collector(name, func, snapshot, executor)
                    for name, func in collectors
                ]
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        for (name, _), value in zip(collectors, results):
            if value is not None:
                setattr(snapshot, name, value)

        snapshot.volume_series = simulated_volume_series(
            self._config.volume_buckets, self._config.bucket_minutes
        )
        return snapshot

    async def _run_collector(
        self,
        name: str,
        func: Callable[[], Any],
        snapshot: StatsSnapshot,
        executor: Executor | None = None,
    ) -> Any:
        try:
            return await run_blocking(
                func,
                timeout=self._config.timeout,
                timeout_message=f"{name} timed out after {self._config.timeout}s",
                executor=executor,
            )
        except Exception as e:
            # A failed collector keeps its default
            logger.warning("Stats collector failed", collector=name, error=str(e))
            snapshot.failures[name] = str(e)
            return None

    def _since(self) -> str:
        start = datetime.now(timezone.utc) - timedelta(hours=self._config.window_hours)
        return journal_time(start)

    def _count_journal(self, priority: str) -> int:
        # Only PRIORITY is emitted; records are counted, not parsed
        output = self._systemd.journalctl(
            [
                "-o", "json",
                "--output-fields=PRIORITY",
                "-q",
                "-p", priority,
                "--since", self._since(),
            ],
            timeout=self._config.timeout,
        )
        return sum(1 for line in output.splitlines() if line.strip())

    def active_containers(self) -> int:
        """Number of running containers."""
        return len(self._docker.list_containers(all=False, timeout=self._config.timeout))

    def active_services(self) -> int:
        """Number of active service units."""
        units = self._systemd.list_service_units(active_only=True, timeout=self._config.timeout)
        return sum(1 for unit in units if isinstance(unit, dict) and unit.get("active") == "active")

    def disk_usage(self) -> str:
        """Journal storage footprint, or "Unknown"."""
        output = self._systemd.journalctl(["--disk-usage"], timeout=self._config.timeout)
        return parse_disk_usage(output)

    def error_count(self) -> int:
        """Error-or-worse journal records in the trailing window."""
        return self._count_journal("0..3")

    def warn_count(self) -> int:
        """Warning journal records in the trailing window."""
        return self._count_journal("4..4")
