"""Pytest fixtures for lognova tests."""

import json
import os
import struct
from collections.abc import Callable
from typing import Any, Generator
from unittest.mock import MagicMock

import httpx
import pytest
from click.testing import CliRunner

from lognova.clients.docker import DockerClient
from lognova.config import (
    DockerConfig,
    FileSourceConfig,
    JournalConfig,
    LogNovaConfig,
    ProfileConfig,
    StatsConfig,
)
from lognova.core.context import LogNovaContext
from lognova.core.output import OutputFormat


def make_frame(stream: int, payload: bytes) -> bytes:
    """Build one multiplexed stream frame."""
    return struct.pack(">BxxxL", stream, len(payload)) + payload


def journal_line(
    message: Any,
    priority: Any = "6",
    unit: str | None = "nginx.service",
    realtime_us: int = 1_705_314_645_123_456,
    cursor: str | None = None,
) -> str:
    """Build one line of journalctl -o json output."""
    record: dict[str, Any] = {"MESSAGE": message, "__REALTIME_TIMESTAMP": str(realtime_us)}
    if priority is not None:
        record["PRIORITY"] = priority
    if unit is not None:
        record["_SYSTEMD_UNIT"] = unit
    if cursor is not None:
        record["__CURSOR"] = cursor
    return json.dumps(record)


CONTAINERS = [
    {
        "Id": "3f2a9c1d4e5b" + "0" * 52,
        "Names": ["/web-frontend"],
        "Image": "nginx:1.25",
        "State": "running",
        "Status": "Up 2 days",
    },
    {
        "Id": "a1b2c3d4e5f6" + "1" * 52,
        "Names": ["/web-api"],
        "Image": "api:latest",
        "State": "running",
        "Status": "Up 5 hours",
    },
    {
        "Id": "ffee00112233" + "2" * 52,
        "Names": ["/failed-worker"],
        "Image": "worker:latest",
        "State": "exited",
        "Status": "Exited (1) 2 hours ago",
    },
]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI runner."""
    return CliRunner()


@pytest.fixture
def log_file(tmp_path) -> Any:
    """Path for a temporary log file (not created)."""
    return tmp_path / "error.log"


@pytest.fixture
def profile_config(log_file) -> ProfileConfig:
    """Profile pointing the file source at a temp path."""
    return ProfileConfig(
        docker=DockerConfig(socket_path="/nonexistent/docker.sock", timeout=2),
        journal=JournalConfig(timeout=2),
        file=FileSourceConfig(path=str(log_file), source_name="nginx"),
        stats=StatsConfig(timeout=1.0),
    )


@pytest.fixture
def mock_config(profile_config: ProfileConfig) -> LogNovaConfig:
    """Create a mock configuration."""
    return LogNovaConfig(profiles={"default": profile_config})


@pytest.fixture
def mock_context(mock_config: LogNovaConfig) -> LogNovaContext:
    """Create a mock LogNova context."""
    return LogNovaContext(
        config=mock_config,
        profile="default",
        output_format=OutputFormat.TABLE,
        verbose=0,
        quiet=False,
        color=False,
    )


@pytest.fixture
def docker_api() -> Callable[..., DockerClient]:
    """Build a DockerClient backed by an in-memory Engine API.

    Call with ``logs`` (bytes body), ``tty`` and ``containers`` overrides.
    Requests are recorded on ``client.requests``.
    """

    def factory(
        logs: bytes = b"",
        tty: bool = False,
        containers: list[dict[str, Any]] | None = None,
        status_code: int = 200,
    ) -> DockerClient:
        listing = CONTAINERS if containers is None else containers
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if status_code != 200:
                return httpx.Response(status_code, json={"message": "daemon error"})

            path = request.url.path
            if path.endswith("/containers/json"):
                if request.url.params.get("all") == "1":
                    return httpx.Response(200, json=listing)
                return httpx.Response(200, json=[c for c in listing if c["State"] == "running"])
            if path.endswith("/logs"):
                return httpx.Response(200, content=logs)
            if path.endswith("/json"):
                return httpx.Response(200, json={"Config": {"Tty": tty}})
            return httpx.Response(404, json={"message": "page not found"})

        client = DockerClient(DockerConfig(), transport=httpx.MockTransport(handler))
        client.requests = requests  # type: ignore[attr-defined]
        return client

    return factory


@pytest.fixture
def systemd_client() -> MagicMock:
    """Mock SystemdClient."""
    return MagicMock()


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Clean environment variables before each test."""
    env_vars = [
        "LOGNOVA_PROFILE",
        "LOGNOVA_CONFIG",
        "LOGNOVA_DOCKER_SOCKET",
        "LOGNOVA_LOG_FILE",
        "DOCKER_HOST",
    ]

    original = {k: os.environ.get(k) for k in env_vars}

    for k in env_vars:
        os.environ.pop(k, None)

    yield

    for k, v in original.items():
        if v is not None:
            os.environ[k] = v
        else:
            os.environ.pop(k, None)


@pytest.fixture
def temp_config_file(tmp_path, log_file):
    """Create a temporary config file."""
    config_content = f"""
version: "1"
global:
  output_format: json
profiles:
  default:
    docker:
      socket_path: /nonexistent/docker.sock
    file:
      path: {log_file}
      source_name: nginx
  staging:
    journal:
      max_lines: 50
"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(config_content)
    return str(config_file)
