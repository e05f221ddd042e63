"""Tests for the container log source and Docker API client."""

from datetime import datetime, timezone

import httpx
import pytest

from conftest import make_frame
from lognova.clients.docker import DockerClient
from lognova.config import DockerConfig
from lognova.core.exceptions import NotFoundError, SourceUnavailableError, ValidationError
from lognova.core.logs.base import LogLevel, LogQuery, SourceType
from lognova.core.logs.docker import (
    STDERR,
    STDOUT,
    ContainerLogSource,
    Frame,
    demultiplex,
    split_lines,
)


def _container_query(**kwargs) -> LogQuery:
    return LogQuery(source_type=SourceType.CONTAINER, **kwargs)


def _logs_request(client) -> httpx.Request:
    return next(r for r in client.requests if r.url.path.endswith("/logs"))


class TestDemultiplex:
    """Tests for stream de-framing."""

    def test_empty_body(self):
        assert demultiplex(b"") == []

    def test_frames_in_order(self):
        data = make_frame(STDOUT, b"out\n") + make_frame(STDERR, b"err\n")
        assert demultiplex(data) == [Frame(STDOUT, b"out\n"), Frame(STDERR, b"err\n")]

    def test_payload_is_consumed_by_length(self):
        # Payload that itself looks like a frame header must not be re-parsed
        tricky = b"\x01\x00\x00\x00\x00\x00\x00\x05hello\n"
        data = make_frame(STDOUT, tricky) + make_frame(STDERR, b"after\n")

        frames = demultiplex(data)

        assert frames == [Frame(STDOUT, tricky), Frame(STDERR, b"after\n")]

    def test_empty_payload_frame(self):
        data = make_frame(STDOUT, b"") + make_frame(STDOUT, b"x\n")
        assert demultiplex(data) == [Frame(STDOUT, b""), Frame(STDOUT, b"x\n")]

    def test_truncated_header_dropped(self):
        data = make_frame(STDOUT, b"whole\n") + b"\x01\x00\x00"
        assert demultiplex(data) == [Frame(STDOUT, b"whole\n")]

    def test_truncated_payload_dropped(self):
        data = make_frame(STDOUT, b"whole\n") + make_frame(STDERR, b"cut short\n")[:-3]
        assert demultiplex(data) == [Frame(STDOUT, b"whole\n")]


class TestSplitLines:
    """Tests for line reassembly across frames."""

    def test_multiple_lines_in_one_frame(self):
        lines = split_lines([Frame(STDOUT, b"a\nb\n")])
        assert lines == [(STDOUT, b"a"), (STDOUT, b"b")]

    def test_multibyte_character_split_across_frames(self):
        encoded = "café ok\n".encode("utf-8")
        cut = encoded.index(b"\xc3") + 1
        frames = [Frame(STDOUT, encoded[:cut]), Frame(STDOUT, encoded[cut:])]

        lines = split_lines(frames)

        assert lines == [(STDOUT, encoded[:-1])]
        assert lines[0][1].decode("utf-8") == "café ok"

    def test_streams_reassembled_independently(self):
        frames = [
            Frame(STDOUT, b"par"),
            Frame(STDERR, b"boom\n"),
            Frame(STDOUT, b"tial\n"),
        ]
        assert split_lines(frames) == [(STDERR, b"boom"), (STDOUT, b"partial")]

    def test_unterminated_last_line_kept(self):
        assert split_lines([Frame(STDOUT, b"done\nno newline")]) == [
            (STDOUT, b"done"),
            (STDOUT, b"no newline"),
        ]


class TestContainerLogSource:
    """Tests for ContainerLogSource."""

    def test_search_requires_container(self, docker_api):
        source = ContainerLogSource(docker_api())
        with pytest.raises(ValidationError):
            source.search(_container_query())

    def test_search_multiplexed(self, docker_api):
        body = make_frame(STDOUT, b"2024-01-15T10:30:45.123456789Z GET / 200\n") + make_frame(
            STDERR, b"2024-01-15T10:30:46Z \x1b[31merror\x1b[0m: boom\n"
        )
        source = ContainerLogSource(docker_api(logs=body))

        entries = source.search(_container_query(source_id="frontend"))

        assert [e.message for e in entries] == ["GET / 200", "error: boom"]
        assert [e.id for e in entries] == ["docker-0", "docker-1"]
        assert all(e.source == "web-frontend" for e in entries)
        assert all(e.level == LogLevel.INFO for e in entries)
        assert entries[0].timestamp == datetime(
            2024, 1, 15, 10, 30, 45, 123456, tzinfo=timezone.utc
        )

    def test_search_tty_container(self, docker_api):
        source = ContainerLogSource(
            docker_api(logs=b"line one\r\nline two\n", tty=True),
            DockerConfig(timestamps=False),
        )

        entries = source.search(_container_query(source_id="web-api"))

        assert [e.message for e in entries] == ["line one", "line two"]
        assert entries[0].source == "web-api"

    def test_blank_lines_dropped(self, docker_api):
        body = make_frame(STDOUT, b"first\n\n   \nsecond\n")
        source = ContainerLogSource(docker_api(logs=body), DockerConfig(timestamps=False))

        entries = source.search(_container_query(source_id="web"))

        assert [e.message for e in entries] == ["first", "second"]

    def test_missing_timestamps_fall_back_to_one_retrieval_time(self, docker_api):
        body = make_frame(STDOUT, b"a\nb\nc\n")
        source = ContainerLogSource(docker_api(logs=body))

        entries = source.search(_container_query(source_id="web"))

        assert len({e.timestamp for e in entries}) == 1

    def test_tail_without_time_range(self, docker_api):
        client = docker_api()
        ContainerLogSource(client, DockerConfig(default_tail=50)).search(
            _container_query(source_id="web")
        )

        params = _logs_request(client).url.params
        assert params["tail"] == "50"
        assert "since" not in params
        assert "until" not in params

    def test_explicit_tail(self, docker_api):
        client = docker_api()
        ContainerLogSource(client).search(_container_query(source_id="web", tail=5))
        assert _logs_request(client).url.params["tail"] == "5"

    def test_time_range_pushed_down_without_tail(self, docker_api):
        client = docker_api()
        query = _container_query(
            source_id="web",
            start=datetime(2024, 1, 15, 10, 30, 45, 500000, tzinfo=timezone.utc),
            end=datetime(2024, 1, 15, 10, 30, 45, 500000, tzinfo=timezone.utc),
        )

        ContainerLogSource(client).search(query)

        params = _logs_request(client).url.params
        assert params["since"] == "1705314645"
        assert params["until"] == "1705314646"
        assert "tail" not in params

    def test_request_flags(self, docker_api):
        client = docker_api()
        ContainerLogSource(client).search(_container_query(source_id="web"))

        request = _logs_request(client)
        assert request.url.path.startswith("/containers/3f2a9c1d4e5b")
        assert request.url.params["stdout"] == "1"
        assert request.url.params["stderr"] == "1"
        assert request.url.params["follow"] == "0"
        assert request.url.params["timestamps"] == "1"

    def test_time_bounds_left_to_filter_engine(self):
        assert ContainerLogSource.pushed_down == frozenset()


class TestResolve:
    """Tests for container resolution."""

    def test_first_name_match_wins(self, docker_api):
        source = ContainerLogSource(docker_api())
        assert source.resolve("web")["Names"] == ["/web-frontend"]

    def test_id_prefix(self, docker_api):
        source = ContainerLogSource(docker_api())
        assert source.resolve("a1b2c3")["Names"] == ["/web-api"]

    def test_stopped_containers_resolve(self, docker_api):
        source = ContainerLogSource(docker_api())
        assert source.resolve("failed")["State"] == "exited"

    def test_not_found(self, docker_api):
        source = ContainerLogSource(docker_api())
        with pytest.raises(NotFoundError, match="Container not found: nothing"):
            source.resolve("nothing")

    def test_not_found_on_empty_daemon(self, docker_api):
        source = ContainerLogSource(docker_api(containers=[]))
        with pytest.raises(NotFoundError):
            source.search(_container_query(source_id="web"))


class TestListSources:
    """Tests for container listing."""

    def test_lists_all_containers(self, docker_api):
        descriptors = ContainerLogSource(docker_api()).list_sources()

        assert [d.name for d in descriptors] == ["web-frontend", "web-api", "failed-worker"]
        assert descriptors[0].id == "3f2a9c1d4e5b"
        assert descriptors[2].state == "exited"
        assert descriptors[0].metadata == {"image": "nginx:1.25", "status": "Up 2 days"}

    def test_count_running(self, docker_api):
        assert ContainerLogSource(docker_api()).count_running() == 2


class TestDockerClient:
    """Tests for DockerClient."""

    def test_client_initialization(self):
        client = DockerClient(DockerConfig())
        assert client._client is None  # Lazy initialization

    def test_missing_socket(self):
        client = DockerClient(DockerConfig(socket_path="/nonexistent/docker.sock"))
        with pytest.raises(SourceUnavailableError, match="Docker socket not found"):
            client.list_containers()

    def test_server_error(self, docker_api):
        client = docker_api(status_code=500)
        with pytest.raises(SourceUnavailableError) as exc_info:
            client.list_containers()
        assert exc_info.value.details == {"status_code": 500}
        assert "daemon error" in exc_info.value.message

    def test_not_found(self, docker_api):
        client = docker_api(status_code=404)
        with pytest.raises(NotFoundError):
            client.inspect_container("missing")

    def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = DockerClient(DockerConfig(), transport=httpx.MockTransport(handler))
        with pytest.raises(SourceUnavailableError, match="unreachable"):
            client.list_containers()

    def test_api_version_prefix(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json=[])

        client = DockerClient(
            DockerConfig(api_version="1.43"), transport=httpx.MockTransport(handler)
        )
        client.list_containers()
        assert seen == ["/v1.43/containers/json"]

    def test_close_resets_client(self, docker_api):
        client = docker_api()
        client.list_containers()
        client.close()
        assert client._client is None

    def test_per_request_timeout(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.extensions["timeout"])
            return httpx.Response(200, json=[])

        client = DockerClient(DockerConfig(timeout=10), transport=httpx.MockTransport(handler))
        client.list_containers(all=False, timeout=0.5)
        client.list_containers()

        assert seen[0]["read"] == 0.5
        assert seen[1]["read"] == 10
