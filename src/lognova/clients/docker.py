"""Docker Engine API client using httpx over the daemon's unix socket."""

import os
from typing import Any

import httpx

from lognova.config import DockerConfig
from lognova.core.exceptions import NotFoundError, SourceUnavailableError
from lognova.core.logging import get_logger

logger = get_logger(__name__)


class DockerClient:
    """Client for the Docker Engine HTTP API."""

    def __init__(
        self,
        config: DockerConfig,
        transport: httpx.BaseTransport | None = None,
    ):
        self._config = config
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            transport = self._transport
            socket_path = self._config.get_socket_path()

            if transport is None:
                if not os.path.exists(socket_path):
                    raise SourceUnavailableError(
                        f"Docker socket not found: {socket_path}", source="docker"
                    )
                transport = httpx.HTTPTransport(uds=socket_path)

            base_url = "http://docker"
            if self._config.api_version:
                base_url = f"{base_url}/v{self._config.api_version.lstrip('v')}"

            self._client = httpx.Client(
                base_url=base_url,
                transport=transport,
                timeout=self._config.timeout,
            )

            logger.debug("Created Docker client", socket=socket_path)

        return self._client

    def _request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an API request.

        Args:
            method: HTTP method
            path: API path
            **kwargs: Additional request arguments

        Returns:
            The successful response
        """
        try:
            response = self.client.request(method, path, **kwargs)
            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            try:
                message = e.response.json().get("message", str(e))
            except ValueError:
                message = e.response.text or str(e)

            if status_code == 404:
                raise NotFoundError(message, source="docker")
            raise SourceUnavailableError(
                f"Docker API error ({status_code}): {message}",
                source="docker",
                details={"status_code": status_code},
            )

        except httpx.RequestError as e:
            raise SourceUnavailableError(f"Docker daemon unreachable: {e}", source="docker")

    def get_json(self, path: str, **kwargs: Any) -> Any:
        """Make a GET request and decode the JSON body."""
        response = self._request("GET", path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise SourceUnavailableError(f"Invalid JSON from Docker API: {e}", source="docker")

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "DockerClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # Container operations
    def list_containers(
        self, all: bool = True, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        """List containers in daemon order (newest first).

        ``timeout`` overrides the client timeout for this one request.
        """
        params = {"all": "1"} if all else {}
        if timeout is not None:
            return self.get_json("/containers/json", params=params, timeout=timeout)
        return self.get_json("/containers/json", params=params)

    def inspect_container(self, container_id: str) -> dict[str, Any]:
        """Get low-level container details."""
        return self.get_json(f"/containers/{container_id}/json")

    def container_logs(
        self,
        container_id: str,
        since: int | None = None,
        until: int | None = None,
        tail: int | None = None,
        timestamps: bool = False,
    ) -> bytes:
        """Fetch the raw (possibly multiplexed) stdout/stderr history.

        Args:
            container_id: Container ID
            since: Epoch seconds lower bound
            until: Epoch seconds upper bound
            tail: Number of trailing lines
            timestamps: Prefix each line with an RFC3339Nano timestamp

        Returns:
            Response body bytes
        """
        params: dict[str, Any] = {
            "stdout": "1",
            "stderr": "1",
            "follow": "0",
            "timestamps": "1" if timestamps else "0",
        }
        if since is not None:
            params["since"] = str(since)
        if until is not None:
            params["until"] = str(until)
        if tail is not None:
            params["tail"] = str(tail)

        response = self._request("GET", f"/containers/{container_id}/logs", params=params)
        return response.content
