"""Clients for the log backends."""

from lognova.clients.docker import DockerClient
from lognova.clients.systemd import SystemdClient

__all__ = ["DockerClient", "SystemdClient"]
