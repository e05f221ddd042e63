"""Configuration management for lognova using Pydantic."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from lognova.core.exceptions import ConfigError
from lognova.core.logging import Verbosity
from lognova.core.output import OutputFormat
from lognova.core.utils import merge_dicts


class DockerConfig(BaseModel):
    """Docker Engine API configuration."""

    socket_path: str = "/var/run/docker.sock"
    api_version: str | None = None  # e.g. "1.43"; None uses the daemon default
    timeout: int = 10
    default_tail: int = 100
    timestamps: bool = True

    def get_socket_path(self) -> str:
        """Get Docker socket path from config or environment."""
        env_socket = os.environ.get("LOGNOVA_DOCKER_SOCKET")
        if env_socket:
            return env_socket

        docker_host = os.environ.get("DOCKER_HOST", "")
        if docker_host.startswith("unix://"):
            return docker_host[len("unix://"):]

        return self.socket_path


class ServicePlaceholder(BaseModel):
    """Static unit listed when systemctl cannot be queried."""

    name: str
    state: str = "active"
    description: str = ""


def _default_fallback_services() -> list[ServicePlaceholder]:
    return [
        ServicePlaceholder(name="nginx.service", description="Nginx Web Server"),
        ServicePlaceholder(name="ssh.service", description="SSH Daemon"),
    ]


class JournalConfig(BaseModel):
    """systemd journal configuration."""

    journalctl: str = "journalctl"
    systemctl: str = "systemctl"
    timeout: int = 10
    max_lines: int = 200
    fallback_services: list[ServicePlaceholder] = Field(
        default_factory=_default_fallback_services
    )

    @field_validator("max_lines")
    @classmethod
    def validate_max_lines(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_lines must be positive")
        return v


def _default_level_markers() -> dict[str, str]:
    return {
        "[emerg]": "ERROR",
        "[alert]": "ERROR",
        "[crit]": "ERROR",
        "[error]": "ERROR",
        "[warn]": "WARN",
        "[debug]": "DEBUG",
    }


class FileSourceConfig(BaseModel):
    """Plain-text log file configuration."""

    path: str = "/var/log/nginx/error.log"
    source_name: str = "nginx"
    max_lines: int = 1000
    level_markers: dict[str, str] = Field(default_factory=_default_level_markers)
    parse_timestamps: bool = True

    def get_path(self) -> Path:
        """Get log file path from config or environment."""
        return Path(os.environ.get("LOGNOVA_LOG_FILE") or self.path).expanduser()

    @field_validator("level_markers")
    @classmethod
    def validate_level_markers(cls, v: dict[str, str]) -> dict[str, str]:
        allowed = {"ERROR", "WARN", "INFO", "DEBUG", "UNKNOWN"}
        normalized = {}
        for marker, level in v.items():
            level = level.upper()
            if level not in allowed:
                raise ValueError(f"Unknown level '{level}' for marker '{marker}'")
            normalized[marker] = level
        return normalized


class StatsConfig(BaseModel):
    """Dashboard statistics configuration."""

    timeout: float = 5.0
    window_hours: int = 24
    volume_buckets: int = 12
    bucket_minutes: int = 5


class ProfileConfig(BaseModel):
    """Profile configuration grouping all source settings."""

    docker: DockerConfig = Field(default_factory=DockerConfig)
    journal: JournalConfig = Field(default_factory=JournalConfig)
    file: FileSourceConfig = Field(default_factory=FileSourceConfig)
    stats: StatsConfig = Field(default_factory=StatsConfig)


class GlobalConfig(BaseModel):
    """Global settings."""

    output_format: OutputFormat = OutputFormat.TABLE
    color: str = "auto"  # auto, always, never
    verbosity: Verbosity = Verbosity.WARNING

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if v not in ("auto", "always", "never"):
            raise ValueError("color must be 'auto', 'always', or 'never'")
        return v


class LogNovaConfig(BaseModel):
    """Main configuration model."""

    model_config = {"populate_by_name": True}

    version: str = "1"
    global_settings: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    profiles: dict[str, ProfileConfig] = Field(default_factory=lambda: {"default": ProfileConfig()})

    def get_profile(self, name: str | None = None) -> ProfileConfig:
        """Get a profile by name, defaulting to 'default'."""
        profile_name = name or "default"
        if profile_name not in self.profiles:
            raise ConfigError(f"Profile '{profile_name}' not found")
        return self.profiles[profile_name]


class ConfigLoader:
    """Loads and merges configuration from multiple sources."""

    CONFIG_FILENAMES = ["lognova.yaml", "lognova.yml", ".lognova.yaml", ".lognova.yml"]

    def load(self, config_file: str | Path | None = None) -> LogNovaConfig:
        """Load configuration from files.

        Priority (highest to lowest):
        1. Explicitly specified config file
        2. Project config (./lognova.yaml)
        3. User config (~/.lognova/config.yaml)

        Args:
            config_file: Optional explicit config file path

        Returns:
            Merged configuration
        """
        configs: list[dict[str, Any]] = []

        user_config_path = Path.home() / ".lognova" / "config.yaml"
        if user_config_path.exists():
            configs.append(self._load_yaml_file(user_config_path))

        project_config = self._find_project_config()
        if project_config:
            configs.append(self._load_yaml_file(project_config))

        if config_file:
            config_path = Path(config_file)
            if not config_path.exists():
                raise ConfigError(f"Config file not found: {config_file}")
            configs.append(self._load_yaml_file(config_path))

        merged: dict[str, Any] = {}
        for config in configs:
            merged = merge_dicts(merged, config)

        try:
            return LogNovaConfig(**merged)
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}")

    def _find_project_config(self) -> Path | None:
        """Find project config file in current or parent directories."""
        current = Path.cwd()

        while current != current.parent:
            for filename in self.CONFIG_FILENAMES:
                config_path = current / filename
                if config_path.exists():
                    return config_path
            current = current.parent

        return None

    def _load_yaml_file(self, path: Path) -> dict[str, Any]:
        """Load a YAML config file."""
        try:
            with open(path) as f:
                content = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}")

        if not isinstance(content, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return content


def load_config(config_file: str | Path | None = None) -> LogNovaConfig:
    """Load lognova configuration.

    Args:
        config_file: Optional explicit config file path

    Returns:
        Loaded configuration
    """
    return ConfigLoader().load(config_file)


def get_default_config() -> LogNovaConfig:
    """Get default configuration without loading from files."""
    return LogNovaConfig()
