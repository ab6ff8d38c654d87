"""
Configuration loading and validation for Gitlack.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from gitlack.errors import ConfigError

# Environment variables that override file settings: (section, key) per name
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SLACK_TOKEN": ("slack", "token"),
    "SLACK_SCHEME": ("slack", "scheme"),
    "SLACK_DOMAIN": ("slack", "domain"),
    "GITLAB_TOKEN": ("gitlab", "token"),
    "GITLAB_SCHEME": ("gitlab", "scheme"),
    "GITLAB_DOMAIN": ("gitlab", "domain"),
    "DATABASE_PATH": ("database", "path"),
    "SERVER_HOST": ("server", "host"),
    "SERVER_PORT": ("server", "port"),
}


class SlackConfig(BaseModel):
    """Slack API configuration."""
    token: str = ""
    scheme: str = "https"
    domain: str = "slack.com"


class GitLabConfig(BaseModel):
    """GitLab API configuration."""
    token: str = ""
    scheme: str = "https"
    domain: str = "gitlab.com"


class DatabaseConfig(BaseModel):
    """SQLite database configuration."""
    path: str = "db/gitlack.db"
    ping_attempts: int = Field(default=30, ge=1)
    ping_interval_seconds: float = 1.0


class ServerConfig(BaseModel):
    """HTTP listener configuration."""
    host: str = "0.0.0.0"  # nosec B104 - webhooks arrive from the GitLab host
    port: int = 5000


class PipelineConfig(BaseModel):
    """Pipeline tracker configuration."""
    max_attempts: int = Field(default=120, ge=1)
    interval_seconds: float = 5.0


class SyncConfig(BaseModel):
    """Reconciliation sync schedule."""
    on_startup: bool = True
    daily_at: str = "00:00"

    @field_validator("daily_at")
    @classmethod
    def check_time(cls, value: str) -> str:
        hours, _, minutes = value.partition(":")
        if not (hours.isdigit() and minutes.isdigit()
                and 0 <= int(hours) < 24 and 0 <= int(minutes) < 60):
            raise ValueError(f"expected HH:MM, got {value!r}")
        return value


class Config(BaseModel):
    """Main configuration for Gitlack."""
    slack: SlackConfig = Field(default_factory=SlackConfig)
    gitlab: GitLabConfig = Field(default_factory=GitLabConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    request_timeout_seconds: float | None = None  # None waits on upstream APIs indefinitely
    debug: bool = False

    def check_required(self) -> None:
        """
        Ensure the settings needed to talk to both platforms are present.

        Raises:
            ConfigError: Listing every missing setting
        """
        missing = [
            name for name, value in (
                ("slack.token", self.slack.token),
                ("gitlab.token", self.gitlab.token),
            ) if not value
        ]
        if missing:
            raise ConfigError("Missing settings: " + ", ".join(missing))


def apply_env_overrides(raw: dict[str, Any], environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Overlay ``ENV_OVERRIDES`` variables onto raw configuration data."""
    environ = dict(os.environ) if environ is None else environ
    for variable, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            raw.setdefault(section, {})[key] = value
    return raw


def load_config(
    config_path: str | Path | None,
    environ: dict[str, str] | None = None
) -> Config:
    """
    Load and validate configuration from a YAML file and the environment.

    Args:
        config_path: Path to the YAML configuration file (None for
            environment-only configuration)
        environ: Environment to read overrides from (defaults to os.environ)

    Returns:
        Validated Config object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
        yaml.YAMLError: If YAML parsing fails
    """
    raw_config: dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with path.open('r', encoding='utf-8') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ValueError("Configuration validation error: top level must be a mapping")

    raw_config = apply_env_overrides(raw_config, environ)

    try:
        return Config.model_validate(raw_config)
    except ValidationError as e:
        raise ValueError(f"Configuration validation error: {e}") from e
