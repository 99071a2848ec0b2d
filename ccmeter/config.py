"""Configuration management for ccmeter."""

import os
import toml
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .utils.error_handling import ConfigError


def claude_code_storage_path() -> str:
    """Get default Claude Code storage path."""
    return os.path.join("~", ".claude", "projects")


def claude_project_registry_path() -> str:
    """Get default path of the Claude Code project registry."""
    return os.path.join("~", ".claude.json")


class PathsConfig(BaseModel):
    """Configuration for file paths."""

    claude_code_storage_dir: str = Field(
        default=claude_code_storage_path(), validate_default=True
    )
    project_registry_file: str = Field(
        default=claude_project_registry_path(), validate_default=True
    )

    @field_validator("claude_code_storage_dir", "project_registry_file")
    @classmethod
    def expand_path(cls, v):
        """Expand user paths and environment variables."""
        return os.path.expanduser(os.path.expandvars(v))


class CacheConfig(BaseModel):
    """Configuration for the in-memory stats cache."""

    stale_after_seconds: float = Field(
        default=30.0,
        ge=0.0,
        le=3600.0,
        description="Serve cached stats until they are this many seconds old",
    )


class AnalyticsConfig(BaseModel):
    """Configuration for analytics."""

    chart_days: int = Field(
        default=30,
        ge=1,
        le=3650,
        description="Default number of trailing days shown in charts",
    )


class NotificationsConfig(BaseModel):
    """Configuration for the latest-response excerpt used by hook events."""

    excerpt_chars: int = Field(default=120, ge=10, le=10000)
    recent_files: int = Field(
        default=5,
        ge=1,
        le=100,
        description="How many recently modified logs to search for a response",
    )


class UIConfig(BaseModel):
    """Configuration for UI appearance."""

    live_refresh_interval: int = Field(default=10, ge=1, le=60)
    colors: bool = Field(default=True)


class LoggingConfig(BaseModel):
    """Configuration for log output."""

    level: str = Field(
        default="warning", pattern="^(debug|info|warning|error|critical)$"
    )


class Config(BaseModel):
    """Main configuration class."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """Manages configuration loading and access."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file. If None, searches standard locations.
        """
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Config] = None

    def _find_config_file(self) -> str:
        """Find configuration file in standard locations."""
        search_paths = [
            os.path.expanduser("~/.config/ccmeter/config.toml"),
            "config.toml",
            "ccmeter.toml",
        ]

        for path in search_paths:
            if os.path.exists(path):
                return path

        # Return default path even if it doesn't exist
        return search_paths[0]

    @property
    def config(self) -> Config:
        """Get configuration, loading if necessary."""
        if self._config is None:
            self._config = self._load_config()
        return self._config

    def _load_config(self) -> Config:
        """Load configuration from TOML file."""
        if not os.path.exists(self.config_path):
            return Config()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config_data = toml.load(f)
            return Config(**config_data)
        except (toml.TomlDecodeError, ValidationError, OSError) as e:
            raise ConfigError(f"Invalid configuration file {self.config_path}: {e}")

    def reload(self):
        """Reload configuration."""
        self._config = None


# Global configuration manager instance
config_manager = ConfigManager()
