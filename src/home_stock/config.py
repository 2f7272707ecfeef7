"""Configuration management for Home Stock."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .data_store import DEFAULT_QUOTA_BYTES
from .models import FALLBACK_CATEGORY, SortMode
from .snapshot_store import DEFAULT_BACKUP_LIMIT


@dataclass
class DataConfig:
    """Data storage configuration."""

    storage_dir: Path
    backend: str = "json"
    backup_limit: int = DEFAULT_BACKUP_LIMIT
    quota_bytes: int | None = DEFAULT_QUOTA_BYTES


@dataclass
class DefaultsConfig:
    """Default values configuration."""

    category: str = FALLBACK_CATEGORY
    sort: str = SortMode.RECENT.value


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "plain"


@dataclass
class Config:
    """Complete application configuration."""

    data: DataConfig
    defaults: DefaultsConfig
    logging: LoggingConfig


class ConfigManager:
    """Manages application configuration from TOML files."""

    def __init__(self, config_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional explicit path to config file.
                        If not provided, searches standard locations.
        """
        self.config_path = config_path or self._find_config()
        self._config = self._load_config()

    @property
    def data(self) -> DataConfig:
        """Get data configuration."""
        return self._config.data

    @property
    def defaults(self) -> DefaultsConfig:
        """Get defaults configuration."""
        return self._config.defaults

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return self._config.logging

    def _find_config(self) -> Path:
        """Find config file in standard locations."""
        locations = [
            Path.cwd() / "config.toml",
            Path.home() / ".config" / "home-stock" / "config.toml",
            Path.home() / ".home-stock" / "config.toml",
        ]

        for loc in locations:
            if loc.exists():
                return loc

        # Return default location if none found
        return Path.home() / ".config" / "home-stock" / "config.toml"

    def _load_config(self) -> Config:
        """Load configuration from TOML file."""
        if not self.config_path.exists():
            return self._default_config()

        with open(self.config_path, "rb") as f:
            data = tomllib.load(f)

        data_section = data.get("data", {})
        defaults_section = data.get("defaults", {})
        logging_section = data.get("logging", {})

        return Config(
            data=DataConfig(
                storage_dir=Path(
                    data_section.get("storage_dir", "~/home-stock/data")
                ).expanduser(),
                backend=data_section.get("backend", "json"),
                backup_limit=data_section.get("backup_limit", DEFAULT_BACKUP_LIMIT),
                quota_bytes=data_section.get("quota_bytes", DEFAULT_QUOTA_BYTES),
            ),
            defaults=DefaultsConfig(
                category=defaults_section.get("category", FALLBACK_CATEGORY),
                sort=defaults_section.get("sort", SortMode.RECENT.value),
            ),
            logging=LoggingConfig(
                level=logging_section.get("level", "WARNING"),
                format=logging_section.get("format", "plain"),
            ),
        )

    def _default_config(self) -> Config:
        """Return default configuration."""
        return Config(
            data=DataConfig(storage_dir=Path.home() / "home-stock" / "data"),
            defaults=DefaultsConfig(),
            logging=LoggingConfig(),
        )

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get config value by dot-notation path.

        Args:
            key_path: Dot-separated path like 'data.storage_dir'
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split(".")
        value: Any = self._config

        for key in keys:
            if hasattr(value, key):
                value = getattr(value, key)
            elif isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default

        return value if value is not None else default
