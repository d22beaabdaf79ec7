"""Configuration management for cron-ticker.

This module provides configuration models and loading functionality using Pydantic
for validation and type safety.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DOTENV_LOADED = False


def _load_env_once() -> None:
    """Load environment variables from a .env file exactly once."""

    global _DOTENV_LOADED
    if not _DOTENV_LOADED:
        load_dotenv()
        _DOTENV_LOADED = True


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in configuration data."""

    if isinstance(data, str):
        return os.path.expandvars(data)
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    return data


class TickerConfig(BaseModel):
    """Configuration for the once-a-minute ticker."""

    enabled: bool = Field(default=True, description="Enable the ticker loop")
    max_workers: int = Field(
        default=10, description="Maximum threads used to run due callbacks of one tick"
    )
    buffer_seconds: int = Field(
        default=1,
        ge=0,
        le=59,
        description="Seconds past the next minute boundary at which a tick runs",
    )
    misfire_grace_time: int = Field(
        default=30, ge=1, description="Grace time for a late tick (seconds)"
    )

    # Hooks
    logging_hook_enabled: bool = Field(default=True, description="Enable logging hook")
    metrics_hook_enabled: bool = Field(default=True, description="Enable metrics hook")

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_workers must be at least 1")
        return value


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    log_file: str | None = Field(default=None, description="Log file path")
    max_bytes: int = Field(default=10485760, description="Max log file size (10MB)")
    backup_count: int = Field(default=5, description="Number of backup files")

    @field_validator("level")
    @classmethod
    def normalise_level(cls, value: str) -> str:
        level = (value or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {value}")
        return level


class CronTickerConfig(BaseSettings):
    """Top-level configuration for cron-ticker."""

    model_config = SettingsConfigDict(
        env_prefix="CRON_TICKER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    ticker: TickerConfig = Field(default_factory=TickerConfig, description="Ticker settings")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging settings")

    @classmethod
    def from_yaml(cls, path: str | Path) -> CronTickerConfig:
        """Load configuration from a YAML file."""

        _load_env_once()
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, encoding="utf-8") as handle:
            try:
                config_data = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML in config file: {exc}") from exc

        if not config_data:
            config_data = {}

        config_data = _expand_env_vars(config_data)
        return cls(**config_data)

    def to_yaml(self, path: str | Path) -> None:
        """Write the configuration to a YAML file."""

        config_path = Path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as handle:
            yaml.safe_dump(self.model_dump(), handle, sort_keys=False, allow_unicode=True)


__all__ = [
    "CronTickerConfig",
    "LoggingConfig",
    "TickerConfig",
]
