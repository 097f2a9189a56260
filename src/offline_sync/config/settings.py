"""Offline sync configuration settings using pydantic-settings."""

from functools import cached_property
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration settings for the offline sync engine.

    Settings are loaded from environment variables with the OFFLINE_SYNC_
    prefix. For example, OFFLINE_SYNC_REQUEST_TIMEOUT=10 sets request_timeout
    to 10 seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="OFFLINE_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    base_url: str = "https://jsonplaceholder.typicode.com"
    request_timeout: float = 30.0  # seconds per replayed request

    # Connectivity probe
    health_url: str | None = None  # defaults to base_url
    probe_interval: float = 5.0  # seconds between probes

    # Storage
    data_dir: Path = Path("~/.local/share/offline-sync")
    storage_backend: Literal["file", "sqlite"] = "file"
    storage_key: str = "offline_request_queue"

    # Logging
    log_level: str = "INFO"
    log_file: Path | None = None

    @field_validator("request_timeout", "probe_interval")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Ensure durations are positive."""
        if v <= 0:
            raise ValueError("must be greater than 0 seconds")
        return v

    @field_validator("storage_key")
    @classmethod
    def validate_storage_key(cls, v: str) -> str:
        """Storage key doubles as a file name, so keep it path-safe."""
        if not v or "/" in v or "\\" in v or v.startswith("."):
            raise ValueError("storage_key must be a plain, non-empty name")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @cached_property
    def data_path(self) -> Path:
        """Return expanded data directory path."""
        return self.data_dir.expanduser()

    @property
    def probe_url(self) -> str:
        """URL polled by the connectivity probe."""
        return self.health_url or self.base_url
