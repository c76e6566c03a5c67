# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Application configuration via environment variables and .env files."""

from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from kvstore.core.constants import (
    DEFAULT_BACKUP_INTERVAL_HOURS,
    DEFAULT_MAX_KEY_SIZE,
    DEFAULT_MAX_MEMORY_MB,
    DEFAULT_MAX_VALUE_SIZE,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    DEFAULT_SYNC_INTERVAL_SECONDS,
    StorageMode,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KVSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
    )

    # Storage
    storage_mode: StorageMode = StorageMode.HYBRID
    data_dir: Path = Path("./kv-data")
    max_memory_mb: int = Field(default=DEFAULT_MAX_MEMORY_MB, ge=1)

    # Background tasks
    sync_interval_seconds: float = Field(default=DEFAULT_SYNC_INTERVAL_SECONDS, gt=0)
    sweep_interval_seconds: float = Field(default=DEFAULT_SWEEP_INTERVAL_SECONDS, gt=0)
    backup_interval_hours: float = Field(default=DEFAULT_BACKUP_INTERVAL_HOURS, ge=0)  # 0 disables

    # Limits
    max_key_size: int = Field(default=DEFAULT_MAX_KEY_SIZE, ge=1)
    max_value_size: int = Field(default=DEFAULT_MAX_VALUE_SIZE, ge=1)

    # Remote backend
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "kv:"

    # Front-ends
    # comma-separated in the environment, not JSON
    api_keys: Annotated[list[str], NoDecode] = []
    require_username: bool = False

    @field_validator("api_keys", mode="before")
    @classmethod
    def _parse_api_keys(cls, v: object) -> list[str]:
        if isinstance(v, str):
            return [k.strip() for k in v.split(",") if k.strip()]
        return v if isinstance(v, list) else []

    @field_validator("storage_mode", mode="before")
    @classmethod
    def _normalise_storage_mode(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def max_memory_bytes(self) -> int:
        return self.max_memory_mb * 1024 * 1024


def get_settings() -> Settings:
    return Settings()
