# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Operation result and statistics models."""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field

from kvstore.core.constants import StorageMode


class WriteResult(BaseModel):
    """Outcome of a ``set``; validation failures are reported, not raised."""

    success: bool
    message: str


class StoreStats(BaseModel):
    """Point-in-time view of the store returned by ``KVEngine.stats()``."""

    storage_mode: StorageMode
    total_keys: int = 0
    memory_usage_bytes: int = 0
    disk_usage_bytes: int = 0
    max_memory_bytes: int = 0
    hits: int = 0
    misses: int = 0
    uptime_ms: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def memory_usage_mb(self) -> float:
        return round(self.memory_usage_bytes / 1024 / 1024, 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def disk_usage_mb(self) -> float:
        return round(self.disk_usage_bytes / 1024 / 1024, 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def uptime_minutes(self) -> float:
        return round(self.uptime_ms / 1000 / 60, 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hit_rate_percent(self) -> float:
        return round(self.hit_rate * 100, 2)
