# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Hit/miss counters and the memory usage estimate."""

from __future__ import annotations

from collections.abc import Mapping

from kvstore.core.codec import serialize
from kvstore.core.constants import MEMORY_ESTIMATE_FACTOR, StorageMode
from kvstore.models.entry import Entry
from kvstore.models.results import StoreStats


def estimate_memory(entries: Mapping[str, Entry]) -> int:
    """Approximate in-memory footprint of *entries* in bytes.

    Sums key length plus serialized record length, scaled by a constant for
    encoding overhead.  Directionally useful only.
    """
    size = 0
    for key, entry in entries.items():
        size += len(key) + len(serialize(entry.to_record()))
    return size * MEMORY_ESTIMATE_FACTOR


class StatsCollector:
    """Monotonic hit/miss counters plus process uptime.

    Counters only ever grow; they reset when the process restarts.
    """

    __slots__ = ("_started_at", "hits", "misses")

    def __init__(self, started_at: int) -> None:
        self._started_at = started_at
        self.hits: int = 0
        self.misses: int = 0

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    @property
    def total(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        return self.hits / self.total if self.total else 0.0

    def build(
        self,
        *,
        mode: StorageMode,
        live_entries: Mapping[str, Entry],
        disk_usage: int,
        max_memory_bytes: int,
        now: int,
    ) -> StoreStats:
        return StoreStats(
            storage_mode=mode,
            total_keys=len(live_entries),
            memory_usage_bytes=estimate_memory(live_entries),
            disk_usage_bytes=disk_usage,
            max_memory_bytes=max_memory_bytes,
            hits=self.hits,
            misses=self.misses,
            uptime_ms=max(0, now - self._started_at),
        )
