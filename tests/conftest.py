# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from kvstore.engine.store import KVEngine
from kvstore.storage.memory import MemoryBackend

# 2026-01-01T00:00:00Z
START_MS = 1_767_225_600_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += round(seconds * 1000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backup_dir(tmp_path: Path) -> Path:
    return tmp_path / "backups"


@pytest.fixture
async def engine(clock: FakeClock, backup_dir: Path) -> AsyncIterator[KVEngine]:
    """A started in-memory engine driven by the fake clock."""
    kv = KVEngine(MemoryBackend(), clock=clock, backup_dir=backup_dir)
    await kv.start()
    yield kv
    await kv.close()
