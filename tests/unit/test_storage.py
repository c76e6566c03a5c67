# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for the local storage backends, snapshot file and backend factory."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from kvstore.core.config import Settings
from kvstore.core.constants import DATA_FILE_NAME, StorageMode
from kvstore.core.exceptions import ConfigurationError, PersistenceError, ValueTooLargeError
from kvstore.models.entry import Entry
from kvstore.storage import (
    FileBackend,
    HybridBackend,
    MemoryBackend,
    SnapshotFile,
    StorageBackend,
    create_backend,
)

NOW = 1_000_000


def _entry(value: object, expires_at: int | None = None) -> Entry:
    return Entry.create(value, NOW, expires_at)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
async def file_backend(tmp_path: Path) -> FileBackend:
    backend = FileBackend(tmp_path)
    await backend.open()
    return backend


@pytest.fixture
async def hybrid_backend(tmp_path: Path) -> HybridBackend:
    backend = HybridBackend(tmp_path, sync_interval=5)
    await backend.open()
    return backend


# ---------------------------------------------------------------------------
# Abstract base class contract
# ---------------------------------------------------------------------------


class TestStorageBackendInterface:
    def test_variants_are_backends(self) -> None:
        for cls in (MemoryBackend, FileBackend, HybridBackend):
            assert issubclass(cls, StorageBackend)

    def test_cannot_instantiate_abstract(self) -> None:
        with pytest.raises(TypeError):
            StorageBackend()  # type: ignore[abstract]

    def test_modes(self) -> None:
        assert MemoryBackend.mode is StorageMode.MEMORY
        assert FileBackend.mode is StorageMode.FILE
        assert HybridBackend.mode is StorageMode.HYBRID
        assert not MemoryBackend.persistent
        assert FileBackend.persistent


# ---------------------------------------------------------------------------
# MemoryBackend
# ---------------------------------------------------------------------------


class TestMemoryBackend:
    async def test_put_get(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("k1", _entry("v1"))
        entry = await memory_backend.get("k1")
        assert entry is not None
        assert entry.value == "v1"

    async def test_get_missing(self, memory_backend: MemoryBackend) -> None:
        assert await memory_backend.get("nope") is None

    async def test_delete(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("k1", _entry(1))
        assert await memory_backend.delete("k1") is True
        assert await memory_backend.delete("k1") is False

    async def test_keys_filters_expired_and_pattern(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("user_1", _entry(1))
        await memory_backend.put("user_2", _entry(2, expires_at=NOW + 10))
        await memory_backend.put("admin", _entry(3))

        assert await memory_backend.keys("user_*", NOW) == ["user_1", "user_2"]
        assert await memory_backend.keys("user_*", NOW + 10) == ["user_1"]
        # the expired entry is dropped, not just hidden
        assert await memory_backend.get("user_2") is None

    async def test_clear_returns_count(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("a", _entry(1))
        await memory_backend.put("b", _entry(2))
        assert await memory_backend.clear() == 2
        assert await memory_backend.keys(None, NOW) == []

    async def test_purge_expired(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("a", _entry(1, expires_at=NOW + 1))
        await memory_backend.put("b", _entry(2))
        assert await memory_backend.purge_expired(NOW + 1) == 1
        assert list(await memory_backend.snapshot()) == ["b"]

    async def test_snapshot_is_a_copy(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("a", _entry(1))
        snap = await memory_backend.snapshot()
        await memory_backend.delete("a")
        assert "a" in snap

    async def test_load_replaces_everything(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("old", _entry(1))
        await memory_backend.load({"new": _entry(2)})
        assert await memory_backend.keys(None, NOW) == ["new"]

    async def test_disk_usage_is_zero(self, memory_backend: MemoryBackend) -> None:
        assert await memory_backend.disk_usage() == 0


class TestReadModifyWrite:
    async def test_incr_missing_starts_at_zero(self, memory_backend: MemoryBackend) -> None:
        assert await memory_backend.incr_by("n", 1, NOW) == 1
        assert await memory_backend.incr_by("n", 5, NOW) == 6

    async def test_incr_non_integer_counts_as_zero(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("n", _entry("text"))
        assert await memory_backend.incr_by("n", -1, NOW) == -1

    async def test_incr_keeps_expiry(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("n", _entry(10, expires_at=NOW + 5000))
        await memory_backend.incr_by("n", 1, NOW + 1)
        entry = await memory_backend.get("n")
        assert entry is not None
        assert entry.value == 11
        assert entry.expires_at == NOW + 5000

    async def test_incr_expired_value_restarts(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("n", _entry(10, expires_at=NOW + 5))
        assert await memory_backend.incr_by("n", 1, NOW + 5) == 1
        entry = await memory_backend.get("n")
        assert entry is not None
        assert entry.expires_at is None

    async def test_append(self, memory_backend: MemoryBackend) -> None:
        assert await memory_backend.append("s", "a", NOW, 1024) == 1
        assert await memory_backend.append("s", "b", NOW, 1024) == 2
        entry = await memory_backend.get("s")
        assert entry is not None
        assert entry.value == "ab"

    async def test_append_replaces_non_string(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("s", _entry(42))
        assert await memory_backend.append("s", "x", NOW, 1024) == 1

    async def test_append_enforces_size_limit(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("s", _entry("abc"))
        with pytest.raises(ValueTooLargeError):
            await memory_backend.append("s", "d", NOW, 5)
        entry = await memory_backend.get("s")
        assert entry is not None
        assert entry.value == "abc"

    async def test_expire(self, memory_backend: MemoryBackend) -> None:
        await memory_backend.put("k", _entry(1))
        assert await memory_backend.expire("k", NOW + 100) is True
        entry = await memory_backend.get("k")
        assert entry is not None
        assert entry.expires_at == NOW + 100
        assert await memory_backend.expire("missing", NOW + 100) is False


# ---------------------------------------------------------------------------
# FileBackend
# ---------------------------------------------------------------------------


class TestFileBackend:
    async def test_every_write_hits_disk(self, file_backend: FileBackend) -> None:
        await file_backend.put("k", _entry({"a": 1}))
        data = json.loads(file_backend.data_file.read_text(encoding="utf-8"))
        assert data == {"k": {"value": {"a": 1}, "type": "object", "createdAt": NOW}}

        await file_backend.delete("k")
        assert json.loads(file_backend.data_file.read_text(encoding="utf-8")) == {}

    async def test_failed_save_keeps_previous_state(self, file_backend: FileBackend) -> None:
        await file_backend.put("keep", _entry("old"))
        failing = AsyncMock(side_effect=PersistenceError("disk full"))

        with patch.object(SnapshotFile, "save", failing):
            with pytest.raises(PersistenceError):
                await file_backend.put("new", _entry("v"))
            with pytest.raises(PersistenceError):
                await file_backend.put("keep", _entry("overwritten"))
            with pytest.raises(PersistenceError):
                await file_backend.delete("keep")
            with pytest.raises(PersistenceError):
                await file_backend.clear()

        assert await file_backend.get("new") is None
        kept = await file_backend.get("keep")
        assert kept is not None
        assert kept.value == "old"
        on_disk = json.loads(file_backend.data_file.read_text(encoding="utf-8"))
        assert list(on_disk) == ["keep"]

    async def test_save_recovers_after_failure(self, file_backend: FileBackend) -> None:
        with (
            patch.object(SnapshotFile, "save", AsyncMock(side_effect=PersistenceError("disk full"))),
            pytest.raises(PersistenceError),
        ):
            await file_backend.put("lost", _entry(1))

        await file_backend.put("k", _entry(2))
        on_disk = json.loads(file_backend.data_file.read_text(encoding="utf-8"))
        assert list(on_disk) == ["k"]

    async def test_reopen_restores_entries(self, tmp_path: Path) -> None:
        first = FileBackend(tmp_path)
        await first.open()
        await first.put("k", _entry("v", expires_at=NOW + 60_000))
        await first.close()

        second = FileBackend(tmp_path)
        await second.open()
        entry = await second.get("k")
        assert entry is not None
        assert entry.value == "v"
        assert entry.expires_at == NOW + 60_000

    async def test_disk_usage(self, file_backend: FileBackend) -> None:
        await file_backend.put("k", _entry("v"))
        assert await file_backend.disk_usage() == file_backend.data_file.stat().st_size
        assert await file_backend.disk_usage() > 0

    async def test_open_creates_data_dir(self, tmp_path: Path) -> None:
        backend = FileBackend(tmp_path / "nested" / "dir")
        await backend.open()
        assert (tmp_path / "nested" / "dir").is_dir()


# ---------------------------------------------------------------------------
# HybridBackend
# ---------------------------------------------------------------------------


class TestHybridBackend:
    async def test_writes_stay_in_memory_until_flush(self, hybrid_backend: HybridBackend) -> None:
        await hybrid_backend.put("k", _entry(1))
        assert not hybrid_backend.data_file.exists()

        await hybrid_backend.flush()
        assert "k" in json.loads(hybrid_backend.data_file.read_text(encoding="utf-8"))

    async def test_flush_skips_clean_store(self, hybrid_backend: HybridBackend) -> None:
        await hybrid_backend.put("k", _entry(1))
        await hybrid_backend.flush()
        hybrid_backend.data_file.unlink()

        await hybrid_backend.flush()
        assert not hybrid_backend.data_file.exists()

    async def test_sync_interval(self, hybrid_backend: HybridBackend) -> None:
        assert hybrid_backend.sync_interval == 5
        assert MemoryBackend().sync_interval is None

    async def test_close_flushes(self, tmp_path: Path) -> None:
        backend = HybridBackend(tmp_path)
        await backend.open()
        await backend.put("k", _entry("v"))
        await backend.close()

        reopened = HybridBackend(tmp_path)
        await reopened.open()
        assert await reopened.keys(None, NOW) == ["k"]


# ---------------------------------------------------------------------------
# SnapshotFile
# ---------------------------------------------------------------------------


class TestSnapshotFile:
    async def test_missing_file_loads_empty(self, tmp_path: Path) -> None:
        assert await SnapshotFile(tmp_path / "none.json").load() == {}

    async def test_save_is_atomic(self, tmp_path: Path) -> None:
        snapshot = SnapshotFile(tmp_path / DATA_FILE_NAME)
        await snapshot.save({"k": _entry("v")})
        assert not (tmp_path / "kvstore.tmp").exists()
        assert list((await snapshot.load()).keys()) == ["k"]

    async def test_corrupt_file_moved_aside(self, tmp_path: Path) -> None:
        path = tmp_path / DATA_FILE_NAME
        path.write_text("{not json", encoding="utf-8")

        assert await SnapshotFile(path).load() == {}
        assert not path.exists()
        assert (tmp_path / "kvstore.corrupt.json").read_text(encoding="utf-8") == "{not json"

    async def test_invalid_record_treated_as_corrupt(self, tmp_path: Path) -> None:
        path = tmp_path / DATA_FILE_NAME
        path.write_text(json.dumps({"k": {"value": 1, "type": "bogus", "createdAt": 0}}))

        assert await SnapshotFile(path).load() == {}
        assert (tmp_path / "kvstore.corrupt.json").exists()

    async def test_size(self, tmp_path: Path) -> None:
        snapshot = SnapshotFile(tmp_path / DATA_FILE_NAME)
        assert snapshot.size() == 0
        await snapshot.save({})
        assert snapshot.size() == 2


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestCreateBackend:
    @pytest.mark.parametrize(
        ("mode", "cls"),
        [
            ("memory", MemoryBackend),
            ("file", FileBackend),
            ("hybrid", HybridBackend),
        ],
    )
    def test_local_modes(self, tmp_path: Path, mode: str, cls: type) -> None:
        backend = create_backend(Settings(storage_mode=mode, data_dir=tmp_path))
        assert type(backend) is cls

    def test_hybrid_uses_sync_interval(self, tmp_path: Path) -> None:
        backend = create_backend(
            Settings(storage_mode="hybrid", data_dir=tmp_path, sync_interval_seconds=7)
        )
        assert backend.sync_interval == 7

    def test_remote_requires_url(self) -> None:
        with pytest.raises(ConfigurationError):
            create_backend(Settings(storage_mode="remote", redis_url=""))

    def test_remote_mode(self) -> None:
        from kvstore.storage.redis import RedisBackend

        backend = create_backend(Settings(storage_mode="remote"))
        assert isinstance(backend, RedisBackend)
