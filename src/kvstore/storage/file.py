# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Disk-backed storage backends.

:class:`FileBackend` rewrites the whole data file on every mutation
(durable, but O(n) per write).  A mutation is staged on a copy of the table
and becomes visible only once the file has been saved, so a failed write
leaves memory and disk in agreement.  :class:`HybridBackend` only marks the
store dirty and relies on the engine's periodic sync task to call
:meth:`flush`.  Both hydrate from the data file on :meth:`open`.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from kvstore.core.constants import DATA_FILE_NAME, DEFAULT_SYNC_INTERVAL_SECONDS, StorageMode
from kvstore.models.entry import Entry
from kvstore.storage.memory import MemoryBackend
from kvstore.storage.snapshot import SnapshotFile

logger = logging.getLogger("kvstore.storage.file")


class DiskBackend(MemoryBackend):
    """Memory table with a JSON data file at ``<data_dir>/kvstore.json``."""

    persistent = True

    def __init__(self, data_dir: Path) -> None:
        super().__init__()
        self._data_dir = Path(data_dir)
        self._file = SnapshotFile(self._data_dir / DATA_FILE_NAME)
        self._write_lock = asyncio.Lock()

    @property
    def data_file(self) -> Path:
        return self._file.path

    async def open(self) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._store = await self._file.load()
        self._dirty = False
        logger.info("Loaded %d keys from %s", len(self._store), self._file.path)

    async def flush(self) -> None:
        async with self._write_lock:
            if not self._dirty:
                return
            await self._file.save(self._store)
            self._dirty = False

    async def disk_usage(self) -> int:
        return self._file.size()

    async def close(self) -> None:
        await self.flush()
        self._store.clear()


class FileBackend(DiskBackend):
    """Write-through backend: every mutation is on disk before it returns."""

    mode = StorageMode.FILE

    async def put(self, key: str, entry: Entry) -> None:
        async with self._write_lock:
            staged = dict(self._store)
            staged[key] = entry
            await self._commit(staged)

    async def delete(self, key: str) -> bool:
        async with self._write_lock:
            if key not in self._store:
                return False
            staged = dict(self._store)
            del staged[key]
            await self._commit(staged)
        return True

    async def clear(self) -> int:
        async with self._write_lock:
            count = len(self._store)
            await self._commit({})
        return count

    async def load(self, entries: dict[str, Entry]) -> None:
        async with self._write_lock:
            await self._commit(dict(entries))

    async def _commit(self, staged: dict[str, Entry]) -> None:
        # caller holds _write_lock; a failed save leaves _store untouched
        await self._file.save(staged)
        self._store = staged
        self._dirty = False

    async def _after_write(self) -> None:
        # only reached when keys() drops expired entries
        self._dirty = True
        await self.flush()


class HybridBackend(DiskBackend):
    """Memory-speed writes with a bounded durability window.

    Args:
        data_dir: Directory holding the data file.
        sync_interval: Seconds between background snapshots.
    """

    mode = StorageMode.HYBRID

    def __init__(
        self,
        data_dir: Path,
        sync_interval: float = DEFAULT_SYNC_INTERVAL_SECONDS,
    ) -> None:
        super().__init__(data_dir)
        self.sync_interval = sync_interval
