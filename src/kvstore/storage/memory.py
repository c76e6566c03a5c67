# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""In-memory storage backend.

This is the simplest backend and requires no external services.  Entries
live in a plain ``dict`` (insertion-ordered), so key enumeration is stable.
The file and hybrid backends build on it.
"""

from __future__ import annotations

from kvstore.core.constants import StorageMode
from kvstore.core.expiration import is_live
from kvstore.core.patterns import filter_keys
from kvstore.models.entry import Entry
from kvstore.storage.base import StorageBackend


class MemoryBackend(StorageBackend):
    """Volatile dict-backed store.  Nothing survives a restart."""

    mode = StorageMode.MEMORY

    def __init__(self) -> None:
        self._store: dict[str, Entry] = {}
        self._dirty = False

    # ------------------------------------------------------------------
    # StorageBackend interface
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Entry | None:
        return self._store.get(key)

    async def put(self, key: str, entry: Entry) -> None:
        self._store[key] = entry
        await self._after_write()

    async def delete(self, key: str) -> bool:
        if self._store.pop(key, None) is None:
            return False
        await self._after_write()
        return True

    async def keys(self, pattern: str | None, now: int) -> list[str]:
        if self._drop_expired(now):
            await self._after_write()
        return filter_keys(self._store, pattern)

    async def clear(self) -> int:
        count = len(self._store)
        self._store.clear()
        await self._after_write()
        return count

    async def purge_expired(self, now: int) -> int:
        removed = self._drop_expired(now)
        if removed:
            self._dirty = True
        return removed

    async def snapshot(self) -> dict[str, Entry]:
        return dict(self._store)

    async def load(self, entries: dict[str, Entry]) -> None:
        self._store = dict(entries)
        await self._after_write()

    async def close(self) -> None:
        self._store.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _after_write(self) -> None:
        """Hook run after every mutation."""
        self._dirty = True

    def _drop_expired(self, now: int) -> int:
        expired_keys = [k for k, v in self._store.items() if not is_live(v, now)]
        for k in expired_keys:
            del self._store[k]
        return len(expired_keys)
