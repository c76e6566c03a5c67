# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Abstract storage backend interface shared by every storage mode."""

from __future__ import annotations

import abc
from typing import ClassVar

from kvstore.core.codec import as_integer, validate_value
from kvstore.core.constants import StorageMode
from kvstore.core.expiration import is_live
from kvstore.models.entry import Entry


class StorageBackend(abc.ABC):
    """Abstract base class for storage backends.

    Backends store :class:`Entry` objects by raw key.  They are not
    responsible for locking: :class:`~kvstore.engine.store.KVEngine`
    serializes access before calling into them.  ``get`` returns entries
    as stored, expired or not; liveness is decided by the caller.
    """

    mode: ClassVar[StorageMode]

    #: Whether ``flush`` writes somewhere that outlives the process.
    persistent: ClassVar[bool] = False

    #: Seconds between background ``flush`` calls, ``None`` for no sync task.
    sync_interval: float | None = None

    async def open(self) -> None:
        """Connect or hydrate from persisted state."""

    @abc.abstractmethod
    async def get(self, key: str) -> Entry | None:
        """Return the stored entry for *key*, or ``None``."""

    @abc.abstractmethod
    async def put(self, key: str, entry: Entry) -> None:
        """Store *entry* under *key*, replacing any previous entry."""

    @abc.abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove *key*.

        Returns:
            ``True`` if the key existed.
        """

    @abc.abstractmethod
    async def keys(self, pattern: str | None, now: int) -> list[str]:
        """Return live keys matching the glob *pattern* (all keys if ``None``).

        Expired entries are never returned; local backends drop them on the
        way.
        """

    @abc.abstractmethod
    async def clear(self) -> int:
        """Remove every entry and return how many were removed."""

    @abc.abstractmethod
    async def purge_expired(self, now: int) -> int:
        """Remove every entry that is no longer live at *now*."""

    @abc.abstractmethod
    async def snapshot(self) -> dict[str, Entry]:
        """Return a point-in-time copy of all stored entries."""

    @abc.abstractmethod
    async def load(self, entries: dict[str, Entry]) -> None:
        """Replace the whole store with *entries*."""

    async def flush(self) -> None:
        """Persist pending changes.  No-op for volatile backends."""

    async def disk_usage(self) -> int:
        """Size in bytes of the persisted data, ``0`` if not applicable."""
        return 0

    @abc.abstractmethod
    async def close(self) -> None:
        """Release any resources held by the backend."""

    # ------------------------------------------------------------------
    # Read-modify-write helpers (overridden where the backend has native
    # atomic primitives)
    # ------------------------------------------------------------------

    async def incr_by(self, key: str, delta: int, now: int) -> int:
        """Add *delta* to the integer stored at *key* and return the result.

        A missing, expired or non-integer value counts as ``0``.  The
        entry's expiry is kept.
        """
        entry = await self.get(key)
        current = 0
        expires_at = None
        if entry is not None and is_live(entry, now):
            expires_at = entry.expires_at
            current = as_integer(entry.value) or 0
        new_value = current + delta
        await self.put(key, Entry.create(new_value, now, expires_at))
        return new_value

    async def append(self, key: str, suffix: str, now: int, max_size: int) -> int:
        """Append *suffix* to the string at *key* and return the new length.

        A missing, expired or non-string value counts as ``""``.

        Raises:
            ValueTooLargeError: If the result would exceed *max_size* bytes.
        """
        entry = await self.get(key)
        current = ""
        expires_at = None
        if entry is not None and is_live(entry, now):
            expires_at = entry.expires_at
            if isinstance(entry.value, str):
                current = entry.value
        new_value = current + suffix
        validate_value(new_value, max_size)
        await self.put(key, Entry.create(new_value, now, expires_at))
        return len(new_value)

    async def expire(self, key: str, expires_at: int) -> bool:
        """Set an absolute expiry on an existing entry."""
        entry = await self.get(key)
        if entry is None:
            return False
        await self.put(key, entry.model_copy(update={"expires_at": expires_at}))
        return True
