# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""KVEngine -- the operation set shared by the HTTP and tool front-ends.

The engine owns the storage backend and every background task touching it
(expiration sweep, hybrid disk sync, scheduled backups).  All methods take
raw keys; any per-user namespacing is applied by the caller.

Construct one instance per process, ``await engine.start()`` before use and
``await engine.close()`` on shutdown so persistent backends get a final
flush.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from kvstore.core.codec import validate_key, validate_value
from kvstore.core.config import Settings
from kvstore.core.constants import (
    BACKUP_DIR_NAME,
    DEFAULT_MAX_KEY_SIZE,
    DEFAULT_MAX_MEMORY_MB,
    DEFAULT_MAX_VALUE_SIZE,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    StorageMode,
)
from kvstore.core.exceptions import BackupError, InvalidValueError, PersistenceError, ValidationError
from kvstore.core.expiration import (
    Clock,
    compute_expiry,
    is_live,
    now_ms,
    remaining_seconds,
    validate_ttl,
)
from kvstore.engine.backup import BackupManager
from kvstore.engine.locks import LockManager
from kvstore.engine.stats import StatsCollector
from kvstore.engine.tasks import PeriodicTask
from kvstore.models.entry import MISSING, Entry
from kvstore.models.results import StoreStats, WriteResult
from kvstore.storage.base import StorageBackend
from kvstore.storage.memory import MemoryBackend

logger = logging.getLogger("kvstore.engine.store")


class KVEngine:
    """Key-value operations with lazy expiration and per-key atomicity.

    Args:
        backend: Storage backend; defaults to a fresh :class:`MemoryBackend`.
        max_key_size: Maximum key length in characters.
        max_value_size: Maximum serialized value size in bytes.
        max_memory_bytes: Memory budget reported by :meth:`stats`.
        sweep_interval: Seconds between expiration sweeps.
        backup_interval: Seconds between scheduled backups, ``None`` to disable.
        backup_dir: Where :meth:`backup` writes snapshots.
        clock: Millisecond wall clock, injectable for tests.
        config: Effective configuration recorded in backup files.
    """

    def __init__(
        self,
        backend: StorageBackend | None = None,
        *,
        max_key_size: int = DEFAULT_MAX_KEY_SIZE,
        max_value_size: int = DEFAULT_MAX_VALUE_SIZE,
        max_memory_bytes: int = DEFAULT_MAX_MEMORY_MB * 1024 * 1024,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        backup_interval: float | None = None,
        backup_dir: Path | None = None,
        clock: Clock = now_ms,
        config: dict[str, Any] | None = None,
    ) -> None:
        self._backend = backend or MemoryBackend()
        self._max_key_size = max_key_size
        self._max_value_size = max_value_size
        self._max_memory_bytes = max_memory_bytes
        self._sweep_interval = sweep_interval
        self._backup_interval = backup_interval
        self._clock = clock
        self._config = config or {"storage_mode": self._backend.mode.value}
        self._backups = BackupManager(backup_dir or Path("kv-data") / BACKUP_DIR_NAME)
        self._locks = LockManager()
        self._stats = StatsCollector(started_at=clock())
        self._tasks: list[PeriodicTask] = []
        self._started = False

    @classmethod
    def from_settings(cls, settings: Settings) -> KVEngine:
        """Build an engine and its backend from :class:`~kvstore.core.config.Settings`."""
        from kvstore.storage.factory import create_backend

        backup_hours = settings.backup_interval_hours
        return cls(
            create_backend(settings),
            max_key_size=settings.max_key_size,
            max_value_size=settings.max_value_size,
            max_memory_bytes=settings.max_memory_bytes,
            sweep_interval=settings.sweep_interval_seconds,
            backup_interval=backup_hours * 3600 if backup_hours > 0 else None,
            backup_dir=settings.data_dir / BACKUP_DIR_NAME,
            config=settings.model_dump(mode="json", exclude={"api_keys", "redis_url"}),
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def mode(self) -> StorageMode:
        return self._backend.mode

    @property
    def started(self) -> bool:
        return self._started

    @property
    def backups(self) -> BackupManager:
        return self._backups

    @property
    def tasks(self) -> list[PeriodicTask]:
        return list(self._tasks)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Open the backend (hydrating persisted state) and start background tasks."""
        if self._started:
            return
        await self._backend.open()
        self._started = True

        self._tasks = [PeriodicTask("sweep", self.sweep, self._sweep_interval)]
        if self._backend.sync_interval:
            self._tasks.append(PeriodicTask("sync", self.sync, self._backend.sync_interval))
        if self._backup_interval:
            self._tasks.append(PeriodicTask("backup", self.backup, self._backup_interval))
        for task in self._tasks:
            task.start()

        logger.info(
            "KV engine started (mode=%s, tasks=%s)",
            self.mode,
            ",".join(task.name for task in self._tasks),
        )

    async def close(self) -> None:
        """Stop background tasks, flush persistent backends and release resources."""
        for task in self._tasks:
            await task.stop()
        self._tasks = []

        async with self._locks.exclusive():
            try:
                if self._backend.persistent:
                    await self._backend.flush()
            finally:
                await self._backend.close()
        self._started = False
        logger.info("KV engine closed")

    async def __aenter__(self) -> KVEngine:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Single-key operations
    # ------------------------------------------------------------------

    async def set(self, key: str, value: Any, ttl: float | None = None) -> WriteResult:
        """Store *value* under *key*, optionally expiring after *ttl* seconds.

        Validation failures are returned as ``success=False`` rather than
        raised.
        """
        try:
            validate_key(key, self._max_key_size)
            validate_value(value, self._max_value_size)
            validate_ttl(ttl)
        except ValidationError as exc:
            logger.warning("Rejected set: %s", exc)
            return WriteResult(success=False, message=str(exc))

        now = self._clock()
        entry = Entry.create(value, now, compute_expiry(ttl, now))
        async with self._locks.key(key):
            await self._backend.put(key, entry)
        logger.debug("Set key: %s", key)
        return WriteResult(success=True, message="Key set successfully")

    async def get(self, key: str) -> Any:
        """Return the value stored at *key*, or :data:`MISSING`."""
        async with self._locks.key(key):
            entry = await self._live_entry(key, self._clock())
        if entry is None:
            self._stats.record_miss()
            return MISSING
        self._stats.record_hit()
        return entry.value

    async def get_entry(self, key: str) -> Entry | None:
        """Return the live :class:`Entry` for *key* without touching the counters."""
        async with self._locks.key(key):
            return await self._live_entry(key, self._clock())

    async def delete(self, key: str) -> bool:
        """Remove *key*; ``True`` if a live entry existed."""
        async with self._locks.key(key):
            existed = await self._live_entry(key, self._clock()) is not None
            if existed:
                await self._backend.delete(key)
        logger.debug("Deleted key: %s, success: %s", key, existed)
        return existed

    async def exists(self, key: str) -> bool:
        async with self._locks.key(key):
            return await self._live_entry(key, self._clock()) is not None

    async def expire(self, key: str, seconds: float) -> bool:
        """Expire *key* after *seconds*; a non-positive value expires it now.

        Returns:
            ``True`` if the key existed and was updated.

        Raises:
            InvalidValueError: If *seconds* is infinite or NaN.
        """
        validate_ttl(seconds)
        now = self._clock()
        async with self._locks.key(key):
            if await self._live_entry(key, now) is None:
                return False
            expires_at = compute_expiry(seconds, now)
            if expires_at is None:
                await self._backend.delete(key)
                return True
            return await self._backend.expire(key, expires_at)

    async def ttl(self, key: str) -> int:
        """Seconds until *key* expires; ``-1`` without expiry, ``-2`` if absent."""
        now = self._clock()
        async with self._locks.key(key):
            entry = await self._live_entry(key, now)
        return remaining_seconds(entry, now)

    async def incr(self, key: str) -> int:
        return await self._add(key, 1)

    async def decr(self, key: str) -> int:
        return await self._add(key, -1)

    async def append(self, key: str, suffix: str) -> int:
        """Append *suffix* to the string at *key* and return the new length.

        A missing or non-string value is replaced by *suffix*.
        """
        validate_key(key, self._max_key_size)
        if not isinstance(suffix, str):
            raise InvalidValueError("Appended value must be a string")
        async with self._locks.key(key):
            return await self._backend.append(key, suffix, self._clock(), self._max_value_size)

    # ------------------------------------------------------------------
    # Store-wide operations
    # ------------------------------------------------------------------

    async def keys(self, pattern: str | None = None) -> list[str]:
        """Live keys matching the glob *pattern* (all keys when ``None``)."""
        async with self._locks.exclusive():
            return await self._backend.keys(pattern, self._clock())

    async def clear(self, pattern: str | None = None) -> int:
        """Remove every entry, or only those matching *pattern*.

        Returns:
            Number of entries removed.
        """
        async with self._locks.exclusive():
            if pattern is None:
                count = await self._backend.clear()
            else:
                count = 0
                for key in await self._backend.keys(pattern, self._clock()):
                    if await self._backend.delete(key):
                        count += 1
        logger.info("Cleared %d keys%s", count, f" matching {pattern!r}" if pattern else "")
        return count

    async def stats(self) -> StoreStats:
        async with self._locks.exclusive():
            now = self._clock()
            entries = await self._backend.snapshot()
            live = {k: e for k, e in entries.items() if is_live(e, now)}
            disk_usage = await self._backend.disk_usage()
        stats = self._stats.build(
            mode=self.mode,
            live_entries=live,
            disk_usage=disk_usage,
            max_memory_bytes=self._max_memory_bytes,
            now=now,
        )
        if stats.memory_usage_bytes > self._max_memory_bytes:
            logger.warning(
                "Estimated memory usage %d bytes exceeds budget of %d bytes",
                stats.memory_usage_bytes,
                self._max_memory_bytes,
            )
        return stats

    async def backup(self) -> Path:
        """Export every live entry to a new backup file and return its path.

        Raises:
            BackupError: If the snapshot cannot be taken or written.
        """
        async with self._locks.exclusive():
            now = self._clock()
            try:
                entries = await self._backend.snapshot()
            except PersistenceError as exc:
                raise BackupError(f"Failed to snapshot store: {exc}") from exc
            live = {k: e for k, e in entries.items() if is_live(e, now)}
            return await self._backups.write(live, now=now, config=self._config)

    async def restore(self, path: Path) -> int:
        """Replace the store with the live entries of the backup at *path*.

        Returns:
            Number of entries loaded.
        """
        entries = await self._backups.read(path)
        async with self._locks.exclusive():
            now = self._clock()
            live = {k: e for k, e in entries.items() if is_live(e, now)}
            await self._backend.load(live)
            if self._backend.persistent:
                await self._backend.flush()
        logger.info("Restored %d keys from %s", len(live), path)
        return len(live)

    async def sweep(self) -> int:
        """Remove all expired entries; flush persistent backends if any were removed."""
        async with self._locks.exclusive():
            removed = await self._backend.purge_expired(self._clock())
            if removed and self._backend.persistent:
                await self._backend.flush()
        if removed:
            logger.debug("Cleaned up %d expired keys", removed)
        return removed

    async def sync(self) -> None:
        """Write pending changes to disk (hybrid mode's periodic sync)."""
        async with self._locks.exclusive():
            await self._backend.flush()
        logger.debug("Synced to disk")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _live_entry(self, key: str, now: int) -> Entry | None:
        """Fetch *key*, deleting it if it has expired.  Caller holds the key lock."""
        entry = await self._backend.get(key)
        if entry is None:
            return None
        if not is_live(entry, now):
            await self._backend.delete(key)
            logger.debug("Key %s expired", key)
            return None
        return entry

    async def _add(self, key: str, delta: int) -> int:
        validate_key(key, self._max_key_size)
        async with self._locks.key(key):
            return await self._backend.incr_by(key, delta, self._clock())
