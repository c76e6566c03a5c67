# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Build the configured storage backend."""

from __future__ import annotations

import logging

from kvstore.core.config import Settings
from kvstore.core.constants import StorageMode
from kvstore.core.exceptions import ConfigurationError
from kvstore.storage.base import StorageBackend
from kvstore.storage.file import FileBackend, HybridBackend
from kvstore.storage.memory import MemoryBackend

logger = logging.getLogger("kvstore.storage.factory")


def create_backend(settings: Settings) -> StorageBackend:
    """Instantiate the backend selected by ``settings.storage_mode``."""
    mode = settings.storage_mode
    logger.debug("Creating %s storage backend", mode)

    if mode is StorageMode.MEMORY:
        return MemoryBackend()
    if mode is StorageMode.FILE:
        return FileBackend(settings.data_dir)
    if mode is StorageMode.HYBRID:
        return HybridBackend(settings.data_dir, sync_interval=settings.sync_interval_seconds)
    if mode is StorageMode.REMOTE:
        if not settings.redis_url:
            raise ConfigurationError("Remote storage mode requires KVSTORE_REDIS_URL")
        from kvstore.storage.redis import RedisBackend

        return RedisBackend(redis_url=settings.redis_url, key_prefix=settings.redis_key_prefix)

    raise ConfigurationError(f"Unknown storage mode: {mode!r}")
