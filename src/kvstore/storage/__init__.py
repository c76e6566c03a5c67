# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Storage layer -- pluggable backends beneath the operation engine."""

from kvstore.storage.base import StorageBackend
from kvstore.storage.factory import create_backend
from kvstore.storage.file import FileBackend, HybridBackend
from kvstore.storage.memory import MemoryBackend
from kvstore.storage.snapshot import SnapshotFile

__all__ = [
    "FileBackend",
    "HybridBackend",
    "MemoryBackend",
    "SnapshotFile",
    "StorageBackend",
    "create_backend",
]
