# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Operation engine: key-value operations, locking, stats and backups."""

from kvstore.engine.backup import BackupManager
from kvstore.engine.locks import LockManager
from kvstore.engine.stats import StatsCollector, estimate_memory
from kvstore.engine.store import KVEngine
from kvstore.engine.tasks import PeriodicTask

__all__ = [
    "BackupManager",
    "KVEngine",
    "LockManager",
    "PeriodicTask",
    "StatsCollector",
    "estimate_memory",
]
