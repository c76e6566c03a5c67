# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Enumerations and default limits."""

from enum import StrEnum


class StorageMode(StrEnum):
    MEMORY = "memory"
    FILE = "file"
    HYBRID = "hybrid"
    REMOTE = "remote"


class ValueKind(StrEnum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"


DEFAULT_MAX_KEY_SIZE = 1024
DEFAULT_MAX_VALUE_SIZE = 1024 * 1024
DEFAULT_MAX_MEMORY_MB = 100

DEFAULT_SWEEP_INTERVAL_SECONDS = 60
DEFAULT_SYNC_INTERVAL_SECONDS = 30
DEFAULT_BACKUP_INTERVAL_HOURS = 24

# ttl() sentinels, same as Redis TTL
TTL_MISSING = -2
TTL_PERSISTENT = -1

DATA_FILE_NAME = "kvstore.json"
BACKUP_DIR_NAME = "backups"

# Rough bytes-per-character factor for the memory usage estimate.
MEMORY_ESTIMATE_FACTOR = 2
