# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Domain models for kvstore."""

from kvstore.models.entry import MISSING, Entry
from kvstore.models.results import StoreStats, WriteResult

__all__ = [
    "MISSING",
    "Entry",
    "StoreStats",
    "WriteResult",
]
