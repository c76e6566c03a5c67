# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""kvstore - Key-value store with TTL expiry and pluggable persistence."""

__version__ = "0.1.0"

from kvstore.core.config import Settings
from kvstore.engine.store import KVEngine
from kvstore.models import MISSING, Entry, StoreStats, WriteResult
from kvstore.tools import TOOL_DEFINITIONS, ToolDispatcher, ToolResult

__all__ = [
    "MISSING",
    "TOOL_DEFINITIONS",
    "Entry",
    "KVEngine",
    "Settings",
    "StoreStats",
    "ToolDispatcher",
    "ToolResult",
    "WriteResult",
    "__version__",
]
