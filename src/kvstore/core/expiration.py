# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Expiry arithmetic shared by the engine and the local backends.

Timestamps are integer milliseconds since the Unix epoch.  An entry is live
while ``expires_at`` is absent or strictly in the future.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from kvstore.core.constants import TTL_MISSING, TTL_PERSISTENT
from kvstore.core.exceptions import InvalidValueError

if TYPE_CHECKING:
    from kvstore.models.entry import Entry

Clock = Callable[[], int]


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def validate_ttl(ttl_seconds: float | None) -> None:
    if ttl_seconds is not None and not math.isfinite(ttl_seconds):
        raise InvalidValueError(f"TTL must be a finite number of seconds, got {ttl_seconds}")


def compute_expiry(ttl_seconds: float | None, now: int) -> int | None:
    """Absolute expiry for a TTL, or ``None`` when *ttl_seconds* is absent or not positive."""
    if ttl_seconds is None or ttl_seconds <= 0:
        return None
    return now + math.ceil(ttl_seconds * 1000)


def is_live(entry: Entry, now: int) -> bool:
    return entry.expires_at is None or entry.expires_at > now


def remaining_seconds(entry: Entry | None, now: int) -> int:
    if entry is None:
        return TTL_MISSING
    if entry.expires_at is None:
        return TTL_PERSISTENT
    return max(0, math.ceil((entry.expires_at - now) / 1000))
