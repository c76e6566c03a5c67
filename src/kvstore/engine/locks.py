# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Per-key and store-wide mutual exclusion for the engine.

Single-key operations hold the lock of their key, so a read-modify-write
such as ``incr`` cannot interleave with another operation on the same key.
Store-wide operations (enumeration, clear, sweep, sync, backup) hold the
exclusive section, which waits for in-flight key sections to drain and
keeps new ones out until it is released.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class LockManager:
    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._key_locks: dict[str, asyncio.Lock] = {}
        self._key_users: dict[str, int] = {}
        self._active = 0
        self._exclusive = False
        self._exclusive_waiters = 0

    @property
    def active(self) -> int:
        """Number of key sections currently entered or waiting on their key."""
        return self._active

    @asynccontextmanager
    async def key(self, key: str) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._exclusive and self._exclusive_waiters == 0
            )
            self._active += 1
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = asyncio.Lock()
            self._key_users[key] = self._key_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            async with self._cond:
                self._active -= 1
                self._key_users[key] -= 1
                if not self._key_users[key]:
                    del self._key_users[key]
                    del self._key_locks[key]
                self._cond.notify_all()

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        async with self._cond:
            self._exclusive_waiters += 1
            try:
                await self._cond.wait_for(lambda: not self._exclusive and self._active == 0)
            finally:
                self._exclusive_waiters -= 1
            self._exclusive = True
        try:
            yield
        finally:
            async with self._cond:
                self._exclusive = False
                self._cond.notify_all()
