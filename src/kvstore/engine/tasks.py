# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""PeriodicTask -- a cancellable asyncio loop calling a coroutine on an interval.

Used for the expiration sweep, the hybrid disk sync and scheduled backups.
A failing tick is logged and the loop carries on with the next one.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger("kvstore.engine.tasks")


class PeriodicTask:
    """Run *func* every *interval* seconds until stopped."""

    def __init__(
        self,
        name: str,
        func: Callable[[], Awaitable[object]],
        interval: float,
    ) -> None:
        self._name = name
        self._func = func
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._ticks = 0
        self._failures = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the background loop.  Calling it twice is a no-op."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name=f"kvstore-{self._name}")
        logger.debug("Started %s task (interval=%ss)", self._name, self._interval)

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.debug(
            "Stopped %s task after %d ticks (%d failed)", self._name, self._ticks, self._failures
        )

    async def _loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            try:
                await self._func()
            except Exception:
                self._failures += 1
                logger.exception("%s tick failed; retrying in %ss", self._name, self._interval)
            finally:
                self._ticks += 1
