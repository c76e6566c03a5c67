# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""JSON snapshot file used by the file and hybrid backends.

The file holds a single JSON object mapping each key to its entry record.
Writes go to a temporary sibling first and are moved into place with
``os.replace`` so a crash never leaves a half-written data file.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from kvstore.core.exceptions import PersistenceError
from kvstore.models.entry import Entry

logger = logging.getLogger("kvstore.storage.snapshot")


class SnapshotFile:
    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> dict[str, Entry]:
        """Read all entries, or an empty mapping when the file does not exist.

        An unreadable file is moved aside to ``*.corrupt.json`` so the next
        save does not overwrite it.
        """
        return await asyncio.to_thread(self._load_sync)

    async def save(self, entries: dict[str, Entry]) -> None:
        records = {key: entry.to_record() for key, entry in entries.items()}
        await asyncio.to_thread(self._write_sync, records)

    def size(self) -> int:
        try:
            return self._path.stat().st_size
        except FileNotFoundError:
            return 0

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _load_sync(self) -> dict[str, Entry]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise PersistenceError(f"Failed to read {self._path}: {exc}") from exc

        try:
            raw = json.loads(text)
            if not isinstance(raw, dict):
                raise ValueError("top-level JSON value is not an object")
            return {key: Entry.from_record(record) for key, record in raw.items()}
        except ValueError as exc:
            corrupt = self._path.with_suffix(".corrupt.json")
            logger.warning(
                "Data file %s is unreadable (%s); moved to %s and starting empty",
                self._path,
                exc,
                corrupt,
            )
            try:
                self._path.replace(corrupt)
            except OSError as move_exc:
                raise PersistenceError(
                    f"Failed to move corrupt data file {self._path}: {move_exc}"
                ) from move_exc
            return {}

    def _write_sync(self, records: dict[str, Any]) -> None:
        tmp = self._path.with_suffix(".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as exc:
            raise PersistenceError(f"Failed to write {self._path}: {exc}") from exc
