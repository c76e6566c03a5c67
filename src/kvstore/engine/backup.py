# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Point-in-time snapshot export and import.

Backups are JSON documents written to ``<data_dir>/backups``::

    {"timestamp": <ms>, "config": {...}, "data": {<key>: <entry record>}}
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from kvstore.core.exceptions import BackupError
from kvstore.models.entry import Entry

logger = logging.getLogger("kvstore.engine.backup")


class BackupManager:
    """Writes and reads full-store snapshots in *backup_dir*."""

    def __init__(self, backup_dir: Path) -> None:
        self._backup_dir = Path(backup_dir)

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir

    async def write(
        self,
        entries: dict[str, Entry],
        *,
        now: int,
        config: dict[str, Any] | None = None,
    ) -> Path:
        """Write *entries* to a new timestamped file and return its path.

        Raises:
            BackupError: If the file cannot be written.
        """
        document = {
            "timestamp": now,
            "config": config or {},
            "data": {key: entry.to_record() for key, entry in entries.items()},
        }
        path = await asyncio.to_thread(self._write_sync, document, now)
        logger.info("Backup created: %s (%d keys)", path, len(entries))
        return path

    async def read(self, path: Path) -> dict[str, Entry]:
        """Load the entries stored in the backup at *path*.

        Raises:
            BackupError: If the file is missing or malformed.
        """
        return await asyncio.to_thread(self._read_sync, Path(path))

    def list_backups(self) -> list[Path]:
        """Backup files, oldest first."""
        if not self._backup_dir.is_dir():
            return []
        return sorted(self._backup_dir.glob("backup-*.json"))

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _write_sync(self, document: dict[str, Any], now: int) -> Path:
        # ISO-8601 UTC with ":" and "." replaced, e.g. 2026-02-20T12-00-00-000Z
        moment = datetime.fromtimestamp(now // 1000, tz=UTC)
        stem = f"backup-{moment:%Y-%m-%dT%H-%M-%S}-{now % 1000:03d}Z"
        try:
            self._backup_dir.mkdir(parents=True, exist_ok=True)
            path = self._backup_dir / f"{stem}.json"
            suffix = 1
            while path.exists():
                path = self._backup_dir / f"{stem}-{suffix}.json"
                suffix += 1
            path.write_text(
                json.dumps(document, indent=2, ensure_ascii=False, default=str),
                encoding="utf-8",
            )
        except OSError as exc:
            raise BackupError(f"Failed to write backup to {self._backup_dir}: {exc}") from exc
        return path

    def _read_sync(self, path: Path) -> dict[str, Entry]:
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise BackupError(f"Failed to read backup {path}: {exc}") from exc
        except ValueError as exc:
            raise BackupError(f"Backup {path} is not valid JSON: {exc}") from exc

        data = document.get("data") if isinstance(document, dict) else None
        if not isinstance(data, dict):
            raise BackupError(f"Backup {path} has no 'data' object")
        try:
            return {key: Entry.from_record(record) for key, record in data.items()}
        except ValueError as exc:
            raise BackupError(f"Backup {path} contains an invalid entry: {exc}") from exc
