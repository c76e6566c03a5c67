# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Store statistics and backup endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from kvstore.api.auth import require_api_key
from kvstore.api.deps import get_engine
from kvstore.engine.store import KVEngine
from kvstore.models.results import StoreStats

logger = logging.getLogger("kvstore.api.routes.admin")

router = APIRouter(dependencies=[Depends(require_api_key)])


class BackupResponse(BaseModel):
    success: bool
    backup_file: str
    message: str


@router.get("/stats", response_model=StoreStats)
async def store_stats(engine: KVEngine = Depends(get_engine)) -> StoreStats:
    """Key count, memory and disk usage, hit/miss counters and uptime."""
    return await engine.stats()


@router.post("/backup", response_model=BackupResponse)
async def create_backup(engine: KVEngine = Depends(get_engine)) -> BackupResponse:
    path = await engine.backup()
    logger.info("Backup requested via API: %s", path)
    return BackupResponse(
        success=True, backup_file=str(path), message="Backup created successfully"
    )
