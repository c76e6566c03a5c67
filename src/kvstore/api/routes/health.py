# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel

from kvstore import __version__

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    storage_mode: str | None


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    engine = request.app.state.engine
    return HealthResponse(
        status="ok" if engine is not None and engine.started else "starting",
        service="kvstore",
        version=__version__,
        storage_mode=engine.mode.value if engine is not None else None,
    )
