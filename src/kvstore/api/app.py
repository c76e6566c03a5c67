# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from kvstore import __version__
from kvstore.api.middleware import RequestMiddleware
from kvstore.api.routes import admin, health, kv
from kvstore.core.config import Settings, get_settings
from kvstore.core.exceptions import BackendUnavailableError, KVStoreError, ValidationError
from kvstore.core.logging import setup_logging
from kvstore.engine.store import KVEngine

logger = logging.getLogger("kvstore.api.app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    settings: Settings = app.state.settings

    # An injected engine belongs to the caller; only close the one built here
    owned = app.state.engine is None
    if owned:
        setup_logging(settings.log_level, settings.log_format)
        app.state.engine = KVEngine.from_settings(settings)

    engine: KVEngine = app.state.engine
    await engine.start()

    yield

    if owned:
        await engine.close()
        app.state.engine = None


async def _validation_error(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # rejected inputs are omitted; a non-finite float cannot be rendered as JSON
    errors = [{k: v for k, v in error.items() if k != "input"} for error in exc.errors()]
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(errors)})


async def _backend_unavailable(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": str(exc)})


async def _store_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(
    engine: KVEngine | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the HTTP front-end.

    Args:
        engine: Engine to serve; when omitted the lifespan builds one from
            *settings* and closes it on shutdown.
        settings: Application settings; read from the environment if omitted.
    """
    app = FastAPI(
        title="kvstore",
        description="Key-value store with TTL expiry and pluggable persistence",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.state.settings = settings or get_settings()
    app.state.engine = engine

    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(BackendUnavailableError, _backend_unavailable)
    app.add_exception_handler(KVStoreError, _store_error)

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(kv.router, prefix="/api/v1", tags=["kv"])
    app.include_router(admin.router, prefix="/api/v1", tags=["admin"])
    app.add_middleware(RequestMiddleware)

    return app
