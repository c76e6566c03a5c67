# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Query, Request

from kvstore.core.exceptions import BackendUnavailableError
from kvstore.core.namespace import resolve_username
from kvstore.engine.store import KVEngine


def get_engine(request: Request) -> KVEngine:
    engine: KVEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        raise BackendUnavailableError("Store is not initialised")
    return engine


def get_username(
    request: Request,
    username: str | None = Query(default=None, description="Owner namespace for keys"),
) -> str | None:
    """Resolve the optional ``username`` query parameter.

    Raises ``InvalidUsernameError`` (mapped to 400) when the name is
    malformed, or when it is missing and ``require_username`` is set.
    """
    return resolve_username(username, required=request.app.state.settings.require_username)
