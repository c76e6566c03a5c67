# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Key-value endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field

from kvstore.api.auth import require_api_key
from kvstore.api.deps import get_engine, get_username
from kvstore.core.constants import TTL_MISSING, TTL_PERSISTENT
from kvstore.core.namespace import namespaced, namespaced_pattern, strip_namespace
from kvstore.engine.store import KVEngine
from kvstore.models.entry import MISSING

router = APIRouter(dependencies=[Depends(require_api_key)])

_KEY_NOT_FOUND = "Key not found"


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class SetRequest(BaseModel):
    value: Any
    ttl: int | None = Field(default=None, description="Time to live in whole seconds")


class ExpireRequest(BaseModel):
    seconds: int = Field(description="Whole seconds until expiration")


class AppendRequest(BaseModel):
    value: str


class ValueResponse(BaseModel):
    key: str
    value: Any


class MessageResponse(BaseModel):
    success: bool
    message: str


class KeysResponse(BaseModel):
    keys: list[str]
    count: int
    pattern: str


class EntriesResponse(BaseModel):
    entries: dict[str, Any]
    count: int


class ClearResponse(BaseModel):
    success: bool
    cleared: int
    message: str


class TtlResponse(BaseModel):
    key: str
    ttl: int
    message: str


class CounterResponse(BaseModel):
    key: str
    value: int


class AppendResponse(BaseModel):
    key: str
    new_length: int


# ---------------------------------------------------------------------------
# Collection routes
# ---------------------------------------------------------------------------


@router.get("/keys", response_model=KeysResponse)
async def list_keys(
    pattern: str | None = Query(default=None, description="Glob pattern (* and ?)"),
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> KeysResponse:
    keys = await engine.keys(namespaced_pattern(pattern, username))
    keys = strip_namespace(keys, username)
    return KeysResponse(keys=keys, count=len(keys), pattern=pattern or "*")


@router.get("/kv", response_model=EntriesResponse)
async def list_entries(
    pattern: str | None = Query(default=None, description="Glob pattern (* and ?)"),
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> EntriesResponse:
    """Return every live key matching *pattern* together with its value."""
    prefix_len = len(namespaced("", username))
    entries: dict[str, Any] = {}
    for key in await engine.keys(namespaced_pattern(pattern, username)):
        entry = await engine.get_entry(key)
        # may have expired or been deleted since the listing
        if entry is not None:
            entries[key[prefix_len:]] = entry.value
    return EntriesResponse(entries=entries, count=len(entries))


@router.delete("/kv", response_model=ClearResponse)
async def clear_entries(
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> ClearResponse:
    cleared = await engine.clear(namespaced_pattern(None, username))
    return ClearResponse(success=True, cleared=cleared, message=f"Cleared {cleared} keys")


# ---------------------------------------------------------------------------
# Single-key routes
# ---------------------------------------------------------------------------


@router.get("/kv/{key}", response_model=ValueResponse)
async def get_value(
    key: str,
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> ValueResponse:
    value = await engine.get(namespaced(key, username))
    if value is MISSING:
        raise HTTPException(status_code=404, detail=_KEY_NOT_FOUND)
    return ValueResponse(key=key, value=value)


@router.head("/kv/{key}")
async def key_exists(
    key: str,
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> Response:
    exists = await engine.exists(namespaced(key, username))
    return Response(status_code=200 if exists else 404)


@router.post("/kv/{key}", response_model=MessageResponse)
async def set_value(
    key: str,
    body: SetRequest,
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> MessageResponse:
    result = await engine.set(namespaced(key, username), body.value, body.ttl)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return MessageResponse(success=True, message=result.message)


@router.delete("/kv/{key}", response_model=MessageResponse)
async def delete_value(
    key: str,
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> MessageResponse:
    if not await engine.delete(namespaced(key, username)):
        raise HTTPException(status_code=404, detail=_KEY_NOT_FOUND)
    return MessageResponse(success=True, message="Key deleted successfully")


@router.post("/kv/{key}/expire", response_model=MessageResponse)
async def expire_key(
    key: str,
    body: ExpireRequest,
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> MessageResponse:
    if not await engine.expire(namespaced(key, username), body.seconds):
        raise HTTPException(status_code=404, detail=_KEY_NOT_FOUND)
    return MessageResponse(success=True, message="Expiration set successfully")


@router.get("/kv/{key}/ttl", response_model=TtlResponse)
async def key_ttl(
    key: str,
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> TtlResponse:
    ttl = await engine.ttl(namespaced(key, username))
    if ttl == TTL_MISSING:
        message = "Key does not exist"
    elif ttl == TTL_PERSISTENT:
        message = "Key exists but has no expiration"
    else:
        message = f"Key expires in {ttl} seconds"
    return TtlResponse(key=key, ttl=ttl, message=message)


@router.post("/kv/{key}/incr", response_model=CounterResponse)
async def increment(
    key: str,
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> CounterResponse:
    return CounterResponse(key=key, value=await engine.incr(namespaced(key, username)))


@router.post("/kv/{key}/decr", response_model=CounterResponse)
async def decrement(
    key: str,
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> CounterResponse:
    return CounterResponse(key=key, value=await engine.decr(namespaced(key, username)))


@router.post("/kv/{key}/append", response_model=AppendResponse)
async def append_value(
    key: str,
    body: AppendRequest,
    engine: KVEngine = Depends(get_engine),
    username: str | None = Depends(get_username),
) -> AppendResponse:
    length = await engine.append(namespaced(key, username), body.value)
    return AppendResponse(key=key, new_length=length)
