# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Redis storage backend using the ``redis`` async client.

Each entry is a Redis hash under ``<prefix><key>`` with the fields
``value``, ``type`` and ``createdAt``.  String values are stored raw so the
append script can extend them in place; every other kind is stored as JSON
text.  Expiry is native (``PEXPIREAT``/``PTTL``), so the server enforces it
and :meth:`purge_expired` has nothing to do.
"""

from __future__ import annotations

import contextlib
import json
import logging
import re
from collections.abc import AsyncIterator

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from kvstore.core.constants import StorageMode, ValueKind
from kvstore.core.exceptions import BackendUnavailableError, PersistenceError, ValueTooLargeError
from kvstore.core.expiration import now_ms
from kvstore.core.patterns import filter_keys
from kvstore.models.entry import Entry
from kvstore.storage.base import StorageBackend

logger = logging.getLogger("kvstore.storage.redis")

_TOO_LARGE = "value too large"

# KEYS[1]=hash  ARGV[1]=delta  ARGV[2]=createdAt
_INCR_SCRIPT = r"""
local current = 0
if redis.call('HGET', KEYS[1], 'type') == 'number' then
  local n = tonumber(redis.call('HGET', KEYS[1], 'value'))
  if n and n == math.floor(n) then current = n end
end
local encoded = string.format('%d', current + tonumber(ARGV[1]))
redis.call('HSET', KEYS[1], 'value', encoded, 'type', 'number', 'createdAt', ARGV[2])
return encoded
"""

# KEYS[1]=hash  ARGV[1]=suffix  ARGV[2]=createdAt  ARGV[3]=max bytes
_APPEND_SCRIPT = r"""
local current = ''
if redis.call('HGET', KEYS[1], 'type') == 'string' then
  current = redis.call('HGET', KEYS[1], 'value') or ''
end
local new = current .. ARGV[1]
if #new + 2 > tonumber(ARGV[3]) then
  return redis.error_reply('value too large')
end
redis.call('HSET', KEYS[1], 'value', new, 'type', 'string', 'createdAt', ARGV[2])
local _, chars = string.gsub(new, '[^\128-\191]', '')
return chars
"""


def _escape_match(text: str) -> str:
    """Escape Redis MATCH metacharacters so *text* is taken literally."""
    return re.sub(r"([*?\[\]\\])", r"\\\1", text)


def _encode_value(entry: Entry) -> str:
    if entry.kind is ValueKind.STRING:
        return entry.value
    return json.dumps(entry.value, separators=(",", ":"), ensure_ascii=False)


def _decode_value(kind: ValueKind, raw: str) -> object:
    if kind is ValueKind.STRING:
        return raw
    return json.loads(raw)


class RedisBackend(StorageBackend):
    """Redis-backed store using the ``redis-py`` async client.

    Args:
        redis_url: Redis connection URL (e.g. ``redis://localhost:6379/0``).
        key_prefix: Prefix for every stored key.
        client: Pre-built client; takes precedence over *redis_url*.
    """

    mode = StorageMode.REMOTE
    persistent = True

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        key_prefix: str = "kv:",
        client: aioredis.Redis | None = None,
    ) -> None:
        self._client = client or aioredis.from_url(redis_url, decode_responses=True)
        self._prefix = key_prefix
        self._incr_script = self._client.register_script(_INCR_SCRIPT)
        self._append_script = self._client.register_script(_APPEND_SCRIPT)

    # ------------------------------------------------------------------
    # StorageBackend interface
    # ------------------------------------------------------------------

    async def open(self) -> None:
        async with self._guard("ping"):
            await self._client.ping()
        logger.info("Connected to Redis backend (prefix=%r)", self._prefix)

    async def get(self, key: str) -> Entry | None:
        name = self._prefixed(key)
        async with self._guard("get"):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.hgetall(name)
                pipe.pttl(name)
                fields, pttl = await pipe.execute()
        if not fields:
            return None
        kind = ValueKind(fields.get("type", ValueKind.STRING))
        return Entry(
            value=_decode_value(kind, fields.get("value", "")),
            kind=kind,
            created_at=int(fields.get("createdAt", 0)),
            expires_at=now_ms() + pttl if pttl is not None and pttl >= 0 else None,
        )

    async def put(self, key: str, entry: Entry) -> None:
        name = self._prefixed(key)
        mapping = {
            "value": _encode_value(entry),
            "type": entry.kind.value,
            "createdAt": str(entry.created_at),
        }
        async with self._guard("put"):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(name)
                pipe.hset(name, mapping=mapping)
                if entry.expires_at is not None:
                    pipe.pexpireat(name, entry.expires_at)
                await pipe.execute()

    async def delete(self, key: str) -> bool:
        async with self._guard("delete"):
            result = await self._client.delete(self._prefixed(key))
        return bool(result)

    async def keys(self, pattern: str | None, now: int) -> list[str]:
        stripped = [name[len(self._prefix):] async for name in self._scan()]
        # SCAN may report a key more than once
        return filter_keys(dict.fromkeys(stripped), pattern)

    async def clear(self) -> int:
        """Delete all keys under the prefix.

        Uses SCAN to avoid blocking Redis with a KEYS command.
        """
        count = 0
        async for name in self._scan():
            async with self._guard("clear"):
                count += await self._client.delete(name)
        return count

    async def purge_expired(self, now: int) -> int:
        return 0

    async def snapshot(self) -> dict[str, Entry]:
        entries: dict[str, Entry] = {}
        async for name in self._scan():
            key = name[len(self._prefix):]
            if key in entries:
                continue
            entry = await self.get(key)
            if entry is not None:
                entries[key] = entry
        return entries

    async def load(self, entries: dict[str, Entry]) -> None:
        await self.clear()
        for key, entry in entries.items():
            await self.put(key, entry)

    async def flush(self) -> None:
        """Ask the server for a background save; failures are only logged."""
        try:
            await self._client.bgsave()
        except RedisError as exc:
            logger.debug("BGSAVE not performed: %s", exc)

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Native atomic helpers
    # ------------------------------------------------------------------

    async def incr_by(self, key: str, delta: int, now: int) -> int:
        async with self._guard("incr"):
            result = await self._incr_script(keys=[self._prefixed(key)], args=[delta, now])
        return int(result)

    async def append(self, key: str, suffix: str, now: int, max_size: int) -> int:
        try:
            async with self._guard("append"):
                result = await self._append_script(
                    keys=[self._prefixed(key)], args=[suffix, now, max_size]
                )
        except PersistenceError as exc:
            if _TOO_LARGE in str(exc.__cause__):
                raise ValueTooLargeError(f"Value too large (max {max_size} bytes)") from exc
            raise
        return int(result)

    async def expire(self, key: str, expires_at: int) -> bool:
        async with self._guard("expire"):
            result = await self._client.pexpireat(self._prefixed(key), expires_at)
        return bool(result)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _prefixed(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def _scan(self) -> AsyncIterator[str]:
        match = f"{_escape_match(self._prefix)}*"
        async with self._guard("scan"):
            async for name in self._client.scan_iter(match=match):
                yield name

    @contextlib.asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        """Translate redis-py errors into the kvstore exception hierarchy."""
        try:
            yield
        except (RedisConnectionError, RedisTimeoutError) as exc:
            logger.error("Redis unavailable during %s: %s", operation, exc)
            raise BackendUnavailableError(f"Redis backend unavailable: {exc}") from exc
        except ResponseError as exc:
            raise PersistenceError(f"Redis rejected {operation}: {exc}") from exc
        except RedisError as exc:
            raise PersistenceError(f"Redis error during {operation}: {exc}") from exc
