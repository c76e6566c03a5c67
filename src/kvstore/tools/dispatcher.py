# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tool-call front-end: maps ``kv_*`` tool invocations onto :class:`KVEngine`.

Every call produces a :class:`ToolResult` whose single text content item is
a pretty-printed JSON payload.  Unknown tools, bad arguments and engine
failures come back as ``is_error=True`` results with ``"success": false``;
nothing escapes as an exception.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import pydantic

from kvstore.core.exceptions import KVStoreError
from kvstore.core.namespace import (
    namespaced,
    namespaced_pattern,
    resolve_username,
    strip_namespace,
)
from kvstore.engine.store import KVEngine
from kvstore.models.entry import MISSING
from kvstore.tools.schemas import (
    TOOL_ARGS,
    TOOL_DEFINITIONS,
    AppendArgs,
    ClearArgs,
    DecrArgs,
    DeleteArgs,
    ExistsArgs,
    ExpireArgs,
    GetArgs,
    IncrArgs,
    KeysArgs,
    NamespacedArgs,
    SetArgs,
    ToolArgs,
    TtlArgs,
)

logger = logging.getLogger("kvstore.tools.dispatcher")

Handler = Callable[[Any], Awaitable[dict[str, Any]]]


@dataclass
class ToolResult:
    """Structured text payload returned for a tool call."""

    content: list[dict[str, str]]
    is_error: bool = False

    @property
    def payload(self) -> dict[str, Any]:
        return json.loads(self.content[0]["text"])


def _text_result(payload: dict[str, Any], *, is_error: bool = False) -> ToolResult:
    text = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    return ToolResult(content=[{"type": "text", "text": text}], is_error=is_error)


def _error_result(message: str, **extra: Any) -> ToolResult:
    return _text_result({"success": False, "error": message, **extra}, is_error=True)


class ToolDispatcher:
    """Dispatch ``kv_*`` tool calls to an engine.

    Args:
        engine: The engine shared with the HTTP front-end.
        require_username: Reject namespaced tools called without ``username``.
    """

    def __init__(self, engine: KVEngine, *, require_username: bool = False) -> None:
        self._engine = engine
        self._require_username = require_username
        self._handlers: dict[str, Handler] = {
            "kv_get": self._get,
            "kv_set": self._set,
            "kv_delete": self._delete,
            "kv_exists": self._exists,
            "kv_keys": self._keys,
            "kv_expire": self._expire,
            "kv_ttl": self._ttl,
            "kv_incr": self._incr,
            "kv_decr": self._decr,
            "kv_append": self._append,
            "kv_stats": self._stats,
            "kv_backup": self._backup,
            "kv_clear": self._clear,
        }

    def list_tools(self) -> list[dict[str, Any]]:
        return TOOL_DEFINITIONS

    async def call(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        handler = self._handlers.get(name)
        if handler is None:
            return _error_result(f"Unknown tool: {name}")

        _, model = TOOL_ARGS[name]
        try:
            args = model.model_validate(arguments or {})
            payload = await handler(args)
        except pydantic.ValidationError as exc:
            return _error_result(
                f"Invalid arguments for {name}",
                details=exc.errors(include_url=False, include_context=False),
            )
        except KVStoreError as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            return _error_result(str(exc), error_type=type(exc).__name__)
        return _text_result(payload)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _user(self, args: NamespacedArgs) -> str | None:
        return resolve_username(args.username, required=self._require_username)

    async def _get(self, args: GetArgs) -> dict[str, Any]:
        value = await self._engine.get(namespaced(args.key, self._user(args)))
        found = value is not MISSING
        return {
            "success": True,
            "key": args.key,
            "value": value if found else None,
            "exists": found,
        }

    async def _set(self, args: SetArgs) -> dict[str, Any]:
        key = namespaced(args.key, self._user(args))
        result = await self._engine.set(key, args.value, args.ttl)
        return result.model_dump()

    async def _delete(self, args: DeleteArgs) -> dict[str, Any]:
        deleted = await self._engine.delete(namespaced(args.key, self._user(args)))
        return {
            "success": deleted,
            "message": "Key deleted successfully" if deleted else "Key not found",
        }

    async def _exists(self, args: ExistsArgs) -> dict[str, Any]:
        exists = await self._engine.exists(namespaced(args.key, self._user(args)))
        return {"key": args.key, "exists": exists}

    async def _keys(self, args: KeysArgs) -> dict[str, Any]:
        username = self._user(args)
        keys = await self._engine.keys(namespaced_pattern(args.pattern, username))
        keys = strip_namespace(keys, username)
        return {"keys": keys, "count": len(keys), "pattern": args.pattern or "*"}

    async def _expire(self, args: ExpireArgs) -> dict[str, Any]:
        updated = await self._engine.expire(namespaced(args.key, self._user(args)), args.seconds)
        return {
            "success": updated,
            "message": "Expiration set successfully" if updated else "Key not found",
        }

    async def _ttl(self, args: TtlArgs) -> dict[str, Any]:
        ttl = await self._engine.ttl(namespaced(args.key, self._user(args)))
        if ttl == -2:
            message = "Key does not exist"
        elif ttl == -1:
            message = "Key exists but has no expiration"
        else:
            message = f"Key expires in {ttl} seconds"
        return {"key": args.key, "ttl": ttl, "message": message}

    async def _incr(self, args: IncrArgs) -> dict[str, Any]:
        value = await self._engine.incr(namespaced(args.key, self._user(args)))
        return {"success": True, "key": args.key, "value": value}

    async def _decr(self, args: DecrArgs) -> dict[str, Any]:
        value = await self._engine.decr(namespaced(args.key, self._user(args)))
        return {"success": True, "key": args.key, "value": value}

    async def _append(self, args: AppendArgs) -> dict[str, Any]:
        length = await self._engine.append(namespaced(args.key, self._user(args)), args.value)
        return {"success": True, "key": args.key, "new_length": length}

    async def _stats(self, args: ToolArgs) -> dict[str, Any]:
        stats = await self._engine.stats()
        return stats.model_dump(mode="json")

    async def _backup(self, args: ToolArgs) -> dict[str, Any]:
        path = await self._engine.backup()
        return {
            "success": True,
            "backup_file": str(path),
            "message": "Backup created successfully",
        }

    async def _clear(self, args: ClearArgs) -> dict[str, Any]:
        username = self._user(args)
        cleared = await self._engine.clear(namespaced_pattern(None, username))
        return {
            "success": True,
            "cleared": cleared,
            "message": "All data cleared successfully",
        }
