# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Argument models and JSON-schema definitions for the kv_* tools.

Each tool's ``inputSchema`` is generated from its pydantic argument model,
so the advertised schema and the validation applied in
:class:`~kvstore.tools.dispatcher.ToolDispatcher` cannot drift apart.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_USERNAME_DESCRIPTION = "Owner namespace; keys are stored as '<username>:<key>'"


class ToolArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")


class NamespacedArgs(ToolArgs):
    username: str | None = Field(default=None, description=_USERNAME_DESCRIPTION)


class GetArgs(NamespacedArgs):
    key: str = Field(description="The key to retrieve")


class SetArgs(NamespacedArgs):
    key: str = Field(description="The key to set")
    value: Any = Field(description="The value to store (can be any JSON type)")
    ttl: int | None = Field(default=None, description="Time to live in whole seconds (optional)")


class DeleteArgs(NamespacedArgs):
    key: str = Field(description="The key to delete")


class ExistsArgs(NamespacedArgs):
    key: str = Field(description="The key to check")


class KeysArgs(NamespacedArgs):
    pattern: str | None = Field(
        default=None,
        description="Glob pattern to match keys (optional, * and ? wildcards supported)",
    )


class ExpireArgs(NamespacedArgs):
    key: str = Field(description="The key to set expiration for")
    seconds: int = Field(description="Whole seconds until expiration")


class TtlArgs(NamespacedArgs):
    key: str = Field(description="The key to check TTL for")


class IncrArgs(NamespacedArgs):
    key: str = Field(description="The key to increment")


class DecrArgs(NamespacedArgs):
    key: str = Field(description="The key to decrement")


class AppendArgs(NamespacedArgs):
    key: str = Field(description="The key to append to")
    value: str = Field(description="The string value to append")


class ClearArgs(NamespacedArgs):
    pass


class StatsArgs(ToolArgs):
    pass


class BackupArgs(ToolArgs):
    pass


TOOL_ARGS: dict[str, tuple[str, type[ToolArgs]]] = {
    "kv_get": ("Get the value stored at a key", GetArgs),
    "kv_set": ("Store a JSON value at a key, optionally with a TTL", SetArgs),
    "kv_delete": ("Delete a key", DeleteArgs),
    "kv_exists": ("Check whether a key exists", ExistsArgs),
    "kv_keys": ("List keys matching a glob pattern", KeysArgs),
    "kv_expire": ("Set a key to expire after a number of seconds", ExpireArgs),
    "kv_ttl": ("Seconds until a key expires (-1 no expiry, -2 missing)", TtlArgs),
    "kv_incr": ("Increment the integer stored at a key by 1", IncrArgs),
    "kv_decr": ("Decrement the integer stored at a key by 1", DecrArgs),
    "kv_append": ("Append a string to the value stored at a key", AppendArgs),
    "kv_stats": ("Store statistics: key count, usage, hit rate, uptime", StatsArgs),
    "kv_backup": ("Write a full snapshot of the store to a backup file", BackupArgs),
    "kv_clear": ("Remove all keys (only the user's keys when a username is given)", ClearArgs),
}


def _input_schema(model: type[ToolArgs]) -> dict[str, Any]:
    schema = model.model_json_schema()
    schema.pop("title", None)
    schema.setdefault("properties", {})
    return schema


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {"name": name, "description": description, "inputSchema": _input_schema(model)}
    for name, (description, model) in TOOL_ARGS.items()
]
