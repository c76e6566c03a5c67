# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for the kv_* tool definitions and dispatcher."""

from __future__ import annotations

import math
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from kvstore.core.exceptions import BackendUnavailableError
from kvstore.engine.store import KVEngine
from kvstore.tools import TOOL_DEFINITIONS, ToolDispatcher

EXPECTED_TOOLS = {
    "kv_get",
    "kv_set",
    "kv_delete",
    "kv_exists",
    "kv_keys",
    "kv_expire",
    "kv_ttl",
    "kv_incr",
    "kv_decr",
    "kv_append",
    "kv_stats",
    "kv_backup",
    "kv_clear",
}


@pytest.fixture
def dispatcher(engine: KVEngine) -> ToolDispatcher:
    return ToolDispatcher(engine)


async def _call(dispatcher: ToolDispatcher, name: str, **arguments: object) -> dict:
    result = await dispatcher.call(name, arguments)
    assert not result.is_error, result.payload
    return result.payload


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class TestToolDefinitions:
    def test_all_tools_defined(self) -> None:
        assert {tool["name"] for tool in TOOL_DEFINITIONS} == EXPECTED_TOOLS

    def test_tools_have_schema(self) -> None:
        for tool in TOOL_DEFINITIONS:
            assert tool["description"]
            assert tool["inputSchema"]["type"] == "object"
            assert "properties" in tool["inputSchema"]

    def test_required_arguments(self) -> None:
        schemas = {tool["name"]: tool["inputSchema"] for tool in TOOL_DEFINITIONS}
        assert set(schemas["kv_set"]["required"]) == {"key", "value"}
        assert set(schemas["kv_expire"]["required"]) == {"key", "seconds"}
        assert "required" not in schemas["kv_keys"]
        assert "username" in schemas["kv_get"]["properties"]
        assert "username" not in schemas["kv_stats"]["properties"]

    def test_list_tools(self, dispatcher: ToolDispatcher) -> None:
        assert dispatcher.list_tools() == TOOL_DEFINITIONS


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class TestToolCalls:
    async def test_set_and_get(self, dispatcher: ToolDispatcher) -> None:
        data = await _call(dispatcher, "kv_set", key="k", value={"a": [1, 2]})
        assert data == {"success": True, "message": "Key set successfully"}

        data = await _call(dispatcher, "kv_get", key="k")
        assert data == {"success": True, "key": "k", "value": {"a": [1, 2]}, "exists": True}

    async def test_get_missing(self, dispatcher: ToolDispatcher) -> None:
        data = await _call(dispatcher, "kv_get", key="nope")
        assert data["exists"] is False
        assert data["value"] is None

    async def test_get_stored_null(self, dispatcher: ToolDispatcher) -> None:
        await _call(dispatcher, "kv_set", key="k", value=None)
        data = await _call(dispatcher, "kv_get", key="k")
        assert data["exists"] is True
        assert data["value"] is None

    async def test_set_rejected_value(self, dispatcher: ToolDispatcher) -> None:
        data = await _call(dispatcher, "kv_set", key="", value=1)
        assert data["success"] is False

    async def test_delete(self, dispatcher: ToolDispatcher) -> None:
        await _call(dispatcher, "kv_set", key="k", value=1)
        assert (await _call(dispatcher, "kv_delete", key="k")) == {
            "success": True,
            "message": "Key deleted successfully",
        }
        assert (await _call(dispatcher, "kv_delete", key="k"))["message"] == "Key not found"

    async def test_exists(self, dispatcher: ToolDispatcher) -> None:
        assert (await _call(dispatcher, "kv_exists", key="k")) == {"key": "k", "exists": False}

    async def test_keys(self, dispatcher: ToolDispatcher) -> None:
        for key in ("user_1", "user_2", "admin"):
            await _call(dispatcher, "kv_set", key=key, value=1)
        data = await _call(dispatcher, "kv_keys", pattern="user_*")
        assert sorted(data["keys"]) == ["user_1", "user_2"]
        assert data["count"] == 2
        assert data["pattern"] == "user_*"
        assert (await _call(dispatcher, "kv_keys"))["pattern"] == "*"

    async def test_expire_and_ttl(self, dispatcher: ToolDispatcher, clock) -> None:
        await _call(dispatcher, "kv_set", key="k", value=1)
        assert (await _call(dispatcher, "kv_ttl", key="k"))["message"] == (
            "Key exists but has no expiration"
        )
        assert (await _call(dispatcher, "kv_expire", key="k", seconds=30))["success"] is True
        assert await _call(dispatcher, "kv_ttl", key="k") == {
            "key": "k",
            "ttl": 30,
            "message": "Key expires in 30 seconds",
        }
        clock.advance(30)
        data = await _call(dispatcher, "kv_ttl", key="k")
        assert data["ttl"] == -2
        assert data["message"] == "Key does not exist"

    async def test_expire_missing(self, dispatcher: ToolDispatcher) -> None:
        data = await _call(dispatcher, "kv_expire", key="nope", seconds=5)
        assert data == {"success": False, "message": "Key not found"}

    async def test_set_with_ttl(self, dispatcher: ToolDispatcher) -> None:
        await _call(dispatcher, "kv_set", key="k", value="v", ttl=60)
        assert (await _call(dispatcher, "kv_ttl", key="k"))["ttl"] == 60

    async def test_incr_decr(self, dispatcher: ToolDispatcher) -> None:
        assert (await _call(dispatcher, "kv_incr", key="n"))["value"] == 1
        assert (await _call(dispatcher, "kv_incr", key="n"))["value"] == 2
        assert await _call(dispatcher, "kv_decr", key="n") == {
            "success": True,
            "key": "n",
            "value": 1,
        }

    async def test_append(self, dispatcher: ToolDispatcher) -> None:
        await _call(dispatcher, "kv_append", key="s", value="a")
        data = await _call(dispatcher, "kv_append", key="s", value="b")
        assert data == {"success": True, "key": "s", "new_length": 2}

    async def test_stats(self, dispatcher: ToolDispatcher) -> None:
        await _call(dispatcher, "kv_set", key="k", value=1)
        await _call(dispatcher, "kv_get", key="k")
        await _call(dispatcher, "kv_get", key="missing")
        data = await _call(dispatcher, "kv_stats")
        assert data["storage_mode"] == "memory"
        assert data["total_keys"] == 1
        assert data["hits"] == 1
        assert data["misses"] == 1
        assert data["hit_rate_percent"] == 50.0
        assert "memory_usage_mb" in data
        assert "uptime_minutes" in data

    async def test_backup(self, dispatcher: ToolDispatcher, backup_dir: Path) -> None:
        await _call(dispatcher, "kv_set", key="k", value=1)
        data = await _call(dispatcher, "kv_backup")
        assert data["success"] is True
        assert Path(data["backup_file"]).parent == backup_dir
        assert Path(data["backup_file"]).exists()

    async def test_clear(self, dispatcher: ToolDispatcher) -> None:
        await _call(dispatcher, "kv_set", key="a", value=1)
        await _call(dispatcher, "kv_set", key="b", value=2)
        data = await _call(dispatcher, "kv_clear")
        assert data["success"] is True
        assert data["cleared"] == 2
        assert (await _call(dispatcher, "kv_keys"))["count"] == 0

    async def test_result_is_pretty_json_text(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("kv_exists", {"key": "k"})
        assert result.content[0]["type"] == "text"
        assert result.content[0]["text"].startswith("{\n  ")


# ---------------------------------------------------------------------------
# Username namespacing
# ---------------------------------------------------------------------------


class TestUsernames:
    async def test_users_are_isolated(self, dispatcher: ToolDispatcher, engine: KVEngine) -> None:
        await _call(dispatcher, "kv_set", key="k", value="alice's", username="alice")
        await _call(dispatcher, "kv_set", key="k", value="bob's", username="bob")

        assert (await _call(dispatcher, "kv_get", key="k", username="alice"))["value"] == "alice's"
        assert (await _call(dispatcher, "kv_get", key="k", username="bob"))["value"] == "bob's"
        assert await engine.get("alice:k") == "alice's"

    async def test_keys_are_stripped(self, dispatcher: ToolDispatcher) -> None:
        await _call(dispatcher, "kv_set", key="user_1", value=1, username="alice")
        await _call(dispatcher, "kv_set", key="user_2", value=1, username="bob")
        data = await _call(dispatcher, "kv_keys", pattern="user_*", username="alice")
        assert data["keys"] == ["user_1"]

    async def test_clear_only_own_keys(self, dispatcher: ToolDispatcher) -> None:
        await _call(dispatcher, "kv_set", key="a", value=1, username="alice")
        await _call(dispatcher, "kv_set", key="b", value=1, username="alice")
        await _call(dispatcher, "kv_set", key="a", value=1, username="bob")

        assert (await _call(dispatcher, "kv_clear", username="alice"))["cleared"] == 2
        assert (await _call(dispatcher, "kv_keys", username="bob"))["keys"] == ["a"]

    async def test_username_required(self, engine: KVEngine) -> None:
        strict = ToolDispatcher(engine, require_username=True)
        result = await strict.call("kv_get", {"key": "k"})
        assert result.is_error
        assert "username is required" in result.payload["error"]

        assert not (await strict.call("kv_get", {"key": "k", "username": "alice"})).is_error

    async def test_invalid_username(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("kv_get", {"key": "k", "username": "a:b"})
        assert result.is_error
        assert result.payload["error_type"] == "InvalidUsernameError"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestToolErrors:
    async def test_unknown_tool(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("kv_nope", {})
        assert result.is_error
        assert result.payload == {"success": False, "error": "Unknown tool: kv_nope"}

    async def test_missing_argument(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("kv_get", {})
        assert result.is_error
        assert result.payload["success"] is False
        assert result.payload["details"][0]["loc"] == ["key"]

    async def test_unexpected_argument(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("kv_stats", {"verbose": True})
        assert result.is_error

    async def test_append_requires_string(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("kv_append", {"key": "s", "value": 5})
        assert result.is_error

    async def test_incr_empty_key(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("kv_incr", {"key": ""})
        assert result.is_error
        assert result.payload["error_type"] == "InvalidKeyError"

    async def test_engine_failure_is_reported(
        self, dispatcher: ToolDispatcher, engine: KVEngine
    ) -> None:
        with patch.object(
            engine.backend, "get", AsyncMock(side_effect=BackendUnavailableError("down"))
        ):
            result = await dispatcher.call("kv_get", {"key": "k"})
        assert result.is_error
        assert result.payload["error"] == "down"
        assert result.payload["error_type"] == "BackendUnavailableError"

    @pytest.mark.parametrize("ttl", [math.inf, math.nan, 1.5])
    async def test_set_rejects_non_whole_ttl(
        self, dispatcher: ToolDispatcher, engine: KVEngine, ttl: float
    ) -> None:
        result = await dispatcher.call("kv_set", {"key": "k", "value": 1, "ttl": ttl})
        assert result.is_error
        assert result.payload["error"] == "Invalid arguments for kv_set"
        assert result.payload["details"][0]["loc"] == ["ttl"]
        assert await engine.exists("k") is False

    @pytest.mark.parametrize("seconds", [math.inf, math.nan, 0.5])
    async def test_expire_rejects_non_whole_seconds(
        self, dispatcher: ToolDispatcher, engine: KVEngine, seconds: float
    ) -> None:
        await engine.set("k", "v")
        result = await dispatcher.call("kv_expire", {"key": "k", "seconds": seconds})
        assert result.is_error
        assert await engine.ttl("k") == -1

    def test_ttl_arguments_are_integers(self) -> None:
        schemas = {tool["name"]: tool["inputSchema"] for tool in TOOL_DEFINITIONS}
        assert schemas["kv_expire"]["properties"]["seconds"]["type"] == "integer"
        ttl_types = {option["type"] for option in schemas["kv_set"]["properties"]["ttl"]["anyOf"]}
        assert ttl_types == {"integer", "null"}
