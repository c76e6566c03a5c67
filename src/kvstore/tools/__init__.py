# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tool-call front-end for the kv_* tools."""

from kvstore.tools.dispatcher import ToolDispatcher, ToolResult
from kvstore.tools.schemas import TOOL_DEFINITIONS

__all__ = ["TOOL_DEFINITIONS", "ToolDispatcher", "ToolResult"]
