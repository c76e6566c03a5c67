# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Glob-style key matching (``*`` and ``?`` only)."""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable


@functools.lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a glob *pattern* into an anchored, case-sensitive regex.

    ``*`` matches any run of characters (including none), ``?`` exactly one
    character.  Every other character is literal.
    """
    parts: list[str] = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def filter_keys(keys: Iterable[str], pattern: str | None) -> list[str]:
    if not pattern:
        return list(keys)
    regex = glob_to_regex(pattern)
    return [k for k in keys if regex.fullmatch(k) is not None]
