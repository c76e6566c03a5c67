# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Caller-side key namespacing (``"{username}:"`` prefixes).

The engine never sees usernames; both front-ends use these helpers to map
a user's keys onto raw keys and back.
"""

from __future__ import annotations

from collections.abc import Iterable

from kvstore.core.exceptions import InvalidUsernameError

_RESERVED = frozenset(":*?")


def resolve_username(username: str | None, *, required: bool = False) -> str | None:
    """Validate *username*, returning ``None`` when namespacing is not in use."""
    if username is None or username == "":
        if required:
            raise InvalidUsernameError("username is required")
        return None
    if not isinstance(username, str) or _RESERVED.intersection(username):
        raise InvalidUsernameError("username must not contain ':', '*' or '?'")
    return username


def namespaced(key: str, username: str | None) -> str:
    return f"{username}:{key}" if username else key


def namespaced_pattern(pattern: str | None, username: str | None) -> str | None:
    if not username:
        return pattern
    return f"{username}:{pattern or '*'}"


def strip_namespace(keys: Iterable[str], username: str | None) -> list[str]:
    if not username:
        return list(keys)
    prefix = f"{username}:"
    return [key[len(prefix):] for key in keys if key.startswith(prefix)]
