# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Key/value validation and value classification.

All functions here are pure: they either return a normalised result or raise
one of the :class:`~kvstore.core.exceptions.ValidationError` subclasses.
"""

from __future__ import annotations

import json
from typing import Any

from kvstore.core.constants import DEFAULT_MAX_KEY_SIZE, DEFAULT_MAX_VALUE_SIZE, ValueKind
from kvstore.core.exceptions import InvalidKeyError, InvalidValueError, ValueTooLargeError


def serialize(value: Any) -> str:
    """Return the compact JSON text for *value*.

    Raises:
        InvalidValueError: If *value* is not representable as strict JSON.
    """
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise InvalidValueError(f"Value is not JSON-serializable: {exc}") from exc


def validate_key(key: object, max_size: int = DEFAULT_MAX_KEY_SIZE) -> str:
    """Check that *key* is a non-empty string of at most *max_size* characters."""
    if not isinstance(key, str):
        raise InvalidKeyError("Key must be a string")
    if not key:
        raise InvalidKeyError("Key cannot be empty")
    if len(key) > max_size:
        raise InvalidKeyError(f"Key too long (max {max_size} characters)")
    return key


def validate_value(value: Any, max_size: int = DEFAULT_MAX_VALUE_SIZE) -> int:
    """Check the serialized size of *value* and return it in bytes."""
    size = len(serialize(value).encode("utf-8"))
    if size > max_size:
        raise ValueTooLargeError(f"Value too large ({size} bytes, max {max_size} bytes)")
    return size


def classify(value: Any) -> ValueKind:
    # bool is a subclass of int, so it has to be checked first
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int | float):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    return ValueKind.OBJECT


def as_integer(value: Any) -> int | None:
    """Return *value* as an ``int`` if it is an integral number, else ``None``.

    Used by ``incr``/``decr`` to decide whether the current value counts as
    a counter or gets coerced to ``0``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None
