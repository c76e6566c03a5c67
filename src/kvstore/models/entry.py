# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Stored entry model and the not-found sentinel."""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, model_validator

from kvstore.core.codec import classify
from kvstore.core.constants import ValueKind


class _Missing:
    """Sentinel returned by ``get`` for absent keys (``None`` is a valid value)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


class Entry(BaseModel):
    """A stored value plus its metadata.

    The field aliases are the on-disk record keys, so data files and
    backups stay readable by older deployments.
    """

    model_config = ConfigDict(populate_by_name=True)

    value: Any = None
    kind: ValueKind = Field(alias="type")
    created_at: int = Field(alias="createdAt")
    expires_at: int | None = Field(default=None, alias="expiresAt")

    @model_validator(mode="before")
    @classmethod
    def _derive_kind(cls, data: Any) -> Any:
        if isinstance(data, dict) and "type" not in data and "kind" not in data:
            data = {**data, "type": classify(data.get("value"))}
        return data

    @classmethod
    def create(cls, value: Any, now: int, expires_at: int | None = None) -> Entry:
        return cls(value=value, kind=classify(value), created_at=now, expires_at=expires_at)

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "value": self.value,
            "type": self.kind.value,
            "createdAt": self.created_at,
        }
        if self.expires_at is not None:
            record["expiresAt"] = self.expires_at
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Entry:
        return cls.model_validate(record)
