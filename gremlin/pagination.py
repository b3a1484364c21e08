"""Cursor pagination contract shared by adapters and procedures.

The cursor is opaque: only the adapter that issued it may decode it.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a listing. ``cursor`` is set if and only if ``has_more``."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[T] = Field(default_factory=list)
    cursor: str | None = None
    has_more: bool = Field(default=False, alias="hasMore")

    @model_validator(mode="after")
    def check_cursor(self) -> "Page[T]":
        if self.has_more and not self.cursor:
            raise ValueError("cursor is required when has_more is true")
        if not self.has_more and self.cursor is not None:
            raise ValueError("cursor must be absent when has_more is false")
        return self

    @model_serializer(mode="wrap")
    def _omit_cursor(self, handler):
        data = handler(self)
        if data.get("cursor") is None:
            data.pop("cursor", None)
        return data


class PaginationParams(BaseModel):
    cursor: str | None = None
    limit: int | None = Field(default=None, ge=1)
    offset: int | None = Field(default=None, ge=0)
