"""Input validator contract consumed by the executor.

A validator is anything exposing ``safe_parse(value) -> ParseResult``.
Pydantic schemas (``BaseModel`` subclasses, ``TypeAdapter`` instances, or any
type ``TypeAdapter`` accepts) are adapted automatically by ``as_parser``.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol, get_origin, runtime_checkable

from pydantic import BaseModel, PydanticUserError, TypeAdapter, ValidationError


@dataclass(frozen=True)
class ParseResult:
    """Outcome of one validation: parsed ``data`` on success, ``error`` detail otherwise."""

    success: bool
    data: Any = None
    error: Any = None


@runtime_checkable
class SafeParser(Protocol):
    def safe_parse(self, value: Any) -> ParseResult: ...


class PydanticParser:
    """``SafeParser`` backed by a pydantic model or ``TypeAdapter``."""

    def __init__(self, schema: type[BaseModel] | TypeAdapter) -> None:
        self.schema = schema

    def safe_parse(self, value: Any) -> ParseResult:
        try:
            if isinstance(self.schema, TypeAdapter):
                data = self.schema.validate_python(value)
            else:
                data = self.schema.model_validate(value)
        except ValidationError as exc:
            return ParseResult(success=False, error=exc)
        return ParseResult(success=True, data=data)


@lru_cache(maxsize=256)
def _type_adapter(schema: Any) -> TypeAdapter | None:
    try:
        return TypeAdapter(schema)
    except (PydanticUserError, TypeError, NameError):
        return None


def as_parser(schema: Any) -> SafeParser | None:
    """Adapt ``schema`` to ``SafeParser``.

    Returns:
        A parser, or ``None`` when the object cannot validate anything.
    """
    if isinstance(schema, SafeParser):
        return schema
    if isinstance(schema, TypeAdapter):
        return PydanticParser(schema)
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return PydanticParser(schema)

    if not isinstance(schema, type) and get_origin(schema) is None:
        return None

    try:
        adapter = _type_adapter(schema)
    except TypeError:
        # unhashable annotations cannot be cached
        return None
    return PydanticParser(adapter) if adapter is not None else None
