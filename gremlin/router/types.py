"""Core types for procedures and routers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

# Called as ``middleware(input=...)``; returns a context fragment (mapping or
# None), an awaitable of one, or a deferred computation producing one.
MiddlewareFn = Callable[..., Any]

# Called as ``handler(input=..., ctx=...)``; returns the output directly, an
# awaitable, or a deferred computation.
HandlerFn = Callable[..., Any]


@dataclass(frozen=True)
class Procedure:
    """A built, immutable procedure: optional input schema, middleware chain, handler."""

    input: Any
    middlewares: tuple[MiddlewareFn, ...]
    handler: HandlerFn


Router = Mapping[str, Procedure]
