"""Procedure builder, router table and middleware composition."""

from .builder import ProcedureBuilder, create_router, procedure
from .middleware import (
    compose_middleware,
    create_context_middleware,
    merge_context,
    run_middleware,
)
from .types import HandlerFn, MiddlewareFn, Procedure, Router

__all__ = [
    "HandlerFn",
    "MiddlewareFn",
    "Procedure",
    "ProcedureBuilder",
    "Router",
    "compose_middleware",
    "create_context_middleware",
    "create_router",
    "merge_context",
    "procedure",
    "run_middleware",
]
