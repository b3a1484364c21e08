"""Middleware composition and context merging.

Middleware run strictly one after another in registration order. Each step
is called with the validated input, its result is resolved (awaited, or run
if it is a deferred computation), and the returned fragment is shallow-merged
into the accumulated context. Later keys override earlier ones.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from gremlin.deferred import resolve_result
from gremlin.errors import ErrorCode, GremlinError

from .types import MiddlewareFn

logger = logging.getLogger(__name__)


def merge_context(current: dict[str, Any], fragment: Any) -> dict[str, Any]:
    """Shallow-merge one middleware fragment into ``current``, returning a new dict.

    ``None`` contributes nothing. Anything other than a mapping violates the
    middleware contract and raises an INTERNAL error.
    """
    if fragment is None:
        return current

    if not isinstance(fragment, Mapping):
        raise GremlinError(
            ErrorCode.INTERNAL,
            "Middleware must return an object context.",
            fragment,
        )

    return {**current, **fragment}


async def run_middleware(
    middlewares: Iterable[MiddlewareFn],
    input: Any,
    seed: Mapping[str, Any],
) -> dict[str, Any]:
    """Run ``middlewares`` in order and return the merged context."""
    context = dict(seed)
    for middleware in middlewares:
        fragment = await resolve_result(middleware(input=input))
        context = merge_context(context, fragment)
    return context


def compose_middleware(*middlewares: MiddlewareFn) -> MiddlewareFn:
    """Combine several middleware into one that runs them sequentially.

    The composed middleware returns the merged fragments of its parts, so
    ``procedure.use(compose_middleware(a, b))`` behaves like
    ``procedure.use(a).use(b)``.
    """

    async def composed(*, input: Any) -> dict[str, Any]:
        return await run_middleware(middlewares, input, {})

    return composed


def create_context_middleware(context_fn: Callable[[], Any]) -> MiddlewareFn:
    """Adapt a zero-argument context factory into middleware.

    Example::

        with_timestamp = create_context_middleware(lambda: {"timestamp": time.time()})
    """

    async def middleware(*, input: Any) -> Any:
        return await resolve_result(context_fn())

    return middleware
