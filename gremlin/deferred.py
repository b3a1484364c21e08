"""Deferred computations and uniform result resolution.

Handlers and middleware may return a plain value, an awaitable, or a
deferred-computation wrapper (an "effect"). ``resolve_result`` turns all
three into a concrete value. Effect detection goes through a pluggable
``EffectRuntime``; with no runtime registered the effect case is never
matched and values fall through to awaitable/plain handling.

The built-in wrapper is ``Deferred``::

    Deferred.succeed(1).map(lambda v: v + 1)      # runs to 2
    Deferred.suspend(fetch_user)                   # fetch_user() called on run
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class Deferred:
    """A lazily-run, possibly-failing computation.

    Nothing executes until ``run()`` is awaited; running twice executes the
    wrapped callable twice.
    """

    __slots__ = ("_thunk",)

    def __init__(self, thunk: Callable[[], Any]) -> None:
        if not callable(thunk):
            raise TypeError("Deferred requires a zero-argument callable")
        self._thunk = thunk

    @classmethod
    def succeed(cls, value: Any) -> Deferred:
        return cls(lambda: value)

    @classmethod
    def fail(cls, error: BaseException) -> Deferred:
        def _raise() -> Any:
            raise error

        return cls(_raise)

    @classmethod
    def suspend(cls, fn: Callable[[], Any]) -> Deferred:
        """Wrap a sync or async zero-argument callable."""
        return cls(fn)

    def map(self, fn: Callable[[Any], Any]) -> Deferred:
        async def _mapped() -> Any:
            return fn(await self.run())

        return Deferred(_mapped)

    def flat_map(self, fn: Callable[[Any], Deferred]) -> Deferred:
        async def _chained() -> Any:
            return await fn(await self.run()).run()

        return Deferred(_chained)

    async def run(self) -> Any:
        result = self._thunk()
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"Deferred({self._thunk!r})"


@runtime_checkable
class EffectRuntime(Protocol):
    """Detects and runs deferred computations of one effect library."""

    def is_effect(self, value: Any) -> bool: ...

    def run(self, effect: Any) -> Awaitable[Any]: ...


class DeferredRuntime:
    """``EffectRuntime`` for the built-in ``Deferred`` wrapper."""

    def is_effect(self, value: Any) -> bool:
        return isinstance(value, Deferred)

    async def run(self, effect: Deferred) -> Any:
        return await effect.run()


_effect_runtime: EffectRuntime | None = DeferredRuntime()


def get_effect_runtime() -> EffectRuntime | None:
    """Return the registered effect runtime, or ``None`` when effects are disabled."""
    return _effect_runtime


def set_effect_runtime(runtime: EffectRuntime | None) -> EffectRuntime | None:
    """Register the effect runtime used by ``resolve_result``.

    Returns:
        The previously registered runtime, so callers can restore it.
    """
    global _effect_runtime
    previous = _effect_runtime
    _effect_runtime = runtime
    logger.debug("Effect runtime set to %r", runtime)
    return previous


async def resolve_result(value: Any) -> Any:
    """Resolve a plain value, awaitable, or deferred computation to a concrete value."""
    runtime = _effect_runtime
    if runtime is not None and runtime.is_effect(value):
        return await runtime.run(value)

    if inspect.isawaitable(value):
        return await value

    return value
