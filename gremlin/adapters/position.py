"""Fractional positions for ordered children.

Positions are floats so an item can be placed between two neighbours without
renumbering the list; ``rebalance_positions`` restores whole numbers when the
gaps get too small.
"""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence, TypeVar


class _Positioned(Protocol):
    position: float


P = TypeVar("P", bound=_Positioned)


def get_position_between(before: float | None, after: float | None) -> float:
    """Return a position strictly between ``before`` and ``after``.

    ``None`` means "no neighbour on that side": ``(None, 1.0) -> 0.5``,
    ``(2.0, None) -> 3.0``, ``(None, None) -> 1.0``.
    """
    if before is None and after is None:
        return 1.0
    if before is None:
        return after / 2
    if after is None:
        return before + 1.0
    return (before + after) / 2


def get_position_at_end(positions: Iterable[float]) -> float:
    positions = list(positions)
    return max(positions) + 1.0 if positions else 1.0


def get_position_at_start(positions: Iterable[float]) -> float:
    positions = list(positions)
    return min(positions) / 2 if positions else 1.0


def rebalance_positions(items: Sequence[P]) -> list[P]:
    """Return ``items`` sorted by position and renumbered 1.0, 2.0, ...

    Items must be pydantic models; the originals are not modified.
    """
    ordered = sorted(items, key=lambda item: item.position)
    return [
        item.model_copy(update={"position": float(index)})
        for index, item in enumerate(ordered, start=1)
    ]
