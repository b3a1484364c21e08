"""Content persistence contract and the in-memory implementation."""

from .interface import ContentResourceAdapter
from .memory import InMemoryContentResourceAdapter
from .position import (
    get_position_at_end,
    get_position_at_start,
    get_position_between,
    rebalance_positions,
)

__all__ = [
    "ContentResourceAdapter",
    "InMemoryContentResourceAdapter",
    "get_position_at_end",
    "get_position_at_start",
    "get_position_between",
    "rebalance_positions",
]
