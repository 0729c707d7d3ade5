"""Ordering helpers for next / previous navigation.

Works on anything with an ``order_index``. Lock state is never consulted.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from typing import Protocol, TypeVar


class _Ordered(Protocol):
    order_index: int


T = TypeVar("T", bound=_Ordered)


class Direction(str, enum.Enum):
    NEXT = "next"
    PREVIOUS = "previous"


def adjacent(items: Sequence[T], pivot_order: int, direction: Direction) -> T | None:
    """Nearest item strictly after (NEXT) or before (PREVIOUS) ``pivot_order``."""
    if direction is Direction.NEXT:
        later = [item for item in items if item.order_index > pivot_order]
        return min(later, key=lambda item: item.order_index, default=None)
    earlier = [item for item in items if item.order_index < pivot_order]
    return max(earlier, key=lambda item: item.order_index, default=None)


def boundary(items: Sequence[T], direction: Direction) -> T | None:
    """Entry point when crossing into a module: first lesson going forward, last going back."""
    if direction is Direction.NEXT:
        return min(items, key=lambda item: item.order_index, default=None)
    return max(items, key=lambda item: item.order_index, default=None)
