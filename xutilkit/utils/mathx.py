"""Small numeric helpers."""

from __future__ import annotations

import math
from typing import Iterable, TypeVar

T = TypeVar("T")

_INT32_SPAN = 1 << 32
_INT32_MIN = -(1 << 31)


def max_of(*args: T) -> T:
    """Largest argument; raises ValueError when called with none."""
    if not args:
        raise ValueError("max_of() needs at least one value")
    return max(args)


def min_of(*args: T) -> T:
    """Smallest argument; raises ValueError when called with none."""
    if not args:
        raise ValueError("min_of() needs at least one value")
    return min(args)


def b2i(value: bool) -> int:
    """1 for a true value, 0 otherwise."""
    return int(bool(value))


def round_int(x: float) -> int:
    """Round half up."""
    return int(math.floor(x + 0.5))


def _trunc_div(n: int, m: int) -> int:
    quotient = abs(n) // abs(m)
    return -quotient if (n < 0) != (m < 0) else quotient


def ceil_mode(n: int, m: int) -> int:
    """Integer division rounded up when the truncated product falls short of n."""
    value = _trunc_div(n, m)
    if value * m < n:
        return value + 1
    return value


def iif(condition: bool, n: T, m: T) -> T:
    """n if condition holds, else m."""
    return n if condition else m


def int_range(start: int, end: int) -> list[int]:
    """Integers from start to end inclusive."""
    if end < start - 1:
        raise ValueError(f"invalid range: end {end} before start {start}")
    return list(range(start, end + 1))


def in_array(value: T, values: Iterable[T]) -> bool:
    return any(item == value for item in values)


def _to_int32(value: int) -> int:
    return (value - _INT32_MIN) % _INT32_SPAN + _INT32_MIN


def to_int32_list(values: Iterable[int]) -> list[int]:
    """Convert each integer to a signed 32-bit value, wrapping on overflow."""
    return [_to_int32(int(value)) for value in values]