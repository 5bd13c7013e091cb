"""Helpers for lists of integers."""

from __future__ import annotations

from typing import Iterable


def int_list_joins(values: Iterable[int], sep: str) -> str:
    """Join integers with a separator."""
    return sep.join(str(value) for value in values)


def int_list_intersect(l1: Iterable[int], l2: Iterable[int]) -> list[int]:
    """Sorted multiset intersection of two integer lists.

    A value that occurs several times in both lists appears as often as
    it does in the list holding fewer copies.
    """
    left = sorted(l1)
    right = sorted(l2)
    result: list[int] = []
    if not left or not right:
        return result
    i = j = 0
    while i < len(left) and j < len(right):
        a, b = left[i], right[j]
        if a < b:
            i += 1
        elif a > b:
            j += 1
        else:
            result.append(a)
            i += 1
            j += 1
    return result