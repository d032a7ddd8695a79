"""Composite comparators over sort keys.

Null values sort as if larger than any non-null value, so they come last in ascending
order and first in descending order. Every in-process sort (preloaded result sets, the
memory executor, the page locator) goes through these functions so they agree on ordering.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import Any, Callable, Iterable, Sequence

from folio.core.sort import SortKey


def get_value(item: Any, key: str) -> Any:
    """Project `key` out of a mapping or an attribute-bearing object"""
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def compare_values(left: Any, right: Any) -> int:
    """Natural ordering with nulls high"""
    if left is None and right is None:
        return 0
    if left is None:
        return 1
    if right is None:
        return -1
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def compare_keys(left: Sequence, right: Sequence, directions: Sequence[bool]) -> int:
    """Compare two key tuples, position by position, honoring each position's direction"""
    for left_value, right_value, ascending in zip(left, right, directions):
        result = compare_values(left_value, right_value)
        if result:
            return result if ascending else -result
    return 0


def key_tuple(item: Any, sort: Iterable[SortKey]) -> tuple:
    """Project the values of all sort keys out of `item`"""
    return tuple(get_value(item, sort_key.key) for sort_key in sort)


def comparator(sort: Sequence[SortKey]) -> Callable[[Any, Any], int]:
    """Return a comparison function ordering objects by `sort`"""
    directions = [sort_key.ascending for sort_key in sort]

    def compare(left, right) -> int:
        return compare_keys(key_tuple(left, sort), key_tuple(right, sort), directions)

    return compare


def sort_items(items: Iterable[Any], sort: Sequence[SortKey]) -> list:
    """Return a new list with `items` ordered by `sort`"""
    items = list(items)
    if not sort:
        return items
    return sorted(items, key=cmp_to_key(comparator(sort)))
