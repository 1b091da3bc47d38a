"""Small helpers for working with sequences and mappings."""

from __future__ import annotations

import functools
from collections.abc import Callable, Hashable, Iterable, Mapping, MutableSequence
from typing import Any, TypeVar

T = TypeVar("T")
R = TypeVar("R")
K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def for_each(items: Iterable[T], fn: Callable[[T], Any]) -> None:
    """Call ``fn`` on every item, in order."""
    for item in items:
        fn(item)


def filter_items(items: Iterable[T], *filters: Callable[[T], bool]) -> Iterable[T] | list[T]:
    """Keep the items accepted by every filter.

    With no filters the input is handed back unchanged. Filters are applied
    in order and stop at the first one that rejects an item.
    """
    if not filters:
        return items
    return [item for item in items if all(accept(item) for accept in filters)]


def from_map_values(mapping: Mapping[K, V]) -> list[V]:
    """Return the values of a mapping as a list."""
    return list(mapping.values())


def from_map_keys(mapping: Mapping[K, V]) -> list[K]:
    """Return the keys of a mapping as a list."""
    return list(mapping.keys())


def make_map_keys(items: Iterable[V], get_key: Callable[[V], K]) -> dict[K, V]:
    """Index items by the key ``get_key`` gives; later items replace earlier ones."""
    return {get_key(item): item for item in items}


def iter_n(num: int, fn: Callable[[int], T]) -> list[T]:
    """Return ``[fn(0), ..., fn(num - 1)]``; ``num`` must be positive."""
    if num <= 0:
        raise ValueError("num must be a positive integer")
    return [fn(index) for index in range(num)]


def iter_map_n(num: int, fn: Callable[[int], tuple[K, V]]) -> dict[K, V]:
    """Build a mapping from the ``(key, value)`` pairs ``fn(0..num-1)`` returns.

    ``num`` must be positive and every key must be produced only once.
    """
    if num <= 0:
        raise ValueError("num must be a positive integer")
    result: dict[K, V] = {}
    for index in range(num):
        key, value = fn(index)
        if key in result:
            raise ValueError(f"key {key} was already calculated")
        result[key] = value
    return result


def map_items(items: Iterable[T], fn: Callable[[T], R]) -> list[R]:
    """Apply ``fn`` to every item and collect the results in order."""
    return [fn(item) for item in items]


def reduce_items(items: Iterable[V], reducer: Callable[[R, V], R], initial: R) -> R:
    """Fold the items from the left, starting from ``initial``."""
    return functools.reduce(reducer, items, initial)


def reverse_in_place(items: MutableSequence[Any]) -> None:
    """Reverse a mutable sequence in place."""
    items.reverse()