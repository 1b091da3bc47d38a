"""Merging several producers into one stream."""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterable, Iterator
from typing import TypeVar

T = TypeVar("T")

_ITEM = 0
_DONE = 1
_ERROR = 2


def fan_in(*sources: Iterable[T]) -> Iterator[T]:
    """Merge the items of several iterables into one iterator.

    Every source is drained on its own thread as soon as this is called, so
    items arrive in whatever order the sources produce them. The returned
    iterator ends once every source is exhausted; an exception raised by a
    source is raised again from the iterator.
    """
    out: queue.Queue[tuple[int, object]] = queue.Queue(maxsize=1)

    def pump(source: Iterable[T]) -> None:
        try:
            for item in source:
                out.put((_ITEM, item))
        except BaseException as exc:  # handed to the consumer
            out.put((_ERROR, exc))
            return
        out.put((_DONE, None))

    for source in sources:
        threading.Thread(target=pump, args=(source,), daemon=True).start()

    def merged() -> Iterator[T]:
        remaining = len(sources)
        while remaining:
            kind, payload = out.get()
            if kind == _ITEM:
                yield payload  # type: ignore[misc]
            elif kind == _DONE:
                remaining -= 1
            else:
                raise payload  # type: ignore[misc]

    return merged()