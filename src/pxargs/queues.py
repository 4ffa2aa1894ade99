"""Bounded FIFO queue with an explicit close signal."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class QueueClosed(Exception):
    """Raised by ``get`` once the queue is closed and empty."""


class ClosableQueue(Generic[T]):
    """Thread-safe bounded queue that producers close when they are done.

    ``put`` blocks while the queue is full and ``get`` blocks while it is
    empty; closing the queue wakes every blocked caller. After ``close`` the
    remaining items can still be drained. ``close(discard=True)`` drops them,
    so consumers stop at once.
    """

    def __init__(self, maxsize: int) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        self.maxsize = maxsize
        self._items: deque[T] = deque()
        self._closed = False
        self._cond = threading.Condition()

    def put(self, item: T) -> bool:
        """Append ``item``, waiting for room. Return False if the queue closed."""

        with self._cond:
            while len(self._items) >= self.maxsize and not self._closed:
                self._cond.wait()
            if self._closed:
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    def get(self) -> T:
        """Remove and return the oldest item, waiting for one to arrive."""

        with self._cond:
            while not self._items and not self._closed:
                self._cond.wait()
            if not self._items:
                raise QueueClosed
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def close(self, *, discard: bool = False) -> int:
        """Stop accepting items; return how many pending items were dropped."""

        with self._cond:
            self._closed = True
            dropped = 0
            if discard:
                dropped = len(self._items)
                self._items.clear()
            self._cond.notify_all()
            return dropped

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except QueueClosed:
                return
