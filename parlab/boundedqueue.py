"""A blocking first-in first-out queue with a fixed capacity."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, TypeVar

T = TypeVar("T")


class BoundedQueue(Generic[T]):
    """Thread-safe FIFO: push blocks while full, pop blocks while empty."""

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError("queue capacity must be at least 1")
        self.size = size
        self._items: Deque[T] = deque()
        self._changed = threading.Condition()

    def push(self, item: T) -> None:
        """Append an item, waiting until there is room for it."""
        with self._changed:
            self._changed.wait_for(lambda: len(self._items) < self.size)
            self._items.append(item)
            self._changed.notify_all()

    def pop(self) -> T:
        """Remove and return the oldest item, waiting until there is one."""
        with self._changed:
            self._changed.wait_for(lambda: len(self._items) > 0)
            item = self._items.popleft()
            self._changed.notify_all()
            return item

    def __len__(self) -> int:
        with self._changed:
            return len(self._items)