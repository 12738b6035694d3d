"""Fixed-capacity FIFO container used for the log buffer and latency window."""

import collections
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """Bounded FIFO that evicts its oldest item on overflow.

    Unlike ``deque(maxlen=...)`` the evicted item is handed back to the
    caller, so anything mirroring the buffer can stay consistent with it.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._items: collections.deque[T] = collections.deque()

    def push(self, item: T) -> T | None:
        """Append ``item``; return the evicted head if capacity was exceeded."""
        self._items.append(item)
        if len(self._items) > self._capacity:
            return self._items.popleft()
        return None

    def to_list(self) -> list[T]:
        """Current contents, oldest first."""
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)
