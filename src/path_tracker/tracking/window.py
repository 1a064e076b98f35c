"""RollingWindow — fixed-capacity "last N samples" buffer."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class RollingWindow(Generic[T]):
    """Keeps the most recent *capacity* items; appending past capacity evicts the oldest.

    Backs both the accuracy history used for calibration/usability and the
    recent-location window used for stationary detection.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._items: deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen  # type: ignore[return-value]

    def append(self, item: T) -> None:
        self._items.append(item)

    def clear(self) -> None:
        self._items.clear()

    def is_full(self) -> bool:
        return len(self._items) == self.capacity

    def latest(self) -> T | None:
        """Most recently appended item, or None when empty."""
        return self._items[-1] if self._items else None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"RollingWindow(capacity={self.capacity}, items={list(self._items)!r})"
