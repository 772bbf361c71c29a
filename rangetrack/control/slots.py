"""Stable-index slot registry for live tracked devices.

An arena with a FIFO free list: a freed index is handed out again only after
every index freed before it, and the backing list never shrinks.

Not thread-safe; callers serialize access onto one update thread.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

_FREE = object()


class SlotOutOfRangeError(IndexError):
    """Index was never allocated (negative or >= size)."""


class SlotRegistry(Generic[T]):
    def __init__(self) -> None:
        self._slots: list = []
        self._freed: deque[int] = deque()

    @property
    def size(self) -> int:
        """Length of the backing store (occupied + freed)."""
        return len(self._slots)

    def __len__(self) -> int:
        return len(self._slots) - len(self._freed)

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self._slots):
            raise SlotOutOfRangeError(
                f"invalid slot index {index} (size={len(self._slots)})"
            )

    def allocate(self, payload: T) -> int:
        if self._freed:
            index = self._freed.popleft()
            self._slots[index] = payload
            return index
        self._slots.append(payload)
        return len(self._slots) - 1

    def free(self, index: int) -> None:
        self._check_index(index)
        if self._slots[index] is _FREE:
            return
        self._slots[index] = _FREE
        self._freed.append(index)

    def get(self, index: int) -> Optional[T]:
        self._check_index(index)
        item = self._slots[index]
        return None if item is _FREE else item

    def __iter__(self) -> Iterator[tuple[int, T]]:
        for index, item in enumerate(self._slots):
            if item is not _FREE:
                yield index, item

    def __contains__(self, payload: object) -> bool:
        return self.find_index(lambda item: item == payload) is not None

    def find(self, predicate: Callable[[T], bool]) -> Optional[T]:
        for _, item in self:
            if predicate(item):
                return item
        return None

    def find_index(self, predicate: Callable[[T], bool]) -> Optional[int]:
        for index, item in self:
            if predicate(item):
                return index
        return None

    def remove(self, payload: T) -> int:
        """Free every occupied slot equal to payload; return how many."""
        return self.remove_where(lambda item: item == payload)

    def remove_where(self, predicate: Callable[[T], bool]) -> int:
        matches = [index for index, item in self if predicate(item)]
        for index in matches:
            self.free(index)
        return len(matches)

    def clear(self) -> None:
        self._slots.clear()
        self._freed.clear()
