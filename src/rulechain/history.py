from __future__ import annotations

from bisect import bisect_left
from itertools import islice
from typing import Iterable, Iterator, List, Optional


class History:
    """
    Time-ordered store of call timestamps (integer milliseconds).

    - Holds both past calls and already-scheduled future calls.
    - Entries are non-decreasing; callers only append or truncate the prefix.
    - The seed is copied, so two stores never share a backing list.
    - Prefix truncation moves a head offset; the backing list is compacted once
      the dead prefix outgrows the live entries, so removal is amortized O(k).
    """

    def __init__(self, initial: Optional[Iterable[int]] = None) -> None:
        items: List[int] = list(initial or [])
        for prev, cur in zip(items, items[1:]):
            if cur < prev:
                raise ValueError("history must be sorted ascending")
        self._items = items
        self._head = 0

    def __len__(self) -> int:
        return len(self._items) - self._head

    def __getitem__(self, index: int) -> int:
        size = len(self)
        if index < 0:
            index += size
        if not 0 <= index < size:
            raise IndexError("history index out of range")
        return self._items[self._head + index]

    def __iter__(self) -> Iterator[int]:
        return islice(self._items, self._head, None)

    def __repr__(self) -> str:
        return f"History({self.snapshot()!r})"

    def last(self) -> Optional[int]:
        return self._items[-1] if len(self) else None

    def snapshot(self) -> List[int]:
        return self._items[self._head:]

    def insertion_rank(self, value: int) -> int:
        """Return the leftmost index where `value` could be inserted keeping order."""
        return bisect_left(self._items, value, lo=self._head) - self._head

    def append(self, timestamp: int) -> None:
        # Caller guarantees timestamp >= last(); delays are never negative offsets from now
        self._items.append(timestamp)

    def truncate_prefix(self, index: int) -> Optional[int]:
        """Drop every entry before `index`.

        Returns the oldest discarded timestamp, or None when nothing was removed.
        """
        removed = min(index, len(self))
        if removed <= 0:
            return None
        oldest = self._items[self._head]
        self._head += removed
        if self._head > len(self._items) - self._head:
            del self._items[: self._head]
            self._head = 0
        return oldest


__all__ = ["History"]
