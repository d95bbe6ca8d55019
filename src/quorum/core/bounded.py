"""Append-only log with a hard length bound.

When an append would exceed ``limit``, the log first drops everything but
the newest ``truncate_to`` entries and then appends. With the defaults the
101st append therefore leaves 51 entries, never 100.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")


class BoundedLog(Generic[T]):
    """Truncate-then-append list."""

    def __init__(self, limit: int = 100, truncate_to: int = 50) -> None:
        if limit < 1:
            msg = f"limit must be positive, got {limit}"
            raise ValueError(msg)
        if not 0 <= truncate_to < limit:
            msg = f"truncate_to must be in [0, {limit}), got {truncate_to}"
            raise ValueError(msg)
        self._limit = limit
        self._truncate_to = truncate_to
        self._items: list[T] = []

    @property
    def limit(self) -> int:
        return self._limit

    def append(self, item: T) -> None:
        if len(self._items) >= self._limit:
            keep = self._truncate_to
            self._items = self._items[-keep:] if keep else []
        self._items.append(item)

    def snapshot(self) -> tuple[T, ...]:
        """Immutable copy, oldest first."""
        return tuple(self._items)

    def recent(self, count: int) -> tuple[T, ...]:
        """The newest *count* entries, oldest first."""
        if count <= 0:
            return ()
        return tuple(self._items[-count:])

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(tuple(self._items))
