"""Snapshot sequences whose ordering is part of their type.

Data-store reads come back either newest-first (range queries) or oldest-first
(full history). Wrapping them in :class:`RecencySeries` or
:class:`ChronologicalSeries` at the provider boundary means every consumer asks
for the order it needs instead of relying on caller convention.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union, overload

from opinion_monitor.events.models import EventStatisticsSnapshot


class SnapshotSeries(Sequence[EventStatisticsSnapshot]):
    newest_first: bool = True

    def __init__(self, snapshots: Iterable[EventStatisticsSnapshot] = ()) -> None:
        items = tuple(snapshots)
        self._check_order(items)
        self._items: Tuple[EventStatisticsSnapshot, ...] = items

    @classmethod
    def _trusted(cls, items: Tuple[EventStatisticsSnapshot, ...]):
        series = cls.__new__(cls)
        series._items = items
        return series

    @classmethod
    def from_unordered(cls, snapshots: Iterable[EventStatisticsSnapshot]):
        items = sorted(snapshots, key=lambda snap: snap.snapshot_at, reverse=cls.newest_first)
        return cls(items)

    def _check_order(self, items: Tuple[EventStatisticsSnapshot, ...]) -> None:
        for earlier, later in zip(items, items[1:]):
            if earlier.snapshot_at == later.snapshot_at:
                raise ValueError(f"duplicate snapshot_at {later.snapshot_at.isoformat()} for {later.event_id}")
            if (earlier.snapshot_at < later.snapshot_at) == self.newest_first:
                order = "newest-first" if self.newest_first else "oldest-first"
                raise ValueError(f"{type(self).__name__} requires {order} snapshots")

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[EventStatisticsSnapshot]:
        return iter(self._items)

    @overload
    def __getitem__(self, index: int) -> EventStatisticsSnapshot: ...

    @overload
    def __getitem__(self, index: slice) -> "SnapshotSeries": ...

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            if index.step not in (None, 1):
                raise ValueError("snapshot series slices must be contiguous")
            return self._trusted(self._items[index])
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SnapshotSeries):
            return NotImplemented
        return self.newest_first == other.newest_first and self._items == other._items

    def __repr__(self) -> str:
        return f"{type(self).__name__}(len={len(self._items)})"

    def recency(self) -> "RecencySeries":
        raise NotImplementedError

    def chronological(self) -> "ChronologicalSeries":
        raise NotImplementedError


class RecencySeries(SnapshotSeries):
    """Newest snapshot at index 0."""

    newest_first = True

    @property
    def latest(self) -> Optional[EventStatisticsSnapshot]:
        return self._items[0] if self._items else None

    @property
    def oldest(self) -> Optional[EventStatisticsSnapshot]:
        return self._items[-1] if self._items else None

    def recency(self) -> "RecencySeries":
        return self

    def chronological(self) -> "ChronologicalSeries":
        return ChronologicalSeries._trusted(self._items[::-1])


class ChronologicalSeries(SnapshotSeries):
    """Oldest snapshot at index 0."""

    newest_first = False

    @property
    def latest(self) -> Optional[EventStatisticsSnapshot]:
        return self._items[-1] if self._items else None

    @property
    def oldest(self) -> Optional[EventStatisticsSnapshot]:
        return self._items[0] if self._items else None

    def recency(self) -> RecencySeries:
        return RecencySeries._trusted(self._items[::-1])

    def chronological(self) -> "ChronologicalSeries":
        return self


def as_recency(statistics: SnapshotSeries) -> RecencySeries:
    if not isinstance(statistics, SnapshotSeries):
        raise TypeError(f"expected a SnapshotSeries, got {type(statistics).__name__}")
    return statistics.recency()


def as_chronological(statistics: SnapshotSeries) -> ChronologicalSeries:
    if not isinstance(statistics, SnapshotSeries):
        raise TypeError(f"expected a SnapshotSeries, got {type(statistics).__name__}")
    return statistics.chronological()


__all__ = [
    "SnapshotSeries",
    "RecencySeries",
    "ChronologicalSeries",
    "as_recency",
    "as_chronological",
]
