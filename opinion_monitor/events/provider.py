"""Read-side contract over the event store, plus in-memory and JSON-file stores.

Raw access (``load_*``) is the only thing a store has to implement; the query
methods on :class:`DataProvider` compose those reads the same way for every
store and always hand snapshot histories back as ordered series.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from opinion_monitor.config import EVENTS_DIR
from opinion_monitor.errors import DataProviderError
from opinion_monitor.events.models import Event, EventStatisticsSnapshot, InfluenceRow, KeywordWeight, LocationRow
from opinion_monitor.events.series import ChronologicalSeries, RecencySeries
from opinion_monitor.schemas import EventRecord, PostRecord, SnapshotRecord
from opinion_monitor.storage import read_json, to_data_relative
from opinion_monitor.time_range import TimeWindow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_LIST_LIMIT = 20


def parse_records(model: Type[ModelT], raw: Any, *, source: str) -> List[ModelT]:
    """Validate a list of raw dicts, skipping (and logging) bad records."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise DataProviderError(f"{source}: expected a list of records")
    records: List[ModelT] = []
    for index, item in enumerate(raw):
        try:
            records.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping invalid record %s[%s]: %s", source, index, exc.errors()[:1])
    return records


def _dedupe_snapshots(snapshots: Iterable[EventStatisticsSnapshot]) -> List[EventStatisticsSnapshot]:
    by_time: Dict[datetime, EventStatisticsSnapshot] = {}
    for snap in snapshots:
        if snap.snapshot_at in by_time:
            logger.warning("Duplicate snapshot %s for event %s; keeping the later record", snap.snapshot_at, snap.event_id)
        by_time[snap.snapshot_at] = snap
    return list(by_time.values())


class DataProvider(ABC):
    @abstractmethod
    def load_events(self) -> List[Event]:
        ...

    @abstractmethod
    def load_statistics(self, event_id: str) -> List[EventStatisticsSnapshot]:
        """All snapshots of one event, in any order."""

    @abstractmethod
    def load_posts(self, event_id: str) -> List[PostRecord]:
        ...

    # -- events ---------------------------------------------------------

    def get_event_by_id(self, event_id: str) -> Optional[Event]:
        for event in self.load_events():
            if event.id == event_id:
                return event
        return None

    def get_event_list(
        self,
        window: Optional[TimeWindow],
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Event]:
        """Active events occurring inside ``window`` (None = all time), hottest first."""
        needle = (search or "").lower()
        matches = []
        for event in self._active_in(window):
            if category and event.category != category:
                continue
            if needle and needle not in event.title.lower() and needle not in event.description.lower():
                continue
            matches.append(event)
        matches.sort(key=lambda ev: (ev.hotness, ev.started_at), reverse=True)
        return matches[: limit if limit and limit > 0 else DEFAULT_LIST_LIMIT]

    def get_hot_events(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Event]:
        active = [event for event in self.load_events() if event.status == "active"]
        active.sort(key=lambda ev: (ev.hotness, ev.created_at), reverse=True)
        return active[:limit]

    def get_category_counts(self, window: Optional[TimeWindow]) -> List[Tuple[Optional[str], int]]:
        counts: Dict[Optional[str], int] = defaultdict(int)
        for event in self._active_in(window):
            counts[event.category] += 1
        return sorted(counts.items(), key=lambda item: (-item[1], item[0] or ""))

    def _active_in(self, window: Optional[TimeWindow]) -> List[Event]:
        return [
            event
            for event in self.load_events()
            if event.status == "active" and (window is None or window.contains(event.started_at))
        ]

    # -- statistics -----------------------------------------------------

    def get_latest_statistics(self, event_id: str) -> Optional[EventStatisticsSnapshot]:
        return self.get_all_statistics(event_id).latest

    def get_all_statistics(self, event_id: str) -> ChronologicalSeries:
        return ChronologicalSeries.from_unordered(_dedupe_snapshots(self.load_statistics(event_id)))

    def get_statistics_in_range(
        self,
        event_id: str,
        start: datetime,
        end: datetime,
        *,
        limit: Optional[int] = None,
    ) -> RecencySeries:
        in_range = [snap for snap in self.load_statistics(event_id) if start <= snap.snapshot_at <= end]
        series = RecencySeries.from_unordered(_dedupe_snapshots(in_range))
        return series[:limit] if limit else series

    def get_statistics_between(self, start: datetime, end: datetime) -> List[EventStatisticsSnapshot]:
        """Snapshots of every event inside the window, oldest first."""
        collected: List[EventStatisticsSnapshot] = []
        for event in self.load_events():
            collected.extend(snap for snap in self.load_statistics(event.id) if start <= snap.snapshot_at <= end)
        collected.sort(key=lambda snap: (snap.snapshot_at, snap.event_id))
        return collected

    # -- post aggregates ------------------------------------------------

    def _analyzed_posts(self, event_id: str) -> List[PostRecord]:
        return [post for post in self.load_posts(event_id) if post.nlp is not None and post.deleted_at is None]

    def get_influence_rows(self, event_id: str, limit: int = 10) -> List[InfluenceRow]:
        grouped: Dict[Tuple[str, Optional[str], int], List[int]] = {}
        for post in self._analyzed_posts(event_id):
            user = post.user
            totals = grouped.setdefault((user.id, user.screen_name, user.followers_count), [0, 0])
            totals[0] += 1
            totals[1] += post.interactions
        rows = [
            InfluenceRow(user_id=uid, name=name, followers=followers, post_count=count, interactions=interactions)
            for (uid, name, followers), (count, interactions) in grouped.items()
        ]
        rows.sort(key=lambda row: row.interactions, reverse=True)
        return rows[:limit]

    def get_location_rows(self, event_id: str) -> List[LocationRow]:
        users: Dict[Optional[str], set] = defaultdict(set)
        posts: Dict[Optional[str], int] = defaultdict(int)
        sentiments: Dict[Optional[str], List[float]] = defaultdict(list)
        for post in self._analyzed_posts(event_id):
            location = post.location
            users[location].add(post.user.id)
            posts[location] += 1
            if post.nlp and post.nlp.sentiment is not None:
                sentiments[location].append(post.nlp.sentiment.positive_prob - post.nlp.sentiment.negative_prob)
        rows = []
        for location, user_ids in users.items():
            scores = sentiments.get(location) or []
            rows.append(
                LocationRow(
                    location=location,
                    user_count=len(user_ids),
                    post_count=posts[location],
                    avg_sentiment=sum(scores) / len(scores) if scores else None,
                )
            )
        rows.sort(key=lambda row: row.user_count, reverse=True)
        return rows

    def get_keyword_mentions(self, event_id: str) -> List[KeywordWeight]:
        """Every keyword hit across the event's NLP results, in storage order."""
        mentions: List[KeywordWeight] = []
        for post in self.load_posts(event_id):
            if post.nlp is None:
                continue
            for kw in post.nlp.keywords:
                mentions.append(KeywordWeight(keyword=kw.keyword, weight=kw.weight, sentiment=kw.sentiment or "neutral"))
        return mentions


class InMemoryDataProvider(DataProvider):
    """Store backed by plain Python collections; mainly for tests and demos."""

    def __init__(
        self,
        events: Sequence[Event] = (),
        statistics: Optional[Mapping[str, Sequence[EventStatisticsSnapshot]]] = None,
        posts: Optional[Mapping[str, Sequence[Any]]] = None,
    ) -> None:
        self._events = list(events)
        self._statistics = {key: list(value) for key, value in (statistics or {}).items()}
        self._posts: Dict[str, List[PostRecord]] = {
            key: [item if isinstance(item, PostRecord) else PostRecord.model_validate(item) for item in value]
            for key, value in (posts or {}).items()
        }

    def load_events(self) -> List[Event]:
        return list(self._events)

    def load_statistics(self, event_id: str) -> List[EventStatisticsSnapshot]:
        return list(self._statistics.get(event_id, ()))

    def load_posts(self, event_id: str) -> List[PostRecord]:
        return list(self._posts.get(event_id, ()))


class JsonFileDataProvider(DataProvider):
    """Store laid out under ``<root>/events.json``, ``statistics/<id>.json``, ``posts/<id>.json``."""

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = root or EVENTS_DIR

    @staticmethod
    def _file_name(event_id: str) -> Optional[str]:
        if not event_id or any(part in event_id for part in ("/", "\\", "..")):
            return None
        return f"{event_id}.json"

    def _read(self, path: Path) -> Any:
        try:
            return read_json(path, default=None)
        except (OSError, ValueError) as exc:
            raise DataProviderError(f"failed to read {to_data_relative(path)}") from exc

    def load_events(self) -> List[Event]:
        path = self.root / "events.json"
        records = parse_records(EventRecord, self._read(path), source=path.name)
        return [record.to_model() for record in records]

    def load_statistics(self, event_id: str) -> List[EventStatisticsSnapshot]:
        name = self._file_name(event_id)
        if name is None:
            return []
        path = self.root / "statistics" / name
        records = parse_records(SnapshotRecord, self._read(path), source=f"statistics/{path.name}")
        return [record.to_model() for record in records if record.event_id == event_id]

    def load_posts(self, event_id: str) -> List[PostRecord]:
        name = self._file_name(event_id)
        if name is None:
            return []
        path = self.root / "posts" / name
        return parse_records(PostRecord, self._read(path), source=f"posts/{path.name}")


__all__ = [
    "DataProvider",
    "InMemoryDataProvider",
    "JsonFileDataProvider",
    "parse_records",
]
