"""Trend series, per-event time series, trend scores and propagation paths."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Set

from opinion_monitor import time_range
from opinion_monitor.cache import CacheKeys, CacheService, CacheTTL
from opinion_monitor.events.constants import (
    HOTNESS_WEIGHTS,
    PROPAGATION_BASE_MULTIPLIER,
    PROPAGATION_USER_TYPES,
    TREND_THRESHOLD,
    TrendThreshold,
)
from opinion_monitor.events.models import (
    ChartData,
    ChartSeries,
    Event,
    EventStatisticsSnapshot,
    PropagationPathEntry,
    TrendAnalysis,
    round_half_up,
)
from opinion_monitor.events.provider import DataProvider
from opinion_monitor.events.series import SnapshotSeries, as_chronological, as_recency

logger = logging.getLogger(__name__)


def classify_trend(delta: float, threshold: TrendThreshold = TREND_THRESHOLD) -> str:
    if delta > threshold.up:
        return "up"
    if delta < threshold.down:
        return "down"
    return "stable"


def trend_of(statistics: SnapshotSeries) -> str:
    """Trend between the two most recent samples."""
    recent = as_recency(statistics)
    if len(recent) < 2:
        return "stable"
    return classify_trend(recent[0].hotness - recent[1].hotness)


def sentiment_score(snapshot: EventStatisticsSnapshot) -> int:
    """Map positive-minus-negative in [-1, 1] onto [0, 100]."""
    return round_half_up((snapshot.positive - snapshot.negative) * 50 + 50)


def blended_hotness(posts: int, users: int) -> int:
    return round_half_up(posts * HOTNESS_WEIGHTS.posts + users * HOTNESS_WEIGHTS.users)


@dataclass
class _Bucket:
    events: Set[str] = field(default_factory=set)
    posts: int = 0
    users: int = 0
    hotness: List[float] = field(default_factory=list)


def build_trend_data(snapshots: Sequence[EventStatisticsSnapshot], unit: str) -> ChartData:
    """Bucket snapshots of many events by ``unit``; oldest bucket first."""
    buckets: Dict[datetime, _Bucket] = {}
    for snap in snapshots:
        bucket = buckets.setdefault(time_range.truncate(snap.snapshot_at, unit), _Bucket())
        bucket.events.add(snap.event_id)
        bucket.posts += snap.post_count
        bucket.users += snap.user_count
        bucket.hotness.append(snap.hotness)

    ordered = [(key, buckets[key]) for key in sorted(buckets)]
    return ChartData(
        categories=[time_range.format_label(key, unit) for key, _ in ordered],
        series=[
            ChartSeries("事件数量", [len(b.events) for _, b in ordered]),
            ChartSeries("贴子数量", [b.posts for _, b in ordered]),
            ChartSeries("参与用户", [b.users for _, b in ordered]),
            ChartSeries("热度指数", [round_half_up(sum(b.hotness) / len(b.hotness)) for _, b in ordered]),
        ],
    )


def build_time_series(statistics: SnapshotSeries, unit: str) -> ChartData:
    """Five aligned per-snapshot series, oldest first."""
    ordered = as_chronological(statistics)
    return ChartData(
        categories=[time_range.format_label(snap.snapshot_at, unit) for snap in ordered],
        series=[
            ChartSeries("帖子数量", [snap.post_count for snap in ordered]),
            ChartSeries("用户参与", [snap.user_count for snap in ordered]),
            ChartSeries("正面情绪", [snap.positive for snap in ordered]),
            ChartSeries("负面情绪", [snap.negative for snap in ordered]),
            ChartSeries("中性情绪", [snap.neutral for snap in ordered]),
        ],
    )


def build_trend_analysis(statistics: SnapshotSeries, unit: str) -> TrendAnalysis:
    ordered = as_chronological(statistics)
    posts = [snap.post_count for snap in ordered]
    users = [snap.user_count for snap in ordered]
    return TrendAnalysis(
        timeline=[time_range.format_label(snap.snapshot_at, unit) for snap in ordered],
        post_volume=posts,
        sentiment_scores=[sentiment_score(snap) for snap in ordered],
        user_engagement=users,
        hotness_data=[blended_hotness(p, u) for p, u in zip(posts, users)],
    )


def build_propagation_path(event: Event) -> List[PropagationPathEntry]:
    """Deterministic split of an event's audience across the fixed user tiers."""
    base = event.hotness * PROPAGATION_BASE_MULTIPLIER
    return [
        PropagationPathEntry(
            user_type=tier.label,
            # round away float noise such as 0.35 * 100 = 34.99999...
            user_count=math.floor(round(base * tier.user_ratio, 6)),
            post_count=math.floor(round(base * tier.post_ratio, 6)),
            influence=tier.influence,
        )
        for tier in PROPAGATION_USER_TYPES
    ]


class EventAnalyticsService:
    """Cache-wrapped entry points over the pure builders above."""

    def __init__(
        self,
        cache: CacheService,
        provider: DataProvider,
        *,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.cache = cache
        self.provider = provider
        self._now = now or time_range.local_now

    def get_trend_data(self, range_token: str) -> dict:
        window = time_range.resolve(range_token, now=self._now())
        unit = time_range.granularity(range_token)
        key = CacheService.build_key(CacheKeys.TREND, range_token)

        def _compute() -> dict:
            snapshots = self.provider.get_statistics_between(window.start, window.end)
            logger.debug("Trend data %s: %d snapshots bucketed by %s", range_token, len(snapshots), unit)
            return build_trend_data(snapshots, unit).to_dict()

        return self.cache.get_or_set(key, _compute, CacheTTL.MEDIUM)

    def get_event_time_series(self, event_id: str, range_token: str, statistics: SnapshotSeries) -> dict:
        unit = time_range.granularity(range_token)
        key = CacheService.build_key(CacheKeys.TIME_SERIES, event_id, range_token)
        return self.cache.get_or_set(key, lambda: build_time_series(statistics, unit).to_dict(), CacheTTL.SHORT)

    def get_event_trends(self, event_id: str, range_token: str, statistics: SnapshotSeries) -> dict:
        unit = time_range.granularity(range_token)
        key = CacheService.build_key(CacheKeys.TRENDS, event_id, range_token)
        return self.cache.get_or_set(key, lambda: build_trend_analysis(statistics, unit).to_dict(), CacheTTL.MEDIUM)

    def build_propagation_path(self, event: Event) -> List[PropagationPathEntry]:
        return build_propagation_path(event)


__all__ = [
    "round_half_up",
    "classify_trend",
    "trend_of",
    "sentiment_score",
    "blended_hotness",
    "build_trend_data",
    "build_time_series",
    "build_trend_analysis",
    "build_propagation_path",
    "EventAnalyticsService",
]
