"""Cache-wrapped reads: event lists, hot list, categories, keywords, influence, geography."""

from __future__ import annotations

import logging
import math
import random
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from opinion_monitor import time_range
from opinion_monitor.cache import CacheKeys, CacheService, CacheTTL
from opinion_monitor.config import OVERSEAS_PREFIXES, REGION_LIST
from opinion_monitor.events.analytics import trend_of
from opinion_monitor.events.constants import (
    ESTIMATED_SENTIMENT_MEAN,
    ESTIMATED_SENTIMENT_STDDEV,
    HOT_EVENT_LIMIT,
    HOT_EVENT_TREND_POINTS,
    INFLUENCE_WEIGHTS,
    LOCATION_PREFIX,
    MAX_GEOGRAPHIC_REGIONS,
    MAX_INFLUENCE_USERS,
    MAX_KEYWORDS,
    OVERSEAS_REGION,
    RECENT_STATISTICS_LIMIT,
    UNCATEGORIZED,
    UNKNOWN_REGION,
    UNKNOWN_USER,
)
from opinion_monitor.events.models import (
    ZERO_SENTIMENT,
    Event,
    EventCategoryStats,
    EventListItem,
    EventStatisticsSnapshot,
    GeographicDistribution,
    HotEvent,
    InfluenceRow,
    InfluenceUser,
    KeywordWeight,
    LocationRow,
    SentimentScore,
    round_half_up,
)
from opinion_monitor.events.provider import DataProvider
from opinion_monitor.events.series import ChronologicalSeries, RecencySeries

logger = logging.getLogger(__name__)


def influence_score(row: InfluenceRow) -> int:
    raw = (
        row.interactions * INFLUENCE_WEIGHTS.interaction
        + row.followers / 1000 * INFLUENCE_WEIGHTS.followers
        + row.post_count * INFLUENCE_WEIGHTS.post_count
    )
    return min(100, round_half_up(raw))


def rank_influence_users(rows: Sequence[InfluenceRow], limit: int = MAX_INFLUENCE_USERS) -> List[InfluenceUser]:
    ordered = sorted(rows, key=lambda row: row.interactions, reverse=True)[:limit]
    return [
        InfluenceUser(
            user_id=row.user_id or "",
            username=row.name or UNKNOWN_USER,
            influence=influence_score(row),
            post_count=row.post_count,
            followers=row.followers,
            interaction_count=row.interactions,
        )
        for row in ordered
    ]


def normalize_region(location: Optional[str], regions: Sequence[str] = REGION_LIST) -> str:
    """Fold free-form post locations onto the province list."""
    text = (location or "").strip()
    if text.startswith(LOCATION_PREFIX):
        text = text[len(LOCATION_PREFIX):].strip()
    if not text:
        return UNKNOWN_REGION
    if text.startswith(OVERSEAS_PREFIXES):
        return OVERSEAS_REGION
    for region in regions:
        if text.startswith(region):
            return region
    return text


def estimated_sentiment(rng: random.Random) -> float:
    return max(0.0, min(1.0, rng.gauss(ESTIMATED_SENTIMENT_MEAN, ESTIMATED_SENTIMENT_STDDEV)))


def build_geographic_distribution(
    rows: Sequence[LocationRow],
    *,
    rng: Optional[random.Random] = None,
    limit: int = MAX_GEOGRAPHIC_REGIONS,
) -> List[GeographicDistribution]:
    """Merge rows by normalized region and derive shares and sentiment.

    Regions without a real sentiment aggregate get a sampled value and
    ``is_estimated=True``.
    """
    rng = rng or random.Random()
    merged: Dict[str, Dict[str, float]] = {}
    for row in rows:
        region = normalize_region(row.location)
        entry = merged.setdefault(region, {"users": 0, "posts": 0, "weighted": 0.0, "weight": 0})
        entry["users"] += row.user_count
        entry["posts"] += row.post_count
        if row.avg_sentiment:
            entry["weighted"] += row.avg_sentiment * row.post_count
            entry["weight"] += row.post_count

    ranked = sorted(merged.items(), key=lambda item: (-item[1]["users"], item[0]))[:limit]
    total_users = sum(entry["users"] for _, entry in ranked)

    result: List[GeographicDistribution] = []
    for region, entry in ranked:
        users = int(entry["users"])
        average = entry["weighted"] / entry["weight"] if entry["weight"] else 0.0
        if average:
            sentiment, estimated = max(0.0, min(1.0, (average + 1) / 2)), False
        else:
            sentiment, estimated = estimated_sentiment(rng), True
        result.append(
            GeographicDistribution(
                region=region,
                count=users,
                # floor keeps the shares from summing past 100
                percentage=math.floor(users * 10000 / total_users) / 100 if total_users else 0.0,
                posts=int(entry["posts"]),
                sentiment=round(sentiment, 2),
                is_estimated=estimated,
            )
        )
    return result


def aggregate_keywords(mentions: Sequence[KeywordWeight], limit: int = MAX_KEYWORDS) -> List[KeywordWeight]:
    totals: Dict[str, KeywordWeight] = {}
    for mention in mentions:
        current = totals.get(mention.keyword)
        if current is None:
            totals[mention.keyword] = KeywordWeight(mention.keyword, mention.weight, mention.sentiment or "neutral")
        else:
            current.weight += mention.weight
    ranked = sorted(totals.values(), key=lambda kw: kw.weight, reverse=True)[:limit]
    return [KeywordWeight(kw.keyword, round(kw.weight, 2), kw.sentiment) for kw in ranked]


def headline_sentiment(event: Event, latest: Optional[EventStatisticsSnapshot]) -> SentimentScore:
    if latest is not None and latest.sentiment is not None:
        return latest.sentiment
    return event.sentiment or ZERO_SENTIMENT


class EventQueryService:
    def __init__(
        self,
        cache: CacheService,
        provider: DataProvider,
        *,
        now: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.cache = cache
        self.provider = provider
        self._now = now or time_range.local_now
        self._rng = rng or random.Random()

    def _window(self, range_token: str) -> Optional[time_range.TimeWindow]:
        window = time_range.resolve(range_token, now=self._now())
        return None if range_token == "all" else window

    # -- uncached pass-through -------------------------------------------

    def get_event_by_id(self, event_id: str) -> Optional[Event]:
        return self.provider.get_event_by_id(event_id)

    def get_latest_statistics(self, event_id: str) -> Optional[EventStatisticsSnapshot]:
        return self.provider.get_latest_statistics(event_id)

    def get_statistics(self, event_id: str, range_token: str, limit: int = RECENT_STATISTICS_LIMIT) -> RecencySeries:
        window = time_range.resolve(range_token, now=self._now())
        return self.provider.get_statistics_in_range(event_id, window.start, window.end, limit=limit)

    def get_all_statistics(self, event_id: str) -> ChronologicalSeries:
        return self.provider.get_all_statistics(event_id)

    # -- cached reads ----------------------------------------------------

    def get_event_list(
        self,
        range_token: str,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        window = time_range.resolve(range_token, now=self._now())
        key = CacheService.build_key(CacheKeys.EVENT_LIST, "list", range_token, category or "", search or "", limit or "")

        def _compute() -> List[dict]:
            events = self.provider.get_event_list(
                self._window(range_token), category=category, search=search, limit=limit
            )
            items = []
            for event in events:
                recent = self.provider.get_statistics_in_range(event.id, window.start, window.end, limit=1)
                items.append(self._list_item(event, recent).to_dict())
            return items

        return self.cache.get_or_set(key, _compute, CacheTTL.SHORT)

    def _list_item(self, event: Event, recent: RecencySeries) -> EventListItem:
        latest = recent.latest
        return EventListItem(
            id=event.id,
            title=event.title,
            description=event.description,
            post_count=latest.post_count if latest else 0,
            user_count=latest.user_count if latest else 0,
            sentiment=headline_sentiment(event, latest),
            hotness=event.hotness,
            trend=trend_of(recent),
            category=event.category or UNCATEGORIZED,
            created_at=event.created_at,
            last_update=event.updated_at,
            trend_data=[snap.hotness for snap in recent.chronological()],
        )

    def get_hot_events(self, range_token: str, limit: int = HOT_EVENT_LIMIT) -> List[dict]:
        window = time_range.resolve(range_token, now=self._now())
        key = CacheService.build_key(CacheKeys.HOT_EVENTS, range_token)

        def _compute() -> List[dict]:
            hot = []
            for event in self.provider.get_hot_events(limit):
                recent = self.provider.get_statistics_in_range(
                    event.id, window.start, window.end, limit=HOT_EVENT_TREND_POINTS
                )
                latest = recent.latest
                trend_data = [snap.hotness for snap in recent.chronological()] or [event.hotness]
                hot.append(
                    HotEvent(
                        id=event.id,
                        title=event.title,
                        post_count=latest.post_count if latest else 0,
                        sentiment=headline_sentiment(event, latest),
                        hotness=event.hotness,
                        trend=trend_of(recent),
                        trend_data=trend_data,
                    ).to_dict()
                )
            return hot

        return self.cache.get_or_set(key, _compute, CacheTTL.SHORT)

    def get_event_categories(self, range_token: str) -> dict:
        window = self._window(range_token)
        key = CacheService.build_key(CacheKeys.CATEGORIES, range_token)

        def _compute() -> dict:
            counts = self.provider.get_category_counts(window)
            return EventCategoryStats(
                categories=[name or UNCATEGORIZED for name, _ in counts],
                counts=[count for _, count in counts],
            ).to_dict()

        return self.cache.get_or_set(key, _compute, CacheTTL.LONG)

    def get_event_keywords(self, event_id: str) -> List[dict]:
        key = CacheService.build_key(CacheKeys.KEYWORDS, event_id)

        def _compute() -> List[dict]:
            mentions = self.provider.get_keyword_mentions(event_id)
            return [kw.to_dict() for kw in aggregate_keywords(mentions)]

        return self.cache.get_or_set(key, _compute, CacheTTL.MEDIUM)

    def get_influence_users(self, event_id: str) -> List[dict]:
        key = CacheService.build_key(CacheKeys.INFLUENCE_USERS, event_id)

        def _compute() -> List[dict]:
            rows = self.provider.get_influence_rows(event_id, limit=MAX_INFLUENCE_USERS)
            return [user.to_dict() for user in rank_influence_users(rows)]

        return self.cache.get_or_set(key, _compute, CacheTTL.MEDIUM)

    def get_geographic_distribution(self, event_id: str) -> List[dict]:
        key = CacheService.build_key(CacheKeys.GEOGRAPHIC, event_id)

        def _compute() -> List[dict]:
            rows = self.provider.get_location_rows(event_id)
            distribution = build_geographic_distribution(rows, rng=self._rng)
            estimated = sum(1 for item in distribution if item.is_estimated)
            if estimated:
                logger.debug("Geographic sentiment estimated for %d/%d regions of %s", estimated, len(distribution), event_id)
            return [item.to_dict() for item in distribution]

        return self.cache.get_or_set(key, _compute, CacheTTL.LONG)


__all__ = [
    "influence_score",
    "rank_influence_users",
    "normalize_region",
    "estimated_sentiment",
    "build_geographic_distribution",
    "aggregate_keywords",
    "headline_sentiment",
    "EventQueryService",
]
