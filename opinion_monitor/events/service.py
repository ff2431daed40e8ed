"""Aggregate facade composing query, analytics and timeline services into responses."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from opinion_monitor.cache import CacheService
from opinion_monitor.errors import CollaboratorError
from opinion_monitor.events.analytics import EventAnalyticsService, trend_of
from opinion_monitor.events.constants import DEFAULT_DETAIL_RANGE, UNCATEGORIZED
from opinion_monitor.events.models import Event, EventDetail
from opinion_monitor.events.provider import DataProvider, JsonFileDataProvider
from opinion_monitor.events.query import EventQueryService, headline_sentiment
from opinion_monitor.events.timeline import EventTimelineBuilder

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "事件不存在"
FAILURE_MESSAGE = "数据服务暂时不可用"


@dataclass
class ServiceResult:
    """Response envelope; ``status`` is the HTTP status the API layer should use."""

    success: bool
    data: Any = None
    message: str = "ok"
    status: int = 200

    @property
    def not_found(self) -> bool:
        return self.status == 404

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "data": self.data, "message": self.message}


def ok(data: Any) -> ServiceResult:
    return ServiceResult(success=True, data=data)


def not_found(message: str = NOT_FOUND_MESSAGE) -> ServiceResult:
    return ServiceResult(success=False, data=None, message=message, status=404)


class EventsService:
    def __init__(
        self,
        query: EventQueryService,
        analytics: EventAnalyticsService,
        timeline: EventTimelineBuilder,
    ) -> None:
        self.query = query
        self.analytics = analytics
        self.timeline = timeline

    @classmethod
    def create(
        cls,
        provider: Optional[DataProvider] = None,
        cache: Optional[CacheService] = None,
        *,
        now: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ) -> "EventsService":
        provider = provider or JsonFileDataProvider()
        cache = cache or CacheService()
        return cls(
            query=EventQueryService(cache, provider, now=now, rng=rng),
            analytics=EventAnalyticsService(cache, provider, now=now),
            timeline=EventTimelineBuilder(),
        )

    def _guard(self, label: str, compute: Callable[[], ServiceResult]) -> ServiceResult:
        try:
            return compute()
        except CollaboratorError as exc:
            logger.exception("%s failed: %s", label, exc)
            return ServiceResult(success=False, data=None, message=FAILURE_MESSAGE, status=502)

    def _with_event(self, label: str, event_id: str, compute: Callable[[Event], Any]) -> ServiceResult:
        def _run() -> ServiceResult:
            event = self.query.get_event_by_id(event_id)
            if event is None:
                logger.info("%s: event %s not found", label, event_id)
                return not_found()
            return ok(compute(event))

        return self._guard(label, _run)

    # -- lists -----------------------------------------------------------

    def get_event_list(
        self,
        range_token: str,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> ServiceResult:
        return self._guard(
            "event list",
            lambda: ok(self.query.get_event_list(range_token, category=category, search=search, limit=limit)),
        )

    def get_hot_list(self, range_token: str) -> ServiceResult:
        return self._guard("hot list", lambda: ok(self.query.get_hot_events(range_token)))

    def get_event_categories(self, range_token: str) -> ServiceResult:
        return self._guard("event categories", lambda: ok(self.query.get_event_categories(range_token)))

    def get_trend_data(self, range_token: str) -> ServiceResult:
        return self._guard("trend data", lambda: ok(self.analytics.get_trend_data(range_token)))

    # -- per event -------------------------------------------------------

    def get_event_detail(self, event_id: str) -> ServiceResult:
        return self._with_event("event detail", event_id, lambda event: self._build_detail(event).to_dict())

    def _build_detail(self, event: Event) -> EventDetail:
        statistics = self.query.get_all_statistics(event.id)
        latest = statistics.latest
        keywords = [item["keyword"] for item in self.query.get_event_keywords(event.id)]

        timeline = self.timeline.build_timeline(event, statistics)
        return EventDetail(
            id=event.id,
            title=event.title,
            description=event.description,
            post_count=latest.post_count if latest else 0,
            user_count=latest.user_count if latest else 0,
            sentiment=headline_sentiment(event, latest),
            hotness=event.hotness,
            trend=trend_of(statistics),
            category=event.category or UNCATEGORIZED,
            keywords=keywords,
            created_at=event.created_at,
            last_update=event.updated_at,
            timeline=timeline,
            propagation_path=self.analytics.build_propagation_path(event),
            key_nodes=self.timeline.build_key_nodes(timeline),
            development_phases=self.timeline.build_development_phases(event, statistics),
            development_pattern=self.timeline.build_development_pattern(event, statistics),
            success_factors=self.timeline.build_success_factors(event),
        )

    def get_event_time_series(self, event_id: str) -> ServiceResult:
        return self._with_event(
            "event time series",
            event_id,
            lambda event: self.analytics.get_event_time_series(
                event.id, DEFAULT_DETAIL_RANGE, self.query.get_all_statistics(event.id)
            ),
        )

    def get_event_trends(self, event_id: str) -> ServiceResult:
        return self._with_event(
            "event trends",
            event_id,
            lambda event: self.analytics.get_event_trends(
                event.id, DEFAULT_DETAIL_RANGE, self.query.get_all_statistics(event.id)
            ),
        )

    def get_influence_users(self, event_id: str) -> ServiceResult:
        return self._with_event("influence users", event_id, lambda event: self.query.get_influence_users(event.id))

    def get_event_geographic(self, event_id: str) -> ServiceResult:
        return self._with_event(
            "geographic distribution", event_id, lambda event: self.query.get_geographic_distribution(event.id)
        )

    def get_event_keywords(self, event_id: str) -> ServiceResult:
        return self._with_event("event keywords", event_id, lambda event: self.query.get_event_keywords(event.id))


__all__ = ["EventsService", "ServiceResult", "NOT_FOUND_MESSAGE", "FAILURE_MESSAGE", "ok", "not_found"]
