# Pytest configuration for the event analytics test environment.
#
# Environment flags are set before the package is imported so that module
# level configuration (data root, scheduler, cache backend) picks them up.

import os
import random
import tempfile
from datetime import datetime, timedelta

os.environ.setdefault("OPINION_DATA_ROOT", tempfile.mkdtemp(prefix="opinion-monitor-tests-"))
os.environ.setdefault("CACHE_WARM_ENABLED", "0")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("EVENTS_TZ_OFFSET_HOURS", "8")

import pytest  # noqa: E402

from opinion_monitor.cache import CacheService, MemoryCacheBackend  # noqa: E402
from opinion_monitor.config import LOCAL_TZ  # noqa: E402
from opinion_monitor.events.models import Event, EventStatisticsSnapshot, SentimentScore  # noqa: E402
from opinion_monitor.events.provider import InMemoryDataProvider  # noqa: E402
from opinion_monitor.events.service import EventsService  # noqa: E402

# Wednesday afternoon, local time
NOW = datetime(2024, 6, 12, 15, 30, tzinfo=LOCAL_TZ)


def make_event(event_id="e1", *, hotness=85.0, days_ago=5, title="城市暴雨救援", **extra) -> Event:
    created = NOW - timedelta(days=days_ago)
    return Event(id=event_id, title=title, hotness=hotness, created_at=created, updated_at=created, **extra)


def make_snapshot(event_id, at, *, hotness=50.0, posts=100, users=50, sentiment=None) -> EventStatisticsSnapshot:
    return EventStatisticsSnapshot(
        event_id=event_id,
        snapshot_at=at,
        post_count=posts,
        user_count=users,
        sentiment=sentiment,
        hotness=hotness,
    )


def sample_posts():
    return [
        {
            "id": "p1",
            "user": {"id": "u1", "screen_name": "大V", "followers_count": 50000},
            "region_name": "发布于 北京",
            "attitudes_count": 100,
            "comments_count": 50,
            "reposts_count": 50,
            "nlp": {
                "sentiment": {"positive_prob": 0.8, "negative_prob": 0.1},
                "keywords": [
                    {"keyword": "暴雨", "weight": 0.6, "sentiment": "negative"},
                    {"keyword": "救援", "weight": 0.3},
                ],
            },
        },
        {
            "id": "p2",
            "user": {"id": "u2", "screen_name": "路人", "followers_count": 100, "location": "上海 浦东"},
            "attitudes_count": 1,
            "nlp": {"keywords": [{"keyword": "暴雨", "weight": 0.5}]},
        },
        {
            "id": "p3",
            "user": {"id": "u1", "screen_name": "大V", "followers_count": 50000},
            "attitudes_count": 999,
            "deleted_at": "2024-06-11T10:00:00+08:00",
            "nlp": {"keywords": []},
        },
        {"id": "p4", "user": {"id": "u3", "screen_name": "未分析"}, "attitudes_count": 5000},
    ]


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def provider() -> InMemoryDataProvider:
    """e1: four daily snapshots; e2: no snapshots; e3: archived; e4: outside 7d."""
    hotness_by_age = {4: 40.0, 3: 70.0, 2: 90.0, 1: 60.0}
    snapshots = [
        make_snapshot(
            "e1",
            NOW - timedelta(days=age),
            hotness=hotness,
            posts=100 * (5 - age),
            users=40 * (5 - age),
            sentiment=SentimentScore(positive=0.5, negative=0.25, neutral=0.25) if age != 2 else None,
        )
        for age, hotness in hotness_by_age.items()
    ]
    events = [
        make_event("e1", hotness=85.0, category="社会", description="多地出现强降雨"),
        make_event("e2", hotness=55.0, days_ago=2, title="景区门票调价"),
        make_event("e3", hotness=95.0, days_ago=1, title="已归档事件", status="archived"),
        make_event("e4", hotness=30.0, days_ago=100, title="季度财报", category="财经"),
    ]
    return InMemoryDataProvider(events, {"e1": snapshots}, {"e1": sample_posts()})


@pytest.fixture
def cache() -> CacheService:
    return CacheService(MemoryCacheBackend(), singleflight=True)


@pytest.fixture
def service(provider, cache) -> EventsService:
    return EventsService.create(provider, cache, now=lambda: NOW, rng=random.Random(3))
