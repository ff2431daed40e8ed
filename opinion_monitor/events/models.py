from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from opinion_monitor.time_range import localize


def _non_negative(value: Any) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return number if number > 0 else 0.0


def clamp_hotness(value: Any) -> float:
    return max(0.0, min(100.0, _non_negative(value)))


def round_half_up(value: float) -> int:
    """Round like the dashboards do: .5 always goes toward +inf."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class SentimentScore:
    positive: float = 0.0
    negative: float = 0.0
    neutral: float = 0.0

    def __post_init__(self) -> None:
        for name in ("positive", "negative", "neutral"):
            object.__setattr__(self, name, _non_negative(getattr(self, name)))

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


ZERO_SENTIMENT = SentimentScore()


@dataclass(frozen=True)
class Event:
    """Tracked topic as stored; immutable for the duration of a request."""

    id: str
    title: str
    hotness: float
    created_at: datetime
    updated_at: datetime
    description: str = ""
    category: Optional[str] = None
    status: str = "active"
    occurred_at: Optional[datetime] = None
    sentiment: Optional[SentimentScore] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "hotness", clamp_hotness(self.hotness))
        object.__setattr__(self, "created_at", localize(self.created_at))
        object.__setattr__(self, "updated_at", localize(self.updated_at))
        if self.occurred_at is not None:
            object.__setattr__(self, "occurred_at", localize(self.occurred_at))

    @property
    def started_at(self) -> datetime:
        return self.occurred_at or self.created_at


@dataclass(frozen=True)
class EventStatisticsSnapshot:
    event_id: str
    snapshot_at: datetime
    post_count: int = 0
    user_count: int = 0
    sentiment: Optional[SentimentScore] = None
    hotness: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "snapshot_at", localize(self.snapshot_at))
        object.__setattr__(self, "post_count", int(_non_negative(self.post_count)))
        object.__setattr__(self, "user_count", int(_non_negative(self.user_count)))
        object.__setattr__(self, "hotness", clamp_hotness(self.hotness))

    @property
    def positive(self) -> float:
        return self.sentiment.positive if self.sentiment else 0.0

    @property
    def negative(self) -> float:
        return self.sentiment.negative if self.sentiment else 0.0

    @property
    def neutral(self) -> float:
        return self.sentiment.neutral if self.sentiment else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "snapshot_at": self.snapshot_at.isoformat(),
            "post_count": self.post_count,
            "user_count": self.user_count,
            "sentiment": self.sentiment.to_dict() if self.sentiment else None,
            "hotness": self.hotness,
        }


@dataclass
class NodeMetrics:
    posts: int
    users: int
    sentiment: float


@dataclass
class TimelineNode:
    time: datetime
    event: str
    type: str  # start | peak | decline | key_event | milestone
    impact: int
    description: str
    metrics: NodeMetrics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time.isoformat(),
            "event": self.event,
            "type": self.type,
            "impact": self.impact,
            "description": self.description,
            "metrics": asdict(self.metrics),
        }


@dataclass
class KeyNode:
    time: datetime
    description: str
    impact: str  # high | medium | low
    metrics: NodeMetrics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time.isoformat(),
            "description": self.description,
            "impact": self.impact,
            "metrics": asdict(self.metrics),
        }


@dataclass
class PhaseMetrics:
    hotness: int
    posts: int
    users: int
    sentiment: float


@dataclass
class DevelopmentPhase:
    phase: str
    time_range: str
    description: str
    key_events: List[str]
    key_tasks: List[str]
    key_measures: List[str]
    metrics: PhaseMetrics
    status: str  # completed | ongoing | planned

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase,
            "timeRange": self.time_range,
            "description": self.description,
            "keyEvents": list(self.key_events),
            "keyTasks": list(self.key_tasks),
            "keyMeasures": list(self.key_measures),
            "metrics": asdict(self.metrics),
            "status": self.status,
        }


@dataclass
class DevelopmentPattern:
    outbreak_speed: str
    propagation_scope: str
    duration: str
    impact_depth: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "outbreakSpeed": self.outbreak_speed,
            "propagationScope": self.propagation_scope,
            "duration": self.duration,
            "impactDepth": self.impact_depth,
        }


@dataclass
class PropagationPathEntry:
    user_type: str
    user_count: int
    post_count: int
    influence: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userType": self.user_type,
            "userCount": self.user_count,
            "postCount": self.post_count,
            "influence": self.influence,
        }


@dataclass
class ChartSeries:
    name: str
    data: List[float]


@dataclass
class ChartData:
    """Aligned ``categories`` + named series, oldest bucket first."""

    categories: List[str] = field(default_factory=list)
    series: List[ChartSeries] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": list(self.categories),
            "series": [asdict(item) for item in self.series],
        }


@dataclass
class TrendAnalysis:
    timeline: List[str]
    post_volume: List[int]
    sentiment_scores: List[int]
    user_engagement: List[int]
    hotness_data: List[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeline": list(self.timeline),
            "postVolume": list(self.post_volume),
            "sentimentScores": list(self.sentiment_scores),
            "userEngagement": list(self.user_engagement),
            "hotnessData": list(self.hotness_data),
        }


@dataclass
class InfluenceUser:
    user_id: str
    username: str
    influence: int
    post_count: int
    followers: int
    interaction_count: int
    sentiment_score: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "username": self.username,
            "influence": self.influence,
            "postCount": self.post_count,
            "followers": self.followers,
            "interactionCount": self.interaction_count,
            "sentimentScore": self.sentiment_score,
        }


@dataclass
class GeographicDistribution:
    region: str
    count: int
    percentage: float
    posts: int
    sentiment: float
    is_estimated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class KeywordWeight:
    keyword: str
    weight: float
    sentiment: str = "neutral"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class InfluenceRow:
    """Per-user aggregate over an event's posts."""

    user_id: str
    name: Optional[str]
    followers: int
    post_count: int
    interactions: int


@dataclass(frozen=True)
class LocationRow:
    """Per-location aggregate; ``avg_sentiment`` is mean(positive - negative) or None."""

    location: Optional[str]
    user_count: int
    post_count: int
    avg_sentiment: Optional[float] = None


@dataclass
class EventListItem:
    id: str
    title: str
    description: str
    post_count: int
    user_count: int
    sentiment: SentimentScore
    hotness: float
    trend: str
    category: str
    created_at: datetime
    last_update: datetime
    keywords: List[str] = field(default_factory=list)
    trend_data: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "postCount": self.post_count,
            "userCount": self.user_count,
            "sentiment": self.sentiment.to_dict(),
            "hotness": self.hotness,
            "trend": self.trend,
            "category": self.category,
            "keywords": list(self.keywords),
            "createdAt": self.created_at.isoformat(),
            "lastUpdate": self.last_update.isoformat(),
            "trendData": list(self.trend_data),
        }


@dataclass
class HotEvent:
    id: str
    title: str
    post_count: int
    sentiment: SentimentScore
    hotness: float
    trend: str
    trend_data: List[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "postCount": self.post_count,
            "sentiment": self.sentiment.to_dict(),
            "hotness": self.hotness,
            "trend": self.trend,
            "trendData": list(self.trend_data),
        }


@dataclass
class EventCategoryStats:
    categories: List[str]
    counts: List[int]

    def to_dict(self) -> Dict[str, Any]:
        return {"categories": list(self.categories), "counts": list(self.counts)}


@dataclass
class EventDetail:
    id: str
    title: str
    description: str
    post_count: int
    user_count: int
    sentiment: SentimentScore
    hotness: float
    trend: str
    category: str
    keywords: List[str]
    created_at: datetime
    last_update: datetime
    timeline: List[TimelineNode]
    propagation_path: List[PropagationPathEntry]
    key_nodes: List[KeyNode]
    development_phases: List[DevelopmentPhase]
    development_pattern: DevelopmentPattern
    success_factors: List[Dict[str, str]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "postCount": self.post_count,
            "userCount": self.user_count,
            "sentiment": self.sentiment.to_dict(),
            "hotness": self.hotness,
            "trend": self.trend,
            "category": self.category,
            "keywords": list(self.keywords),
            "createdAt": self.created_at.isoformat(),
            "lastUpdate": self.last_update.isoformat(),
            "timeline": [node.to_dict() for node in self.timeline],
            "propagationPath": [entry.to_dict() for entry in self.propagation_path],
            "keyNodes": [node.to_dict() for node in self.key_nodes],
            "developmentPhases": [phase.to_dict() for phase in self.development_phases],
            "developmentPattern": self.development_pattern.to_dict(),
            "successFactors": [dict(item) for item in self.success_factors],
        }
