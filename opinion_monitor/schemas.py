"""Validation models for raw records read from the event store."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .events.models import Event, EventStatisticsSnapshot, SentimentScore
from .time_range import localize


def _clamp_count(value) -> int:
    if value is None or value == "":
        return 0
    number = int(float(value))
    return number if number > 0 else 0


class SentimentRecord(BaseModel):
    positive: float = 0.0
    negative: float = 0.0
    neutral: float = 0.0

    @field_validator("positive", "negative", "neutral", mode="before")
    @classmethod
    def _non_negative(cls, value):
        if value is None or value == "":
            return 0.0
        return max(0.0, float(value))

    def to_model(self) -> SentimentScore:
        return SentimentScore(positive=self.positive, negative=self.negative, neutral=self.neutral)


class EventRecord(BaseModel):
    id: str
    title: str
    description: str = ""
    category: Optional[str] = None
    status: str = "active"
    occurred_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    hotness: float = 0.0
    sentiment: Optional[SentimentRecord] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value) if value is not None else value

    @field_validator("description", mode="before")
    @classmethod
    def _blank_description(cls, value):
        return value or ""

    @field_validator("hotness", mode="before")
    @classmethod
    def _clamp_hotness(cls, value):
        if value is None or value == "":
            return 0.0
        return max(0.0, min(100.0, float(value)))

    def to_model(self) -> Event:
        created = localize(self.created_at)
        return Event(
            id=self.id,
            title=self.title,
            description=self.description,
            category=self.category or None,
            status=self.status,
            occurred_at=localize(self.occurred_at) if self.occurred_at else None,
            created_at=created,
            updated_at=localize(self.updated_at) if self.updated_at else created,
            hotness=self.hotness,
            sentiment=self.sentiment.to_model() if self.sentiment else None,
        )


class SnapshotRecord(BaseModel):
    event_id: str
    snapshot_at: datetime
    post_count: int = 0
    user_count: int = 0
    hotness: float = 0.0
    sentiment: Optional[SentimentRecord] = None

    @field_validator("event_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value) if value is not None else value

    @field_validator("post_count", "user_count", mode="before")
    @classmethod
    def _clamp_counts(cls, value):
        return _clamp_count(value)

    @field_validator("hotness", mode="before")
    @classmethod
    def _clamp_hotness(cls, value):
        if value is None or value == "":
            return 0.0
        return max(0.0, min(100.0, float(value)))

    def to_model(self) -> EventStatisticsSnapshot:
        return EventStatisticsSnapshot(
            event_id=self.event_id,
            snapshot_at=localize(self.snapshot_at),
            post_count=self.post_count,
            user_count=self.user_count,
            sentiment=self.sentiment.to_model() if self.sentiment else None,
            hotness=self.hotness,
        )


class PostUser(BaseModel):
    id: str = ""
    screen_name: Optional[str] = None
    followers_count: int = 0
    location: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return "" if value is None else str(value)

    @field_validator("followers_count", mode="before")
    @classmethod
    def _clamp_followers(cls, value):
        return _clamp_count(value)


class KeywordRecord(BaseModel):
    keyword: str
    weight: float = 0.0
    sentiment: Optional[str] = None


class NlpSentiment(BaseModel):
    positive_prob: float = 0.0
    negative_prob: float = 0.0


class NlpRecord(BaseModel):
    sentiment: Optional[NlpSentiment] = None
    keywords: List[KeywordRecord] = Field(default_factory=list)


class PostRecord(BaseModel):
    """A post attached to an event, with its NLP analysis result if any."""

    id: str
    user: PostUser = Field(default_factory=PostUser)
    region_name: Optional[str] = None
    attitudes_count: int = 0
    comments_count: int = 0
    reposts_count: int = 0
    deleted_at: Optional[datetime] = None
    nlp: Optional[NlpRecord] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value) if value is not None else value

    @field_validator("attitudes_count", "comments_count", "reposts_count", mode="before")
    @classmethod
    def _clamp_counts(cls, value):
        return _clamp_count(value)

    @property
    def interactions(self) -> int:
        return self.attitudes_count + self.comments_count + self.reposts_count

    @property
    def location(self) -> Optional[str]:
        return self.region_name or self.user.location or None


__all__ = [
    "SentimentRecord",
    "EventRecord",
    "SnapshotRecord",
    "PostUser",
    "KeywordRecord",
    "NlpSentiment",
    "NlpRecord",
    "PostRecord",
]
