"""Immutable threshold and template tables for event analytics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class TrendThreshold:
    up: float = 5.0
    down: float = -5.0


@dataclass(frozen=True)
class TierThreshold:
    """Two cut-offs splitting a score into three ordered tiers (``>=`` comparisons)."""

    upper: float
    lower: float


@dataclass(frozen=True)
class SpeedThreshold:
    """Strict ``>`` cut-offs for spread speed."""

    fast: float = 20.0
    medium: float = 10.0


@dataclass(frozen=True)
class HotnessWeights:
    posts: float = 0.6
    users: float = 0.4


@dataclass(frozen=True)
class InfluenceWeights:
    interaction: float = 0.0006
    followers: float = 0.3  # applied per thousand followers
    post_count: float = 0.1


@dataclass(frozen=True)
class PropagationUserType:
    label: str
    user_ratio: float
    post_ratio: float
    influence: int


@dataclass(frozen=True)
class PhaseTemplate:
    name: str
    description: str
    key_events: Tuple[str, ...]
    key_tasks: Tuple[str, ...]
    key_measures: Tuple[str, ...]


@dataclass(frozen=True)
class SuccessFactor:
    title: str
    description: str

    def to_dict(self) -> dict:
        return {"title": self.title, "description": self.description}


TREND_THRESHOLD = TrendThreshold()
IMPACT_THRESHOLD = TierThreshold(upper=80, lower=50)
HOTNESS_THRESHOLD = TierThreshold(upper=80, lower=50)
IMPACT_DEPTH_THRESHOLD = TierThreshold(upper=90, lower=60)
DURATION_THRESHOLD = TierThreshold(upper=30, lower=7)
SPREAD_SPEED_THRESHOLD = SpeedThreshold()
HOTNESS_WEIGHTS = HotnessWeights()
INFLUENCE_WEIGHTS = InfluenceWeights()
DECLINE_RATIO = 0.7

PROPAGATION_USER_TYPES: Tuple[PropagationUserType, ...] = (
    PropagationUserType("意见领袖", user_ratio=0.05, post_ratio=0.15, influence=95),
    PropagationUserType("活跃用户", user_ratio=0.15, post_ratio=0.35, influence=75),
    PropagationUserType("普通用户", user_ratio=0.50, post_ratio=0.40, influence=45),
    PropagationUserType("围观用户", user_ratio=0.30, post_ratio=0.10, influence=20),
)
PROPAGATION_BASE_MULTIPLIER = 10

EARLY_PHASE = PhaseTemplate(
    name="萌芽期",
    description="事件初步曝光，讨论集中在少量核心账号，传播范围有限",
    key_events=("首条相关内容发布", "核心账号开始转发"),
    key_tasks=("识别信息源头", "研判事件性质"),
    key_measures=("建立监测关键词", "跟踪首发账号动态"),
)
OUTBREAK_PHASE = PhaseTemplate(
    name="爆发期",
    description="事件迅速扩散，媒体与意见领袖介入，讨论量快速攀升",
    key_events=("意见领袖集中发声", "媒体跟进报道", "话题登上热搜"),
    key_tasks=("追踪传播路径", "识别关键传播节点", "监测情绪变化"),
    key_measures=("发布权威信息", "加强重点账号监测", "及时回应公众关切"),
)
STABLE_PHASE = PhaseTemplate(
    name="平稳期",
    description="讨论热度趋于平稳，舆论焦点逐步分化或转移",
    key_events=("讨论热度回落", "衍生话题出现"),
    key_tasks=("评估事件影响", "关注次生舆情"),
    key_measures=("持续跟踪后续进展", "总结处置经验"),
)
DEVELOPMENT_PHASES: Tuple[PhaseTemplate, PhaseTemplate, PhaseTemplate] = (EARLY_PHASE, OUTBREAK_PHASE, STABLE_PHASE)

TOPIC_SENSITIVITY = SuccessFactor("话题敏感度", "事件涉及公众普遍关注的议题，容易引发情绪共鸣")
TIMING = SuccessFactor("发布时机", "事件曝光于流量高峰时段，获得了充分的初始曝光")
PARTICIPANT_INFLUENCE = SuccessFactor("参与者影响力", "高影响力账号参与转发讨论，扩大了传播半径")
MEDIA_AMPLIFICATION = SuccessFactor("媒体推动", "主流媒体集中报道，推动事件进入更大范围的公共讨论")
BASE_SUCCESS_FACTORS: Tuple[SuccessFactor, ...] = (TOPIC_SENSITIVITY, TIMING, PARTICIPANT_INFLUENCE)

OUTBREAK_SPEED_LABELS = ("快速", "中速", "缓慢")
PROPAGATION_SCOPE_LABELS = ("广泛", "较广", "有限")
DURATION_LABELS = ("长期", "中期", "短期")
IMPACT_DEPTH_LABELS = ("深度", "中度", "浅层")
IMPACT_LEVELS = ("high", "medium", "low")

DEFAULT_START_METRICS = {"posts": 100, "users": 50, "sentiment": 0.5}
DEFAULT_NODE_SENTIMENT = 0.5
PEAK_NODE_SENTIMENT = 0.6
UNCATEGORIZED = "未分类"
UNKNOWN_USER = "未知用户"
UNKNOWN_REGION = "未知"
OVERSEAS_REGION = "国外"
LOCATION_PREFIX = "发布于"

MAX_INFLUENCE_USERS = 10
MAX_GEOGRAPHIC_REGIONS = 20
MAX_KEYWORDS = 100
HOT_EVENT_LIMIT = 20
HOT_EVENT_TREND_POINTS = 7
RECENT_STATISTICS_LIMIT = 30
DEFAULT_DETAIL_RANGE = "30d"
ESTIMATED_SENTIMENT_MEAN = 0.5
ESTIMATED_SENTIMENT_STDDEV = 0.15
