"""Lifecycle views of one event: timeline nodes, phases, pattern, success factors.

All builders take the snapshot history as a :class:`SnapshotSeries` and work on
its newest-first view; index 0 is always the most recent sample.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from opinion_monitor import time_range
from opinion_monitor.events.constants import (
    BASE_SUCCESS_FACTORS,
    DECLINE_RATIO,
    DEFAULT_NODE_SENTIMENT,
    DEFAULT_START_METRICS,
    DEVELOPMENT_PHASES,
    DURATION_LABELS,
    DURATION_THRESHOLD,
    HOTNESS_THRESHOLD,
    IMPACT_DEPTH_LABELS,
    IMPACT_DEPTH_THRESHOLD,
    IMPACT_LEVELS,
    IMPACT_THRESHOLD,
    MEDIA_AMPLIFICATION,
    OUTBREAK_SPEED_LABELS,
    PEAK_NODE_SENTIMENT,
    PROPAGATION_SCOPE_LABELS,
    SPREAD_SPEED_THRESHOLD,
    PhaseTemplate,
    SuccessFactor,
    TierThreshold,
)
from opinion_monitor.events.models import (
    DevelopmentPattern,
    DevelopmentPhase,
    Event,
    EventStatisticsSnapshot,
    KeyNode,
    NodeMetrics,
    PhaseMetrics,
    TimelineNode,
    round_half_up,
)
from opinion_monitor.events.series import RecencySeries, SnapshotSeries, as_recency


def tier(value: float, threshold: TierThreshold, labels: Tuple[str, str, str]) -> str:
    if value >= threshold.upper:
        return labels[0]
    if value >= threshold.lower:
        return labels[1]
    return labels[2]


def find_local_peak(recent: RecencySeries) -> Optional[int]:
    """First interior index whose hotness is >= both neighbours."""
    for i in range(1, len(recent) - 1):
        hotness = recent[i].hotness
        if hotness >= recent[i - 1].hotness and hotness >= recent[i + 1].hotness:
            return i
    return None


def _positive_or(snapshot: EventStatisticsSnapshot, default: float) -> float:
    return snapshot.sentiment.positive if snapshot.sentiment is not None else default


def _node_metrics(snapshot: EventStatisticsSnapshot, default_sentiment: float) -> NodeMetrics:
    return NodeMetrics(
        posts=snapshot.post_count,
        users=snapshot.user_count,
        sentiment=_positive_or(snapshot, default_sentiment),
    )


def _format_day(snapshot: EventStatisticsSnapshot) -> str:
    return time_range.format_label(snapshot.snapshot_at, time_range.DAY)


def _ceil_share(total: int, tenths: int) -> int:
    return -(-total * tenths // 10)


class EventTimelineBuilder:
    def __init__(
        self,
        *,
        phases: Tuple[PhaseTemplate, PhaseTemplate, PhaseTemplate] = DEVELOPMENT_PHASES,
        base_factors: Sequence[SuccessFactor] = BASE_SUCCESS_FACTORS,
        amplification_factor: SuccessFactor = MEDIA_AMPLIFICATION,
    ) -> None:
        self.phases = phases
        self.base_factors = tuple(base_factors)
        self.amplification_factor = amplification_factor

    def build_timeline(self, event: Event, statistics: SnapshotSeries) -> List[TimelineNode]:
        recent = as_recency(statistics)
        nodes: List[TimelineNode] = []

        oldest = recent.oldest
        start_metrics = (
            NodeMetrics(posts=oldest.post_count, users=oldest.user_count, sentiment=DEFAULT_START_METRICS["sentiment"])
            if oldest is not None
            else NodeMetrics(**DEFAULT_START_METRICS)
        )
        nodes.append(
            TimelineNode(
                time=event.started_at,
                event="事件开始",
                type="start",
                impact=60,
                description=f"{event.title}事件开始发酵",
                metrics=start_metrics,
            )
        )

        if len(recent) >= 3:
            peak_index = find_local_peak(recent)
            if peak_index is not None:
                peak = recent[peak_index]
                nodes.append(
                    TimelineNode(
                        time=peak.snapshot_at,
                        event="热度峰值",
                        type="peak",
                        impact=95,
                        description="事件达到传播高峰,引发广泛讨论",
                        metrics=_node_metrics(peak, PEAK_NODE_SENTIMENT),
                    )
                )

        if len(recent) >= 2:
            middle = recent[len(recent) // 2]
            nodes.append(
                TimelineNode(
                    time=middle.snapshot_at,
                    event="关键转折",
                    type="key_event",
                    impact=75,
                    description="事件进入新阶段,舆论方向发生变化",
                    metrics=_node_metrics(middle, DEFAULT_NODE_SENTIMENT),
                )
            )

        latest = recent.latest
        if latest is not None and latest.hotness < event.hotness * DECLINE_RATIO:
            nodes.append(
                TimelineNode(
                    time=latest.snapshot_at,
                    event="热度回落",
                    type="decline",
                    impact=40,
                    description="事件热度逐渐降温,讨论趋于平静",
                    metrics=_node_metrics(latest, DEFAULT_NODE_SENTIMENT),
                )
            )

        # construction order is not chronological
        nodes.sort(key=lambda node: node.time)
        return nodes

    def build_key_nodes(self, timeline: Sequence[TimelineNode]) -> List[KeyNode]:
        return [
            KeyNode(
                time=node.time,
                description=node.description,
                impact=tier(node.impact, IMPACT_THRESHOLD, IMPACT_LEVELS),
                metrics=node.metrics,
            )
            for node in timeline
            if node.type != "start"
        ]

    def build_development_phases(self, event: Event, statistics: SnapshotSeries) -> List[DevelopmentPhase]:
        recent = as_recency(statistics)
        total = len(recent)
        early, outbreak, stable = self.phases
        phases: List[DevelopmentPhase] = []

        if total > 0:
            phases.append(self._phase(early, recent[-_ceil_share(total, 3):], "completed"))
        if total > 3:
            window = recent[total * 3 // 10 : total * 7 // 10]
            if len(window):
                phases.append(self._phase(outbreak, window, "ongoing" if total <= 5 else "completed"))
        if total > 5:
            phases.append(self._phase(stable, recent[: _ceil_share(total, 3)], "ongoing"))
        return phases

    def _phase(self, template: PhaseTemplate, window: RecencySeries, status: str) -> DevelopmentPhase:
        first, last = window.oldest, window.latest
        return DevelopmentPhase(
            phase=template.name,
            time_range=f"{_format_day(first)} - {_format_day(last)}",
            description=template.description,
            key_events=list(template.key_events),
            key_tasks=list(template.key_tasks),
            key_measures=list(template.key_measures),
            metrics=PhaseMetrics(
                hotness=round_half_up(sum(snap.hotness for snap in window) / len(window)),
                posts=last.post_count,
                users=last.user_count,
                sentiment=_positive_or(last, DEFAULT_NODE_SENTIMENT),
            ),
            status=status,
        )

    def build_development_pattern(self, event: Event, statistics: SnapshotSeries) -> DevelopmentPattern:
        recent = as_recency(statistics)
        hotness = [snap.hotness for snap in recent]
        peak = max(hotness) if hotness else 0.0
        spread_speed = peak / (hotness.index(peak) + 1) if hotness else 0.0

        if spread_speed > SPREAD_SPEED_THRESHOLD.fast:
            speed = OUTBREAK_SPEED_LABELS[0]
        elif spread_speed > SPREAD_SPEED_THRESHOLD.medium:
            speed = OUTBREAK_SPEED_LABELS[1]
        else:
            speed = OUTBREAK_SPEED_LABELS[2]

        return DevelopmentPattern(
            outbreak_speed=speed,
            propagation_scope=tier(event.hotness, HOTNESS_THRESHOLD, PROPAGATION_SCOPE_LABELS),
            duration=tier(len(recent), DURATION_THRESHOLD, DURATION_LABELS),
            impact_depth=tier(peak, IMPACT_DEPTH_THRESHOLD, IMPACT_DEPTH_LABELS),
        )

    def build_success_factors(self, event: Event) -> List[Dict[str, str]]:
        factors = list(self.base_factors)
        if event.hotness >= HOTNESS_THRESHOLD.upper:
            factors.append(self.amplification_factor)
        return [factor.to_dict() for factor in factors]


__all__ = ["EventTimelineBuilder", "find_local_peak", "tier"]
