"""Unit tests for timeline nodes, phases, development pattern and success factors."""

from datetime import timedelta

from opinion_monitor.events.models import SentimentScore
from opinion_monitor.events.series import ChronologicalSeries, RecencySeries
from opinion_monitor.events.timeline import EventTimelineBuilder, find_local_peak

from conftest import NOW, make_event, make_snapshot

builder = EventTimelineBuilder()


def _recent(*hotness, sentiment=None):
    """Newest-first series; index 0 is one hour ago, each step one day older."""
    return RecencySeries(
        [
            make_snapshot(
                "e1",
                NOW - timedelta(hours=1) - timedelta(days=i),
                hotness=value,
                posts=1000 - 100 * i,
                users=500 - 50 * i,
                sentiment=sentiment,
            )
            for i, value in enumerate(hotness)
        ]
    )


def _event(hotness=90.0):
    # starts before every snapshot built by _recent
    return make_event(hotness=hotness, days_ago=30)


class TestTimeline:
    def test_no_statistics_gives_default_start(self) -> None:
        event = _event()
        nodes = builder.build_timeline(event, RecencySeries())
        assert len(nodes) == 1
        start = nodes[0]
        assert start.type == "start"
        assert start.time == event.started_at
        assert (start.metrics.posts, start.metrics.users, start.metrics.sentiment) == (100, 50, 0.5)

    def test_start_uses_oldest_sample(self) -> None:
        nodes = builder.build_timeline(_event(), _recent(80, 70))
        start = nodes[0]
        assert (start.metrics.posts, start.metrics.users) == (900, 450)

    def test_no_interior_peak(self) -> None:
        nodes = builder.build_timeline(_event(), _recent(80, 60, 90))
        assert [node.type for node in nodes] == ["start", "key_event"]

    def test_peak_decline_and_ordering(self) -> None:
        nodes = builder.build_timeline(_event(90.0), _recent(50, 90, 60, 40))
        assert [node.type for node in nodes] == ["start", "key_event", "peak", "decline"]
        times = [node.time for node in nodes]
        assert times == sorted(times)
        peak = nodes[2]
        assert peak.impact == 95
        assert peak.metrics.sentiment == 0.6
        assert nodes[1].metrics.sentiment == 0.5

    def test_node_sentiment_from_snapshot(self) -> None:
        nodes = builder.build_timeline(_event(), _recent(50, 90, 60, sentiment=SentimentScore(positive=0.3)))
        peak = next(node for node in nodes if node.type == "peak")
        assert peak.metrics.sentiment == 0.3

    def test_accepts_chronological_history(self) -> None:
        recent = _recent(50, 90, 60, 40)
        assert builder.build_timeline(_event(), recent.chronological()) == builder.build_timeline(_event(), recent)

    def test_find_local_peak_returns_first(self) -> None:
        assert find_local_peak(_recent(10, 50, 20, 60, 30)) == 1
        assert find_local_peak(_recent(10, 20)) is None


class TestKeyNodes:
    def test_start_excluded_and_tiers_applied(self) -> None:
        nodes = builder.build_timeline(_event(90.0), _recent(50, 90, 60, 40))
        key_nodes = builder.build_key_nodes(nodes)
        assert [node.impact for node in key_nodes] == ["medium", "high", "low"]


class TestDevelopmentPhases:
    def test_empty(self) -> None:
        assert builder.build_development_phases(_event(), RecencySeries()) == []

    def test_three_samples_only_early(self) -> None:
        phases = builder.build_development_phases(_event(), _recent(30, 20, 10))
        assert [phase.phase for phase in phases] == ["萌芽期"]
        assert phases[0].status == "completed"

    def test_four_samples_outbreak_ongoing(self) -> None:
        phases = builder.build_development_phases(_event(), _recent(40, 30, 20, 10))
        assert [(phase.phase, phase.status) for phase in phases] == [("萌芽期", "completed"), ("爆发期", "ongoing")]

    def test_ten_samples_all_phases(self) -> None:
        recent = _recent(100, 90, 80, 70, 60, 50, 40, 30, 20, 10)
        phases = builder.build_development_phases(_event(), recent)
        assert [(phase.phase, phase.status) for phase in phases] == [
            ("萌芽期", "completed"),
            ("爆发期", "completed"),
            ("平稳期", "ongoing"),
        ]
        early, outbreak, stable = phases
        # early covers the three oldest samples
        assert early.metrics.hotness == 20
        assert early.metrics.posts == recent[7].post_count
        # outbreak covers indices 3..6
        assert outbreak.metrics.hotness == 55
        # stable covers the three newest samples
        assert stable.metrics.hotness == 90
        assert stable.metrics.posts == recent.latest.post_count

    def test_time_range_label(self) -> None:
        recent = _recent(30, 20, 10)
        phases = builder.build_development_phases(_event(), recent)
        first = recent.oldest.snapshot_at
        assert phases[0].time_range == f"{first.month}月{first.day}日 - {first.month}月{first.day}日"

    def test_time_range_labels_cover_each_window(self) -> None:
        recent = _recent(*range(100, 0, -10))
        early, _, stable = builder.build_development_phases(_event(), recent)

        def day(index):
            ts = recent[index].snapshot_at
            return f"{ts.month}月{ts.day}日"

        assert early.time_range == f"{day(9)} - {day(7)}"
        assert stable.time_range == f"{day(2)} - {day(0)}"


class TestDevelopmentPattern:
    def test_empty_statistics(self) -> None:
        pattern = builder.build_development_pattern(_event(hotness=40), ChronologicalSeries())
        assert pattern.to_dict() == {
            "outbreakSpeed": "缓慢",
            "propagationScope": "有限",
            "duration": "短期",
            "impactDepth": "浅层",
        }

    def test_fast_broad_deep(self) -> None:
        pattern = builder.build_development_pattern(_event(hotness=85), _recent(30, 95, 20))
        assert pattern.outbreak_speed == "快速"
        assert pattern.propagation_scope == "广泛"
        assert pattern.duration == "短期"
        assert pattern.impact_depth == "深度"

    def test_medium_speed(self) -> None:
        # peak 45 at index 2 -> 15 per step
        pattern = builder.build_development_pattern(_event(hotness=60), _recent(10, 20, 45, *([5] * 5)))
        assert pattern.outbreak_speed == "中速"
        assert pattern.propagation_scope == "较广"
        assert pattern.duration == "中期"


class TestSuccessFactors:
    def test_hot_event_gets_media_factor(self) -> None:
        factors = builder.build_success_factors(_event(hotness=85))
        assert len(factors) == 4
        assert factors[-1]["title"] == "媒体推动"

    def test_regular_event(self) -> None:
        assert len(builder.build_success_factors(_event(hotness=70))) == 3
