"""Unit tests for order-typed snapshot series."""

from datetime import timedelta

import pytest

from opinion_monitor.events.series import ChronologicalSeries, RecencySeries, as_chronological, as_recency

from conftest import NOW, make_snapshot


def _snaps(*days_ago):
    return [make_snapshot("e1", NOW - timedelta(days=d), hotness=float(d)) for d in days_ago]


class TestOrdering:
    def test_recency_rejects_ascending_input(self) -> None:
        with pytest.raises(ValueError):
            RecencySeries(_snaps(3, 2, 1))

    def test_chronological_rejects_descending_input(self) -> None:
        with pytest.raises(ValueError):
            ChronologicalSeries(_snaps(1, 2, 3))

    def test_duplicate_timestamps_rejected(self) -> None:
        with pytest.raises(ValueError):
            RecencySeries(_snaps(1, 1))

    def test_from_unordered_sorts(self) -> None:
        series = RecencySeries.from_unordered(_snaps(2, 5, 1))
        assert [snap.hotness for snap in series] == [1.0, 2.0, 5.0]


class TestViews:
    def test_latest_and_oldest_agree_across_orders(self) -> None:
        recent = RecencySeries.from_unordered(_snaps(1, 2, 3))
        history = recent.chronological()
        assert isinstance(history, ChronologicalSeries)
        assert recent.latest == history.latest
        assert recent.oldest == history.oldest
        assert history.recency() == recent

    def test_empty_series(self) -> None:
        assert RecencySeries().latest is None
        assert ChronologicalSeries().oldest is None

    def test_slices_keep_type(self) -> None:
        recent = RecencySeries.from_unordered(_snaps(1, 2, 3, 4))
        head = recent[:2]
        assert isinstance(head, RecencySeries)
        assert len(head) == 2

    def test_stepped_slices_rejected(self) -> None:
        with pytest.raises(ValueError):
            RecencySeries.from_unordered(_snaps(1, 2, 3))[::2]

    def test_plain_lists_are_not_accepted(self) -> None:
        with pytest.raises(TypeError):
            as_recency(_snaps(1, 2))
        with pytest.raises(TypeError):
            as_chronological(_snaps(1, 2))
