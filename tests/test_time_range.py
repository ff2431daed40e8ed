"""Unit tests for time-range resolution, granularity and bucketing."""

from datetime import datetime, timedelta

import pytest

from opinion_monitor import time_range
from opinion_monitor.config import LOCAL_TZ
from opinion_monitor.errors import InvalidTimeRange

from conftest import NOW


def _local(*args) -> datetime:
    return datetime(*args, tzinfo=LOCAL_TZ)


class TestResolveCalendar:
    def test_today_spans_local_day(self) -> None:
        window = time_range.resolve("today", now=NOW)
        assert window.start == _local(2024, 6, 12)
        assert (window.start.hour, window.start.minute, window.start.second, window.start.microsecond) == (0, 0, 0, 0)
        assert window.end == _local(2024, 6, 12, 23, 59, 59, 999000)

    def test_yesterday_ends_one_ms_before_today(self) -> None:
        today = time_range.resolve("today", now=NOW)
        yesterday = time_range.resolve("yesterday", now=NOW)
        assert yesterday.end == today.start - timedelta(milliseconds=1)
        assert yesterday.start == _local(2024, 6, 11)

    def test_this_week_starts_monday(self) -> None:
        window = time_range.resolve("thisWeek", now=NOW)
        assert window.start == _local(2024, 6, 10)
        assert window.end == NOW

    def test_last_week(self) -> None:
        window = time_range.resolve("lastWeek", now=NOW)
        assert window.start == _local(2024, 6, 3)
        assert window.end == _local(2024, 6, 9, 23, 59, 59, 999000)

    def test_last_month_handles_short_february(self) -> None:
        window = time_range.resolve("lastMonth", now=_local(2024, 3, 31, 9))
        assert window.start == _local(2024, 2, 1)
        assert window.end == _local(2024, 2, 29, 23, 59, 59, 999000)

    def test_quarters(self) -> None:
        this_quarter = time_range.resolve("thisQuarter", now=NOW)
        last_quarter = time_range.resolve("lastQuarter", now=NOW)
        assert this_quarter.start == _local(2024, 4, 1)
        assert last_quarter.start == _local(2024, 1, 1)
        assert last_quarter.end == _local(2024, 3, 31, 23, 59, 59, 999000)

    def test_last_year(self) -> None:
        window = time_range.resolve("lastYear", now=NOW)
        assert window.start == _local(2023, 1, 1)
        assert window.end == _local(2023, 12, 31, 23, 59, 59, 999000)

    def test_all_starts_at_epoch(self) -> None:
        window = time_range.resolve("all", now=NOW)
        assert window.start == time_range.EPOCH
        assert window.end == NOW


class TestResolveDurations:
    @pytest.mark.parametrize("token,delta", [("1h", timedelta(hours=1)), ("7d", timedelta(days=7)), ("365d", timedelta(days=365))])
    def test_rolling_window_ends_now(self, token, delta) -> None:
        window = time_range.resolve(token, now=NOW)
        assert window.end == NOW
        assert window.duration == delta

    def test_naive_now_is_local(self) -> None:
        window = time_range.resolve("24h", now=datetime(2024, 6, 12, 15, 30))
        assert window.end == NOW

    @pytest.mark.parametrize("token", ["2w", "", None, "TODAY"])
    def test_unknown_token_rejected(self, token) -> None:
        with pytest.raises(InvalidTimeRange):
            time_range.resolve(token, now=NOW)

    def test_invalid_range_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            time_range.granularity("fortnight")


class TestGranularity:
    @pytest.mark.parametrize(
        "token,unit",
        [
            ("24h", time_range.HOUR),
            ("today", time_range.HOUR),
            ("7d", time_range.DAY),
            ("thisMonth", time_range.DAY),
            ("30d", time_range.WEEK),
            ("thisQuarter", time_range.WEEK),
            ("180d", time_range.MONTH),
            ("all", time_range.MONTH),
        ],
    )
    def test_mapping(self, token, unit) -> None:
        assert time_range.granularity(token) == unit

    def test_every_token_has_granularity(self) -> None:
        tokens = list(time_range.CALENDAR_TOKENS) + list(time_range.DURATION_TOKENS)
        assert all(time_range.is_valid(token) for token in tokens)


class TestPreviousAndChange:
    def test_previous_window_abuts_current(self) -> None:
        current = time_range.resolve("7d", now=NOW)
        prior = time_range.previous("7d", now=NOW)
        assert prior.start == NOW - timedelta(days=14)
        assert prior.end == current.start - timedelta(milliseconds=1)

    def test_change_rate(self) -> None:
        assert time_range.change_rate(150, 100) == 50.0
        assert time_range.change_rate(50, 100) == -50.0

    def test_change_rate_from_zero(self) -> None:
        assert time_range.change_rate(5, 0) == 100.0
        assert time_range.change_rate(0, 0) == 0.0


class TestBuckets:
    def test_truncate_week_goes_to_monday(self) -> None:
        assert time_range.truncate(NOW, time_range.WEEK) == _local(2024, 6, 10)

    def test_truncate_hour_and_month(self) -> None:
        assert time_range.truncate(NOW, time_range.HOUR) == _local(2024, 6, 12, 15)
        assert time_range.truncate(NOW, time_range.MONTH) == _local(2024, 6, 1)

    def test_truncate_unknown_unit(self) -> None:
        with pytest.raises(ValueError):
            time_range.truncate(NOW, "decade")

    def test_labels(self) -> None:
        assert time_range.format_label(NOW, time_range.HOUR) == "6月12日 15时"
        assert time_range.format_label(NOW, time_range.DAY) == "6月12日"
        assert time_range.format_label(NOW, time_range.WEEK) == "第2周"
        assert time_range.format_label(NOW, time_range.MONTH) == "6月"

    def test_localize_converts_aware_timestamps(self) -> None:
        utc = datetime(2024, 6, 12, 7, 30, tzinfo=time_range.EPOCH.tzinfo)
        assert time_range.localize(utc) == NOW
        assert time_range.localize(utc).utcoffset() == timedelta(hours=8)
