"""Tests for the cache warm-up and purge jobs."""

from opinion_monitor.cache import CacheService, MemoryCacheBackend
from opinion_monitor.events.service import EventsService
from opinion_monitor.scheduler import purge_expired_cache, start_scheduler, warm_trend_cache

from conftest import NOW


class TestWarmTrendCache:
    def test_stale_entry_replaced(self, service, cache) -> None:
        cache.set("event:trend:7d", {"categories": ["stale"], "series": []}, 300)
        assert warm_trend_cache(service, ["7d"]) == 1
        assert cache.get("event:trend:7d")["categories"] != ["stale"]

    def test_bad_range_skipped(self, service, cache) -> None:
        assert warm_trend_cache(service, ["today", "2w", "30d"]) == 2
        assert cache.get("event:trend:30d") is not None


class TestPurge:
    def test_purges_expired_entries(self, provider) -> None:
        ticks = [0.0]
        cache = CacheService(MemoryCacheBackend(clock=lambda: ticks[0]))
        cache.set("a", 1, 10)
        cache.set("b", 2, 1000)
        ticks[0] = 50.0
        assert purge_expired_cache(cache) == 1
        assert cache.get("b") == 2


def test_scheduler_disabled_in_tests(provider, cache) -> None:
    service = EventsService.create(provider, cache, now=lambda: NOW)
    assert start_scheduler(service) is None
