from __future__ import annotations

import logging
from typing import Iterable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from .cache import CacheKeys, CacheService
from .config import (
    CACHE_PURGE_INTERVAL_MINUTES,
    CACHE_WARM_ENABLED,
    CACHE_WARM_INTERVAL_MINUTES,
    CACHE_WARM_RANGES,
    SCHEDULER_TIMEZONE,
)
from .errors import OpinionMonitorError
from .events.service import EventsService

logger = logging.getLogger(__name__)

_SCHEDULER: Optional[BackgroundScheduler] = None


def warm_trend_cache(service: EventsService, ranges: Iterable[str] = CACHE_WARM_RANGES) -> int:
    """Recompute trend series for the dashboard's default ranges; returns how many succeeded."""
    cache = service.analytics.cache
    warmed = 0
    for token in ranges:
        try:
            cache.delete(CacheService.build_key(CacheKeys.TREND, token))
            service.analytics.get_trend_data(token)
        except OpinionMonitorError:
            logger.exception("Trend cache warm-up failed for %s", token)
            continue
        warmed += 1
    logger.debug("Trend cache warmed for %d range(s)", warmed)
    return warmed


def purge_expired_cache(cache: CacheService) -> int:
    try:
        removed = cache.purge_expired()
    except OpinionMonitorError:
        logger.exception("Cache purge failed")
        return 0
    if removed:
        logger.info("Purged %d expired cache entries", removed)
    return removed


def start_scheduler(service: EventsService) -> Optional[BackgroundScheduler]:
    global _SCHEDULER
    if _SCHEDULER:
        return _SCHEDULER
    if not CACHE_WARM_ENABLED:
        logger.info("Cache scheduler disabled via CACHE_WARM_ENABLED")
        return None
    scheduler = BackgroundScheduler(timezone=SCHEDULER_TIMEZONE)
    scheduler.add_job(
        warm_trend_cache,
        "interval",
        minutes=CACHE_WARM_INTERVAL_MINUTES,
        args=[service],
        id="trend_cache_warm",
    )
    scheduler.add_job(
        purge_expired_cache,
        "interval",
        minutes=CACHE_PURGE_INTERVAL_MINUTES,
        args=[service.analytics.cache],
        id="cache_purge",
    )
    scheduler.start()
    _SCHEDULER = scheduler
    logger.info(
        "Scheduler started (warm_interval=%sm ranges=%s purge_interval=%sm)",
        CACHE_WARM_INTERVAL_MINUTES,
        ",".join(CACHE_WARM_RANGES),
        CACHE_PURGE_INTERVAL_MINUTES,
    )
    return scheduler


def stop_scheduler() -> None:
    global _SCHEDULER
    if _SCHEDULER:
        _SCHEDULER.shutdown(wait=False)
        _SCHEDULER = None
