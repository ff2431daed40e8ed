from __future__ import annotations

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Recompute cached trend series once (file cache backend recommended)."
    )
    parser.add_argument(
        "--ranges",
        help="Comma separated time-range tokens, defaults to CACHE_WARM_RANGES",
        default=None,
    )
    parser.add_argument("--purge", help="Also drop expired cache entries", action="store_true")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    from opinion_monitor.config import CACHE_WARM_RANGES
    from opinion_monitor.events.service import EventsService
    from opinion_monitor.scheduler import purge_expired_cache, warm_trend_cache

    ranges = [item.strip() for item in args.ranges.split(",") if item.strip()] if args.ranges else CACHE_WARM_RANGES
    service = EventsService.create()
    warmed = warm_trend_cache(service, ranges)
    print(f"Trend cache warmed for {warmed}/{len(ranges)} range(s)")
    if args.purge:
        removed = purge_expired_cache(service.analytics.cache)
        print(f"Purged {removed} expired cache entries")


if __name__ == "__main__":
    main()
