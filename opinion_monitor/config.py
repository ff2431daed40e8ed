"""Package-wide configuration derived from shared settings."""

from __future__ import annotations

import os
from datetime import timedelta, timezone

from .settings import DATA_ROOT, get_env, get_env_bool, get_env_int, get_env_list

CACHE_DIR = DATA_ROOT / "cache"
EVENTS_DIR = DATA_ROOT / "events"

# 时区：所有日历边界与标签都按本地时间计算
TZ_OFFSET_HOURS = get_env_int("EVENTS_TZ_OFFSET_HOURS", 8)
if TZ_OFFSET_HOURS is None:
    TZ_OFFSET_HOURS = 8
LOCAL_TZ = timezone(timedelta(hours=TZ_OFFSET_HOURS))
SCHEDULER_TIMEZONE = get_env("SCHEDULER_TIMEZONE", "Asia/Shanghai") or "Asia/Shanghai"

# 缓存
CACHE_BACKEND = (get_env("CACHE_BACKEND", "memory") or "memory").lower()
CACHE_SINGLEFLIGHT = get_env_bool("CACHE_SINGLEFLIGHT", True)
CACHE_TTL_SHORT = get_env_int("CACHE_TTL_SHORT", 60) or 60
CACHE_TTL_MEDIUM = get_env_int("CACHE_TTL_MEDIUM", 300) or 300
CACHE_TTL_LONG = get_env_int("CACHE_TTL_LONG", 1800) or 1800
CACHE_TTL_VERY_LONG = get_env_int("CACHE_TTL_VERY_LONG", 3600) or 3600

# 调度配置
CACHE_WARM_ENABLED = get_env_bool("CACHE_WARM_ENABLED", True)
CACHE_WARM_INTERVAL_MINUTES = max(1, get_env_int("CACHE_WARM_INTERVAL_MINUTES", 5) or 5)
CACHE_WARM_RANGES = get_env_list("CACHE_WARM_RANGES", ["today", "7d", "30d"])
CACHE_PURGE_INTERVAL_MINUTES = max(1, get_env_int("CACHE_PURGE_INTERVAL_MINUTES", 10) or 10)

REGION_LIST = [
    "北京",
    "天津",
    "河北",
    "山西",
    "内蒙古",
    "辽宁",
    "吉林",
    "黑龙江",
    "上海",
    "江苏",
    "浙江",
    "安徽",
    "福建",
    "江西",
    "山东",
    "河南",
    "湖北",
    "湖南",
    "广东",
    "广西",
    "海南",
    "重庆",
    "四川",
    "贵州",
    "云南",
    "西藏",
    "陕西",
    "甘肃",
    "青海",
    "宁夏",
    "新疆",
    "香港",
    "澳门",
    "台湾",
    "国外",
    "未知",
]
OVERSEAS_PREFIXES = ("海外", "其他", "国外")

ALLOWED_ORIGINS = os.environ.get("ALLOWED_ORIGINS", "*")

__all__ = [
    "CACHE_DIR",
    "EVENTS_DIR",
    "TZ_OFFSET_HOURS",
    "LOCAL_TZ",
    "SCHEDULER_TIMEZONE",
    "CACHE_BACKEND",
    "CACHE_SINGLEFLIGHT",
    "CACHE_TTL_SHORT",
    "CACHE_TTL_MEDIUM",
    "CACHE_TTL_LONG",
    "CACHE_TTL_VERY_LONG",
    "CACHE_WARM_ENABLED",
    "CACHE_WARM_INTERVAL_MINUTES",
    "CACHE_WARM_RANGES",
    "CACHE_PURGE_INTERVAL_MINUTES",
    "REGION_LIST",
    "OVERSEAS_PREFIXES",
    "ALLOWED_ORIGINS",
]
