"""Cache-aside layer: get-or-compute-and-store over a string-keyed KV backend."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from .config import (
    CACHE_BACKEND,
    CACHE_DIR,
    CACHE_SINGLEFLIGHT,
    CACHE_TTL_LONG,
    CACHE_TTL_MEDIUM,
    CACHE_TTL_SHORT,
    CACHE_TTL_VERY_LONG,
)
from .errors import CacheBackendError
from .storage import read_json, write_json

logger = logging.getLogger(__name__)

KEY_SEPARATOR = ":"


class CacheTTL:
    """TTL tiers in seconds."""

    SHORT = CACHE_TTL_SHORT  # hot lists, realtime sentiment
    MEDIUM = CACHE_TTL_MEDIUM  # statistics, trend series
    LONG = CACHE_TTL_LONG  # categorical / geographic distributions
    VERY_LONG = CACHE_TTL_VERY_LONG  # rarely-changing base data


class CacheKeys:
    EVENT_LIST = "event:detail"
    HOT_EVENTS = "event:hot"
    CATEGORIES = "event:categories"
    TREND = "event:trend"
    TIME_SERIES = "event:timeseries"
    TRENDS = "event:trends"
    KEYWORDS = "event:keywords"
    INFLUENCE_USERS = "event:influence_users"
    GEOGRAPHIC = "event:geographic"


def _clone(value: Any) -> Any:
    return json.loads(json.dumps(value, ensure_ascii=False))


class CacheBackend(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value or None on miss/expiry."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def delete_prefix(self, prefix: str) -> int:
        """Drop every key starting with ``prefix``; returns how many were removed."""

    def purge_expired(self) -> int:
        return 0


class NullCacheBackend(CacheBackend):
    """Always misses; used when caching is switched off."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, ttl: int) -> None:
        return None

    def delete(self, key: str) -> None:
        return None

    def delete_prefix(self, prefix: str) -> int:
        return 0


class MemoryCacheBackend(CacheBackend):
    """Process-local dict with per-entry expiry."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
        return _clone(value)

    def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            payload = _clone(value)
        except (TypeError, ValueError) as exc:
            raise CacheBackendError(f"value for {key} is not serializable") from exc
        with self._lock:
            self._entries[key] = (self._clock() + ttl, payload)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            matched = [key for key in self._entries if key.startswith(prefix)]
            for key in matched:
                del self._entries[key]
        return len(matched)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)


class JsonFileCacheBackend(CacheBackend):
    """One JSON document per key: ``{key, value, expires_at}``."""

    def __init__(self, root: Optional[Path] = None, *, clock: Callable[[], float] = time.time) -> None:
        self._root = root or CACHE_DIR
        self._clock = clock

    def _path(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self._root / f"{digest}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        try:
            entry = read_json(path, default=None)
        except (OSError, ValueError) as exc:
            raise CacheBackendError(f"cache read failed for {key}") from exc
        if not isinstance(entry, dict) or entry.get("key") != key:
            return None
        if float(entry.get("expires_at") or 0) <= self._clock():
            self.delete(key)
            return None
        return entry.get("value")

    def set(self, key: str, value: Any, ttl: int) -> None:
        entry = {"key": key, "value": value, "expires_at": self._clock() + ttl}
        try:
            write_json(self._path(key), entry)
        except (OSError, TypeError, ValueError) as exc:
            raise CacheBackendError(f"cache write failed for {key}") from exc

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise CacheBackendError(f"cache delete failed for {key}") from exc

    def delete_prefix(self, prefix: str) -> int:
        if not self._root.exists():
            return 0
        removed = 0
        for path in self._root.glob("*.json"):
            try:
                entry = read_json(path, default=None)
            except (OSError, ValueError) as exc:
                raise CacheBackendError(f"cache scan failed at {path.name}") from exc
            if isinstance(entry, dict) and str(entry.get("key", "")).startswith(prefix):
                path.unlink(missing_ok=True)
                removed += 1
        return removed

    def purge_expired(self) -> int:
        if not self._root.exists():
            return 0
        removed = 0
        now = self._clock()
        for path in self._root.glob("*.json"):
            try:
                entry = read_json(path, default=None)
            except (OSError, ValueError):
                logger.warning("Dropping unreadable cache file %s", path.name)
                path.unlink(missing_ok=True)
                removed += 1
                continue
            if not isinstance(entry, dict) or float(entry.get("expires_at") or 0) <= now:
                path.unlink(missing_ok=True)
                removed += 1
        return removed


def create_backend(name: Optional[str] = None) -> CacheBackend:
    kind = (name or CACHE_BACKEND).lower()
    if kind == "memory":
        return MemoryCacheBackend()
    if kind == "file":
        return JsonFileCacheBackend()
    if kind in {"none", "off", "null"}:
        return NullCacheBackend()
    raise ValueError(f"unknown cache backend: {kind!r}")


class CacheService:
    """Cache-aside wrapper with optional per-key de-duplication of concurrent misses."""

    def __init__(self, backend: Optional[CacheBackend] = None, *, singleflight: bool = CACHE_SINGLEFLIGHT) -> None:
        self.backend = backend if backend is not None else create_backend()
        self.singleflight = singleflight
        self._inflight: Dict[str, Future] = {}
        self._inflight_lock = threading.Lock()

    @staticmethod
    def build_key(prefix: str, *params: Any) -> str:
        parts = [prefix]
        parts.extend("" if param is None else str(param) for param in params)
        return KEY_SEPARATOR.join(parts)

    def get(self, key: str) -> Optional[Any]:
        return self.backend.get(key)

    def set(self, key: str, value: Any, ttl: int = CacheTTL.MEDIUM) -> None:
        self.backend.set(key, value, ttl)

    def delete(self, key: str) -> None:
        self.backend.delete(key)

    def delete_prefix(self, prefix: str) -> int:
        removed = self.backend.delete_prefix(prefix)
        logger.debug("Invalidated %d cache entries under %s", removed, prefix)
        return removed

    def get_or_set(self, key: str, factory: Callable[[], Any], ttl: int = CacheTTL.MEDIUM) -> Any:
        cached = self.backend.get(key)
        if cached is not None:
            logger.debug("Cache hit %s", key)
            return cached
        if not self.singleflight:
            return self._compute(key, factory, ttl)

        with self._inflight_lock:
            future = self._inflight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[key] = future
        if not leader:
            logger.debug("Joining in-flight computation for %s", key)
            return _clone(future.result())

        try:
            # another leader may have stored the value between our miss and taking the slot
            value = self.backend.get(key)
            if value is None:
                value = self._compute(key, factory, ttl)
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(value)
            return value
        finally:
            with self._inflight_lock:
                self._inflight.pop(key, None)

    def _compute(self, key: str, factory: Callable[[], Any], ttl: int) -> Any:
        logger.debug("Cache miss %s", key)
        value = factory()
        self.backend.set(key, value, ttl)
        logger.debug("Cached %s for %ss", key, ttl)
        return value

    def purge_expired(self) -> int:
        return self.backend.purge_expired()


__all__ = [
    "CacheTTL",
    "CacheKeys",
    "CacheBackend",
    "NullCacheBackend",
    "MemoryCacheBackend",
    "JsonFileCacheBackend",
    "CacheService",
    "create_backend",
]
