"""
In-process query cache.

Three named caches back the page listing, search/tag aggregates and global
stats. Writers call CacheInvalidation after every mutation that touches
Page data; TTLs only bound memory, they are not what keeps reads fresh.
"""

import json
import threading
import time
from typing import Any, Callable, Dict, List, Optional, TypeVar

import structlog

from intranet.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

T = TypeVar("T")


class MemoryCache:
    """Thread-safe dict cache with per-entry TTL and FIFO eviction."""

    def __init__(self, name: str, max_size: int = 1000, default_ttl: float = 300):
        self.name = name
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._entries: Dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        # Bumped by every invalidation; a set computed under an older generation is dropped
        self._generation = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            value, expires_at = entry
            if expires_at <= time.monotonic():
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return value

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def set(self, key: str, value: Any, ttl: Optional[float] = None, generation: Optional[int] = None) -> bool:
        """Store value; with generation given, only if no invalidation happened since it was read."""
        expires_at = time.monotonic() + (self.default_ttl if ttl is None else ttl)
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug("cache_stale_set_skipped", cache=self.name, key=key)
                return False
            if key not in self._entries and len(self._entries) >= self.max_size:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.debug("cache_evicted", cache=self.name, key=oldest)
            self._entries[key] = (value, expires_at)
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            self._generation += 1
            return self._entries.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            self._generation += 1
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def cleanup(self) -> int:
        """Drop expired entries, returning how many were removed."""
        now = time.monotonic()
        with self._lock:
            expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "size": len(self._entries),
                "max_size": self.max_size,
                "default_ttl": self.default_ttl,
                "hits": self._hits,
                "misses": self._misses,
            }


page_cache = MemoryCache("pages", settings.PAGE_CACHE_SIZE, settings.PAGE_CACHE_TTL_SECONDS)
search_cache = MemoryCache("search", settings.SEARCH_CACHE_SIZE, settings.SEARCH_CACHE_TTL_SECONDS)
stats_cache = MemoryCache("stats", settings.STATS_CACHE_SIZE, settings.STATS_CACHE_TTL_SECONDS)

ALL_CACHES = (page_cache, search_cache, stats_cache)


def normalize_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Canonical form of a query parameter set, used for cache keys.

    Empty values are dropped, text is stripped with inner whitespace collapsed,
    and list values are de-duplicated and sorted, so that requests which would
    run the same query share one entry.
    """
    normalized: Dict[str, Any] = {}
    for key, value in params.items():
        if isinstance(value, str):
            value = " ".join(value.split())
        elif isinstance(value, (list, tuple, set)):
            value = sorted({" ".join(str(item).split()) for item in value} - {""})
        if value is None or value == "" or value == []:
            continue
        normalized[key] = value
    return normalized


def _stable(params: Dict[str, Any]) -> str:
    return json.dumps(normalize_params(params), sort_keys=True, separators=(",", ":"), default=str)


class CacheKeys:
    """Key builders; list and search keys go through normalize_params."""

    PAGE_LIST_PREFIX = "pages:"

    @staticmethod
    def page(page_id: int) -> str:
        return f"page:{page_id}"

    @staticmethod
    def page_list(params: Dict[str, Any]) -> str:
        return f"{CacheKeys.PAGE_LIST_PREFIX}list:{_stable(params)}"

    @staticmethod
    def page_comments(page_id: int) -> str:
        return f"page:{page_id}:comments"

    @staticmethod
    def search(params: Dict[str, Any]) -> str:
        return f"search:{_stable(params)}"

    @staticmethod
    def tag_list() -> str:
        return "tags:list"

    @staticmethod
    def global_stats() -> str:
        return "stats:global"


def with_cache(key: str, fetcher: Callable[[], T], cache: MemoryCache, ttl: Optional[float] = None) -> T:
    """Return the cached value for key, computing and storing it on a miss."""
    cached = cache.get(key)
    if cached is not None:
        return cached
    generation = cache.generation
    value = fetcher()
    if value is not None:
        cache.set(key, value, ttl, generation=generation)
    return value


class CacheInvalidation:
    """Explicit invalidation hooks, called after each committed write."""

    @staticmethod
    def page(page_id: Optional[int] = None) -> None:
        if page_id is not None:
            page_cache.delete(CacheKeys.page(page_id))
        dropped = page_cache.delete_prefix(CacheKeys.PAGE_LIST_PREFIX)
        logger.debug("cache_invalidated", scope="page", page_id=page_id, list_entries=dropped)

    @staticmethod
    def page_comments(page_id: int) -> None:
        page_cache.delete(CacheKeys.page_comments(page_id))

    @staticmethod
    def search() -> None:
        search_cache.clear()

    @staticmethod
    def stats() -> None:
        stats_cache.clear()

    @staticmethod
    def page_changed(page_id: Optional[int] = None) -> None:
        """Everything derived from Page rows: lists, search, tags and stats."""
        CacheInvalidation.page(page_id)
        CacheInvalidation.search()
        CacheInvalidation.stats()


def cleanup_all() -> int:
    removed = sum(cache.cleanup() for cache in ALL_CACHES)
    if removed:
        logger.info("cache_cleanup", removed=removed)
    return removed
