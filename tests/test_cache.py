"""Tests for the in-process query cache - no DB required."""

import time

from intranet.infrastructure.cache import (
    CacheInvalidation,
    CacheKeys,
    MemoryCache,
    normalize_params,
    page_cache,
    search_cache,
    stats_cache,
    with_cache,
)


def test_get_returns_stored_value():
    cache = MemoryCache("t", max_size=10, default_ttl=60)
    cache.set("a", {"x": 1})
    assert cache.get("a") == {"x": 1}
    assert cache.get("missing") is None


def test_entries_expire_after_ttl(monkeypatch):
    cache = MemoryCache("t", max_size=10, default_ttl=60)
    now = time.monotonic()
    monkeypatch.setattr("intranet.infrastructure.cache.time.monotonic", lambda: now)
    cache.set("a", 1, ttl=5)
    monkeypatch.setattr("intranet.infrastructure.cache.time.monotonic", lambda: now + 6)
    assert cache.get("a") is None
    assert cache.keys() == []


def test_full_cache_evicts_oldest_first():
    cache = MemoryCache("t", max_size=2, default_ttl=60)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert cache.keys() == ["b", "c"]


def test_overwriting_a_key_does_not_evict():
    cache = MemoryCache("t", max_size=2, default_ttl=60)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    assert sorted(cache.keys()) == ["a", "b"]
    assert cache.get("a") == 10


def test_cleanup_removes_only_expired(monkeypatch):
    cache = MemoryCache("t", max_size=10, default_ttl=60)
    now = time.monotonic()
    monkeypatch.setattr("intranet.infrastructure.cache.time.monotonic", lambda: now)
    cache.set("short", 1, ttl=1)
    cache.set("long", 2, ttl=100)
    monkeypatch.setattr("intranet.infrastructure.cache.time.monotonic", lambda: now + 2)
    assert cache.cleanup() == 1
    assert cache.keys() == ["long"]


def test_stats_count_hits_and_misses():
    cache = MemoryCache("t", max_size=10, default_ttl=60)
    cache.set("a", 1)
    cache.get("a")
    cache.get("b")
    stats = cache.stats()
    assert stats["size"] == 1
    assert stats["hits"] == 1
    assert stats["misses"] == 1


def test_normalize_drops_empty_values_and_sorts_tags():
    assert normalize_params({"query": "  hello   world ", "tags": ["b", "a", "b", " "], "author_id": None, "page_type": ""}) == {
        "query": "hello world",
        "tags": ["a", "b"],
    }


def test_equivalent_parameter_sets_share_a_key():
    first = CacheKeys.page_list({"query": "policy ", "tags": ["hr", "it"], "page": 1, "author_id": None})
    second = CacheKeys.page_list({"page": 1, "tags": ["it", "hr", "hr"], "query": " policy"})
    assert first == second


def test_different_parameter_sets_do_not_collide():
    assert CacheKeys.page_list({"page": 1}) != CacheKeys.page_list({"page": 2})
    assert CacheKeys.page_list({"query": "a"}) != CacheKeys.search({"query": "a"})


def test_with_cache_calls_fetcher_once():
    cache = MemoryCache("t", max_size=10, default_ttl=60)
    calls = []

    def fetch():
        calls.append(1)
        return ["value"]

    assert with_cache("k", fetch, cache) == ["value"]
    assert with_cache("k", fetch, cache) == ["value"]
    assert len(calls) == 1


def test_with_cache_drops_result_invalidated_during_fetch():
    def fetch():
        # A write commits and invalidates while this read is still running
        CacheInvalidation.page_changed(3)
        return {"title": "stale"}

    assert with_cache(CacheKeys.page(3), fetch, page_cache) == {"title": "stale"}
    assert page_cache.get(CacheKeys.page(3)) is None

    assert with_cache(CacheKeys.page(3), lambda: {"title": "fresh"}, page_cache) == {"title": "fresh"}
    assert page_cache.get(CacheKeys.page(3)) == {"title": "fresh"}


def test_set_with_outdated_generation_is_skipped():
    cache = MemoryCache("t", max_size=10, default_ttl=60)
    generation = cache.generation

    cache.delete("other")

    assert cache.set("k", 1, generation=generation) is False
    assert cache.get("k") is None
    assert cache.set("k", 2, generation=cache.generation) is True
    assert cache.get("k") == 2


def test_page_invalidation_drops_page_and_list_entries():
    page_cache.set(CacheKeys.page(7), {"id": 7})
    page_cache.set(CacheKeys.page(8), {"id": 8})
    page_cache.set(CacheKeys.page_list({"page": 1}), {"pages": []})
    page_cache.set(CacheKeys.page_list({"page": 2}), {"pages": []})

    CacheInvalidation.page(7)

    assert page_cache.get(CacheKeys.page(7)) is None
    assert page_cache.get(CacheKeys.page(8)) == {"id": 8}
    assert not any(key.startswith("pages:") for key in page_cache.keys())


def test_page_changed_clears_search_and_stats():
    search_cache.set(CacheKeys.tag_list(), [{"tag": "hr", "count": 1}])
    stats_cache.set(CacheKeys.global_stats(), {"totalPages": 1})

    CacheInvalidation.page_changed(1)

    assert search_cache.keys() == []
    assert stats_cache.keys() == []
