"""Tests for the catalog TTL cache."""

from unittest.mock import patch

from versioning.cache import TTLCache


def test_set_and_get():
    cache = TTLCache(default_ttl=60)
    cache.set("http://catalog", [{"id": "mod-a-1.0.0"}])
    assert cache.get("http://catalog") == [{"id": "mod-a-1.0.0"}]
    assert cache.get("missing") is None


def test_expired_entry_removed():
    cache = TTLCache(default_ttl=60)
    with patch("versioning.cache.time.time", return_value=1000.0):
        cache.set("key", "value")
    with patch("versioning.cache.time.time", return_value=1061.0):
        assert cache.get("key") is None
    assert len(cache) == 0


def test_eviction_keeps_size_bounded():
    cache = TTLCache(default_ttl=60, max_entries=10)
    for i in range(11):
        cache.set(f"k{i}", i)
    assert len(cache) == 10
    assert cache.get("k10") == 10


def test_invalidate_and_clear():
    cache = TTLCache()
    cache.set("a", 1)
    cache.set("b", 2)
    cache.invalidate("a")
    assert cache.get("a") is None
    cache.clear()
    assert len(cache) == 0
