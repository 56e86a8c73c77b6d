"""
Tests for the TTL cache.
"""

import pytest

from pagecomposer.core.cache import TTLCache


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestTTLCache:

    def test_get_set(self):
        cache = TTLCache(ttl_seconds=10, clock=FakeClock())
        cache.set("a", 1)
        assert cache.get("a") == 1
        assert cache.get("b", "default") == "default"
        assert cache.hits == 1
        assert cache.misses == 1

    def test_entries_expire(self):
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=10, clock=clock)
        cache.set("a", 1)

        clock.now = 9.9
        assert cache.get("a") == 1

        clock.now = 10.0
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_lru_eviction(self):
        cache = TTLCache(ttl_seconds=10, max_entries=2, clock=FakeClock())
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache

    def test_get_or_load_caches_none(self):
        cache = TTLCache(ttl_seconds=10, clock=FakeClock())
        calls = []

        def loader():
            calls.append(1)
            return None

        assert cache.get_or_load("k", loader) is None
        assert cache.get_or_load("k", loader) is None
        assert len(calls) == 1

    def test_invalidate(self):
        cache = TTLCache(ttl_seconds=10, clock=FakeClock())
        cache.set("a", 1)
        cache.set("b", 2)

        cache.invalidate("a")
        assert "a" not in cache
        assert "b" in cache

        cache.invalidate()
        assert len(cache) == 0

    @pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"max_entries": 0}])
    def test_rejects_bad_limits(self, kwargs):
        with pytest.raises(ValueError):
            TTLCache(**kwargs)
