"""Tests for the in-process TTL cache."""

from core.cache import TTLCache


class TestTTLCache:
    """Entries expire by an injected clock; values are copied on the way in and out."""

    def test_set_and_get(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("k", {"a": 1}, ttl_seconds=10)
        assert cache.get("k") == {"a": 1}

    def test_miss(self, clock):
        assert TTLCache(clock=clock).get("nope") is None

    def test_expiry(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("k", 1, ttl_seconds=10)
        clock.now += 9.9
        assert cache.get("k") == 1
        clock.now += 0.1
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_returns_copies(self, clock):
        cache = TTLCache(clock=clock)
        value = {"items": [1]}
        cache.set("k", value, ttl_seconds=10)
        value["items"].append(2)
        got = cache.get("k")
        got["items"].append(3)
        assert cache.get("k") == {"items": [1]}

    def test_invalidate_prefix(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("portfolio:a:summary", 1, 10)
        cache.set("portfolio:a:allocation", 2, 10)
        cache.set("portfolio:b:summary", 3, 10)
        assert cache.invalidate("portfolio:a:") == 2
        assert cache.get("portfolio:b:summary") == 3

    def test_invalidate_all(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("a", 1, 10)
        cache.set("b", 2, 10)
        assert cache.invalidate() == 2
        assert len(cache) == 0

    def test_eviction_bounds_size(self, clock):
        cache = TTLCache(max_entries=4, clock=clock)
        for i in range(10):
            clock.now += 1
            cache.set(f"k{i}", i, ttl_seconds=100)
        assert len(cache) <= 4
        assert cache.get("k9") == 9

    def test_eviction_drops_expired_first(self, clock):
        """At capacity, the already expired entry goes before any live one."""
        cache = TTLCache(max_entries=2, clock=clock)
        cache.set("short", 1, ttl_seconds=1)
        cache.set("long", 2, ttl_seconds=100)
        clock.now += 5
        cache.set("new", 3, ttl_seconds=100)
        assert cache.get("long") == 2
        assert cache.get("new") == 3
