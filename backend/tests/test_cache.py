"""
Tests for the TTL cache
"""

from lms.utils.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestTTLCache:

    def test_entries_expire(self):
        clock = FakeClock()
        cache = TTLCache(default_ttl=10, clock=clock)
        cache.put("key", "value")

        assert cache.get("key") == "value"
        clock.now += 11
        assert cache.get("key") is None
        assert "key" not in cache

    def test_remember_computes_once(self):
        cache = TTLCache()
        calls = []

        def factory():
            calls.append(1)
            return {"loaded": True}

        assert cache.remember("pack", factory) == {"loaded": True}
        assert cache.remember("pack", factory) == {"loaded": True}
        assert len(calls) == 1

    def test_remember_caches_falsy_values(self):
        cache = TTLCache()
        calls = []

        def factory():
            calls.append(1)
            return {}

        cache.remember("empty", factory)
        cache.remember("empty", factory)
        assert len(calls) == 1

    def test_forget_prefix(self):
        cache = TTLCache()
        cache.put("blocks.dashboard.1", [1])
        cache.put("blocks.course.2", [2])
        cache.put("other", 3)

        cache.forget_prefix("blocks.")

        assert len(cache) == 1
        assert cache.get("other") == 3

    def test_clear(self):
        cache = TTLCache()
        cache.put("a", 1)
        cache.clear()
        assert len(cache) == 0
