"""
Tests for the in-memory TTL cache.
"""

from newsync.cache import MemoryCache, news_cache_key


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestNewsCacheKey:
    def test_all_when_no_categories(self):
        assert news_cache_key(50, None) == "news_50_all"
        assert news_cache_key(50, []) == "news_50_all"

    def test_categories_sorted(self):
        """Category order should not produce distinct keys."""
        assert news_cache_key(10, ["NFT", "BTC"]) == "news_10_BTC,NFT"
        assert news_cache_key(10, ["BTC", "NFT"]) == news_cache_key(10, ["NFT", "BTC"])

    def test_limit_distinguishes_keys(self):
        assert news_cache_key(10, None) != news_cache_key(20, None)


class TestMemoryCache:
    def test_get_returns_live_entry(self):
        cache = MemoryCache(ttl_seconds=600, clock=FakeClock())
        cache.set("k", [1, 2])
        assert cache.get("k") == [1, 2]
        assert "k" in cache

    def test_entry_expires_after_ttl(self):
        """Entries are live strictly less than TTL after storing."""
        clock = FakeClock()
        cache = MemoryCache(ttl_seconds=600, clock=clock)
        cache.set("k", "v")

        clock.now += 599
        assert cache.get("k") == "v"

        clock.now += 1
        assert cache.get("k") is None
        assert cache.size == 0

    def test_set_refreshes_timestamp(self):
        clock = FakeClock()
        cache = MemoryCache(ttl_seconds=10, clock=clock)
        cache.set("k", "old")
        clock.now += 8
        cache.set("k", "new")
        clock.now += 8
        assert cache.get("k") == "new"

    def test_evicts_least_recently_used(self):
        cache = MemoryCache(max_size=2, clock=FakeClock())
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")  # b is now least recently used
        cache.set("c", 3)

        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache

    def test_delete_and_clear(self):
        cache = MemoryCache(clock=FakeClock())
        cache.set("a", 1)
        cache.set("b", 2)
        cache.delete("a")
        assert cache.get("a") is None
        cache.clear()
        assert cache.size == 0

    def test_stored_at_is_epoch_millis(self):
        cache = MemoryCache(clock=FakeClock(1_234.5))
        cache.set("k", "v")
        assert cache._cache["k"].stored_at == 1_234_500
