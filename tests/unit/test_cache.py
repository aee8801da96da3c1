"""Unit tests for cache utilities."""
import time

from bookaway.cache import CatalogCache, make_cache_key


class TestCatalogCache:
    """Test the TTL cache wrapper."""

    def test_get_or_load_calls_loader_once(self):
        cache = CatalogCache[dict](ttl=60)
        calls = []

        def loader():
            calls.append(1)
            return {"total": 3}

        assert cache.get_or_load("hotels:page=1", loader) == {"total": 3}
        assert cache.get_or_load("hotels:page=1", loader) == {"total": 3}
        assert len(calls) == 1
        assert len(cache) == 1

    def test_get_nonexistent_key(self):
        assert CatalogCache[str](ttl=60).get("missing") is None

    def test_ttl_expiration(self):
        cache = CatalogCache[str](ttl=1)
        cache.get_or_load("hotels:", lambda: "fresh")

        time.sleep(1.1)

        assert cache.get("hotels:") is None
        assert cache.get_or_load("hotels:", lambda: "reloaded") == "reloaded"

    def test_clear(self):
        cache = CatalogCache[str](ttl=60)
        cache.get_or_load("hotels:", lambda: "a")
        cache.clear()
        assert len(cache) == 0

    def test_maxsize_evicts(self):
        cache = CatalogCache[str](ttl=60, maxsize=2)
        for key in ("a", "b", "c"):
            cache.get_or_load(key, lambda key=key: key)

        assert len(cache) == 2
        assert cache.get("c") == "c"


class TestMakeCacheKey:
    def test_normalises_and_sorts(self):
        key = make_cache_key("hotels", {"page": 1, "city": " Goa ", "sort": None, "name": ""})
        assert key == "hotels:city=goa&page=1"

    def test_equivalent_queries_share_a_key(self):
        assert make_cache_key("hotels", {"city": "GOA", "page": 1}) == make_cache_key(
            "hotels", {"page": 1, "city": "goa"}
        )
