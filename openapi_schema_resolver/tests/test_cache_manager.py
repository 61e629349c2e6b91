from unittest import TestCase

import pytest

from openapi_schema_resolver.pipeline import CacheConfig, ExternalResolutionFailed
from openapi_schema_resolver.pipeline.cache import BoundedCache, CacheManager


def fill(cache, count, prefix="key"):
    for i in range(count):
        cache.set(f"{prefix}{i}", i)


class TestBoundedCache(TestCase):
    """Insertion-order bounded cache"""

    def test_get_set(self):
        cache = BoundedCache("schema", max_size=10)
        cache.set("a", 1)

        self.assertEqual(cache.get("a"), 1)
        self.assertIsNone(cache.get("b"))
        self.assertIn("a", cache)
        self.assertEqual(len(cache), 1)

    def test_percentage_eviction_removes_oldest(self):
        cache = BoundedCache("schema", max_size=100)
        fill(cache, 10)

        evicted = cache.evict_oldest_fraction(0.5)

        self.assertEqual(evicted, 5)
        self.assertEqual(cache.size(), 5)
        self.assertEqual(cache.keys(), ["key5", "key6", "key7", "key8", "key9"])

    def test_percentage_eviction_rounds_down(self):
        cache = BoundedCache("schema", max_size=100)
        fill(cache, 7)

        self.assertEqual(cache.evict_oldest_fraction(0.5), 3)
        self.assertEqual(cache.size(), 4)

    def test_invalid_fraction(self):
        cache = BoundedCache("schema", max_size=10)
        with self.assertRaises(ValueError):
            cache.evict_oldest_fraction(1.5)
        with self.assertRaises(ValueError):
            cache.evict_oldest_fraction(-0.1)

    def test_insert_past_bound_keeps_size_at_bound(self):
        cache = BoundedCache("schema", max_size=10)
        fill(cache, 25)

        self.assertEqual(cache.size(), 10)
        self.assertEqual(cache.keys()[-1], "key24")
        self.assertNotIn("key0", cache)

    def test_overflow_drops_a_tenth(self):
        cache = BoundedCache("schema", max_size=100)
        fill(cache, 15)
        cache.max_size = 10

        evicted = cache.evict_if_full()

        self.assertEqual(evicted, 1)
        self.assertEqual(cache.size(), 14)
        self.assertNotIn("key0", cache)

    def test_overflow_on_large_cache(self):
        cache = BoundedCache("schema", max_size=1000)
        fill(cache, 1000)
        cache.max_size = 500

        self.assertEqual(cache.evict_if_full(), 100)
        self.assertEqual(cache.keys()[0], "key100")

    def test_no_eviction_within_bound(self):
        cache = BoundedCache("schema", max_size=10)
        fill(cache, 10)

        self.assertEqual(cache.evict_if_full(), 0)
        self.assertEqual(cache.size(), 10)

    def test_disabled_cache_misses(self):
        cache = BoundedCache("schema", max_size=10, enabled=False)
        cache.set("a", 1)

        self.assertIsNone(cache.get("a"))
        self.assertEqual(cache.size(), 0)
        self.assertNotIn("a", cache)

    def test_on_evict_callback(self):
        evictions = []
        cache = BoundedCache("reference", max_size=10, on_evict=lambda name, count: evictions.append((name, count)))
        fill(cache, 10)

        cache.evict_oldest_fraction(0.3)
        cache.evict_oldest_fraction(0.0)

        self.assertEqual(evictions, [("reference", 3)])

    def test_clear(self):
        cache = BoundedCache("schema", max_size=10)
        fill(cache, 5)
        cache.clear()

        self.assertEqual(cache.size(), 0)


class TestCacheManager(TestCase):
    """The three caches and the external failure store"""

    def test_stats(self):
        manager = CacheManager(CacheConfig(max_size=20))
        fill(manager.schemas, 3)
        fill(manager.references, 2)

        self.assertEqual(
            manager.stats(),
            {"schemas": 3, "compositions": 0, "references": 2, "max_size": 20, "enabled": True},
        )
        self.assertEqual(manager.total_size(), 5)

    def test_caches_are_independent(self):
        manager = CacheManager()
        manager.schemas.set("k", "schema")
        manager.references.set("k", "reference")

        self.assertEqual(manager.schemas.get("k"), "schema")
        self.assertEqual(manager.references.get("k"), "reference")
        self.assertIsNone(manager.compositions.get("k"))

    def test_clear_all(self):
        manager = CacheManager()
        for cache in manager.caches:
            fill(cache, 4)

        manager.clear_all()

        self.assertEqual(manager.total_size(), 0)

    def test_evict_percentage_across_caches(self):
        manager = CacheManager()
        fill(manager.schemas, 10)
        fill(manager.compositions, 4)
        fill(manager.references, 1)

        evicted = manager.evict_percentage(0.5)

        self.assertEqual(evicted, 7)
        self.assertEqual(manager.stats()["schemas"], 5)
        self.assertEqual(manager.stats()["compositions"], 2)
        self.assertEqual(manager.stats()["references"], 1)

    def test_configure_max_size_trims(self):
        manager = CacheManager()
        fill(manager.schemas, 30)

        manager.configure(max_size=10)

        self.assertEqual(manager.schemas.size(), 10)
        self.assertEqual(manager.schemas.keys()[0], "key20")
        self.assertEqual(manager.stats()["max_size"], 10)

    def test_configure_rejects_non_positive_size(self):
        manager = CacheManager()
        with self.assertRaises(ValueError):
            manager.configure(max_size=0)

    def test_configure_disable(self):
        manager = CacheManager()
        manager.configure(enabled=False)
        manager.schemas.set("a", 1)

        self.assertIsNone(manager.schemas.get("a"))
        self.assertFalse(manager.stats()["enabled"])

    def test_failures_not_remembered_by_default(self):
        manager = CacheManager()
        manager.remember_failure("1:x.yaml#/components/schemas/A", ExternalResolutionFailed("boom"))

        self.assertIsNone(manager.get_failure("1:x.yaml#/components/schemas/A"))

    def test_failures_remembered_when_enabled(self):
        manager = CacheManager(CacheConfig(cache_external_failures=True))
        error = ExternalResolutionFailed("boom")
        manager.remember_failure("key", error)

        self.assertIs(manager.get_failure("key"), error)
        # Failures never count as cached values
        self.assertEqual(manager.total_size(), 0)


@pytest.mark.parametrize("size, fraction, remaining", [(10, 0.5, 5), (10, 0.1, 9), (3, 0.5, 2), (0, 0.5, 0), (8, 1.0, 0)])
def test_percentage_eviction_sizes(size, fraction, remaining):
    cache = BoundedCache("schema", max_size=100)
    fill(cache, size)
    cache.evict_oldest_fraction(fraction)
    assert cache.size() == remaining
