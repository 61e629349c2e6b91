"""
Bounded caches for resolved schemas, compositions and references.

Eviction is by insertion order, not recency: when a cache grows past its
bound the oldest tenth of its entries is dropped in one go.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from typing import Any

from ..config import CacheConfig
from ..errors import SchemaResolutionError

logger = logging.getLogger(__name__)

# Fraction of entries dropped when a cache exceeds its bound
OVERFLOW_EVICTION_FRACTION = 0.1

CACHE_TYPES = ("schema", "composition", "reference")


class BoundedCache:
    """An insertion-ordered key/value store with a size bound.

    Entries are never updated in place; a key is written once with a
    complete value and stays until it is evicted or cleared.
    """

    def __init__(
        self,
        name: str,
        max_size: int,
        enabled: bool = True,
        on_evict: Callable[[str, int], None] | None = None,
    ):
        """
        Initialize the cache.

        Args:
            name: Cache type, reported to on_evict
            max_size: Maximum number of entries kept after an insert
            enabled: When False every get misses and set is ignored
            on_evict: Called with (name, count) whenever entries are evicted
        """
        self.name = name
        self.max_size = max_size
        self.enabled = enabled
        self._on_evict = on_evict
        self._entries: dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.enabled and key in self._entries

    def size(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        """Keys from oldest to newest."""
        return list(self._entries)

    def get(self, key: str) -> Any | None:
        if not self.enabled:
            return None
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        if not self.enabled:
            return
        self._entries[key] = value
        self.evict_if_full()

    def clear(self) -> None:
        self._entries.clear()

    def evict_if_full(self) -> int:
        """Drop the oldest ~10% of entries when the cache exceeds max_size.

        Returns:
            Number of evicted entries
        """
        size = len(self._entries)
        if size <= self.max_size:
            return 0
        # Inserts add one entry at a time, so dropping at least one keeps size <= max_size
        return self._evict_oldest(max(1, math.floor(size * OVERFLOW_EVICTION_FRACTION)))

    def evict_oldest_fraction(self, fraction: float) -> int:
        """Drop exactly floor(size * fraction) of the oldest entries.

        Args:
            fraction: Share of entries to drop, between 0 and 1

        Returns:
            Number of evicted entries
        """
        if not 0 <= fraction <= 1:
            raise ValueError(f"Eviction fraction must be between 0 and 1, got {fraction}")
        return self._evict_oldest(math.floor(len(self._entries) * fraction))

    def shrink_to(self, max_size: int) -> int:
        """Apply a new bound, dropping the oldest entries that no longer fit."""
        self.max_size = max_size
        return self._evict_oldest(len(self._entries) - max_size)

    def _evict_oldest(self, count: int) -> int:
        if count <= 0:
            return 0
        for key in list(self._entries)[:count]:
            del self._entries[key]
        if self._on_evict is not None:
            self._on_evict(self.name, count)
        logger.debug("Evicted %d entries from %s cache", count, self.name)
        return count


class CacheManager:
    """Owns the schema, composition and reference caches.

    Failed external references are kept in a separate store so that they
    can be re-raised without ever being returned as a resolved value.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        on_evict: Callable[[str, int], None] | None = None,
    ):
        self.config = config or CacheConfig()
        self.schemas = BoundedCache("schema", self.config.max_size, self.config.enabled, on_evict)
        self.compositions = BoundedCache("composition", self.config.max_size, self.config.enabled, on_evict)
        self.references = BoundedCache("reference", self.config.max_size, self.config.enabled, on_evict)
        self._failures = BoundedCache("failure", self.config.max_size, self.config.enabled)
        # Raw mappings adopted as documents; always on so a mapping keeps its identity
        self.documents = BoundedCache("document", self.config.max_size)

    @property
    def caches(self) -> list[BoundedCache]:
        return [self.schemas, self.compositions, self.references]

    def configure(self, enabled: bool | None = None, max_size: int | None = None) -> None:
        """Update caching options.

        Args:
            enabled: Turn every cache on or off
            max_size: New per-cache bound; existing caches are trimmed to it
        """
        if max_size is not None:
            if max_size < 1:
                raise ValueError(f"Cache max_size must be positive, got {max_size}")
            self.config.max_size = max_size
            for cache in [*self.caches, self._failures, self.documents]:
                cache.shrink_to(max_size)
        if enabled is not None:
            self.config.enabled = enabled
            for cache in [*self.caches, self._failures]:
                cache.enabled = enabled

    @property
    def cache_external_failures(self) -> bool:
        return self.config.enabled and self.config.cache_external_failures

    def remember_failure(self, key: str, error: SchemaResolutionError) -> None:
        if self.cache_external_failures:
            self._failures.set(key, error)

    def get_failure(self, key: str) -> SchemaResolutionError | None:
        if not self.cache_external_failures:
            return None
        return self._failures.get(key)

    def clear_all(self) -> None:
        """Empty every cache unconditionally."""
        for cache in [*self.caches, self._failures, self.documents]:
            cache.clear()

    def evict_percentage(self, fraction: float) -> int:
        """Drop the oldest fraction of entries from every cache.

        Returns:
            Total number of evicted entries
        """
        return sum(cache.evict_oldest_fraction(fraction) for cache in self.caches)

    def total_size(self) -> int:
        return sum(cache.size() for cache in self.caches)

    def stats(self) -> dict[str, Any]:
        """Current sizes and the configured bound."""
        return {
            "schemas": self.schemas.size(),
            "compositions": self.compositions.size(),
            "references": self.references.size(),
            "max_size": self.config.max_size,
            "enabled": self.config.enabled,
        }
