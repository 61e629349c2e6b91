"""
Memory cleanup and streaming configuration.

None of this changes resolution results: it only bounds how much the
caches and the schema enumerator hold at once.
"""

from __future__ import annotations

import logging
from typing import Any

import psutil

from ..cache.cache_manager import CacheManager
from ..config import MemoryConfig
from .performance_tracker import PerformanceTracker

logger = logging.getLogger(__name__)

# Registries larger than this are enumerated in batches of this size in streaming mode
STREAMING_BATCH_SIZE = 50

# Share of every cache dropped by a memory cleanup
MEMORY_CLEANUP_FRACTION = 0.5


def current_memory_usage() -> tuple[int, int]:
    """Resident and virtual memory of the current process, in bytes."""
    info = psutil.Process().memory_info()
    return info.rss, info.vms


class MemoryOptimizer:
    """Memory cleanup hook and processed-schema accounting."""

    def __init__(
        self,
        cache_manager: CacheManager,
        tracker: PerformanceTracker,
        config: MemoryConfig | None = None,
    ):
        self.cache_manager = cache_manager
        self.tracker = tracker
        self.config = config or MemoryConfig()
        self.processed_schemas = 0

    def configure(
        self,
        enabled: bool | None = None,
        memory_threshold: int | None = None,
        streaming_mode: bool | None = None,
    ) -> None:
        if enabled is not None:
            self.config.enabled = enabled
        if memory_threshold is not None:
            if memory_threshold < 0:
                raise ValueError(f"memory_threshold must not be negative, got {memory_threshold}")
            self.config.memory_threshold = memory_threshold
        if streaming_mode is not None:
            self.config.streaming_mode = streaming_mode

    def should_stream(self, schema_count: int) -> bool:
        """Whether a registry of schema_count entries is enumerated in batches."""
        return self.config.streaming_mode and schema_count > STREAMING_BATCH_SIZE

    def record_schema_processed(self) -> None:
        self.processed_schemas += 1
        self.tracker.record_schema_processed()

    def reset_counters(self) -> None:
        self.processed_schemas = 0

    def perform_memory_cleanup(self, force: bool = False) -> int:
        """Evict part of every cache when memory use reaches the threshold.

        Args:
            force: Evict even if memory use is below the threshold

        Returns:
            Number of evicted cache entries (0 when memory optimization is disabled)
        """
        if not self.config.enabled:
            return 0

        rss, _ = current_memory_usage()
        if not force and rss < self.config.memory_threshold:
            return 0

        with self.tracker.track("memoryCleanup"):
            evicted = self.cache_manager.evict_percentage(MEMORY_CLEANUP_FRACTION)
        self.tracker.take_memory_snapshot()
        logger.warning(
            "Memory cleanup evicted %d cache entries (rss=%.1f MB, threshold=%.1f MB)",
            evicted,
            rss / 1024 / 1024,
            self.config.memory_threshold / 1024 / 1024,
        )
        return evicted

    def get_memory_stats(self) -> dict[str, Any]:
        rss, vms = current_memory_usage()
        return {
            "heap_used": rss,
            "heap_total": vms,
            "processed_schemas": self.processed_schemas,
            "cache_size": self.cache_manager.total_size(),
            "memory_optimized": self.config.enabled,
            "streaming_mode": self.config.streaming_mode,
        }
