"""
Performance tracking for schema resolution.

Collects timers, per-cache hit/miss/eviction counters, a processed-schema
counter and memory snapshots, and renders them as a structured report or a
human-readable text report.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import jinja2
import psutil

from ..cache.cache_manager import CACHE_TYPES

CURRENT_DIR = Path(__file__).parent

# Timer name -> PerformanceMetrics attribute accumulating its duration (ms)
TIMED_OPERATIONS = {
    "schemaResolution": "schema_resolution_time",
    "cacheOperation": "cache_operation_time",
    "memoryCleanup": "memory_cleanup_time",
    "streamingEnumeration": "streaming_time",
    "totalProcessing": "total_processing_time",
}


@dataclass
class CacheMetrics:
    """Counters for one cache type."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        return self.hits / self.total_requests if self.total_requests else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {**asdict(self), "total_requests": self.total_requests, "hit_rate": self.hit_rate}


@dataclass
class PerformanceMetrics:
    """Accumulated timings (milliseconds) and counters."""

    total_processing_time: float = 0.0
    schema_resolution_time: float = 0.0
    cache_operation_time: float = 0.0
    memory_cleanup_time: float = 0.0
    streaming_time: float = 0.0
    schemas_processed: int = 0
    peak_memory_usage: int = 0
    memory_cleanup_count: int = 0

    @property
    def average_schema_processing_time(self) -> float:
        if not self.schemas_processed:
            return 0.0
        return self.schema_resolution_time / self.schemas_processed


@dataclass
class PerformanceTracker:
    """Records resolution performance when enabled; every recorder is a no-op otherwise."""

    enabled: bool = False
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    cache_metrics: dict[str, CacheMetrics] = field(default_factory=lambda: {name: CacheMetrics() for name in CACHE_TYPES})
    memory_snapshots: list[int] = field(default_factory=list)
    _timers: dict[str, float] = field(default_factory=dict, repr=False)

    def reset(self) -> None:
        """Reset all metrics."""
        self.metrics = PerformanceMetrics()
        self.cache_metrics = {name: CacheMetrics() for name in CACHE_TYPES}
        self.memory_snapshots = []
        self._timers = {}

    def start_timer(self, operation: str) -> None:
        """Start timing an operation."""
        if self.enabled:
            self._timers[operation] = time.perf_counter()

    def end_timer(self, operation: str) -> float:
        """End timing an operation and record its duration.

        Returns:
            Duration in milliseconds (0.0 when disabled)
        """
        if not self.enabled:
            return 0.0
        started = self._timers.pop(operation, None)
        if started is None:
            raise ValueError(f"Timer '{operation}' was not started")
        duration = (time.perf_counter() - started) * 1000
        self._record_duration(operation, duration)
        return duration

    @contextmanager
    def track(self, operation: str) -> Iterator[None]:
        """Time a block without a named timer, so overlapping calls do not collide."""
        if not self.enabled:
            yield
            return
        started = time.perf_counter()
        try:
            yield
        finally:
            self._record_duration(operation, (time.perf_counter() - started) * 1000)

    def _record_duration(self, operation: str, duration: float) -> None:
        attr = TIMED_OPERATIONS.get(operation)
        if attr is None:
            return
        if operation == "totalProcessing":
            self.metrics.total_processing_time = duration
            return
        setattr(self.metrics, attr, getattr(self.metrics, attr) + duration)
        if operation == "memoryCleanup":
            self.metrics.memory_cleanup_count += 1

    def record_cache_hit(self, cache_type: str) -> None:
        if self.enabled:
            self.cache_metrics[cache_type].hits += 1

    def record_cache_miss(self, cache_type: str) -> None:
        if self.enabled:
            self.cache_metrics[cache_type].misses += 1

    def record_cache_eviction(self, cache_type: str, count: int = 1) -> None:
        if self.enabled and cache_type in self.cache_metrics:
            self.cache_metrics[cache_type].evictions += count

    def update_cache_size(self, cache_type: str, size: int, max_size: int) -> None:
        if self.enabled:
            self.cache_metrics[cache_type].size = size
            self.cache_metrics[cache_type].max_size = max_size

    def record_schema_processed(self) -> None:
        if self.enabled:
            self.metrics.schemas_processed += 1

    def take_memory_snapshot(self) -> None:
        """Record the current resident set size."""
        if not self.enabled:
            return
        rss = psutil.Process().memory_info().rss
        self.memory_snapshots.append(rss)
        self.metrics.peak_memory_usage = max(self.metrics.peak_memory_usage, rss)

    def start_tracking(self) -> None:
        """Start overall performance tracking."""
        self.start_timer("totalProcessing")
        self.take_memory_snapshot()

    def end_tracking(self) -> None:
        """End overall performance tracking."""
        if "totalProcessing" in self._timers:
            self.end_timer("totalProcessing")
        self.take_memory_snapshot()

    def overall_cache_metrics(self) -> CacheMetrics:
        overall = CacheMetrics()
        for cache in self.cache_metrics.values():
            overall.hits += cache.hits
            overall.misses += cache.misses
            overall.evictions += cache.evictions
            overall.size += cache.size
            overall.max_size += cache.max_size
        return overall

    def get_performance_report(self) -> dict[str, Any]:
        """Get a structured, JSON-compatible performance report."""
        overall = self.overall_cache_metrics()
        total_seconds = self.metrics.total_processing_time / 1000
        snapshots = list(self.memory_snapshots)
        current_rss = psutil.Process().memory_info().rss

        summary = asdict(self.metrics)
        summary["average_schema_processing_time"] = self.metrics.average_schema_processing_time

        return {
            "summary": summary,
            "cache": {
                **{name: metrics.to_dict() for name, metrics in self.cache_metrics.items()},
                "overall": overall.to_dict(),
            },
            "memory": {
                "snapshots": snapshots,
                "peak_usage_mb": self.metrics.peak_memory_usage / 1024 / 1024,
                "current_usage_mb": current_rss / 1024 / 1024,
                "cleanup_count": self.metrics.memory_cleanup_count,
            },
            "efficiency": {
                "schemas_per_second": self.metrics.schemas_processed / total_seconds if total_seconds > 0 else 0.0,
                "cache_efficiency": overall.hit_rate,
                "memory_efficiency": 1 - snapshots[-1] / max(snapshots) if len(snapshots) > 1 else 1.0,
            },
        }

    def generate_formatted_report(self) -> str:
        """Render the performance report as text."""
        jinja_env = jinja2.Environment(lstrip_blocks=True, trim_blocks=True)
        template = jinja_env.from_string((CURRENT_DIR / "templates" / "report.txt.jinja2").read_text(encoding="utf-8"))
        report = self.get_performance_report()
        total = report["summary"]["total_processing_time"]
        return template.render(report=report, share=lambda value: value / total * 100 if total else 0.0)
