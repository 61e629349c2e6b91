"""
Instrumentation module.

Performance tracking, memory cleanup and streaming configuration.
"""

from __future__ import annotations

from .memory_optimizer import MEMORY_CLEANUP_FRACTION, STREAMING_BATCH_SIZE, MemoryOptimizer
from .performance_tracker import CacheMetrics, PerformanceMetrics, PerformanceTracker

__all__ = [
    "PerformanceTracker",
    "PerformanceMetrics",
    "CacheMetrics",
    "MemoryOptimizer",
    "STREAMING_BATCH_SIZE",
    "MEMORY_CLEANUP_FRACTION",
]
