"""
Cache module.

Provides the bounded caches behind reference and composition resolution.
"""

from __future__ import annotations

from .cache_manager import CACHE_TYPES, BoundedCache, CacheManager

__all__ = [
    "BoundedCache",
    "CacheManager",
    "CACHE_TYPES",
]
