"""
Configuration for the schema resolution pipeline.

Each concern (caching, memory, metrics, external references) has its own
dataclass; ResolverConfig groups them and round-trips through plain dicts
so it can be loaded from a JSON file.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

DEFAULT_CACHE_MAX_SIZE = 1000
DEFAULT_MEMORY_THRESHOLD = 100 * 1024 * 1024


@dataclass
class CacheConfig:
    """Configuration shared by the schema, composition and reference caches."""

    # Bypass every cache when False
    enabled: bool = True

    # Maximum number of entries per cache
    max_size: int = DEFAULT_CACHE_MAX_SIZE

    # Remember failed external references and re-raise without fetching again
    cache_external_failures: bool = False


@dataclass
class MemoryConfig:
    """Configuration for memory cleanup and streaming enumeration."""

    # Whether the memory cleanup hook may evict cache entries
    enabled: bool = False

    # Resident memory (bytes) at which cleanup starts evicting
    memory_threshold: int = DEFAULT_MEMORY_THRESHOLD

    # Enumerate large schema registries in batches
    streaming_mode: bool = False


@dataclass
class MetricsConfig:
    """Configuration for performance instrumentation."""

    enabled: bool = False


@dataclass
class ExternalResolverConfig:
    """Configuration for resolving references into other documents."""

    # Allow http(s) references; file references are always allowed
    enable_remote_references: bool = True

    # Maximum number of external hops on one resolution path
    max_depth: int = 10

    # Request timeout for remote documents
    timeout_ms: int = 30000

    # Hostnames allowed for remote documents (empty = any)
    allowed_domains: list[str] = field(default_factory=list)

    # Retry policy for remote documents
    retries: int = 2
    retry_backoff_seconds: float = 1.0
    max_redirects: int = 5

    user_agent: str = "openapi-schema-resolver/1.0.0"
    headers: dict[str, str] = field(default_factory=dict)

    # Cache of loaded external documents
    cache_enabled: bool = True
    max_cache_size: int = 100
    cache_ttl_seconds: float = 300.0


@dataclass
class ResolverConfig:
    """Configuration options for the resolution engine."""

    cache: CacheConfig = field(default_factory=CacheConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    external: ExternalResolverConfig = field(default_factory=ExternalResolverConfig)

    @staticmethod
    def from_dict(d: dict) -> ResolverConfig:
        """Create a config from a dictionary.

        Unknown keys are ignored, so older config files keep loading.
        """
        config = ResolverConfig()
        sections = {
            "cache": config.cache,
            "memory": config.memory,
            "metrics": config.metrics,
            "external": config.external,
        }
        for section_name, values in d.items():
            section = sections.get(section_name)
            if section is None or not isinstance(values, dict):
                continue
            for k, v in values.items():
                if hasattr(section, k):
                    setattr(section, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "cache": asdict(self.cache),
            "memory": asdict(self.memory),
            "metrics": asdict(self.metrics),
            "external": asdict(self.external),
        }
