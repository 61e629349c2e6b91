"""
Schema resolution engine.

Public entry point that wires the resolvers, the caches and the
instrumentation together:

    engine = SchemaResolutionEngine()
    document = load_document("api.yaml")
    schemas = await engine.get_all_schemas(document)
    user = await engine.resolve_reference(document, "#/components/schemas/User")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..utils import extract_schema_name
from .analyzer.composition_resolver import CompositionResolver
from .analyzer.external_resolver import ExternalReferenceResolver
from .analyzer.reference_resolver import ReferenceResolver
from .analyzer.schema_enumerator import SchemaEnumerator
from .cache.cache_manager import CacheManager
from .config import ResolverConfig
from .errors import MalformedReference, MetricsDisabledError
from .instrumentation.memory_optimizer import MemoryOptimizer
from .instrumentation.performance_tracker import PerformanceMetrics, PerformanceTracker
from .schema_ast.nodes import Document, RefNode, SchemaNode

logger = logging.getLogger(__name__)

ReferenceLike = str | RefNode | Mapping[str, Any]
DocumentLike = Document | Mapping[str, Any]


class SchemaResolutionEngine:
    """Resolves references, compositions and whole schema registries of OpenAPI documents."""

    def __init__(
        self,
        config: ResolverConfig | None = None,
        external_resolver: ExternalReferenceResolver | None = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Cache, memory, metrics and external reference options
            external_resolver: Resolver for references into other documents;
                built from config.external when not given
        """
        self.config = config or ResolverConfig()
        self.tracker = PerformanceTracker(enabled=self.config.metrics.enabled)
        self.cache_manager = CacheManager(self.config.cache, on_evict=self.tracker.record_cache_eviction)
        self.memory_optimizer = MemoryOptimizer(self.cache_manager, self.tracker, self.config.memory)
        self.external_resolver = external_resolver or ExternalReferenceResolver(self.config.external)

        self.reference_resolver = ReferenceResolver(self.cache_manager, self.external_resolver, self.tracker)
        self.composition_resolver = CompositionResolver(self.reference_resolver, self.cache_manager, self.tracker)
        self.schema_enumerator = SchemaEnumerator(
            self.reference_resolver, self.cache_manager, self.memory_optimizer, self.tracker
        )

    def _as_document(self, document: DocumentLike) -> Document:
        if isinstance(document, Document):
            return document
        # One identity per mapping object, bounded like the other caches
        key = str(id(document))
        entry = self.cache_manager.documents.get(key)
        if entry is None or entry[0] is not document:
            entry = (document, Document(raw=document))
            self.cache_manager.documents.set(key, entry)
        return entry[1]

    def _as_reference(self, reference: ReferenceLike) -> str:
        if isinstance(reference, RefNode):
            return reference.ref_path
        if isinstance(reference, Mapping):
            if "$ref" not in reference:
                raise MalformedReference("Malformed reference: mapping has no $ref key")
            return reference["$ref"]
        return reference

    async def resolve_reference(
        self,
        document: DocumentLike,
        reference: ReferenceLike,
        visited_path: Iterable[str] = (),
    ) -> SchemaNode:
        """
        Resolve a $ref against a document.

        Args:
            document: The document (or its raw mapping)
            reference: A reference string, RefNode or {"$ref": ...} mapping
            visited_path: References already on the active resolution path

        Returns:
            The resolved schema node
        """
        with self.tracker.track("schemaResolution"):
            return await self.reference_resolver.resolve(
                self._as_document(document), self._as_reference(reference), frozenset(visited_path)
            )

    async def resolve_schema(self, document: DocumentLike, node: SchemaNode | Mapping[str, Any]) -> SchemaNode:
        """Resolve a node that may be a reference, a composition or already normalized."""
        with self.tracker.track("schemaResolution"):
            return await self.composition_resolver.resolve_schema(self._as_document(document), node)

    async def resolve_all(
        self, document: DocumentLike, references: Iterable[ReferenceLike]
    ) -> dict[str, SchemaNode | Exception]:
        """Resolve sibling references concurrently.

        A failing reference does not abort the others: its entry holds the
        exception instead of a node.
        """
        doc = self._as_document(document)
        refs = [self._as_reference(reference) for reference in references]
        results = await asyncio.gather(
            *(self.reference_resolver.resolve(doc, ref) for ref in refs),
            return_exceptions=True,
        )
        for ref, result in zip(refs, results):
            if isinstance(result, Exception):
                logger.warning("Failed to resolve %s: %s", ref, result)
        return dict(zip(refs, results))

    async def get_all_schemas(self, document: DocumentLike) -> dict[str, SchemaNode]:
        """All schemas of components.schemas, by name ({} when there are none)."""
        with self.tracker.track("schemaResolution"):
            return await self.schema_enumerator.get_all_schemas(self._as_document(document))

    @staticmethod
    def extract_schema_name(reference: str) -> str:
        return extract_schema_name(reference)

    @staticmethod
    def is_reference(node: Any) -> bool:
        """True for RefNodes and raw mappings carrying a $ref key."""
        if isinstance(node, RefNode):
            return True
        return isinstance(node, Mapping) and "$ref" in node

    def configure_caching(self, enabled: bool | None = None, max_size: int | None = None) -> None:
        self.cache_manager.configure(enabled=enabled, max_size=max_size)

    def configure_memory_optimization(
        self,
        enabled: bool | None = None,
        memory_threshold: int | None = None,
        streaming_mode: bool | None = None,
    ) -> None:
        self.memory_optimizer.configure(
            enabled=enabled, memory_threshold=memory_threshold, streaming_mode=streaming_mode
        )

    def configure_metrics(self, enabled: bool) -> None:
        """Turn performance metrics on or off; previous metrics are discarded."""
        self.config.metrics.enabled = enabled
        self.tracker.enabled = enabled
        self.tracker.reset()

    def clear_all_caches(self) -> None:
        """Empty the schema, composition and reference caches and the external document cache."""
        self.cache_manager.clear_all()
        self.external_resolver.clear_cache()
        logger.debug("Cleared all caches")

    def get_cache_stats(self) -> dict[str, Any]:
        return self.cache_manager.stats()

    def get_memory_stats(self) -> dict[str, Any]:
        return self.memory_optimizer.get_memory_stats()

    def perform_memory_cleanup(self, force: bool = False) -> int:
        return self.memory_optimizer.perform_memory_cleanup(force=force)

    def start_performance_tracking(self) -> None:
        self.tracker.start_tracking()

    def end_performance_tracking(self) -> None:
        self._refresh_cache_sizes()
        self.tracker.end_tracking()

    def get_performance_metrics(self) -> PerformanceMetrics:
        if not self.tracker.enabled:
            raise MetricsDisabledError("Performance metrics are not enabled")
        return self.tracker.metrics

    def export_performance_metrics(self) -> dict[str, Any]:
        """Structured, JSON-compatible performance report."""
        if not self.tracker.enabled:
            raise MetricsDisabledError("Performance metrics are not enabled")
        self._refresh_cache_sizes()
        return self.tracker.get_performance_report()

    def generate_performance_report(self) -> str:
        if not self.tracker.enabled:
            return "Performance metrics are not enabled."
        self._refresh_cache_sizes()
        return self.tracker.generate_formatted_report()

    def _refresh_cache_sizes(self) -> None:
        for cache in self.cache_manager.caches:
            self.tracker.update_cache_size(cache.name, cache.size(), cache.max_size)
