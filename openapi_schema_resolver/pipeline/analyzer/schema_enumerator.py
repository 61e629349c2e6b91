"""
Schema enumerator for a document's components.schemas registry.

Large registries can be walked in batches (streaming mode), yielding to
the event loop and running the memory cleanup hook between batches.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping

from ..cache.cache_manager import CacheManager
from ..instrumentation.memory_optimizer import STREAMING_BATCH_SIZE, MemoryOptimizer
from ..instrumentation.performance_tracker import PerformanceTracker
from ..schema_ast.nodes import Document, RefNode, SchemaNode
from ..schema_ast.parser import SchemaParser
from .reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)

SCHEMA_POINTER_PREFIX = "#/components/schemas/"


class SchemaEnumerator:
    """Walks the schema registry of a document."""

    def __init__(
        self,
        reference_resolver: ReferenceResolver,
        cache_manager: CacheManager,
        memory_optimizer: MemoryOptimizer,
        tracker: PerformanceTracker,
    ):
        self.reference_resolver = reference_resolver
        self.cache_manager = cache_manager
        self.memory_optimizer = memory_optimizer
        self.tracker = tracker
        self.parser = SchemaParser()

    async def get_all_schemas(self, document: Document) -> dict[str, SchemaNode]:
        """
        Get every schema declared in components.schemas.

        Args:
            document: The document to enumerate

        Returns:
            Mapping of schema name to node, in declaration order ({} when the
            document declares no schemas)
        """
        schemas: dict[str, SchemaNode] = {}
        async for batch in self.iter_schema_batches(document):
            schemas.update(batch)
        return schemas

    async def iter_schema_batches(self, document: Document) -> AsyncIterator[list[tuple[str, SchemaNode]]]:
        """Yield (name, node) batches.

        In streaming mode a registry larger than STREAMING_BATCH_SIZE is
        yielded in batches of that size; otherwise as a single batch.
        """
        names = list(document.schemas)
        if not names:
            return

        if not self.memory_optimizer.should_stream(len(names)):
            yield [entry async for entry in self._enumerate(document, names)]
            return

        logger.info("Streaming %d schemas in batches of %d", len(names), STREAMING_BATCH_SIZE)
        with self.tracker.track("streamingEnumeration"):
            for start in range(0, len(names), STREAMING_BATCH_SIZE):
                batch = names[start : start + STREAMING_BATCH_SIZE]
                yield [entry async for entry in self._enumerate(document, batch)]
                if start + STREAMING_BATCH_SIZE < len(names):
                    await asyncio.sleep(0)
                    self.memory_optimizer.perform_memory_cleanup()

    async def _enumerate(self, document: Document, names: list[str]) -> AsyncIterator[tuple[str, SchemaNode]]:
        registry = document.schemas
        for name in names:
            raw = registry[name]
            if not isinstance(raw, Mapping):
                logger.warning("Skipping schema '%s': expected an object, got %s", name, type(raw).__name__)
                continue
            node = await self._get_schema(document, name, raw)
            self.memory_optimizer.record_schema_processed()
            yield name, node

    async def _get_schema(self, document: Document, name: str, raw: Mapping) -> SchemaNode:
        cache_key = f"{document.document_id}:{name}"
        cached = self.cache_manager.schemas.get(cache_key)
        if cached is not None:
            self.tracker.record_cache_hit("schema")
            return cached
        self.tracker.record_cache_miss("schema")

        pointer = f"{SCHEMA_POINTER_PREFIX}{name}"
        node = self.parser.parse(raw, pointer)
        if isinstance(node, RefNode):
            # An alias is resolved with its own entry on the path
            node = await self.reference_resolver.resolve(document, node.ref_path, frozenset({pointer}))

        self.cache_manager.schemas.set(cache_key, node)
        self.tracker.update_cache_size("schema", self.cache_manager.schemas.size(), self.cache_manager.config.max_size)
        return node
