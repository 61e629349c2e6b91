"""
Reference resolver for OpenAPI $ref pointers.

Resolves local "#/components/schemas/..." pointers against the document's
schema registry and hands external ones to the external reference
resolver. The active resolution path is passed explicitly to every call,
so a cycle is detected even when resolution is suspended on an external
fetch.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...utils import is_url, join_location, parse_reference, walk_pointer
from ..cache.cache_manager import CacheManager
from ..errors import (
    CircularReferenceDetected,
    ExternalResolutionFailed,
    MalformedReference,
    ReferenceNotFound,
)
from ..instrumentation.performance_tracker import PerformanceTracker
from ..schema_ast.nodes import Document, SchemaNode
from ..schema_ast.parser import SchemaParser
from .external_resolver import ExternalReferenceResolver

if TYPE_CHECKING:
    from .composition_resolver import CompositionResolver

logger = logging.getLogger(__name__)


class ReferenceResolver:
    """Resolves $ref strings with cycle detection and reference caching."""

    def __init__(
        self,
        cache_manager: CacheManager,
        external_resolver: ExternalReferenceResolver,
        tracker: PerformanceTracker,
    ):
        self.cache_manager = cache_manager
        self.external_resolver = external_resolver
        self.tracker = tracker
        self.parser = SchemaParser()
        self.composition_resolver: CompositionResolver | None = None

    def bind_composition_resolver(self, composition_resolver: CompositionResolver) -> None:
        """Attach the composition resolver used to finish resolving referenced nodes."""
        self.composition_resolver = composition_resolver

    def is_external(self, document: Document, location: str) -> bool:
        """Whether a reference location points outside the document."""
        if not location:
            return False
        if is_url(location):
            return True
        return join_location(document.source, location) != document.source

    def external_depth(self, document: Document, visited_path: frozenset[str]) -> int:
        """Number of external references on the active path."""
        depth = 0
        for reference in visited_path:
            parsed = parse_reference(reference)
            if parsed is not None and self.is_external(document, parsed[0]):
                depth += 1
        return depth

    async def resolve(
        self,
        document: Document,
        reference: str,
        visited_path: frozenset[str] = frozenset(),
    ) -> SchemaNode:
        """
        Resolve a reference to a fully resolved schema node.

        Args:
            document: Document the reference appears in
            reference: The $ref string
            visited_path: References on the active resolution path

        Returns:
            The resolved node (compositions behind the reference are resolved too)

        Raises:
            MalformedReference: If the reference does not follow the pointer grammar
            CircularReferenceDetected: If the reference is already on the active path
            ReferenceNotFound: If a local reference names an undeclared schema
            ExternalResolutionFailed: If an external reference cannot be resolved
        """
        if not isinstance(reference, str) or not reference:
            raise MalformedReference(f"Malformed reference: {reference!r}", reference=None)
        parsed = parse_reference(reference)
        if parsed is None:
            raise MalformedReference(f"Malformed reference: {reference}", reference=reference)

        # Checked before the cache so a cycle is reported whatever the cache holds
        if reference in visited_path:
            raise CircularReferenceDetected(f"Circular reference detected: {reference}", reference=reference)

        cache_key = f"{document.document_id}:{reference}"
        with self.tracker.track("cacheOperation"):
            cached = self.cache_manager.references.get(cache_key)
        if cached is not None:
            self.tracker.record_cache_hit("reference")
            logger.debug("Reference cache hit: %s", reference)
            return cached
        self.tracker.record_cache_miss("reference")

        failure = self.cache_manager.get_failure(cache_key)
        if failure is not None:
            logger.debug("Known external failure: %s", reference)
            raise ExternalResolutionFailed(str(failure), reference=reference, cause=failure.cause) from failure.cause

        location, segments = parsed
        path = visited_path | {reference}

        if self.is_external(document, location):
            target = await self._resolve_external(document, reference, cache_key, visited_path)
        else:
            target = self._resolve_local(document, reference, segments)

        resolved = await self.composition_resolver.resolve_schema(document, target, path)

        with self.tracker.track("cacheOperation"):
            self.cache_manager.references.set(cache_key, resolved)
        self.tracker.update_cache_size("reference", self.cache_manager.references.size(), self.cache_manager.config.max_size)
        return resolved

    def _resolve_local(self, document: Document, reference: str, segments: list[str]) -> SchemaNode:
        try:
            raw = walk_pointer(document.schemas, segments)
        except KeyError:
            raise ReferenceNotFound(f"Reference not found: {reference}", reference=reference) from None
        return self.parser.parse(raw, reference)

    async def _resolve_external(
        self,
        document: Document,
        reference: str,
        cache_key: str,
        visited_path: frozenset[str],
    ) -> SchemaNode:
        depth = self.external_depth(document, visited_path)
        logger.debug("Resolving external reference %s (depth %d)", reference, depth)
        try:
            return await self.external_resolver.resolve_external_schema(reference, document.source, depth)
        except Exception as exc:
            error = ExternalResolutionFailed(
                f"Failed to resolve external reference: {reference}",
                reference=reference,
                cause=exc,
            )
            self.cache_manager.remember_failure(cache_key, error)
            raise error from exc
