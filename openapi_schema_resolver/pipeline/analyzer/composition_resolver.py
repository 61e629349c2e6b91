"""
Composition resolver for allOf, oneOf and anyOf schemas.

A composition is resolved into a new ObjectNode:
- allOf merges the properties and required names of its members, in order
- oneOf keeps its members as discriminated variants
- anyOf keeps its members as undiscriminated variants

Identical compositions are resolved once per document and then served
from the composition cache.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

from ...utils import extract_schema_name
from ..cache.cache_manager import CacheManager
from ..errors import CompositionConflictError, CompositionStructureError, MissingDiscriminator
from ..instrumentation.performance_tracker import PerformanceTracker
from ..schema_ast.nodes import (
    CompositionKind,
    CompositionNode,
    Document,
    ObjectNode,
    PrimitiveNode,
    RefNode,
    SchemaNode,
    Variant,
)
from ..schema_ast.parser import SchemaParser
from ..schema_ast.serializer import serialize_schema
from .reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)

# Prefix of generated names for variants without a schema name or title
VARIANT_NAME_PREFIXES = {
    CompositionKind.ONE_OF: "Variant",
    CompositionKind.ANY_OF: "Option",
}


def composition_signature(node: CompositionNode) -> str:
    """Stable digest of a composition's kind and structure.

    The location of the composition is not part of the digest: identical
    compositions declared in different places share one resolved node,
    which therefore carries no source_path.
    """
    canonical = json.dumps(serialize_schema(node), sort_keys=True, separators=(",", ":"), default=str)
    return f"{node.kind.value}:{hashlib.sha256(canonical.encode('utf-8')).hexdigest()}"


class CompositionResolver:
    """Resolves references and compositions into normalized schema nodes."""

    def __init__(
        self,
        reference_resolver: ReferenceResolver,
        cache_manager: CacheManager,
        tracker: PerformanceTracker,
    ):
        self.reference_resolver = reference_resolver
        self.cache_manager = cache_manager
        self.tracker = tracker
        self.parser = SchemaParser()
        reference_resolver.bind_composition_resolver(self)

    async def resolve_schema(
        self,
        document: Document,
        node: SchemaNode | dict[str, Any],
        visited_path: frozenset[str] = frozenset(),
    ) -> SchemaNode:
        """
        Resolve a node that may be a reference, a composition or already normalized.

        Args:
            document: Document the node belongs to
            node: Schema node, or a raw schema mapping
            visited_path: References on the active resolution path

        Returns:
            A new node for references and compositions, the node itself otherwise
        """
        if not isinstance(node, SchemaNode):
            node = self.parser.parse(node)

        if isinstance(node, RefNode):
            return await self.reference_resolver.resolve(document, node.ref_path, visited_path)

        if not isinstance(node, CompositionNode):
            return node

        self._check_structure(node)

        cache_key = f"{document.document_id}:{composition_signature(node)}"
        with self.tracker.track("cacheOperation"):
            cached = self.cache_manager.compositions.get(cache_key)
        if cached is not None:
            self.tracker.record_cache_hit("composition")
            logger.debug("Composition cache hit: %s at %s", node.kind.value, node.source_path)
            return cached
        self.tracker.record_cache_miss("composition")

        if node.kind is CompositionKind.ALL_OF:
            resolved = await self._resolve_all_of(document, node, visited_path)
        elif node.kind is CompositionKind.ONE_OF:
            resolved = await self._resolve_one_of(document, node, visited_path)
        else:
            resolved = await self._resolve_any_of(document, node, visited_path)

        with self.tracker.track("cacheOperation"):
            self.cache_manager.compositions.set(cache_key, resolved)
        self.tracker.update_cache_size(
            "composition", self.cache_manager.compositions.size(), self.cache_manager.config.max_size
        )
        return resolved

    def _check_structure(self, node: CompositionNode) -> None:
        keyword = node.kind.value
        if node.raw_members is None:
            raise CompositionStructureError(f"{keyword} cannot be null")
        if not isinstance(node.raw_members, list):
            raise CompositionStructureError(f"{keyword} must be an array")
        if not node.raw_members:
            if node.kind is CompositionKind.ANY_OF:
                raise CompositionStructureError("anyOf schema must contain at least one variant")
            raise CompositionStructureError(f"{keyword} array cannot be empty")

    async def _resolve_all_of(self, document: Document, node: CompositionNode, visited_path: frozenset[str]) -> ObjectNode:
        """Merge allOf members in array order.

        A property declared by several members keeps the last declaration;
        members declaring it with different types are a conflict.
        """
        merged = ObjectNode(
            properties=dict(node.properties),
            required=list(node.required),
            discriminator=node.discriminator,
            metadata=dict(node.metadata),
            title=node.title,
            description=node.description,
        )

        for member in node.members:
            resolved = await self.resolve_schema(document, member, visited_path)
            merged.title = merged.title or resolved.title
            merged.description = merged.description or resolved.description
            if not isinstance(resolved, ObjectNode):
                continue

            for name, prop in resolved.properties.items():
                existing = merged.properties.get(name)
                if (
                    existing is not None
                    and existing.declared_type is not None
                    and prop.declared_type is not None
                    and existing.declared_type != prop.declared_type
                ):
                    raise CompositionConflictError(f"Property '{name}' has conflicting types in allOf schemas")
                merged.properties[name] = prop

            _extend_unique(merged.required, resolved.required)
            if merged.additional_properties is None:
                merged.additional_properties = resolved.additional_properties
            if merged.discriminator is None:
                merged.discriminator = resolved.discriminator
            merged.nullable = merged.nullable or resolved.nullable

        return merged

    async def _resolve_one_of(self, document: Document, node: CompositionNode, visited_path: frozenset[str]) -> ObjectNode:
        if node.discriminator is None:
            raise MissingDiscriminator("oneOf schema without discriminator property")

        variants = await self._resolve_variants(document, node, visited_path)

        property_name = node.discriminator.property_name
        properties = dict(node.properties)
        if property_name not in properties:
            properties[property_name] = PrimitiveNode(
                type_name="string",
                source_path=f"{node.source_path}/properties/{property_name}",
            )
        required = list(node.required)
        _extend_unique(required, [property_name])

        return ObjectNode(
            properties=properties,
            required=required,
            discriminator=node.discriminator,
            one_of_variants=variants,
            metadata=dict(node.metadata),
            title=node.title,
            description=node.description,
        )

    async def _resolve_any_of(self, document: Document, node: CompositionNode, visited_path: frozenset[str]) -> ObjectNode:
        variants = await self._resolve_variants(document, node, visited_path)

        properties = dict(node.properties)
        required = list(node.required)
        for variant in variants:
            if not isinstance(variant.schema, ObjectNode):
                continue
            for name, prop in variant.schema.properties.items():
                properties.setdefault(name, prop)
            _extend_unique(required, variant.schema.required)

        return ObjectNode(
            properties=properties,
            required=required,
            discriminator=node.discriminator,
            any_of_variants=variants,
            metadata=dict(node.metadata),
            title=node.title,
            description=node.description,
        )

    async def _resolve_variants(
        self, document: Document, node: CompositionNode, visited_path: frozenset[str]
    ) -> list[Variant]:
        # Sequential so variant order and cache contents are deterministic
        variants = []
        for i, member in enumerate(node.members, start=1):
            resolved = await self.resolve_schema(document, member, visited_path)
            variants.append(Variant(name=self._variant_name(node.kind, member, resolved, i), schema=resolved))
        return variants

    def _variant_name(self, kind: CompositionKind, member: SchemaNode, resolved: SchemaNode, index: int) -> str:
        if isinstance(member, RefNode):
            return extract_schema_name(member.ref_path)
        title = member.title or resolved.title
        if title:
            return title
        return f"{VARIANT_NAME_PREFIXES[kind]}{index}"


def _extend_unique(target: list[str], names: list[str]) -> None:
    for name in names:
        if name not in target:
            target.append(name)
