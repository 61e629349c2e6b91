"""
OpenAPI schema parser that builds schema nodes.

Parses a raw schema mapping into tagged SchemaNode variants without
resolving references or compositions.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ...utils import join_location
from ..errors import SpecValidationError
from .nodes import (
    ArrayNode,
    CompositionKind,
    CompositionNode,
    Discriminator,
    ObjectNode,
    PrimitiveNode,
    RefNode,
    SchemaNode,
)

# Annotations kept in node metadata alongside x-* extensions
ANNOTATION_KEYS = ("default", "example", "readOnly", "writeOnly", "deprecated")


class SchemaParser:
    """Parses OpenAPI schema objects into schema nodes."""

    def __init__(self, base_location: str = ""):
        """
        Initialize the parser.

        Args:
            base_location: Location of the document the schemas come from.
                When set, references are rewritten to absolute
                "<location>#/..." form so they stay valid outside that document.
        """
        self.base_location = base_location

    def parse(self, schema: Any, path: str = "#") -> SchemaNode:
        """
        Parse a schema object recursively.

        Args:
            schema: The raw schema mapping
            path: Current path in the document (for error messages)

        Returns:
            Appropriate SchemaNode subclass
        """
        if isinstance(schema, SchemaNode):
            return schema
        if not isinstance(schema, Mapping):
            raise SpecValidationError(f"Schema at {path} must be an object, got {type(schema).__name__}")

        metadata = self._extract_metadata(schema)

        # OpenAPI 3.0 ignores siblings of $ref
        if "$ref" in schema:
            return self._parse_ref_node(schema, path, metadata)

        for kind in CompositionKind:
            if kind.value in schema:
                return self._parse_composition_node(schema, kind, path, metadata)

        type_value = schema.get("type")
        nullable = bool(schema.get("nullable", False))

        # Type arrays are not OpenAPI 3.0, but "null" in one reads as nullable
        if isinstance(type_value, list):
            nullable = nullable or "null" in type_value
            non_null = [t for t in type_value if t != "null"]
            type_value = non_null[0] if non_null else None

        if type_value == "array":
            return self._parse_array_node(schema, path, metadata, nullable)

        if type_value == "object" or "properties" in schema or "additionalProperties" in schema:
            return self._parse_object_node(schema, path, metadata, nullable)

        return self._parse_primitive_node(schema, type_value, path, metadata, nullable)

    def _extract_metadata(self, schema: Mapping[str, Any]) -> dict[str, Any]:
        """Extract x-* extensions and annotations from a schema."""
        metadata = {}
        for key, value in schema.items():
            if key.startswith("x-") or key in ANNOTATION_KEYS:
                metadata[key] = value
        return metadata

    def _common(self, schema: Mapping[str, Any], path: str, metadata: dict[str, Any]) -> dict[str, Any]:
        return {
            "source_path": path,
            "metadata": metadata,
            "title": schema.get("title"),
            "description": schema.get("description"),
        }

    def _rebase(self, ref_path: str) -> str:
        """Make a reference absolute with respect to the base location."""
        if not self.base_location or not isinstance(ref_path, str):
            return ref_path
        location, sep, fragment = ref_path.partition("#")
        return f"{join_location(self.base_location, location)}{sep}{fragment}"

    def _parse_ref_node(self, schema: Mapping[str, Any], path: str, metadata: dict[str, Any]) -> RefNode:
        """Parse a $ref node."""
        return RefNode(ref_path=self._rebase(schema["$ref"]), **self._common(schema, path, metadata))

    def _parse_discriminator(self, schema: Mapping[str, Any]) -> Discriminator | None:
        discriminator = schema.get("discriminator")
        if not isinstance(discriminator, Mapping) or not discriminator.get("propertyName"):
            return None
        mapping = discriminator.get("mapping") or {}
        return Discriminator(
            property_name=discriminator["propertyName"],
            mapping={value: self._rebase(ref) for value, ref in mapping.items()},
        )

    def _parse_properties(self, schema: Mapping[str, Any], path: str) -> dict[str, SchemaNode]:
        properties = schema.get("properties") or {}
        if not isinstance(properties, Mapping):
            raise SpecValidationError(f"'properties' at {path} must be an object")
        return {name: self.parse(prop_schema, f"{path}/properties/{name}") for name, prop_schema in properties.items()}

    def _parse_composition_node(
        self,
        schema: Mapping[str, Any],
        kind: CompositionKind,
        path: str,
        metadata: dict[str, Any],
    ) -> CompositionNode:
        """Parse an allOf, oneOf or anyOf node.

        Members are only parsed when the keyword holds a list; anything else
        is left in raw_members for the composition resolver to reject.
        """
        raw_members = schema[kind.value]
        members = []
        if isinstance(raw_members, list):
            for i, member in enumerate(raw_members):
                members.append(self.parse(member, f"{path}/{kind.value}/{i}"))

        return CompositionNode(
            kind=kind,
            raw_members=raw_members,
            members=members,
            discriminator=self._parse_discriminator(schema),
            properties=self._parse_properties(schema, path),
            required=list(schema.get("required") or []),
            **self._common(schema, path, metadata),
        )

    def _parse_array_node(
        self,
        schema: Mapping[str, Any],
        path: str,
        metadata: dict[str, Any],
        nullable: bool,
    ) -> ArrayNode:
        """Parse an array type node."""
        items_schema = schema.get("items")
        items = self.parse(items_schema, f"{path}/items") if items_schema is not None else None

        return ArrayNode(
            items=items,
            min_items=schema.get("minItems"),
            max_items=schema.get("maxItems"),
            unique_items=bool(schema.get("uniqueItems", False)),
            nullable=nullable,
            **self._common(schema, path, metadata),
        )

    def _parse_object_node(
        self,
        schema: Mapping[str, Any],
        path: str,
        metadata: dict[str, Any],
        nullable: bool,
    ) -> ObjectNode:
        """Parse an object type node."""
        additional = schema.get("additionalProperties")
        if isinstance(additional, Mapping):
            additional = self.parse(additional, f"{path}/additionalProperties")

        return ObjectNode(
            properties=self._parse_properties(schema, path),
            required=list(schema.get("required") or []),
            additional_properties=additional,
            nullable=nullable,
            discriminator=self._parse_discriminator(schema),
            **self._common(schema, path, metadata),
        )

    def _parse_primitive_node(
        self,
        schema: Mapping[str, Any],
        type_name: str | None,
        path: str,
        metadata: dict[str, Any],
        nullable: bool,
    ) -> PrimitiveNode:
        """Parse a primitive type node."""
        enum = schema.get("enum")
        if not type_name and enum:
            type_name = self._infer_type(enum[0])

        node = PrimitiveNode(
            type_name=type_name or "",
            format=schema.get("format"),
            enum=list(enum) if enum is not None else None,
            nullable=nullable,
            **self._common(schema, path, metadata),
        )

        # Extract validation constraints
        if type_name == "string":
            node.min_length = schema.get("minLength")
            node.max_length = schema.get("maxLength")
            node.pattern = schema.get("pattern")

        if type_name in ("integer", "number"):
            node.minimum = schema.get("minimum")
            node.maximum = schema.get("maximum")
            node.exclusive_minimum = schema.get("exclusiveMinimum")
            node.exclusive_maximum = schema.get("exclusiveMaximum")
            node.multiple_of = schema.get("multipleOf")

        return node

    def _infer_type(self, value: Any) -> str:
        """Infer the schema type from a Python value."""
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, int):
            return "integer"
        if isinstance(value, float):
            return "number"
        if isinstance(value, str):
            return "string"
        return ""
