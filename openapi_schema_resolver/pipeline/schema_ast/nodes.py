"""
Node definitions for OpenAPI schemas.

Every schema is parsed into exactly one tagged variant: a reference,
a primitive, an object, an array or a composition. Resolution never
mutates these nodes; it builds new ones.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

_document_ids = itertools.count(1)


class CompositionKind(str, Enum):
    """Composition keyword of a CompositionNode."""

    ALL_OF = "allOf"
    ONE_OF = "oneOf"
    ANY_OF = "anyOf"


@dataclass
class SchemaNode:
    """Base class for all schema nodes."""

    # JSON pointer of the node in its document (for error messages)
    source_path: str = ""

    # x-* extensions and annotations (default, example, readOnly, ...)
    metadata: dict[str, Any] = field(default_factory=dict)

    title: str | None = None
    description: str | None = None

    @property
    def declared_type(self) -> str | None:
        """JSON type name used to detect allOf conflicts (None when undeclared)."""
        return None


@dataclass
class RefNode(SchemaNode):
    """Represents a $ref (unresolved reference)."""

    ref_path: str = ""  # e.g., "#/components/schemas/User" or "common.yaml#/components/schemas/Id"

    @property
    def is_local(self) -> bool:
        return self.ref_path.startswith("#")


@dataclass
class PrimitiveNode(SchemaNode):
    """Represents a primitive type (string, integer, number, boolean) or an untyped schema."""

    type_name: str = ""  # "" when the schema declares no type
    format: str | None = None
    enum: list[Any] | None = None
    nullable: bool = False

    # Validation constraints
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: bool | float | None = None
    exclusive_maximum: bool | float | None = None
    multiple_of: float | None = None

    @property
    def declared_type(self) -> str | None:
        return self.type_name or None


@dataclass
class ArrayNode(SchemaNode):
    """Represents an array type."""

    items: SchemaNode | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False
    nullable: bool = False

    @property
    def declared_type(self) -> str | None:
        return "array"


@dataclass
class Discriminator:
    """Property used to tell oneOf variants apart."""

    property_name: str = ""
    mapping: dict[str, str] = field(default_factory=dict)


@dataclass
class Variant:
    """A tagged variant of a resolved oneOf/anyOf."""

    name: str = ""
    schema: SchemaNode | None = None


@dataclass
class ObjectNode(SchemaNode):
    """Represents an object type with named properties.

    Resolved compositions are also ObjectNodes: a oneOf carries its
    discriminator and one_of_variants, an anyOf its any_of_variants.
    """

    properties: dict[str, SchemaNode] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)
    additional_properties: bool | SchemaNode | None = None
    nullable: bool = False

    discriminator: Discriminator | None = None
    one_of_variants: list[Variant] = field(default_factory=list)
    any_of_variants: list[Variant] = field(default_factory=list)

    @property
    def declared_type(self) -> str | None:
        return "object"


@dataclass
class CompositionNode(SchemaNode):
    """Represents an unresolved allOf, oneOf or anyOf.

    raw_members keeps the declared value as written so that a null,
    non-array or empty composition is reported when it is resolved.
    """

    kind: CompositionKind = CompositionKind.ALL_OF
    raw_members: Any = None
    members: list[SchemaNode] = field(default_factory=list)
    discriminator: Discriminator | None = None

    # Sibling object keywords declared next to the composition keyword
    properties: dict[str, SchemaNode] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)


@dataclass(eq=False)
class Document:
    """A parsed OpenAPI document.

    document_id is unique per instance and scopes cache keys, so the same
    $ref string in two documents never shares a cache entry.
    """

    raw: dict[str, Any] = field(default_factory=dict)
    source: str = ""  # File path or URL the document was loaded from
    document_id: int = field(default_factory=lambda: next(_document_ids))

    @property
    def schemas(self) -> dict[str, Any]:
        """The components.schemas registry ({} when absent)."""
        components = self.raw.get("components")
        if not isinstance(components, dict):
            return {}
        schemas = components.get("schemas")
        if not isinstance(schemas, dict):
            return {}
        return schemas

    @property
    def version(self) -> str:
        return str(self.raw.get("openapi", ""))
