"""
Schema AST module.

Contains the schema node definitions, the parser and the serializer.
"""

from __future__ import annotations

from .nodes import (
    ArrayNode,
    CompositionKind,
    CompositionNode,
    Discriminator,
    Document,
    ObjectNode,
    PrimitiveNode,
    RefNode,
    SchemaNode,
    Variant,
)
from .parser import SchemaParser
from .serializer import serialize_schema

__all__ = [
    "SchemaNode",
    "RefNode",
    "PrimitiveNode",
    "ObjectNode",
    "ArrayNode",
    "CompositionNode",
    "CompositionKind",
    "Discriminator",
    "Variant",
    "Document",
    "SchemaParser",
    "serialize_schema",
]
