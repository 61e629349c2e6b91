"""
Serializer from schema nodes back to OpenAPI-style mappings.

Resolved oneOf/anyOf objects are written with "oneOfVariants" and
"anyOfVariants" lists, which downstream generators read instead of the
original composition keywords.
"""

from __future__ import annotations

from typing import Any

from .nodes import ArrayNode, CompositionNode, Discriminator, ObjectNode, PrimitiveNode, RefNode, SchemaNode

# PrimitiveNode attribute -> OpenAPI keyword
_PRIMITIVE_CONSTRAINTS = {
    "min_length": "minLength",
    "max_length": "maxLength",
    "pattern": "pattern",
    "minimum": "minimum",
    "maximum": "maximum",
    "exclusive_minimum": "exclusiveMinimum",
    "exclusive_maximum": "exclusiveMaximum",
    "multiple_of": "multipleOf",
}


def serialize_schema(node: SchemaNode) -> dict[str, Any]:
    """Convert a schema node (resolved or not) into a JSON-compatible mapping."""
    if isinstance(node, RefNode):
        out: dict[str, Any] = {"$ref": node.ref_path}
    elif isinstance(node, PrimitiveNode):
        out = _serialize_primitive(node)
    elif isinstance(node, ArrayNode):
        out = _serialize_array(node)
    elif isinstance(node, ObjectNode):
        out = _serialize_object(node)
    elif isinstance(node, CompositionNode):
        out = _serialize_composition(node)
    else:
        out = {}

    if node.title:
        out["title"] = node.title
    if node.description:
        out["description"] = node.description
    out.update(node.metadata)
    return out


def _serialize_discriminator(discriminator: Discriminator) -> dict[str, Any]:
    out: dict[str, Any] = {"propertyName": discriminator.property_name}
    if discriminator.mapping:
        out["mapping"] = dict(discriminator.mapping)
    return out


def _serialize_primitive(node: PrimitiveNode) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if node.type_name:
        out["type"] = node.type_name
    if node.format:
        out["format"] = node.format
    if node.enum is not None:
        out["enum"] = list(node.enum)
    if node.nullable:
        out["nullable"] = True
    for attr, keyword in _PRIMITIVE_CONSTRAINTS.items():
        value = getattr(node, attr)
        if value is not None:
            out[keyword] = value
    return out


def _serialize_array(node: ArrayNode) -> dict[str, Any]:
    out: dict[str, Any] = {"type": "array"}
    if node.items is not None:
        out["items"] = serialize_schema(node.items)
    if node.min_items is not None:
        out["minItems"] = node.min_items
    if node.max_items is not None:
        out["maxItems"] = node.max_items
    if node.unique_items:
        out["uniqueItems"] = True
    if node.nullable:
        out["nullable"] = True
    return out


def _serialize_object(node: ObjectNode) -> dict[str, Any]:
    out: dict[str, Any] = {"type": "object"}
    if node.properties:
        out["properties"] = {name: serialize_schema(prop) for name, prop in node.properties.items()}
    if node.required:
        out["required"] = list(node.required)
    if isinstance(node.additional_properties, SchemaNode):
        out["additionalProperties"] = serialize_schema(node.additional_properties)
    elif node.additional_properties is not None:
        out["additionalProperties"] = node.additional_properties
    if node.nullable:
        out["nullable"] = True
    if node.discriminator is not None:
        out["discriminator"] = _serialize_discriminator(node.discriminator)
    if node.one_of_variants:
        out["oneOfVariants"] = [{"name": v.name, "schema": serialize_schema(v.schema)} for v in node.one_of_variants]
    if node.any_of_variants:
        out["anyOfVariants"] = [{"name": v.name, "schema": serialize_schema(v.schema)} for v in node.any_of_variants]
    return out


def _serialize_composition(node: CompositionNode) -> dict[str, Any]:
    if isinstance(node.raw_members, list):
        members: Any = [serialize_schema(member) for member in node.members]
    else:
        members = node.raw_members
    out: dict[str, Any] = {node.kind.value: members}
    if node.discriminator is not None:
        out["discriminator"] = _serialize_discriminator(node.discriminator)
    if node.properties:
        out["properties"] = {name: serialize_schema(prop) for name, prop in node.properties.items()}
    if node.required:
        out["required"] = list(node.required)
    return out
