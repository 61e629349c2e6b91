"""OpenAPI Schema Resolver

A Python package for resolving OpenAPI 3.0 documents into fully
materialized schema graphs. Resolves local and external $ref pointers,
allOf/oneOf/anyOf compositions with discriminators, and detects cycles,
backed by bounded caches with optional streaming and instrumentation.
"""

__version__ = "1.0.0"

from .pipeline import (
    ResolverConfig,
    SchemaResolutionEngine,
    SchemaResolutionError,
    load_document,
    load_document_async,
    serialize_schema,
)

__all__ = [
    "SchemaResolutionEngine",
    "ResolverConfig",
    "SchemaResolutionError",
    "load_document",
    "load_document_async",
    "serialize_schema",
]
