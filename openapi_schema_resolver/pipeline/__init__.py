"""
Pipeline - OpenAPI schema resolution.

This module resolves OpenAPI 3.0 documents into composition-resolved schema
nodes in a few steps:

1. Loader: Read the JSON/YAML document and validate its top-level structure
2. Parser: Parse raw schemas into Schema AST nodes
3. Analyzer: Resolve references (local and external) and compositions
4. Cache: Keep resolved schemas, compositions and references in bounded caches
5. Instrumentation: Optional timers, counters, memory cleanup and streaming
"""

from __future__ import annotations

from .config import CacheConfig, ExternalResolverConfig, MemoryConfig, MetricsConfig, ResolverConfig
from .engine import SchemaResolutionEngine
from .errors import (
    CircularReferenceDetected,
    CompositionConflictError,
    CompositionStructureError,
    ExternalReferenceError,
    ExternalResolutionFailed,
    FileNotFound,
    MalformedReference,
    MetricsDisabledError,
    MissingDiscriminator,
    ParseError,
    ReferenceNotFound,
    SchemaResolutionError,
    SpecValidationError,
    UnsupportedFormat,
)
from .loader import load_document, load_document_async, validate_document
from .schema_ast import serialize_schema

__all__ = [
    "SchemaResolutionEngine",
    "ResolverConfig",
    "CacheConfig",
    "MemoryConfig",
    "MetricsConfig",
    "ExternalResolverConfig",
    "load_document",
    "load_document_async",
    "validate_document",
    "serialize_schema",
    "SchemaResolutionError",
    "FileNotFound",
    "UnsupportedFormat",
    "ParseError",
    "SpecValidationError",
    "MalformedReference",
    "ReferenceNotFound",
    "CircularReferenceDetected",
    "ExternalResolutionFailed",
    "CompositionStructureError",
    "CompositionConflictError",
    "MissingDiscriminator",
    "ExternalReferenceError",
    "MetricsDisabledError",
]
