"""
Analyzer module.

Resolves references and compositions and enumerates schema registries.
"""

from __future__ import annotations

from .composition_resolver import CompositionResolver, composition_signature
from .external_resolver import ExternalReferenceResolver
from .reference_resolver import ReferenceResolver
from .schema_enumerator import SchemaEnumerator

__all__ = [
    "ReferenceResolver",
    "CompositionResolver",
    "ExternalReferenceResolver",
    "SchemaEnumerator",
    "composition_signature",
]
