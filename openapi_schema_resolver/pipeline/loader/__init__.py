"""
Loader module.

Reads OpenAPI documents from disk and validates their top-level structure.
"""

from __future__ import annotations

from .document_loader import SUPPORTED_EXTENSIONS, load_document, load_document_async, parse_content
from .validation import validate_document

__all__ = [
    "load_document",
    "load_document_async",
    "parse_content",
    "validate_document",
    "SUPPORTED_EXTENSIONS",
]
