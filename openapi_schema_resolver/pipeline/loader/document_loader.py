"""
Document loader for OpenAPI specification files.

Reads a JSON or YAML file, validates it and wraps it in a Document.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import yaml

from ..errors import FileNotFound, ParseError, UnsupportedFormat
from ..schema_ast.nodes import Document
from .validation import validate_document

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".json", ".yaml", ".yml")


def parse_content(content: str, fmt: str, source: str = "") -> object:
    """
    Parse document text.

    Args:
        content: Raw file content
        fmt: "json" or "yaml"
        source: Location used in error messages

    Returns:
        The parsed document tree
    """
    if fmt == "json":
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON format in {source or 'document'}: {e}", cause=e) from e
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ParseError(f"Invalid YAML format in {source or 'document'}: {e}", cause=e) from e


def load_document(path: str | Path) -> Document:
    """
    Load and validate an OpenAPI document from disk.

    Args:
        path: Path to a .json, .yaml or .yml file

    Returns:
        The validated Document

    Raises:
        FileNotFound: If the file does not exist
        UnsupportedFormat: If the extension is not supported
        ParseError: If the file is not valid JSON/YAML
        SpecValidationError: If the document fails validation
    """
    absolute_path = Path(path).resolve()
    if not absolute_path.is_file():
        raise FileNotFound(f"File not found: {absolute_path}")

    ext = absolute_path.suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormat(f"Unsupported file format: {ext or '(none)'}")

    content = absolute_path.read_text(encoding="utf-8")
    raw = parse_content(content, "json" if ext == ".json" else "yaml", str(absolute_path))
    validate_document(raw)

    logger.info("Loaded OpenAPI %s document from %s", raw["openapi"], absolute_path)
    return Document(raw=raw, source=str(absolute_path))


async def load_document_async(path: str | Path) -> Document:
    """Load a document without blocking the event loop."""
    return await asyncio.to_thread(load_document, path)
