"""
Utility functions for OpenAPI reference handling.
"""

import posixpath
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urljoin

# A location is a URL when it starts with a scheme followed by "://"
_URL_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def is_url(location: str) -> bool:
    """Check whether a reference location is scheme-qualified.

    Examples:
        "https://example.com/api.yaml" -> True
        "ftp://example.com/api.yaml" -> True
        "./common.yaml" -> False
        "" -> False
    """
    return bool(location) and bool(_URL_PATTERN.match(location))


def extract_schema_name(reference: str) -> str:
    """Return the last path segment of a reference.

    Examples:
        "#/components/schemas/User" -> "User"
        "common.yaml#/components/schemas/Address" -> "Address"
    """
    return reference.split("/")[-1]


def join_location(base: str, location: str) -> str:
    """Resolve a document location relative to the document that references it.

    Args:
        base: Location of the referencing document (file path, URL or "")
        location: Location found in the $ref (before the "#")

    Returns:
        Absolute URL, or a normalized file path
    """
    if not location:
        return base
    if is_url(location):
        return location
    if is_url(base):
        return urljoin(base, location)
    if Path(location).is_absolute() or not base:
        return posixpath.normpath(location)
    return posixpath.normpath(str(Path(base).parent / location))


SCHEMAS_POINTER_PREFIX = "/components/schemas/"


def parse_reference(reference: str) -> tuple[str, list[str]] | None:
    """Split a reference into its location and the pointer segments after "/components/schemas/".

    Returns None when the reference does not follow the
    "[location]#/components/schemas/<Name>[/...]" grammar.

    Examples:
        "#/components/schemas/User" -> ("", ["User"])
        "common.yaml#/components/schemas/Page/properties/items" -> ("common.yaml", ["Page", "properties", "items"])
        "#/definitions/User" -> None
    """
    if not isinstance(reference, str) or "#" not in reference:
        return None
    location, _, fragment = reference.partition("#")
    if not fragment.startswith(SCHEMAS_POINTER_PREFIX):
        return None
    segments = [s.replace("~1", "/").replace("~0", "~") for s in fragment[len(SCHEMAS_POINTER_PREFIX) :].split("/")]
    if any(not s for s in segments):
        return None
    return location, segments


def walk_pointer(container: Any, segments: list[str]) -> Any:
    """Follow unescaped JSON pointer segments through nested mappings and lists.

    Raises:
        KeyError: If a segment does not exist
    """
    current = container
    for segment in segments:
        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            raise KeyError(segment)
    return current
