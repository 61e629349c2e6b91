"""
OpenAPI document validation.

Only the fields the resolver relies on are checked: a 3.0.x version,
info.title, info.version and paths.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any

from ..errors import SpecValidationError

logger = logging.getLogger(__name__)

SUPPORTED_VERSION = re.compile(r"^3\.0\.\d+$")


def validate_document(raw: Any) -> None:
    """
    Validate the top-level structure of an OpenAPI document.

    Args:
        raw: Parsed document.

    Raises:
        SpecValidationError: If the document is not an object, misses a
            required field or declares a version other than 3.0.x.
    """
    if not isinstance(raw, Mapping):
        raise SpecValidationError("Invalid specification: not an object")

    if not raw.get("openapi"):
        raise SpecValidationError("Missing required field: openapi")

    version = raw["openapi"]
    if not isinstance(version, str) or not SUPPORTED_VERSION.match(version):
        raise SpecValidationError(f"Unsupported OpenAPI version: {version}. Only 3.0.x is supported.")

    info = raw.get("info")
    if not isinstance(info, Mapping):
        raise SpecValidationError("Missing required field: info")
    if not info.get("title"):
        raise SpecValidationError("Missing required field: info.title")
    if not info.get("version"):
        raise SpecValidationError("Missing required field: info.version")

    # An empty paths object is valid
    if raw.get("paths") is None:
        raise SpecValidationError("Missing required field: paths")
    if not isinstance(raw["paths"], Mapping):
        raise SpecValidationError("Invalid field: paths must be an object")

    for path in raw["paths"]:
        if not str(path).startswith("/"):
            logger.warning("Path '%s' does not start with '/'", path)
