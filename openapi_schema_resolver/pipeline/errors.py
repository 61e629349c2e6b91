"""
Error taxonomy for schema resolution.

Loader, validation, reference and composition failures all derive from
SchemaResolutionError so callers can catch a single base class.
"""

from __future__ import annotations


class SchemaResolutionError(Exception):
    """Base class for every failure raised by the resolver.

    Attributes:
        reference: The $ref string being resolved when the error occurred, if any
        cause: The underlying exception for wrapped failures, if any
    """

    def __init__(self, message: str, reference: str | None = None, cause: BaseException | None = None):
        super().__init__(message)
        self.reference = reference
        self.cause = cause


class FileNotFound(SchemaResolutionError):
    """Raised when a specification file does not exist."""


class UnsupportedFormat(SchemaResolutionError):
    """Raised when a specification file has an extension other than .json, .yaml or .yml."""


class ParseError(SchemaResolutionError):
    """Raised when a specification file is not valid JSON or YAML."""


class SpecValidationError(SchemaResolutionError):
    """Raised when a document misses a required field or declares an unsupported version."""


class MalformedReference(SchemaResolutionError):
    """Raised when a $ref does not match the recognized pointer grammar."""


class ReferenceNotFound(SchemaResolutionError):
    """Raised when a $ref points to a schema that is not declared."""


class CircularReferenceDetected(SchemaResolutionError):
    """Raised when a $ref is already on the active resolution path."""


class ExternalResolutionFailed(SchemaResolutionError):
    """Raised when a reference into another document cannot be resolved.

    The original failure is kept on ``cause`` and chained as ``__cause__``.
    """


class CompositionStructureError(SchemaResolutionError):
    """Raised when allOf/oneOf/anyOf is null, not an array or empty."""


class CompositionConflictError(SchemaResolutionError):
    """Raised when allOf members declare the same property with different types."""


class MissingDiscriminator(SchemaResolutionError):
    """Raised when a oneOf composition has no discriminator property."""


class ExternalReferenceError(SchemaResolutionError):
    """Raised by the external reference resolver.

    This can happen when:
    - Remote references are disabled or the domain is not allowed
    - The referenced file or URL cannot be read
    - The fetched content is not a valid OpenAPI document
    - The pointer does not exist in the fetched document
    - The external nesting depth exceeds the configured maximum
    """


class MetricsDisabledError(SchemaResolutionError):
    """Raised when performance metrics are requested while metrics are disabled."""
