"""
External reference resolver.

Loads the document named by a "<location>#/components/schemas/..."
reference from a file or an http(s) URL and returns the schema the
pointer names. Loaded documents are cached per location with a TTL.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx

from ...utils import is_url, join_location, parse_reference, walk_pointer
from ..config import ExternalResolverConfig
from ..errors import ExternalReferenceError, ParseError
from ..loader.document_loader import parse_content
from ..schema_ast.nodes import SchemaNode
from ..schema_ast.parser import SchemaParser

logger = logging.getLogger(__name__)

FETCHABLE_SCHEMES = ("http", "https")


class ExternalReferenceResolver:
    """Fetches and parses schemas that live in other documents."""

    def __init__(
        self,
        config: ExternalResolverConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the resolver.

        Args:
            config: Remote access, depth and document cache options
            http_client: Optional shared HTTP client (caller manages lifecycle).
                If not provided, a client is created for each fetch and closed afterwards.
        """
        self.config = config or ExternalResolverConfig()
        self._shared_client = http_client
        self._documents: dict[str, tuple[float, dict[str, Any]]] = {}

    async def resolve_external_schema(self, reference: str, base_location: str = "", depth: int = 0) -> SchemaNode:
        """
        Resolve a reference into another document.

        Args:
            reference: "<location>#/components/schemas/<Name>[/...]"
            base_location: Location of the referencing document; relative
                locations are resolved against it
            depth: Number of external hops already on the resolution path

        Returns:
            The referenced schema, parsed with its own document as base so that
            the references it contains stay resolvable

        Raises:
            ExternalReferenceError: If the schema cannot be loaded or found
        """
        if depth > self.config.max_depth:
            raise ExternalReferenceError(
                f"Maximum external reference depth ({self.config.max_depth}) exceeded: {reference}",
                reference=reference,
            )

        parsed = parse_reference(reference)
        if parsed is None or not parsed[0]:
            raise ExternalReferenceError(f"Invalid external reference: {reference}", reference=reference)
        location, segments = parsed
        fragment = reference.partition("#")[2]

        resolved_location = join_location(base_location, location)
        raw = await self.load_document(resolved_location)

        components = raw.get("components")
        schemas = components.get("schemas") if isinstance(components, Mapping) else None
        try:
            target = walk_pointer(schemas or {}, segments)
        except KeyError:
            raise ExternalReferenceError(
                f"Schema not found in external document {resolved_location}: #{fragment}",
                reference=reference,
            ) from None

        return SchemaParser(base_location=resolved_location).parse(target, f"{resolved_location}#{fragment}")

    async def load_document(self, location: str) -> dict[str, Any]:
        """Load, parse and validate the document at a file path or URL."""
        cached = self._get_cached(location)
        if cached is not None:
            logger.debug("External document cache hit: %s", location)
            return cached

        if is_url(location):
            content = await self._fetch(location)
        else:
            content = await asyncio.to_thread(self._read_file, location)

        fmt = "json" if location.lower().endswith(".json") or content.lstrip().startswith(("{", "[")) else "yaml"
        try:
            raw = parse_content(content, fmt, location)
        except ParseError as e:
            raise ExternalReferenceError(str(e), cause=e) from e
        self._validate(raw, location)

        logger.info("Loaded external document %s", location)
        self._store(location, raw)
        return raw

    def clear_cache(self) -> None:
        self._documents.clear()

    def cache_stats(self) -> dict[str, Any]:
        return {
            "size": len(self._documents),
            "max_size": self.config.max_cache_size,
            "locations": list(self._documents),
        }

    def _get_cached(self, location: str) -> dict[str, Any] | None:
        if not self.config.cache_enabled:
            return None
        entry = self._documents.get(location)
        if entry is None:
            return None
        loaded_at, raw = entry
        if time.monotonic() - loaded_at > self.config.cache_ttl_seconds:
            del self._documents[location]
            return None
        return raw

    def _store(self, location: str, raw: dict[str, Any]) -> None:
        if not self.config.cache_enabled:
            return
        self._documents[location] = (time.monotonic(), raw)
        # Oldest first
        while len(self._documents) > self.config.max_cache_size:
            del self._documents[next(iter(self._documents))]

    def _read_file(self, location: str) -> str:
        path = Path(location)
        if not path.is_file():
            raise ExternalReferenceError(f"External file not found: {path.resolve()}")
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ExternalReferenceError(f"Cannot read external file {path}: {e}", cause=e) from e

    def _check_url(self, url: str) -> None:
        parts = urlparse(url)
        if parts.scheme.lower() not in FETCHABLE_SCHEMES:
            raise ExternalReferenceError(f"Unsupported URL scheme '{parts.scheme}': {url}")
        if not self.config.enable_remote_references:
            raise ExternalReferenceError(f"Remote references are disabled: {url}")
        host = (parts.hostname or "").lower()
        if self.config.allowed_domains and not any(
            host == domain.lower() or host.endswith("." + domain.lower()) for domain in self.config.allowed_domains
        ):
            raise ExternalReferenceError(f"Domain '{host}' is not in the allowed domains list: {url}")

    async def _fetch(self, url: str) -> str:
        self._check_url(url)

        if self._shared_client is not None:
            client = self._shared_client
            close_after = False
        else:
            client = httpx.AsyncClient(follow_redirects=True, max_redirects=self.config.max_redirects)
            close_after = True

        headers = {"User-Agent": self.config.user_agent, **self.config.headers}
        attempts = max(1, self.config.retries + 1)
        last_error: httpx.HTTPError | None = None
        try:
            for attempt in range(1, attempts + 1):
                if attempt > 1:
                    await asyncio.sleep(self.config.retry_backoff_seconds * (attempt - 1))
                try:
                    response = await client.get(url, headers=headers, timeout=self.config.timeout_ms / 1000)
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    last_error = e
                    logger.warning("Fetching %s failed (attempt %d/%d): %s", url, attempt, attempts, e)
                    continue
                logger.info("Fetched %s (%d bytes)", url, len(response.content))
                return response.text
        finally:
            if close_after:
                await client.aclose()

        raise ExternalReferenceError(
            f"Failed to fetch {url} after {attempts} attempt(s): {last_error}", cause=last_error
        ) from last_error

    def _validate(self, raw: Any, location: str) -> None:
        if not isinstance(raw, Mapping):
            raise ExternalReferenceError(f"External document {location} is not an object")
        if not raw.get("openapi") and not raw.get("swagger"):
            raise ExternalReferenceError(f"External document {location} is missing the openapi or swagger field")
        info = raw.get("info")
        if not isinstance(info, Mapping) or not info.get("title") or not info.get("version"):
            raise ExternalReferenceError(f"External document {location} is missing info.title or info.version")
