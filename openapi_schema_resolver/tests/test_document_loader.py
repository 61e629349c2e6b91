import asyncio
from pathlib import Path
from unittest import TestCase

import pytest

from openapi_schema_resolver.pipeline import (
    FileNotFound,
    ParseError,
    SpecValidationError,
    UnsupportedFormat,
    load_document,
    load_document_async,
    validate_document,
)

TEST_DATA_DIR = Path(__file__).parent / "test_data"


def valid_document(**overrides):
    document = {
        "openapi": "3.0.2",
        "info": {"title": "Test", "version": "1.0.0"},
        "paths": {},
    }
    document.update(overrides)
    return document


class TestLoadDocument(TestCase):
    """Loading specification files"""

    def test_load_yaml(self):
        document = load_document(TEST_DATA_DIR / "sample_api.yaml")

        self.assertEqual(document.version, "3.0.3")
        self.assertEqual(document.source, str((TEST_DATA_DIR / "sample_api.yaml").resolve()))
        self.assertIn("User", document.schemas)

    def test_load_json(self):
        document = load_document(str(TEST_DATA_DIR / "sample_api.json"))

        self.assertEqual(list(document.schemas), ["Order", "OrderItem"])

    def test_documents_have_distinct_ids(self):
        first = load_document(TEST_DATA_DIR / "sample_api.json")
        second = load_document(TEST_DATA_DIR / "sample_api.json")

        self.assertNotEqual(first.document_id, second.document_id)

    def test_file_not_found(self):
        missing = TEST_DATA_DIR / "does_not_exist.yaml"
        with self.assertRaises(FileNotFound) as ctx:
            load_document(missing)
        self.assertEqual(str(ctx.exception), f"File not found: {missing.resolve()}")

    def test_unsupported_format(self):
        with self.assertRaises(UnsupportedFormat) as ctx:
            load_document(TEST_DATA_DIR / "unsupported.toml")
        self.assertEqual(str(ctx.exception), "Unsupported file format: .toml")

    def test_invalid_yaml(self):
        with self.assertRaises(ParseError) as ctx:
            load_document(TEST_DATA_DIR / "malformed.yaml")
        self.assertIn("Invalid YAML format", str(ctx.exception))
        self.assertIsNotNone(ctx.exception.cause)

    def test_invalid_json(self):
        with self.assertRaises(ParseError) as ctx:
            load_document(TEST_DATA_DIR / "malformed.json")
        self.assertIn("Invalid JSON format", str(ctx.exception))

    def test_unsupported_version(self):
        with self.assertRaises(SpecValidationError) as ctx:
            load_document(TEST_DATA_DIR / "invalid_version.yaml")
        self.assertIn("Unsupported OpenAPI version: 3.1.0", str(ctx.exception))

    def test_load_async(self):
        document = asyncio.run(load_document_async(TEST_DATA_DIR / "sample_api.yaml"))

        self.assertEqual(document.raw["info"]["title"], "Sample User API")


class TestValidateDocument(TestCase):
    """Top-level structure checks"""

    def test_valid_document(self):
        validate_document(valid_document())

    def test_not_an_object(self):
        for raw in [None, [], "openapi: 3.0.0", 42]:
            with self.subTest(raw=raw):
                with self.assertRaises(SpecValidationError) as ctx:
                    validate_document(raw)
                self.assertEqual(str(ctx.exception), "Invalid specification: not an object")

    def test_empty_paths_is_valid(self):
        validate_document(valid_document(paths={}))

    def test_path_without_slash_is_only_a_warning(self):
        with self.assertLogs("openapi_schema_resolver.pipeline.loader.validation", level="WARNING") as logs:
            validate_document(valid_document(paths={"users": {}}))
        self.assertIn("Path 'users' does not start with '/'", logs.output[0])


@pytest.mark.parametrize(
    "document, message",
    [
        ({"info": {"title": "T", "version": "1"}, "paths": {}}, "Missing required field: openapi"),
        ({"openapi": "3.0.0", "paths": {}}, "Missing required field: info"),
        ({"openapi": "3.0.0", "info": {"version": "1"}, "paths": {}}, "Missing required field: info.title"),
        ({"openapi": "3.0.0", "info": {"title": "T"}, "paths": {}}, "Missing required field: info.version"),
        ({"openapi": "3.0.0", "info": {"title": "T", "version": "1"}}, "Missing required field: paths"),
    ],
)
def test_missing_required_fields(document, message):
    with pytest.raises(SpecValidationError, match=message):
        validate_document(document)


@pytest.mark.parametrize("version", ["2.0", "3.1.0", "3.0", "4.0.0", "3.0.x"])
def test_unsupported_versions(version):
    with pytest.raises(SpecValidationError, match="Unsupported OpenAPI version"):
        validate_document(valid_document(openapi=version))


@pytest.mark.parametrize("version", ["3.0.0", "3.0.3", "3.0.10"])
def test_supported_versions(version):
    validate_document(valid_document(openapi=version))
