"""Shared fixtures for the provider schema generator tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

from provider_oas_generator.config import ExtractionConfig
from provider_oas_generator.extractor import OpenAPIContext
from provider_oas_generator.extractor.schema_spec import ExtractionResult
from provider_oas_generator.parser import OASParser, OpenAPIDocument

TESTDATA_DIR = Path(__file__).parent / "testdata"


@pytest.fixture
def testdata_dir() -> Path:
    """Get the directory holding the OpenAPI test documents."""
    return TESTDATA_DIR


@pytest.fixture
def load_spec_dict() -> Callable[[str], dict[str, Any]]:
    """Load a test document as a plain dictionary."""

    def _load(name: str) -> dict[str, Any]:
        with (TESTDATA_DIR / name).open(encoding="utf-8") as f:
            return yaml.safe_load(f)

    return _load


@pytest.fixture
def load_document() -> Callable[[str], OpenAPIDocument]:
    """Parse a test document."""

    def _load(name: str) -> OpenAPIDocument:
        return OASParser().parse_file(TESTDATA_DIR / name)

    return _load


@pytest.fixture
def extract(load_document: Callable[[str], OpenAPIDocument]) -> Callable[..., ExtractionResult]:
    """Parse a test document and run one extraction pass over it."""

    def _extract(name: str, **config_kwargs: Any) -> ExtractionResult:
        return OpenAPIContext(load_document(name), ExtractionConfig(**config_kwargs)).gather_resources_from_api()

    return _extract


@pytest.fixture
def minimal_spec() -> Callable[..., dict[str, Any]]:
    """Build a minimal OpenAPI document around the given paths."""

    def _build(paths: dict[str, Any], schemas: dict[str, Any] | None = None) -> dict[str, Any]:
        return {
            "openapi": "3.0.3",
            "info": {"title": "Test", "version": "1.0"},
            "paths": paths,
            "components": {"schemas": schemas or {}},
        }

    return _build
