"""
Provider Schema Extraction Module

This module infers resources, functions and types from the paths and schemas
of an OpenAPI document.
"""

from .extractor import OpenAPIContext
from .schema_spec import (
    ComplexTypeSpec,
    CRUDOperationsMap,
    ExtractionResult,
    ExtractionSession,
    FunctionSpec,
    PackageSpec,
    PropertySpec,
    ProviderMetadata,
    ResourceSpec,
    TypeSpec,
)
from .type_resolver import ResourceContext

__all__ = [
    "CRUDOperationsMap",
    "ComplexTypeSpec",
    "ExtractionResult",
    "ExtractionSession",
    "FunctionSpec",
    "OpenAPIContext",
    "PackageSpec",
    "PropertySpec",
    "ProviderMetadata",
    "ResourceContext",
    "ResourceSpec",
    "TypeSpec",
]
