"""
OpenAPI Parser Module for Provider Schema Generation

This module loads OpenAPI 3.x documents into a resolved object model
consumed by the extractor.
"""

from .oas_parser import (
    Discriminator,
    OASParser,
    OpenAPIDocument,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
    Schema,
    SchemaRef,
)

__all__ = [
    "Discriminator",
    "OASParser",
    "OpenAPIDocument",
    "Operation",
    "Parameter",
    "PathItem",
    "RequestBody",
    "Response",
    "Schema",
    "SchemaRef",
]
