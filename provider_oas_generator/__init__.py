"""
Provider OAS Generator

Infers a provider schema (resources, functions and types) and the provider
metadata needed to call the API from an OpenAPI 3.x specification.
"""

from .config import ExtractionConfig, load_config
from .errors import DuplicateEnumError, ExtractionError
from .extractor import OpenAPIContext
from .generator import ProviderSchemaGenerator
from .parser import OASParser

__version__ = "1.0.0"
__author__ = "Provider OAS Generator"

__all__ = [
    "DuplicateEnumError",
    "ExtractionConfig",
    "ExtractionError",
    "OASParser",
    "OpenAPIContext",
    "ProviderSchemaGenerator",
    "load_config",
]
