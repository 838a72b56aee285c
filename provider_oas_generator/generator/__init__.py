"""
Output Generation Module

This module turns an extraction result into the provider schema document,
the provider metadata document and a Markdown summary.
"""

from .template_engine import ProviderSchemaGenerator, SchemaTemplateEngine

__all__ = [
    "ProviderSchemaGenerator",
    "SchemaTemplateEngine",
]
