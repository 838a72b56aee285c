"""
Utilities Module for Provider Schema Generation

This module provides utility functions for file operations and the string
case conversions used to name SDK properties, types and modules.
"""

from .file_utils import write_files_to_disk
from .string_case import (
    camel_case_words,
    module_to_pascal_case,
    sanitize_resource_title,
    snake_case_to_camel_case,
    starts_with_number,
    to_camel_init_case,
    to_pascal_case,
    to_sdk_name,
)

__all__ = [
    "camel_case_words",
    "module_to_pascal_case",
    "sanitize_resource_title",
    "snake_case_to_camel_case",
    "starts_with_number",
    "to_camel_init_case",
    "to_pascal_case",
    "to_sdk_name",
    "write_files_to_disk",
]
