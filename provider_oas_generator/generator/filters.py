"""
Jinja2 filters for rendering the provider schema summary.

The filters accept the IR objects produced by the extractor and turn them
into short Markdown-friendly labels.
"""

from __future__ import annotations

from typing import Final

from provider_oas_generator.extractor.schema_spec import (
    ANY_TYPE_REF,
    CRUDOperationsMap,
    TypeSpec,
    split_token,
)

_ANY_LABEL: Final = "Any"
_CRUD_LABELS: Final = (("c", "create"), ("r", "read"), ("u", "update"), ("p", "put"), ("d", "delete"))
_MD_SPECIAL_CHARS: Final = ("\\", "|", "*", "_", "`")


def token_name(token: str) -> str:
    """Get the type name of a type token.

    Example:
        >>> token_name("provider:widgets:Widget")
        'Widget'
    """
    return split_token(token)[2]


def token_module(token: str) -> str:
    """Get the module of a type token.

    Example:
        >>> token_module("provider:vms/v2:getVm")
        'vms/v2'
    """
    return split_token(token)[1]


def type_label(type_spec: TypeSpec | None) -> str:
    """Render a type spec as a compact label.

    Refs are shown by type name, arrays as ``T[]``, maps as
    ``map<string, T>`` and unions as ``A | B``.

    Example:
        >>> type_label(TypeSpec(type="array", items=TypeSpec(type="string")))
        'string[]'
    """
    if type_spec is None:
        return ""
    if type_spec.ref == ANY_TYPE_REF:
        return _ANY_LABEL
    if type_spec.ref_token:
        return token_name(type_spec.ref_token)
    if type_spec.one_of:
        return " | ".join(type_label(member) for member in type_spec.one_of)
    if type_spec.items is not None:
        return f"{type_label(type_spec.items)}[]"
    if type_spec.additional_properties is not None:
        return f"map<string, {type_label(type_spec.additional_properties)}>"
    return type_spec.type or _ANY_LABEL


def crud_label(operations: CRUDOperationsMap | None) -> str:
    """Render the CRUD paths of a resource, e.g. ``create /widgets, read /widgets/{id}``."""
    if operations is None:
        return ""
    return ", ".join(f"{label} {path}" for key, label in _CRUD_LABELS if (path := getattr(operations, key)))


def md_escape(text: str | None) -> str:
    """Escape text for use inside a Markdown table cell.

    Newlines are collapsed to spaces and Markdown control characters escaped.
    """
    if not text:
        return ""
    escaped = " ".join(text.split())
    for char in _MD_SPECIAL_CHARS:
        escaped = escaped.replace(char, "\\" + char)
    return escaped


FILTERS = {
    "type_label": type_label,
    "token_name": token_name,
    "token_module": token_module,
    "crud_label": crud_label,
    "md_escape": md_escape,
}
