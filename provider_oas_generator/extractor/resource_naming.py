"""
Resource naming and path normalization helpers.

These helpers derive modules, resource titles and parameter names from API
paths and operation ids. They hold no state; everything they need is passed in.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Iterable
from typing import Final

from provider_oas_generator.errors import NameOverrideConflictError
from provider_oas_generator.parser.oas_parser import HTTP_METHODS, Parameter, PathItem, SchemaRef
from provider_oas_generator.utils.string_case import (
    camel_case_words,
    snake_case_to_camel_case,
    to_pascal_case,
)

logger = logging.getLogger(__name__)

PATH_SEPARATOR: Final = "/"
PARAMETER_LOCATION_PATH: Final = "path"
ID_PARAM: Final = "id"

_VERSION_PATTERN: Final = re.compile(r"v[0-9]+[a-z0-9]*")
_LIST_KEYWORD: Final = "list"

# Verb keywords removed from operation ids, per HTTP method
_OPERATION_KEYWORDS: Final[dict[str, frozenset[str]]] = {
    "GET": frozenset({"get", "list", "show"}),
    "POST": frozenset({"add", "create", "post", "put", "set"}),
    "PUT": frozenset({"add", "create", "put", "set", "update", "replace"}),
    "PATCH": frozenset({"patch", "update"}),
    "DELETE": frozenset({"delete", "destroy", "remove"}),
}


def _path_parts(path: str) -> list[str]:
    return path.removeprefix(PATH_SEPARATOR).split(PATH_SEPARATOR)


def _is_path_param_segment(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


def get_parent_path(path: str) -> str:
    """Get the path without its trailing path parameter segment.

    Args:
        path: An API path template such as ``/v2/vms/{vm_id}``.

    Returns:
        The path with the last segment removed when it is a path parameter,
        otherwise the path unchanged.
    """
    parts = _path_parts(path)
    if not _is_path_param_segment(parts[-1]):
        return path
    return PATH_SEPARATOR + PATH_SEPARATOR.join(parts[:-1])


def get_module_from_path(path: str, *, use_parent_resource_as_module: bool = False) -> str:
    """Derive the module a path's resources and functions are placed in.

    Args:
        path: The API path template.
        use_parent_resource_as_module: Use the last literal segment of the
            parent path instead of the root segment.

    Returns:
        The lower-cased module name. Paths starting with a version segment
        produce a versioned module such as ``vms/v2``.

    Examples:
        >>> get_module_from_path("/v2/vms/{vm_id}")
        'vms/v2'
        >>> get_module_from_path("/widgets")
        'widgets'
    """
    if use_parent_resource_as_module:
        return _path_parts(get_parent_path(path))[-1].lower()

    parts = _path_parts(path)
    if not _VERSION_PATTERN.fullmatch(parts[0]) or len(parts) < 2:  # noqa: PLR2004
        return parts[0].lower()

    return parts[1].lower() + PATH_SEPARATOR + parts[0]


def is_list_operation(operation_id: str) -> bool:
    """Heuristic: an operation whose id mentions "list" returns a collection."""
    return _LIST_KEYWORD in operation_id.lower()


def get_resource_title_from_operation_id(
    operation_id: str,
    method: str,
    *,
    has_namespace: bool = False,
    namespace_separator: str = "_",
) -> str:
    """Derive a PascalCase resource title from an operation id.

    Words of the (camel-cased) operation id that match a verb keyword of the
    HTTP method are dropped. If every word is a keyword, nothing is dropped.

    Args:
        operation_id: The operation id.
        method: The HTTP method of the operation.
        has_namespace: Whether operation ids are prefixed with a namespace.
        namespace_separator: The separator between namespace and operation.

    Returns:
        The resource title.

    Examples:
        >>> get_resource_title_from_operation_id("setTheTableSetting", "POST")
        'TheTableSetting'
        >>> get_resource_title_from_operation_id("machines_show", "GET")
        'Machines'
    """
    result = operation_id
    if has_namespace:
        result = operation_id.split(namespace_separator)[-1]
    elif "_" in operation_id:
        result = snake_case_to_camel_case(operation_id)

    keywords = _OPERATION_KEYWORDS.get(method.upper(), frozenset())
    words = camel_case_words(result)
    kept = [word for word in words if word.lower() not in keywords] or words

    resource_title = to_pascal_case("".join(to_pascal_case(word) for word in kept))
    logger.info("Converted operation id %s to resource title %s", operation_id, resource_title)
    return resource_title


def get_resource_title_from_request_schema(schema_name: str, schema_ref: SchemaRef | None) -> str:
    """Derive a resource title from a component schema.

    The schema's own title wins; otherwise the component name is converted.
    """
    if schema_ref is not None and schema_ref.value.title:
        return to_pascal_case(schema_ref.value.title)
    return to_pascal_case(schema_name)


def get_singular_name_for_resource(name: str, allowed_plurals: Iterable[str]) -> str:
    """Strip a trailing ``s`` unless the name ends with an allowed plural name.

    Examples:
        >>> get_singular_name_for_resource("Widgets", ["Status"])
        'Widget'
        >>> get_singular_name_for_resource("VmStatus", ["Status"])
        'VmStatus'
    """
    if any(name.endswith(plural) for plural in allowed_plurals):
        return name
    return name.removesuffix("s")


def add_name_override(key: str, value: str, overrides: dict[str, str]) -> None:
    """Record a name override, failing if the key already maps elsewhere.

    Raises:
        NameOverrideConflictError: If ``key`` already maps to a different value.
    """
    existing = overrides.get(key)
    if existing is not None and existing != value:
        msg = f"mapping for {key} already exists with value {existing} but a new mapping with value {value} was requested"
        raise NameOverrideConflictError(msg)
    overrides[key] = value


def _rename_path_params(parameters: list[Parameter], renames: dict[str, str]) -> list[Parameter]:
    return [
        dataclasses.replace(param, name=renames[param.name])
        if param.location == PARAMETER_LOCATION_PATH and param.name in renames
        else param
        for param in parameters
    ]


def ensure_id_hierarchy_in_request_path(path: str, path_item: PathItem) -> tuple[str, PathItem]:
    """Normalize id path parameters so that parents and children are distinguishable.

    A non-final parameter named ``id`` becomes ``<parent>Id`` (``<parent>_id``
    when the parent segment is snake_case) and a final parameter whose name
    contains "id" becomes ``id``.

    Args:
        path: The API path template.
        path_item: The path item defined for ``path``.

    Returns:
        The rewritten path and a copy of the path item whose path parameters
        use the new names. The given path item is left untouched.

    Examples:
        >>> ensure_id_hierarchy_in_request_path("/vms/{id}/disks/{disk_id}", PathItem())[0]
        '/vms/{vmsId}/disks/{id}'
    """
    segments = path.split(PATH_SEPARATOR)
    last_index = len(segments) - 1
    renames: dict[str, str] = {}

    for i, segment in enumerate(segments):
        if not _is_path_param_segment(segment):
            continue

        param_name = segment[1:-1]
        new_name = ""
        if i != last_index and param_name == ID_PARAM and i > 0:
            parent = segments[i - 1]
            new_name = f"{parent}_id" if "_" in parent else f"{parent}Id"
        elif i == last_index and param_name != ID_PARAM and ID_PARAM in param_name.lower():
            new_name = ID_PARAM

        if new_name:
            renames[param_name] = new_name
            segments[i] = "{" + new_name + "}"

    if not renames:
        return path, path_item

    new_path = PATH_SEPARATOR.join(segments)
    logger.debug("Normalized path parameters of %s to %s", path, new_path)

    changes: dict[str, object] = {"parameters": _rename_path_params(path_item.parameters, renames)}
    for method in HTTP_METHODS:
        operation = path_item.operation(method)
        if operation is not None:
            changes[method] = dataclasses.replace(
                operation, parameters=_rename_path_params(operation.parameters, renames)
            )
    return new_path, dataclasses.replace(path_item, **changes)
