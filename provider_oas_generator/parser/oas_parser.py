"""
OpenAPI Specification Parser for Provider Schema Generation.

This module loads OpenAPI 3.x documents (JSON or YAML) and resolves them into
a small object model. Schema references are resolved eagerly, but every
resolved node keeps the ``$ref`` it was reached through so that named
component schemas can be turned into named types later on. Self-referencing
component schemas resolve to the same ``Schema`` instance, which keeps the
model finite.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

import yaml

COMPONENTS_SCHEMA_REF_PREFIX: Final = "#/components/schemas/"
JSON_MIME_TYPE: Final = "application/json"

# HTTP methods the extractor knows how to map
HTTP_METHODS: Final = ("get", "put", "post", "delete", "patch")

_YAML_SUFFIXES: Final = frozenset({".yml", ".yaml"})
_NULL_TYPE: Final = "null"


def extract_ref_name(ref_string: str) -> str:
    """Extract the reference name from an OpenAPI $ref string.

    Args:
        ref_string: The $ref value (e.g., "#/components/schemas/Model").

    Returns:
        The extracted reference name (e.g., "Model").
    """
    return ref_string.split("/")[-1]


def _is_json_media_type(media_type: str) -> bool:
    return media_type.split(";")[0].strip().lower() == JSON_MIME_TYPE


def _normalize_schema_type(raw_type: Any) -> str | None:  # noqa: ANN401
    """Reduce an OpenAPI 3.1 type list to the single non-null type."""
    if isinstance(raw_type, list):
        types = [t for t in raw_type if t != _NULL_TYPE]
        return types[0] if types else None
    return raw_type


@dataclass
class Discriminator:
    """Represents an OpenAPI discriminator object."""

    property_name: str
    mapping: dict[str, str] = field(default_factory=dict)


@dataclass(eq=False, repr=False)
class Schema:
    """Represents a resolved OpenAPI schema object."""

    type: str | None = None
    format: str | None = None
    title: str = ""
    description: str = ""
    properties: dict[str, SchemaRef] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)
    items: SchemaRef | None = None
    enum: list[Any] = field(default_factory=list)
    all_of: list[SchemaRef] = field(default_factory=list)
    one_of: list[SchemaRef] = field(default_factory=list)
    any_of: list[SchemaRef] = field(default_factory=list)
    discriminator: Discriminator | None = None
    additional_properties: bool | SchemaRef | None = None
    read_only: bool = False
    default: Any = None
    extensions: dict[str, Any] = field(default_factory=dict)

    def is_type(self, schema_type: str) -> bool:
        """Check whether this schema declares the given type."""
        return self.type == schema_type

    def __repr__(self) -> str:
        return f"Schema(type={self.type!r}, title={self.title!r}, properties={sorted(self.properties)})"


@dataclass(eq=False)
class SchemaRef:
    """A schema together with the reference it was reached through, if any."""

    value: Schema
    ref: str = ""

    @property
    def name(self) -> str:
        """The referenced component name, or an empty string for inline schemas."""
        return extract_ref_name(self.ref) if self.ref else ""


@dataclass
class Parameter:
    """Represents an OpenAPI parameter."""

    name: str
    location: str
    description: str = ""
    required: bool = False
    schema: SchemaRef | None = None


def _find_json_schema(content: dict[str, SchemaRef | None]) -> SchemaRef | None:
    for media_type, schema in content.items():
        if _is_json_media_type(media_type):
            return schema
    return None


@dataclass
class RequestBody:
    """Represents an OpenAPI request body."""

    description: str = ""
    required: bool = False
    content: dict[str, SchemaRef | None] = field(default_factory=dict)

    @property
    def json_schema(self) -> SchemaRef | None:
        """The schema of the ``application/json`` content, if any."""
        return _find_json_schema(self.content)


@dataclass
class Response:
    """Represents an OpenAPI response."""

    status_code: str
    description: str = ""
    content: dict[str, SchemaRef | None] = field(default_factory=dict)

    @property
    def json_schema(self) -> SchemaRef | None:
        """The schema of the ``application/json`` content, if any."""
        return _find_json_schema(self.content)


@dataclass
class Operation:
    """Represents an OpenAPI operation."""

    method: str
    operation_id: str
    summary: str = ""
    description: str = ""
    parameters: list[Parameter] = field(default_factory=list)
    request_body: RequestBody | None = None
    responses: dict[str, Response] = field(default_factory=dict)

    def response(self, status_code: int | str) -> Response | None:
        """Get the response declared for a status code."""
        return self.responses.get(str(status_code))


@dataclass
class PathItem:
    """Represents an OpenAPI path item."""

    summary: str = ""
    description: str = ""
    parameters: list[Parameter] = field(default_factory=list)
    get: Operation | None = None
    put: Operation | None = None
    post: Operation | None = None
    delete: Operation | None = None
    patch: Operation | None = None

    def operation(self, method: str) -> Operation | None:
        """Get the operation for an HTTP method (case-insensitive)."""
        return getattr(self, method.lower(), None)

    def operations(self) -> dict[str, Operation]:
        """Get all defined operations keyed by upper-case HTTP method."""
        return {method.upper(): op for method in HTTP_METHODS if (op := self.operation(method)) is not None}


@dataclass
class OpenAPIDocument:
    """Represents a parsed OpenAPI document."""

    openapi: str
    info: dict[str, Any]
    paths: dict[str, PathItem]
    schemas: dict[str, SchemaRef]

    def find_path(self, path: str) -> PathItem | None:
        """Get the path item for a path template."""
        return self.paths.get(path)


class OASParser:
    """Parser for OpenAPI 3.x specifications."""

    def __init__(self) -> None:
        self.spec_data: dict[str, Any] | None = None
        self._component_schemas: dict[str, Schema] = {}

    def parse_file(self, file_path: str | Path) -> OpenAPIDocument:
        """Parse OpenAPI specification from a JSON or YAML file."""
        path = Path(file_path)
        with path.open(encoding="utf-8") as f:
            if path.suffix.lower() in _YAML_SUFFIXES:
                spec_data = yaml.safe_load(f)
            else:
                spec_data = json.load(f)
        return self.parse_dict(spec_data)

    def parse_dict(self, spec_dict: dict[str, Any]) -> OpenAPIDocument:
        """Parse OpenAPI specification from dictionary."""
        self.spec_data = spec_dict
        self._component_schemas = {}
        return self._parse_spec()

    def _parse_spec(self) -> OpenAPIDocument:
        """Parse the loaded specification."""
        if not self.spec_data or not isinstance(self.spec_data, dict):
            msg = "No specification data loaded"
            raise ValueError(msg)

        if not str(self.spec_data.get("openapi", "")).startswith("3."):
            msg = f"Unsupported OpenAPI version: {self.spec_data.get('openapi')!r} (expected 3.x)"
            raise ValueError(msg)

        raw_schemas = self.spec_data.get("components", {}).get("schemas", {}) or {}
        schemas = {
            name: SchemaRef(value=self._component_schema(name), ref=COMPONENTS_SCHEMA_REF_PREFIX + name)
            for name in raw_schemas
        }

        paths = {path: self._parse_path_item(path_data or {}) for path, path_data in (self.spec_data.get("paths") or {}).items()}

        return OpenAPIDocument(
            openapi=str(self.spec_data["openapi"]),
            info=self.spec_data.get("info", {}),
            paths=paths,
            schemas=schemas,
        )

    def _resolve_reference(self, ref: str) -> dict[str, Any]:
        """Resolve a local JSON reference."""
        if not ref.startswith("#/"):
            msg = f"Only local references are supported: {ref}"
            raise ValueError(msg)

        resolved: Any = self.spec_data
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(resolved, dict) or part not in resolved:
                msg = f"Unresolved reference: {ref}"
                raise ValueError(msg)
            resolved = resolved[part]
        return resolved

    def _resolve_if_ref(self, data: dict[str, Any]) -> dict[str, Any]:
        if "$ref" in data:
            return self._resolve_reference(data["$ref"])
        return data

    def _component_schema(self, name: str) -> Schema:
        """Get the resolved component schema, creating it on first use."""
        if name in self._component_schemas:
            return self._component_schemas[name]

        raw_schema = self._resolve_if_ref(self._resolve_reference(COMPONENTS_SCHEMA_REF_PREFIX + name))
        schema = Schema()
        # Register before populating so that self-references resolve to this instance.
        self._component_schemas[name] = schema
        self._populate_schema(schema, raw_schema)
        return schema

    def _parse_schema_ref(self, schema_data: dict[str, Any]) -> SchemaRef:
        """Parse a schema that may be a reference."""
        ref = schema_data.get("$ref")
        if ref is None:
            schema = Schema()
            self._populate_schema(schema, schema_data)
            return SchemaRef(value=schema)

        if ref.startswith(COMPONENTS_SCHEMA_REF_PREFIX):
            return SchemaRef(value=self._component_schema(extract_ref_name(ref)), ref=ref)

        schema = Schema()
        self._populate_schema(schema, self._resolve_reference(ref))
        return SchemaRef(value=schema, ref=ref)

    def _populate_schema(self, schema: Schema, schema_data: dict[str, Any]) -> None:
        """Fill a schema object from its raw dictionary."""
        schema.type = _normalize_schema_type(schema_data.get("type"))
        schema.format = schema_data.get("format")
        schema.title = schema_data.get("title", "")
        schema.description = schema_data.get("description", "")
        schema.required = list(schema_data.get("required", []))
        schema.enum = list(schema_data.get("enum", []))
        schema.read_only = bool(schema_data.get("readOnly", False))
        schema.default = schema_data.get("default")
        schema.extensions = self._extract_vendor_extensions(schema_data)

        schema.properties = {
            prop_name: self._parse_schema_ref(prop_data)
            for prop_name, prop_data in (schema_data.get("properties") or {}).items()
        }
        if "items" in schema_data:
            schema.items = self._parse_schema_ref(schema_data["items"])

        schema.all_of = [self._parse_schema_ref(s) for s in schema_data.get("allOf", [])]
        schema.one_of = [self._parse_schema_ref(s) for s in schema_data.get("oneOf", [])]
        schema.any_of = [self._parse_schema_ref(s) for s in schema_data.get("anyOf", [])]

        discriminator = schema_data.get("discriminator")
        if discriminator:
            schema.discriminator = Discriminator(
                property_name=discriminator["propertyName"],
                mapping=dict(discriminator.get("mapping", {})),
            )

        additional_properties = schema_data.get("additionalProperties")
        if isinstance(additional_properties, dict):
            schema.additional_properties = self._parse_schema_ref(additional_properties)
        elif isinstance(additional_properties, bool):
            schema.additional_properties = additional_properties

    def _extract_vendor_extensions(self, data: dict[str, Any]) -> dict[str, Any]:
        """Extract vendor extensions from schema data."""
        return {key: value for key, value in data.items() if key.startswith("x-")}

    def _parse_parameters(self, params_data: list[dict[str, Any]]) -> list[Parameter]:
        parameters = []
        for param_data in params_data:
            resolved = self._resolve_if_ref(param_data)
            name = resolved.get("name")
            if not name:
                continue

            schema_data = resolved.get("schema")
            parameters.append(
                Parameter(
                    name=name,
                    location=resolved.get("in", "query"),
                    description=resolved.get("description", ""),
                    required=bool(resolved.get("required", False)),
                    schema=self._parse_schema_ref(schema_data) if schema_data else None,
                )
            )
        return parameters

    def _parse_content(self, content_data: dict[str, Any]) -> dict[str, SchemaRef | None]:
        return {
            media_type: self._parse_schema_ref(media["schema"]) if (media or {}).get("schema") else None
            for media_type, media in content_data.items()
        }

    def _parse_request_body(self, body_data: dict[str, Any] | None) -> RequestBody | None:
        if not body_data:
            return None

        resolved = self._resolve_if_ref(body_data)
        return RequestBody(
            description=resolved.get("description", ""),
            required=bool(resolved.get("required", False)),
            content=self._parse_content(resolved.get("content") or {}),
        )

    def _parse_responses(self, responses_data: dict[Any, Any]) -> dict[str, Response]:
        responses = {}
        for status_code, response_data in responses_data.items():
            resolved = self._resolve_if_ref(response_data or {})
            responses[str(status_code)] = Response(
                status_code=str(status_code),
                description=resolved.get("description", ""),
                content=self._parse_content(resolved.get("content") or {}),
            )
        return responses

    def _parse_operation(self, method: str, operation_data: dict[str, Any]) -> Operation:
        """Parse a single operation."""
        return Operation(
            method=method.upper(),
            operation_id=operation_data.get("operationId", ""),
            summary=operation_data.get("summary", ""),
            description=operation_data.get("description", ""),
            parameters=self._parse_parameters(operation_data.get("parameters", [])),
            request_body=self._parse_request_body(operation_data.get("requestBody")),
            responses=self._parse_responses(operation_data.get("responses") or {}),
        )

    def _parse_path_item(self, path_data: dict[str, Any]) -> PathItem:
        """Parse a path item and its operations."""
        path_item = PathItem(
            summary=path_data.get("summary", ""),
            description=path_data.get("description", ""),
            parameters=self._parse_parameters(path_data.get("parameters", [])),
        )
        for method in HTTP_METHODS:
            if method in path_data:
                setattr(path_item, method, self._parse_operation(method, path_data[method]))
        return path_item
