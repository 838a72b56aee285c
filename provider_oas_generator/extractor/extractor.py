"""
Resource and function extraction from an OpenAPI document.

The extractor walks every API path once and decides, per HTTP method, what
the operation contributes to the provider schema:

* ``GET`` - a read mapping plus a ``get<Title>`` function, or a
  ``list<Title>`` function for collections.
* ``PATCH``, ``PUT`` and ``DELETE`` - update, put and delete mappings.
* ``POST`` (or a ``PUT`` that acts as the creation endpoint) - a resource
  whose inputs come from the request body and whose outputs come from both
  the request and the response bodies.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from typing import Final

from provider_oas_generator.config import ExtractionConfig
from provider_oas_generator.errors import ExtractionError
from provider_oas_generator.exclusions import ExclusionEvaluator
from provider_oas_generator.extractor.resource_naming import (
    ID_PARAM,
    PARAMETER_LOCATION_PATH,
    PATH_SEPARATOR,
    ensure_id_hierarchy_in_request_path,
    get_module_from_path,
    get_parent_path,
    get_resource_title_from_operation_id,
    get_resource_title_from_request_schema,
    get_singular_name_for_resource,
    is_list_operation,
)
from provider_oas_generator.extractor.schema_spec import (
    ARRAY_TYPE,
    STRING_TYPE,
    ExtractionResult,
    ExtractionSession,
    FunctionSpec,
    ObjectTypeSpec,
    PackageSpec,
    PropertySpec,
    ResourceSpec,
    ReturnTypeSpec,
    TypeSpec,
    split_token,
)
from provider_oas_generator.extractor.type_resolver import ResourceContext
from provider_oas_generator.parser.oas_parser import (
    OpenAPIDocument,
    Operation,
    Parameter,
    PathItem,
    Schema,
    SchemaRef,
    extract_ref_name,
)
from provider_oas_generator.utils.string_case import module_to_pascal_case, to_pascal_case, to_sdk_name

logger = logging.getLogger(__name__)

# Status codes searched, in order, for the response of a create operation
CREATE_RESPONSE_STATUS_CODES: Final = (200, 201, 202)
DEFAULT_CSHARP_NAMESPACES: Final = {"": "Provider"}

_GET: Final = "GET"
_POST: Final = "POST"
_PUT: Final = "PUT"
_PATCH: Final = "PATCH"
_DELETE: Final = "DELETE"
_SUCCESS_STATUS_PREFIX: Final = "2"


def _require_operation_id(operation: Operation, method: str, path: str) -> str:
    if not operation.operation_id:
        msg = f"operationId is missing for path {method} {path}"
        raise ExtractionError(msg)
    return operation.operation_id


def _merged_parameters(path_item: PathItem, operation: Operation) -> list[Parameter]:
    """Path-level parameters combined with the operation's own (operation wins)."""
    merged = {(param.name, param.location): param for param in path_item.parameters}
    merged.update({(param.name, param.location): param for param in operation.parameters})
    return list(merged.values())


def _path_parameters(parameters: Iterable[Parameter]) -> list[Parameter]:
    return [param for param in parameters if param.location == PARAMETER_LOCATION_PATH]


def _ends_with_path_param(path: str) -> bool:
    return path.rstrip(PATH_SEPARATOR).endswith("}")


def _owning_path(path: str) -> str:
    """The path with its last segment removed."""
    parent = path.rsplit(PATH_SEPARATOR, 1)[0]
    return parent or PATH_SEPARATOR


def _is_object_like(schema: Schema) -> bool:
    return schema.is_type("object") or bool(schema.properties) or bool(schema.all_of)


class OpenAPIContext:
    """Extracts a provider schema from an OpenAPI document.

    Args:
        doc: The parsed OpenAPI document. It is never modified.
        config: Extraction options. Defaults to ``ExtractionConfig()``.

    Raises:
        InvalidExclusionError: If the configured exclusions are not valid.
    """

    def __init__(self, doc: OpenAPIDocument, config: ExtractionConfig | None = None) -> None:
        self.doc = doc
        self.config = config or ExtractionConfig()
        self.exclusion_evaluator = ExclusionEvaluator(self.config.exclusions, self.config.excluded_paths)
        self.allowed_plural_resources = self.config.all_allowed_plural_resources

    def gather_resources_from_api(self) -> ExtractionResult:
        """Run one extraction pass over every path of the document.

        Each call starts from a fresh session, so repeated calls return equal
        but independent results.

        Returns:
            The package, the provider metadata and the C# namespace of every module.

        Raises:
            ExtractionError: If the document cannot be extracted. No partial
                result is returned.
        """
        session = ExtractionSession(package=PackageSpec(name=self.config.package_name))
        csharp_namespaces = dict(DEFAULT_CSHARP_NAMESPACES)

        for path in sorted(self.doc.paths):
            self._gather_path(session, path, self.doc.paths[path], csharp_namespaces)

        session.package.language = {"csharp": {"namespaces": dict(sorted(csharp_namespaces.items()))}}
        return ExtractionResult(
            package=session.package,
            metadata=session.metadata,
            csharp_namespaces=csharp_namespaces,
        )

    def _included_operations(self, path: str, path_item: PathItem) -> dict[str, Operation]:
        operations = {}
        for method, operation in path_item.operations().items():
            if self.exclusion_evaluator.should_exclude(method, path):
                logger.info(
                    "Excluding %s %s (%s)",
                    method,
                    path,
                    ", ".join(self.exclusion_evaluator.get_matching_exclusions(method, path)),
                )
                continue
            operations[method] = operation
        return operations

    def _gather_path(
        self,
        session: ExtractionSession,
        path: str,
        path_item: PathItem,
        csharp_namespaces: dict[str, str],
    ) -> None:
        operations = self._included_operations(path, path_item)
        if not operations:
            logger.info("Skipping path %s: no operations left after exclusions", path)
            return

        module = get_module_from_path(path, use_parent_resource_as_module=self.config.use_parent_resource_as_module)
        csharp_namespaces.setdefault(module, module_to_pascal_case(module))

        current_path, path_item = ensure_id_hierarchy_in_request_path(path, path_item)
        logger.info("Processing path %s as %s", path, current_path)

        # Re-read the operations from the normalized path item.
        operations = {method: op for method in operations if (op := path_item.operation(method)) is not None}

        if _GET in operations:
            self._gather_get(session, current_path, module, path_item, operations[_GET])
        if _PATCH in operations:
            self._gather_update(session, current_path, module, operations[_PATCH], _PATCH)
        if _PUT in operations:
            self._gather_update(session, current_path, module, operations[_PUT], _PUT)
        if _DELETE in operations:
            self._gather_delete(session, current_path, module, operations[_DELETE])

        if _POST in operations:
            create_method = _POST
        elif _PUT in operations and self._is_put_create_path(path):
            create_method = _PUT
        else:
            return

        self._gather_create(session, current_path, module, path_item, operations[create_method], create_method)

    def _is_put_create_path(self, path: str) -> bool:
        """Whether a PUT on a path without a POST also creates the resource."""
        if _ends_with_path_param(path):
            return False

        parent_path = get_parent_path(path)
        if parent_path == path:
            parent_path = _owning_path(path)

        parent_item = self.doc.find_path(parent_path)
        if parent_item is not None and parent_item.post is not None:
            if not self.exclusion_evaluator.should_exclude(_POST, parent_path):
                logger.debug("PUT %s is not a create path: parent %s has a POST", path, parent_path)
                return False
        return True

    def _resource_title(self, operation: Operation, method: str, path: str, *, singular: bool = True) -> str:
        operation_id = _require_operation_id(operation, method, path)
        title = get_resource_title_from_operation_id(
            operation_id,
            method,
            has_namespace=self.config.operation_ids_have_namespace,
            namespace_separator=self.config.namespace_separator,
        )
        if singular:
            title = get_singular_name_for_resource(title, self.allowed_plural_resources)
        return title

    def _component_schema(self, ref: str, path: str) -> tuple[str, SchemaRef]:
        schema_name = extract_ref_name(ref)
        schema_ref = self.doc.schemas.get(schema_name)
        if schema_ref is None:
            msg = f"{schema_name} not found in api schemas for discriminated type in path {path}"
            raise ExtractionError(msg)
        return schema_name, schema_ref

    def _branch_resource_titles(self, schema: Schema) -> list[str]:
        """Resource titles of every schema a polymorphic request body refers to."""
        schema_names: set[str] = set()
        if schema.discriminator is not None:
            schema_names.update(extract_ref_name(ref) for ref in schema.discriminator.mapping.values())
        schema_names.update(member.name for member in [*schema.one_of, *schema.any_of] if member.ref)

        return [
            get_resource_title_from_request_schema(name, self.doc.schemas.get(name)) for name in sorted(schema_names)
        ]

    @staticmethod
    def _is_polymorphic(schema: Schema) -> bool:
        return schema.discriminator is not None or bool(schema.one_of) or bool(schema.any_of)

    def _gather_get(
        self,
        session: ExtractionSession,
        path: str,
        module: str,
        path_item: PathItem,
        operation: Operation,
    ) -> None:
        operation_id = _require_operation_id(operation, _GET, path)
        logger.debug("GET: parent path for %s is %s", path, get_parent_path(path))

        def set_read_operation_mapping(token: str) -> None:
            session.crud_operations(token).r = path

        ok_response = operation.response(200)
        response_schema = ok_response.json_schema if ok_response is not None else None

        if response_schema is None:
            if not any(code.startswith(_SUCCESS_STATUS_PREFIX) for code in operation.responses):
                msg = f"path {path} has no schema definition for status code 200 (GET)"
                raise ExtractionError(msg)

            # An ad-hoc action without a response body. It can't be a resource read.
            func_name = "get" + self._resource_title(operation, _GET, path)
            session.package.functions[session.package.token(module, func_name)] = self.gen_get_func(
                session, path_item, operation, None, module, func_name
            )
            return

        response_type = response_schema.value
        is_list = response_type.is_type(ARRAY_TYPE) or is_list_operation(operation_id)

        if is_list:
            func_name = "list" + self._resource_title(operation, _GET, path, singular=False)
            func_token = session.package.token(module, func_name)
            session.package.functions[func_token] = self.gen_list_func(
                session, path_item, operation, response_schema, module, func_name
            )
            set_read_operation_mapping(func_token)
            return

        if response_type.discriminator is not None:
            for ref in sorted(response_type.discriminator.mapping.values()):
                schema_name, variant = self._component_schema(ref, path)
                title = get_resource_title_from_request_schema(schema_name, variant)
                set_read_operation_mapping(session.package.token(module, title))

                func_name = "get" + title
                func_token = session.package.token(module, func_name)
                session.package.functions[func_token] = self.gen_get_func(
                    session, path_item, operation, variant, module, func_name
                )
                set_read_operation_mapping(func_token)
            return

        resource_name = self._resource_title(operation, _GET, path)
        set_read_operation_mapping(session.package.token(module, resource_name))

        func_name = "get" + resource_name
        func_token = session.package.token(module, func_name)
        session.package.functions[func_token] = self.gen_get_func(
            session, path_item, operation, response_schema, module, func_name
        )
        set_read_operation_mapping(func_token)

    def _request_schema(self, operation: Operation, method: str, path: str) -> SchemaRef:
        schema_ref = operation.request_body.json_schema if operation.request_body is not None else None
        if schema_ref is None:
            msg = f"path {path} has no request body schema for {method} method"
            raise ExtractionError(msg)
        return schema_ref

    def _gather_update(
        self,
        session: ExtractionSession,
        path: str,
        module: str,
        operation: Operation,
        method: str,
    ) -> None:
        """Register the update (PATCH) or put (PUT) mapping of an operation."""
        _require_operation_id(operation, method, path)
        logger.debug("%s: parent path for %s is %s", method, path, get_parent_path(path))

        def set_mapping(token: str) -> None:
            crud = session.crud_operations(token)
            if method == _PATCH:
                crud.u = path
            else:
                crud.p = path

        request_type = self._request_schema(operation, method, path).value
        if self._is_polymorphic(request_type):
            for title in self._branch_resource_titles(request_type):
                set_mapping(session.package.token(module, title))
            return

        set_mapping(session.package.token(module, self._resource_title(operation, method, path)))

    def _gather_delete(self, session: ExtractionSession, path: str, module: str, operation: Operation) -> None:
        _require_operation_id(operation, _DELETE, path)
        logger.debug("DELETE: parent path for %s is %s", path, get_parent_path(path))

        request_schema = operation.request_body.json_schema if operation.request_body is not None else None
        if request_schema is not None and self._is_polymorphic(request_schema.value):
            for title in self._branch_resource_titles(request_schema.value):
                session.crud_operations(session.package.token(module, title)).d = path
            return

        token = session.package.token(module, self._resource_title(operation, _DELETE, path))
        session.crud_operations(token).d = path

    def _gather_create(
        self,
        session: ExtractionSession,
        path: str,
        module: str,
        path_item: PathItem,
        operation: Operation,
        method: str,
    ) -> None:
        resource_name = self._resource_title(operation, method, path)
        request_schema = self._request_schema(operation, method, path)

        response_schema = None
        for code in CREATE_RESPONSE_STATUS_CODES:
            response = operation.response(code)
            if response is not None:
                response_schema = response.json_schema
                break

        parameters = _merged_parameters(path_item, operation)
        self.gather_resource(session, path, resource_name, request_schema, response_schema, parameters, module)

    def _path_param_inputs(
        self, session: ExtractionSession, parameters: Iterable[Parameter]
    ) -> tuple[dict[str, PropertySpec], list[str]]:
        """Required string inputs for the path parameters of an operation."""
        input_props: dict[str, PropertySpec] = {}
        for param in _path_parameters(parameters):
            sdk_name = to_sdk_name(param.name)
            session.add_name_override(param.name, sdk_name, path_param=True)
            input_props[sdk_name] = PropertySpec(type_spec=TypeSpec(type=STRING_TYPE), description=param.description)
        return input_props, sorted(input_props)

    def gen_get_func(
        self,
        session: ExtractionSession,
        path_item: PathItem,
        operation: Operation,
        return_schema: SchemaRef | None,
        module: str,
        func_name: str,
    ) -> FunctionSpec:
        """Build the function for a GET returning a single object.

        Args:
            session: The extraction session.
            path_item: The path item of the operation.
            operation: The GET operation.
            return_schema: The response schema, or None for an operation without
                a response body.
            module: The module of the function.
            func_name: The function name.

        Returns:
            The function spec. Its return type is None when there is no response body.
        """
        ctx = ResourceContext(session, module, skip_duplicate_enums=self.config.skip_duplicate_enums)
        input_props, required_inputs = self._path_param_inputs(session, _merged_parameters(path_item, operation))

        return_type = None
        if return_schema is not None:
            output_type, _ = ctx.property_type_spec(to_pascal_case(func_name), return_schema)
            return_type = ReturnTypeSpec(type_spec=output_type)

        return FunctionSpec(
            description=operation.description or path_item.description,
            inputs=ObjectTypeSpec(properties=input_props, required=required_inputs),
            return_type=return_type,
        )

    def gen_list_func(
        self,
        session: ExtractionSession,
        path_item: PathItem,
        operation: Operation,
        return_schema: SchemaRef,
        module: str,
        func_name: str,
    ) -> FunctionSpec:
        """Build the function for a GET returning a collection.

        A named output type is returned as-is; anything else is wrapped in an
        object with a single required ``items`` property.
        """
        ctx = ResourceContext(session, module, skip_duplicate_enums=self.config.skip_duplicate_enums)
        input_props, required_inputs = self._path_param_inputs(session, _merged_parameters(path_item, operation))

        output_type, _ = ctx.property_type_spec(to_pascal_case(func_name), return_schema)

        # A type synthesized from an allOf is named after the function itself.
        actual_token = output_type.ref_token
        if actual_token:
            package_name, type_module, type_name = split_token(actual_token)
            if type_name.lower() == func_name.lower() and actual_token in session.package.types:
                new_token = f"{package_name}:{type_module}:{type_name}Items"
                session.package.types[new_token] = session.package.types.pop(actual_token)
                output_type = TypeSpec.type_ref(new_token)

        if output_type.ref_token:
            return_type = ReturnTypeSpec(type_spec=output_type)
        else:
            return_type = ReturnTypeSpec(
                object_type_spec=ObjectTypeSpec(
                    properties={"items": PropertySpec(type_spec=output_type)},
                    required=["items"],
                )
            )

        return FunctionSpec(
            description=operation.description or path_item.description,
            inputs=ObjectTypeSpec(properties=input_props, required=required_inputs),
            return_type=return_type,
        )

    def gather_resource(
        self,
        session: ExtractionSession,
        api_path: str,
        resource_name: str,
        request_schema: SchemaRef,
        response_schema: SchemaRef | None,
        parameters: list[Parameter],
        module: str,
    ) -> None:
        """Generate the resource(s) created by a POST (or PUT) endpoint.

        A discriminated request body produces one resource per discriminator
        value. A ``oneOf`` without discriminator is merged like an ``allOf``
        with every property optional.
        """
        request_type = request_schema.value
        response_type = response_schema.value if response_schema is not None else None

        if request_type.discriminator is not None:
            for value, mapping_ref in sorted(request_type.discriminator.mapping.items()):
                _, variant = self._component_schema(mapping_ref, api_path)
                variant_response = response_type

                if response_type is not None and response_type.discriminator is not None:
                    response_ref = response_type.discriminator.mapping.get(value)
                    response_variant = self.doc.schemas.get(extract_ref_name(response_ref)) if response_ref else None
                    if response_variant is None:
                        msg = f"response schema type for discriminator value {value} not found (path {api_path})"
                        raise ExtractionError(msg)
                    variant_response = response_variant.value

                # Not prefixed with the parent name since the resource is already scoped to a module.
                token = self.gather_resource_properties(
                    session, to_pascal_case(value), variant.value, variant_response, api_path, module
                )
                self._add_required_path_params(session, token, parameters)
            return

        strip_required = False
        if request_type.one_of:
            logger.info(
                "OneOf definition missing discriminator. Will treat it as AllOf for resource %s. "
                "All input properties will be optional.",
                resource_name,
            )
            request_type = dataclasses.replace(request_type, all_of=list(request_type.one_of), one_of=[])
            strip_required = True

        token = self.gather_resource_properties(
            session, resource_name, request_type, response_type, api_path, module, strip_required=strip_required
        )
        self._add_required_path_params(session, token, parameters)

    def _add_required_path_params(self, session: ExtractionSession, token: str, parameters: list[Parameter]) -> None:
        resource = session.package.resources[token]
        input_props, required = self._path_param_inputs(session, parameters)
        resource.input_properties.update(input_props)
        resource.required_inputs = sorted({*resource.required_inputs, *required})

    def gather_resource_properties(
        self,
        session: ExtractionSession,
        resource_name: str,
        request_type: Schema,
        response_type: Schema | None,
        api_path: str,
        module: str,
        *,
        strip_required: bool = False,
    ) -> str:
        """Generate a resource's input and output properties and register it.

        Args:
            session: The extraction session.
            resource_name: The resource title.
            request_type: The request body schema.
            response_type: The response body schema, if any.
            api_path: The (normalized) create path.
            module: The module of the resource.
            strip_required: Ignore the required lists of allOf members.

        Returns:
            The type token of the resource.
        """
        ctx = ResourceContext(
            session,
            module,
            resource_name=resource_name,
            skip_duplicate_enums=self.config.skip_duplicate_enums,
        )
        token = session.package.token(module, resource_name)

        input_properties: dict[str, PropertySpec] = {}
        properties: dict[str, PropertySpec] = {}
        required_inputs: set[str] = set()
        required_outputs: set[str] = set()

        for prop_name in sorted(request_type.properties):
            prop = request_type.properties[prop_name]
            sdk_name = to_sdk_name(prop_name)
            session.add_name_override(prop_name, sdk_name)

            prop_spec = ctx.gen_property_spec(prop_name, prop)
            if prop_spec is None or sdk_name == ID_PARAM:
                continue

            if not prop.value.read_only:
                input_properties[sdk_name] = prop_spec
            properties[sdk_name] = prop_spec

        if response_type is not None:
            if response_type.all_of:
                all_of_props, _ = ctx.gen_properties_from_all_of(resource_name, response_type.all_of)
                properties.update({name: spec for name, spec in all_of_props.items() if name != ID_PARAM})

            for prop_name in sorted(response_type.properties):
                prop = response_type.properties[prop_name]
                sdk_name = to_sdk_name(prop_name)
                session.add_name_override(prop_name, sdk_name)

                prop_spec = ctx.gen_property_spec(prop_name, prop)
                if prop_spec is not None and sdk_name != ID_PARAM:
                    properties[sdk_name] = prop_spec

        for required_prop in request_type.required:
            prop = request_type.properties.get(required_prop)
            if prop is None:
                logger.warning("Schema not found for required property: %s (type: %s)", required_prop, resource_name)
                continue
            if prop.value.read_only:
                continue

            # The provider can auto-name resources from the resource name.
            if required_prop == "name":
                session.add_auto_name(token, required_prop)
                continue

            sdk_name = to_sdk_name(required_prop)
            session.add_name_override(required_prop, sdk_name)
            required_inputs.add(sdk_name)

        # Read-only required props are not required inputs but still guaranteed outputs.
        for required_prop in [*request_type.required, *(response_type.required if response_type else [])]:
            sdk_name = to_sdk_name(required_prop)
            session.add_name_override(required_prop, sdk_name)
            if sdk_name != ID_PARAM:
                required_outputs.add(sdk_name)

        if request_type.all_of:
            self._merge_request_all_of(
                ctx,
                resource_name,
                request_type.all_of,
                input_properties,
                properties,
                required_inputs,
                strip_required=strip_required,
            )

        crud = session.crud_operations(token)
        if crud.c is not None and crud.c != api_path:
            logger.warning("Resource %s is created by both %s and %s; using %s", token, crud.c, api_path, api_path)
        crud.c = api_path

        session.package.resources[token] = ResourceSpec(
            description=request_type.description,
            properties=properties,
            required=sorted(required_outputs.intersection(properties)),
            input_properties=input_properties,
            required_inputs=sorted(required_inputs),
        )
        return token

    def _merge_request_all_of(
        self,
        ctx: ResourceContext,
        resource_name: str,
        all_of: list[SchemaRef],
        input_properties: dict[str, PropertySpec],
        properties: dict[str, PropertySpec],
        required_inputs: set[str],
        *,
        strip_required: bool,
    ) -> None:
        """Fold the members of a request allOf into the resource's properties."""
        parent_name = to_pascal_case(resource_name)
        merged_tokens: list[str] = []
        for member in all_of:
            if not _is_object_like(member.value):
                continue

            type_spec, newly_added = ctx.property_type_spec(parent_name, member)
            member_token = type_spec.ref_token
            member_type = ctx.types.get(member_token) if member_token else None
            if member_type is None:
                continue

            for name, prop_spec in member_type.properties.items():
                if name == ID_PARAM:
                    continue
                input_properties[name] = prop_spec
                # Keep the output from the response body if there is one.
                properties.setdefault(name, prop_spec)

            if not strip_required:
                required_inputs.update(name for name in member_type.required if name != ID_PARAM)

            if newly_added and not member_type.is_enum:
                merged_tokens.append(member_token)

        # Recursive members stay registered while the merged properties refer to them.
        merged_properties = [*input_properties.values(), *properties.values()]
        for member_token in merged_tokens:
            if not ctx.session.is_type_referenced(member_token, merged_properties):
                ctx.session.remove_type(member_token)
