"""Tests for extracting resources, functions and types from OpenAPI documents."""

from collections.abc import Callable
from typing import Any

import pytest

from provider_oas_generator.config import ExtractionConfig
from provider_oas_generator.errors import AutoNameConflictError, ExtractionError
from provider_oas_generator.exclusions import Exclusion
from provider_oas_generator.extractor import OpenAPIContext
from provider_oas_generator.extractor.schema_spec import (
    CRUDOperationsMap,
    ExtractionResult,
    ExtractionSession,
    PackageSpec,
    TypeSpec,
)
from provider_oas_generator.parser import OASParser

Extract = Callable[..., ExtractionResult]


class TestWidgets:
    """End-to-end extraction of a simple CRUD API."""

    @pytest.fixture
    def result(self, extract: Extract) -> ExtractionResult:
        return extract("widgets.yml")

    def test_resource(self, result: ExtractionResult) -> None:
        assert list(result.package.resources) == ["provider:widgets:Widget"]
        widget = result.package.resources["provider:widgets:Widget"]

        assert sorted(widget.input_properties) == ["apiKey", "color", "name", "size", "tags"]
        assert sorted(widget.properties) == ["apiKey", "color", "createdAt", "name", "size", "tags"]
        assert widget.required == ["name"]
        assert widget.required_inputs == []
        assert widget.description == "A widget."

    def test_name_is_auto_named(self, result: ExtractionResult) -> None:
        assert result.metadata.auto_name_map == {"provider:widgets:Widget": "name"}

    def test_property_details(self, result: ExtractionResult) -> None:
        widget = result.package.resources["provider:widgets:Widget"]

        assert widget.properties["apiKey"].secret
        assert widget.properties["size"].default == 1
        assert widget.properties["tags"].default is None
        assert widget.properties["color"].type_spec == TypeSpec(ref="#/types/provider:widgets:Color")
        assert "id" not in widget.properties

    def test_crud_map(self, result: ExtractionResult) -> None:
        assert result.metadata.resource_crud_map["provider:widgets:Widget"] == CRUDOperationsMap(
            c="/widgets", r="/widgets/{id}", u="/widgets/{id}", d="/widgets/{id}"
        )

    def test_list_function_wraps_items(self, result: ExtractionResult) -> None:
        list_widgets = result.package.functions["provider:widgets:listWidgets"]

        assert list_widgets.description == "List all widgets."
        assert list_widgets.return_type is not None
        wrapper = list_widgets.return_type.object_type_spec
        assert wrapper is not None
        assert wrapper.required == ["items"]
        assert wrapper.properties["items"].type_spec == TypeSpec(
            type="array", items=TypeSpec(ref="#/types/provider:widgets:Widget")
        )

    def test_get_function(self, result: ExtractionResult) -> None:
        get_widget = result.package.functions["provider:widgets:getWidget"]

        assert get_widget.inputs is not None
        assert list(get_widget.inputs.properties) == ["id"]
        assert get_widget.inputs.required == ["id"]
        assert get_widget.inputs.properties["id"].description == "The widget id."
        assert get_widget.return_type is not None
        assert get_widget.return_type.type_spec == TypeSpec(ref="#/types/provider:widgets:Widget")

    def test_types(self, result: ExtractionResult) -> None:
        assert sorted(result.package.types) == [
            "provider:widgets:Color",
            "provider:widgets:Widget",
            "provider:widgets:WidgetColor",
        ]
        color = result.package.types["provider:widgets:Color"]
        assert [(v.value, v.name) for v in color.enum] == [("red", "Red"), ("green", "Green")]

    def test_name_maps(self, result: ExtractionResult) -> None:
        assert result.metadata.sdk_to_api_name_map == {"apiKey": "api_key", "createdAt": "created_at"}
        assert result.metadata.api_to_sdk_name_map == {"api_key": "apiKey", "created_at": "createdAt"}

    def test_csharp_namespaces(self, result: ExtractionResult) -> None:
        assert result.csharp_namespaces == {"": "Provider", "widgets": "Widgets"}
        assert result.package.language == {"csharp": {"namespaces": {"": "Provider", "widgets": "Widgets"}}}

    def test_custom_package_name(self, extract: Extract) -> None:
        result = extract("widgets.yml", package_name="acme")
        assert list(result.package.resources) == ["acme:widgets:Widget"]


class TestEnumCollisions:
    """Test the enum disambiguation tiers across resources of one module."""

    @pytest.fixture
    def result(self, extract: Extract) -> ExtractionResult:
        return extract("enums.yml")

    def test_named_object_keeps_its_token(self, result: ExtractionResult) -> None:
        assert not result.package.types["provider:things:AProp"].is_enum

    def test_enum_colliding_with_object_gets_enum_suffix(self, result: ExtractionResult) -> None:
        component = result.package.resources["provider:things:Component"]
        assert component.properties["aProp"].type_spec.ref_token == "provider:things:APropEnum"
        assert [v.name for v in result.package.types["provider:things:APropEnum"].enum] == ["One", "Two"]

    def test_enum_with_other_values_is_prefixed_with_resource(self, result: ExtractionResult) -> None:
        last = result.package.resources["provider:things:LastResource"]
        assert last.input_properties["aProp"].type_spec.ref_token == "provider:things:LastResourceAPropEnum"
        assert last.properties["aProp"].type_spec.ref_token == "provider:things:LastResourceAPropEnum"
        enum = result.package.types["provider:things:LastResourceAPropEnum"]
        assert [v.name for v in enum.enum] == ["Three", "Four"]

    def test_parent_path_parameter_is_required_input(self, result: ExtractionResult) -> None:
        component = result.package.resources["provider:things:Component"]
        assert component.required_inputs == ["thingsId"]
        assert result.metadata.resource_crud_map["provider:things:Component"].c == "/things/{thingsId}/components"


class TestPolymorphicBodies:
    """Test discriminated, oneOf and allOf request bodies."""

    @pytest.fixture
    def result(self, extract: Extract) -> ExtractionResult:
        return extract("polymorphic.yml")

    def test_discriminator_creates_one_resource_per_value(self, result: ExtractionResult) -> None:
        cat = result.package.resources["provider:pets:Cat"]
        dog = result.package.resources["provider:pets:Dog"]

        assert sorted(cat.properties) == ["kind", "meows"]
        assert cat.required_inputs == ["kind"]
        assert sorted(dog.properties) == ["barks", "kind"]
        assert "provider:pets:Pet" not in result.package.resources

    def test_discriminated_read_and_update_mappings(self, result: ExtractionResult) -> None:
        crud = result.metadata.resource_crud_map
        for name in ("Cat", "Dog"):
            assert crud[f"provider:pets:{name}"] == CRUDOperationsMap(c="/pets", r="/pets/{id}", u="/pets/{id}")
            assert f"provider:pets:get{name}" in result.package.functions

    def test_one_of_without_discriminator_is_merged_optional(self, result: ExtractionResult) -> None:
        vehicle = result.package.resources["provider:vehicles:Vehicle"]

        assert sorted(vehicle.input_properties) == ["bell", "wheels"]
        assert vehicle.required_inputs == []
        assert vehicle.required == []
        assert "provider:vehicles:Car" not in result.package.types
        assert "provider:vehicles:Bike" not in result.package.types

    def test_all_of_is_flattened_without_intermediate_types(self, result: ExtractionResult) -> None:
        gadget = result.package.resources["provider:gadgets:Gadget"]

        assert sorted(gadget.input_properties) == ["label", "size"]
        assert sorted(gadget.properties) == ["label", "size"]
        assert gadget.required_inputs == ["label", "size"]
        assert not [token for token in result.package.types if token.startswith("provider:gadgets:")]

    def test_all_of_member_requiredness_only_applies_to_inputs(self, result: ExtractionResult) -> None:
        gadget = result.package.resources["provider:gadgets:Gadget"]

        assert gadget.required_inputs == ["label", "size"]
        assert gadget.required == []

    def test_recursive_all_of_member_is_kept(self, minimal_spec: Callable[..., dict[str, Any]]) -> None:
        body = {"content": {"application/json": {"schema": {"allOf": [{"$ref": "#/components/schemas/Node"}]}}}}
        spec = minimal_spec(
            {"/trees": {"post": {"operationId": "createTree", "requestBody": body, "responses": {"201": {}}}}},
            {
                "Node": {
                    "type": "object",
                    "properties": {
                        "label": {"type": "string"},
                        "children": {"type": "array", "items": {"$ref": "#/components/schemas/Node"}},
                    },
                }
            },
        )

        result = OpenAPIContext(OASParser().parse_dict(spec)).gather_resources_from_api()

        tree = result.package.resources["provider:trees:Tree"]
        assert tree.input_properties["children"].type_spec.items == TypeSpec(ref="#/types/provider:trees:Node")
        assert sorted(result.package.types["provider:trees:Node"].properties) == ["children", "label"]


class TestFunctions:
    """Test list and get functions of a versioned API."""

    @pytest.fixture
    def result(self, extract: Extract) -> ExtractionResult:
        return extract("vms.yml")

    def test_get_without_response_body(self, result: ExtractionResult) -> None:
        restart = result.package.functions["provider:vms/v2:getRestartVm"]

        assert restart.return_type is None
        assert restart.description == "Restart a VM."
        assert restart.inputs is not None
        assert restart.inputs.required == ["vmId"]
        assert result.metadata.path_param_name_map["vm_id"] == "vmId"
        assert "provider:vms/v2:RestartVm" not in result.metadata.resource_crud_map

    def test_list_function_type_named_like_function_is_renamed(self, result: ExtractionResult) -> None:
        list_actions = result.package.functions["provider:actions/v2:listActions"]

        assert list_actions.return_type is not None
        assert list_actions.return_type.type_spec == TypeSpec(ref="#/types/provider:actions/v2:ListActionsItems")
        assert "provider:actions/v2:ListActions" not in result.package.types
        assert "provider:actions/v2:ActionPage" not in result.package.types
        assert list(result.package.types["provider:actions/v2:ListActionsItems"].properties) == ["actions"]

    def test_list_function_returning_inline_object(self, result: ExtractionResult) -> None:
        list_actions = result.package.functions["provider:actions2/v2:listActions2"]

        assert list_actions.return_type is not None
        assert list_actions.return_type.type_spec == TypeSpec(
            ref="#/types/provider:actions2/v2:ListActions2Properties"
        )

    def test_get_function_with_normalized_id(self, result: ExtractionResult) -> None:
        get_vm = result.package.functions["provider:vms/v2:getVm"]

        assert get_vm.inputs is not None
        assert list(get_vm.inputs.properties) == ["id"]
        assert result.metadata.resource_crud_map["provider:vms/v2:Vm"].r == "/v2/vms/{id}"
        assert "provider:vms/v2:VmStatus" in result.package.types

    def test_versioned_csharp_namespaces(self, result: ExtractionResult) -> None:
        assert result.csharp_namespaces["vms/v2"] == "VmsV2"
        assert result.csharp_namespaces["actions2/v2"] == "Actions2V2"


class TestPutCreate:
    """Test PUT endpoints acting as the creation endpoint."""

    @pytest.fixture
    def result(self, extract: Extract) -> ExtractionResult:
        return extract("vms.yml")

    def test_put_defines_create_and_put(self, result: ExtractionResult) -> None:
        path = "/v2/projects/{project_id}/settings"
        assert result.metadata.resource_crud_map["provider:projects/v2:ProjectSetting"] == CRUDOperationsMap(
            c=path, p=path
        )

    def test_put_resource_properties(self, result: ExtractionResult) -> None:
        settings = result.package.resources["provider:projects/v2:ProjectSetting"]

        assert sorted(settings.input_properties) == [
            "label",
            "owner",
            "projectId",
            "projectSetting",
            "schema",
            "timezone",
        ]
        assert settings.required_inputs == ["projectId"]
        assert settings.input_properties["label"].type_spec == TypeSpec(
            one_of=[TypeSpec(type="string"), TypeSpec(type="integer")]
        )
        assert settings.input_properties["owner"].type_spec.ref_token == "provider:projects/v2:Owner"

    def test_language_overrides(self, result: ExtractionResult) -> None:
        settings = result.package.resources["provider:projects/v2:ProjectSetting"]

        assert settings.properties["projectSetting"].language == {"csharp": {"name": "ProjectSettingValue"}}
        assert settings.properties["schema"].language == {"csharp": {"name": "Schema"}}

    def test_snake_case_property_named_like_resource(self, minimal_spec: Callable[..., dict[str, Any]]) -> None:
        body = {
            "content": {
                "application/json": {
                    "schema": {"type": "object", "properties": {"my_widget": {"type": "string"}}},
                }
            }
        }
        spec = minimal_spec(
            {"/my-widgets": {"post": {"operationId": "createMyWidget", "requestBody": body, "responses": {"201": {}}}}}
        )

        result = OpenAPIContext(OASParser().parse_dict(spec)).gather_resources_from_api()

        (resource,) = result.package.resources.values()
        assert resource.properties["myWidget"].language == {"csharp": {"name": "MyWidgetValue"}}

    def test_put_is_not_create_when_parent_has_post(self, minimal_spec: Callable[..., dict[str, Any]]) -> None:
        body = {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Tag"}}}}
        spec = minimal_spec(
            {
                "/tags": {"post": {"operationId": "createTag", "requestBody": body, "responses": {"201": {}}}},
                "/tags/current": {"put": {"operationId": "putTag", "requestBody": body, "responses": {"200": {}}}},
            },
            {"Tag": {"type": "object", "properties": {"label": {"type": "string"}}}},
        )

        result = OpenAPIContext(OASParser().parse_dict(spec)).gather_resources_from_api()

        assert result.metadata.resource_crud_map["provider:tags:Tag"] == CRUDOperationsMap(
            c="/tags", p="/tags/current"
        )


class TestExclusions:
    """Test that excluded operations are treated as absent."""

    def test_structured_exclusion(self, extract: Extract) -> None:
        result = extract("widgets.yml", exclusions=[Exclusion(path_pattern="/widgets/*", method="DELETE")])

        crud = result.metadata.resource_crud_map["provider:widgets:Widget"]
        assert crud.d is None
        assert crud.u == "/widgets/{id}"

    def test_legacy_excluded_path(self, extract: Extract) -> None:
        result = extract("widgets.yml", excluded_paths=["/widgets/{widget_id}"])

        assert "provider:widgets:getWidget" not in result.package.functions
        assert result.metadata.resource_crud_map["provider:widgets:Widget"] == CRUDOperationsMap(c="/widgets")

    def test_every_path_excluded(self, extract: Extract) -> None:
        result = extract("widgets.yml", exclusions=[Exclusion(path_pattern="/widgets**")])

        assert result.package.resources == {}
        assert result.package.functions == {}
        assert result.csharp_namespaces == {"": "Provider"}


class TestDeterminism:
    """Test that extraction does not depend on document order or previous runs."""

    @pytest.mark.parametrize("name", ["widgets.yml", "enums.yml", "polymorphic.yml", "vms.yml"])
    def test_path_order_does_not_change_output(
        self, name: str, load_spec_dict: Callable[[str], dict[str, Any]]
    ) -> None:
        spec = load_spec_dict(name)
        reversed_spec = {**spec, "paths": dict(reversed(list(spec["paths"].items())))}

        forward = OpenAPIContext(OASParser().parse_dict(spec)).gather_resources_from_api()
        backward = OpenAPIContext(OASParser().parse_dict(reversed_spec)).gather_resources_from_api()

        assert forward.package.to_dict() == backward.package.to_dict()
        assert forward.metadata.to_dict() == backward.metadata.to_dict()

    def test_repeated_runs_are_independent(self, load_document: Callable[[str], Any]) -> None:
        ctx = OpenAPIContext(load_document("enums.yml"))

        first = ctx.gather_resources_from_api()
        second = ctx.gather_resources_from_api()

        assert first.package is not second.package
        assert first.package.to_dict() == second.package.to_dict()
        assert first.metadata.to_dict() == second.metadata.to_dict()


class TestErrors:
    """Test fatal precondition violations."""

    def test_missing_operation_id(self, minimal_spec: Callable[..., dict[str, Any]]) -> None:
        spec = minimal_spec({"/widgets": {"delete": {"responses": {"204": {}}}}})
        with pytest.raises(ExtractionError, match="operationId is missing for path DELETE /widgets"):
            OpenAPIContext(OASParser().parse_dict(spec)).gather_resources_from_api()

    def test_get_without_success_response(self, minimal_spec: Callable[..., dict[str, Any]]) -> None:
        spec = minimal_spec({"/widgets": {"get": {"operationId": "listWidgets", "responses": {"404": {}}}}})
        with pytest.raises(ExtractionError, match="status code 200"):
            OpenAPIContext(OASParser().parse_dict(spec)).gather_resources_from_api()

    def test_post_without_request_body(self, minimal_spec: Callable[..., dict[str, Any]]) -> None:
        spec = minimal_spec({"/widgets": {"post": {"operationId": "createWidget", "responses": {"201": {}}}}})
        with pytest.raises(ExtractionError, match="no request body schema for POST"):
            OpenAPIContext(OASParser().parse_dict(spec)).gather_resources_from_api()

    def test_auto_name_conflict(self) -> None:
        session = ExtractionSession(package=PackageSpec(name="provider"))
        session.add_auto_name("provider:widgets:Widget", "name")
        session.add_auto_name("provider:widgets:Widget", "name")

        with pytest.raises(AutoNameConflictError, match="auto-name prop already exists"):
            session.add_auto_name("provider:widgets:Widget", "title")

    def test_config_is_optional(self, load_document: Callable[[str], Any]) -> None:
        ctx = OpenAPIContext(load_document("widgets.yml"))
        assert ctx.config == ExtractionConfig()
