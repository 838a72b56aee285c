"""Tests for the SDK and type naming conversions."""

import pytest

from provider_oas_generator.utils.string_case import (
    camel_case_words,
    module_to_pascal_case,
    sanitize_resource_title,
    snake_case_to_camel_case,
    starts_with_number,
    to_camel_init_case,
    to_pascal_case,
    to_sdk_name,
)


class TestSdkName:
    """Test conversion of wire names to SDK names."""

    @pytest.mark.parametrize(
        ("wire_name", "expected"),
        [
            ("string_prop", "stringProp"),
            ("Name", "name"),
            ("UPPER_SNAKE", "upperSnake"),
            ("some-thing", "someThing"),
            ("1_var", "_1Var"),
            ("$schema", "schema"),
        ],
    )
    def test_to_sdk_name(self, wire_name: str, expected: str) -> None:
        assert to_sdk_name(wire_name) == expected

    @pytest.mark.parametrize("wire_name", ["string_prop", "Name", "1_var", "createdAt"])
    def test_to_sdk_name_is_idempotent(self, wire_name: str) -> None:
        once = to_sdk_name(wire_name)
        assert to_sdk_name(once) == once

    def test_empty_values(self) -> None:
        assert to_sdk_name("") == ""
        assert to_sdk_name(None) == ""


class TestPascalCase:
    """Test PascalCase conversion used for type and resource names."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("some-thing", "SomeThing"),
            ("string_prop", "StringProp"),
            ("listWidgets", "ListWidgets"),
            ("fancy thing", "FancyThing"),
        ],
    )
    def test_to_pascal_case(self, value: str, expected: str) -> None:
        assert to_pascal_case(value) == expected

    def test_to_pascal_case_is_idempotent(self) -> None:
        assert to_pascal_case(to_pascal_case("some-thing")) == "SomeThing"

    def test_camel_init_case_lower(self) -> None:
        assert to_camel_init_case("some-thing", init_case=False) == "someThing"


class TestHelpers:
    """Test the smaller naming helpers."""

    def test_starts_with_number(self) -> None:
        assert starts_with_number("1var")
        assert starts_with_number("1_var")
        assert not starts_with_number("var1")

    def test_snake_case_to_camel_case(self) -> None:
        assert snake_case_to_camel_case("machines_show") == "machinesShow"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("setTheTableSetting", ["set", "The", "Table", "Setting"]),
            ("listActions2", ["list", "Actions", "2"]),
            ("getVMStatus", ["get", "VM", "Status"]),
        ],
    )
    def test_camel_case_words(self, value: str, expected: list[str]) -> None:
        assert camel_case_words(value) == expected

    def test_module_to_pascal_case(self) -> None:
        assert module_to_pascal_case("apps/v2") == "AppsV2"
        assert module_to_pascal_case("widgets") == "Widgets"

    def test_sanitize_resource_title(self) -> None:
        assert sanitize_resource_title("my_schema") == "MySchema"
        assert sanitize_resource_title("2fa") == "_2fa"
