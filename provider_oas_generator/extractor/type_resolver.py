"""
Translation of OpenAPI schemas into provider schema type specs.

``ResourceContext`` resolves one schema node at a time. Named types are
registered in the session's package as they are encountered; the session's
visited set is marked before a named type's properties are generated, which
also breaks cycles between self-referencing schemas.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Final

from provider_oas_generator.errors import DuplicateEnumError, TypeTranslationError
from provider_oas_generator.extractor.schema_spec import (
    ANY_TYPE_REF,
    ARRAY_TYPE,
    OBJECT_TYPE,
    ComplexTypeSpec,
    DiscriminatorSpec,
    EnumValueSpec,
    ExtractionSession,
    PropertySpec,
    TypeSpec,
    split_token,
)
from provider_oas_generator.parser.oas_parser import Schema, SchemaRef, extract_ref_name
from provider_oas_generator.utils.string_case import sanitize_resource_title, to_pascal_case, to_sdk_name

logger = logging.getLogger(__name__)

EXT_SECRET_PROP: Final = "x-secret"

_PRIMITIVE_TYPES: Final = frozenset({"integer", "string", "boolean", "number"})
_CSHARP_LANGUAGE: Final = "csharp"


def get_string_enum_values(enum_name: str, raw_values: Iterable[Any]) -> tuple[list[EnumValueSpec], set[str]]:
    """Build the members of a string enum.

    Member names are the PascalCase values; the first value producing a given
    name wins. A member named like the enum itself gets a ``_`` suffix.

    Args:
        enum_name: The name of the enum type.
        raw_values: The enum values from the schema.

    Returns:
        The enum members and the set of generated names (before any suffixing).
    """
    values: list[EnumValueSpec] = []
    names: set[str] = set()

    for raw_value in raw_values:
        if raw_value is None:
            continue
        name = to_pascal_case(str(raw_value))
        if name in names:
            continue
        names.add(name)

        member_name = f"{name}_" if name == enum_name else name
        values.append(EnumValueSpec(value=raw_value, name=member_name))

    return values, names


def get_integer_enum_values(raw_values: Iterable[Any]) -> tuple[list[EnumValueSpec], set[str]]:
    """Build the members of an integer enum, named by their decimal value."""
    values: list[EnumValueSpec] = []
    names: set[str] = set()

    for raw_value in raw_values:
        if raw_value is None:
            continue
        name = str(raw_value)
        names.add(name)
        values.append(EnumValueSpec(value=raw_value, name=name))

    return values, names


def _is_scalar_schema(schema: Schema) -> bool:
    """Whether a referenced schema is just a reusable alias of a scalar type."""
    return (
        schema.type is not None
        and not schema.is_type(OBJECT_TYPE)
        and not schema.properties
        and not schema.one_of
        and not schema.all_of
    )


def _is_map_schema(schema: Schema) -> bool:
    return isinstance(schema.additional_properties, SchemaRef) and not schema.properties and not schema.all_of


def _is_named_type_candidate(schema: Schema) -> bool:
    """Whether a referenced schema becomes (or aliases) a named type rather than being resolved inline."""
    if schema.is_type(ARRAY_TYPE) or schema.enum or _is_map_schema(schema):
        return False
    if schema.one_of and not schema.properties:
        return False
    return schema.type is not None or bool(schema.properties) or bool(schema.all_of)


def _is_object_like(schema: Schema) -> bool:
    return schema.is_type(OBJECT_TYPE) or bool(schema.properties) or bool(schema.all_of)


def language_overrides(prop_name: str, enclosing_name: str) -> dict[str, dict[str, str]]:
    """C# naming overrides for properties that would produce invalid member names.

    Args:
        prop_name: The SDK (or wire) name of the property.
        enclosing_name: The name of the enclosing type or resource.

    Returns:
        The ``language`` entry of the property spec, empty when no override is needed.
    """
    language_name = to_pascal_case(prop_name)
    if language_name == enclosing_name:
        return {_CSHARP_LANGUAGE: {"name": language_name + "Value"}}
    if prop_name.startswith("$") and len(prop_name) > 1:
        return {_CSHARP_LANGUAGE: {"name": prop_name[1:2].upper() + prop_name[2:]}}
    return {}


class ResourceContext:
    """Resolves schemas into type specs for one module (and optionally one resource).

    Args:
        session: The extraction session types are registered in.
        module: The module new type tokens are created in.
        resource_name: The resource being generated, used to disambiguate enums.
        skip_duplicate_enums: Omit properties whose enum cannot be disambiguated
            instead of raising ``DuplicateEnumError``.
    """

    def __init__(
        self,
        session: ExtractionSession,
        module: str,
        *,
        resource_name: str = "",
        skip_duplicate_enums: bool = False,
    ) -> None:
        self.session = session
        self.module = module
        self.resource_name = resource_name
        self.skip_duplicate_enums = skip_duplicate_enums

    @property
    def types(self) -> dict[str, ComplexTypeSpec]:
        return self.session.package.types

    def token(self, type_name: str) -> str:
        return self.session.package.token(self.module, type_name)

    def property_type_spec(self, parent_name: str, schema_ref: SchemaRef) -> tuple[TypeSpec, bool]:
        """Translate a schema into a type spec.

        Args:
            parent_name: Name used for any type synthesized from this schema.
            schema_ref: The schema to translate.

        Returns:
            The type spec and whether a type was newly registered for it.

        Raises:
            TypeTranslationError: If the schema has no translatable shape.
            DuplicateEnumError: If an enum cannot be disambiguated.
        """
        schema = schema_ref.value

        if schema_ref.ref and _is_named_type_candidate(schema):
            return self._named_type_spec(schema_ref)

        if schema.properties:
            type_name = parent_name + "Properties"
            properties, required = self.gen_properties(type_name, schema)
            self.types[self.token(type_name)] = ComplexTypeSpec(
                description=schema.description,
                properties=properties,
                required=sorted(required),
            )
            return TypeSpec.type_ref(self.token(type_name)), True

        if schema.one_of:
            return self._union_type_spec(parent_name, schema), True

        if schema.all_of:
            properties, required = self.gen_properties_from_all_of(parent_name, schema.all_of)
            type_name = to_pascal_case(parent_name)
            self.types[self.token(type_name)] = ComplexTypeSpec(
                description=schema.description,
                properties=properties,
                required=sorted(required),
            )
            return TypeSpec.type_ref(self.token(type_name)), True

        if schema.enum:
            enum_spec = self.gen_enum_type(parent_name, schema)
            if enum_spec is not None:
                return enum_spec, True

        if schema.type is None and len(schema.any_of) == 1:
            return self.property_type_spec(parent_name, schema.any_of[0])

        if len(schema.any_of) > 1:
            union_types = [self.property_type_spec(parent_name, member)[0] for member in schema.any_of]
            return TypeSpec(one_of=union_types), False

        return self._basic_type_spec(parent_name, schema)

    def _named_type_spec(self, schema_ref: SchemaRef) -> tuple[TypeSpec, bool]:
        """Resolve a reference to a component schema."""
        schema = schema_ref.value
        if _is_scalar_schema(schema):
            return TypeSpec(type=schema.type or ""), False

        type_name = sanitize_resource_title(extract_ref_name(schema_ref.ref))
        tok = self.token(type_name)

        newly_added = tok not in self.session.visited_types
        if newly_added:
            self.session.visited_types.add(tok)
            properties, required = self.gen_properties(type_name, schema)
            self.types[tok] = ComplexTypeSpec(
                description=schema.description,
                properties=properties,
                required=sorted(required),
            )

        return TypeSpec.type_ref(tok), newly_added

    def _union_type_spec(self, parent_name: str, schema: Schema) -> TypeSpec:
        types = [self.property_type_spec(parent_name, member)[0] for member in schema.one_of]

        discriminator = None
        if schema.discriminator is not None:
            mapping = {}
            for value, target in sorted(schema.discriminator.mapping.items()):
                target_name = to_pascal_case(extract_ref_name(target))
                candidates = [t.ref for t in types if t.ref and target_name in t.ref]
                exact = [t.ref for t in types if t.ref_token and split_token(t.ref_token)[2] == target_name]
                if exact or candidates:
                    mapping[value] = (exact or candidates)[-1]
                else:
                    logger.warning("No union member found for discriminator value %s of %s", value, parent_name)
            discriminator = DiscriminatorSpec(
                property_name=to_sdk_name(schema.discriminator.property_name),
                mapping=mapping,
            )

        return TypeSpec(one_of=types, discriminator=discriminator)

    def _basic_type_spec(self, parent_name: str, schema: Schema) -> tuple[TypeSpec, bool]:
        if schema.type in _PRIMITIVE_TYPES:
            return TypeSpec(type=schema.type), False

        if schema.is_type(OBJECT_TYPE):
            if isinstance(schema.additional_properties, SchemaRef):
                value_spec, _ = self.property_type_spec(parent_name + "Value", schema.additional_properties)
                return TypeSpec(type=OBJECT_TYPE, additional_properties=value_spec), False
            return TypeSpec(ref=ANY_TYPE_REF), False

        if schema.is_type(ARRAY_TYPE):
            if schema.items is None:
                return TypeSpec(type=ARRAY_TYPE, items=TypeSpec(ref=ANY_TYPE_REF)), False
            items_spec, _ = self.property_type_spec(parent_name + "Item", schema.items)
            return TypeSpec(type=ARRAY_TYPE, items=items_spec), True

        msg = f"failed to generate property types for {parent_name}: {schema!r}"
        raise TypeTranslationError(msg)

    def _resolve_property_type(self, parent_name: str, prop_name: str, prop: SchemaRef) -> TypeSpec | None:
        """Resolve a property's type, honoring the duplicate-enum policy.

        Returns:
            The type spec, or None when the property must be omitted.
        """
        schema = prop.value
        try:
            if schema.additional_properties is True and schema.properties:
                # The single property describes the map's values.
                value_name = sorted(schema.properties)[-1]
                value_spec, _ = self.property_type_spec(to_sdk_name(prop_name), schema.properties[value_name])
                return TypeSpec(type=OBJECT_TYPE, additional_properties=value_spec)
            type_spec, _ = self.property_type_spec(parent_name, prop)
        except DuplicateEnumError as e:
            if not self.skip_duplicate_enums:
                raise
            logger.warning("Skipping property %s of %s: %s", prop_name, parent_name, e)
            return None
        return type_spec

    def _property_spec(self, type_spec: TypeSpec, prop: SchemaRef, language: dict[str, dict[str, str]]) -> PropertySpec:
        schema = prop.value
        return PropertySpec(
            type_spec=type_spec,
            description=schema.description,
            default=None if schema.is_type(ARRAY_TYPE) else schema.default,
            secret=bool(schema.extensions.get(EXT_SECRET_PROP, False)),
            language=language,
        )

    def gen_property_spec(self, prop_name: str, prop: SchemaRef) -> PropertySpec | None:
        """Generate the spec of a top-level resource property.

        Args:
            prop_name: The wire name of the property.
            prop: The property schema.

        Returns:
            The property spec, or None when the property is omitted.
        """
        type_spec = self._resolve_property_type(to_pascal_case(prop_name), prop_name, prop)
        if type_spec is None:
            return None
        return self._property_spec(type_spec, prop, language_overrides(prop_name, self.resource_name))

    def gen_properties(self, parent_name: str, schema: Schema) -> tuple[dict[str, PropertySpec], set[str]]:
        """Generate the properties of an object type.

        Args:
            parent_name: The name of the type the properties belong to.
            schema: The object schema.

        Returns:
            The property specs keyed by SDK name, and the required SDK names.
        """
        specs: dict[str, PropertySpec] = {}
        required: set[str] = set()

        if schema.all_of:
            all_of_specs, all_of_required = self.gen_properties_from_all_of(parent_name, schema.all_of)
            specs.update(all_of_specs)
            required.update(all_of_required)

        for name in sorted(schema.properties):
            prop = schema.properties[name]
            sdk_name = to_sdk_name(name)
            self.session.add_name_override(name, sdk_name)

            type_spec = self._resolve_property_type(parent_name + to_pascal_case(name), name, prop)
            if type_spec is None:
                continue
            specs[sdk_name] = self._property_spec(type_spec, prop, language_overrides(sdk_name, parent_name))

        for name in schema.required:
            sdk_name = to_sdk_name(name)
            self.session.add_name_override(name, sdk_name)
            if sdk_name in specs:
                required.add(sdk_name)
            elif not schema.all_of:
                logger.warning("Schema not found for required property: %s (type: %s)", name, parent_name)

        return specs, required

    def gen_properties_from_all_of(
        self, parent_name: str, all_of: list[SchemaRef]
    ) -> tuple[dict[str, PropertySpec], set[str]]:
        """Flatten the members of an allOf into a single property set.

        Types registered only to be merged here are removed again afterwards,
        unless a merged property (or another type) still refers to them.

        Args:
            parent_name: Name used for types synthesized from the members.
            all_of: The allOf members.

        Returns:
            The merged property specs (last member wins) and required names.
        """
        properties: dict[str, PropertySpec] = {}
        required: set[str] = set()
        merged_tokens: list[str] = []

        for member in all_of:
            if not member.ref and not _is_object_like(member.value):
                logger.warning("Prop type %s uses allOf schema but one of the schema refs is invalid", parent_name)
                continue

            type_spec, newly_added = self.property_type_spec(parent_name, member)
            tok = type_spec.ref_token
            member_type = self.types.get(tok) if tok else None
            if member_type is None:
                continue

            properties.update(member_type.properties)
            required.update(member_type.required)

            if newly_added and not member_type.is_enum:
                merged_tokens.append(tok)

        for tok in merged_tokens:
            if not self.session.is_type_referenced(tok, properties.values()):
                self.session.remove_type(tok)

        return properties, required

    def gen_enum_type(self, enum_name: str, schema: Schema) -> TypeSpec | None:
        """Register an enum type, resolving name collisions.

        Args:
            enum_name: The preferred name of the enum.
            schema: The enum schema.

        Returns:
            A ref to the enum type, or None when the schema has no base type.

        Raises:
            TypeTranslationError: If the enum's base type is not string or integer.
            DuplicateEnumError: If the enum collides with a different enum even
                after prefixing it with the resource name.
        """
        if schema.type is None:
            return None

        type_name = to_pascal_case(enum_name)
        tok = self.token(type_name)

        if schema.is_type("string"):
            values, _ = get_string_enum_values(type_name, schema.enum)
        elif schema.is_type("integer"):
            values, _ = get_integer_enum_values(schema.enum)
        else:
            msg = f"cannot handle enum values of type {schema.type}"
            raise TypeTranslationError(msg)

        existing = self.types.get(tok)
        if existing is not None:
            if not existing.is_enum:
                return self.gen_enum_type(enum_name + "Enum", schema)

            same = len(values) == len(existing.enum) and {v.name for v in values} == {v.name for v in existing.enum}
            if not same:
                if not type_name.startswith(self.resource_name):
                    return self.gen_enum_type(self.resource_name + enum_name, schema)
                raise DuplicateEnumError(tok, [v.name for v in values], [v.name for v in existing.enum])

            return TypeSpec.type_ref(tok)

        self.types[tok] = ComplexTypeSpec(type=schema.type, description=schema.description, enum=values)
        return TypeSpec.type_ref(tok)
