"""
Extraction configuration.

The configuration can be built in code or loaded from a YAML or JSON file.
File keys may be written in snake_case or camelCase::

    packageName: digitalocean
    useParentResourceAsModule: false
    allowedPluralResources: [Kubernetes]
    exclusions:
      - method: GET
        pathPattern: /debug/*
"""

from __future__ import annotations

import dataclasses
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

import yaml

from provider_oas_generator.errors import ConfigError
from provider_oas_generator.exclusions import Exclusion

DEFAULT_PACKAGE_NAME: Final = "provider"

# Resource names that legitimately end with an "s"
DEFAULT_ALLOWED_PLURAL_RESOURCE_NAMES: Final = ("Address", "Alias", "Access", "Kubernetes", "Status")

_YAML_SUFFIXES: Final = frozenset({".yml", ".yaml"})
_CAMEL_BOUNDARY: Final = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


@dataclass
class ExtractionConfig:
    """Options controlling a single extraction pass.

    Attributes:
        package_name: First segment of every type token.
        use_parent_resource_as_module: Place resources in a module named after
            their parent path segment instead of the root path segment.
        operation_ids_have_namespace: Operation ids are prefixed with a namespace
            that must be dropped when deriving resource titles.
        namespace_separator: Separator between namespace and operation name.
        allowed_plural_resources: Resource names that are not singularized, in
            addition to the defaults.
        excluded_paths: Paths excluded for every method (exact match).
        exclusions: Structured exclusion rules.
        skip_duplicate_enums: Omit properties whose enum collides irreconcilably
            with another enum instead of failing the pass.
    """

    package_name: str = DEFAULT_PACKAGE_NAME
    use_parent_resource_as_module: bool = False
    operation_ids_have_namespace: bool = False
    namespace_separator: str = "_"
    allowed_plural_resources: list[str] = field(default_factory=list)
    excluded_paths: list[str] = field(default_factory=list)
    exclusions: list[Exclusion] = field(default_factory=list)
    skip_duplicate_enums: bool = False

    @property
    def all_allowed_plural_resources(self) -> list[str]:
        """The configured allowed plurals followed by the defaults."""
        return [*self.allowed_plural_resources, *DEFAULT_ALLOWED_PLURAL_RESOURCE_NAMES]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtractionConfig:
        """Create a configuration from a mapping with snake_case or camelCase keys.

        Raises:
            ConfigError: If a key is unknown or a value has the wrong shape.
        """
        if not isinstance(data, dict):
            msg = f"configuration must be a mapping, got {type(data).__name__}"
            raise ConfigError(msg)

        known = {f.name for f in dataclasses.fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_BOUNDARY.sub("_", str(key)).lower()
            if name not in known:
                msg = f"unknown configuration key: {key}"
                raise ConfigError(msg)
            values[name] = value

        for list_field in ("allowed_plural_resources", "excluded_paths", "exclusions"):
            if not isinstance(values.get(list_field, []), list):
                msg = f"configuration key {list_field} must be a list"
                raise ConfigError(msg)

        values["exclusions"] = [
            excl if isinstance(excl, Exclusion) else _exclusion_from_config(excl)
            for excl in values.get("exclusions", [])
        ]
        return cls(**values)


def _exclusion_from_config(data: Any) -> Exclusion:  # noqa: ANN401
    if not isinstance(data, dict):
        msg = f"exclusion must be a mapping, got {data!r}"
        raise ConfigError(msg)
    return Exclusion.from_dict(data)


def load_config(file_path: str | Path) -> ExtractionConfig:
    """Load an extraction configuration from a YAML or JSON file.

    Args:
        file_path: The configuration file.

    Returns:
        The parsed configuration.

    Raises:
        ConfigError: If the file content is not a valid configuration.
    """
    path = Path(file_path)
    with path.open(encoding="utf-8") as f:
        try:
            if path.suffix.lower() in _YAML_SUFFIXES:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            msg = f"failed to parse configuration file {path}: {e}"
            raise ConfigError(msg) from e

    return ExtractionConfig.from_dict(data or {})
