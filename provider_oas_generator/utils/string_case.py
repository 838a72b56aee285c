"""
String case conversion utilities for provider schema generation.

This module provides the case conversions used to derive SDK property names,
type names and module namespaces from the names found in an OpenAPI document.

All conversions are pure and idempotent: converting an already converted
name returns it unchanged.
"""

import re
from collections.abc import Callable
from typing import Final

# Characters that cause the next letter to be capitalized
_WORD_SEPARATORS: Final = frozenset({"_", " ", "-", "."})
_LEADING_NUMBER_PATTERN: Final = re.compile(r"[0-9]+_*[a-zA-Z]+")
_CAMEL_WORD_PATTERN: Final = re.compile(r"[A-Z]+(?=[A-Z][a-z]|[0-9]|$)|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")
_MODULE_SEPARATOR: Final = "/"


def _convert_if_not_empty(string: str | None, conversion_func: Callable[[str], str]) -> str:
    """Safely convert a string, returning empty string if input is None or empty."""
    return conversion_func(string) if string else ""


def to_camel_init_case(string: str | None, *, init_case: bool) -> str:
    """Convert a string to camel case, optionally capitalizing the first letter.

    An all-uppercase input (``UPPER_SNAKE_CASE``) is lowercased first. Letters
    and digits are kept, ``_``, `` ``, ``-`` and ``.`` are dropped and
    capitalize the letter that follows them. Any other character is dropped.

    Args:
        string: String to convert.
        init_case: Whether the first letter should be capitalized.

    Returns:
        The converted string.

    Examples:
        >>> to_camel_init_case("some-thing", init_case=True)
        'SomeThing'
        >>> to_camel_init_case("UPPER_SNAKE", init_case=False)
        'upperSnake'
    """

    def _camel_init_case(s: str) -> str:
        if s == s.upper():
            s = s.lower()

        result: list[str] = []
        cap_next = init_case
        for char in s.strip(" "):
            if "A" <= char <= "Z" or "0" <= char <= "9":
                result.append(char)
            elif "a" <= char <= "z":
                result.append(char.upper() if cap_next else char)
            cap_next = char in _WORD_SEPARATORS
        return "".join(result)

    return _convert_if_not_empty(string, _camel_init_case)


def to_pascal_case(string: str | None) -> str:
    """Convert string into PascalCase.

    Args:
        string: String to convert.

    Returns:
        PascalCase string.

    Examples:
        >>> to_pascal_case("some-thing")
        'SomeThing'
        >>> to_pascal_case("string_prop")
        'StringProp'
    """
    return to_camel_init_case(string, init_case=True)


def starts_with_number(string: str) -> bool:
    """Check whether a name starts with a number followed by letters.

    Args:
        string: The name to check.

    Returns:
        True for names such as ``1var`` or ``1_var``.
    """
    return _LEADING_NUMBER_PATTERN.match(string) is not None


def to_sdk_name(string: str | None) -> str:
    """Convert a wire property or parameter name to the lowerCamelCase SDK name.

    Args:
        string: The property name used by the API.

    Returns:
        The SDK name. Names starting with a number are prefixed with ``_``.

    Examples:
        >>> to_sdk_name("string_prop")
        'stringProp'
        >>> to_sdk_name("Name")
        'name'
        >>> to_sdk_name("1_var")
        '_1Var'
    """

    def _sdk_name(s: str) -> str:
        name = to_camel_init_case(s, init_case=False)
        if name and name[0].isupper():
            name = name[0].lower() + name[1:]
        if starts_with_number(name):
            name = f"_{name}"
        return name

    return _convert_if_not_empty(string, _sdk_name)


def snake_case_to_camel_case(string: str | None) -> str:
    """Join snake_case parts, capitalizing every part after the first.

    Args:
        string: String to convert.

    Returns:
        The joined string. The first part is left untouched.

    Examples:
        >>> snake_case_to_camel_case("machines_show")
        'machinesShow'
    """

    def _snake_to_camel(s: str) -> str:
        first, *rest = s.split("_")
        return first + "".join(to_pascal_case(part) for part in rest)

    return _convert_if_not_empty(string, _snake_to_camel)


def camel_case_words(string: str | None) -> list[str]:
    """Split a camelCase or PascalCase identifier into its words.

    Examples:
        >>> camel_case_words("setTheTableSetting")
        ['set', 'The', 'Table', 'Setting']
        >>> camel_case_words("listActions2")
        ['list', 'Actions', '2']
    """
    if not string:
        return []
    return _CAMEL_WORD_PATTERN.findall(string)


def module_to_pascal_case(module: str) -> str:
    """Convert a module name such as ``apps/v2`` to ``AppsV2``."""
    return "".join(to_pascal_case(part) for part in module.split(_MODULE_SEPARATOR))


def sanitize_resource_title(title: str) -> str:
    """Make a type or resource title usable as the last segment of a type token.

    Args:
        title: The title to sanitize.

    Returns:
        The PascalCase title, prefixed with ``_`` if it starts with a digit.
    """
    sanitized = to_pascal_case(title)
    if sanitized[:1].isdigit():
        sanitized = f"_{sanitized}"
    return sanitized
