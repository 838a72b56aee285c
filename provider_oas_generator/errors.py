"""
Exception hierarchy for provider schema extraction.

Every error raised while extracting a provider schema derives from
``ExtractionError``. The ``recoverable`` class attribute tells callers
whether the pass must be aborted or whether they may decide how to react.
"""

from __future__ import annotations

from collections.abc import Iterable


class ExtractionError(Exception):
    """A fatal error that aborts the extraction pass."""

    recoverable = False


class TypeTranslationError(ExtractionError):
    """An OpenAPI schema node could not be translated into a type spec."""


class NameOverrideConflictError(ExtractionError):
    """A name override was requested for a key that already maps to a different value."""


class AutoNameConflictError(ExtractionError):
    """A resource already has a different auto-name property registered."""


class DuplicateEnumError(ExtractionError):
    """Two enums share a fully disambiguated token but have different values.

    Attributes:
        token: The type token both enums resolved to.
        values: Generated member names of the enum being registered.
        existing_values: Generated member names of the enum already registered.
    """

    recoverable = True

    def __init__(self, token: str, values: Iterable[str], existing_values: Iterable[str]) -> None:
        self.token = token
        self.values = list(values)
        self.existing_values = list(existing_values)
        super().__init__(
            f"duplicate enum with different values {token!r}: {self.values} vs. {self.existing_values}"
        )


class InvalidExclusionError(ValueError):
    """An exclusion rule is not valid."""


class ConfigError(ValueError):
    """The extraction configuration is not valid."""
