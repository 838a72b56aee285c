"""
Evaluation of exclusion rules against API operations.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Final

from provider_oas_generator.errors import InvalidExclusionError
from provider_oas_generator.exclusions.matcher import ExactMatcher, PathMatcher, PatternType, new_path_matcher

VALID_METHODS: Final = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "CONNECT", "TRACE"})
ALL_METHODS: Final = "*"


@dataclass(frozen=True)
class Exclusion:
    """A single exclusion rule.

    Attributes:
        path_pattern: The pattern matched against path templates.
        method: The HTTP method the rule applies to, or None for every method.
        pattern_type: How the pattern is interpreted, wildcard when None.
    """

    path_pattern: str
    method: str | None = None
    pattern_type: PatternType | str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Exclusion:
        """Create a rule from its configuration mapping (camelCase or snake_case keys)."""
        return cls(
            path_pattern=data.get("pathPattern", data.get("path_pattern", "")),
            method=data.get("method"),
            pattern_type=data.get("patternType", data.get("pattern_type")),
        )


def _validate_exclusion(exclusion: Exclusion) -> None:
    if not exclusion.path_pattern:
        msg = "pathPattern is required"
        raise InvalidExclusionError(msg)

    if exclusion.method and exclusion.method.upper() not in VALID_METHODS:
        msg = f"invalid HTTP method: {exclusion.method}"
        raise InvalidExclusionError(msg)

    if exclusion.pattern_type:
        try:
            PatternType(exclusion.pattern_type)
        except ValueError as e:
            msg = f"invalid pattern type: {exclusion.pattern_type} (must be exact, wildcard, or regex)"
            raise InvalidExclusionError(msg) from e


@dataclass(frozen=True)
class EndpointMatcher:
    """Matches a method and path combination."""

    method: str
    path_matcher: PathMatcher

    def matches(self, method: str, path: str) -> bool:
        if self.method and self.method != method.upper():
            return False
        return self.path_matcher.matches(path)

    def describe(self) -> str:
        method = self.method or ALL_METHODS
        return f"{method} {self.path_matcher.pattern} ({self.path_matcher.pattern_type.value})"


class ExclusionEvaluator:
    """Decides whether an API operation is excluded from extraction.

    Args:
        exclusions: Structured exclusion rules.
        legacy_paths: Paths excluded for every method by exact match.

    Raises:
        InvalidExclusionError: If a rule is not valid. The message names the
            index of the offending rule.
    """

    def __init__(self, exclusions: Sequence[Exclusion] = (), legacy_paths: Iterable[str] = ()) -> None:
        self._matchers: list[EndpointMatcher] = [
            EndpointMatcher(method="", path_matcher=ExactMatcher(path)) for path in legacy_paths if path
        ]

        for i, exclusion in enumerate(exclusions):
            try:
                _validate_exclusion(exclusion)
                path_matcher = new_path_matcher(
                    exclusion.path_pattern, exclusion.pattern_type or PatternType.WILDCARD
                )
            except InvalidExclusionError as e:
                msg = f"invalid exclusion at index {i}: {e}"
                raise InvalidExclusionError(msg) from e

            self._matchers.append(EndpointMatcher(method=(exclusion.method or "").upper(), path_matcher=path_matcher))

    def should_exclude(self, method: str, path: str) -> bool:
        """Check whether any rule matches the operation."""
        return any(matcher.matches(method, path) for matcher in self._matchers)

    def get_matching_exclusions(self, method: str, path: str) -> list[str]:
        """Describe every rule matching the operation, e.g. ``GET /debug/* (wildcard)``."""
        return [matcher.describe() for matcher in self._matchers if matcher.matches(method, path)]

    def __len__(self) -> int:
        return len(self._matchers)
