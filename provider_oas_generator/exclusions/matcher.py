"""
Path matchers used by exclusion rules.

Three pattern kinds are supported:

* ``exact``: the path must equal the pattern.
* ``wildcard``: ``*`` matches within a path segment, ``**`` matches across
  segments and ``?`` matches a single non-separator character.
* ``regex``: the pattern is a regular expression searched in the path.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Final

from provider_oas_generator.errors import InvalidExclusionError

_REGEX_SPECIAL_CHARS: Final = frozenset(".+^$()[]{}|\\")


class PatternType(str, Enum):
    """How an exclusion pattern is interpreted."""

    EXACT = "exact"
    WILDCARD = "wildcard"
    REGEX = "regex"


class PathMatcher(ABC):
    """Matches API paths against a single pattern."""

    pattern_type: PatternType

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern

    @abstractmethod
    def matches(self, path: str) -> bool:
        """Check whether the path matches the pattern."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.pattern!r})"


class ExactMatcher(PathMatcher):
    pattern_type = PatternType.EXACT

    def matches(self, path: str) -> bool:
        return path == self.pattern


def wildcard_to_regex(pattern: str) -> str:
    """Convert a wildcard pattern to an anchored regular expression.

    Examples:
        >>> wildcard_to_regex("/debug/*")
        '^/debug/[^/]*$'
        >>> wildcard_to_regex("/internal/**")
        '^/internal/.*$'
    """
    result = ["^"]
    i = 0
    while i < len(pattern):
        if pattern.startswith("**", i):
            result.append(".*")
            i += 2
            continue

        char = pattern[i]
        if char == "*":
            result.append("[^/]*")
        elif char == "?":
            result.append("[^/]")
        elif char in _REGEX_SPECIAL_CHARS:
            result.append("\\" + char)
        else:
            result.append(char)
        i += 1
    result.append("$")
    return "".join(result)


def _compile(pattern: str, kind: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        msg = f"failed to compile {kind} pattern {pattern!r}: {e}"
        raise InvalidExclusionError(msg) from e


class WildcardMatcher(PathMatcher):
    pattern_type = PatternType.WILDCARD

    def __init__(self, pattern: str) -> None:
        super().__init__(pattern)
        self._regex = _compile(wildcard_to_regex(pattern), "wildcard")

    def matches(self, path: str) -> bool:
        return self._regex.match(path) is not None


class RegexMatcher(PathMatcher):
    pattern_type = PatternType.REGEX

    def __init__(self, pattern: str) -> None:
        super().__init__(pattern)
        self._regex = _compile(pattern, "regex")

    def matches(self, path: str) -> bool:
        return self._regex.search(path) is not None


_MATCHERS: Final[dict[PatternType, type[PathMatcher]]] = {
    PatternType.EXACT: ExactMatcher,
    PatternType.WILDCARD: WildcardMatcher,
    PatternType.REGEX: RegexMatcher,
}


def new_path_matcher(pattern: str, pattern_type: PatternType | str) -> PathMatcher:
    """Create the matcher for a pattern.

    Args:
        pattern: The path pattern.
        pattern_type: The pattern kind.

    Returns:
        The path matcher.

    Raises:
        InvalidExclusionError: If the pattern is empty, the kind is unknown or
            the pattern does not compile.
    """
    if not pattern:
        msg = "pattern cannot be empty"
        raise InvalidExclusionError(msg)

    try:
        kind = PatternType(pattern_type)
    except ValueError as e:
        msg = f"unknown pattern type: {pattern_type}"
        raise InvalidExclusionError(msg) from e

    return _MATCHERS[kind](pattern)
