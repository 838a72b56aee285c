"""Exclusion rules for skipping API operations."""

from .evaluator import Exclusion, ExclusionEvaluator
from .matcher import (
    ExactMatcher,
    PathMatcher,
    PatternType,
    RegexMatcher,
    WildcardMatcher,
    new_path_matcher,
)

__all__ = [
    "ExactMatcher",
    "Exclusion",
    "ExclusionEvaluator",
    "PathMatcher",
    "PatternType",
    "RegexMatcher",
    "WildcardMatcher",
    "new_path_matcher",
]
