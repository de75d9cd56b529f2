"""
Inclusion rules for object names and text.

An inclusion rule decides whether a piece of text (usually an object's full
name) is kept. Rules are pure, side-effect-free predicates so they can be
shared across reducers, linters and command-line options.

The regular-expression rule keeps text that matches the include pattern and
does not match the exclude pattern. Patterns must match the whole text.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Optional, Pattern, Union

from catalog_crawler.errors import ConfigurationError

PatternLike = Union[str, Pattern, None]


def compile_pattern(pattern: PatternLike) -> Optional[Pattern]:
    """
    Compile a regular expression, failing fast on a malformed pattern.

    Args:
        pattern: Pattern text, an already compiled pattern, or None

    Returns:
        Compiled pattern, or None if no pattern was given
    """
    if pattern is None:
        return None
    if isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigurationError(f"Invalid regular expression {pattern!r}: {exc}") from exc


class InclusionRule(ABC):
    """Predicate over text that decides whether a named object is kept."""

    @abstractmethod
    def test(self, text: Optional[str]) -> bool:
        """
        Check whether the text is included by this rule.

        Args:
            text: Text to evaluate, usually a full object name

        Returns:
            True if the text is included, False otherwise.
        """
        ...

    def __call__(self, text: Optional[str]) -> bool:
        return self.test(text)


class IncludeAll(InclusionRule):
    """Rule that includes everything."""

    def test(self, text: Optional[str]) -> bool:
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, IncludeAll)

    def __hash__(self) -> int:
        return hash(IncludeAll)

    def __repr__(self) -> str:
        return "IncludeAll()"


class ExcludeAll(InclusionRule):
    """Rule that includes nothing."""

    def test(self, text: Optional[str]) -> bool:
        return False

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ExcludeAll)

    def __hash__(self) -> int:
        return hash(ExcludeAll)

    def __repr__(self) -> str:
        return "ExcludeAll()"


class RegularExpressionRule(InclusionRule):
    """
    Include/exclude pattern pair.

    A missing include pattern matches everything and a missing exclude
    pattern matches nothing, so the decision is
    ``include.fullmatch(text) and not exclude.fullmatch(text)``.
    """

    def __init__(self, include: PatternLike = None, exclude: PatternLike = None):
        self.include_pattern = compile_pattern(include)
        self.exclude_pattern = compile_pattern(exclude)

    def test(self, text: Optional[str]) -> bool:
        if text is None:
            return False
        if self.include_pattern is not None and not self.include_pattern.fullmatch(text):
            return False
        if self.exclude_pattern is not None and self.exclude_pattern.fullmatch(text):
            return False
        return True

    def _patterns(self):
        return (
            self.include_pattern.pattern if self.include_pattern else None,
            self.exclude_pattern.pattern if self.exclude_pattern else None,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegularExpressionRule):
            return NotImplemented
        return self._patterns() == other._patterns()

    def __hash__(self) -> int:
        return hash(self._patterns())

    def __repr__(self) -> str:
        include, exclude = self._patterns()
        return f"{type(self).__name__}(include={include!r}, exclude={exclude!r})"


class RegularExpressionInclusionRule(RegularExpressionRule):
    """Include text matching a pattern; exclude nothing."""

    def __init__(self, include: PatternLike):
        super().__init__(include=include, exclude=None)


class RegularExpressionExclusionRule(RegularExpressionRule):
    """Exclude text matching a pattern; include everything else."""

    def __init__(self, exclude: PatternLike):
        super().__init__(include=None, exclude=exclude)


def rule_from_patterns(include: PatternLike = None, exclude: PatternLike = None) -> InclusionRule:
    """
    Build the simplest rule for a pattern pair.

    Returns:
        IncludeAll when neither pattern is given, otherwise a RegularExpressionRule
    """
    if include is None and exclude is None:
        return IncludeAll()
    return RegularExpressionRule(include, exclude)
