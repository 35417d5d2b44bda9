"""
Rules that decide whether an (original, english) name pair may be recorded.

Each rule looks at one pair and says whether it rejects it. The name store
runs the same ordered list when votes come in and when it purges a loaded
file, so adding a rule here is enough to have old data cleaned on next load.
"""

import re
from typing import Iterable, Optional, Sequence

from .constants import (
    BAD_ORIGINAL_PATTERN,
    HONORIFIC_SUFFIX_PATTERN,
    ENGLISH_HONORIFICS,
    ORIGINAL_NAME_DENYLIST,
)


class RejectionRule:
    """Base class: subclasses implement rejects()."""

    name = "rule"

    def rejects(self, original: str, english: str) -> bool:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


class EmptyFieldRule(RejectionRule):
    name = "empty"

    def rejects(self, original: str, english: str) -> bool:
        return not original or not english


class BadOriginalCharactersRule(RejectionRule):
    """Originals are single name fragments: no whitespace, punctuation or separators."""

    name = "bad-original-characters"

    def __init__(self, pattern: str = BAD_ORIGINAL_PATTERN):
        self.regex = re.compile(pattern)

    def rejects(self, original: str, english: str) -> bool:
        return bool(self.regex.search(original))


class OriginalDenylistRule(RejectionRule):
    """Pronouns and group words the scout likes to report as names. Exact match."""

    name = "original-denylist"

    def __init__(self, denylist: Iterable[str] = ORIGINAL_NAME_DENYLIST):
        self.denylist = frozenset(denylist)

    def rejects(self, original: str, english: str) -> bool:
        return original in self.denylist


class OriginalHonorificRule(RejectionRule):
    name = "original-honorific"

    def __init__(self, pattern: str = HONORIFIC_SUFFIX_PATTERN):
        self.regex = re.compile(pattern)

    def rejects(self, original: str, english: str) -> bool:
        return bool(self.regex.search(original))


class EnglishHonorificRule(RejectionRule):
    name = "english-honorific"

    def __init__(self, honorifics: Iterable[str] = ENGLISH_HONORIFICS):
        self.honorifics = tuple(h.lower() for h in honorifics)

    def rejects(self, original: str, english: str) -> bool:
        lowered = english.lower()
        return any(h in lowered for h in self.honorifics)


class EnglishWhitespaceRule(RejectionRule):
    """A rendering covers one fragment, so it can't contain whitespace."""

    name = "english-whitespace"

    def rejects(self, original: str, english: str) -> bool:
        return any(c.isspace() for c in english)


DEFAULT_RULES: Sequence[RejectionRule] = (
    EmptyFieldRule(),
    BadOriginalCharactersRule(),
    OriginalDenylistRule(),
    EnglishWhitespaceRule(),
    OriginalHonorificRule(),
    EnglishHonorificRule(),
)


def first_rejection(
    original: str,
    english: str,
    rules: Sequence[RejectionRule] = DEFAULT_RULES
) -> Optional[RejectionRule]:
    """Returns the first rule that rejects the pair, or None if it is acceptable."""
    for rule in rules:
        if rule.rejects(original, english):
            return rule
    return None


def is_acceptable(original: str, english: str, rules: Sequence[RejectionRule] = DEFAULT_RULES) -> bool:
    return first_rejection(original, english, rules) is None
