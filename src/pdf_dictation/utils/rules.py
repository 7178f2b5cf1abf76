"""
Ordered rewrite rules shared by the artifact repairer and the math normalizer.

A rule is a compiled pattern plus a replacement (a template string or a
callable taking the match). Rules are applied in a fixed order; they are not
commutative, so callers keep them in tuples rather than sets.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Union, Pattern

Replacement = Union[str, Callable[["re.Match"], str]]


@dataclass(frozen=True)
class NormalizationRule:
    """A single pattern -> replacement step."""
    name: str
    pattern: Pattern
    replacement: Replacement

    @classmethod
    def compile(cls, name: str, pattern: str, replacement: Replacement, flags: int = 0) -> 'NormalizationRule':
        return cls(name=name, pattern=re.compile(pattern, flags), replacement=replacement)

    def apply(self, text: str) -> str:
        """Apply the rule everywhere in ``text``; no match leaves it unchanged."""
        return self.pattern.sub(self.replacement, text)


def apply_rules(text: str, rules: Iterable[NormalizationRule]) -> str:
    """Run ``rules`` in order, feeding each rule the previous rule's output."""
    for rule in rules:
        text = rule.apply(text)
    return text
