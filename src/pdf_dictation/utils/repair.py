"""
Extraction artifact repair for reconstructed lines.

Fixes damage that fragment-based text extraction typically does to math:
- Minus sign variants unified to a plain hyphen
- Vulgar fraction glyphs spelled out (``½`` -> ``1/2``)
- Spaced or underscore-split fractions collapsed (``3 / 4`` -> ``3/4``)
- Split caret powers merged (``x ^ 2`` -> ``x²``)
- Bare powers after a parenthesized group (``(x+1) 2`` -> ``(x+1)²``)
- Lost superscript minus on inverse trig (``sin ¹(`` -> ``sin⁻¹(``)

A separate heuristic layer reinserts minus signs that extraction dropped.
Those rules fire on legitimate juxtaposed numbers too (``(2 5)`` becomes
``(2 - 5)``), so they can be switched off independently.
"""

import logging
import re
from typing import List, Sequence

from .grouping import to_superscript
from .rules import NormalizationRule, apply_rules

logger = logging.getLogger(__name__)


VULGAR_FRACTIONS = {
    "¼": "1/4", "½": "1/2", "¾": "3/4",
    "⅐": "1/7", "⅑": "1/9", "⅒": "1/10",
    "⅓": "1/3", "⅔": "2/3",
    "⅕": "1/5", "⅖": "2/5", "⅗": "3/5", "⅘": "4/5",
    "⅙": "1/6", "⅚": "5/6",
    "⅛": "1/8", "⅜": "3/8", "⅝": "5/8", "⅞": "7/8",
}


def _spell_fraction(match: re.Match) -> str:
    spelled = VULGAR_FRACTIONS[match.group(0)]
    # mixed number: 1½ -> 1 1/2
    if match.start() > 0 and match.string[match.start() - 1].isdigit():
        return " " + spelled
    return spelled


def _attach_superscript(match: re.Match) -> str:
    return match.group(1) + to_superscript(match.group(2))


# ============================================================================
# Trusted Repair Rules (fixed order)
# ============================================================================

REPAIR_RULES = (
    NormalizationRule.compile("minus_variants", "[−–—]", "-"),
    NormalizationRule.compile(
        "vulgar_fractions", "[" + "".join(VULGAR_FRACTIONS) + "]", _spell_fraction
    ),
    NormalizationRule.compile("spaced_fraction", r"(\d)\s*/\s*(\d)", r"\1/\2"),
    NormalizationRule.compile("underscore_fraction", r"(\d)\s*_\s*_\s*(\d)", r"\1/\2"),
    NormalizationRule.compile(
        "caret_power", r"(?<![A-Za-z])([A-Za-z])\s*\^\s*(\d)(?!\d)", _attach_superscript
    ),
    NormalizationRule.compile(
        "group_power", r"(\))\s+(\d)(?![\w/]|\.\d)", _attach_superscript
    ),
    NormalizationRule.compile(
        "inverse_trig", r"\b(sin|cos|tan)\s*¹\s*\(", "\\1⁻¹(", re.IGNORECASE
    ),
)


# ============================================================================
# Missing-Minus Heuristics (opt-out)
# ============================================================================

MINUS_HEURISTIC_RULES = (
    # (2x  5) -> (2x - 5)
    NormalizationRule.compile(
        "minus_in_parens", r"\(([^()]*?\w)\s+(\d+(?:\.\d+)?)\)", r"(\1 - \2)"
    ),
    # |x  5| -> |x - 5|
    NormalizationRule.compile(
        "minus_in_abs", r"\|(\w+)\s+(\d+(?:\.\d+)?)\|", r"|\1 - \2|"
    ),
    # 3x 2y -> 3x - 2y
    NormalizationRule.compile(
        "minus_between_terms", r"\b(\d+[A-Za-z])\s+(\d+[A-Za-z])\b", r"\1 - \2"
    ),
    # x 5) -> x - 5)
    NormalizationRule.compile(
        "minus_before_close", r"\b([A-Za-z])\s+(\d+(?:\.\d+)?)\)", r"\1 - \2)"
    ),
)


def repair_line(text: str, heuristics: bool = True) -> str:
    """
    Repair extraction artifacts in one line.

    Args:
        text: Raw line text
        heuristics: Also run the missing-minus heuristics

    Returns:
        Repaired text (unchanged if no rule matches)
    """
    repaired = apply_rules(text, REPAIR_RULES)
    if heuristics:
        repaired = apply_rules(repaired, MINUS_HEURISTIC_RULES)
    return repaired


def repair_lines(lines: Sequence[str], heuristics: bool = True) -> List[str]:
    """Repair every line of a page, preserving order."""
    repaired = [repair_line(line, heuristics=heuristics) for line in lines]
    changed = sum(1 for before, after in zip(lines, repaired) if before != after)
    if changed:
        logger.debug(f"Repaired {changed}/{len(lines)} lines")
    return repaired
