"""
Math-to-speech normalization for dictation.

Rewrites mathematical micro-syntax in one sentence into phrases a speech
synthesizer reads naturally:

    x² + 3 = 7      ->  x squared plus 3 equals 7
    f(t)            ->  f of t
    (a+b)/(c)       ->  (a plus b) over (c)
    sin(x) ≤ 1      ->  sine of x less than or equal to 1

The rules are a fixed ordered pipeline. Superscript letters are always
spoken; everything else only runs when the sentence looks mathematical.
Every step is a plain string rewrite, so the normalizer is pure and safe to
call concurrently.

Reapplying the normalizer to its own output is not guaranteed to be a no-op:
``f(x)^2`` becomes ``f of x^2`` on the first pass (function calls are
rewritten after caret powers) and ``f of x squared`` on the second.
"""

import logging
import re
from typing import List

from .rules import NormalizationRule, apply_rules

logger = logging.getLogger(__name__)


# ============================================================================
# Mathematical Gate
# ============================================================================

_MATH_GATE = re.compile(
    r"[=+−\-*/×^√(){}\[\]|<>≤≥%]|\b(?:sin|cos|tan|log|ln|lim)\b|[∫Σ]",
    re.IGNORECASE
)


def looks_mathematical(text: str) -> bool:
    """Check if a sentence contains operators, brackets, comparisons or math words."""
    return bool(_MATH_GATE.search(text))


# ============================================================================
# Rule Tables (fixed order)
# ============================================================================

_POWER_WORDS = {
    "²": "squared", "³": "cubed",
    "⁴": "to the power of 4", "⁵": "to the power of 5", "⁶": "to the power of 6",
    "⁷": "to the power of 7", "⁸": "to the power of 8", "⁹": "to the power of 9",
}

SUPERSCRIPT_RULES = tuple(
    NormalizationRule.compile(f"superscript_{glyph}", f"([a-zA-Z]){glyph}", f"\\1 {words}")
    for glyph, words in _POWER_WORDS.items()
)

CARET_POWER_RULES = (
    NormalizationRule.compile("caret_squared", r"\b([a-zA-Z])\s*\^\s*2\b", r"\1 squared"),
    NormalizationRule.compile("caret_cubed", r"\b([a-zA-Z])\s*\^\s*3\b", r"\1 cubed"),
    NormalizationRule.compile(
        "caret_power", r"\b([a-zA-Z])\s*\^\s*(\d+)\b", r"\1 to the power of \2"
    ),
)

_POWER_CONTEXT = re.compile(r"[=+\-×*/(]")


def _spoken_ocr_power(match: re.Match) -> str:
    # Only near an operator or bracket does "x 2" mean x squared
    offset = match.start()
    context = match.string[max(0, offset - 4):offset + 4]
    if not _POWER_CONTEXT.search(context):
        return match.group(0)
    word = "squared" if match.group(2) == "2" else "cubed"
    return f"{match.group(1)} {word}"


OCR_POWER_RULE = NormalizationRule.compile(
    "ocr_power", r"([a-zA-Z])\s*(2|3)(?=[^a-zA-Z]|$)", _spoken_ocr_power
)

FUNCTION_CALL_RULES = (
    NormalizationRule.compile(
        "function_call", r"\b([a-zA-Z])\s*\(\s*([a-zA-Z0-9]+)\s*\)", r"\1 of \2"
    ),
)

OPERATOR_RULES = (
    NormalizationRule.compile("bullet", "[•·]", " "),
    NormalizationRule.compile("equals", "=", " equals "),
    NormalizationRule.compile("plus", r"\+", " plus "),
    NormalizationRule.compile("minus", "[−–—-]", " minus "),
    NormalizationRule.compile("times", "[×*]", " times "),
    NormalizationRule.compile("divided_by", r"(?<=\w)/(?=\w)", " divided by "),
)


def _parenthesize(term: str) -> str:
    if term.startswith("(") and term.endswith(")"):
        return term
    return f"({term})"


def _spoken_fraction(match: re.Match) -> str:
    return f"{_parenthesize(match.group(1))} over {_parenthesize(match.group(2))}"


def _spoken_root(match: re.Match) -> str:
    radicand = match.group(1) if match.group(1) is not None else match.group(2)
    return f" square root of {radicand} "


FRACTION_ROOT_RULES = (
    NormalizationRule.compile(
        "fraction", r"(\([^)]*\)|\S+)/(\([^)]*\)|\S+)", _spoken_fraction
    ),
    NormalizationRule.compile("square_root", r"√\s*(?:\(([^)]*)\)|(\S+))", _spoken_root),
)

_TRIG_WORDS = {"sin": "sine", "cos": "cosine", "tan": "tangent"}


def _spoken_inverse_trig(match: re.Match) -> str:
    return f"inverse {_TRIG_WORDS[match.group(1).lower()]} of {match.group(2).strip()}"


def _spoken_trig(match: re.Match) -> str:
    name = _TRIG_WORDS[match.group(1).lower()]
    arg = match.group(2) if match.group(2) is not None else ""
    return f"{name} of {arg.strip()}"


TRIG_LOG_RULES = (
    NormalizationRule.compile(
        "inverse_trig", r"\b(sin|cos|tan)⁻¹\s*\(([^)]*)\)", _spoken_inverse_trig, re.IGNORECASE
    ),
    NormalizationRule.compile(
        "trig", r"\b(sin|cos|tan)\b\s*(?:\(([^)]*)\))?", _spoken_trig, re.IGNORECASE
    ),
    NormalizationRule.compile("natural_log", r"\bln\(", " natural log of (", re.IGNORECASE),
    NormalizationRule.compile("log_base", r"\blog_?(\d+)\(", r" log base \1 of (", re.IGNORECASE),
    NormalizationRule.compile("log", r"\blog\(", " log of (", re.IGNORECASE),
)

COMPARISON_RULES = (
    NormalizationRule.compile("less_equal", "≤", " less than or equal to "),
    NormalizationRule.compile("greater_equal", "≥", " greater than or equal to "),
    NormalizationRule.compile("less", "<", " less than "),
    NormalizationRule.compile("greater", ">", " greater than "),
    NormalizationRule.compile("sum", "Σ", " sum of "),
    NormalizationRule.compile("integral", "∫", " integral of "),
    NormalizationRule.compile("limit", r"\blim\b", " limit ", re.IGNORECASE),
)

# Everything after the gate, in application order
MATH_RULES = (
    CARET_POWER_RULES
    + (OCR_POWER_RULE,)
    + FUNCTION_CALL_RULES
    + OPERATOR_RULES
    + FRACTION_ROOT_RULES
    + TRIG_LOG_RULES
    + COMPARISON_RULES
)

_REPEATED_WHITESPACE = re.compile(r"\s{2,}")


# ============================================================================
# Public API
# ============================================================================

def normalize_for_speech(text: str, math_mode: bool = True) -> str:
    """
    Rewrite a sentence into speakable text.

    Args:
        text: Sentence text
        math_mode: When False the text is returned untouched

    Returns:
        Normalized text with whitespace collapsed and trimmed
    """
    if not math_mode:
        return text

    spoken = apply_rules(text, SUPERSCRIPT_RULES)
    if looks_mathematical(spoken):
        spoken = apply_rules(spoken, MATH_RULES)

    return _REPEATED_WHITESPACE.sub(" ", spoken).strip()


def normalize_sentences(texts: List[str], math_mode: bool = True) -> List[str]:
    """Normalize a batch of sentences independently."""
    return [normalize_for_speech(text, math_mode=math_mode) for text in texts]
