"""
Line reconstruction module for the dictation pipeline.

Provides:
- Fragment and Line data classes
- Grouping of positioned fragments into lines by baseline Y
- Superscript-only line merging (``x`` / ``2`` -> ``x²``)
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Dict, Any

logger = logging.getLogger(__name__)

DEFAULT_LINE_TOLERANCE = 3.5
IDENTITY_TRANSFORM = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

SUPERSCRIPT_DIGITS = {
    "0": "⁰", "1": "¹", "2": "²", "3": "³", "4": "⁴",
    "5": "⁵", "6": "⁶", "7": "⁷", "8": "⁸", "9": "⁹",
}
SUPERSCRIPT_GLYPHS = "".join(SUPERSCRIPT_DIGITS.values())

_WHITESPACE_RUN = re.compile(r"\s{2,}")
_CARET_DIGIT_LINE = re.compile(r"^\^?\d$")
_SUPERSCRIPT_LINE = re.compile(f"^[{SUPERSCRIPT_GLYPHS}]$")
# A power attaches to a trailing variable or a closing parenthesis
_POWER_BASE_TAIL = re.compile(r"[a-zA-Z)]\s*$")


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class Fragment:
    """A positioned piece of text produced by the decoder."""
    text: str
    baseline_y: float
    page_index: int

    @classmethod
    def from_transform(
        cls,
        text: Optional[str],
        transform: Optional[Sequence[float]],
        page_index: int
    ) -> 'Fragment':
        """
        Build a fragment from a 6-element affine text transform.

        The baseline Y is the sixth component (index 5); a missing or
        malformed transform is treated as the identity transform.
        """
        if not transform or len(transform) < 6:
            transform = IDENTITY_TRANSFORM
        return cls(text=text or "", baseline_y=float(transform[5]), page_index=page_index)


@dataclass(frozen=True)
class Line:
    """A reconstructed line of text on one page."""
    text: str
    y: float
    page_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "y": round(self.y, 2),
            "page_index": self.page_index
        }


# ============================================================================
# Fragment Grouping
# ============================================================================

def _clean_line_text(parts: List[str]) -> str:
    return _WHITESPACE_RUN.sub(" ", " ".join(parts)).strip()


def group_fragments(
    fragments: Sequence[Fragment],
    tolerance: float = DEFAULT_LINE_TOLERANCE
) -> List[Line]:
    """
    Group one page's fragments into lines.

    The first fragment of a line sets its reference Y. Later fragments join
    the line while their baseline stays within ``tolerance`` of that
    reference; the reference never drifts with them. Lines keep fragment
    emission order and are not sorted by position.

    Args:
        fragments: Fragments of a single page, in extraction order
        tolerance: Maximum baseline difference for the same line

    Returns:
        List of Line objects (empty lines are dropped)
    """
    lines: List[Line] = []
    buffer: List[str] = []
    reference_y: Optional[float] = None
    page_index = fragments[0].page_index if fragments else 0

    def flush():
        if buffer:
            text = _clean_line_text(buffer)
            if text:
                lines.append(Line(text=text, y=reference_y, page_index=page_index))
            buffer.clear()

    for fragment in fragments:
        if reference_y is None:
            reference_y = fragment.baseline_y

        if abs(fragment.baseline_y - reference_y) > tolerance:
            flush()
            reference_y = fragment.baseline_y

        buffer.append(fragment.text)

    flush()

    logger.debug(f"Grouped {len(fragments)} fragments into {len(lines)} lines")
    return lines


# ============================================================================
# Superscript Line Merging
# ============================================================================

def to_superscript(digits: str) -> str:
    """Map ASCII digits to Unicode superscript glyphs, leaving other characters."""
    return "".join(SUPERSCRIPT_DIGITS.get(ch, ch) for ch in digits)


def is_superscript_line(text: str) -> bool:
    """Check if a line holds nothing but a single (possibly caret-prefixed) power."""
    cur = text.strip()
    return bool(_CARET_DIGIT_LINE.match(cur) or _SUPERSCRIPT_LINE.match(cur))


def merge_superscript_lines(lines: Sequence[str]) -> List[str]:
    """
    Fold superscript-only lines into the preceding output line.

    A line such as ``2`` or ``^2`` following ``... x`` becomes ``... x²``.
    The merge only happens when the last line already emitted ends in a
    letter or a closing parenthesis; a superscript line never reaches past
    its immediate predecessor in the output.

    Args:
        lines: Line texts of one page, in order

    Returns:
        Merged line texts
    """
    out: List[str] = []

    for line in lines:
        prev = out[-1] if out else None
        cur = line.strip()

        if is_superscript_line(cur) and prev and _POWER_BASE_TAIL.search(prev):
            if _SUPERSCRIPT_LINE.match(cur):
                out[-1] = prev + cur
            else:
                out[-1] = prev + to_superscript(cur.replace("^", ""))
        else:
            out.append(line)

    if len(out) != len(lines):
        logger.debug(f"Merged {len(lines) - len(out)} superscript lines")
    return out
