"""
Page chrome (running header/footer) removal.

Two independent rules decide whether a line is dropped:
- Frequency: the exact line text appears on at least
  ``max(2, floor(page_count * 0.5))`` pages
- Pattern: the line matches a known junk shape (page markers, footer
  file names, file paths, lone page numbers, running unit headers)
"""

import logging
import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Sequence, Set, Dict, Any

logger = logging.getLogger(__name__)


JUNK_PATTERNS = (
    # Page 8 / Page 8 of 10
    re.compile(r"(^|\s)Page\s*\d+(\s*of\s*\d+)?", re.IGNORECASE),
    # InDesign footer file name
    re.compile(r"Unit\s*\d+_Book_\d+\.indb", re.IGNORECASE),
    # File system paths
    re.compile(r"~/|[A-Z]:\\|desktop", re.IGNORECASE),
    # Lone page numbers; single digits may be merged exponents
    re.compile(r"^\d{2,}\s*$"),
    # "8 Algebra 1 • Unit 7 ..." running header
    re.compile(r"^\d+\s+Algebra\s*1\s*•\s*Unit\s*\d+", re.IGNORECASE),
)


@dataclass
class ChromeResult:
    """Outcome of chrome filtering for a whole document."""
    pages: List[List[str]]
    page_texts: List[str]
    chrome_lines: Set[str] = field(default_factory=set)
    dropped_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chrome_lines": sorted(self.chrome_lines),
            "dropped_count": self.dropped_count
        }


def chrome_threshold(page_count: int, ratio: float = 0.5, min_repeats: int = 2) -> int:
    """Number of pages a line must appear on to count as chrome."""
    return max(min_repeats, math.floor(page_count * ratio))


def find_repeating_lines(
    pages: Sequence[Sequence[str]],
    ratio: float = 0.5,
    min_repeats: int = 2
) -> Set[str]:
    """
    Find line texts repeated across pages (exact match).

    Each page contributes at most one count per distinct line.
    """
    counts: Counter = Counter()
    for lines in pages:
        counts.update(set(lines))

    threshold = chrome_threshold(len(pages), ratio, min_repeats)
    return {line for line, n in counts.items() if n >= threshold}


def is_junk_line(text: str) -> bool:
    """Check a line against the fixed junk patterns."""
    return any(rx.search(text) for rx in JUNK_PATTERNS)


def filter_chrome(
    pages: Sequence[Sequence[str]],
    ratio: float = 0.5,
    min_repeats: int = 2,
    use_junk_patterns: bool = True
) -> ChromeResult:
    """
    Drop running headers/footers and junk lines from every page.

    Args:
        pages: Repaired line texts per page, for the whole document
        ratio: Fraction of pages a line must repeat on to be chrome
        min_repeats: Lower bound for the repetition threshold
        use_junk_patterns: Also apply the fixed junk patterns

    Returns:
        ChromeResult with kept lines and newline-joined text per page
    """
    chrome = find_repeating_lines(pages, ratio, min_repeats)

    kept_pages: List[List[str]] = []
    dropped = 0
    for lines in pages:
        kept = [
            line for line in lines
            if line not in chrome and not (use_junk_patterns and is_junk_line(line))
        ]
        dropped += len(lines) - len(kept)
        kept_pages.append(kept)

    if chrome:
        logger.info(f"Detected {len(chrome)} repeating lines as page chrome")
    logger.debug(f"Dropped {dropped} chrome/junk lines across {len(pages)} pages")

    return ChromeResult(
        pages=kept_pages,
        page_texts=["\n".join(kept) for kept in kept_pages],
        chrome_lines=chrome,
        dropped_count=dropped
    )
