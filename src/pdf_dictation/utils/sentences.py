"""
Sentence segmentation of cleaned page text.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Sequence, Dict, Any

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_GLUED_PERIOD = re.compile(r"\.(?=\S)")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+(?=[A-Z0-9(\"'\[])")


@dataclass(frozen=True)
class Sentence:
    """A sentence tagged with its 1-indexed source page."""
    text: str
    page: int

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "page": self.page}


def split_sentences(text: str) -> List[str]:
    """
    Split one page's text into sentences.

    A period glued to the next character gets a space first, so
    ``end.Next`` splits as two sentences. Boundaries are terminal
    punctuation followed by whitespace and an uppercase letter, digit,
    opening quote or opening bracket.
    """
    cleaned = _GLUED_PERIOD.sub(". ", _WHITESPACE.sub(" ", text)).strip()
    chunks = (chunk.strip() for chunk in _SENTENCE_BOUNDARY.split(cleaned))
    return [chunk for chunk in chunks if chunk]


def build_sentences(page_texts: Sequence[str]) -> List[Sentence]:
    """Segment every page in order; sentence indices follow page order."""
    result: List[Sentence] = []
    for i, text in enumerate(page_texts):
        result.extend(Sentence(text=chunk, page=i + 1) for chunk in split_sentences(text))

    logger.debug(f"Built {len(result)} sentences from {len(page_texts)} pages")
    return result
