"""
I/O utilities for the dictation pipeline.

Handles:
- Input type detection (PDF or pre-extracted text items)
- Loading pre-extracted text items from JSON
- JSON serialization
- Directory management
"""

import json
import logging
from pathlib import Path
from typing import List, Union, Any
from dataclasses import asdict

import numpy as np

from .decoder import DecodedDocument, DecodeError, fragments_from_items

logger = logging.getLogger(__name__)


# ============================================================================
# Pre-extracted Text Items
# ============================================================================

def load_fragments_json(json_path: Union[str, Path]) -> DecodedDocument:
    """
    Load text items extracted by an external decoder.

    The file holds either a list of pages, each a list of items, or an
    object ``{"pages": [...], "page_count": N}``. Items are
    ``{"str": ..., "transform": [a, b, c, d, e, f]}`` mappings or
    ``[text, transform]`` pairs.

    Args:
        json_path: Path to the JSON file

    Returns:
        DecodedDocument with one fragment list per page

    Raises:
        DecodeError: If the file is not valid JSON or has the wrong shape
    """
    json_path = Path(json_path)
    if not json_path.exists():
        raise DecodeError(f"Fragments file not found: {json_path}")

    try:
        data = load_json(json_path)
        if isinstance(data, dict):
            raw_pages = data["pages"]
            page_count = int(data.get("page_count", len(raw_pages)))
        else:
            raw_pages = data
            page_count = len(raw_pages)

        pages: List = [fragments_from_items(items, i) for i, items in enumerate(raw_pages)]
    except (ValueError, KeyError, TypeError) as e:
        raise DecodeError(f"Failed to read text items from {json_path}: {e}") from e

    logger.info(f"Loaded {len(pages)} page(s) of text items from {json_path}")
    return DecodedDocument(page_count=page_count, pages=pages, source_name=json_path.name)


# ============================================================================
# JSON Serialization
# ============================================================================

class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy scalars, dataclasses and paths."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if hasattr(obj, '__dataclass_fields__'):
            return asdict(obj)
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> Path:
    """
    Save data to a JSON file.

    Args:
        data: Data to serialize (dict, list, dataclass, etc.)
        output_path: Path to save the JSON file
        indent: Indentation level for pretty printing
        ensure_ascii: If True, escape non-ASCII characters

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii, cls=EnhancedJSONEncoder)

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    """Load data from a JSON file."""
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"JSON file not found: {json_path}")

    with open(json_path, 'r', encoding='utf-8') as f:
        return json.load(f)


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


# ============================================================================
# File Type Detection
# ============================================================================

def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the type of input file.

    Args:
        input_path: Path to file

    Returns:
        One of: 'pdf', 'fragments_json', 'unknown'
    """
    input_path = Path(input_path)

    if not input_path.is_file():
        return 'unknown'

    suffix = input_path.suffix.lower()
    if suffix == '.pdf':
        return 'pdf'
    elif suffix == '.json':
        return 'fragments_json'

    # Extensionless uploads: sniff the PDF header
    with open(input_path, 'rb') as f:
        if f.read(5) == b'%PDF-':
            return 'pdf'

    return 'unknown'
