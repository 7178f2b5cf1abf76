"""
PDF decoding into positioned text fragments.

Provides:
- Text-layer decoding with PyMuPDF (one fragment per text span)
- OCR fallback for pages without a text layer (pdf2image + Tesseract)
- Adaptation of externally extracted ``(text, transform)`` items

Every decoding failure surfaces as a single ``DecodeError``; callers treat it
as "ask the user for a different file".
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union, Any, Dict

import numpy as np

from .grouping import Fragment

logger = logging.getLogger(__name__)

PDF_POINTS_PER_INCH = 72.0


class DecodeError(RuntimeError):
    """The supplied bytes could not be decoded as a document."""


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class DecodedDocument:
    """Fragments of every page, in page order."""
    page_count: int
    pages: List[List[Fragment]] = field(default_factory=list)
    source_name: str = ""
    ocr_pages: List[int] = field(default_factory=list)  # 0-indexed

    @property
    def fragment_count(self) -> int:
        return sum(len(page) for page in self.pages)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_name": self.source_name,
            "page_count": self.page_count,
            "fragment_count": self.fragment_count,
            "ocr_pages": [i + 1 for i in self.ocr_pages]
        }


def fragments_from_items(items: Sequence[Any], page_index: int) -> List[Fragment]:
    """
    Adapt one page of externally extracted text items.

    Items are ``(text, transform)`` pairs or mappings with a ``str``/``text``
    key and an optional ``transform`` key (6-element affine matrix).
    """
    fragments = []
    for item in items:
        if isinstance(item, dict):
            text = item.get("str", item.get("text", ""))
            transform = item.get("transform") or item.get("transformMatrix")
        else:
            text, transform = item
        fragments.append(Fragment.from_transform(text, transform, page_index))
    return fragments


# ============================================================================
# Text Layer Decoder (PyMuPDF)
# ============================================================================

class PdfTextDecoder:
    """Decode the PDF text layer span by span, in content-stream order."""

    def __init__(self):
        try:
            import fitz
        except ImportError:
            raise ImportError(
                "PyMuPDF is required for PDF decoding. "
                "Install with: pip install PyMuPDF"
            )
        self.fitz = fitz

    def open(self, source: Union[str, Path, bytes]):
        """Open a PDF from a path or raw bytes."""
        try:
            if isinstance(source, (bytes, bytearray)):
                return self.fitz.open(stream=bytes(source), filetype="pdf")
            path = Path(source)
            if not path.exists():
                raise FileNotFoundError(f"PDF file not found: {path}")
            return self.fitz.open(str(path))
        except FileNotFoundError as e:
            raise DecodeError(str(e)) from e
        except Exception as e:
            raise DecodeError(f"Failed to parse PDF: {e}") from e

    def decode_page(self, page, page_index: int) -> List[Fragment]:
        """Extract one fragment per span; Y is the span's baseline origin."""
        fragments = []
        page_dict = page.get_text("dict")
        for block in page_dict.get("blocks", []):
            if block.get("type", 0) != 0:
                continue
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    origin = span.get("origin") or (0.0, 0.0)
                    fragments.append(Fragment(
                        text=span.get("text", ""),
                        baseline_y=float(origin[1]),
                        page_index=page_index
                    ))
        return fragments


# ============================================================================
# OCR Decoder (pdf2image + Tesseract)
# ============================================================================

class OcrDecoder:
    """Recognize words on a rendered page; one fragment per word."""

    def __init__(
        self,
        dpi: int = 300,
        language: str = "eng",
        config: str = "--oem 3 --psm 6"
    ):
        try:
            import pytesseract
            self.pytesseract = pytesseract

            # Test that tesseract is installed
            pytesseract.get_tesseract_version()

        except Exception as e:
            raise ImportError(
                f"Tesseract not available: {e}\n"
                "Install with: pip install pytesseract\n"
                "Also install Tesseract: https://github.com/tesseract-ocr/tesseract"
            )

        self.dpi = dpi
        self.language = language
        self.config = config

    def render_page(self, source: Union[str, Path, bytes], page_number: int) -> np.ndarray:
        """Render a single 1-indexed page to a BGR image."""
        try:
            from pdf2image import convert_from_path, convert_from_bytes
        except ImportError:
            raise ImportError(
                "pdf2image is required for OCR fallback. Install with: pip install pdf2image\n"
                "Also ensure poppler is installed on your system."
            )

        kwargs = dict(dpi=self.dpi, first_page=page_number, last_page=page_number, fmt='png')
        if isinstance(source, (bytes, bytearray)):
            pil_images = convert_from_bytes(bytes(source), **kwargs)
        else:
            pil_images = convert_from_path(str(source), **kwargs)

        img_array = np.array(pil_images[0])
        # RGB -> BGR for OpenCV
        if len(img_array.shape) == 3 and img_array.shape[2] == 3:
            img_array = img_array[:, :, ::-1].copy()
        return img_array

    def _preprocess_for_ocr(self, image: np.ndarray) -> np.ndarray:
        """Grayscale, binarize and denoise a page image."""
        import cv2

        if len(image.shape) == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        else:
            gray = image.copy()

        gray = cv2.adaptiveThreshold(
            gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 11, 2
        )
        return cv2.medianBlur(gray, 3)

    def decode_image(self, image: np.ndarray, page_index: int) -> List[Fragment]:
        """
        Recognize words in a page image.

        Words of one Tesseract line share that line's lowest box edge as
        baseline, converted from pixels to PDF points so the usual line
        tolerance applies.
        """
        processed = self._preprocess_for_ocr(image)
        data = self.pytesseract.image_to_data(
            processed,
            lang=self.language,
            config=self.config,
            output_type=self.pytesseract.Output.DICT
        )

        scale = PDF_POINTS_PER_INCH / self.dpi
        words = []
        line_bottoms: Dict[tuple, int] = defaultdict(int)

        for i in range(len(data['text'])):
            text = data['text'][i].strip()
            if not text or float(data['conf'][i]) < 0:
                continue
            key = (data['block_num'][i], data['par_num'][i], data['line_num'][i])
            bottom = data['top'][i] + data['height'][i]
            line_bottoms[key] = max(line_bottoms[key], bottom)
            words.append((key, text))

        return [
            Fragment(text=text, baseline_y=line_bottoms[key] * scale, page_index=page_index)
            for key, text in words
        ]

    def decode_page(self, source: Union[str, Path, bytes], page_index: int) -> List[Fragment]:
        image = self.render_page(source, page_index + 1)
        return self.decode_image(image, page_index)


# ============================================================================
# Document Decoding
# ============================================================================

def _has_text(fragments: Sequence[Fragment]) -> bool:
    return any(f.text.strip() for f in fragments)


def decode_pdf(
    source: Union[str, Path, bytes],
    ocr_fallback: bool = False,
    max_pages: Optional[int] = None,
    ocr_dpi: int = 300,
    tesseract_lang: str = "eng",
    tesseract_config: str = "--oem 3 --psm 6",
    source_name: Optional[str] = None
) -> DecodedDocument:
    """
    Decode a PDF into per-page fragments, one page at a time.

    Args:
        source: Path to the PDF or its raw bytes
        ocr_fallback: OCR pages that have no text layer
        max_pages: Decode only the first N pages (None = all)
        ocr_dpi: Render resolution for OCR
        tesseract_lang: Tesseract language code
        tesseract_config: Tesseract CLI options
        source_name: Display name (defaults to the file name)

    Returns:
        DecodedDocument with fragments for every page

    Raises:
        DecodeError: If the document cannot be opened or parsed
    """
    decoder = PdfTextDecoder()
    doc = decoder.open(source)

    if source_name is None:
        source_name = "" if isinstance(source, (bytes, bytearray)) else Path(source).name

    ocr: Optional[OcrDecoder] = None
    try:
        page_count = len(doc)
        if max_pages is not None:
            page_count = min(page_count, max_pages)

        result = DecodedDocument(page_count=page_count, source_name=source_name)
        logger.info(f"Decoding {page_count} page(s) from {source_name or 'PDF bytes'}")

        for i in range(page_count):
            try:
                fragments = decoder.decode_page(doc[i], i)
            except Exception as e:
                raise DecodeError(f"Failed to decode page {i + 1}: {e}") from e

            if ocr_fallback and not _has_text(fragments):
                if ocr is None:
                    try:
                        ocr = OcrDecoder(dpi=ocr_dpi, language=tesseract_lang, config=tesseract_config)
                    except ImportError as e:
                        raise DecodeError(f"OCR unavailable for page {i + 1}: {e}") from e
                logger.info(f"Page {i + 1} has no text layer, running OCR")
                try:
                    fragments = ocr.decode_page(source, i)
                except Exception as e:
                    raise DecodeError(f"OCR failed on page {i + 1}: {e}") from e
                result.ocr_pages.append(i)

            result.pages.append(fragments)
            logger.debug(f"Page {i + 1}: {len(fragments)} fragments")
    finally:
        doc.close()

    return result
