"""
Document assembler module for the dictation pipeline.

Provides:
- Document data model (Document, Page, DocumentMetrics)
- Pipeline orchestration (group -> merge -> repair -> chrome -> sentences)
- Extraction sessions that discard stale results
- JSON envelope and Markdown transcript generation
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Dict, Any, Union, Set

import numpy as np

from ..config import PipelineConfig, get_config, JSON_SCHEMA_VERSION
from .chrome import filter_chrome
from .decoder import DecodedDocument, DecodeError, decode_pdf
from .grouping import Fragment, group_fragments, merge_superscript_lines
from .repair import repair_lines
from .sentences import Sentence, build_sentences
from .speech_math import looks_mathematical, normalize_for_speech

logger = logging.getLogger(__name__)

DECODE_ERROR_MESSAGE = "Failed to read PDF. Please try a different file."


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class Page:
    """A document page after chrome filtering."""
    page_number: int
    lines: List[str] = field(default_factory=list)
    text: str = ""
    ocr: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_number": self.page_number,
            "lines": self.lines,
            "text": self.text,
            "ocr": self.ocr
        }


@dataclass
class DocumentMetrics:
    """Metrics about document processing."""
    pages_processed: int = 0
    fragments_total: int = 0
    lines_total: int = 0
    superscripts_merged: int = 0
    lines_repaired: int = 0
    chrome_lines_dropped: int = 0
    sentences_total: int = 0
    math_sentences: int = 0
    avg_sentence_length: float = 0.0
    ocr_pages: int = 0
    processing_time_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages_processed": self.pages_processed,
            "fragments_total": self.fragments_total,
            "lines": {
                "total": self.lines_total,
                "superscripts_merged": self.superscripts_merged,
                "repaired": self.lines_repaired,
                "chrome_dropped": self.chrome_lines_dropped
            },
            "sentences": {
                "total": self.sentences_total,
                "mathematical": self.math_sentences,
                "avg_length": round(self.avg_sentence_length, 1)
            },
            "ocr_pages": self.ocr_pages,
            "processing_time_seconds": round(self.processing_time_seconds, 2)
        }


@dataclass
class Document:
    """Complete extraction result for one upload."""
    task_id: str
    source_file: str
    page_count: int = 0
    pages: List[Page] = field(default_factory=list)
    sentences: List[Sentence] = field(default_factory=list)
    chrome_lines: Set[str] = field(default_factory=set)
    metrics: Optional[DocumentMetrics] = None

    # Generated content
    markdown: str = ""

    created_at: str = ""
    schema_version: str = JSON_SCHEMA_VERSION

    def __post_init__(self):
        if not self.task_id:
            self.task_id = str(uuid.uuid4())
        if not self.created_at:
            self.created_at = datetime.now().isoformat()

    @property
    def page_texts(self) -> List[str]:
        return [p.text for p in self.pages]

    @property
    def transcript(self) -> str:
        """Full transcript: cleaned page texts separated by a blank line."""
        return "\n\n".join(self.page_texts)

    @property
    def is_empty(self) -> bool:
        return not self.sentences

    def sentences_on_page(self, page_number: int) -> List[Sentence]:
        return [s for s in self.sentences if s.page == page_number]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "schema_version": self.schema_version,
            "source_file": self.source_file,
            "created_at": self.created_at,
            "page_count": self.page_count,
            "pages": [p.to_dict() for p in self.pages],
            "sentences": [
                {"index": i, **s.to_dict()} for i, s in enumerate(self.sentences)
            ],
            "chrome_lines": sorted(self.chrome_lines),
            "metrics": self.metrics.to_dict() if self.metrics else {},
            "transcript": self.transcript,
            "markdown": self.markdown
        }


# ============================================================================
# Document Assembler
# ============================================================================

class DocumentAssembler:
    """
    Orchestrates the reconstruction pipeline.

    Coordinates:
    - Decoding (text layer, OCR fallback)
    - Line grouping and superscript merging
    - Artifact repair
    - Chrome filtering
    - Sentence segmentation
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or get_config()

    def reconstruct_lines(self, fragments: List[Fragment], stats: Optional[DocumentMetrics] = None) -> List[str]:
        """
        Turn one page's fragments into repaired line texts.

        Args:
            fragments: Fragments of a single page, in extraction order
            stats: Optional metrics object to update

        Returns:
            Repaired line texts
        """
        grouping = self.config.grouping
        lines = [line.text for line in group_fragments(fragments, tolerance=grouping.line_tolerance)]
        grouped_count = len(lines)

        if grouping.merge_superscripts:
            lines = merge_superscript_lines(lines)

        if self.config.repair.enabled:
            repaired = repair_lines(lines, heuristics=self.config.repair.minus_heuristics)
        else:
            repaired = list(lines)

        if stats is not None:
            stats.fragments_total += len(fragments)
            stats.lines_total += len(repaired)
            stats.superscripts_merged += grouped_count - len(lines)
            stats.lines_repaired += sum(1 for a, b in zip(lines, repaired) if a != b)

        return repaired

    def assemble(
        self,
        decoded: DecodedDocument,
        source_file: Optional[str] = None
    ) -> Document:
        """
        Assemble a document from decoded fragments.

        Args:
            decoded: Per-page fragments from a decoder
            source_file: Original source file name

        Returns:
            Document with pages, sentences and metrics
        """
        start_time = time.time()
        metrics = DocumentMetrics()

        # 1-3. Lines per page
        page_lines = []
        for i, fragments in enumerate(decoded.pages):
            lines = self.reconstruct_lines(fragments, stats=metrics)
            logger.debug(f"Page {i + 1}: {len(lines)} lines")
            page_lines.append(lines)

        # 4. Chrome filtering across the whole document
        chrome_cfg = self.config.chrome
        chrome = filter_chrome(
            page_lines,
            ratio=chrome_cfg.frequency_ratio,
            min_repeats=chrome_cfg.min_repeats,
            use_junk_patterns=chrome_cfg.use_junk_patterns
        )

        # 5. Sentences
        sentences = build_sentences(chrome.page_texts)

        ocr_pages = set(decoded.ocr_pages)
        pages = [
            Page(page_number=i + 1, lines=kept, text=text, ocr=i in ocr_pages)
            for i, (kept, text) in enumerate(zip(chrome.pages, chrome.page_texts))
        ]

        doc = Document(
            task_id=str(uuid.uuid4()),
            source_file=source_file or decoded.source_name,
            page_count=decoded.page_count,
            pages=pages,
            sentences=sentences,
            chrome_lines=chrome.chrome_lines
        )

        metrics.pages_processed = len(pages)
        metrics.chrome_lines_dropped = chrome.dropped_count
        self._count_sentences(metrics, sentences)
        metrics.ocr_pages = len(ocr_pages)
        metrics.processing_time_seconds = time.time() - start_time
        doc.metrics = metrics

        doc.markdown = self._generate_markdown(doc)

        logger.info(
            f"Assembled {len(sentences)} sentences from {len(pages)} page(s) "
            f"({chrome.dropped_count} chrome lines dropped)"
        )
        return doc

    def process_pdf(
        self,
        source: Union[str, Path, bytes],
        source_name: Optional[str] = None
    ) -> Document:
        """
        Decode and assemble a PDF.

        Raises:
            DecodeError: If the PDF cannot be decoded; no partial result is returned
        """
        dec = self.config.decoder
        decoded = decode_pdf(
            source,
            ocr_fallback=dec.ocr_fallback,
            max_pages=dec.max_pages,
            ocr_dpi=dec.ocr_dpi,
            tesseract_lang=dec.tesseract_lang,
            tesseract_config=dec.tesseract_config,
            source_name=source_name
        )
        return self.assemble(decoded, source_file=source_name or decoded.source_name)

    def process_input(self, input_path: Union[str, Path]) -> Document:
        """Process a PDF or a JSON file of pre-extracted text items."""
        from .io import detect_input_type, load_fragments_json

        input_path = Path(input_path)
        input_type = detect_input_type(input_path)
        logger.info(f"Input type detected: {input_type}")

        if input_type == "pdf":
            return self.process_pdf(input_path, source_name=input_path.name)
        if input_type == "fragments_json":
            return self.assemble(load_fragments_json(input_path), source_file=input_path.name)
        raise DecodeError(f"Unsupported input: {input_path}")

    def select_pages(self, doc: Document, page_numbers: List[int]) -> Document:
        """
        Restrict a document to some pages.

        Chrome detection already ran on the whole document, so page numbers
        and dropped headers are those of the full file. Page and sentence
        counts in the metrics cover the selected pages only.
        """
        wanted = set(page_numbers)
        pages = [p for p in doc.pages if p.page_number in wanted]
        sentences = [s for s in doc.sentences if s.page in wanted]

        metrics = replace(
            doc.metrics or DocumentMetrics(),
            pages_processed=len(pages),
            ocr_pages=sum(1 for p in pages if p.ocr)
        )
        self._count_sentences(metrics, sentences)

        selected = replace(doc, pages=pages, sentences=sentences, metrics=metrics)
        selected.markdown = self._generate_markdown(selected)
        return selected

    def speakable(self, sentence: Union[Sentence, str], math_mode: Optional[bool] = None) -> str:
        """Text to hand to the speech engine for one sentence."""
        text = sentence.text if isinstance(sentence, Sentence) else sentence
        if math_mode is None:
            math_mode = self.config.speech.math_mode
        return normalize_for_speech(text, math_mode=math_mode)

    @staticmethod
    def _count_sentences(metrics: DocumentMetrics, sentences: List[Sentence]):
        metrics.sentences_total = len(sentences)
        metrics.math_sentences = sum(1 for s in sentences if looks_mathematical(s.text))
        metrics.avg_sentence_length = (
            float(np.mean([len(s.text) for s in sentences])) if sentences else 0.0
        )

    def _generate_markdown(self, doc: Document) -> str:
        """Generate a Markdown transcript with page sections."""
        lines = []

        if doc.source_file:
            lines.append(f"# {doc.source_file}")
            lines.append("")

        for page in doc.pages:
            page_sentences = doc.sentences_on_page(page.page_number)
            if not page_sentences:
                continue
            if len(doc.pages) > 1:
                lines.append(f"## Page {page.page_number}")
                lines.append("")
            for sentence in page_sentences:
                lines.append(sentence.text)
            lines.append("")

        return "\n".join(lines)


# ============================================================================
# Extraction Session
# ============================================================================

class ExtractionSession:
    """
    Holds the current extraction result for an interactive reader.

    Every extraction takes a generation number from ``begin()``. Only the
    newest generation may publish; results from an older extraction that
    finishes late are discarded instead of overwriting the newer document.
    """

    def __init__(self, assembler: Optional[DocumentAssembler] = None):
        self.assembler = assembler or DocumentAssembler()
        self._lock = threading.Lock()
        self._generation = 0
        self.document: Optional[Document] = None
        self.error: Optional[str] = None
        self.is_loading = False

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def sentences(self) -> List[Sentence]:
        return self.document.sentences if self.document else []

    def begin(self) -> int:
        """Start a new extraction; previous results are invalidated."""
        with self._lock:
            self._generation += 1
            self.document = None
            self.error = None
            self.is_loading = True
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def publish(self, generation: int, document: Document) -> bool:
        """Publish a result; returns False if the extraction is stale."""
        with self._lock:
            if generation != self._generation:
                logger.info(f"Discarding stale extraction (generation {generation}, current {self._generation})")
                return False
            self.document = document
            self.is_loading = False
            return True

    def fail(self, generation: int, message: str = DECODE_ERROR_MESSAGE) -> bool:
        """Record a decode failure for the current generation."""
        with self._lock:
            if generation != self._generation:
                return False
            self.document = None
            self.error = message
            self.is_loading = False
            return True

    def extract(
        self,
        source: Union[str, Path, bytes],
        source_name: Optional[str] = None
    ) -> Optional[Document]:
        """
        Run a full extraction and publish it if still current.

        Returns:
            The published document, or None on decode failure or staleness
        """
        generation = self.begin()
        try:
            if isinstance(source, (bytes, bytearray)):
                document = self.assembler.process_pdf(source, source_name=source_name)
            else:
                document = self.assembler.process_input(source)
            return document if self.publish(generation, document) else None
        except DecodeError as e:
            logger.error(f"Extraction failed: {e}")
            self.fail(generation)
            return None
        finally:
            if self.is_current(generation) and self.is_loading:
                self.fail(generation)
