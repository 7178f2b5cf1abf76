"""
Export module for dictation transcripts.

Provides:
- Plain text transcript export
- Markdown export with page badges
- JSON export of the full document envelope
- DOCX export (using python-docx)
- Speech script export (one spoken utterance per line)
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional, List, Union

from .io import save_json
from .speech_math import normalize_for_speech

logger = logging.getLogger(__name__)


def _write_text(text: str, output_path: Union[str, Path]) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(text)
    return output_path


# ============================================================================
# Text Exporter
# ============================================================================

class TextExporter:
    """Export the cleaned transcript as plain text."""

    def export(self, document: Any, output_path: Union[str, Path]) -> Path:
        path = _write_text(document.transcript, output_path)
        logger.info(f"Exported text to: {path}")
        return path


# ============================================================================
# Markdown Exporter
# ============================================================================

class MarkdownExporter:
    """Export sentences to Markdown, grouped by page."""

    def __init__(self, include_page_badges: bool = True):
        self.include_page_badges = include_page_badges

    def export(
        self,
        document: Any,
        output_path: Union[str, Path]
    ) -> Path:
        """
        Export document to Markdown file.

        Args:
            document: Document object
            output_path: Output file path

        Returns:
            Path to the generated Markdown file
        """
        # Badged output differs from the assembler's plain transcript
        if not self.include_page_badges and document.markdown:
            markdown = document.markdown
        else:
            markdown = self._generate_markdown(document)

        path = _write_text(markdown, output_path)
        logger.info(f"Exported Markdown to: {path}")
        return path

    def _generate_markdown(self, document: Any) -> str:
        lines = []

        if document.source_file:
            lines.append(f"# {document.source_file}")
            lines.append("")

        for page in document.pages:
            page_sentences = document.sentences_on_page(page.page_number)
            if not page_sentences:
                continue

            if len(document.pages) > 1:
                lines.append("---")
                lines.append(f"*Page {page.page_number}*")
                lines.append("")

            for sentence in page_sentences:
                if self.include_page_badges:
                    lines.append(f"`p{sentence.page}` {sentence.text}")
                else:
                    lines.append(sentence.text)
                lines.append("")

        return "\n".join(lines)


# ============================================================================
# JSON Exporter
# ============================================================================

class JsonExporter:
    """Export the document envelope (pages, sentences, metrics) as JSON."""

    def export(self, document: Any, output_path: Union[str, Path]) -> Path:
        path = save_json(document.to_dict(), output_path)
        logger.info(f"Exported JSON to: {path}")
        return path


# ============================================================================
# Speech Script Exporter
# ============================================================================

class SpeechScriptExporter:
    """Write the utterances a speech engine would read, one per line."""

    def __init__(self, math_mode: bool = True):
        self.math_mode = math_mode

    def script(self, document: Any) -> List[str]:
        return [
            normalize_for_speech(s.text, math_mode=self.math_mode)
            for s in document.sentences
        ]

    def export(self, document: Any, output_path: Union[str, Path]) -> Path:
        lines = self.script(document)
        path = _write_text("\n".join(lines) + ("\n" if lines else ""), output_path)
        logger.info(f"Exported speech script to: {path}")
        return path


# ============================================================================
# DOCX Exporter
# ============================================================================

class DocxExporter:
    """Export document to DOCX format using python-docx."""

    def __init__(
        self,
        template_path: Optional[str] = None,
        include_page_badges: bool = True
    ):
        self.template_path = template_path
        self.include_page_badges = include_page_badges

    def export(
        self,
        document: Any,
        output_path: Union[str, Path]
    ) -> Path:
        """
        Export document to DOCX file.

        Args:
            document: Document object
            output_path: Output file path

        Returns:
            Path to the generated DOCX file
        """
        try:
            from docx import Document as DocxDocument
        except ImportError:
            raise ImportError(
                "python-docx is required for DOCX export. "
                "Install with: pip install python-docx"
            )

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        # Create document from template or blank
        if self.template_path and Path(self.template_path).exists():
            doc = DocxDocument(self.template_path)
        else:
            doc = DocxDocument()

        self._build_from_document(doc, document)

        doc.save(str(output_path))
        logger.info(f"Exported DOCX to: {output_path}")

        return output_path

    def _build_from_document(self, doc: Any, document: Any):
        """Build DOCX from document object directly."""
        from docx.shared import Pt, RGBColor

        if document.source_file:
            doc.add_heading(document.source_file, 0)

        for page in document.pages:
            page_sentences = document.sentences_on_page(page.page_number)
            if not page_sentences:
                continue

            if len(document.pages) > 1:
                doc.add_heading(f"Page {page.page_number}", level=2)

            for sentence in page_sentences:
                p = doc.add_paragraph()
                if self.include_page_badges:
                    badge = p.add_run(f"p{sentence.page}  ")
                    badge.font.size = Pt(8)
                    badge.font.color.rgb = RGBColor(0x80, 0x80, 0x80)
                p.add_run(sentence.text)


# ============================================================================
# Multi-Format Exporter
# ============================================================================

class DocumentExporter:
    """Convenience class for exporting to multiple formats."""

    FORMATS = ["json", "text", "markdown", "docx", "speech"]

    def __init__(
        self,
        output_dir: Union[str, Path],
        base_name: str = "document",
        math_mode: bool = True,
        include_page_badges: bool = True,
        docx_template: Optional[str] = None
    ):
        self.output_dir = Path(output_dir)
        self.base_name = base_name

        self.text_exporter = TextExporter()
        self.markdown_exporter = MarkdownExporter(include_page_badges=include_page_badges)
        self.json_exporter = JsonExporter()
        self.docx_exporter = DocxExporter(
            template_path=docx_template, include_page_badges=include_page_badges
        )
        self.speech_exporter = SpeechScriptExporter(math_mode=math_mode)

    def export(
        self,
        document: Any,
        formats: List[str] = None
    ) -> Dict[str, Path]:
        """
        Export document to multiple formats.

        Args:
            document: Document object
            formats: List of formats ('json', 'text', 'markdown', 'docx', 'speech', 'all')

        Returns:
            Dictionary mapping format to output path
        """
        if formats is None:
            formats = ["json", "text", "markdown"]

        if "all" in formats:
            formats = list(self.FORMATS)

        unknown = [f for f in formats if f not in self.FORMATS]
        if unknown:
            raise ValueError(f"Unknown export format(s): {', '.join(unknown)}")

        self.output_dir.mkdir(parents=True, exist_ok=True)

        results = {}

        if "json" in formats:
            path = self.output_dir / f"{self.base_name}.json"
            results["json"] = self.json_exporter.export(document, path)

        if "text" in formats:
            path = self.output_dir / f"{self.base_name}.txt"
            results["text"] = self.text_exporter.export(document, path)

        if "markdown" in formats:
            path = self.output_dir / f"{self.base_name}.md"
            results["markdown"] = self.markdown_exporter.export(document, path)

        if "docx" in formats:
            path = self.output_dir / f"{self.base_name}.docx"
            results["docx"] = self.docx_exporter.export(document, path)

        if "speech" in formats:
            path = self.output_dir / f"{self.base_name}.speech.txt"
            results["speech"] = self.speech_exporter.export(document, path)

        return results
