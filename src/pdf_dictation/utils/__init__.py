"""
Utility modules for the PDF dictation pipeline.
"""

from .grouping import Fragment, Line, group_fragments, merge_superscript_lines
from .repair import repair_line, repair_lines
from .chrome import filter_chrome, find_repeating_lines, ChromeResult
from .sentences import Sentence, split_sentences, build_sentences
from .speech_math import normalize_for_speech, looks_mathematical
from .decoder import decode_pdf, DecodedDocument, DecodeError
from .io import load_fragments_json, save_json, load_json, ensure_dir
from .assembler import DocumentAssembler, Document, Page, ExtractionSession
from .speech import Narrator, SpeechEngine, SpeechRequest, BrowserSpeechEngine
from .export import (
    TextExporter, MarkdownExporter, JsonExporter, DocxExporter,
    SpeechScriptExporter, DocumentExporter,
)

__all__ = [
    # Lines
    "Fragment", "Line", "group_fragments", "merge_superscript_lines",
    # Repair
    "repair_line", "repair_lines",
    # Chrome
    "filter_chrome", "find_repeating_lines", "ChromeResult",
    # Sentences
    "Sentence", "split_sentences", "build_sentences",
    # Math speech
    "normalize_for_speech", "looks_mathematical",
    # Decoding and IO
    "decode_pdf", "DecodedDocument", "DecodeError",
    "load_fragments_json", "save_json", "load_json", "ensure_dir",
    # Assembly
    "DocumentAssembler", "Document", "Page", "ExtractionSession",
    # Narration
    "Narrator", "SpeechEngine", "SpeechRequest", "BrowserSpeechEngine",
    # Export
    "TextExporter", "MarkdownExporter", "JsonExporter", "DocxExporter",
    "SpeechScriptExporter", "DocumentExporter",
]
