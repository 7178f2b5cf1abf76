"""
PDF Dictation Reader
====================

Turns a paginated PDF into a clean, sentence-segmented transcript and reads it
aloud, with mathematical notation rewritten into speakable English.

Main components:
- Text-layer decoding (PyMuPDF) with an OCR fallback (Tesseract)
- Line reconstruction and superscript merging
- Extraction artifact repair (minus signs, fractions, powers)
- Running header/footer removal
- Sentence segmentation tagged by page
- Math-to-speech normalization
- Transcript export (text, Markdown, JSON, DOCX)
"""

__version__ = "1.0.0"
__author__ = "PDF Dictation Team"
