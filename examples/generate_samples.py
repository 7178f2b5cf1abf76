#!/usr/bin/env python
"""
Generate synthetic sample PDFs for testing the dictation pipeline.

This script creates sample documents with:
- Running headers and footers on every page
- Superscript exponents drawn as separate text spans
- Math lines with operators, functions and comparisons

Usage:
    python examples/generate_samples.py
"""

import json
from pathlib import Path
from typing import List, Tuple

# (x, baseline y, text, font size)
TextRun = Tuple[float, float, str, float]

PAGE_WIDTH = 612
PAGE_HEIGHT = 792


def _chrome(page_number: int, page_count: int, title: str) -> List[TextRun]:
    """Header and footer lines repeated on every page."""
    return [
        (72, 40, title, 9),
        (72, 760, f"Page {page_number} of {page_count}", 9),
    ]


def create_sample_math_pages() -> List[List[TextRun]]:
    """Two pages of algebra notes with a raised exponent."""
    title = "Algebra Notes - Chapter 2"
    page1 = [
        (72, 100, "Quadratic Functions", 16),
        (72, 140, "A quadratic has the form f(x) = ax", 11),
        (258, 135, "2", 7),
        (72, 160, "+ bx + c.The graph is a parabola.", 11),
        (72, 190, "Solve x ^ 2 = 9 for x.", 11),
        (72, 220, "The roots satisfy x ≤ 3 and x ≥ −3.", 11),
    ]
    page2 = [
        (72, 100, "Logarithms", 16),
        (72, 140, "We have log_2(8) = 3 and ln(1) = 0.", 11),
        (72, 170, "Half of the dose is ½ of the total.", 11),
        (72, 200, "The slope is (y2 − y1)/(x2 − x1).", 11),
    ]
    pages = [page1, page2]
    return [runs + _chrome(i + 1, len(pages), title) for i, runs in enumerate(pages)]


def create_sample_text_pages() -> List[List[TextRun]]:
    """Three pages of plain prose with journal chrome."""
    title = "Journal of Examples, Vol. 3"
    bodies = [
        "Reading aloud helps comprehension. Listeners keep their place by page.",
        "Headers repeat on every page. They should not be read aloud.",
        "Footers carry page numbers. Those are dropped too!",
    ]
    pages = []
    for i, body in enumerate(bodies):
        runs = [(72, 120, body, 11)] + _chrome(i + 1, len(bodies), title)
        pages.append(runs)
    return pages


def write_pdf(pages: List[List[TextRun]], output_path: Path) -> Path:
    """Render text runs into a PDF with PyMuPDF."""
    import fitz

    doc = fitz.open()
    for runs in pages:
        page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        for x, y, text, size in runs:
            page.insert_text((x, y), text, fontsize=size, fontname="helv")
    doc.save(str(output_path))
    doc.close()
    return output_path


def create_expected_output(filename: str, description: str, sentences: List[str]) -> dict:
    """Create expected output for a sample."""
    return {
        "filename": filename,
        "description": description,
        "sentences": sentences,
        "notes": "Sentences as the pipeline should emit them, without headers or footers"
    }


def main():
    samples_dir = Path(__file__).parent / "sample_pdfs"
    expected_dir = Path(__file__).parent / "expected_outputs"
    samples_dir.mkdir(exist_ok=True)
    expected_dir.mkdir(exist_ok=True)

    samples = [
        (
            "sample_math",
            create_sample_math_pages(),
            "Algebra notes with exponents and comparisons",
            [],
        ),
        (
            "sample_text",
            create_sample_text_pages(),
            "Plain prose with running headers and footers",
            [
                "Reading aloud helps comprehension.",
                "Listeners keep their place by page.",
                "Headers repeat on every page.",
                "They should not be read aloud.",
                "Footers carry page numbers.",
                "Those are dropped too!",
            ],
        ),
    ]

    for name, pages, description, sentences in samples:
        pdf_path = write_pdf(pages, samples_dir / f"{name}.pdf")
        print(f"Created: {pdf_path}")

        expected = create_expected_output(name, description, sentences)
        expected_path = expected_dir / f"{name}.json"
        with open(expected_path, 'w', encoding='utf-8') as f:
            json.dump(expected, f, indent=2, ensure_ascii=False)
        print(f"Created: {expected_path}")

    print("\nSample generation complete!")
    print("Note: sample_math has no expected sentences; fill them in after reviewing the output.")


if __name__ == "__main__":
    main()
