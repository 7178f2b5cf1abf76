#!/usr/bin/env python
"""
Command-line interface for the PDF dictation pipeline.

Usage:
    pdf-dictation --input <pdf_or_items_json> --output <output_dir> [options]

Examples:
    # Transcript, Markdown and JSON
    pdf-dictation --input lecture.pdf --output ./output

    # Speech script without math rewriting
    pdf-dictation --input lecture.pdf --output ./output --format speech --no-math

    # Scanned pages through Tesseract
    pdf-dictation --input scan.pdf --output ./output --ocr-fallback
"""

import sys
from pathlib import Path

# Add src directory to path for imports when running as script
_src_dir = Path(__file__).parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import argparse
import logging
import time
from typing import List, Optional

from pdf_dictation import __version__

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("pdf_dictation")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="PDF Dictation - Extract readable sentences from PDFs for text-to-speech",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Export every format:
    pdf-dictation --input notes.pdf --output ./output --format all

  Keep juxtaposed numbers as extracted:
    pdf-dictation --input notes.pdf --output ./output --no-minus-heuristics

  Process only specific pages:
    pdf-dictation --input notes.pdf --output ./output --pages 1-5
        """
    )

    # Required arguments
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input PDF file or JSON file of extracted text items"
    )

    parser.add_argument(
        "--output", "-o",
        required=True,
        help="Output directory for generated files"
    )

    # Optional arguments
    parser.add_argument(
        "--format", "-f",
        nargs="+",
        default=None,
        choices=["json", "text", "markdown", "docx", "speech", "all"],
        help="Output format(s) (default: json text markdown)"
    )

    parser.add_argument(
        "--pages",
        type=str,
        default=None,
        help="Page range to keep, e.g., '1-5' or '1,3,5' (default: all)"
    )

    parser.add_argument(
        "--no-math",
        action="store_true",
        help="Do not rewrite math notation in the speech script"
    )

    parser.add_argument(
        "--no-minus-heuristics",
        action="store_true",
        help="Do not reinsert minus signs between juxtaposed terms"
    )

    parser.add_argument(
        "--ocr-fallback",
        action="store_true",
        help="Run Tesseract on pages without a text layer"
    )

    parser.add_argument(
        "--tolerance",
        type=float,
        default=None,
        help="Baseline tolerance in PDF units for grouping fragments into lines (default: 3.5)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def parse_page_range(page_str: str, max_pages: int) -> List[int]:
    """Parse page range string to list of page numbers."""
    pages = []

    for part in page_str.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start, end = part.split("-")
            start = max(int(start), 1)
            end = min(int(end), max_pages)
            pages.extend(range(start, end + 1))
        else:
            page = int(part)
            if 1 <= page <= max_pages:
                pages.append(page)

    return sorted(set(pages))


def check_dependencies(ocr_fallback: bool = False) -> bool:
    """Check if required dependencies are available."""
    missing = []

    try:
        import fitz
    except ImportError:
        missing.append("PyMuPDF")

    try:
        import numpy
    except ImportError:
        missing.append("numpy")

    if ocr_fallback:
        try:
            import cv2
        except ImportError:
            missing.append("opencv-python")
        try:
            import pdf2image
        except ImportError:
            missing.append("pdf2image")
        try:
            import pytesseract
            try:
                pytesseract.get_tesseract_version()
            except Exception:
                missing.append("tesseract-ocr (system package)")
        except ImportError:
            missing.append("pytesseract")

    if missing:
        logger.error("Missing required dependencies:")
        for dep in missing:
            logger.error(f"  - {dep}")
        logger.error("\nInstall with: pip install -e .")
        return False

    return True


def build_config(args):
    """Pipeline configuration from defaults, environment and flags."""
    from pdf_dictation.config import get_config

    config = get_config()
    if args.no_math:
        config.speech.math_mode = False
    if args.no_minus_heuristics:
        config.repair.minus_heuristics = False
    if args.ocr_fallback:
        config.decoder.ocr_fallback = True
    if args.tolerance is not None:
        config.grouping.line_tolerance = args.tolerance
    if args.format:
        config.export.output_formats = list(args.format)
    return config


def run_pipeline(args) -> int:
    """Run the dictation pipeline."""
    from pdf_dictation.utils.assembler import DocumentAssembler, DECODE_ERROR_MESSAGE
    from pdf_dictation.utils.decoder import DecodeError
    from pdf_dictation.utils.export import DocumentExporter
    from pdf_dictation.utils.io import ensure_dir

    start_time = time.time()
    config = build_config(args)
    if config.debug_mode and not args.quiet:
        logging.getLogger().setLevel(logging.DEBUG)

    output_dir = Path(args.output)
    ensure_dir(output_dir)

    input_path = Path(args.input)
    assembler = DocumentAssembler(config)

    logger.info("Processing document...")
    try:
        document = assembler.process_input(input_path)
    except DecodeError as e:
        logger.debug(f"Decode failure: {e}")
        logger.error(DECODE_ERROR_MESSAGE)
        return 1

    if args.pages:
        page_numbers = parse_page_range(args.pages, document.page_count)
        document = assembler.select_pages(document, page_numbers)
        logger.info(f"Keeping pages: {page_numbers}")

    if document.is_empty:
        logger.warning("No readable sentences found")

    exporter = DocumentExporter(
        output_dir,
        input_path.stem,
        math_mode=config.speech.math_mode,
        include_page_badges=config.export.include_page_badges,
        docx_template=config.export.docx_template
    )
    export_results = exporter.export(document, config.export.output_formats)

    for fmt, path in export_results.items():
        logger.info(f"Exported {fmt}: {path}")

    # Print summary
    elapsed = time.time() - start_time
    metrics = document.metrics

    if not args.quiet:
        print("\n" + "="*60)
        print("DICTATION EXTRACTION COMPLETE")
        print("="*60)
        print(f"Source: {input_path}")
        print(f"Output: {output_dir}")
        print(f"Pages processed: {metrics.pages_processed}")
        print(f"Processing time: {elapsed:.2f}s")
        print()
        print("Metrics:")
        print(f"  Lines: {metrics.lines_total} "
              f"(superscripts merged: {metrics.superscripts_merged}, "
              f"repaired: {metrics.lines_repaired})")
        print(f"  Header/footer lines dropped: {metrics.chrome_lines_dropped}")
        print(f"  Sentences: {len(document.sentences)} "
              f"(mathematical: {metrics.math_sentences})")
        if metrics.ocr_pages:
            print(f"  OCR pages: {metrics.ocr_pages}")
        print("="*60)

    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args(argv)

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    if not check_dependencies(ocr_fallback=args.ocr_fallback):
        sys.exit(1)

    try:
        exit_code = run_pipeline(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.verbose:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
