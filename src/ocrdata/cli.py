#!/usr/bin/env python
"""
Command-line interface for OCR structured data extraction.

Usage:
    ocr-extract --input <pdf_or_image_or_json> --output <output_dir> [options]
    python -m ocrdata.cli --input <pdf_or_image_or_json> --output <output_dir> [options]

Examples:
    # Extract tables and key-value pairs from a scanned PDF
    ocr-extract --input scan.pdf --output ./output --format all

    # Re-run extraction on saved recognition results with a confidence floor
    ocr-extract --input ./output/ocr_results.json --output ./output --min-confidence 60

    # Print the transcript for piping into a clipboard tool
    ocr-extract --input page.png --output ./output --copy text --quiet
"""

import sys
from pathlib import Path

# Add src directory to path so ocrdata imports when running this file directly
_src_dir = Path(__file__).parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import argparse
import logging
import time
from typing import List, Optional

from ocrdata import __version__

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("ocr_extract")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="OCR Data Extraction - Detect tables and key-value pairs in scanned documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Extract from a PDF and export all formats:
    ocr-extract --input document.pdf --output ./output --format all

  Keep only confident cells and pairs:
    ocr-extract --input document.pdf --output ./output --min-confidence 70

  Process only specific pages:
    ocr-extract --input document.pdf --output ./output --pages 1-5
        """
    )

    # Required arguments
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input PDF, image, folder of images, or saved recognition JSON"
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
        default=["json"],
        choices=["csv", "json", "txt", "all"],
        help="Output format(s) (default: json)"
    )

    parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Base name for exported files (default: input file stem)"
    )

    parser.add_argument(
        "--dpi",
        type=int,
        default=None,
        help="DPI for PDF to image conversion (default: 300)"
    )

    parser.add_argument(
        "--pages",
        type=str,
        default=None,
        help="Page range to process, e.g., '1-5' or '1,3,5' (default: all)"
    )

    parser.add_argument(
        "--lang",
        type=str,
        default=None,
        help="Tesseract language code (default: eng)"
    )

    parser.add_argument(
        "--min-confidence",
        type=float,
        default=None,
        help="Drop table cells and key-value pairs below this confidence (0-100)"
    )

    parser.add_argument(
        "--vertical-tolerance",
        type=float,
        default=None,
        help="Maximum vertical distance in pixels between lines of one row (default: 15)"
    )

    parser.add_argument(
        "--column-gap",
        type=float,
        default=None,
        help="Maximum horizontal gap in pixels inside one column cluster (default: 30)"
    )

    parser.add_argument(
        "--column-bias",
        type=float,
        default=None,
        help="Left shift in pixels applied to column boundaries (default: 20)"
    )

    parser.add_argument(
        "--copy",
        choices=["text", "json"],
        default=None,
        help="Print clipboard content (transcript or JSON) to stdout"
    )

    parser.add_argument(
        "--save-ocr",
        action="store_true",
        help="Save raw recognition results to ocr_results.json"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Re-raise errors with full tracebacks"
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


def check_dependencies(input_type: str) -> bool:
    """Check that the libraries needed for this input are available."""
    missing = []

    try:
        import numpy
    except ImportError:
        missing.append("numpy")

    # Saved recognition results need no OCR stack
    if input_type != "json":
        try:
            import cv2
        except ImportError:
            missing.append("opencv-python")

        try:
            import pytesseract
            try:
                pytesseract.get_tesseract_version()
            except Exception:
                missing.append("tesseract-ocr (system package)")
        except ImportError:
            missing.append("pytesseract")

    if input_type == "pdf":
        try:
            import pdf2image
        except ImportError:
            missing.append("pdf2image (for PDF support)")

    if missing:
        logger.error("Missing required dependencies:")
        for dep in missing:
            logger.error(f"  - {dep}")
        logger.error("\nInstall with: pip install -e .")
        return False

    return True


def apply_overrides(config, args):
    """Copy command-line values over the environment/default config."""
    if args.dpi is not None:
        config.recognition.dpi = args.dpi
    if args.lang:
        config.recognition.language = args.lang
    if args.min_confidence is not None:
        config.min_confidence = args.min_confidence
    if args.vertical_tolerance is not None:
        config.extraction.vertical_tolerance = args.vertical_tolerance
    if args.column_gap is not None:
        config.extraction.column_gap = args.column_gap
    if args.column_bias is not None:
        config.extraction.column_bias = args.column_bias
    if args.debug:
        config.debug_mode = True
    return config


def load_pages(args, input_path: Path, input_type: str, config) -> Optional[list]:
    """Load saved recognition results or run OCR on the input images."""
    from ocrdata.io import (
        load_pdf, load_image, load_images_from_folder, load_json, get_pdf_page_count
    )
    from ocrdata.models import load_page_results
    from ocrdata.ocr_engine import TesseractEngine

    if input_type == "json":
        pages = load_page_results(load_json(input_path))
        if args.pages:
            max_page = max((p.page_number for p in pages), default=0)
            wanted = set(parse_page_range(args.pages, max_page))
            pages = [p for p in pages if p.page_number in wanted]
        return pages

    page_numbers = None

    if input_type == "pdf":
        first_page = last_page = None
        if args.pages:
            page_numbers = parse_page_range(args.pages, get_pdf_page_count(input_path))
            if not page_numbers:
                logger.error(f"No pages of {input_path} match '{args.pages}'")
                return None
            # Render only the span that covers the requested pages
            first_page, last_page = page_numbers[0], page_numbers[-1]

        logger.info(f"Converting PDF to images at {config.recognition.dpi} DPI...")
        images = load_pdf(
            input_path,
            dpi=config.recognition.dpi,
            first_page=first_page,
            last_page=last_page
        )
        if page_numbers:
            images = [images[n - first_page] for n in page_numbers]
    elif input_type == "image":
        images = [load_image(input_path)]
    elif input_type == "image_folder":
        images = load_images_from_folder(input_path)
    else:
        logger.error(f"Unsupported input type: {input_type}")
        return None

    if not images:
        logger.error("No images to process")
        return None

    if page_numbers is None:
        page_numbers = list(range(1, len(images) + 1))
        if args.pages:
            page_numbers = parse_page_range(args.pages, len(images))
            images = [images[i - 1] for i in page_numbers]

    logger.info(f"Processing pages: {page_numbers}")

    engine = TesseractEngine(
        language=config.recognition.language,
        config=config.recognition.tesseract_config
    )

    def report(page_number: int, total: int):
        logger.info(f"Recognized page {page_number} ({total} page(s) queued)")

    return engine.recognize_multiple(images, on_progress=report, page_numbers=page_numbers)


def run_pipeline(args) -> int:
    """Run recognition, extraction and export."""
    from ocrdata.io import detect_input_type, save_json, ensure_dir
    from ocrdata.extraction import DataExtractor
    from ocrdata.export import DataExporter, clipboard_content
    from ocrdata.config import get_config, JSON_SCHEMA_VERSION

    start_time = time.time()
    config = apply_overrides(get_config(), args)
    if config.debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)

    output_dir = ensure_dir(args.output)

    input_path = Path(args.input)
    input_type = detect_input_type(input_path)
    logger.info(f"Input type detected: {input_type}")

    if not check_dependencies(input_type):
        return 1

    pages = load_pages(args, input_path, input_type, config)
    if pages is None:
        return 1

    if args.save_ocr and input_type != "json":
        ocr_path = save_json(
            {
                "schemaVersion": JSON_SCHEMA_VERSION,
                "source": str(input_path),
                "pages": [p.to_dict() for p in pages],
            },
            output_dir / "ocr_results.json"
        )
        logger.info(f"Saved recognition results: {ocr_path}")

    extractor = DataExtractor(config.extraction, min_confidence=config.min_confidence)
    data = extractor.extract(pages)

    exporter = DataExporter(
        output_dir,
        args.name or input_path.stem or config.export.file_name,
        max_cell_width=config.export.max_cell_width
    )
    export_results = exporter.export(
        data,
        args.format,
        include_tables=config.export.include_tables,
        include_key_value_pairs=config.export.include_key_value_pairs,
        include_all_text=config.export.include_all_text,
    )
    for fmt, paths in export_results.items():
        for path in paths:
            logger.info(f"Exported {fmt}: {path}")

    if args.copy:
        print(clipboard_content(data, args.copy))

    elapsed = time.time() - start_time

    if not args.quiet:
        # stdout carries the clipboard payload when --copy is set
        out = sys.stderr if args.copy else sys.stdout
        print("\n" + "="*60, file=out)
        print("EXTRACTION COMPLETE", file=out)
        print("="*60, file=out)
        print(f"Source: {input_path}", file=out)
        print(f"Output: {output_dir}", file=out)
        print(f"Pages processed: {len(pages)}", file=out)
        print(f"Processing time: {elapsed:.2f}s", file=out)
        print(file=out)
        print(f"  Tables: {len(data.tables)}", file=out)
        for table in data.tables:
            print(f"    {table.id} (page {table.page_number}): "
                  f"{table.row_count} x {table.column_count}", file=out)
        print(f"  Key-value pairs: {len(data.key_value_pairs)}", file=out)
        if config.min_confidence > 0:
            print(f"  Confidence floor: {config.min_confidence:g}", file=out)
        print("="*60, file=out)

    return 0


def main():
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        exit_code = run_pipeline(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.debug:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
