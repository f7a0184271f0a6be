"""
ocrdata: OCR Structured Data Extraction
======================================

Turns page-level OCR output (words and lines with bounding boxes and
confidence scores) into structured artifacts: detected tables, key-value
pairs and a full-text transcript, exportable as CSV, JSON or plain text.

Main components:
- Recognition result model (words, lines, pages)
- Tesseract recognition and PDF rasterisation adapters
- Row grouping, column clustering and table construction
- Key-value pattern detection
- Confidence filtering
- Multi-format export
"""

__version__ = "1.0.0"

from .io import load_pdf, load_image, load_images_from_folder, save_json, load_json, ensure_dir
from .ocr_engine import TesseractEngine, RecognitionError
from .models import BoundingBox, Word, Line, PageResult, load_page_results
from .tables import (
    TableCell, TableRow, DetectedTable,
    group_lines_by_vertical_position, find_table_regions,
    detect_column_positions, construct_table_from_region, detect_tables,
)
from .key_values import KeyValuePair, detect_key_value_pairs, match_key_value
from .extraction import ExtractedData, DataExtractor, extract_all_data, filter_by_confidence
from .export import (
    ExportOptions, CsvExporter, JsonExporter, TextExporter, DataExporter,
    export_data, export_selected_data, export_table_as_csv,
    export_key_value_pairs_as_json, clipboard_content,
    table_to_array, format_table_as_text,
)

__all__ = [
    # IO
    "load_pdf", "load_image", "load_images_from_folder", "save_json", "load_json", "ensure_dir",
    # OCR
    "TesseractEngine", "RecognitionError",
    # Recognition model
    "BoundingBox", "Word", "Line", "PageResult", "load_page_results",
    # Tables
    "TableCell", "TableRow", "DetectedTable",
    "group_lines_by_vertical_position", "find_table_regions",
    "detect_column_positions", "construct_table_from_region", "detect_tables",
    # Key-value pairs
    "KeyValuePair", "detect_key_value_pairs", "match_key_value",
    # Aggregation
    "ExtractedData", "DataExtractor", "extract_all_data", "filter_by_confidence",
    # Export
    "ExportOptions", "CsvExporter", "JsonExporter", "TextExporter", "DataExporter",
    "export_data", "export_selected_data", "export_table_as_csv",
    "export_key_value_pairs_as_json", "clipboard_content",
    "table_to_array", "format_table_as_text",
]
