"""
Configuration and constants for the OCR data extraction pipeline.

This module provides:
- Global logging setup
- Recognition (Tesseract / PDF rendering) settings
- Spatial extraction thresholds
- Export settings
- Environment overrides
"""

import os
from dataclasses import dataclass, field
from typing import Optional
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("ocr_extract")


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class RecognitionConfig:
    """OCR engine and page rendering configuration."""
    language: str = "eng"
    tesseract_config: str = "--oem 3 --psm 3"
    # Rendering resolution for PDF pages; the pixel thresholds in
    # ExtractionConfig were tuned at roughly this scale.
    dpi: int = 300


@dataclass
class ExtractionConfig:
    """Spatial analysis thresholds, in image pixels."""
    vertical_tolerance: float = 15.0  # row grouping
    column_gap: float = 30.0  # x0 clustering
    column_bias: float = 20.0  # left shift applied to column boundaries
    min_table_rows: int = 3  # row-groups needed for a table region
    min_columns: int = 2
    min_region_lines: int = 2
    min_page_lines: int = 2  # pages with fewer lines are not scanned for tables


@dataclass
class ExportConfig:
    """Export configuration."""
    file_name: str = "extracted-data"
    max_cell_width: int = 50
    include_tables: bool = True
    include_key_value_pairs: bool = True
    include_all_text: bool = True


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    recognition: RecognitionConfig = field(default_factory=RecognitionConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    # Global settings
    min_confidence: float = 0.0  # 0 = keep everything
    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def _float_from_env(name: str) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not a number")
        return None


def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    tolerance = _float_from_env("OCR_EXTRACT_VERTICAL_TOLERANCE")
    if tolerance is not None:
        config.extraction.vertical_tolerance = tolerance

    gap = _float_from_env("OCR_EXTRACT_COLUMN_GAP")
    if gap is not None:
        config.extraction.column_gap = gap

    bias = _float_from_env("OCR_EXTRACT_COLUMN_BIAS")
    if bias is not None:
        config.extraction.column_bias = bias

    min_confidence = _float_from_env("OCR_EXTRACT_MIN_CONFIDENCE")
    if min_confidence is not None:
        config.min_confidence = min_confidence

    dpi = _float_from_env("OCR_EXTRACT_DPI")
    if dpi is not None:
        config.recognition.dpi = int(dpi)

    if os.environ.get("OCR_EXTRACT_LANG"):
        config.recognition.language = os.environ["OCR_EXTRACT_LANG"]

    if os.environ.get("OCR_EXTRACT_DEBUG", "").lower() == "true":
        config.debug_mode = True

    return config


# ============================================================================
# JSON Schema Version
# ============================================================================

JSON_SCHEMA_VERSION = "1.0"
