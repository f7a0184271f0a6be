"""
Structured data extraction over a whole document.

Provides:
- ExtractedData, the result of one extraction run
- extract_all_data: tables + key-value pairs + transcript
- filter_by_confidence: drop low-confidence cells and pairs
- DataExtractor: configured entry point used by the CLI
"""

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Optional, Dict, Any, Mapping, Sequence, Tuple

from .models import PageResult
from .tables import DetectedTable, detect_tables
from .key_values import KeyValuePair, detect_key_value_pairs

if TYPE_CHECKING:
    from .config import ExtractionConfig

logger = logging.getLogger(__name__)


PAGE_SEPARATOR = "\n\n"


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class ExtractedData:
    """Tables, key-value pairs and text extracted from one document."""
    tables: Tuple[DetectedTable, ...] = ()
    key_value_pairs: Tuple[KeyValuePair, ...] = ()
    all_text: str = ""
    page_texts: Mapping[int, str] = field(default_factory=dict)

    def __post_init__(self):
        # Lists and dicts passed in are stored as read-only copies
        object.__setattr__(self, "tables", tuple(self.tables))
        object.__setattr__(self, "key_value_pairs", tuple(self.key_value_pairs))
        object.__setattr__(self, "page_texts", MappingProxyType(dict(self.page_texts)))

    @property
    def is_empty(self) -> bool:
        return not (self.tables or self.key_value_pairs or self.all_text.strip())

    def table_by_id(self, table_id: str) -> Optional[DetectedTable]:
        for table in self.tables:
            if table.id == table_id:
                return table
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tables": [t.to_dict() for t in self.tables],
            "keyValuePairs": [p.to_dict() for p in self.key_value_pairs],
            "allText": self.all_text,
            "pageTexts": [
                {"page": page, "text": text}
                for page, text in self.page_texts.items()
            ],
        }


# ============================================================================
# Extraction
# ============================================================================

def extract_all_data(
    pages: Sequence[PageResult],
    config: Optional["ExtractionConfig"] = None
) -> ExtractedData:
    """
    Run table and key-value detection over all pages.

    Args:
        pages: Recognition results, one per page (page numbers unique)
        config: Optional ExtractionConfig; defaults are used when omitted

    Returns:
        ExtractedData for the document
    """
    ordered = sorted(pages, key=lambda p: p.page_number)

    if config is None:
        tables = detect_tables(ordered)
    else:
        tables = detect_tables(
            ordered,
            vertical_tolerance=config.vertical_tolerance,
            column_gap=config.column_gap,
            column_bias=config.column_bias,
            min_rows=config.min_table_rows,
            min_columns=config.min_columns,
            min_region_lines=config.min_region_lines,
            min_page_lines=config.min_page_lines,
        )

    key_value_pairs = detect_key_value_pairs(ordered)

    data = ExtractedData(
        tables=tables,
        key_value_pairs=key_value_pairs,
        all_text=PAGE_SEPARATOR.join(page.text for page in ordered),
        page_texts={page.page_number: page.text for page in ordered},
    )

    logger.info(
        f"Extracted {len(tables)} table(s) and {len(key_value_pairs)} "
        f"key-value pair(s) from {len(ordered)} page(s)"
    )
    return data


def filter_by_confidence(data: ExtractedData, min_confidence: float) -> ExtractedData:
    """
    Drop table cells and key-value pairs below ``min_confidence``.

    Tables themselves are kept even when every cell is removed, and their
    row/column counts are left as detected. Text passes through unchanged.
    """
    tables = tuple(
        replace(table, rows=tuple(
            replace(row, cells=tuple(
                cell for cell in row.cells if cell.confidence >= min_confidence
            ))
            for row in table.rows
        ))
        for table in data.tables
    )

    return ExtractedData(
        tables=tables,
        key_value_pairs=tuple(
            pair for pair in data.key_value_pairs
            if pair.confidence >= min_confidence
        ),
        all_text=data.all_text,
        page_texts=data.page_texts,
    )


# ============================================================================
# Extractor
# ============================================================================

class DataExtractor:
    """
    Configured extraction entry point.

    Wraps extract_all_data and filter_by_confidence with an
    ExtractionConfig and an optional confidence floor.
    """

    def __init__(self, config: Optional["ExtractionConfig"] = None, min_confidence: float = 0.0):
        self.config = config
        self.min_confidence = min_confidence

    def extract(self, pages: Sequence[PageResult]) -> ExtractedData:
        """Extract structured data, applying the confidence floor if set."""
        data = extract_all_data(pages, self.config)
        if self.min_confidence > 0:
            data = self.filter(data, self.min_confidence)
        return data

    def filter(self, data: ExtractedData, min_confidence: float) -> ExtractedData:
        filtered = filter_by_confidence(data, min_confidence)
        dropped = len(data.key_value_pairs) - len(filtered.key_value_pairs)
        logger.info(f"Confidence filter {min_confidence}: dropped {dropped} pair(s)")
        return filtered
