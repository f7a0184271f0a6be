"""
Table detection from positioned OCR text.

Provides:
- Row grouping of lines by vertical position
- Detection of tabular runs of rows
- Column boundary inference by x-position clustering
- Construction of rectangular cell grids
"""

import logging
import math
from dataclasses import dataclass
from itertools import groupby
from typing import List, Optional, Tuple, Dict, Any, Sequence, Union

import numpy as np

from .models import BoundingBox, Line, PageResult, Word

logger = logging.getLogger(__name__)

DEFAULT_VERTICAL_TOLERANCE = 15.0
DEFAULT_COLUMN_GAP = 30.0
DEFAULT_COLUMN_BIAS = 20.0
DEFAULT_MIN_TABLE_ROWS = 3
DEFAULT_MIN_COLUMNS = 2
DEFAULT_MIN_REGION_LINES = 2
DEFAULT_MIN_PAGE_LINES = 2


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class TableCell:
    """A single table cell."""
    text: str
    row_index: int
    col_index: int
    bbox: BoundingBox
    confidence: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "rowIndex": self.row_index,
            "colIndex": self.col_index,
            "bbox": self.bbox.to_dict(),
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class TableRow:
    """One table row, cells ordered by column."""
    row_index: int
    cells: Tuple[TableCell, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rowIndex": self.row_index,
            "cells": [c.to_dict() for c in self.cells],
        }


@dataclass(frozen=True)
class DetectedTable:
    """A table reconstructed from aligned OCR lines on one page."""
    id: str
    page_number: int
    column_count: int
    row_count: int
    bbox: BoundingBox
    rows: Tuple[TableRow, ...]

    def to_array(self) -> List[List[str]]:
        """Cell text as a row-major grid; missing cells are empty strings."""
        grid = []
        for row in self.rows:
            by_col = {cell.col_index: cell.text for cell in row.cells}
            grid.append([by_col.get(col, "") for col in range(self.column_count)])
        return grid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pageNumber": self.page_number,
            "columnCount": self.column_count,
            "rowCount": self.row_count,
            "bbox": self.bbox.to_dict(),
            "rows": [r.to_dict() for r in self.rows],
        }


# ============================================================================
# Row Grouping
# ============================================================================

def group_lines_by_vertical_position(
    lines: Sequence[Line],
    vertical_tolerance: float = DEFAULT_VERTICAL_TOLERANCE
) -> List[List[Line]]:
    """
    Group lines into visual rows.

    Lines are sorted by top edge and walked once; a line joins the current
    group when its top is within ``vertical_tolerance`` of the last line
    added to that group, otherwise it opens a new group.

    Args:
        lines: Lines in any vertical order
        vertical_tolerance: Maximum y0 distance inside a row, in pixels

    Returns:
        Row groups, top to bottom
    """
    groups: List[List[Line]] = []

    for line in sorted(lines, key=lambda l: l.bbox.y0):
        if groups and abs(line.bbox.y0 - groups[-1][-1].bbox.y0) < vertical_tolerance:
            groups[-1].append(line)
        else:
            groups.append([line])

    return groups


# ============================================================================
# Table Region Detection
# ============================================================================

def _looks_multi_column(group: Sequence[Line]) -> bool:
    # Several lines side by side, or one line with 3+ tokens
    return len(group) > 1 or (len(group) == 1 and len(group[0].words) > 2)


def find_table_regions(
    row_groups: Sequence[Sequence[Line]],
    min_rows: int = DEFAULT_MIN_TABLE_ROWS
) -> List[List[Line]]:
    """
    Find runs of consecutive multi-column rows.

    Args:
        row_groups: Output of group_lines_by_vertical_position
        min_rows: Minimum number of row groups in a run

    Returns:
        One flattened line list per accepted run
    """
    regions = []

    for is_tabular, run in groupby(row_groups, key=_looks_multi_column):
        run = list(run)
        if not is_tabular:
            continue
        if len(run) < min_rows:
            logger.debug(f"Skipping candidate region with {len(run)} row(s)")
            continue
        regions.append([line for group in run for line in group])

    return regions


# ============================================================================
# Column Inference
# ============================================================================

def detect_column_positions(
    lines: Sequence[Line],
    column_gap: float = DEFAULT_COLUMN_GAP
) -> List[float]:
    """
    Infer column start positions from word left edges.

    Sorted x0 values are clustered by single linkage: a value joins the
    current cluster when it is within ``column_gap`` of the previous value.
    Each cluster is represented by its mean.

    Returns:
        Ascending x positions, one per column (empty if there are no words)
    """
    positions = sorted(word.bbox.x0 for line in lines for word in line.words)

    clusters: List[List[float]] = []
    for x in positions:
        if clusters and x - clusters[-1][-1] < column_gap:
            clusters[-1].append(x)
        else:
            clusters.append([x])

    return [float(np.mean(cluster)) for cluster in clusters]


# ============================================================================
# Table Construction
# ============================================================================

def _build_cell(
    words: Sequence[Word],
    row_index: int,
    col_index: int,
    col_start: float,
    col_end: float
) -> TableCell:
    if not words:
        return TableCell(
            text="",
            row_index=row_index,
            col_index=col_index,
            bbox=BoundingBox(col_start, 0, col_end, 0),
            confidence=0.0,
        )

    return TableCell(
        text=" ".join(w.text for w in words),
        row_index=row_index,
        col_index=col_index,
        bbox=BoundingBox.union(w.bbox for w in words),
        confidence=float(np.mean([w.confidence for w in words])),
    )


def construct_table_from_region(
    lines: Sequence[Line],
    page_number: int,
    table_id: Union[int, str],
    vertical_tolerance: float = DEFAULT_VERTICAL_TOLERANCE,
    column_gap: float = DEFAULT_COLUMN_GAP,
    column_bias: float = DEFAULT_COLUMN_BIAS,
    min_columns: int = DEFAULT_MIN_COLUMNS,
    min_lines: int = DEFAULT_MIN_REGION_LINES
) -> Optional[DetectedTable]:
    """
    Build a rectangular table from a region of lines.

    A word belongs to column ``i`` when
    ``start_i - column_bias <= x0 < end_i - column_bias``, where ``end_i`` is
    the next column's start (unbounded for the last column). Columns with no
    words get an empty placeholder cell so every row has ``column_count``
    cells.

    Args:
        lines: Lines of one table region
        page_number: Page the region comes from
        table_id: Sequence number (rendered ``table-N``) or full id string
        vertical_tolerance: Row grouping tolerance
        column_gap: Column clustering gap
        column_bias: Left shift of column boundaries
        min_columns: Minimum inferred columns
        min_lines: Minimum lines in the region

    Returns:
        DetectedTable, or None when the region is not tabular
    """
    if len(lines) < min_lines:
        return None

    column_positions = detect_column_positions(lines, column_gap)
    if len(column_positions) < min_columns:
        logger.debug(
            f"Rejected region on page {page_number}: "
            f"{len(column_positions)} column(s)"
        )
        return None

    bounds = list(zip(column_positions, column_positions[1:] + [math.inf]))

    rows = []
    for row_index, row_lines in enumerate(
        group_lines_by_vertical_position(lines, vertical_tolerance)
    ):
        words = sorted(
            (word for line in row_lines for word in line.words),
            key=lambda w: w.bbox.x0
        )
        cells = tuple(
            _build_cell(
                [w for w in words
                 if start - column_bias <= w.bbox.x0 < end - column_bias],
                row_index, col_index, start, end
            )
            for col_index, (start, end) in enumerate(bounds)
        )
        rows.append(TableRow(row_index=row_index, cells=cells))

    if isinstance(table_id, int):
        table_id = f"table-{table_id}"

    return DetectedTable(
        id=table_id,
        page_number=page_number,
        column_count=len(column_positions),
        row_count=len(rows),
        bbox=BoundingBox.union(line.bbox for line in lines),
        rows=tuple(rows),
    )


def detect_tables(
    pages: Sequence[PageResult],
    vertical_tolerance: float = DEFAULT_VERTICAL_TOLERANCE,
    column_gap: float = DEFAULT_COLUMN_GAP,
    column_bias: float = DEFAULT_COLUMN_BIAS,
    min_rows: int = DEFAULT_MIN_TABLE_ROWS,
    min_columns: int = DEFAULT_MIN_COLUMNS,
    min_region_lines: int = DEFAULT_MIN_REGION_LINES,
    min_page_lines: int = DEFAULT_MIN_PAGE_LINES
) -> List[DetectedTable]:
    """
    Detect tables on every page.

    Ids are numbered ``table-0, table-1, ...`` in emission order across
    the whole document.
    """
    tables = []
    next_id = 0

    for page in pages:
        if len(page.lines) < min_page_lines:
            continue

        row_groups = group_lines_by_vertical_position(page.lines, vertical_tolerance)
        regions = find_table_regions(row_groups, min_rows)
        logger.debug(
            f"Page {page.page_number}: {len(row_groups)} row group(s), "
            f"{len(regions)} candidate region(s)"
        )

        for region in regions:
            table = construct_table_from_region(
                region,
                page.page_number,
                next_id,
                vertical_tolerance=vertical_tolerance,
                column_gap=column_gap,
                column_bias=column_bias,
                min_columns=min_columns,
                min_lines=min_region_lines,
            )
            if table is not None:
                tables.append(table)
                next_id += 1

    return tables
