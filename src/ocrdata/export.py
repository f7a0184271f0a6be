"""
Export module for extracted data.

Provides:
- CSV export (one file per table plus key-value pairs)
- JSON export
- Plain-text export with ASCII table grids
- Single table / key-value-only / selected-data exports
- Clipboard payloads
"""

import csv
import io
import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional, List, Union, Sequence

from .extraction import ExtractedData
from .key_values import KeyValuePair
from .tables import DetectedTable

logger = logging.getLogger(__name__)


SUPPORTED_FORMATS = ("csv", "json", "txt")
DEFAULT_MAX_CELL_WIDTH = 50


@dataclass
class ExportOptions:
    """What to include in an export and under which base name."""
    format: str = "json"
    include_tables: bool = True
    include_key_value_pairs: bool = True
    include_all_text: bool = True
    file_name: str = "extracted-data"


# ============================================================================
# Helpers
# ============================================================================

def _round_confidence(value: float) -> int:
    # Half-up rounding, not Python's banker's rounding
    return int(math.floor(value + 0.5))


def table_to_array(table: DetectedTable) -> List[List[str]]:
    """Convert a table to a 2-D list of cell text ordered by row and column."""
    return table.to_array()


def rows_to_csv(rows: Sequence[Sequence[Any]]) -> str:
    """Serialize rows with the csv module."""
    output = io.StringIO()
    writer = csv.writer(output)
    for row in rows:
        writer.writerow([str(c) for c in row])
    return output.getvalue()


def format_table_as_text(
    table: DetectedTable,
    max_width: int = DEFAULT_MAX_CELL_WIDTH
) -> str:
    """
    Render a table as a fixed-width ASCII grid.

    Column widths are capped at ``max_width`` and longer text is truncated.
    The first row is treated as a header and underlined.
    """
    grid = table_to_array(table)
    if not grid:
        return ""

    widths = [
        min(max(len(row[col]) for row in grid), max_width)
        for col in range(table.column_count)
    ]

    separator = "+" + "+".join("-" * (w + 2) for w in widths) + "+\n"

    lines = [separator]
    for i, row in enumerate(grid):
        cells = [" " + row[col][:widths[col]].ljust(widths[col]) + " "
                 for col in range(len(widths))]
        lines.append("|" + "|".join(cells) + "|\n")

        if i == 0:
            lines.append(separator)

    lines.append(separator)
    return "".join(lines)


def _key_value_record(pair: KeyValuePair) -> Dict[str, Any]:
    return {
        "key": pair.key,
        "value": pair.value,
        "pageNumber": pair.page_number,
        "confidence": _round_confidence(pair.confidence),
    }


# ============================================================================
# Exporters
# ============================================================================

class CsvExporter:
    """Export extracted data as one or more CSV documents."""

    def render(self, data: ExtractedData, options: ExportOptions) -> Dict[str, str]:
        """
        Build CSV content keyed by file name.

        With more than one sheet (tables and/or key-value pairs) every sheet
        gets its own ``{name}_{sheet}.csv``; a single sheet is written to
        ``{name}.csv``. Without structured data the transcript is exported
        one line per row under a ``Text`` header.
        """
        sheets: List[tuple] = []
        used_names: Dict[str, int] = {}

        if options.include_tables:
            for table in data.tables:
                name = f"Table_Page{table.page_number}"
                used_names[name] = used_names.get(name, 0) + 1
                if used_names[name] > 1:
                    name = f"{name}_{used_names[name]}"
                sheets.append((name, table_to_array(table)))

        if options.include_key_value_pairs and data.key_value_pairs:
            rows = [["Key", "Value", "Page", "Confidence"]]
            rows.extend(
                [p.key, p.value, p.page_number, _round_confidence(p.confidence)]
                for p in data.key_value_pairs
            )
            sheets.append(("KeyValuePairs", rows))

        if len(sheets) > 1:
            return {
                f"{options.file_name}_{name}.csv": rows_to_csv(rows)
                for name, rows in sheets
            }

        if len(sheets) == 1:
            return {f"{options.file_name}.csv": rows_to_csv(sheets[0][1])}

        rows = [["Text"]] + [[line] for line in data.all_text.split("\n")]
        return {f"{options.file_name}.csv": rows_to_csv(rows)}


class JsonExporter:
    """Export extracted data as a JSON document."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def build(self, data: ExtractedData, options: ExportOptions) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}

        if options.include_tables and data.tables:
            payload["tables"] = [
                {
                    "id": table.id,
                    "pageNumber": table.page_number,
                    "columnCount": table.column_count,
                    "rowCount": table.row_count,
                    "data": table_to_array(table),
                }
                for table in data.tables
            ]

        if options.include_key_value_pairs and data.key_value_pairs:
            payload["keyValuePairs"] = [
                _key_value_record(p) for p in data.key_value_pairs
            ]

        if options.include_all_text:
            payload["allText"] = data.all_text
            payload["pageTexts"] = [
                {"page": page, "text": text}
                for page, text in data.page_texts.items()
            ]

        return payload

    def render(self, data: ExtractedData, options: ExportOptions) -> str:
        return json.dumps(self.build(data, options), indent=self.indent, ensure_ascii=False)


class TextExporter:
    """Export extracted data as a human-readable text report."""

    def __init__(self, max_cell_width: int = DEFAULT_MAX_CELL_WIDTH):
        self.max_cell_width = max_cell_width

    def render(self, data: ExtractedData, options: ExportOptions) -> str:
        parts = []

        if options.include_key_value_pairs and data.key_value_pairs:
            parts.append("=== KEY-VALUE PAIRS ===\n\n")
            for pair in data.key_value_pairs:
                parts.append(f"{pair.key}: {pair.value}\n")
                parts.append(
                    f"  (Page {pair.page_number}, "
                    f"Confidence: {_round_confidence(pair.confidence)}%)\n\n"
                )
            parts.append("\n")

        if options.include_tables and data.tables:
            parts.append("=== TABLES ===\n\n")
            for table in data.tables:
                parts.append(
                    f"Table on Page {table.page_number} "
                    f"({table.row_count} rows × {table.column_count} columns)\n"
                )
                parts.append(format_table_as_text(table, self.max_cell_width))
                parts.append("\n\n")

        if options.include_all_text:
            parts.append("=== FULL TEXT ===\n\n")
            parts.append(data.all_text)

        return "".join(parts)


def _write_file(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    # newline="" keeps the csv module's \r\n row endings intact
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(content)
    logger.info(f"Exported: {path}")
    return path


def export_data(
    data: ExtractedData,
    options: ExportOptions,
    output_dir: Union[str, Path],
    max_cell_width: int = DEFAULT_MAX_CELL_WIDTH
) -> List[Path]:
    """
    Export data in one format.

    Raises:
        ValueError: If the format is not csv, json or txt
    """
    output_dir = Path(output_dir)

    if options.format == "csv":
        files = CsvExporter().render(data, options)
        return [_write_file(output_dir / name, content) for name, content in files.items()]

    if options.format == "json":
        content = JsonExporter().render(data, options)
        return [_write_file(output_dir / f"{options.file_name}.json", content)]

    if options.format == "txt":
        content = TextExporter(max_cell_width).render(data, options)
        return [_write_file(output_dir / f"{options.file_name}.txt", content)]

    raise ValueError(f"Unsupported export format: {options.format}")


class DataExporter:
    """Convenience class for exporting to multiple formats."""

    def __init__(
        self,
        output_dir: Union[str, Path],
        base_name: str = "extracted-data",
        max_cell_width: int = DEFAULT_MAX_CELL_WIDTH
    ):
        self.output_dir = Path(output_dir)
        self.base_name = base_name
        self.max_cell_width = max_cell_width

    def export(
        self,
        data: ExtractedData,
        formats: Sequence[str],
        include_tables: bool = True,
        include_key_value_pairs: bool = True,
        include_all_text: bool = True
    ) -> Dict[str, List[Path]]:
        """
        Export to every requested format ("all" expands to csv, json, txt).

        Returns:
            Mapping of format to written file paths
        """
        if "all" in formats:
            formats = SUPPORTED_FORMATS

        results = {}
        for fmt in formats:
            options = ExportOptions(
                format=fmt,
                include_tables=include_tables,
                include_key_value_pairs=include_key_value_pairs,
                include_all_text=include_all_text,
                file_name=self.base_name,
            )
            results[fmt] = export_data(data, options, self.output_dir, self.max_cell_width)

        return results


# ============================================================================
# Partial Exports
# ============================================================================

def export_selected_data(
    output_dir: Union[str, Path],
    fmt: str,
    tables: Optional[List[DetectedTable]] = None,
    key_value_pairs: Optional[List[KeyValuePair]] = None,
    text: Optional[str] = None,
    file_name: str = "selected-data"
) -> List[Path]:
    """Export only the parts that were passed in."""
    data = ExtractedData(
        tables=tables or (),
        key_value_pairs=key_value_pairs or (),
        all_text=text or "",
        page_texts={},
    )
    options = ExportOptions(
        format=fmt,
        include_tables=tables is not None,
        include_key_value_pairs=key_value_pairs is not None,
        include_all_text=text is not None,
        file_name=file_name,
    )
    return export_data(data, options, output_dir)


def export_table_as_csv(
    table: DetectedTable,
    output_dir: Union[str, Path],
    file_name: Optional[str] = None
) -> Path:
    name = file_name or f"table_page{table.page_number}"
    return _write_file(Path(output_dir) / f"{name}.csv", rows_to_csv(table_to_array(table)))


def export_key_value_pairs_as_json(
    pairs: Sequence[KeyValuePair],
    output_dir: Union[str, Path],
    file_name: str = "key-value-pairs"
) -> Path:
    content = json.dumps([_key_value_record(p) for p in pairs], indent=2, ensure_ascii=False)
    return _write_file(Path(output_dir) / f"{file_name}.json", content)


# ============================================================================
# Clipboard
# ============================================================================

def clipboard_content(data: ExtractedData, fmt: str = "text") -> str:
    """
    Text to place on the clipboard.

    ``text`` gives the transcript; ``json`` gives the tables, key-value
    pairs and transcript with full entity detail.
    """
    if fmt == "json":
        return json.dumps(
            {
                "tables": [t.to_dict() for t in data.tables],
                "keyValuePairs": [p.to_dict() for p in data.key_value_pairs],
                "allText": data.all_text,
            },
            indent=2,
            ensure_ascii=False,
        )
    return data.all_text
