"""
Tests for the command-line interface, driven from saved recognition results.
"""

import json
import logging
import pytest
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ocrdata import cli
from ocrdata.cli import apply_overrides, main, parse_page_range, run_pipeline, setup_argparser
from ocrdata.config import PipelineConfig
from ocrdata.io import save_json
from ocr_builders import grid_lines, make_page, make_text_line


@pytest.fixture
def workspace():
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def ocr_json(workspace):
    """Saved recognition results for a two-page invoice."""
    page1 = make_page(
        [make_text_line("Invoice: 12345", 10, 10, confidence=95)]
        + grid_lines(
            [["Item", "Qty", "Price"], ["Bolts", "100", "4.50"], ["Nuts", "250", "3.10"]],
            [10, 200, 320],
            top=100,
        ),
        page_number=1,
    )
    page2 = make_page([make_text_line("Customer: ACME", 10, 10, confidence=50)], page_number=2)

    return save_json(
        {"schemaVersion": "1.0", "pages": [page1.to_dict(), page2.to_dict()]},
        workspace / "invoice.json",
    )


def parse(*argv):
    return setup_argparser().parse_args(list(argv))


class TestParsePageRange:
    """Tests for --pages parsing."""

    def test_range(self):
        assert parse_page_range("1-3", 10) == [1, 2, 3]

    def test_list_and_range(self):
        assert parse_page_range("5, 1-2, 2", 10) == [1, 2, 5]

    def test_clamped_to_document(self):
        assert parse_page_range("0-4,9", 3) == [1, 2, 3]


class TestArguments:
    """Tests for argument handling."""

    def test_defaults(self):
        args = parse("--input", "a.pdf", "--output", "out")

        assert args.format == ["json"]
        assert args.copy is None
        assert args.min_confidence is None

    def test_overrides_applied(self):
        args = parse(
            "-i", "a.pdf", "-o", "out",
            "--dpi", "150", "--lang", "deu",
            "--min-confidence", "70",
            "--vertical-tolerance", "8",
            "--column-gap", "40",
            "--column-bias", "5",
            "--debug",
        )

        config = apply_overrides(PipelineConfig(), args)

        assert config.recognition.dpi == 150
        assert config.recognition.language == "deu"
        assert config.min_confidence == 70
        assert config.extraction.vertical_tolerance == 8
        assert config.extraction.column_gap == 40
        assert config.extraction.column_bias == 5
        assert config.debug_mode is True

    def test_rejects_unknown_format(self):
        with pytest.raises(SystemExit):
            parse("-i", "a.pdf", "-o", "out", "--format", "docx")


class TestRunPipeline:
    """Tests for run_pipeline on saved recognition JSON."""

    def test_all_formats(self, workspace, ocr_json):
        out = workspace / "out"
        args = parse("-i", str(ocr_json), "-o", str(out), "--format", "all", "--quiet")

        assert run_pipeline(args) == 0

        assert sorted(p.name for p in out.iterdir()) == [
            "invoice.json",
            "invoice.txt",
            "invoice_KeyValuePairs.csv",
            "invoice_Table_Page1.csv",
        ]
        payload = json.loads((out / "invoice.json").read_text(encoding="utf-8"))
        assert payload["tables"][0]["data"][1] == ["Bolts", "100", "4.50"]
        assert [kv["key"] for kv in payload["keyValuePairs"]] == ["Invoice", "Customer"]

    def test_custom_name(self, workspace, ocr_json):
        out = workspace / "out"
        args = parse("-i", str(ocr_json), "-o", str(out), "--name", "report", "--quiet")

        run_pipeline(args)

        assert (out / "report.json").exists()

    def test_min_confidence(self, workspace, ocr_json):
        out = workspace / "out"
        args = parse("-i", str(ocr_json), "-o", str(out), "--min-confidence", "60", "--quiet")

        run_pipeline(args)

        payload = json.loads((out / "invoice.json").read_text(encoding="utf-8"))
        assert [kv["key"] for kv in payload["keyValuePairs"]] == ["Invoice"]

    def test_page_selection(self, workspace, ocr_json):
        out = workspace / "out"
        args = parse("-i", str(ocr_json), "-o", str(out), "--pages", "2", "--quiet")

        run_pipeline(args)

        payload = json.loads((out / "invoice.json").read_text(encoding="utf-8"))
        assert "tables" not in payload
        assert payload["pageTexts"] == [{"page": 2, "text": "Customer: ACME"}]

    def test_copy_prints_text(self, workspace, ocr_json, capsys):
        args = parse("-i", str(ocr_json), "-o", str(workspace / "out"), "--copy", "text", "--quiet")

        run_pipeline(args)

        printed = capsys.readouterr().out
        assert printed.startswith("Invoice: 12345\nItem Qty Price")
        assert printed.rstrip("\n").endswith("Customer: ACME")

    def test_copy_json(self, workspace, ocr_json, capsys):
        args = parse("-i", str(ocr_json), "-o", str(workspace / "out"), "--copy", "json", "--quiet")

        run_pipeline(args)

        payload = json.loads(capsys.readouterr().out)
        assert payload["tables"][0]["id"] == "table-0"

    def test_copy_json_with_summary(self, workspace, ocr_json, capsys):
        args = parse("-i", str(ocr_json), "-o", str(workspace / "out"), "--copy", "json")

        run_pipeline(args)

        captured = capsys.readouterr()
        payload = json.loads(captured.out)
        assert payload["keyValuePairs"][0]["key"] == "Invoice"
        assert "EXTRACTION COMPLETE" in captured.err
        assert "Tables: 1" in captured.err

    def test_summary(self, workspace, ocr_json, capsys):
        args = parse("-i", str(ocr_json), "-o", str(workspace / "out"))

        run_pipeline(args)

        printed = capsys.readouterr().out
        assert "EXTRACTION COMPLETE" in printed
        assert "Tables: 1" in printed
        assert "Key-value pairs: 2" in printed

    def test_unsupported_input(self, workspace):
        notes = workspace / "notes.txt"
        notes.write_text("hello")
        args = parse("-i", str(notes), "-o", str(workspace / "out"), "--quiet")

        assert run_pipeline(args) == 1


class TestMain:
    """Tests for the console entry point."""

    def test_entry_point_lives_in_package(self):
        assert cli.__name__ == "ocrdata.cli"
        assert callable(cli.main)

    def test_console_script_targets_package(self):
        pyproject = Path(__file__).parent.parent / "pyproject.toml"
        text = pyproject.read_text(encoding="utf-8")

        assert 'ocr-extract = "ocrdata.cli:main"' in text
        assert "py-modules" not in text

    @pytest.fixture(autouse=True)
    def restore_log_level(self):
        root = logging.getLogger()
        level = root.level
        yield
        root.setLevel(level)

    def test_exit_code(self, workspace, ocr_json, monkeypatch):
        monkeypatch.setattr(sys, "argv", [
            "ocr-extract", "-i", str(ocr_json), "-o", str(workspace / "out"), "--quiet",
        ])

        with pytest.raises(SystemExit) as excinfo:
            main()

        assert excinfo.value.code == 0

    def test_missing_input_file(self, workspace, monkeypatch):
        monkeypatch.setattr(sys, "argv", [
            "ocr-extract", "-i", str(workspace / "missing.json"),
            "-o", str(workspace / "out"), "--quiet",
        ])

        with pytest.raises(SystemExit) as excinfo:
            main()

        assert excinfo.value.code == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
