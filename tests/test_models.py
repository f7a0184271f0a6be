"""
Tests for recognition result models.
"""

import math
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ocrdata.models import (
    BoundingBox,
    Line,
    PageResult,
    Word,
    load_page_results,
)
from ocr_builders import make_line, make_page, make_word


class TestBoundingBox:
    """Tests for BoundingBox geometry."""

    def test_from_xywh(self):
        bbox = BoundingBox.from_xywh(10, 20, 30, 40)
        assert bbox == BoundingBox(10, 20, 40, 60)
        assert bbox.width == 30
        assert bbox.height == 40

    def test_union(self):
        boxes = [BoundingBox(10, 20, 30, 40), BoundingBox(5, 25, 50, 35)]
        assert BoundingBox.union(boxes) == BoundingBox(5, 20, 50, 40)

    def test_union_of_nothing(self):
        assert BoundingBox.union([]) == BoundingBox(0, 0, 0, 0)

    def test_to_dict_replaces_infinity(self):
        d = BoundingBox(230.0, 0, math.inf, 0).to_dict()
        assert d == {"x0": 230.0, "y0": 0, "x1": None, "y1": 0}

    def test_from_dict_missing(self):
        assert BoundingBox.from_dict(None) == BoundingBox(0, 0, 0, 0)
        assert BoundingBox.from_dict({"x0": 1, "y0": 2}) == BoundingBox(1, 2, 0, 0)


class TestLine:
    """Tests for Line construction."""

    def test_from_words_orders_left_to_right(self):
        right = make_word("world", 100, 10, confidence=80)
        left = make_word("hello", 10, 10, confidence=90)

        line = Line.from_words([right, left])

        assert line.text == "hello world"
        assert line.confidence == pytest.approx(85.0)
        assert line.words == (left, right)
        assert line.bbox == BoundingBox(10, 10, 140, 22)

    def test_from_no_words(self):
        line = Line.from_words([])
        assert line.text == ""
        assert line.words == ()


class TestPageResultSerialization:
    """Tests for the camelCase JSON shape."""

    @pytest.fixture
    def page(self):
        return make_page([
            make_line([("Name:", 10), ("Alice", 60)], 20),
            make_line([("Age:", 10), ("30", 60)], 50),
        ], page_number=2)

    def test_to_dict_keys(self, page):
        d = page.to_dict()

        assert d["pageNumber"] == 2
        assert d["text"] == "Name: Alice\nAge: 30"
        assert len(d["lines"]) == 2
        assert len(d["words"]) == 4
        assert d["lines"][0]["words"][1]["text"] == "Alice"

    def test_dict_round_trip(self, page):
        assert PageResult.from_dict(page.to_dict()) == page

    def test_words_rebuilt_from_lines(self, page):
        d = page.to_dict()
        del d["words"]

        restored = PageResult.from_dict(d)

        assert [w.text for w in restored.words] == ["Name:", "Alice", "Age:", "30"]

    def test_snake_case_page_number_accepted(self):
        page = PageResult.from_dict({"page_number": 4, "text": "x", "confidence": 50})
        assert page.page_number == 4
        assert page.lines == ()

    def test_null_page_number_defaults_to_first_page(self):
        page = PageResult.from_dict({"pageNumber": None, "text": "x", "confidence": 50})
        assert page.page_number == 1

    def test_null_page_number_falls_back_to_snake_case(self):
        page = PageResult.from_dict({"pageNumber": None, "page_number": 3, "text": "x"})
        assert page.page_number == 3

    def test_word_defaults(self):
        word = Word.from_dict({"text": "solo"})
        assert word.confidence == 0
        assert word.bbox == BoundingBox(0, 0, 0, 0)


class TestLoadPageResults:
    """Tests for load_page_results."""

    def test_list(self):
        pages = load_page_results([
            {"pageNumber": 1, "text": "a", "confidence": 90},
            {"pageNumber": 2, "text": "b", "confidence": 80},
        ])
        assert [p.page_number for p in pages] == [1, 2]

    def test_envelope(self):
        pages = load_page_results({"schemaVersion": "1.0", "pages": [
            {"pageNumber": 1, "text": "a", "confidence": 90},
        ]})
        assert len(pages) == 1
        assert pages[0].text == "a"

    def test_empty_envelope(self):
        assert load_page_results({}) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
