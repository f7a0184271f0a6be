"""
Tests for I/O helpers.
"""

import json
import math
import numpy as np
import pytest
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ocrdata.io import (
    EnhancedJSONEncoder,
    detect_input_type,
    ensure_dir,
    load_image,
    load_images_from_folder,
    load_json,
    load_pdf,
    save_json,
)
from ocrdata.models import BoundingBox


class TestJson:
    """Test JSON save and load."""

    def test_save_and_load_json(self):
        """Test JSON save and load cycle."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            test_data = {
                "schemaVersion": "1.0",
                "pages": [{"pageNumber": 1, "text": "Größe: 5", "lines": []}],
            }

            json_path = Path(tmp_dir) / "nested" / "test.json"
            save_json(test_data, json_path)

            assert load_json(json_path) == test_data
            assert "Größe" in json_path.read_text(encoding="utf-8")

    def test_encoder_handles_numpy_and_models(self):
        payload = {
            "box": BoundingBox(1, 2, math.inf, 4),
            "count": np.int64(3),
            "mean": np.float32(2.5),
            "missing": np.float32(np.nan),
            "array": np.array([1, 2]),
            "path": Path("out") / "file.csv",
        }

        decoded = json.loads(json.dumps(payload, cls=EnhancedJSONEncoder))

        assert decoded["box"] == {"x0": 1, "y0": 2, "x1": None, "y1": 4}
        assert decoded["count"] == 3
        assert decoded["mean"] == 2.5
        assert decoded["missing"] is None
        assert decoded["array"] == [1, 2]
        assert decoded["path"] == str(Path("out") / "file.csv")

    def test_load_missing_json(self):
        with pytest.raises(FileNotFoundError):
            load_json("/nonexistent/results.json")


class TestInputDetection:
    """Test input type detection."""

    def test_detect_input_type(self):
        """Test input type detection."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            tmp_dir = Path(tmp_dir)

            (tmp_dir / "scan.pdf").touch()
            (tmp_dir / "page.PNG").touch()
            (tmp_dir / "ocr_results.json").touch()
            (tmp_dir / "notes.txt").touch()

            img_dir = tmp_dir / "images"
            img_dir.mkdir()
            (img_dir / "page1.png").touch()

            empty_dir = tmp_dir / "empty"
            empty_dir.mkdir()

            assert detect_input_type(tmp_dir / "scan.pdf") == "pdf"
            assert detect_input_type(tmp_dir / "page.PNG") == "image"
            assert detect_input_type(tmp_dir / "ocr_results.json") == "json"
            assert detect_input_type(tmp_dir / "notes.txt") == "unknown"
            assert detect_input_type(tmp_dir / "missing.pdf") == "unknown"
            assert detect_input_type(img_dir) == "image_folder"
            assert detect_input_type(empty_dir) == "unknown"

    def test_ensure_dir(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            target = ensure_dir(Path(tmp_dir) / "a" / "b")
            assert target.is_dir()


class TestImageLoading:
    """Test image loading with OpenCV."""

    def test_load_image(self):
        cv2 = pytest.importorskip("cv2")

        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "page.png"
            cv2.imwrite(str(path), np.full((40, 60, 3), 255, dtype=np.uint8))

            img = load_image(path)

            assert img.shape == (40, 60, 3)

    def test_load_missing_image(self):
        pytest.importorskip("cv2")
        with pytest.raises(FileNotFoundError):
            load_image("/nonexistent/page.png")

    def test_undecodable_image(self):
        pytest.importorskip("cv2")

        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "broken.png"
            path.write_bytes(b"not an image")

            with pytest.raises(ValueError):
                load_image(path)

    def test_folder_sorted_and_skips_bad_files(self):
        cv2 = pytest.importorskip("cv2")

        with tempfile.TemporaryDirectory() as tmp_dir:
            folder = Path(tmp_dir)
            cv2.imwrite(str(folder / "b.png"), np.zeros((20, 10, 3), dtype=np.uint8))
            cv2.imwrite(str(folder / "a.png"), np.zeros((10, 10, 3), dtype=np.uint8))
            (folder / "c.png").write_bytes(b"garbage")
            (folder / "readme.txt").write_text("ignored")

            images = load_images_from_folder(folder)

            assert [img.shape[0] for img in images] == [10, 20]

    def test_folder_must_exist(self):
        with pytest.raises(NotADirectoryError):
            load_images_from_folder("/nonexistent/folder")


class TestPdfLoading:
    """Test PDF loading error paths."""

    def test_missing_pdf(self):
        with pytest.raises(FileNotFoundError):
            load_pdf("/nonexistent/scan.pdf")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
