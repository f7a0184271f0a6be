"""
Tesseract recognition adapter.

Produces PageResult objects (words with boxes and confidence, grouped into
lines) from page images. Confidence stays on Tesseract's 0-100 scale.
"""

import logging
from typing import List, Optional, Dict, Any, Callable, Sequence, Tuple

import numpy as np

from .models import BoundingBox, Line, PageResult, Word

logger = logging.getLogger(__name__)

# Height of the synthetic lines built when only plain text is available
FALLBACK_LINE_HEIGHT = 20

ProgressCallback = Callable[[int, int], None]


class RecognitionError(RuntimeError):
    """Raised when the OCR engine fails on a page."""

    def __init__(self, message: str, page_number: Optional[int] = None):
        super().__init__(message)
        self.page_number = page_number


# ============================================================================
# Tesseract Engine
# ============================================================================

class TesseractEngine:
    """OCR using Tesseract through pytesseract."""

    def __init__(
        self,
        language: str = "eng",
        config: str = "--oem 3 --psm 3"
    ):
        try:
            import pytesseract
            self.pytesseract = pytesseract

            # Test that tesseract is installed
            pytesseract.get_tesseract_version()

        except Exception as e:
            raise ImportError(
                f"Tesseract not available: {e}\n"
                "Install with: pip install pytesseract\n"
                "Also install Tesseract: https://github.com/tesseract-ocr/tesseract"
            )

        self.language = language
        self.config = config

    def _prepare(self, image: np.ndarray) -> np.ndarray:
        """Convert colour images to grayscale for Tesseract."""
        import cv2

        if len(image.shape) == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return image

    def recognize(self, image: np.ndarray, page_number: int = 1) -> PageResult:
        """
        Recognize one page image.

        Args:
            image: Page image (BGR or grayscale)
            page_number: 1-based page number to stamp on the result

        Returns:
            PageResult with lines, words and page text

        Raises:
            RecognitionError: If Tesseract fails
        """
        prepared = self._prepare(image)

        try:
            data = self.pytesseract.image_to_data(
                prepared,
                lang=self.language,
                config=self.config,
                output_type=self.pytesseract.Output.DICT
            )
        except Exception as e:
            logger.error(f"Tesseract error on page {page_number}: {e}")
            raise RecognitionError(f"OCR recognition failed: {e}", page_number) from e

        lines = parse_tesseract_data(data)

        if lines:
            text = "\n".join(line.text for line in lines)
        else:
            try:
                text = self.pytesseract.image_to_string(
                    prepared, lang=self.language, config=self.config
                )
            except Exception as e:
                raise RecognitionError(f"OCR recognition failed: {e}", page_number) from e
            lines = lines_from_plain_text(text, 0.0)

        words = tuple(w for line in lines for w in line.words)
        confidence = float(np.mean([w.confidence for w in words])) if words else 0.0

        logger.debug(f"Page {page_number}: {len(lines)} line(s), {len(words)} word(s)")
        return PageResult(
            page_number=page_number,
            text=text,
            confidence=confidence,
            lines=tuple(lines),
            words=words,
        )

    def recognize_multiple(
        self,
        images: Sequence[np.ndarray],
        on_progress: Optional[ProgressCallback] = None,
        page_numbers: Optional[Sequence[int]] = None
    ) -> List[PageResult]:
        """
        Recognize pages one after another.

        ``on_progress(page_number, total_pages)`` is called once per page,
        after that page completes, in increasing page order. Pages are
        numbered 1..N unless ``page_numbers`` gives their source page numbers.
        """
        results = []
        total = len(images)
        if page_numbers is None:
            page_numbers = range(1, total + 1)

        for image, page_number in zip(images, page_numbers):
            logger.info(f"Recognizing page {page_number}/{total}")
            results.append(self.recognize(image, page_number))

            if on_progress:
                on_progress(page_number, total)

        return results


# ============================================================================
# Result Parsing
# ============================================================================

def parse_tesseract_data(data: Dict[str, List[Any]]) -> List[Line]:
    """
    Build lines from ``pytesseract.image_to_data`` dictionary output.

    Words are grouped by (block, paragraph, line) number. Entries with
    negative confidence or blank text are layout rows, not words.
    """
    grouped: Dict[Tuple[int, int, int], List[Word]] = {}

    for i in range(len(data.get('text', []))):
        text = str(data['text'][i]).strip()
        conf = float(data['conf'][i])

        if conf < 0 or not text:
            continue

        bbox = BoundingBox.from_xywh(
            data['left'][i], data['top'][i], data['width'][i], data['height'][i]
        )
        word = Word(
            text=text,
            confidence=conf,
            bbox=bbox,
            # Tesseract's TSV output has no baseline; use the box bottom edge
            baseline=BoundingBox(bbox.x0, bbox.y1, bbox.x1, bbox.y1),
        )

        key = (data['block_num'][i], data['par_num'][i], data['line_num'][i])
        grouped.setdefault(key, []).append(word)

    return [Line.from_words(words) for words in grouped.values()]


def lines_from_plain_text(text: str, confidence: float) -> List[Line]:
    """Synthetic word-less lines stacked at fixed height, one per text line."""
    if not text.strip():
        return []

    return [
        Line(
            text=line_text,
            confidence=confidence,
            words=(),
            bbox=BoundingBox(
                0, index * FALLBACK_LINE_HEIGHT,
                100, (index + 1) * FALLBACK_LINE_HEIGHT
            ),
        )
        for index, line_text in enumerate(text.split("\n"))
    ]
