"""
Recognition result model.

Provides:
- BoundingBox geometry
- Word / Line / PageResult as produced by the OCR engine
- Conversion to and from the engine's JSON shape (camelCase keys)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Dict, Any, Iterable

import numpy as np

logger = logging.getLogger(__name__)


# ============================================================================
# Geometry
# ============================================================================

@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in image pixel coordinates."""
    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x0, self.y0, self.x1, self.y1)

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> 'BoundingBox':
        return cls(x, y, x + w, y + h)

    @classmethod
    def union(cls, boxes: Iterable['BoundingBox']) -> 'BoundingBox':
        """Smallest box containing every box in ``boxes`` (zero box if none)."""
        boxes = list(boxes)
        if not boxes:
            return cls(0, 0, 0, 0)
        coords = np.array([b.to_tuple() for b in boxes], dtype=float)
        return cls(
            _as_number(coords[:, 0].min()),
            _as_number(coords[:, 1].min()),
            _as_number(coords[:, 2].max()),
            _as_number(coords[:, 3].max()),
        )

    def to_dict(self) -> Dict[str, Optional[float]]:
        # JSON has no infinity; the open-ended last table column uses None
        return {
            "x0": _finite_or_none(self.x0),
            "y0": _finite_or_none(self.y0),
            "x1": _finite_or_none(self.x1),
            "y1": _finite_or_none(self.y1),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'BoundingBox':
        if not data:
            return cls(0, 0, 0, 0)
        return cls(
            data.get("x0") or 0,
            data.get("y0") or 0,
            data.get("x1") or 0,
            data.get("y1") or 0,
        )


EMPTY_BOX = BoundingBox(0, 0, 0, 0)


def _as_number(value: float) -> float:
    value = float(value)
    return int(value) if value.is_integer() else value


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


# ============================================================================
# Recognition Results
# ============================================================================

@dataclass(frozen=True)
class Word:
    """A single recognized token."""
    text: str
    confidence: float  # 0-100
    bbox: BoundingBox = EMPTY_BOX
    baseline: BoundingBox = EMPTY_BOX

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "bbox": self.bbox.to_dict(),
            "baseline": self.baseline.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Word':
        return cls(
            text=data.get("text") or "",
            confidence=data.get("confidence") or 0,
            bbox=BoundingBox.from_dict(data.get("bbox")),
            baseline=BoundingBox.from_dict(data.get("baseline")),
        )


@dataclass(frozen=True)
class Line:
    """Words recognized as one visual text line, ordered left to right."""
    text: str
    confidence: float
    words: Tuple[Word, ...] = ()
    bbox: BoundingBox = EMPTY_BOX

    @classmethod
    def from_words(cls, words: List[Word]) -> 'Line':
        """Build a line from its words: joined text, mean confidence, union box."""
        words = sorted(words, key=lambda w: w.bbox.x0)
        if not words:
            return cls(text="", confidence=0)
        return cls(
            text=" ".join(w.text for w in words),
            confidence=float(np.mean([w.confidence for w in words])),
            words=tuple(words),
            bbox=BoundingBox.union(w.bbox for w in words),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "bbox": self.bbox.to_dict(),
            "words": [w.to_dict() for w in self.words],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Line':
        return cls(
            text=data.get("text") or "",
            confidence=data.get("confidence") or 0,
            words=tuple(Word.from_dict(w) for w in data.get("words") or []),
            bbox=BoundingBox.from_dict(data.get("bbox")),
        )


@dataclass(frozen=True)
class PageResult:
    """One page's full OCR output."""
    page_number: int  # 1-based
    text: str
    confidence: float
    lines: Tuple[Line, ...] = ()
    words: Tuple[Word, ...] = field(default=())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pageNumber": self.page_number,
            "text": self.text,
            "confidence": self.confidence,
            "lines": [line.to_dict() for line in self.lines],
            "words": [w.to_dict() for w in self.words],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PageResult':
        lines = tuple(Line.from_dict(l) for l in data.get("lines") or [])
        words_data = data.get("words")
        if words_data is None:
            words = tuple(w for line in lines for w in line.words)
        else:
            words = tuple(Word.from_dict(w) for w in words_data)
        return cls(
            page_number=int(data.get("pageNumber") or data.get("page_number") or 1),
            text=data.get("text") or "",
            confidence=data.get("confidence") or 0,
            lines=lines,
            words=words,
        )


def load_page_results(data: Any) -> List[PageResult]:
    """
    Build PageResults from decoded recognition JSON.

    Accepts either a list of page dicts or an envelope ``{"pages": [...]}``.
    """
    if isinstance(data, dict):
        data = data.get("pages", [])
    pages = [PageResult.from_dict(p) for p in data]
    logger.debug(f"Loaded {len(pages)} page result(s)")
    return pages
