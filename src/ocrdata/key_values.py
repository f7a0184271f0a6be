"""
Key-value pair detection.

Scans each recognized line for ``Label: value`` shaped text. Runs
independently of table detection, so a table row can also yield a pair.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Dict, Any, Sequence

from .models import BoundingBox, PageResult

logger = logging.getLogger(__name__)


# Highest priority first; the first pattern that matches a line wins.
KEY_VALUE_PATTERNS = [
    ("colon", re.compile(r'^([A-Za-z\s]+):\s*(.+)$')),
    ("dash", re.compile(r'^([A-Za-z\s]+)\s*[-–]\s*(.+)$')),
    ("equals", re.compile(r'^([A-Za-z\s]+)\s*=\s*(.+)$')),
]


@dataclass(frozen=True)
class KeyValuePair:
    """A label/value pair read from one OCR line."""
    id: str
    key: str
    value: str
    page_number: int
    confidence: float
    bbox: BoundingBox

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "key": self.key,
            "value": self.value,
            "pageNumber": self.page_number,
            "confidence": self.confidence,
            "bbox": self.bbox.to_dict(),
        }


def match_key_value(text: str) -> Optional[Tuple[str, str]]:
    """
    Split a line into (key, value) using the first matching pattern.

    Returns:
        Trimmed key and value, or None if no pattern matches
    """
    text = text.strip()
    for _, pattern in KEY_VALUE_PATTERNS:
        match = pattern.match(text)
        if match:
            return match.group(1).strip(), match.group(2).strip()
    return None


def detect_key_value_pairs(pages: Sequence[PageResult]) -> List[KeyValuePair]:
    """
    Detect key-value pairs on every line of every page.

    Lines are visited in recognition order. Confidence and bbox describe
    the whole source line. Ids run ``kv-0, kv-1, ...`` across the document.
    """
    pairs = []

    for page in pages:
        for line in page.lines:
            matched = match_key_value(line.text)
            if matched is None:
                continue
            key, value = matched
            pairs.append(KeyValuePair(
                id=f"kv-{len(pairs)}",
                key=key,
                value=value,
                page_number=page.page_number,
                confidence=line.confidence,
                bbox=line.bbox,
            ))

    logger.debug(f"Detected {len(pairs)} key-value pair(s)")
    return pairs
