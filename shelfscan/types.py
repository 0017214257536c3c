"""Typed structures shared by the backend modules."""

from __future__ import annotations

from typing import List, Literal, Optional, Tuple, TypedDict

Point = Tuple[float, float]
Orientation = Literal["horizontal", "vertical"]
GeometryMode = Literal["engine", "synthesized"]


class BoundingBox(TypedDict):
    """Axis-aligned box in image pixel coordinates."""

    x0: float
    y0: float
    x1: float
    y1: float


class OCRWord(TypedDict):
    """Single recognized word with its box and 0-100 confidence."""

    text: str
    confidence: float
    bbox: BoundingBox


class TextRegion(TypedDict):
    """Cluster of nearby words."""

    text: str
    confidence: float
    bbox: BoundingBox
    orientation: Orientation
    words: List[OCRWord]


class BookSpine(TypedDict):
    """Aligned text regions believed to sit on the same book spine."""

    title: str
    confidence: float
    bbox: BoundingBox
    orientation: Orientation
    text_regions: List[TextRegion]


class ScanResult(TypedDict):
    book_spines: List[BookSpine]
    text_regions: List[TextRegion]
    word_count: int
    geometry: GeometryMode
    processed_image: str
    visualization: Optional[str]


__all__ = [
    "Point",
    "Orientation",
    "GeometryMode",
    "BoundingBox",
    "OCRWord",
    "TextRegion",
    "BookSpine",
    "ScanResult",
]
