"""Shared fixtures for shelfscan tests."""

from __future__ import annotations

import io
from typing import Callable, List, Optional

import pytest
from PIL import Image

from shelfscan import ocr
from shelfscan.ocr import ProgressCallback, Recognition
from shelfscan.types import BoundingBox, OCRWord, Orientation, TextRegion


def _box(x0: float, y0: float, x1: float, y1: float) -> BoundingBox:
    return {"x0": float(x0), "y0": float(y0), "x1": float(x1), "y1": float(y1)}


class FakeRecognizer:
    """Recognizer returning canned words, or raising a canned error."""

    name = "fake"

    def __init__(
        self,
        words: Optional[List[OCRWord]] = None,
        text: str = "",
        error: Optional[Exception] = None,
    ) -> None:
        self.words = words or []
        self.text = text
        self.error = error
        self.calls: List[tuple] = []

    def recognize(
        self,
        image_bytes: bytes,
        language_hint: Optional[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Recognition:
        self.calls.append((image_bytes, language_hint))
        if on_progress:
            on_progress(0.0)
            on_progress(0.5)
        if self.error is not None:
            raise self.error
        if on_progress:
            on_progress(1.0)
        return {"words": [dict(w) for w in self.words], "text": self.text}  # type: ignore[misc]


@pytest.fixture
def make_word() -> Callable[..., OCRWord]:
    """Factory for words: make_word("text", (x0, y0, x1, y1), confidence)."""

    def _make(text: str, box: tuple, confidence: float = 90.0) -> OCRWord:
        return {"text": text, "confidence": confidence, "bbox": _box(*box)}

    return _make


@pytest.fixture
def make_region() -> Callable[..., TextRegion]:
    """Factory for regions backed by a single word with the same box."""

    def _make(
        text: str,
        box: tuple,
        confidence: float = 90.0,
        orientation: Orientation = "horizontal",
    ) -> TextRegion:
        word: OCRWord = {"text": text, "confidence": confidence, "bbox": _box(*box)}
        return {
            "text": text,
            "confidence": confidence,
            "bbox": _box(*box),
            "orientation": orientation,
            "words": [word],
        }

    return _make


@pytest.fixture
def png_bytes() -> Callable[..., bytes]:
    """Factory for encoded PNG images of a solid color."""

    def _make(width: int = 120, height: int = 80, color: tuple = (255, 255, 255)) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", (width, height), color).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make


@pytest.fixture
def fake_recognizer() -> Callable[..., FakeRecognizer]:
    return FakeRecognizer


@pytest.fixture(autouse=True)
def _reset_recognizer():
    ocr.reset_recognizer()
    yield
    ocr.reset_recognizer()
