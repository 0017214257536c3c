"""End-to-end bookshelf photo processing."""

from __future__ import annotations

import io
import logging
from typing import Callable, List, Optional, Tuple

from PIL import Image

from .grouping import group_words_into_regions
from .ocr import Recognizer, get_recognizer, synthesize_words
from .preprocess import preprocess_image
from .spines import detect_book_spines
from .types import GeometryMode, OCRWord, ScanResult
from .visualization import png_data_url, visualization_data_url

logger = logging.getLogger(__name__)

PROGRESS_START = 10.0
PROGRESS_PREPROCESSED = 30.0
PROGRESS_RECOGNIZED = 80.0
PROGRESS_WORDS = 85.0
PROGRESS_REGIONS = 90.0
PROGRESS_DONE = 100.0

ProgressReporter = Callable[[float], None]


class ProcessingError(Exception):
    """Raised when an image cannot be turned into spine detections."""


class _MonotonicProgress:
    """Forwards percentages to a callback, never reporting a smaller value."""

    def __init__(self, callback: ProgressReporter | None) -> None:
        self._callback = callback
        self._last = 0.0

    def __call__(self, percent: float) -> None:
        if self._callback is None:
            return
        percent = max(self._last, min(PROGRESS_DONE, percent))
        self._last = percent
        try:
            self._callback(percent)
        except Exception as exc:
            logger.warning("Progress callback failed at %.0f%%: %s", percent, exc)

    def scaled(self, start: float, end: float) -> Callable[[float], None]:
        def report(fraction: float) -> None:
            self(start + fraction * (end - start))

        return report


def _choose_words(words: List[OCRWord], text: str) -> Tuple[List[OCRWord], GeometryMode]:
    if words:
        return words, "engine"
    synthesized = synthesize_words(text)
    if synthesized:
        logger.info("Engine returned no word geometry; synthesized %d word boxes", len(synthesized))
    return synthesized, "synthesized"


def process_bookshelf_image(
    image_bytes: bytes,
    language_hint: str | None = "en",
    on_progress: ProgressReporter | None = None,
    *,
    recognizer: Recognizer | None = None,
    visualization_size: Optional[Tuple[int, int]] = None,
    require_row_alignment: bool = False,
) -> ScanResult:
    """Detect book spines in a bookshelf photo.

    Preprocesses the image, runs text recognition, groups words into regions
    and regions into spines, then renders a debug overlay. Progress is
    reported in percent at coarse milestones and never decreases.

    Raises:
        ProcessingError: if preprocessing or recognition fails. No partial
            results are returned.
    """
    progress = _MonotonicProgress(on_progress)
    progress(PROGRESS_START)
    engine = recognizer or get_recognizer()

    try:
        processed = preprocess_image(image_bytes)
        progress(PROGRESS_PREPROCESSED)
        recognition = engine.recognize(
            processed,
            language_hint,
            progress.scaled(PROGRESS_PREPROCESSED, PROGRESS_RECOGNIZED),
        )
    except Exception as exc:
        logger.exception("Bookshelf OCR processing failed")
        raise ProcessingError("Failed to process image") from exc

    words, geometry = _choose_words(recognition["words"], recognition["text"])
    progress(PROGRESS_WORDS)

    text_regions = group_words_into_regions(words)
    progress(PROGRESS_REGIONS)

    book_spines = detect_book_spines(text_regions, require_row_alignment=require_row_alignment)
    progress(PROGRESS_DONE)
    logger.info(
        "Detected %d spines from %d words (%s geometry, %s)",
        len(book_spines),
        len(words),
        geometry,
        getattr(engine, "name", type(engine).__name__),
    )

    if visualization_size is None:
        with Image.open(io.BytesIO(image_bytes)) as im:
            visualization_size = im.size
    width, height = visualization_size
    visualization = visualization_data_url(image_bytes, book_spines, width, height)

    return {
        "book_spines": book_spines,
        "text_regions": text_regions,
        "word_count": len(words),
        "geometry": geometry,
        "processed_image": png_data_url(processed),
        "visualization": visualization,
    }


__all__ = ["ProcessingError", "process_bookshelf_image"]
