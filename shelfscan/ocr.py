"""Text recognition backends producing words with bounding boxes."""

from __future__ import annotations

import io
import logging
import os
from typing import Any, Callable, Dict, Iterable, List, Protocol, Sequence, Tuple, TypedDict

import pytesseract
from google.cloud import vision
from PIL import Image

from .types import BoundingBox, OCRWord

logger = logging.getLogger(__name__)

OCR_PROVIDER_ENV = "SHELFSCAN_OCR_PROVIDER"
DEFAULT_OCR_PROVIDER = "vision"

SYNTH_WORD_WIDTH = 50
SYNTH_LINE_HEIGHT = 30
SYNTH_CONFIDENCE = 80.0

# ISO 639-1 hints to Tesseract traineddata names.
TESSERACT_LANGUAGES: Dict[str, str] = {
    "en": "eng",
    "de": "deu",
    "es": "spa",
    "fr": "fra",
    "it": "ita",
    "ja": "jpn",
    "ko": "kor",
    "nl": "nld",
    "pt": "por",
    "ru": "rus",
    "ar": "ara",
    "pl": "pol",
    "sv": "swe",
    "zh": "chi_sim",
    "zh-cn": "chi_sim",
    "zh-hans": "chi_sim",
    "zh-tw": "chi_tra",
    "zh-hant": "chi_tra",
}

ProgressCallback = Callable[[float], None]


class RecognitionError(Exception):
    """Raised when a recognition engine reports a failure."""


class Recognition(TypedDict):
    """Engine output: per-word geometry (possibly empty) and the full text."""

    words: List[OCRWord]
    text: str


class Recognizer(Protocol):
    name: str

    def recognize(
        self,
        image_bytes: bytes,
        language_hint: str | None,
        on_progress: ProgressCallback | None = None,
    ) -> Recognition:
        ...


def _polygon_to_box(points: Sequence[Tuple[float, float]]) -> BoundingBox:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return {"x0": min(xs), "y0": min(ys), "x1": max(xs), "y1": max(ys)}


class VisionRecognizer:
    """Google Cloud Vision document text detection."""

    name = "vision"

    def __init__(self) -> None:
        self._client: Any | None = None

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = vision.ImageAnnotatorClient()
        return self._client

    def recognize(
        self,
        image_bytes: bytes,
        language_hint: str | None,
        on_progress: ProgressCallback | None = None,
    ) -> Recognition:
        if on_progress:
            on_progress(0.0)
        client = self._get_client()
        image = vision.Image(content=image_bytes)
        image_context: Any | None = None
        if language_hint:
            image_context = vision.ImageContext(language_hints=[language_hint])

        response: Any = client.document_text_detection(image=image, image_context=image_context)
        error_message = getattr(getattr(response, "error", None), "message", "")
        if error_message:
            raise RecognitionError(f"Vision OCR failed: {error_message}")

        words: List[OCRWord] = []
        annotations: Any = getattr(response, "full_text_annotation", None)
        pages: Iterable[Any] = getattr(annotations, "pages", [])
        for page in pages:
            for block in getattr(page, "blocks", []):
                for paragraph in getattr(block, "paragraphs", []):
                    for word in getattr(paragraph, "words", []):
                        symbols: Iterable[Any] = getattr(word, "symbols", [])
                        text = "".join(str(getattr(symbol, "text", "")) for symbol in symbols)
                        vertices: Iterable[Any] = getattr(getattr(word, "bounding_box", None), "vertices", [])
                        points = [
                            (float(getattr(vertex, "x", 0)), float(getattr(vertex, "y", 0)))
                            for vertex in vertices
                        ]
                        if not text or not points:
                            continue
                        confidence = float(getattr(word, "confidence", 0.0)) * 100.0
                        words.append({"text": text, "confidence": confidence, "bbox": _polygon_to_box(points)})

        if on_progress:
            on_progress(1.0)
        full_text = str(getattr(annotations, "text", "") or "")
        return {"words": words, "text": full_text}


class TesseractRecognizer:
    """Local Tesseract engine through pytesseract."""

    name = "tesseract"

    def __init__(self, config: str = "") -> None:
        self._config = config

    @staticmethod
    def _language(language_hint: str | None) -> str:
        if not language_hint:
            return "eng"
        hint = language_hint.lower().strip()
        mapped = TESSERACT_LANGUAGES.get(hint.replace("_", "-"))
        if mapped:
            return mapped
        if hint not in TESSERACT_LANGUAGES.values():
            logger.warning("No Tesseract language mapped for hint '%s'; passing it through", hint)
        return hint

    def recognize(
        self,
        image_bytes: bytes,
        language_hint: str | None,
        on_progress: ProgressCallback | None = None,
    ) -> Recognition:
        if on_progress:
            on_progress(0.0)
        with Image.open(io.BytesIO(image_bytes)) as im:
            data: Dict[str, List[Any]] = pytesseract.image_to_data(
                im.convert("RGB"),
                lang=self._language(language_hint),
                config=self._config,
                output_type=pytesseract.Output.DICT,
            )

        words: List[OCRWord] = []
        lines: Dict[Tuple[int, int, int], List[str]] = {}
        for idx, raw_text in enumerate(data.get("text", [])):
            text = str(raw_text).strip()
            confidence = float(data["conf"][idx])
            if not text or confidence < 0:
                continue
            left = float(data["left"][idx])
            top = float(data["top"][idx])
            box: BoundingBox = {
                "x0": left,
                "y0": top,
                "x1": left + float(data["width"][idx]),
                "y1": top + float(data["height"][idx]),
            }
            words.append({"text": text, "confidence": confidence, "bbox": box})
            line_key = (int(data["block_num"][idx]), int(data["par_num"][idx]), int(data["line_num"][idx]))
            lines.setdefault(line_key, []).append(text)

        if on_progress:
            on_progress(1.0)
        full_text = "\n".join(" ".join(tokens) for tokens in lines.values())
        return {"words": words, "text": full_text}


def synthesize_words(text: str) -> List[OCRWord]:
    """Lay recognized text out on a fixed grid when no word geometry exists.

    Each non-empty line becomes a row ``SYNTH_LINE_HEIGHT`` tall and each
    token a ``SYNTH_WORD_WIDTH`` wide cell. One-character tokens are skipped.
    """
    words: List[OCRWord] = []
    lines = [line for line in text.split("\n") if line.strip()]
    for line_idx, line in enumerate(lines):
        for token_idx, token in enumerate(line.split()):
            if len(token) <= 1:
                continue
            words.append(
                {
                    "text": token,
                    "confidence": SYNTH_CONFIDENCE,
                    "bbox": {
                        "x0": float(token_idx * SYNTH_WORD_WIDTH),
                        "y0": float(line_idx * SYNTH_LINE_HEIGHT),
                        "x1": float((token_idx + 1) * SYNTH_WORD_WIDTH),
                        "y1": float((line_idx + 1) * SYNTH_LINE_HEIGHT),
                    },
                }
            )
    return words


_recognizer_instance: Recognizer | None = None


def get_recognizer() -> Recognizer:
    global _recognizer_instance
    if _recognizer_instance is not None:
        return _recognizer_instance

    provider = os.environ.get(OCR_PROVIDER_ENV, DEFAULT_OCR_PROVIDER).lower().strip()
    recognizer: Recognizer
    if provider == "tesseract":
        recognizer = TesseractRecognizer()
    elif provider == "vision":
        recognizer = VisionRecognizer()
    else:
        logger.warning("Unknown OCR provider '%s'; defaulting to Google Vision", provider)
        recognizer = VisionRecognizer()

    _recognizer_instance = recognizer
    return recognizer


def reset_recognizer() -> None:
    """Forget the cached provider so the next call re-reads the environment."""
    global _recognizer_instance
    _recognizer_instance = None


__all__ = [
    "RecognitionError",
    "Recognition",
    "Recognizer",
    "ProgressCallback",
    "VisionRecognizer",
    "TesseractRecognizer",
    "synthesize_words",
    "get_recognizer",
    "reset_recognizer",
]
