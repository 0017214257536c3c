"""Image preprocessing applied before text recognition."""

from __future__ import annotations

import io

import numpy as np
from PIL import Image

LUMA_WEIGHTS = (0.299, 0.587, 0.114)
CONTRAST_PIVOT = 128
BRIGHT_GAIN = 1.2
DARK_GAIN = 0.8


def enhance_pixels(width: int, height: int, rgba: bytes) -> bytes:
    """Convert an RGBA buffer to high-contrast grayscale.

    Luma above the pivot is brightened, the rest darkened. Alpha is copied
    through untouched.
    """
    expected = width * height * 4
    if width < 0 or height < 0 or len(rgba) != expected:
        raise ValueError(f"Expected {expected} RGBA bytes for {width}x{height}, got {len(rgba)}")

    pixels = np.frombuffer(rgba, dtype=np.uint8).reshape(-1, 4)
    rgb = pixels[:, :3].astype(np.float64)
    # half-up for luma, half-to-even for the final channel value
    gray = np.floor(rgb @ np.asarray(LUMA_WEIGHTS) + 0.5)
    enhanced = np.where(
        gray > CONTRAST_PIVOT,
        np.minimum(255.0, gray * BRIGHT_GAIN),
        np.maximum(0.0, gray * DARK_GAIN),
    )
    out = pixels.copy()
    out[:, :3] = np.clip(np.rint(enhanced), 0, 255).astype(np.uint8)[:, None]
    return out.tobytes()


def preprocess_image(image_bytes: bytes) -> bytes:
    """Decode ``image_bytes``, enhance it and return it as PNG."""
    with Image.open(io.BytesIO(image_bytes)) as im:
        rgba = im.convert("RGBA")
    width, height = rgba.size
    enhanced = enhance_pixels(width, height, rgba.tobytes())
    out = Image.frombytes("RGBA", (width, height), enhanced)
    buffer = io.BytesIO()
    out.save(buffer, format="PNG")
    return buffer.getvalue()


__all__ = ["enhance_pixels", "preprocess_image"]
