"""Debug overlay of detected spines on the source image."""

from __future__ import annotations

import base64
import io
import logging
from typing import Sequence, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .types import BookSpine

logger = logging.getLogger(__name__)

GOLDEN_ANGLE = 137.5
STROKE_WIDTH = 3
LABEL_WIDTH = 200
LABEL_HEIGHT = 25
LABEL_ALPHA = 0.7
LABEL_FONT_SIZE = 14
LABEL_TITLE_CHARS = 25


def spine_color(index: int) -> Tuple[int, int, int]:
    hue = (index * GOLDEN_ANGLE) % 360
    return ImageColor.getrgb(f"hsl({hue}, 70%, 50%)")[:3]


def spine_label(index: int, spine: BookSpine) -> str:
    return f"{index + 1}: {spine['title'][:LABEL_TITLE_CHARS]}"


def png_data_url(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


def render_visualization(
    image_bytes: bytes,
    spines: Sequence[BookSpine],
    width: int,
    height: int,
) -> bytes:
    """Draw numbered, color-coded spine boxes over the image resized to ``width``x``height``.

    Spine boxes are in source-image pixels and get scaled onto the canvas.
    Returns PNG bytes.
    """
    with Image.open(io.BytesIO(image_bytes)) as im:
        src_w, src_h = im.size
        canvas = im.convert("RGB").resize((width, height))
    scale_x = width / src_w
    scale_y = height / src_h

    draw = ImageDraw.Draw(canvas, "RGBA")
    font = ImageFont.load_default(size=LABEL_FONT_SIZE)
    label_alpha = round(255 * LABEL_ALPHA)
    for index, spine in enumerate(spines):
        color = spine_color(index)
        x0 = spine["bbox"]["x0"] * scale_x
        y0 = spine["bbox"]["y0"] * scale_y
        x1 = spine["bbox"]["x1"] * scale_x
        y1 = spine["bbox"]["y1"] * scale_y
        draw.rectangle((x0, y0, x1, y1), outline=color, width=STROKE_WIDTH)
        draw.rectangle(
            (x0, y0 - LABEL_HEIGHT, x0 + LABEL_WIDTH, y0),
            fill=(*color, label_alpha),
        )
        draw.text((x0 + 5, y0 - LABEL_HEIGHT + 4), spine_label(index, spine), fill="white", font=font)

    buffer = io.BytesIO()
    canvas.save(buffer, format="PNG")
    return buffer.getvalue()


def visualization_data_url(
    image_bytes: bytes,
    spines: Sequence[BookSpine],
    width: int,
    height: int,
) -> str | None:
    """Best-effort wrapper around :func:`render_visualization`; ``None`` on failure."""
    try:
        return png_data_url(render_visualization(image_bytes, spines, width, height))
    except Exception as exc:
        logger.warning("Failed to render spine visualization: %s", exc)
        return None


__all__ = [
    "spine_color",
    "spine_label",
    "png_data_url",
    "render_visualization",
    "visualization_data_url",
]
