"""Tests for the spine overlay renderer."""

import io

from PIL import Image

from shelfscan import visualization
from shelfscan.visualization import (
    render_visualization,
    spine_color,
    spine_label,
    visualization_data_url,
)


def _spine(title, box):
    x0, y0, x1, y1 = box
    return {
        "title": title,
        "confidence": 90.0,
        "bbox": {"x0": x0, "y0": y0, "x1": x1, "y1": y1},
        "orientation": "vertical",
        "text_regions": [],
    }


class TestLabels:
    def test_colors_cycle_by_golden_angle(self):
        colors = [spine_color(i) for i in range(10)]

        assert len(set(colors)) == 10
        red, green, blue = colors[0]
        assert red > green and green == blue

    def test_label_numbering_and_truncation(self):
        spine = _spine("A Very Long Book Title That Keeps Going", (0, 0, 1, 1))

        assert spine_label(2, spine) == "3: A Very Long Book Title Th"


class TestRenderVisualization:
    def test_scales_image_and_boxes(self, png_bytes):
        spines = [_spine("Dune", (10, 40, 50, 90))]

        out = render_visualization(png_bytes(100, 100), spines, 200, 200)

        with Image.open(io.BytesIO(out)) as im:
            assert im.size == (200, 200)
            canvas = im.convert("RGB")
            assert canvas.getpixel((20, 130)) == spine_color(0)
            assert canvas.getpixel((150, 20)) == (255, 255, 255)

    def test_no_spines_returns_resized_image(self, png_bytes):
        out = render_visualization(png_bytes(30, 20, (10, 20, 30)), [], 60, 40)

        with Image.open(io.BytesIO(out)) as im:
            assert im.size == (60, 40)
            pixel = im.convert("RGB").getpixel((30, 20))
            assert all(abs(a - b) <= 1 for a, b in zip(pixel, (10, 20, 30)))


class TestVisualizationDataUrl:
    def test_encodes_png_data_url(self, png_bytes):
        url = visualization_data_url(png_bytes(), [_spine("Dune", (1, 30, 20, 60))], 120, 80)

        assert url is not None
        assert url.startswith("data:image/png;base64,")

    def test_undecodable_image_yields_none(self):
        assert visualization_data_url(b"broken", [], 10, 10) is None

    def test_render_errors_are_contained(self, monkeypatch, png_bytes):
        def explode(*args, **kwargs):
            raise ValueError("bad canvas")

        monkeypatch.setattr(visualization, "render_visualization", explode)

        assert visualization_data_url(png_bytes(), [], 10, 10) is None

    def test_non_io_render_errors_are_contained(self, monkeypatch, png_bytes):
        def out_of_memory(*args, **kwargs):
            raise MemoryError("canvas too large")

        monkeypatch.setattr(visualization, "render_visualization", out_of_memory)

        assert visualization_data_url(png_bytes(), [], 60000, 60000) is None
