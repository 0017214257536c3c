"""Tests for recognition backends and synthesized word geometry."""

from types import SimpleNamespace

import pytest

from shelfscan import ocr
from shelfscan.ocr import (
    RecognitionError,
    TesseractRecognizer,
    VisionRecognizer,
    get_recognizer,
    synthesize_words,
)


def _vertex(x, y):
    return SimpleNamespace(x=x, y=y)


def _vision_word(text, vertices, confidence):
    return SimpleNamespace(
        symbols=[SimpleNamespace(text=ch) for ch in text],
        bounding_box=SimpleNamespace(vertices=[_vertex(x, y) for x, y in vertices]),
        confidence=confidence,
    )


class _FakeVisionClient:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def document_text_detection(self, image, image_context=None):
        self.requests.append((image, image_context))
        return self.response


class TestSynthesizeWords:
    def test_grid_layout(self):
        words = synthesize_words("Harry Potter\n\nThe Hobbit")

        assert [w["text"] for w in words] == ["Harry", "Potter", "The", "Hobbit"]
        assert words[1]["bbox"] == {"x0": 50.0, "y0": 0.0, "x1": 100.0, "y1": 30.0}
        assert words[3]["bbox"] == {"x0": 50.0, "y0": 30.0, "x1": 100.0, "y1": 60.0}
        assert all(w["confidence"] == ocr.SYNTH_CONFIDENCE for w in words)

    def test_short_tokens_keep_their_cell(self):
        words = synthesize_words("A Tale")

        assert [w["text"] for w in words] == ["Tale"]
        assert words[0]["bbox"]["x0"] == 50.0

    def test_blank_text(self):
        assert synthesize_words("  \n\n ") == []


class TestVisionRecognizer:
    def test_reads_word_boxes_and_scales_confidence(self):
        word = _vision_word("Dune", [(10, 20), (60, 18), (62, 40), (9, 42)], 0.93)
        response = SimpleNamespace(
            error=SimpleNamespace(message=""),
            full_text_annotation=SimpleNamespace(
                text="Dune\n",
                pages=[SimpleNamespace(blocks=[SimpleNamespace(paragraphs=[SimpleNamespace(words=[word])])])],
            ),
        )
        recognizer = VisionRecognizer()
        client = _FakeVisionClient(response)
        recognizer._client = client
        progress = []

        result = recognizer.recognize(b"img", "en", progress.append)

        assert result["text"] == "Dune\n"
        assert result["words"] == [
            {
                "text": "Dune",
                "confidence": pytest.approx(93.0),
                "bbox": {"x0": 9.0, "y0": 18.0, "x1": 62.0, "y1": 42.0},
            }
        ]
        assert progress == [0.0, 1.0]
        assert len(client.requests) == 1

    def test_error_response_raises(self):
        response = SimpleNamespace(error=SimpleNamespace(message="quota exceeded"), full_text_annotation=None)
        recognizer = VisionRecognizer()
        recognizer._client = _FakeVisionClient(response)

        with pytest.raises(RecognitionError, match="quota exceeded"):
            recognizer.recognize(b"img", None)


class TestTesseractRecognizer:
    def test_parses_image_to_data(self, monkeypatch, png_bytes):
        captured = {}

        def fake_image_to_data(image, lang, config, output_type):
            captured["lang"] = lang
            return {
                "text": ["", "Dune", "Frank", "  ", "Herbert"],
                "conf": [-1, 91.5, "88", -1, 75],
                "left": [0, 10, 10, 0, 70],
                "top": [0, 5, 40, 0, 40],
                "width": [100, 50, 55, 0, 70],
                "height": [100, 20, 20, 0, 20],
                "block_num": [0, 1, 1, 1, 1],
                "par_num": [0, 1, 1, 1, 1],
                "line_num": [0, 1, 2, 2, 2],
            }

        monkeypatch.setattr(ocr.pytesseract, "image_to_data", fake_image_to_data)

        result = TesseractRecognizer().recognize(png_bytes(), "en")

        assert captured["lang"] == "eng"
        assert [w["text"] for w in result["words"]] == ["Dune", "Frank", "Herbert"]
        assert result["words"][1]["confidence"] == 88.0
        assert result["words"][2]["bbox"] == {"x0": 70.0, "y0": 40.0, "x1": 140.0, "y1": 60.0}
        assert result["text"] == "Dune\nFrank Herbert"

    @pytest.mark.parametrize(
        "hint, expected",
        [
            (None, "eng"),
            ("de", "deu"),
            ("FR ", "fra"),
            ("zh", "chi_sim"),
            ("zh_TW", "chi_tra"),
            ("chi_sim", "chi_sim"),
        ],
    )
    def test_language_mapping(self, hint, expected):
        assert TesseractRecognizer._language(hint) == expected

    def test_unmapped_hint_is_logged(self, caplog):
        with caplog.at_level("WARNING"):
            assert TesseractRecognizer._language("xx") == "xx"
        assert "xx" in caplog.text

    def test_known_tesseract_code_is_not_logged(self, caplog):
        with caplog.at_level("WARNING"):
            TesseractRecognizer._language("chi_sim")
        assert caplog.text == ""


class TestGetRecognizer:
    def test_default_is_vision(self, monkeypatch):
        monkeypatch.delenv(ocr.OCR_PROVIDER_ENV, raising=False)
        assert isinstance(get_recognizer(), VisionRecognizer)

    def test_tesseract_selected_by_env(self, monkeypatch):
        monkeypatch.setenv(ocr.OCR_PROVIDER_ENV, "Tesseract")
        recognizer = get_recognizer()

        assert isinstance(recognizer, TesseractRecognizer)
        assert get_recognizer() is recognizer

    def test_unknown_provider_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv(ocr.OCR_PROVIDER_ENV, "abbyy")
        with caplog.at_level("WARNING"):
            assert isinstance(get_recognizer(), VisionRecognizer)
        assert "abbyy" in caplog.text
