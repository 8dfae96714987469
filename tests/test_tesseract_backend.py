"""Tests for the Tesseract backend with pytesseract stubbed out."""

import pytest
import pytesseract
from PIL import Image

from invoice_reconciler.ocr_engine import OCREngine, TesseractBackend
from invoice_reconciler.utils.exceptions import (
    OCREngineNotAvailableError,
    OCRProcessingError,
)

TESSERACT_DATA = {
    'text': ['', 'Staff:', 'Mike', 'Total:', '$150.00', '  '],
    'conf': ['-1', '90', '80', '70', '60', '-1'],
    'block_num': [0, 1, 1, 2, 2, 2],
    'par_num': [0, 1, 1, 1, 1, 1],
    'line_num': [0, 1, 1, 1, 1, 1],
}


@pytest.fixture
def backend(monkeypatch):
    monkeypatch.setattr(pytesseract, "get_tesseract_version", lambda: "5.3.0")
    return TesseractBackend()


def test_words_grouped_into_lines(backend, monkeypatch):
    captured = {}

    def fake_image_to_data(image, lang, config, output_type):
        captured.update(lang=lang, config=config)
        return TESSERACT_DATA

    monkeypatch.setattr(pytesseract, "image_to_data", fake_image_to_data)
    result = backend.extract(Image.new("RGB", (10, 10)))

    assert result.text == "Staff: Mike\nTotal: $150.00"
    assert result.confidence == 75.0
    assert result.word_count == 4
    assert captured["lang"] == "eng"
    assert captured["config"].startswith("--psm 3 --oem 3")


def test_engine_accepts_paths(backend, monkeypatch, tmp_path):
    seen = []

    def fake_image_to_data(image, lang, config, output_type):
        seen.append(image)
        return TESSERACT_DATA

    monkeypatch.setattr(pytesseract, "image_to_data", fake_image_to_data)
    path = tmp_path / "scan.png"

    OCREngine(backend=backend).extract_text(path)
    assert seen == [str(path)]


def test_engine_rejects_other_inputs(backend):
    with pytest.raises(OCRProcessingError):
        OCREngine(backend=backend).extract_text(b"bytes")


def test_tesseract_failure(backend, monkeypatch):
    def broken(*args, **kwargs):
        raise pytesseract.TesseractError(1, "bad image")

    monkeypatch.setattr(pytesseract, "image_to_data", broken)
    with pytest.raises(OCRProcessingError):
        backend.extract(Image.new("RGB", (10, 10)))


def test_missing_tesseract(monkeypatch):
    def not_found():
        raise pytesseract.TesseractNotFoundError()

    monkeypatch.setattr(pytesseract, "get_tesseract_version", not_found)
    backend = TesseractBackend()

    with pytest.raises(OCREngineNotAvailableError):
        backend.extract(Image.new("RGB", (10, 10)))
