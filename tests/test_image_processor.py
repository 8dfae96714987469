"""Tests for image preprocessing profiles and graceful degradation."""

import io
import os

import pytest
from PIL import Image

from invoice_reconciler.input_handler import ImagePreprocessor
from invoice_reconciler.input_handler.image_processor import load_profile, open_image
from invoice_reconciler.utils.exceptions import CorruptedDocumentError


@pytest.fixture
def preprocessor():
    return ImagePreprocessor()


def test_profiles_differ(preprocessor):
    printed = preprocessor.profile_for(False)
    handwritten = preprocessor.profile_for(True)

    assert printed.name == "printed"
    assert handwritten.name == "handwritten"
    assert handwritten.threshold < printed.threshold
    assert handwritten.upscale_below > printed.upscale_below
    assert handwritten.boosts_contrast
    assert not printed.boosts_contrast


def test_small_scans_are_upscaled_and_binarized(preprocessor, png_bytes):
    processed = preprocessor.preprocess(png_bytes)

    assert processed.mode == "L"
    assert min(processed.size) >= preprocessor.profile_for(False).target_min_dimension
    assert set(processed.getdata()) <= {0, 255}


def test_large_scans_keep_their_size(preprocessor):
    image = Image.new("RGB", (1200, 1100), "white")
    assert preprocessor.preprocess(image).size == (1200, 1100)


def test_failure_returns_original_image(preprocessor, monkeypatch):
    image = Image.new("RGB", (50, 50), "white")

    def broken(img, profile):
        raise OSError("filter failed")

    monkeypatch.setattr(preprocessor, "_apply_profile", broken)
    assert preprocessor.preprocess(image) is image


def test_undecodable_bytes_raise():
    with pytest.raises(CorruptedDocumentError):
        open_image(b"definitely not an image")


def test_transparency_is_flattened_to_white():
    image = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")

    opened = open_image(buffer.getvalue())
    assert opened.mode == "RGB"
    assert opened.getpixel((5, 5)) == (255, 255, 255)


def test_artifact_removed_after_use(preprocessor, png_bytes):
    with preprocessor.preprocessed_artifact(png_bytes) as path:
        assert os.path.exists(path)
    assert not os.path.exists(path)


def test_artifact_removed_on_error(preprocessor, png_bytes):
    with pytest.raises(RuntimeError):
        with preprocessor.preprocessed_artifact(png_bytes) as path:
            raise RuntimeError("boom")
    assert not os.path.exists(path)


def test_profile_overrides_from_config(tmp_path):
    from config import ConfigurationManager

    settings = tmp_path / "settings.yaml"
    settings.write_text("preprocessing:\n  printed:\n    threshold: 150\n", encoding="utf-8")
    ConfigurationManager(str(settings))

    profile = load_profile("printed")
    assert profile.threshold == 150
    assert profile.upscale_below == 1000


def test_unexpected_failure_returns_original_image(preprocessor, monkeypatch):
    image = Image.new("RGB", (50, 50), "white")

    def broken(img, profile):
        raise RuntimeError("unexpected filter error")

    monkeypatch.setattr(preprocessor, "_apply_profile", broken)
    assert preprocessor.preprocess(image) is image
