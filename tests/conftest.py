"""Shared fixtures and stub collaborators for the test suite."""

import io
import os

import pytest
from PIL import Image

from config import ConfigurationManager
from invoice_reconciler.model_inference import AIFields, FieldExtractor
from invoice_reconciler.ocr_engine import OCRResult, VisionTextExtractor
from invoice_reconciler.reconciliation import LedgerEntry
from invoice_reconciler.utils.exceptions import VisionFallbackError


SAMPLE_INVOICE = """INVOICE
Staff: Mike Rodriguez
Property: 12 Harbor Rd
Date: 07/09/2025
Total: $150.00
Email: mike@example.com
Phone: (555) 123-4567
"""


class FakeOCREngine:
    """Returns a fixed OCR result and records what it was given."""

    def __init__(self, text="", confidence=0.0, error=None):
        self.text = text
        self.confidence = confidence
        self.error = error
        self.calls = []
        self.artifact_existed = []

    def extract_text(self, image):
        self.calls.append(image)
        if isinstance(image, str):
            self.artifact_existed.append(os.path.exists(image))
        if self.error is not None:
            raise self.error
        return OCRResult.from_text(self.text, self.confidence, engine="fake")


class FakeVision(VisionTextExtractor):
    """Vision extractor stub."""

    name = "fake-vision"

    def __init__(self, text="", is_available=True, error=None):
        self.text = text
        self.is_available = is_available
        self.error = error
        self.calls = []

    @property
    def available(self):
        return self.is_available

    def extract_text(self, image_bytes, mime_type):
        self.calls.append((image_bytes, mime_type))
        if self.error is not None:
            raise VisionFallbackError(self.name, self.error)
        return self.text


class FakeFieldExtractor(FieldExtractor):
    """AI field extractor stub."""

    name = "fake-ai"

    def __init__(self, fields=None, error=None, is_available=True):
        self.fields = fields or AIFields(backend=self.name)
        self.error = error
        self.is_available = is_available
        self.calls = []

    @property
    def available(self):
        return self.is_available

    def extract_fields(self, text, hints=None):
        self.calls.append((text, hints))
        if self.error is not None:
            raise self.error
        return self.fields


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Fresh configuration and no API credentials for every test."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("INVOICE_RECONCILER_CONFIG", raising=False)
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def png_bytes():
    image = Image.new("RGB", (120, 60), "white")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_text():
    return SAMPLE_INVOICE


@pytest.fixture
def ledger():
    return [
        LedgerEntry(staff_name="Mike Rodriguez", total_amount=150.0),
        LedgerEntry(staff_name="Emily Chen", total_amount=75.5),
    ]
