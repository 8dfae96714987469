"""Tests for the OCR escalation controller."""

import pytest
from PIL import Image

from invoice_reconciler.ocr_engine import (
    Accepted,
    Escalate,
    EscalationState,
    ExtractionMethod,
    OCREscalationController,
    OCRResult,
    decide_escalation,
)
from invoice_reconciler.utils.exceptions import OCRProcessingError

from conftest import FakeOCREngine, FakeVision


def make_controller(engine, vision):
    return OCREscalationController(engine=engine, vision=vision)


@pytest.mark.parametrize("confidence, accepted", [
    (59.9, False),
    (60.0, True),
    (88.0, True),
])
def test_threshold_boundary(confidence, accepted):
    decision = decide_escalation(OCRResult.from_text("text", confidence))
    assert isinstance(decision, Accepted) is accepted
    if not accepted:
        assert isinstance(decision, Escalate)


def test_confident_local_ocr_is_accepted(png_bytes):
    engine = FakeOCREngine("Total: $150.00", 82.0)
    vision = FakeVision("should not be used")

    outcome = make_controller(engine, vision).run(png_bytes, "image/png")

    assert outcome.method == ExtractionMethod.LOCAL_OCR
    assert outcome.confidence == 82.0
    assert outcome.text == "Total: $150.00"
    assert vision.calls == []
    assert outcome.states == [
        EscalationState.PREPROCESS,
        EscalationState.LOCAL_OCR,
        EscalationState.ACCEPT,
        EscalationState.DONE,
    ]


def test_low_confidence_escalates_with_original_bytes(png_bytes):
    engine = FakeOCREngine("T0ta1 $15O", 40.0)
    vision = FakeVision("Total: $150.00")

    outcome = make_controller(engine, vision).run(png_bytes, "image/png")

    assert outcome.method == ExtractionMethod.VISION_FALLBACK
    assert outcome.confidence == 95.0
    assert outcome.local_confidence == 40.0
    assert outcome.text == "Total: $150.00"
    assert outcome.escalated
    assert vision.calls == [(png_bytes, "image/png")]


def test_vision_error_keeps_degraded_local_result(png_bytes):
    engine = FakeOCREngine("T0ta1 $15O", 40.0)
    vision = FakeVision(error="rate limited")

    outcome = make_controller(engine, vision).run(png_bytes, "image/png")

    assert outcome.method == ExtractionMethod.LOCAL_OCR_DEGRADED
    assert outcome.text == "T0ta1 $15O"
    assert outcome.confidence == 40.0
    assert "rate limited" in outcome.vision_error


def test_unavailable_vision_is_not_called(png_bytes):
    engine = FakeOCREngine("faint", 10.0)
    vision = FakeVision("unused", is_available=False)

    outcome = make_controller(engine, vision).run(png_bytes, "image/png")

    assert outcome.method == ExtractionMethod.LOCAL_OCR_DEGRADED
    assert vision.calls == []
    assert outcome.vision_error == "vision extractor unavailable"


def test_empty_vision_text_is_degraded(png_bytes):
    engine = FakeOCREngine("faint", 10.0)
    outcome = make_controller(engine, FakeVision("   ")).run(png_bytes, "image/png")
    assert outcome.method == ExtractionMethod.LOCAL_OCR_DEGRADED


def test_local_failure_escalates(png_bytes):
    engine = FakeOCREngine(error=OCRProcessingError("scan.png", "tesseract crashed"))
    vision = FakeVision("Total: $150.00")

    outcome = make_controller(engine, vision).run(png_bytes, "image/png")

    assert outcome.method == ExtractionMethod.VISION_FALLBACK
    assert outcome.local_confidence == 0.0
    assert outcome.reason.startswith("local OCR failed")


def test_undecodable_image_escalates():
    engine = FakeOCREngine("unused", 99.0)
    vision = FakeVision("Total: $150.00")

    outcome = make_controller(engine, vision).run(b"not an image", "image/jpeg")

    assert outcome.method == ExtractionMethod.VISION_FALLBACK
    assert engine.calls == []


def test_artifact_exists_during_ocr_only(png_bytes):
    import os

    engine = FakeOCREngine("Total: $150.00", 90.0)
    make_controller(engine, FakeVision()).run(png_bytes, "image/png")

    assert engine.artifact_existed == [True]
    assert not os.path.exists(engine.calls[0])


def test_pages_merge_to_weakest_method():
    pages = [Image.new("RGB", (100, 100), "white") for _ in range(2)]
    engine = FakeOCREngine("page text", 30.0)
    vision = FakeVision(error="down")

    outcome = make_controller(engine, vision).run_pages(pages)

    assert outcome.method == ExtractionMethod.LOCAL_OCR_DEGRADED
    assert outcome.text == "page text\n\npage text"
    assert outcome.confidence == 30.0
    assert len(engine.calls) == 2


def test_pages_all_accepted():
    pages = [Image.new("RGB", (100, 100), "white") for _ in range(3)]
    engine = FakeOCREngine("ok", 75.0)

    outcome = make_controller(engine, FakeVision()).run_pages(pages)

    assert outcome.method == ExtractionMethod.LOCAL_OCR
    assert outcome.confidence == 75.0


def test_no_pages():
    outcome = make_controller(FakeOCREngine(), FakeVision()).run_pages([])
    assert outcome.method == ExtractionMethod.LOCAL_OCR_DEGRADED
    assert outcome.text == ""


def test_outcome_to_dict_records_the_trail(png_bytes):
    engine = FakeOCREngine("T0ta1 $15O", 40.0)
    outcome = make_controller(engine, FakeVision("Total: $150.00")).run(png_bytes, "image/png")

    data = outcome.to_dict()
    assert data['method'] == "vision_fallback"
    assert data['local_confidence'] == 40.0
    assert data['states'][-1] == EscalationState.DONE.value
    assert EscalationState.VISION_FALLBACK.value in data['states']
