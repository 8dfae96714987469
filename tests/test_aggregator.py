"""Tests for the extraction aggregator."""

import json
from types import SimpleNamespace

from invoice_reconciler.model_inference import (
    AIFields,
    ExtractionAggregator,
    NullFieldExtractor,
    OpenAIFieldExtractor,
)
from invoice_reconciler.ocr_engine import ExtractionMethod
from invoice_reconciler.utils.exceptions import InferenceError

from conftest import FakeFieldExtractor


def aggregate(text, field_extractor=None, method=ExtractionMethod.DIRECT_TEXT, confidence=100.0):
    aggregator = ExtractionAggregator(field_extractor=field_extractor or NullFieldExtractor())
    return aggregator.aggregate(text, confidence, method, source_file="invoice.txt")


def test_pattern_only_extraction(sample_text):
    result = aggregate(sample_text)

    assert result.staff_name == "Mike Rodriguez"
    assert result.total_amount == 150.0
    assert result.date == "2025-09-07"
    assert result.property_name == "12 Harbor Rd"
    assert [c.value for c in result.emails] == ["mike@example.com"]
    assert [c.value for c in result.phones] == ["(555) 123-4567"]
    assert not result.ai_used
    assert result.warnings == []
    assert result.missing_fields == []


def test_provenance_is_kept(sample_text):
    result = aggregate(sample_text, method=ExtractionMethod.LOCAL_OCR, confidence=72.5)

    assert result.source_confidence == 72.5
    assert result.extraction_method == ExtractionMethod.LOCAL_OCR
    assert result.raw_text == sample_text
    assert result.source_file == "invoice.txt"


def test_amounts_read_from_corrected_text():
    result = aggregate("Total: $15O.00")
    assert result.total_amount == 150.0
    assert "$150.00" in result.corrected_text
    assert "$15O.00" in result.raw_text


def test_empty_text_warns():
    result = aggregate("")
    assert result.missing_fields == ['staff_name', 'total_amount', 'date', 'property_name']
    assert "No text could be extracted from the document" in result.warnings


def test_degraded_source_warns(sample_text):
    result = aggregate(sample_text, method=ExtractionMethod.LOCAL_OCR_DEGRADED, confidence=35.0)
    assert "Text came from low-confidence local OCR (35%)" in result.warnings


def test_ai_values_are_preferred(sample_text):
    ai = FakeFieldExtractor(AIFields(
        staff_name="Michael Rodriguez",
        total_amount=150.0,
        backend="fake-ai",
    ))

    result = aggregate(sample_text, field_extractor=ai)

    assert result.ai_used
    assert result.staff_name == "Michael Rodriguez"
    assert result.total_amount == 150.0
    assert result.ai_fields['backend'] == "fake-ai"
    assert result.warnings == [
        "AI and pattern extraction disagree on staff_name: "
        "'Michael Rodriguez' (AI) vs 'Mike Rodriguez' (pattern)"
    ]


def test_ai_receives_corrected_text_and_hints(sample_text):
    ai = FakeFieldExtractor()
    aggregate(sample_text, field_extractor=ai)

    text, hints = ai.calls[0]
    assert "Total: $150.00" in text
    assert hints['staff_name'] == "Mike Rodriguez"


def test_ai_fills_missing_fields_silently():
    ai = FakeFieldExtractor(AIFields(staff_name="Emily Chen", backend="fake-ai"))
    result = aggregate("Total: $75.50", field_extractor=ai)

    assert result.staff_name == "Emily Chen"
    assert result.warnings == []


def test_ai_failure_falls_back_to_patterns(sample_text):
    ai = FakeFieldExtractor(error=InferenceError("timeout"))
    result = aggregate(sample_text, field_extractor=ai)

    assert not result.ai_used
    assert result.staff_name == "Mike Rodriguez"
    assert "AI field extraction failed: Model inference failed" in result.warnings


def test_unavailable_ai_is_skipped(sample_text):
    ai = FakeFieldExtractor(is_available=False)
    result = aggregate(sample_text, field_extractor=ai)

    assert ai.calls == []
    assert "AI backend 'fake-ai' unavailable" in result.warnings


def test_ai_not_called_for_empty_text():
    ai = FakeFieldExtractor()
    aggregate("   ", field_extractor=ai)
    assert ai.calls == []


def test_result_serializes(sample_text):
    data = aggregate(sample_text).to_dict()
    assert data['extraction_method'] == "direct_text"
    assert data['amounts'][0]['amount'] == 150.0
    assert data['staff_name'] == "Mike Rodriguez"


def test_unusable_ai_answers_keep_pattern_values(sample_text):
    completions = SimpleNamespace(requests=[])

    def create(**kwargs):
        completions.requests.append(kwargs)
        message = SimpleNamespace(content=json.dumps({"date": "7", "totalAmount": 0}))
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    completions.create = create
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))

    result = aggregate(sample_text, field_extractor=OpenAIFieldExtractor(client=client))

    assert result.ai_used
    assert result.date == "2025-09-07"
    assert result.total_amount == 150.0
    assert not any("disagree" in w for w in result.warnings)
