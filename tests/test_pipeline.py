"""End-to-end pipeline tests with stubbed OCR and vision."""

import pytest
from PIL import Image

from invoice_reconciler.input_handler import RawDocument
from invoice_reconciler.input_handler.text_readers import PDFContent
from invoice_reconciler.model_inference import ExtractionAggregator, NullFieldExtractor
from invoice_reconciler.ocr_engine import ExtractionMethod, OCREscalationController
from invoice_reconciler.pipeline import InvoicePipeline
from invoice_reconciler.reconciliation import LedgerEntry, MatchStatus
from invoice_reconciler.utils.exceptions import EmptyDocumentError, OCREngineNotAvailableError

from conftest import SAMPLE_INVOICE, FakeOCREngine, FakeVision


class FakePDFReader:
    """Scanned PDF with two pages."""

    def __init__(self, embedded="", scanned=True, render_error=None):
        self.embedded = embedded
        self.scanned = scanned
        self.render_error = render_error

    def read(self, document):
        return PDFContent(text=self.embedded, page_count=2, is_scanned=self.scanned)

    def render_pages(self, document):
        if self.render_error is not None:
            raise self.render_error
        return [Image.new("RGB", (100, 100), "white") for _ in range(2)]


def make_pipeline(engine=None, vision=None, pdf_reader=None):
    escalation = OCREscalationController(
        engine=engine or FakeOCREngine("", 0.0),
        vision=vision or FakeVision(is_available=False),
    )
    return InvoicePipeline(
        escalation=escalation,
        aggregator=ExtractionAggregator(field_extractor=NullFieldExtractor()),
        pdf_reader=pdf_reader,
    )


def text_document(text=SAMPLE_INVOICE, filename="invoice.txt"):
    return RawDocument(text.encode("utf-8"), "text/plain", filename=filename)


def test_text_document_full_match(ledger):
    result = make_pipeline().process(text_document(), ledger)

    assert result.succeeded
    assert result.extraction.extraction_method == ExtractionMethod.DIRECT_TEXT
    assert result.extraction.source_confidence == 100.0
    assert result.verdict.status == MatchStatus.FULL_MATCH
    assert result.verdict.matched_staff_name == "Mike Rodriguez"


def test_low_confidence_image_uses_vision(ledger, png_bytes):
    pipeline = make_pipeline(
        engine=FakeOCREngine("St4ff: M1ke", 35.0),
        vision=FakeVision(SAMPLE_INVOICE),
    )
    document = RawDocument(png_bytes, "image/png", filename="scan.png")

    result = pipeline.process(document, ledger)

    assert result.extraction.extraction_method == ExtractionMethod.VISION_FALLBACK
    assert result.extraction.source_confidence == 95.0
    assert result.verdict.status == MatchStatus.FULL_MATCH


def test_degraded_image_carries_warnings(ledger, png_bytes):
    pipeline = make_pipeline(engine=FakeOCREngine("Total: $75.50", 40.0))
    result = pipeline.process(RawDocument(png_bytes, "image/png"), ledger)

    extraction = result.extraction
    assert extraction.extraction_method == ExtractionMethod.LOCAL_OCR_DEGRADED
    assert "Vision fallback unavailable: vision extractor unavailable" in extraction.warnings
    assert result.verdict.status == MatchStatus.PARTIAL_MATCH
    assert result.verdict.matched_staff_name == "Emily Chen"


def test_digital_pdf_uses_embedded_text(ledger):
    pipeline = make_pipeline(pdf_reader=FakePDFReader(embedded=SAMPLE_INVOICE, scanned=False))
    result = pipeline.process(RawDocument(b"%PDF-", "application/pdf"), ledger)

    assert result.extraction.extraction_method == ExtractionMethod.DIRECT_TEXT
    assert result.verdict.status == MatchStatus.FULL_MATCH


def test_scanned_pdf_pages_are_escalated(ledger):
    engine = FakeOCREngine(SAMPLE_INVOICE, 80.0)
    pipeline = make_pipeline(engine=engine, pdf_reader=FakePDFReader())

    result = pipeline.process(RawDocument(b"%PDF-", "application/pdf"), ledger)

    assert len(engine.calls) == 2
    assert result.extraction.extraction_method == ExtractionMethod.LOCAL_OCR
    assert result.extraction.source_confidence == 80.0


def test_unrenderable_scanned_pdf_is_degraded(ledger):
    pdf_reader = FakePDFReader(embedded="Total", render_error=OCREngineNotAvailableError("poppler"))
    result = make_pipeline(pdf_reader=pdf_reader).process(
        RawDocument(b"%PDF-", "application/pdf"), ledger
    )

    assert result.succeeded
    assert result.extraction.extraction_method == ExtractionMethod.LOCAL_OCR_DEGRADED
    assert any("could not be rendered" in w for w in result.extraction.warnings)


def test_extract_validates_document():
    with pytest.raises(EmptyDocumentError):
        make_pipeline().extract(RawDocument(b"", "text/plain"))


def test_batch_isolates_failures_and_keeps_order(ledger):
    documents = [
        text_document(filename="first.txt"),
        RawDocument(b"not a pdf", "application/pdf", filename="broken.pdf"),
        text_document("Total: $75.50", filename="third.txt"),
    ]

    results = make_pipeline().process_batch(documents, ledger, max_workers=3)

    assert [r.source_file for r in results] == ["first.txt", "broken.pdf", "third.txt"]
    assert results[0].verdict.status == MatchStatus.FULL_MATCH
    assert not results[1].succeeded
    assert results[1].verdict.status == MatchStatus.NO_MATCH
    assert results[1].verdict.details.startswith("Processing failed")
    assert results[2].verdict.status == MatchStatus.PARTIAL_MATCH


def test_empty_batch():
    assert make_pipeline().process_batch([], []) == []


def test_result_serialization(ledger):
    data = make_pipeline().process(text_document(), ledger).to_dict()
    assert data['file'] == "invoice.txt"
    assert data['verdict']['status'] == "full_match"
    assert 'error' not in data


def test_hyphenated_name_matches_the_right_ledger_entry():
    ledger = [
        LedgerEntry(staff_name="Anne Smith", total_amount=150.0),
        LedgerEntry(staff_name="Anne-Marie Dupont", total_amount=150.0),
    ]
    document = text_document("Contractor: Anne-Marie Dupont\nTotal: $150.00")

    result = make_pipeline().process(document, ledger)

    assert result.extraction.staff_name == "Anne-Marie Dupont"
    assert result.verdict.status == MatchStatus.FULL_MATCH
    assert result.verdict.matched_staff_name == "Anne-Marie Dupont"
