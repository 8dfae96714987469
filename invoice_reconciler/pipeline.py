"""
Invoice Reconciliation Pipeline.

Runs one document end to end:

    RawDocument -> text acquisition -> ExtractionResult -> MatchVerdict

Text acquisition by document type:
    - images: OCR escalation controller (local OCR, vision fallback)
    - PDFs: embedded text; scanned PDFs are rendered and each page goes
      through the escalation controller
    - DOCX and plain text: reader text, confidence 100

Each invocation is independent; the pipeline holds no per-document state,
so the same instance can serve a thread pool.

Usage:
    pipeline = InvoicePipeline()
    result = pipeline.process(document, ledger)
    print(result.verdict.status.value)

Author: ML Engineering Team
"""

import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config import get_config
from invoice_reconciler.input_handler import (
    DocumentLoader,
    PDFTextReader,
    PlainTextReader,
    RawDocument,
    WordTextReader,
)
from invoice_reconciler.model_inference import ExtractionAggregator, ExtractionResult
from invoice_reconciler.ocr_engine import ExtractionMethod, OCREscalationController, OCROutcome
from invoice_reconciler.reconciliation import LedgerEntry, MatchVerdict, ReconciliationMatcher
from invoice_reconciler.utils.logger import get_logger
from invoice_reconciler.utils.exceptions import OCRError

# Initialize module logger
logger = get_logger(__name__)

DIRECT_TEXT_CONFIDENCE = 100.0


@dataclass
class PipelineResult:
    """
    Extraction and verdict for one document.

    Attributes:
        source_file: Document display name.
        extraction: Extraction result, or None when processing failed.
        verdict: Reconciliation verdict.
        error: Failure detail, when processing failed.
    """
    source_file: str
    extraction: Optional[ExtractionResult]
    verdict: MatchVerdict
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'file': self.source_file,
            'extraction': self.extraction.to_dict() if self.extraction else None,
            'verdict': self.verdict.to_dict(),
        }
        if self.error:
            result['error'] = self.error
        return result


class InvoicePipeline:
    """
    Extraction and reconciliation of invoice documents.

    Every collaborator can be injected; defaults are built from config.

    Example:
        >>> pipeline = InvoicePipeline()
        >>> extraction = pipeline.extract(document)
        >>> verdict = pipeline.reconcile(extraction, ledger)
    """

    def __init__(
        self,
        loader: Optional[DocumentLoader] = None,
        escalation: Optional[OCREscalationController] = None,
        aggregator: Optional[ExtractionAggregator] = None,
        matcher: Optional[ReconciliationMatcher] = None,
        pdf_reader: Optional[PDFTextReader] = None,
        word_reader: Optional[WordTextReader] = None,
        text_reader: Optional[PlainTextReader] = None
    ) -> None:
        self.loader = loader or DocumentLoader()
        self.escalation = escalation or OCREscalationController()
        self.aggregator = aggregator or ExtractionAggregator()
        self.matcher = matcher or ReconciliationMatcher()
        self.pdf_reader = pdf_reader or PDFTextReader()
        self.word_reader = word_reader or WordTextReader()
        self.text_reader = text_reader or PlainTextReader()

        logger.debug("InvoicePipeline initialized")

    def _from_outcome(self, outcome: OCROutcome) -> Tuple[str, float, ExtractionMethod, List[str]]:
        logger.debug(f"OCR outcome: {outcome.to_dict()}")
        warnings = []
        if outcome.vision_error:
            warnings.append(f"Vision fallback unavailable: {outcome.vision_error}")
        return outcome.text, outcome.confidence, outcome.method, warnings

    def acquire_text(self, document: RawDocument) -> Tuple[str, float, ExtractionMethod, List[str]]:
        """
        Obtain the raw text of a document.

        Returns:
            Tuple of (text, source confidence, method, warnings).

        Raises:
            CorruptedDocumentError: If a PDF or DOCX cannot be opened.
        """
        if document.is_image:
            outcome = self.escalation.run(document.data, document.mime_type, document.is_handwritten)
            return self._from_outcome(outcome)

        if document.is_pdf:
            content = self.pdf_reader.read(document)
            if not content.is_scanned:
                return content.text, DIRECT_TEXT_CONFIDENCE, ExtractionMethod.DIRECT_TEXT, []

            logger.info(f"{document.display_name} has no usable embedded text; running OCR")
            try:
                pages = self.pdf_reader.render_pages(document)
            except OCRError as e:
                logger.warning(f"Cannot render scanned PDF, using embedded text: {e}")
                return (
                    content.text, 0.0, ExtractionMethod.LOCAL_OCR_DEGRADED,
                    [f"Scanned PDF could not be rendered: {e}"],
                )
            outcome = self.escalation.run_pages(pages, document.is_handwritten)
            return self._from_outcome(outcome)

        if document.is_word:
            text = self.word_reader.read(document)
        else:
            text = self.text_reader.read(document)
        return text, DIRECT_TEXT_CONFIDENCE, ExtractionMethod.DIRECT_TEXT, []

    def extract(self, document: RawDocument) -> ExtractionResult:
        """
        Extract structured fields from one document.

        Args:
            document: Document to process.

        Returns:
            ExtractionResult.

        Raises:
            InputError: If the document fails validation or cannot be opened.
        """
        start_time = time.time()
        self.loader.validate(document)

        text, confidence, method, warnings = self.acquire_text(document)
        result = self.aggregator.aggregate(text, confidence, method, document.display_name)

        for warning in warnings:
            result.add_warning(warning)
        result.processing_time = time.time() - start_time
        return result

    def reconcile(self, extraction: Optional[ExtractionResult],
                  ledger: Sequence[LedgerEntry]) -> MatchVerdict:
        return self.matcher.reconcile(extraction, ledger)

    def process(self, document: RawDocument, ledger: Sequence[LedgerEntry]) -> PipelineResult:
        """Extract and reconcile one document."""
        extraction = self.extract(document)
        verdict = self.reconcile(extraction, ledger)
        return PipelineResult(
            source_file=document.display_name,
            extraction=extraction,
            verdict=verdict,
        )

    def process_safely(self, document: RawDocument,
                       ledger: Sequence[LedgerEntry]) -> PipelineResult:
        """Like process(), but a failure becomes a no_match result."""
        try:
            return self.process(document, ledger)
        except Exception as e:
            logger.error(f"Error processing {document.display_name}: {e}")
            return PipelineResult(
                source_file=document.display_name,
                extraction=None,
                verdict=MatchVerdict.no_match(f"Processing failed: {e}"),
                error=str(e),
            )

    def process_batch(
        self,
        documents: Sequence[RawDocument],
        ledger: Sequence[LedgerEntry],
        max_workers: Optional[int] = None
    ) -> List[PipelineResult]:
        """
        Process documents independently in a thread pool.

        A failed document yields a no_match result carrying the failure
        detail and does not affect the others.

        Args:
            documents: Documents to process.
            ledger: Ledger shared read-only by every document.
            max_workers: Pool size. If None, uses `pipeline.max_workers`
                        or the CPU count.

        Returns:
            One PipelineResult per document, in input order.
        """
        if not documents:
            return []

        workers = max_workers or get_config("pipeline.max_workers") or os.cpu_count() or 1
        workers = max(1, min(int(workers), len(documents)))
        logger.info(f"Processing {len(documents)} document(s) with {workers} worker(s)")

        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(lambda doc: self.process_safely(doc, ledger), documents))

        failed = sum(1 for r in results if not r.succeeded)
        if failed:
            logger.warning(f"{failed} of {len(results)} document(s) failed")
        return results
