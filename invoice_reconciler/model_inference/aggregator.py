"""
Document Extraction Aggregator.

Turns the acquired text of one document into an ExtractionResult:

    correct text -> dates and amounts on the corrected text
                 -> names and contacts on the raw text
                 -> optional AI cross-validation
                 -> best-guess selection

Names are read from the raw text because the character corrector may
turn look-alike letters in short name tokens into digits.

Usage:
    aggregator = ExtractionAggregator()
    result = aggregator.aggregate(text, 88.0, ExtractionMethod.LOCAL_OCR, "invoice.jpg")

Author: ML Engineering Team
"""

import time
from typing import Any, Dict, Optional

from invoice_reconciler.extractors import (
    NameType,
    best_name,
    extract_addresses,
    extract_amounts,
    extract_dates,
    extract_emails,
    extract_names,
    extract_phones,
)
from invoice_reconciler.ocr_engine.ocr_result import ExtractionMethod
from invoice_reconciler.postprocessor.corrector import CharacterCorrector
from invoice_reconciler.utils.logger import get_logger
from invoice_reconciler.utils.exceptions import ModelError
from .extraction_result import ExtractedText, ExtractionResult
from .extractor import AIFields, FieldExtractor, NullFieldExtractor, create_field_extractor

# Initialize module logger
logger = get_logger(__name__)

AMOUNT_TOLERANCE = 0.01


def _values_differ(field_name: str, heuristic: Any, ai_value: Any) -> bool:
    if field_name == 'total_amount':
        return abs(float(heuristic) - float(ai_value)) >= AMOUNT_TOLERANCE
    if isinstance(heuristic, str) and isinstance(ai_value, str):
        return heuristic.strip().lower() != ai_value.strip().lower()
    return heuristic != ai_value


class ExtractionAggregator:
    """
    Runs every field extractor over one document's text.

    Attributes:
        corrector: Character corrector applied before date/amount extraction.
        field_extractor: AI backend used for cross-validation.

    Example:
        >>> aggregator = ExtractionAggregator(field_extractor=NullFieldExtractor())
        >>> result = aggregator.aggregate("Staff: Mike Rodriguez\\nTotal: $150.00",
        ...                               100.0, ExtractionMethod.DIRECT_TEXT)
        >>> result.total_amount
        150.0
    """

    def __init__(
        self,
        field_extractor: Optional[FieldExtractor] = None,
        corrector: Optional[CharacterCorrector] = None
    ) -> None:
        self.corrector = corrector or CharacterCorrector()
        self.field_extractor = field_extractor or create_field_extractor()

        logger.debug(
            f"ExtractionAggregator initialized (ai={self.field_extractor.name}, "
            f"available={self.field_extractor.available})"
        )

    def prepare(self, raw_text: str, source_confidence: float,
                method: ExtractionMethod) -> ExtractedText:
        """Apply character correction and bundle the text with its provenance."""
        return ExtractedText(
            raw=raw_text,
            corrected=self.corrector.correct(raw_text),
            source_confidence=source_confidence,
            method=method,
        )

    def aggregate(
        self,
        raw_text: str,
        source_confidence: float,
        method: ExtractionMethod,
        source_file: Optional[str] = None
    ) -> ExtractionResult:
        """
        Extract all fields from one document's text.

        Args:
            raw_text: Text as acquired (OCR, vision or reader output).
            source_confidence: Confidence of the text source (0-100).
            method: How the text was obtained.
            source_file: Original filename, for reporting.

        Returns:
            ExtractionResult. AI failures are recorded as warnings.
        """
        start_time = time.time()
        text = self.prepare(raw_text or "", source_confidence, method)

        result = ExtractionResult(
            raw_text=text.raw,
            corrected_text=text.corrected,
            source_confidence=text.source_confidence,
            extraction_method=text.method,
            source_file=source_file,
        )

        if not text.raw.strip():
            result.add_warning("No text could be extracted from the document")

        result.dates = extract_dates(text.corrected)
        result.amounts = extract_amounts(text.corrected)
        result.names = extract_names(text.raw)
        result.emails = extract_emails(text.raw)
        result.phones = extract_phones(text.raw)
        result.addresses = extract_addresses(text.raw)

        result.staff_name = best_name(result.names, NameType.STAFF)
        result.property_name = best_name(result.names, NameType.PROPERTY)
        if result.amounts:
            result.total_amount = result.amounts[0].value.amount
        if result.dates:
            result.date = result.dates[0].value.iso_date

        if text.corrected.strip():
            self._cross_validate(result, text.corrected)

        if method == ExtractionMethod.LOCAL_OCR_DEGRADED:
            result.add_warning(
                f"Text came from low-confidence local OCR ({source_confidence:.0f}%)"
            )

        for field_name in result.missing_fields:
            logger.debug(f"No value found for {field_name}")

        result.processing_time = time.time() - start_time
        logger.info(
            f"Extracted {source_file or 'document'} via {method.value} "
            f"(confidence {source_confidence:.1f}%, ai_used={result.ai_used})"
        )
        return result

    def _cross_validate(self, result: ExtractionResult, corrected_text: str) -> None:
        """Ask the AI backend for the fields and prefer its values."""
        extractor = self.field_extractor
        if isinstance(extractor, NullFieldExtractor):
            return

        if not extractor.available:
            logger.warning(f"AI backend '{extractor.name}' unavailable; using pattern results only")
            result.add_warning(f"AI backend '{extractor.name}' unavailable")
            return

        try:
            ai_fields = extractor.extract_fields(corrected_text, hints=result.fields)
        except ModelError as e:
            logger.warning(f"AI field extraction failed; using pattern results only: {e}")
            result.add_warning(f"AI field extraction failed: {e.message}")
            return

        result.ai_used = True
        result.ai_fields = ai_fields.to_dict()
        self._merge(result, ai_fields)

    @staticmethod
    def _merge(result: ExtractionResult, ai_fields: AIFields) -> None:
        ai_values: Dict[str, Any] = {
            'staff_name': ai_fields.staff_name,
            'total_amount': ai_fields.total_amount,
            'date': ai_fields.date,
            'property_name': ai_fields.property_name,
        }

        for field_name, ai_value in ai_values.items():
            if ai_value is None:
                continue

            heuristic = getattr(result, field_name)
            if heuristic is not None and _values_differ(field_name, heuristic, ai_value):
                result.add_warning(
                    f"AI and pattern extraction disagree on {field_name}: "
                    f"{ai_value!r} (AI) vs {heuristic!r} (pattern)"
                )
            setattr(result, field_name, ai_value)
