"""
Extraction Result Data Classes.

This module defines the data structures produced by the extraction
aggregator: the acquired text with its provenance, and the structured
result holding ranked candidates plus best-guess fields.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from invoice_reconciler.extractors.candidates import Candidate
from invoice_reconciler.ocr_engine.ocr_result import ExtractionMethod


@dataclass(frozen=True)
class ExtractedText:
    """
    Text of one document and where it came from.

    Attributes:
        raw: OCR, vision or reader output, verbatim.
        corrected: Raw text after numeric-context character correction.
        source_confidence: Confidence of the text source (0-100).
        method: How the text was obtained.
    """
    raw: str
    corrected: str
    source_confidence: float
    method: ExtractionMethod


@dataclass
class ExtractionResult:
    """
    Structured fields extracted from one invoice.

    Each candidate list is ranked by descending confidence and holds no
    duplicates. The best-guess scalars come from the top candidates, or from
    the AI field extractor when it returned a value.

    Attributes:
        dates, amounts, names, emails, phones, addresses: Ranked candidates.
        staff_name: Best-guess staff name.
        total_amount: Best-guess invoice total.
        date: Best-guess date (ISO).
        property_name: Best-guess property name.
        raw_text: Acquired text, verbatim.
        corrected_text: Text after character correction.
        source_confidence: Confidence of the text source (0-100).
        extraction_method: How the text was obtained.
        ai_used: Whether the AI field extractor returned fields.
        ai_fields: Raw AI answers, for auditing.
        source_file: Original filename.
        warnings: Recoverable problems met along the way.
        processing_time: Seconds spent extracting.
        extraction_timestamp: When extraction finished.

    Example:
        >>> result = aggregator.aggregate("Staff: Mike Rodriguez\\nTotal: $150.00", 88.0,
        ...                               ExtractionMethod.LOCAL_OCR)
        >>> result.staff_name, result.total_amount
        ('Mike Rodriguez', 150.0)
    """
    dates: List[Candidate] = field(default_factory=list)
    amounts: List[Candidate] = field(default_factory=list)
    names: List[Candidate] = field(default_factory=list)
    emails: List[Candidate] = field(default_factory=list)
    phones: List[Candidate] = field(default_factory=list)
    addresses: List[Candidate] = field(default_factory=list)

    staff_name: Optional[str] = None
    total_amount: Optional[float] = None
    date: Optional[str] = None
    property_name: Optional[str] = None

    raw_text: str = ""
    corrected_text: str = ""
    source_confidence: float = 0.0
    extraction_method: ExtractionMethod = ExtractionMethod.DIRECT_TEXT
    ai_used: bool = False
    ai_fields: Dict[str, Any] = field(default_factory=dict)

    source_file: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    processing_time: float = 0.0
    extraction_timestamp: Optional[str] = None

    def __post_init__(self):
        """Initialize timestamp if not provided."""
        if self.extraction_timestamp is None:
            self.extraction_timestamp = datetime.now().isoformat()

    @property
    def fields(self) -> Dict[str, Any]:
        return {
            'staff_name': self.staff_name,
            'total_amount': self.total_amount,
            'date': self.date,
            'property_name': self.property_name,
        }

    @property
    def missing_fields(self) -> List[str]:
        return [k for k, v in self.fields.items() if v is None or v == ""]

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary format.

        Returns:
            JSON-ready dictionary representation of the result.
        """
        return {
            **self.fields,
            'dates': [c.to_dict() for c in self.dates],
            'amounts': [c.to_dict() for c in self.amounts],
            'names': [c.to_dict() for c in self.names],
            'emails': [c.to_dict() for c in self.emails],
            'phones': [c.to_dict() for c in self.phones],
            'addresses': [c.to_dict() for c in self.addresses],
            'raw_text': self.raw_text,
            'corrected_text': self.corrected_text,
            'source_confidence': round(self.source_confidence, 2),
            'extraction_method': self.extraction_method.value,
            'ai_used': self.ai_used,
            'ai_fields': self.ai_fields,
            'source_file': self.source_file,
            'warnings': list(self.warnings),
            'processing_time': round(self.processing_time, 3),
            'extraction_timestamp': self.extraction_timestamp,
        }

    def __repr__(self) -> str:
        return (
            f"ExtractionResult("
            f"staff={self.staff_name!r}, "
            f"total={self.total_amount}, "
            f"date={self.date}, "
            f"method={self.extraction_method.value}, "
            f"confidence={self.source_confidence:.0f})"
        )
