"""
Invoice Reconciliation Engine - Source Package.

This package extracts structured fields from contractor invoices (scanned
images, PDFs, DOCX, plain text) despite noisy OCR, and reconciles them
against a ledger of expected staff/task amounts.

Modules:
    - input_handler: Document ingestion, image preprocessing, text readers
    - ocr_engine: Local OCR, vision fallback and the escalation controller
    - postprocessor: Character correction, validation and normalization
    - extractors: Confidence-ranked date/amount/name/contact candidates
    - model_inference: Extraction aggregation with optional AI cross-check
    - reconciliation: Ledger model and fuzzy staff/amount matcher
    - pipeline, storage: End-to-end processing and the document store

Architecture:
    Input → Preprocess → OCR ⇄ Vision → Correction → Extraction → Reconciliation
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

__all__ = [
    'input_handler',
    'ocr_engine',
    'postprocessor',
    'extractors',
    'model_inference',
    'reconciliation',
    'pipeline',
    'storage',
    'utils'
]
