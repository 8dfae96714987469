"""
OCR Engine Module for the Invoice Reconciliation Engine.

This module provides text recognition for scanned invoices:
    - Local OCR with word-level confidences (Tesseract)
    - Vision-model transcription as a fallback
    - The confidence-gated escalation controller tying them together

Author: ML Engineering Team
"""

from .engine import OCREngine
from .tesseract_backend import TesseractBackend
from .ocr_result import ExtractionMethod, OCRLine, OCRResult, OCRWord
from .vision import OpenAIVisionExtractor, VisionTextExtractor
from .escalation import (
    Accepted,
    Escalate,
    EscalationState,
    OCREscalationController,
    OCROutcome,
    decide_escalation,
)

__all__ = [
    'OCREngine',
    'TesseractBackend',
    'ExtractionMethod',
    'OCRLine',
    'OCRResult',
    'OCRWord',
    'OpenAIVisionExtractor',
    'VisionTextExtractor',
    'Accepted',
    'Escalate',
    'EscalationState',
    'OCREscalationController',
    'OCROutcome',
    'decide_escalation',
]
