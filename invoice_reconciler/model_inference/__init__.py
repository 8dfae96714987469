"""
Model Inference Module for the Invoice Reconciliation Engine.

This module turns acquired document text into structured fields:
    - Pattern-based candidate extraction with best-guess selection
    - Optional AI cross-validation (OpenAI JSON mode or a local
      Hugging Face question-answering model)
    - Standardized ExtractionResult output

Author: ML Engineering Team
"""

from .extraction_result import ExtractedText, ExtractionResult
from .extractor import (
    AIFields,
    FieldExtractor,
    NullFieldExtractor,
    OpenAIFieldExtractor,
    QAFieldExtractor,
    create_field_extractor,
)
from .aggregator import ExtractionAggregator

__all__ = [
    'ExtractedText',
    'ExtractionResult',
    'AIFields',
    'FieldExtractor',
    'NullFieldExtractor',
    'OpenAIFieldExtractor',
    'QAFieldExtractor',
    'create_field_extractor',
    'ExtractionAggregator',
]
