"""
Post-Processing Module for the Invoice Reconciliation Engine.

This module provides functionality for:
    - Context-aware OCR character correction
    - Date, amount and name normalization
    - Date and amount validation

Author: ML Engineering Team
"""

from .corrector import CharacterCorrector, correct_text
from .validators import DateValidator, AmountValidator
from .normalizers import (
    DateNormalizer,
    AmountNormalizer,
    expand_year,
    format_amount,
    month_number,
    normalize_name,
)

__all__ = [
    'CharacterCorrector',
    'correct_text',
    'DateValidator',
    'AmountValidator',
    'DateNormalizer',
    'AmountNormalizer',
    'expand_year',
    'format_amount',
    'month_number',
    'normalize_name',
]
