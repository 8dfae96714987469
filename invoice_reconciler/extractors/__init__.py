"""
Structured Field Extractors.

This module provides confidence-ranked candidate extraction for:
    - Dates (ISO, European, US, written month names)
    - Monetary amounts
    - Staff and property names
    - Emails, phone numbers and street addresses

Author: ML Engineering Team
"""

from .candidates import (
    AmountValue,
    Candidate,
    DateValue,
    ExtractionRule,
    NameType,
    NameValue,
    rank_candidates,
    run_rules,
)
from .dates import DateExtractor, extract_dates, parse_date
from .amounts import AmountExtractor, extract_amounts, format_amount
from .names import best_name, extract_names
from .contacts import extract_addresses, extract_emails, extract_phones

__all__ = [
    'AmountValue',
    'Candidate',
    'DateValue',
    'ExtractionRule',
    'NameType',
    'NameValue',
    'rank_candidates',
    'run_rules',
    'DateExtractor',
    'extract_dates',
    'parse_date',
    'AmountExtractor',
    'extract_amounts',
    'format_amount',
    'best_name',
    'extract_names',
    'extract_addresses',
    'extract_emails',
    'extract_phones',
]
