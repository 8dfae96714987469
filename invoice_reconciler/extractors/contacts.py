"""
Contact Extractor.

Single-pass extraction of email addresses, phone numbers and street
addresses with fixed confidences (95, 90 and 75).

Author: ML Engineering Team
"""

import re
from typing import List, Match, Optional

from invoice_reconciler.extractors.candidates import (
    Candidate,
    ExtractionRule,
    rank_candidates,
    run_rules,
)

EMAIL_CONFIDENCE = 95
PHONE_CONFIDENCE = 90
ADDRESS_CONFIDENCE = 75

EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')

PHONE_PATTERN = re.compile(
    r'(?<![\d\w])(?:\+?1[-. ]?)?\(?\d{3}\)?[-. ]?\d{3}[-. ]?\d{4}(?!\d)'
)

ADDRESS_SUFFIXES = (
    r'St|Street|Ave|Avenue|Rd|Road|Dr|Drive|Ln|Lane|Blvd|Boulevard|Way|Ct|Court'
    r'|Cres|Crescent|Plaza|Park|Terrace|Hall|Gate|Square|Close'
)
ADDRESS_PATTERN = re.compile(
    r'\b\d+[ \t]+[A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*[ \t]+(?:' + ADDRESS_SUFFIXES + r')\b\.?'
    r'(?:,?[ \t]+[A-Z][a-z]+)*'
    r'(?:,?[ \t]+[A-Z]{2}[ \t]*\d{5})?'
)


def _digits(value: str) -> str:
    return re.sub(r'\D', '', value)


def _collapse(value: str) -> str:
    return ' '.join(value.split())


def _parse_email(match: Match) -> Optional[str]:
    return match.group(0)


def _parse_phone(match: Match) -> Optional[str]:
    phone = match.group(0).strip()
    if len(_digits(phone)) < 10:
        return None
    return phone


def _parse_address(match: Match) -> Optional[str]:
    address = _collapse(match.group(0)).rstrip(',')
    return address if len(address) > 5 else None


EMAIL_RULES = [ExtractionRule('email', EMAIL_PATTERN, _parse_email, EMAIL_CONFIDENCE)]
PHONE_RULES = [ExtractionRule('phone', PHONE_PATTERN, _parse_phone, PHONE_CONFIDENCE)]
ADDRESS_RULES = [ExtractionRule('address', ADDRESS_PATTERN, _parse_address, ADDRESS_CONFIDENCE)]


def extract_emails(text: str) -> List[Candidate]:
    """Extract email addresses, deduplicated case-insensitively."""
    return rank_candidates(run_rules(EMAIL_RULES, text), key=lambda c: c.value.lower())


def extract_phones(text: str) -> List[Candidate]:
    """
    Extract phone numbers, deduplicated by their digits.

    Example:
        >>> [c.value for c in extract_phones("Call (555) 123-4567 or 555.123.4567")]
        ['(555) 123-4567']
    """
    return rank_candidates(run_rules(PHONE_RULES, text), key=lambda c: _digits(c.value))


def extract_addresses(text: str) -> List[Candidate]:
    """Extract street addresses longer than five characters."""
    return rank_candidates(run_rules(ADDRESS_RULES, text), key=lambda c: c.value.lower())
