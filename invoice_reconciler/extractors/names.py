"""
Name Extractor.

Finds staff (person) names and property names. This extractor always runs on
the RAW text: character correction would turn words such as "Staff" into
digit soup and destroy the labels the patterns rely on.

Staff pass:
    - explicit labels ("Staff:", "Performed by", "Invoice from", "Name:")
    - honorific-prefixed names ("Mr. Smith")
    - line-start labels ("Cleaner: Emily Chen")
    - two or three capitalised words in a row

Property pass:
    - property/address/location/unit/apt/apartment/site labels
    - street-address tokens ("12 Harbor Rd")

Author: ML Engineering Team
"""

import re
from typing import List, Match, Optional

from invoice_reconciler.extractors.candidates import (
    Candidate,
    ExtractionRule,
    NameType,
    NameValue,
    rank_candidates,
    run_rules,
)
from invoice_reconciler.postprocessor.normalizers import normalize_name
from invoice_reconciler.utils.logger import get_logger

logger = get_logger(__name__)

# Words that never appear in a staff name
EXCLUDED_WORDS = frozenset({
    'the', 'a', 'an', 'and', 'or', 'for', 'to', 'from', 'with', 'this', 'that',
    'total', 'amount', 'invoice', 'date', 'due', 'payment', 'paid', 'balance',
    'description', 'quantity', 'price', 'subtotal', 'tax', 'grand', 'thank', 'you',
    'jan', 'feb', 'mar', 'apr', 'may', 'jun', 'jul', 'aug', 'sep', 'oct', 'nov', 'dec',
    'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday',
    'cleaning', 'service', 'services', 'maintenance', 'repair', 'job', 'work',
    'please', 'note', 'notes', 'terms', 'conditions', 'unit',
})

STRONG_STAFF_LABELS = (
    r'staff|contractor|technician|cleaner|worker|employee'
    r'|performed[ \t]+by|submitted[ \t]+by|completed[ \t]+by'
)
WEAK_STAFF_LABELS = r'invoice[ \t]+from|from|by|name'

STREET_SUFFIXES = (
    r'St|Street|Ave|Avenue|Rd|Road|Dr|Drive|Ln|Lane|Blvd|Boulevard'
    r'|Way|Ct|Court|Cres|Crescent'
)

# "Anne-Marie", "O'Brien"
_NAME_WORD = r"(?:[A-Z]')?[A-Z][a-z]+(?:-[A-Z]?[a-z]+)*"
_CAPITALISED_NAME = r"[A-Z][a-zA-Z'\-]+(?:[ \t]+[A-Z][a-zA-Z'\-]+)*"
_BARE_WORD = r"(?:[A-Z]')?[A-Z][a-z]{2,15}(?:-[A-Z]?[a-z]{2,15})?"

STAFF_LABEL_PATTERN = re.compile(
    r'(?i:\b(?:' + STRONG_STAFF_LABELS + '|' + WEAK_STAFF_LABELS + r'))\b'
    r'(?:[ \t]*:[ \t]*|[ \t]+)(' + _CAPITALISED_NAME + r')'
)
HONORIFIC_PATTERN = re.compile(
    r'\b(?:Mr|Mrs|Ms|Miss)\.?[ \t]+(' + _NAME_WORD + r'(?:[ \t]+' + _NAME_WORD + r')*)'
)
LINE_LABEL_PATTERN = re.compile(
    r'^[ \t]*(?:staff|contractor|cleaner|technician)[ \t]*:[ \t]*(.+?)[ \t]*$',
    re.IGNORECASE | re.MULTILINE
)
CAPITALISED_WORDS_PATTERN = re.compile(
    r"(?<![\w'\-])(" + _BARE_WORD + r'[ \t]+' + _BARE_WORD + r'(?:[ \t]+' + _BARE_WORD + r')?)\b'
)

PROPERTY_LABEL_PATTERN = re.compile(
    r'\b(?:property|address|location|unit|apt|apartment|site)\b[ \t]*[:#]+[ \t]*'
    r'([A-Z0-9][^\n,]{3,50})',
    re.IGNORECASE
)
STREET_PATTERN = re.compile(
    r'\b(\d+[ \t]+[A-Za-z]+[ \t]+(?:' + STREET_SUFFIXES + r')\b\.?)',
    re.IGNORECASE
)

_STRONG_LABEL_WORD = re.compile(
    r'staff|contractor|technician|cleaner|worker|employee|performed|submitted|completed',
    re.IGNORECASE
)
_WEAK_LABEL_WORD = re.compile(r'\b(?:from|by|name)\b', re.IGNORECASE)
_HONORIFIC_WORD = re.compile(r'\b(?:Mr|Mrs|Ms|Miss)\b', re.IGNORECASE)
_FIRST_LAST = re.compile(r'^' + _NAME_WORD + ' ' + _NAME_WORD + '$')
_PROPERTY_LABEL_WORD = re.compile(r'\b(?:property|address|location|site)\b', re.IGNORECASE)
_STREET_SUFFIX_WORD = re.compile(r'\b(?:St|Street|Ave|Avenue|Rd|Road|Dr|Drive)\b', re.IGNORECASE)


def _staff_label_bonus(match: Match, value: NameValue) -> int:
    if _STRONG_LABEL_WORD.search(match.group(0)):
        return 35
    if _WEAK_LABEL_WORD.search(match.group(0)):
        return 25
    return 0


def _first_last_bonus(match: Match, value: NameValue) -> int:
    return 15 if _FIRST_LAST.match(value.name) else 0


def _honorific_bonus(match: Match, value: NameValue) -> int:
    return 10 if _HONORIFIC_WORD.search(match.group(0)) else 0


def _property_label_bonus(match: Match, value: NameValue) -> int:
    return 25 if _PROPERTY_LABEL_WORD.search(match.group(0)) else 0


def _digits_bonus(match: Match, value: NameValue) -> int:
    return 10 if re.search(r'\d', value.name) else 0


def _street_suffix_bonus(match: Match, value: NameValue) -> int:
    return 15 if _STREET_SUFFIX_WORD.search(value.name) else 0


STAFF_BONUSES = (_staff_label_bonus, _first_last_bonus, _honorific_bonus)
PROPERTY_BONUSES = (_property_label_bonus, _digits_bonus, _street_suffix_bonus)


def parse_staff_name(match: Match) -> Optional[NameValue]:
    """
    Accept a staff-name match unless it looks like boilerplate.

    Rejects names shorter than 3 or longer than 50 characters, single words
    under 4 characters, anything containing an excluded word, and anything
    starting with a digit or holding a four-digit run.
    """
    name = normalize_name(match.group(1) or match.group(0))
    if len(name) < 3 or len(name) > 50:
        return None

    words = name.lower().split()
    if any(word.strip('.,') in EXCLUDED_WORDS for word in words):
        return None
    if len(words) == 1 and len(name) < 4:
        return None
    if re.match(r'\d', name) or re.search(r'\d{4}', name):
        return None

    return NameValue(name=name, type=NameType.STAFF)


def parse_property_name(match: Match) -> Optional[NameValue]:
    name = normalize_name(match.group(1) or match.group(0))
    if len(name) < 3 or len(name) > 100:
        return None
    return NameValue(name=name, type=NameType.PROPERTY)


STAFF_RULES = [
    ExtractionRule('staff_label', STAFF_LABEL_PATTERN, parse_staff_name, 50, STAFF_BONUSES),
    ExtractionRule('honorific', HONORIFIC_PATTERN, parse_staff_name, 50, STAFF_BONUSES),
    ExtractionRule('line_label', LINE_LABEL_PATTERN, parse_staff_name, 50, STAFF_BONUSES),
    ExtractionRule('capitalised_words', CAPITALISED_WORDS_PATTERN, parse_staff_name, 50, STAFF_BONUSES),
]

PROPERTY_RULES = [
    ExtractionRule('property_label', PROPERTY_LABEL_PATTERN, parse_property_name, 50, PROPERTY_BONUSES),
    ExtractionRule('street', STREET_PATTERN, parse_property_name, 50, PROPERTY_BONUSES),
]


def extract_names(raw_text: str) -> List[Candidate]:
    """
    Extract ranked staff and property name candidates.

    Args:
        raw_text: Uncorrected document text.

    Returns:
        Candidates sorted by descending confidence, one per
        case-insensitive name.

    Example:
        >>> top = extract_names("Staff: Mike Rodriguez")[0]
        >>> top.value.name, top.value.type.value, top.confidence
        ('Mike Rodriguez', 'staff', 100)
    """
    if not raw_text:
        return []

    candidates = run_rules(STAFF_RULES, raw_text) + run_rules(PROPERTY_RULES, raw_text)
    # On equal confidence the fuller name wins over a fragment of it
    ranked = rank_candidates(
        candidates,
        key=lambda c: c.value.name.lower(),
        tiebreak=lambda c: -len(c.value.name)
    )

    logger.debug(f"Name extraction found {len(ranked)} candidate(s)")
    return ranked


def best_name(candidates: List[Candidate], name_type: NameType) -> Optional[str]:
    """Return the top-ranked name of the given type, if any."""
    for candidate in candidates:
        if candidate.value.type == name_type:
            return candidate.value.name
    return None
