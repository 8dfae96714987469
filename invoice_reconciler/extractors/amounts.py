"""
Amount Extractor.

Finds monetary amounts in (corrected) invoice text. Amounts are read from
label-prefixed values ("Total: 150.00"), currency symbols ("$1,234.56"),
bare two-decimal numbers, currency codes ("AUD 75.50") and large bare
integers. Thousand separators are removed and non-positive values dropped.

Author: ML Engineering Team
"""

import re
from typing import List, Match, Optional

from invoice_reconciler.extractors.candidates import (
    AmountValue,
    Candidate,
    ExtractionRule,
    rank_candidates,
    run_rules,
)
from invoice_reconciler.postprocessor.normalizers import format_amount
from invoice_reconciler.postprocessor.validators import AmountValidator
from invoice_reconciler.utils.logger import get_logger

logger = get_logger(__name__)

_NUMBER = r'(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)'
# Stop before a date separator or another digit group
_NUMBER_END = r'(?![\d,]|[./\-]\d)'

AMOUNT_LABELS = r'total|amount|sum|due|balance|pay|payment|price|cost|fee|charge'
CURRENCY_SYMBOLS = '$£€'
CURRENCY_CODES = r'USD|AUD|GBP|EUR|CAD'

LABEL_PATTERN = re.compile(
    r'(?i:\b(?:' + AMOUNT_LABELS + r')s?\b)[ \t]*:?[ \t]*[$£€]?[ \t]*' + _NUMBER + _NUMBER_END
)
SYMBOL_PATTERN = re.compile(
    r'[$£€][ \t]*' + _NUMBER + _NUMBER_END
)
BARE_DECIMAL_PATTERN = re.compile(
    r'(?<![\d,.$£€])(\d{1,3}(?:,\d{3})+\.\d{2}|\d+\.\d{2})' + _NUMBER_END
)
CODE_PATTERN = re.compile(
    r'(?i:\b(?:' + CURRENCY_CODES + r'))[ \t]*' + _NUMBER + _NUMBER_END
)
LARGE_INTEGER_PATTERN = re.compile(
    r'(?<![\d,.$£€/\-])(\d{4,}(?:\.\d{2})?)' + _NUMBER_END
)

_LABEL_WORD = re.compile(r'\b(?:' + AMOUNT_LABELS + r')', re.IGNORECASE)
_CODE_WORD = re.compile(r'\b(?:' + CURRENCY_CODES + r')\b', re.IGNORECASE)

# Bare four-digit numbers in this range are years, not amounts
YEAR_RANGE = (1900, 2100)


def _symbol_bonus(match: Match, value: AmountValue) -> int:
    return 25 if any(symbol in match.group(0) for symbol in CURRENCY_SYMBOLS) else 0


def _code_bonus(match: Match, value: AmountValue) -> int:
    return 20 if _CODE_WORD.search(match.group(0)) else 0


def _label_bonus(match: Match, value: AmountValue) -> int:
    return 20 if _LABEL_WORD.search(match.group(0)) else 0


def _decimal_bonus(match: Match, value: AmountValue) -> int:
    return 5 if '.' in match.group(1) else 0


def _magnitude_bonus(match: Match, value: AmountValue) -> int:
    return 5 if value.amount >= 100 else 0


AMOUNT_BONUSES = (_symbol_bonus, _code_bonus, _label_bonus, _decimal_bonus, _magnitude_bonus)


class AmountExtractor:
    """
    Multi-pattern amount extractor.

    Each match starts at confidence 50 and gains +25 for a currency symbol,
    +20 for a currency code, +20 for a recognised label, +5 for a decimal
    point and +5 for amounts of 100 or more (capped at 100). Candidates are
    deduplicated by two-decimal value and ordered by confidence, then by
    amount, both descending.

    Example:
        >>> extractor = AmountExtractor()
        >>> top = extractor.extract("Total: $1,234.56")[0]
        >>> top.value.amount, top.confidence
        (1234.56, 100)
    """

    BASE_CONFIDENCE = 50

    def __init__(self) -> None:
        self.validator = AmountValidator()
        self.rules = [
            self._rule('label', LABEL_PATTERN),
            self._rule('currency_symbol', SYMBOL_PATTERN),
            self._rule('bare_decimal', BARE_DECIMAL_PATTERN),
            self._rule('currency_code', CODE_PATTERN),
            self._rule('large_integer', LARGE_INTEGER_PATTERN, skip_years=True),
        ]

    def _rule(self, name: str, pattern, skip_years: bool = False) -> ExtractionRule:
        return ExtractionRule(
            name=name,
            pattern=pattern,
            parser=lambda m: self._parse(m, skip_years),
            base_confidence=self.BASE_CONFIDENCE,
            bonuses=AMOUNT_BONUSES,
        )

    def _parse(self, match: Match, skip_years: bool) -> Optional[AmountValue]:
        number = match.group(1)
        try:
            amount = float(number.replace(',', ''))
        except ValueError:
            return None

        if not self.validator.is_valid(amount):
            return None

        if skip_years and '.' not in number and YEAR_RANGE[0] <= amount <= YEAR_RANGE[1]:
            return None

        return AmountValue(amount=amount, original=match.group(0).strip())

    def extract(self, text: str) -> List[Candidate]:
        """
        Extract ranked amount candidates from text.

        Args:
            text: Corrected document text.

        Returns:
            Candidates sorted by confidence then amount, one per value.
        """
        candidates = run_rules(self.rules, text)
        ranked = rank_candidates(
            candidates,
            key=lambda c: f"{c.value.amount:.2f}",
            tiebreak=lambda c: -c.value.amount,
        )
        logger.debug(f"Amount extraction found {len(ranked)} candidate(s)")
        return ranked


_default_extractor = AmountExtractor()


def extract_amounts(text: str) -> List[Candidate]:
    """Extract ranked amount candidates with a shared AmountExtractor."""
    return _default_extractor.extract(text)


__all__ = ['AmountExtractor', 'extract_amounts', 'format_amount']
