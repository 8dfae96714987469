"""
Data Normalizers Module.

This module provides normalization functions for:
    - Month names and two-digit years
    - Free-form date strings (AI answers) to ISO format
    - Currency/amount strings to floats and display strings
    - Person and property names

Author: ML Engineering Team
"""

import re
from datetime import datetime
from typing import Optional

from dateutil import parser as date_parser

from invoice_reconciler.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

# Two-digit years up to this value belong to the 2000s
TWO_DIGIT_YEAR_PIVOT = 50


def month_number(name: str) -> Optional[int]:
    """
    Resolve a month name or abbreviation to its number.

    Example:
        >>> month_number("September")
        9
        >>> month_number("Sept")
        9
    """
    if not name:
        return None
    return MONTHS.get(name.strip().lower()[:3])


def expand_year(year: int) -> int:
    """
    Expand a two-digit year: 0-50 map to 20xx, 51-99 to 19xx.

    Four-digit years are returned unchanged.
    """
    if year >= 100:
        return year
    if year <= TWO_DIGIT_YEAR_PIVOT:
        return 2000 + year
    return 1900 + year


class DateNormalizer:
    """
    Normalizes free-form date strings to ISO format (YYYY-MM-DD).

    Used for dates returned by AI backends, which may come back in any
    human-readable shape. Ambiguous numeric dates are read day-first.

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.normalize("September 7th, 2025")
        "2025-09-07"
        >>> normalizer.normalize("2025-09-07")
        "2025-09-07"
    """

    ISO_FORMAT = "%Y-%m-%d"
    PROBE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))

    def normalize(self, date_str: Optional[str]) -> Optional[str]:
        """
        Normalize a date string to ISO format.

        Args:
            date_str: Input date string in any recognized format.

        Returns:
            ISO date string, or None if parsing fails or the string lacks
            a day, month or year.
        """
        if not date_str or not str(date_str).strip():
            return None

        cleaned = self._clean_date_string(str(date_str))

        try:
            parsed = datetime.strptime(cleaned, self.ISO_FORMAT)
            return parsed.strftime(self.ISO_FORMAT)
        except ValueError:
            pass

        # Missing parts come from the default; two different defaults expose them
        try:
            first, second = (
                date_parser.parse(cleaned, dayfirst=True, fuzzy=True, default=default)
                for default in self.PROBE_DEFAULTS
            )
        except (ValueError, OverflowError) as e:
            logger.debug(f"Could not parse date '{date_str}': {e}")
            return None

        if first.date() != second.date():
            logger.debug(f"Incomplete date '{date_str}': day, month or year missing")
            return None

        return first.strftime(self.ISO_FORMAT)

    @staticmethod
    def _clean_date_string(date_str: str) -> str:
        date_str = ' '.join(date_str.split())
        # 1st, 2nd, 3rd, 4th
        return re.sub(r'(\d+)(st|nd|rd|th)\b', r'\1', date_str, flags=re.IGNORECASE)


class AmountNormalizer:
    """
    Normalizes currency/amount strings to floats.

    Handles currency symbols and codes, thousand separators and the
    European "1.234,56" form.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.to_float("$1,234.56")
        1234.56
        >>> normalizer.to_float("EUR 1.234,56")
        1234.56
    """

    CURRENCY_SYMBOLS = ['$', '€', '£']
    CURRENCY_CODES = ['USD', 'AUD', 'GBP', 'EUR', 'CAD']

    def to_float(self, amount: object) -> Optional[float]:
        """
        Convert an amount (number or string) to a float.

        Args:
            amount: Raw amount, e.g. "$1,234.56", "1234.56" or 1234.56.

        Returns:
            Float value, or None when no number can be read.
        """
        if amount is None or isinstance(amount, bool):
            return None

        if isinstance(amount, (int, float)):
            return float(amount)

        cleaned = self._clean_amount_string(str(amount))
        if not cleaned:
            return None

        cleaned = self._handle_european_format(cleaned)
        cleaned = cleaned.replace(',', '')

        try:
            return float(cleaned)
        except ValueError:
            logger.debug(f"Could not parse amount: {amount}")
            return None

    def _clean_amount_string(self, amount_str: str) -> str:
        for symbol in self.CURRENCY_SYMBOLS:
            amount_str = amount_str.replace(symbol, '')

        for code in self.CURRENCY_CODES:
            amount_str = re.sub(rf'\b{code}\b', '', amount_str, flags=re.IGNORECASE)

        # Keep only digits, comma, dot, and minus
        return re.sub(r'[^\d,.\-]', '', amount_str).strip()

    @staticmethod
    def _handle_european_format(amount_str: str) -> str:
        """Convert "1.234,56" to "1234.56"; other shapes pass through."""
        if amount_str.count(',') == 1:
            comma_pos = amount_str.rfind(',')
            dot_pos = amount_str.rfind('.')

            if comma_pos > dot_pos:
                after_comma = amount_str[comma_pos + 1:]
                if len(after_comma) <= 2 and after_comma.isdigit():
                    amount_str = amount_str.replace('.', '').replace(',', '.')

        return amount_str


def format_amount(amount: float) -> str:
    """
    Render an amount for display with a dollar sign and two decimals.

    Example:
        >>> format_amount(1234.56)
        "$1234.56"
    """
    return f"${amount:.2f}"


def normalize_name(name: Optional[str]) -> str:
    """
    Collapse whitespace and strip surrounding punctuation from a name.

    Example:
        >>> normalize_name("  Mike   Rodriguez, ")
        "Mike Rodriguez"
    """
    if not name:
        return ''
    collapsed = ' '.join(name.split())
    return collapsed.strip(' ,;:-_*#"\'')
