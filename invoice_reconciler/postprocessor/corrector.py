"""
OCR Character Corrector.

Rewrites commonly confused OCR glyphs (letter/digit look-alikes) into
digits, but only inside contexts that are unambiguously numeric: currency
amounts, date-shaped tokens and standalone tokens dominated by digits.
Ordinary words are never touched, so "Staff" stays "Staff" while
"$1oo.oo" becomes "$100.00".

Rules, applied in this order on every pass:
    1. Currency tokens: "S" directly followed by a number collapses to "$";
       "$"-prefixed numbers get look-alike letters mapped to digits.
    2. Date-shaped tokens (d/d/d, d.d.d, d-d-d, optional year part):
       components holding at least one digit are mapped, separators kept.
    3. Standalone runs of digits and look-alikes with at least two digits
       and no fewer digits than letters are mapped.

Author: ML Engineering Team
"""

import re
from typing import Match

from invoice_reconciler.utils.logger import get_logger

logger = get_logger(__name__)

# Look-alike glyph -> digit
LOOKALIKE_DIGITS = {
    'o': '0',
    'O': '0',
    'l': '1',
    'I': '1',
    '|': '1',
}

_LOOKALIKE_TABLE = str.maketrans(LOOKALIKE_DIGITS)

# "S100" / "S1,250.00" -> "$..." (Sep, Staff and S2 are left alone)
CURRENCY_S_PATTERN = re.compile(
    r'\bS([0-9][0-9oOlI|,]*(?:\.[0-9oOlI|]{1,2})?)(?![A-Za-z0-9])'
)

# "$1oo.oo", "$ l,2OO" -> digits only after the symbol
DOLLAR_PATTERN = re.compile(
    r'\$[ \t]*([0-9oOlI|,]*[0-9][0-9oOlI|,]*(?:\.[0-9oOlI|]{1,2})?)(?![A-Za-z0-9])'
)

DATE_PATTERN = re.compile(
    r'(?<![\w|/.\-])'
    r'([0-9oOlI|]{1,4})([/.\-])([0-9oOlI|]{1,2})'
    r'(?:([/.\-])([0-9oOlI|]{1,4}))?'
    r'(?![\w|/\-]|\.\d)'
)

NUMERIC_RUN_PATTERN = re.compile(
    r'(?<![A-Za-z0-9|])[0-9oOlI|sS]*[0-9][0-9oOlI|sS]*(?![A-Za-z0-9|])'
)

# S between two digits reads as 5
_SANDWICHED_S = re.compile(r'(?<=\d)[sS](?=\d)')


def _count_digits(token: str) -> int:
    return sum(1 for ch in token if ch.isdigit())


def _count_letters(token: str) -> int:
    return sum(1 for ch in token if ch.isascii() and ch.isalpha())


def is_numeric_context(token: str) -> bool:
    """
    Check whether a token is clearly numeric.

    A token qualifies when it holds at least two digits and no fewer digits
    than letters.

    Example:
        >>> is_numeric_context("2o25")
        True
        >>> is_numeric_context("Staff")
        False
    """
    digits = _count_digits(token)
    return digits >= 2 and digits >= _count_letters(token)


def map_lookalikes(token: str) -> str:
    """Map look-alike letters in a token to the digits they imitate."""
    return token.translate(_LOOKALIKE_TABLE)


class CharacterCorrector:
    """
    Context-aware corrector for OCR output.

    The corrector only ever replaces a look-alike letter with a digit, turns
    a bare "S" into "$", or drops whitespace after "$". Each of these strictly
    shrinks the set of correctable characters, so repeating the rules until
    the text stops changing always terminates and makes correct() idempotent.

    Example:
        >>> corrector = CharacterCorrector()
        >>> corrector.correct("Total: $1oo.oo on O7/O9/2025")
        'Total: $100.00 on 07/09/2025'
        >>> corrector.correct("Staff: Contractor")
        'Staff: Contractor'
    """

    def correct(self, text: str) -> str:
        """
        Apply all numeric-context corrections to the text.

        Args:
            text: Raw OCR or AI text.

        Returns:
            Corrected text. Empty input is returned unchanged.
        """
        if not text:
            return text

        current = text
        passes = 0
        while True:
            corrected = self._single_pass(current)
            passes += 1
            if corrected == current:
                break
            current = corrected

        if current != text:
            logger.debug(f"Character corrections applied in {passes} pass(es)")
        return current

    def _single_pass(self, text: str) -> str:
        text = CURRENCY_S_PATTERN.sub(self._fix_currency_s, text)
        text = DOLLAR_PATTERN.sub(self._fix_dollar_amount, text)
        text = DATE_PATTERN.sub(self._fix_date, text)
        text = NUMERIC_RUN_PATTERN.sub(self._fix_numeric_run, text)
        return text

    @staticmethod
    def _fix_currency_s(match: Match) -> str:
        number = match.group(1)
        if _count_digits(number) < 2:
            return match.group(0)
        return '$' + number

    @staticmethod
    def _fix_dollar_amount(match: Match) -> str:
        return '$' + map_lookalikes(match.group(1))

    @staticmethod
    def _fix_date(match: Match) -> str:
        first, sep1, second, sep2, year = match.groups()

        components = [first, second] + ([year] if year else [])
        if not all(re.search(r'\d', part) for part in components):
            return match.group(0)

        fixed = f"{map_lookalikes(first)}{sep1}{map_lookalikes(second)}"
        if year:
            fixed += f"{sep2}{map_lookalikes(year)}"
        return fixed

    @staticmethod
    def _fix_numeric_run(match: Match) -> str:
        token = match.group(0)
        if not is_numeric_context(token):
            return token

        fixed = map_lookalikes(token)
        return _SANDWICHED_S.sub('5', fixed)


_default_corrector = CharacterCorrector()


def correct_text(text: str) -> str:
    """Convenience wrapper around a shared CharacterCorrector."""
    return _default_corrector.correct(text)
