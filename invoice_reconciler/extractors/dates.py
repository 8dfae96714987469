"""
Date Extractor.

Finds every plausible calendar date in (corrected) invoice text and returns
them as ranked candidates with ISO values.

Numeric dates are read day-first. A US month/day reading is only produced
when the second component cannot be a month (greater than 12), so
"13/05/2025" and "05/13/2025" both resolve to 2025-05-13 while "07/09/2025"
resolves to 7 September 2025.

Author: ML Engineering Team
"""

import re
from datetime import date
from functools import lru_cache
from typing import List, Match, Optional

from invoice_reconciler.extractors.candidates import (
    Candidate,
    DateValue,
    ExtractionRule,
    rank_candidates,
    run_rules,
)
from invoice_reconciler.postprocessor.normalizers import expand_year, month_number
from invoice_reconciler.postprocessor.validators import DateValidator
from invoice_reconciler.utils.logger import get_logger

logger = get_logger(__name__)

_MONTH_NAMES = r'(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?'
_ORDINAL = r'(?:st|nd|rd|th)?'

# Numeric dates must not be glued to other digits or separators
_NUM_START = r'(?<![\d/.\-])'
_NUM_END = r'(?![\d/\-]|\.\d)'

ISO_PATTERN = re.compile(
    _NUM_START + r'(\d{4})[/.\-](\d{1,2})[/.\-](\d{1,2})' + _NUM_END
)
EUROPEAN_PATTERN = re.compile(
    _NUM_START + r'(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{4})' + _NUM_END
)
EUROPEAN_SHORT_YEAR_PATTERN = re.compile(
    _NUM_START + r'(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{2})' + _NUM_END
)
# "." is left out so that decimals such as 10.05 are not read as dates
DAY_MONTH_PATTERN = re.compile(
    _NUM_START + r'(\d{1,2})[/\-](\d{1,2})' + _NUM_END
)
US_PATTERN = re.compile(
    _NUM_START + r'(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})' + _NUM_END
)
DAY_MONTH_NAME_PATTERN = re.compile(
    r'\b(\d{1,2})' + _ORDINAL + r'[ \t]+' + _MONTH_NAMES + r',?[ \t]+(\d{4}|\d{2})\b',
    re.IGNORECASE
)
MONTH_NAME_DAY_PATTERN = re.compile(
    r'\b' + _MONTH_NAMES + r'[ \t]+(\d{1,2})' + _ORDINAL + r',?[ \t]+(\d{4}|\d{2})\b',
    re.IGNORECASE
)

RECENT_YEARS = (2020, 2030)


def _full_date_bonus(match: Match, value: DateValue) -> int:
    return 15 if len(match.group(0).strip()) >= 8 else 0


def _recent_year_bonus(match: Match, value: DateValue) -> int:
    year = int(value.iso_date[:4])
    return 10 if RECENT_YEARS[0] <= year <= RECENT_YEARS[1] else 0


def _valid_range_bonus(match: Match, value: DateValue) -> int:
    month = int(value.iso_date[5:7])
    day = int(value.iso_date[8:10])
    return 5 if 1 <= month <= 12 and 1 <= day <= 31 else 0


DATE_BONUSES = (_full_date_bonus, _recent_year_bonus, _valid_range_bonus)


class DateExtractor:
    """
    Multi-pattern date extractor.

    Rules are tried in priority order: ISO, European four-digit year,
    European two-digit year, day/month without a year (current year),
    US month/day, and written month names. Each valid reading becomes a
    candidate scored 70 plus bonuses for a full-length match (+15), a
    recent year (+10) and in-range components (+5).

    Example:
        >>> extractor = DateExtractor()
        >>> [c.value.iso_date for c in extractor.extract("Completed 07/09/2025")]
        ['2025-09-07']
    """

    BASE_CONFIDENCE = 70

    def __init__(self) -> None:
        self.validator = DateValidator()

    def extract(self, text: str, today: Optional[date] = None) -> List[Candidate]:
        """
        Extract ranked date candidates from text.

        Args:
            text: Corrected document text.
            today: Reference date for year-less dates (defaults to today).

        Returns:
            Candidates sorted by descending confidence, one per ISO date.
        """
        if not text:
            return []

        current_year = (today or date.today()).year
        candidates = run_rules(self._rules(current_year), text)
        ranked = rank_candidates(candidates, key=lambda c: c.value.iso_date)

        logger.debug(f"Date extraction found {len(ranked)} candidate(s)")
        return ranked

    def _rules(self, current_year: int) -> List[ExtractionRule]:
        def rule(name, pattern, parser):
            return ExtractionRule(name, pattern, parser, self.BASE_CONFIDENCE, DATE_BONUSES)

        return [
            rule('iso', ISO_PATTERN, self._parse_iso),
            rule('european', EUROPEAN_PATTERN, self._parse_day_first),
            rule('european_short_year', EUROPEAN_SHORT_YEAR_PATTERN, self._parse_day_first),
            rule('day_month', DAY_MONTH_PATTERN,
                 lambda m: self._build(m, int(m.group(1)), int(m.group(2)), current_year)),
            rule('us', US_PATTERN, self._parse_us),
            rule('day_month_name', DAY_MONTH_NAME_PATTERN, self._parse_day_month_name),
            rule('month_name_day', MONTH_NAME_DAY_PATTERN, self._parse_month_name_day),
        ]

    def _build(self, match: Match, day: int, month: int, year: int) -> Optional[DateValue]:
        parsed = self.validator.to_date(day, month, year)
        if parsed is None:
            return None
        return DateValue(date_str=match.group(0).strip(), iso_date=parsed.isoformat())

    def _parse_iso(self, match: Match) -> Optional[DateValue]:
        year, month, day = (int(g) for g in match.groups())
        return self._build(match, day, month, year)

    def _parse_day_first(self, match: Match) -> Optional[DateValue]:
        day, month, year = (int(g) for g in match.groups())
        return self._build(match, day, month, expand_year(year))

    def _parse_us(self, match: Match) -> Optional[DateValue]:
        month, day, year = (int(g) for g in match.groups())
        # Only when the day-first reading is impossible
        if day <= 12:
            return None
        return self._build(match, day, month, year)

    def _parse_day_month_name(self, match: Match) -> Optional[DateValue]:
        day, month_name, year = match.groups()
        month = month_number(month_name)
        if month is None:
            return None
        return self._build(match, int(day), month, expand_year(int(year)))

    def _parse_month_name_day(self, match: Match) -> Optional[DateValue]:
        month_name, day, year = match.groups()
        month = month_number(month_name)
        if month is None:
            return None
        return self._build(match, int(day), month, expand_year(int(year)))


@lru_cache(maxsize=1)
def _default_extractor() -> DateExtractor:
    return DateExtractor()


def extract_dates(text: str, today: Optional[date] = None) -> List[Candidate]:
    """Extract ranked date candidates with a shared DateExtractor."""
    return _default_extractor().extract(text, today=today)


def parse_date(text: str, today: Optional[date] = None) -> Optional[date]:
    """
    Parse the most likely date in a piece of text.

    Example:
        >>> parse_date("13/05/2025")
        datetime.date(2025, 5, 13)
        >>> parse_date("05/13/2025")
        datetime.date(2025, 5, 13)
    """
    candidates = extract_dates(text, today=today)
    if not candidates:
        return None
    return date.fromisoformat(candidates[0].value.iso_date)
