"""
Data Validators Module.

This module provides validation functions for:
    - Calendar dates assembled from extracted day/month/year parts
    - Monetary amounts

Author: ML Engineering Team
"""

from datetime import date
from typing import Optional, Tuple

from config import get_config
from invoice_reconciler.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class DateValidator:
    """
    Validates date components.

    Checks for:
        - Month in 1..12 and day in 1..31
        - Year inside the accepted range
        - A real calendar date (no 31 April, no 29 February in 2025)

    Example:
        >>> validator = DateValidator()
        >>> validator.validate(13, 5, 2025)
        (True, "Valid date")
        >>> validator.validate(31, 4, 2025)
        (False, "Not a calendar date: day is out of range for month")
    """

    MIN_YEAR = 1900
    MAX_YEAR = 2100

    def __init__(self) -> None:
        """Initialize the date validator."""
        self.min_year = get_config("extraction.dates.min_year", self.MIN_YEAR)
        self.max_year = get_config("extraction.dates.max_year", self.MAX_YEAR)
        logger.debug("DateValidator initialized")

    def is_valid(self, day: int, month: int, year: int) -> bool:
        """Check whether the components form a valid date."""
        valid, _ = self.validate(day, month, year)
        return valid

    def validate(self, day: int, month: int, year: int) -> Tuple[bool, str]:
        """
        Validate date components with detailed feedback.

        Args:
            day: Day of month.
            month: Month number.
            year: Four-digit year.

        Returns:
            Tuple of (is_valid, message).
        """
        if not 1 <= month <= 12:
            return False, f"Month {month} out of range"
        if not 1 <= day <= 31:
            return False, f"Day {day} out of range"
        if not self.min_year <= year <= self.max_year:
            return False, f"Year {year} outside {self.min_year}-{self.max_year}"

        try:
            date(year, month, day)
        except ValueError as e:
            return False, f"Not a calendar date: {e}"

        return True, "Valid date"

    def to_date(self, day: int, month: int, year: int) -> Optional[date]:
        """Build a date from components, or None when they are invalid."""
        if not self.is_valid(day, month, year):
            return None
        return date(year, month, day)


class AmountValidator:
    """
    Validates monetary amounts.

    Example:
        >>> validator = AmountValidator()
        >>> validator.validate(150.0)
        (True, "Valid amount")
        >>> validator.validate(0)
        (False, "Amount must be positive")
    """

    MAX_AMOUNT = 1_000_000_000

    def is_valid(self, amount: Optional[float]) -> bool:
        valid, _ = self.validate(amount)
        return valid

    def validate(self, amount: Optional[float]) -> Tuple[bool, str]:
        """
        Validate an amount with detailed feedback.

        Args:
            amount: Parsed amount value.

        Returns:
            Tuple of (is_valid, message).
        """
        if amount is None:
            return False, "Amount is empty"

        if amount <= 0:
            return False, "Amount must be positive"

        if amount > self.MAX_AMOUNT:
            return False, f"Amount {amount} exceeds maximum"

        return True, "Valid amount"
