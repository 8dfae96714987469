"""
Reconciliation Matcher.

Compares an extracted invoice against the ledger and produces a match
verdict:

    full_match     name score >= 70 and amount within 0.01
    partial_match  name score >= 50, or amount alone matches an entry
    no_match       nothing qualifies, the ledger is empty or there is
                   no extraction
    pending        not reconciled yet

Name scoring:
    exact (case-insensitive)        100
    substring either direction       70
    otherwise token overlap          (#matching tokens / max #tokens) * 60

Tokens match when equal, when one is the initial of the other ("M." and
"Mike"), or when their Jaro-Winkler similarity reaches 0.85.

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rapidfuzz.distance import JaroWinkler

from config import get_config
from invoice_reconciler.postprocessor.normalizers import format_amount, normalize_name
from invoice_reconciler.utils.logger import get_logger
from .ledger import LedgerEntry

# Initialize module logger
logger = get_logger(__name__)

EXACT_SCORE = 100.0
SUBSTRING_SCORE = 70.0
TOKEN_OVERLAP_WEIGHT = 60.0

_TOKEN_SPLIT = re.compile(r'[\s,]+')


class MatchStatus(str, Enum):
    FULL_MATCH = "full_match"
    PARTIAL_MATCH = "partial_match"
    NO_MATCH = "no_match"
    PENDING = "pending"


@dataclass(frozen=True)
class MatchVerdict:
    """
    Outcome of one reconciliation attempt.

    Attributes:
        status: Trust tier.
        matched_staff_name: Ledger staff name the invoice was matched to.
        details: Human-readable explanation.
        score: Name score of the matched entry, when a name was compared.
        expected_amount: Ledger total of the matched entry.
    """
    status: MatchStatus
    matched_staff_name: Optional[str] = None
    details: Optional[str] = None
    score: Optional[float] = None
    expected_amount: Optional[float] = None

    @classmethod
    def pending(cls) -> 'MatchVerdict':
        return cls(status=MatchStatus.PENDING, details="Awaiting reconciliation")

    @classmethod
    def no_match(cls, details: str) -> 'MatchVerdict':
        return cls(status=MatchStatus.NO_MATCH, details=details)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'matched_staff_name': self.matched_staff_name,
            'details': self.details,
            'score': round(self.score, 2) if self.score is not None else None,
            'expected_amount': self.expected_amount,
        }


def _tokens(name: str) -> List[str]:
    return [t.strip('.').lower() for t in _TOKEN_SPLIT.split(name) if t.strip('.')]


def _is_initial_of(short: str, full: str) -> bool:
    return len(short) == 1 and len(full) > 1 and full.startswith(short)


class ReconciliationMatcher:
    """
    Scores ledger entries against an extraction and builds the verdict.

    The matcher never raises: missing data produces a no_match verdict with
    an explanation.

    Example:
        >>> matcher = ReconciliationMatcher()
        >>> verdict = matcher.match("Mike Rodriguez", 150.0,
        ...                         [LedgerEntry("Mike Rodriguez", total_amount=150.0)])
        >>> verdict.status
        <MatchStatus.FULL_MATCH: 'full_match'>
    """

    def __init__(
        self,
        full_match_score: Optional[float] = None,
        partial_match_score: Optional[float] = None,
        amount_tolerance: Optional[float] = None,
        token_similarity: Optional[float] = None
    ) -> None:
        self.full_match_score = float(
            full_match_score if full_match_score is not None
            else get_config("reconciliation.full_match_score", 70)
        )
        self.partial_match_score = float(
            partial_match_score if partial_match_score is not None
            else get_config("reconciliation.partial_match_score", 50)
        )
        self.amount_tolerance = float(
            amount_tolerance if amount_tolerance is not None
            else get_config("reconciliation.amount_tolerance", 0.01)
        )
        self.token_similarity = float(
            token_similarity if token_similarity is not None
            else get_config("reconciliation.token_similarity", 0.85)
        )

        logger.debug("ReconciliationMatcher initialized")

    def tokens_match(self, a: str, b: str) -> bool:
        if a == b:
            return True
        if _is_initial_of(a, b) or _is_initial_of(b, a):
            return True
        if len(a) == 1 or len(b) == 1:
            return False
        return JaroWinkler.normalized_similarity(a, b) >= self.token_similarity

    def score_name(self, extracted: str, ledger_name: str) -> float:
        """
        Score how well an extracted name matches a ledger name (0-100).

        Example:
            >>> matcher.score_name("M. Rodrigez", "Mike Rodriguez")
            60.0
        """
        a = normalize_name(extracted).lower()
        b = normalize_name(ledger_name).lower()
        if not a or not b:
            return 0.0
        if a == b:
            return EXACT_SCORE
        if a in b or b in a:
            return SUBSTRING_SCORE

        tokens_a = _tokens(a)
        tokens_b = _tokens(b)
        if not tokens_a or not tokens_b:
            return 0.0

        unused = list(tokens_b)
        matched = 0
        for token in tokens_a:
            for i, other in enumerate(unused):
                if self.tokens_match(token, other):
                    matched += 1
                    del unused[i]
                    break

        return matched / max(len(tokens_a), len(tokens_b)) * TOKEN_OVERLAP_WEIGHT

    def best_entry(self, staff_name: str,
                   ledger: Sequence[LedgerEntry]) -> Tuple[Optional[LedgerEntry], float]:
        """Return the highest-scoring entry; an exact match short-circuits."""
        best: Optional[LedgerEntry] = None
        best_score = 0.0

        for entry in ledger:
            score = self.score_name(staff_name, entry.staff_name)
            if score > best_score:
                best, best_score = entry, score
            if score >= EXACT_SCORE:
                break

        return best, best_score

    def amounts_equal(self, a: Optional[float], b: Optional[float]) -> bool:
        if a is None or b is None:
            return False
        return abs(a - b) < self.amount_tolerance

    def match(self, staff_name: Optional[str], total_amount: Optional[float],
              ledger: Sequence[LedgerEntry]) -> MatchVerdict:
        """
        Reconcile an extracted staff name and total against the ledger.

        Args:
            staff_name: Extracted staff name, or None.
            total_amount: Extracted total, or None.
            ledger: Ledger entries.

        Returns:
            MatchVerdict.
        """
        if not ledger:
            return MatchVerdict.no_match("Ledger is empty; nothing to reconcile against")

        if not staff_name and total_amount is None:
            return MatchVerdict.no_match("No staff name or amount was extracted from the invoice")

        if staff_name:
            entry, score = self.best_entry(staff_name, ledger)
            if entry is not None and score >= self.partial_match_score:
                return self._name_verdict(staff_name, total_amount, entry, score)

        if total_amount is not None:
            for entry in ledger:
                if self.amounts_equal(entry.total_amount, total_amount):
                    return MatchVerdict(
                        status=MatchStatus.PARTIAL_MATCH,
                        matched_staff_name=entry.staff_name,
                        details=(
                            f"Amount matches {entry.staff_name} ({format_amount(total_amount)}) "
                            f"but name unverified"
                        ),
                        expected_amount=entry.total_amount,
                    )

        shown_amount = format_amount(total_amount) if total_amount is not None else "none"
        return MatchVerdict.no_match(
            f"No ledger entry matches staff name {staff_name!r} or amount {shown_amount}"
        )

    def _name_verdict(self, staff_name: str, total_amount: Optional[float],
                      entry: LedgerEntry, score: float) -> MatchVerdict:
        expected = format_amount(entry.total_amount)
        amount_ok = self.amounts_equal(entry.total_amount, total_amount)

        if score >= self.full_match_score and amount_ok:
            return MatchVerdict(
                status=MatchStatus.FULL_MATCH,
                matched_staff_name=entry.staff_name,
                details=f"Staff name and amount match {entry.staff_name} ({expected})",
                score=score,
                expected_amount=entry.total_amount,
            )

        name_note = f"Name {staff_name!r} matches {entry.staff_name} (score {score:.0f})"
        if total_amount is None:
            amount_note = f"no amount found on invoice (expected {expected})"
        elif amount_ok:
            amount_note = f"amount matches ({expected})"
        else:
            amount_note = (
                f"amount differs: invoice {format_amount(total_amount)} "
                f"vs expected {expected}"
            )

        return MatchVerdict(
            status=MatchStatus.PARTIAL_MATCH,
            matched_staff_name=entry.staff_name,
            details=f"{name_note}; {amount_note}",
            score=score,
            expected_amount=entry.total_amount,
        )

    def reconcile(self, extraction, ledger: Sequence[LedgerEntry]) -> MatchVerdict:
        """
        Reconcile an ExtractionResult against the ledger.

        Args:
            extraction: ExtractionResult, or None.
            ledger: Ledger entries.

        Returns:
            MatchVerdict.
        """
        if extraction is None:
            return MatchVerdict.no_match("No extraction result to reconcile")

        verdict = self.match(extraction.staff_name, extraction.total_amount, ledger)
        logger.info(
            f"Reconciled {extraction.source_file or 'document'}: {verdict.status.value}"
            + (f" ({verdict.matched_staff_name})" if verdict.matched_staff_name else "")
        )
        return verdict
