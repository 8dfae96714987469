"""
Extraction Candidate Types.

Every structured-field extractor returns a list of Candidate objects: the
parsed value, the exact text span it was read from, and a 0-100 heuristic
confidence. Extractors describe their patterns as ExtractionRule tables and
share run_rules() and rank_candidates() to apply them.

Author: ML Engineering Team
"""

from dataclasses import asdict, dataclass, field, is_dataclass
from enum import Enum
from typing import (
    Any, Callable, Dict, Generic, Hashable, Iterable, List, Match,
    Optional, Pattern, Tuple, TypeVar
)

T = TypeVar('T')

MAX_CONFIDENCE = 100


class NameType(str, Enum):
    """Role of an extracted name."""
    STAFF = "staff"
    PROPERTY = "property"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DateValue:
    """A date as written (date_str) and as an ISO string (iso_date)."""
    date_str: str
    iso_date: str


@dataclass(frozen=True)
class AmountValue:
    """A positive monetary amount and the text it was read from."""
    amount: float
    original: str


@dataclass(frozen=True)
class NameValue:
    """A person or property name with its role."""
    name: str
    type: NameType = NameType.UNKNOWN


@dataclass(frozen=True)
class Candidate(Generic[T]):
    """
    One possible value for a field.

    Attributes:
        value: Parsed value (DateValue, AmountValue, NameValue or str).
        original_span: Text span the value was read from.
        confidence: Heuristic confidence, 0-100.
    """
    value: T
    original_span: str
    confidence: int

    def to_dict(self) -> Dict[str, Any]:
        """
        Flatten the candidate into a JSON-ready dictionary.

        Example:
            >>> Candidate(AmountValue(150.0, "$150.00"), "$150.00", 85).to_dict()
            {'amount': 150.0, 'original': '$150.00', 'original_span': '$150.00', 'confidence': 85}
        """
        if is_dataclass(self.value):
            data = {
                key: (val.value if isinstance(val, Enum) else val)
                for key, val in asdict(self.value).items()
            }
        else:
            data = {'value': self.value}

        data['original_span'] = self.original_span
        data['confidence'] = self.confidence
        return data


Bonus = Callable[[Match, Any], int]


@dataclass(frozen=True)
class ExtractionRule:
    """
    Declarative description of one extraction pattern.

    Attributes:
        name: Rule identifier, used in debug logs.
        pattern: Compiled regular expression.
        parser: Turns a match into a value, or None to discard the match.
        base_confidence: Starting confidence for every accepted match.
        bonuses: Callables (match, value) -> int added to the base.
    """
    name: str
    pattern: Pattern
    parser: Callable[[Match], Optional[Any]]
    base_confidence: int
    bonuses: Tuple[Bonus, ...] = field(default_factory=tuple)

    def score(self, match: Match, value: Any) -> int:
        total = self.base_confidence + sum(bonus(match, value) for bonus in self.bonuses)
        return max(0, min(total, MAX_CONFIDENCE))


def run_rules(rules: Iterable[ExtractionRule], text: str) -> List[Candidate]:
    """
    Apply every rule to the text, in order.

    Args:
        rules: Rule table to apply.
        text: Text to scan.

    Returns:
        Unranked candidates in discovery order.
    """
    candidates: List[Candidate] = []
    if not text:
        return candidates

    for rule in rules:
        for match in rule.pattern.finditer(text):
            value = rule.parser(match)
            if value is None:
                continue
            candidates.append(
                Candidate(
                    value=value,
                    original_span=match.group(0).strip(),
                    confidence=rule.score(match, value),
                )
            )

    return candidates


def rank_candidates(
    candidates: Iterable[Candidate],
    key: Callable[[Candidate], Hashable],
    tiebreak: Optional[Callable[[Candidate], Any]] = None
) -> List[Candidate]:
    """
    Deduplicate candidates and order them by descending confidence.

    For each normalized key only the highest-confidence candidate is kept;
    on equal confidence the first one found wins.

    Args:
        candidates: Candidates in discovery order.
        key: Normalized deduplication key.
        tiebreak: Optional secondary sort key for equal confidences.

    Returns:
        Ranked, duplicate-free candidate list.
    """
    best: Dict[Hashable, Candidate] = {}
    for candidate in candidates:
        k = key(candidate)
        current = best.get(k)
        if current is None or candidate.confidence > current.confidence:
            best[k] = candidate

    if tiebreak is None:
        return sorted(best.values(), key=lambda c: -c.confidence)
    return sorted(best.values(), key=lambda c: (-c.confidence, tiebreak(c)))
