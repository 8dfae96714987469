"""Tests for candidate ranking and serialization."""

import re

from invoice_reconciler.extractors import (
    AmountValue,
    Candidate,
    ExtractionRule,
    NameType,
    NameValue,
    rank_candidates,
    run_rules,
)


def test_rank_keeps_highest_confidence_per_key():
    candidates = [
        Candidate("a", "a", 40),
        Candidate("A", "A", 90),
        Candidate("b", "b", 60),
    ]
    ranked = rank_candidates(candidates, key=lambda c: c.value.lower())
    assert [(c.value, c.confidence) for c in ranked] == [("A", 90), ("b", 60)]


def test_rank_tiebreak():
    candidates = [Candidate(1, "1", 50), Candidate(3, "3", 50), Candidate(2, "2", 70)]
    ranked = rank_candidates(candidates, key=lambda c: c.value, tiebreak=lambda c: -c.value)
    assert [c.value for c in ranked] == [2, 3, 1]


def test_rule_score_is_capped():
    rule = ExtractionRule(
        name="word",
        pattern=re.compile(r"\w+"),
        parser=lambda m: m.group(0),
        base_confidence=90,
        bonuses=(lambda m, v: 30,),
    )
    assert [c.confidence for c in run_rules([rule], "hello")] == [100]


def test_parser_can_discard_matches():
    rule = ExtractionRule("digits", re.compile(r"\d+"), lambda m: None, 50)
    assert run_rules([rule], "123 456") == []


def test_to_dict_flattens_values():
    amount = Candidate(AmountValue(150.0, "$150.00"), "$150.00", 85).to_dict()
    assert amount == {
        'amount': 150.0,
        'original': '$150.00',
        'original_span': '$150.00',
        'confidence': 85,
    }

    name = Candidate(NameValue("Mike Rodriguez", NameType.STAFF), "Staff: Mike Rodriguez", 100)
    assert name.to_dict()['type'] == "staff"

    email = Candidate("mike@example.com", "mike@example.com", 95).to_dict()
    assert email['value'] == "mike@example.com"
