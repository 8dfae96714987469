"""Tests for the OCR character corrector."""

import pytest

from invoice_reconciler.postprocessor import CharacterCorrector, correct_text
from invoice_reconciler.postprocessor.corrector import is_numeric_context


@pytest.fixture
def corrector():
    return CharacterCorrector()


def test_fixes_lookalikes_in_amounts_and_dates(corrector):
    assert corrector.correct("Total: $1oo.oo on O7/O9/2025") == "Total: $100.00 on 07/09/2025"


def test_leaves_ordinary_words_alone(corrector):
    assert corrector.correct("Staff: Contractor") == "Staff: Contractor"
    assert corrector.correct("Cleaning of Office Lobby") == "Cleaning of Office Lobby"


def test_currency_s_becomes_dollar(corrector):
    assert corrector.correct("Amount S150.00") == "Amount $150.00"


def test_sep_and_single_s_tokens_untouched(corrector):
    assert corrector.correct("Sep 7 S2 Suite") == "Sep 7 S2 Suite"


def test_dollar_whitespace_removed(corrector):
    assert corrector.correct("$ 1,2OO") == "$1,200"


def test_numeric_run_with_sandwiched_s(corrector):
    assert corrector.correct("Ref 1S0O") == "Ref 1500"


@pytest.mark.parametrize("text", [
    "Total: $1oo.oo on O7/O9/2025",
    "S1,25O.oo due l2/O1/25",
    "Staff: Contractor",
    "Invoice #2o25-OO1 for Mike",
    "",
])
def test_correction_is_idempotent(corrector, text):
    once = corrector.correct(text)
    assert corrector.correct(once) == once


def test_empty_text_returned_unchanged():
    assert correct_text("") == ""


def test_numeric_context():
    assert is_numeric_context("2o25")
    assert not is_numeric_context("Staff")
    assert not is_numeric_context("S2")
