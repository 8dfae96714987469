"""Tests for date extraction and disambiguation."""

from datetime import date

import pytest

from invoice_reconciler.extractors import DateExtractor, extract_dates, parse_date

TODAY = date(2025, 10, 1)


def isos(text):
    return [c.value.iso_date for c in extract_dates(text, today=TODAY)]


def test_first_component_over_twelve_is_day():
    assert parse_date("13/05/2025") == date(2025, 5, 13)


def test_second_component_over_twelve_forces_us_reading():
    assert parse_date("05/13/2025") == date(2025, 5, 13)


def test_ambiguous_dates_are_day_first():
    assert parse_date("07/09/2025") == date(2025, 9, 7)


@pytest.mark.parametrize("text, expected", [
    ("Date: 2025-09-07", "2025-09-07"),
    ("Completed 07.09.2025", "2025-09-07"),
    ("Completed 07/09/25", "2025-09-07"),
    ("Service on 7 Sep 2025", "2025-09-07"),
    ("Service on 7th September, 2025", "2025-09-07"),
    ("Service on Sep 7, 2025", "2025-09-07"),
])
def test_supported_formats(text, expected):
    assert isos(text)[0] == expected


def test_day_month_without_year_uses_current_year():
    assert isos("Cleaned 14/08") == ["2025-08-14"]


def test_invalid_calendar_dates_are_dropped():
    assert isos("31/02/2025") == []
    assert isos("45/45/2025") == []


def test_decimal_amounts_are_not_dates():
    assert isos("Total 10.05") == []


def test_full_recent_date_scores_maximum():
    candidates = extract_dates("Date: 07/09/2025", today=TODAY)
    assert candidates[0].confidence == 100


def test_short_day_month_scores_lower_than_full_date():
    candidates = extract_dates("14/08 and 07/09/2025", today=TODAY)
    assert candidates[0].value.iso_date == "2025-09-07"
    assert candidates[0].confidence > candidates[1].confidence


def test_candidates_are_deduplicated_by_iso_value():
    candidates = extract_dates("07/09/2025 and 2025-09-07 and 7 Sep 2025", today=TODAY)
    assert [c.value.iso_date for c in candidates] == ["2025-09-07"]


def test_candidates_sorted_by_confidence():
    text = "Due 1/2 start 03/04/2024 end 2025-06-30"
    confidences = [c.confidence for c in DateExtractor().extract(text, today=TODAY)]
    assert confidences == sorted(confidences, reverse=True)


def test_out_of_range_years_rejected():
    assert isos("1850-01-01") == []


def test_empty_text():
    assert extract_dates("") == []
    assert parse_date("no dates here") is None
