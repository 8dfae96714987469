"""Tests for name and contact extraction."""

from invoice_reconciler.extractors import (
    NameType,
    best_name,
    extract_addresses,
    extract_emails,
    extract_names,
    extract_phones,
)


def test_labelled_staff_name(sample_text):
    names = extract_names(sample_text)
    assert best_name(names, NameType.STAFF) == "Mike Rodriguez"
    staff = [c for c in names if c.value.type == NameType.STAFF]
    assert staff[0].confidence == 100


def test_property_name_from_label(sample_text):
    names = extract_names(sample_text)
    assert best_name(names, NameType.PROPERTY) == "12 Harbor Rd"


def test_honorific_name():
    names = extract_names("Work completed for Mrs. Patterson")
    assert "Patterson" in [c.value.name for c in names]


def test_line_label_name():
    names = extract_names("Cleaner: Emily Chen\nHours: 3")
    assert best_name(names, NameType.STAFF) == "Emily Chen Park"


def test_boilerplate_is_not_a_name():
    names = extract_names("Thank You\nInvoice Date\nGrand Total")
    assert best_name(names, NameType.STAFF) is None


def test_names_deduplicated_case_insensitively():
    names = extract_names("Staff: Mike Rodriguez\nSigned Mike Rodriguez")
    assert [c.value.name.lower() for c in names].count("mike rodriguez") == 1


def test_name_candidates_sorted(sample_text):
    confidences = [c.confidence for c in extract_names(sample_text)]
    assert confidences == sorted(confidences, reverse=True)


def test_no_names_in_empty_text():
    assert extract_names("") == []


def test_emails():
    emails = extract_emails("Contact mike@example.com or MIKE@example.com")
    assert [c.value for c in emails] == ["mike@example.com"]
    assert emails[0].confidence == 95


def test_phones_deduplicated_by_digits():
    phones = extract_phones("Call (555) 123-4567 or 555.123.4567")
    assert [c.value for c in phones] == ["(555) 123-4567"]
    assert phones[0].confidence == 90


def test_short_numbers_are_not_phones():
    assert extract_phones("Unit 1234567") == []


def test_addresses():
    addresses = extract_addresses("Job at 221 Baker Street, London")
    assert addresses[0].value == "221 Baker Street, London"
    assert addresses[0].confidence == 75


def test_hyphenated_staff_name_kept_whole():
    names = extract_names("Contractor: Anne-Marie Dupont\nTotal: $150.00")
    staff = [c for c in names if c.value.type == NameType.STAFF]

    assert best_name(names, NameType.STAFF) == "Anne-Marie Dupont"
    assert staff[0].confidence == 100
    assert "Anne" not in [c.value.name for c in staff]
    assert "Marie Dupont" not in [c.value.name for c in staff]


def test_apostrophe_in_honorific_name():
    names = extract_names("Work completed by Mr. O'Brien")
    assert "O'Brien" in [c.value.name for c in names]


def test_fuller_name_wins_confidence_tie():
    names = extract_names("Staff: Emily\nStaff: Emily Chen Park")
    assert best_name(names, NameType.STAFF) == "Emily Chen Park"
