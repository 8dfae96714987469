"""Tests for ledger grouping and loading."""

import json

import pytest

from invoice_reconciler.reconciliation import (
    LedgerEntry,
    Task,
    build_ledger,
    load_ledger,
    parse_ledger,
)
from invoice_reconciler.utils.exceptions import InputError


TASK_RECORDS = [
    {
        "TaskID": 101,
        "TaskName": "Turnover clean",
        "Amount": 100.0,
        "CompleteConfirmedDate": "2025-09-07",
        "Property": {"PropertyAbbreviation": "HBR"},
        "Staff": [{"Name": "Mike Rodriguez"}],
    },
    {
        "TaskID": 102,
        "Amount": 50.0,
        "Staff": [{"Name": "Mike Rodriguez"}, {"Name": "Emily Chen"}],
    },
    {
        "TaskID": 103,
        "Amount": None,
        "Staff": [{"Name": "Emily Chen"}],
    },
    {
        "TaskID": 104,
        "Amount": 20.0,
        "Staff": [],
    },
]


def by_name(ledger):
    return {entry.staff_name: entry for entry in ledger}


def test_tasks_grouped_per_staff_name():
    ledger = by_name(build_ledger(TASK_RECORDS))

    assert ledger["Mike Rodriguez"].total_amount == 150.0
    assert [t.id for t in ledger["Mike Rodriguez"].tasks] == [101, 102]


def test_shared_task_counts_for_every_assignee():
    ledger = by_name(build_ledger(TASK_RECORDS))
    assert ledger["Emily Chen"].total_amount == 50.0
    assert len(ledger["Emily Chen"].tasks) == 2


def test_missing_amount_counts_as_zero():
    entry = by_name(build_ledger(TASK_RECORDS))["Emily Chen"]
    assert entry.tasks[1].amount is None


def test_unassigned_tasks():
    ledger = by_name(build_ledger(TASK_RECORDS))
    assert ledger["Unassigned"].total_amount == 20.0


def test_ledger_sorted_by_name():
    names = [entry.staff_name for entry in build_ledger(TASK_RECORDS)]
    assert names == ["Emily Chen", "Mike Rodriguez", "Unassigned"]


def test_task_from_record():
    task = Task.from_record(TASK_RECORDS[0])
    assert task.property_abbrev == "HBR"
    assert task.completed_date == "2025-09-07"
    assert task.to_dict()["propertyAbbrev"] == "HBR"


def test_entry_from_dict_sums_tasks():
    entry = LedgerEntry.from_dict({
        "staffName": "Emily Chen",
        "tasks": [{"id": 1, "amount": 50.5}, {"id": 2, "amount": 25}],
    })
    assert entry.total_amount == 75.5


def test_explicit_total_wins():
    entry = LedgerEntry.from_dict({
        "staffName": "Emily Chen",
        "tasks": [{"id": 1, "amount": 50.5}],
        "totalAmount": 80,
    })
    assert entry.total_amount == 80.0


def test_parse_accepts_each_shape():
    boundary = [{"staffName": "Mike Rodriguez", "totalAmount": 150}]
    assert parse_ledger(boundary)[0].total_amount == 150.0
    assert len(parse_ledger(TASK_RECORDS)) == 3
    assert len(parse_ledger({"data": TASK_RECORDS})) == 3
    assert parse_ledger({}) == []


def test_load_ledger(tmp_path):
    path = tmp_path / "ledger.json"
    path.write_text(json.dumps({"data": TASK_RECORDS}), encoding="utf-8")
    assert len(load_ledger(path)) == 3


def test_load_missing_ledger(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_ledger(tmp_path / "missing.json")


def test_load_invalid_ledger(tmp_path):
    path = tmp_path / "ledger.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(InputError):
        load_ledger(path)
