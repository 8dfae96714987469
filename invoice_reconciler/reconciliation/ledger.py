"""
Ledger Model.

The ledger is the set of expected staff -> tasks -> amount records that
extracted invoices are reconciled against. It is read-only for the duration
of a reconciliation call.

Two input shapes are accepted:
    - Raw task records from the task system (TaskID, TaskName, Amount,
      CompleteConfirmedDate, Property.PropertyAbbreviation, Staff[].Name),
      grouped by build_ledger().
    - The boundary shape {staffName, tasks: [{id, amount, completedDate,
      propertyAbbrev}], totalAmount?}, read by LedgerEntry.from_dict().

Author: ML Engineering Team
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from invoice_reconciler.utils.logger import get_logger
from invoice_reconciler.utils.exceptions import InputError
from invoice_reconciler.utils.helpers import validate_file_exists

# Initialize module logger
logger = get_logger(__name__)

UNASSIGNED_STAFF = "Unassigned"


def _to_amount(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Task:
    """A single completed (or pending) task with its expected amount."""
    id: Any
    amount: Optional[float] = None
    completed_date: Optional[str] = None
    property_abbrev: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'Task':
        """Build from a raw task-system record."""
        prop = record.get("Property") or {}
        return cls(
            id=record.get("TaskID"),
            amount=_to_amount(record.get("Amount")),
            completed_date=record.get("CompleteConfirmedDate"),
            property_abbrev=prop.get("PropertyAbbreviation"),
            name=record.get("TaskName"),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Task':
        """Build from the boundary shape {id, amount, completedDate, propertyAbbrev}."""
        return cls(
            id=data.get("id"),
            amount=_to_amount(data.get("amount")),
            completed_date=data.get("completedDate"),
            property_abbrev=data.get("propertyAbbrev"),
            name=data.get("name"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'amount': self.amount,
            'completedDate': self.completed_date,
            'propertyAbbrev': self.property_abbrev,
            'name': self.name,
        }


@dataclass
class LedgerEntry:
    """
    Expected work for one staff member.

    Attributes:
        staff_name: Staff name as recorded in the task system.
        tasks: Tasks the staff member was assigned.
        total_amount: Sum of task amounts; missing amounts count as 0.
        staff_email: Contact email, when known.
    """
    staff_name: str
    tasks: List[Task] = field(default_factory=list)
    total_amount: float = 0.0
    staff_email: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LedgerEntry':
        """
        Build from the boundary shape.

        A precomputed `totalAmount` wins over the sum of task amounts.
        """
        tasks = [Task.from_dict(t) for t in data.get("tasks") or []]
        total = _to_amount(data.get("totalAmount", data.get("total")))
        if total is None:
            total = sum(t.amount or 0.0 for t in tasks)
        return cls(
            staff_name=str(data.get("staffName") or UNASSIGNED_STAFF),
            tasks=tasks,
            total_amount=total,
            staff_email=data.get("staffEmail"),
        )

    def add_task(self, task: Task) -> None:
        self.tasks.append(task)
        self.total_amount += task.amount or 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'staffName': self.staff_name,
            'staffEmail': self.staff_email,
            'tasks': [t.to_dict() for t in self.tasks],
            'totalAmount': round(self.total_amount, 2),
        }


def build_ledger(tasks: Iterable[Dict[str, Any]]) -> List[LedgerEntry]:
    """
    Group raw task records into one ledger entry per distinct staff name.

    A task with N assigned staff contributes its full amount to N entries.
    Tasks with no staff are grouped under "Unassigned".

    Args:
        tasks: Raw task records.

    Returns:
        Ledger entries sorted by staff name.

    Example:
        >>> ledger = build_ledger([
        ...     {"TaskID": 1, "Amount": 100.0, "Staff": [{"Name": "Mike Rodriguez"}]},
        ...     {"TaskID": 2, "Amount": 50.0, "Staff": [{"Name": "Mike Rodriguez"}]},
        ... ])
        >>> ledger[0].total_amount
        150.0
    """
    entries: Dict[str, LedgerEntry] = {}

    for record in tasks:
        task = Task.from_record(record)
        staff = record.get("Staff") or [{"Name": UNASSIGNED_STAFF}]

        for member in staff:
            name = (member.get("Name") or UNASSIGNED_STAFF).strip()
            if name not in entries:
                entries[name] = LedgerEntry(staff_name=name, staff_email=member.get("Email"))
            entries[name].add_task(task)

    ledger = sorted(entries.values(), key=lambda e: e.staff_name.lower())
    logger.debug(f"Built ledger with {len(ledger)} entries")
    return ledger


def parse_ledger(data: Union[List[Dict[str, Any]], Dict[str, Any]]) -> List[LedgerEntry]:
    """
    Read a ledger from decoded JSON.

    Accepts a list of boundary-shape entries, a list of raw task records,
    or a task-system response object with a `data` list of task records.
    """
    if isinstance(data, dict):
        data = data.get("data") or []

    if not data:
        return []

    if all(isinstance(item, dict) and "staffName" in item for item in data):
        return [LedgerEntry.from_dict(item) for item in data]
    return build_ledger(data)


def load_ledger(path: Union[str, Path]) -> List[LedgerEntry]:
    """
    Load a ledger from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        InputError: If the file is not valid JSON.
    """
    path = Path(path)
    if not validate_file_exists(path):
        raise FileNotFoundError(f"Ledger file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid ledger file: {path}", {'reason': str(e)})

    ledger = parse_ledger(data)
    logger.info(f"Loaded ledger with {len(ledger)} entries from {path.name}")
    return ledger
