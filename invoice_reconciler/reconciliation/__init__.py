"""
Reconciliation Module for the Invoice Reconciliation Engine.

This module compares extracted invoices against the ledger of expected
staff/task amounts:
    - Ledger model and builder from raw task records
    - Fuzzy staff-name and amount matching into trust tiers

Author: ML Engineering Team
"""

from .ledger import LedgerEntry, Task, build_ledger, load_ledger, parse_ledger
from .matcher import MatchStatus, MatchVerdict, ReconciliationMatcher

__all__ = [
    'LedgerEntry',
    'Task',
    'build_ledger',
    'load_ledger',
    'parse_ledger',
    'MatchStatus',
    'MatchVerdict',
    'ReconciliationMatcher',
]
