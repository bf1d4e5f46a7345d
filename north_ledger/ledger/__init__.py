"""Bookkeeping rules: chart of accounts lookup and journal entry lifecycle."""

from north_ledger.ledger.chart import ChartOfAccounts
from north_ledger.ledger.errors import (
    AccountNotFoundError,
    ImmutableEntryError,
    InvalidStatusTransitionError,
    JournalValidationError,
    LedgerError,
)
from north_ledger.ledger.lifecycle import (
    build_reversal,
    can_transition,
    check_status_change,
    ensure_editable,
    generate_reference,
    mark_posted,
    mark_reversed,
    mark_void,
)

__all__ = [
    "AccountNotFoundError",
    "ChartOfAccounts",
    "ImmutableEntryError",
    "InvalidStatusTransitionError",
    "JournalValidationError",
    "LedgerError",
    "build_reversal",
    "can_transition",
    "check_status_change",
    "ensure_editable",
    "generate_reference",
    "mark_posted",
    "mark_reversed",
    "mark_void",
]
