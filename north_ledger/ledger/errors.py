"""
Ledger exceptions.

These are raised by the bookkeeping rules themselves and never touch the
network. Storage failures live in services.storage.interface.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from north_ledger.models.ledger import JournalValidationResult


class LedgerError(Exception):
    """Base exception for bookkeeping rule violations."""
    pass


class JournalValidationError(LedgerError):
    """
    A proposed journal entry failed validation.

    Carries the full result so the caller can show every issue, not just
    the first one.
    """

    def __init__(self, result: "JournalValidationResult"):
        self.result = result
        super().__init__(result.first_error or "Journal entry is invalid")


class AccountNotFoundError(LedgerError):
    """An account reference did not resolve in the chart of accounts."""
    pass


class InvalidStatusTransitionError(LedgerError):
    """A journal entry was asked to move to a status it cannot reach."""
    pass


class ImmutableEntryError(LedgerError):
    """Attempted to modify a posted or voided journal entry."""
    pass
