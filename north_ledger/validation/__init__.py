"""Journal entry validation package."""

from north_ledger.validation.journal import JournalEntryValidator

__all__ = ["JournalEntryValidator"]
