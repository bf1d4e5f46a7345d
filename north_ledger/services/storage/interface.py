"""
Abstract Storage Interface

DESIGN DECISION: The ledger module's contract is WHAT it reads and writes,
not how storage works. This interface allows us to:
1. Keep Google Sheets as the user-visible backend
2. Use in-memory storage for tests and local runs
3. Swap in a hosted database later without touching business logic

Concurrency: nothing here coordinates concurrent writers. Two clients
posting at once rely entirely on the backend's own semantics.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from north_ledger.models.audit import AuditEvent
from north_ledger.models.ledger import (
    Account,
    Budget,
    FixedAsset,
    JournalEntry,
    JournalEntryStatus,
    Liability,
    Profile,
    Transaction,
)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation must implement these methods. Every method
    returns fully validated models; a backend that cannot parse a stored
    row raises SchemaMismatchError instead of returning partial data.
    """

    @abstractmethod
    async def list_accounts(self, scope_id: str) -> list[Account]:
        """
        List the cash accounts (checking, savings, credit, investment) of a scope.

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def get_chart_of_accounts(self, scope_id: str) -> list[Account]:
        """
        List every account of a scope, ordered by code.

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def create_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        """
        Persist a journal entry together with all of its lines.

        Args:
            entry: A validated entry (status draft or posted)

        Returns:
            The stored entry

        Raises:
            DuplicateError: If an entry with the same id already exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_journal_entry(self, entry_id: UUID) -> Optional[JournalEntry]:
        """Retrieve an entry with its lines, or None."""
        pass

    @abstractmethod
    async def list_journal_entries(
        self,
        client_id: str,
        status: Optional[JournalEntryStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[JournalEntry]:
        """
        List a client's journal entries, newest first.

        Args:
            client_id: Whose books
            status: Only entries in this status
            date_from: Entries dated on or after this date
            date_to: Entries dated on or before this date
        """
        pass

    @abstractmethod
    async def update_journal_entry_status(self, entry: JournalEntry) -> JournalEntry:
        """
        Store a status change (post, void or reversal link) of an existing entry.

        Only the status fields (status, posted_at, voided_at, voided_by,
        reversed_by_entry_id, updated_at) are written. Lines are never
        rewritten.

        Raises:
            NotFoundError: If the entry doesn't exist
            InvalidStatusTransitionError: If the stored entry cannot move to
                the new state (see ledger.lifecycle.check_status_change)
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        scope_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        """List a scope's transactions, optionally within a date range."""
        pass

    @abstractmethod
    async def list_fixed_assets(self, scope_id: str) -> list[FixedAsset]:
        pass

    @abstractmethod
    async def list_liabilities(self, scope_id: str) -> list[Liability]:
        pass

    @abstractmethod
    async def list_budgets(self, scope_id: str) -> list[Budget]:
        pass

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[Profile]:
        """Retrieve the normalized profile of a user, or None."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for one user action, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get all events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class SchemaMismatchError(StorageError):
    """A stored row does not match the expected schema."""
    pass
