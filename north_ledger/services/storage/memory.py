"""
In-memory storage.

Dict-backed implementation of the storage interfaces. Used by the test
suite and as the fallback when no remote backend is configured. Data
lives only as long as the process.

Stored models are copied on the way in and out so callers can't mutate
what is "persisted".
"""

from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from north_ledger.ledger.lifecycle import check_status_change
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
from north_ledger.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
)


def _in_range(day: date, date_from: Optional[date], date_to: Optional[date]) -> bool:
    if date_from and day < date_from:
        return False
    if date_to and day > date_to:
        return False
    return True


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Ledger storage held in process memory."""

    def __init__(
        self,
        accounts: Iterable[Account] = (),
        transactions: Iterable[Transaction] = (),
        fixed_assets: Iterable[FixedAsset] = (),
        liabilities: Iterable[Liability] = (),
        budgets: Iterable[Budget] = (),
        profiles: Iterable[Profile] = (),
    ):
        self._accounts: list[Account] = list(accounts)
        self._transactions: list[Transaction] = list(transactions)
        self._fixed_assets: list[FixedAsset] = list(fixed_assets)
        self._liabilities: list[Liability] = list(liabilities)
        self._budgets: list[Budget] = list(budgets)
        self._profiles: dict[str, Profile] = {p.id: p for p in profiles}
        self._entries: dict[UUID, JournalEntry] = {}

    # Seeding helpers used by tests and the demo app

    def add_account(self, account: Account) -> None:
        self._accounts.append(account)

    def add_transaction(self, transaction: Transaction) -> None:
        self._transactions.append(transaction)

    def add_fixed_asset(self, asset: FixedAsset) -> None:
        self._fixed_assets.append(asset)

    def add_liability(self, liability: Liability) -> None:
        self._liabilities.append(liability)

    def add_budget(self, budget: Budget) -> None:
        self._budgets.append(budget)

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    async def list_accounts(self, scope_id: str) -> list[Account]:
        return [
            a.model_copy() for a in self._accounts
            if a.owner_id == scope_id and a.type.is_cash
        ]

    async def get_chart_of_accounts(self, scope_id: str) -> list[Account]:
        accounts = [a.model_copy() for a in self._accounts if a.owner_id == scope_id]
        accounts.sort(key=lambda a: (a.code is None, a.code or "", a.name))
        return accounts

    async def create_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        if entry.id in self._entries:
            raise DuplicateError(f"Journal entry already exists: {entry.id}")
        self._entries[entry.id] = entry.model_copy(deep=True)
        return entry.model_copy(deep=True)

    async def get_journal_entry(self, entry_id: UUID) -> Optional[JournalEntry]:
        entry = self._entries.get(entry_id)
        return entry.model_copy(deep=True) if entry else None

    async def list_journal_entries(
        self,
        client_id: str,
        status: Optional[JournalEntryStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[JournalEntry]:
        entries = [
            e.model_copy(deep=True)
            for e in self._entries.values()
            if e.client_id == client_id
            and (status is None or e.status == status)
            and _in_range(e.date, date_from, date_to)
        ]
        entries.sort(key=lambda e: (e.date, e.created_at), reverse=True)
        return entries

    async def update_journal_entry_status(self, entry: JournalEntry) -> JournalEntry:
        stored = self._entries.get(entry.id)
        if stored is None:
            raise NotFoundError(f"Journal entry not found: {entry.id}")
        check_status_change(stored, entry)
        updated = stored.model_copy(update={
            "status": entry.status,
            "posted_at": entry.posted_at,
            "voided_at": entry.voided_at,
            "voided_by": entry.voided_by,
            "updated_at": entry.updated_at,
        })
        self._entries[entry.id] = updated
        return updated.model_copy(deep=True)

    async def list_transactions(
        self,
        scope_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        return [
            t.model_copy() for t in self._transactions
            if t.owner_id == scope_id and _in_range(t.date, date_from, date_to)
        ]

    async def list_fixed_assets(self, scope_id: str) -> list[FixedAsset]:
        return [a.model_copy() for a in self._fixed_assets if a.owner_id == scope_id]

    async def list_liabilities(self, scope_id: str) -> list[Liability]:
        return [l.model_copy() for l in self._liabilities if l.owner_id == scope_id]

    async def list_budgets(self, scope_id: str) -> list[Budget]:
        return [b.model_copy() for b in self._budgets if b.owner_id == scope_id]

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        profile = self._profiles.get(user_id)
        return profile.model_copy() if profile else None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in process memory."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
