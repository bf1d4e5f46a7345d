"""
Shared fixtures.

Everything runs against in-memory storage with explicitly constructed
settings. No test touches the network or reads Google credentials.
"""

from datetime import date
from decimal import Decimal

import pytest

from north_ledger.audit import AuditLogger
from north_ledger.config import LedgerSettings, Settings
from north_ledger.ledger import ChartOfAccounts
from north_ledger.models.ledger import (
    Account,
    AccountType,
    JournalEntry,
    JournalEntryLine,
    LedgerSession,
)
from north_ledger.orchestrator import JournalEntryFlow, ReportFlow
from north_ledger.services.storage import InMemoryAuditStorage, InMemoryLedgerStorage
from north_ledger.validation import JournalEntryValidator

CLIENT_ID = "client-1"


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def accounts() -> list[Account]:
    return [
        Account(id="acc-cash", code="1000", name="Cash", type=AccountType.CHECKING,
                balance=Decimal("1000"), owner_id=CLIENT_ID),
        Account(id="acc-savings", code="1100", name="Savings", type=AccountType.SAVINGS,
                balance=Decimal("500"), owner_id=CLIENT_ID),
        Account(id="acc-card", code="2000", name="Credit Card", type=AccountType.CREDIT,
                owner_id=CLIENT_ID),
        Account(id="acc-sales", code="4000", name="Sales", type=AccountType.INCOME,
                owner_id=CLIENT_ID),
        Account(id="acc-supplies", code="6000", name="Office Supplies", type=AccountType.EXPENSE,
                owner_id=CLIENT_ID),
        Account(id="acc-old", code="6999", name="Old Expenses", type=AccountType.EXPENSE,
                owner_id=CLIENT_ID, is_active=False),
        Account(id="acc-other", code="1000", name="Someone Else's Cash", type=AccountType.CHECKING,
                owner_id="client-2"),
    ]


@pytest.fixture
def chart(accounts) -> ChartOfAccounts:
    return ChartOfAccounts(accounts, CLIENT_ID)


@pytest.fixture
def validator(ledger_settings) -> JournalEntryValidator:
    return JournalEntryValidator(ledger_settings)


@pytest.fixture
def session() -> LedgerSession:
    return LedgerSession(user_id="cpa-1", client_id=CLIENT_ID)


@pytest.fixture
def storage(accounts) -> InMemoryLedgerStorage:
    return InMemoryLedgerStorage(accounts=accounts)


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage) -> AuditLogger:
    return AuditLogger(audit_storage)


@pytest.fixture
def journal_flow(storage, audit_logger, settings) -> JournalEntryFlow:
    return JournalEntryFlow(storage, audit_logger=audit_logger, settings=settings)


@pytest.fixture
def report_flow(storage, audit_logger, settings) -> ReportFlow:
    return ReportFlow(storage, audit_logger=audit_logger, settings=settings)


def make_entry(lines, description="Office Supplies", **kwargs) -> JournalEntry:
    """Build a draft entry for CLIENT_ID from (account, debit, credit) tuples."""
    return JournalEntry(
        date=kwargs.pop("entry_date", date(2025, 3, 14)),
        description=description,
        client_id=CLIENT_ID,
        created_by="cpa-1",
        lines=[
            JournalEntryLine(
                account_id=account,
                debit_amount=Decimal(str(debit)),
                credit_amount=Decimal(str(credit)),
            )
            for account, debit, credit in lines
        ],
        **kwargs,
    )
