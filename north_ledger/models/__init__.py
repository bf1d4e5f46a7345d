"""
Data Models Package

This package contains all Pydantic models used in North Ledger.
All data flowing through the ledger must conform to these schemas.
"""

from north_ledger.models.ledger import (
    Account,
    AccountType,
    Budget,
    Currency,
    FixedAsset,
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    JournalValidationResult,
    LedgerSession,
    Liability,
    NormalBalance,
    Profile,
    Transaction,
    TransactionStatus,
    TransactionType,
    UserRole,
    ValidationIssue,
)
from north_ledger.models.statements import (
    BalanceSheet,
    CashFlowSummary,
    FinancialStatement,
    MonthlyCashFlow,
    ProfitAndLoss,
    StatementLineItem,
    StatementType,
    TrialBalance,
    TrialBalanceAccount,
)
from north_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountType",
    "Budget",
    "Currency",
    "FixedAsset",
    "JournalEntry",
    "JournalEntryLine",
    "JournalEntryStatus",
    "JournalValidationResult",
    "LedgerSession",
    "Liability",
    "NormalBalance",
    "Profile",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "UserRole",
    "ValidationIssue",
    # Statement models
    "BalanceSheet",
    "CashFlowSummary",
    "FinancialStatement",
    "MonthlyCashFlow",
    "ProfitAndLoss",
    "StatementLineItem",
    "StatementType",
    "TrialBalance",
    "TrialBalanceAccount",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
