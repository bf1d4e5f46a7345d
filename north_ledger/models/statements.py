"""
Financial Statement Models

Statements are DERIVED, read-only views. They are recomputed on demand
from accounts, transactions and posted journal entries and are never
stored as mutable entities.

All category maps are plain dicts: iteration follows the order in which
categories were first seen in the source data, not sorted order.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from north_ledger.models.ledger import ZERO, Account, FixedAsset, Liability, utc_now


class StatementType(str, Enum):
    PROFIT_LOSS = "profit_loss"
    BALANCE_SHEET = "balance_sheet"
    TRIAL_BALANCE = "trial_balance"

    @property
    def title(self) -> str:
        return {
            StatementType.PROFIT_LOSS: "Profit & Loss Statement",
            StatementType.BALANCE_SHEET: "Balance Sheet",
            StatementType.TRIAL_BALANCE: "Trial Balance",
        }[self]


class ProfitAndLoss(BaseModel):
    """Income and expenses over a period, grouped by category."""

    income_by_category: dict[str, Decimal] = Field(default_factory=dict)
    expense_by_category: dict[str, Decimal] = Field(default_factory=dict)
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    net_profit: Decimal = ZERO


class BalanceSheet(BaseModel):
    """
    Assets, liabilities and equity at a point in time.

    NOTE: equity is the residual total_assets - total_liabilities, not an
    independently tracked equity ledger. equity_is_residual flags this so
    callers do not mistake it for a closed-books figure.
    """

    current_assets: list[Account] = Field(default_factory=list)
    fixed_assets: list[FixedAsset] = Field(default_factory=list)
    liabilities: list[Liability] = Field(default_factory=list)

    total_current_assets: Decimal = ZERO
    total_fixed_assets: Decimal = ZERO
    total_assets: Decimal = ZERO
    total_liabilities: Decimal = ZERO
    total_equity: Decimal = ZERO

    equity_is_residual: bool = True

    @property
    def total_liabilities_and_equity(self) -> Decimal:
        return self.total_liabilities + self.total_equity

    @property
    def balances(self) -> bool:
        return self.total_assets == self.total_liabilities_and_equity


class TrialBalanceAccount(BaseModel):
    account_id: str
    code: Optional[str] = None
    name: str
    debit_balance: Decimal = ZERO
    credit_balance: Decimal = ZERO


class TrialBalance(BaseModel):
    """Net debit/credit balance per account across posted entries."""

    accounts: list[TrialBalanceAccount] = Field(default_factory=list)
    total_debits: Decimal = ZERO
    total_credits: Decimal = ZERO

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


class MonthlyCashFlow(BaseModel):
    month: str = Field(..., description="YYYY-MM")
    income: Decimal = ZERO
    expenses: Decimal = ZERO


class CashFlowSummary(BaseModel):
    """Dashboard-style summary of a transaction set."""

    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    net_cash_flow: Decimal = ZERO
    expense_by_category: dict[str, Decimal] = Field(default_factory=dict)
    monthly: list[MonthlyCashFlow] = Field(default_factory=list)
    top_spending_category: Optional[str] = None


class StatementLineItem(BaseModel):
    """One row of a generated statement."""

    section: str = Field(..., description="e.g. 'Income', 'Current Assets'")
    category: str = Field(..., description="Category or account name")
    amount: Decimal


class FinancialStatement(BaseModel):
    """
    A generated statement for one client and period.

    line_items carry the detail rows in display order; totals carry the
    named summary figures (e.g. 'Total Income', 'Net Profit').
    """

    id: str = Field(
        default_factory=lambda: f"fs_{int(utc_now().timestamp() * 1000)}"
    )
    type: StatementType
    client_id: str
    period_start: date
    period_end: date
    line_items: list[StatementLineItem] = Field(default_factory=list)
    totals: dict[str, Decimal] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=utc_now)
    generated_by: str = "system"

    def sections(self) -> list[str]:
        """Section names in first-seen order."""
        seen: list[str] = []
        for item in self.line_items:
            if item.section not in seen:
                seen.append(item.section)
        return seen

    def items_in(self, section: str) -> list[StatementLineItem]:
        return [item for item in self.line_items if item.section == section]
