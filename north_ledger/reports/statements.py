"""
Statement Aggregation

Pure functions that turn accounts, transactions and posted journal
entries into financial statements. Nothing here does I/O; the caller
fetches the data and hands it over.

GUARANTEES:
- Empty input is a zero-valued statement, never an error
- net_profit == total_income - total_expense, always
- total_equity == total_assets - total_liabilities, always
- Expense totals built from transactions are non-negative magnitudes,
  whatever sign the source row was stored with
- Category maps keep the order categories were first seen in
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from north_ledger.ledger.chart import ChartOfAccounts
from north_ledger.models.ledger import (
    ZERO,
    Account,
    AccountType,
    Budget,
    FixedAsset,
    JournalEntry,
    Liability,
    Transaction,
    TransactionStatus,
    TransactionType,
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


def _add(bucket: dict[str, Decimal], key: str, amount: Decimal) -> None:
    bucket[key] = bucket.get(key, ZERO) + amount


def _total(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def _countable(transactions: Iterable[Transaction], exclude_cancelled: bool) -> Iterable[Transaction]:
    for t in transactions:
        if exclude_cancelled and t.status == TransactionStatus.CANCELLED:
            continue
        yield t


# =============================================================================
# PROFIT & LOSS
# =============================================================================

def build_profit_and_loss(
    transactions: Iterable[Transaction],
    exclude_cancelled: bool = True,
) -> ProfitAndLoss:
    """
    Group transactions by category into income and expense totals.

    Income amounts are summed as stored. Expense amounts are summed as
    absolute values, since expenses are often stored negative.
    """
    income: dict[str, Decimal] = {}
    expense: dict[str, Decimal] = {}

    for t in _countable(transactions, exclude_cancelled):
        if t.type == TransactionType.INCOME:
            _add(income, t.category, t.amount)
        else:
            _add(expense, t.category, t.magnitude)

    total_income = _total(income.values())
    total_expense = _total(expense.values())

    return ProfitAndLoss(
        income_by_category=income,
        expense_by_category=expense,
        total_income=total_income,
        total_expense=total_expense,
        net_profit=total_income - total_expense,
    )


def build_journal_profit_and_loss(
    entries: Iterable[JournalEntry],
    chart: ChartOfAccounts,
) -> ProfitAndLoss:
    """
    Profit & Loss from posted journal lines, grouped by account name.

    Income accounts contribute credits minus debits, expense accounts
    debits minus credits. Lines on other account types are ignored, as are
    lines whose account is not in the chart.
    """
    income: dict[str, Decimal] = {}
    expense: dict[str, Decimal] = {}

    for entry in entries:
        if not entry.is_posted:
            continue
        for line in entry.lines:
            account = chart.get(line.account_id)
            if account is None:
                continue
            if account.type == AccountType.INCOME:
                _add(income, account.name, line.credit_amount - line.debit_amount)
            elif account.type == AccountType.EXPENSE:
                _add(expense, account.name, line.debit_amount - line.credit_amount)

    total_income = _total(income.values())
    total_expense = _total(expense.values())

    return ProfitAndLoss(
        income_by_category=income,
        expense_by_category=expense,
        total_income=total_income,
        total_expense=total_expense,
        net_profit=total_income - total_expense,
    )


# =============================================================================
# BALANCE SHEET
# =============================================================================

def build_balance_sheet(
    accounts: Iterable[Account],
    fixed_assets: Iterable[FixedAsset],
    liabilities: Iterable[Liability],
) -> BalanceSheet:
    """
    Partition assets and compute equity as the residual.

    Current assets are the checking and savings accounts. Fixed assets
    come from their own records. Equity is NOT tracked separately; it is
    total assets minus total liabilities.
    """
    current = [a for a in accounts if a.type.is_current_asset]
    fixed = list(fixed_assets)
    owed = list(liabilities)

    total_current = _total(a.balance for a in current)
    total_fixed = _total(a.value for a in fixed)
    total_assets = total_current + total_fixed
    total_liabilities = _total(l.balance for l in owed)

    return BalanceSheet(
        current_assets=current,
        fixed_assets=fixed,
        liabilities=owed,
        total_current_assets=total_current,
        total_fixed_assets=total_fixed,
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        total_equity=total_assets - total_liabilities,
    )


# =============================================================================
# TRIAL BALANCE
# =============================================================================

def build_trial_balance(
    entries: Iterable[JournalEntry],
    chart: ChartOfAccounts,
) -> TrialBalance:
    """
    Net debit or credit balance of every account touched by a posted entry.

    Draft and void entries are skipped. Lines referencing an account that
    is not in the chart are still listed, under the raw reference, so
    they show up instead of silently disappearing.
    """
    nets: dict[str, Decimal] = {}
    names: dict[str, tuple[Optional[str], str]] = {}

    for entry in entries:
        if not entry.is_posted:
            continue
        for line in entry.lines:
            account = chart.get(line.account_id)
            if account is not None:
                key = account.id
                names[key] = (account.code, account.name)
            else:
                key = line.account_id
                names.setdefault(key, (line.account_code, line.account_name or line.account_id))
            _add(nets, key, line.debit_amount - line.credit_amount)

    rows = []
    for key, net in nets.items():
        code, name = names[key]
        rows.append(TrialBalanceAccount(
            account_id=key,
            code=code,
            name=name,
            debit_balance=net if net > 0 else ZERO,
            credit_balance=-net if net < 0 else ZERO,
        ))
    rows.sort(key=lambda r: (r.code is None, r.code or "", r.name))

    return TrialBalance(
        accounts=rows,
        total_debits=_total(r.debit_balance for r in rows),
        total_credits=_total(r.credit_balance for r in rows),
    )


# =============================================================================
# CASH FLOW & BUDGETS
# =============================================================================

def summarize_cash_flow(
    transactions: Iterable[Transaction],
    exclude_cancelled: bool = True,
) -> CashFlowSummary:
    """Totals, month-by-month income vs expenses and the top spending category."""
    total_income = ZERO
    total_expenses = ZERO
    by_category: dict[str, Decimal] = {}
    monthly: dict[str, MonthlyCashFlow] = {}

    for t in _countable(transactions, exclude_cancelled):
        month = t.date.strftime("%Y-%m")
        bucket = monthly.setdefault(month, MonthlyCashFlow(month=month))
        if t.type == TransactionType.INCOME:
            total_income += t.amount
            bucket.income += t.amount
        else:
            total_expenses += t.magnitude
            bucket.expenses += t.magnitude
            _add(by_category, t.category, t.magnitude)

    top = max(by_category, key=by_category.__getitem__) if by_category else None

    return CashFlowSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        net_cash_flow=total_income - total_expenses,
        expense_by_category=by_category,
        monthly=[monthly[m] for m in sorted(monthly)],
        top_spending_category=top,
    )


def sync_budget_spending(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
) -> list[Budget]:
    """
    Recompute spent_amount for each budget.

    Spending is the sum of expense magnitudes whose category matches the
    budget's (case-insensitive) and whose date falls in the budget period.
    Cancelled transactions never count. Returns updated copies.
    """
    expenses = [
        t for t in _countable(transactions, exclude_cancelled=True)
        if t.type == TransactionType.EXPENSE
    ]

    synced = []
    for budget in budgets:
        category = budget.category.casefold()
        spent = _total(
            t.magnitude for t in expenses
            if t.category.casefold() == category and budget.covers(t.date)
        )
        synced.append(budget.model_copy(update={"spent_amount": spent}))
    return synced


# =============================================================================
# STATEMENT ASSEMBLY
# =============================================================================

def profit_and_loss_statement(
    report: ProfitAndLoss,
    client_id: str,
    period_start: date,
    period_end: date,
    generated_by: str = "system",
) -> FinancialStatement:
    items = [
        StatementLineItem(section="Income", category=category, amount=amount)
        for category, amount in report.income_by_category.items()
    ]
    items.extend(
        StatementLineItem(section="Expenses", category=category, amount=amount)
        for category, amount in report.expense_by_category.items()
    )
    return FinancialStatement(
        type=StatementType.PROFIT_LOSS,
        client_id=client_id,
        period_start=period_start,
        period_end=period_end,
        line_items=items,
        totals={
            "Total Income": report.total_income,
            "Total Expenses": report.total_expense,
            "Net Profit": report.net_profit,
        },
        generated_by=generated_by,
    )


def balance_sheet_statement(
    report: BalanceSheet,
    client_id: str,
    period_start: date,
    period_end: date,
    generated_by: str = "system",
) -> FinancialStatement:
    items = [
        StatementLineItem(section="Current Assets", category=a.name, amount=a.balance)
        for a in report.current_assets
    ]
    items.extend(
        StatementLineItem(section="Fixed Assets", category=a.name, amount=a.value)
        for a in report.fixed_assets
    )
    items.extend(
        StatementLineItem(section="Liabilities", category=l.name, amount=l.balance)
        for l in report.liabilities
    )
    items.append(
        StatementLineItem(section="Equity", category="Owner's Equity", amount=report.total_equity)
    )
    return FinancialStatement(
        type=StatementType.BALANCE_SHEET,
        client_id=client_id,
        period_start=period_start,
        period_end=period_end,
        line_items=items,
        totals={
            "Total Current Assets": report.total_current_assets,
            "Total Fixed Assets": report.total_fixed_assets,
            "Total Assets": report.total_assets,
            "Total Liabilities": report.total_liabilities,
            "Total Equity": report.total_equity,
            "Total Liabilities & Equity": report.total_liabilities_and_equity,
        },
        generated_by=generated_by,
    )


def trial_balance_statement(
    report: TrialBalance,
    client_id: str,
    period_start: date,
    period_end: date,
    generated_by: str = "system",
) -> FinancialStatement:
    items = []
    for row in report.accounts:
        label = f"{row.code} - {row.name}" if row.code else row.name
        if row.debit_balance:
            items.append(StatementLineItem(section="Debit Balances", category=label, amount=row.debit_balance))
        elif row.credit_balance:
            items.append(StatementLineItem(section="Credit Balances", category=label, amount=row.credit_balance))
    return FinancialStatement(
        type=StatementType.TRIAL_BALANCE,
        client_id=client_id,
        period_start=period_start,
        period_end=period_end,
        line_items=items,
        totals={
            "Total Debits": report.total_debits,
            "Total Credits": report.total_credits,
        },
        generated_by=generated_by,
    )
