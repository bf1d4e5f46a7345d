"""Tests for statement aggregation."""

from datetime import date
from decimal import Decimal

from north_ledger.ledger import mark_posted, mark_void
from north_ledger.models.ledger import (
    Account,
    AccountType,
    Budget,
    FixedAsset,
    Liability,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from north_ledger.models.statements import StatementType
from north_ledger.reports import (
    balance_sheet_statement,
    build_balance_sheet,
    build_journal_profit_and_loss,
    build_profit_and_loss,
    build_trial_balance,
    profit_and_loss_statement,
    summarize_cash_flow,
    sync_budget_spending,
    trial_balance_statement,
)

from tests.conftest import CLIENT_ID, make_entry


def tx(type_, amount, category="Other", day=date(2025, 3, 1), status=TransactionStatus.CLEARED):
    return Transaction(
        owner_id=CLIENT_ID,
        type=type_,
        amount=Decimal(str(amount)),
        category=category,
        date=day,
        status=status,
    )


class TestProfitAndLoss:
    """Transaction-based P&L."""

    def test_salary_and_food_example(self):
        """Income 5000 and a -75.5 expense net to 4924.5."""
        report = build_profit_and_loss([
            tx(TransactionType.INCOME, 5000, "Salary"),
            tx(TransactionType.EXPENSE, "-75.5", "Food"),
        ])
        assert report.total_income == Decimal("5000")
        assert report.total_expense == Decimal("75.5")
        assert report.net_profit == Decimal("4924.5")

    def test_empty_input_is_all_zero(self):
        report = build_profit_and_loss([])
        assert report.total_income == 0
        assert report.total_expense == 0
        assert report.net_profit == 0
        assert report.income_by_category == {}

    def test_expense_sign_does_not_matter(self):
        report = build_profit_and_loss([
            tx(TransactionType.EXPENSE, -20, "Food"),
            tx(TransactionType.EXPENSE, 30, "Food"),
        ])
        assert report.expense_by_category == {"Food": Decimal("50")}

    def test_categories_keep_first_seen_order(self):
        report = build_profit_and_loss([
            tx(TransactionType.EXPENSE, 1, "Rent"),
            tx(TransactionType.EXPENSE, 1, "Food"),
            tx(TransactionType.EXPENSE, 1, "Rent"),
            tx(TransactionType.EXPENSE, 1, "Aardvarks"),
        ])
        assert list(report.expense_by_category) == ["Rent", "Food", "Aardvarks"]

    def test_blank_category_becomes_other(self):
        report = build_profit_and_loss([tx(TransactionType.INCOME, 10, "  ")])
        assert report.income_by_category == {"Other": Decimal("10")}

    def test_cancelled_transactions_are_excluded(self):
        rows = [
            tx(TransactionType.INCOME, 100, "Sales"),
            tx(TransactionType.INCOME, 900, "Sales", status=TransactionStatus.CANCELLED),
        ]
        assert build_profit_and_loss(rows).total_income == Decimal("100")
        assert build_profit_and_loss(rows, exclude_cancelled=False).total_income == Decimal("1000")

    def test_net_profit_identity(self):
        report = build_profit_and_loss([
            tx(TransactionType.INCOME, "1234.56", "Sales"),
            tx(TransactionType.EXPENSE, "-2000.01", "Rent"),
        ])
        assert report.net_profit == report.total_income - report.total_expense
        assert report.net_profit < 0


class TestBalanceSheet:
    """Assets, liabilities and residual equity."""

    def test_checking_fixed_and_liability_example(self):
        report = build_balance_sheet(
            [Account(name="Checking", type=AccountType.CHECKING, balance=Decimal("1000"), owner_id=CLIENT_ID)],
            [FixedAsset(name="Van", value=Decimal("5000"), owner_id=CLIENT_ID)],
            [Liability(name="Loan", balance=Decimal("2000"), owner_id=CLIENT_ID)],
        )
        assert report.total_assets == Decimal("6000")
        assert report.total_equity == Decimal("4000")
        assert report.total_liabilities_and_equity == Decimal("6000")
        assert report.balances
        assert report.equity_is_residual

    def test_only_checking_and_savings_are_current_assets(self, accounts):
        report = build_balance_sheet(
            [a for a in accounts if a.owner_id == CLIENT_ID], [], []
        )
        assert {a.id for a in report.current_assets} == {"acc-cash", "acc-savings"}
        assert report.total_current_assets == Decimal("1500")

    def test_empty_balance_sheet(self):
        report = build_balance_sheet([], [], [])
        assert report.total_assets == 0
        assert report.total_equity == 0
        assert report.balances

    def test_negative_equity(self):
        report = build_balance_sheet(
            [],
            [FixedAsset(name="Laptop", value=Decimal("800"), owner_id=CLIENT_ID)],
            [Liability(name="Card", balance=Decimal("1200"), owner_id=CLIENT_ID)],
        )
        assert report.total_equity == Decimal("-400")
        assert report.total_assets == report.total_current_assets + report.total_fixed_assets


class TestJournalReports:
    """Trial balance and P&L built from posted journal entries."""

    def test_trial_balance_uses_posted_entries_only(self, chart):
        posted = mark_posted(make_entry([("1000", 100, 0), ("4000", 0, 100)]))
        draft = make_entry([("1000", 999, 0), ("4000", 0, 999)])
        voided = mark_void(mark_posted(make_entry([("6000", 50, 0), ("1000", 0, 50)])), "cpa-1")

        report = build_trial_balance([posted, draft, voided], chart)

        assert [(r.code, r.debit_balance, r.credit_balance) for r in report.accounts] == [
            ("1000", Decimal("100"), Decimal("0")),
            ("4000", Decimal("0"), Decimal("100")),
        ]
        assert report.is_balanced

    def test_trial_balance_nets_per_account(self, chart):
        entries = [
            mark_posted(make_entry([("1000", 100, 0), ("4000", 0, 100)])),
            mark_posted(make_entry([("6000", 30, 0), ("acc-cash", 0, 30)])),
        ]
        report = build_trial_balance(entries, chart)
        cash = next(r for r in report.accounts if r.account_id == "acc-cash")
        assert cash.debit_balance == Decimal("70")
        assert report.total_debits == report.total_credits == Decimal("100")

    def test_journal_profit_and_loss(self, chart):
        entries = [
            mark_posted(make_entry([("1000", 500, 0), ("4000", 0, 500)])),
            mark_posted(make_entry([("6000", 120, 0), ("1000", 0, 120)])),
            make_entry([("6000", 999, 0), ("1000", 0, 999)]),
        ]
        report = build_journal_profit_and_loss(entries, chart)
        assert report.income_by_category == {"Sales": Decimal("500")}
        assert report.expense_by_category == {"Office Supplies": Decimal("120")}
        assert report.net_profit == Decimal("380")


class TestCashFlowAndBudgets:
    """Dashboard summaries."""

    def test_cash_flow_summary(self):
        summary = summarize_cash_flow([
            tx(TransactionType.INCOME, 3000, "Salary", date(2025, 1, 5)),
            tx(TransactionType.EXPENSE, -400, "Rent", date(2025, 1, 6)),
            tx(TransactionType.EXPENSE, -50, "Food", date(2025, 2, 1)),
            tx(TransactionType.EXPENSE, -60, "Food", date(2025, 2, 9)),
        ])
        assert summary.total_income == Decimal("3000")
        assert summary.total_expenses == Decimal("510")
        assert summary.net_cash_flow == Decimal("2490")
        assert summary.top_spending_category == "Rent"
        assert [(m.month, m.income, m.expenses) for m in summary.monthly] == [
            ("2025-01", Decimal("3000"), Decimal("400")),
            ("2025-02", Decimal("0"), Decimal("110")),
        ]

    def test_cash_flow_empty(self):
        summary = summarize_cash_flow([])
        assert summary.top_spending_category is None
        assert summary.monthly == []

    def test_budget_spending_sync(self):
        budget = Budget(
            owner_id=CLIENT_ID,
            category="Food",
            allocated_amount=Decimal("200"),
            start_date=date(2025, 2, 1),
            end_date=date(2025, 2, 28),
        )
        synced = sync_budget_spending([budget], [
            tx(TransactionType.EXPENSE, -50, "food", date(2025, 2, 1)),
            tx(TransactionType.EXPENSE, -60, "Food", date(2025, 2, 28)),
            tx(TransactionType.EXPENSE, -70, "Food", date(2025, 3, 1)),
            tx(TransactionType.EXPENSE, -80, "Food", date(2025, 2, 10), TransactionStatus.CANCELLED),
            tx(TransactionType.INCOME, 90, "Food", date(2025, 2, 10)),
        ])
        assert synced[0].spent_amount == Decimal("110")
        assert synced[0].remaining_amount == Decimal("90")
        assert budget.spent_amount == 0


class TestStatementAssembly:
    """Typed reports flattened into FinancialStatement line items."""

    def test_profit_and_loss_statement(self):
        report = build_profit_and_loss([
            tx(TransactionType.INCOME, 5000, "Salary"),
            tx(TransactionType.EXPENSE, "-75.5", "Food"),
        ])
        statement = profit_and_loss_statement(report, CLIENT_ID, date(2025, 1, 1), date(2025, 12, 31))
        assert statement.type == StatementType.PROFIT_LOSS
        assert statement.sections() == ["Income", "Expenses"]
        assert statement.totals["Net Profit"] == Decimal("4924.5")
        assert statement.id.startswith("fs_")

    def test_balance_sheet_statement_has_equity_line(self):
        report = build_balance_sheet(
            [Account(name="Checking", type=AccountType.CHECKING, balance=Decimal("1000"), owner_id=CLIENT_ID)],
            [],
            [Liability(name="Loan", balance=Decimal("300"), owner_id=CLIENT_ID)],
        )
        statement = balance_sheet_statement(report, CLIENT_ID, date(2025, 1, 1), date(2025, 1, 31))
        equity = statement.items_in("Equity")
        assert len(equity) == 1
        assert equity[0].amount == Decimal("700")
        assert statement.totals["Total Liabilities & Equity"] == Decimal("1000")

    def test_trial_balance_statement(self, chart):
        report = build_trial_balance(
            [mark_posted(make_entry([("1000", 100, 0), ("4000", 0, 100)]))], chart
        )
        statement = trial_balance_statement(report, CLIENT_ID, date(2025, 1, 1), date(2025, 12, 31))
        assert [i.category for i in statement.items_in("Debit Balances")] == ["1000 - Cash"]
        assert [i.category for i in statement.items_in("Credit Balances")] == ["4000 - Sales"]
        assert statement.totals == {"Total Debits": Decimal("100"), "Total Credits": Decimal("100")}
