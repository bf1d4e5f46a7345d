"""
Reports Package

Pure statement aggregation and the spreadsheet row export.
"""

from north_ledger.reports.export import (
    EXPORT_COLUMNS,
    GoogleSheetsStatementExporter,
    export_sheet_title,
    statement_to_rows,
    write_rows_csv,
)
from north_ledger.reports.statements import (
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

__all__ = [
    # Aggregation
    "build_balance_sheet",
    "build_journal_profit_and_loss",
    "build_profit_and_loss",
    "build_trial_balance",
    "summarize_cash_flow",
    "sync_budget_spending",
    # Statement assembly
    "balance_sheet_statement",
    "profit_and_loss_statement",
    "trial_balance_statement",
    # Export
    "EXPORT_COLUMNS",
    "GoogleSheetsStatementExporter",
    "export_sheet_title",
    "statement_to_rows",
    "write_rows_csv",
]
