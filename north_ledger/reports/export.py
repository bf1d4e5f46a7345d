"""
Statement export.

Statements flatten into spreadsheet rows with three columns:
Section, Account, Amount. A section opens with a header row (Section set,
Account and Amount blank), lists its items, and is followed by a blank
separator row. Totals come last, one row each.

This is the only outward format the ledger defines.
"""

import csv
from typing import Any, Optional, TextIO

from north_ledger.models.statements import FinancialStatement

EXPORT_COLUMNS = ["Section", "Account", "Amount"]


def _amount(value) -> str:
    return f"{value:.2f}"


def statement_to_rows(statement: FinancialStatement) -> list[dict[str, Any]]:
    """Flatten a statement into {Section, Account, Amount} rows."""
    rows: list[dict[str, Any]] = []

    for section in statement.sections():
        rows.append({"Section": section.upper(), "Account": "", "Amount": ""})
        for item in statement.items_in(section):
            rows.append({"Section": section, "Account": item.category, "Amount": _amount(item.amount)})
        rows.append({"Section": "", "Account": "", "Amount": ""})

    for name, value in statement.totals.items():
        rows.append({"Section": name, "Account": "", "Amount": _amount(value)})

    return rows


def write_rows_csv(rows: list[dict[str, Any]], stream: TextIO) -> int:
    """Write export rows as CSV. Returns the number of data rows written."""
    writer = csv.DictWriter(stream, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return len(rows)


def export_sheet_title(statement: FinancialStatement) -> str:
    """Worksheet name, e.g. 'profit_loss 2025-01-01..2025-12-31'."""
    return (
        f"{statement.type.value} "
        f"{statement.period_start.isoformat()}..{statement.period_end.isoformat()}"
    )


class GoogleSheetsStatementExporter:
    """
    Writes a statement into its own worksheet of the ledger spreadsheet.

    Re-exporting the same statement type and period overwrites the sheet.
    """

    def __init__(self, client):
        # Any object with replace_sheet(title, rows); normally a GoogleSheetsClient
        self._client = client

    def export(self, statement: FinancialStatement, title: Optional[str] = None) -> int:
        rows = statement_to_rows(statement)
        values = [EXPORT_COLUMNS] + [[row[c] for c in EXPORT_COLUMNS] for row in rows]
        self._client.replace_sheet(title or export_sheet_title(statement), values)
        return len(rows)
