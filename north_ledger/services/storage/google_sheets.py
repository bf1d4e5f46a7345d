"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the storage backend because:
1. Owners and their CPA can look at the books directly in Sheets
2. No database setup required
3. Statements export into the same spreadsheet

TRADEOFFS:
- No transactions. A journal entry is written header-first, then all of
  its lines in a single append call, so a failure leaves at most a
  header with no lines, never half the lines.
- Limited query capabilities (we filter in Python)

Every row read back is validated through the pydantic model. A row that
doesn't parse raises SchemaMismatchError naming the sheet and row; we do
not skip it, because a silently dropped journal line would unbalance
every report built on top of it.
"""

import json
from datetime import date
from typing import Any, Optional, TypeVar
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from pydantic import BaseModel, ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from north_ledger.config import GoogleSheetsSettings, get_settings
from north_ledger.ledger.lifecycle import check_status_change
from north_ledger.models.audit import AuditEvent
from north_ledger.models.ledger import (
    Account,
    Budget,
    FixedAsset,
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    Liability,
    Profile,
    Transaction,
)
from north_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    SchemaMismatchError,
    StorageError,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


ACCOUNT_COLUMNS = [
    "id", "code", "name", "type", "balance", "currency",
    "owner_id", "is_active", "parent_id",
]

JOURNAL_COLUMNS = [
    "id", "date", "reference", "description", "client_id", "status",
    "created_by", "created_at", "updated_at", "posted_at", "voided_at",
    "voided_by", "reverses_entry_id", "reversed_by_entry_id",
]

JOURNAL_LINE_COLUMNS = [
    "entry_id", "line_order", "account_id", "account_code", "account_name",
    "description", "debit_amount", "credit_amount",
]

TRANSACTION_COLUMNS = [
    "id", "owner_id", "account_id", "category", "amount", "type",
    "date", "status", "description",
]

FIXED_ASSET_COLUMNS = ["id", "owner_id", "name", "value"]

LIABILITY_COLUMNS = ["id", "owner_id", "name", "balance"]

BUDGET_COLUMNS = [
    "id", "owner_id", "category", "allocated_amount", "spent_amount",
    "start_date", "end_date",
]

# Profiles keep the loose upstream shape; Profile.from_record normalizes it
PROFILE_COLUMNS = [
    "id", "email", "full_name", "display_name", "first_name", "last_name",
    "avatar_url", "role",
]

AUDIT_COLUMNS = [
    "event_id", "timestamp", "event_type", "severity", "user_id",
    "entity_type", "entity_id", "correlation_id", "description",
    "details_json", "error_message", "is_user_action",
]

_RETRY = dict(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls. This is
    the only layer that retries; services above it see one outcome per call.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(**_RETRY)
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
            return sheet

    @retry(**_RETRY)
    def read_records(self, title: str, columns: list[str]) -> list[tuple[int, dict[str, str]]]:
        """
        Read all data rows as (sheet_row_number, {column: value}) pairs.

        Blank cells are omitted from the dict so model defaults apply.
        Fully empty rows are skipped.
        """
        values = self.worksheet(title, columns).get_all_values()
        records = []
        for row_number, row in enumerate(values[1:], start=2):
            if not any(cell.strip() for cell in row):
                continue
            record = {
                column: row[idx]
                for idx, column in enumerate(columns)
                if idx < len(row) and row[idx] != ""
            }
            records.append((row_number, record))
        return records

    @retry(**_RETRY)
    def append_rows(self, title: str, columns: list[str], rows: list[list]) -> None:
        if rows:
            self.worksheet(title, columns).append_rows(rows, value_input_option="RAW")

    @retry(**_RETRY)
    def update_row(self, title: str, columns: list[str], row_number: int, row: list) -> None:
        self.worksheet(title, columns).update(values=[row], range_name=f"A{row_number}")

    @retry(**_RETRY)
    def replace_sheet(self, title: str, rows: list[list]) -> gspread.Worksheet:
        """Create (or clear) a worksheet and fill it with rows, header included."""
        spreadsheet = self.get_spreadsheet()
        width = max((len(r) for r in rows), default=1)
        try:
            sheet = spreadsheet.worksheet(title)
            sheet.clear()
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=max(len(rows), 1), cols=width)
        if rows:
            sheet.append_rows(rows, value_input_option="RAW")
        return sheet


def _cell(value: Any) -> str:
    """Render a model value into a sheet cell."""
    if value is None:
        return ""
    if hasattr(value, "value"):  # Enum
        return str(value.value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _parse(model: type[ModelT], record: dict[str, Any], sheet: str, row_number: int) -> ModelT:
    try:
        return model.model_validate(record)
    except ValidationError as e:
        raise SchemaMismatchError(
            f"{sheet} row {row_number} does not match {model.__name__}: {e}"
        ) from e


def _in_range(day: date, date_from: Optional[date], date_to: Optional[date]) -> bool:
    if date_from and day < date_from:
        return False
    if date_to and day > date_to:
        return False
    return True


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    Journal entries are stored as one header row in the journal sheet and
    one row per line in the lines sheet, keyed by entry_id and ordered by
    line_order.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._names = self._client.settings

    def _read(self, title: str, columns: list[str], model: type[ModelT]) -> list[ModelT]:
        try:
            records = self._client.read_records(title, columns)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {title}: {e}")
        return [_parse(model, record, title, row_number) for row_number, record in records]

    def _account_to_row(self, account: Account) -> list:
        return [_cell(getattr(account, c)) for c in ACCOUNT_COLUMNS]

    def _entry_to_row(self, entry: JournalEntry) -> list:
        return [_cell(getattr(entry, c)) for c in JOURNAL_COLUMNS]

    def _lines_to_rows(self, entry: JournalEntry) -> list[list]:
        return [
            [
                str(entry.id),
                str(order),
                line.account_id,
                line.account_code or "",
                line.account_name or "",
                line.description or "",
                str(line.debit_amount),
                str(line.credit_amount),
            ]
            for order, line in enumerate(entry.lines)
        ]

    def _load_lines(self) -> dict[str, list[JournalEntryLine]]:
        title = self._names.journal_lines_sheet_name
        try:
            records = self._client.read_records(title, JOURNAL_LINE_COLUMNS)
        except Exception as e:
            raise StorageError(f"Failed to read {title}: {e}")

        grouped: dict[str, list[tuple[int, JournalEntryLine]]] = {}
        for row_number, record in records:
            entry_id = record.pop("entry_id", "")
            order = record.pop("line_order", "0")
            if not entry_id:
                raise SchemaMismatchError(f"{title} row {row_number} has no entry_id")
            try:
                position = int(order)
            except ValueError:
                raise SchemaMismatchError(f"{title} row {row_number} has a bad line_order: {order!r}")
            line = _parse(JournalEntryLine, record, title, row_number)
            grouped.setdefault(entry_id, []).append((position, line))

        return {
            entry_id: [line for _, line in sorted(lines, key=lambda pair: pair[0])]
            for entry_id, lines in grouped.items()
        }

    def _load_entries(self) -> list[tuple[int, JournalEntry]]:
        title = self._names.journal_sheet_name
        try:
            records = self._client.read_records(title, JOURNAL_COLUMNS)
        except Exception as e:
            raise StorageError(f"Failed to read {title}: {e}")

        lines_by_entry = self._load_lines()
        entries = []
        for row_number, record in records:
            record["lines"] = lines_by_entry.get(record.get("id", ""), [])
            entries.append((row_number, _parse(JournalEntry, record, title, row_number)))
        return entries

    async def list_accounts(self, scope_id: str) -> list[Account]:
        accounts = await self.get_chart_of_accounts(scope_id)
        return [a for a in accounts if a.type.is_cash]

    async def get_chart_of_accounts(self, scope_id: str) -> list[Account]:
        accounts = self._read(self._names.accounts_sheet_name, ACCOUNT_COLUMNS, Account)
        scoped = [a for a in accounts if a.owner_id == scope_id]
        scoped.sort(key=lambda a: (a.code is None, a.code or "", a.name))
        return scoped

    async def create_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        existing = {e.id for _, e in self._load_entries()}
        if entry.id in existing:
            raise DuplicateError(f"Journal entry already exists: {entry.id}")

        try:
            self._client.append_rows(
                self._names.journal_sheet_name,
                JOURNAL_COLUMNS,
                [self._entry_to_row(entry)],
            )
            self._client.append_rows(
                self._names.journal_lines_sheet_name,
                JOURNAL_LINE_COLUMNS,
                self._lines_to_rows(entry),
            )
        except Exception as e:
            raise StorageError(f"Failed to save journal entry: {e}")
        return entry

    async def get_journal_entry(self, entry_id: UUID) -> Optional[JournalEntry]:
        for _, entry in self._load_entries():
            if entry.id == entry_id:
                return entry
        return None

    async def list_journal_entries(
        self,
        client_id: str,
        status: Optional[JournalEntryStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[JournalEntry]:
        entries = [
            e for _, e in self._load_entries()
            if e.client_id == client_id
            and (status is None or e.status == status)
            and _in_range(e.date, date_from, date_to)
        ]
        entries.sort(key=lambda e: (e.date, e.created_at), reverse=True)
        return entries

    async def update_journal_entry_status(self, entry: JournalEntry) -> JournalEntry:
        for row_number, stored in self._load_entries():
            if stored.id != entry.id:
                continue
            check_status_change(stored, entry)
            updated = stored.model_copy(update={
                "status": entry.status,
                "posted_at": entry.posted_at,
                "voided_at": entry.voided_at,
                "voided_by": entry.voided_by,
                "reversed_by_entry_id": entry.reversed_by_entry_id,
                "updated_at": entry.updated_at,
            })
            try:
                self._client.update_row(
                    self._names.journal_sheet_name,
                    JOURNAL_COLUMNS,
                    row_number,
                    self._entry_to_row(updated),
                )
            except Exception as e:
                raise StorageError(f"Failed to update journal entry: {e}")
            return updated

        raise NotFoundError(f"Journal entry not found: {entry.id}")

    async def list_transactions(
        self,
        scope_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        transactions = self._read(
            self._names.transactions_sheet_name, TRANSACTION_COLUMNS, Transaction
        )
        return [
            t for t in transactions
            if t.owner_id == scope_id and _in_range(t.date, date_from, date_to)
        ]

    async def list_fixed_assets(self, scope_id: str) -> list[FixedAsset]:
        assets = self._read(self._names.fixed_assets_sheet_name, FIXED_ASSET_COLUMNS, FixedAsset)
        return [a for a in assets if a.owner_id == scope_id]

    async def list_liabilities(self, scope_id: str) -> list[Liability]:
        liabilities = self._read(self._names.liabilities_sheet_name, LIABILITY_COLUMNS, Liability)
        return [l for l in liabilities if l.owner_id == scope_id]

    async def list_budgets(self, scope_id: str) -> list[Budget]:
        budgets = self._read(self._names.budgets_sheet_name, BUDGET_COLUMNS, Budget)
        return [b for b in budgets if b.owner_id == scope_id]

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        title = self._names.profiles_sheet_name
        try:
            records = self._client.read_records(title, PROFILE_COLUMNS)
        except Exception as e:
            raise StorageError(f"Failed to read {title}: {e}")

        for row_number, record in records:
            if record.get("id") != user_id:
                continue
            try:
                return Profile.from_record(record)
            except ValidationError as e:
                raise SchemaMismatchError(
                    f"{title} row {row_number} does not match Profile: {e}"
                ) from e
        return None


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._title = self._client.settings.audit_sheet_name

    def _events(self) -> list[AuditEvent]:
        try:
            records = self._client.read_records(self._title, AUDIT_COLUMNS)
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row_number, record in records:
            details_json = record.pop("details_json", "")
            if details_json:
                record["details"] = json.loads(details_json)
            events.append(_parse(AuditEvent, record, self._title, row_number))
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._client.append_rows(self._title, AUDIT_COLUMNS, [event.to_sheets_row()])
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events() if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events(), key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
