"""
Main Orchestrator for North Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Journal entries (form -> validate -> post or draft -> persist)
2. Reports (fetch -> aggregate -> statement -> export)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is persisted unless the entry validates
- Posted entries are never edited, only voided or reversed
- Every step is audited

Flows take the LedgerSession explicitly on every call. No flow reads a
"current user" from global state.
"""

from datetime import date
from typing import Optional, TextIO
from uuid import UUID

import structlog
from pydantic import ValidationError

from north_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from north_ledger.config import Settings, get_settings
from north_ledger.ledger import (
    ChartOfAccounts,
    InvalidStatusTransitionError,
    JournalValidationError,
    build_reversal,
    generate_reference,
    mark_posted,
    mark_reversed,
    mark_void,
)
from north_ledger.models.ledger import (
    Budget,
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    JournalValidationResult,
    LedgerSession,
)
from north_ledger.models.statements import (
    BalanceSheet,
    CashFlowSummary,
    FinancialStatement,
    ProfitAndLoss,
    StatementType,
    TrialBalance,
)
from north_ledger.reports import (
    GoogleSheetsStatementExporter,
    statement_to_rows,
    summarize_cash_flow,
    sync_budget_spending,
    write_rows_csv,
)
from north_ledger.services.statements import StatementService
from north_ledger.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from north_ledger.validation import JournalEntryValidator

logger = structlog.get_logger(__name__)


class JournalEntryFlow:
    """
    Orchestrates recording journal entries.

    Flow:
    1. Load chart -> accounts the form may pick from
    2. Submit -> build entry, validate against the chart
    3. Reject -> raise with the first error, persist NOTHING
    4. Accept -> mark posted (or leave as draft), persist, audit

    Posted entries are immutable. void_entry is the only way back.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[JournalEntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self._storage = storage
        self._settings = settings or get_settings()
        self._validator = validator or JournalEntryValidator(self._settings.ledger)
        self._audit_logger = audit_logger

    @property
    def validator(self) -> JournalEntryValidator:
        return self._validator

    async def load_chart(self, session: LedgerSession) -> ChartOfAccounts:
        """Chart of accounts for the session's client."""
        accounts = await self._storage.get_chart_of_accounts(session.scope_id)
        return ChartOfAccounts(accounts, session.scope_id)

    def _resolve_lines(
        self,
        lines: list[JournalEntryLine],
        chart: ChartOfAccounts,
    ) -> list[JournalEntryLine]:
        """Fill in code and name for lines whose account is in the chart."""
        resolved = []
        for line in lines:
            account = chart.get(line.account_id)
            if account is None:
                resolved.append(line)
                continue
            resolved.append(line.model_copy(update={
                "account_id": account.id,
                "account_code": account.code,
                "account_name": account.name,
            }))
        return resolved

    async def _reject(
        self,
        session: LedgerSession,
        result: JournalValidationResult,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                entry_id=result.entry_id,
                user_id=session.user_id,
                issues=[issue.model_dump() for issue in result.errors],
                correlation_id=correlation_id,
            )
        raise JournalValidationError(result)

    async def _storage_failed(
        self,
        session: LedgerSession,
        operation: str,
        error: StorageError,
        correlation_id: UUID,
    ) -> None:
        logger.error("ledger_storage_failed", operation=operation, error=str(error))
        if self._audit_logger:
            await self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(error),
                user_id=session.user_id,
                correlation_id=correlation_id,
            )

    async def submit_entry(
        self,
        session: LedgerSession,
        entry_date: date,
        description: str,
        lines: list[JournalEntryLine],
        reference: Optional[str] = None,
        post: bool = True,
        correlation_id: Optional[UUID] = None,
    ) -> JournalEntry:
        """
        Validate and record a journal entry.

        Args:
            session: Who is posting, on whose books
            entry_date: Accounting date of the entry
            description: Free text, required
            lines: Debit/credit lines; account_id may be an id or a code
            reference: Optional reference, generated when omitted
            post: False saves a draft instead of posting

        Returns:
            The persisted entry

        Raises:
            JournalValidationError: entry rejected; nothing was written
            StorageError: the write failed
        """
        correlation_id = correlation_id or create_correlation_id()
        chart = await self.load_chart(session)

        entry = JournalEntry(
            date=entry_date,
            reference=reference or generate_reference(
                entry_date, prefix=self._settings.ledger.reference_prefix
            ),
            description=description,
            client_id=session.scope_id,
            lines=self._resolve_lines(lines, chart),
            created_by=session.user_id,
        )

        result = self._validator.validate(entry, chart)
        if not result.is_valid:
            await self._reject(session, result, correlation_id)

        if post:
            entry = mark_posted(entry)

        try:
            saved = await self._storage.create_journal_entry(entry)
        except StorageError as e:
            await self._storage_failed(session, "create_journal_entry", e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_entry_saved(
                entry_id=saved.id,
                user_id=session.user_id,
                client_id=saved.client_id,
                status=saved.status.value,
                total=str(saved.total_debit),
                correlation_id=correlation_id,
            )

        logger.info(
            "journal_entry_saved",
            entry_id=str(saved.id),
            status=saved.status.value,
            client_id=saved.client_id,
        )
        return saved

    async def _get_owned_entry(self, session: LedgerSession, entry_id: UUID) -> JournalEntry:
        entry = await self._storage.get_journal_entry(entry_id)
        if entry is None or entry.client_id != session.scope_id:
            raise NotFoundError(f"Journal entry not found: {entry_id}")
        return entry

    async def post_draft(
        self,
        session: LedgerSession,
        entry_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> JournalEntry:
        """
        Post a saved draft.

        The draft is validated again against the current chart, since
        accounts may have been deactivated since it was saved.
        """
        correlation_id = correlation_id or create_correlation_id()
        entry = await self._get_owned_entry(session, entry_id)
        if entry.status != JournalEntryStatus.DRAFT:
            raise InvalidStatusTransitionError(
                f"Only drafts can be posted; {entry.id} is {entry.status.value}"
            )

        chart = await self.load_chart(session)
        result = self._validator.validate(entry, chart)
        if not result.is_valid:
            await self._reject(session, result, correlation_id)

        try:
            posted = await self._storage.update_journal_entry_status(mark_posted(entry))
        except StorageError as e:
            await self._storage_failed(session, "post_draft", e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_entry_saved(
                entry_id=posted.id,
                user_id=session.user_id,
                client_id=posted.client_id,
                status=posted.status.value,
                total=str(posted.total_debit),
                correlation_id=correlation_id,
            )
        return posted

    async def void_entry(
        self,
        session: LedgerSession,
        entry_id: UUID,
        create_reversal: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[JournalEntry, Optional[JournalEntry]]:
        """
        Undo an entry.

        Without create_reversal the entry is voided, which takes it out of
        every report. With create_reversal the entry is reversed instead
        (see reverse_entry): it stays POSTED and a posted reversing entry
        cancels it, so the books net to zero while both stay on record.

        Returns:
            (updated_entry, reversal_entry or None)
        """
        if create_reversal:
            return await self.reverse_entry(session, entry_id, correlation_id=correlation_id)

        correlation_id = correlation_id or create_correlation_id()
        entry = await self._get_owned_entry(session, entry_id)
        if entry.in_reversal_pair:
            raise InvalidStatusTransitionError(
                f"Journal entry {entry.id} is part of a reversal and cannot be voided"
            )

        voided = mark_void(entry, voided_by=session.user_id)
        try:
            voided = await self._storage.update_journal_entry_status(voided)
        except StorageError as e:
            await self._storage_failed(session, "void_entry", e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_entry_voided(
                entry_id=voided.id,
                user_id=session.user_id,
                reversal_id=None,
                correlation_id=correlation_id,
            )
        return voided, None

    async def reverse_entry(
        self,
        session: LedgerSession,
        entry_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[JournalEntry, JournalEntry]:
        """
        Cancel a posted entry with a reversing entry dated today.

        The reversing entry is written first, then the original is linked to
        it through reversed_by_entry_id. If linking fails the reversing entry
        is voided again, so the original is left exactly as it was and the
        reversal can be retried.

        Returns:
            (original_entry, reversal_entry)
        """
        correlation_id = correlation_id or create_correlation_id()
        entry = await self._get_owned_entry(session, entry_id)

        today = date.today()
        reversal = build_reversal(
            entry,
            created_by=session.user_id,
            on_date=today,
            reference=generate_reference(today, prefix=self._settings.ledger.reference_prefix),
        )
        reversed_entry = mark_reversed(entry, reversal.id)

        try:
            reversal = await self._storage.create_journal_entry(reversal)
        except StorageError as e:
            await self._storage_failed(session, "reverse_entry", e, correlation_id)
            raise

        try:
            reversed_entry = await self._storage.update_journal_entry_status(reversed_entry)
        except StorageError as e:
            await self._storage_failed(session, "reverse_entry", e, correlation_id)
            await self._withdraw_reversal(session, reversal, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_entry_reversed(
                entry_id=reversed_entry.id,
                user_id=session.user_id,
                reversal_id=reversal.id,
                correlation_id=correlation_id,
            )
        return reversed_entry, reversal

    async def _withdraw_reversal(
        self,
        session: LedgerSession,
        reversal: JournalEntry,
        correlation_id: UUID,
    ) -> None:
        try:
            await self._storage.update_journal_entry_status(
                mark_void(reversal, voided_by=session.user_id)
            )
        except StorageError as e:
            # Both entries are now posted and unlinked; someone has to void the reversal by hand
            logger.error(
                "reversal_withdraw_failed",
                reversal_id=str(reversal.id),
                original_id=str(reversal.reverses_entry_id),
                error=str(e),
            )
            await self._storage_failed(session, "withdraw_reversal", e, correlation_id)

    async def list_entries(
        self,
        session: LedgerSession,
        status: Optional[JournalEntryStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[JournalEntry]:
        """Entries for the session's client, newest first."""
        return await self._storage.list_journal_entries(
            session.scope_id,
            status=status,
            date_from=date_from,
            date_to=date_to,
        )


class ReportFlow:
    """
    Orchestrates statements and their export.

    All numbers come from storage through StatementService and the pure
    aggregators. Nothing here estimates or fills in missing data.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        exporter: Optional[GoogleSheetsStatementExporter] = None,
        settings: Optional[Settings] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._exporter = exporter
        self._settings = settings or get_settings()
        self._statements = StatementService(storage, audit_logger, self._settings)

    @property
    def can_export_to_sheets(self) -> bool:
        return self._exporter is not None

    async def profit_and_loss(
        self,
        session: LedgerSession,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> ProfitAndLoss:
        return await self._statements.profit_and_loss(session, period_start, period_end)

    async def balance_sheet(self, session: LedgerSession) -> BalanceSheet:
        return await self._statements.balance_sheet(session)

    async def trial_balance(
        self,
        session: LedgerSession,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> TrialBalance:
        return await self._statements.trial_balance(session, period_start, period_end)

    async def cash_flow(
        self,
        session: LedgerSession,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> CashFlowSummary:
        transactions = await self._storage.list_transactions(
            session.scope_id, date_from=period_start, date_to=period_end
        )
        return summarize_cash_flow(
            transactions,
            exclude_cancelled=self._settings.ledger.exclude_cancelled_transactions,
        )

    async def budgets(self, session: LedgerSession) -> list[Budget]:
        """Budgets with spent_amount recomputed from transactions."""
        budgets = await self._storage.list_budgets(session.scope_id)
        transactions = await self._storage.list_transactions(session.scope_id)
        return sync_budget_spending(budgets, transactions)

    async def statement(
        self,
        statement_type: StatementType,
        session: LedgerSession,
        period_start: date,
        period_end: date,
        correlation_id: Optional[UUID] = None,
    ) -> FinancialStatement:
        return await self._statements.generate_financial_statement(
            statement_type,
            session,
            period_start,
            period_end,
            correlation_id=correlation_id,
        )

    def export_rows(self, statement: FinancialStatement) -> list[dict]:
        return statement_to_rows(statement)

    async def export_csv(
        self,
        session: LedgerSession,
        statement: FinancialStatement,
        stream: TextIO,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """Write the statement as CSV to stream. Returns the row count."""
        count = write_rows_csv(self.export_rows(statement), stream)
        if self._audit_logger:
            await self._audit_logger.log_statement_exported(
                statement_id=statement.id,
                user_id=session.user_id,
                destination="csv",
                row_count=count,
                correlation_id=correlation_id or create_correlation_id(),
            )
        return count

    async def export_to_sheets(
        self,
        session: LedgerSession,
        statement: FinancialStatement,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """Write the statement to its own worksheet. Returns the row count."""
        if self._exporter is None:
            raise StorageError("Google Sheets export is not configured")

        correlation_id = correlation_id or create_correlation_id()
        try:
            count = self._exporter.export(statement)
        except StorageError as e:
            logger.error("statement_export_failed", statement_id=statement.id, error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="export_statement",
                    error_message=str(e),
                    user_id=session.user_id,
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_statement_exported(
                statement_id=statement.id,
                user_id=session.user_id,
                destination="google_sheets",
                row_count=count,
                correlation_id=correlation_id,
            )
        return count


def create_app_components(
    use_storage: bool = True,
    settings: Optional[Settings] = None,
) -> tuple[JournalEntryFlow, ReportFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run on in-memory storage.

    Returns:
        (journal_flow, report_flow, sheets_client)
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    sheets_client = None
    exporter = None
    ledger_storage: LedgerStorageInterface

    if use_storage and settings.app.use_google_sheets:
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            sheets_client.get_spreadsheet()
            ledger_storage = GoogleSheetsLedgerStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
            exporter = GoogleSheetsStatementExporter(sheets_client)
        except (StorageError, ValidationError) as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            ledger_storage = InMemoryLedgerStorage()
            audit_logger = AuditLogger(InMemoryAuditStorage())
    else:
        ledger_storage = InMemoryLedgerStorage()
        audit_logger = AuditLogger(InMemoryAuditStorage())

    journal_flow = JournalEntryFlow(
        storage=ledger_storage,
        audit_logger=audit_logger,
        settings=settings,
    )

    report_flow = ReportFlow(
        storage=ledger_storage,
        audit_logger=audit_logger,
        exporter=exporter,
        settings=settings,
    )

    return journal_flow, report_flow, sheets_client
