"""
Statement Service

Fetches ledger data for one client and period, then hands it to the pure
aggregators in north_ledger.reports.

DESIGN DECISION: a statement is all-or-nothing. If any fetch fails the
StorageError propagates and no partial statement is built. Empty data is
not a failure; it produces a statement with zero totals.
"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from north_ledger.audit import AuditLogger, create_correlation_id
from north_ledger.config import Settings, get_settings
from north_ledger.ledger.chart import ChartOfAccounts
from north_ledger.models.ledger import JournalEntryStatus, LedgerSession
from north_ledger.models.statements import (
    BalanceSheet,
    FinancialStatement,
    ProfitAndLoss,
    StatementType,
    TrialBalance,
)
from north_ledger.reports.statements import (
    balance_sheet_statement,
    build_balance_sheet,
    build_profit_and_loss,
    build_trial_balance,
    profit_and_loss_statement,
    trial_balance_statement,
)
from north_ledger.services.storage import LedgerStorageInterface, StorageError

logger = structlog.get_logger(__name__)


class StatementService:
    """Builds financial statements from stored ledger data."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._settings = settings or get_settings()

    async def profit_and_loss(
        self,
        session: LedgerSession,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> ProfitAndLoss:
        transactions = await self._storage.list_transactions(
            session.scope_id, date_from=period_start, date_to=period_end
        )
        return build_profit_and_loss(
            transactions,
            exclude_cancelled=self._settings.ledger.exclude_cancelled_transactions,
        )

    async def balance_sheet(self, session: LedgerSession) -> BalanceSheet:
        """Point-in-time balance sheet from current balances."""
        scope_id = session.scope_id
        accounts = await self._storage.list_accounts(scope_id)
        fixed_assets = await self._storage.list_fixed_assets(scope_id)
        liabilities = await self._storage.list_liabilities(scope_id)
        return build_balance_sheet(accounts, fixed_assets, liabilities)

    async def trial_balance(
        self,
        session: LedgerSession,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> TrialBalance:
        scope_id = session.scope_id
        chart = ChartOfAccounts(
            await self._storage.get_chart_of_accounts(scope_id), scope_id
        )
        entries = await self._storage.list_journal_entries(
            scope_id,
            status=JournalEntryStatus.POSTED,
            date_from=period_start,
            date_to=period_end,
        )
        return build_trial_balance(entries, chart)

    async def generate_financial_statement(
        self,
        statement_type: StatementType,
        session: LedgerSession,
        period_start: date,
        period_end: date,
        correlation_id: Optional[UUID] = None,
    ) -> FinancialStatement:
        """
        Generate a statement of the given type for the session's client.

        Balance sheets are point-in-time; the period is recorded on the
        statement but does not filter the balances.

        Raises:
            ValueError: period_end is before period_start
            StorageError: any fetch failed
        """
        if period_end < period_start:
            raise ValueError("period_end must be on or after period_start")

        correlation_id = correlation_id or create_correlation_id()
        scope_id = session.scope_id

        try:
            if statement_type == StatementType.PROFIT_LOSS:
                report = await self.profit_and_loss(session, period_start, period_end)
                statement = profit_and_loss_statement(
                    report, scope_id, period_start, period_end, session.user_id
                )
            elif statement_type == StatementType.BALANCE_SHEET:
                report = await self.balance_sheet(session)
                statement = balance_sheet_statement(
                    report, scope_id, period_start, period_end, session.user_id
                )
            else:
                report = await self.trial_balance(session, period_start, period_end)
                statement = trial_balance_statement(
                    report, scope_id, period_start, period_end, session.user_id
                )
        except StorageError as e:
            logger.error(
                "statement_fetch_failed",
                statement_type=statement_type.value,
                client_id=scope_id,
                error=str(e),
            )
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation=f"generate_{statement_type.value}",
                    error_message=str(e),
                    user_id=session.user_id,
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_statement_generated(
                statement_id=statement.id,
                statement_type=statement_type.value,
                client_id=scope_id,
                user_id=session.user_id,
                period=f"{period_start.isoformat()}..{period_end.isoformat()}",
                correlation_id=correlation_id,
            )

        return statement
