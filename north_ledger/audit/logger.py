"""
Audit Logger

DESIGN DECISION: Every change to the books is logged, and so is every
statement that is generated or exported. This provides:
1. A trail of who posted, voided or reversed what
2. Debugging capability when a submission or report fails
3. History the CPA and client can review

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (a failed audit write never undoes a posting)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from north_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from north_ledger.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """Route structlog through stdlib logging and render JSON lines."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("north_ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_validation_failed(
        self,
        entry_id: UUID,
        user_id: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a rejected journal entry submission."""
        event = AuditEventBuilder.validation_failed(
            entry_id=entry_id,
            user_id=user_id,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_entry_saved(
        self,
        entry_id: UUID,
        user_id: str,
        client_id: str,
        status: str,
        total: str,
        correlation_id: UUID,
    ) -> None:
        """Log a drafted or posted journal entry."""
        event = AuditEventBuilder.entry_saved(
            entry_id=entry_id,
            user_id=user_id,
            client_id=client_id,
            status=status,
            total=total,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_entry_voided(
        self,
        entry_id: UUID,
        user_id: str,
        reversal_id: Optional[UUID],
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.entry_voided(
            entry_id=entry_id,
            user_id=user_id,
            reversal_id=reversal_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_entry_reversed(
        self,
        entry_id: UUID,
        user_id: str,
        reversal_id: UUID,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.entry_reversed(
            entry_id=entry_id,
            user_id=user_id,
            reversal_id=reversal_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_statement_generated(
        self,
        statement_id: str,
        statement_type: str,
        client_id: str,
        user_id: str,
        period: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.statement_generated(
            statement_id=statement_id,
            statement_type=statement_type,
            client_id=client_id,
            user_id=user_id,
            period=period,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_statement_exported(
        self,
        statement_id: str,
        user_id: str,
        destination: str,
        row_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.statement_exported(
            statement_id=statement_id,
            user_id=user_id,
            destination=destination,
            row_count=row_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        user_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log a failed read or write against ledger storage."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., submitting an entry).
    Pass it through all subsequent operations.
    """
    return uuid4()
