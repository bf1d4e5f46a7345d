"""
Audit Models for North Ledger

Every action that changes the books, or reads them for a report, is
recorded as an AuditEvent. This provides:
1. Traceability of who posted or voided which entry
2. Debugging information when a submission or report fails
3. A history the CPA and the client can both inspect

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from north_ledger.models.ledger import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Journal entries
    JOURNAL_ENTRY_VALIDATION_FAILED = "journal_entry_validation_failed"
    JOURNAL_ENTRY_DRAFTED = "journal_entry_drafted"
    JOURNAL_ENTRY_POSTED = "journal_entry_posted"
    JOURNAL_ENTRY_VOIDED = "journal_entry_voided"
    JOURNAL_ENTRY_REVERSED = "journal_entry_reversed"

    # Reports
    STATEMENT_GENERATED = "statement_generated"
    STATEMENT_EXPORTED = "statement_exported"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Who did it
    user_id: Optional[str] = Field(
        default=None,
        description="User who performed the action"
    )

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g. 'journal_entry', 'statement')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events from one user action"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, correlation_id, description, details_json,
         error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_posted(entry_id, user_id, ...)
    """

    @staticmethod
    def validation_failed(
        entry_id: UUID,
        user_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.JOURNAL_ENTRY_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="journal_entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description=f"Journal entry rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def entry_saved(
        entry_id: UUID,
        user_id: str,
        client_id: str,
        status: str,
        total: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.JOURNAL_ENTRY_POSTED
            if status == "posted"
            else AuditEventType.JOURNAL_ENTRY_DRAFTED
        )
        return AuditEvent(
            event_type=event_type,
            user_id=user_id,
            entity_type="journal_entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description=f"Journal entry {status}: {total}",
            details={
                "client_id": client_id,
                "status": status,
                "total": total,
            },
            is_user_action=True,
        )

    @staticmethod
    def entry_voided(
        entry_id: UUID,
        user_id: str,
        reversal_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        details: dict[str, Any] = {}
        if reversal_id:
            details["reversal_entry_id"] = str(reversal_id)
        return AuditEvent(
            event_type=AuditEventType.JOURNAL_ENTRY_VOIDED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="journal_entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description="Journal entry voided",
            details=details,
            is_user_action=True,
        )

    @staticmethod
    def entry_reversed(
        entry_id: UUID,
        user_id: str,
        reversal_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.JOURNAL_ENTRY_REVERSED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="journal_entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description="Journal entry reversed",
            details={"reversal_entry_id": str(reversal_id)},
            is_user_action=True,
        )

    @staticmethod
    def statement_generated(
        statement_id: str,
        statement_type: str,
        client_id: str,
        user_id: str,
        period: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_GENERATED,
            user_id=user_id,
            entity_type="statement",
            entity_id=statement_id,
            correlation_id=correlation_id,
            description=f"Generated {statement_type} for {period}",
            details={
                "statement_type": statement_type,
                "client_id": client_id,
                "period": period,
            },
        )

    @staticmethod
    def statement_exported(
        statement_id: str,
        user_id: str,
        destination: str,
        row_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_EXPORTED,
            user_id=user_id,
            entity_type="statement",
            entity_id=statement_id,
            correlation_id=correlation_id,
            description=f"Statement exported to {destination} ({row_count} rows)",
            details={
                "destination": destination,
                "row_count": row_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
