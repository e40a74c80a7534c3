"""
Audit Models for Group Splitter

Every user action on a group (creating it, adding people, logging or
archiving expenses) produces an audit event. Events go to the local
structured log; they are not persisted and never record balances.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Groups
    GROUP_CREATED = "group_created"

    # Participants
    PARTICIPANT_ADDED = "participant_added"
    PARTICIPANT_REMOVED = "participant_removed"

    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_ARCHIVED = "expense_archived"
    EXPENSE_RESTORED = "expense_restored"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSE_REJECTED = "expense_rejected"

    # Settlement
    SETTLEMENTS_COMPUTED = "settlements_computed"

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
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'group', 'participant', 'expense')"
    )
    entity_id: Optional[str] = None
    group_id: Optional[str] = None

    # For tracking related events
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "group_id": self.group_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.group_created(group_id, name, correlation_id)
        event = AuditEventBuilder.expense_added(expense, correlation_id)
    """

    @staticmethod
    def group_created(
        group_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_CREATED,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Group created: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def participant_added(
        group_id: str,
        participant_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARTICIPANT_ADDED,
            entity_type="participant",
            entity_id=participant_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Participant added: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def participant_removed(
        group_id: str,
        participant_id: str,
        referenced_by: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARTICIPANT_REMOVED,
            severity=AuditSeverity.WARNING if referenced_by else AuditSeverity.INFO,
            entity_type="participant",
            entity_id=participant_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description="Participant removed",
            details={"referenced_by_expenses": referenced_by},
            is_user_action=True,
        )

    @staticmethod
    def expense_changed(
        event_type: AuditEventType,
        group_id: Optional[str],
        expense_id: str,
        name: str,
        amount: str,
        currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        verb = event_type.value.replace("expense_", "")
        return AuditEvent(
            event_type=event_type,
            entity_type="expense",
            entity_id=expense_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Expense {verb}: {name}",
            details={"amount": amount, "currency": currency},
            is_user_action=True,
        )

    @staticmethod
    def expense_rejected(
        group_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Expense rejected with {len(issues)} issue(s)",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def settlements_computed(
        group_id: str,
        expense_count: int,
        settlement_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENTS_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Computed {settlement_count} settlement(s)",
            details={
                "expense_count": expense_count,
                "settlement_count": settlement_count,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        group_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Storage operation failed: {operation}",
            details={"operation": operation},
            error_message=error_message,
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
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
