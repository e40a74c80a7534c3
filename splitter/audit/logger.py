"""
Audit Logger

Every user action on a group is logged as a structured event.
This provides:
1. Traceability of who changed what in a group
2. Debugging capability

The audit logger:
- Writes to the local structured log only
- Never raises (logging must not break a user action)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from splitter.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from splitter.models.group import Expense


# Configure structlog for local logging
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


class AuditLogger:
    """Central audit logging service."""

    def __init__(self):
        self._logger = structlog.get_logger("splitter.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False

        return True

    async def log_group_created(
        self,
        group_id: str,
        name: str,
        correlation_id: UUID,
    ) -> None:
        """Log group creation."""
        await self.log(AuditEventBuilder.group_created(
            group_id=group_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_participant_added(
        self,
        group_id: str,
        participant_id: str,
        name: str,
        correlation_id: UUID,
    ) -> None:
        """Log a participant joining a group."""
        await self.log(AuditEventBuilder.participant_added(
            group_id=group_id,
            participant_id=participant_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_participant_removed(
        self,
        group_id: str,
        participant_id: str,
        referenced_by: int,
        correlation_id: UUID,
    ) -> None:
        """Log participant removal, noting how many expenses still reference them."""
        await self.log(AuditEventBuilder.participant_removed(
            group_id=group_id,
            participant_id=participant_id,
            referenced_by=referenced_by,
            correlation_id=correlation_id,
        ))

    async def log_expense_changed(
        self,
        event_type: AuditEventType,
        expense: Expense,
        correlation_id: UUID,
    ) -> None:
        """Log an expense being added, updated, archived, restored or deleted."""
        await self.log(AuditEventBuilder.expense_changed(
            event_type=event_type,
            group_id=expense.group_id,
            expense_id=expense.id,
            name=expense.name,
            amount=str(expense.amount),
            currency=expense.currency,
            correlation_id=correlation_id,
        ))

    async def log_expense_rejected(
        self,
        group_id: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log an expense draft that failed validation."""
        await self.log(AuditEventBuilder.expense_rejected(
            group_id=group_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_settlements_computed(
        self,
        group_id: str,
        expense_count: int,
        settlement_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.settlements_computed(
            group_id=group_id,
            expense_count=expense_count,
            settlement_count=settlement_count,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        group_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed storage call."""
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            group_id=group_id,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding an expense).
    Pass it through all subsequent operations.
    """
    return uuid4()
