"""
Main Orchestrator for Group Splitter

This module ties together all the components and defines the
end-to-end flows for:
1. Groups (create group, add/remove participants)
2. Expenses (draft -> validate -> save, edit, archive, delete)
3. Settlement (fetch group -> summarize -> settle)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No expense is saved without passing validation
- Settlements are always recomputed from stored data, never stored
- Every user action is audited

Storage failures are logged and re-raised for the caller to report.
Nothing is retried here.
"""

from typing import Awaitable, Optional, TypeVar
from uuid import UUID

import structlog

from splitter.audit import AuditLogger, create_correlation_id
from splitter.config import get_settings
from splitter.models.audit import AuditEventType
from splitter.models.group import (
    Expense,
    ExpenseDraft,
    Group,
    GroupSummary,
    Participant,
    ValidationResult,
)
from splitter.queries import GroupSummaryBuilder
from splitter.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsGroupStorage,
    GroupStorageInterface,
    InMemoryGroupStorage,
    NotFoundError,
    StorageError,
)
from splitter.validation import ExpenseValidator


T = TypeVar("T")

logger = structlog.get_logger(__name__)


class ExpenseRejectedError(Exception):
    """Raised when an expense draft fails validation."""

    def __init__(self, result: ValidationResult, message: str):
        self.result = result
        super().__init__(message)


class _Flow:
    """Shared storage/audit plumbing for the flows below."""

    def __init__(
        self,
        storage: GroupStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    async def _call_storage(
        self,
        operation: str,
        call: Awaitable[T],
        correlation_id: UUID,
        group_id: Optional[str] = None,
    ) -> T:
        try:
            return await call
        except NotFoundError:
            raise
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation=operation,
                    error_message=str(e),
                    group_id=group_id,
                    correlation_id=correlation_id,
                )
            raise


class GroupFlow(_Flow):
    """Creating groups and managing their participants."""

    async def create_group(
        self,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> Group:
        correlation_id = correlation_id or create_correlation_id()

        group = Group(name=name)
        await self._call_storage(
            "create_group",
            self._storage.create_group(group),
            correlation_id,
            group_id=group.id,
        )

        if self._audit_logger:
            await self._audit_logger.log_group_created(
                group_id=group.id,
                name=group.name,
                correlation_id=correlation_id,
            )

        return group

    async def add_participant(
        self,
        group_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> Participant:
        """
        Add a person to a group.

        Raises:
            ValueError: If the name is blank
            NotFoundError: If the group doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        name = name.strip()
        if not name:
            raise ValueError("Participant name is required")

        participant = Participant(name=name, group_id=group_id)
        await self._call_storage(
            "add_participant",
            self._storage.add_participant(participant),
            correlation_id,
            group_id=group_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_participant_added(
                group_id=group_id,
                participant_id=participant.id,
                name=participant.name,
                correlation_id=correlation_id,
            )

        return participant

    async def remove_participant(
        self,
        group_id: str,
        participant_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Remove a person from a group.

        Their expenses are kept; the settlement engine's referential
        policy decides how the orphaned ids are treated.
        """
        correlation_id = correlation_id or create_correlation_id()

        expenses = await self._call_storage(
            "list_expenses",
            self._storage.list_expenses(group_id),
            correlation_id,
            group_id=group_id,
        )
        referenced_by = sum(
            1 for e in expenses
            if e.paid_by == participant_id or participant_id in e.participants
        )

        deleted = await self._call_storage(
            "delete_participant",
            self._storage.delete_participant(participant_id),
            correlation_id,
            group_id=group_id,
        )

        if deleted and self._audit_logger:
            await self._audit_logger.log_participant_removed(
                group_id=group_id,
                participant_id=participant_id,
                referenced_by=referenced_by,
                correlation_id=correlation_id,
            )

        return deleted


class ExpenseFlow(_Flow):
    """
    Adding and editing expenses.

    Flow:
    1. Draft -> validated against the group roster
    2. Rejected drafts raise ExpenseRejectedError with the full result
    3. Valid drafts are saved and audited
    """

    def __init__(
        self,
        storage: GroupStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(storage, audit_logger)
        self._validator = validator or ExpenseValidator()

    async def _validate(
        self,
        group_id: str,
        draft: ExpenseDraft,
        correlation_id: UUID,
    ) -> ValidationResult:
        participants = await self._call_storage(
            "list_participants",
            self._storage.list_participants(group_id),
            correlation_id,
            group_id=group_id,
        )
        result = self._validator.validate(draft, participants)

        if not result.is_valid:
            if self._audit_logger:
                issues = [
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                ]
                await self._audit_logger.log_expense_rejected(
                    group_id=group_id,
                    issues=issues,
                    correlation_id=correlation_id,
                )
            raise ExpenseRejectedError(
                result,
                self._validator.get_user_friendly_summary(result),
            )

        return result

    async def add_expense(
        self,
        group_id: str,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Validate and save a new expense.

        Raises:
            ExpenseRejectedError: If validation fails
            NotFoundError: If the group doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        await self._validate(group_id, draft, correlation_id)

        expense = draft.to_expense(group_id=group_id)
        await self._call_storage(
            "add_expense",
            self._storage.add_expense(expense),
            correlation_id,
            group_id=group_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_expense_changed(
                AuditEventType.EXPENSE_ADDED,
                expense,
                correlation_id,
            )

        return expense

    async def update_expense(
        self,
        expense_id: str,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Replace an expense's editable fields.

        Id, group, archived flag and creation time are kept.
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._call_storage(
            "get_expense",
            self._storage.get_expense(expense_id),
            correlation_id,
        )
        if existing is None:
            raise NotFoundError(f"Expense not found: {expense_id}")

        await self._validate(existing.group_id, draft, correlation_id)

        expense = draft.to_expense(
            group_id=existing.group_id,
            id=existing.id,
            archived=existing.archived,
            created_at=existing.created_at,
        )
        await self._call_storage(
            "update_expense",
            self._storage.update_expense(expense),
            correlation_id,
            group_id=existing.group_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_expense_changed(
                AuditEventType.EXPENSE_UPDATED,
                expense,
                correlation_id,
            )

        return expense

    async def toggle_archive(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """Archive an active expense or restore an archived one."""
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._call_storage(
            "get_expense",
            self._storage.get_expense(expense_id),
            correlation_id,
        )
        if existing is None:
            raise NotFoundError(f"Expense not found: {expense_id}")

        expense = await self._call_storage(
            "set_expense_archived",
            self._storage.set_expense_archived(expense_id, not existing.archived),
            correlation_id,
            group_id=existing.group_id,
        )

        if self._audit_logger:
            event_type = (
                AuditEventType.EXPENSE_ARCHIVED if expense.archived
                else AuditEventType.EXPENSE_RESTORED
            )
            await self._audit_logger.log_expense_changed(event_type, expense, correlation_id)

        return expense

    async def delete_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._call_storage(
            "get_expense",
            self._storage.get_expense(expense_id),
            correlation_id,
        )
        if existing is None:
            return False

        deleted = await self._call_storage(
            "delete_expense",
            self._storage.delete_expense(expense_id),
            correlation_id,
            group_id=existing.group_id,
        )

        if deleted and self._audit_logger:
            await self._audit_logger.log_expense_changed(
                AuditEventType.EXPENSE_DELETED,
                existing,
                correlation_id,
            )

        return deleted


class SettlementFlow(_Flow):
    """
    Computes who owes whom for a group.

    Settlements are derived from the stored expenses on every call;
    they are never persisted.
    """

    def __init__(
        self,
        storage: GroupStorageInterface,
        summary_builder: Optional[GroupSummaryBuilder] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(storage, audit_logger)
        if summary_builder is None:
            settlement_settings = get_settings().settlement
            summary_builder = GroupSummaryBuilder(
                epsilon=settlement_settings.epsilon,
                policy=settlement_settings.referential_policy,
            )
        self._summary_builder = summary_builder

    async def get_summary(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> GroupSummary:
        """
        Fetch a group and summarize it.

        Raises:
            NotFoundError: If the group doesn't exist
            UnknownParticipantError: Under the strict referential policy
        """
        correlation_id = correlation_id or create_correlation_id()

        data = await self._call_storage(
            "get_group_data",
            self._storage.get_group_data(group_id),
            correlation_id,
            group_id=group_id,
        )
        summary = self._summary_builder.build(data)

        if self._audit_logger:
            await self._audit_logger.log_settlements_computed(
                group_id=group_id,
                expense_count=summary.active_expense_count,
                settlement_count=len(summary.settlements),
                correlation_id=correlation_id,
            )

        return summary


def create_app_components(
    use_storage: bool = True,
) -> tuple[GroupFlow, ExpenseFlow, SettlementFlow, GroupStorageInterface]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    When False, or when Sheets isn't configured,
                    an in-memory store is used instead.

    Returns:
        (group_flow, expense_flow, settlement_flow, storage)
    """
    storage: GroupStorageInterface
    audit_logger = AuditLogger()

    if use_storage:
        try:
            storage = GoogleSheetsGroupStorage(GoogleSheetsClient())
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            storage = InMemoryGroupStorage()
    else:
        storage = InMemoryGroupStorage()

    group_flow = GroupFlow(storage, audit_logger=audit_logger)
    expense_flow = ExpenseFlow(storage, audit_logger=audit_logger)
    settlement_flow = SettlementFlow(storage, audit_logger=audit_logger)

    return group_flow, expense_flow, settlement_flow, storage
