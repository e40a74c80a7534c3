"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the operations a group page needs.
"""

from abc import ABC, abstractmethod
from typing import Optional

from splitter.models.group import (
    Expense,
    Group,
    GroupData,
    Participant,
)


class GroupStorageInterface(ABC):
    """
    Abstract interface for group, participant and expense storage.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_group(self, group: Group) -> Group:
        """
        Persist a new group.

        Raises:
            DuplicateError: If a group with the same id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_group(self, group_id: str) -> Optional[Group]:
        """Retrieve a group by id, or None if it doesn't exist."""
        pass

    # -------------------------------------------------------------------------
    # Participants
    # -------------------------------------------------------------------------

    @abstractmethod
    async def add_participant(self, participant: Participant) -> Participant:
        """
        Add a participant to its group (participant.group_id).

        Raises:
            NotFoundError: If the group doesn't exist
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def list_participants(self, group_id: str) -> list[Participant]:
        """List a group's participants, oldest first."""
        pass

    @abstractmethod
    async def delete_participant(self, participant_id: str) -> bool:
        """
        Delete a participant.

        Expenses referencing the participant are left untouched.

        Returns:
            True if a participant was deleted
        """
        pass

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    @abstractmethod
    async def add_expense(self, expense: Expense) -> Expense:
        """
        Add an expense to its group (expense.group_id).

        Raises:
            NotFoundError: If the group doesn't exist
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        """Retrieve an expense by id, or None if it doesn't exist."""
        pass

    @abstractmethod
    async def update_expense(self, expense: Expense) -> Expense:
        """
        Replace an existing expense.

        Raises:
            NotFoundError: If the expense doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def set_expense_archived(self, expense_id: str, archived: bool) -> Expense:
        """
        Archive or restore an expense.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> bool:
        """
        Delete an expense by id.

        Returns:
            True if an expense was deleted
        """
        pass

    @abstractmethod
    async def list_expenses(
        self,
        group_id: str,
        include_archived: bool = True,
    ) -> list[Expense]:
        """List a group's expenses, newest first."""
        pass

    # -------------------------------------------------------------------------
    # Aggregate
    # -------------------------------------------------------------------------

    async def get_group_data(self, group_id: str) -> GroupData:
        """
        Fetch a group with its participants and all expenses.

        Raises:
            NotFoundError: If the group doesn't exist
        """
        group = await self.get_group(group_id)
        if group is None:
            raise NotFoundError(f"Group not found: {group_id}")

        return GroupData(
            group=group,
            participants=await self.list_participants(group_id),
            expenses=await self.list_expenses(group_id, include_archived=True),
        )


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
