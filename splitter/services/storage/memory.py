"""
In-Memory Storage Implementation

Keeps everything in dicts. Used by tests and as the fallback when
Google Sheets isn't configured; nothing survives a restart.
"""

from typing import Optional

from splitter.models.group import Expense, Group, Participant
from splitter.services.storage.interface import (
    DuplicateError,
    GroupStorageInterface,
    NotFoundError,
)


class InMemoryGroupStorage(GroupStorageInterface):
    """Dict-backed storage. Returned models are copies."""

    def __init__(self):
        self._groups: dict[str, Group] = {}
        self._participants: dict[str, Participant] = {}
        self._expenses: dict[str, Expense] = {}

    def _require_group(self, group_id: Optional[str]) -> None:
        if group_id is None or group_id not in self._groups:
            raise NotFoundError(f"Group not found: {group_id}")

    async def create_group(self, group: Group) -> Group:
        if group.id in self._groups:
            raise DuplicateError(f"Group already exists: {group.id}")
        self._groups[group.id] = group.model_copy()
        return group

    async def get_group(self, group_id: str) -> Optional[Group]:
        group = self._groups.get(group_id)
        return group.model_copy() if group else None

    async def add_participant(self, participant: Participant) -> Participant:
        self._require_group(participant.group_id)
        if participant.id in self._participants:
            raise DuplicateError(f"Participant already exists: {participant.id}")
        self._participants[participant.id] = participant.model_copy()
        return participant

    async def list_participants(self, group_id: str) -> list[Participant]:
        participants = [
            p.model_copy() for p in self._participants.values()
            if p.group_id == group_id
        ]
        participants.sort(key=lambda p: p.created_at)
        return participants

    async def delete_participant(self, participant_id: str) -> bool:
        return self._participants.pop(participant_id, None) is not None

    async def add_expense(self, expense: Expense) -> Expense:
        self._require_group(expense.group_id)
        if expense.id in self._expenses:
            raise DuplicateError(f"Expense already exists: {expense.id}")
        self._expenses[expense.id] = expense.model_copy(deep=True)
        return expense

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        expense = self._expenses.get(expense_id)
        return expense.model_copy(deep=True) if expense else None

    async def update_expense(self, expense: Expense) -> Expense:
        if expense.id not in self._expenses:
            raise NotFoundError(f"Expense not found: {expense.id}")
        self._expenses[expense.id] = expense.model_copy(deep=True)
        return expense

    async def set_expense_archived(self, expense_id: str, archived: bool) -> Expense:
        expense = self._expenses.get(expense_id)
        if expense is None:
            raise NotFoundError(f"Expense not found: {expense_id}")
        updated = expense.model_copy(update={"archived": archived}, deep=True)
        self._expenses[expense_id] = updated
        return updated.model_copy(deep=True)

    async def delete_expense(self, expense_id: str) -> bool:
        return self._expenses.pop(expense_id, None) is not None

    async def list_expenses(
        self,
        group_id: str,
        include_archived: bool = True,
    ) -> list[Expense]:
        expenses = [
            e.model_copy(deep=True) for e in self._expenses.values()
            if e.group_id == group_id and (include_archived or not e.archived)
        ]
        expenses.sort(key=lambda e: e.created_at, reverse=True)
        return expenses
