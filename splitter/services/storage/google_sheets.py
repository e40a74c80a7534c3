"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted backend because:
1. Group members can view the raw data directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (a group has tens of expenses)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

Each table lives in its own worksheet. Participant id lists are
JSON-encoded into a single cell.

Only the connection handshake is retried. Failed reads and writes are
surfaced to the caller as StorageError and reported to the user.
"""

import json
from datetime import datetime
from typing import Callable, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from splitter.config import get_settings
from splitter.models.group import Expense, Group, Participant
from splitter.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    GroupStorageInterface,
    NotFoundError,
    StorageError,
)


GROUP_COLUMNS = [
    "id",
    "name",
    "created_at",
]

PARTICIPANT_COLUMNS = [
    "id",
    "group_id",
    "name",
    "created_at",
]

EXPENSE_COLUMNS = [
    "id",
    "group_id",
    "name",
    "amount",
    "currency",
    "paid_by",
    "participants_json",
    "archived",
    "created_at",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup/creation.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
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
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_groups_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_worksheet(
            self._settings.groups_sheet_name, GROUP_COLUMNS
        )

    def get_participants_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_worksheet(
            self._settings.participants_sheet_name, PARTICIPANT_COLUMNS
        )

    def get_expenses_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_worksheet(
            self._settings.expenses_sheet_name, EXPENSE_COLUMNS, rows=5000
        )


def _safe_getter(row: list) -> Callable[..., str]:
    """Read cells by index, tolerating short rows."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


class GoogleSheetsGroupStorage(GroupStorageInterface):
    """
    Google Sheets implementation of group storage.

    One row per group, participant and expense. Rows that fail to parse
    are skipped when listing.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def _group_to_row(group: Group) -> list:
        return [group.id, group.name, group.created_at.isoformat()]

    @staticmethod
    def _row_to_group(row: list) -> Group:
        safe_get = _safe_getter(row)
        return Group(
            id=safe_get(0),
            name=safe_get(1),
            created_at=datetime.fromisoformat(safe_get(2)),
        )

    @staticmethod
    def _participant_to_row(participant: Participant) -> list:
        return [
            participant.id,
            participant.group_id or "",
            participant.name,
            participant.created_at.isoformat(),
        ]

    @staticmethod
    def _row_to_participant(row: list) -> Participant:
        safe_get = _safe_getter(row)
        return Participant(
            id=safe_get(0),
            group_id=safe_get(1) or None,
            name=safe_get(2),
            created_at=datetime.fromisoformat(safe_get(3)),
        )

    @staticmethod
    def _expense_to_row(expense: Expense) -> list:
        return [
            expense.id,
            expense.group_id or "",
            expense.name,
            str(expense.amount),
            expense.currency,
            expense.paid_by,
            json.dumps(expense.participants),
            str(expense.archived),
            expense.created_at.isoformat(),
        ]

    @staticmethod
    def _row_to_expense(row: list) -> Expense:
        safe_get = _safe_getter(row)
        participants_json = safe_get(6)
        return Expense(
            id=safe_get(0),
            group_id=safe_get(1) or None,
            name=safe_get(2),
            amount=safe_get(3, "0"),
            currency=safe_get(4, "PLN"),
            paid_by=safe_get(5),
            participants=json.loads(participants_json) if participants_json else [],
            archived=safe_get(7).lower() == "true",
            created_at=datetime.fromisoformat(safe_get(8)),
        )

    @staticmethod
    def _find_row_index(all_rows: list, entity_id: str) -> Optional[int]:
        """1-based sheet row index of an id, skipping the header row."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == entity_id:
                return idx
        return None

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    async def create_group(self, group: Group) -> Group:
        try:
            sheet = self._client.get_groups_sheet()
            if self._find_row_index(sheet.get_all_values(), group.id):
                raise DuplicateError(f"Group already exists: {group.id}")
            sheet.append_row(self._group_to_row(group), value_input_option="RAW")
            return group
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create group: {e}")

    async def get_group(self, group_id: str) -> Optional[Group]:
        try:
            sheet = self._client.get_groups_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == group_id:
                    return self._row_to_group(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get group: {e}")

    # -------------------------------------------------------------------------
    # Participants
    # -------------------------------------------------------------------------

    async def add_participant(self, participant: Participant) -> Participant:
        if participant.group_id is None or await self.get_group(participant.group_id) is None:
            raise NotFoundError(f"Group not found: {participant.group_id}")
        try:
            sheet = self._client.get_participants_sheet()
            sheet.append_row(
                self._participant_to_row(participant),
                value_input_option="RAW",
            )
            return participant
        except Exception as e:
            raise StorageError(f"Failed to add participant: {e}")

    async def list_participants(self, group_id: str) -> list[Participant]:
        try:
            sheet = self._client.get_participants_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list participants: {e}")

        participants = []
        for row in all_rows:
            if not row or not row[0] or len(row) < 2 or row[1] != group_id:
                continue
            try:
                participants.append(self._row_to_participant(row))
            except Exception:
                continue  # Skip malformed rows

        participants.sort(key=lambda p: p.created_at)
        return participants

    async def delete_participant(self, participant_id: str) -> bool:
        try:
            sheet = self._client.get_participants_sheet()
            idx = self._find_row_index(sheet.get_all_values(), participant_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete participant: {e}")

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    async def add_expense(self, expense: Expense) -> Expense:
        if expense.group_id is None or await self.get_group(expense.group_id) is None:
            raise NotFoundError(f"Group not found: {expense.group_id}")
        try:
            sheet = self._client.get_expenses_sheet()
            sheet.append_row(self._expense_to_row(expense), value_input_option="RAW")
            return expense
        except Exception as e:
            raise StorageError(f"Failed to add expense: {e}")

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        try:
            sheet = self._client.get_expenses_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == expense_id:
                    return self._row_to_expense(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get expense: {e}")

    async def update_expense(self, expense: Expense) -> Expense:
        try:
            sheet = self._client.get_expenses_sheet()
            idx = self._find_row_index(sheet.get_all_values(), expense.id)
            if idx is None:
                raise NotFoundError(f"Expense not found: {expense.id}")

            for col_idx, value in enumerate(self._expense_to_row(expense), start=1):
                sheet.update_cell(idx, col_idx, value)
            return expense
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update expense: {e}")

    async def set_expense_archived(self, expense_id: str, archived: bool) -> Expense:
        expense = await self.get_expense(expense_id)
        if expense is None:
            raise NotFoundError(f"Expense not found: {expense_id}")

        try:
            sheet = self._client.get_expenses_sheet()
            idx = self._find_row_index(sheet.get_all_values(), expense_id)
            if idx is None:
                raise NotFoundError(f"Expense not found: {expense_id}")
            sheet.update_cell(idx, EXPENSE_COLUMNS.index("archived") + 1, str(archived))
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to archive expense: {e}")

        return expense.model_copy(update={"archived": archived})

    async def delete_expense(self, expense_id: str) -> bool:
        try:
            sheet = self._client.get_expenses_sheet()
            idx = self._find_row_index(sheet.get_all_values(), expense_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete expense: {e}")

    async def list_expenses(
        self,
        group_id: str,
        include_archived: bool = True,
    ) -> list[Expense]:
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}")

        expenses = []
        for row in all_rows:
            if not row or not row[0] or len(row) < 2 or row[1] != group_id:
                continue
            try:
                expense = self._row_to_expense(row)
            except Exception:
                continue  # Skip malformed rows

            if not include_archived and expense.archived:
                continue
            expenses.append(expense)

        # Newest first
        expenses.sort(key=lambda e: e.created_at, reverse=True)
        return expenses
