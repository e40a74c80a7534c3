"""
Core Data Models for Group Splitter

These models define the schemas for all data flowing through the system:
1. Groups, participants and expenses as read from storage
2. Expense drafts as entered by users (validated separately)
3. Settlements and balances produced by the settlement engine
4. Validation results and group summaries

DESIGN DECISION: Stored records are parsed leniently (amounts may arrive
as strings) and are NOT business-validated here. The settlement engine
must degrade gracefully on odd data, so rejecting it at the model layer
would hide it from the engine's skip/epsilon rules. User input goes
through ExpenseDraft and the validator instead.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def _new_id() -> str:
    return str(uuid4())


def _parse_amount(value: Any) -> Any:
    """Backends may hand amounts back as strings or floats."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, float):
        return Decimal(str(value))
    return value


# =============================================================================
# ENUMS
# =============================================================================

class ReferentialPolicy(str, Enum):
    """
    How the settlement engine treats ids missing from the roster.

    PERMISSIVE tracks a balance for the unknown id and names it "Unknown".
    STRICT refuses to compute and reports the unknown ids.
    """
    PERMISSIVE = "permissive"
    STRICT = "strict"


# =============================================================================
# STORED RECORDS
# =============================================================================

class Group(BaseModel):
    """A settlement group."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=_new_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Group display name"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Participant(BaseModel):
    """
    A person taking part in a group's expenses.

    Participants are never mutated once created; they are only deleted.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=_new_id,
        description="Opaque identifier, unique within a group"
    )
    name: str = Field(
        ...,
        description="Display name"
    )
    group_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Expense(BaseModel):
    """
    A shared expense as stored.

    `paid_by` need not be one of `participants`: someone may pay on
    behalf of others without sharing the cost.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=_new_id)
    name: str = Field(
        default="",
        description="What the expense was for"
    )
    amount: Decimal = Field(
        ...,
        description="Total amount, in `currency`"
    )
    currency: str = Field(
        default="PLN",
        description="ISO-like currency code"
    )
    paid_by: str = Field(
        ...,
        description="Participant id of the payer"
    )
    participants: list[str] = Field(
        default_factory=list,
        description="Participant ids sharing the cost"
    )
    archived: bool = False
    group_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('amount', mode='before')
    @classmethod
    def parse_amount(cls, v: Any) -> Any:
        return _parse_amount(v)

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()

    @property
    def share(self) -> Optional[Decimal]:
        """Per-person share, or None when nobody shares the expense."""
        if not self.participants:
            return None
        return self.amount / len(self.participants)


# =============================================================================
# USER INPUT
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    Expense data as entered by a user, before validation.

    Nothing is enforced here beyond types; ExpenseValidator reports
    every problem at once so the user can fix them together.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    amount: Decimal = Decimal("0")
    currency: str = "PLN"
    paid_by: str = ""
    participants: list[str] = Field(default_factory=list)

    @field_validator('amount', mode='before')
    @classmethod
    def parse_amount(cls, v: Any) -> Any:
        return _parse_amount(v)

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()

    def to_expense(self, group_id: Optional[str] = None, **overrides: Any) -> Expense:
        """Build a stored expense from this draft."""
        data = {
            "name": self.name,
            "amount": self.amount,
            "currency": self.currency,
            "paid_by": self.paid_by,
            "participants": list(self.participants),
            "group_id": group_id,
        }
        data.update(overrides)
        return Expense(**data)


# =============================================================================
# SETTLEMENT OUTPUT
# =============================================================================

class Settlement(BaseModel):
    """
    A recommended payment from a debtor to a creditor.

    Serializes to the wire names `from`, `to`, `amount`, `fromName`,
    `toName` with `model_dump(by_alias=True)`.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_id: str = Field(..., alias="from")
    to_id: str = Field(..., alias="to")
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount rounded to cents"
    )
    from_name: str = Field(..., alias="fromName")
    to_name: str = Field(..., alias="toName")


class ParticipantBalance(BaseModel):
    """Net position of one participant: positive is owed, negative owes."""

    participant_id: str
    name: str
    balance: Decimal

    @property
    def is_settled(self) -> bool:
        return abs(self.balance) <= Decimal("0.01")


# =============================================================================
# AGGREGATES
# =============================================================================

class GroupData(BaseModel):
    """
    Everything the backend returns for one group.

    Participants are ordered by creation (oldest first), expenses
    newest first.
    """

    group: Group
    participants: list[Participant] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)

    @property
    def active_expenses(self) -> list[Expense]:
        return [e for e in self.expenses if not e.archived]

    @property
    def archived_expenses(self) -> list[Expense]:
        return [e for e in self.expenses if e.archived]


class GroupSummary(BaseModel):
    """
    Computed view of a group: totals, balances and settlements.

    `settlements` treats all active expenses as one currency (callers
    that mix currencies should read `settlements_by_currency`).
    """

    group: Group
    active_expense_count: int = Field(ge=0)
    archived_expense_count: int = Field(ge=0)
    totals_by_currency: dict[str, Decimal] = Field(default_factory=dict)
    balances: list[ParticipantBalance] = Field(default_factory=list)
    settlements: list[Settlement] = Field(default_factory=list)
    settlements_by_currency: dict[str, list[Settlement]] = Field(default_factory=dict)

    @property
    def is_mixed_currency(self) -> bool:
        return len(self.totals_by_currency) > 1

    @property
    def total_amount(self) -> Decimal:
        return sum(self.totals_by_currency.values(), Decimal("0"))


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_participant')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage expense validation.

    Stage 1: Schema validation (required fields, value ranges)
    Stage 2: Semantic validation (roster membership, sanity checks)
    """

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    schema_valid: bool
    semantic_valid: bool
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
