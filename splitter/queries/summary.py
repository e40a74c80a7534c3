"""
Group Summary Builder

Derives everything a group page shows from the raw GroupData:
active/archived split, totals per currency, balances and settlements.

DESIGN DECISION: The settlement engine never converts currencies.
The summary offers two views:
- `settlements`: all active expenses settled together, as if their
  amounts were in one currency (matches what single-currency groups see)
- `settlements_by_currency`: one independent settlement per currency
"""

from collections import defaultdict
from decimal import Decimal
from typing import Optional

from splitter.formatting import format_amount, format_mixed_total
from splitter.models.group import (
    Expense,
    GroupData,
    GroupSummary,
    ParticipantBalance,
    ReferentialPolicy,
)
from splitter.settlement import (
    DEFAULT_EPSILON,
    calculate_settlements,
    compute_balances,
)


def group_by_currency(expenses: list[Expense]) -> dict[str, list[Expense]]:
    """Bucket expenses by currency, keeping first-seen currency order."""
    buckets: dict[str, list[Expense]] = defaultdict(list)
    for expense in expenses:
        buckets[expense.currency].append(expense)
    return dict(buckets)


class GroupSummaryBuilder:
    """Builds GroupSummary objects with a fixed epsilon and policy."""

    def __init__(
        self,
        epsilon: Decimal = DEFAULT_EPSILON,
        policy: ReferentialPolicy = ReferentialPolicy.PERMISSIVE,
    ):
        self._epsilon = epsilon
        self._policy = policy

    def build(self, data: GroupData) -> GroupSummary:
        """
        Summarize a group.

        Archived expenses are counted but never settled.

        Raises:
            UnknownParticipantError: Only under the strict policy
        """
        active = data.active_expenses
        by_currency = group_by_currency(active)

        totals = {
            currency: sum((e.amount for e in expenses), Decimal("0"))
            for currency, expenses in by_currency.items()
        }

        names = {p.id: p.name for p in data.participants}
        balances = [
            ParticipantBalance(
                participant_id=participant_id,
                name=names.get(participant_id, "Unknown"),
                balance=balance,
            )
            for participant_id, balance in compute_balances(data.participants, active).items()
        ]

        settlements = calculate_settlements(
            data.participants,
            active,
            policy=self._policy,
            epsilon=self._epsilon,
        )
        settlements_by_currency = {
            currency: calculate_settlements(
                data.participants,
                expenses,
                policy=self._policy,
                epsilon=self._epsilon,
            )
            for currency, expenses in by_currency.items()
        }

        return GroupSummary(
            group=data.group,
            active_expense_count=len(active),
            archived_expense_count=len(data.archived_expenses),
            totals_by_currency=totals,
            balances=balances,
            settlements=settlements,
            settlements_by_currency=settlements_by_currency,
        )


def format_total(summary: GroupSummary, fallback_currency: Optional[str] = None) -> str:
    """
    Render the group total.

    Single currency: `123.45 zł`. Mixed: `123.45 (mixed currencies)`.
    No expenses: zero in the fallback currency, or a bare number.
    """
    if summary.is_mixed_currency:
        return format_mixed_total(summary.total_amount)
    if summary.totals_by_currency:
        currency, total = next(iter(summary.totals_by_currency.items()))
        return format_amount(total, currency)
    if fallback_currency:
        return format_amount(Decimal("0"), fallback_currency)
    return "0.00"
