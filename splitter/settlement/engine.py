"""
Settlement Engine

Turns a group's roster and expenses into a list of debtor -> creditor
transfers that bring every balance back to zero.

The engine is a pure function: no storage, no logging, no shared state.
It is safe to call from any number of flows at once.

ALGORITHM:
1. Net balance per participant (positive = is owed, negative = owes)
2. Split into debtors and creditors, ignoring balances within epsilon
3. Sort both largest first (stable, so ties keep roster order)
4. Greedily pay the largest creditor from the largest debtor

KNOWN LIMITATION: The greedy match is not guaranteed to produce the
minimum number of transfers (that problem is NP-hard in general).

DESIGN DECISION: Amounts are Decimal throughout. The 0.01 epsilon is
still applied so results match what users have always seen, but it now
only absorbs repeating-division remainders (e.g. 100 / 3).
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from splitter.models.group import (
    Expense,
    Participant,
    ReferentialPolicy,
    Settlement,
)


DEFAULT_EPSILON = Decimal("0.01")
CENTS = Decimal("0.01")
UNKNOWN_NAME = "Unknown"


class UnknownParticipantError(Exception):
    """Raised under the strict policy when expenses reference unknown ids."""

    def __init__(self, participant_ids: list[str]):
        self.participant_ids = participant_ids
        super().__init__(
            f"Expenses reference participants outside the roster: {', '.join(participant_ids)}"
        )


def round_to_cents(amount: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def find_unknown_participants(
    participants: Iterable[Participant],
    expenses: Iterable[Expense],
) -> list[str]:
    """
    List ids used by expenses (as payer or beneficiary) that are not in
    the roster, in order of first reference.
    """
    roster = {p.id for p in participants}
    unknown: list[str] = []
    for expense in expenses:
        for participant_id in [expense.paid_by, *expense.participants]:
            if participant_id not in roster and participant_id not in unknown:
                unknown.append(participant_id)
    return unknown


def compute_balances(
    participants: Iterable[Participant],
    expenses: Iterable[Expense],
) -> dict[str, Decimal]:
    """
    Compute the net balance of every participant.

    Every roster member starts at zero, so unreferenced participants are
    present with a zero balance. Ids only referenced by expenses are
    added in order of first appearance.

    Expenses with no beneficiaries are skipped. When the payer shares
    the cost they net `amount - share`; when they paid on behalf of
    others they are credited the full amount. Either way the balances
    sum to zero.
    """
    balances: dict[str, Decimal] = {p.id: Decimal("0") for p in participants}

    for expense in expenses:
        split_count = len(expense.participants)
        if split_count == 0:
            continue

        share = expense.amount / split_count
        payer_shares = False

        for participant_id in expense.participants:
            current = balances.get(participant_id, Decimal("0"))
            if participant_id == expense.paid_by:
                balances[participant_id] = current + (expense.amount - share)
                payer_shares = True
            else:
                balances[participant_id] = current - share

        if not payer_shares:
            current = balances.get(expense.paid_by, Decimal("0"))
            balances[expense.paid_by] = current + expense.amount

    return balances


def partition_balances(
    balances: dict[str, Decimal],
    epsilon: Decimal = DEFAULT_EPSILON,
) -> tuple[list[list], list[list]]:
    """
    Split balances into debtors and creditors.

    Returns two lists of `[participant_id, remaining]` pairs, each sorted
    by remaining amount descending. `remaining` is always positive: for
    debtors it is what they owe. Balances within +/- epsilon are left out.
    """
    debtors = [
        [participant_id, -balance]
        for participant_id, balance in balances.items()
        if balance < -epsilon
    ]
    creditors = [
        [participant_id, balance]
        for participant_id, balance in balances.items()
        if balance > epsilon
    ]

    # sorted() is stable with reverse=True, so equal amounts keep insertion order
    debtors = sorted(debtors, key=lambda entry: entry[1], reverse=True)
    creditors = sorted(creditors, key=lambda entry: entry[1], reverse=True)

    return debtors, creditors


def calculate_settlements(
    participants: Sequence[Participant],
    expenses: Sequence[Expense],
    policy: ReferentialPolicy = ReferentialPolicy.PERMISSIVE,
    epsilon: Optional[Decimal] = None,
) -> list[Settlement]:
    """
    Calculate the transfers that settle a group.

    Args:
        participants: The group roster (may be empty)
        expenses: Non-archived expenses; filtering archived ones is the
            caller's job, as is grouping by currency
        policy: What to do with ids missing from the roster
        epsilon: Settlement threshold, defaults to 0.01

    Returns:
        Settlements in emission order: largest debtor against largest
        creditor first, then the cascading matches.

    Raises:
        UnknownParticipantError: Only under ReferentialPolicy.STRICT
    """
    epsilon = DEFAULT_EPSILON if epsilon is None else epsilon

    if policy == ReferentialPolicy.STRICT:
        unknown = find_unknown_participants(participants, expenses)
        if unknown:
            raise UnknownParticipantError(unknown)

    balances = compute_balances(participants, expenses)
    debtors, creditors = partition_balances(balances, epsilon)
    names = {p.id: p.name for p in participants}

    settlements: list[Settlement] = []
    i = 0
    j = 0

    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        amount = min(debtor[1], creditor[1])

        if amount > epsilon:
            settlements.append(Settlement(
                from_id=debtor[0],
                to_id=creditor[0],
                amount=round_to_cents(amount),
                from_name=names.get(debtor[0]) or UNKNOWN_NAME,
                to_name=names.get(creditor[0]) or UNKNOWN_NAME,
            ))

        debtor[1] -= amount
        creditor[1] -= amount

        if debtor[1] < epsilon:
            i += 1
        if creditor[1] < epsilon:
            j += 1

    return settlements
