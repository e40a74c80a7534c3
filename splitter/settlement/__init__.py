"""Settlement computation package."""

from splitter.settlement.engine import (
    DEFAULT_EPSILON,
    UnknownParticipantError,
    calculate_settlements,
    compute_balances,
    find_unknown_participants,
    partition_balances,
    round_to_cents,
)

__all__ = [
    "DEFAULT_EPSILON",
    "UnknownParticipantError",
    "calculate_settlements",
    "compute_balances",
    "find_unknown_participants",
    "partition_balances",
    "round_to_cents",
]
