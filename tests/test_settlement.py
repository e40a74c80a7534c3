"""
Tests for the settlement engine.

The engine is pure, so every test builds its roster and expenses
inline and checks the returned transfers directly.
"""

from decimal import Decimal

import pytest

from splitter.models.group import (
    Expense,
    Participant,
    ReferentialPolicy,
    Settlement,
)
from splitter.settlement import (
    UnknownParticipantError,
    calculate_settlements,
    compute_balances,
    find_unknown_participants,
    partition_balances,
    round_to_cents,
)


def person(pid: str) -> Participant:
    return Participant(id=pid, name=pid.upper())


def expense(amount, paid_by: str, participants: list[str], currency: str = "PLN") -> Expense:
    return Expense(
        name="Test expense",
        amount=amount,
        currency=currency,
        paid_by=paid_by,
        participants=participants,
    )


def pairs(settlements: list[Settlement]) -> list[tuple[str, str, Decimal]]:
    return [(s.from_id, s.to_id, s.amount) for s in settlements]


@pytest.fixture
def abc():
    return [person("a"), person("b"), person("c")]


class TestBasicCases:
    """The worked examples every group relies on."""

    def test_empty_input(self):
        """No participants and no expenses settle to nothing."""
        assert calculate_settlements([], []) == []

    def test_no_expenses(self, abc):
        """A roster without expenses settles to nothing."""
        assert calculate_settlements(abc, []) == []

    def test_two_party(self):
        """A pays 100 for A and B: B owes A 50."""
        participants = [person("a"), person("b")]
        expenses = [expense(100, "a", ["a", "b"])]

        balances = compute_balances(participants, expenses)
        assert balances == {"a": Decimal("50"), "b": Decimal("-50")}

        settlements = calculate_settlements(participants, expenses)
        assert len(settlements) == 1
        s = settlements[0]
        assert s.from_id == "b"
        assert s.to_id == "a"
        assert s.amount == Decimal("50.00")
        assert s.from_name == "B"
        assert s.to_name == "A"

    def test_three_party_chain(self, abc):
        """A pays 90 for everyone: B and C each owe A 30, in roster order."""
        expenses = [expense(90, "a", ["a", "b", "c"])]

        balances = compute_balances(abc, expenses)
        assert balances["a"] == Decimal("60")
        assert balances["b"] == Decimal("-30")
        assert balances["c"] == Decimal("-30")

        assert pairs(calculate_settlements(abc, expenses)) == [
            ("b", "a", Decimal("30.00")),
            ("c", "a", Decimal("30.00")),
        ]

    def test_expense_without_participants_is_skipped(self, abc):
        """An expense nobody shares changes no balance, whatever its amount."""
        expenses = [expense(1000, "a", [])]

        assert compute_balances(abc, expenses) == {
            "a": Decimal("0"),
            "b": Decimal("0"),
            "c": Decimal("0"),
        }
        assert calculate_settlements(abc, expenses) == []

    def test_opposite_expenses_net_out(self):
        """A pays 100 and B pays 50 for both: B owes A 25."""
        participants = [person("a"), person("b")]
        expenses = [
            expense(100, "a", ["a", "b"]),
            expense(50, "b", ["a", "b"]),
        ]
        assert pairs(calculate_settlements(participants, expenses)) == [
            ("b", "a", Decimal("25.00")),
        ]


class TestBalances:
    """Balance accumulation rules."""

    def test_unreferenced_participant_has_zero_balance(self, abc):
        balances = compute_balances(abc, [expense(10, "a", ["a", "b"])])
        assert balances["c"] == Decimal("0")
        assert list(balances) == ["a", "b", "c"]

    def test_payer_not_sharing_is_credited_full_amount(self, abc):
        """A pays 60 for B and C only."""
        balances = compute_balances(abc, [expense(60, "a", ["b", "c"])])
        assert balances == {
            "a": Decimal("60"),
            "b": Decimal("-30"),
            "c": Decimal("-30"),
        }

    def test_balances_sum_to_zero(self, abc):
        expenses = [
            expense(100, "a", ["a", "b", "c"]),
            expense("33.10", "b", ["a", "c"]),
            expense("7.77", "c", ["a", "b", "c"]),
            expense(12, "a", ["b"]),
        ]
        total = sum(compute_balances(abc, expenses).values(), Decimal("0"))
        assert abs(total) < Decimal("1e-20")

    def test_unknown_ids_are_tracked(self):
        participants = [person("a")]
        balances = compute_balances(participants, [expense(10, "a", ["a", "ghost"])])
        assert balances == {"a": Decimal("5"), "ghost": Decimal("-5")}

    def test_string_amounts_are_parsed(self):
        e = expense(" 12.50 ", "a", ["a", "b"])
        assert e.amount == Decimal("12.50")

    def test_negative_amount_does_not_raise(self):
        participants = [person("a"), person("b")]
        balances = compute_balances(participants, [expense(-20, "a", ["a", "b"])])
        assert balances == {"a": Decimal("-10"), "b": Decimal("10")}
        assert pairs(calculate_settlements(participants, [expense(-20, "a", ["a", "b"])])) == [
            ("a", "b", Decimal("10.00")),
        ]


class TestPartition:
    """Debtor/creditor split and ordering."""

    def test_epsilon_excludes_near_zero(self):
        debtors, creditors = partition_balances({
            "a": Decimal("0.01"),
            "b": Decimal("-0.01"),
            "c": Decimal("0.02"),
            "d": Decimal("-0.02"),
        })
        assert debtors == [["d", Decimal("0.02")]]
        assert creditors == [["c", Decimal("0.02")]]

    def test_sorted_descending_and_stable(self):
        debtors, creditors = partition_balances({
            "a": Decimal("10"),
            "b": Decimal("-5"),
            "c": Decimal("30"),
            "d": Decimal("-20"),
            "e": Decimal("-5"),
            "f": Decimal("10"),
        })
        assert [d[0] for d in debtors] == ["d", "b", "e"]
        assert [c[0] for c in creditors] == ["c", "a", "f"]


class TestGreedyMatching:
    """Largest debtor pays largest creditor first."""

    def test_cascading_matches(self):
        """A +70, B +30, C -60, D -40."""
        participants = [person(pid) for pid in "abcd"]
        expenses = [
            expense(60, "a", ["c"]),
            expense(10, "a", ["d"]),
            expense(30, "b", ["d"]),
        ]
        assert pairs(calculate_settlements(participants, expenses)) == [
            ("c", "a", Decimal("60.00")),
            ("d", "a", Decimal("10.00")),
            ("d", "b", Decimal("30.00")),
        ]

    def test_repeating_division(self, abc):
        """100 split three ways leaves a sub-cent remainder that is ignored."""
        settlements = calculate_settlements(abc, [expense(100, "a", ["a", "b", "c"])])
        assert pairs(settlements) == [
            ("b", "a", Decimal("33.33")),
            ("c", "a", Decimal("33.33")),
        ]

    def test_sub_epsilon_balances_produce_nothing(self):
        participants = [person("a"), person("b")]
        assert calculate_settlements(participants, [expense("0.01", "a", ["a", "b"])]) == []

    def test_custom_epsilon(self):
        participants = [person("a"), person("b")]
        expenses = [expense(1, "a", ["a", "b"])]
        assert calculate_settlements(participants, expenses, epsilon=Decimal("1")) == []
        assert len(calculate_settlements(participants, expenses, epsilon=Decimal("0.1"))) == 1

    def test_unknown_participant_named_unknown(self):
        settlements = calculate_settlements([person("a")], [expense(10, "a", ["a", "ghost"])])
        assert len(settlements) == 1
        assert settlements[0].from_id == "ghost"
        assert settlements[0].from_name == "Unknown"
        assert settlements[0].to_name == "A"


class TestProperties:
    """Invariants that hold for any input."""

    @pytest.fixture
    def busy_group(self):
        participants = [person(pid) for pid in "abcdef"]
        expenses = [
            expense("123.45", "a", ["a", "b", "c", "d"]),
            expense("80", "b", ["b", "e"]),
            expense("19.99", "c", ["a", "b", "c", "d", "e", "f"]),
            expense("250", "f", ["a", "f"]),
            expense("5.5", "d", ["c"]),
            expense("42", "e", ["a", "b", "c", "d", "e", "f"]),
        ]
        return participants, expenses

    def test_no_self_transfer(self, busy_group):
        for s in calculate_settlements(*busy_group):
            assert s.from_id != s.to_id

    def test_amounts_at_least_one_cent(self, busy_group):
        for s in calculate_settlements(*busy_group):
            assert s.amount >= Decimal("0.01")
            assert s.amount == round_to_cents(s.amount)

    def test_settlement_sum_matches_credit(self, busy_group):
        participants, expenses = busy_group
        owed = sum(
            (b for b in compute_balances(participants, expenses).values() if b > 0),
            Decimal("0"),
        )
        paid = sum((s.amount for s in calculate_settlements(participants, expenses)), Decimal("0"))
        assert abs(owed - paid) <= Decimal("0.01") * len(participants)

    def test_transfer_count_bounded(self, busy_group):
        participants, expenses = busy_group
        debtors, creditors = partition_balances(compute_balances(participants, expenses))
        settlements = calculate_settlements(participants, expenses)
        assert len(settlements) <= len(debtors) + len(creditors) - 1

    def test_idempotent(self, busy_group):
        assert calculate_settlements(*busy_group) == calculate_settlements(*busy_group)

    def test_expense_order_does_not_matter(self, abc):
        expenses = [
            expense(90, "a", ["a", "b", "c"]),
            expense(30, "b", ["b", "c"]),
            expense(12, "c", ["a", "b", "c"]),
        ]
        assert (
            calculate_settlements(abc, expenses)
            == calculate_settlements(abc, list(reversed(expenses)))
        )


class TestReferentialPolicy:
    """Strict policy refuses expenses pointing outside the roster."""

    def test_find_unknown_participants(self, abc):
        expenses = [
            expense(10, "x", ["a", "y"]),
            expense(10, "a", ["y", "z"]),
        ]
        assert find_unknown_participants(abc, expenses) == ["x", "y", "z"]

    def test_strict_raises(self):
        with pytest.raises(UnknownParticipantError) as exc_info:
            calculate_settlements(
                [person("a")],
                [expense(10, "a", ["a", "ghost"])],
                policy=ReferentialPolicy.STRICT,
            )
        assert exc_info.value.participant_ids == ["ghost"]

    def test_strict_passes_clean_input(self, abc):
        settlements = calculate_settlements(
            abc,
            [expense(90, "a", ["a", "b", "c"])],
            policy=ReferentialPolicy.STRICT,
        )
        assert len(settlements) == 2


class TestRounding:

    def test_round_half_up(self):
        assert round_to_cents(Decimal("0.125")) == Decimal("0.13")
        assert round_to_cents(Decimal("2.675")) == Decimal("2.68")
        assert round_to_cents(Decimal("2.674")) == Decimal("2.67")

    def test_settlement_wire_names(self):
        s = Settlement(
            from_id="b",
            to_id="a",
            amount=Decimal("50.00"),
            from_name="B",
            to_name="A",
        )
        dumped = s.model_dump(by_alias=True)
        assert set(dumped) == {"from", "to", "amount", "fromName", "toName"}
        assert dumped["from"] == "b"
        assert dumped["toName"] == "A"

    def test_settlement_from_wire_names(self):
        s = Settlement.model_validate({
            "from": "b",
            "to": "a",
            "amount": "12.30",
            "fromName": "B",
            "toName": "A",
        })
        assert s.from_id == "b"
        assert s.amount == Decimal("12.30")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
