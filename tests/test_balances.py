"""Tests for net balance aggregation and debt simplification."""

import logging
from decimal import Decimal

import pytest

from splitsavvy.balances import (
    TOLERANCE,
    apply_transfers,
    calculate_balances,
    compute_net_balances,
    is_settled,
    round_amount,
    simplify_balances,
    to_decimal,
)
from splitsavvy.models import Expense, ExpenseSplit, Transfer


# Helper function for tests
def make_expense(id: str, paid_by: str, amount: str, splits: dict[str, str]) -> Expense:
    """Create an Expense with the given per-participant owed amounts."""
    return Expense(
        id=id,
        group_id="g1",
        amount=Decimal(amount),
        description=f"Test expense {id}",
        paid_by=paid_by,
        splits=[
            ExpenseSplit(user_id=user_id, amount=Decimal(owed))
            for user_id, owed in splits.items()
        ],
    )


def assert_all_settled(balances: dict[str, Decimal]):
    for user_id, balance in balances.items():
        assert abs(balance) <= TOLERANCE, f"{user_id} still at {balance}"


class TestHelpers:
    """Tests for the small numeric helpers."""

    def test_to_decimal_float_keeps_short_repr(self):
        """Floats should convert via str, not via their binary value."""
        assert to_decimal(0.1) == Decimal("0.1")

    def test_to_decimal_passes_decimal_through(self):
        value = Decimal("12.345")
        assert to_decimal(value) is value

    def test_round_amount_half_up(self):
        assert round_amount(Decimal("0.125")) == Decimal("0.13")
        assert round_amount(Decimal("33.333")) == Decimal("33.33")

    def test_is_settled_boundary(self):
        assert is_settled(Decimal("0.01"))
        assert is_settled(Decimal("-0.01"))
        assert not is_settled(Decimal("0.011"))


class TestComputeNetBalances:
    """Tests for compute_net_balances."""

    def test_equal_split_two_people(self):
        """Payer who also owes a share nets to half the amount."""
        expenses = [make_expense("e1", "A", "100", {"A": "50", "B": "50"})]

        balances = compute_net_balances(expenses, ["A", "B"])

        assert balances == {"A": Decimal("50"), "B": Decimal("-50")}

    def test_no_expenses_gives_zero_for_everyone(self):
        balances = compute_net_balances([], ["A", "B", "C"])

        assert balances == {"A": 0, "B": 0, "C": 0}
        assert list(balances) == ["A", "B", "C"]

    def test_unknown_participants_are_still_counted(self):
        """IDs seen only in expense data get added after the roster."""
        expenses = [make_expense("e1", "C", "30", {"B": "10", "D": "20"})]

        balances = compute_net_balances(expenses, ["A", "B"])

        assert list(balances) == ["A", "B", "C", "D"]
        assert balances["A"] == 0
        assert balances["B"] == Decimal("-10")
        assert balances["C"] == Decimal("30")
        assert balances["D"] == Decimal("-20")

    def test_payer_not_in_splits(self):
        expenses = [make_expense("e1", "A", "40", {"B": "20", "C": "20"})]

        balances = compute_net_balances(expenses, ["A", "B", "C"])

        assert balances == {"A": Decimal("40"), "B": Decimal("-20"), "C": Decimal("-20")}

    def test_conservation_across_many_expenses(self):
        """Self-consistent expenses always sum to exactly zero."""
        expenses = [
            make_expense("e1", "A", "100", {"A": "33.33", "B": "33.33", "C": "33.34"}),
            make_expense("e2", "B", "45.10", {"A": "15.03", "C": "30.07"}),
            make_expense("e3", "C", "0.30", {"A": "0.10", "B": "0.10", "C": "0.10"}),
        ]
        # Repeat so float-style drift would show up
        expenses = expenses * 50

        balances = compute_net_balances(expenses, ["A", "B", "C"])

        assert sum(balances.values()) == 0

    def test_malformed_input_is_aggregated_as_given(self):
        """Empty splits and negative amounts don't raise."""
        expenses = [
            make_expense("e1", "A", "25", {}),
            make_expense("e2", "B", "-5", {"A": "-5"}),
        ]

        balances = compute_net_balances(expenses, ["A", "B"])

        assert balances == {"A": Decimal("30"), "B": Decimal("-5")}


class TestSimplifyBalances:
    """Tests for simplify_balances."""

    def test_two_people(self):
        transfers = simplify_balances({"A": Decimal("50"), "B": Decimal("-50")})

        assert transfers == [Transfer(from_user="B", to_user="A", amount=Decimal("50"))]

    def test_three_way_chain(self):
        """Largest debtor pays largest creditor first."""
        balances = {"A": Decimal("-30"), "B": Decimal("-20"), "C": Decimal("50")}

        transfers = simplify_balances(balances)

        assert transfers == [
            Transfer(from_user="A", to_user="C", amount=Decimal("30")),
            Transfer(from_user="B", to_user="C", amount=Decimal("20")),
        ]

    def test_transfer_amounts_rounded_to_cents(self):
        transfers = simplify_balances({"A": Decimal("33.333"), "B": Decimal("-33.333")})

        assert len(transfers) == 1
        assert transfers[0].amount == Decimal("33.33")
        assert str(transfers[0].amount) == "33.33"

    def test_empty_input(self):
        assert simplify_balances({}) == []
        assert simplify_balances([]) == []

    def test_already_settled_input(self):
        balances = {"A": Decimal("0"), "B": Decimal("0.005"), "C": Decimal("-0.01")}

        assert simplify_balances(balances) == []

    def test_accepts_pairs(self):
        transfers = simplify_balances([("A", Decimal("-12.5")), ("B", Decimal("12.5"))])

        assert transfers == [
            Transfer(from_user="A", to_user="B", amount=Decimal("12.50"))
        ]

    def test_accepts_floats(self):
        transfers = simplify_balances({"A": 10.1, "B": -10.1})

        assert transfers == [
            Transfer(from_user="B", to_user="A", amount=Decimal("10.10"))
        ]

    def test_equal_magnitudes_settle_together(self):
        """A tie zeroes both sides in one step."""
        balances = {
            "A": Decimal("-40"),
            "B": Decimal("-35.5"),
            "C": Decimal("10"),
            "D": Decimal("25.5"),
            "E": Decimal("40"),
            "F": Decimal("0"),
        }

        transfers = simplify_balances(balances)

        assert transfers == [
            Transfer(from_user="A", to_user="E", amount=Decimal("40")),
            Transfer(from_user="B", to_user="D", amount=Decimal("25.5")),
            Transfer(from_user="B", to_user="C", amount=Decimal("10")),
        ]

    @pytest.mark.parametrize(
        "balances",
        [
            {"A": "-10", "B": "-20", "C": "-30", "D": "60"},
            {"A": "100", "B": "-33.33", "C": "-33.33", "D": "-33.34"},
            {"A": "-0.5", "B": "0.25", "C": "0.25"},
            {"A": "7.77", "B": "-1.11", "C": "-2.22", "D": "-4.44", "E": "0"},
        ],
    )
    def test_plan_settles_everyone_within_bound(self, balances):
        """Applying the plan zeroes every balance using at most N-1 transfers."""
        balances = {user_id: Decimal(amount) for user_id, amount in balances.items()}
        open_count = sum(1 for amount in balances.values() if abs(amount) > TOLERANCE)

        transfers = simplify_balances(balances)

        assert len(transfers) <= max(0, open_count - 1)
        assert_all_settled(apply_transfers(balances, transfers))
        assert all(transfer.amount > 0 for transfer in transfers)

    def test_does_not_mutate_input(self):
        balances = {"A": Decimal("-30"), "B": Decimal("30")}

        simplify_balances(balances)

        assert balances == {"A": Decimal("-30"), "B": Decimal("30")}

    def test_unbalanced_input_logs_leftover(self, caplog):
        """A residual that can't be matched is reported, not raised."""
        with caplog.at_level(logging.WARNING, logger="splitsavvy.balances"):
            transfers = simplify_balances({"A": Decimal("-30"), "B": Decimal("20")})

        assert transfers == [Transfer(from_user="A", to_user="B", amount=Decimal("20"))]
        assert "A=-10" in caplog.text

    def test_one_sided_input_makes_no_transfers(self, caplog):
        """Only creditors left means nobody can pay anybody."""
        with caplog.at_level(logging.WARNING, logger="splitsavvy.balances"):
            transfers = simplify_balances({"A": Decimal("10"), "B": Decimal("5")})

        assert transfers == []
        assert "do not sum to zero" in caplog.text


class TestCalculateBalances:
    """Tests for the expenses -> transfers pipeline."""

    def test_equal_split_two_people(self):
        expenses = [make_expense("e1", "A", "100", {"A": "50", "B": "50"})]

        transfers = calculate_balances(expenses, ["A", "B"])

        assert transfers == [Transfer(from_user="B", to_user="A", amount=Decimal("50"))]

    def test_no_expenses(self):
        assert calculate_balances([], ["A", "B"]) == []

    def test_expenses_that_cancel_out(self):
        expenses = [
            make_expense("e1", "A", "20", {"A": "10", "B": "10"}),
            make_expense("e2", "B", "20", {"A": "10", "B": "10"}),
        ]

        assert calculate_balances(expenses, ["A", "B"]) == []


class TestApplyTransfers:
    """Tests for apply_transfers."""

    def test_applies_in_both_directions(self):
        balances = {"A": Decimal("-30"), "B": Decimal("30")}

        result = apply_transfers(
            balances, [Transfer(from_user="A", to_user="B", amount=Decimal("10"))]
        )

        assert result == {"A": Decimal("-20"), "B": Decimal("20")}
        assert balances == {"A": Decimal("-30"), "B": Decimal("30")}
