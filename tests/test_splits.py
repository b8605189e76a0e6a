"""Tests for building and validating expense splits."""

from decimal import Decimal

import pytest

from splitsavvy.exceptions import InvalidAmountError, SplitMismatchError
from splitsavvy.splits import custom_split, equal_split, parse_amount


def as_dict(splits) -> dict[str, Decimal]:
    return {split.user_id: split.amount for split in splits}


class TestParseAmount:
    """Tests for parse_amount."""

    def test_parses_string(self):
        assert parse_amount("12.50") == Decimal("12.50")

    def test_parses_float_without_binary_noise(self):
        assert parse_amount(19.99) == Decimal("19.99")

    @pytest.mark.parametrize("value", ["0", "-5", "abc", "", "NaN", "Infinity"])
    def test_rejects_invalid(self, value):
        with pytest.raises(InvalidAmountError, match="valid amount"):
            parse_amount(value)


class TestEqualSplit:
    """Tests for equal_split."""

    def test_two_people(self):
        splits = equal_split(Decimal("100"), "A", ["A", "B"])

        assert as_dict(splits) == {"A": Decimal("50"), "B": Decimal("50")}

    def test_payer_listed_last(self):
        splits = equal_split(Decimal("90"), "B", ["A", "B", "C"])

        assert [split.user_id for split in splits] == ["A", "C", "B"]

    def test_payer_gets_leftover_cent_first(self):
        """Shares are in cents and add up to the total exactly."""
        splits = equal_split(Decimal("100"), "A", ["A", "B", "C"])

        assert as_dict(splits) == {
            "B": Decimal("33.33"),
            "C": Decimal("33.33"),
            "A": Decimal("33.34"),
        }
        assert sum(split.amount for split in splits) == Decimal("100")

    def test_leftover_cents_spread_in_roster_order(self):
        splits = equal_split(Decimal("2"), "A", ["A", "B", "C"])

        assert as_dict(splits) == {
            "B": Decimal("0.67"),
            "C": Decimal("0.66"),
            "A": Decimal("0.67"),
        }
        assert sum(split.amount for split in splits) == Decimal("2")

    def test_small_amount_across_many_people(self):
        """No share goes negative and none is more than a cent off another."""
        users = [f"u{i}" for i in range(10)]

        splits = equal_split(Decimal("0.25"), "u0", users)
        amounts = as_dict(splits)

        assert amounts["u0"] == Decimal("0.03")
        assert sorted(amounts.values()) == [Decimal("0.02")] * 5 + [Decimal("0.03")] * 5
        assert sum(amounts.values()) == Decimal("0.25")

    def test_payer_is_never_credited_more_than_paid(self):
        users = [f"u{i}" for i in range(30)]

        splits = equal_split(Decimal("10.05"), "u0", users)
        amounts = [split.amount for split in splits]

        assert min(amounts) == Decimal("0.33")
        assert max(amounts) == Decimal("0.34")
        assert amounts.count(Decimal("0.34")) == 15
        assert sum(amounts) == Decimal("10.05")
        assert as_dict(splits)["u0"] == Decimal("0.34")

    def test_sub_cent_remainder_goes_to_payer(self):
        splits = equal_split(Decimal("10.005"), "A", ["A", "B"])

        assert as_dict(splits) == {"B": Decimal("5.00"), "A": Decimal("5.005")}

    def test_payer_not_on_roster_still_gets_a_share(self):
        splits = equal_split(Decimal("30"), "A", ["B", "C"])

        assert as_dict(splits) == {
            "B": Decimal("10"),
            "C": Decimal("10"),
            "A": Decimal("10"),
        }

    def test_payer_alone(self):
        splits = equal_split(Decimal("12.34"), "A", ["A"])

        assert as_dict(splits) == {"A": Decimal("12.34")}


class TestCustomSplit:
    """Tests for custom_split."""

    def test_valid_shares(self):
        splits = custom_split(Decimal("60"), {"A": "40", "B": "20"})

        assert as_dict(splits) == {"A": Decimal("40"), "B": Decimal("20")}

    def test_small_difference_is_tolerated(self):
        splits = custom_split(Decimal("100"), {"A": "33.33", "B": "33.33", "C": "33.33"})

        assert len(splits) == 3

    def test_mismatch_raises(self):
        with pytest.raises(SplitMismatchError, match="doesn't equal") as exc_info:
            custom_split(Decimal("100"), {"A": "40", "B": "40"})

        assert exc_info.value.split_total == Decimal("80")
        assert exc_info.value.amount == Decimal("100")
        assert "80.00" in str(exc_info.value)

    @pytest.mark.parametrize("share", ["", "lots", "NaN"])
    def test_invalid_share_raises(self, share):
        with pytest.raises(InvalidAmountError, match="valid amounts"):
            custom_split(Decimal("10"), {"A": "10", "B": share})
