"""Tests for share, balance and settlement calculations."""

import pytest
from datetime import date
from decimal import Decimal

from splitledger.calculations import (
    apply_transfers,
    calculate_balances,
    compute_shares,
    plan_settlement,
    total_spent,
)
from splitledger.errors import InternalConsistencyError
from splitledger.models import Expense, Group, Member


def make_expense(expense_id, amount, payer, participants, split=None, category="Food"):
    data = {
        "id": expense_id,
        "title": f"Expense {expense_id}",
        "amount": amount,
        "date": date(2024, 5, 1),
        "payer_id": payer,
        "participant_ids": tuple(participants),
        "category": category,
    }
    if split is not None:
        data["split"] = split
    return Expense.model_validate(data)


def make_group(expenses=(), members=("a", "b", "c"), currency="USD"):
    return Group(
        id="g1",
        name="Trip",
        currency=currency,
        members=tuple(Member(id=m, name=m.upper()) for m in members),
        expenses=tuple(expenses),
    )


class TestShares:
    """Tests for per-expense share calculation."""

    def test_equal_split_gives_remainder_to_first_participant(self):
        """Test 100 / 3 = 33.34 + 33.33 + 33.33."""
        expense = make_expense("e1", "100", "a", ["a", "b", "c"])
        shares = compute_shares(expense, "USD")
        assert shares == {
            "a": Decimal("33.34"),
            "b": Decimal("33.33"),
            "c": Decimal("33.33"),
        }

    def test_remainder_follows_participant_order(self):
        """Test that the first listed participant absorbs the remainder."""
        expense = make_expense("e1", "100", "a", ["c", "a", "b"])
        shares = compute_shares(expense, "USD")
        assert shares["c"] == Decimal("33.34")
        assert shares["a"] == Decimal("33.33")

    def test_shares_split(self):
        """Test weighted split."""
        expense = make_expense(
            "e1", 90, "a", ["a", "b"],
            split={"split_type": "shares", "weights": {"a": 2, "b": 1}},
        )
        assert compute_shares(expense, "USD") == {"a": Decimal("60"), "b": Decimal("30")}

    def test_percentage_split_negative_remainder(self):
        """Test that rounding up too much is taken back from the first participant."""
        expense = make_expense(
            "e1", "99.99", "a", ["a", "b", "c"],
            split={"split_type": "percentage", "percentages": {"a": 50, "b": 25, "c": 25}},
        )
        shares = compute_shares(expense, "USD")
        assert shares == {
            "a": Decimal("49.99"),
            "b": Decimal("25.00"),
            "c": Decimal("25.00"),
        }
        assert sum(shares.values()) == Decimal("99.99")

    def test_negative_remainder_skips_zero_percent_participant(self):
        """Test that a participant on 0% is not pushed below zero."""
        expense = make_expense(
            "e1", "0.01", "b", ["a", "b", "c"],
            split={"split_type": "percentage", "percentages": {"a": 0, "b": 50, "c": 50}},
        )
        shares = compute_shares(expense, "USD")
        assert shares == {
            "a": Decimal("0"),
            "b": Decimal("0"),
            "c": Decimal("0.01"),
        }
        assert all(share >= 0 for share in shares.values())

    def test_custom_split_reconciled_to_amount(self):
        """Test that a custom split within tolerance still sums exactly."""
        expense = make_expense(
            "e1", "10.00", "a", ["a", "b"],
            split={"split_type": "custom", "amounts": {"a": "5.00", "b": "5.01"}},
        )
        shares = compute_shares(expense, "USD")
        assert shares == {"a": Decimal("4.99"), "b": Decimal("5.01")}

    def test_zero_decimal_currency(self):
        """Test that JPY shares are whole yen."""
        expense = make_expense("e1", 1000, "a", ["a", "b", "c"])
        assert compute_shares(expense, "JPY") == {
            "a": Decimal("334"),
            "b": Decimal("333"),
            "c": Decimal("333"),
        }

    @pytest.mark.parametrize("amount", ["0.01", "0.05", "1.00", "7.77", "1234.56"])
    def test_shares_always_sum_to_amount(self, amount):
        """Test the reconciliation guarantee for awkward amounts."""
        expense = make_expense("e1", amount, "a", ["a", "b", "c"])
        assert sum(compute_shares(expense, "USD").values()) == Decimal(amount)


class TestBalances:
    """Tests for balance calculation."""

    def test_simple_equal_split(self):
        """Test A pays 90 for A, B, C -> A +60, B -30, C -30."""
        group = make_group([make_expense("e1", 90, "a", ["a", "b", "c"])])
        sheet = calculate_balances(group)
        assert sheet.as_map() == {
            "a": Decimal("60"),
            "b": Decimal("-30"),
            "c": Decimal("-30"),
        }
        assert sheet.total_spent == Decimal("90")
        assert sheet.get("a").total_paid == Decimal("90")
        assert sheet.get("a").total_owed == Decimal("30")

    def test_balances_sum_to_zero(self):
        """Test the zero-sum invariant across mixed splits."""
        group = make_group([
            make_expense("e1", "100", "a", ["a", "b", "c"]),
            make_expense(
                "e2", "45.67", "b", ["a", "b", "c"],
                split={"split_type": "shares", "weights": {"a": 1, "b": 2, "c": 4}},
            ),
            make_expense(
                "e3", "19.99", "c", ["a", "c"],
                split={"split_type": "percentage", "percentages": {"a": "33.3", "c": "66.7"}},
            ),
        ])
        sheet = calculate_balances(group)
        assert sum(sheet.as_map().values()) == Decimal(0)

    def test_member_without_expenses(self):
        """Test that an uninvolved member has a zero balance."""
        group = make_group(
            [make_expense("e1", 20, "a", ["a", "b"])],
            members=("a", "b", "c"),
        )
        sheet = calculate_balances(group)
        assert sheet.get("c").net_balance == Decimal(0)
        assert [b.member_id for b in sheet.balances] == ["a", "b", "c"]

    def test_unknown_payer_is_inconsistent(self):
        """Test that a dangling payer reference raises."""
        group = make_group([make_expense("e1", 20, "zz", ["a", "b"])])
        with pytest.raises(InternalConsistencyError):
            calculate_balances(group)

    def test_unknown_participant_is_inconsistent(self):
        """Test that a dangling participant reference raises."""
        group = make_group([make_expense("e1", 20, "a", ["a", "zz"])])
        with pytest.raises(InternalConsistencyError):
            calculate_balances(group)

    def test_total_spent(self):
        """Test the sum of all expense amounts."""
        group = make_group([
            make_expense("e1", "10.50", "a", ["a", "b"]),
            make_expense("e2", "4.25", "b", ["a", "b"]),
        ])
        assert total_spent(group) == Decimal("14.75")
        assert total_spent(make_group()) == Decimal(0)


class TestSettlement:
    """Tests for the settlement planner."""

    def test_simple_plan(self):
        """Test B and C each pay A 30, lower id first."""
        plan = plan_settlement(
            {"a": Decimal("60"), "b": Decimal("-30"), "c": Decimal("-30")}, "USD"
        )
        assert [t.to_dict() for t in plan] == [
            {"from": "b", "to": "a", "amount": Decimal("30")},
            {"from": "c", "to": "a", "amount": Decimal("30")},
        ]

    def test_all_zero_gives_empty_plan(self):
        """Test that settled balances need no transfers."""
        assert plan_settlement({"a": Decimal(0), "b": Decimal(0)}, "USD") == []
        assert plan_settlement({}, "USD") == []

    def test_smallest_unit_is_settled(self):
        """Test that a one-cent balance still produces a transfer."""
        plan = plan_settlement({"a": Decimal("0.01"), "b": Decimal("-0.01")}, "USD")
        assert len(plan) == 1
        assert plan[0].amount == Decimal("0.01")

    def test_largest_pairs_first(self):
        """Test greedy matching and the n - 1 bound."""
        balances = {
            "a": Decimal("50"),
            "b": Decimal("10"),
            "c": Decimal("-40"),
            "d": Decimal("-20"),
        }
        plan = plan_settlement(balances, "USD")
        assert [(t.from_member, t.to_member, t.amount) for t in plan] == [
            ("c", "a", Decimal("40")),
            ("d", "a", Decimal("10")),
            ("d", "b", Decimal("10")),
        ]
        assert len(plan) <= len(balances) - 1

    def test_plan_settles_everyone(self):
        """Test that applying the plan brings every balance to zero."""
        balances = {
            "a": Decimal("66.66"),
            "b": Decimal("-33.33"),
            "c": Decimal("-33.33"),
        }
        plan = plan_settlement(balances, "USD")
        after = apply_transfers(balances, plan)
        assert all(value == 0 for value in after.values())

    def test_plan_is_deterministic(self):
        """Test same balances, same plan."""
        balances = {"x": Decimal("5"), "y": Decimal("5"), "z": Decimal("-10")}
        assert plan_settlement(balances, "USD") == plan_settlement(dict(reversed(balances.items())), "USD")

    def test_nonzero_sum_raises(self):
        """Test that broken balances are never settled silently."""
        with pytest.raises(InternalConsistencyError):
            plan_settlement({"a": Decimal("10"), "b": Decimal("-5")}, "USD")

    def test_lone_balance_raises(self):
        """Test that a single nonzero balance is an error."""
        with pytest.raises(InternalConsistencyError):
            plan_settlement({"a": Decimal("0.01")}, "USD")

    def test_zero_decimal_currency(self):
        """Test settlement in whole yen."""
        plan = plan_settlement({"a": Decimal("666"), "b": Decimal("-333"), "c": Decimal("-333")}, "JPY")
        assert [t.amount for t in plan] == [Decimal("333"), Decimal("333")]

    def test_apply_transfers(self):
        """Test that paying moves the payer up and the receiver down."""
        transfers = plan_settlement({"a": Decimal("30"), "b": Decimal("-30")}, "USD")
        assert apply_transfers({"a": Decimal("30"), "b": Decimal("-30")}, transfers) == {
            "a": Decimal(0),
            "b": Decimal(0),
        }
