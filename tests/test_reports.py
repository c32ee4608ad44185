"""Tests for read-only reports."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import expense_data
from splitledger.models import SplitType
from splitledger.queries import (
    category_totals,
    expense_breakdowns,
    member_contributions,
    spending_over_time,
)


@pytest.fixture
def trip(trio):
    """Three expenses across two categories and two days."""
    trio.add_expense(expense_data())
    trio.add_expense(expense_data(
        title="Taxi",
        amount=30,
        date="2024-05-03",
        payer_id="m2",
        participant_ids=["m1", "m2"],
        category="Travel",
    ))
    trio.add_expense(expense_data(title="Snacks", amount=15, payer_id="m3"))
    return trio


class TestReports:
    """Tests for dashboard aggregates."""

    def test_category_totals(self, trip):
        """Test totals per category, largest first."""
        totals = category_totals(trip.group)
        assert [(c.name, c.total, c.expense_count) for c in totals] == [
            ("Food", Decimal("105"), 2),
            ("Travel", Decimal("30"), 1),
        ]

    def test_spending_over_time(self, trip):
        """Test totals per day, oldest first."""
        days = spending_over_time(trip.group)
        assert [(d.date, d.amount) for d in days] == [
            (date(2024, 5, 1), Decimal("105")),
            (date(2024, 5, 3), Decimal("30")),
        ]

    def test_member_contributions(self, trip):
        """Test paid and owed per member."""
        contributions = member_contributions(trip.group)
        assert [(c.name, c.paid, c.owed) for c in contributions] == [
            ("Alice", Decimal("90"), Decimal("50")),
            ("Bob", Decimal("30"), Decimal("50")),
            ("Carol", Decimal("15"), Decimal("35")),
        ]
        assert sum(c.paid for c in contributions) == sum(c.owed for c in contributions)

    def test_expense_breakdowns(self, trip):
        """Test the per-expense share lines."""
        breakdown = expense_breakdowns(trip.group)[1]
        assert breakdown.title == "Taxi"
        assert breakdown.payer_name == "Bob"
        assert breakdown.split_type == SplitType.EQUAL
        assert [(s.member_name, s.amount) for s in breakdown.shares] == [
            ("Alice", Decimal("15")),
            ("Bob", Decimal("15")),
        ]

    def test_empty_group(self, store):
        """Test that an empty group gives empty reports."""
        assert category_totals(store.group) == []
        assert spending_over_time(store.group) == []
        assert member_contributions(store.group) == []
        assert expense_breakdowns(store.group) == []
