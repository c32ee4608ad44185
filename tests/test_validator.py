"""Tests for the two-stage ledger validator."""

import pytest
from datetime import date, datetime, timezone

from splitledger.errors import ValidationError
from splitledger.models import (
    ActivityEntry,
    ActivityType,
    Expense,
    ExpenseDraft,
    Group,
    Member,
)
from splitledger.validation import LedgerValidator


@pytest.fixture
def validator():
    return LedgerValidator()


@pytest.fixture
def group():
    return Group(
        id="g1",
        name="Trip",
        currency="USD",
        members=(
            Member(id="m1", name="Alice"),
            Member(id="m2", name="Bob"),
        ),
        custom_categories=("Health",),
    )


def draft(**overrides):
    data = {
        "title": "Dinner",
        "amount": "40.00",
        "date": "2024-05-01",
        "payer_id": "m1",
        "participant_ids": ["m1", "m2"],
        "category": "Food",
    }
    data.update(overrides)
    return ExpenseDraft.model_validate(data)


def issue_types(issues):
    return [(i.field, i.issue_type) for i in issues]


class TestMemberNames:
    """Tests for member name rules."""

    def test_valid_name(self, validator, group):
        """Test that a new name passes."""
        assert validator.check_member_name(group, "Carol") == []

    def test_empty_name(self, validator, group):
        """Test that blank names are rejected."""
        assert issue_types(validator.check_member_name(group, "  ")) == [("name", "missing")]

    def test_duplicate_is_case_insensitive(self, validator, group):
        """Test that 'alice' clashes with 'Alice'."""
        issues = validator.check_member_name(group, "alice")
        assert issue_types(issues) == [("name", "duplicate")]

    def test_own_name_excluded(self, validator, group):
        """Test that a member may keep their own name."""
        assert validator.check_member_name(group, "ALICE", exclude_id="m1") == []

    def test_validate_returns_trimmed_name(self, validator, group):
        """Test the raising wrapper."""
        assert validator.validate_member_name(group, "  Carol ") == "Carol"
        with pytest.raises(ValidationError):
            validator.validate_member_name(group, "Bob")


class TestExpenseValidation:
    """Tests for expense rules."""

    def test_valid_expense(self, validator, group):
        """Test that a well-formed expense passes both stages."""
        assert validator.check_expense(group, draft()) == []

    def test_empty_participants(self, validator, group):
        """Test that an expense needs participants."""
        issues = validator.check_expense(group, draft(participant_ids=[]))
        assert ("participant_ids", "missing") in issue_types(issues)

    def test_duplicate_participants(self, validator, group):
        """Test that participants are distinct."""
        issues = validator.check_expense(group, draft(participant_ids=["m1", "m1"]))
        assert ("participant_ids", "duplicate") in issue_types(issues)

    def test_amount_must_be_positive(self, validator, group):
        """Test zero and negative amounts."""
        assert ("amount", "invalid_value") in issue_types(
            validator.check_expense(group, draft(amount=0))
        )
        assert ("amount", "invalid_value") in issue_types(
            validator.check_expense(group, draft(amount="-5"))
        )

    def test_amount_precision(self, validator, group):
        """Test that sub-cent amounts are rejected."""
        issues = validator.check_expense(group, draft(amount="10.005"))
        assert issue_types(issues) == [("amount", "invalid_precision")]

    def test_amount_ceiling(self, validator, group):
        """Test that huge amounts are reported instead of overflowing."""
        issues = validator.check_expense(group, draft(amount="1e27"))
        assert issue_types(issues) == [("amount", "invalid_value")]
        assert validator.check_expense(group, draft(amount="1000000000000")) == []

    def test_custom_amount_ceiling(self, validator, group):
        """Test the same ceiling on custom split amounts."""
        issues = validator.check_expense(group, draft(
            split_type="custom",
            split_details={"m1": "1e27", "m2": 0},
        ))
        assert issue_types(issues) == [("split", "invalid_value")]

    def test_empty_title(self, validator, group):
        """Test that a title is required."""
        issues = validator.check_expense(group, draft(title="   "))
        assert issue_types(issues) == [("title", "missing")]

    def test_semantic_stage_skipped_after_schema_errors(self, validator, group):
        """Test that an unknown payer is not reported next to a schema error."""
        issues = validator.check_expense(group, draft(amount=0, payer_id="zz"))
        assert issue_types(issues) == [("amount", "invalid_value")]

    def test_unknown_payer_and_participant(self, validator, group):
        """Test references to non-members."""
        issues = validator.check_expense(
            group, draft(payer_id="zz", participant_ids=["m1", "m9"])
        )
        assert issue_types(issues) == [
            ("payer_id", "unknown_reference"),
            ("participant_ids", "unknown_reference"),
        ]

    def test_unknown_category(self, validator, group):
        """Test that the category must be available."""
        issues = validator.check_expense(group, draft(category="Pets"))
        assert issue_types(issues) == [("category", "unknown_reference")]
        assert validator.check_expense(group, draft(category="Health")) == []

    def test_split_keys_must_match_participants(self, validator, group):
        """Test that split details cover exactly the participants."""
        issues = validator.check_expense(
            group,
            draft(split_type="shares", split_details={"m1": 1}),
        )
        assert issue_types(issues) == [("split", "participant_mismatch")]

    def test_share_weights_positive(self, validator, group):
        """Test that every weight is greater than zero."""
        issues = validator.check_expense(
            group,
            draft(split_type="shares", split_details={"m1": 1, "m2": 0}),
        )
        assert issue_types(issues) == [("split", "invalid_value")]

    def test_percentages_sum_to_hundred(self, validator, group):
        """Test the 100 +/- 0.01 rule."""
        ok = draft(split_type="percentage", split_details={"m1": "33.33", "m2": "66.67"})
        assert validator.check_expense(group, ok) == []

        almost = draft(split_type="percentage", split_details={"m1": "33.33", "m2": "66.66"})
        assert validator.check_expense(group, almost) == []

        bad = draft(split_type="percentage", split_details={"m1": 50, "m2": 40})
        issues = validator.check_expense(group, bad)
        assert issue_types(issues) == [("split", "sum_mismatch")]
        assert "Percentages add up to 90" in issues[0].message

    def test_percentage_range(self, validator, group):
        """Test that percentages stay within 0..100."""
        issues = validator.check_expense(
            group,
            draft(split_type="percentage", split_details={"m1": 120, "m2": -20}),
        )
        assert issue_types(issues) == [("split", "invalid_value"), ("split", "invalid_value")]

    def test_custom_amounts_sum_to_amount(self, validator, group):
        """Test the amount +/- 0.01 rule for custom splits."""
        ok = draft(split_type="custom", split_details={"m1": "15.00", "m2": "25.01"})
        assert validator.check_expense(group, ok) == []

        bad = draft(split_type="custom", split_details={"m1": "10", "m2": "10"})
        assert issue_types(validator.check_expense(group, bad)) == [("split", "sum_mismatch")]

    def test_custom_amounts_not_negative(self, validator, group):
        """Test that custom amounts cannot be negative."""
        issues = validator.check_expense(
            group,
            draft(split_type="custom", split_details={"m1": "-10", "m2": "50"}),
        )
        assert ("split", "invalid_value") in issue_types(issues)

    def test_validate_expense_raises_first_issue(self, validator, group):
        """Test the raising wrapper."""
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_expense(group, draft(participant_ids=[]))
        assert exc_info.value.first.field == "participant_ids"
        assert str(exc_info.value) == "At least one participant is required"


class TestGroupValidation:
    """Tests for whole-group invariants."""

    def test_valid_group(self, validator, group):
        """Test that the fixture group is valid."""
        assert validator.check_group(group) == []

    def test_currency_format(self, validator, group):
        """Test that currency must be a three-letter upper-case code."""
        bad = group.model_copy(update={"currency": "usd"})
        assert issue_types(validator.check_group(bad)) == [("currency", "invalid_value")]

    def test_empty_group_name(self, validator, group):
        """Test that the group needs a name."""
        bad = group.model_copy(update={"name": ""})
        assert issue_types(validator.check_group(bad)) == [("name", "missing")]

    def test_duplicate_members(self, validator, group):
        """Test member id and name uniqueness."""
        bad = group.model_copy(update={
            "members": group.members + (Member(id="m1", name="alice"),)
        })
        assert issue_types(validator.check_group(bad)) == [
            ("members[2].id", "duplicate"),
            ("members[2].name", "duplicate"),
        ]

    def test_custom_category_shadowing_default(self, validator, group):
        """Test that a custom category cannot repeat a default one."""
        bad = group.model_copy(update={"custom_categories": ("Food",)})
        assert issue_types(validator.check_group(bad)) == [("custom_categories[0]", "duplicate")]

    def test_expense_issues_are_prefixed(self, validator, group):
        """Test that expense issues name the expense position."""
        expense = Expense(
            id="e1",
            title="Taxi",
            amount=10,
            date=date(2024, 5, 1),
            payer_id="m7",
            participant_ids=("m1",),
            category="Travel",
        )
        bad = group.model_copy(update={"expenses": (expense,)})
        assert issue_types(validator.check_group(bad)) == [
            ("expenses[0].payer_id", "unknown_reference"),
        ]

    def test_amount_precision_follows_currency(self, validator, group):
        """Test that JPY groups reject fractional amounts."""
        expense = Expense(
            id="e1",
            title="Taxi",
            amount="12.50",
            date=date(2024, 5, 1),
            payer_id="m1",
            participant_ids=("m1",),
            category="Travel",
        )
        usd = group.model_copy(update={"expenses": (expense,)})
        assert validator.check_group(usd) == []
        jpy = usd.model_copy(update={"currency": "JPY"})
        assert issue_types(validator.check_group(jpy)) == [
            ("expenses[0].amount", "invalid_precision"),
        ]

    def test_activity_must_be_newest_first(self, validator, group):
        """Test activity log ordering."""
        older = ActivityEntry(
            id="a1",
            type=ActivityType.MEMBER_ADDED,
            description="Alice joined the group",
            timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )
        newer = ActivityEntry(
            id="a2",
            type=ActivityType.MEMBER_ADDED,
            description="Bob joined the group",
            timestamp=datetime(2024, 5, 2, tzinfo=timezone.utc),
        )
        good = group.model_copy(update={"activity_log": (newer, older)})
        assert validator.check_group(good) == []
        bad = group.model_copy(update={"activity_log": (older, newer)})
        assert issue_types(validator.check_group(bad)) == [
            ("activity_log[1].timestamp", "out_of_order"),
        ]
