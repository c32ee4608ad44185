"""
Core Data Models for SplitLedger

These models define the strict schemas for a group's ledger.
They are designed to:
1. Enforce type safety at runtime
2. Be immutable once built, so a Group can be handed to any reader
3. Be serializable for storage and export (see models/snapshot.py)

DESIGN DECISION: All models are frozen. The ledger store never mutates a
Group in place; it builds a new one and swaps it in. Ordered collections
are tuples for the same reason.

Structural rules (types, required fields) live here. Cross-entity rules
(payer exists, shares add up, categories exist) live in the validator,
because they need the whole Group to check.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)

from splitledger.models.activity import ActivityEntry
from splitledger.models.money import to_decimal


Money = Annotated[Decimal, BeforeValidator(to_decimal)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SplitType(str, Enum):
    """How an expense's amount is divided among its participants."""
    EQUAL = "equal"
    SHARES = "shares"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"


class CategoryKind(str, Enum):
    """Default categories ship with the app; custom ones belong to a group."""
    DEFAULT = "default"
    CUSTOM = "custom"


# =============================================================================
# MEMBERS
# =============================================================================

class Member(BaseModel):
    """A person taking part in the group's expenses."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Member id, unique within the group"
    )
    name: str = Field(
        ...,
        description="Display name"
    )
    avatar: Optional[str] = Field(
        default=None,
        description="Avatar URL or emoji"
    )


# =============================================================================
# SPLIT RULES
# =============================================================================

class EqualSplit(BaseModel):
    """Amount divided evenly between all participants."""
    model_config = ConfigDict(frozen=True)

    split_type: Literal["equal"] = "equal"

    def details(self) -> None:
        return None


class SharesSplit(BaseModel):
    """
    Amount divided by integer weights.

    A weight of 2 pays twice as much as a weight of 1.
    """
    model_config = ConfigDict(frozen=True)

    split_type: Literal["shares"] = "shares"
    weights: dict[str, int] = Field(
        ...,
        description="Participant id -> share weight"
    )

    def details(self) -> dict[str, int]:
        return dict(self.weights)


class PercentageSplit(BaseModel):
    """Amount divided by percentages that add up to 100."""
    model_config = ConfigDict(frozen=True)

    split_type: Literal["percentage"] = "percentage"
    percentages: dict[str, Money] = Field(
        ...,
        description="Participant id -> percentage of the amount"
    )

    def details(self) -> dict[str, Decimal]:
        return dict(self.percentages)


class CustomSplit(BaseModel):
    """Explicit per-participant amounts that add up to the expense amount."""
    model_config = ConfigDict(frozen=True)

    split_type: Literal["custom"] = "custom"
    amounts: dict[str, Money] = Field(
        ...,
        description="Participant id -> exact amount owed"
    )

    def details(self) -> dict[str, Decimal]:
        return dict(self.amounts)


SplitRule = Annotated[
    Union[EqualSplit, SharesSplit, PercentageSplit, CustomSplit],
    Field(discriminator="split_type"),
]

_DETAIL_FIELDS = {
    SplitType.SHARES.value: "weights",
    SplitType.PERCENTAGE.value: "percentages",
    SplitType.CUSTOM.value: "amounts",
}


def split_from_details(split_type: str, details: Optional[dict]) -> dict:
    """
    Build the tagged split payload from the flat (split_type, details) form
    used by the JSON snapshot and by callers passing plain dicts.
    """
    split_type = str(split_type)
    payload: dict = {"split_type": split_type}
    field_name = _DETAIL_FIELDS.get(split_type)
    if field_name is not None:
        payload[field_name] = details if details is not None else {}
    return payload


# =============================================================================
# EXPENSES
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    Expense data as supplied by a caller, before it gets an id.

    Accepts either a nested `split` or the flat `split_type` /
    `split_details` pair. Semantic checks (amount > 0, payer exists,
    shares add up) are done by the validator against the current group.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    title: str
    amount: Money
    date: date
    payer_id: str
    participant_ids: tuple[str, ...]
    split: SplitRule = Field(default_factory=EqualSplit)
    category: str
    note: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_flat_split(cls, data):
        """Translate split_type/split_details into the tagged split."""
        if isinstance(data, dict) and "split" not in data and "split_type" in data:
            data = dict(data)
            split_type = data.pop("split_type")
            details = data.pop("split_details", None)
            if isinstance(split_type, Enum):
                split_type = split_type.value
            data["split"] = split_from_details(split_type, details)
        return data

    @property
    def split_type(self) -> SplitType:
        return SplitType(self.split.split_type)


class Expense(ExpenseDraft):
    """An expense recorded in the group."""

    id: str = Field(
        ...,
        min_length=1,
        description="Expense id, unique within the group"
    )


# =============================================================================
# CATEGORIES
# =============================================================================

class Category(BaseModel):
    """An expense category. Identity is the (case-sensitive) name."""
    model_config = ConfigDict(frozen=True)

    kind: CategoryKind
    name: str


# =============================================================================
# GROUP (root aggregate)
# =============================================================================

class Group(BaseModel):
    """
    The root aggregate: one group's members, expenses and history.

    CRITICAL: Only the LedgerStore creates new Group versions.
    Everyone else reads.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Group id"
    )
    name: str = Field(
        ...,
        description="Group name"
    )
    currency: str = Field(
        ...,
        description="ISO 4217 currency code"
    )
    members: tuple[Member, ...] = ()
    expenses: tuple[Expense, ...] = ()
    custom_categories: tuple[str, ...] = ()
    activity_log: tuple[ActivityEntry, ...] = Field(
        default=(),
        description="Activity entries, newest first"
    )

    def find_member(self, member_id: str) -> Optional[Member]:
        for member in self.members:
            if member.id == member_id:
                return member
        return None

    def find_expense(self, expense_id: str) -> Optional[Expense]:
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        return None

    @property
    def member_ids(self) -> list[str]:
        return [m.id for m in self.members]

    def member_name(self, member_id: str) -> str:
        member = self.find_member(member_id)
        return member.name if member else "Unknown"


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single rule violation found while validating input or state."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_reference')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


# =============================================================================
# DERIVED RESULTS
# =============================================================================

class MemberBalance(BaseModel):
    """A member's position across all expenses."""
    model_config = ConfigDict(frozen=True)

    member_id: str
    member_name: str
    total_paid: Decimal
    total_owed: Decimal
    net_balance: Decimal = Field(
        ...,
        description="Positive: the group owes this member. Negative: the member owes."
    )


class BalanceSheet(BaseModel):
    """Balances for every member, in member order."""
    model_config = ConfigDict(frozen=True)

    currency: str
    balances: tuple[MemberBalance, ...]
    total_spent: Decimal

    def as_map(self) -> dict[str, Decimal]:
        return {b.member_id: b.net_balance for b in self.balances}

    def get(self, member_id: str) -> Optional[MemberBalance]:
        for balance in self.balances:
            if balance.member_id == member_id:
                return balance
        return None


class Transfer(BaseModel):
    """One payment of the settlement plan: `from` pays `to`."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_member: str = Field(..., alias="from")
    to_member: str = Field(..., alias="to")
    amount: Decimal = Field(..., gt=0)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)
