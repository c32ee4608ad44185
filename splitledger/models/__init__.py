"""
Data Models Package

This package contains all Pydantic models used by SplitLedger.
All data flowing through the ledger must conform to these schemas.

The snapshot codec (splitledger.models.snapshot) is imported directly
by its users.
"""

from splitledger.models.activity import (
    ActivityEntry,
    ActivityMessages,
    ActivityType,
)
from splitledger.models.ledger import (
    BalanceSheet,
    Category,
    CategoryKind,
    CustomSplit,
    EqualSplit,
    Expense,
    ExpenseDraft,
    Group,
    Member,
    MemberBalance,
    PercentageSplit,
    SharesSplit,
    SplitRule,
    SplitType,
    Transfer,
    ValidationIssue,
)

__all__ = [
    # Ledger models
    "BalanceSheet",
    "Category",
    "CategoryKind",
    "CustomSplit",
    "EqualSplit",
    "Expense",
    "ExpenseDraft",
    "Group",
    "Member",
    "MemberBalance",
    "PercentageSplit",
    "SharesSplit",
    "SplitRule",
    "SplitType",
    "Transfer",
    "ValidationIssue",
    # Activity models
    "ActivityEntry",
    "ActivityMessages",
    "ActivityType",
]
