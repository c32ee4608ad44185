"""
Activity Models for SplitLedger

Every mutation of a group leaves an entry in its activity log.
This provides:
1. A readable history ("Bob added "Dinner" - $45.00")
2. Debugging information when balances look wrong

DESIGN DECISION: The activity log is append-only. Entries are never
modified or reordered. The log is stored newest first.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from splitledger.models.money import format_amount


class ActivityType(str, Enum):
    """Types of activity recorded for a group."""
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"
    GROUP_UPDATED = "group_updated"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ActivityEntry(BaseModel):
    """A single entry of the activity log."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Unique entry identifier"
    )
    type: ActivityType = Field(
        ...,
        description="Type of activity"
    )
    description: str = Field(
        ...,
        description="Human-readable description of what happened"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the activity happened (UTC)"
    )

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps from older snapshots are taken as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "activity_id": self.id,
            "activity_type": self.type.value,
            "description": self.description,
            "timestamp": self.timestamp.isoformat(),
        }


class ActivityMessages:
    """
    Builds the human-readable descriptions used in the activity log.

    Usage:
        text = ActivityMessages.member_added("Alice")
        text = ActivityMessages.expense_added("Bob", "Dinner", amount, "USD")
    """

    @staticmethod
    def member_added(name: str) -> str:
        return f"{name} joined the group"

    @staticmethod
    def member_removed(name: str) -> str:
        return f"{name} left the group"

    @staticmethod
    def member_updated(old_name: str, new_name: str) -> str:
        if old_name != new_name:
            return f"{old_name} is now called {new_name}"
        return f"{new_name}'s profile was updated"

    @staticmethod
    def expense_added(
        payer_name: str,
        title: str,
        amount: Decimal,
        currency: str,
    ) -> str:
        return f'{payer_name} added "{title}" - {format_amount(amount, currency)}'

    @staticmethod
    def expense_updated(title: str) -> str:
        return f'"{title}" was updated'

    @staticmethod
    def expense_deleted(title: str) -> str:
        return f'"{title}" was deleted'

    @staticmethod
    def category_added(name: str) -> str:
        return f'Category "{name}" was added'

    @staticmethod
    def category_removed(name: str) -> str:
        return f'Category "{name}" was removed'

    @staticmethod
    def group_updated(changes: list[str]) -> str:
        if not changes:
            return "Group settings were updated"
        return "Group updated: " + ", ".join(changes)
