"""
Snapshot codec

The snapshot is the JSON document handed to storage and used for
import/export. Its shape is stable field for field:

    {
      "id", "name", "currency",
      "members": [{"id", "name", "avatar"?}],
      "expenses": [{"id", "title", "amount", "date", "payerId",
                    "participantIds", "splitType", "splitDetails"?,
                    "category", "note"?}],
      "customCategories": [...],
      "activityLog": [{"id", "type", "description", "timestamp"}]
    }

The record models below describe only the structure (stage 1). Whether the
content makes sense (payer exists, shares add up) is checked by the
validator afterwards (stage 2).
"""

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from splitledger.errors import ValidationError
from splitledger.models.activity import ActivityEntry, ActivityType
from splitledger.models.ledger import (
    Expense,
    Group,
    Member,
    Money,
    split_from_details,
)
from splitledger.models.money import quantize, to_json_number


# Split types written by older versions of the app.
LEGACY_SPLIT_TYPES = {
    "exact": "custom",
    "itemized": "custom",
}


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MemberRecord(_Record):
    id: str
    name: str
    avatar: Optional[str] = None


class ExpenseRecord(_Record):
    id: str
    title: str
    amount: Money
    date: date
    payer_id: str = Field(..., alias="payerId")
    participant_ids: list[str] = Field(..., alias="participantIds")
    split_type: str = Field(default="equal", alias="splitType")
    split_details: Optional[dict[str, Money]] = Field(default=None, alias="splitDetails")
    category: str
    note: Optional[str] = None


class ActivityRecord(_Record):
    id: str
    type: ActivityType
    description: str
    timestamp: datetime


class GroupSnapshot(_Record):
    id: str
    name: str
    currency: str
    members: list[MemberRecord] = Field(default_factory=list)
    expenses: list[ExpenseRecord] = Field(default_factory=list)
    custom_categories: list[str] = Field(default_factory=list, alias="customCategories")
    activity_log: list[ActivityRecord] = Field(default_factory=list, alias="activityLog")


# =============================================================================
# EXPORT
# =============================================================================

def _expense_to_dict(expense: Expense) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": expense.id,
        "title": expense.title,
        "amount": to_json_number(expense.amount),
        "date": expense.date.isoformat(),
        "payerId": expense.payer_id,
        "participantIds": list(expense.participant_ids),
        "splitType": expense.split.split_type,
        "category": expense.category,
    }
    details = expense.split.details()
    if details is not None:
        data["splitDetails"] = {
            member_id: to_json_number(Decimal(value))
            for member_id, value in details.items()
        }
    if expense.note is not None:
        data["note"] = expense.note
    return data


def export_snapshot(group: Group) -> dict[str, Any]:
    """Serialize a group to the JSON-compatible snapshot dict."""
    members = []
    for member in group.members:
        record: dict[str, Any] = {"id": member.id, "name": member.name}
        if member.avatar is not None:
            record["avatar"] = member.avatar
        members.append(record)

    return {
        "id": group.id,
        "name": group.name,
        "currency": group.currency,
        "members": members,
        "expenses": [_expense_to_dict(e) for e in group.expenses],
        "customCategories": list(group.custom_categories),
        "activityLog": [
            {
                "id": entry.id,
                "type": entry.type.value,
                "description": entry.description,
                "timestamp": entry.timestamp.isoformat(),
            }
            for entry in group.activity_log
        ],
    }


CSV_COLUMNS = [
    "Date",
    "Title",
    "Amount",
    "Paid By",
    "Category",
    "Split Type",
    "Participants",
    "Notes",
]


def export_expenses_csv(group: Group) -> str:
    """
    Render the group's expenses as CSV text, one row per expense.

    Member ids are shown as names, amounts at the currency's precision.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for e in group.expenses:
        writer.writerow([
            e.date.isoformat(),
            e.title,
            str(quantize(e.amount, group.currency)),
            group.member_name(e.payer_id),
            e.category,
            e.split_type.value,
            "; ".join(group.member_name(p) for p in e.participant_ids),
            e.note or "",
        ])
    return buffer.getvalue()


# =============================================================================
# IMPORT
# =============================================================================

def _record_to_expense(record: ExpenseRecord) -> Expense:
    split_type = LEGACY_SPLIT_TYPES.get(record.split_type, record.split_type)
    details = record.split_details if split_type != "equal" else None
    return Expense(
        id=record.id,
        title=record.title,
        amount=record.amount,
        date=record.date,
        payer_id=record.payer_id,
        participant_ids=tuple(record.participant_ids),
        split=split_from_details(split_type, details),
        category=record.category,
        note=record.note,
    )


def parse_snapshot(data: Any) -> Group:
    """
    Build a Group from snapshot data (stage 1: structure only).

    Raises:
        ValidationError: if the data does not have the snapshot shape
    """
    if not isinstance(data, dict):
        raise ValidationError.single(
            field="snapshot",
            issue_type="invalid_type",
            message="Snapshot must be a JSON object",
        )

    try:
        snapshot = GroupSnapshot.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, prefix="snapshot")

    try:
        expenses = tuple(_record_to_expense(r) for r in snapshot.expenses)
        return Group(
            id=snapshot.id,
            name=snapshot.name,
            currency=snapshot.currency,
            members=tuple(
                Member(id=m.id, name=m.name, avatar=m.avatar)
                for m in snapshot.members
            ),
            expenses=expenses,
            custom_categories=tuple(snapshot.custom_categories),
            activity_log=tuple(
                ActivityEntry(
                    id=a.id,
                    type=a.type,
                    description=a.description,
                    timestamp=a.timestamp,
                )
                for a in snapshot.activity_log
            ),
        )
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, prefix="snapshot")
