"""
Reports

Read-only aggregates over a group, used by dashboards and exports.

DESIGN DECISION: Reports are DETERMINISTIC and derived only from the
Group. They never estimate or fill gaps: an empty group gives empty
reports, not zeros for made-up categories.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from splitledger.calculations import calculate_balances, compute_shares
from splitledger.models.ledger import Group, SplitType


class _Report(BaseModel):
    model_config = ConfigDict(frozen=True)


class ShareLine(_Report):
    member_id: str
    member_name: str
    amount: Decimal


class ExpenseBreakdown(_Report):
    """Who owes what for one expense."""
    expense_id: str
    title: str
    amount: Decimal
    payer_id: str
    payer_name: str
    split_type: SplitType
    shares: tuple[ShareLine, ...]


class CategoryTotal(_Report):
    name: str
    total: Decimal
    expense_count: int


class MemberContribution(_Report):
    member_id: str
    name: str
    paid: Decimal
    owed: Decimal


class DailySpending(_Report):
    date: date
    amount: Decimal


def expense_breakdowns(group: Group) -> list[ExpenseBreakdown]:
    """Per-expense share breakdown, in expense order."""
    breakdowns = []
    for expense in group.expenses:
        shares = compute_shares(expense, group.currency)
        breakdowns.append(ExpenseBreakdown(
            expense_id=expense.id,
            title=expense.title,
            amount=expense.amount,
            payer_id=expense.payer_id,
            payer_name=group.member_name(expense.payer_id),
            split_type=expense.split_type,
            shares=tuple(
                ShareLine(
                    member_id=member_id,
                    member_name=group.member_name(member_id),
                    amount=shares[member_id],
                )
                for member_id in expense.participant_ids
            ),
        ))
    return breakdowns


def category_totals(group: Group) -> list[CategoryTotal]:
    """
    Total spent per category, largest first.

    Only categories with at least one expense are listed. Equal totals keep
    the order in which the category first appears.
    """
    totals: dict[str, Decimal] = {}
    counts: dict[str, int] = {}
    for expense in group.expenses:
        totals[expense.category] = totals.get(expense.category, Decimal(0)) + expense.amount
        counts[expense.category] = counts.get(expense.category, 0) + 1

    result = [
        CategoryTotal(name=name, total=total, expense_count=counts[name])
        for name, total in totals.items()
    ]
    result.sort(key=lambda c: c.total, reverse=True)
    return result


def member_contributions(group: Group) -> list[MemberContribution]:
    """What every member paid and owes, in member order."""
    sheet = calculate_balances(group)
    return [
        MemberContribution(
            member_id=b.member_id,
            name=b.member_name,
            paid=b.total_paid,
            owed=b.total_owed,
        )
        for b in sheet.balances
    ]


def spending_over_time(group: Group) -> list[DailySpending]:
    """Total spent per expense date, oldest first."""
    per_day: dict[date, Decimal] = {}
    for expense in group.expenses:
        per_day[expense.date] = per_day.get(expense.date, Decimal(0)) + expense.amount

    return [
        DailySpending(date=day, amount=amount)
        for day, amount in sorted(per_day.items())
    ]
