"""Read-only reports package."""

from splitledger.queries.reports import (
    CategoryTotal,
    DailySpending,
    ExpenseBreakdown,
    MemberContribution,
    ShareLine,
    category_totals,
    expense_breakdowns,
    member_contributions,
    spending_over_time,
)

__all__ = [
    "CategoryTotal",
    "DailySpending",
    "ExpenseBreakdown",
    "MemberContribution",
    "ShareLine",
    "category_totals",
    "expense_breakdowns",
    "member_contributions",
    "spending_over_time",
]
