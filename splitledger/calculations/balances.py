"""
Balance calculation

Derives every member's net position from the group's expenses.

    net_balance = total paid as payer - total owed as participant

Positive: the group owes the member. Negative: the member owes the group.

The calculation is a pure function of the Group. Because shares are
reconciled per expense, the balances of a valid group sum to exactly zero.
If they do not, the group is inconsistent and we raise rather than return
numbers that look plausible but are wrong.
"""

from decimal import Decimal

import structlog

from splitledger.calculations.shares import compute_shares
from splitledger.errors import InternalConsistencyError
from splitledger.models.ledger import BalanceSheet, Group, MemberBalance
from splitledger.models.money import quantize

logger = structlog.get_logger(__name__)


def calculate_balances(group: Group) -> BalanceSheet:
    """
    Compute the balance sheet of a group.

    Raises:
        InternalConsistencyError: if an expense points at an unknown member
            or the balances do not sum to zero
    """
    zero = Decimal(0)
    paid: dict[str, Decimal] = {m.id: zero for m in group.members}
    owed: dict[str, Decimal] = {m.id: zero for m in group.members}
    total_spent = zero

    for expense in group.expenses:
        if expense.payer_id not in paid:
            raise InternalConsistencyError(
                f"Expense {expense.id} is paid by unknown member {expense.payer_id}"
            )
        paid[expense.payer_id] += expense.amount
        total_spent += expense.amount

        for member_id, share in compute_shares(expense, group.currency).items():
            if member_id not in owed:
                raise InternalConsistencyError(
                    f"Expense {expense.id} is shared with unknown member {member_id}"
                )
            owed[member_id] += share

    balances = tuple(
        MemberBalance(
            member_id=member.id,
            member_name=member.name,
            total_paid=paid[member.id],
            total_owed=owed[member.id],
            net_balance=quantize(paid[member.id] - owed[member.id], group.currency),
        )
        for member in group.members
    )

    total = sum((b.net_balance for b in balances), zero)
    if total != zero:
        logger.error(
            "balance_sum_nonzero",
            group_id=group.id,
            total=str(total),
        )
        raise InternalConsistencyError(
            f"Balances of group {group.id} sum to {total}, expected 0"
        )

    return BalanceSheet(
        currency=group.currency,
        balances=balances,
        total_spent=total_spent,
    )


def total_spent(group: Group) -> Decimal:
    """Sum of all expense amounts."""
    return sum((e.amount for e in group.expenses), Decimal(0))
