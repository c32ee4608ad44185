"""
Settlement planning

Turns a balance map into a list of payments that brings every balance to
zero.

Algorithm (greedy, largest pair first):
1. Creditors are members with balance >= epsilon, debtors those with
   balance <= -epsilon. Epsilon is the currency's smallest unit.
2. While both sides are non-empty, match the largest creditor with the
   largest debtor (ties go to the lower member id) and move
   min(credit, debt) from the debtor to the creditor.
3. Whoever reaches zero drops out.

This is a heuristic, not the true minimum number of payments (that problem
is NP-hard), but it never needs more than members - 1 payments and gives
the same plan for the same balances.
"""

from decimal import Decimal
from typing import Mapping

from splitledger.errors import InternalConsistencyError
from splitledger.models.ledger import Transfer
from splitledger.models.money import quantum, to_decimal


def _pick_largest(side: dict[str, Decimal]) -> str:
    # Largest magnitude first, lower id breaks ties.
    return min(side, key=lambda member_id: (-abs(side[member_id]), member_id))


def plan_settlement(
    balances: Mapping[str, Decimal],
    currency: str,
) -> list[Transfer]:
    """
    Compute the transfers that settle all balances.

    Args:
        balances: member id -> net balance (positive = is owed money)
        currency: currency of the balances, defines epsilon

    Returns:
        Ordered list of transfers; empty when everyone is settled

    Raises:
        InternalConsistencyError: if the balances do not sum to zero
    """
    epsilon = quantum(currency)
    normalized = {member_id: to_decimal(value) for member_id, value in balances.items()}

    total = sum(normalized.values(), Decimal(0))
    if abs(total) >= epsilon:
        raise InternalConsistencyError(
            f"Cannot settle balances that sum to {total}"
        )

    creditors = {m: b for m, b in normalized.items() if b >= epsilon}
    debtors = {m: -b for m, b in normalized.items() if b <= -epsilon}

    transfers: list[Transfer] = []
    while creditors and debtors:
        creditor = _pick_largest(creditors)
        debtor = _pick_largest(debtors)
        amount = min(creditors[creditor], debtors[debtor])

        transfers.append(Transfer(from_member=debtor, to_member=creditor, amount=amount))

        creditors[creditor] -= amount
        debtors[debtor] -= amount
        if creditors[creditor] < epsilon:
            del creditors[creditor]
        if debtors[debtor] < epsilon:
            del debtors[debtor]

    if creditors or debtors:
        leftover = sorted(creditors) + sorted(debtors)
        raise InternalConsistencyError(
            f"Unsettled balances remain for: {', '.join(leftover)}"
        )

    return transfers


def apply_transfers(
    balances: Mapping[str, Decimal],
    transfers: list[Transfer],
) -> dict[str, Decimal]:
    """
    Return the balances after executing the transfers.

    Paying moves the payer's balance up and the receiver's balance down.
    """
    result = {member_id: to_decimal(value) for member_id, value in balances.items()}
    for transfer in transfers:
        result[transfer.from_member] = result.get(transfer.from_member, Decimal(0)) + transfer.amount
        result[transfer.to_member] = result.get(transfer.to_member, Decimal(0)) - transfer.amount
    return result
