"""
Share calculation

Turns one expense and its split rule into the amount each participant owes.

GUARANTEE: the returned shares add up to the expense amount exactly.
Each raw share is rounded to the currency's minor unit (ROUND_HALF_UP);
whatever the rounding left over goes to the first participant in
participant order. A negative remainder skips participants whose share
would drop below zero (e.g. someone on 0%).

Example: 100.00 split equally between three people gives
33.34 / 33.33 / 33.33.
"""

from decimal import Decimal

from splitledger.models.ledger import (
    CustomSplit,
    EqualSplit,
    Expense,
    ExpenseDraft,
    PercentageSplit,
    SharesSplit,
)
from splitledger.models.money import quantize

HUNDRED = Decimal(100)


def _raw_shares(expense: ExpenseDraft) -> dict[str, Decimal]:
    amount = expense.amount
    participants = expense.participant_ids
    split = expense.split

    if isinstance(split, EqualSplit):
        each = amount / len(participants)
        return {p: each for p in participants}

    if isinstance(split, SharesSplit):
        total_weight = sum(split.weights.get(p, 0) for p in participants)
        if total_weight <= 0:
            return {p: Decimal(0) for p in participants}
        return {
            p: amount * Decimal(split.weights.get(p, 0)) / Decimal(total_weight)
            for p in participants
        }

    if isinstance(split, PercentageSplit):
        return {
            p: amount * split.percentages.get(p, Decimal(0)) / HUNDRED
            for p in participants
        }

    if isinstance(split, CustomSplit):
        return {p: split.amounts.get(p, Decimal(0)) for p in participants}

    raise TypeError(f"Unsupported split rule: {type(split).__name__}")


def _absorber(
    participants: tuple[str, ...],
    shares: dict[str, Decimal],
    remainder: Decimal,
) -> str:
    for participant in participants:
        if shares[participant] + remainder >= 0:
            return participant
    return participants[0]


def compute_shares(
    expense: Expense | ExpenseDraft,
    currency: str,
) -> dict[str, Decimal]:
    """
    Compute each participant's owed share of an expense.

    Args:
        expense: The expense (or draft) to split
        currency: Group currency, decides the rounding unit

    Returns:
        participant id -> owed amount, in participant order
    """
    if not expense.participant_ids:
        return {}

    shares = {
        participant: quantize(raw, currency)
        for participant, raw in _raw_shares(expense).items()
    }

    remainder = expense.amount - sum(shares.values(), Decimal(0))
    if remainder:
        shares[_absorber(expense.participant_ids, shares, remainder)] += remainder

    return shares
