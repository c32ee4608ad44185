"""
Calculation engine package.

Pure functions only: shares per expense, balances per member and the
settlement plan. Nothing here touches storage or mutates a Group.
"""

from splitledger.calculations.balances import calculate_balances, total_spent
from splitledger.calculations.settlement import apply_transfers, plan_settlement
from splitledger.calculations.shares import compute_shares

__all__ = [
    "apply_transfers",
    "calculate_balances",
    "compute_shares",
    "plan_settlement",
    "total_spent",
]
