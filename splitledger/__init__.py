"""
SplitLedger - Source Package

A group ledger and settlement engine: track shared expenses, see who
owes whom, and settle up with as few payments as possible.

DESIGN PRINCIPLES:
1. Balances always add up to exactly zero
2. Fail early, fail visibly
3. No silent corrections
4. Every change to a group is recorded
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SplitLedger Team"
