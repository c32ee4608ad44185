"""Ledger store package."""

from splitledger.ledger.store import LedgerStore, new_id

__all__ = ["LedgerStore", "new_id"]
