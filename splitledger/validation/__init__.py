"""Validation package."""

from splitledger.validation.validator import CURRENCY_PATTERN, LedgerValidator

__all__ = ["CURRENCY_PATTERN", "LedgerValidator"]
