"""Expense category package."""

from splitledger.categories.registry import (
    DEFAULT_CATEGORIES,
    CategoryRegistry,
    category_in_use,
    is_default_category,
)

__all__ = [
    "DEFAULT_CATEGORIES",
    "CategoryRegistry",
    "category_in_use",
    "is_default_category",
]
