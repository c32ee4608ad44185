"""
Category Registry

Every expense has a category. The available categories are the fixed
defaults followed by the group's own custom categories.

DESIGN DECISION: Defaults are a constant and can never be removed.
Custom categories can only be removed while no expense uses them, so an
expense never points at a category that no longer exists.

Category names are compared exactly (case-sensitive): "Food" and "food"
are two different categories.
"""

from typing import Iterable

from splitledger.errors import ConflictError, NotFoundError, ValidationError
from splitledger.models.ledger import Category, CategoryKind, Expense

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Food",
    "Travel",
    "Accommodation",
    "Stay",
    "Shopping",
    "Entertainment",
    "Utilities",
    "Other",
    "Misc",
)


def is_default_category(name: str) -> bool:
    return name in DEFAULT_CATEGORIES


def category_in_use(name: str, expenses: Iterable[Expense]) -> bool:
    """True if any expense references the category."""
    return any(expense.category == name for expense in expenses)


class CategoryRegistry:
    """
    Read/validate view over the default and custom categories.

    The registry is immutable: add() and remove() return a new registry,
    the caller decides whether to keep it.
    """

    def __init__(self, custom: Iterable[str] = ()):
        self._custom: tuple[str, ...] = tuple(custom)

    @property
    def custom(self) -> tuple[str, ...]:
        return self._custom

    def available(self) -> list[Category]:
        """Defaults first, then custom categories in the order they were added."""
        return [
            Category(kind=CategoryKind.DEFAULT, name=name) for name in DEFAULT_CATEGORIES
        ] + [
            Category(kind=CategoryKind.CUSTOM, name=name) for name in self._custom
        ]

    def names(self) -> list[str]:
        return list(DEFAULT_CATEGORIES) + list(self._custom)

    def contains(self, name: str) -> bool:
        return is_default_category(name) or name in self._custom

    def add(self, name: str) -> "CategoryRegistry":
        """
        Add a custom category.

        Raises:
            ValidationError: if the name is empty or already exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError.single(
                field="category",
                issue_type="missing",
                message="Category name cannot be empty",
            )
        if self.contains(name):
            raise ValidationError.single(
                field="category",
                issue_type="duplicate",
                message=f'Category "{name}" already exists',
            )
        return CategoryRegistry(self._custom + (name,))

    def remove(self, name: str, expenses: Iterable[Expense]) -> "CategoryRegistry":
        """
        Remove a custom category.

        Raises:
            ValidationError: if the category is a default one
            NotFoundError: if there is no such custom category
            ConflictError: if an expense still uses the category
        """
        if is_default_category(name):
            raise ValidationError.single(
                field="category",
                issue_type="protected",
                message=f'"{name}" is a default category and cannot be removed',
            )
        if name not in self._custom:
            raise NotFoundError(f'Custom category not found: "{name}"')
        if category_in_use(name, expenses):
            raise ConflictError(
                f'Cannot remove "{name}": it is used by existing expenses'
            )
        return CategoryRegistry(c for c in self._custom if c != name)
