"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required fields present and non-empty
- Amounts positive and at the currency's precision
- Split details well-formed (right keys, sensible values)
- This needs nothing but the expense itself

STAGE 2 - SEMANTIC VALIDATION:
- Payer and participants are members of the group
- Category is available in the group
- Percentages add up to 100, custom amounts add up to the expense
- Group-wide uniqueness (ids, member names, categories)
- This needs the whole Group

WHY TWO STAGES:
1. Separation of concerns (structural vs logical)
2. Better error messages (know exactly what kind of issue)
3. Stage 2 is skipped when stage 1 fails, so users are not told that
   percentages don't add up when the percentages are not even numbers

IMPORTANT: Validation NEVER silently fixes issues.
It reports them and the caller decides; the store refuses the mutation.
"""

import re
from decimal import Decimal
from typing import Optional

from splitledger.categories.registry import CategoryRegistry, is_default_category
from splitledger.errors import ValidationError
from splitledger.models.ledger import (
    CustomSplit,
    ExpenseDraft,
    Group,
    PercentageSplit,
    SharesSplit,
    ValidationIssue,
)
from splitledger.models.money import (
    MAX_AMOUNT,
    SPLIT_SUM_TOLERANCE,
    has_valid_precision,
    minor_units,
)

CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")

HUNDRED = Decimal(100)


def _issue(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, issue_type=issue_type, message=message)


def _at(prefix: str, field: str) -> str:
    return f"{prefix}.{field}" if prefix else field


class LedgerValidator:
    """
    Validates expenses, member names and whole groups.

    check_* methods return the list of issues (empty when valid).
    validate_* methods raise ValidationError with those issues.
    """

    # =========================================================================
    # MEMBERS
    # =========================================================================

    def check_member_name(
        self,
        group: Group,
        name: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> list[ValidationIssue]:
        """Name must be non-empty and unique (case-insensitive) in the group."""
        name = (name or "").strip()
        if not name:
            return [_issue("name", "missing", "Member name cannot be empty")]

        wanted = name.casefold()
        for member in group.members:
            if member.id != exclude_id and member.name.casefold() == wanted:
                return [_issue(
                    "name",
                    "duplicate",
                    f'A member named "{member.name}" already exists',
                )]
        return []

    # =========================================================================
    # EXPENSES
    # =========================================================================

    def _validate_expense_schema(
        self,
        draft: ExpenseDraft,
        currency: str,
        prefix: str = "",
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation of a single expense.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not draft.title:
            issues.append(_issue(
                _at(prefix, "title"), "missing", "Expense title cannot be empty",
            ))

        if draft.amount <= 0:
            issues.append(_issue(
                _at(prefix, "amount"),
                "invalid_value",
                "Amount must be greater than zero",
            ))
        elif draft.amount > MAX_AMOUNT:
            issues.append(_issue(
                _at(prefix, "amount"),
                "invalid_value",
                f"Amount cannot exceed {MAX_AMOUNT:,}",
            ))
        elif not has_valid_precision(draft.amount, currency):
            issues.append(_issue(
                _at(prefix, "amount"),
                "invalid_precision",
                f"Amount {draft.amount} has more than {minor_units(currency)} "
                f"decimal places for {currency}",
            ))

        if not draft.payer_id:
            issues.append(_issue(
                _at(prefix, "payer_id"), "missing", "Payer is required",
            ))

        if not draft.category:
            issues.append(_issue(
                _at(prefix, "category"), "missing", "Category is required",
            ))

        participants = draft.participant_ids
        if not participants:
            issues.append(_issue(
                _at(prefix, "participant_ids"),
                "missing",
                "At least one participant is required",
            ))
        elif len(set(participants)) != len(participants):
            issues.append(_issue(
                _at(prefix, "participant_ids"),
                "duplicate",
                "Participants must not be listed twice",
            ))

        issues.extend(self._check_split_shape(draft, currency, prefix))

        is_valid = not issues
        return is_valid, issues

    def _check_split_shape(
        self,
        draft: ExpenseDraft,
        currency: str,
        prefix: str,
    ) -> list[ValidationIssue]:
        split = draft.split
        details = split.details()
        if details is None:
            return []

        field = _at(prefix, "split")
        issues = []

        if set(details) != set(draft.participant_ids):
            missing = sorted(set(draft.participant_ids) - set(details))
            extra = sorted(set(details) - set(draft.participant_ids))
            parts = []
            if missing:
                parts.append(f"missing {', '.join(missing)}")
            if extra:
                parts.append(f"not participating: {', '.join(extra)}")
            issues.append(_issue(
                field,
                "participant_mismatch",
                f"Split details must cover exactly the participants ({'; '.join(parts)})",
            ))

        if isinstance(split, SharesSplit):
            for member_id, weight in split.weights.items():
                if weight <= 0:
                    issues.append(_issue(
                        field,
                        "invalid_value",
                        f"Share weight for {member_id} must be greater than zero",
                    ))

        elif isinstance(split, PercentageSplit):
            for member_id, pct in split.percentages.items():
                if pct < 0 or pct > HUNDRED:
                    issues.append(_issue(
                        field,
                        "invalid_value",
                        f"Percentage for {member_id} must be between 0 and 100",
                    ))

        elif isinstance(split, CustomSplit):
            for member_id, amount in split.amounts.items():
                if amount < 0:
                    issues.append(_issue(
                        field,
                        "invalid_value",
                        f"Amount for {member_id} cannot be negative",
                    ))
                elif amount > MAX_AMOUNT:
                    issues.append(_issue(
                        field,
                        "invalid_value",
                        f"Amount for {member_id} cannot exceed {MAX_AMOUNT:,}",
                    ))
                elif not has_valid_precision(amount, currency):
                    issues.append(_issue(
                        field,
                        "invalid_precision",
                        f"Amount for {member_id} has too many decimal places for {currency}",
                    ))

        return issues

    def _validate_expense_semantic(
        self,
        group: Group,
        draft: ExpenseDraft,
        prefix: str = "",
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation of an expense against the group.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        member_ids = set(group.member_ids)

        if draft.payer_id not in member_ids:
            issues.append(_issue(
                _at(prefix, "payer_id"),
                "unknown_reference",
                f"Payer {draft.payer_id} is not a member of the group",
            ))

        unknown = [p for p in draft.participant_ids if p not in member_ids]
        if unknown:
            issues.append(_issue(
                _at(prefix, "participant_ids"),
                "unknown_reference",
                f"Participants are not members of the group: {', '.join(unknown)}",
            ))

        registry = CategoryRegistry(group.custom_categories)
        if not registry.contains(draft.category):
            issues.append(_issue(
                _at(prefix, "category"),
                "unknown_reference",
                f'Category "{draft.category}" does not exist',
            ))

        split = draft.split
        if isinstance(split, PercentageSplit):
            total = sum(split.percentages.values(), Decimal(0))
            if abs(total - HUNDRED) > SPLIT_SUM_TOLERANCE:
                issues.append(_issue(
                    _at(prefix, "split"),
                    "sum_mismatch",
                    f"Percentages add up to {total}, expected 100",
                ))
        elif isinstance(split, CustomSplit):
            total = sum(split.amounts.values(), Decimal(0))
            if abs(total - draft.amount) > SPLIT_SUM_TOLERANCE:
                issues.append(_issue(
                    _at(prefix, "split"),
                    "sum_mismatch",
                    f"Custom amounts add up to {total}, expected {draft.amount}",
                ))

        is_valid = not issues
        return is_valid, issues

    def check_expense(
        self,
        group: Group,
        draft: ExpenseDraft,
        prefix: str = "",
    ) -> list[ValidationIssue]:
        """
        Run the full two-stage pipeline for one expense.

        Stage 2 only runs if stage 1 passes.
        """
        schema_valid, issues = self._validate_expense_schema(draft, group.currency, prefix)
        if schema_valid:
            _, semantic_issues = self._validate_expense_semantic(group, draft, prefix)
            issues.extend(semantic_issues)
        return issues

    # =========================================================================
    # GROUP
    # =========================================================================

    def check_group(self, group: Group) -> list[ValidationIssue]:
        """Check every invariant of a whole group, e.g. after an import."""
        issues = []

        if not group.name:
            issues.append(_issue("name", "missing", "Group name cannot be empty"))

        if not CURRENCY_PATTERN.match(group.currency):
            issues.append(_issue(
                "currency",
                "invalid_value",
                f"Currency must be a three-letter ISO 4217 code, got {group.currency!r}",
            ))

        # Members
        seen_ids: set[str] = set()
        seen_names: set[str] = set()
        for idx, member in enumerate(group.members):
            field = f"members[{idx}]"
            if member.id in seen_ids:
                issues.append(_issue(
                    f"{field}.id", "duplicate", f"Duplicate member id {member.id}",
                ))
            seen_ids.add(member.id)

            if not member.name:
                issues.append(_issue(
                    f"{field}.name", "missing", "Member name cannot be empty",
                ))
            elif member.name.casefold() in seen_names:
                issues.append(_issue(
                    f"{field}.name",
                    "duplicate",
                    f'A member named "{member.name}" already exists',
                ))
            seen_names.add(member.name.casefold())

        # Custom categories
        seen_categories: set[str] = set()
        for idx, name in enumerate(group.custom_categories):
            field = f"custom_categories[{idx}]"
            if not name.strip():
                issues.append(_issue(field, "missing", "Category name cannot be empty"))
            elif is_default_category(name):
                issues.append(_issue(
                    field,
                    "duplicate",
                    f'"{name}" is a default category',
                ))
            elif name in seen_categories:
                issues.append(_issue(
                    field,
                    "duplicate",
                    f'Category "{name}" already exists',
                ))
            seen_categories.add(name)

        # Expenses (currency must be sane before amounts can be checked)
        if CURRENCY_PATTERN.match(group.currency):
            seen_expense_ids: set[str] = set()
            for idx, expense in enumerate(group.expenses):
                prefix = f"expenses[{idx}]"
                if expense.id in seen_expense_ids:
                    issues.append(_issue(
                        f"{prefix}.id", "duplicate", f"Duplicate expense id {expense.id}",
                    ))
                seen_expense_ids.add(expense.id)
                issues.extend(self.check_expense(group, expense, prefix))

        # Activity log
        seen_activity_ids: set[str] = set()
        previous = None
        for idx, entry in enumerate(group.activity_log):
            field = f"activity_log[{idx}]"
            if entry.id in seen_activity_ids:
                issues.append(_issue(
                    f"{field}.id", "duplicate", f"Duplicate activity id {entry.id}",
                ))
            seen_activity_ids.add(entry.id)

            if previous is not None and entry.timestamp > previous.timestamp:
                issues.append(_issue(
                    f"{field}.timestamp",
                    "out_of_order",
                    "Activity log must be ordered newest first",
                ))
            previous = entry

        return issues

    # =========================================================================
    # RAISING WRAPPERS
    # =========================================================================

    def validate_member_name(
        self,
        group: Group,
        name: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> str:
        """Return the trimmed name or raise ValidationError."""
        issues = self.check_member_name(group, name, exclude_id)
        if issues:
            raise ValidationError(issues)
        return (name or "").strip()

    def validate_expense(self, group: Group, draft: ExpenseDraft) -> None:
        issues = self.check_expense(group, draft)
        if issues:
            raise ValidationError(issues)

    def validate_group(self, group: Group) -> None:
        issues = self.check_group(group)
        if issues:
            raise ValidationError(issues)
