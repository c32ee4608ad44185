"""
Ledger errors

Every failed mutation raises one of these and leaves the group unchanged.

- ValidationError: the input is malformed or out of range. Fix the input.
- NotFoundError: a member, expense or category id does not exist.
- ConflictError: the change would break a reference (e.g. removing a
  category or member that an expense still uses).
- InternalConsistencyError: a derived invariant does not hold. This is a
  bug, never a user mistake, and must not be swallowed.

Persistence problems are not errors: the in-memory group stays
authoritative and a PersistenceWarning is emitted instead.
"""

from typing import Optional

from splitledger.models.ledger import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """Input or snapshot violates a ledger rule."""

    def __init__(self, issues: list[ValidationIssue]):
        if not issues:
            raise ValueError("ValidationError needs at least one issue")
        self.issues = list(issues)
        super().__init__(self.issues[0].message)

    @property
    def first(self) -> ValidationIssue:
        return self.issues[0]

    @classmethod
    def single(
        cls,
        field: str,
        issue_type: str,
        message: str,
    ) -> "ValidationError":
        return cls([ValidationIssue(field=field, issue_type=issue_type, message=message)])

    @classmethod
    def from_pydantic(cls, exc, prefix: Optional[str] = None) -> "ValidationError":
        """Convert a pydantic ValidationError into ledger issues."""
        issues = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()))
            if prefix:
                location = f"{prefix}.{location}" if location else prefix
            issues.append(ValidationIssue(
                field=location or "data",
                issue_type=error.get("type", "invalid"),
                message=f"{location or 'data'}: {error.get('msg', 'invalid value')}",
            ))
        if not issues:
            issues.append(ValidationIssue(
                field=prefix or "data",
                issue_type="invalid",
                message=str(exc),
            ))
        return cls(issues)


class NotFoundError(LedgerError):
    """Referenced member, expense or category does not exist."""
    pass


class ConflictError(LedgerError):
    """Operation would leave a dangling reference."""
    pass


class InternalConsistencyError(LedgerError):
    """A derived invariant is violated. Indicates a defect."""
    pass


class PersistenceWarning(UserWarning):
    """A snapshot could not be saved; the in-memory state is still valid."""
    pass
