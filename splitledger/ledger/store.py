"""
Ledger Store

The single owner of a group's state.

DESIGN PRINCIPLES:
1. Only the store creates new Group versions; everything else reads
2. Every mutation is all-or-nothing: build a new Group, validate it,
   then swap it in. On any error the current Group is untouched
3. Persistence is best effort: the in-memory Group is authoritative and a
   failed save is reported as a PersistenceWarning, never as an error
4. Every successful mutation is published to subscribers as an immutable
   Group

Flow of a mutation:

    request -> validate -> new Group -> activity entry -> commit
            -> persist (best effort) -> publish
"""

import json
import warnings
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, Union
from uuid import uuid4

import structlog
from pydantic import ValidationError as PydanticValidationError

from splitledger.audit.recorder import ActivityRecorder
from splitledger.calculations import calculate_balances, plan_settlement, total_spent
from splitledger.categories.registry import CategoryRegistry
from splitledger.config import LedgerSettings, get_settings
from splitledger.errors import (
    ConflictError,
    NotFoundError,
    PersistenceWarning,
    ValidationError,
)
from splitledger.models.activity import ActivityEntry, ActivityMessages, ActivityType
from splitledger.models.ledger import (
    BalanceSheet,
    Category,
    CategoryKind,
    Expense,
    ExpenseDraft,
    Group,
    Member,
    MemberBalance,
    Transfer,
)
from splitledger.models.snapshot import (
    export_expenses_csv,
    export_snapshot,
    parse_snapshot,
)
from splitledger.services.storage.interface import (
    SnapshotStorageInterface,
    StorageError,
)
from splitledger.validation.validator import LedgerValidator

logger = structlog.get_logger(__name__)

Listener = Callable[[Group], None]


def new_id(prefix: str) -> str:
    """Short random id such as 'm_3f9a0c2b1d4e'."""
    return f"{prefix}_{uuid4().hex[:12]}"


class LedgerStore:
    """
    Owns one Group and applies validated mutations to it.

    Args:
        group: Initial group. A fresh empty group is created if None.
        storage: Snapshot storage. If None, nothing is persisted.
        storage_key: Key to save snapshots under (default from settings).
        recorder: Activity recorder (default: retention from settings).
        validator: Ledger validator.
        id_factory: Called with a prefix ('g', 'm', 'e', 'a'), returns a
            fresh id. Injectable for deterministic tests.
        settings: Ledger settings (default: from the environment).
    """

    def __init__(
        self,
        group: Optional[Group] = None,
        storage: Optional[SnapshotStorageInterface] = None,
        storage_key: Optional[str] = None,
        recorder: Optional[ActivityRecorder] = None,
        validator: Optional[LedgerValidator] = None,
        id_factory: Optional[Callable[[str], str]] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._storage = storage
        self._storage_key = storage_key or self._settings.storage_key
        self._id_factory = id_factory or new_id
        self._recorder = recorder or ActivityRecorder(
            retention=self._settings.activity_retention,
            id_factory=lambda: self._id_factory("a"),
        )
        self._validator = validator or LedgerValidator()
        self._listeners: list[Listener] = []
        self.last_save_ok = True

        if group is None:
            group = self._empty_group()
        else:
            self._validator.validate_group(group)
        self._group = group

    @classmethod
    def open(
        cls,
        storage: SnapshotStorageInterface,
        storage_key: Optional[str] = None,
        **kwargs,
    ) -> "LedgerStore":
        """
        Create a store from the snapshot in storage.

        A missing snapshot gives a fresh group. An unreadable or invalid
        snapshot is reported as a PersistenceWarning and also gives a
        fresh group; the stored data is left alone until the next save.
        """
        store = cls(storage=storage, storage_key=storage_key, **kwargs)
        store._restore()
        return store

    # =========================================================================
    # READS
    # =========================================================================

    @property
    def group(self) -> Group:
        return self._group

    @property
    def members(self) -> tuple[Member, ...]:
        return self._group.members

    @property
    def expenses(self) -> tuple[Expense, ...]:
        return self._group.expenses

    @property
    def storage_key(self) -> str:
        return self._storage_key

    def get_member(self, member_id: str) -> Member:
        member = self._group.find_member(member_id)
        if member is None:
            raise NotFoundError(f"Member not found: {member_id}")
        return member

    def get_expense(self, expense_id: str) -> Expense:
        expense = self._group.find_expense(expense_id)
        if expense is None:
            raise NotFoundError(f"Expense not found: {expense_id}")
        return expense

    def available_categories(self) -> list[Category]:
        return CategoryRegistry(self._group.custom_categories).available()

    def balances(self) -> BalanceSheet:
        return calculate_balances(self._group)

    def member_balance(self, member_id: str) -> MemberBalance:
        self.get_member(member_id)
        return self.balances().get(member_id)

    @property
    def total_spent(self) -> Decimal:
        return total_spent(self._group)

    def settlement_plan(self) -> list[Transfer]:
        sheet = self.balances()
        return plan_settlement(sheet.as_map(), sheet.currency)

    def recent_activity(self, limit: Optional[int] = None) -> list[ActivityEntry]:
        if limit is None:
            limit = self._settings.recent_activity_limit
        return self._recorder.get_recent(self._group.activity_log, limit)

    # =========================================================================
    # MEMBERS
    # =========================================================================

    def add_member(self, name: str, avatar: Optional[str] = None) -> Member:
        """
        Add a member to the group.

        Raises:
            ValidationError: if the name is empty or already taken
        """
        name = self._validator.validate_member_name(self._group, name)
        member = Member(id=self._id_factory("m"), name=name, avatar=avatar)

        group = self._group.model_copy(
            update={"members": self._group.members + (member,)}
        )
        group = self._record(
            group, ActivityType.MEMBER_ADDED, ActivityMessages.member_added(name)
        )
        self._commit(group, "add_member", member_id=member.id)
        return member

    def update_member(
        self,
        member_id: str,
        name: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> Member:
        """
        Rename a member or change their avatar. None leaves a field as is.

        Raises:
            NotFoundError: if the member does not exist
            ValidationError: if the new name is empty or taken by someone else
        """
        current = self.get_member(member_id)
        new_name = current.name
        if name is not None:
            new_name = self._validator.validate_member_name(
                self._group, name, exclude_id=member_id
            )
        updated = current.model_copy(update={
            "name": new_name,
            "avatar": avatar if avatar is not None else current.avatar,
        })

        group = self._group.model_copy(update={
            "members": tuple(
                updated if m.id == member_id else m for m in self._group.members
            )
        })
        group = self._record(
            group,
            ActivityType.GROUP_UPDATED,
            ActivityMessages.member_updated(current.name, new_name),
        )
        self._commit(group, "update_member", member_id=member_id)
        return updated

    def remove_member(self, member_id: str) -> Member:
        """
        Remove a member who is not part of any expense.

        Raises:
            NotFoundError: if the member does not exist
            ConflictError: if the member paid for or shares any expense
        """
        member = self.get_member(member_id)
        referencing = [
            e.title for e in self._group.expenses
            if e.payer_id == member_id or member_id in e.participant_ids
        ]
        if referencing:
            raise ConflictError(
                f"Cannot remove {member.name}: they are part of "
                f"{len(referencing)} expense(s)"
            )

        group = self._group.model_copy(update={
            "members": tuple(m for m in self._group.members if m.id != member_id)
        })
        group = self._record(
            group, ActivityType.MEMBER_REMOVED, ActivityMessages.member_removed(member.name)
        )
        self._commit(group, "remove_member", member_id=member_id)
        return member

    # =========================================================================
    # EXPENSES
    # =========================================================================

    def add_expense(self, data: Union[ExpenseDraft, Mapping[str, Any]]) -> Expense:
        """
        Add an expense.

        Args:
            data: An ExpenseDraft or a mapping of its fields. A flat
                split_type / split_details pair is accepted instead of split.

        Raises:
            ValidationError: naming the first violated rule
        """
        draft = self._coerce_draft(data)
        self._validator.validate_expense(self._group, draft)
        expense = self._build_expense(self._id_factory("e"), draft)

        group = self._group.model_copy(
            update={"expenses": self._group.expenses + (expense,)}
        )
        group = self._record(
            group,
            ActivityType.EXPENSE_ADDED,
            ActivityMessages.expense_added(
                self._group.member_name(expense.payer_id),
                expense.title,
                expense.amount,
                self._group.currency,
            ),
        )
        self._commit(group, "add_expense", expense_id=expense.id, amount=str(expense.amount))
        return expense

    def update_expense(
        self,
        expense_id: str,
        data: Union[ExpenseDraft, Mapping[str, Any]],
    ) -> Expense:
        """
        Replace or partially update an expense. The id never changes.

        A mapping is merged over the current expense, so
        {"amount": 50} only changes the amount.

        Raises:
            NotFoundError: if the expense does not exist
            ValidationError: naming the first violated rule
        """
        current = self.get_expense(expense_id)
        if isinstance(data, Mapping):
            data = self._merge_expense(current, data)
        draft = self._coerce_draft(data)
        self._validator.validate_expense(self._group, draft)
        updated = self._build_expense(expense_id, draft)

        group = self._group.model_copy(update={
            "expenses": tuple(
                updated if e.id == expense_id else e for e in self._group.expenses
            )
        })
        group = self._record(
            group, ActivityType.EXPENSE_UPDATED, ActivityMessages.expense_updated(updated.title)
        )
        self._commit(group, "update_expense", expense_id=expense_id)
        return updated

    def remove_expense(self, expense_id: str) -> Expense:
        """
        Raises:
            NotFoundError: if the expense does not exist
        """
        expense = self.get_expense(expense_id)
        group = self._group.model_copy(update={
            "expenses": tuple(e for e in self._group.expenses if e.id != expense_id)
        })
        group = self._record(
            group, ActivityType.EXPENSE_DELETED, ActivityMessages.expense_deleted(expense.title)
        )
        self._commit(group, "remove_expense", expense_id=expense_id)
        return expense

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def add_custom_category(self, name: str) -> Category:
        registry = CategoryRegistry(self._group.custom_categories).add(name)
        added = registry.custom[-1]

        group = self._group.model_copy(update={"custom_categories": registry.custom})
        group = self._record(
            group, ActivityType.GROUP_UPDATED, ActivityMessages.category_added(added)
        )
        self._commit(group, "add_custom_category", category=added)
        return Category(kind=CategoryKind.CUSTOM, name=added)

    def remove_custom_category(self, name: str) -> None:
        """
        Raises:
            ValidationError: for a default category
            NotFoundError: if there is no such custom category
            ConflictError: while any expense uses the category
        """
        registry = CategoryRegistry(self._group.custom_categories).remove(
            name, self._group.expenses
        )

        group = self._group.model_copy(update={"custom_categories": registry.custom})
        group = self._record(
            group, ActivityType.GROUP_UPDATED, ActivityMessages.category_removed(name)
        )
        self._commit(group, "remove_custom_category", category=name)

    # =========================================================================
    # GROUP
    # =========================================================================

    def update_group(
        self,
        name: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> Group:
        """
        Rename the group or change its currency.

        The whole group is re-validated: switching to a currency with fewer
        decimal places than existing amounts is rejected.
        """
        updates: dict[str, Any] = {}
        changes: list[str] = []
        if name is not None and name.strip() != self._group.name:
            updates["name"] = name.strip()
            changes.append(f'name is now "{updates["name"]}"')
        if currency is not None and currency.strip().upper() != self._group.currency:
            updates["currency"] = currency.strip().upper()
            changes.append(f"currency is now {updates['currency']}")
        if not updates:
            return self._group

        group = self._group.model_copy(update=updates)
        self._validator.validate_group(group)
        group = self._record(
            group, ActivityType.GROUP_UPDATED, ActivityMessages.group_updated(changes)
        )
        self._commit(group, "update_group", **updates)
        return group

    def record_activity(
        self,
        activity_type: Union[ActivityType, str],
        description: str,
    ) -> ActivityEntry:
        """Append a free-form entry to the activity log."""
        try:
            activity_type = ActivityType(activity_type)
        except ValueError:
            raise ValidationError.single(
                field="type",
                issue_type="invalid_value",
                message=f"Unknown activity type: {activity_type}",
            )
        group = self._record(self._group, activity_type, description)
        self._commit(group, "record_activity", activity_type=activity_type.value)
        return group.activity_log[0]

    def replace(self, snapshot: Mapping[str, Any]) -> Group:
        """
        Replace the whole group with an imported snapshot.

        All-or-nothing: the snapshot is parsed (stage 1) and checked
        against every invariant (stage 2) before anything changes. The
        imported activity log is kept as it is.

        Raises:
            ValidationError: with the first violation as message and all
                of them on .issues
        """
        group = parse_snapshot(snapshot)
        self._validator.validate_group(group)
        self._commit(group, "replace")
        return group

    def import_json(self, text: str) -> Group:
        try:
            data = json.loads(text)
        except (TypeError, json.JSONDecodeError) as e:
            raise ValidationError.single(
                field="snapshot",
                issue_type="invalid_json",
                message=f"Snapshot is not valid JSON: {e}",
            )
        return self.replace(data)

    def export(self) -> dict[str, Any]:
        return export_snapshot(self._group)

    def export_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.export(), indent=indent, ensure_ascii=False)

    def export_csv(self) -> str:
        """Expenses as CSV, for spreadsheets."""
        return export_expenses_csv(self._group)

    def reset(
        self,
        name: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> Group:
        """Start over with an empty group."""
        group = self._empty_group(name, currency)
        self._validator.validate_group(group)
        self._commit(group, "reset")
        return group

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call listener(group) after every successful mutation.

        Returns a function that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _empty_group(
        self,
        name: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> Group:
        return Group(
            id=self._id_factory("g"),
            name=(name if name is not None else self._settings.default_group_name).strip(),
            currency=(currency or self._settings.default_currency).strip().upper(),
        )

    def _restore(self) -> None:
        try:
            data = self._storage.load(self._storage_key)
        except StorageError as e:
            self._warn("snapshot_load_failed", f"Could not load stored group: {e}")
            return
        if data is None:
            return

        try:
            group = parse_snapshot(data)
            self._validator.validate_group(group)
        except ValidationError as e:
            self._warn(
                "snapshot_invalid",
                f"Stored group is invalid and was not loaded: {e}",
            )
            return

        self._group = group
        logger.info(
            "snapshot_loaded",
            group_id=group.id,
            members=len(group.members),
            expenses=len(group.expenses),
        )

    @staticmethod
    def _coerce_draft(data: Union[ExpenseDraft, Mapping[str, Any]]) -> ExpenseDraft:
        if isinstance(data, Expense):
            data = data.model_dump(exclude={"id"})
        elif isinstance(data, ExpenseDraft):
            return data

        if not isinstance(data, Mapping):
            raise ValidationError.single(
                field="expense",
                issue_type="invalid_type",
                message="Expense data must be an ExpenseDraft or a mapping",
            )
        try:
            return ExpenseDraft.model_validate(dict(data))
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e)

    @staticmethod
    def _merge_expense(current: Expense, changes: Mapping[str, Any]) -> dict[str, Any]:
        merged = current.model_dump(exclude={"id"})
        changes = {k: v for k, v in changes.items() if k != "id"}
        if "split" not in changes and (
            "split_type" in changes or "split_details" in changes
        ):
            merged.pop("split")
            changes.setdefault("split_type", current.split_type.value)
        merged.update(changes)
        return merged

    @staticmethod
    def _build_expense(expense_id: str, draft: ExpenseDraft) -> Expense:
        return Expense.model_validate({**draft.model_dump(), "id": expense_id})

    def _record(
        self,
        group: Group,
        activity_type: ActivityType,
        description: str,
    ) -> Group:
        log = self._recorder.record(group.activity_log, activity_type, description)
        return group.model_copy(update={"activity_log": log})

    def _commit(self, group: Group, action: str, **context) -> None:
        context.setdefault("group_id", group.id)
        logger.info("ledger_mutation", action=action, **context)
        self._group = group
        self._persist()
        self._publish(group)

    def _persist(self) -> None:
        if self._storage is None:
            return

        try:
            ok = self._storage.save(self._storage_key, self.export())
            reason = "storage backend reported failure"
        except Exception as e:
            ok = False
            reason = str(e)

        self.last_save_ok = bool(ok)
        if not ok:
            self._warn("snapshot_save_failed", f"Group could not be saved: {reason}")

    def _publish(self, group: Group) -> None:
        for listener in list(self._listeners):
            try:
                listener(group)
            except Exception:
                logger.exception("subscriber_failed", listener=repr(listener))

    def _warn(self, event: str, message: str) -> None:
        logger.warning(event, storage_key=self._storage_key, message=message)
        warnings.warn(message, PersistenceWarning, stacklevel=3)
