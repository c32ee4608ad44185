"""Shared fixtures for SplitLedger tests."""

import pytest

from splitledger.config import LedgerSettings
from splitledger.ledger import LedgerStore


def sequential_ids():
    """Id factory giving g1, m1, m2, e1, a1, ... in creation order."""
    counters: dict[str, int] = {}

    def factory(prefix: str) -> str:
        counters[prefix] = counters.get(prefix, 0) + 1
        return f"{prefix}{counters[prefix]}"

    return factory


@pytest.fixture
def settings():
    return LedgerSettings(
        _env_file=None,
        default_group_name="My Group",
        default_currency="USD",
        activity_retention=50,
        recent_activity_limit=10,
        storage_backend="memory",
        storage_key="easesplit_v1",
    )


@pytest.fixture
def store(settings):
    """Empty store without storage."""
    return LedgerStore(settings=settings, id_factory=sequential_ids())


@pytest.fixture
def trio(store):
    """Store with Alice (m1), Bob (m2) and Carol (m3)."""
    store.add_member("Alice")
    store.add_member("Bob")
    store.add_member("Carol")
    return store


def expense_data(**overrides):
    """Valid add_expense payload for the trio: Alice pays 90 for everyone."""
    data = {
        "title": "Dinner",
        "amount": 90,
        "date": "2024-05-01",
        "payer_id": "m1",
        "participant_ids": ["m1", "m2", "m3"],
        "category": "Food",
    }
    data.update(overrides)
    return data
