"""
In-memory snapshot storage.

Used by tests and for sessions that should not leave anything behind.
Snapshots are stored as JSON text so that a load always returns a fresh
copy, exactly like the persistent backends do.
"""

import json
from typing import Any, Optional

from splitledger.services.storage.interface import (
    SnapshotStorageInterface,
    StorageError,
)


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """Dict-backed snapshot storage."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def load(self, key: str) -> Optional[dict[str, Any]]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def save(self, key: str, snapshot: dict[str, Any]) -> bool:
        try:
            self._data[key] = json.dumps(snapshot)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Snapshot is not JSON-serializable: {e}")
        return True

    def keys(self) -> list[str]:
        return sorted(self._data)
