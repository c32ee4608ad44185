"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for snapshot storage.
This allows us to:
1. Keep the ledger independent of where snapshots end up
2. Use in-memory storage for testing
3. Swap a local JSON file for Google Sheets without touching the store

The interface is intentionally simple - a key-value store of serialized
group snapshots. The ledger holds the authoritative state in memory; storage
is a cache it writes to after every successful mutation.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for snapshot storage operations.

    Any storage implementation (JSON file, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[dict[str, Any]]:
        """
        Load the snapshot stored under a key.

        Args:
            key: Storage key (e.g. "easesplit_v1")

        Returns:
            The decoded snapshot mapping, or None if nothing is stored

        Raises:
            StorageError: If the backend fails or the stored data is unreadable
        """
        pass

    @abstractmethod
    def save(self, key: str, snapshot: dict[str, Any]) -> bool:
        """
        Store a snapshot under a key, replacing any previous one.

        Args:
            key: Storage key
            snapshot: JSON-serializable snapshot mapping

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
