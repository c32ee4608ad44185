"""
Storage Services Package

Provides the abstract snapshot interface and its implementations:
in-memory, local JSON files and Google Sheets.
"""

from splitledger.services.storage.interface import (
    ConnectionError,
    SnapshotStorageInterface,
    StorageError,
)
from splitledger.services.storage.memory import InMemorySnapshotStorage
from splitledger.services.storage.json_file import JsonFileSnapshotStorage
from splitledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsSnapshotStorage,
)

__all__ = [
    # Interfaces
    "SnapshotStorageInterface",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Implementations
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSnapshotStorage",
]
