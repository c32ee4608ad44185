"""Services package."""

from splitledger.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsSnapshotStorage,
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    SnapshotStorageInterface,
    StorageError,
)

__all__ = [
    # Storage services
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsSnapshotStorage",
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "SnapshotStorageInterface",
    "StorageError",
]
