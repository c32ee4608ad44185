"""
Main Orchestrator for SplitLedger

This module ties the components together:
settings -> logging -> snapshot storage -> ledger store.

DESIGN DECISION: The orchestrator enforces the boundaries:
- Storage problems never stop the ledger from working (it falls back to
  an in-memory session and says so)
- Configuration is read in one place
- Logging is configured before anything logs

Callers that want full control build LedgerStore themselves; this is the
"glue" for the common case.
"""

from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from splitledger.audit import ActivityRecorder, configure_logging
from splitledger.config import LedgerSettings, get_settings
from splitledger.ledger import LedgerStore
from splitledger.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsSnapshotStorage,
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    SnapshotStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)


def build_storage(
    settings: Optional[LedgerSettings] = None,
) -> SnapshotStorageInterface:
    """
    Create the snapshot storage selected by settings.storage_backend.

    Raises:
        StorageError: if the backend cannot be set up
        pydantic.ValidationError: if the backend's settings are missing
    """
    settings = settings or get_settings().ledger
    backend = settings.storage_backend

    if backend == "memory":
        return InMemorySnapshotStorage()
    if backend == "json":
        return JsonFileSnapshotStorage(settings.data_path)
    if backend == "google_sheets":
        client = GoogleSheetsClient(get_settings().google_sheets)
        client.get_snapshots_sheet()
        return GoogleSheetsSnapshotStorage(client)

    raise StorageError(f"Unknown storage backend: {backend}")


def create_ledger_store(
    use_storage: bool = True,
    settings: Optional[LedgerSettings] = None,
) -> LedgerStore:
    """
    Factory function to create a ready-to-use ledger store.

    Args:
        use_storage: Whether to load from and save to the configured backend.
                    Set to False for an ephemeral in-memory session.
        settings: Ledger settings (default: from the environment)

    Returns:
        A LedgerStore holding the stored group, or a fresh one
    """
    settings = settings or get_settings().ledger
    configure_logging(settings.log_level)

    recorder = ActivityRecorder(retention=settings.activity_retention)

    storage: SnapshotStorageInterface
    if use_storage:
        try:
            storage = build_storage(settings)
        except (StorageError, PydanticValidationError) as e:
            # Storage not configured - continue without it
            logger.warning(
                "storage_unavailable",
                backend=settings.storage_backend,
                error=str(e),
            )
            storage = InMemorySnapshotStorage()
    else:
        storage = InMemorySnapshotStorage()

    store = LedgerStore.open(
        storage,
        storage_key=settings.storage_key,
        recorder=recorder,
        settings=settings,
    )
    logger.info(
        "ledger_ready",
        backend=settings.storage_backend if use_storage else "memory",
        group_id=store.group.id,
    )
    return store
