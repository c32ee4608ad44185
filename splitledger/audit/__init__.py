"""Audit logging package."""

from splitledger.audit.logger import configure_logging
from splitledger.audit.recorder import (
    DEFAULT_RETENTION,
    ActivityRecorder,
    new_activity_id,
)

__all__ = [
    "ActivityRecorder",
    "DEFAULT_RETENTION",
    "configure_logging",
    "new_activity_id",
]
