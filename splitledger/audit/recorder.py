"""
Activity Recorder

Keeps the group's activity log: an append-only, newest-first list of
what happened to the group.

The recorder never mutates a log. record() takes the current log and
returns a new tuple with the entry prepended, so the store can build the
next Group in one step and drop it if anything else fails.

Timestamps are monotonic: a new entry is never older than the newest
entry already in the log, even if the wall clock stepped backwards.
"""

from datetime import datetime
from typing import Callable, Optional, Sequence
from uuid import uuid4

import structlog

from splitledger.models.activity import ActivityEntry, ActivityType, utc_now

DEFAULT_RETENTION = 50

logger = structlog.get_logger(__name__)


def new_activity_id() -> str:
    return f"a_{uuid4().hex[:12]}"


class ActivityRecorder:
    """
    Builds activity entries and maintains the retention window.

    Args:
        retention: How many entries to keep. 0 keeps everything,
            None uses DEFAULT_RETENTION.
        clock: Returns the current time (timezone-aware). Injectable for tests.
        id_factory: Returns a fresh entry id.
    """

    def __init__(
        self,
        retention: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        if retention is None:
            retention = DEFAULT_RETENTION
        if retention < 0:
            raise ValueError("retention cannot be negative")
        self._retention = retention
        self._clock = clock or utc_now
        self._id_factory = id_factory or new_activity_id

    @property
    def retention(self) -> int:
        return self._retention

    def create_entry(
        self,
        log: Sequence[ActivityEntry],
        activity_type: ActivityType,
        description: str,
    ) -> ActivityEntry:
        """Build the next entry for a log without attaching it."""
        timestamp = self._clock()
        if log and timestamp < log[0].timestamp:
            timestamp = log[0].timestamp

        return ActivityEntry(
            id=self._id_factory(),
            type=ActivityType(activity_type),
            description=description,
            timestamp=timestamp,
        )

    def record(
        self,
        log: Sequence[ActivityEntry],
        activity_type: ActivityType,
        description: str,
    ) -> tuple[ActivityEntry, ...]:
        """
        Prepend a new entry to the log.

        Returns:
            The new log, newest first, trimmed to the retention window
        """
        entry = self.create_entry(log, activity_type, description)
        new_log = (entry,) + tuple(log)
        if self._retention:
            new_log = new_log[:self._retention]

        logger.info("activity_recorded", **entry.to_log_dict())
        return new_log

    @staticmethod
    def get_recent(
        log: Sequence[ActivityEntry],
        limit: int,
    ) -> list[ActivityEntry]:
        """Return the newest `limit` entries."""
        if limit <= 0:
            return []
        return list(log[:limit])
