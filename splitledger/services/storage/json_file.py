"""
JSON file snapshot storage.

One <key>.json file per key inside a data directory. Writes are atomic:
the snapshot goes to a temp file in the same directory, which is then
moved over the target, so a crash never leaves a half-written file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from splitledger.services.storage.interface import (
    SnapshotStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)


class JsonFileSnapshotStorage(SnapshotStorageInterface):
    """Stores each snapshot as a pretty-printed JSON file."""

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    def load(self, key: str) -> Optional[dict[str, Any]]:
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read snapshot {path}: {e}")

        if not isinstance(data, dict):
            raise StorageError(f"Snapshot file {path} does not contain an object")
        return data

    def save(self, key: str, snapshot: dict[str, Any]) -> bool:
        target = self.path_for(key)
        tmp_path = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f"tmp_{key}_", suffix=".json", dir=self._directory, text=True
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, target)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Failed to write snapshot {target}: {e}")

        logger.debug("snapshot_written", path=str(target))
        return True
