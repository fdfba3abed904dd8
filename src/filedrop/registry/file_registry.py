"""File registry persisted as a JSON snapshot.

The registry maps a file id to the metadata of one uploaded file. The whole
mapping is kept in memory and written out in full after every mutation;
there is no journal, so it is meant for small collections (a personal or
small-team file drop) and every write costs O(number of records).
"""

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from filedrop.core.exceptions import PersistFailureError, RecordNotFoundError

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Current time as ISO 8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class FileRecord:
    """Metadata of one uploaded file. Immutable once created."""

    uid: str
    original_filename: str
    stored_filename: str
    size: int
    mime_type: str
    upload_time: str

    def to_snapshot(self) -> Dict[str, Any]:
        """Serialize using the snapshot's JSON field names."""
        return {
            "uid": self.uid,
            "originalFilename": self.original_filename,
            "storedFilename": self.stored_filename,
            "size": self.size,
            "mimeType": self.mime_type,
            "uploadTime": self.upload_time,
        }

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any]) -> "FileRecord":
        """Build a record from a snapshot entry.

        Raises:
            KeyError: If a field is missing
            TypeError: If the entry is not an object or a field has the wrong type
        """
        if not isinstance(data, dict):
            raise TypeError(f"Snapshot entry must be an object, got {type(data).__name__}")
        size = data["size"]
        if isinstance(size, bool) or not isinstance(size, int):
            raise TypeError(f"size must be an integer, got {size!r}")
        return cls(
            uid=str(data["uid"]),
            original_filename=str(data["originalFilename"]),
            stored_filename=str(data["storedFilename"]),
            size=size,
            mime_type=str(data["mimeType"]),
            upload_time=str(data["uploadTime"]),
        )


class FileRegistry:
    """Authoritative id -> FileRecord mapping with a full-snapshot JSON copy.

    Every mutation and snapshot write happens under one lock, so concurrent
    requests cannot interleave read-modify-write cycles on the snapshot.
    """

    def __init__(self, snapshot_path: Path | str):
        self.snapshot_path = Path(snapshot_path)
        self._records: Dict[str, FileRecord] = {}
        self._lock = threading.RLock()

    def load(self) -> int:
        """Replace the in-memory mapping with the persisted snapshot.

        A missing snapshot means an empty registry. A malformed snapshot is
        discarded and overwritten with an empty one. Neither is an error.

        Returns:
            Number of records loaded
        """
        with self._lock:
            self._records = {}

            if not self.snapshot_path.exists():
                logger.info(f"No registry snapshot at {self.snapshot_path}, starting empty")
                return 0

            try:
                raw = self.snapshot_path.read_text(encoding="utf-8")
            except OSError as e:
                logger.error(f"Registry snapshot {self.snapshot_path} unreadable, starting empty: {e}")
                return 0

            try:
                self._records = self._parse_snapshot(raw)
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"Registry snapshot {self.snapshot_path} malformed, discarding it: {e}")
                self._records = {}
                try:
                    self._persist()
                except PersistFailureError as persist_error:
                    logger.error(f"Could not reset registry snapshot: {persist_error}")
                return 0

            logger.info(f"Loaded {len(self._records)} file records from {self.snapshot_path}")
            return len(self._records)

    def insert(self, record: FileRecord) -> None:
        """Add a record and persist the snapshot.

        Raises:
            PersistFailureError: If the snapshot could not be written. The
                record stays in memory regardless.
        """
        with self._lock:
            self._records[record.uid] = record
            self._persist()

    def list(self) -> list[FileRecord]:
        """Return all live records in insertion order."""
        with self._lock:
            return list(self._records.values())

    def get(self, uid: str) -> FileRecord:
        """Look up a record by id.

        Raises:
            RecordNotFoundError: If no record exists for uid
        """
        with self._lock:
            record = self._records.get(uid)
        if record is None:
            raise RecordNotFoundError("File not found")
        return record

    def remove(self, uid: str) -> bool:
        """Drop a record (no-op if absent) and persist the snapshot.

        Returns:
            True if a record was removed

        Raises:
            PersistFailureError: If the snapshot could not be written
        """
        with self._lock:
            removed = self._records.pop(uid, None) is not None
            self._persist()
        return removed

    def reconcile_missing(self, uid: str) -> bool:
        """Drop a record whose stored content has disappeared from disk."""
        logger.warning(f"Stored content for {uid} is missing, removing its record")
        return self.remove(uid)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, uid: object) -> bool:
        with self._lock:
            return uid in self._records

    @staticmethod
    def _parse_snapshot(raw: str) -> Dict[str, FileRecord]:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise TypeError(f"Snapshot must be a JSON object, got {type(data).__name__}")
        records: Dict[str, FileRecord] = {}
        for uid, entry in data.items():
            record = FileRecord.from_snapshot(entry)
            if record.uid != uid:
                raise ValueError(f"Snapshot key {uid!r} does not match record uid {record.uid!r}")
            records[uid] = record
        return records

    def _persist(self) -> None:
        """Write the full mapping to a temp file and swap it into place."""
        snapshot = {uid: record.to_snapshot() for uid, record in self._records.items()}
        tmp_name = None
        try:
            self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.snapshot_path.name}.", dir=self.snapshot_path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.snapshot_path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning(f"Could not remove temporary snapshot {tmp_name}")
            raise PersistFailureError(f"Failed to save registry snapshot: {e}") from e
