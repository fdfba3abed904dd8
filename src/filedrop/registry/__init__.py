"""File registry: id -> file metadata, persisted as a JSON snapshot."""

from filedrop.registry.file_registry import FileRecord, FileRegistry, utc_timestamp

__all__ = [
    "FileRecord",
    "FileRegistry",
    "utc_timestamp",
]
