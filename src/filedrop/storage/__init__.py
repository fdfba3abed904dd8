"""Blob stores holding the raw content of uploaded files."""

from filedrop.storage.base import BlobStore, StoredBlob
from filedrop.storage.factory import get_blob_store
from filedrop.storage.local import LocalBlobStore

__all__ = [
    "BlobStore",
    "StoredBlob",
    "LocalBlobStore",
    "get_blob_store",
]
