"""Blob store selection."""

from filedrop.core.config import Settings
from filedrop.storage.base import BlobStore
from filedrop.storage.local import LocalBlobStore


def get_blob_store(settings: Settings) -> BlobStore:
    """Build the blob store named by STORAGE_BACKEND.

    Raises:
        ValueError: If the backend is not supported
    """
    if settings.STORAGE_BACKEND == "local":
        return LocalBlobStore(
            base_path=settings.UPLOAD_DIR,
            chunk_size=settings.DOWNLOAD_CHUNK_SIZE,
        )
    raise ValueError(f"Unsupported STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
