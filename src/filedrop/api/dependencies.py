"""Request dependencies for API routes."""

from fastapi import Request

from filedrop.registry.file_registry import FileRegistry
from filedrop.storage.base import BlobStore


def get_registry(request: Request) -> FileRegistry:
    """Registry owned by the running application."""
    return request.app.state.registry


def get_blob_store(request: Request) -> BlobStore:
    """Blob store owned by the running application."""
    return request.app.state.blob_store
