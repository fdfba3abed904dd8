"""Abstract blob store interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Iterator


@dataclass(frozen=True)
class StoredBlob:
    """Result of writing one upload to the blob store."""

    file_id: str
    stored_name: str
    size_bytes: int


class BlobStore(ABC):
    """Abstract base class for blob stores."""

    @abstractmethod
    def stored_name_for(self, file_id: str, file_name: str) -> str:
        """Derive the stored name for a new blob.

        Args:
            file_id: Unique file identifier
            file_name: Original (client supplied) file name

        Returns:
            Name of the blob inside the store
        """
        pass

    @abstractmethod
    async def put(self, file_data: BinaryIO, file_name: str) -> StoredBlob:
        """Store uploaded content under a freshly generated id.

        Args:
            file_data: File content stream, read until exhausted
            file_name: Original file name, used for its extension only

        Returns:
            Generated id, stored name and number of bytes written

        Raises:
            IOFailureError: If the content could not be fully written
        """
        pass

    @abstractmethod
    def open(self, stored_name: str) -> BinaryIO:
        """Open a blob for sequential reading.

        Raises:
            BlobNotFoundError: If no blob exists under stored_name
            IOFailureError: If the blob exists but cannot be opened
        """
        pass

    @abstractmethod
    def iter_chunks(self, stored_name: str) -> Iterator[bytes]:
        """Yield the content of a blob.

        The blob is opened on first iteration and closed when iteration
        ends, so an unconsumed iterator holds no file handle.

        Raises:
            BlobNotFoundError: If the blob is gone when iteration starts
            IOFailureError: If the blob cannot be opened
        """
        pass

    @abstractmethod
    def exists(self, stored_name: str) -> bool:
        """Return whether a blob exists under stored_name."""
        pass

    @abstractmethod
    def delete(self, stored_name: str) -> bool:
        """Remove a blob.

        Returns:
            True if a blob was removed, False if it was already absent
        """
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend identifier."""
        pass
