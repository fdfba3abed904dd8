"""Local filesystem blob store."""

import logging
import os
import re
from pathlib import Path
from typing import BinaryIO, Iterator
from uuid import uuid4

from filedrop.core.exceptions import BlobNotFoundError, IOFailureError
from filedrop.storage.base import BlobStore, StoredBlob

logger = logging.getLogger(__name__)

MAX_EXTENSION_LENGTH = 16


class LocalBlobStore(BlobStore):
    """Blob store keeping every upload as a flat file in one directory."""

    def __init__(self, base_path: Path | str = "data/uploads", chunk_size: int = 65536):
        self.base_path = Path(base_path)
        self.chunk_size = chunk_size

    def stored_name_for(self, file_id: str, file_name: str) -> str:
        """Use {file_id}{ext} so the original name never reaches the disk."""
        return f"{file_id}{self._sanitize_extension(file_name)}"

    async def put(self, file_data: BinaryIO, file_name: str) -> StoredBlob:
        """Stream file content to a new file under a generated id."""
        file_id = str(uuid4())
        stored_name = self.stored_name_for(file_id, file_name)
        target_path = self.base_path / stored_name
        size_bytes = 0

        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            with open(target_path, "wb") as f:
                while chunk := file_data.read(self.chunk_size):
                    f.write(chunk)
                    size_bytes += len(chunk)
        except OSError as e:
            self._discard_partial(target_path)
            raise IOFailureError(f"Failed to store {file_name}: {e}") from e

        logger.debug(f"Stored blob {stored_name} ({size_bytes} bytes)")
        return StoredBlob(file_id=file_id, stored_name=stored_name, size_bytes=size_bytes)

    def open(self, stored_name: str) -> BinaryIO:
        path = self._resolve(stored_name)
        try:
            return open(path, "rb")
        except FileNotFoundError as e:
            raise BlobNotFoundError(f"Blob {stored_name} not found") from e
        except OSError as e:
            raise IOFailureError(f"Failed to open blob {stored_name}: {e}") from e

    def iter_chunks(self, stored_name: str) -> Iterator[bytes]:
        with self.open(stored_name) as stream:
            try:
                while chunk := stream.read(self.chunk_size):
                    yield chunk
            except OSError:
                logger.error("Error streaming blob", exc_info=True)
                raise

    def exists(self, stored_name: str) -> bool:
        try:
            return self._resolve(stored_name).is_file()
        except BlobNotFoundError:
            return False

    def delete(self, stored_name: str) -> bool:
        """Remove a blob, treating an already missing file as success."""
        try:
            path = self._resolve(stored_name)
        except BlobNotFoundError:
            return False

        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise IOFailureError(f"Failed to delete blob {stored_name}: {e}") from e
        return True

    def get_backend_name(self) -> str:
        return "local"

    def _resolve(self, stored_name: str) -> Path:
        """Map a stored name to a path directly inside base_path."""
        base = self.base_path.resolve()
        path = (base / stored_name).resolve()
        if not stored_name or path.parent != base:
            raise BlobNotFoundError(f"Blob {stored_name} not found")
        return path

    @staticmethod
    def _discard_partial(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning(f"Could not remove partial blob {path}", exc_info=True)

    @staticmethod
    def _sanitize_extension(file_name: str) -> str:
        """Keep only a safe extension from an untrusted file name."""
        base_name = file_name.replace("\\", "/").rsplit("/", 1)[-1]
        _, ext = os.path.splitext(base_name)
        ext = re.sub(r"[^a-zA-Z0-9.]", "", ext)
        if ext in ("", "."):
            return ""
        return ext[:MAX_EXTENSION_LENGTH]
