"""File API routes: upload, list, download and delete."""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from filedrop.api.dependencies import get_blob_store, get_registry
from filedrop.core.exceptions import (
    BadRequestError,
    FileDropError,
    IOFailureError,
    NotFoundError,
    PartialUploadError,
    PersistFailureError,
)
from filedrop.core.logging import file_id_context
from filedrop.models.files import (
    ErrorResponse,
    FileInfo,
    MessageResponse,
    PartialUploadErrorResponse,
    UploadResponse,
)
from filedrop.registry.file_registry import FileRecord, FileRegistry, utc_timestamp
from filedrop.storage.base import BlobStore

router = APIRouter(tags=["files"])
logger = logging.getLogger(__name__)

# Same characters encodeURIComponent leaves untouched
_DISPOSITION_SAFE = "-_.!~*'()"


def _log_persist_failure(action: str, uid: str, error: PersistFailureError) -> None:
    logger.error(
        f"Registry snapshot not saved after {action} of {uid}; "
        f"in-memory registry and snapshot differ until the next successful save: {error}"
    )


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": PartialUploadErrorResponse}},
)
async def upload_files(
    files: list[UploadFile] | None = File(default=None),
    registry: FileRegistry = Depends(get_registry),
    blob_store: BlobStore = Depends(get_blob_store),
) -> UploadResponse:
    """Store every attached file and register it.

    Files are handled one after another. If one fails, the files before it
    stay stored and registered, and the error response lists them.
    """
    uploads = [upload for upload in files or [] if upload.filename]
    if not uploads:
        raise BadRequestError("No files uploaded")

    stored: list[FileRecord] = []
    try:
        for upload in uploads:
            blob = await blob_store.put(upload.file, upload.filename)

            record = FileRecord(
                uid=blob.file_id,
                original_filename=upload.filename,
                stored_filename=blob.stored_name,
                size=blob.size_bytes,
                mime_type=upload.content_type or "application/octet-stream",
                upload_time=utc_timestamp(),
            )
            try:
                registry.insert(record)
            except PersistFailureError as e:
                _log_persist_failure("upload", record.uid, e)
            stored.append(record)

            logger.info(
                f"Upload completed: uid={record.uid}, name={record.original_filename!r}, "
                f"size={record.size}, mime_type={record.mime_type}"
            )

    except IOFailureError as e:
        logger.error(f"Upload failed after {len(stored)} of {len(uploads)} files: {e}", exc_info=True)
        raise PartialUploadError(
            f"File upload failed ({len(stored)} of {len(uploads)} files stored)",
            files=[FileInfo.from_record(record).model_dump(by_alias=True) for record in stored],
        ) from e
    except FileDropError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during upload: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="File upload failed")

    return UploadResponse(
        message="Files uploaded successfully",
        files=[FileInfo.from_record(record) for record in stored],
    )


@router.get(
    "/files",
    response_model=list[FileInfo],
    responses={500: {"model": ErrorResponse}},
)
def list_files(registry: FileRegistry = Depends(get_registry)) -> list[FileInfo]:
    """List every registered file. Stored content is not checked here."""
    try:
        return [FileInfo.from_record(record) for record in registry.list()]
    except Exception as e:
        logger.error(f"Failed to list files: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch files")


@router.get(
    "/download/{file_id}",
    response_class=StreamingResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def download_file(
    file_id: str,
    registry: FileRegistry = Depends(get_registry),
    blob_store: BlobStore = Depends(get_blob_store),
) -> StreamingResponse:
    """Stream a stored file back as an attachment.

    A record whose content has vanished from disk is removed and answered
    with 404. The content is opened only once the response starts streaming.
    """
    file_id_context.set(file_id)
    try:
        record = registry.get(file_id)

        if not blob_store.exists(record.stored_filename):
            try:
                registry.reconcile_missing(file_id)
            except PersistFailureError as e:
                _log_persist_failure("self-healing removal", file_id, e)
            raise NotFoundError("File not found on server")

    except FileDropError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during download: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="File download failed")

    headers = {
        "Content-Disposition": (
            f'attachment; filename="{quote(record.original_filename, safe=_DISPOSITION_SAFE)}"'
        ),
        "Content-Length": str(record.size),
    }
    return StreamingResponse(
        blob_store.iter_chunks(record.stored_filename),
        media_type=record.mime_type,
        headers=headers,
    )


@router.delete(
    "/files/{file_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def delete_file(
    file_id: str,
    registry: FileRegistry = Depends(get_registry),
    blob_store: BlobStore = Depends(get_blob_store),
) -> MessageResponse:
    """Delete stored content (if still present) and the registry record."""
    file_id_context.set(file_id)
    try:
        record = registry.get(file_id)

        if not blob_store.delete(record.stored_filename):
            logger.info(f"Stored content {record.stored_filename} was already gone")

        try:
            registry.remove(file_id)
        except PersistFailureError as e:
            _log_persist_failure("delete", file_id, e)

        logger.info(f"File deleted: uid={file_id}")

    except IOFailureError as e:
        logger.error(f"Failed to delete stored content for {file_id}: {e}", exc_info=True)
        raise IOFailureError("File deletion failed") from e
    except FileDropError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during delete: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="File deletion failed")

    return MessageResponse(message="File deleted successfully")
