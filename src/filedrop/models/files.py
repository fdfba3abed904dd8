"""File API data models."""

from pydantic import BaseModel, ConfigDict, Field

from filedrop.registry.file_registry import FileRecord


class FileInfo(BaseModel):
    """Public view of one registry record."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str
    original_filename: str = Field(alias="originalFilename")
    stored_filename: str = Field(alias="storedFilename")
    size: int
    mime_type: str = Field(alias="mimeType")
    upload_time: str = Field(alias="uploadTime")

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileInfo":
        return cls(
            uid=record.uid,
            original_filename=record.original_filename,
            stored_filename=record.stored_filename,
            size=record.size,
            mime_type=record.mime_type,
            upload_time=record.upload_time,
        )


class UploadResponse(BaseModel):
    """Response model for file upload."""

    message: str
    files: list[FileInfo]


class MessageResponse(BaseModel):
    """Response model carrying a confirmation message."""

    message: str


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str


class PartialUploadErrorResponse(ErrorResponse):
    """Body of a multi-file upload that failed after storing some files."""

    files: list[FileInfo]
