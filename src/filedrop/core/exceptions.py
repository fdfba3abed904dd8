"""Custom exceptions for FileDrop."""


class FileDropError(Exception):
    """Base exception for FileDrop.

    Carries the HTTP status the request boundary answers with.
    """

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_content(self) -> dict:
        """JSON body of the error response."""
        return {"error": self.message}


class BadRequestError(FileDropError):
    """Exception raised when a request is missing required input."""

    status_code = 400


class NotFoundError(FileDropError):
    """Exception raised when a file id or its content does not exist."""

    status_code = 404


class RecordNotFoundError(NotFoundError):
    """Exception raised when the registry has no record for an id."""
    pass


class BlobNotFoundError(NotFoundError):
    """Exception raised when stored content is missing from disk."""
    pass


class IOFailureError(FileDropError):
    """Exception raised when reading or writing file content fails."""
    pass


class PersistFailureError(FileDropError):
    """Exception raised when the registry snapshot cannot be written."""
    pass


class PartialUploadError(IOFailureError):
    """Exception raised when a multi-file upload stops partway.

    Files stored before the failure stay stored; they are reported in the
    response next to the error message.
    """

    def __init__(self, message: str, files: list[dict]):
        super().__init__(message)
        self.files = files

    def to_content(self) -> dict:
        return {"error": self.message, "files": self.files}
