"""Exception taxonomy shared by the upload server and the uploader client."""

from typing import Optional


class UploadError(Exception):
    """
    Base exception class for all upload-related errors.
    """
    pass


class TransportError(UploadError):
    """
    Raised when a single chunk could not be sent after exhausting retries.
    Fatal to the whole upload.
    """

    def __init__(self, chunk_index: int, attempts: int, message: str):
        self.chunk_index = chunk_index
        self.attempts = attempts
        super().__init__(
            f"Chunk {chunk_index} failed after {attempts} attempts: {message}"
        )


class NotFoundError(UploadError):
    """
    Raised when status or finalize is requested for an unknown upload id.
    """

    def __init__(self, upload_id: str, message: Optional[str] = None):
        self.upload_id = upload_id
        super().__init__(message or f"Upload {upload_id} not found")


class MissingChunkError(UploadError):
    """
    Raised when finalize finds an expected chunk index absent from storage.
    """

    def __init__(self, upload_id: str, chunk_index: int):
        self.upload_id = upload_id
        self.chunk_index = chunk_index
        super().__init__(f"Upload {upload_id} is missing chunk {chunk_index}")


class UploadFailedError(UploadError):
    """
    Raised for unexpected failures while storing or sending a whole payload.
    """
    pass


class InvalidRequestError(UploadError):
    """
    Raised when an upload id, chunk index or filename is malformed.
    """
    pass
