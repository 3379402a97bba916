"""Pydantic schemas for API requests and responses."""

from uploadserver.schemas.uploads import (
    ChunkUploadResponse,
    UploadStatusResponse,
    FinalizeUploadRequest,
    FinalizeUploadResponse,
    DirectUploadResponse,
    LegacyUploadResponse,
)
from uploadserver.schemas.common import CamelModel, ErrorResponse

__all__ = [
    "CamelModel",
    "ChunkUploadResponse",
    "UploadStatusResponse",
    "FinalizeUploadRequest",
    "FinalizeUploadResponse",
    "DirectUploadResponse",
    "LegacyUploadResponse",
    "ErrorResponse",
]
