"""Pydantic schemas for chunked and direct upload endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import Field

from uploadserver.schemas.common import CamelModel


class ChunkUploadResponse(CamelModel):
    """Response model for a stored chunk."""
    ok: bool = True
    upload_id: str
    chunk_index: int
    received: bool = True


class UploadStatusResponse(CamelModel):
    """Response model for upload status."""
    upload_id: str
    exists: bool = True
    total_chunks: int
    received_chunks: List[int]
    completed_chunks: int
    is_complete: bool


class FinalizeUploadRequest(CamelModel):
    """Request model for finalizing a chunked upload."""
    upload_id: str
    filename: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)


class FinalizeUploadResponse(CamelModel):
    """Response model for a finalized upload."""
    ok: bool = True
    path: str
    upload_id: str
    processed: bool = True
    size: int
    filename: str


class DirectUploadResponse(CamelModel):
    """Response model for single-request uploads."""
    ok: bool = True
    path: str
    processed: bool = True
    size: int
    filename: str


class LegacyUploadResponse(CamelModel):
    """Response model for /upload and /upload-video."""
    ok: bool = True
    path: str
    converted: Optional[bool] = None
    note: Optional[str] = None
