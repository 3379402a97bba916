"""Shared data type definitions (ChunkRange, UploadProgress, UploadResult, etc.)."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ChunkRange:
    """
    Byte range [start, end) of one chunk within a payload.
    """
    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class UploadProgress:
    """
    Emitted after every successfully stored chunk.
    """
    upload_id: str
    chunk_index: int
    total_chunks: int
    progress: float
    chunks_completed: int


@dataclass(frozen=True)
class UploadFailure:
    """
    Emitted once when an upload fails permanently.
    """
    upload_id: Optional[str]
    error: str
    filename: str
    direct: bool = False


@dataclass(frozen=True)
class UploadResult:
    """
    Outcome of a finished chunked or direct upload.
    """
    path: str
    filename: str
    size: int
    upload_id: Optional[str] = None
    direct: bool = False


@dataclass(frozen=True)
class UploadStatus:
    """
    Client-side view of the server's upload status.
    """
    upload_id: str
    exists: bool
    total_chunks: int = 0
    received_chunks: List[int] = field(default_factory=list)
    completed_chunks: int = 0
    is_complete: bool = False
    error: Optional[str] = None
