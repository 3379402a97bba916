"""Service layer for upload business logic."""

from uploadserver.services.chunk_service import ChunkService
from uploadserver.services.status_service import StatusService
from uploadserver.services.finalize_service import FinalizeService
from uploadserver.services.recording_service import RecordingService

__all__ = [
    "ChunkService",
    "StatusService",
    "FinalizeService",
    "RecordingService",
]
