"""Upload status service."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from common.exceptions import NotFoundError
from uploadserver.object_store import ObjectStore
from uploadserver.service_locator import get_object_store
from uploadserver.services.chunk_service import load_metadata
from uploadserver.utils import chunk_key, validate_upload_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadStatusRecord:
    upload_id: str
    total_chunks: int
    received_chunks: List[int] = field(default_factory=list)
    exists: bool = True

    @property
    def completed_chunks(self) -> int:
        return len(self.received_chunks)

    @property
    def is_complete(self) -> bool:
        return self.completed_chunks == self.total_chunks


class StatusService:
    def __init__(self, store: Optional[ObjectStore] = None):
        self.store = store if store is not None else get_object_store()

    def get_status(self, upload_id: str) -> UploadStatusRecord:
        """
        Report which chunk indices are present for an upload.

        Every index 0..totalChunks-1 is probed in storage; the metadata
        record only supplies totalChunks.

        Raises:
            NotFoundError: If no metadata record exists for upload_id
        """
        validate_upload_id(upload_id)

        metadata = load_metadata(self.store, upload_id)
        if metadata is None:
            raise NotFoundError(upload_id)

        total_chunks = int(metadata["totalChunks"])
        received = [
            index for index in range(total_chunks)
            if self.store.exists(chunk_key(upload_id, index))
        ]

        hinted = metadata.get("chunksReceived")
        if hinted is not None and hinted != len(received):
            logger.debug(
                f"Metadata hint for {upload_id} says {hinted} chunks, storage has {len(received)}"
            )

        return UploadStatusRecord(
            upload_id=upload_id,
            total_chunks=total_chunks,
            received_chunks=received,
        )
