"""Chunk service: persists uploaded chunks and the per-upload metadata record."""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from common.exceptions import InvalidRequestError
from uploadserver import config
from uploadserver.object_store import ObjectStore
from uploadserver.service_locator import UploadLockRegistry, get_object_store, get_upload_locks
from uploadserver.utils import chunk_key, current_millis, metadata_key, validate_upload_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkAck:
    upload_id: str
    chunk_index: int
    size: int


def load_metadata(store: ObjectStore, upload_id: str) -> Optional[dict]:
    """
    Read the metadata record of an upload.

    Returns:
        Decoded record, or None if the upload is unknown
    """
    stored = store.get(metadata_key(upload_id))
    if stored is None:
        return None
    return json.loads(stored.data.decode("utf-8"))


class ChunkService:
    def __init__(
        self,
        store: Optional[ObjectStore] = None,
        locks: Optional[UploadLockRegistry] = None,
    ):
        self.store = store if store is not None else get_object_store()
        self.locks = locks if locks is not None else get_upload_locks()

    async def store_chunk(
        self,
        upload_id: str,
        chunk_index: int,
        total_chunks: int,
        data: bytes,
    ) -> ChunkAck:
        """
        Persist one chunk and overwrite the upload's metadata record.

        The record's chunksReceived/lastChunkIndex reflect whichever chunk
        was processed last; receivedChunks is a union kept as a hint only.
        Status queries re-probe the chunk keys instead of trusting either.

        Args:
            upload_id: Client-generated upload id
            chunk_index: Index of this chunk, 0 <= chunk_index < total_chunks
            total_chunks: Number of chunks in the upload
            data: Chunk bytes

        Returns:
            ChunkAck for the stored chunk

        Raises:
            InvalidRequestError: If the id, index or size is invalid
        """
        validate_upload_id(upload_id)

        if total_chunks < 1:
            raise InvalidRequestError(f"totalChunks must be positive, got {total_chunks}")
        if not 0 <= chunk_index < total_chunks:
            raise InvalidRequestError(
                f"chunkIndex {chunk_index} out of range for {total_chunks} chunks"
            )
        if len(data) > config.MAX_CHUNK_BYTES:
            raise InvalidRequestError(
                f"Chunk {chunk_index} is {len(data)} bytes, limit is {config.MAX_CHUNK_BYTES}"
            )

        self.store.put(chunk_key(upload_id, chunk_index), data)

        async with self.locks.get(upload_id):
            previous = load_metadata(self.store, upload_id) or {}
            received = set(previous.get("receivedChunks", []))
            received.add(chunk_index)

            record = {
                "uploadId": upload_id,
                "totalChunks": total_chunks,
                "chunksReceived": chunk_index + 1,
                "lastChunkIndex": chunk_index,
                "timestamp": current_millis(),
                "receivedChunks": sorted(received),
            }
            self.store.put(
                metadata_key(upload_id),
                json.dumps(record).encode("utf-8"),
                content_type="application/json",
            )

        logger.info(f"Stored chunk {chunk_index + 1}/{total_chunks} for upload {upload_id} ({len(data)} bytes)")

        return ChunkAck(upload_id=upload_id, chunk_index=chunk_index, size=len(data))
