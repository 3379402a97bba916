"""Finalize service: reassembles chunks into the permanent recording."""

import json
import logging
import mimetypes
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from common.constants import DEFAULT_CONTENT_TYPE
from common.exceptions import MissingChunkError, NotFoundError
from uploadserver.object_store import ObjectStore
from uploadserver.service_locator import UploadLockRegistry, get_object_store, get_upload_locks
from uploadserver.services.chunk_service import load_metadata
from uploadserver.utils import (
    chunk_key,
    default_recording_name,
    get_current_timestamp,
    metadata_key,
    recording_key,
    recording_path,
    sanitize_filename,
    validate_upload_id,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinalizedArtifact:
    path: str
    filename: str
    size: int
    upload_id: str


def guess_content_type(filename: str, options: Optional[Dict[str, Any]] = None) -> str:
    """
    Pick a content type for an artifact.

    An explicit options["contentType"] wins, then the filename extension,
    then video/webm.
    """
    if options and isinstance(options.get("contentType"), str):
        return options["contentType"]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or DEFAULT_CONTENT_TYPE


class FinalizeService:
    def __init__(
        self,
        store: Optional[ObjectStore] = None,
        locks: Optional[UploadLockRegistry] = None,
    ):
        self.store = store if store is not None else get_object_store()
        self.locks = locks if locks is not None else get_upload_locks()

    async def finalize(
        self,
        upload_id: str,
        filename: Optional[str],
        options: Optional[Dict[str, Any]] = None,
    ) -> FinalizedArtifact:
        """
        Reassemble all chunks of an upload and store the result.

        Args:
            upload_id: Upload to finalize
            filename: Target name; a timestamped name is used when empty
            options: Processing options copied into the artifact metadata

        Returns:
            FinalizedArtifact with public path and byte size

        Raises:
            NotFoundError: If the upload has no metadata record
            MissingChunkError: If any chunk index is absent; nothing is written
            InvalidRequestError: If the filename is reserved by the store
        """
        validate_upload_id(upload_id)
        requested_name = sanitize_filename(filename)
        options = options or {}

        async with self.locks.get(upload_id):
            metadata = load_metadata(self.store, upload_id)
            if metadata is None:
                raise NotFoundError(upload_id)

            total_chunks = int(metadata["totalChunks"])

            buffers: List[bytes] = []
            for index in range(total_chunks):
                stored = self.store.get(chunk_key(upload_id, index))
                if stored is None:
                    logger.warning(f"Cannot finalize {upload_id}: chunk {index}/{total_chunks} missing")
                    raise MissingChunkError(upload_id, index)
                buffers.append(stored.data)

            payload = b"".join(buffers)

            name = requested_name or default_recording_name()
            content_type = guess_content_type(name, options)

            self.store.put(
                recording_key(name),
                payload,
                content_type=content_type,
                metadata={
                    "originalUploadId": upload_id,
                    "processedAt": get_current_timestamp(),
                    "options": json.dumps(options),
                },
            )
            logger.info(
                f"Finalized upload {upload_id}: {total_chunks} chunks -> {name} ({len(payload)} bytes)"
            )

            self._cleanup(upload_id, total_chunks)

        return FinalizedArtifact(
            path=recording_path(name),
            filename=name,
            size=len(payload),
            upload_id=upload_id,
        )

    def _cleanup(self, upload_id: str, total_chunks: int) -> List[str]:
        """
        Delete temporary chunk keys and the metadata record.

        Failures are logged and skipped; the artifact is already stored.

        Returns:
            Keys that could not be deleted
        """
        failed = []
        keys = [chunk_key(upload_id, index) for index in range(total_chunks)]
        keys.append(metadata_key(upload_id))

        for key in keys:
            try:
                self.store.delete(key)
            except Exception as e:
                logger.warning(f"Failed to delete temporary object {key}: {e}")
                failed.append(key)

        if failed:
            logger.warning(f"Upload {upload_id} left {len(failed)} orphaned objects after finalize")

        return failed
