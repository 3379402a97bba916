"""Recording service: single-request uploads and recording downloads."""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from common.constants import DEFAULT_CONTENT_TYPE
from common.exceptions import InvalidRequestError, NotFoundError, UploadFailedError
from uploadserver.object_store import ObjectStore, StoredObject
from uploadserver.service_locator import get_object_store
from uploadserver.services.finalize_service import guess_content_type
from uploadserver.utils import (
    current_millis,
    default_recording_name,
    get_current_timestamp,
    recording_key,
    recording_path,
    sanitize_filename,
)

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"\.[^.]*$")


@dataclass(frozen=True)
class StoredRecording:
    path: str
    filename: str
    size: int


def audio_filename(filename: str, content_type: str) -> str:
    """
    Append the extension implied by an audio upload's content type.

    audio/mpeg -> .mp3, *webm* -> .webm, *mp4* -> .mp4, anything else -> .dat.
    The name's own extension is respected when it already matches.
    """
    if content_type == "audio/mpeg" or filename.endswith(".mp3"):
        ext = ".mp3"
    elif "webm" in content_type or filename.endswith(".webm"):
        ext = ".webm"
    elif "mp4" in content_type or filename.endswith(".mp4"):
        ext = ".mp4"
    else:
        ext = ".dat"
    return filename if filename.endswith(ext) else filename + ext


def video_filename(filename: str, content_type: str) -> str:
    """
    Normalize a video upload's extension to .mp4 or .webm from its content type.
    """
    if "mp4" in content_type and not filename.endswith(".mp4"):
        return _EXTENSION_RE.sub("", filename) + ".mp4"
    if "webm" in content_type and not filename.endswith(".webm"):
        return _EXTENSION_RE.sub("", filename) + ".webm"
    if "." not in filename:
        return filename + (".mp4" if "mp4" in content_type else ".webm")
    return filename


class RecordingService:
    def __init__(self, store: Optional[ObjectStore] = None):
        self.store = store if store is not None else get_object_store()

    def _put(self, name: str, data: bytes, content_type: str, metadata: Dict[str, str]) -> StoredRecording:
        self.store.put(recording_key(name), data, content_type=content_type, metadata=metadata)
        logger.info(f"Stored recording {name} ({len(data)} bytes, {content_type})")
        return StoredRecording(path=recording_path(name), filename=name, size=len(data))

    def store_direct(
        self,
        data: bytes,
        filename: Optional[str],
        content_type: Optional[str],
        options: Optional[Dict[str, Any]] = None,
    ) -> StoredRecording:
        """
        Store a whole payload received in one request.

        Raises:
            UploadFailedError: If the payload could not be stored
        """
        name = sanitize_filename(filename) or default_recording_name()
        if not content_type or content_type == "application/octet-stream":
            content_type = guess_content_type(name, options)
        try:
            return self._put(
                name,
                data,
                content_type,
                {
                    "processedAt": get_current_timestamp(),
                    "options": json.dumps(options or {}),
                },
            )
        except Exception as e:
            logger.error(f"Direct upload of {name} failed: {e}", exc_info=True)
            raise UploadFailedError(f"Direct upload failed: {e}") from e

    def store_audio(self, data: bytes, filename: Optional[str], content_type: Optional[str]) -> StoredRecording:
        content_type = content_type or ""
        base = sanitize_filename(filename) or f"recording_{current_millis()}"
        name = audio_filename(base, content_type)
        return self._put(name, data, content_type or "application/octet-stream", {})

    def store_video(self, data: bytes, filename: Optional[str], content_type: Optional[str]) -> StoredRecording:
        content_type = content_type or ""
        base = sanitize_filename(filename) or f"recording_{current_millis()}"
        name = video_filename(base, content_type)
        return self._put(name, data, content_type or DEFAULT_CONTENT_TYPE, {})

    def open_recording(self, filename: str) -> StoredObject:
        """
        Fetch a stored recording.

        Raises:
            NotFoundError: If no recording exists under that name
        """
        try:
            name = sanitize_filename(filename)
        except InvalidRequestError:
            name = None
        stored = self.store.get(recording_key(name)) if name else None
        if stored is None:
            raise NotFoundError(filename, f"Recording {filename} not found")
        return stored
