"""Utility helper functions for the upload server."""

import re
import time
import uuid
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Optional

from common.constants import (
    CHUNK_INDEX_WIDTH,
    METADATA_OBJECT_NAME,
    RECORDINGS_PREFIX,
    SIDECAR_SUFFIX,
    UPLOAD_ID_PATTERN,
    UPLOADS_PREFIX,
)
from common.exceptions import InvalidRequestError

_UPLOAD_ID_RE = re.compile(UPLOAD_ID_PATTERN)


def generate_request_id() -> str:
    """
    Generate a new UUID4 string for request tracing.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def get_current_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.

    Returns:
        Current timestamp as ISO format string
    """
    return datetime.now(timezone.utc).isoformat()


def current_millis() -> int:
    return int(time.time() * 1000)


def validate_upload_id(upload_id: str) -> str:
    """
    Ensure an upload id is safe to embed in a storage key.

    Raises:
        InvalidRequestError: If the id contains anything but [A-Za-z0-9_-]
    """
    if not upload_id or not _UPLOAD_ID_RE.fullmatch(upload_id):
        raise InvalidRequestError(f"Invalid upload id: {upload_id!r}")
    return upload_id


def sanitize_filename(filename: Optional[str]) -> Optional[str]:
    """
    Reduce a client-supplied filename to a bare base name.

    Returns:
        Base name, or None if nothing usable remains

    Raises:
        InvalidRequestError: If the name ends in the store's reserved sidecar suffix
    """
    if not filename:
        return None
    name = PurePosixPath(filename.replace("\\", "/")).name.strip()
    if name in ("", ".", ".."):
        return None
    if name.lower().endswith(SIDECAR_SUFFIX):
        raise InvalidRequestError(f"Filename may not end in {SIDECAR_SUFFIX}: {name!r}")
    return name


def default_recording_name(extension: str = ".webm") -> str:
    return f"recording_{current_millis()}{extension}"


def chunk_key(upload_id: str, chunk_index: int) -> str:
    """
    Storage key for one chunk; the index is zero-padded so keys sort lexically.
    """
    return f"{UPLOADS_PREFIX}/{upload_id}/chunk_{chunk_index:0{CHUNK_INDEX_WIDTH}d}"


def metadata_key(upload_id: str) -> str:
    return f"{UPLOADS_PREFIX}/{upload_id}/{METADATA_OBJECT_NAME}"


def recording_key(filename: str) -> str:
    return f"{RECORDINGS_PREFIX}/{filename}"


def recording_path(filename: str) -> str:
    """Public URL path of a stored recording."""
    return f"/{RECORDINGS_PREFIX}/{filename}"
