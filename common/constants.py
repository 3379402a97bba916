"""Project-wide constants (chunk sizes, retry defaults, storage key layout)."""

DEFAULT_CHUNK_SIZE_BYTES: int = 1024 * 1024  # 1 MiB per chunk
DEFAULT_CHUNK_THRESHOLD_BYTES: int = 5 * 1024 * 1024  # above this, uploads are chunked
DEFAULT_MAX_CHUNK_BYTES: int = 16 * 1024 * 1024

DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY_SECONDS: float = 1.0

CHUNK_INDEX_WIDTH: int = 6

UPLOADS_PREFIX: str = "uploads"
RECORDINGS_PREFIX: str = "recordings"
METADATA_OBJECT_NAME: str = "metadata.json"
SIDECAR_SUFFIX: str = ".meta.json"

DEFAULT_CONTENT_TYPE: str = "video/webm"
UPLOAD_ID_PATTERN: str = r"^[A-Za-z0-9_-]{1,128}$"
