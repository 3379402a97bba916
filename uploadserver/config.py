"""Configuration settings for the upload server."""

import os
from common.constants import DEFAULT_MAX_CHUNK_BYTES


STORAGE_PATH = os.environ.get("RECVAULT_STORAGE_PATH", "/app/data/storage")

SERVER_HOST = os.environ.get("RECVAULT_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("RECVAULT_PORT", "8000"))

MAX_CHUNK_BYTES = int(os.environ.get("RECVAULT_MAX_CHUNK_BYTES", str(DEFAULT_MAX_CHUNK_BYTES)))

CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("RECVAULT_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

RECORDINGS_CACHE_CONTROL = "public, max-age=31536000"
