"""Sends single chunks to the upload server with bounded retry."""

import asyncio
from typing import Awaitable, Callable, Optional

import httpx

from common.constants import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY_SECONDS
from common.exceptions import TransportError
from common.logging_config import get_logger

logger = get_logger(__name__)


class ChunkRejectedError(Exception):
    """Raised for a non-2xx status or a response whose ok flag is not true."""
    pass


def read_json(response: httpx.Response) -> dict:
    """
    Decode a JSON object response.

    Raises:
        ChunkRejectedError: If the body is not a JSON object
    """
    try:
        body = response.json()
    except ValueError:
        raise ChunkRejectedError(f"HTTP {response.status_code}: response is not JSON")
    if not isinstance(body, dict):
        raise ChunkRejectedError(f"HTTP {response.status_code}: unexpected response {body!r}")
    return body


class ChunkTransport:
    """Posts chunks to /upload-chunk with exponential backoff between attempts."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize chunk transport.

        Args:
            client: httpx.AsyncClient with base_url pointing at the upload server
            max_retries: Extra attempts after the first failure
            retry_delay: Delay before the first retry in seconds, doubled per retry
            sleep: Coroutine used to wait between attempts (asyncio.sleep by default)
        """
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.client = client
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep or asyncio.sleep

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number `attempt` (0-based): retry_delay * 2**attempt."""
        return self.retry_delay * (2 ** attempt)

    async def _post_chunk(self, chunk: bytes, upload_id: str, chunk_index: int, total_chunks: int) -> dict:
        response = await self.client.post(
            "/upload-chunk",
            data={
                "uploadId": upload_id,
                "chunkIndex": str(chunk_index),
                "totalChunks": str(total_chunks),
            },
            files={"chunk": (f"chunk_{chunk_index}", chunk, "application/octet-stream")},
        )

        if not response.is_success:
            raise ChunkRejectedError(f"HTTP {response.status_code}: {response.reason_phrase}")

        body = read_json(response)
        if not body.get("ok"):
            raise ChunkRejectedError(body.get("error") or "Chunk upload failed")

        return body

    async def send(self, chunk: bytes, upload_id: str, chunk_index: int, total_chunks: int) -> dict:
        """
        Send one chunk, retrying up to max_retries more times.

        Args:
            chunk: Chunk bytes
            upload_id: Upload the chunk belongs to
            chunk_index: Index of the chunk
            total_chunks: Number of chunks in the upload

        Returns:
            Server acknowledgement

        Raises:
            TransportError: After max_retries + 1 failed attempts
        """
        attempts = self.max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                return await self._post_chunk(chunk, upload_id, chunk_index, total_chunks)
            except (httpx.HTTPError, ChunkRejectedError) as e:
                last_error = e
                logger.warning(
                    f"Chunk {chunk_index} of upload {upload_id} failed "
                    f"(attempt {attempt + 1}/{attempts}): {e}"
                )

            if attempt < self.max_retries:
                await self._sleep(self.backoff_delay(attempt))

        raise TransportError(chunk_index, attempts, str(last_error)) from last_error
