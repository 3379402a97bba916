"""Upload orchestrator: chunked, resumable and direct uploads of recordings."""

import asyncio
import json
import mimetypes
import random
import string
import time
from typing import Any, Callable, Dict, Iterator, List, Optional

import httpx

from common.constants import DEFAULT_CHUNK_SIZE_BYTES, DEFAULT_CHUNK_THRESHOLD_BYTES
from common.exceptions import MissingChunkError, NotFoundError, UploadFailedError
from common.logging_config import get_logger, get_upload_logger
from common.types import UploadFailure, UploadProgress, UploadResult, UploadStatus
from uploader.chunking import iter_chunks
from uploader.config import Config
from uploader.transport import ChunkRejectedError, ChunkTransport, read_json

logger = get_logger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_upload_id() -> str:
    """
    Generate an upload id: epoch milliseconds plus 9 random base36 characters.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"upload_{int(time.time() * 1000)}_{suffix}"


def _noop(_event) -> None:
    pass


def guess_upload_type(filename: str) -> str:
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


class ChunkedUploader:
    """
    Uploads payloads to the recvault server.

    Small payloads go out in one request; larger ones are split into chunks,
    sent by a bounded pool of workers, then finalized server-side.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES,
        chunk_threshold: int = DEFAULT_CHUNK_THRESHOLD_BYTES,
        transport: Optional[ChunkTransport] = None,
        on_progress: Optional[Callable[[UploadProgress], None]] = None,
        on_error: Optional[Callable[[UploadFailure], None]] = None,
        on_complete: Optional[Callable[[UploadResult], None]] = None,
        max_concurrent: Optional[int] = None,
    ):
        """
        Initialize uploader.

        Args:
            client: httpx.AsyncClient with base_url pointing at the upload server
            chunk_size: Bytes per chunk
            chunk_threshold: Payloads up to this size use the direct path
            transport: Chunk transport (built from client with default retries if None)
            on_progress: Called after each stored chunk
            on_error: Called once when an upload fails
            on_complete: Called once when an upload succeeds
            max_concurrent: Default cap on chunk sends in flight (None = unlimited)
        """
        self.client = client
        self.chunk_size = chunk_size
        self.chunk_threshold = chunk_threshold
        self.transport = transport or ChunkTransport(client)
        self.on_progress = on_progress or _noop
        self.on_error = on_error or _noop
        self.on_complete = on_complete or _noop
        self.max_concurrent = max_concurrent

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "ChunkedUploader":
        """
        Build an uploader and its HTTP client from a Config.

        The caller owns the returned uploader's client and must close it.
        """
        client = httpx.AsyncClient(base_url=config.get_base_url(), timeout=config.get_timeout())
        retry = config.get_retry_config()
        transport = ChunkTransport(client, max_retries=retry['max_retries'], retry_delay=retry['retry_delay'])
        return cls(
            client,
            chunk_size=config.get_chunk_size(),
            chunk_threshold=config.get_chunk_threshold(),
            transport=transport,
            max_concurrent=config.get_max_concurrent(),
            **kwargs,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def smart_upload(
        self,
        payload: bytes,
        filename: str,
        options: Optional[Dict[str, Any]] = None,
        *,
        chunk_threshold: Optional[int] = None,
        **upload_kwargs,
    ) -> UploadResult:
        """
        Upload directly when len(payload) <= threshold, chunked otherwise.

        Args:
            payload: Recording bytes
            filename: Target filename
            options: Processing options stored with the recording
            chunk_threshold: Overrides the uploader's threshold
            **upload_kwargs: Passed to upload() on the chunked path

        Returns:
            UploadResult
        """
        threshold = chunk_threshold if chunk_threshold is not None else self.chunk_threshold

        if len(payload) <= threshold:
            logger.info(f"Payload of {len(payload)} bytes <= {threshold}, using direct upload")
            return await self.upload_direct(payload, filename, options)

        logger.info(f"Payload of {len(payload)} bytes > {threshold}, using chunked upload")
        return await self.upload(payload, filename, options, **upload_kwargs)

    async def upload(
        self,
        payload: bytes,
        filename: str,
        options: Optional[Dict[str, Any]] = None,
        *,
        resumable: bool = False,
        max_concurrent: Optional[int] = None,
        upload_id: Optional[str] = None,
    ) -> UploadResult:
        """
        Chunked upload with optional resume.

        Args:
            payload: Recording bytes (must not be empty)
            filename: Target filename
            options: Processing options stored with the recording
            resumable: Query the server first and skip chunks it already has
            max_concurrent: Cap on chunk sends in flight (None = unlimited)
            upload_id: Reuse an earlier upload id; a fresh one is generated if None

        Returns:
            UploadResult from the finalize step

        Raises:
            TransportError: If any chunk exhausts its retries
            MissingChunkError, NotFoundError, UploadFailedError: From finalize
        """
        if not payload:
            raise ValueError("Cannot upload an empty payload in chunks")

        upload_id = upload_id or generate_upload_id()
        limit = max_concurrent if max_concurrent is not None else self.max_concurrent
        if limit is not None and limit < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {limit}")

        log = get_upload_logger(logger, upload_id)

        try:
            chunks = list(iter_chunks(payload, self.chunk_size))
            total_chunks = len(chunks)
            log.info(f"Starting chunked upload: {total_chunks} chunks of {self.chunk_size} bytes")

            present: List[int] = []
            if resumable:
                status = await self.check_upload_status(upload_id)
                if status.exists and status.total_chunks == total_chunks:
                    present = status.received_chunks
                    log.info(f"Resuming: server already has {len(present)}/{total_chunks} chunks")

            skip = set(present)
            pending = [(index, data) for index, data in chunks if index not in skip]

            await self._send_chunks(upload_id, pending, total_chunks, len(skip), limit)

            log.info("All chunks uploaded, finalizing")
            result = await self.finalize_upload(upload_id, filename, options)

        except Exception as e:
            log.error(f"Upload failed: {e}")
            self.on_error(UploadFailure(upload_id=upload_id, error=str(e), filename=filename))
            raise

        log.info(f"Upload completed: {result.path} ({result.size} bytes)")
        self.on_complete(result)
        return result

    async def _send_chunks(
        self,
        upload_id: str,
        pending: List[tuple],
        total_chunks: int,
        already_completed: int,
        limit: Optional[int],
    ) -> None:
        """
        Send pending chunks with at most `limit` in flight.

        Each worker pulls the next chunk from a shared ascending iterator,
        so dispatch order is ascending while completions may interleave.
        After the first failure no new chunks are dispatched.
        """
        if not pending:
            return

        queue: Iterator[tuple] = iter(pending)
        completed = already_completed
        failed = False

        async def worker() -> None:
            nonlocal completed, failed
            for index, data in queue:
                if failed:
                    return
                try:
                    await self.transport.send(data, upload_id, index, total_chunks)
                except Exception:
                    failed = True
                    raise
                completed += 1
                self.on_progress(UploadProgress(
                    upload_id=upload_id,
                    chunk_index=index,
                    total_chunks=total_chunks,
                    progress=completed / total_chunks * 100,
                    chunks_completed=completed,
                ))

        workers = len(pending) if limit is None else min(limit, len(pending))
        results = await asyncio.gather(*(worker() for _ in range(workers)), return_exceptions=True)

        for result in results:
            if isinstance(result, BaseException):
                raise result

    async def check_upload_status(self, upload_id: str) -> UploadStatus:
        """
        Ask the server which chunks of an upload it holds.

        Never raises: unknown uploads and failures both report exists=False.
        """
        try:
            response = await self.client.get(f"/upload-status/{upload_id}")
            if response.status_code == 404:
                return UploadStatus(upload_id=upload_id, exists=False)
            if not response.is_success:
                raise ChunkRejectedError(f"HTTP {response.status_code}: {response.reason_phrase}")

            body = read_json(response)
            return UploadStatus(
                upload_id=upload_id,
                exists=True,
                total_chunks=body.get("totalChunks", 0),
                received_chunks=list(body.get("receivedChunks", [])),
                completed_chunks=body.get("completedChunks", 0),
                is_complete=bool(body.get("isComplete", False)),
            )
        except (httpx.HTTPError, ChunkRejectedError) as e:
            logger.warning(f"Upload status check failed for {upload_id}: {e}")
            return UploadStatus(upload_id=upload_id, exists=False, error=str(e))

    async def finalize_upload(
        self,
        upload_id: str,
        filename: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> UploadResult:
        """
        Ask the server to reassemble the upload.

        Raises:
            MissingChunkError: If the server reports a missing chunk
            NotFoundError: If the server does not know the upload
            UploadFailedError: For any other failure
        """
        try:
            response = await self.client.post(
                "/finalize-upload",
                json={"uploadId": upload_id, "filename": filename, "options": options or {}},
            )
            body = read_json(response)
        except (httpx.HTTPError, ChunkRejectedError) as e:
            raise UploadFailedError(f"Upload finalization failed: {e}") from e

        if response.is_success and body.get("ok"):
            return UploadResult(
                path=body["path"],
                filename=body.get("filename", filename),
                size=body["size"],
                upload_id=upload_id,
            )

        code = body.get("code")
        if code == "MISSING_CHUNK":
            raise MissingChunkError(upload_id, body.get("chunkIndex", -1))
        if code == "UPLOAD_NOT_FOUND":
            raise NotFoundError(upload_id, body.get("error"))
        raise UploadFailedError(body.get("error") or f"Upload finalization failed: HTTP {response.status_code}")

    async def upload_direct(
        self,
        payload: bytes,
        filename: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> UploadResult:
        """
        Send the whole payload in one multipart request.

        Raises:
            UploadFailedError: On any network, HTTP or server-reported failure
        """
        try:
            response = await self.client.post(
                "/process-video-chunks",
                data={"filename": filename, "options": json.dumps(options or {})},
                files={"file": (filename, payload, guess_upload_type(filename))},
            )
            if not response.is_success:
                raise ChunkRejectedError(f"HTTP {response.status_code}: {response.reason_phrase}")
            body = read_json(response)
            if not body.get("ok"):
                raise ChunkRejectedError(body.get("error") or "Direct upload failed")
        except (httpx.HTTPError, ChunkRejectedError) as e:
            logger.error(f"Direct upload of {filename} failed: {e}")
            self.on_error(UploadFailure(upload_id=None, error=str(e), filename=filename, direct=True))
            raise UploadFailedError(f"Direct upload failed: {e}") from e

        result = UploadResult(
            path=body["path"],
            filename=body.get("filename", filename),
            size=body["size"],
            direct=True,
        )
        self.on_complete(result)
        return result
