"""Chunked and direct upload API routes."""

import json
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile

from common.exceptions import InvalidRequestError
from uploadserver.schemas.uploads import (
    ChunkUploadResponse,
    DirectUploadResponse,
    FinalizeUploadRequest,
    FinalizeUploadResponse,
    UploadStatusResponse,
)
from uploadserver.services.chunk_service import ChunkService
from uploadserver.services.finalize_service import FinalizeService
from uploadserver.services.recording_service import RecordingService
from uploadserver.services.status_service import StatusService

router = APIRouter(tags=["Uploads"])


def parse_options(raw: Optional[str]) -> dict:
    """
    Decode the JSON options form field of a direct upload.

    Raises:
        InvalidRequestError: If the field is not a JSON object
    """
    if not raw:
        return {}
    try:
        options = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidRequestError(f"options is not valid JSON: {e}")
    if not isinstance(options, dict):
        raise InvalidRequestError("options must be a JSON object")
    return options


@router.post("/upload-chunk", response_model=ChunkUploadResponse)
async def upload_chunk(
    chunk: UploadFile = File(...),
    upload_id: str = Form(..., alias="uploadId"),
    chunk_index: int = Form(..., alias="chunkIndex"),
    total_chunks: int = Form(..., alias="totalChunks"),
):
    """
    Store one chunk of a chunked upload.

    Parameters:
        - chunk: Chunk bytes (multipart/form-data)
        - uploadId: Client-generated upload id
        - chunkIndex: Zero-based chunk index
        - totalChunks: Number of chunks in the upload

    Raises:
        - 400: Invalid upload id, index out of range or chunk too large
    """
    chunk_service = ChunkService()

    data = await chunk.read()

    ack = await chunk_service.store_chunk(
        upload_id=upload_id,
        chunk_index=chunk_index,
        total_chunks=total_chunks,
        data=data,
    )

    return ChunkUploadResponse(upload_id=ack.upload_id, chunk_index=ack.chunk_index)


@router.get("/upload-status/{upload_id}", response_model=UploadStatusResponse)
async def upload_status(upload_id: str):
    """
    Report which chunk indices have been stored for an upload.

    Raises:
        - 404: Unknown upload id
    """
    status_service = StatusService()

    status = status_service.get_status(upload_id)

    return UploadStatusResponse(
        upload_id=status.upload_id,
        exists=status.exists,
        total_chunks=status.total_chunks,
        received_chunks=status.received_chunks,
        completed_chunks=status.completed_chunks,
        is_complete=status.is_complete,
    )


@router.post("/finalize-upload", response_model=FinalizeUploadResponse)
async def finalize_upload(request: FinalizeUploadRequest):
    """
    Reassemble all chunks into the final recording and drop temporary state.

    Raises:
        - 404: Unknown upload id
        - 409: One or more chunks missing (chunkIndex reports the first)
    """
    finalize_service = FinalizeService()

    artifact = await finalize_service.finalize(
        upload_id=request.upload_id,
        filename=request.filename,
        options=request.options,
    )

    return FinalizeUploadResponse(
        path=artifact.path,
        upload_id=artifact.upload_id,
        size=artifact.size,
        filename=artifact.filename,
    )


@router.post("/process-video-chunks", response_model=DirectUploadResponse)
async def process_video_chunks(
    file: Optional[UploadFile] = File(None),
    filename: Optional[str] = Form(None),
    options: Optional[str] = Form(None),
):
    """
    Store a whole recording sent in a single request.

    Parameters:
        - file: Recording bytes (multipart/form-data)
        - filename: Optional target name (defaults to the part's filename)
        - options: Optional JSON object stored as artifact metadata

    Raises:
        - 400: No file part or malformed options
        - 500: Storage failure
    """
    if file is None:
        raise InvalidRequestError("No file uploaded")

    recording_service = RecordingService()

    parsed_options = parse_options(options)
    data = await file.read()

    stored = recording_service.store_direct(
        data=data,
        filename=filename or file.filename,
        content_type=file.content_type,
        options=parsed_options,
    )

    return DirectUploadResponse(path=stored.path, size=stored.size, filename=stored.filename)
