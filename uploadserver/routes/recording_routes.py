"""Single-file recording upload and download routes."""

from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import Response

from common.exceptions import InvalidRequestError
from uploadserver.config import RECORDINGS_CACHE_CONTROL
from uploadserver.schemas.uploads import LegacyUploadResponse
from uploadserver.services.recording_service import RecordingService

router = APIRouter(tags=["Recordings"])


@router.post("/upload", response_model=LegacyUploadResponse, response_model_exclude_none=True)
async def upload_audio(
    file: Optional[UploadFile] = File(None),
    filename: Optional[str] = Form(None),
):
    """
    Store an audio recording, inferring its extension from the content type.
    """
    if file is None:
        raise InvalidRequestError("No file uploaded")

    stored = RecordingService().store_audio(
        data=await file.read(),
        filename=filename or file.filename,
        content_type=file.content_type,
    )

    return LegacyUploadResponse(path=stored.path)


@router.post("/upload-video", response_model=LegacyUploadResponse, response_model_exclude_none=True)
async def upload_video(
    file: Optional[UploadFile] = File(None),
    filename: Optional[str] = Form(None),
):
    """
    Store a video recording as-is; no server-side conversion is performed.
    """
    if file is None:
        raise InvalidRequestError("No file uploaded")

    content_type = file.content_type or ""
    stored = RecordingService().store_video(
        data=await file.read(),
        filename=filename or file.filename,
        content_type=content_type,
    )

    note = (
        "MP4 file stored successfully"
        if "mp4" in content_type
        else "WebM file stored - use browser MP4 recording for MP4 format"
    )
    return LegacyUploadResponse(path=stored.path, converted=False, note=note)


@router.get("/recordings/{filename}")
async def download_recording(filename: str):
    """
    Download a stored recording.

    Raises:
        - 404: Recording not found
    """
    stored = RecordingService().open_recording(filename)

    return Response(
        content=stored.data,
        media_type=stored.content_type or "application/octet-stream",
        headers={"Cache-Control": RECORDINGS_CACHE_CONTROL},
    )
