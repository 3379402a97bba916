"""Entry point for the upload server."""

import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.exceptions import (
    InvalidRequestError,
    MissingChunkError,
    NotFoundError,
    UploadError,
    UploadFailedError,
)
from common.logging_config import setup_logging
from uploadserver.config import CORS_ALLOW_ORIGINS, SERVER_HOST, SERVER_PORT, STORAGE_PATH
from uploadserver.routes.recording_routes import router as recording_router
from uploadserver.routes.upload_routes import router as upload_router
from uploadserver.schemas.common import ErrorResponse
from uploadserver.service_locator import get_object_store
from uploadserver.utils import generate_request_id, get_current_timestamp

logger = setup_logging('uploadserver')

SERVICE_NAME = "recvault-upload-server"
SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the object store on application startup.
    """
    logger.info("Upload server starting up...")
    get_object_store()
    logger.info(f"Object store ready at {STORAGE_PATH}")
    yield
    logger.info("Upload server shutting down")


app = FastAPI(
    lifespan=lifespan,
    title="recvault Upload Server",
    description="Chunked, resumable upload backend for browser recordings",
    version=SERVICE_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def error_response(status_code: int, error, code: str, chunk_index: Optional[int] = None) -> JSONResponse:
    body = ErrorResponse(error=str(error), code=code, chunk_index=chunk_index)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = generate_request_id()
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Not found error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return error_response(status.HTTP_404_NOT_FOUND, exc, "UPLOAD_NOT_FOUND")


@app.exception_handler(MissingChunkError)
async def missing_chunk_handler(request: Request, exc: MissingChunkError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Missing chunk error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return error_response(
        status.HTTP_409_CONFLICT, exc, "MISSING_CHUNK", chunk_index=exc.chunk_index
    )


@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid request error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return error_response(status.HTTP_400_BAD_REQUEST, exc, "INVALID_REQUEST")


@app.exception_handler(UploadFailedError)
async def upload_failed_handler(request: Request, exc: UploadFailedError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Upload failed error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "UPLOAD_FAILED")


@app.exception_handler(UploadError)
async def upload_exception_handler(request: Request, exc: UploadError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Upload exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "INTERNAL_ERROR")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    message = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    )
    logger.warning(
        f"Validation error: {message} [request_id={request_id}] path={request.url.path}"
    )
    return error_response(422, message, "INVALID_REQUEST")


app.include_router(upload_router)
app.include_router(recording_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {
        "status": "healthy",
        "timestamp": get_current_timestamp(),
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


@app.get("/health")
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": SERVICE_NAME}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "uploadserver.main:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
    )


if __name__ == "__main__":
    main()
