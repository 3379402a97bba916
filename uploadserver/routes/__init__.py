"""API routes package."""

from uploadserver.routes.upload_routes import router as upload_router
from uploadserver.routes.recording_routes import router as recording_router

__all__ = ["upload_router", "recording_router"]
