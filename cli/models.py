"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal, Optional


@dataclass(frozen=True)
class UploadCommand:
    """Upload a local recording."""

    path: str
    name: Optional[str] = None
    resumable: bool = False
    upload_id: Optional[str] = None
    concurrency: Optional[int] = None
    direct: bool = False
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class StatusCommand:
    """Query the server-side status of an upload."""

    upload_id: str
    command: Literal["status"] = "status"


@dataclass(frozen=True)
class ConfigCommand:
    """Show or change a setting."""

    key: Optional[str] = None
    value: Optional[str] = None
    command: Literal["config"] = "config"


CommandRequest = UploadCommand | StatusCommand | ConfigCommand
