"""Utility functions for CLI operations."""

import sys

from cli.constants import GREEN, RESET
from common.types import UploadProgress


class ProgressPrinter:
    """Progress callback that redraws one status line on stdout."""

    def __init__(self, filename: str, stream=None):
        """
        Initialize the progress printer.

        Args:
            filename: Display name for the upload
            stream: Output stream (sys.stdout if None)
        """
        self.filename = filename
        self.stream = stream or sys.stdout
        self._started = False

    def __call__(self, event: UploadProgress) -> None:
        self._started = True
        self.stream.write(f"\r{format_progress(self.filename, event)}")
        self.stream.flush()

    def finish(self) -> None:
        """End the progress line if anything was drawn."""
        if self._started:
            self.stream.write('\n')
            self.stream.flush()
            self._started = False


def format_progress(filename: str, event: UploadProgress) -> str:
    """
    Format a progress event as a single status line.

    Example: "Uploading demo.webm: 3/12 chunks (25.0%)"
    """
    return (
        f"Uploading {filename}: {event.chunks_completed}/{event.total_chunks} chunks "
        f"({GREEN}{event.progress:.1f}%{RESET})"
    )


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
