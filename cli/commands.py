"""Command handler functions for CLI operations."""

import asyncio
from pathlib import Path
from typing import Optional

from common.exceptions import MissingChunkError, UploadError
from common.logging_config import get_logger
from cli.models import ConfigCommand, StatusCommand, UploadCommand
from cli.utils import ProgressPrinter, format_file_size
from uploader.config import Config
from uploader.orchestrator import ChunkedUploader

logger = get_logger(__name__)


_config: Optional[Config] = None

_INT_SETTINGS = {"server_port", "chunk_size", "chunk_threshold", "max_retries", "max_concurrent"}
_FLOAT_SETTINGS = {"timeout", "retry_delay"}


def get_config() -> Config:
    """
    Get or create global Config instance.

    Returns:
        Config instance backed by ~/.recvault/config.json
    """
    global _config
    if _config is None:
        logger.debug("Loading uploader config")
        _config = Config()
    return _config


async def _run_upload(cmd: UploadCommand, payload: bytes, filename: str, uploader: ChunkedUploader) -> str:
    try:
        if cmd.direct:
            result = await uploader.upload_direct(payload, filename)
        elif cmd.resumable:
            result = await uploader.upload(
                payload,
                filename,
                resumable=True,
                max_concurrent=cmd.concurrency,
                upload_id=cmd.upload_id,
            )
        else:
            result = await uploader.smart_upload(payload, filename, max_concurrent=cmd.concurrency)
    except MissingChunkError as e:
        return f"Error: {e}. Retry with --id {e.upload_id} to resend it"
    except (UploadError, ValueError) as e:
        return f"Error: {e}"

    mode = "direct" if result.direct else f"chunked, upload id {result.upload_id}"
    return f"Uploaded: {result.filename} ({format_file_size(result.size)}, {mode}) -> {result.path}"


def handle_upload(cmd: UploadCommand, uploader: Optional[ChunkedUploader] = None) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with path and upload options
        uploader: Optional ChunkedUploader for dependency injection (testing)

    Returns:
        Success or error message
    """
    path = Path(cmd.path).expanduser()
    if not path.is_file():
        return f"Error: file not found: {cmd.path}"

    payload = path.read_bytes()
    if not payload:
        return f"Error: {cmd.path} is empty"

    filename = cmd.name or path.name
    logger.info(f"Executing upload command: {path} ({len(payload)} bytes) as {filename}")

    if uploader is not None:
        return asyncio.run(_run_upload(cmd, payload, filename, uploader))

    printer = ProgressPrinter(filename)

    async def run() -> str:
        owned = ChunkedUploader.from_config(get_config(), on_progress=printer)
        try:
            return await _run_upload(cmd, payload, filename, owned)
        finally:
            await owned.aclose()

    try:
        return asyncio.run(run())
    finally:
        printer.finish()


def _format_status(status) -> str:
    if not status.exists:
        if status.error:
            return f"Could not query upload {status.upload_id}: {status.error}"
        return f"Upload {status.upload_id} not found"

    received = set(status.received_chunks)
    missing = [i for i in range(status.total_chunks) if i not in received]
    lines = [
        f"Upload: {status.upload_id}",
        f"  Chunks: {status.completed_chunks}/{status.total_chunks}",
        f"  Complete: {'yes' if status.is_complete else 'no'}",
    ]
    if missing:
        preview = ", ".join(str(i) for i in missing[:20])
        more = f" (+{len(missing) - 20} more)" if len(missing) > 20 else ""
        lines.append(f"  Missing: {preview}{more}")
    return "\n".join(lines)


def handle_status(cmd: StatusCommand, uploader: Optional[ChunkedUploader] = None) -> str:
    """
    Handle 'status' command.

    Args:
        cmd: StatusCommand with upload_id
        uploader: Optional ChunkedUploader for dependency injection (testing)

    Returns:
        Formatted upload status
    """
    logger.info(f"Executing status command: upload_id={cmd.upload_id}")

    if uploader is not None:
        status = asyncio.run(uploader.check_upload_status(cmd.upload_id))
        return _format_status(status)

    async def run():
        owned = ChunkedUploader.from_config(get_config())
        try:
            return await owned.check_upload_status(cmd.upload_id)
        finally:
            await owned.aclose()

    return _format_status(asyncio.run(run()))


def _coerce_setting(key: str, raw: str):
    if raw.lower() in ("none", "null", ""):
        return None
    if key in _INT_SETTINGS:
        return int(raw)
    if key in _FLOAT_SETTINGS:
        return float(raw)
    return raw


def handle_config(cmd: ConfigCommand, config: Optional[Config] = None) -> str:
    """
    Handle 'config' command.

    Args:
        cmd: ConfigCommand; without a key the current settings are listed
        config: Optional Config for dependency injection (testing)

    Returns:
        Settings listing or confirmation message
    """
    if config is None:
        config = get_config()

    if cmd.key is None:
        lines = [f"Config file: {config.config_path}"]
        for key in sorted(config.data):
            lines.append(f"  {key} = {config.data[key]}")
        return "\n".join(lines)

    try:
        value = _coerce_setting(cmd.key, cmd.value or "")
    except ValueError:
        return f"Error: invalid value for {cmd.key}: {cmd.value}"

    try:
        config.set(cmd.key, value)
    except KeyError as e:
        return f"Error: {e.args[0]}"

    logger.info(f"Config updated: {cmd.key}={value}")
    return f"Set {cmd.key} = {value}"
