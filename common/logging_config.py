"""Logging setup shared by the upload server, the uploader and the shell."""

import logging
import os
import re
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_SECRET_RE = re.compile(
    r'((?:password|api[_-]?key|token|authorization)["\']?\s*[:=]\s*["\']?(?:bearer\s+)?|bearer\s+)([^"\'}\s,]+)',
    re.IGNORECASE,
)


def mask_secrets(value):
    """Replace credential values in a string with ***MASKED***; non-strings pass through."""
    if isinstance(value, str):
        return _SECRET_RE.sub(r'\1***MASKED***', value)
    return value


class SensitiveDataFilter(logging.Filter):
    """Masks credentials that clients sometimes embed in upload options."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = mask_secrets(record.msg)
        if isinstance(record.args, dict):
            record.args = {k: mask_secrets(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(mask_secrets(arg) for arg in record.args)
        return True


def setup_logging(component_name: str, log_level: Optional[str] = None) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Args:
        component_name: Name of the component ('uploadserver', 'uploader', 'cli')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(SensitiveDataFilter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically __name__)."""
    return logging.getLogger(name)


class UploadLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with the upload id it belongs to."""

    def process(self, msg, kwargs):
        return f"[upload_id={self.extra['upload_id']}] {msg}", kwargs


def get_upload_logger(logger: logging.Logger, upload_id: str) -> UploadLoggerAdapter:
    """
    Wrap a logger so its records carry the upload id.

    Args:
        logger: Base logger
        upload_id: Upload the records belong to

    Returns:
        LoggerAdapter bound to upload_id
    """
    return UploadLoggerAdapter(logger, {'upload_id': upload_id})
