"""Configuration management for the recvault uploader."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from common.constants import (
    DEFAULT_CHUNK_SIZE_BYTES,
    DEFAULT_CHUNK_THRESHOLD_BYTES,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_SECONDS,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.recvault' / 'config.json'


class Config:
    """Manages uploader configuration stored in a JSON file."""

    DEFAULT_CONFIG = {
        "server_host": os.environ.get("RECVAULT_SERVER_HOST", "localhost"),
        "server_port": int(os.environ.get("RECVAULT_SERVER_PORT", "8000")),
        "timeout": 30,
        "chunk_size": DEFAULT_CHUNK_SIZE_BYTES,
        "chunk_threshold": DEFAULT_CHUNK_THRESHOLD_BYTES,
        "max_retries": DEFAULT_MAX_RETRIES,
        "retry_delay": DEFAULT_RETRY_DELAY_SECONDS,
        "max_concurrent": None,
    }

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.recvault/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.recvault' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        config = self.DEFAULT_CONFIG.copy()

        if not self.config_path.exists():
            self.data = config
            self.save()
            return config

        try:
            with open(self.config_path, 'r') as f:
                config.update(json.load(f))
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config {self.config_path}: {e}")
            return self.DEFAULT_CONFIG.copy()

        return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.warning(f"Could not save config to {self.config_path}: {e}")

    def set(self, key: str, value) -> None:
        """
        Set a known configuration key and save to file.

        Raises:
            KeyError: If the key is not a known setting
        """
        if key not in self.DEFAULT_CONFIG:
            raise KeyError(f"Unknown setting: {key}")
        self.data[key] = value
        self.save()

    def get_base_url(self) -> str:
        """
        Get upload server base URL.

        Returns:
            Base URL string (e.g., "http://localhost:8000")
        """
        host = self.data.get('server_host', 'localhost')
        port = self.data.get('server_port', 8000)
        return f"http://{host}:{port}"

    def get_timeout(self) -> float:
        return self.data.get('timeout', 30)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_delay' (seconds)
        """
        return {
            'max_retries': self.data.get('max_retries', DEFAULT_MAX_RETRIES),
            'retry_delay': self.data.get('retry_delay', DEFAULT_RETRY_DELAY_SECONDS),
        }

    def get_chunk_size(self) -> int:
        return self.data.get('chunk_size', DEFAULT_CHUNK_SIZE_BYTES)

    def get_chunk_threshold(self) -> int:
        return self.data.get('chunk_threshold', DEFAULT_CHUNK_THRESHOLD_BYTES)

    def get_max_concurrent(self) -> Optional[int]:
        return self.data.get('max_concurrent')
