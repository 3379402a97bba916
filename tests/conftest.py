"""Shared pytest fixtures for all tests."""

import pytest
from uploader.config import Config
from uploadserver.object_store import FileObjectStore
from uploadserver.service_locator import set_object_store


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .recvault directory
    """
    config_dir = tmp_path / '.recvault'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def store(tmp_path):
    """
    Install a FileObjectStore under tmp_path as the server's global store.

    Yields:
        The FileObjectStore instance
    """
    object_store = FileObjectStore(tmp_path / 'storage')
    set_object_store(object_store)
    yield object_store
    set_object_store(None)


@pytest.fixture
def sample_payload():
    """Deterministic 10 KiB payload whose bytes encode their own offset."""
    return bytes(i % 251 for i in range(10 * 1024))


@pytest.fixture
def sample_recording(tmp_path, sample_payload):
    """
    Create a sample recording file for CLI uploads.

    Returns:
        Path to the sample .webm file
    """
    file_path = tmp_path / 'demo.webm'
    file_path.write_bytes(sample_payload)
    return file_path
