"""Byte-addressable object store used for chunks, upload metadata and recordings."""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from common.constants import SIDECAR_SUFFIX

logger = logging.getLogger(__name__)


@dataclass
class StoredObject:
    """
    An object read back from the store.
    """
    key: str
    data: bytes
    content_type: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.data)


class ObjectStore(ABC):
    """
    Durable key -> bytes store with per-object content type and metadata.
    """

    @abstractmethod
    def put(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        ...

    @abstractmethod
    def get(self, key: str) -> Optional[StoredObject]:
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        ...


class FileObjectStore(ObjectStore):
    """
    ObjectStore backed by a directory tree.

    Each object is a file at <root>/<key>; content type and custom metadata
    live in a JSON sidecar next to it.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        """
        Map a key to a file path inside the root.

        Raises:
            ValueError: If the key escapes the store root
        """
        path = (self.root / key).resolve()
        try:
            path.relative_to(self.root.resolve())
        except ValueError:
            raise ValueError(f"Key escapes store root: {key!r}")
        if path.name.endswith(SIDECAR_SUFFIX):
            raise ValueError(f"Reserved key suffix: {key!r}")
        return path

    @staticmethod
    def _sidecar_for(path: Path) -> Path:
        return path.with_name(path.name + SIDECAR_SUFFIX)

    @staticmethod
    def _atomic_write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def put(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Write an object, replacing any previous value.

        Args:
            key: Object key (slash-separated)
            data: Raw bytes
            content_type: Optional MIME type
            metadata: Optional custom string metadata

        Raises:
            OSError: If the write fails
        """
        path = self._path_for(key)
        self._atomic_write(path, bytes(data))

        sidecar = self._sidecar_for(path)
        if content_type or metadata:
            payload = {"content_type": content_type, "metadata": metadata or {}}
            self._atomic_write(sidecar, json.dumps(payload).encode("utf-8"))
        elif sidecar.exists():
            sidecar.unlink()

        logger.debug(f"Stored object {key} ({len(data)} bytes)")

    def get(self, key: str) -> Optional[StoredObject]:
        """
        Read an object.

        Returns:
            StoredObject, or None if the key does not exist
        """
        path = self._path_for(key)
        if not path.is_file():
            return None

        data = path.read_bytes()
        content_type = None
        metadata: Dict[str, str] = {}

        sidecar = self._sidecar_for(path)
        if sidecar.exists():
            try:
                payload = json.loads(sidecar.read_text())
                content_type = payload.get("content_type")
                metadata = payload.get("metadata") or {}
            except json.JSONDecodeError as e:
                logger.warning(f"Corrupt metadata sidecar for {key}: {e}")

        return StoredObject(key=key, data=data, content_type=content_type, metadata=metadata)

    def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def delete(self, key: str) -> bool:
        """
        Delete an object and its sidecar.

        Returns:
            True if the object existed, False otherwise
        """
        path = self._path_for(key)
        sidecar = self._sidecar_for(path)
        if sidecar.exists():
            sidecar.unlink()

        if not path.is_file():
            return False

        path.unlink()
        self._prune_empty_dirs(path.parent)
        return True

    def _prune_empty_dirs(self, directory: Path) -> None:
        root = self.root.resolve()
        while directory != root and directory.is_dir() and not any(directory.iterdir()):
            directory.rmdir()
            directory = directory.parent

