"""Service locator for the object store and per-upload locks."""

import asyncio
import weakref
from pathlib import Path
from typing import Optional

from uploadserver import config
from uploadserver.object_store import FileObjectStore, ObjectStore

_object_store: Optional[ObjectStore] = None


class UploadLockRegistry:
    """
    One asyncio.Lock per upload id.

    Serializes metadata read-modify-write and finalize for the same upload;
    different uploads never contend. Entries are weak: a lock lives only
    while some coroutine holds or awaits it.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, upload_id: str) -> asyncio.Lock:
        lock = self._locks.get(upload_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[upload_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


_upload_locks = UploadLockRegistry()


def set_object_store(store: Optional[ObjectStore]) -> None:
    """Set global object store instance"""
    global _object_store
    _object_store = store


def get_object_store() -> ObjectStore:
    """Get global object store instance, creating the on-disk store lazily"""
    global _object_store
    if _object_store is None:
        _object_store = FileObjectStore(Path(config.STORAGE_PATH))
    return _object_store


def get_upload_locks() -> UploadLockRegistry:
    """Get global per-upload lock registry"""
    return _upload_locks
