"""Tests for upload server services used directly."""

import asyncio
import json

import pytest
from common.exceptions import InvalidRequestError, MissingChunkError, NotFoundError, UploadFailedError
from uploadserver.object_store import FileObjectStore
from uploadserver.service_locator import UploadLockRegistry
from uploadserver.services import ChunkService, FinalizeService, RecordingService, StatusService
from uploadserver.services.chunk_service import load_metadata
from uploadserver.services.finalize_service import guess_content_type
from uploadserver.services.recording_service import audio_filename, video_filename
from uploadserver.utils import chunk_key, metadata_key


class FlakyDeleteStore(FileObjectStore):
    """FileObjectStore whose deletes of chunk keys fail."""

    def delete(self, key):
        if '/chunk_' in key:
            raise OSError('permission denied')
        return super().delete(key)


class BrokenPutStore(FileObjectStore):
    def put(self, key, data, content_type=None, metadata=None):
        raise OSError('disk full')


@pytest.fixture
def file_store(tmp_path):
    return FileObjectStore(tmp_path / 'objects')


@pytest.mark.asyncio
async def test_concurrent_chunks_all_recorded(file_store):
    """Out-of-order concurrent writes leave every chunk and a full union hint."""
    service = ChunkService(store=file_store, locks=UploadLockRegistry())

    await asyncio.gather(*(
        service.store_chunk('upload_1_conc', index, 8, bytes([index]))
        for index in (5, 1, 7, 0, 3, 2, 6, 4)
    ))

    record = load_metadata(file_store, 'upload_1_conc')
    assert record['totalChunks'] == 8
    assert record['receivedChunks'] == list(range(8))
    assert 'chunksReceived' in record
    assert 'lastChunkIndex' in record
    assert 'timestamp' in record

    status = StatusService(store=file_store).get_status('upload_1_conc')
    assert status.is_complete is True


@pytest.mark.asyncio
async def test_store_chunk_rejects_zero_total(file_store):
    with pytest.raises(InvalidRequestError):
        await ChunkService(store=file_store).store_chunk('upload_1', 0, 0, b'x')


def test_status_unknown_upload(file_store):
    with pytest.raises(NotFoundError):
        StatusService(store=file_store).get_status('upload_unknown')


@pytest.mark.asyncio
async def test_finalize_survives_cleanup_failure(tmp_path):
    store = FlakyDeleteStore(tmp_path / 'objects')
    locks = UploadLockRegistry()
    chunks = ChunkService(store=store, locks=locks)
    for index in range(3):
        await chunks.store_chunk('upload_1_flaky', index, 3, b'ab')

    artifact = await FinalizeService(store=store, locks=locks).finalize('upload_1_flaky', 'out.webm')

    assert artifact.size == 6
    assert store.get('recordings/out.webm').data == b'ababab'
    assert store.exists(chunk_key('upload_1_flaky', 0))
    assert not store.exists(metadata_key('upload_1_flaky'))
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_finalize_missing_first_chunk(file_store):
    chunks = ChunkService(store=file_store, locks=UploadLockRegistry())
    await chunks.store_chunk('upload_1_first', 1, 2, b'b')

    with pytest.raises(MissingChunkError) as exc_info:
        await FinalizeService(store=file_store).finalize('upload_1_first', 'x.webm')

    assert exc_info.value.chunk_index == 0


@pytest.mark.asyncio
async def test_finalize_content_type_from_options(file_store):
    await ChunkService(store=file_store).store_chunk('upload_1_ct', 0, 1, b'a')
    await FinalizeService(store=file_store).finalize('upload_1_ct', 'clip.bin', {'contentType': 'video/mp4'})

    stored = file_store.get('recordings/clip.bin')
    assert stored.content_type == 'video/mp4'
    assert json.loads(stored.metadata['options']) == {'contentType': 'video/mp4'}


def test_guess_content_type_defaults_to_webm():
    assert guess_content_type('recording_123') == 'video/webm'
    assert guess_content_type('a.mp4') == 'video/mp4'


def test_direct_store_failure_wrapped(tmp_path):
    service = RecordingService(store=BrokenPutStore(tmp_path / 'objects'))
    with pytest.raises(UploadFailedError) as exc_info:
        service.store_direct(b'data', 'a.webm', 'video/webm')
    assert 'disk full' in str(exc_info.value)


def test_direct_store_default_name(file_store):
    stored = RecordingService(store=file_store).store_direct(b'data', None, None)
    assert stored.filename.startswith('recording_')
    assert stored.path == f'/recordings/{stored.filename}'


@pytest.mark.parametrize('filename,content_type,expected', [
    ('a', 'audio/mpeg', 'a.mp3'),
    ('a', 'audio/webm', 'a.webm'),
    ('a', 'audio/mp4', 'a.mp4'),
    ('a', '', 'a.dat'),
    ('a.webm', '', 'a.webm'),
])
def test_audio_filename(filename, content_type, expected):
    assert audio_filename(filename, content_type) == expected


@pytest.mark.parametrize('filename,content_type,expected', [
    ('a.webm', 'video/mp4', 'a.mp4'),
    ('a.mp4', 'video/webm', 'a.webm'),
    ('a', 'video/mp4', 'a.mp4'),
    ('a', '', 'a.webm'),
    ('a.mkv', '', 'a.mkv'),
])
def test_video_filename(filename, content_type, expected):
    assert video_filename(filename, content_type) == expected


def test_injected_lock_registry_is_used(file_store):
    """An empty registry passed in is kept, not swapped for the global one."""
    locks = UploadLockRegistry()
    assert ChunkService(store=file_store, locks=locks).locks is locks
    assert FinalizeService(store=file_store, locks=locks).locks is locks


@pytest.mark.asyncio
async def test_lock_registry_does_not_retain_finished_uploads(file_store):
    locks = UploadLockRegistry()
    chunks = ChunkService(store=file_store, locks=locks)
    for n in range(50):
        await chunks.store_chunk(f'upload_abandoned_{n}', 0, 2, b'x')

    with pytest.raises(MissingChunkError):
        await FinalizeService(store=file_store, locks=locks).finalize('upload_abandoned_0', 'x.webm')
    with pytest.raises(NotFoundError):
        await FinalizeService(store=file_store, locks=locks).finalize('upload_never_started', 'x.webm')

    assert len(locks) == 0


@pytest.mark.asyncio
async def test_waiter_shares_lock_with_holder():
    locks = UploadLockRegistry()
    holder = locks.get('upload_1_shared')
    async with holder:
        assert locks.get('upload_1_shared') is holder
        assert len(locks) == 1


@pytest.mark.asyncio
async def test_late_chunk_waits_on_finalize_lock(file_store):
    locks = UploadLockRegistry()
    chunks = ChunkService(store=file_store, locks=locks)
    await chunks.store_chunk('upload_1_late', 0, 1, b'a')

    finalize = FinalizeService(store=file_store, locks=locks)
    lock = locks.get('upload_1_late')
    await lock.acquire()
    try:
        finalizing = asyncio.ensure_future(finalize.finalize('upload_1_late', 'late.webm'))
        late = asyncio.ensure_future(chunks.store_chunk('upload_1_late', 0, 1, b'b'))
        await asyncio.sleep(0)
        assert locks.get('upload_1_late') is lock
    finally:
        lock.release()

    await asyncio.gather(finalizing, late)
    del lock
    assert file_store.exists('recordings/late.webm')
    assert len(locks) == 0


def test_reserved_filename_rejected_for_direct_store(file_store):
    with pytest.raises(InvalidRequestError):
        RecordingService(store=file_store).store_direct(b'data', 'notes.meta.json', 'video/webm')


def test_reserved_filename_is_not_found_on_download(file_store):
    with pytest.raises(NotFoundError):
        RecordingService(store=file_store).open_recording('notes.meta.json')
