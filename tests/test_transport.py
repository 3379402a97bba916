"""Unit tests for ChunkTransport retry behaviour."""

import httpx
import pytest
from common.exceptions import TransportError
from uploader.transport import ChunkTransport


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def flaky_handler(failures, status_code=503):
    """Handler that fails the first `failures` requests, then acknowledges."""
    calls = {'count': 0}

    def handler(request):
        calls['count'] += 1
        if calls['count'] <= failures:
            return httpx.Response(status_code, json={'ok': False, 'error': 'unavailable'})
        return httpx.Response(200, json={'ok': True, 'uploadId': 'u1', 'chunkIndex': 0, 'received': True})

    return handler, calls


def make_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url='http://test')


@pytest.mark.asyncio
async def test_send_succeeds_first_try():
    handler, calls = flaky_handler(0)
    sleep = RecordingSleep()
    async with make_client(handler) as client:
        transport = ChunkTransport(client, max_retries=3, retry_delay=1.0, sleep=sleep)
        body = await transport.send(b'data', 'u1', 0, 1)

    assert body['ok'] is True
    assert calls['count'] == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_send_retries_until_success():
    """Two failures then success: three attempts, backoff 1s then 2s."""
    handler, calls = flaky_handler(2)
    sleep = RecordingSleep()
    async with make_client(handler) as client:
        transport = ChunkTransport(client, max_retries=3, retry_delay=1.0, sleep=sleep)
        await transport.send(b'data', 'u1', 0, 1)

    assert calls['count'] == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_send_exhausts_retries():
    """A chunk that always fails is attempted max_retries + 1 times."""
    handler, calls = flaky_handler(100)
    sleep = RecordingSleep()
    async with make_client(handler) as client:
        transport = ChunkTransport(client, max_retries=3, retry_delay=1.0, sleep=sleep)
        with pytest.raises(TransportError) as exc_info:
            await transport.send(b'data', 'u1', 7, 10)

    assert calls['count'] == 4
    assert exc_info.value.chunk_index == 7
    assert exc_info.value.attempts == 4
    assert 'Chunk 7' in str(exc_info.value)
    assert sleep.delays == [1.0, 2.0, 4.0]
    assert sum(sleep.delays) == 7.0


@pytest.mark.asyncio
async def test_ok_false_counts_as_failure():
    calls = {'count': 0}

    def handler(request):
        calls['count'] += 1
        return httpx.Response(200, json={'ok': False, 'error': 'nope'})

    async with make_client(handler) as client:
        transport = ChunkTransport(client, max_retries=1, retry_delay=0.5, sleep=RecordingSleep())
        with pytest.raises(TransportError) as exc_info:
            await transport.send(b'data', 'u1', 0, 1)

    assert calls['count'] == 2
    assert 'nope' in str(exc_info.value)


@pytest.mark.asyncio
async def test_network_error_is_retried():
    calls = {'count': 0}

    def handler(request):
        calls['count'] += 1
        if calls['count'] == 1:
            raise httpx.ConnectError('connection refused', request=request)
        return httpx.Response(200, json={'ok': True})

    async with make_client(handler) as client:
        transport = ChunkTransport(client, max_retries=2, retry_delay=0.1, sleep=RecordingSleep())
        await transport.send(b'data', 'u1', 0, 1)

    assert calls['count'] == 2


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt():
    handler, calls = flaky_handler(1)
    sleep = RecordingSleep()
    async with make_client(handler) as client:
        transport = ChunkTransport(client, max_retries=0, sleep=sleep)
        with pytest.raises(TransportError):
            await transport.send(b'data', 'u1', 0, 1)

    assert calls['count'] == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_request_carries_chunk_fields():
    seen = {}

    def handler(request):
        seen['path'] = request.url.path
        seen['body'] = request.content
        return httpx.Response(200, json={'ok': True})

    async with make_client(handler) as client:
        await ChunkTransport(client).send(b'payload-bytes', 'upload_1_abc', 2, 5)

    assert seen['path'] == '/upload-chunk'
    assert b'name="uploadId"' in seen['body']
    assert b'upload_1_abc' in seen['body']
    assert b'name="chunkIndex"' in seen['body']
    assert b'name="totalChunks"' in seen['body']
    assert b'payload-bytes' in seen['body']


def test_backoff_delay_doubles():
    transport = ChunkTransport(client=None, retry_delay=0.25)
    assert [transport.backoff_delay(a) for a in range(4)] == [0.25, 0.5, 1.0, 2.0]


def test_negative_retries_rejected():
    with pytest.raises(ValueError):
        ChunkTransport(client=None, max_retries=-1)
