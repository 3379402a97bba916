"""Splits payloads into fixed-size sequential chunks."""

from typing import Iterator, List, Tuple

from common.constants import DEFAULT_CHUNK_SIZE_BYTES
from common.types import ChunkRange


def _check_chunk_size(chunk_size: int) -> None:
    if not isinstance(chunk_size, int) or isinstance(chunk_size, bool) or chunk_size <= 0:
        raise ValueError(f"chunk_size must be a positive integer, got {chunk_size!r}")


def count_chunks(size: int, chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES) -> int:
    """
    Number of chunks needed for a payload: ceil(size / chunk_size).
    """
    _check_chunk_size(chunk_size)
    if size < 0:
        raise ValueError(f"size must not be negative, got {size}")
    return (size + chunk_size - 1) // chunk_size


def split_ranges(size: int, chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES) -> List[ChunkRange]:
    """
    Partition [0, size) into [0, C), [C, 2C), ...; the last range may be short.

    Args:
        size: Payload size in bytes
        chunk_size: Bytes per chunk

    Returns:
        Ranges in ascending index order
    """
    total = count_chunks(size, chunk_size)
    return [
        ChunkRange(index=i, start=i * chunk_size, end=min((i + 1) * chunk_size, size))
        for i in range(total)
    ]


def iter_chunks(payload: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES) -> Iterator[Tuple[int, bytes]]:
    """
    Yield (index, chunk bytes) pairs in ascending order.
    """
    view = memoryview(payload)
    for chunk_range in split_ranges(len(view), chunk_size):
        yield chunk_range.index, bytes(view[chunk_range.start:chunk_range.end])
