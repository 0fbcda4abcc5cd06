"""Chunk sources for local dataset dumps."""

import asyncio
import gzip
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Iterable, Iterator, Union

from .tokenizer import BytesLike

PathLike = Union[str, Path]

DECOMPRESS_MODES = ("auto", "gzip", "none")


def _validate(chunk_size: int, decompress: str) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if decompress not in DECOMPRESS_MODES:
        raise ValueError(
            f"decompress must be one of {', '.join(DECOMPRESS_MODES)}, got {decompress!r}"
        )


def open_dump(path: PathLike, decompress: str = "auto") -> BinaryIO:
    """Open a dump for binary reading, transparently gunzipping when asked."""
    path = Path(path)
    use_gzip = decompress == "gzip" or (decompress == "auto" and path.suffix == ".gz")
    if use_gzip:
        return gzip.open(path, "rb")  # type: ignore[return-value]
    return open(path, "rb")


def iter_file_chunks(
    path: PathLike, chunk_size: int = 64 * 1024, decompress: str = "auto"
) -> Iterator[bytes]:
    """Yield raw chunks of at most chunk_size bytes from a dump file.

    Arguments are validated eagerly; the file is opened on first pull.
    """
    _validate(chunk_size, decompress)
    return _read_chunks(path, chunk_size, decompress)


def _read_chunks(path: PathLike, chunk_size: int, decompress: str) -> Iterator[bytes]:
    with open_dump(path, decompress) as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                return
            yield chunk


def aiter_file_chunks(
    path: PathLike, chunk_size: int = 64 * 1024, decompress: str = "auto"
) -> AsyncIterator[bytes]:
    """Async variant of iter_file_chunks; blocking reads run in a worker thread."""
    _validate(chunk_size, decompress)
    return _aread_chunks(path, chunk_size, decompress)


async def _aread_chunks(
    path: PathLike, chunk_size: int, decompress: str
) -> AsyncIterator[bytes]:
    f = await asyncio.to_thread(open_dump, path, decompress)
    try:
        while True:
            chunk = await asyncio.to_thread(f.read, chunk_size)
            if not chunk:
                return
            yield chunk
    finally:
        f.close()


async def aiter_chunks(chunks: Iterable[BytesLike]) -> AsyncIterator[BytesLike]:
    """Lift a synchronous chunk iterable into an async one."""
    for chunk in chunks:
        yield chunk
        await asyncio.sleep(0)
