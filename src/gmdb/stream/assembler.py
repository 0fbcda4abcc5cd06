"""
Buffered value assembler.

Drives one ChunkTokenizer per chunk and turns fragments into whole field
values. The draining step is synchronous and only looks at data already in
hand; the single suspension point is pulling the next chunk, which is done
either with ``next()`` (sync source) or ``await __anext__()`` (async source).
"""

from typing import AsyncIterable, AsyncIterator, Iterable, Iterator, List, Optional, Union

from ..core.logging import log
from ..core.models import StreamStats
from .tokenizer import BytesLike, ChunkTokenizer

ChunkSource = Union[Iterable[BytesLike], AsyncIterable[BytesLike]]


class BufferedValueStream:
    """Reassemble delimited field values from an arbitrarily chunked source.

    The stream is not thread-safe and must be consumed from one place.
    Errors raised by the source propagate unchanged; buffered state is left
    as it was.
    """

    def __init__(self, source: Optional[ChunkSource] = None):
        self._source = source
        self._chunks: Optional[Union[Iterator[BytesLike], AsyncIterator[BytesLike]]] = None
        self._tokenizer = ChunkTokenizer()
        self._pending: List[bytes] = []
        self._pending_len = 0
        self._open = False  # a delimiter started a value that has not ended yet
        self.stats = StreamStats()

    # -- synchronous core -------------------------------------------------

    def feed(self, chunk: BytesLike) -> None:
        """Start tokenizing a new chunk; call only after drain() returned None."""
        self._tokenizer = ChunkTokenizer(chunk)
        self.stats.record_chunk(self._tokenizer.remaining)

    def drain(self) -> Optional[bytes]:
        """Return the next value resolvable from buffered data, or None for more input."""
        tokenizer = self._tokenizer
        while True:
            fragment = tokenizer.peek()
            if fragment is None:
                return None

            if fragment.leading and (self._pending or self._open):
                # The delimiter ends the value in progress; the fragment
                # stays for the next call.
                return self._flush()

            next(tokenizer)
            if fragment.is_complete:
                self.stats.record_value(len(fragment.data), 1)
                return fragment.data

            if fragment.leading:
                self._open = True
            if fragment.data:
                self._pending.append(fragment.data)
                self._pending_len += len(fragment.data)
            if fragment.trailing:
                return self._flush()

    def finish(self) -> Optional[bytes]:
        """Flush a non-empty unterminated value once the source is exhausted."""
        if not self._pending:
            self._open = False
            return None
        return self._flush()

    def _flush(self) -> bytes:
        pending = self._pending
        if len(pending) == 1:
            value = pending[0]
        else:
            value = b"".join(pending)
        self.stats.record_value(len(value), len(pending))
        self._pending = []
        self._pending_len = 0
        self._open = False
        return value

    # -- synchronous source -------------------------------------------------

    def __iter__(self) -> "BufferedValueStream":
        return self

    def __next__(self) -> bytes:
        while True:
            value = self.drain()
            if value is not None:
                return value

            if self._chunks is None:
                if self._source is None:
                    raise StopIteration
                self._chunks = iter(self._source)  # type: ignore[arg-type]

            try:
                chunk = next(self._chunks)  # type: ignore[arg-type]
            except StopIteration:
                value = self.finish()
                if value is None:
                    self._log_exhausted()
                    raise
                return value
            except Exception as e:
                log.warning("stream.source_error", error=str(e), pending_bytes=self._pending_len)
                raise
            self.feed(chunk)

    # -- asynchronous source ------------------------------------------------

    def __aiter__(self) -> "BufferedValueStream":
        return self

    async def __anext__(self) -> bytes:
        while True:
            value = self.drain()
            if value is not None:
                return value

            if self._chunks is None:
                if self._source is None:
                    raise StopAsyncIteration
                if not hasattr(self._source, "__aiter__"):
                    raise TypeError(
                        "async iteration needs an async iterable chunk source, got "
                        f"{type(self._source).__name__}; use aiter_chunks() to lift it"
                    )
                self._chunks = self._source.__aiter__()

            try:
                chunk = await self._chunks.__anext__()  # type: ignore[union-attr]
            except StopAsyncIteration:
                value = self.finish()
                if value is None:
                    self._log_exhausted()
                    raise
                return value
            except Exception as e:
                log.warning("stream.source_error", error=str(e), pending_bytes=self._pending_len)
                raise
            self.feed(chunk)

    def _log_exhausted(self) -> None:
        log.debug("stream.exhausted", **self.stats.model_dump())


def iter_values(chunks: Iterable[BytesLike]) -> Iterator[bytes]:
    """Yield whole field values from a synchronous chunk iterable."""
    return BufferedValueStream(chunks)


def aiter_values(chunks: AsyncIterable[BytesLike]) -> AsyncIterator[bytes]:
    """Yield whole field values from an asynchronous chunk iterable."""
    return BufferedValueStream(chunks)
