"""Tests for the buffered value assembler over asynchronous sources."""

from typing import AsyncIterator

import pytest

from gmdb.stream.assembler import BufferedValueStream, aiter_values, iter_values
from gmdb.stream.sources import aiter_chunks

pytestmark = pytest.mark.unit


async def collect(values) -> list:
    return [value async for value in values]


class TestAsyncAssembler:
    """The async path suspends only on the chunk pull and matches the sync path."""

    @pytest.mark.asyncio
    async def test_value_split_across_chunks(self):
        values = await collect(aiter_values(aiter_chunks([b"a\tbc", b"d\te\n"])))

        assert values == [b"a", b"bcd", b"e"]

    @pytest.mark.asyncio
    async def test_two_delimiters(self):
        assert await collect(aiter_values(aiter_chunks([b"\t\t"]))) == [b""]

    @pytest.mark.asyncio
    async def test_matches_sync_path(self, ratings_tsv):
        chunks = [ratings_tsv[i : i + 7] for i in range(0, len(ratings_tsv), 7)]

        async_values = await collect(aiter_values(aiter_chunks(chunks)))

        assert async_values == list(iter_values(chunks))

    @pytest.mark.asyncio
    async def test_unterminated_value_flushed_at_end(self):
        stream = BufferedValueStream(aiter_chunks([b"\tab", b"c"]))

        assert await collect(stream) == [b"abc"]
        assert stream.stats.spanning_values == 1

    @pytest.mark.asyncio
    async def test_source_error_propagates_after_resolvable_values(self):
        async def source() -> AsyncIterator[bytes]:
            yield b"x\ty\tz"
            raise TimeoutError("read timed out")

        stream = BufferedValueStream(source())

        assert await stream.__anext__() == b"x"
        assert await stream.__anext__() == b"y"
        with pytest.raises(TimeoutError, match="read timed out"):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_no_source(self):
        assert await collect(BufferedValueStream()) == []

    @pytest.mark.asyncio
    async def test_sync_source_rejected_with_type_error(self):
        stream = BufferedValueStream([b"a\tb"])

        with pytest.raises(TypeError, match="async iterable chunk source, got list"):
            await stream.__anext__()
