"""Tests for the buffered value assembler over synchronous sources."""

import random
from typing import Iterator, List

import pytest

from gmdb.stream.assembler import BufferedValueStream, iter_values

pytestmark = pytest.mark.unit


def split_at(data: bytes, cuts: List[int]) -> List[bytes]:
    """Split data at the given offsets, keeping empty pieces."""
    bounds = [0] + sorted(cuts) + [len(data)]
    return [data[a:b] for a, b in zip(bounds, bounds[1:])]


class TestScenarios:
    """Concrete chunk layouts and the values they must produce."""

    def test_value_split_across_chunks(self):
        assert list(iter_values([b"a\tbc", b"d\te\n"])) == [b"a", b"bcd", b"e"]

    def test_two_delimiters_yield_one_empty_value(self):
        assert list(iter_values([b"\t\t"])) == [b""]

    def test_unterminated_trailing_value_is_flushed(self):
        assert list(iter_values([b"a\tb"])) == [b"a", b"b"]

    def test_trailing_delimiter_yields_nothing_more(self):
        assert list(iter_values([b"a\tb\n"])) == [b"a", b"b"]

    def test_empty_sources(self):
        assert list(iter_values([])) == []
        assert list(iter_values([b""])) == []
        assert list(iter_values([b"", b"", b""])) == []
        assert list(BufferedValueStream()) == []

    def test_delimiter_only_chunk(self):
        assert list(iter_values([b"\n"])) == []

    def test_empty_field_split_across_chunk_boundary(self):
        expected = list(iter_values([b"a\t\tb"]))

        assert expected == [b"a", b"", b"b"]
        assert list(iter_values([b"a\t", b"\tb"])) == expected
        assert list(iter_values([b"a\t", b"", b"\tb"])) == expected

    def test_value_spanning_many_chunks(self):
        chunks = [b"\tt", b"t0", b"", b"00", b"00", b"1\n"]

        assert list(iter_values(chunks)) == [b"tt000001"]

    def test_complete_after_buffered_value_keeps_order(self):
        assert list(iter_values([b"x", b"y\tz\t"])) == [b"xy", b"z"]
        assert list(iter_values([b"x", b"\tz\t"])) == [b"x", b"z"]

    def test_header_row(self, ratings_tsv):
        assert list(iter_values([ratings_tsv]))[:4] == [
            b"tconst",
            b"averageRating",
            b"numVotes",
            b"tt0000001",
        ]


class TestSplitInvariance:
    """Chunk boundaries never change the values produced."""

    def test_every_two_cut_split_matches_single_chunk(self, ratings_tsv):
        data = ratings_tsv + b"tt0000003\t\t\\N\n\t9\n"
        expected = list(iter_values([data]))

        for i in range(len(data) + 1):
            for j in range(i, len(data) + 1):
                assert list(iter_values(split_at(data, [i, j]))) == expected

    def test_one_byte_chunks(self, ratings_tsv):
        expected = list(iter_values([ratings_tsv]))
        one_byte = [ratings_tsv[i : i + 1] for i in range(len(ratings_tsv))]

        assert list(iter_values(one_byte)) == expected

    def test_random_split_join_law(self):
        rng = random.Random(42)
        for _ in range(300):
            body = bytes(rng.choice(b"ab\t\n") for _ in range(rng.randint(0, 40)))
            # start with content and end with a delimiter so no value is implicit
            data = b"x" + body + b"\n"
            cuts = [rng.randint(0, len(data)) for _ in range(rng.randint(0, 6))]

            values = list(iter_values(split_at(data, cuts)))

            assert b"".join(v + b"\t" for v in values) == data.replace(b"\n", b"\t")
            assert values == list(iter_values([data]))


class TestSourceErrors:
    """Errors raised by the chunk source pass through unchanged."""

    def test_values_before_error_then_error(self):
        def source() -> Iterator[bytes]:
            yield b"x\ty\t"
            raise ConnectionError("connection reset")

        stream = BufferedValueStream(source())

        assert next(stream) == b"x"
        assert next(stream) == b"y"
        with pytest.raises(ConnectionError, match="connection reset"):
            next(stream)

    def test_partial_value_is_not_emitted_before_error(self):
        def source() -> Iterator[bytes]:
            yield b"a\tb"
            raise OSError("disk gone")
            yield b"c\t"  # never reached

        stream = BufferedValueStream(source())

        assert next(stream) == b"a"
        with pytest.raises(OSError, match="disk gone"):
            next(stream)


class TestPushInterface:
    """feed/drain/finish used directly, without a source."""

    def test_feed_drain_finish(self):
        stream = BufferedValueStream()

        stream.feed(b"a\tb")
        assert stream.drain() == b"a"
        assert stream.drain() is None

        stream.feed(b"c\t")
        assert stream.drain() == b"bc"
        assert stream.drain() is None
        assert stream.finish() is None

    def test_finish_flushes_pending_bytes(self):
        stream = BufferedValueStream()
        stream.feed(b"\tab")
        stream.drain()
        stream.feed(b"cd")

        assert stream.drain() is None
        assert stream.finish() == b"abcd"
        assert stream.finish() is None


class TestStats:
    """Counters kept while values are emitted."""

    def test_counts(self):
        stream = BufferedValueStream([b"a\tbc", b"d\te\n"])
        values = list(stream)

        assert values == [b"a", b"bcd", b"e"]
        assert stream.stats.chunks == 2
        assert stream.stats.bytes == 8
        assert stream.stats.values == 3
        assert stream.stats.spanning_values == 1
        assert stream.stats.empty_values == 0
        assert stream.stats.max_value_len == 3

    def test_empty_values_counted(self):
        stream = BufferedValueStream([b"a\t", b"\tb\t\t"])
        values = list(stream)

        assert values == [b"a", b"", b"b", b""]
        assert stream.stats.empty_values == 2
