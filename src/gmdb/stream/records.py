"""
Row framing on top of assembled values.

Tabs and newlines are interchangeable at the value layer, so rows are
recovered purely by column count. Nothing here interprets field contents.
"""

from typing import AsyncIterable, AsyncIterator, Iterable, Iterator, List, Tuple

NULL_MARKER = b"\\N"

Row = Tuple[bytes, ...]


class RowFramingError(ValueError):
    """The value stream ended in the middle of a row."""

    def __init__(self, columns: int, leftover: List[bytes]):
        self.columns = columns
        self.leftover = leftover
        super().__init__(
            f"stream ended with {len(leftover)} of {columns} values in the last row"
        )


def _check_columns(columns: int) -> None:
    if columns <= 0:
        raise ValueError(f"columns must be positive, got {columns}")


def iter_rows(values: Iterable[bytes], columns: int) -> Iterator[Row]:
    """Group consecutive values into tuples of ``columns`` values."""
    _check_columns(columns)
    return _group(values, columns)


def _group(values: Iterable[bytes], columns: int) -> Iterator[Row]:
    row: List[bytes] = []
    for value in values:
        row.append(value)
        if len(row) == columns:
            yield tuple(row)
            row = []
    if row:
        raise RowFramingError(columns, row)


def aiter_rows(values: AsyncIterable[bytes], columns: int) -> AsyncIterator[Row]:
    """Async twin of iter_rows."""
    _check_columns(columns)
    return _agroup(values, columns)


async def _agroup(values: AsyncIterable[bytes], columns: int) -> AsyncIterator[Row]:
    row: List[bytes] = []
    async for value in values:
        row.append(value)
        if len(row) == columns:
            yield tuple(row)
            row = []
    if row:
        raise RowFramingError(columns, row)


def decode_value(value: bytes) -> str:
    """Decode a value for display; undecodable bytes become U+FFFD."""
    return value.decode("utf-8", errors="replace")


def is_null(value: bytes) -> bool:
    return value == NULL_MARKER
