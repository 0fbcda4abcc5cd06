"""
Chunk-local tokenizer for tab/newline delimited dumps.

A chunk is scanned front to back. Each step strips at most one leading
delimiter, then classifies the bytes up to the next delimiter (or the end
of the chunk) as a Complete or Partial fragment. The delimiter that ends a
fragment is left in place and becomes the leading byte of the next step.
"""

import re
from enum import Enum
from typing import Iterator, NamedTuple, Optional, Union

DELIMITERS = b"\t\n"
_DELIMITER_RE = re.compile(rb"[\t\n]")

BytesLike = Union[bytes, bytearray, memoryview]


class FragmentKind(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"


class Fragment(NamedTuple):
    """A classified byte range of one chunk, delimiters excluded."""

    data: bytes
    leading: bool  # a delimiter was stripped from the front
    trailing: bool  # a delimiter follows inside the same chunk

    @property
    def kind(self) -> FragmentKind:
        if self.leading and self.trailing:
            return FragmentKind.COMPLETE
        return FragmentKind.PARTIAL

    @property
    def is_complete(self) -> bool:
        return self.leading and self.trailing


def Complete(data: bytes) -> Fragment:
    return Fragment(data, True, True)


def Partial(data: bytes, leading: bool = False, trailing: bool = False) -> Fragment:
    if leading and trailing:
        raise ValueError("a fragment flanked by delimiters is Complete")
    return Fragment(data, leading, trailing)


class ChunkTokenizer:
    """Lazy, single-pass iterator of fragments over one chunk."""

    __slots__ = ("_buf", "_pos", "_peeked")

    def __init__(self, chunk: BytesLike = b""):
        self._buf = chunk if isinstance(chunk, bytes) else bytes(chunk)
        self._pos = 0
        self._peeked: Optional[Fragment] = None

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._pos

    def __iter__(self) -> Iterator[Fragment]:
        return self

    def __next__(self) -> Fragment:
        if self._peeked is not None:
            fragment, self._peeked = self._peeked, None
            return fragment
        fragment = self._step()
        if fragment is None:
            raise StopIteration
        return fragment

    def peek(self) -> Optional[Fragment]:
        """Return the next fragment without consuming it, or None when empty."""
        if self._peeked is None:
            self._peeked = self._step()
        return self._peeked

    def _step(self) -> Optional[Fragment]:
        buf, pos = self._buf, self._pos
        end = len(buf)
        if pos >= end:
            return None

        leading = buf[pos] in DELIMITERS
        start = pos + 1 if leading else pos
        match = _DELIMITER_RE.search(buf, pos + 1)

        if match is not None:
            i = match.start()
            self._pos = i
            return Fragment(buf[start:i], leading, True)

        self._pos = end
        return Fragment(buf[start:end], leading, False)


def tokenize(chunk: BytesLike) -> Iterator[Fragment]:
    """Iterate the fragments of a single chunk."""
    return ChunkTokenizer(chunk)
