"""
Streaming extraction of delimited field values.

Chunks go in, whole values come out; see BufferedValueStream.
"""

from .assembler import BufferedValueStream, aiter_values, iter_values
from .records import RowFramingError, aiter_rows, iter_rows
from .sources import aiter_chunks, aiter_file_chunks, iter_file_chunks
from .tokenizer import (
    Complete,
    ChunkTokenizer,
    Fragment,
    FragmentKind,
    Partial,
    tokenize,
)

__all__ = [
    "BufferedValueStream",
    "ChunkTokenizer",
    "Complete",
    "Fragment",
    "FragmentKind",
    "Partial",
    "RowFramingError",
    "aiter_chunks",
    "aiter_file_chunks",
    "aiter_rows",
    "aiter_values",
    "iter_file_chunks",
    "iter_rows",
    "iter_values",
    "tokenize",
]
