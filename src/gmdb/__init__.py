"""gmdb: reassemble field values from chunked tab/newline delimited dumps."""

__version__ = "0.1.0"
