from __future__ import annotations


class PQRunnerError(Exception):
    """Base class for errors raised by pqrunner."""


class FileReadError(PQRunnerError):
    """The questions file could not be opened or read."""


class ParseError(PQRunnerError):
    """The questions file is not valid delimited-row data."""


class StreamError(PQRunnerError):
    """A query stream failed (HTTP status, transport or protocol error)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ChunkDecodeError(StreamError):
    """A streamed line could not be decoded into a known chunk."""
