"""Defines custom exceptions used throughout the gzcarve library."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gzcarve.types import InflateErrorCode


class GzcarveError(Exception):
    """Base exception for all errors encountered by gzcarve."""

    pass


class ReadError(GzcarveError):
    """Raised when reading from the input source fails."""

    pass


class WriteError(GzcarveError):
    """Raised when writing to the output sink fails, including short writes."""

    pass


class DecodeError(GzcarveError):
    """
    Raised when the inflate engine finds malformed gzip framing or compressed
    data inside a member.
    """

    def __init__(
        self,
        message: str,
        code: InflateErrorCode | None = None,
        detail: str | None = None,
    ):
        self.code = code
        self.detail = detail
        if code is not None:
            message = f"{message}: {code.value}"
        if detail:
            message = f"{message} - {detail}"
        super().__init__(message)


class TruncatedStreamError(GzcarveError):
    """Raised when the input ends in the middle of a gzip member."""

    pass


class NoDataFound(GzcarveError):
    """Raised when the whole input was scanned without finding any gzip member."""

    pass


class OrdinalOutOfRange(GzcarveError):
    """Raised when the requested member ordinal is larger than the members found."""

    def __init__(self, requested: int, found: int):
        self.requested = requested
        self.found = found
        super().__init__(f"Less than {requested} sections of gzip data.")


class OutputExists(GzcarveError):
    """
    Raised when the output file name was generated (not given explicitly) and a
    file with that name already exists.
    """

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Generated filename '{path}' already exists, not replacing.")
