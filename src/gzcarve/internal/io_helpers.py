"""Helpers for the input source and output sink handles."""

from __future__ import annotations

import io
import logging
import os
from typing import BinaryIO

from gzcarve.exceptions import OutputExists, ReadError, WriteError

logger = logging.getLogger(__name__)


_PATH_SEPARATORS = {sep for sep in ("/", os.sep, os.altsep) if sep}


def stream_position(stream: BinaryIO) -> int:
    """Return the current position of ``stream``, or 0 if it can't tell."""
    try:
        return stream.tell()
    except (AttributeError, OSError) as e:
        # io.UnsupportedOperation is an OSError; non-seekable pipes and sockets
        # land here.
        logger.debug("Stream %s does not report its position: %s", stream, e)
        return 0


def read_into(stream: BinaryIO, view: memoryview) -> int:
    """Issue a single read into ``view``, returning the number of bytes read."""
    try:
        readinto = getattr(stream, "readinto", None)
        if readinto is not None:
            return readinto(view) or 0

        data = stream.read(len(view))
        if not data:
            return 0
        view[: len(data)] = data
        return len(data)
    except OSError as e:
        raise ReadError(f"Read error: {e}") from e


def write_all(sink: BinaryIO, data: bytes) -> None:
    """Write ``data`` to ``sink`` in full, raising WriteError on a short write."""
    try:
        written = sink.write(data)
    except OSError as e:
        raise WriteError(f"Error writing output: {e}") from e

    # Buffered writers return None when they were given a memoryview and the
    # write was accepted in full.
    if written is not None and written != len(data):
        raise WriteError(
            f"Error writing output: short write ({written} of {len(data)} bytes)"
        )


def open_input(path: str | os.PathLike) -> BinaryIO:
    try:
        return open(path, "rb")
    except OSError as e:
        raise ReadError(f"Can't open input file: {e}") from e


def close_input(stream: BinaryIO) -> None:
    try:
        stream.close()
    except OSError as e:
        raise ReadError(f"Can't close input file: {e}") from e


def has_path_separator(name: str) -> bool:
    return any(sep in name for sep in _PATH_SEPARATORS)


def resolve_output_name(
    embedded_name: str,
    explicit_name: str | os.PathLike | None,
    fallback_name: str,
    output_dir: str | os.PathLike | None = None,
) -> tuple[str, bool]:
    """
    Choose the output file name for an extracted member.

    Returns the path and whether it was generated (as opposed to given by the
    caller). Generated names come from the embedded name when it doesn't try to
    point into another directory, or the fallback name otherwise.
    """
    if explicit_name is not None:
        return os.fspath(explicit_name), False

    if (
        embedded_name
        and not has_path_separator(embedded_name)
        and embedded_name not in (os.curdir, os.pardir)
    ):
        name = embedded_name
    else:
        if embedded_name:
            logger.info(
                f"Ignoring embedded name {embedded_name!r}, it is not a plain file name"
            )
        name = fallback_name

    if output_dir is not None:
        name = os.path.join(os.fspath(output_dir), name)
    return name, True


def open_output(path: str, *, exclusive: bool) -> BinaryIO:
    """Create the output file, refusing to replace it if ``exclusive`` is set."""
    mode = "xb" if exclusive else "wb"
    try:
        return open(path, mode)
    except FileExistsError as e:
        raise OutputExists(path) from e
    except OSError as e:
        raise WriteError(f"Can't open output file {path}: {e}") from e


def close_output(sink: BinaryIO, path: str | None, *, error_pending: bool) -> None:
    """
    Close the output file. If another error is already being raised, a failure
    here is only logged, so that it doesn't hide the original one.
    """
    try:
        sink.close()
    except OSError as e:
        if error_pending:
            logger.error("Error closing output %s: %s", path, e)
            return
        raise WriteError(f"Error closing output {path}: {e}") from e


def is_writable_stream(obj: object) -> bool:
    return isinstance(obj, io.IOBase) or callable(getattr(obj, "write", None))
