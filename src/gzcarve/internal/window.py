"""A fixed-size window over a sequentially read input stream."""

from __future__ import annotations

import logging
from typing import BinaryIO, Callable

from gzcarve.internal.io_helpers import read_into, stream_position

logger = logging.getLogger(__name__)


# Shortest fixed gzip header; the window must always be able to hold one.
MIN_CAPACITY = 10


class Window:
    """
    Holds the part of the input that has been read but not yet consumed.

    ``buffer[consumed_start:available_end]`` are the valid bytes. The source is
    only ever read forward, so any bytes that should survive a refill have to
    be named with ``keep_from``; they are moved to the start of the buffer and
    keep their offset relative to ``keep_from``.
    """

    def __init__(
        self,
        source: BinaryIO,
        capacity: int = 4096,
        on_read: Callable[[int], object] | None = None,
    ):
        if capacity < MIN_CAPACITY:
            raise ValueError(f"Window capacity must be at least {MIN_CAPACITY} bytes")
        self._source = source
        self.buffer = bytearray(capacity)
        self.view = memoryview(self.buffer)
        self.consumed_start = 0
        self.available_end = 0
        # Absolute stream offset of buffer[0].
        self.base_offset = stream_position(source)
        self.on_read = on_read

    @property
    def capacity(self) -> int:
        return len(self.buffer)

    @property
    def available(self) -> int:
        return self.available_end - self.consumed_start

    @property
    def position(self) -> int:
        """Absolute stream offset of the first unconsumed byte."""
        return self.base_offset + self.consumed_start

    def absolute_offset(self, index: int) -> int:
        return self.base_offset + index

    def refill(self, keep_from: int | None = None) -> int:
        """
        Read more input, keeping ``buffer[keep_from:available_end]`` if given.

        Returns the number of new bytes read, which is 0 at the end of input.
        """
        if keep_from is None:
            kept = 0
            shift = self.available_end
            self.consumed_start = 0
        else:
            if not 0 <= keep_from <= self.available_end:
                raise ValueError(
                    f"keep_from {keep_from} outside of valid range 0..{self.available_end}"
                )
            kept = self.available_end - keep_from
            shift = keep_from
            if kept and shift:
                self.buffer[:kept] = self.buffer[keep_from : self.available_end]
            self.consumed_start = max(self.consumed_start - shift, 0)

        self.base_offset += shift
        self.available_end = kept

        if kept == self.capacity:
            logger.debug("Window is full, nothing can be read")
            return 0

        read = read_into(self._source, self.view[kept:])
        self.available_end = kept + read
        logger.debug(
            "Refilled window at offset %d: kept %d bytes, read %d bytes",
            self.base_offset,
            kept,
            read,
        )
        if read and self.on_read is not None:
            self.on_read(read)
        return read
