from __future__ import annotations

import logging

from gzcarve.config import GzcarveConfig, get_default_config
from gzcarve.header_check import GZ_HEADER_LEN, GZIP_MAGIC, check_header
from gzcarve.internal.window import Window
from gzcarve.types import ScanState

logger = logging.getLogger(__name__)

_MAGIC_FIRST_BYTE = GZIP_MAGIC[0]


class StreamScanner:
    """Finds the next position in the window that looks like a gzip header.

    On success the window's ``consumed_start`` points at the accepted header,
    ready for the decoder to read from.
    """

    def __init__(
        self,
        window: Window,
        *,
        strict: bool | None = None,
        config: GzcarveConfig | None = None,
    ):
        self.window = window
        self.config = config if config is not None else get_default_config()
        self.strict = self.config.strict if strict is None else strict
        self.state = ScanState.SEARCHING
        self.rejected = 0

    @property
    def member_offset(self) -> int:
        """Absolute offset of the accepted candidate, valid in the FOUND state."""
        assert self.state == ScanState.FOUND
        return self.window.position

    def find_next(self) -> ScanState:
        """Scan forward from the first unconsumed byte. Returns FOUND or EXHAUSTED."""
        window = self.window
        pos = window.consumed_start
        self.state = ScanState.SEARCHING

        while True:
            if pos >= window.available_end:
                window.refill()
                pos = window.consumed_start
                if pos >= window.available_end:
                    self.state = ScanState.EXHAUSTED
                    return self.state

            pos = window.buffer.find(_MAGIC_FIRST_BYTE, pos, window.available_end)
            if pos == -1:
                pos = window.available_end
                continue

            if pos + GZ_HEADER_LEN > window.available_end:
                # Keep the partial header across the refill.
                self.state = ScanState.HEADER_PENDING
                window.refill(keep_from=pos)
                pos = 0
                # Pipes may return less than asked for.
                while GZ_HEADER_LEN > window.available_end and window.refill(keep_from=0):
                    pass
                if pos + GZ_HEADER_LEN > window.available_end:
                    logger.debug(
                        "Input ends %d bytes after a candidate at offset %d",
                        window.available_end - pos,
                        window.absolute_offset(pos),
                    )
                    self.state = ScanState.EXHAUSTED
                    return self.state
                self.state = ScanState.SEARCHING

            if check_header(window.buffer, pos, self.strict, config=self.config):
                window.consumed_start = pos
                self.state = ScanState.FOUND
                logger.debug(
                    "Found gzip header candidate at offset %d", window.position
                )
                return self.state

            # Only skip the rejected byte itself; the next one may start a
            # header (e.g. 1f 1f 8b 08 ...).
            self.rejected += 1
            pos += 1

    def skip_member_start(self, member_start: int | None = None) -> None:
        """Move one byte past the accepted header so it is not found again.

        ``member_start`` is the window index of the header when the window was
        refilled since it was found; by default the header is assumed to still
        be at ``consumed_start``.
        """
        assert self.state == ScanState.FOUND
        if member_start is None:
            member_start = self.window.consumed_start
        self.window.consumed_start = member_start + 1
        self.state = ScanState.SEARCHING
