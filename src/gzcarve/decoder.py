from __future__ import annotations

import logging
from typing import BinaryIO

from gzcarve.config import GzcarveConfig, get_default_config
from gzcarve.exceptions import TruncatedStreamError
from gzcarve.inflater import GzipInflater
from gzcarve.internal.io_helpers import write_all
from gzcarve.internal.window import Window
from gzcarve.types import GzipHeader, InflateResult, InflateStatus

logger = logging.getLogger(__name__)


class DecoderAdapter:
    """Drives a single, reused :class:`GzipInflater` from the input window.

    The member to decode starts at the window's ``consumed_start``. Whenever the
    inflater runs out of input, the window is refilled keeping the bytes the
    inflater hasn't consumed yet.
    """

    def __init__(self, window: Window, config: GzcarveConfig | None = None):
        self.window = window
        self.config = config if config is not None else get_default_config()
        self._inflater: GzipInflater | None = None
        # Window index of the current member's first byte, while it is still
        # in the window.
        self.member_start: int | None = None

    @property
    def inflater(self) -> GzipInflater | None:
        return self._inflater

    def init_member(self, *, preserve_start: bool = False) -> GzipHeader:
        """Parse the header of the member at ``consumed_start`` and return it.

        With ``preserve_start``, refills keep the member's first byte in the
        window for as long as it fits, so the caller can go back to it.
        """
        if self._inflater is None:
            logger.debug("Creating inflater")
            self._inflater = GzipInflater()
        else:
            self._inflater.reset()

        # Name and comment buffers hold capacity - 1 bytes plus the terminator.
        text_max = max(self.config.name_capacity - 1, 0)
        header = self._inflater.request_header(
            text_max, comment_max=text_max, extra_max=self.config.extra_capacity
        )
        self.member_start = self.window.consumed_start

        while not header.done:
            result = self._step(0)
            if result.status == InflateStatus.HEADER_DONE:
                break
            if result.status == InflateStatus.NEED_INPUT:
                self._refill(
                    "Input ended inside a gzip header",
                    keep_start=preserve_start,
                )

        return header

    def decode_payload(self, sink: BinaryIO) -> int:
        """Decompress the rest of the current member into ``sink``.

        Returns the number of decompressed bytes written.
        """
        assert self._inflater is not None and self._inflater.header_done
        self.member_start = None
        out_capacity = self.config.buffer_size
        written = 0

        while True:
            # Inflate until the output buffer is not filled.
            while True:
                result = self._step(out_capacity)
                if result.output:
                    write_all(sink, result.output)
                    written += len(result.output)
                if (
                    result.status == InflateStatus.MEMBER_END
                    or len(result.output) < out_capacity
                ):
                    break

            if result.status == InflateStatus.MEMBER_END:
                logger.info(f"Decoded gzip member: {written} bytes")
                return written

            self._refill("Inflate ran out of input")

    def close(self) -> None:
        if self._inflater is not None:
            self._inflater.close()
            self._inflater = None

    def _step(self, out_capacity: int) -> InflateResult:
        assert self._inflater is not None
        window = self.window
        result = self._inflater.step(
            window.view[window.consumed_start : window.available_end], out_capacity
        )
        window.consumed_start += result.consumed
        return result

    def _refill(self, truncated_message: str, keep_start: bool = False) -> None:
        window = self.window
        keep_from = window.consumed_start
        if (
            keep_start
            and self.member_start is not None
            and window.available_end - self.member_start < window.capacity
        ):
            keep_from = self.member_start

        if self.member_start is not None:
            if keep_from == self.member_start:
                self.member_start = 0
            else:
                logger.debug("Member start no longer fits in the window")
                self.member_start = None

        if window.refill(keep_from) == 0:
            raise TruncatedStreamError(truncated_message)
