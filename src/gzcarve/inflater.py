"""Incremental decoder for a single gzip member.

The DEFLATE payload is handled by zlib's raw decompressor. The gzip framing
around it (RFC 1952 header with its optional sections, and the CRC32/ISIZE
trailer) is parsed here, so that the header fields can be captured and the
decoder can be driven with whatever part of the input happens to be in memory.
"""

from __future__ import annotations

import logging
import struct
import zlib
from enum import IntEnum

from gzcarve.exceptions import DecodeError
from gzcarve.header_check import (
    GZ_HEADER_LEN,
    GZIP_MAGIC,
    GZIP_METHOD_DEFLATE,
    RESERVED_FLAG_BITS,
)
from gzcarve.types import GzipHeader, InflateErrorCode, InflateResult, InflateStatus

logger = logging.getLogger(__name__)

FHCRC = 0x02
FEXTRA = 0x04
FNAME = 0x08
FCOMMENT = 0x10

GZIP_TRAILER_LEN = 8


class _Phase(IntEnum):
    FIXED = 0
    EXTRA_LEN = 1
    EXTRA = 2
    NAME = 3
    COMMENT = 4
    HCRC = 5
    BODY = 6
    TRAILER = 7
    DONE = 8


_OPTIONAL_SECTIONS = (
    (_Phase.EXTRA_LEN, FEXTRA),
    (_Phase.NAME, FNAME),
    (_Phase.COMMENT, FCOMMENT),
    (_Phase.HCRC, FHCRC),
)

# Phases whose content has a known length, collected in self._field.
_FIXED_SIZE_PHASES = (
    _Phase.FIXED,
    _Phase.EXTRA_LEN,
    _Phase.EXTRA,
    _Phase.HCRC,
    _Phase.TRAILER,
)


class GzipInflater:
    """A reusable gzip-only streaming decoder.

    Usage mirrors zlib's own streaming API: :meth:`reset` before each member,
    :meth:`request_header` to capture header fields, then call :meth:`step`
    with the available input until it reports ``MEMBER_END``. Each step
    reports how many input bytes were consumed; unconsumed bytes must be
    passed again on the next call.
    """

    def __init__(self) -> None:
        self._closed = False
        self.reset()

    def reset(self) -> None:
        if self._closed:
            raise ValueError("Inflater is closed")
        self._phase = _Phase.FIXED
        self._field = bytearray()
        self._field_len = GZ_HEADER_LEN
        self._raw_header = bytearray()
        self._name_max = 0
        self._comment_max = 0
        self._extra_max = 0
        self.header = GzipHeader()
        self._decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
        self._crc = 0
        self.total_in = 0
        self.total_out = 0

    def request_header(
        self, name_max: int, comment_max: int = 0, extra_max: int = 0
    ) -> GzipHeader:
        """Ask for header fields to be captured into the returned descriptor.

        At most ``name_max`` bytes of the name (and ``comment_max``/``extra_max``
        bytes of the comment and extra field) are kept. ``header.done`` becomes
        true once the whole header has been parsed.
        """
        if self._phase != _Phase.FIXED or self._field:
            raise ValueError("Header capture must be requested before decoding starts")
        self._name_max = name_max
        self._comment_max = comment_max
        self._extra_max = extra_max
        return self.header

    @property
    def header_done(self) -> bool:
        return self._phase >= _Phase.BODY

    def step(
        self, data: bytes | bytearray | memoryview, out_capacity: int
    ) -> InflateResult:
        """Decode as much of ``data`` as possible, producing at most ``out_capacity`` bytes.

        With ``out_capacity == 0`` only the header is parsed, and the step stops
        with ``HEADER_DONE`` once it is complete.
        """
        if self._closed:
            raise ValueError("Inflater is closed")
        if out_capacity < 0:
            raise ValueError("out_capacity must be non-negative")

        consumed = 0
        while self._phase < _Phase.BODY:
            if consumed >= len(data):
                return self._result(InflateStatus.NEED_INPUT, consumed)
            consumed += self._parse_header(data, consumed)

        if self._phase == _Phase.BODY and out_capacity == 0:
            return self._result(InflateStatus.HEADER_DONE, consumed)

        output = b""
        if self._phase == _Phase.BODY:
            chunk = data[consumed:]
            try:
                output = self._decompressor.decompress(chunk, out_capacity)
            except zlib.error as e:
                raise DecodeError(
                    "Error during inflation", InflateErrorCode.DATA_ERROR, str(e)
                ) from e
            # Past the end of the stream, unconsumed_tail may still hold bytes
            # that are also in unused_data.
            if self._decompressor.eof:
                consumed += len(chunk) - len(self._decompressor.unused_data)
            else:
                consumed += len(chunk) - len(self._decompressor.unconsumed_tail)
            self._crc = zlib.crc32(output, self._crc)
            self.total_out += len(output)
            if self._decompressor.eof:
                self._phase = _Phase.TRAILER
                self._field_len = GZIP_TRAILER_LEN

        if self._phase == _Phase.TRAILER:
            consumed += self._fill_field(data, consumed)
            if len(self._field) == self._field_len:
                self._check_trailer(bytes(self._field))
                self._field.clear()
                self._phase = _Phase.DONE

        if self._phase == _Phase.DONE:
            return self._result(InflateStatus.MEMBER_END, consumed, output)
        if output:
            return self._result(InflateStatus.OUTPUT, consumed, output)
        return self._result(InflateStatus.NEED_INPUT, consumed)

    def close(self) -> None:
        self._decompressor = None
        self._closed = True

    def _result(
        self, status: InflateStatus, consumed: int, output: bytes = b""
    ) -> InflateResult:
        self.total_in += consumed
        return InflateResult(status, consumed, output)

    def _fill_field(self, data, pos: int) -> int:
        take = min(self._field_len - len(self._field), len(data) - pos)
        self._field += data[pos : pos + take]
        return take

    def _parse_header(self, data, pos: int) -> int:
        phase = self._phase
        if phase in _FIXED_SIZE_PHASES:
            used = self._fill_field(data, pos)
            if phase != _Phase.HCRC:
                self._raw_header += data[pos : pos + used]
            if len(self._field) == self._field_len:
                field = bytes(self._field)
                self._field.clear()
                self._finish_field(phase, field)
            return used

        # Name or comment: NUL-terminated, possibly spread over several steps.
        chunk = bytes(data[pos:])
        nul = chunk.find(b"\x00")
        text = chunk if nul == -1 else chunk[:nul]
        used = len(chunk) if nul == -1 else nul + 1
        self._raw_header += chunk[:used]

        if phase == _Phase.NAME:
            room = self._name_max - len(self.header.name)
            if room > 0:
                self.header.name += text[:room]
        else:
            assert self.header.comment is not None
            room = self._comment_max - len(self.header.comment)
            if room > 0:
                self.header.comment += text[:room]

        if nul != -1:
            self._next_phase(phase)
        return used

    def _finish_field(self, phase: _Phase, field: bytes) -> None:
        if phase == _Phase.FIXED:
            magic, method, flags, mtime, xfl, os_byte = struct.unpack("<2sBBIBB", field)
            if magic != GZIP_MAGIC:
                raise DecodeError("Invalid gzip header", InflateErrorCode.BAD_MAGIC)
            if method != GZIP_METHOD_DEFLATE:
                raise DecodeError(
                    "Invalid gzip header",
                    InflateErrorCode.BAD_METHOD,
                    f"compression method {method}",
                )
            if flags & RESERVED_FLAG_BITS:
                raise DecodeError(
                    "Invalid gzip header",
                    InflateErrorCode.BAD_FLAGS,
                    f"flags {flags:#04x}",
                )
            header = self.header
            header.flags = flags
            header.mtime = mtime
            header.extra_flags = xfl
            header.os = os_byte
            if flags & FEXTRA:
                header.extra = b""
            if flags & FCOMMENT:
                header.comment = b""
            self._next_phase(phase)

        elif phase == _Phase.EXTRA_LEN:
            (xlen,) = struct.unpack("<H", field)
            if xlen:
                self._phase = _Phase.EXTRA
                self._field_len = xlen
            else:
                self._next_phase(_Phase.EXTRA)

        elif phase == _Phase.EXTRA:
            self.header.extra = field[: self._extra_max]
            self._next_phase(phase)

        elif phase == _Phase.HCRC:
            (expected,) = struct.unpack("<H", field)
            actual = zlib.crc32(self._raw_header) & 0xFFFF
            if expected != actual:
                raise DecodeError(
                    "Invalid gzip header",
                    InflateErrorCode.HEADER_CRC,
                    f"expected {expected:04x}, got {actual:04x}",
                )
            self._next_phase(phase)

    def _next_phase(self, after: _Phase) -> None:
        for phase, flag in _OPTIONAL_SECTIONS:
            if phase > after and self.header.flags & flag:
                self._phase = phase
                self._field_len = 2
                return
        self._phase = _Phase.BODY
        self.header.done = True
        logger.debug("Parsed gzip header: %s", self.header)

    def _check_trailer(self, trailer: bytes) -> None:
        crc, isize = struct.unpack("<II", trailer)
        if crc != self._crc & 0xFFFFFFFF:
            raise DecodeError(
                "Corrupt gzip member",
                InflateErrorCode.TRAILER_CRC,
                f"expected {crc:08x}, got {self._crc & 0xFFFFFFFF:08x}",
            )
        if isize != self.total_out & 0xFFFFFFFF:
            raise DecodeError(
                "Corrupt gzip member",
                InflateErrorCode.TRAILER_SIZE,
                f"expected {isize}, got {self.total_out & 0xFFFFFFFF}",
            )
