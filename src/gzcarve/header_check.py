"""Heuristics deciding whether a position in the input looks like a gzip header."""

from __future__ import annotations

import struct
import time

from gzcarve.config import GzcarveConfig, get_default_config

GZIP_MAGIC = b"\x1f\x8b"
GZIP_METHOD_DEFLATE = 0x08
GZ_HEADER_LEN = 10

# Bits 5-7 of the flag byte are reserved and must be zero.
RESERVED_FLAG_BITS = 0xE0

# 1990-01-01; gzip appeared around 1992, so earlier timestamps are bogus.
AD_1990 = 631170000
APPROX_YEAR = 31556926


def check_header(
    data: bytes | bytearray | memoryview,
    pos: int = 0,
    strict: bool | None = None,
    *,
    now: float | None = None,
    config: GzcarveConfig | None = None,
) -> bool:
    """Return whether ``data[pos:pos + 10]`` looks like the start of a gzip member.

    The caller has already matched the first magic byte and guarantees that
    ``GZ_HEADER_LEN`` bytes are available at ``pos``.

    Args:
        data: Buffer holding the candidate header.
        pos: Index of the candidate's first byte.
        strict: Also check that the modification time is unset or plausible and
            that the OS byte is a known value. Defaults to ``config.strict``.
        now: Current time as a POSIX timestamp, for the strict mtime check.
        config: Configuration providing the accepted XFL and OS values.
    """
    if config is None:
        config = get_default_config()
    if strict is None:
        strict = config.strict

    if data[pos + 1] != GZIP_MAGIC[1] or data[pos + 2] != GZIP_METHOD_DEFLATE:
        return False

    if data[pos + 3] & RESERVED_FLAG_BITS:
        return False

    if strict:
        (mtime,) = struct.unpack_from("<I", data, pos + 4)
        if now is None:
            now = time.time()
        if mtime != 0 and (mtime < AD_1990 or mtime > now + APPROX_YEAR):
            return False

    if data[pos + 8] not in config.allowed_extra_flags:
        return False

    if strict and data[pos + 9] not in config.known_os_values:
        return False

    return True
