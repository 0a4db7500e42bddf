import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from enum import StrEnum
elif sys.version_info >= (3, 11):
    from enum import StrEnum
else:
    from backports.strenum import StrEnum


class ScanState(StrEnum):
    """States of the stream scanner."""

    SEARCHING = "searching"
    HEADER_PENDING = "header_pending"
    FOUND = "found"
    EXHAUSTED = "exhausted"


class InflateStatus(StrEnum):
    """Outcome of a single step of the inflate engine."""

    NEED_INPUT = "need_input"
    HEADER_DONE = "header_done"
    OUTPUT = "output"
    MEMBER_END = "member_end"


class InflateErrorCode(StrEnum):
    BAD_MAGIC = "bad_magic"
    BAD_METHOD = "bad_method"
    BAD_FLAGS = "bad_flags"
    HEADER_CRC = "header_crc_mismatch"
    DATA_ERROR = "data_error"
    TRAILER_CRC = "crc32_mismatch"
    TRAILER_SIZE = "length_mismatch"


# Values of the OS byte as registered in RFC 1952.
GZIP_OS_NAMES = {
    0: "FAT",
    1: "Amiga",
    2: "VMS",
    3: "Unix",
    4: "VM/CMS",
    5: "Atari TOS",
    6: "HPFS",
    7: "Macintosh",
    8: "Z-System",
    9: "CP/M",
    10: "TOPS-20",
    11: "NTFS",
    12: "QDOS",
    13: "Acorn RISCOS",
    255: "unknown",
}


@dataclass
class GzipHeader:
    """Fields of a gzip member header, filled in while the header is parsed."""

    flags: int = 0
    mtime: int = 0
    extra_flags: int = 0
    os: int = 255
    name: bytes = b""
    comment: Optional[bytes] = None
    extra: Optional[bytes] = None
    done: bool = False

    @property
    def filename(self) -> str:
        """The embedded name, decoded the same way the OS decodes file names."""
        return os.fsdecode(self.name)

    @property
    def mtime_datetime(self) -> Optional[datetime]:
        if self.mtime == 0:
            return None
        return datetime.fromtimestamp(self.mtime, tz=timezone.utc).replace(tzinfo=None)

    @property
    def os_name(self) -> str:
        return GZIP_OS_NAMES.get(self.os, f"unknown ({self.os})")


@dataclass(frozen=True)
class InflateResult:
    status: InflateStatus
    consumed: int
    output: bytes = b""


@dataclass
class CarvedMember:
    """A gzip member located in the input stream."""

    ordinal: int
    "1-based number of the member, counting every accepted header from the start of the input."

    offset: int
    "Absolute byte offset of the member's first byte in the input stream."

    header: GzipHeader

    @property
    def name(self) -> str:
        return self.header.filename


@dataclass
class ExtractedMember(CarvedMember):
    output_path: Optional[str] = None
    "Path the payload was written to, or None when writing to a caller-supplied stream."

    size: int = 0
    "Number of decompressed bytes written."

    compressed_size: int = 0
    "Length of the member in the input, header and trailer included."
