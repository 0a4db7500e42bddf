"""Find, list and extract gzip members embedded anywhere in a byte stream."""

from gzcarve.config import (
    GzcarveConfig,
    OverwriteMode,
    default_config,
    get_default_config,
    set_default_config,
    set_default_config_fields,
)
from gzcarve.exceptions import (
    DecodeError,
    GzcarveError,
    NoDataFound,
    OrdinalOutOfRange,
    OutputExists,
    ReadError,
    TruncatedStreamError,
    WriteError,
)
from gzcarve.header_check import check_header
from gzcarve.session import (
    CarvingSession,
    extract_member,
    format_listing_line,
    list_members,
)
from gzcarve.types import CarvedMember, ExtractedMember, GzipHeader

__all__ = [
    # Main API
    "list_members",
    "extract_member",
    "CarvingSession",
    "format_listing_line",
    "check_header",
    # Types
    "CarvedMember",
    "ExtractedMember",
    "GzipHeader",
    # Config
    "GzcarveConfig",
    "OverwriteMode",
    "default_config",
    "get_default_config",
    "set_default_config",
    "set_default_config_fields",
    # Exceptions
    "GzcarveError",
    "ReadError",
    "WriteError",
    "DecodeError",
    "TruncatedStreamError",
    "NoDataFound",
    "OrdinalOutOfRange",
    "OutputExists",
]
