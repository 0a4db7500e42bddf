from __future__ import annotations

import contextvars
import sys
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from enum import StrEnum
elif sys.version_info >= (3, 11):
    from enum import StrEnum
else:
    from backports.strenum import StrEnum


class OverwriteMode(StrEnum):
    OVERWRITE = "overwrite"
    ERROR = "error"


# OS byte values defined by RFC 1952, plus 255 for "unknown".
DEFAULT_KNOWN_OS_VALUES = frozenset(range(0, 14)) | {255}

# XFL values written by real encoders: none, maximum compression, fastest.
DEFAULT_ALLOWED_EXTRA_FLAGS = frozenset({0, 2, 4})


@dataclass
class GzcarveConfig:
    """Configuration for :func:`gzcarve.list_members` and :func:`gzcarve.extract_member`."""

    strict: bool = True
    "Be picky when accepting gzip headers. Checks that the modification time is unset or plausible and that the OS byte is a known value. This reduces false positives on binary-heavy input, but rejects valid gzip data with odd-looking headers."

    buffer_size: int = 4096
    "Capacity of the input window, and size of the chunks of decompressed output written at a time."

    name_capacity: int = 30
    "Size of the buffers receiving the embedded file name and comment, including the terminator. Longer values are truncated to name_capacity - 1 bytes."

    extra_capacity: int = 0xFFFF
    "Maximum number of bytes of the header extra field to keep."

    known_os_values: frozenset[int] = DEFAULT_KNOWN_OS_VALUES
    "OS byte values accepted in strict mode."

    allowed_extra_flags: frozenset[int] = DEFAULT_ALLOWED_EXTRA_FLAGS
    "Extra-flags (XFL) byte values accepted in both modes."

    fallback_name: str = "gzcarve.out"
    "Output file name used when no name was given and the member has no usable embedded name."

    overwrite_mode: OverwriteMode = OverwriteMode.ERROR
    "What to do when a generated output name already exists. Explicitly given output names are always overwritten."


_default_config_var: contextvars.ContextVar[GzcarveConfig] = contextvars.ContextVar(
    "gzcarve_default_config", default=GzcarveConfig()
)


def get_default_config() -> GzcarveConfig:
    """Return the current default configuration."""
    return _default_config_var.get()


def set_default_config(config: GzcarveConfig) -> None:
    """Set the default configuration used when no config is passed explicitly."""
    _default_config_var.set(config)


def set_default_config_fields(**kwargs: Any) -> None:
    """Replace some fields of the default configuration."""
    config = get_default_config()
    config = replace(config, **kwargs)
    set_default_config(config)


@contextmanager
def default_config(config: GzcarveConfig | None = None, **kwargs: Any):
    """Temporarily use ``config`` as the default configuration."""
    if config is None:
        config = get_default_config()

    if kwargs:
        config = replace(config, **kwargs)

    token = _default_config_var.set(config)
    try:
        yield
    finally:
        _default_config_var.reset(token)
