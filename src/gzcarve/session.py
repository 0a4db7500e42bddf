"""Enumerates and extracts gzip members found anywhere in a byte stream."""

from __future__ import annotations

import logging
import os
from typing import BinaryIO, Callable, Iterator, Union

from gzcarve.config import GzcarveConfig, OverwriteMode, get_default_config
from gzcarve.decoder import DecoderAdapter
from gzcarve.exceptions import NoDataFound, OrdinalOutOfRange
from gzcarve.internal.io_helpers import (
    close_input,
    close_output,
    is_writable_stream,
    open_input,
    open_output,
    resolve_output_name,
)
from gzcarve.internal.window import Window
from gzcarve.scanner import StreamScanner
from gzcarve.types import CarvedMember, ExtractedMember, ScanState

logger = logging.getLogger(__name__)

SourceType = Union[str, os.PathLike, BinaryIO]
OutputType = Union[str, os.PathLike, BinaryIO]


def format_listing_line(member: CarvedMember) -> str:
    return f"{member.ordinal:2d}: 0x{member.offset:010x}  {member.name}"


class CarvingSession:
    """Owns the input window, the scanner and the decoder for one pass over a stream.

    A session reads its input once, front to back, so only one of
    :meth:`iter_members`, :meth:`list_members` or :meth:`extract` can be used
    per session.
    """

    def __init__(
        self,
        source: BinaryIO,
        *,
        config: GzcarveConfig | None = None,
        strict: bool | None = None,
        on_read: Callable[[int], object] | None = None,
    ):
        self.config = config if config is not None else get_default_config()
        self.window = Window(source, self.config.buffer_size, on_read=on_read)
        self.scanner = StreamScanner(self.window, strict=strict, config=self.config)
        self.decoder = DecoderAdapter(self.window, config=self.config)
        self.found = 0

    def __enter__(self) -> CarvingSession:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self.decoder.close()

    def iter_members(self) -> Iterator[CarvedMember]:
        """Yield every member found, parsing only its header.

        Raises NoDataFound at the end of the input if nothing was found.
        """
        while self.scanner.find_next() == ScanState.FOUND:
            self.found += 1
            offset = self.scanner.member_offset
            header = self.decoder.init_member(preserve_start=True)
            member = CarvedMember(ordinal=self.found, offset=offset, header=header)
            logger.info(
                f"Found gzip member {member.ordinal} at offset {offset:#x}: {member.name!r}"
            )

            if self.decoder.member_start is not None:
                self.scanner.skip_member_start(self.decoder.member_start)
            else:
                # The header didn't fit in the window; carry on after it.
                logger.debug(
                    "Resuming scan after the header of member %d", member.ordinal
                )
            yield member

        if self.found == 0:
            raise NoDataFound("No gzip data found.")

    def list_members(self) -> list[CarvedMember]:
        return list(self.iter_members())

    def extract(
        self,
        ordinal: int,
        output: OutputType | None = None,
        *,
        output_dir: str | os.PathLike | None = None,
    ) -> ExtractedMember:
        """Decode the member with the given 1-based ordinal.

        ``output`` can be a path, which is created or truncated, or a writable
        stream. When it's None, the file name is taken from the member header if
        usable, or from ``config.fallback_name``, and an existing file is only
        replaced if ``config.overwrite_mode`` allows it.
        """
        if ordinal < 1:
            raise ValueError(f"Member ordinal must be at least 1, got {ordinal}")

        while self.scanner.find_next() == ScanState.FOUND:
            self.found += 1
            if self.found == ordinal:
                return self._extract_current(output, output_dir)
            self.scanner.skip_member_start()

        if self.found == 0:
            raise NoDataFound("No gzip data found.")
        raise OrdinalOutOfRange(ordinal, self.found)

    def _extract_current(
        self, output: OutputType | None, output_dir: str | os.PathLike | None
    ) -> ExtractedMember:
        offset = self.scanner.member_offset
        header = self.decoder.init_member()
        member = ExtractedMember(ordinal=self.found, offset=offset, header=header)

        if output is not None and is_writable_stream(output):
            member.size = self.decoder.decode_payload(output)  # type: ignore[arg-type]
            member.compressed_size = self._compressed_size()
            return member

        path, generated = resolve_output_name(
            header.filename,
            output,  # type: ignore[arg-type]
            self.config.fallback_name,
            output_dir,
        )
        exclusive = generated and self.config.overwrite_mode == OverwriteMode.ERROR
        sink = open_output(path, exclusive=exclusive)
        logger.info(f"Extracting gzip member {member.ordinal} to {path}")
        try:
            member.size = self.decoder.decode_payload(sink)
        except BaseException:
            close_output(sink, path, error_pending=True)
            raise
        close_output(sink, path, error_pending=False)

        member.output_path = path
        member.compressed_size = self._compressed_size()
        return member

    def _compressed_size(self) -> int:
        inflater = self.decoder.inflater
        assert inflater is not None
        return inflater.total_in


def _open_source(source: SourceType) -> tuple[BinaryIO, bool]:
    if isinstance(source, (str, bytes, os.PathLike)):
        return open_input(source), True
    return source, False


def list_members(
    source: SourceType,
    *,
    config: GzcarveConfig | None = None,
    strict: bool | None = None,
) -> list[CarvedMember]:
    """List the gzip members embedded in ``source`` (a path or a binary stream)."""
    stream, should_close = _open_source(source)
    try:
        with CarvingSession(stream, config=config, strict=strict) as session:
            return session.list_members()
    finally:
        if should_close:
            close_input(stream)


def extract_member(
    source: SourceType,
    ordinal: int,
    output: OutputType | None = None,
    *,
    output_dir: str | os.PathLike | None = None,
    config: GzcarveConfig | None = None,
    strict: bool | None = None,
) -> ExtractedMember:
    """Extract the payload of the ``ordinal``-th gzip member embedded in ``source``."""
    stream, should_close = _open_source(source)
    try:
        with CarvingSession(stream, config=config, strict=strict) as session:
            return session.extract(ordinal, output, output_dir=output_dir)
    finally:
        if should_close:
            close_input(stream)
