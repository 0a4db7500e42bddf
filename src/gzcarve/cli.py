# Command line front end: list the gzip sections found in a file, or extract one.

import argparse
import logging
import os
import sys
from dataclasses import replace
from typing import Optional

from tqdm import tqdm

from gzcarve.config import OverwriteMode, get_default_config
from gzcarve.exceptions import GzcarveError
from gzcarve.internal.io_helpers import close_input, open_input
from gzcarve.internal.window import MIN_CAPACITY
from gzcarve.session import CarvingSession, format_listing_line

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid index: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"index must be at least 1: {value!r}")
    return number


def _buffer_size(value: str) -> int:
    try:
        number = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid buffer size: {value!r}") from None
    if number < MIN_CAPACITY:
        raise argparse.ArgumentTypeError(
            f"buffer size must be at least {MIN_CAPACITY}: {value!r}"
        )
    return number


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gzcarve",
        description=(
            "Find gzip data embedded anywhere in FILE. Without IDX, list the gzip "
            "sections found. With IDX, extract that section to OUT, or to the file "
            "name stored in the section."
        ),
    )
    parser.add_argument("file", metavar="FILE", help="File to scan")
    parser.add_argument(
        "idx",
        metavar="IDX",
        nargs="?",
        type=_positive_int,
        help="1-based number of the section to extract",
    )
    parser.add_argument(
        "out",
        metavar="OUT",
        nargs="?",
        help="Output file name, replaced if it exists",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Accept gzip headers with odd timestamps or OS values",
    )
    parser.add_argument(
        "--buffer-size",
        type=_buffer_size,
        default=get_default_config().buffer_size,
        help="Size of the read and decompression buffers",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Replace an existing file when the output name is generated",
    )
    parser.add_argument(
        "--output-dir",
        help="Directory for generated output names",
    )
    parser.add_argument(
        "--progress", action="store_true", help="Show a progress bar while scanning"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def _input_size(path: str) -> Optional[int]:
    try:
        return os.path.getsize(path)
    except OSError:
        return None


def main(argv: Optional[list[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    config = replace(
        get_default_config(),
        strict=not args.lenient,
        buffer_size=args.buffer_size,
        overwrite_mode=OverwriteMode.OVERWRITE if args.force else OverwriteMode.ERROR,
    )

    try:
        stream = open_input(args.file)
    except GzcarveError as e:
        print(e, file=sys.stderr)
        return 1

    err = 0
    progress = tqdm(
        total=_input_size(args.file),
        desc="Scanning",
        unit="B",
        unit_scale=True,
        disable=not args.progress,
        leave=False,
    )
    try:
        with CarvingSession(stream, config=config, on_read=progress.update) as session:
            if args.idx is None:
                for member in session.iter_members():
                    tqdm.write(format_listing_line(member), file=sys.stderr)
            else:
                member = session.extract(
                    args.idx, args.out, output_dir=args.output_dir
                )
                logger.info(
                    f"Wrote {member.size} bytes from section {member.ordinal} to {member.output_path}"
                )
    except GzcarveError as e:
        print(e, file=sys.stderr)
        err = 1
    finally:
        progress.close()
        try:
            close_input(stream)
        except GzcarveError as e:
            print(e, file=sys.stderr)
            err = 1

    return err


if __name__ == "__main__":
    sys.exit(main())
