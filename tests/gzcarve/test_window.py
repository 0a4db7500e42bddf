import io

import pytest

from gzcarve.exceptions import ReadError
from gzcarve.internal.window import Window
from tests.gzcarve.testing_utils import (
    FailingReader,
    NonSeekableBytesIO,
    ReadOnlyStream,
    TrickleReader,
)

DATA = b"0123456789abcdefghij"


def valid_bytes(window: Window) -> bytes:
    return bytes(window.buffer[window.consumed_start : window.available_end])


def test_refill_reads_full_buffer():
    window = Window(io.BytesIO(DATA), capacity=16)
    assert window.available == 0
    assert window.refill() == 16
    assert valid_bytes(window) == DATA[:16]
    assert window.base_offset == 0


def test_refill_without_keep_discards_everything():
    window = Window(io.BytesIO(DATA), capacity=16)
    window.refill()
    window.consumed_start = 5
    assert window.refill() == 4
    assert valid_bytes(window) == b"ghij"
    assert window.base_offset == 16
    assert window.position == 16


def test_refill_keeps_suffix_from_keep_from():
    window = Window(io.BytesIO(DATA), capacity=16)
    window.refill()
    window.consumed_start = 14
    assert window.refill(keep_from=12) == 4
    assert bytes(window.buffer[: window.available_end]) == b"cdefghij"
    # Positions keep their offset relative to keep_from.
    assert window.consumed_start == 2
    assert window.base_offset == 12
    assert window.position == 14


def test_refill_keep_from_end_is_like_plain_refill():
    window = Window(io.BytesIO(DATA), capacity=16)
    window.refill()
    assert window.refill(keep_from=16) == 4
    assert valid_bytes(window) == b"ghij"
    assert window.base_offset == 16


def test_refill_rejects_keep_from_outside_valid_range():
    window = Window(io.BytesIO(DATA), capacity=16)
    window.refill()
    with pytest.raises(ValueError):
        window.refill(keep_from=17)


def test_end_of_input_is_not_an_error():
    window = Window(io.BytesIO(b"abc"), capacity=16)
    assert window.refill() == 3
    assert window.refill() == 0
    assert window.available == 0


def test_full_window_cannot_be_refilled():
    window = Window(io.BytesIO(DATA), capacity=16)
    window.refill()
    assert window.refill(keep_from=0) == 0
    assert valid_bytes(window) == DATA[:16]


def test_read_failure_raises_read_error():
    window = Window(FailingReader(), capacity=16)
    with pytest.raises(ReadError, match="disk on fire"):
        window.refill()


def test_capacity_must_hold_a_header():
    with pytest.raises(ValueError):
        Window(io.BytesIO(DATA), capacity=9)


def test_base_offset_starts_at_stream_position():
    stream = io.BytesIO(DATA)
    stream.read(5)
    window = Window(stream, capacity=16)
    assert window.base_offset == 5
    window.refill()
    assert window.position == 5
    assert valid_bytes(window) == DATA[5:]


def test_non_seekable_stream_starts_at_zero():
    window = Window(NonSeekableBytesIO(DATA), capacity=16)
    assert window.base_offset == 0
    assert window.refill() == 16


def test_short_reads_are_accepted():
    window = Window(TrickleReader(DATA, chunk_size=3), capacity=16)
    assert window.refill() == 3
    assert window.refill(keep_from=0) == 3
    assert valid_bytes(window) == DATA[:6]


def test_stream_without_readinto():
    window = Window(ReadOnlyStream(DATA), capacity=16)  # type: ignore[arg-type]
    assert window.refill() == 16
    assert valid_bytes(window) == DATA[:16]


def test_on_read_callback_receives_counts():
    counts: list[int] = []
    window = Window(io.BytesIO(DATA), capacity=16, on_read=counts.append)
    window.refill()
    window.refill()
    window.refill()
    assert counts == [16, 4]
