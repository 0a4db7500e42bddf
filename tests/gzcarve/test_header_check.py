import struct

import pytest

from gzcarve.config import GzcarveConfig, default_config
from gzcarve.header_check import AD_1990, APPROX_YEAR, check_header

NOW = 1700000000


def make_header(
    *,
    magic2: int = 0x8B,
    method: int = 0x08,
    flags: int = 0,
    mtime: int = 1600000000,
    xfl: int = 0,
    os_byte: int = 3,
) -> bytes:
    return bytes([0x1F, magic2, method, flags]) + struct.pack("<IBB", mtime, xfl, os_byte)


@pytest.mark.parametrize("strict", [True, False], ids=["strict", "lenient"])
def test_plausible_header_accepted(strict: bool):
    assert check_header(make_header(), strict=strict, now=NOW)


@pytest.mark.parametrize(
    "header",
    [
        make_header(magic2=0x8C),
        make_header(method=0x07),
        make_header(flags=0x20),
        make_header(flags=0x80),
        make_header(xfl=1),
        make_header(xfl=255),
    ],
    ids=["magic", "method", "flag_bit5", "flag_bit7", "xfl_1", "xfl_255"],
)
@pytest.mark.parametrize("strict", [True, False], ids=["strict", "lenient"])
def test_structural_fields_rejected_in_both_modes(header: bytes, strict: bool):
    assert not check_header(header, strict=strict, now=NOW)


@pytest.mark.parametrize("flags", [0x01, 0x02, 0x04, 0x08, 0x10, 0x1F])
def test_defined_flags_accepted(flags: int):
    assert check_header(make_header(flags=flags), strict=True, now=NOW)


@pytest.mark.parametrize("xfl", [0, 2, 4])
def test_known_extra_flags_accepted(xfl: int):
    assert check_header(make_header(xfl=xfl), strict=True, now=NOW)


@pytest.mark.parametrize(
    "mtime",
    [600000000, AD_1990 - 1, NOW + 2 * APPROX_YEAR, 0xFFFFFFFF],
    ids=["1989", "just_before_1990", "two_years_ahead", "max"],
)
def test_strict_rejects_bogus_mtime(mtime: int):
    header = make_header(mtime=mtime)
    assert not check_header(header, strict=True, now=NOW)
    assert check_header(header, strict=False, now=NOW)


@pytest.mark.parametrize(
    "mtime",
    [0, AD_1990, NOW, NOW + APPROX_YEAR // 2, NOW + APPROX_YEAR],
    ids=["unset", "1990", "now", "half_year_ahead", "one_year_ahead"],
)
def test_strict_accepts_plausible_mtime(mtime: int):
    assert check_header(make_header(mtime=mtime), strict=True, now=NOW)


@pytest.mark.parametrize("os_byte", [14, 100, 200, 254])
def test_strict_rejects_unknown_os(os_byte: int):
    header = make_header(os_byte=os_byte)
    assert not check_header(header, strict=True, now=NOW)
    assert check_header(header, strict=False, now=NOW)


@pytest.mark.parametrize("os_byte", [0, 3, 11, 13, 255])
def test_strict_accepts_known_os(os_byte: int):
    assert check_header(make_header(os_byte=os_byte), strict=True, now=NOW)


def test_checks_at_offset():
    data = b"junk" + make_header() + b"more"
    assert check_header(data, 4, strict=True, now=NOW)
    assert not check_header(data, 0, strict=True, now=NOW)


def test_uses_current_time_by_default():
    assert check_header(make_header(mtime=AD_1990 + 1), strict=True)
    assert not check_header(make_header(mtime=0xFFFFFFFF), strict=True)


def test_strictness_defaults_to_config():
    header = make_header(os_byte=200)
    assert not check_header(header, now=NOW)
    assert check_header(header, now=NOW, config=GzcarveConfig(strict=False))
    with default_config(strict=False):
        assert check_header(header, now=NOW)


def test_os_values_are_configurable():
    config = GzcarveConfig(known_os_values=frozenset({3}))
    assert check_header(make_header(os_byte=3), now=NOW, config=config)
    assert not check_header(make_header(os_byte=255), now=NOW, config=config)


def test_accepts_bytearray_and_memoryview():
    header = make_header()
    assert check_header(bytearray(header), strict=True, now=NOW)
    assert check_header(memoryview(header), strict=True, now=NOW)
