"""Tests for the backward marker scan."""

import io

import pytest

from meiunpack.core.errors import FormatError, FormatErrorReason
from meiunpack.core.magic_locator import MARKER, find_marker


def _scan(data: bytes, chunk_size: int = 8192) -> int:
    return find_marker(io.BytesIO(data), len(data), chunk_size)


def test_single_marker():
    data = b'\x00' * 300 + MARKER + b'\x00' * 80
    assert _scan(data) == 300


def test_last_marker_wins():
    data = b'a' * 100 + MARKER + b'b' * 50 + MARKER + b'c' * 10
    assert _scan(data) == 158
    assert _scan(data, chunk_size=16) == 158


def test_marker_at_start_and_end():
    assert _scan(MARKER + b'\x00' * 40, chunk_size=16) == 0
    assert _scan(b'\x00' * 40 + MARKER, chunk_size=16) == 40
    assert _scan(MARKER) == 0


def test_marker_straddling_window_boundaries():
    # every alignment relative to the 16-byte windows
    for pos in range(0, 57):
        data = bytearray(b'\x00' * 64)
        data[pos:pos + len(MARKER)] = MARKER
        assert _scan(bytes(data), chunk_size=16) == pos


def test_marker_in_large_file_far_from_end():
    data = b'\x00' * 1000 + MARKER + b'\xaa' * 50000
    assert _scan(data, chunk_size=4096) == 1000


def test_no_marker():
    with pytest.raises(FormatError) as exc_info:
        _scan(b'\x00' * 20000)
    assert exc_info.value.reason is FormatErrorReason.MARKER_NOT_FOUND


def test_file_shorter_than_marker():
    with pytest.raises(FormatError) as exc_info:
        _scan(MARKER[:5])
    assert exc_info.value.reason is FormatErrorReason.MARKER_NOT_FOUND

    with pytest.raises(FormatError):
        _scan(b'')


def test_partial_marker_not_matched():
    with pytest.raises(FormatError):
        _scan(b'\x00' * 30 + MARKER[:7] + b'\x00' * 30, chunk_size=16)


def test_chunk_smaller_than_marker_rejected():
    with pytest.raises(ValueError):
        _scan(MARKER, chunk_size=4)
