"""Tests for the big-endian helpers."""

import struct

import pytest

from meiunpack.core.byteorder import COOKIE_FIELDS_BE, RECORD_FIELDS_BE, U32_BE, read_u32_be


def test_layouts_are_big_endian_on_any_host():
    assert U32_BE.unpack(b'\x12\x34\x56\x78')[0] == 0x12345678
    assert COOKIE_FIELDS_BE.unpack(b'\x00\x00\x00\x01' * 4) == (1, 1, 1, 1)


def test_read_u32_be_matches_network_order():
    assert read_u32_be(b'\x00\x00\x01\x00') == 256
    assert read_u32_be(b'\xff\x00\x00\x00\x00\x01', 2) == 1


def test_read_u32_be_short_buffer():
    with pytest.raises(struct.error):
        read_u32_be(b'\x00\x01\x02')


def test_struct_sizes():
    assert COOKIE_FIELDS_BE.size == 16
    assert RECORD_FIELDS_BE.size == 14
