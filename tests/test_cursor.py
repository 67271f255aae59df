"""Tests for the byte cursor primitives."""

import pytest

from waforensics.whatsapp.cursor import ByteCursor
from waforensics.whatsapp.errors import BufferUnderrunError, DecodeError, MalformedVarintError


class TestFixedWidthReads:
    """Tests for fixed-width integer readers."""

    def test_read_byte_advances(self):
        cursor = ByteCursor(b"\x01\x02")
        assert cursor.read_byte() == 1
        assert cursor.offset == 1
        assert cursor.remaining == 1

    def test_peek_does_not_advance(self):
        cursor = ByteCursor(b"\x07")
        assert cursor.peek_byte() == 7
        assert cursor.offset == 0

    def test_int16_big_endian(self):
        assert ByteCursor(b"\x01\x2c").read_int16() == 300

    def test_int20_masks_top_nibble(self):
        cursor = ByteCursor(b"\xf1\x02\x03")
        assert cursor.read_int20() == 0x10203
        assert cursor.offset == 3

    def test_int32_big_endian_unsigned(self):
        assert ByteCursor(b"\xff\xff\xff\xff").read_int32() == 0xFFFFFFFF

    def test_fixed32_little_endian(self):
        assert ByteCursor(b"\x01\x00\x00\x00").read_fixed32() == 1

    def test_fixed64_low_word_first(self):
        cursor = ByteCursor(b"\x02\x00\x00\x00\x01\x00\x00\x00")
        assert cursor.read_fixed64() == (1 << 32) | 2
        assert cursor.at_end()


class TestVarint:
    """Tests for base-128 varints."""

    def test_single_byte(self):
        assert ByteCursor(b"\x01").read_varint() == 1

    def test_multi_byte(self):
        cursor = ByteCursor(b"\xe5\x8e\x26")
        assert cursor.read_varint() == 624485
        assert cursor.offset == 3

    def test_values_above_32_bits(self):
        # 2**35
        assert ByteCursor(b"\x80\x80\x80\x80\x80\x01").read_varint() == 2**35

    def test_max_u64(self):
        data = b"\xff" * 9 + b"\x01"
        assert ByteCursor(data).read_varint() == 2**64 - 1

    def test_too_long_raises(self):
        with pytest.raises(MalformedVarintError):
            ByteCursor(b"\xff" * 11).read_varint()

    def test_truncated_raises_underrun(self):
        with pytest.raises(BufferUnderrunError):
            ByteCursor(b"\x80\x80").read_varint()


class TestUnderrun:
    """Reads past the end raise instead of returning garbage."""

    def test_read_byte_on_empty(self):
        with pytest.raises(BufferUnderrunError):
            ByteCursor(b"").read_byte()

    def test_read_bytes_past_end_keeps_offset(self):
        cursor = ByteCursor(b"\x01\x02")
        with pytest.raises(BufferUnderrunError):
            cursor.read_bytes(3)
        assert cursor.offset == 0

    def test_underrun_is_a_decode_error(self):
        assert issubclass(BufferUnderrunError, DecodeError)
