"""Sequential primitive readers over a single capture buffer."""

from .errors import BufferUnderrunError, MalformedVarintError

# A u64 varint never needs more than 10 groups of 7 bits
MAX_VARINT_BYTES = 10
_U64_MASK = (1 << 64) - 1


class ByteCursor:
    """Read offset over one immutable buffer.

    Every read advances ``offset`` by exactly the bytes it consumed. Reading
    past the end raises ``BufferUnderrunError`` instead of returning garbage.
    """

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self.offset = 0

    def __len__(self) -> int:
        return len(self._data)

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def at_end(self) -> bool:
        return self.offset >= len(self._data)

    def _require(self, n: int) -> None:
        if n < 0 or self.offset + n > len(self._data):
            raise BufferUnderrunError(
                f"need {n} bytes at offset {self.offset}, have {self.remaining}"
            )

    def read_byte(self) -> int:
        self._require(1)
        value = self._data[self.offset]
        self.offset += 1
        return value

    def peek_byte(self) -> int:
        """Return the next byte without advancing."""
        self._require(1)
        return self._data[self.offset]

    def read_bytes(self, n: int) -> bytes:
        self._require(n)
        chunk = self._data[self.offset : self.offset + n]
        self.offset += n
        return chunk

    def read_int16(self) -> int:
        """2-byte big-endian unsigned."""
        return int.from_bytes(self.read_bytes(2), "big")

    def read_int20(self) -> int:
        """3 bytes, top nibble of the first byte masked off."""
        b0, b1, b2 = self.read_bytes(3)
        return ((b0 & 0x0F) << 16) | (b1 << 8) | b2

    def read_int32(self) -> int:
        """4-byte big-endian unsigned."""
        return int.from_bytes(self.read_bytes(4), "big")

    def read_fixed32(self) -> int:
        """4-byte little-endian unsigned."""
        return int.from_bytes(self.read_bytes(4), "little")

    def read_fixed64(self) -> int:
        """8-byte little-endian unsigned, low word first."""
        low = self.read_fixed32()
        high = self.read_fixed32()
        return (high << 32) | low

    def read_varint(self) -> int:
        """Base-128 little-endian varint, widened to 64 bits.

        Raises:
            MalformedVarintError: If the continuation bit is still set after
                ``MAX_VARINT_BYTES`` bytes.
            BufferUnderrunError: If the buffer ends mid-varint.
        """
        result = 0
        shift = 0
        for _ in range(MAX_VARINT_BYTES):
            byte = self.read_byte()
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result & _U64_MASK
            shift += 7
        raise MalformedVarintError(f"varint longer than {MAX_VARINT_BYTES} bytes")
