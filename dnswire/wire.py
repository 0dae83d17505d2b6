"""
Big-endian primitives over a byte buffer.
"""

import struct

from .errors import EncodingError, ParsingError


class WireReader:
    """
    A cursor over an immutable byte buffer.

    Bytes are consumed with read_u8/read_u16/read_u32/read_bytes; read_bits
    consumes 1-14 bits MSB-first and may leave the cursor mid-byte. Byte reads
    require the cursor to be back on a byte boundary.
    """

    __slots__ = ("data", "offset", "_bit")

    def __init__(self, data: bytes, offset: int = 0):
        self.data = bytes(data)
        if offset < 0 or offset > len(self.data):
            raise ParsingError(f"Offset {offset} outside buffer of length {len(self.data)}")
        self.offset = offset
        self._bit = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def _need(self, count: int):
        if self._bit:
            raise ParsingError(f"Byte read at unaligned bit position {self._bit}")
        if self.remaining < count:
            raise ParsingError(
                f"Need {count} bytes at offset {self.offset}, only {self.remaining} remain"
            )

    def read_u8(self) -> int:
        self._need(1)
        value = self.data[self.offset]
        self.offset += 1
        return value

    def read_u16(self) -> int:
        self._need(2)
        (value,) = struct.unpack_from("!H", self.data, self.offset)
        self.offset += 2
        return value

    def read_u32(self) -> int:
        self._need(4)
        (value,) = struct.unpack_from("!I", self.data, self.offset)
        self.offset += 4
        return value

    def read_bytes(self, count: int) -> bytes:
        self._need(count)
        value = self.data[self.offset : self.offset + count]
        self.offset += count
        return value

    def read_bits(self, count: int) -> int:
        """Read `count` bits (1-14) as an unsigned integer."""
        if not 1 <= count <= 14:
            raise ValueError(f"Bit field width must be 1-14, got {count}")
        value = 0
        for _ in range(count):
            if self.offset >= len(self.data):
                raise ParsingError(f"Need 1 bit at offset {self.offset}, buffer exhausted")
            bit = (self.data[self.offset] >> (7 - self._bit)) & 1
            value = (value << 1) | bit
            self._bit += 1
            if self._bit == 8:
                self._bit = 0
                self.offset += 1
        return value


class WireWriter:
    """Appends big-endian values to a caller-supplied bytearray."""

    __slots__ = ("buf",)

    def __init__(self, buf: bytearray):
        self.buf = buf

    def write_u8(self, value: int) -> int:
        self.buf.append(value)
        return 1

    def write_u16(self, value: int) -> int:
        try:
            self.buf += struct.pack("!H", value)
        except struct.error as e:
            raise EncodingError(f"Value {value} does not fit in 16 bits") from e
        return 2

    def write_u32(self, value: int) -> int:
        try:
            self.buf += struct.pack("!I", value)
        except struct.error as e:
            raise EncodingError(f"Value {value} does not fit in 32 bits") from e
        return 4

    def write_bytes(self, data: bytes) -> int:
        self.buf += data
        return len(data)
