"""Primitive gob encodings: integers, floats, byte strings and message framing."""

import struct

MAX_UINT64 = (1 << 64) - 1
MIN_INT64 = -(1 << 63)
MAX_INT64 = (1 << 63) - 1

# encoding/gob refuses messages of 1 GiB or more on 64-bit platforms.
MAX_MESSAGE_SIZE = 1 << 30


class GobError(ValueError):
    """Raised when data cannot be encoded to or decoded from gob."""


class Incomplete(Exception):
    """Raised when the stream buffer does not yet hold a complete value."""


def encode_uint(x: int) -> bytes:
    """Encode an unsigned integer.

    Values below 0x80 take one byte. Larger values are written as the negated
    byte count followed by the big-endian bytes of the value.
    """
    if x < 0 or x > MAX_UINT64:
        raise GobError(f"unsigned integer out of range: {x}")
    if x < 0x80:
        return bytes((x,))
    data = x.to_bytes((x.bit_length() + 7) // 8, "big")
    return bytes((256 - len(data),)) + data


def encode_int(i: int) -> bytes:
    """Encode a signed integer, folding the sign into the low bit."""
    if i < MIN_INT64 or i > MAX_INT64:
        raise GobError(f"integer out of range: {i}")
    u = ((~i) << 1) | 1 if i < 0 else i << 1
    return encode_uint(u)


def encode_float(f: float) -> bytes:
    # The float's bits are byte-reversed so that common values have short encodings.
    return encode_uint(int.from_bytes(struct.pack("<d", f), "big"))


def encode_bool(b: bool) -> bytes:
    return encode_uint(1 if b else 0)


def encode_bytes(data: bytes) -> bytes:
    return encode_uint(len(data)) + bytes(data)


def encode_string(s: str) -> bytes:
    return encode_bytes(s.encode("utf-8"))


def frame(body: bytes) -> bytes:
    """Prefix a message body with its length."""
    if len(body) >= MAX_MESSAGE_SIZE:
        raise GobError(f"message too big: {len(body)} bytes")
    return encode_uint(len(body)) + body


def peek_uint(buffer: bytes, pos: int = 0) -> tuple[int, int] | None:
    """Read an unsigned integer from a stream buffer without consuming it.

    Args:
        buffer: Bytes received so far
        pos: Offset to start reading at

    Returns:
        Tuple of (value, encoded size), or None if the buffer ends first

    Raises:
        GobError: If the byte count prefix is invalid
    """
    if pos >= len(buffer):
        return None
    b = buffer[pos]
    if b < 0x80:
        return b, 1
    n = 256 - b
    if n > 8:
        raise GobError("encoded unsigned integer out of range")
    if pos + 1 + n > len(buffer):
        return None
    return int.from_bytes(buffer[pos + 1 : pos + 1 + n], "big"), n + 1


class Reader:
    """Sequential reader over one complete gob message."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read_raw(self, n: int) -> bytes:
        if n > self.remaining:
            raise GobError("unexpected end of message")
        chunk = self._data[self._pos : self._pos + n]
        self._pos += n
        return bytes(chunk)

    def read_uint(self) -> int:
        b = self.read_raw(1)[0]
        if b < 0x80:
            return b
        n = 256 - b
        if n > 8:
            raise GobError("encoded unsigned integer out of range")
        return int.from_bytes(self.read_raw(n), "big")

    def read_int(self) -> int:
        u = self.read_uint()
        if u & 1:
            return ~(u >> 1)
        return u >> 1

    def read_bool(self) -> bool:
        return self.read_uint() != 0

    def read_float(self) -> float:
        u = self.read_uint()
        return struct.unpack("<d", u.to_bytes(8, "big"))[0]

    def read_complex(self) -> complex:
        real = self.read_float()
        return complex(real, self.read_float())

    def read_bytes(self) -> bytes:
        n = self.read_uint()
        if n > self.remaining:
            raise GobError(f"length {n} exceeds remaining {self.remaining} bytes")
        return self.read_raw(n)

    def read_string(self) -> str:
        return self.read_bytes().decode("utf-8", errors="replace")
