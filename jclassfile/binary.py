"""Big-endian reading and writing of the unsigned integers used in class files."""

from __future__ import annotations


class ClassFormatError(ValueError):
    """Raised when class file data is malformed or inconsistent."""


class ByteReader:
    """Consumes a byte buffer from front to back."""

    def __init__(self, data):
        self._buffer = bytes(data)
        self._pos = 0

    def __len__(self):
        return len(self._buffer) - self._pos

    def is_empty(self):
        """Return True when every byte has been consumed."""
        return self._pos >= len(self._buffer)

    def take_bytes(self, size=None):
        """Take ``size`` bytes, or everything that is left when ``size`` is None."""
        available = len(self._buffer) - self._pos
        request = available if size is None else size
        if request < 0:
            raise ValueError(f"Can't take a negative number of bytes ({request})")
        if request > available:
            raise ClassFormatError(
                f"Can't take {request} bytes from buffer containing {available} bytes!"
            )
        start = self._pos
        self._pos += request
        return self._buffer[start:self._pos]

    def deplete(self):
        """Take all remaining bytes. This never fails."""
        return self.take_bytes()

    def _uint(self, width):
        return int.from_bytes(self.take_bytes(width), "big")

    def u1(self):
        """Read one unsigned byte."""
        return self._uint(1)

    def u2(self):
        """Read a big-endian unsigned 16-bit integer."""
        return self._uint(2)

    def u4(self):
        """Read a big-endian unsigned 32-bit integer."""
        return self._uint(4)


class ByteWriter:
    """Accumulates bytes in big-endian order."""

    def __init__(self):
        self._buffer = bytearray()

    def __len__(self):
        return len(self._buffer)

    def _write_uint(self, value, width):
        if not 0 <= value < 1 << (8 * width):
            raise ValueError(f"{value} does not fit in {width} unsigned byte(s)")
        self._buffer += value.to_bytes(width, "big")

    def write_u1(self, value):
        """Append one unsigned byte."""
        self._write_uint(value, 1)

    def write_u2(self, value):
        """Append a big-endian unsigned 16-bit integer."""
        self._write_uint(value, 2)

    def write_u4(self, value):
        """Append a big-endian unsigned 32-bit integer."""
        self._write_uint(value, 4)

    def write_bytes(self, data):
        """Append raw bytes."""
        self._buffer += bytes(data)

    def __bytes__(self):
        return bytes(self._buffer)