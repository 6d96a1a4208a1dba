"""Reading MQTT primitives out of an in-memory buffer without copying."""

from __future__ import annotations

import struct

from mqttwire.codec import CodecError

__all__ = [
    "BufferTooShortError",
    "MalformedVBIError",
    "StringTooLongError",
    "ZeroCopyReader",
]


class BufferTooShortError(CodecError):
    """The buffer ends before the requested data."""

    def __init__(self, message: str = "buffer too short") -> None:
        super().__init__(message)


class MalformedVBIError(CodecError):
    """A variable byte integer is longer than four bytes."""

    def __init__(self, message: str = "malformed variable byte integer") -> None:
        super().__init__(message)


class StringTooLongError(CodecError):
    """A length-prefixed field claims more bytes than the buffer holds."""

    def __init__(self, message: str = "string exceeds buffer") -> None:
        super().__init__(message)


class ZeroCopyReader:
    """Cursor over a byte buffer.

    Slices are returned as ``memoryview`` objects sharing the original buffer;
    they stay valid only while that buffer is left unchanged.
    """

    def __init__(self, data: bytes | bytearray | memoryview = b"") -> None:
        self._view = memoryview(data)
        self._offset = 0

    def reset(self, data: bytes | bytearray | memoryview) -> None:
        """Start reading a new buffer from its beginning."""
        self._view = memoryview(data)
        self._offset = 0

    @property
    def remaining(self) -> int:
        """Number of bytes not yet read."""
        return len(self._view) - self._offset

    @property
    def offset(self) -> int:
        """Current read position."""
        return self._offset

    def _take(self, n: int) -> memoryview:
        if self._offset + n > len(self._view):
            raise BufferTooShortError()
        chunk = self._view[self._offset : self._offset + n]
        self._offset += n
        return chunk

    def read_byte(self) -> int:
        """Read one byte."""
        return self._take(1)[0]

    def read_uint16(self) -> int:
        """Read a big-endian unsigned 16-bit integer."""
        return struct.unpack(">H", self._take(2))[0]

    def read_uint32(self) -> int:
        """Read a big-endian unsigned 32-bit integer."""
        return struct.unpack(">I", self._take(4))[0]

    def read_vbi(self) -> int:
        """Read a variable byte integer of at most four bytes."""
        value = 0
        for shift in range(0, 28, 7):
            digit = self._take(1)[0]
            value |= (digit & 0x7F) << shift
            if not digit & 0x80:
                return value
        raise MalformedVBIError()

    def read_bytes(self) -> memoryview:
        """Read a field prefixed with its two-byte length, as a view."""
        length = self.read_uint16()
        if self._offset + length > len(self._view):
            raise StringTooLongError()
        return self._take(length)

    def read_string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        return bytes(self.read_bytes()).decode("utf-8", "surrogateescape")

    def read_n(self, n: int) -> memoryview:
        """Read exactly ``n`` bytes as a view."""
        return self._take(n)

    def read_remaining(self) -> memoryview:
        """Return every unread byte as a view and move to the end."""
        chunk = self._view[self._offset :]
        self._offset = len(self._view)
        return chunk

    def skip(self, n: int) -> None:
        """Advance the position by ``n`` bytes."""
        self._take(n)

    def peek(self, n: int) -> memoryview:
        """Return the next ``n`` bytes without consuming them."""
        if self._offset + n > len(self._view):
            raise BufferTooShortError()
        return self._view[self._offset : self._offset + n]

    def peek_byte(self) -> int:
        """Return the next byte without consuming it."""
        if self._offset >= len(self._view):
            raise BufferTooShortError()
        return self._view[self._offset]

    def read(self, size: int = -1) -> bytes:
        """File-like read of up to ``size`` bytes.

        Unlike a file, an exhausted reader raises ``BufferTooShortError``
        instead of returning an empty result.
        """
        if self._offset >= len(self._view):
            raise BufferTooShortError()
        end = len(self._view)
        if size is not None and size >= 0:
            end = min(end, self._offset + size)
        chunk = bytes(self._view[self._offset : end])
        self._offset = end
        return chunk