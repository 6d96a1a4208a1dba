"""Primitive MQTT wire encodings: big-endian integers, length-prefixed fields
and variable byte integers."""

from __future__ import annotations

import operator
import struct
from typing import Protocol

__all__ = [
    "CodecError",
    "MaxLengthExceededError",
    "UnexpectedEOFError",
    "decode_byte",
    "decode_uint16",
    "decode_uint32",
    "decode_bytes",
    "decode_string",
    "decode_vbi",
    "encode_bytes",
    "encode_string",
    "encode_uint16",
    "encode_uint32",
    "encode_vbi",
    "encode_bool",
]

_MAX_SHIFT = 128 * 128 * 128
_MAX_VBI = 268_435_455


class Readable(Protocol):
    """Anything with a file-like ``read`` method."""

    def read(self, size: int = -1) -> bytes: ...


class CodecError(Exception):
    """Base class for wire encoding errors."""


class MaxLengthExceededError(CodecError):
    """A variable byte integer ran past its allowed length."""

    def __init__(self, message: str = "max length value exceeded") -> None:
        super().__init__(message)


class UnexpectedEOFError(CodecError, EOFError):
    """The stream ended in the middle of a field."""

    def __init__(self, message: str = "unexpected end of stream") -> None:
        super().__init__(message)


def _read_exact(stream: Readable, size: int) -> bytes:
    """Read exactly ``size`` bytes.

    Raises a plain ``EOFError`` when the stream is already exhausted and
    ``UnexpectedEOFError`` when it ends part way through.
    """
    buf = bytearray()
    while len(buf) < size:
        chunk = stream.read(size - len(buf))
        if not chunk:
            break
        buf += chunk
    if len(buf) == size:
        return bytes(buf)
    if not buf:
        raise EOFError("end of stream")
    raise UnexpectedEOFError()


def decode_byte(stream: Readable) -> int:
    """Read a single byte."""
    return _read_exact(stream, 1)[0]


def decode_uint16(stream: Readable) -> int:
    """Read a big-endian unsigned 16-bit integer."""
    return struct.unpack(">H", _read_exact(stream, 2))[0]


def decode_uint32(stream: Readable) -> int:
    """Read a big-endian unsigned 32-bit integer."""
    return struct.unpack(">I", _read_exact(stream, 4))[0]


def decode_bytes(stream: Readable) -> bytes:
    """Read a field prefixed with its two-byte length."""
    length = decode_uint16(stream)
    return _read_exact(stream, length)


def decode_string(stream: Readable) -> str:
    """Read a length-prefixed UTF-8 string; invalid bytes survive a round trip."""
    return decode_bytes(stream).decode("utf-8", "surrogateescape")


def decode_vbi(stream: Readable) -> int:
    """Read a variable byte integer.

    An empty stream yields 0; a stream that ends after a continuation byte
    raises ``MaxLengthExceededError``.
    """
    value = 0
    shift = 0
    first = True
    while True:
        chunk = stream.read(1)
        if not chunk:
            if first:
                return value
            raise MaxLengthExceededError()
        first = False
        digit = chunk[0]
        if shift < 32:
            value = (value | ((digit & 0x7F) << shift)) & 0xFFFFFFFF
        if not digit & 0x80:
            return value
        shift += 7
        if shift > _MAX_SHIFT:
            raise MaxLengthExceededError()


def encode_bytes(field: bytes) -> bytes:
    """Prefix ``field`` with its two-byte big-endian length."""
    length = len(field)
    return bytes(((length >> 8) & 0xFF, length & 0xFF)) + bytes(field)


def encode_string(field: str) -> bytes:
    """Encode a string as a length-prefixed UTF-8 field."""
    return encode_bytes(field.encode("utf-8", "surrogateescape"))


def encode_uint16(num: int) -> bytes:
    """Encode a big-endian unsigned 16-bit integer."""
    return struct.pack(">H", num & 0xFFFF)


def encode_uint32(num: int) -> bytes:
    """Encode a big-endian unsigned 32-bit integer."""
    return struct.pack(">I", num & 0xFFFFFFFF)


def encode_vbi(num: int) -> bytes:
    """Encode ``num`` as a variable byte integer of one to four bytes."""
    if not 0 <= num <= _MAX_VBI:
        raise ValueError(f"variable byte integer out of range: {num}")
    out = bytearray()
    while True:
        digit = num & 0x7F
        num >>= 7
        if num:
            digit |= 0x80
        out.append(digit)
        if not num:
            return bytes(out)


def encode_bool(value: bool) -> int:
    """Return the wire byte for a flag: 1 for a true value, 0 otherwise."""
    flag = int(operator.truth(value))
    return flag