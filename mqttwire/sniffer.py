"""Detecting the MQTT protocol version and packet type at the head of a stream."""

from __future__ import annotations

import io

from mqttwire.codec import Readable

__all__ = ["InvalidProtocolError", "detect_protocol_version", "detect_packet_type"]

_PEEK_SIZE = 12


class InvalidProtocolError(ValueError):
    """The CONNECT packet names an unknown protocol or version.

    ``stream`` still yields every byte of the original input.
    """

    def __init__(self, stream: Readable) -> None:
        super().__init__("invalid protocol")
        self.stream = stream


class _ReplayReader:
    """Yields the peeked prefix first, then the underlying stream."""

    def __init__(self, prefix: bytes, rest: Readable) -> None:
        self._prefix = prefix
        self._rest = rest

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            head, self._prefix = self._prefix, b""
            return head + (self._rest.read() or b"")
        if self._prefix:
            head, self._prefix = self._prefix[:size], self._prefix[size:]
            return head
        return self._rest.read(size) or b""


def _read_up_to(stream: Readable, size: int) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        chunk = stream.read(size - len(buf))
        if not chunk:
            break
        buf += chunk
    return bytes(buf)


def detect_protocol_version(stream: Readable) -> tuple[int, Readable]:
    """Peek at a CONNECT packet and return its protocol version.

    Returns ``(version, restored)`` where ``restored`` replays the consumed
    bytes. The version is 0 when the stream does not start with a complete
    enough CONNECT. Raises ``InvalidProtocolError`` for an unknown protocol.
    """
    peeked = _read_up_to(stream, _PEEK_SIZE)
    size = len(peeked)
    if size < 8:
        return 0, io.BytesIO(peeked)

    restored = _ReplayReader(peeked, stream)
    if peeked[0] & 0xF0 != 0x10:
        return 0, restored

    idx = 1
    for _ in range(4):
        if idx >= size:
            return 0, restored
        digit = peeked[idx]
        idx += 1
        if not digit & 0x80:
            break

    if idx + 6 > size:
        return 0, restored

    name_length = (peeked[idx] << 8) | peeked[idx + 1]
    idx += 2
    if idx + name_length + 1 > size:
        return 0, restored

    name = peeked[idx : idx + name_length]
    version = peeked[idx + name_length]

    if name == b"MQTT" and version in (4, 5):
        return version, restored
    if name == b"MQIsdp" and version == 3:
        return version, restored
    raise InvalidProtocolError(restored)


def detect_packet_type(stream: Readable) -> tuple[int, Readable]:
    """Peek at the first byte and return the packet type it announces.

    Returns ``(packet_type, restored)``; an empty stream gives type 0.
    """
    first = stream.read(1)
    if not first:
        return 0, stream
    return first[0] >> 4, _ReplayReader(first, stream)