"""Packet types, the fixed header and the interface shared by all MQTT packets."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Protocol

from mqttwire.codec import CodecError, Readable, decode_vbi, encode_vbi
from mqttwire.zerocopy import BufferTooShortError, ZeroCopyReader

__all__ = [
    "V31",
    "V311",
    "V5",
    "PacketType",
    "RemainingLengthError",
    "FixedHeader",
    "Details",
    "User",
    "ControlPacket",
    "packet_name",
    "decode_fixed_header",
    "decode_fixed_header_bytes",
]

V31 = 0x03
V311 = 0x04
V5 = 0x05


class PacketType(IntEnum):
    """MQTT control packet types; AUTH exists only in MQTT 5.0."""

    CONNECT = 1
    CONNACK = 2
    PUBLISH = 3
    PUBACK = 4
    PUBREC = 5
    PUBREL = 6
    PUBCOMP = 7
    SUBSCRIBE = 8
    SUBACK = 9
    UNSUBSCRIBE = 10
    UNSUBACK = 11
    PINGREQ = 12
    PINGRESP = 13
    DISCONNECT = 14
    AUTH = 15


class RemainingLengthError(CodecError):
    """The packet body does not match the remaining length in its header."""

    def __init__(
        self, message: str = "remaining data length does not match data size"
    ) -> None:
        super().__init__(message)


def packet_name(packet_type: int) -> str:
    """Return the upper-case name of a packet type, or an empty string."""
    try:
        return PacketType(packet_type).name
    except ValueError:
        return ""


@dataclass
class FixedHeader:
    """The header present at the start of every MQTT packet."""

    packet_type: int = 0
    dup: bool = False
    qos: int = 0
    retain: bool = False
    remaining_length: int = 0

    def __str__(self) -> str:
        return (
            f"type: {packet_name(self.packet_type)} "
            f"dup: {str(self.dup).lower()} qos: {self.qos} "
            f"retain: {str(self.retain).lower()} "
            f"remaining_length: {self.remaining_length}"
        )

    def encode(self) -> bytes:
        """Serialise the header: type and flags byte, then remaining length."""
        first = (
            (self.packet_type << 4)
            | (int(self.dup) << 3)
            | (self.qos << 1)
            | int(self.retain)
        ) & 0xFF
        return bytes([first]) + encode_vbi(self.remaining_length)


def _header_from_flags(type_and_flags: int) -> FixedHeader:
    return FixedHeader(
        packet_type=type_and_flags >> 4,
        dup=bool((type_and_flags >> 3) & 0x01),
        qos=(type_and_flags >> 1) & 0x03,
        retain=bool(type_and_flags & 0x01),
    )


def decode_fixed_header(type_and_flags: int, stream: Readable) -> FixedHeader:
    """Build a header from its first byte and the remaining length on ``stream``."""
    header = _header_from_flags(type_and_flags)
    header.remaining_length = decode_vbi(stream)
    return header


def decode_fixed_header_bytes(data: bytes | bytearray | memoryview) -> tuple[FixedHeader, int]:
    """Parse a header from the start of ``data``.

    Returns the header and the number of bytes it occupies.
    """
    if len(data) < 2:
        raise BufferTooShortError()
    view = memoryview(data)
    header = _header_from_flags(view[0])
    reader = ZeroCopyReader(view[1:])
    header.remaining_length = reader.read_vbi()
    return header, 1 + reader.offset


@dataclass(frozen=True)
class Details:
    """Packet metadata used for QoS bookkeeping."""

    packet_type: int
    packet_id: int = 0
    qos: int = 0


@dataclass(frozen=True)
class User:
    """An MQTT 5.0 user property."""

    key: str
    value: str


class Writable(Protocol):
    """Anything with a file-like ``write`` method."""

    def write(self, data: bytes) -> object: ...


class ControlPacket(ABC):
    """Behaviour shared by every MQTT control packet."""

    packet_type: ClassVar[int]
    header: FixedHeader

    @abstractmethod
    def encode(self) -> bytes:
        """Serialise the whole packet, fixed header included."""

    def pack(self, writer: Writable) -> None:
        """Write the encoded packet to ``writer``."""
        writer.write(self.encode())

    @abstractmethod
    def unpack(self, stream: Readable) -> None:
        """Fill the packet from its body, read from ``stream``."""