"""Creating and reading MQTT 3.1 / 3.1.1 packets from streams and buffers."""

from __future__ import annotations

import io

from mqttwire.codec import CodecError, Readable, UnexpectedEOFError, decode_byte
from mqttwire.packets import (
    ControlPacket,
    FixedHeader,
    PacketType,
    decode_fixed_header,
    decode_fixed_header_bytes,
)
from mqttwire.v3.packets import (
    ConnAck,
    Connect,
    Disconnect,
    PingReq,
    PingResp,
    PubAck,
    PubComp,
    PubRec,
    PubRel,
    Publish,
    SubAck,
    Subscribe,
    UnsubAck,
    Unsubscribe,
)
from mqttwire.zerocopy import BufferTooShortError, ZeroCopyReader

__all__ = [
    "UnsupportedPacketTypeError",
    "new_control_packet",
    "new_control_packet_with_header",
    "read_packet",
    "read_packet_bytes",
]

_PACKET_CLASSES: dict[int, type[ControlPacket]] = {
    PacketType.CONNECT: Connect,
    PacketType.CONNACK: ConnAck,
    PacketType.PUBLISH: Publish,
    PacketType.PUBACK: PubAck,
    PacketType.PUBREC: PubRec,
    PacketType.PUBREL: PubRel,
    PacketType.PUBCOMP: PubComp,
    PacketType.SUBSCRIBE: Subscribe,
    PacketType.SUBACK: SubAck,
    PacketType.UNSUBSCRIBE: Unsubscribe,
    PacketType.UNSUBACK: UnsubAck,
    PacketType.PINGREQ: PingReq,
    PacketType.PINGRESP: PingResp,
    PacketType.DISCONNECT: Disconnect,
}


class UnsupportedPacketTypeError(CodecError):
    """The fixed header names a packet type MQTT 3.1.1 does not define."""

    def __init__(self, packet_type: int) -> None:
        super().__init__(f"unsupported packet type 0x{packet_type:x}")
        self.packet_type = packet_type


def new_control_packet(packet_type: int) -> ControlPacket | None:
    """Return a fresh packet of ``packet_type``, or None for an unknown type."""
    cls = _PACKET_CLASSES.get(packet_type)
    return cls() if cls is not None else None


def new_control_packet_with_header(header: FixedHeader) -> ControlPacket:
    """Return an empty packet carrying ``header``."""
    cls = _PACKET_CLASSES.get(header.packet_type)
    if cls is None:
        raise UnsupportedPacketTypeError(header.packet_type)
    return cls(header=header)


def _read_body(stream: Readable, size: int) -> bytes:
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


def read_packet(stream: Readable) -> ControlPacket:
    """Read one complete packet from ``stream``."""
    header = decode_fixed_header(decode_byte(stream), stream)
    packet = new_control_packet_with_header(header)
    body = _read_body(stream, header.remaining_length)
    packet.unpack(io.BytesIO(body))
    return packet


def read_packet_bytes(data: bytes | bytearray | memoryview) -> tuple[ControlPacket, int]:
    """Parse one packet from the start of ``data``.

    Returns the packet and the number of bytes it occupies. PUBLISH payloads
    are views into ``data``.
    """
    if len(data) < 2:
        raise BufferTooShortError()
    header, header_length = decode_fixed_header_bytes(data)
    total = header_length + header.remaining_length
    if len(data) < total:
        raise BufferTooShortError()

    packet = new_control_packet_with_header(header)
    body = memoryview(data)[header_length:total]
    if isinstance(packet, (Publish, Connect, Subscribe)):
        packet.unpack_bytes(body)
    else:
        packet.unpack(ZeroCopyReader(body))
    return packet, total