"""MQTT 3.1 / 3.1.1 control packets."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Callable, ClassVar

from mqttwire.codec import (
    Readable,
    UnexpectedEOFError,
    decode_byte,
    decode_bytes,
    decode_string,
    decode_uint16,
    encode_bytes,
    encode_string,
    encode_uint16,
)
from mqttwire.packets import ControlPacket, Details, FixedHeader, PacketType
from mqttwire.zerocopy import ZeroCopyReader

__all__ = [
    "Topic",
    "Connect",
    "ConnAck",
    "Publish",
    "PubAck",
    "PubRec",
    "PubRel",
    "PubComp",
    "Subscribe",
    "SubAck",
    "Unsubscribe",
    "UnsubAck",
    "PingReq",
    "PingResp",
    "Disconnect",
]


def _header_factory(packet_type: int, qos: int = 0) -> Callable[[], FixedHeader]:
    return partial(FixedHeader, packet_type=packet_type, qos=qos)


def _read_all(stream: Readable) -> bytes:
    data = stream.read()
    return bytes(data) if data else b""


def _text(data: bytes | memoryview) -> str:
    return bytes(data).decode("utf-8", "replace")


def _byte_list(data: bytes) -> str:
    return "[" + " ".join(str(b) for b in data) + "]"


def _decode_string_or_end(stream: Readable) -> str | None:
    """Read a string, or return None when the stream is cleanly exhausted."""
    try:
        return decode_string(stream)
    except UnexpectedEOFError:
        raise
    except EOFError:
        return None


class _Framed(ControlPacket):
    """Packets whose encoding is a fixed header followed by a body."""

    _default_qos: ClassVar[int] = 0

    def _frame(self, body: bytes) -> bytes:
        self.header.remaining_length = len(body)
        return self.header.encode() + body

    def _fresh_header(self) -> FixedHeader:
        return FixedHeader(packet_type=self.packet_type, qos=self._default_qos)


@dataclass(frozen=True)
class Topic:
    """A topic filter in a SUBSCRIBE packet with its requested QoS."""

    name: str
    qos: int = 0


@dataclass(eq=True)
class Connect(_Framed):
    """CONNECT: a client opens a session."""

    packet_type: ClassVar[int] = PacketType.CONNECT

    header: FixedHeader = field(default_factory=_header_factory(PacketType.CONNECT))
    protocol_name: str = ""
    protocol_version: int = 0
    username_flag: bool = False
    password_flag: bool = False
    will_retain: bool = False
    will_qos: int = 0
    will_flag: bool = False
    clean_session: bool = False
    reserved_bit: int = 0
    keep_alive: int = 0
    client_id: str = ""
    will_topic: str = ""
    will_message: bytes = b""
    username: str = ""
    password: bytes = b""

    def __str__(self) -> str:
        return (
            f"{self.header}\nProtocol: {self.protocol_name} {self.protocol_version}\n"
            f"ClientID: {self.client_id}\nCleanSession: {str(self.clean_session).lower()}\n"
            f"KeepAlive: {self.keep_alive}\nUsername: {self.username}\n"
            f"Password: {_text(self.password)}\n"
        )

    def _flags(self) -> int:
        flags = (self.will_qos & 0x03) << 3
        if self.username_flag:
            flags |= 1 << 7
        if self.password_flag:
            flags |= 1 << 6
        if self.will_retain:
            flags |= 1 << 5
        if self.will_flag:
            flags |= 1 << 2
        if self.clean_session:
            flags |= 1 << 1
        return flags

    def _apply_flags(self, flags: int) -> None:
        self.username_flag = bool(flags & (1 << 7))
        self.password_flag = bool(flags & (1 << 6))
        self.will_retain = bool(flags & (1 << 5))
        self.will_qos = (flags >> 3) & 0x03
        self.will_flag = bool(flags & (1 << 2))
        self.clean_session = bool(flags & (1 << 1))
        self.reserved_bit = flags & 1

    def encode(self) -> bytes:
        body = bytearray(encode_string(self.protocol_name))
        body.append(self.protocol_version & 0xFF)
        body.append(self._flags())
        body += encode_uint16(self.keep_alive)
        body += encode_string(self.client_id)
        if self.will_flag:
            body += encode_string(self.will_topic)
            body += encode_bytes(self.will_message)
        if self.username_flag:
            body += encode_string(self.username)
        if self.password_flag:
            body += encode_bytes(self.password)
        return self._frame(bytes(body))

    def unpack(self, stream: Readable) -> None:
        self.protocol_name = decode_string(stream)
        self.protocol_version = decode_byte(stream)
        self._apply_flags(decode_byte(stream))
        self.keep_alive = decode_uint16(stream)
        self.client_id = decode_string(stream)
        if self.will_flag:
            self.will_topic = decode_string(stream)
            self.will_message = decode_bytes(stream)
        if self.username_flag:
            self.username = decode_string(stream)
        if self.password_flag:
            self.password = decode_bytes(stream)

    def unpack_bytes(self, data: bytes | bytearray | memoryview) -> None:
        """Fill the packet from an in-memory body; binary fields are copied."""
        reader = ZeroCopyReader(data)
        self.protocol_name = reader.read_string()
        self.protocol_version = reader.read_byte()
        self._apply_flags(reader.read_byte())
        self.keep_alive = reader.read_uint16()
        self.client_id = reader.read_string()
        if self.will_flag:
            self.will_topic = reader.read_string()
            self.will_message = bytes(reader.read_bytes())
        if self.username_flag:
            self.username = reader.read_string()
        if self.password_flag:
            self.password = bytes(reader.read_bytes())

    def details(self) -> Details:
        return Details(PacketType.CONNECT)

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.header = self._fresh_header()
        self.protocol_name = ""
        self.protocol_version = 0
        self.username_flag = False
        self.password_flag = False
        self.will_retain = False
        self.will_qos = 0
        self.will_flag = False
        self.clean_session = False
        self.reserved_bit = 0
        self.keep_alive = 0
        self.client_id = ""
        self.will_topic = ""
        self.will_message = b""
        self.username = ""
        self.password = b""


@dataclass(eq=True)
class ConnAck(_Framed):
    """CONNACK: the server answers a CONNECT."""

    packet_type: ClassVar[int] = PacketType.CONNACK

    header: FixedHeader = field(default_factory=_header_factory(PacketType.CONNACK))
    session_present: bool = False
    return_code: int = 0

    def __str__(self) -> str:
        return (
            f"{self.header}\nSessionPresent: {str(self.session_present).lower()}\n"
            f"ReturnCode: {self.return_code}\n"
        )

    def encode(self) -> bytes:
        flags = 0x01 if self.session_present else 0x00
        return self._frame(bytes([flags, self.return_code & 0xFF]))

    def unpack(self, stream: Readable) -> None:
        self.session_present = bool(decode_byte(stream) & 0x01)
        self.return_code = decode_byte(stream)

    def details(self) -> Details:
        return Details(PacketType.CONNACK)

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.header = self._fresh_header()
        self.session_present = False
        self.return_code = 0


@dataclass(eq=True)
class Publish(_Framed):
    """PUBLISH: an application message.

    After ``unpack_bytes`` the payload is a view into the given buffer.
    """

    packet_type: ClassVar[int] = PacketType.PUBLISH

    header: FixedHeader = field(default_factory=_header_factory(PacketType.PUBLISH))
    topic_name: str = ""
    packet_id: int = 0
    payload: bytes | memoryview = b""

    def __str__(self) -> str:
        return (
            f"{self.header}\nTopic: {self.topic_name}\nPacketID: {self.packet_id}\n"
            f"Payload: {_text(self.payload)}\n"
        )

    def encode(self) -> bytes:
        body = bytearray(encode_string(self.topic_name))
        if self.header.qos > 0:
            body += encode_uint16(self.packet_id)
        body += self.payload
        return self._frame(bytes(body))

    def unpack(self, stream: Readable) -> None:
        self.topic_name = decode_string(stream)
        if self.header.qos > 0:
            self.packet_id = decode_uint16(stream)
        self.payload = _read_all(stream)

    def unpack_bytes(self, data: bytes | bytearray | memoryview) -> None:
        """Fill the packet from an in-memory body without copying the payload."""
        reader = ZeroCopyReader(data)
        self.topic_name = reader.read_string()
        if self.header.qos > 0:
            self.packet_id = reader.read_uint16()
        self.payload = reader.read_remaining()

    def details(self) -> Details:
        return Details(PacketType.PUBLISH, self.packet_id, self.header.qos)

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.header = self._fresh_header()
        self.topic_name = ""
        self.packet_id = 0
        self.payload = b""


class _Identified(_Framed):
    """Packets whose body is just a packet identifier."""

    packet_id: int

    def __str__(self) -> str:
        return f"{self.header}\nPacketID: {self.packet_id}\n"


@dataclass(eq=True)
class PubAck(_Identified):
    """PUBACK: acknowledges a QoS 1 PUBLISH."""

    packet_type: ClassVar[int] = PacketType.PUBACK

    header: FixedHeader = field(default_factory=_header_factory(PacketType.PUBACK))
    packet_id: int = 0

    def encode(self) -> bytes:
        return self._frame(encode_uint16(self.packet_id))

    def unpack(self, stream: Readable) -> None:
        self.packet_id = decode_uint16(stream)

    def details(self) -> Details:
        return Details(PacketType.PUBACK, self.packet_id)

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.header = self._fresh_header()
        self.packet_id = 0


@dataclass(eq=True)
class PubRec(_Identified):
    """PUBREC: first acknowledgement of a QoS 2 PUBLISH."""

    packet_type: ClassVar[int] = PacketType.PUBREC

    header: FixedHeader = field(default_factory=_header_factory(PacketType.PUBREC))
    packet_id: int = 0

    def encode(self) -> bytes:
        return self._frame(encode_uint16(self.packet_id))

    def unpack(self, stream: Readable) -> None:
        self.packet_id = decode_uint16(stream)

    def details(self) -> Details:
        return Details(PacketType.PUBREC, self.packet_id)

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.header = self._fresh_header()
        self.packet_id = 0


@dataclass(eq=True)
class PubRel(_Identified):
    """PUBREL: releases a QoS 2 PUBLISH."""

    packet_type: ClassVar[int] = PacketType.PUBREL
    _default_qos: ClassVar[int] = 1

    header: FixedHeader = field(default_factory=_header_factory(PacketType.PUBREL, 1))
    packet_id: int = 0

    def encode(self) -> bytes:
        return self._frame(encode_uint16(self.packet_id))

    def unpack(self, stream: Readable) -> None:
        self.packet_id = decode_uint16(stream)

    def details(self) -> Details:
        return Details(PacketType.PUBREL, self.packet_id, 1)

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.header = self._fresh_header()
        self.packet_id = 0


@dataclass(eq=True)
class PubComp(_Identified):
    """PUBCOMP: completes a QoS 2 exchange."""

    packet_type: ClassVar[int] = PacketType.PUBCOMP

    header: FixedHeader = field(default_factory=_header_factory(PacketType.PUBCOMP))
    packet_id: int = 0

    def encode(self) -> bytes:
        return self._frame(encode_uint16(self.packet_id))

    def unpack(self, stream: Readable) -> None:
        self.packet_id = decode_uint16(stream)

    def details(self) -> Details:
        return Details(PacketType.PUBCOMP, self.packet_id)

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.header = self._fresh_header()
        self.packet_id = 0


@dataclass(eq=True)
class UnsubAck(_Identified):
    """UNSUBACK: acknowledges an UNSUBSCRIBE."""

    packet_type: ClassVar[int] = PacketType.UNSUBACK

    header: FixedHeader = field(default_factory=_header_factory(PacketType.UNSUBACK))
    packet_id: int = 0

    def encode(self) -> bytes:
        return self._frame(encode_uint16(self.packet_id))

    def unpack(self, stream: Readable) -> None:
        self.packet_id = decode_uint16(stream)

    def details(self) -> Details:
        return Details(PacketType.UNSUBACK, self.packet_id)

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.header = self._fresh_header()
        self.packet_id = 0


@dataclass(eq=True)
class Subscribe(_Framed):
    """SUBSCRIBE: a client asks for messages on topic filters."""

    packet_type: ClassVar[int] = PacketType.SUBSCRIBE
    _default_qos: ClassVar[int] = 1

    header: FixedHeader = field(default_factory=_header_factory(PacketType.SUBSCRIBE, 1))
    packet_id: int = 0
    topics: list[Topic] = field(default_factory=list)

    def __str__(self) -> str:
        topics = " ".join(f"{{{t.name} {t.qos}}}" for t in self.topics)
        return f"{self.header}\nPacketID: {self.packet_id}\nTopics: [{topics}]\n"

    def encode(self) -> bytes:
        body = bytearray(encode_uint16(self.packet_id))
        for topic in self.topics:
            body += encode_string(topic.name)
            body.append(topic.qos & 0xFF)
        return self._frame(bytes(body))

    def unpack(self, stream: Readable) -> None:
        self.packet_id = decode_uint16(stream)
        while (name := _decode_string_or_end(stream)) is not None:
            self.topics.append(Topic(name, decode_byte(stream)))

    def unpack_bytes(self, data: bytes | bytearray | memoryview) -> None:
        """Fill the packet from an in-memory body."""
        reader = ZeroCopyReader(data)
        self.packet_id = reader.read_uint16()
        while reader.remaining > 0:
            name = reader.read_string()
            self.topics.append(Topic(name, reader.read_byte()))

    def details(self) -> Details:
        return Details(PacketType.SUBSCRIBE, self.packet_id, 1)

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.header = self._fresh_header()
        self.packet_id = 0
        self.topics = []


@dataclass(eq=True)
class SubAck(_Framed):
    """SUBACK: the granted QoS (or failure) for each requested filter."""

    packet_type: ClassVar[int] = PacketType.SUBACK

    header: FixedHeader = field(default_factory=_header_factory(PacketType.SUBACK))
    packet_id: int = 0
    return_codes: bytes = b""

    def __str__(self) -> str:
        return (
            f"{self.header}\nPacketID: {self.packet_id}\n"
            f"ReturnCodes: {_byte_list(self.return_codes)}\n"
        )

    def encode(self) -> bytes:
        return self._frame(encode_uint16(self.packet_id) + bytes(self.return_codes))

    def unpack(self, stream: Readable) -> None:
        self.packet_id = decode_uint16(stream)
        self.return_codes = _read_all(stream)

    def details(self) -> Details:
        return Details(PacketType.SUBACK, self.packet_id)

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.header = self._fresh_header()
        self.packet_id = 0
        self.return_codes = b""


@dataclass(eq=True)
class Unsubscribe(_Framed):
    """UNSUBSCRIBE: a client drops topic filters."""

    packet_type: ClassVar[int] = PacketType.UNSUBSCRIBE
    _default_qos: ClassVar[int] = 1

    header: FixedHeader = field(
        default_factory=_header_factory(PacketType.UNSUBSCRIBE, 1)
    )
    packet_id: int = 0
    topics: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"{self.header}\nPacketID: {self.packet_id}\n"
            f"Topics: [{' '.join(self.topics)}]\n"
        )

    def encode(self) -> bytes:
        body = bytearray(encode_uint16(self.packet_id))
        for topic in self.topics:
            body += encode_string(topic)
        return self._frame(bytes(body))

    def unpack(self, stream: Readable) -> None:
        self.packet_id = decode_uint16(stream)
        while (name := _decode_string_or_end(stream)) is not None:
            self.topics.append(name)

    def details(self) -> Details:
        return Details(PacketType.UNSUBSCRIBE, self.packet_id, 1)

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.header = self._fresh_header()
        self.packet_id = 0
        self.topics = []


class _Empty(_Framed):
    """Packets that consist of a fixed header only."""

    def __str__(self) -> str:
        return f"{self.header}\n"

    def _skip_body(self, stream: Readable) -> None:
        """Consume the declared body length, which is zero for valid packets."""
        if self.header.remaining_length > 0:
            stream.read(self.header.remaining_length)


@dataclass(eq=True)
class PingReq(_Empty):
    """PINGREQ: keep-alive probe from the client."""

    packet_type: ClassVar[int] = PacketType.PINGREQ

    header: FixedHeader = field(default_factory=_header_factory(PacketType.PINGREQ))

    def encode(self) -> bytes:
        return self._frame(b"")

    def unpack(self, stream: Readable) -> None:
        self._skip_body(stream)

    def details(self) -> Details:
        return Details(PacketType.PINGREQ)

    def reset(self) -> None:
        """Return the header to its initial value."""
        self.header = self._fresh_header()


@dataclass(eq=True)
class PingResp(_Empty):
    """PINGRESP: the server's answer to PINGREQ."""

    packet_type: ClassVar[int] = PacketType.PINGRESP

    header: FixedHeader = field(default_factory=_header_factory(PacketType.PINGRESP))

    def encode(self) -> bytes:
        return self._frame(b"")

    def unpack(self, stream: Readable) -> None:
        self._skip_body(stream)

    def details(self) -> Details:
        return Details(PacketType.PINGRESP)

    def reset(self) -> None:
        """Return the header to its initial value."""
        self.header = self._fresh_header()


@dataclass(eq=True)
class Disconnect(_Empty):
    """DISCONNECT: the client closes the session cleanly."""

    packet_type: ClassVar[int] = PacketType.DISCONNECT

    header: FixedHeader = field(default_factory=_header_factory(PacketType.DISCONNECT))

    def encode(self) -> bytes:
        return self._frame(b"")

    def unpack(self, stream: Readable) -> None:
        self._skip_body(stream)

    def details(self) -> Details:
        return Details(PacketType.DISCONNECT)

    def reset(self) -> None:
        """Return the header to its initial value."""
        self.header = self._fresh_header()