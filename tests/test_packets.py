import io
from dataclasses import FrozenInstanceError, dataclass, field

import pytest

from mqttwire.codec import CodecError, decode_string, encode_string
from mqttwire.packets import (
    ControlPacket,
    Details,
    FixedHeader,
    PacketType,
    RemainingLengthError,
    User,
    decode_fixed_header,
    decode_fixed_header_bytes,
    packet_name,
)
from mqttwire.zerocopy import BufferTooShortError, MalformedVBIError


@dataclass
class NamedPacket(ControlPacket):
    packet_type = PacketType.UNSUBACK
    header: FixedHeader = field(
        default_factory=lambda: FixedHeader(packet_type=PacketType.UNSUBACK)
    )
    name: str = ""

    def encode(self) -> bytes:
        body = encode_string(self.name)
        self.header.remaining_length = len(body)
        return self.header.encode() + body

    def unpack(self, stream) -> None:
        self.name = decode_string(stream)


@pytest.mark.parametrize(
    "header",
    [
        FixedHeader(packet_type=PacketType.PUBLISH, dup=True, qos=2, retain=True,
                    remaining_length=0),
        FixedHeader(packet_type=PacketType.SUBSCRIBE, qos=1, remaining_length=127),
        FixedHeader(packet_type=PacketType.CONNECT, remaining_length=16384),
        FixedHeader(packet_type=PacketType.AUTH, remaining_length=268435455),
    ],
)
def test_header_round_trip(header):
    encoded = header.encode()
    assert decode_fixed_header(encoded[0], io.BytesIO(encoded[1:])) == header
    decoded, consumed = decode_fixed_header_bytes(encoded + b"body")
    assert decoded == header
    assert consumed == len(encoded)


def test_pingreq_header_bytes():
    assert FixedHeader(packet_type=PacketType.PINGREQ).encode() == b"\xc0\x00"


def test_decode_header_without_length_byte():
    header = decode_fixed_header(0xC0, io.BytesIO(b""))
    assert header.packet_type == PacketType.PINGREQ
    assert header.remaining_length == 0


def test_header_str():
    header = FixedHeader(packet_type=PacketType.PUBLISH, qos=1, remaining_length=5)
    assert str(header) == (
        "type: PUBLISH dup: false qos: 1 retain: false remaining_length: 5"
    )


def test_header_bytes_too_short():
    with pytest.raises(BufferTooShortError):
        decode_fixed_header_bytes(b"\x30")
    with pytest.raises(BufferTooShortError):
        decode_fixed_header_bytes(b"\x30\x80")


def test_header_bytes_malformed_length():
    with pytest.raises(MalformedVBIError):
        decode_fixed_header_bytes(b"\x30\xff\xff\xff\xff\x01")


def test_packet_names():
    assert packet_name(PacketType.PUBLISH) == "PUBLISH"
    assert packet_name(PacketType.AUTH) == "AUTH"
    assert packet_name(0) == ""


def test_control_packet_pack_writes_encoding():
    out = io.BytesIO()
    NamedPacket(name="a/b").pack(out)
    written = out.getvalue()
    assert written == b"\xb0\x05\x00\x03a/b"
    header, consumed = decode_fixed_header_bytes(written)
    assert header.packet_type == PacketType.UNSUBACK
    assert header.remaining_length == 5
    assert consumed == 2


def test_control_packet_round_trip():
    encoded = NamedPacket(name="sensors/+").encode()
    header, consumed = decode_fixed_header_bytes(encoded)
    assert header.packet_type == NamedPacket.packet_type
    decoded = NamedPacket(header=header)
    decoded.unpack(io.BytesIO(encoded[consumed:]))
    assert decoded.name == "sensors/+"
    assert header.remaining_length == len(encoded) - consumed


def test_control_packet_is_abstract():
    with pytest.raises(TypeError):
        ControlPacket()


def test_details_and_user_are_frozen():
    details = Details(packet_type=PacketType.PUBLISH, packet_id=9, qos=1)
    with pytest.raises(FrozenInstanceError):
        details.qos = 2
    assert {User("k", "v"), User("k", "v")} == {User("k", "v")}


def test_remaining_length_error_is_a_codec_error():
    error = RemainingLengthError("remaining data length does not match data size")
    assert isinstance(error, CodecError)
    assert str(error) == "remaining data length does not match data size"