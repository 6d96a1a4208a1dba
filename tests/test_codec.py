import io

import pytest

from mqttwire.codec import (
    CodecError,
    MaxLengthExceededError,
    UnexpectedEOFError,
    decode_byte,
    decode_bytes,
    decode_string,
    decode_uint16,
    decode_uint32,
    decode_vbi,
    encode_bool,
    encode_bytes,
    encode_string,
    encode_uint16,
    encode_uint32,
    encode_vbi,
)


class TrickleStream:
    """Returns at most one byte per read call."""

    def __init__(self, data: bytes) -> None:
        self._data = data

    def read(self, size: int = -1) -> bytes:
        chunk, self._data = self._data[:1], self._data[1:]
        return chunk


def stream(data: bytes) -> io.BytesIO:
    return io.BytesIO(data)


@pytest.mark.parametrize(
    "value", [0, 1, 127, 128, 16383, 16384, 2097151, 2097152, 268435455]
)
def test_vbi_round_trip(value):
    encoded = encode_vbi(value)
    assert 1 <= len(encoded) <= 4
    assert decode_vbi(stream(encoded)) == value


def test_vbi_wire_bytes():
    assert encode_vbi(127) == b"\x7f"
    assert encode_vbi(128) == b"\x80\x01"


def test_vbi_continuation_bits():
    assert encode_vbi(2097152) == b"\x80\x80\x80\x01"
    assert encode_vbi(268435455) == b"\xff\xff\xff\x7f"


@pytest.mark.parametrize("value", [-1, 268435456])
def test_vbi_out_of_range(value):
    with pytest.raises(ValueError):
        encode_vbi(value)


def test_decode_vbi_empty_stream_gives_zero():
    assert decode_vbi(stream(b"")) == 0


def test_decode_vbi_truncated_raises():
    with pytest.raises(MaxLengthExceededError):
        decode_vbi(stream(b"\x80"))


def test_decode_vbi_leaves_rest_of_stream():
    s = stream(encode_vbi(300) + b"xy")
    assert decode_vbi(s) == 300
    assert s.read() == b"xy"


@pytest.mark.parametrize("value", [0, 1, 255, 256, 65535])
def test_uint16_round_trip(value):
    encoded = encode_uint16(value)
    assert len(encoded) == 2
    assert decode_uint16(stream(encoded)) == value


@pytest.mark.parametrize("value", [0, 65536, 4294967295])
def test_uint32_round_trip(value):
    encoded = encode_uint32(value)
    assert len(encoded) == 4
    assert decode_uint32(stream(encoded)) == value


def test_integers_are_big_endian():
    assert encode_uint16(0x0102) == b"\x01\x02"
    assert encode_uint32(0x01020304) == b"\x01\x02\x03\x04"


def test_uint32_reads_from_trickling_stream():
    assert decode_uint32(TrickleStream(encode_uint32(123456789))) == 123456789


@pytest.mark.parametrize("field", [b"", b"ab", bytes(range(256)) * 3])
def test_bytes_round_trip(field):
    encoded = encode_bytes(field)
    assert encoded[:2] == encode_uint16(len(field))
    assert encoded[2:] == field
    assert decode_bytes(stream(encoded)) == field


def test_string_round_trip_unicode():
    text = "héllo/wörld/✓"
    assert decode_string(stream(encode_string(text))) == text


def test_string_round_trip_invalid_utf8():
    raw = encode_bytes(b"\xff\xfe")
    assert encode_string(decode_string(stream(raw))) == raw


def test_decode_byte_on_empty_stream_is_clean_eof():
    with pytest.raises(EOFError) as info:
        decode_byte(stream(b""))
    assert not isinstance(info.value, UnexpectedEOFError)


def test_decode_uint16_partial():
    with pytest.raises(UnexpectedEOFError):
        decode_uint16(stream(b"\x01"))


def test_decode_uint32_partial():
    with pytest.raises(UnexpectedEOFError):
        decode_uint32(stream(b"\x00\x01"))


def test_decode_bytes_missing_body_is_clean_eof():
    with pytest.raises(EOFError) as info:
        decode_bytes(stream(b"\x00\x05"))
    assert not isinstance(info.value, UnexpectedEOFError)


def test_decode_bytes_partial_body():
    with pytest.raises(UnexpectedEOFError):
        decode_bytes(stream(b"\x00\x05ab"))


def test_encode_bool():
    assert encode_bool(True) == 1
    assert encode_bool(False) == 0


def test_partial_read_is_codec_error_and_eof_error():
    with pytest.raises(CodecError) as info:
        decode_uint16(stream(b"\x01"))
    assert isinstance(info.value, EOFError)


def test_overlong_vbi_is_codec_error():
    with pytest.raises(CodecError):
        decode_vbi(stream(b"\x80"))