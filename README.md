# mqttwire

Encode and decode MQTT 3.1 / 3.1.1 control packets in pure Python, with no
third-party dependencies.

## Modules

- `mqttwire.codec` – primitive wire types: `encode_uint16` / `decode_uint16`,
  `encode_uint32` / `decode_uint32`, length-prefixed fields
  (`encode_bytes`, `encode_string`, `decode_bytes`, `decode_string`),
  variable byte integers (`encode_vbi`, `decode_vbi`) and `encode_bool`.
  Decoders read from any object with a file-like `read` method.
- `mqttwire.zerocopy` – `ZeroCopyReader`, a cursor over an in-memory buffer
  whose `read_bytes`, `read_n`, `peek` and `read_remaining` return
  `memoryview` slices of the buffer instead of copies. `remaining` and
  `offset` are properties.
- `mqttwire.packets` – `PacketType`, `FixedHeader`, `Details`, `User`, the
  abstract `ControlPacket` base class, `packet_name`,
  `decode_fixed_header` and `decode_fixed_header_bytes`, and the protocol
  level constants `V31`, `V311` and `V5`.
- `mqttwire.sniffer` – `detect_protocol_version` and `detect_packet_type`,
  which look at the head of a stream and hand back a reader that replays
  the bytes they consumed.
- `mqttwire.v3.packets` – the MQTT 3.1.1 packets: `Connect`, `ConnAck`,
  `Publish`, `PubAck`, `PubRec`, `PubRel`, `PubComp`, `Subscribe` (with
  `Topic`), `SubAck`, `Unsubscribe`, `UnsubAck`, `PingReq`, `PingResp` and
  `Disconnect`. Each is a dataclass with `encode`, `pack`, `unpack`,
  `details` and `reset`; `Connect`, `Publish` and `Subscribe` also have
  `unpack_bytes`.
- `mqttwire.v3.reader` – `read_packet` for streams, `read_packet_bytes` for
  buffers, and the factories `new_control_packet` and
  `new_control_packet_with_header`.
- `mqttwire.v3.pool` – `PacketPool` plus the shared-pool helpers
  `acquire_by_type` and `release`.
- `mqttwire.v3.buffers` – `BufferPool`, `PooledBuffer` and size-classed
  buffer helpers (`acquire_buffer`, `release_buffer`,
  `acquire_pooled_buffer`, and small / medium / large variants).

## Installation

```
pip install mqttwire
```

## Encoding and decoding

```python
import io

from mqttwire.packets import FixedHeader, PacketType
from mqttwire.v3.packets import Publish
from mqttwire.v3.reader import read_packet, read_packet_bytes

pub = Publish(
    header=FixedHeader(packet_type=PacketType.PUBLISH, qos=1),
    topic_name="sensors/temperature",
    packet_id=42,
    payload=b"21.5",
)
wire = pub.encode()

decoded = read_packet(io.BytesIO(wire))
assert decoded.topic_name == "sensors/temperature"
assert decoded.packet_id == 42

packet, consumed = read_packet_bytes(wire)
assert consumed == len(wire)
assert bytes(packet.payload) == b"21.5"  # a memoryview into `wire`
```

`encode` recomputes the remaining length in the fixed header, so the header
always matches the body. `pack(writer)` writes the encoded packet to any
object with a `write` method.

## Detecting the protocol version

```python
import io

from mqttwire.sniffer import InvalidProtocolError, detect_protocol_version

try:
    version, restored = detect_protocol_version(io.BytesIO(first_bytes))
except InvalidProtocolError as exc:
    restored = exc.stream
# `restored` yields the consumed bytes again, then the rest of the stream.
```

The version is 4 for MQTT 3.1.1, 5 for MQTT 5.0 and 3 for MQTT 3.1. It is 0
when the stream is not a CONNECT packet or is too short to tell. A CONNECT
whose protocol name and version do not match raises `InvalidProtocolError`.

`detect_packet_type` works the same way on the first byte and returns type
0 for an empty stream.

## Pooling

```python
from mqttwire.packets import PacketType
from mqttwire.v3.pool import acquire_by_type, release

pkt = acquire_by_type(PacketType.PUBLISH)
try:
    ...
finally:
    release(pkt)  # the packet is reset before it is reused
```

`acquire_by_type` returns `None` for a type it does not know. Buffers work
alike:

```python
from mqttwire.v3.buffers import acquire_pooled_buffer

buf = acquire_pooled_buffer(1024)
buf.data += b"payload bytes"
buf.release()
```

## Errors

Decoding failures are raised as exceptions:

- `EOFError` when a stream is exhausted before a field starts, and
  `UnexpectedEOFError` (a `CodecError` and an `EOFError`) when it ends part
  way through one.
- `MaxLengthExceededError` from `decode_vbi` for a variable byte integer that
  runs too long or is cut off; `encode_vbi` raises `ValueError` for values
  outside 0..268,435,455.
- `BufferTooShortError`, `MalformedVBIError` and `StringTooLongError` from
  `ZeroCopyReader` and `read_packet_bytes`.
- `UnsupportedPacketTypeError` from `new_control_packet_with_header` and the
  readers for a packet type that MQTT 3.1.1 does not define.

## What this package does not do

It is a wire-format library only. It opens no network connections, runs no
broker or client, keeps no session state and does not implement keep-alive.
`PacketType.AUTH` and the `V5` constant exist, and the sniffer recognises
MQTT 5.0 CONNECT packets, but there are no MQTT 5.0 packet classes: only
MQTT 3.1 / 3.1.1 packets can be encoded and decoded.

## Running the tests

```
pip install -e ".[test]"
pytest
```