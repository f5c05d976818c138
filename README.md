# rtpkit

A pure Python library with no dependencies for building and parsing RTP packets.

## What it contains

- `rtpkit.packet`: `Header` and `Packet` read RTP packets and write them back out. They handle CSRC lists, padding, RFC 3550 raw header extensions, and RFC 8285 one-byte and two-byte header extensions. `Extension` holds a single extension element.
- `rtpkit.header_extension`: `OneByteHeaderExtension`, `TwoByteHeaderExtension` and `RawExtension` edit an extension block that is already encoded. Each one provides `set`, `get`, `get_ids`, `delete`, `unmarshal`, `marshal` and `marshal_size`.
- `rtpkit.extensions`: `PlayoutDelayExtension` and `TransportCCExtension` encode and decode the payloads of these two extensions.
- `rtpkit.sequencer`: `Sequencer` hands out 16-bit sequence numbers. It is thread-safe and counts roll-overs. You can get one from `new_random_sequencer()` or `new_fixed_sequencer(start)`.
- `rtpkit.packetizer`: `Packetizer` splits media frames into RTP packets. It uses a `Payloader`, which is any object that has a `payload(mtu, payload)` method. It also has `generate_padding(samples)` and `skip_samples(n)`.
- `rtpkit.depacketizer`: `Depacketizer` is the abstract base for payload parsers. `PartitionHeadChecker` is a protocol.
- `rtpkit.codecs.opus`: `OpusPayloader` and `OpusPacket`.
- `rtpkit.codecs.vp8`: `VP8Payloader`, `VP8Packet` and `VP8PartitionHeadChecker`.
- `rtpkit.codecs.vp9`: `VP9Payloader` supports flexible and non-flexible mode. This module also has `VP9Packet` and `VP9PartitionHeadChecker`.
- `rtpkit.codecs.vp9_header`: `VP9Header` parses the uncompressed header of a VP9 frame. It gives the profile, the color config and the frame size.
- `rtpkit.codecs.h265_units` and `rtpkit.codecs.h265`: parsers for H.265 payloads (RFC 7798). They cover NAL unit headers, single NAL unit packets, aggregation packets, fragmentation units and PACI packets with TSCI. `H265Packet` chooses the right parser from the payload header.
- `rtpkit.payload_types`: `PayloadType` is an `IntEnum` of the static payload type numbers.

Every error is raised as a subclass of `rtpkit.errors.RTPError`. Examples are `HeaderSizeInsufficientError`, `TooSmallError` and `ShortPacketError`.

## Installation

```
pip install .
```

To install with the test dependencies:

```
pip install .[test]
```

## Parsing a packet

```python
from rtpkit.packet import Packet

raw = bytes([
    0x90, 0xE0, 0x69, 0x8F, 0xD9, 0xC2, 0x93, 0xDA, 0x1C, 0x64,
    0x27, 0x82, 0xBE, 0xDE, 0x00, 0x01, 0x50, 0xAA, 0x00, 0x00,
    0x98, 0x36, 0xBE, 0x88, 0x9E,
])
packet = Packet.unmarshal(raw)
print(packet)
print(packet.get_extension(5))   # b'\xaa'
assert packet.marshal() == raw
```

## Header extensions

```python
from rtpkit.packet import Header

header = Header(version=2, payload_type=96)
header.set_extension(1, b"\xaa\xbb")   # payloads of 16 bytes or fewer use the one-byte profile
print(header.get_extension_ids())       # [1]
header.del_extension(1)
```

## Packetizing a frame

```python
from rtpkit.codecs.vp8 import VP8Payloader
from rtpkit.packetizer import Packetizer
from rtpkit.sequencer import new_random_sequencer

packetizer = Packetizer(
    1200,
    VP8Payloader(),
    new_random_sequencer(),
    90000,
    payload_type=96,
    ssrc=0x1234ABCD,
)
for pkt in packetizer.packetize(b"\x00" * 4000, 3000):
    wire = pkt.marshal()
```

## Depacketizing

```python
from rtpkit.codecs.vp9 import VP9Packet
from rtpkit.codecs.h265 import H265Packet

vp9 = VP9Packet()
media = vp9.unmarshal(bytes([0x80, 0x02, 0xAA]))
print(vp9.picture_id, media)      # 2 b'\xaa'

h265 = H265Packet()
h265.unmarshal(bytes([0x02, 0x01, 0xAB]))
print(h265.packet.payload)        # b'\xab'
```

## What it does not do

- Payloaders exist only for Opus, VP8 and VP9. H.265 payloads can be parsed, but they cannot be built.
- There is no support for H.264, AV1 or G.7xx payloads.
- `Packetizer` does not add an absolute send time extension. If you need header extensions, add them to the returned packets with `set_extension`.
- The library contains no network I/O. It does not include RTCP, SRTP or a jitter buffer.

## Running the tests

```
pytest
```