import pytest

from rtpkit.errors import (
    ExtensionNotFoundError,
    ExtensionsNotEnabledError,
    HeaderExtensionSizeError,
    HeaderSizeInsufficientError,
    OneByteExtensionIDError,
    OneByteExtensionSizeError,
    RawExtensionIDError,
    ShortBufferError,
    TooSmallError,
)
from rtpkit.packet import Extension, Header, Packet

FIXED = bytes([0xD9, 0xC2, 0x93, 0xDA, 0x1C, 0x64, 0x27, 0x82])
PAYLOAD = bytes([0x98, 0x36, 0xBE, 0x88, 0x9E])


def _fields(**overrides):
    base = dict(
        marker=True,
        version=2,
        payload_type=96,
        sequence_number=27023,
        timestamp=3653407706,
        ssrc=476325762,
        csrc=[],
    )
    base.update(overrides)
    return base


def _raw_ext_fields(**overrides):
    return _fields(
        extension=True,
        extension_profile=1,
        extensions=[Extension(0, b"\xff\xff\xff\xff")],
        **overrides,
    )


def test_empty_packet_errors():
    with pytest.raises(HeaderSizeInsufficientError):
        Packet.unmarshal(b"")


def test_basic_roundtrip():
    raw = bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0x00, 0x01, 0x00, 0x01, 0xFF, 0xFF, 0xFF, 0xFF]
    ) + PAYLOAD
    packet = Packet.unmarshal(raw)
    assert packet == Packet(**_raw_ext_fields(), payload=raw[20:], padding_size=0)
    assert Header.marshal_size(packet) == 20
    assert packet.marshal_size() == len(raw)
    assert packet.marshal() == raw


def _padded(last):
    return bytes([0xB0, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0x00, 0x01, 0x00, 0x01, 0xFF, 0xFF, 0xFF, 0xFF, 0x98, 0x36, 0xBE, 0x88, last]
    )


def test_packet_with_padding():
    raw = _padded(0x04)
    packet = Packet.unmarshal(raw)
    assert packet == Packet(**_raw_ext_fields(padding=True), payload=raw[20:21], padding_size=4)


def test_packet_with_only_padding():
    packet = Packet.unmarshal(_padded(0x05))
    assert packet.payload == b""
    assert packet.padding_size == 5
    assert packet.padding is True


def test_packet_with_excessive_padding():
    with pytest.raises(TooSmallError):
        Packet.unmarshal(_padded(0x06))


def test_marshal_packet_with_padding():
    expected = bytes([0xB0, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0x00, 0x01, 0x00, 0x01, 0xFF, 0xFF, 0xFF, 0xFF, 0x98, 0x00, 0x00, 0x00, 0x04]
    )
    packet = Packet(**_raw_ext_fields(padding=True), payload=b"\x98", padding_size=4)
    assert packet.marshal() == expected


def test_marshal_packet_with_padding_only():
    expected = bytes([0xB0, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0x00, 0x01, 0x00, 0x01, 0xFF, 0xFF, 0xFF, 0xFF, 0x00, 0x00, 0x00, 0x00, 0x05]
    )
    packet = Packet(**_raw_ext_fields(padding=True), payload=b"", padding_size=5)
    assert packet.marshal() == expected


def test_extension_errors():
    with pytest.raises(HeaderExtensionSizeError):
        Packet.unmarshal(bytes([0x90, 0x60, 0x69, 0x8F]) + FIXED)
    with pytest.raises(HeaderExtensionSizeError):
        Packet.unmarshal(bytes([0x90, 0x60, 0x69, 0x8F]) + FIXED + bytes([0x99] * 4))
    packet = Packet(extension=True, extension_profile=3, extensions=[Extension(0, b"\x00")])
    with pytest.raises(ShortBufferError):
        packet.marshal()


def test_one_byte_extension_marshal():
    raw = bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0xBE, 0xDE, 0x00, 0x01, 0x50, 0xAA, 0x00, 0x00]
    ) + PAYLOAD
    parsed = Packet.unmarshal(raw)
    assert parsed.get_extension(5) == b"\xaa"
    packet = Packet(
        **_fields(extension=True, extension_profile=0xBEDE, extensions=[Extension(5, b"\xaa")]),
        payload=raw[20:],
    )
    assert packet.marshal() == raw


def test_one_byte_two_extensions_of_two_bytes():
    raw = bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0xBE, 0xDE, 0x00, 0x01, 0x10, 0xAA, 0x20, 0xBB]
    ) + PAYLOAD
    parsed = Packet.unmarshal(raw)
    assert parsed.get_extension(1) == b"\xaa"
    assert parsed.get_extension(2) == b"\xbb"
    packet = Packet(
        **_fields(
            extension=True,
            extension_profile=0xBEDE,
            extensions=[Extension(1, b"\xaa"), Extension(2, b"\xbb")],
        ),
        payload=raw[20:],
    )
    assert packet.marshal() == raw


def test_one_byte_multiple_extensions_with_padding():
    raw = bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0xBE, 0xDE, 0x00, 0x03, 0x10, 0xAA, 0x21, 0xBB,
         0xBB, 0x00, 0x00, 0x33, 0xCC, 0xCC, 0xCC, 0xCC]
    ) + PAYLOAD
    packet = Packet.unmarshal(raw)
    assert packet.get_extension(1) == b"\xaa"
    assert packet.get_extension(2) == b"\xbb\xbb"
    assert packet.get_extension(3) == b"\xcc" * 4
    remarshaled = bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0xBE, 0xDE, 0x00, 0x03, 0x10, 0xAA, 0x21, 0xBB,
         0xBB, 0x33, 0xCC, 0xCC, 0xCC, 0xCC, 0x00, 0x00]
    ) + PAYLOAD
    assert packet.marshal() == remarshaled


def test_one_byte_multiple_extensions():
    raw = bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0xBE, 0xDE, 0x00, 0x03, 0x10, 0xAA, 0x21, 0xBB,
         0xBB, 0x33, 0xCC, 0xCC, 0xCC, 0xCC, 0x00, 0x00]
    ) + PAYLOAD
    packet = Packet(
        **_fields(
            extension=True,
            extension_profile=0xBEDE,
            extensions=[
                Extension(1, b"\xaa"),
                Extension(2, b"\xbb\xbb"),
                Extension(3, b"\xcc" * 4),
            ],
        ),
        payload=raw[28:],
    )
    assert packet.marshal() == raw


def test_two_byte_extension():
    raw = bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0x10, 0x00, 0x00, 0x07, 0x05, 0x18]
    ) + b"\xaa" * 24 + b"\x00\x00" + PAYLOAD
    parsed = Packet.unmarshal(raw)
    assert parsed.get_extension(5) == b"\xaa" * 24
    packet = Packet(
        **_fields(extension=True, extension_profile=0x1000, extensions=[Extension(5, b"\xaa" * 24)]),
        payload=raw[44:],
    )
    assert packet.marshal() == raw


def test_two_byte_multiple_extensions_with_padding():
    raw = bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0x10, 0x00, 0x00, 0x03, 0x01, 0x00, 0x02, 0x01,
         0xBB, 0x00, 0x03, 0x04, 0xCC, 0xCC, 0xCC, 0xCC]
    ) + PAYLOAD
    packet = Packet.unmarshal(raw)
    assert packet.get_extension(1) == b""
    assert packet.get_extension(2) == b"\xbb"
    assert packet.get_extension(3) == b"\xcc" * 4


def test_two_byte_multiple_extensions_with_large_extension():
    raw = bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0x10, 0x00, 0x00, 0x06, 0x01, 0x00, 0x02, 0x01, 0xBB, 0x03, 0x11]
    ) + b"\xcc" * 17 + PAYLOAD
    packet = Packet(
        **_fields(
            extension=True,
            extension_profile=0x1000,
            extensions=[Extension(1, b""), Extension(2, b"\xbb"), Extension(3, b"\xcc" * 17)],
        ),
        payload=raw[40:],
    )
    assert packet.marshal() == raw


def test_get_extension_none_when_disabled():
    packet = Packet(**_fields(extension=False), payload=PAYLOAD)
    assert packet.get_extension(1) is None
    assert packet.get_extension_ids() == []
    with pytest.raises(ExtensionsNotEnabledError):
        packet.del_extension(1)


def test_del_extension():
    packet = Packet(
        **_fields(extension=True, extension_profile=0xBEDE, extensions=[Extension(1, b"\xaa")]),
        payload=PAYLOAD,
    )
    assert packet.get_extension(1) == b"\xaa"
    packet.del_extension(1)
    assert packet.get_extension(1) is None
    with pytest.raises(ExtensionNotFoundError):
        packet.del_extension(1)


def test_get_extension_ids():
    packet = Packet(
        **_fields(
            extension=True,
            extension_profile=0xBEDE,
            extensions=[Extension(1, b"\xaa"), Extension(2, b"\xbb")],
        ),
        payload=PAYLOAD,
    )
    ids = packet.get_extension_ids()
    assert ids == [1, 2]
    assert all(packet.get_extension(i) is not None for i in ids)


def test_set_extension_enables_one_byte():
    packet = Packet(**_fields(), payload=PAYLOAD)
    packet.set_extension(1, b"\xaa\xaa")
    assert packet.extension is True
    assert packet.extension_profile == 0xBEDE
    assert len(packet.extensions) == 1
    assert packet.get_extension(1) == b"\xaa\xaa"


def test_set_extension_16_bytes_is_one_byte_profile():
    packet = Packet(**_fields(), payload=PAYLOAD)
    packet.set_extension(1, b"\xaa" * 16)
    assert packet.extension_profile == 0xBEDE


def test_set_extension_updates_existing_one_byte():
    packet = Packet(
        **_fields(extension=True, extension_profile=0xBEDE, extensions=[Extension(1, b"\xaa")]),
        payload=PAYLOAD,
    )
    packet.set_extension(1, b"\xbb")
    assert packet.get_extension(1) == b"\xbb"
    assert len(packet.extensions) == 1


@pytest.mark.parametrize("ext_id", [0, 15])
def test_set_extension_invalid_one_byte_id(ext_id):
    packet = Packet(
        **_fields(extension=True, extension_profile=0xBEDE, extensions=[Extension(1, b"\xaa")]),
        payload=PAYLOAD,
    )
    with pytest.raises(OneByteExtensionIDError):
        packet.set_extension(ext_id, b"\xbb")


@pytest.mark.parametrize("size", [17, 256])
def test_set_extension_one_byte_payload_too_large(size):
    packet = Packet(
        **_fields(extension=True, extension_profile=0xBEDE, extensions=[Extension(1, b"\xaa")]),
        payload=PAYLOAD,
    )
    with pytest.raises(OneByteExtensionSizeError):
        packet.set_extension(1, b"\xbb" * size)


def test_reserved_id_terminates_processing():
    raw = bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0xBE, 0xDE, 0x00, 0x01, 0xF0, 0xAA]
    ) + PAYLOAD
    packet = Packet.unmarshal(raw)
    assert packet.extensions == []
    assert packet.payload == raw[17:]


def test_set_extension_enables_two_byte():
    packet = Packet(**_fields(), payload=PAYLOAD)
    packet.set_extension(1, b"\xaa" * 17)
    assert packet.extension is True
    assert packet.extension_profile == 0x1000
    assert packet.get_extension(1) == b"\xaa" * 17


def test_set_extension_updates_existing_two_byte():
    packet = Packet(
        **_fields(extension=True, extension_profile=0x1000, extensions=[Extension(1, b"\xaa")]),
        payload=PAYLOAD,
    )
    packet.set_extension(1, b"\xbb" * 17)
    assert packet.get_extension(1) == b"\xbb" * 17


@pytest.mark.parametrize(
    "profile",
    [b"\xbe\xde", b"\x10\x00"],
)
def test_padding_before_truncated_extension(profile):
    raw = bytes([0b00010000]) + bytes(11) + profile + bytes([0, 1, 0, 0, 0, 1])
    with pytest.raises(HeaderExtensionSizeError):
        Header.unmarshal(raw)


def test_raw_extension_set_zero_id():
    packet = Packet(
        **_fields(extension=True, extension_profile=0x1111, extensions=[Extension(0, b"\xaa")]),
        payload=PAYLOAD,
    )
    packet.set_extension(0, b"\xbb")
    assert packet.get_extension(0) == b"\xbb"


def test_raw_extension_set_nonzero_id():
    packet = Packet(**_fields(extension=True, extension_profile=0x1111), payload=PAYLOAD)
    with pytest.raises(RawExtensionIDError):
        packet.set_extension(1, b"\xbb")


@pytest.mark.parametrize(
    "raw, error",
    [
        (bytes([0x80, 0xE0, 0x69, 0x8F]) + FIXED[:7], HeaderSizeInsufficientError),
        (bytes([0x81, 0xE0, 0x69, 0x8F]) + FIXED, HeaderSizeInsufficientError),
        (bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED, HeaderExtensionSizeError),
        (bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes([0xBE, 0xDE, 0x00, 0x03]),
         HeaderExtensionSizeError),
        (bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes([0xBE, 0xDE, 0x00, 0x01, 0x12, 0x00]),
         HeaderExtensionSizeError),
    ],
)
def test_unmarshal_error_handling(raw, error):
    with pytest.raises(error):
        Header.unmarshal(raw)


def test_header_unmarshal_returns_length():
    raw = bytes([0x90, 0xE0, 0x69, 0x8F]) + FIXED + bytes(
        [0xBE, 0xDE, 0x00, 0x01, 0x50, 0xAA, 0x00, 0x00]
    ) + PAYLOAD
    header, n = Header.unmarshal(raw)
    assert n == 20
    assert header.extensions == [Extension(5, b"\xaa")]
    assert header.sequence_number == 27023


def test_roundtrip():
    raw = bytes(
        [0x00, 0x10, 0x23, 0x45, 0x12, 0x34, 0x45, 0x67, 0xCC, 0xDD, 0xEE, 0xFF,
         0x00, 0x11, 0x22, 0x33, 0x44, 0x55, 0x66, 0x77]
    )
    packet = Packet.unmarshal(raw)
    assert packet.payload == raw[12:]
    assert packet.marshal() == raw
    assert packet.payload == raw[12:]


def test_clone_header():
    header = Header(**_raw_ext_fields())
    clone = header.clone()
    assert clone == header
    header.csrc.append(1)
    assert len(clone.csrc) == 0
    header.extensions[0].payload = b"\x1f\xff\xff\xff"
    assert clone.extensions[0].payload == b"\xff\xff\xff\xff"


def test_clone_packet():
    packet = Packet(payload=PAYLOAD)
    clone = packet.clone()
    assert clone == packet
    assert isinstance(clone, Packet)
    packet.payload = b"\x1f" + PAYLOAD[1:]
    assert clone.payload[0] == 0x98


def test_str():
    packet = Packet(**_fields(), payload=PAYLOAD)
    text = str(packet)
    assert text.startswith("RTP PACKET:\n\tVersion: 2\n\tMarker: true\n")
    assert "\tSSRC: 476325762 (1c642782)\n" in text
    assert text.endswith("\tPayload Length: 5\n")