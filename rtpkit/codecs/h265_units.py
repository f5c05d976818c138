"""H.265 RTP payload structures (RFC 7798): NAL unit headers, single NAL unit,
aggregation and fragmentation unit packets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..errors import (
    H265CorruptedPacketError,
    InvalidH265PacketTypeError,
    NilPacketError,
    ShortPacketError,
)

H265_NALU_HEADER_SIZE = 2
H265_NALU_AGGREGATION_PACKET_TYPE = 48
H265_NALU_FRAGMENTATION_UNIT_TYPE = 49
H265_NALU_PACI_PACKET_TYPE = 50
H265_FRAGMENTATION_UNIT_HEADER_SIZE = 1


class H265NALUHeader(int):
    """The two-byte H.265 NAL unit header: F | Type | LayerID | TID."""

    def f(self) -> bool:
        """The forbidden zero bit."""
        return (self >> 15) != 0

    def type(self) -> int:
        """The NAL unit type."""
        return (self & (0b01111110 << 8)) >> 9

    def is_type_vcl_unit(self) -> bool:
        """True when the type denotes a VCL NAL unit."""
        return (self.type() & 0b00100000) == 0

    def layer_id(self) -> int:
        """The layer identifier; zero outside of 3D/scalable HEVC."""
        return (self & ((0b00000001 << 8) | 0b11111000)) >> 3

    def tid(self) -> int:
        """The temporal identifier plus one."""
        return self & 0b00000111

    def is_aggregation_packet(self) -> bool:
        return self.type() == H265_NALU_AGGREGATION_PACKET_TYPE

    def is_fragmentation_unit(self) -> bool:
        return self.type() == H265_NALU_FRAGMENTATION_UNIT_TYPE

    def is_paci_packet(self) -> bool:
        return self.type() == H265_NALU_PACI_PACKET_TYPE


class H265FragmentationUnitHeader(int):
    """The one-byte fragmentation unit header: S | E | FuType."""

    def s(self) -> bool:
        """Start of a fragmented NAL unit."""
        return (self & 0b10000000) != 0

    def e(self) -> bool:
        """End of a fragmented NAL unit."""
        return (self & 0b01000000) != 0

    def fu_type(self) -> int:
        """The type of the fragmented NAL unit."""
        return self & 0b00111111


def _read_u16(data: bytes) -> int:
    return (data[0] << 8) | data[1]


def _parse_payload_header(payload: Optional[bytes], header_size: int) -> tuple[bytes, H265NALUHeader]:
    """Validate the common prefix and return the payload bytes and NAL unit header."""
    if payload is None:
        raise NilPacketError
    payload = bytes(payload)
    if len(payload) <= header_size:
        raise ShortPacketError(f"{len(payload)} <= {header_size}")
    header = H265NALUHeader(_read_u16(payload))
    if header.f():
        raise H265CorruptedPacketError
    return payload, header


@dataclass
class H265SingleNALUnitPacket:
    """A payload carrying exactly one NAL unit."""

    might_need_donl: bool = False
    payload_header: H265NALUHeader = H265NALUHeader(0)
    donl: Optional[int] = None
    payload: bytes = b""

    def unmarshal(self, payload: Optional[bytes]) -> None:
        """Parse ``payload`` into this packet."""
        data, header = _parse_payload_header(payload, H265_NALU_HEADER_SIZE)
        if (
            header.is_fragmentation_unit()
            or header.is_paci_packet()
            or header.is_aggregation_packet()
        ):
            raise InvalidH265PacketTypeError

        data = data[2:]
        donl = self.donl
        if self.might_need_donl:
            if len(data) <= 2:
                raise ShortPacketError
            donl = _read_u16(data)
            data = data[2:]

        self.donl = donl
        self.payload_header = header
        self.payload = data


@dataclass
class H265AggregationUnitFirst:
    """The first aggregation unit of an aggregation packet."""

    donl: Optional[int] = None
    nal_unit_size: int = 0
    nal_unit: bytes = b""


@dataclass
class H265AggregationUnit:
    """An aggregation unit after the first one in an aggregation packet."""

    dond: Optional[int] = None
    nal_unit_size: int = 0
    nal_unit: bytes = b""


@dataclass
class H265AggregationPacket:
    """A payload aggregating two or more NAL units."""

    might_need_donl: bool = False
    first_unit: Optional[H265AggregationUnitFirst] = None
    other_units: list[H265AggregationUnit] = field(default_factory=list)

    def unmarshal(self, payload: Optional[bytes]) -> None:
        """Parse ``payload`` into this packet."""
        data, header = _parse_payload_header(payload, H265_NALU_HEADER_SIZE)
        if not header.is_aggregation_packet():
            raise InvalidH265PacketTypeError

        data = data[2:]
        first = H265AggregationUnitFirst()
        if self.might_need_donl:
            if len(data) < 2:
                raise ShortPacketError
            first.donl = _read_u16(data)
            data = data[2:]
        if len(data) < 2:
            raise ShortPacketError
        first.nal_unit_size = _read_u16(data)
        data = data[2:]
        if len(data) < first.nal_unit_size:
            raise ShortPacketError
        first.nal_unit = data[: first.nal_unit_size]
        data = data[first.nal_unit_size :]

        units: list[H265AggregationUnit] = []
        while True:
            unit = H265AggregationUnit()
            if self.might_need_donl:
                if len(data) < 1:
                    break
                unit.dond = data[0]
                data = data[1:]
            if len(data) < 2:
                break
            unit.nal_unit_size = _read_u16(data)
            data = data[2:]
            if len(data) < unit.nal_unit_size:
                break
            unit.nal_unit = data[: unit.nal_unit_size]
            data = data[unit.nal_unit_size :]
            units.append(unit)

        if not units:
            raise ShortPacketError("an aggregation packet needs at least two units")

        self.first_unit = first
        self.other_units = units


@dataclass
class H265FragmentationUnitPacket:
    """A payload carrying one fragment of a NAL unit."""

    might_need_donl: bool = False
    payload_header: H265NALUHeader = H265NALUHeader(0)
    fu_header: H265FragmentationUnitHeader = H265FragmentationUnitHeader(0)
    donl: Optional[int] = None
    payload: bytes = b""

    def unmarshal(self, payload: Optional[bytes]) -> None:
        """Parse ``payload`` into this packet."""
        data, header = _parse_payload_header(
            payload, H265_NALU_HEADER_SIZE + H265_FRAGMENTATION_UNIT_HEADER_SIZE
        )
        if not header.is_fragmentation_unit():
            raise InvalidH265PacketTypeError

        fu_header = H265FragmentationUnitHeader(data[2])
        data = data[3:]

        donl = self.donl
        if fu_header.s() and self.might_need_donl:
            if len(data) <= 2:
                raise ShortPacketError
            donl = _read_u16(data)
            data = data[2:]

        self.donl = donl
        self.payload_header = header
        self.fu_header = fu_header
        self.payload = data