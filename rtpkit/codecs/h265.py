"""H.265 RTP payload format (RFC 7798): PACI packets, TSCI and the top-level packet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..depacketizer import Depacketizer
from ..errors import (
    H265CorruptedPacketError,
    InvalidH265PacketTypeError,
    NilPacketError,
    ShortPacketError,
)
from .h265_units import (
    H265_NALU_FRAGMENTATION_UNIT_TYPE,
    H265_NALU_HEADER_SIZE,
    H265AggregationPacket,
    H265FragmentationUnitHeader,
    H265FragmentationUnitPacket,
    H265NALUHeader,
    H265SingleNALUnitPacket,
)

PACI_HEADER_FIELDS_SIZE = 2


class H265TSCI(int):
    """Temporal Scalability Control Information header extension (RFC 7798, 4.5)."""

    def tl0picidx(self) -> int:
        return (((self & 0xFFFF0000) >> 16) & 0xFF00) >> 8

    def irap_pic_id(self) -> int:
        return ((self & 0xFFFF0000) >> 16) & 0x00FF

    def s(self) -> bool:
        return (((self & 0xFF00) >> 8) & 0b10000000) != 0

    def e(self) -> bool:
        return (((self & 0xFF00) >> 8) & 0b01000000) != 0

    def res(self) -> int:
        return ((self & 0xFF00) >> 8) & 0b00111111


@dataclass
class H265PACIPacket:
    """A PACI packet: payload header, PACI fields, header extension and NAL unit."""

    payload_header: H265NALUHeader = H265NALUHeader(0)
    paci_header_fields: int = 0
    phes: Optional[bytes] = None
    payload: bytes = b""

    def a(self) -> bool:
        """Copy of the F bit of the carried NAL unit."""
        return (self.paci_header_fields & (0b10000000 << 8)) != 0

    def c_type(self) -> int:
        """Copy of the Type field of the carried NAL unit."""
        return (self.paci_header_fields & (0b01111110 << 8)) >> 9

    def phs_size(self) -> int:
        """Size in bytes of the header extension."""
        return (self.paci_header_fields & ((0b00000001 << 8) | 0b11110000)) >> 4

    def f0(self) -> bool:
        """Whether a TSCI extension is present in the header extension."""
        return (self.paci_header_fields & 0b00001000) != 0

    def f1(self) -> bool:
        return (self.paci_header_fields & 0b00000100) != 0

    def f2(self) -> bool:
        return (self.paci_header_fields & 0b00000010) != 0

    def y(self) -> bool:
        return (self.paci_header_fields & 0b00000001) != 0

    def tsci(self) -> Optional[H265TSCI]:
        """The TSCI extension, or None when it is absent."""
        if not self.f0() or self.phs_size() < 3 or self.phes is None:
            return None
        phes = self.phes
        return H265TSCI((phes[0] << 16) | (phes[1] << 8) | phes[0])

    def unmarshal(self, payload: Optional[bytes]) -> None:
        """Parse ``payload`` into this packet."""
        header_size = H265_NALU_HEADER_SIZE + PACI_HEADER_FIELDS_SIZE
        if payload is None:
            raise NilPacketError
        data = bytes(payload)
        if len(data) <= header_size:
            raise ShortPacketError(f"{len(data)} <= {header_size}")

        header = H265NALUHeader((data[0] << 8) | data[1])
        if header.f():
            raise H265CorruptedPacketError
        if not header.is_paci_packet():
            raise InvalidH265PacketTypeError

        self.paci_header_fields = (data[2] << 8) | data[3]
        data = data[4:]
        extension_size = self.phs_size()

        if len(data) < extension_size + 1:
            self.paci_header_fields = 0
            raise ShortPacketError

        self.payload_header = header
        if extension_size > 0:
            self.phes = data[:extension_size]
        self.payload = data[extension_size:]


H265AnyPacket = Union[
    H265SingleNALUnitPacket,
    H265FragmentationUnitPacket,
    H265AggregationPacket,
    H265PACIPacket,
]


@dataclass
class H265Packet(Depacketizer):
    """An H.265 RTP payload, decoded into the packet kind its header announces."""

    might_need_donl: bool = False
    packet: Optional[H265AnyPacket] = None

    def unmarshal(self, payload: Optional[bytes]) -> None:
        """Parse ``payload``; the decoded structure is stored in ``packet``."""
        if payload is None:
            raise NilPacketError
        data = bytes(payload)
        if len(data) <= H265_NALU_HEADER_SIZE:
            raise ShortPacketError(f"{len(data)} <= {H265_NALU_HEADER_SIZE}")

        header = H265NALUHeader((data[0] << 8) | data[1])
        if header.f():
            raise H265CorruptedPacketError

        decoded: H265AnyPacket
        if header.is_paci_packet():
            decoded = H265PACIPacket()
        elif header.is_fragmentation_unit():
            decoded = H265FragmentationUnitPacket(might_need_donl=self.might_need_donl)
        elif header.is_aggregation_packet():
            decoded = H265AggregationPacket(might_need_donl=self.might_need_donl)
        else:
            decoded = H265SingleNALUnitPacket(might_need_donl=self.might_need_donl)

        decoded.unmarshal(data)
        self.packet = decoded

    def is_partition_head(self, payload: Optional[bytes]) -> bool:
        """True unless the payload is a fragmentation unit that is not the first fragment."""
        if payload is None or len(payload) < 3:
            return False
        header = H265NALUHeader((payload[0] << 8) | payload[1])
        if header.type() == H265_NALU_FRAGMENTATION_UNIT_TYPE:
            return H265FragmentationUnitHeader(payload[2]).s()
        return True