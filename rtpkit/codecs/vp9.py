"""VP9 RTP payload format."""

from __future__ import annotations

import dataclasses
import random
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..depacketizer import Depacketizer
from ..errors import (
    NilPacketError,
    RTPError,
    ShortPacketError,
    TooManyPDiffError,
    TooManySpatialLayersError,
)
from .vp9_header import VP9Header

MAX_SPATIAL_LAYERS = 5
MAX_VP9_REF_PICS = 3
PICTURE_ID_LIMIT = 0x8000

_random = random.SystemRandom()


def _random_picture_id() -> int:
    return _random.randrange(0x7FFF)


@dataclass
class VP9Payloader:
    """Splits VP9 frames into RTP payloads in flexible or non-flexible mode."""

    flexible_mode: bool = False
    initial_picture_id_fn: Optional[Callable[[], int]] = None
    _picture_id: int = field(default=0, init=False, repr=False)
    _initialized: bool = field(default=False, init=False, repr=False)

    def payload(self, mtu: int, payload: Optional[bytes]) -> list[bytes]:
        """Fragment one frame; the picture ID advances once per call."""
        if not self._initialized:
            if self.initial_picture_id_fn is None:
                self.initial_picture_id_fn = _random_picture_id
            self._picture_id = self.initial_picture_id_fn() & 0x7FFF
            self._initialized = True

        data = bytes(payload or b"")
        if self.flexible_mode:
            payloads = self._payload_flexible(mtu, data)
        else:
            payloads = self._payload_non_flexible(mtu, data)

        self._picture_id += 1
        if self._picture_id >= PICTURE_ID_LIMIT:
            self._picture_id = 0
        return payloads

    def _picture_id_bytes(self) -> bytes:
        return bytes([((self._picture_id >> 8) & 0xFF) | 0x80, self._picture_id & 0xFF])

    def _payload_flexible(self, mtu: int, data: bytes) -> list[bytes]:
        header_size = 3
        max_fragment = mtu - header_size
        if min(max_fragment, len(data)) <= 0:
            return []

        payloads = []
        for offset in range(0, len(data), max_fragment):
            fragment = data[offset : offset + max_fragment]
            first = 0x90  # F=1, I=1
            if offset == 0:
                first |= 0x08  # B=1
            if offset + len(fragment) == len(data):
                first |= 0x04  # E=1
            payloads.append(bytes([first]) + self._picture_id_bytes() + fragment)
        return payloads

    def _payload_non_flexible(self, mtu: int, data: bytes) -> list[bytes]:
        try:
            header = VP9Header.unmarshal(data)
        except RTPError:
            return []

        payloads = []
        offset = 0
        while offset < len(data):
            with_ss = not header.non_key_frame and offset == 0
            header_size = 3 + 8 if with_ss else 3
            remaining = len(data) - offset
            fragment_size = min(mtu - header_size, remaining)
            if fragment_size <= 0:
                return []

            first = 0x80 | 0x01  # I=1, Z=1
            if header.non_key_frame:
                first |= 0x40  # P=1
            if offset == 0:
                first |= 0x08  # B=1
            if remaining == fragment_size:
                first |= 0x04  # E=1

            descriptor = bytearray(self._picture_id_bytes())
            if with_ss:
                first |= 0x02  # V=1
                width = header.width()
                height = header.height()
                descriptor += bytes([
                    0x10 | 0x08,  # N_S=0, Y=1, G=1
                    (width >> 8) & 0xFF,
                    width & 0xFF,
                    (height >> 8) & 0xFF,
                    height & 0xFF,
                    0x01,  # N_G=1
                    (1 << 4) | (1 << 2),  # TID=0, U=1, R=1
                    0x01,  # P_DIFF=1
                ])

            payloads.append(
                bytes([first]) + bytes(descriptor) + data[offset : offset + fragment_size]
            )
            offset += fragment_size
        return payloads


@dataclass
class VP9Packet(Depacketizer):
    """The VP9 payload descriptor followed by the VP9 payload."""

    i: bool = False
    p: bool = False
    l: bool = False  # noqa: E741
    f: bool = False
    b: bool = False
    e: bool = False
    v: bool = False
    z: bool = False

    picture_id: int = 0

    tid: int = 0
    u: bool = False
    sid: int = 0
    d: bool = False

    pdiff: list[int] = field(default_factory=list)
    tl0picidx: int = 0

    ns: int = 0
    y: bool = False
    g: bool = False
    ng: int = 0
    width: list[int] = field(default_factory=list)
    height: list[int] = field(default_factory=list)
    pgtid: list[int] = field(default_factory=list)
    pgu: list[bool] = field(default_factory=list)
    pgpdiff: list[list[int]] = field(default_factory=list)

    payload: bytes = b""

    def _reset(self) -> None:
        for item in dataclasses.fields(self):
            if item.default_factory is not dataclasses.MISSING:
                setattr(self, item.name, item.default_factory())
            else:
                setattr(self, item.name, item.default)

    def unmarshal(self, packet: Optional[bytes]) -> bytes:
        if packet is None:
            raise NilPacketError
        packet = bytes(packet)
        if len(packet) < 1:
            raise ShortPacketError

        self._reset()
        first = packet[0]
        self.i = bool(first & 0x80)
        self.p = bool(first & 0x40)
        self.l = bool(first & 0x20)
        self.f = bool(first & 0x10)
        self.b = bool(first & 0x08)
        self.e = bool(first & 0x04)
        self.v = bool(first & 0x02)
        self.z = bool(first & 0x01)

        pos = 1
        if self.i:
            pos = self._parse_picture_id(packet, pos)
        if self.l:
            pos = self._parse_layer_info(packet, pos)
        if self.f and self.p:
            pos = self._parse_ref_indices(packet, pos)
        if self.v:
            pos = self._parse_ss_data(packet, pos)

        self.payload = packet[pos:]
        return self.payload

    def _parse_picture_id(self, packet: bytes, pos: int) -> int:
        if len(packet) <= pos:
            raise ShortPacketError
        self.picture_id = packet[pos] & 0x7F
        if packet[pos] & 0x80:
            pos += 1
            if len(packet) <= pos:
                raise ShortPacketError
            self.picture_id = (self.picture_id << 8) | packet[pos]
        return pos + 1

    def _parse_layer_info(self, packet: bytes, pos: int) -> int:
        if len(packet) <= pos:
            raise ShortPacketError
        byte = packet[pos]
        self.tid = byte >> 5
        self.u = bool(byte & 0x10)
        self.sid = (byte >> 1) & 0x7
        self.d = bool(byte & 0x01)
        if self.sid >= MAX_SPATIAL_LAYERS:
            raise TooManySpatialLayersError
        pos += 1

        if self.f:
            return pos
        if len(packet) <= pos:
            raise ShortPacketError
        self.tl0picidx = packet[pos]
        return pos + 1

    def _parse_ref_indices(self, packet: bytes, pos: int) -> int:
        while True:
            if len(packet) <= pos:
                raise ShortPacketError
            self.pdiff.append(packet[pos] >> 1)
            if packet[pos] & 0x01 == 0:
                break
            if len(self.pdiff) >= MAX_VP9_REF_PICS:
                raise TooManyPDiffError
            pos += 1
        return pos + 1

    def _parse_ss_data(self, packet: bytes, pos: int) -> int:
        if len(packet) <= pos:
            raise ShortPacketError
        byte = packet[pos]
        self.ns = byte >> 5
        self.y = bool(byte & 0x10)
        self.g = bool(byte & 0x08)
        pos += 1

        layers = self.ns + 1
        self.ng = 0

        if self.y:
            self.width = []
            self.height = []
            for _ in range(layers):
                if len(packet) <= pos + 3:
                    raise ShortPacketError
                self.width.append((packet[pos] << 8) | packet[pos + 1])
                self.height.append((packet[pos + 2] << 8) | packet[pos + 3])
                pos += 4

        if self.g:
            if len(packet) <= pos:
                raise ShortPacketError
            self.ng = packet[pos]
            pos += 1

        for _ in range(self.ng):
            if len(packet) <= pos:
                raise ShortPacketError
            byte = packet[pos]
            self.pgtid.append(byte >> 5)
            self.pgu.append(bool(byte & 0x10))
            refs = (byte >> 2) & 0x3
            pos += 1

            diffs: list[int] = []
            self.pgpdiff.append(diffs)
            if len(packet) <= pos + refs - 1:
                raise ShortPacketError
            diffs.extend(packet[pos : pos + refs])
            pos += refs

        return pos

    def is_partition_head(self, payload: Optional[bytes]) -> bool:
        """True when the B bit marks the start of a frame."""
        if not payload:
            return False
        return (payload[0] & 0x08) != 0


class VP9PartitionHeadChecker:
    """Checks VP9 partition heads; same as ``VP9Packet.is_partition_head``."""

    def is_partition_head(self, packet: Optional[bytes]) -> bool:
        return VP9Packet().is_partition_head(packet)