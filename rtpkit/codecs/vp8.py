"""VP8 RTP payload format (RFC 7741)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..depacketizer import Depacketizer
from ..errors import NilPacketError, ShortPacketError

VP8_HEADER_SIZE = 1


@dataclass
class VP8Payloader:
    """Splits VP8 frames into RTP payloads, optionally carrying a picture ID."""

    enable_picture_id: bool = False
    picture_id: int = 0

    def _header_size(self) -> int:
        if not self.enable_picture_id or self.picture_id == 0:
            return VP8_HEADER_SIZE
        if self.picture_id < 128:
            return VP8_HEADER_SIZE + 2
        return VP8_HEADER_SIZE + 3

    def payload(self, mtu: int, payload: Optional[bytes]) -> list[bytes]:
        data = bytes(payload or b"")
        header_size = self._header_size()
        max_fragment = mtu - header_size

        if min(max_fragment, len(data)) <= 0:
            return []

        payloads = []
        for offset in range(0, len(data), max_fragment):
            fragment = data[offset : offset + max_fragment]
            header = bytearray(header_size)
            if offset == 0:
                header[0] = 0x10
            if header_size == VP8_HEADER_SIZE + 2:
                header[0] |= 0x80
                header[1] |= 0x80
                header[2] |= self.picture_id & 0x7F
            elif header_size == VP8_HEADER_SIZE + 3:
                header[0] |= 0x80
                header[1] |= 0x80
                header[2] |= 0x80 | ((self.picture_id >> 8) & 0x7F)
                header[3] |= self.picture_id & 0xFF
            payloads.append(bytes(header) + fragment)

        self.picture_id = (self.picture_id + 1) & 0x7FFF
        return payloads


@dataclass
class VP8Packet(Depacketizer):
    """The VP8 payload descriptor followed by the VP8 payload."""

    x: int = 0
    n: int = 0
    s: int = 0
    pid: int = 0
    i: int = 0
    l: int = 0  # noqa: E741
    t: int = 0
    k: int = 0
    picture_id: int = 0
    tl0picidx: int = 0
    tid: int = 0
    y: int = 0
    keyidx: int = 0
    payload: bytes = b""

    def unmarshal(self, payload: Optional[bytes]) -> bytes:
        if payload is None:
            raise NilPacketError
        payload = bytes(payload)
        size = len(payload)
        index = 0

        if index >= size:
            raise ShortPacketError
        first = payload[index]
        self.x = (first & 0x80) >> 7
        self.n = (first & 0x20) >> 5
        self.s = (first & 0x10) >> 4
        self.pid = first & 0x07
        index += 1

        if self.x == 1:
            if index >= size:
                raise ShortPacketError
            ext = payload[index]
            self.i = (ext & 0x80) >> 7
            self.l = (ext & 0x40) >> 6
            self.t = (ext & 0x20) >> 5
            self.k = (ext & 0x10) >> 4
            index += 1
        else:
            self.i = self.l = self.t = self.k = 0

        if self.i == 1:
            if index >= size:
                raise ShortPacketError
            if payload[index] & 0x80:
                if index + 1 >= size:
                    raise ShortPacketError
                self.picture_id = ((payload[index] & 0x7F) << 8) | payload[index + 1]
                index += 2
            else:
                self.picture_id = payload[index]
                index += 1
        else:
            self.picture_id = 0

        if self.l == 1:
            if index >= size:
                raise ShortPacketError
            self.tl0picidx = payload[index]
            index += 1
        else:
            self.tl0picidx = 0

        if self.t == 1 or self.k == 1:
            if index >= size:
                raise ShortPacketError
            byte = payload[index]
            if self.t == 1:
                self.tid = byte >> 6
                self.y = (byte >> 5) & 0x1
            else:
                self.tid = 0
                self.y = 0
            self.keyidx = byte & 0x1F if self.k == 1 else 0
            index += 1
        else:
            self.tid = 0
            self.y = 0
            self.keyidx = 0

        self.payload = payload[index:]
        return self.payload

    def is_partition_head(self, payload: bytes) -> bool:
        """True when the S bit marks the start of a VP8 partition."""
        if len(payload) < 1:
            return False
        return (payload[0] & 0x10) != 0


class VP8PartitionHeadChecker:
    """Checks VP8 partition heads; same as ``VP8Packet.is_partition_head``."""

    def is_partition_head(self, packet: bytes) -> bool:
        return VP8Packet().is_partition_head(packet)