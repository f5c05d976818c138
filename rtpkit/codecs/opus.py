"""Opus RTP payload format."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..depacketizer import Depacketizer
from ..errors import NilPacketError, ShortPacketError


class OpusPayloader:
    """Places each Opus frame into a single RTP payload."""

    def payload(self, mtu: int, payload: Optional[bytes]) -> list[bytes]:
        if payload is None:
            return []
        return [bytes(payload)]


@dataclass
class OpusPacket(Depacketizer):
    """An Opus RTP payload; the payload is the Opus frame itself."""

    payload: bytes = b""

    def unmarshal(self, packet: Optional[bytes]) -> bytes:
        if packet is None:
            raise NilPacketError
        if len(packet) == 0:
            raise ShortPacketError
        self.payload = bytes(packet)
        return self.payload

    def is_partition_head(self, payload: bytes) -> bool:
        """Every Opus packet starts a new partition."""
        return True