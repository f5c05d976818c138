"""Payload formats of well-known RTP header extensions."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import PlayoutDelayValueError, TooSmallError

PLAYOUT_DELAY_EXTENSION_SIZE = 3
PLAYOUT_DELAY_MAX_VALUE = (1 << 12) - 1
TRANSPORT_CC_EXTENSION_SIZE = 2


@dataclass
class PlayoutDelayExtension:
    """Playout delay extension: two 12-bit delay values."""

    min_delay: int = 0
    max_delay: int = 0

    def marshal(self) -> bytes:
        if self.min_delay > PLAYOUT_DELAY_MAX_VALUE or self.max_delay > PLAYOUT_DELAY_MAX_VALUE:
            raise PlayoutDelayValueError
        return bytes([
            (self.min_delay >> 4) & 0xFF,
            ((self.min_delay << 4) & 0xFF) | (self.max_delay >> 8),
            self.max_delay & 0xFF,
        ])

    @classmethod
    def unmarshal(cls, raw_data: bytes) -> "PlayoutDelayExtension":
        if len(raw_data) < PLAYOUT_DELAY_EXTENSION_SIZE:
            raise TooSmallError
        return cls(
            min_delay=int.from_bytes(raw_data[0:2], "big") >> 4,
            max_delay=int.from_bytes(raw_data[1:3], "big") & 0x0FFF,
        )


@dataclass
class TransportCCExtension:
    """Transport-wide congestion control sequence number extension."""

    transport_sequence: int = 0

    def marshal(self) -> bytes:
        return (self.transport_sequence & 0xFFFF).to_bytes(TRANSPORT_CC_EXTENSION_SIZE, "big")

    @classmethod
    def unmarshal(cls, raw_data: bytes) -> "TransportCCExtension":
        if len(raw_data) < TRANSPORT_CC_EXTENSION_SIZE:
            raise TooSmallError
        return cls(transport_sequence=int.from_bytes(raw_data[0:2], "big"))