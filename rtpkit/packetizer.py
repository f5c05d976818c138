"""Splitting media frames into RTP packets."""

from __future__ import annotations

import random
from typing import Optional, Protocol

from .packet import Packet
from .sequencer import Sequencer

RTP_HEADER_SIZE = 12
PADDING_PACKET_SIZE = 255

_random = random.SystemRandom()


class Payloader(Protocol):
    """Splits one media frame into RTP payloads no larger than ``mtu``."""

    def payload(self, mtu: int, payload: bytes) -> list[bytes]: ...


class Packetizer:
    """Turns media frames into RTP packets for one stream."""

    def __init__(
        self,
        mtu: int,
        payloader: Payloader,
        sequencer: Sequencer,
        clock_rate: int,
        *,
        payload_type: int = 0,
        ssrc: int = 0,
        timestamp: Optional[int] = None,
    ) -> None:
        self.mtu = mtu
        self.payloader = payloader
        self.sequencer = sequencer
        self.clock_rate = clock_rate
        self.payload_type = payload_type
        self.ssrc = ssrc
        if timestamp is None:
            timestamp = _random.getrandbits(32) % (1 << 16)
        self.timestamp = timestamp & 0xFFFFFFFF

    def _advance(self, samples: int) -> None:
        self.timestamp = (self.timestamp + samples) & 0xFFFFFFFF

    def packetize(self, payload: bytes, samples: int) -> list[Packet]:
        """Packetize one frame; the timestamp then advances by ``samples``."""
        if not payload:
            return []

        payloads = self.payloader.payload((self.mtu - RTP_HEADER_SIZE) & 0xFFFF, payload)
        last = len(payloads) - 1
        packets = [
            Packet(
                version=2,
                padding=False,
                extension=False,
                marker=index == last,
                payload_type=self.payload_type,
                sequence_number=self.sequencer.next_sequence_number(),
                timestamp=self.timestamp,
                ssrc=self.ssrc,
                csrc=[],
                payload=chunk,
            )
            for index, chunk in enumerate(payloads)
        ]
        self._advance(samples)
        return packets

    def generate_padding(self, samples: int) -> list[Packet]:
        """Return ``samples`` padding-only packets stamped with the current timestamp."""
        if samples == 0:
            return []

        filler = bytes(PADDING_PACKET_SIZE - 1) + bytes([PADDING_PACKET_SIZE])
        return [
            Packet(
                version=2,
                padding=True,
                extension=False,
                marker=False,
                payload_type=self.payload_type,
                sequence_number=self.sequencer.next_sequence_number(),
                timestamp=self.timestamp,
                ssrc=self.ssrc,
                csrc=[],
                payload=filler,
            )
            for _ in range(samples)
        ]

    def skip_samples(self, skipped_samples: int) -> None:
        """Leave a gap of ``skipped_samples`` in the timestamps of later packets."""
        self._advance(skipped_samples)