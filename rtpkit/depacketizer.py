"""Interfaces shared by the codec-specific payload parsers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable


class Depacketizer(ABC):
    """Strips RTP payload-format framing from a payload and yields the media bytes.

    Metadata parsed from the payload may be kept on the depacketizer itself.
    """

    @abstractmethod
    def unmarshal(self, packet: bytes) -> bytes:
        """Parse an RTP payload and return the media it carries."""

    @abstractmethod
    def is_partition_head(self, payload: bytes) -> bool:
        """Whether the payload starts a partition; False when it cannot be told."""

    def is_partition_tail(self, marker: bool, payload: bytes) -> bool:
        """Whether the payload ends a partition; by default the RTP marker bit decides."""
        return bool(marker)


@runtime_checkable
class PartitionHeadChecker(Protocol):
    """Anything that can tell whether a payload starts a new partition."""

    def is_partition_head(self, payload: bytes) -> bool: ...