"""Parser for the uncompressed header at the start of a VP9 frame."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..errors import RTPError

FRAME_MARKER = 2
FRAME_SYNC_BYTES = (0x49, 0x83, 0x42)
COLOR_SPACE_RGB = 7


class _NotEnoughBitsError(RTPError):
    default_message = "not enough bits"


class _InvalidFrameMarkerError(RTPError):
    default_message = "invalid frame marker"


class _WrongFrameSyncByteError(RTPError):
    default_message = "wrong frame sync byte"


class _BitReader:
    """Reads big-endian bit fields from a byte string."""

    def __init__(self, buf: bytes) -> None:
        self.buf = bytes(buf)
        self.pos = 0

    def require(self, n: int) -> None:
        if n > len(self.buf) * 8 - self.pos:
            raise _NotEnoughBitsError

    def bits(self, n: int) -> int:
        self.require(n)
        value = 0
        for _ in range(n):
            byte = self.buf[self.pos >> 3]
            value = (value << 1) | ((byte >> (7 - (self.pos & 0x07))) & 0x01)
            self.pos += 1
        return value

    def flag(self) -> bool:
        return self.bits(1) == 1

    def skip(self, n: int) -> None:
        self.require(n)
        self.pos += n


@dataclass
class HeaderColorConfig:
    """The color_config part of a key frame header."""

    ten_or_twelve_bit: bool = False
    bit_depth: int = 0
    color_space: int = 0
    color_range: bool = False
    subsampling_x: bool = False
    subsampling_y: bool = False

    @classmethod
    def _read(cls, profile: int, reader: _BitReader) -> "HeaderColorConfig":
        config = cls()
        if profile >= 2:
            config.ten_or_twelve_bit = reader.flag()
            config.bit_depth = 12 if config.ten_or_twelve_bit else 10
        else:
            config.bit_depth = 8

        config.color_space = reader.bits(3)
        odd_profile = profile in (1, 3)

        if config.color_space != COLOR_SPACE_RGB:
            config.color_range = reader.flag()
            if odd_profile:
                reader.require(3)
                config.subsampling_x = reader.flag()
                config.subsampling_y = reader.flag()
                reader.skip(1)
            else:
                config.subsampling_x = True
                config.subsampling_y = True
        else:
            config.color_range = True
            if odd_profile:
                config.subsampling_x = False
                config.subsampling_y = False
                reader.skip(1)
        return config


@dataclass
class HeaderFrameSize:
    """The frame_size part of a key frame header."""

    frame_width_minus_1: int = 0
    frame_height_minus_1: int = 0

    @classmethod
    def _read(cls, reader: _BitReader) -> "HeaderFrameSize":
        reader.require(32)
        return cls(
            frame_width_minus_1=reader.bits(16),
            frame_height_minus_1=reader.bits(16),
        )


@dataclass
class VP9Header:
    """A VP9 uncompressed frame header."""

    profile: int = 0
    show_existing_frame: bool = False
    frame_to_show_map_idx: int = 0
    non_key_frame: bool = False
    show_frame: bool = False
    error_resilient_mode: bool = False
    color_config: Optional[HeaderColorConfig] = None
    frame_size: Optional[HeaderFrameSize] = None

    @classmethod
    def unmarshal(cls, buf: bytes) -> "VP9Header":
        """Decode the header at the start of ``buf``."""
        reader = _BitReader(buf)
        header = cls()

        reader.require(4)
        if reader.bits(2) != FRAME_MARKER:
            raise _InvalidFrameMarkerError

        low = reader.bits(1)
        high = reader.bits(1)
        header.profile = (high << 1) + low
        if header.profile == 3:
            reader.skip(1)

        header.show_existing_frame = reader.flag()
        if header.show_existing_frame:
            header.frame_to_show_map_idx = reader.bits(3)
            return header

        reader.require(3)
        header.non_key_frame = reader.flag()
        header.show_frame = reader.flag()
        header.error_resilient_mode = reader.flag()

        if not header.non_key_frame:
            reader.require(24)
            for index, expected in enumerate(FRAME_SYNC_BYTES):
                if reader.bits(8) != expected:
                    raise _WrongFrameSyncByteError(f"frame_sync_byte_{index}")
            header.color_config = HeaderColorConfig._read(header.profile, reader)
            header.frame_size = HeaderFrameSize._read(reader)

        return header

    def width(self) -> int:
        """Frame width in pixels, or 0 when the header carries no frame size."""
        if self.frame_size is None:
            return 0
        return (self.frame_size.frame_width_minus_1 + 1) & 0xFFFF

    def height(self) -> int:
        """Frame height in pixels, or 0 when the header carries no frame size."""
        if self.frame_size is None:
            return 0
        return (self.frame_size.frame_height_minus_1 + 1) & 0xFFFF