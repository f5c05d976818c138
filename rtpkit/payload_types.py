"""Static RTP payload type numbers from the IANA registry."""

from __future__ import annotations

from enum import IntEnum


class PayloadType(IntEnum):
    """Statically assigned audio and video payload types."""

    # Audio
    PCMU = 0
    GSM = 3
    G723 = 4
    DVI4_8000 = 5
    DVI4_16000 = 6
    LPC = 7
    PCMA = 8
    G722 = 9
    L16_STEREO = 10
    L16_MONO = 11
    QCELP = 12
    CN = 13
    MPA = 14
    G728 = 15
    DVI4_11025 = 16
    DVI4_22050 = 17
    G729 = 18

    # Video
    CELLB = 25
    JPEG = 26
    NV = 28
    H261 = 31
    MPV = 32
    MP2T = 33
    H263 = 34

    # First payload type that is not statically assigned.
    FIRST_DYNAMIC = 35