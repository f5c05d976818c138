"""RTP packet parsing and building, header extensions, sequencing and packetization."""

__version__ = "0.1.0"