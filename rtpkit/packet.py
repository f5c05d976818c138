"""RTP packet and header parsing and serialisation (RFC 3550, RFC 8285)."""

from __future__ import annotations

import dataclasses
import struct
from dataclasses import dataclass, field
from typing import Optional

from .errors import (
    ExtensionNotFoundError,
    ExtensionsNotEnabledError,
    HeaderExtensionSizeError,
    HeaderSizeInsufficientError,
    InvalidPaddingError,
    OneByteExtensionIDError,
    OneByteExtensionSizeError,
    RawExtensionIDError,
    ShortBufferError,
    TooSmallError,
    TwoByteExtensionIDError,
    TwoByteExtensionSizeError,
)

HEADER_LENGTH = 4
VERSION_SHIFT = 6
VERSION_MASK = 0x3
PADDING_SHIFT = 5
EXTENSION_SHIFT = 4
CC_MASK = 0xF
MARKER_SHIFT = 7
PT_MASK = 0x7F
CSRC_OFFSET = 12
CSRC_LENGTH = 4
EXTENSION_PROFILE_ONE_BYTE = 0xBEDE
EXTENSION_PROFILE_TWO_BYTE = 0x1000
EXTENSION_ID_RESERVED = 0xF

_FIXED = struct.Struct("!BBHII")


@dataclass
class Extension:
    """A single header extension element."""

    id: int
    payload: bytes


def _parse_header(buf: bytes) -> tuple[dict, int]:
    """Parse the header at the start of ``buf``; return its fields and byte length."""
    buf = bytes(buf)
    if len(buf) < HEADER_LENGTH:
        raise HeaderSizeInsufficientError(f"{len(buf)} < {HEADER_LENGTH}")

    first = buf[0]
    version = (first >> VERSION_SHIFT) & VERSION_MASK
    padding = bool((first >> PADDING_SHIFT) & 0x1)
    has_extension = bool((first >> EXTENSION_SHIFT) & 0x1)
    n_csrc = first & CC_MASK

    n = CSRC_OFFSET + n_csrc * CSRC_LENGTH
    if len(buf) < n:
        raise HeaderSizeInsufficientError(f"size {len(buf)} < {n}")

    _, second, sequence_number, timestamp, ssrc = _FIXED.unpack_from(buf, 0)
    csrc = list(struct.unpack_from(f"!{n_csrc}I", buf, CSRC_OFFSET))

    fields = {
        "version": version,
        "padding": padding,
        "extension": has_extension,
        "marker": bool((second >> MARKER_SHIFT) & 0x1),
        "payload_type": second & PT_MASK,
        "sequence_number": sequence_number,
        "timestamp": timestamp,
        "ssrc": ssrc,
        "csrc": csrc,
        "extension_profile": 0,
        "extensions": [],
    }

    if not has_extension:
        return fields, n

    if len(buf) < n + 4:
        raise HeaderExtensionSizeError(f"size {len(buf)} < {n + 4}")

    profile, words = struct.unpack_from("!HH", buf, n)
    n += 4
    extension_end = n + words * 4
    if len(buf) < extension_end:
        raise HeaderExtensionSizeError(f"size {len(buf)} < {extension_end}")
    fields["extension_profile"] = profile
    extensions: list[Extension] = fields["extensions"]

    if profile in (EXTENSION_PROFILE_ONE_BYTE, EXTENSION_PROFILE_TWO_BYTE):
        while n < extension_end:
            if buf[n] == 0x00:
                n += 1
                continue
            if profile == EXTENSION_PROFILE_ONE_BYTE:
                ext_id = buf[n] >> 4
                length = (buf[n] & 0x0F) + 1
                n += 1
                if ext_id == EXTENSION_ID_RESERVED:
                    break
            else:
                ext_id = buf[n]
                n += 1
                if len(buf) <= n:
                    raise HeaderExtensionSizeError(f"size {len(buf)} < {n}")
                length = buf[n]
                n += 1
            if len(buf) <= n + length:
                raise HeaderExtensionSizeError(f"size {len(buf)} < {n + length}")
            extensions.append(Extension(ext_id, buf[n : n + length]))
            n += length
    else:
        data = buf[n:extension_end]
        extensions.append(Extension(0, data))
        n += len(data)

    return fields, n


@dataclass
class Header:
    """An RTP packet header."""

    version: int = 0
    padding: bool = False
    extension: bool = False
    marker: bool = False
    payload_type: int = 0
    sequence_number: int = 0
    timestamp: int = 0
    ssrc: int = 0
    csrc: list[int] = field(default_factory=list)
    extension_profile: int = 0
    extensions: list[Extension] = field(default_factory=list)

    @classmethod
    def unmarshal(cls, buf: bytes) -> tuple["Header", int]:
        """Parse a header; return it together with the number of bytes read."""
        fields, n = _parse_header(buf)
        return cls(**fields), n

    def _raw_extension_payload(self) -> bytes:
        return self.extensions[0].payload if self.extensions else b""

    def marshal(self) -> bytes:
        """Serialise the header."""
        first = ((self.version << VERSION_SHIFT) | len(self.csrc)) & 0xFF
        if self.padding:
            first |= 1 << PADDING_SHIFT
        if self.extension:
            first |= 1 << EXTENSION_SHIFT
        second = self.payload_type & 0xFF
        if self.marker:
            second |= 1 << MARKER_SHIFT

        out = bytearray(
            _FIXED.pack(
                first,
                second,
                self.sequence_number & 0xFFFF,
                self.timestamp & 0xFFFFFFFF,
                self.ssrc & 0xFFFFFFFF,
            )
        )
        for source in self.csrc:
            out += struct.pack("!I", source & 0xFFFFFFFF)

        if self.extension:
            body = bytearray()
            if self.extension_profile == EXTENSION_PROFILE_ONE_BYTE:
                for ext in self.extensions:
                    body.append(((ext.id << 4) | ((len(ext.payload) - 1) & 0xFF)) & 0xFF)
                    body += ext.payload
            elif self.extension_profile == EXTENSION_PROFILE_TWO_BYTE:
                for ext in self.extensions:
                    body.append(ext.id & 0xFF)
                    body.append(len(ext.payload) & 0xFF)
                    body += ext.payload
            else:
                raw = self._raw_extension_payload()
                if len(raw) % 4 != 0:
                    raise ShortBufferError("extension payload must be in 32-bit words")
                body += raw
            rounded = (len(body) + 3) // 4 * 4
            body += bytes(rounded - len(body))
            out += struct.pack("!HH", self.extension_profile & 0xFFFF, (rounded // 4) & 0xFFFF)
            out += body

        return bytes(out)

    def marshal_size(self) -> int:
        """Size of the header once serialised."""
        size = 12 + len(self.csrc) * CSRC_LENGTH
        if self.extension:
            ext_size = 4
            if self.extension_profile == EXTENSION_PROFILE_ONE_BYTE:
                ext_size += sum(1 + len(ext.payload) for ext in self.extensions)
            elif self.extension_profile == EXTENSION_PROFILE_TWO_BYTE:
                ext_size += sum(2 + len(ext.payload) for ext in self.extensions)
            else:
                ext_size += len(self._raw_extension_payload())
            size += (ext_size + 3) // 4 * 4
        return size

    def set_extension(self, ext_id: int, payload: bytes) -> None:
        """Add or replace the extension ``ext_id``, enabling extensions if needed."""
        payload = bytes(payload)
        if self.extension:
            if self.extension_profile == EXTENSION_PROFILE_ONE_BYTE:
                if not 1 <= ext_id <= 14:
                    raise OneByteExtensionIDError(f"actual({ext_id})")
                if len(payload) > 16:
                    raise OneByteExtensionSizeError(f"actual({len(payload)})")
            elif self.extension_profile == EXTENSION_PROFILE_TWO_BYTE:
                if ext_id < 1:
                    raise TwoByteExtensionIDError(f"actual({ext_id})")
                if len(payload) > 255:
                    raise TwoByteExtensionSizeError(f"actual({len(payload)})")
            elif ext_id != 0:
                raise RawExtensionIDError(f"actual({ext_id})")

            for ext in self.extensions:
                if ext.id == ext_id:
                    ext.payload = payload
                    return
            self.extensions.append(Extension(ext_id, payload))
            return

        self.extension = True
        if len(payload) <= 16:
            self.extension_profile = EXTENSION_PROFILE_ONE_BYTE
        elif len(payload) < 256:
            self.extension_profile = EXTENSION_PROFILE_TWO_BYTE
        self.extensions.append(Extension(ext_id, payload))

    def get_extension_ids(self) -> list[int]:
        """IDs of the extensions present; empty when extensions are disabled."""
        if not self.extension:
            return []
        return [ext.id for ext in self.extensions]

    def get_extension(self, ext_id: int) -> Optional[bytes]:
        if not self.extension:
            return None
        for ext in self.extensions:
            if ext.id == ext_id:
                return ext.payload
        return None

    def del_extension(self, ext_id: int) -> None:
        if not self.extension:
            raise ExtensionsNotEnabledError
        for index, ext in enumerate(self.extensions):
            if ext.id == ext_id:
                del self.extensions[index]
                return
        raise ExtensionNotFoundError

    def clone(self):
        """Deep copy of this header."""
        return dataclasses.replace(
            self,
            csrc=list(self.csrc),
            extensions=[Extension(ext.id, bytes(ext.payload)) for ext in self.extensions],
        )


@dataclass
class Packet(Header):
    """An RTP packet: header, payload and optional padding."""

    payload: bytes = b""
    padding_size: int = 0

    @classmethod
    def unmarshal(cls, buf: bytes) -> "Packet":
        buf = bytes(buf)
        fields, n = _parse_header(buf)
        end = len(buf)
        padding_size = 0
        if fields["padding"]:
            if end <= n:
                raise TooSmallError
            padding_size = buf[end - 1]
            end -= padding_size
        if end < n:
            raise TooSmallError
        return cls(**fields, payload=buf[n:end], padding_size=padding_size)

    def marshal(self) -> bytes:
        if self.padding and self.padding_size == 0:
            raise InvalidPaddingError
        out = bytearray(super().marshal())
        out += self.payload
        if self.padding:
            out += bytes(self.padding_size - 1)
            out.append(self.padding_size & 0xFF)
        else:
            out += bytes(self.padding_size)
        return bytes(out)

    def marshal_size(self) -> int:
        return super().marshal_size() + len(self.payload) + self.padding_size

    def clone(self) -> "Packet":
        copied = super().clone()
        copied.payload = bytes(self.payload)
        return copied

    def __str__(self) -> str:
        return (
            "RTP PACKET:\n"
            f"\tVersion: {self.version}\n"
            f"\tMarker: {str(self.marker).lower()}\n"
            f"\tPayload Type: {self.payload_type}\n"
            f"\tSequence Number: {self.sequence_number}\n"
            f"\tTimestamp: {self.timestamp}\n"
            f"\tSSRC: {self.ssrc} ({self.ssrc:x})\n"
            f"\tPayload Length: {len(self.payload)}\n"
        )