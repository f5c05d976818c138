"""Standalone RTP header extension blocks (RFC 8285 one/two byte and RFC 3550 raw)."""

from __future__ import annotations

from typing import Iterator, Optional

from .errors import (
    ExtensionNotFoundError,
    OneByteExtensionIDError,
    OneByteExtensionSizeError,
    RawExtensionIDError,
    TooSmallError,
    TwoByteExtensionIDError,
    TwoByteExtensionSizeError,
)

PROFILE_ONE_BYTE = 0xBEDE
PROFILE_TWO_BYTE = 0x1000
EXTENSION_ID_RESERVED = 0xF

# (element offset, id, data offset, data length)
_Entry = tuple[int, int, int, int]


def _read_profile(buf: bytes) -> int:
    if len(buf) < 2:
        raise TooSmallError(f"{len(buf)} < 2")
    return int.from_bytes(buf[0:2], "big")


def _one_byte_entries(payload: bytearray) -> Iterator[_Entry]:
    n = 4
    while n < len(payload):
        b = payload[n]
        if b == 0x00:
            n += 1
            continue
        length = (b & 0x0F) + 1
        yield n, b >> 4, n + 1, length
        n += 1 + length


def _two_byte_entries(payload: bytearray) -> Iterator[_Entry]:
    n = 4
    while n < len(payload):
        if payload[n] == 0x00:
            n += 1
            continue
        if n + 1 >= len(payload):
            return
        length = payload[n + 1]
        yield n, payload[n], n + 2, length
        n += 2 + length


def _empty_block(profile: int) -> bytearray:
    return bytearray(profile.to_bytes(2, "big") + b"\x00\x00")


def _store(payload: bytearray, entries: Iterator[_Entry], ext_id: int, element: bytes) -> None:
    """Replace the element for ``ext_id`` or append it and bump the element count."""
    for start, eid, data_start, length in entries:
        if eid == ext_id:
            payload[start : data_start + length] = element
            return
    payload += element
    count = (int.from_bytes(payload[2:4], "big") + 1) & 0xFFFF
    payload[2:4] = count.to_bytes(2, "big")


def _lookup(payload: bytearray, entries: Iterator[_Entry], ext_id: int) -> Optional[bytes]:
    for _, eid, data_start, length in entries:
        if eid == ext_id:
            return bytes(payload[data_start : data_start + length])
    return None


def _remove(payload: bytearray, entries: Iterator[_Entry], ext_id: int) -> None:
    for start, eid, data_start, length in entries:
        if eid == ext_id:
            del payload[start : data_start + length]
            return
    raise ExtensionNotFoundError


def _load(buf: bytes, expected_profile: int) -> bytearray:
    if _read_profile(buf) != expected_profile:
        raise ExtensionNotFoundError(f"actual({bytes(buf[0:2]).hex()})")
    return bytearray(buf)


class OneByteHeaderExtension:
    """An RFC 8285 one-byte header extension block."""

    profile = PROFILE_ONE_BYTE

    def __init__(self) -> None:
        self._payload = _empty_block(self.profile)

    def set(self, ext_id: int, payload: bytes) -> None:
        """Set the payload for ``ext_id``, replacing an existing element."""
        payload = bytes(payload)
        if not 1 <= ext_id <= 14:
            raise OneByteExtensionIDError(f"actual({ext_id})")
        if len(payload) > 16:
            raise OneByteExtensionSizeError(f"actual({len(payload)})")
        element = bytes([((ext_id << 4) | (len(payload) - 1)) & 0xFF]) + payload
        # Materialise the entries first: _store mutates the buffer.
        _store(self._payload, iter(list(_one_byte_entries(self._payload))), ext_id, element)

    def get_ids(self) -> list[int]:
        ids = []
        for _, eid, _, _ in _one_byte_entries(self._payload):
            if eid == EXTENSION_ID_RESERVED:
                break
            ids.append(eid)
        return ids

    def get(self, ext_id: int) -> Optional[bytes]:
        return _lookup(self._payload, _one_byte_entries(self._payload), ext_id)

    def delete(self, ext_id: int) -> None:
        _remove(self._payload, iter(list(_one_byte_entries(self._payload))), ext_id)

    def unmarshal(self, buf: bytes) -> int:
        """Load the block from ``buf``; returns the number of bytes consumed."""
        self._payload = _load(buf, self.profile)
        return len(buf)

    def marshal(self) -> bytes:
        return bytes(self._payload)

    def marshal_size(self) -> int:
        return len(self._payload)


class TwoByteHeaderExtension:
    """An RFC 8285 two-byte header extension block."""

    profile = PROFILE_TWO_BYTE

    def __init__(self) -> None:
        self._payload = _empty_block(self.profile)

    def set(self, ext_id: int, payload: bytes) -> None:
        """Set the payload for ``ext_id``, replacing an existing element."""
        payload = bytes(payload)
        if not 1 <= ext_id <= 255:
            raise TwoByteExtensionIDError(f"actual({ext_id})")
        if len(payload) > 255:
            raise TwoByteExtensionSizeError(f"actual({len(payload)})")
        element = bytes([ext_id, len(payload)]) + payload
        _store(self._payload, iter(list(_two_byte_entries(self._payload))), ext_id, element)

    def get_ids(self) -> list[int]:
        return [eid for _, eid, _, _ in _two_byte_entries(self._payload)]

    def get(self, ext_id: int) -> Optional[bytes]:
        return _lookup(self._payload, _two_byte_entries(self._payload), ext_id)

    def delete(self, ext_id: int) -> None:
        _remove(self._payload, iter(list(_two_byte_entries(self._payload))), ext_id)

    def unmarshal(self, buf: bytes) -> int:
        """Load the block from ``buf``; returns the number of bytes consumed."""
        self._payload = _load(buf, self.profile)
        return len(buf)

    def marshal(self) -> bytes:
        return bytes(self._payload)

    def marshal_size(self) -> int:
        return len(self._payload)


class RawExtension:
    """An RFC 3550 header extension: one opaque payload under id 0."""

    def __init__(self, payload: Optional[bytes] = None) -> None:
        self._payload = None if payload is None else bytes(payload)

    def set(self, ext_id: int, payload: bytes) -> None:
        if ext_id != 0:
            raise RawExtensionIDError(f"actual({ext_id})")
        self._payload = bytes(payload)

    def get_ids(self) -> list[int]:
        return [0]

    def get(self, ext_id: int) -> Optional[bytes]:
        return self._payload if ext_id == 0 else None

    def delete(self, ext_id: int) -> None:
        if ext_id != 0:
            raise RawExtensionIDError(f"actual({ext_id})")
        self._payload = None

    def unmarshal(self, buf: bytes) -> int:
        profile = _read_profile(buf)
        if profile in (PROFILE_ONE_BYTE, PROFILE_TWO_BYTE):
            raise ExtensionNotFoundError(f"actual({bytes(buf[0:2]).hex()})")
        self._payload = bytes(buf)
        return len(buf)

    def marshal(self) -> bytes:
        return self._payload or b""

    def marshal_size(self) -> int:
        return len(self._payload or b"")