"""Varint, length-prefixed byte and fixed-size hash encodings used by tree nodes."""

from __future__ import annotations

from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

HASH_SIZE = 32
"""Length in bytes of a node hash."""

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_MAX_VARINT_LEN = 10


class DecodeError(ValueError):
    """Raised when a buffer does not hold a valid encoding."""


def _check_int64(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {type(value).__name__}")
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"integer {value} is out of the signed 64-bit range")


def _zigzag(value: int) -> int:
    _check_int64(value)
    return value << 1 if value >= 0 else ((-value) << 1) - 1


def _encode_uvarint(value: int) -> bytes:
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def _uvarint_size(value: int) -> int:
    size = 1
    while value >= 0x80:
        value >>= 7
        size += 1
    return size


def _decode_uvarint(buf: BytesLike) -> tuple[int, int]:
    result = 0
    shift = 0
    for index, byte in enumerate(memoryview(buf).cast("B")):
        if index == _MAX_VARINT_LEN:
            raise DecodeError("varint overflows a 64-bit integer")
        if byte < 0x80:
            if index == _MAX_VARINT_LEN - 1 and byte > 1:
                raise DecodeError("varint overflows a 64-bit integer")
            return result | (byte << shift), index + 1
        result |= (byte & 0x7F) << shift
        shift += 7
    raise DecodeError("buffer too small to hold a varint")


def encode_varint(value: int) -> bytes:
    """Encode a signed 64-bit integer as a zigzag varint."""
    return _encode_uvarint(_zigzag(value))


def decode_varint(buf: BytesLike) -> tuple[int, int]:
    """Decode a zigzag varint; return the value and the number of bytes read."""
    unsigned, read = _decode_uvarint(buf)
    value = unsigned >> 1
    if unsigned & 1:
        value = ~value
    return value, read


def varint_size(value: int) -> int:
    """Number of bytes ``encode_varint(value)`` produces."""
    return _uvarint_size(_zigzag(value))


def encode_bytes(data: BytesLike) -> bytes:
    """Encode bytes as an unsigned varint length followed by the data."""
    raw = bytes(data)
    return _encode_uvarint(len(raw)) + raw


def decode_bytes(buf: BytesLike) -> tuple[bytes, int]:
    """Decode length-prefixed bytes; return a copy and the number of bytes read."""
    size, read = _decode_uvarint(buf)
    if size >= _INT64_MAX:
        raise DecodeError(f"invalid out of range length {size} decoding bytes")
    end = read + size
    view = memoryview(buf).cast("B")
    if len(view) < end:
        raise DecodeError(f"insufficient bytes decoding bytes of length {size}")
    return bytes(view[read:end]), end


def bytes_size(data: BytesLike) -> int:
    """Number of bytes ``encode_bytes(data)`` produces."""
    length = len(bytes(data))
    return _uvarint_size(length) + length


def encode_hash32(data: BytesLike) -> bytes:
    """Encode a 32-byte hash with its one-byte length prefix."""
    raw = bytes(data)
    if len(raw) != HASH_SIZE:
        raise ValueError(f"hash must be {HASH_SIZE} bytes, got {len(raw)}")
    return bytes((HASH_SIZE,)) + raw