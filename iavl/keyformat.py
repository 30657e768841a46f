"""Fixed-width, lexicographically sortable byte keys built from a one-byte prefix."""

from __future__ import annotations

import enum
from typing import Any, Union

BytesLike = Union[bytes, bytearray, memoryview]


class ScanKind(enum.Enum):
    """How a scanned key segment is turned into a Python value."""

    INT64 = "int64"
    UINT64 = "uint64"
    INT32 = "int32"
    UINT32 = "uint32"
    BYTES = "bytes"
    BIG_INT = "big_int"


def _prefix_byte(prefix: Any) -> int:
    if isinstance(prefix, bool):
        raise TypeError("key prefix must be a single byte, not a bool")
    if isinstance(prefix, int):
        if not 0 <= prefix <= 0xFF:
            raise ValueError(f"key prefix {prefix} does not fit in one byte")
        return prefix
    if isinstance(prefix, str):
        prefix = prefix.encode("latin-1")
    if isinstance(prefix, (bytes, bytearray)) and len(prefix) == 1:
        return prefix[0]
    raise ValueError(f"key prefix must be a single byte, got {prefix!r}")


def _as_bytes(segment: Any) -> bytes:
    if segment is None:
        return b""
    if isinstance(segment, (bytes, bytearray, memoryview)):
        return bytes(segment)
    raise TypeError(f"key segment must be bytes, got {type(segment).__name__}")


def _fixed_int(value: bytes, width: int, signed: bool) -> int:
    if len(value) < width:
        raise ValueError(
            f"segment of {len(value)} bytes is too short for a {width}-byte integer"
        )
    return int.from_bytes(value[:width], "big", signed=signed)


def _scan(kind: ScanKind, value: bytes) -> Any:
    if kind is ScanKind.INT64:
        return _fixed_int(value, 8, signed=True)
    if kind is ScanKind.UINT64:
        return _fixed_int(value, 8, signed=False)
    if kind is ScanKind.INT32:
        return _fixed_int(value, 4, signed=True)
    if kind is ScanKind.UINT32:
        return _fixed_int(value, 4, signed=False)
    if kind is ScanKind.BYTES:
        return bytes(value)
    if kind is ScanKind.BIG_INT:
        return int.from_bytes(value, "big")
    raise TypeError(f"key format cannot scan a value of kind {kind!r}")


def _format_int(value: int, size: int) -> bytes:
    bits = 8 * size
    if not -(1 << (bits - 1)) <= value < (1 << bits):
        raise ValueError(f"integer {value} does not fit in {size} bytes")
    return (value % (1 << bits)).to_bytes(size, "big")


def _format(arg: Any, width: int) -> bytes:
    if isinstance(arg, (bytes, bytearray, memoryview)):
        return bytes(arg)
    if isinstance(arg, int) and not isinstance(arg, bool):
        return _format_int(arg, 4 if width == 4 else 8)
    raise TypeError(
        f"key format cannot format a value of type {type(arg).__name__}: {arg!r}"
    )


class KeyFormat:
    """A byte key made of a prefix byte and fixed-width big-endian segments.

    A last segment width of 0 makes that segment unbounded.
    """

    def __init__(self, prefix: Any, *args: int) -> None:
        layout = tuple(args)
        for index, width in enumerate(layout):
            if width < 0:
                raise ValueError(f"segment width {width} cannot be negative")
            if width == 0 and index != len(layout) - 1:
                raise ValueError("Only the last item in a key format can be 0")
        self._prefix = _prefix_byte(prefix)
        self._layout = layout
        self._length = 1 + sum(layout)
        self._unbounded = bool(layout) and layout[-1] == 0

    def __repr__(self) -> str:
        return f"KeyFormat(prefix={self.prefix()!r}, layout={self._layout!r})"

    def key_bytes(self, *args: BytesLike) -> bytes:
        """Join byte segments into a key, left-padding each to its width."""
        if len(args) > len(self._layout):
            raise ValueError(
                f"key format is given {len(args)} segments but has only "
                f"{len(self._layout)}"
            )
        parts = [bytes((self._prefix,))]
        for index, (segment, width) in enumerate(zip(args, self._layout)):
            data = _as_bytes(segment)
            if width == 0:
                parts.append(data)
                continue
            if len(data) > width:
                raise ValueError(
                    f"length of segment {data.hex().upper()} is longer than the "
                    f"{width} bytes required by layout for segment {index}"
                )
            parts.append(data.rjust(width, b"\x00"))
        return b"".join(parts)

    def key(self, *args: Any) -> bytes:
        """Format integers and byte strings into a key.

        Integers take four bytes in a four-byte segment and eight bytes
        elsewhere; negative values are stored in two's complement. With no
        arguments the bare prefix is returned.
        """
        if len(args) > len(self._layout):
            raise ValueError(
                f"key format is given {len(args)} args but has only "
                f"{len(self._layout)} segments"
            )
        segments = [_format(arg, width) for arg, width in zip(args, self._layout)]
        return self.key_bytes(*segments)

    def scan_bytes(self, key: BytesLike) -> list[bytes]:
        """Split a key into its segments; missing trailing segments are dropped."""
        data = bytes(key)
        segments: list[bytes] = []
        end = 1
        for width in self._layout:
            end += width
            if end > len(data):
                break
            if width == 0:
                segments.append(data[end:])
                break
            segments.append(data[end - width : end])
        return segments

    def scan(self, key: BytesLike, *args: ScanKind) -> tuple[Any, ...]:
        """Read the leading segments of a key as the given kinds of value."""
        segments = self.scan_bytes(key)
        if len(args) > len(segments):
            raise ValueError(
                f"key format scan is given {len(args)} kinds but the key "
                f"{bytes(key).hex().upper()} has only {len(segments)} segments"
            )
        return tuple(_scan(kind, segment) for kind, segment in zip(args, segments))

    def length(self) -> int:
        """Total length of a key with every bounded segment present."""
        return self._length

    def prefix(self) -> str:
        """The prefix byte as a one-character string."""
        return bytes((self._prefix,)).decode("latin-1")


class FastPrefixFormatter:
    """A prefix byte followed by one fixed-length field."""

    def __init__(self, prefix: Any, length: int) -> None:
        if length < 0:
            raise ValueError(f"field length {length} cannot be negative")
        self._prefix = _prefix_byte(prefix)
        self._length = length

    def __repr__(self) -> str:
        return f"FastPrefixFormatter(prefix={self._prefix!r}, length={self._length})"

    def key(self, bz: BytesLike) -> bytes:
        """Prefix the data, truncating or right-padding it to the field length."""
        data = _as_bytes(bz)[: self._length]
        return bytes((self._prefix,)) + data.ljust(self._length, b"\x00")

    def scan(self, key: BytesLike, kind: ScanKind) -> Any:
        """Read the field following the prefix as the given kind of value."""
        return _scan(kind, bytes(key)[1:])

    def key_int64(self, value: int) -> bytes:
        """Prefix a 64-bit integer written big-endian at the start of the field."""
        if self._length < 8:
            raise ValueError(
                f"field of {self._length} bytes cannot hold a 64-bit integer"
            )
        encoded = _format_int(value, 8)
        return bytes((self._prefix,)) + encoded.ljust(self._length, b"\x00")

    def prefix(self) -> bytes:
        """The prefix as a one-byte string."""
        return bytes((self._prefix,))

    def length(self) -> int:
        """Length of a whole key, prefix included."""
        return 1 + self._length