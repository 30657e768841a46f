"""Serialisation of tree nodes to and from their stored byte form."""

from __future__ import annotations

from typing import Optional

from .node import Node, NodeError, NodeKey
from .wire import (
    HASH_SIZE,
    DecodeError,
    bytes_size,
    decode_bytes,
    decode_varint,
    encode_bytes,
    encode_hash32,
    encode_varint,
    varint_size,
)

MODE_LEGACY_LEFT_NODE = 0x01
"""Mode bit marking a left child referenced by a legacy 32-byte hash."""

MODE_LEGACY_RIGHT_NODE = 0x02
"""Mode bit marking a right child referenced by a legacy 32-byte hash."""

_INT8_MIN = -128
_INT8_MAX = 127
_UINT32_MAX = (1 << 32) - 1


class _Reader:
    """Reads consecutive encoded fields from a buffer."""

    def __init__(self, buf: bytes) -> None:
        self._buf = memoryview(bytes(buf))
        self._pos = 0

    def varint(self, label: str) -> int:
        try:
            value, read = decode_varint(self._buf[self._pos :])
        except DecodeError as exc:
            raise DecodeError(f"decoding {label}, {exc}") from exc
        self._pos += read
        return value

    def bytes(self, label: str) -> bytes:
        try:
            value, read = decode_bytes(self._buf[self._pos :])
        except DecodeError as exc:
            raise DecodeError(f"decoding {label}, {exc}") from exc
        self._pos += read
        return value


def _check_height(height: int) -> None:
    if not _INT8_MIN <= height <= _INT8_MAX:
        raise DecodeError("invalid height, out of int8 range")


def encoded_size(node: Node) -> int:
    """Estimated size of ``encode_node(node)``, used to presize buffers."""
    size = 1 + varint_size(node.size) + bytes_size(node.key or b"")
    if node.is_leaf():
        return size + bytes_size(node.value or b"")
    size += bytes_size(node.hash or b"")
    for child_key in (node.left_node_key, node.right_node_key):
        if child_key is not None:
            nk = NodeKey.from_bytes(child_key)
            size += varint_size(nk.version) + varint_size(nk.nonce)
    return size


def _encode_child(child_key: bytes, legacy: bool) -> bytes:
    if legacy:
        return encode_hash32(child_key)
    nk = NodeKey.from_bytes(child_key)
    return encode_varint(nk.version) + encode_varint(nk.nonce)


def encode_node(node: Optional[Node]) -> bytes:
    """Serialise a node into the form it is stored in."""
    if node is None:
        raise NodeError("cannot write nil node")
    parts = [
        encode_varint(node.subtree_height),
        encode_varint(node.size),
        encode_bytes(node.key or b""),
    ]
    if node.is_leaf():
        parts.append(encode_bytes(node.value or b""))
        return b"".join(parts)

    parts.append(encode_hash32(node.hash or b""))
    left_key, right_key = node.left_node_key, node.right_node_key
    if left_key is None:
        raise NodeError("node.leftNodeKey was empty in writeBytes")
    mode = 0
    if len(left_key) == HASH_SIZE:
        mode |= MODE_LEGACY_LEFT_NODE
    if right_key is not None and len(right_key) == HASH_SIZE:
        mode |= MODE_LEGACY_RIGHT_NODE
    parts.append(encode_varint(mode))
    parts.append(_encode_child(left_key, bool(mode & MODE_LEGACY_LEFT_NODE)))
    if right_key is None:
        raise NodeError("node.rightNodeKey was empty in writeBytes")
    parts.append(_encode_child(right_key, bool(mode & MODE_LEGACY_RIGHT_NODE)))
    return b"".join(parts)


def _decode_child(reader: _Reader, side: str, legacy: bool) -> bytes:
    if legacy:
        return reader.bytes(f"legacy node.{side}NodeKey")
    version = reader.varint(f"node.{side}NodeKey.version")
    nonce = reader.varint(f"node.{side}NodeKey.nonce")
    if not 0 <= nonce <= _UINT32_MAX:
        raise DecodeError(f"invalid {side}NodeKey.nonce, out of int32 range")
    return NodeKey(version, nonce).get_key()


def make_node(node_key: bytes, buf: bytes) -> Node:
    """Decode a node stored under ``node_key``; leaves get their hash computed."""
    reader = _Reader(buf)
    height = reader.varint("node.height")
    _check_height(height)
    size = reader.varint("node.size")
    key = reader.bytes("node.key")

    node = Node(key, None)
    node.subtree_height = height
    node.size = size
    node.node_key = NodeKey.from_bytes(node_key)

    if node.is_leaf():
        node.value = reader.bytes("node.value")
        node.compute_hash(node.node_key.version)
        return node

    node.hash = reader.bytes("node.hash")
    mode = reader.varint("mode")
    if not 0 <= mode <= 3:
        raise DecodeError("invalid mode")
    node.left_node_key = _decode_child(
        reader, "left", bool(mode & MODE_LEGACY_LEFT_NODE)
    )
    node.right_node_key = _decode_child(
        reader, "right", bool(mode & MODE_LEGACY_RIGHT_NODE)
    )
    return node


def make_legacy_node(hash_: bytes, buf: bytes) -> Node:
    """Decode a node stored in the legacy, hash-addressed format."""
    reader = _Reader(buf)
    height = reader.varint("node.height")
    if not _INT8_MIN <= height <= _INT8_MAX:
        raise DecodeError("invalid height, must be int8")
    size = reader.varint("node.size")
    version = reader.varint("node.version")
    key = reader.bytes("node.key")

    node = Node(key, None)
    node.subtree_height = height
    node.size = size
    node.node_key = NodeKey(version, 0)
    node.hash = hash_
    node.is_legacy = True

    if node.is_leaf():
        node.value = reader.bytes("node.value")
    else:
        node.left_node_key = reader.bytes("node.leftHash")
        node.right_node_key = reader.bytes("node.rightHash")
    return node