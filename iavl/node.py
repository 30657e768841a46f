"""Tree nodes, their keys in storage, and the hashing that authenticates them."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .traversal import Traversal
from .wire import encode_bytes, encode_hash32, encode_varint

EMPTY_HASH = hashlib.sha256().digest()
"""Hash of an empty tree: SHA-256 of no input."""

_UINT64_MASK = (1 << 64) - 1
_UINT32_MASK = (1 << 32) - 1
NODE_KEY_SIZE = 12


class NodeError(Exception):
    """Raised when a node is used in a way its state does not allow."""


@dataclass(frozen=True)
class NodeKey:
    """Storage key of a node: the version that created it and a nonce within it."""

    version: int
    nonce: int

    def get_key(self) -> bytes:
        """The 12-byte big-endian form of this key."""
        return (self.version & _UINT64_MASK).to_bytes(8, "big") + (
            self.nonce & _UINT32_MASK
        ).to_bytes(4, "big")

    @classmethod
    def from_bytes(cls, key: bytes) -> "NodeKey":
        """Read a node key from its 12-byte form."""
        data = bytes(key)
        if len(data) < NODE_KEY_SIZE:
            raise ValueError(
                f"node key must be {NODE_KEY_SIZE} bytes, got {len(data)}"
            )
        return cls(
            version=int.from_bytes(data[:8], "big", signed=True),
            nonce=int.from_bytes(data[8:12], "big"),
        )

    def __str__(self) -> str:
        return f"({self.version}, {self.nonce})"


def get_root_key(version: int) -> bytes:
    """The storage key of the root node saved at ``version``."""
    return NodeKey(version, 1).get_key()


def _require(node: Optional["Node"]) -> "Node":
    if node is None:
        raise NodeError("found an empty child")
    return node


class Node:
    """A leaf (height 0, holding a value) or an inner node of the tree."""

    __slots__ = (
        "key",
        "value",
        "hash",
        "node_key",
        "left_node_key",
        "right_node_key",
        "size",
        "left_node",
        "right_node",
        "subtree_height",
        "is_legacy",
    )

    def __init__(self, key: Optional[bytes], value: Optional[bytes]) -> None:
        self.key = key
        self.value = value
        self.hash: Optional[bytes] = None
        self.node_key: Optional[NodeKey] = None
        self.left_node_key: Optional[bytes] = None
        self.right_node_key: Optional[bytes] = None
        self.size = 1
        self.left_node: Optional[Node] = None
        self.right_node: Optional[Node] = None
        self.subtree_height = 0
        self.is_legacy = False

    def __repr__(self) -> str:
        return (
            f"Node(key={self.key!r}, value={self.value!r}, node_key={self.node_key}, "
            f"size={self.size}, height={self.subtree_height}, "
            f"hash={self.hash.hex() if self.hash else None})"
        )

    def get_key(self) -> bytes:
        """The key under which the node is stored."""
        if self.is_legacy:
            if self.hash is None:
                raise NodeError("legacy node does not have a hash")
            return self.hash
        if self.node_key is None:
            raise NodeError("node does not have a nodeKey")
        return self.node_key.get_key()

    def is_leaf(self) -> bool:
        return self.subtree_height == 0

    def clone(self, tree: Any) -> "Node":
        """A shallow, unsaved copy of an inner node with its hash cleared.

        A persisted node has its children loaded into the copy and released
        from itself.
        """
        if self.is_leaf():
            raise NodeError("attempt to copy a leaf node")
        left, right = self.left_node, self.right_node
        if self.node_key is not None:
            left = self.get_left_node(tree)
            right = self.get_right_node(tree)
            self.left_node = None
            self.right_node = None
        copy = Node(self.key, None)
        copy.subtree_height = self.subtree_height
        copy.size = self.size
        copy.left_node_key = self.left_node_key
        copy.right_node_key = self.right_node_key
        copy.left_node = left
        copy.right_node = right
        return copy

    def get_left_node(self, tree: Any) -> "Node":
        """The left child, loaded through ``tree.get_node`` if not in memory."""
        if self.left_node is not None:
            return self.left_node
        return tree.get_node(self.left_node_key)

    def get_right_node(self, tree: Any) -> "Node":
        """The right child, loaded through ``tree.get_node`` if not in memory."""
        if self.right_node is not None:
            return self.right_node
        return tree.get_node(self.right_node_key)

    def has(self, tree: Any, key: bytes) -> bool:
        """Whether the subtree holds ``key``."""
        node = self
        while True:
            if node.key == key:
                return True
            if node.is_leaf():
                return False
            if key < node.key:
                node = node.get_left_node(tree)
            else:
                node = node.get_right_node(tree)

    def get(self, tree: Any, key: bytes) -> tuple[int, Optional[bytes]]:
        """Look up ``key``; return its leaf index (or insertion index) and value."""
        if self.is_leaf():
            if self.key < key:
                return 1, None
            if self.key > key:
                return 0, None
            return 0, self.value
        if key < self.key:
            return self.get_left_node(tree).get(tree, key)
        right = self.get_right_node(tree)
        index, value = right.get(tree, key)
        return index + self.size - right.size, value

    def get_by_index(
        self, tree: Any, index: int
    ) -> tuple[Optional[bytes], Optional[bytes]]:
        """The key and value of the leaf at ``index``, or ``(None, None)``."""
        if self.is_leaf():
            if index == 0:
                return self.key, self.value
            return None, None
        left = self.get_left_node(tree)
        if index < left.size:
            return left.get_by_index(tree, index)
        return self.get_right_node(tree).get_by_index(tree, index - left.size)

    def hash_bytes(self, version: int) -> bytes:
        """The bytes hashed for this node; children must already be hashed."""
        parts = [
            encode_varint(self.subtree_height),
            encode_varint(self.size),
            encode_varint(version),
        ]
        if self.is_leaf():
            parts.append(encode_bytes(self.key or b""))
            parts.append(encode_hash32(hashlib.sha256(self.value or b"").digest()))
        else:
            if self.left_node is None or self.right_node is None:
                raise NodeError("found an empty child")
            parts.append(encode_hash32(self.left_node.hash or b""))
            parts.append(encode_hash32(self.right_node.hash or b""))
        return b"".join(parts)

    def compute_hash(self, version: int) -> Optional[bytes]:
        """Hash this node alone, caching the result; ``None`` if it cannot be hashed."""
        if self.hash is not None:
            return self.hash
        try:
            data = self.hash_bytes(version)
        except (NodeError, ValueError):
            return None
        self.hash = hashlib.sha256(data).digest()
        return self.hash

    def hash_with_count(self, version: int) -> bytes:
        """Hash this node and every unhashed descendant, caching the results."""
        if self.hash is not None:
            return self.hash
        if not self.is_leaf():
            _require(self.left_node).hash_with_count(version)
            _require(self.right_node).hash_with_count(version)
        self.hash = hashlib.sha256(self.hash_bytes(version)).digest()
        return self.hash

    def validate(self) -> None:
        """Check the node's fields for consistency; raise ``NodeError`` if not."""
        if self.key is None:
            raise NodeError("key cannot be nil")
        if self.node_key is None:
            raise NodeError("nodeKey cannot be nil")
        if self.node_key.version <= 0:
            raise NodeError("version must be greater than 0")
        if self.subtree_height < 0:
            raise NodeError("height cannot be less than 0")
        if self.size < 1:
            raise NodeError("size must be at least 1")
        if self.subtree_height == 0:
            if self.value is None:
                raise NodeError("value cannot be nil for leaf node")
            if (
                self.left_node_key is not None
                or self.left_node is not None
                or self.right_node_key is not None
                or self.right_node is not None
            ):
                raise NodeError("leaf node cannot have children")
            if self.size != 1:
                raise NodeError("leaf nodes must have size 1")
        elif self.value is not None:
            raise NodeError("value must be nil for non-leaf node")

    def calc_height_and_size(self, tree: Any) -> None:
        """Recompute height and size from the children."""
        left = self.get_left_node(tree)
        right = self.get_right_node(tree)
        self.subtree_height = max(left.subtree_height, right.subtree_height) + 1
        self.size = left.size + right.size

    def calc_balance(self, tree: Any) -> int:
        """Left subtree height minus right subtree height."""
        left = self.get_left_node(tree)
        right = self.get_right_node(tree)
        return left.subtree_height - right.subtree_height

    def traverse(
        self, tree: Any, ascending: bool, callback: Callable[["Node"], bool]
    ) -> bool:
        """Visit every node in pre-order; return True if the callback stopped it."""
        return self.traverse_in_range(
            tree, None, None, ascending, False, False, callback
        )

    def traverse_post(
        self, tree: Any, ascending: bool, callback: Callable[["Node"], bool]
    ) -> bool:
        """Visit every node in post-order; return True if the callback stopped it."""
        return self.traverse_in_range(tree, None, None, ascending, False, True, callback)

    def traverse_in_range(
        self,
        tree: Any,
        start: Optional[bytes],
        end: Optional[bytes],
        ascending: bool,
        inclusive: bool,
        post: bool,
        callback: Callable[["Node"], bool],
    ) -> bool:
        """Visit nodes whose leaves fall in the range; return True if stopped."""
        for node in Traversal(self, tree, start, end, ascending, inclusive, post):
            if callback(node):
                return True
        return False