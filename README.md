# iavl

Building blocks for an AVL+ tree with Merkle hashing. Only leaves hold
values. Each node has a SHA-256 hash that commits to the node's subtree.
This package has the node type, insertion, removal and rebalancing,
hashing, the stored byte format of nodes, iteration over key ranges, and
fixed-width storage key formats.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `iavl.node`: `Node`, `NodeKey`, `get_root_key`, `NodeError` and `EMPTY_HASH`.
- `iavl.balance`: `recursive_set`, `recursive_remove`, `rotate_left`,
  `rotate_right` and `balance`.
- `iavl.traversal`: `Traversal`, a lazy depth-first walk over a key range.
  It walks in pre-order or post-order, in ascending or descending order.
- `iavl.iterator`: `Iterator` walks the key/value pairs of leaves in range.
  `NodeIterator` walks stored nodes in pre-order.
- `iavl.codec`: `encode_node`, `make_node`, `make_legacy_node` and
  `encoded_size`.
- `iavl.wire`: zigzag varints, length-prefixed bytes and 32-byte hashes.
  It has `encode_varint`, `decode_varint`, `varint_size`, `encode_bytes`,
  `decode_bytes`, `bytes_size`, `encode_hash32` and `DecodeError`.
- `iavl.keyformat`: `KeyFormat`, `FastPrefixFormatter` and `ScanKind`.

## Building and hashing a tree in memory

A function that needs a child node not held in memory loads it with
`tree.get_node(node_key)`. This covers the functions in `iavl.balance`,
`Node`'s lookup methods and `Iterator`. Nodes that have not been saved keep
their children in memory, so a tree made only of unsaved nodes never calls
`get_node`.

```python
from iavl.balance import recursive_remove, recursive_set
from iavl.iterator import Iterator
from iavl.node import Node


class InMemoryTree:
    def __init__(self, root):
        self.root = root

    def get_node(self, node_key):
        raise KeyError(node_key)


tree = InMemoryTree(Node(b"a", b"1"))
for key, value in [(b"b", b"2"), (b"c", b"3"), (b"d", b"4")]:
    tree.root, updated = recursive_set(tree, tree.root, key, value)

tree.root, _, removed_value, removed = recursive_remove(tree, tree.root, b"b")
assert removed and removed_value == b"2"

index, value = tree.root.get(tree, b"c")      # (1, b"3")
root_hash = tree.root.hash_with_count(1)      # 32-byte SHA-256

for key, value in Iterator(None, None, True, tree):
    print(key, value)                         # a, c, d in order
```

`recursive_set` returns the new subtree root and whether an existing key was
updated. `recursive_remove` returns four things: the new subtree root, the
new leftmost key if it changed, the removed value, and whether a key was
removed. `Iterator` walks `[start, end)`, and a `None` bound is open. If
loading a node fails, iteration stops and `error()` returns the failure.
`close()` raises that failure again.

## Node encoding

```python
from iavl.codec import encode_node, make_node
from iavl.node import Node, NodeKey

leaf = Node(b"key", b"value")
leaf.node_key = NodeKey(version=3, nonce=1)
data = encode_node(leaf)
assert data.hex() == "0002036b65790576616c7565"

decoded = make_node(leaf.get_key(), data)
assert decoded.value == b"value"
```

An inner node stores each child as a node key, written as its version and
nonce. A child can instead be stored as a legacy 32-byte hash, and the mode
bits `MODE_LEGACY_LEFT_NODE` and `MODE_LEGACY_RIGHT_NODE` mark which.
`make_legacy_node` reads the older format, where nodes are addressed by
hash.

## Key formats

A `KeyFormat` key is a one-byte prefix followed by big-endian segments of
fixed width. If the last segment has width 0, it has no fixed length.

```python
from iavl.keyformat import KeyFormat, ScanKind

kf = KeyFormat(b"e", 8, 8)
key = kf.key(100, 200)
a, b = kf.scan(key, ScanKind.INT64, ScanKind.INT64)   # (100, 200)
```

`FastPrefixFormatter` puts a prefix in front of a single field of fixed
length.

## What this package does not do

The package has no versioned tree object and no node storage. There is
nothing to save a version, load a version, roll back or delete versions.
There is no on-disk or in-memory node database either. Loading persisted
nodes is left to whatever object you pass as `tree` or `ndb`, through its
`get_node` method. There is no command-line tool.