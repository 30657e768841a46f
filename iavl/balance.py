"""Insertion, removal and AVL rebalancing of tree nodes.

Every function takes the tree only to load persisted children through
``tree.get_node(node_key)``. Persisted nodes are never modified: any node on
a changed path is cloned into an unsaved copy first.
"""

from __future__ import annotations

from typing import Any, Optional

from .node import Node, NodeError


def _new_inner(key: bytes, left: Node, right: Node) -> Node:
    node = Node(key, None)
    node.subtree_height = 1
    node.size = 2
    node.left_node = left
    node.right_node = right
    return node


def _set_leaf(node: Node, key: bytes, value: bytes) -> tuple[Node, bool]:
    if key < node.key:
        return _new_inner(node.key, Node(key, value), node), False
    if key > node.key:
        return _new_inner(key, node, Node(key, value)), False
    return Node(key, value), True


def recursive_set(
    tree: Any, node: Node, key: bytes, value: bytes
) -> tuple[Node, bool]:
    """Set ``key`` under ``node``.

    Return the node replacing ``node`` and whether an existing key was
    updated rather than added.
    """
    if node.is_leaf():
        return _set_leaf(node, key, value)

    node = node.clone(tree)
    if key < node.key:
        node.left_node, updated = recursive_set(
            tree, node.get_left_node(tree), key, value
        )
    else:
        node.right_node, updated = recursive_set(
            tree, node.get_right_node(tree), key, value
        )

    if updated:
        return node, True
    node.calc_height_and_size(tree)
    return balance(tree, node), False


def recursive_remove(
    tree: Any, node: Node, key: bytes
) -> tuple[Optional[Node], Optional[bytes], Optional[bytes], bool]:
    """Remove ``key`` under ``node`` and rebalance.

    Return the node replacing ``node`` (``None`` if ``node`` itself was the
    removed leaf), the new leftmost key of the subtree when it changed, the
    removed value and whether anything was removed.
    """
    if node.is_leaf():
        if key == node.key:
            return None, None, node.value, True
        return node, None, None, False

    node = node.clone(tree)

    if key < node.key:
        new_left, new_key, value, removed = recursive_remove(
            tree, node.get_left_node(tree), key
        )
        if not removed:
            return node, None, value, False
        if new_left is None:
            # The left child was the removed leaf.
            return node.get_right_node(tree), node.key, value, True
        node.left_node = new_left
        node.calc_height_and_size(tree)
        return balance(tree, node), new_key, value, True

    new_right, new_key, value, removed = recursive_remove(
        tree, node.get_right_node(tree), key
    )
    if not removed:
        return node, None, value, False
    if new_right is None:
        # The right child was the removed leaf.
        return node.get_left_node(tree), None, value, True
    node.right_node = new_right
    if new_key is not None:
        node.key = new_key
    node.calc_height_and_size(tree)
    return balance(tree, node), None, value, True


def rotate_right(tree: Any, node: Node) -> Node:
    """Rotate ``node`` right; return the new subtree root."""
    node = node.clone(tree)
    new_node = node.get_left_node(tree).clone(tree)
    node.left_node = new_node.get_right_node(tree)
    new_node.right_node = node
    node.calc_height_and_size(tree)
    new_node.calc_height_and_size(tree)
    return new_node


def rotate_left(tree: Any, node: Node) -> Node:
    """Rotate ``node`` left; return the new subtree root."""
    node = node.clone(tree)
    new_node = node.get_right_node(tree).clone(tree)
    node.right_node = new_node.get_left_node(tree)
    new_node.left_node = node
    node.calc_height_and_size(tree)
    new_node.calc_height_and_size(tree)
    return new_node


def balance(tree: Any, node: Node) -> Node:
    """Restore the AVL property at an unsaved ``node``; return the new root."""
    if node.node_key is not None:
        raise NodeError("unexpected balance() call on persisted node")

    factor = node.calc_balance(tree)
    if factor > 1:
        left = node.get_left_node(tree)
        if left.calc_balance(tree) >= 0:
            return rotate_right(tree, node)
        node.left_node_key = None
        node.left_node = rotate_left(tree, left)
        return rotate_right(tree, node)
    if factor < -1:
        right = node.get_right_node(tree)
        if right.calc_balance(tree) <= 0:
            return rotate_left(tree, node)
        node.right_node_key = None
        node.right_node = rotate_right(tree, right)
        return rotate_left(tree, node)
    return node