from dataclasses import dataclass
from typing import Optional

import pytest

from iavl.traversal import Traversal


@dataclass(eq=False)
class FakeNode:
    key: bytes
    left: Optional["FakeNode"] = None
    right: Optional["FakeNode"] = None

    def is_leaf(self):
        return self.left is None and self.right is None

    def get_left_node(self, tree):
        return self.left

    def get_right_node(self, tree):
        return self.right


class BrokenNode:
    key = b"m"

    def is_leaf(self):
        return False

    def get_left_node(self, tree):
        raise LookupError("missing left child")

    def get_right_node(self, tree):
        raise LookupError("missing right child")


def build_tree():
    a, b, c, d = (FakeNode(k) for k in (b"a", b"b", b"c", b"d"))
    left = FakeNode(b"b", a, b)
    right = FakeNode(b"d", c, d)
    root = FakeNode(b"c", left, right)
    return root, left, right


def leaf_keys(nodes):
    return [n.key for n in nodes if n.is_leaf()]


def walk(root, start=None, end=None, ascending=True, inclusive=False, post=False):
    return list(Traversal(root, None, start, end, ascending, inclusive, post))


def test_ascending_full_leaves():
    root, _, _ = build_tree()
    assert leaf_keys(walk(root)) == [b"a", b"b", b"c", b"d"]


def test_descending_full_leaves():
    root, _, _ = build_tree()
    assert leaf_keys(walk(root, ascending=False)) == [b"d", b"c", b"b", b"a"]


def test_preorder_puts_parents_first():
    root, left, right = build_tree()
    nodes = walk(root)
    assert nodes[0] is root
    assert nodes.index(left) < nodes.index(left.left)
    assert nodes.index(right) < nodes.index(right.left)
    assert len(nodes) == 7


def test_postorder_puts_parents_last():
    root, left, right = build_tree()
    nodes = walk(root, post=True)
    assert nodes[-1] is root
    for inner in (left, right):
        assert nodes.index(inner) > nodes.index(inner.left)
        assert nodes.index(inner) > nodes.index(inner.right)
    assert leaf_keys(nodes) == [b"a", b"b", b"c", b"d"]


def test_range_excludes_end():
    root, _, _ = build_tree()
    assert leaf_keys(walk(root, start=b"b", end=b"d")) == [b"b", b"c"]


def test_range_inclusive_end():
    root, _, _ = build_tree()
    assert leaf_keys(walk(root, start=b"b", end=b"d", inclusive=True)) == [
        b"b",
        b"c",
        b"d",
    ]


def test_range_descending():
    root, _, _ = build_tree()
    assert leaf_keys(walk(root, start=b"b", end=b"d", ascending=False)) == [
        b"c",
        b"b",
    ]


def test_empty_range_has_no_leaves():
    root, _, _ = build_tree()
    assert leaf_keys(walk(root, start=b"a", end=b"a")) == []


def test_none_root_ends_immediately():
    traversal = Traversal(None, None, None, None, True, False, False)
    assert traversal.next() is None
    assert list(traversal) == []


def test_exhausted_traversal_keeps_returning_none():
    root, _, _ = build_tree()
    traversal = Traversal(root, None, None, None, True, False, False)
    assert len(list(traversal)) == 7
    assert traversal.next() is None


def test_single_leaf_out_of_range_is_skipped():
    leaf = FakeNode(b"z")
    assert walk(leaf, start=b"a", end=b"c") == []
    assert walk(leaf) == [leaf]


def test_child_loading_error_propagates():
    traversal = Traversal(BrokenNode(), None, None, None, True, False, False)
    with pytest.raises(LookupError, match="missing right child"):
        traversal.next()