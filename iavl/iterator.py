"""Iterators over the leaves of a tree and over its stored nodes."""

from __future__ import annotations

from typing import Any, Iterator as TypingIterator, Optional

from .traversal import Traversal


class IteratorError(Exception):
    """Raised when an iterator cannot be created or has no current node."""


class Iterator:
    """Iterates key/value pairs of a tree within ``[start, end)``.

    ``tree`` must expose ``root`` and ``get_node(node_key)``. Errors raised
    while loading nodes end the iteration and are kept in ``error()``.
    """

    def __init__(
        self,
        start: Optional[bytes],
        end: Optional[bytes],
        ascending: bool,
        tree: Any,
    ) -> None:
        self._start = start
        self._end = end
        self._key: Optional[bytes] = None
        self._value: Optional[bytes] = None
        self._valid = False
        self._error: Optional[BaseException] = None
        self._traversal: Optional[Traversal] = None
        if tree is None:
            self._error = IteratorError(
                "iterator must be created with an immutable tree but the tree was nil"
            )
            return
        self._valid = True
        self._traversal = Traversal(
            tree.root, tree, start, end, ascending, False, False
        )
        self.next()

    def domain(self) -> tuple[Optional[bytes], Optional[bytes]]:
        """The start and end bounds given at creation."""
        return self._start, self._end

    def valid(self) -> bool:
        return self._valid

    def key(self) -> Optional[bytes]:
        return self._key

    def value(self) -> Optional[bytes]:
        return self._value

    def next(self) -> None:
        """Advance to the next leaf in range."""
        while self._traversal is not None:
            try:
                node = self._traversal.next()
            except Exception as exc:  # any failure loading nodes ends iteration
                self._error = exc
                node = None
            if node is None:
                self._traversal = None
                self._valid = False
                return
            if node.subtree_height == 0:
                self._key, self._value = node.key, node.value
                return

    def close(self) -> None:
        """Stop the iteration; raise the error that ended it, if any."""
        self._traversal = None
        self._valid = False
        if self._error is not None:
            raise self._error

    def error(self) -> Optional[BaseException]:
        return self._error

    def is_fast(self) -> bool:
        return False

    def __iter__(self) -> TypingIterator[tuple[bytes, bytes]]:
        while self._valid:
            yield self._key, self._value
            self.next()
        if self._error is not None:
            raise self._error

    def __enter__(self) -> "Iterator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class NodeIterator:
    """Depth-first, pre-order walk over the stored nodes of a tree.

    ``ndb`` must expose ``get_node(node_key)``.
    """

    def __init__(self, root_key: Optional[bytes], ndb: Any) -> None:
        self._ndb = ndb
        self._error: Optional[BaseException] = None
        self._to_visit: list[Any] = []
        if root_key:
            self._to_visit.append(ndb.get_node(root_key))

    def get_node(self) -> Any:
        """The node currently visited."""
        if not self._to_visit:
            raise IteratorError("node iterator has no node to visit")
        return self._to_visit[-1]

    def valid(self) -> bool:
        return self._error is None and bool(self._to_visit)

    def error(self) -> Optional[BaseException]:
        return self._error

    def next(self, is_skipped: bool) -> None:
        """Move on; with ``is_skipped`` the current node's subtree is not visited."""
        if not self.valid():
            return
        node = self._to_visit.pop()
        if is_skipped or node.is_leaf():
            return
        for child_key in (node.right_node_key, node.left_node_key):
            try:
                child = self._ndb.get_node(child_key)
            except Exception as exc:  # keep the failure for error()
                self._error = exc
                return
            self._to_visit.append(child)