"""Depth-first traversal of tree nodes, restricted to a key range."""

from __future__ import annotations

from typing import Any, Iterator, Optional


class Traversal:
    """Lazy depth-first walk over a tree rooted at ``root``.

    Inner nodes are always produced; leaves only when their key lies in
    ``[start, end)`` (or ``[start, end]`` when ``inclusive``). ``None``
    bounds are open. With ``post`` set, a node comes after its children.
    Nodes must offer ``key``, ``is_leaf()``, ``get_left_node(tree)`` and
    ``get_right_node(tree)``; errors raised while loading children propagate.
    """

    def __init__(
        self,
        root: Any,
        tree: Any,
        start: Optional[bytes],
        end: Optional[bytes],
        ascending: bool,
        inclusive: bool,
        post: bool,
    ) -> None:
        self.tree = tree
        self.start = start
        self.end = end
        self.ascending = ascending
        self.inclusive = inclusive
        self.post = post
        # Each entry is (node, delayed); delayed nodes still need expanding.
        self._pending: list[tuple[Any, bool]] = [(root, True)]

    def next(self) -> Any:
        """Return the next node, or ``None`` once the traversal is finished."""
        while self._pending:
            node, delayed = self._pending.pop()
            if not delayed or node is None:
                return node

            key = node.key
            after_start = self.start is None or self.start < key
            start_or_after = after_start or self.start == key
            before_end = self.end is None or key < self.end
            if self.inclusive:
                before_end = before_end or key == self.end

            leaf = node.is_leaf()
            emit = not leaf or (start_or_after and before_end)

            if self.post and emit:
                self._pending.append((node, False))

            if not leaf:
                if self.ascending:
                    if before_end:
                        self._pending.append((node.get_right_node(self.tree), True))
                    if after_start:
                        self._pending.append((node.get_left_node(self.tree), True))
                else:
                    if after_start:
                        self._pending.append((node.get_left_node(self.tree), True))
                    if before_end:
                        self._pending.append((node.get_right_node(self.tree), True))

            if not self.post and emit:
                return node
        return None

    def __iter__(self) -> Iterator[Any]:
        while True:
            node = self.next()
            if node is None:
                return
            yield node