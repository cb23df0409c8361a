from __future__ import annotations

import bisect
from typing import Callable, Iterable, Iterator

from .document import Document
from .elements import is_ignored_element
from .models import Element, Node, TextLeaf, TextPosition, TextRange

DEFAULT_BOUNDARY_TAGS = frozenset(
    {"p", "div", "li", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote"}
)


class TextPositionModel:
    """Ordered text-leaf view over one document snapshot.

    Leaves inside ignored subtrees (the engine's own UI, scripts, styles) are
    invisible to traversal. The model caches nothing but the leaf order of the
    snapshot it was built for.
    """

    def __init__(
        self,
        document: Document,
        is_ignored: Callable[[Element], bool] = is_ignored_element,
    ) -> None:
        self.document = document
        self._is_ignored = is_ignored
        self._visible: list[TextLeaf] = [
            leaf for leaf in document.leaves if not self._leaf_is_ignored(leaf)
        ]
        self._keys = [leaf.index for leaf in self._visible]
        self._all_keys = [leaf.index for leaf in document.leaves]

    def _leaf_is_ignored(self, leaf: TextLeaf) -> bool:
        return any(self._is_ignored(element) for element in leaf.ancestors())

    @property
    def visible_leaves(self) -> list[TextLeaf]:
        return list(self._visible)

    # -- traversal ---------------------------------------------------------

    def first_leaf(self, root: Node) -> TextLeaf | None:
        if isinstance(root, TextLeaf):
            return root
        pos = bisect.bisect_right(self._keys, root.index)
        if pos < len(self._visible) and self._visible[pos].index <= root.end_index:
            return self._visible[pos]
        return None

    def last_leaf(self, root: Node) -> TextLeaf | None:
        if isinstance(root, TextLeaf):
            return root
        pos = bisect.bisect_right(self._keys, root.end_index) - 1
        if pos >= 0 and self._visible[pos].index > root.index:
            return self._visible[pos]
        return None

    def next_leaf(self, root: Node, start: Node) -> TextLeaf | None:
        """Next visible leaf after ``start`` in document order, bounded by ``root``."""
        pos = bisect.bisect_right(self._keys, start.index)
        if pos >= len(self._visible):
            return None
        leaf = self._visible[pos]
        return leaf if _within(root, leaf) else None

    def prev_leaf(self, root: Node, start: Node) -> TextLeaf | None:
        """Previous visible leaf before ``start`` in document order, bounded by ``root``."""
        pos = bisect.bisect_left(self._keys, start.index) - 1
        if pos < 0:
            return None
        leaf = self._visible[pos]
        return leaf if _within(root, leaf) else None

    def iter_leaves(self, start: TextLeaf, end: TextLeaf) -> Iterator[TextLeaf]:
        """Yield every document leaf from start to end inclusive (ignored ones too)."""
        leaves = self.document.leaves
        lo = bisect.bisect_left(self._all_keys, start.index)
        for leaf in leaves[lo:]:
            if leaf.index > end.index:
                break
            yield leaf

    # -- positions ---------------------------------------------------------

    def normalize(self, root: Node, node: Node, offset: int) -> TextPosition | None:
        """Turn a (node, offset) boundary point into a canonical text position."""
        if isinstance(node, TextLeaf):
            return TextPosition(node, min(max(offset, 0), node.length))

        children = node.children
        if children:
            if offset <= 0:
                first = self.first_leaf(node)
                if first is not None:
                    return TextPosition(first, 0)
            elif offset >= len(children):
                last = self.last_leaf(node)
                if last is not None:
                    return TextPosition(last, last.length)
            else:
                anchor = children[offset]
                after = self._first_leaf_from(root, anchor)
                if after is not None:
                    return TextPosition(after, 0)
                before = self.prev_leaf(root, anchor)
                if before is not None:
                    return TextPosition(before, before.length)

        after = self.next_leaf(root, node)
        if after is not None:
            return TextPosition(after, 0)
        before = self.prev_leaf(root, node)
        if before is not None:
            return TextPosition(before, before.length)
        return None

    def _first_leaf_from(self, root: Node, anchor: Node) -> TextLeaf | None:
        pos = bisect.bisect_left(self._keys, anchor.index)
        if pos < len(self._visible) and _within(root, self._visible[pos]):
            return self._visible[pos]
        return None

    @staticmethod
    def compare(a: TextPosition, b: TextPosition) -> int:
        if a.sort_key < b.sort_key:
            return -1
        if a.sort_key > b.sort_key:
            return 1
        return 0

    # -- structure ---------------------------------------------------------

    @staticmethod
    def common_ancestor(a: Node, b: Node) -> Node | None:
        if a is b:
            return a
        if isinstance(a, Element) and a.contains(b):
            return a
        if isinstance(b, Element) and b.contains(a):
            return b
        parent = a.parent
        while parent is not None:
            if parent.contains(b):
                return parent
            parent = parent.parent
        return None

    def range_container(self, text_range: TextRange) -> Node:
        """The range's common ancestor container (a leaf when the range stays in one)."""
        container = self.common_ancestor(text_range.start.leaf, text_range.end.leaf)
        return container if container is not None else self.document.root

    def crosses_block_boundary(self, a: TextLeaf, b: TextLeaf) -> bool:
        """True if moving between two leaves passes a block element or a <br>."""
        common = self.common_ancestor(a, b)
        if _has_block_in_path(a, common) or _has_block_in_path(b, common):
            return True
        return self.document.has_line_break_between(a, b)

    def boundary_root(
        self, node: Node, boundary_tags: Iterable[str] = DEFAULT_BOUNDARY_TAGS
    ) -> Element:
        """Nearest ancestor scope bounding sentence search (falls back to body)."""
        tags = frozenset(tag.lower() for tag in boundary_tags)
        body = self.document.body
        current = node if isinstance(node, Element) else node.parent
        while current is not None and current is not body:
            if current.tag in tags:
                return current
            current = current.parent
        return body

    # -- text --------------------------------------------------------------

    def text_between(self, start: TextPosition, end: TextPosition) -> str:
        """Sanitized text of [start, end).

        Ignored subtrees nested inside the span's common container are left
        out; a span living entirely inside such a subtree keeps its text.
        """
        if end.sort_key <= start.sort_key:
            return ""
        if start.leaf is end.leaf:
            return start.leaf.value[start.offset : end.offset]
        container = self.common_ancestor(start.leaf, end.leaf)
        parts: list[str] = []
        for leaf in self.iter_leaves(start.leaf, end.leaf):
            if self._ignored_below(leaf, container):
                continue
            lo = start.offset if leaf is start.leaf else 0
            hi = end.offset if leaf is end.leaf else leaf.length
            parts.append(leaf.value[lo:hi])
        return "".join(parts)

    def range_text(self, text_range: TextRange) -> str:
        return self.text_between(text_range.start, text_range.end)

    def _ignored_below(self, leaf: TextLeaf, container: Node | None) -> bool:
        for element in leaf.ancestors():
            if element is container:
                return False
            if self._is_ignored(element):
                return True
        return False

    def find_text(
        self, needle: str, occurrence: int = 0, root: Node | None = None
    ) -> TextRange | None:
        """Locate the n-th literal occurrence of needle across visible leaves."""
        if not needle:
            return None
        scope = root if root is not None else self.document.root
        leaves = [leaf for leaf in self._visible if _within(scope, leaf)]
        haystack = "".join(leaf.value for leaf in leaves)
        starts: list[int] = []
        total = 0
        for leaf in leaves:
            starts.append(total)
            total += leaf.length

        found = -1
        for _ in range(occurrence + 1):
            found = haystack.find(needle, found + 1)
            if found < 0:
                return None
        return TextRange(
            self._position_at(leaves, starts, found, prefer_next=True),
            self._position_at(leaves, starts, found + len(needle), prefer_next=False),
        )

    @staticmethod
    def _position_at(
        leaves: list[TextLeaf], starts: list[int], flat: int, *, prefer_next: bool
    ) -> TextPosition:
        if prefer_next:
            idx = bisect.bisect_right(starts, flat) - 1
            while idx + 1 < len(leaves) and flat - starts[idx] >= leaves[idx].length:
                idx += 1
        else:
            idx = bisect.bisect_left(starts, flat) - 1
            idx = max(idx, 0)
        return TextPosition(leaves[idx], flat - starts[idx])


def _within(root: Node, leaf: TextLeaf) -> bool:
    if isinstance(root, TextLeaf):
        return root is leaf
    return root.index < leaf.index <= root.end_index


def _has_block_in_path(node: Node, ancestor: Node | None) -> bool:
    current = node.parent
    while current is not None and current is not ancestor:
        if current.is_block:
            return True
        current = current.parent
    return False
