from __future__ import annotations

import bisect
from html.parser import HTMLParser
from pathlib import Path
from typing import Iterator, cast

from .models import BLOCK_ELEMENTS, Element, Node, TextLeaf

ROOT_TAG = "#document"

VOID_TAGS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

UNRENDERED_TAGS = frozenset(
    {ROOT_TAG, "html", "head", "script", "style", "noscript", "template", "title"}
)
FORMATTING_EDGE_TAGS = BLOCK_ELEMENTS | UNRENDERED_TAGS | {"body", "br"}


def _is_edge(node: Node | None) -> bool:
    return isinstance(node, Element) and node.tag in FORMATTING_EDGE_TAGS


class DocumentParseError(RuntimeError):
    """Raised when an HTML document cannot be loaded."""


class Document:
    """An immutable snapshot of a parsed document tree.

    Every node carries its preorder index so that document order is a plain
    integer comparison, and every element knows the index of its last
    descendant so subtree membership is a range check.
    """

    def __init__(self, root: Element) -> None:
        self.root = root
        self.nodes: list[Node] = []
        self.leaves: list[TextLeaf] = []
        self._line_breaks: list[int] = []
        self._number(root)

    def _number(self, root: Element) -> None:
        stack: list[tuple[Node, bool]] = [(root, False)]
        while stack:
            node, closing = stack.pop()
            if closing:
                cast(Element, node).end_index = len(self.nodes) - 1
                continue
            node.index = len(self.nodes)
            self.nodes.append(node)
            if isinstance(node, TextLeaf):
                self.leaves.append(node)
                continue
            if node.tag == "br":
                self._line_breaks.append(node.index)
            stack.append((node, True))
            for child in reversed(node.children):
                stack.append((child, False))

    @property
    def body(self) -> Element:
        for element in self.iter_elements():
            if element.tag == "body":
                return element
        return self.root

    def iter_elements(self) -> Iterator[Element]:
        for node in self.nodes:
            if isinstance(node, Element):
                yield node

    def find_all(self, tag: str) -> list[Element]:
        tag = tag.lower()
        return [element for element in self.iter_elements() if element.tag == tag]

    def get_element_by_id(self, element_id: str) -> Element | None:
        for element in self.iter_elements():
            if element.attrs.get("id") == element_id:
                return element
        return None

    def has_line_break_between(self, a: Node, b: Node) -> bool:
        """Return True if a <br> sits strictly between two nodes in document order."""
        low, high = sorted((a.index, b.index))
        pos = bisect.bisect_right(self._line_breaks, low)
        return pos < len(self._line_breaks) and self._line_breaks[pos] < high

    @property
    def text(self) -> str:
        return "".join(leaf.value for leaf in self.leaves)


class _TreeBuilder(HTMLParser):
    # Starting one of these closes an open <p>, as the HTML parser would.
    P_CLOSERS = BLOCK_ELEMENTS - {"dd", "dt", "li", "td", "th", "tr", "tbody"}

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = Element(tag=ROOT_TAG)
        self._stack: list[Element] = [self.root]
        self._formatting: list[TextLeaf] = []

    @property
    def _current(self) -> Element:
        return self._stack[-1]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._open(tag, attrs, self_closing=False)

    def handle_startendtag(
        self, tag: str, attrs: list[tuple[str, str | None]]
    ) -> None:
        self._open(tag, attrs, self_closing=True)

    def handle_endtag(self, tag: str) -> None:
        if tag in VOID_TAGS:
            return
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                del self._stack[depth:]
                return

    def handle_data(self, data: str) -> None:
        if not data:
            return
        siblings = self._current.children
        last = siblings[-1] if siblings else None
        if not data.strip() and "\n" in data:
            if last is None or last not in self._formatting:
                leaf = TextLeaf(value=" ", parent=self._current)
                siblings.append(leaf)
                self._formatting.append(leaf)
            return
        if isinstance(last, TextLeaf) and last not in self._formatting:
            last.value += data
            return
        siblings.append(TextLeaf(value=data, parent=self._current))

    def close(self) -> None:
        super().close()
        for leaf in self._formatting:
            self._resolve_formatting(leaf)
        self._formatting.clear()

    def _resolve_formatting(self, leaf: TextLeaf) -> None:
        # Pretty-printing whitespace renders as one space between inline
        # content and vanishes at block edges.
        parent = cast(Element, leaf.parent)
        siblings = parent.children
        position = siblings.index(leaf)
        before = siblings[position - 1] if position > 0 else None
        after = siblings[position + 1] if position + 1 < len(siblings) else None
        del siblings[position]
        at_edge = before is None or after is None
        if (
            (at_edge and parent.tag in FORMATTING_EDGE_TAGS)
            or parent.tag in UNRENDERED_TAGS
            or _is_edge(before)
            or _is_edge(after)
        ):
            return
        if isinstance(before, TextLeaf):
            before.value += leaf.value
        elif isinstance(after, TextLeaf):
            after.value = leaf.value + after.value
        else:
            siblings.insert(position, leaf)

    def _open(
        self, tag: str, attrs: list[tuple[str, str | None]], *, self_closing: bool
    ) -> None:
        if tag in self.P_CLOSERS:
            self._close_if_open("p")
        if tag == "li":
            self._close_if_open("li")
        element = Element(
            tag=tag,
            attrs={name: value or "" for name, value in attrs},
            parent=self._current,
        )
        self._current.children.append(element)
        if tag not in VOID_TAGS and not self_closing:
            self._stack.append(element)

    def _close_if_open(self, tag: str) -> None:
        if len(self._stack) > 1 and self._stack[-1].tag == tag:
            self._stack.pop()


def parse_html(html: str) -> Document:
    """Parse HTML markup into a Document snapshot."""
    builder = _TreeBuilder()
    builder.feed(html)
    builder.close()
    return Document(builder.root)


def document_from_text(text: str) -> Document:
    """Build a document with one paragraph per blank-line separated block."""
    root = Element(tag=ROOT_TAG)
    body = Element(tag="body", parent=root)
    root.children.append(body)
    for block in text.split("\n\n"):
        block = block.strip("\n")
        if not block.strip():
            continue
        paragraph = Element(tag="p", parent=body)
        paragraph.children.append(TextLeaf(value=block, parent=paragraph))
        body.children.append(paragraph)
    return Document(root)


def load_html(path: Path) -> Document:
    """Read an HTML (or plain text) file from disk into a Document."""
    if not path.exists():
        raise DocumentParseError(f"Document not found: {path}")
    try:
        contents = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentParseError(f"Unable to read document: {path}") from exc
    if path.suffix.lower() == ".txt":
        return document_from_text(contents)
    return parse_html(contents)
