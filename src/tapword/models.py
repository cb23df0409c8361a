from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterator, Union

BLOCK_ELEMENTS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "dd",
        "details",
        "dialog",
        "div",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "li",
        "main",
        "nav",
        "ol",
        "p",
        "pre",
        "section",
        "summary",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "ul",
    }
)

_EDITABLE_VALUES = {"", "true", "plaintext-only"}


@dataclass(eq=False, slots=True)
class Element:
    """A container node of a parsed document."""

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    parent: Element | None = None
    children: list[Node] = field(default_factory=list)
    index: int = -1
    end_index: int = -1

    @property
    def classes(self) -> frozenset[str]:
        return frozenset(self.attrs.get("class", "").split())

    @property
    def is_block(self) -> bool:
        return self.tag in BLOCK_ELEMENTS

    @property
    def is_content_editable(self) -> bool:
        """Resolve contenteditable the way the DOM does: the nearest declaration wins."""
        for element in self.ancestors(include_self=True):
            value = element.attrs.get("contenteditable")
            if value is None:
                continue
            return value.strip().lower() in _EDITABLE_VALUES
        return False

    @property
    def cursor(self) -> str | None:
        """Return the effective ``cursor`` style, inherited from ancestors."""
        for element in self.ancestors(include_self=True):
            declared = element.inline_style().get("cursor")
            if declared:
                return declared
        return None

    def inline_style(self) -> dict[str, str]:
        style: dict[str, str] = {}
        for declaration in self.attrs.get("style", "").split(";"):
            name, sep, value = declaration.partition(":")
            if sep and name.strip():
                style[name.strip().lower()] = value.strip().lower()
        return style

    def ancestors(self, include_self: bool = False) -> Iterator[Element]:
        current = self if include_self else self.parent
        while current is not None:
            yield current
            current = current.parent

    def closest(self, predicate: Callable[[Element], bool]) -> Element | None:
        for element in self.ancestors(include_self=True):
            if predicate(element):
                return element
        return None

    def contains(self, node: Node) -> bool:
        """Return True if node is this element or one of its descendants."""
        return self.index <= node.index <= self.end_index

    def __repr__(self) -> str:
        return f"<Element {self.tag} #{self.index}>"


@dataclass(eq=False, slots=True)
class TextLeaf:
    """A contiguous run of characters; identity is the handle, value the text."""

    value: str
    parent: Element | None = None
    index: int = -1

    @property
    def length(self) -> int:
        return len(self.value)

    def ancestors(self) -> Iterator[Element]:
        if self.parent is not None:
            yield from self.parent.ancestors(include_self=True)

    def __repr__(self) -> str:
        return f"<TextLeaf #{self.index} {self.value[:20]!r}>"


Node = Union[Element, TextLeaf]


@dataclass(frozen=True, slots=True)
class TextPosition:
    """A caret position inside a text leaf."""

    leaf: TextLeaf
    offset: int

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.leaf.index, self.offset)

    def __lt__(self, other: TextPosition) -> bool:
        return self.sort_key < other.sort_key

    def __le__(self, other: TextPosition) -> bool:
        return self.sort_key <= other.sort_key


@dataclass(frozen=True, slots=True)
class TextRange:
    """An ordered pair of positions, start <= end."""

    start: TextPosition
    end: TextPosition

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("TextRange start must not come after its end.")

    @classmethod
    def collapsed_at(cls, position: TextPosition) -> TextRange:
        return cls(position, position)

    @property
    def collapsed(self) -> bool:
        return self.start == self.end

    def contains(self, other: TextRange) -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True, slots=True)
class Rect:
    """An axis-aligned client rectangle."""

    left: float
    top: float
    right: float
    bottom: float

    def inflate(self, padding: float) -> Rect:
        return Rect(
            self.left - padding,
            self.top - padding,
            self.right + padding,
            self.bottom + padding,
        )

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


@dataclass(slots=True)
class PointerEvent:
    """Pointer data for a click or tap."""

    x: float
    y: float
    button: int = 0
    default_prevented: bool = False
    ctrl_key: bool = False
    alt_key: bool = False
    meta_key: bool = False
    shift_key: bool = False
    target: Node | None = None
    # Composed event path, innermost first; None when the environment has none.
    path: tuple[Element, ...] | None = None

    @property
    def has_modifier(self) -> bool:
        return self.ctrl_key or self.alt_key or self.meta_key or self.shift_key


@dataclass(slots=True)
class ValidationResult:
    """Verdict of the selection pipeline for one gesture."""

    is_valid: bool
    text: str
    reason: str
    should_cleanup: bool = False
    range: TextRange | None = None
