"""Element classification: the engine's own UI, editable regions, interactive targets."""

from __future__ import annotations

from typing import Iterable

from .models import Element, Node, PointerEvent, TextLeaf

CSS_CLASSES = {
    "icon": "tapword-icon",
    "tooltip": "tapword-tooltip",
    "anchor": "tapword-anchor",
    "modal": "tapword-modal",
    "modal_backdrop": "tapword-modal-backdrop",
}

# Classes of the engine's rendered UI that a selection must never resolve into.
SELECTION_UI_CLASSES = frozenset(
    CSS_CLASSES[key] for key in ("icon", "tooltip", "anchor", "modal")
)
CLICK_UI_CLASSES = frozenset(CSS_CLASSES.values())

IGNORED_TAGS = frozenset({"script", "style", "noscript", "template"})

EDITABLE_TAGS = frozenset({"input", "textarea"})

INTERACTIVE_TAGS = frozenset(
    {
        "a",
        "button",
        "input",
        "select",
        "textarea",
        "label",
        "video",
        "audio",
        "area",
        "map",
        "summary",
        "details",
        "iframe",
        "embed",
        "object",
    }
)

INTERACTIVE_ROLES = frozenset(
    {
        "button",
        "link",
        "checkbox",
        "radio",
        "switch",
        "option",
        "menuitem",
        "menuitemcheckbox",
        "menuitemradio",
        "tab",
        "treeitem",
        "gridcell",
        "combobox",
        "listbox",
        "menu",
        "menubar",
        "tablist",
        "tree",
        "treegrid",
        "grid",
    }
)

CLICK_ATTRIBUTE = "onclick"
TABINDEX_ATTRIBUTE = "tabindex"
CURSOR_POINTER = "pointer"


def element_of(node: Node | None) -> Element | None:
    """Return the node itself when it is an element, else its parent element."""
    if node is None:
        return None
    if isinstance(node, TextLeaf):
        return node.parent
    return node


def has_any_class(element: Element, classes: Iterable[str]) -> bool:
    return not element.classes.isdisjoint(classes)


def make_ignore_predicate(ui_classes: Iterable[str] = CLICK_UI_CLASSES):
    """Build the predicate deciding which subtrees text traversal skips."""
    classes = frozenset(ui_classes)

    def is_ignored(element: Element) -> bool:
        return element.tag in IGNORED_TAGS or has_any_class(element, classes)

    return is_ignored


is_ignored_element = make_ignore_predicate()


def inside_extension_ui(
    node: Node | None, ui_classes: Iterable[str] = SELECTION_UI_CLASSES
) -> bool:
    element = element_of(node)
    if element is None:
        return False
    classes = frozenset(ui_classes)
    return element.closest(lambda el: has_any_class(el, classes)) is not None


def _is_directly_editable(element: Element) -> bool:
    return element.tag in EDITABLE_TAGS or element.is_content_editable


def is_editable_element(element: Element | None) -> bool:
    """True for inputs, textareas and (ancestor) contenteditable regions."""
    if element is None:
        return False
    if _is_directly_editable(element):
        return True
    closest = element.closest(
        lambda el: el.tag in EDITABLE_TAGS or "contenteditable" in el.attrs
    )
    if closest is None:
        return False
    return _is_directly_editable(closest)


def _has_focusable_tabindex(element: Element) -> bool:
    raw = element.attrs.get(TABINDEX_ATTRIBUTE)
    if raw is None:
        return False
    try:
        return int(raw.strip()) >= 0
    except ValueError:
        return False


def _matches_interactive(element: Element) -> bool:
    if element.tag in INTERACTIVE_TAGS:
        return True
    if element.attrs.get("contenteditable", "").strip().lower() == "true":
        return True
    return element.attrs.get("role", "").strip().lower() in INTERACTIVE_ROLES


def _is_interactive_self(element: Element, check_cursor: bool) -> bool:
    if element.is_content_editable:
        return True
    if _matches_interactive(element):
        return True
    if CLICK_ATTRIBUTE in element.attrs:
        return True
    if _has_focusable_tabindex(element):
        return True
    return check_cursor and element.cursor == CURSOR_POINTER


def _is_interactive_by_closest(element: Element) -> bool:
    for current in element.ancestors(include_self=True):
        if current.tag in ("body", "#document"):
            break
        if _matches_interactive(current) or CLICK_ATTRIBUTE in current.attrs:
            return True
        if _has_focusable_tabindex(current):
            return True
    return element.cursor == CURSOR_POINTER


def is_interactive_element(
    target: Node | None, event: PointerEvent | None = None
) -> bool:
    """Decide whether a click target is a control the page itself handles.

    When the event carries a composed path every node on it is inspected on
    its own (only the target itself is checked for a pointer cursor); without
    one the target's ancestor chain is searched.
    """
    element = element_of(target)
    if element is None:
        return False
    if event is not None and event.path is not None:
        return any(
            _is_interactive_self(node, node is element) for node in event.path
        )
    return _is_interactive_by_closest(element)
