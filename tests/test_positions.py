import pytest

from tapword.models import TextPosition, TextRange
from tests.utils import build_model, leaf_containing, leaf_range, select

HTML = (
    '<body><p id="a">Hello <b>bold</b> world.</p>'
    '<p id="b">Second para.</p></body>'
)


def test_first_and_last_leaf_are_scoped():
    """first_leaf/last_leaf stay inside the given root."""
    document, model = build_model(HTML)
    para = document.get_element_by_id("a")
    assert para is not None
    assert model.first_leaf(para).value == "Hello "
    assert model.last_leaf(para).value == " world."


def test_next_leaf_respects_root_bound():
    """Traversal stops at the root instead of walking into the next block."""
    document, model = build_model(HTML)
    para = document.get_element_by_id("a")
    last = leaf_containing(document, "world.")
    assert model.next_leaf(para, last) is None
    assert model.next_leaf(document.body, last).value == "Second para."
    assert model.prev_leaf(document.body, leaf_containing(document, "bold")).value == "Hello "


def test_block_boundary_detection():
    """Inline elements do not break text; paragraphs do."""
    document, model = build_model(HTML)
    hello = leaf_containing(document, "Hello")
    bold = leaf_containing(document, "bold")
    world = leaf_containing(document, "world")
    second = leaf_containing(document, "Second")
    assert not model.crosses_block_boundary(hello, bold)
    assert not model.crosses_block_boundary(bold, world)
    assert model.crosses_block_boundary(world, second)


def test_boundary_root_finds_paragraph():
    """The nearest boundary-tag ancestor scopes sentence search."""
    document, model = build_model(
        '<body><p id="a">Hello <b>bold</b> world.</p><span>loose text</span></body>'
    )
    bold = leaf_containing(document, "bold")
    assert model.boundary_root(bold).attrs["id"] == "a"
    loose = leaf_containing(document, "loose")
    assert model.boundary_root(loose) is document.body


def test_normalize_element_boundary_points():
    """Element boundary points map onto text leaves."""
    document, model = build_model(HTML)
    para = document.get_element_by_id("a")
    start = model.normalize(document.body, para, 0)
    assert start == TextPosition(leaf_containing(document, "Hello"), 0)
    end = model.normalize(document.body, para, len(para.children))
    world = leaf_containing(document, "world")
    assert end == TextPosition(world, world.length)
    middle = model.normalize(para, para, 1)
    assert middle == TextPosition(leaf_containing(document, "bold"), 0)


def test_normalize_clamps_leaf_offsets():
    """Offsets outside a leaf are clamped into it."""
    document, model = build_model(HTML)
    hello = leaf_containing(document, "Hello")
    assert model.normalize(document.body, hello, 99).offset == hello.length
    assert model.normalize(document.body, hello, -3).offset == 0


def test_find_text_spans_leaves():
    """find_text locates text across inline element boundaries."""
    _, model = build_model(HTML)
    found = select(model, "Hello bold")
    assert found.start.leaf.value == "Hello "
    assert found.end.leaf.value == "bold"
    assert model.range_text(found) == "Hello bold"
    assert model.find_text("missing") is None


def test_find_text_occurrence():
    """The occurrence argument skips earlier matches."""
    _, model = build_model("<p>one two one</p>")
    second = select(model, "one", occurrence=1)
    assert second.start.offset == 8


def test_engine_ui_is_invisible_to_traversal():
    """Text inside the engine's own UI is skipped by traversal and text extraction."""
    document, model = build_model(
        '<p>Click <span class="tapword-icon">ICON</span>here</p>'
    )
    assert [leaf.value for leaf in model.visible_leaves] == ["Click ", "here"]
    click = leaf_containing(document, "Click")
    here = leaf_containing(document, "here")
    spanning = TextRange(TextPosition(click, 0), TextPosition(here, here.length))
    assert model.range_text(spanning) == "Click here"


def test_range_inside_ignored_subtree_keeps_text():
    """A range living entirely inside the engine's UI still has its text."""
    document, model = build_model(
        '<p>Look <span class="tapword-tooltip">Translated words</span></p>'
    )
    leaf = leaf_containing(document, "Translated")
    assert model.range_text(leaf_range(leaf, 0, 10)) == "Translated"


def test_scripts_and_styles_are_ignored():
    """Script and style contents never count as text."""
    _, model = build_model(
        "<p>Visible<script>var x = 1;</script> text<style>p{}</style></p>"
    )
    assert [leaf.value for leaf in model.visible_leaves] == ["Visible", " text"]


def test_reversed_range_rejected():
    """A range whose end precedes its start is a programming error."""
    document, _ = build_model("<p>abc</p>")
    leaf = document.leaves[0]
    with pytest.raises(ValueError):
        TextRange(TextPosition(leaf, 2), TextPosition(leaf, 1))


def test_compare_orders_positions():
    """compare follows document order, then offset."""
    document, model = build_model(HTML)
    hello = leaf_containing(document, "Hello")
    bold = leaf_containing(document, "bold")
    assert model.compare(TextPosition(hello, 5), TextPosition(bold, 0)) == -1
    assert model.compare(TextPosition(bold, 1), TextPosition(bold, 1)) == 0
    assert model.compare(TextPosition(bold, 2), TextPosition(hello, 0)) == 1
