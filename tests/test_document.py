from pathlib import Path

import pytest

from tapword.document import DocumentParseError, document_from_text, load_html, parse_html


def test_parse_html_builds_text_leaves():
    """Inline markup is split into leaves whose concatenation is the text."""
    document = parse_html("<p>Hello <b>world</b></p>")
    assert [leaf.value for leaf in document.leaves] == ["Hello ", "world"]
    assert document.text == "Hello world"


def test_formatting_whitespace_is_dropped():
    """Newline-only runs between tags do not become leaves."""
    document = parse_html("<div>\n  <p>A</p>\n  <p>B</p>\n</div>")
    assert [leaf.value for leaf in document.leaves] == ["A", "B"]


def test_newline_between_inline_siblings_renders_as_space():
    """A source newline between inline elements keeps the words apart."""
    document = parse_html("<p><span>Hello</span>\n<span>world</span> again today.</p>")
    assert document.text == "Hello world again today."
    assert [leaf.value for leaf in document.leaves] == [
        "Hello",
        " ",
        "world",
        " again today.",
    ]


def test_formatting_whitespace_merges_into_adjacent_text():
    """A collapsed run joins neighbouring text instead of becoming its own leaf."""
    document = parse_html("<p><b>Bold</b>\n<!-- note -->plain.</p>")
    assert [leaf.value for leaf in document.leaves] == ["Bold", " plain."]


def test_formatting_whitespace_at_block_edges_is_dropped():
    """Runs at the start or end of a block, or beside a <br>, are not rendered."""
    document = parse_html("<p>\n  <b>one</b>\n  <br>\n  <i>two</i>\n</p>")
    assert [leaf.value for leaf in document.leaves] == ["one", "two"]


def test_paragraphs_auto_close():
    """An unclosed <p> is closed by the next block, as browsers do."""
    document = parse_html("<body><p>one<p>two</body>")
    paragraphs = document.find_all("p")
    assert len(paragraphs) == 2
    assert all(p.parent is document.body for p in paragraphs)


def test_preorder_indices_support_containment():
    """Elements contain exactly the nodes numbered inside their subtree."""
    document = parse_html('<p id="a">x<b>y</b></p><p id="b">z</p>')
    first = document.get_element_by_id("a")
    second = document.get_element_by_id("b")
    assert first is not None and second is not None
    y_leaf = document.leaves[1]
    assert first.contains(y_leaf)
    assert not second.contains(y_leaf)
    assert first.index < y_leaf.index < second.index


def test_line_breaks_are_tracked():
    """A <br> between two leaves is reported as a line break."""
    document = parse_html("<p>a<br>b</p><p>c</p>")
    a, b, c = document.leaves
    assert document.has_line_break_between(a, b)
    assert not document.has_line_break_between(b, c)


def test_document_from_text_makes_one_paragraph_per_block():
    """Blank lines separate paragraphs in plain-text input."""
    document = document_from_text("One.\n\nTwo.\n")
    assert [p.children[0].value for p in document.find_all("p")] == ["One.", "Two."]


def test_load_html_reads_txt_and_html(tmp_path: Path):
    """load_html dispatches on the file suffix."""
    txt = tmp_path / "doc.txt"
    txt.write_text("Plain text.", encoding="utf-8")
    html = tmp_path / "doc.html"
    html.write_text("<p>Marked <i>up</i>.</p>", encoding="utf-8")
    assert load_html(txt).text == "Plain text."
    assert load_html(html).text == "Marked up."


def test_load_html_missing_file(tmp_path: Path):
    """A missing document raises DocumentParseError."""
    with pytest.raises(DocumentParseError):
        load_html(tmp_path / "absent.html")
