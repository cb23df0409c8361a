from __future__ import annotations

import re

from .layout import CaretLocator
from .models import TextPosition, TextRange

WORD_CHAR_RE = re.compile(r"[A-Za-z0-9'-]")
HIT_TEST_PADDING_PX = 2.0


def is_word_char(ch: str) -> bool:
    return bool(ch) and WORD_CHAR_RE.fullmatch(ch) is not None


def expand_to_word(position: TextPosition) -> TextRange | None:
    """Grow a caret position into the word span around it."""
    leaf = position.leaf
    text = leaf.value
    if not text:
        return None

    index = position.offset
    if (
        index > 0
        and not is_word_char(text[index : index + 1])
        and is_word_char(text[index - 1])
    ):
        # Clicked just past the word's last glyph.
        index -= 1
    if not is_word_char(text[index : index + 1]):
        return None

    start = index
    while start > 0 and is_word_char(text[start - 1]):
        start -= 1
    end = index
    while end < len(text) and is_word_char(text[end]):
        end += 1
    if start == end:
        return None
    return TextRange(TextPosition(leaf, start), TextPosition(leaf, end))


class WordResolver:
    """Resolve a screen point to the word rendered under it."""

    def __init__(
        self, locator: CaretLocator, padding: float = HIT_TEST_PADDING_PX
    ) -> None:
        self.locator = locator
        self.padding = padding

    def resolve(self, x: float, y: float) -> TextRange | None:
        caret = self.locator.caret_from_point(x, y)
        if caret is None:
            return None
        word = expand_to_word(caret)
        if word is None:
            return None
        # Carets on wrapped or justified lines can land on a distant glyph.
        rects = self.locator.client_rects(word)
        if not any(rect.inflate(self.padding).contains(x, y) for rect in rects):
            return None
        return word
