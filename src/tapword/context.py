from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import AbstractSet

from .models import TextPosition, TextRange
from .positions import DEFAULT_BOUNDARY_TAGS, TextPositionModel
from .sentences import (
    SENTENCE_TERMINATORS,
    collapse_whitespace,
    find_sentence_end,
    find_sentence_start,
)

DEFAULT_CONTEXT_WINDOW = 100


@dataclass(slots=True)
class ExtractedContext:
    """Sentence-level context around a selection."""

    text: str
    leading_text: str = ""
    trailing_text: str = ""
    current_sentence: str = ""
    previous_sentences: list[str] = field(default_factory=list)
    next_sentences: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ContextOptions:
    prev_count: int = 1
    next_count: int = 1
    terminators: AbstractSet[str] = SENTENCE_TERMINATORS
    boundary_tags: AbstractSet[str] = DEFAULT_BOUNDARY_TAGS


def _minimal(text: str) -> ExtractedContext:
    return ExtractedContext(text=text, current_sentence=text)


def _split_regex(terminators: AbstractSet[str]) -> re.Pattern[str]:
    chars = "".join(re.escape(ch) for ch in sorted(terminators))
    return re.compile(rf"(?<=[{chars}])\s*")


def extract_context(
    model: TextPositionModel,
    text_range: TextRange,
    options: ContextOptions | None = None,
) -> ExtractedContext:
    """Collect the selected text, its sentence and the neighbouring sentences."""
    opts = options or ContextOptions()
    if text_range.collapsed:
        return _minimal("")

    terminators = frozenset(opts.terminators)
    text = model.range_text(text_range).strip()
    root = model.boundary_root(model.range_container(text_range), opts.boundary_tags)
    start = model.normalize(root, text_range.start.leaf, text_range.start.offset)
    end = model.normalize(root, text_range.end.leaf, text_range.end.offset)
    if start is None or end is None:
        return _minimal(text)

    sentence_start = find_sentence_start(model, root, start.leaf, start.offset, terminators)
    sentence_end = find_sentence_end(model, root, end.leaf, end.offset, terminators)
    if sentence_start is None or sentence_end is None:
        return _minimal(text)

    leading = collapse_whitespace(model.text_between(sentence_start, start))
    trailing = collapse_whitespace(model.text_between(end, sentence_end))
    current = collapse_whitespace(f"{leading}{text}{trailing}").strip()

    splitter = _split_regex(terminators)
    previous: list[str] = []
    following: list[str] = []
    first = model.first_leaf(root)
    last = model.last_leaf(root)
    if opts.prev_count > 0 and first is not None:
        before = model.text_between(TextPosition(first, 0), sentence_start)
        previous = _sentences(before, splitter)[-opts.prev_count :]
    if opts.next_count > 0 and last is not None:
        after = model.text_between(sentence_end, TextPosition(last, last.length))
        following = _sentences(after, splitter)[: opts.next_count]

    return ExtractedContext(
        text=text,
        leading_text=leading,
        trailing_text=trailing,
        current_sentence=current,
        previous_sentences=previous,
        next_sentences=following,
    )


def _sentences(raw: str, splitter: re.Pattern[str]) -> list[str]:
    parts = (collapse_whitespace(part).strip() for part in splitter.split(raw))
    return [part for part in parts if part]


def surrounding_text(
    model: TextPositionModel,
    text_range: TextRange,
    window: int = DEFAULT_CONTEXT_WINDOW,
) -> str:
    """Plain-string context for language detection.

    Up to ``window`` characters of visible text on each side of the range,
    plus the range itself, with the engine's own UI text left out.
    """
    window = max(0, window)
    before: list[str] = []
    remaining = window
    leaf = text_range.start.leaf
    chunk = leaf.value[: text_range.start.offset]
    while remaining > 0:
        if chunk:
            piece = chunk[-remaining:]
            before.append(piece)
            remaining -= len(piece)
        prev = model.prev_leaf(model.document.root, leaf)
        if prev is None:
            break
        leaf, chunk = prev, prev.value

    after: list[str] = []
    remaining = window
    leaf = text_range.end.leaf
    chunk = leaf.value[text_range.end.offset :]
    while remaining > 0:
        if chunk:
            piece = chunk[:remaining]
            after.append(piece)
            remaining -= len(piece)
        nxt = model.next_leaf(model.document.root, leaf)
        if nxt is None:
            break
        leaf, chunk = nxt, nxt.value

    combined = "".join(reversed(before)) + model.range_text(text_range) + "".join(after)
    return collapse_whitespace(combined).strip()
