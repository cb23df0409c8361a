"""Greedy-Short sentence expansion.

A selection is widened to the shortest sentence-like span that still carries
enough meaning:

1. Hard terminators (``. ? ! 。 ？ ！ …``, line breaks, block boundaries) are an
   absolute sandbox the result never leaves.
2. Soft terminators (``, ; : —`` and their CJK forms) keep the span short.
3. A span that is still too short grows to the right first, then to the left.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import AbstractSet

from .models import Node, TextLeaf, TextPosition, TextRange
from .positions import DEFAULT_BOUNDARY_TAGS, TextPositionModel

logger = logging.getLogger(__name__)

SENTENCE_TERMINATORS = frozenset({".", "?", "!", "。", "？", "！", "…"})
HARD_TERMINATORS = SENTENCE_TERMINATORS | {"\n"}
SOFT_TERMINATORS = frozenset({",", "，", ";", "；", ":", "：", "—"})

MIN_WORD_COUNT = 3
MIN_CJK_CHARS = 5

CJK_PATTERN = re.compile(r"[\u4e00-\u9fff\u3040-\u30ff\uac00-\ud7af]")
WHITESPACE_RE = re.compile(r"\s+")


@dataclass(slots=True)
class ExpansionOptions:
    """Tunable knobs for sentence expansion."""

    hard_terminators: AbstractSet[str] = HARD_TERMINATORS
    soft_terminators: AbstractSet[str] = SOFT_TERMINATORS
    boundary_tags: AbstractSet[str] = DEFAULT_BOUNDARY_TAGS
    min_words: int = MIN_WORD_COUNT
    min_cjk_chars: int = MIN_CJK_CHARS


def collapse_whitespace(value: str) -> str:
    return WHITESPACE_RE.sub(" ", value)


def is_segment_short(
    text: str, min_words: int = MIN_WORD_COUNT, min_cjk_chars: int = MIN_CJK_CHARS
) -> bool:
    """Judge whether a candidate span is too short to translate on its own."""
    trimmed = text.strip()
    if not trimmed:
        return True
    if CJK_PATTERN.search(trimmed):
        return len(trimmed) < min_cjk_chars
    words = [
        token
        for token in WHITESPACE_RE.split(trimmed)
        if any(ch.isalnum() for ch in token)
    ]
    return len(words) < min_words


def first_terminator_index(value: str, terminators: AbstractSet[str]) -> int:
    for idx, ch in enumerate(value):
        if ch in terminators:
            return idx
    return -1


def last_terminator_index(value: str, terminators: AbstractSet[str]) -> int:
    for idx in range(len(value) - 1, -1, -1):
        if value[idx] in terminators:
            return idx
    return -1


def find_sentence_end(
    model: TextPositionModel,
    root: Node,
    leaf: TextLeaf,
    offset: int,
    terminators: AbstractSet[str],
) -> TextPosition | None:
    """Scan forward for the position just past the next terminator."""
    idx = first_terminator_index(leaf.value[offset:], terminators)
    if idx >= 0:
        return TextPosition(leaf, offset + idx + 1)

    prev = leaf
    current = model.next_leaf(root, leaf)
    while current is not None:
        if model.crosses_block_boundary(prev, current):
            return TextPosition(prev, prev.length)
        idx = first_terminator_index(current.value, terminators)
        if idx >= 0:
            return TextPosition(current, idx + 1)
        prev = current
        current = model.next_leaf(root, current)

    last = model.last_leaf(root)
    return TextPosition(last, last.length) if last is not None else None


def find_sentence_start(
    model: TextPositionModel,
    root: Node,
    leaf: TextLeaf,
    offset: int,
    terminators: AbstractSet[str],
) -> TextPosition | None:
    """Scan backward for the position just past the previous terminator."""
    idx = last_terminator_index(leaf.value[:offset], terminators)
    if idx >= 0:
        return TextPosition(leaf, idx + 1)

    prev = leaf
    current = model.prev_leaf(root, leaf)
    while current is not None:
        if model.crosses_block_boundary(current, prev):
            return TextPosition(prev, 0)
        idx = last_terminator_index(current.value, terminators)
        if idx >= 0:
            return TextPosition(current, idx + 1)
        prev = current
        current = model.prev_leaf(root, current)

    first = model.first_leaf(root)
    return TextPosition(first, 0) if first is not None else None


class SentenceBoundaryExpander:
    """Expand selections to sentence-level ranges within one document snapshot."""

    def __init__(
        self, model: TextPositionModel, options: ExpansionOptions | None = None
    ) -> None:
        self.model = model
        self.options = options or ExpansionOptions()

    def expand(
        self, text_range: TextRange, options: ExpansionOptions | None = None
    ) -> TextRange:
        """Return the Greedy-Short sentence range around ``text_range``.

        Never fails: when no scope or text position can be resolved the input
        range is returned unchanged.
        """
        opts = options or self.options
        model = self.model
        hard = frozenset(opts.hard_terminators)
        every = hard | frozenset(opts.soft_terminators)

        root = model.boundary_root(
            model.range_container(text_range), opts.boundary_tags
        )
        start = model.normalize(root, text_range.start.leaf, text_range.start.offset)
        end = model.normalize(root, text_range.end.leaf, text_range.end.offset)
        if start is None or end is None:
            logger.debug("No text position in scope; keeping selection unchanged")
            return text_range

        hard_start = find_sentence_start(model, root, start.leaf, start.offset, hard)
        hard_end = self._find_end_from(root, start, end, hard)
        if hard_start is None or hard_end is None:
            return text_range

        soft_start = find_sentence_start(model, root, start.leaf, start.offset, every)
        soft_end = self._find_end_from(root, start, end, every)
        soft_start = soft_start or hard_start
        soft_end = soft_end or hard_end

        safe_start = hard_start if soft_start < hard_start else soft_start
        safe_end = hard_end if hard_end < soft_end else soft_end

        safe_end = self._grow_right(root, safe_start, safe_end, hard_end, every, opts)
        safe_start = self._grow_left(
            root, safe_start, safe_end, hard_start, every, opts
        )
        return TextRange(safe_start, safe_end)

    def _find_end_from(
        self,
        root: Node,
        start: TextPosition,
        end: TextPosition,
        terminators: frozenset[str],
    ) -> TextPosition | None:
        # A selection whose last character is a terminator already ends its sentence.
        offset = end.offset
        if start < end and offset > 0 and end.leaf.value[offset - 1] in terminators:
            offset -= 1
        return find_sentence_end(self.model, root, end.leaf, offset, terminators)

    def _is_short(
        self, start: TextPosition, end: TextPosition, opts: ExpansionOptions
    ) -> bool:
        text = collapse_whitespace(self.model.text_between(start, end))
        return is_segment_short(text, opts.min_words, opts.min_cjk_chars)

    def _grow_right(
        self,
        root: Node,
        start: TextPosition,
        end: TextPosition,
        hard_end: TextPosition,
        terminators: frozenset[str],
        opts: ExpansionOptions,
    ) -> TextPosition:
        while self._is_short(start, end, opts) and end < hard_end:
            next_end = find_sentence_end(
                self.model, root, end.leaf, end.offset, terminators
            )
            if next_end is None or hard_end <= next_end or next_end <= end:
                return hard_end
            end = next_end
        return end

    def _grow_left(
        self,
        root: Node,
        start: TextPosition,
        end: TextPosition,
        hard_start: TextPosition,
        terminators: frozenset[str],
        opts: ExpansionOptions,
    ) -> TextPosition:
        while self._is_short(start, end, opts) and hard_start < start:
            # start sits just past a terminator; search from before it.
            leaf, offset = start.leaf, start.offset
            if offset > 0:
                offset -= 1
            else:
                prev = self.model.prev_leaf(root, leaf)
                if prev is None:
                    return hard_start
                leaf, offset = prev, prev.length

            prev_start = find_sentence_start(
                self.model, root, leaf, offset, terminators
            )
            if prev_start is None or prev_start <= hard_start or start <= prev_start:
                return hard_start
            start = prev_start
        return start


def expand_range_to_sentence(
    model: TextPositionModel,
    text_range: TextRange,
    options: ExpansionOptions | None = None,
) -> TextRange:
    """Convenience wrapper around SentenceBoundaryExpander.expand."""
    return SentenceBoundaryExpander(model, options).expand(text_range)
