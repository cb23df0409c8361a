"""Geometry adapters: point-to-caret resolution and client rectangles.

The engine never computes layout itself; it talks to a ``CaretLocator``.
``MonospaceLayout`` is a deterministic locator that lays every visible
character out in a fixed-size cell, starting a new line at each block
boundary, ``<br>`` or wrap column.
"""

from __future__ import annotations

import bisect
import math
from dataclasses import dataclass
from typing import Protocol

from .models import Rect, TextLeaf, TextPosition, TextRange
from .positions import TextPositionModel


class CaretLocator(Protocol):
    """Environment primitives the word resolver depends on."""

    def caret_from_point(self, x: float, y: float) -> TextPosition | None:
        ...

    def client_rects(self, text_range: TextRange) -> list[Rect]:
        ...


@dataclass(frozen=True, slots=True)
class _Cell:
    leaf: TextLeaf
    offset: int
    line: int
    column: int


class MonospaceLayout:
    """Fixed-cell layout of a document's visible text."""

    def __init__(
        self,
        model: TextPositionModel,
        *,
        char_width: float = 8.0,
        line_height: float = 16.0,
        left: float = 0.0,
        top: float = 0.0,
        wrap_column: int | None = None,
    ) -> None:
        if char_width <= 0 or line_height <= 0:
            raise ValueError("char_width and line_height must be positive.")
        self.model = model
        self.char_width = char_width
        self.line_height = line_height
        self.left = left
        self.top = top
        self.wrap_column = wrap_column
        self._cells: list[_Cell] = []
        self._lines: list[list[_Cell]] = []
        self._layout()
        self._keys = [(cell.leaf.index, cell.offset) for cell in self._cells]

    def _layout(self) -> None:
        line: list[_Cell] = []
        prev: TextLeaf | None = None
        for leaf in self.model.visible_leaves:
            if prev is not None and line and self.model.crosses_block_boundary(prev, leaf):
                self._lines.append(line)
                line = []
            for offset in range(leaf.length):
                if self.wrap_column is not None and len(line) >= self.wrap_column:
                    self._lines.append(line)
                    line = []
                cell = _Cell(leaf, offset, len(self._lines), len(line))
                line.append(cell)
                self._cells.append(cell)
            prev = leaf
        if line:
            self._lines.append(line)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def point_of(self, position: TextPosition) -> tuple[float, float]:
        """Centre point of the glyph at ``position`` (handy for driving clicks)."""
        cell = self._cell_at(position)
        if cell is None:
            raise ValueError("Position has no rendered glyph.")
        return (
            self.left + (cell.column + 0.5) * self.char_width,
            self.top + (cell.line + 0.5) * self.line_height,
        )

    def caret_from_point(self, x: float, y: float) -> TextPosition | None:
        if y < self.top:
            return None
        line_no = int((y - self.top) // self.line_height)
        if line_no >= len(self._lines):
            return None
        line = self._lines[line_no]
        boundary = math.floor((x - self.left) / self.char_width + 0.5)
        boundary = min(max(boundary, 0), len(line))
        if boundary < len(line):
            cell = line[boundary]
            return TextPosition(cell.leaf, cell.offset)
        cell = line[-1]
        return TextPosition(cell.leaf, cell.offset + 1)

    def client_rects(self, text_range: TextRange) -> list[Rect]:
        lo = bisect.bisect_left(self._keys, text_range.start.sort_key)
        hi = bisect.bisect_left(self._keys, text_range.end.sort_key)
        rects: list[Rect] = []
        run: list[_Cell] = []
        for cell in self._cells[lo:hi]:
            if run and cell.line != run[-1].line:
                rects.append(self._rect(run))
                run = []
            run.append(cell)
        if run:
            rects.append(self._rect(run))
        return rects

    def _rect(self, run: list[_Cell]) -> Rect:
        first, last = run[0], run[-1]
        return Rect(
            left=self.left + first.column * self.char_width,
            top=self.top + first.line * self.line_height,
            right=self.left + (last.column + 1) * self.char_width,
            bottom=self.top + (first.line + 1) * self.line_height,
        )

    def _cell_at(self, position: TextPosition) -> _Cell | None:
        pos = bisect.bisect_left(self._keys, position.sort_key)
        if pos < len(self._cells) and self._keys[pos] == position.sort_key:
            return self._cells[pos]
        return None
