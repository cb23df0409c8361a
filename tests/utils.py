from __future__ import annotations

import asyncio
from typing import Any, Awaitable, TypeVar

from tapword.detection import CallableDetector, LanguageDetector
from tapword.document import Document, parse_html
from tapword.language import LanguageSuppressionClassifier
from tapword.layout import MonospaceLayout
from tapword.models import Element, TextLeaf, TextPosition, TextRange
from tapword.pipeline import SelectionValidationPipeline
from tapword.positions import TextPositionModel

T = TypeVar("T")


def run(coro: Awaitable[T]) -> T:
    """Drive a coroutine to completion from a synchronous test."""

    async def _wrap() -> T:
        return await coro

    return asyncio.run(_wrap())


def build_model(html: str) -> tuple[Document, TextPositionModel]:
    """Parse markup and build the text-position model over it."""
    document = parse_html(html)
    return document, TextPositionModel(document)


def select(model: TextPositionModel, text: str, occurrence: int = 0) -> TextRange:
    """Return the range of the n-th visible occurrence of ``text``."""
    found = model.find_text(text, occurrence)
    assert found is not None, f"{text!r} not found"
    return found


def leaf_containing(document: Document, text: str) -> TextLeaf:
    for leaf in document.leaves:
        if text in leaf.value:
            return leaf
    raise AssertionError(f"no leaf contains {text!r}")


def leaf_range(leaf: TextLeaf, start: int, end: int) -> TextRange:
    return TextRange(TextPosition(leaf, start), TextPosition(leaf, end))


def event_path(node: Element | TextLeaf) -> tuple[Element, ...]:
    """Composed event path for a click on ``node``, innermost first."""
    element = node.parent if isinstance(node, TextLeaf) else node
    assert element is not None
    return tuple(element.ancestors(include_self=True))


def fixed_detector(code: str | None, calls: list[str] | None = None) -> LanguageDetector:
    """Detector answering ``code`` for every passage, recording what it saw."""

    def detect(text: str) -> str | None:
        if calls is not None:
            calls.append(text)
        return code

    return CallableDetector(detect)


def failing_detector(exc: Exception) -> LanguageDetector:
    def detect(text: str) -> Any:
        raise exc

    return CallableDetector(detect)


def build_pipeline(
    html: str,
    detector: LanguageDetector | None = None,
    **layout_kwargs: Any,
) -> tuple[SelectionValidationPipeline, MonospaceLayout]:
    """Pipeline over ``html`` with a monospace layout for point lookups."""
    _, model = build_model(html)
    layout = MonospaceLayout(model, **layout_kwargs)
    pipeline = SelectionValidationPipeline(
        model, LanguageSuppressionClassifier(detector), layout
    )
    return pipeline, layout
