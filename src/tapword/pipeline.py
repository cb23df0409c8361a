"""Gesture validation: decide whether a selection, click or double-click
should produce translation UI, and why not when it should not."""

from __future__ import annotations

import logging
from typing import AbstractSet, Iterable, Literal

import regex

from .config import TapwordConfig, UserSettings
from .context import surrounding_text
from .document import Document
from .elements import (
    CLICK_UI_CLASSES,
    SELECTION_UI_CLASSES,
    element_of,
    inside_extension_ui,
    is_editable_element,
    is_interactive_element,
    make_ignore_predicate,
)
from .language import LanguageSuppressionClassifier
from .layout import CaretLocator
from .models import PointerEvent, TextRange, ValidationResult
from .positions import DEFAULT_BOUNDARY_TAGS, TextPositionModel
from .sentences import (
    ExpansionOptions,
    SentenceBoundaryExpander,
    collapse_whitespace,
)
from .words import WordResolver

logger = logging.getLogger(__name__)

Trigger = Literal["icon", "doubleClickWord", "doubleClickSentence"]
TRIGGER_ICON: Trigger = "icon"
TRIGGER_DOUBLE_CLICK_WORD: Trigger = "doubleClickWord"
TRIGGER_DOUBLE_CLICK_SENTENCE: Trigger = "doubleClickSentence"
TRIGGERS: tuple[Trigger, ...] = (
    TRIGGER_ICON,
    TRIGGER_DOUBLE_CLICK_WORD,
    TRIGGER_DOUBLE_CLICK_SENTENCE,
)

REASON_NO_SELECTION = "no-selection"
REASON_FEATURE_DISABLED = "feature-disabled"
REASON_TRIGGER_DISABLED = "trigger-disabled"
REASON_EMPTY_TEXT = "empty-text"
REASON_TOO_LONG = "too-long"
REASON_CONTENTLESS = "contentless"
REASON_SUPPRESSED_NATIVE = "suppressed-native"
REASON_INSIDE_EDITABLE = "inside-editable"
REASON_INSIDE_EXTENSION_UI = "inside-extension-ui"
REASON_INVALID_EVENT = "invalid-event"
REASON_MODIFIER_PRESSED = "modifier-pressed"
REASON_INTERACTIVE_ELEMENT = "interactive-element"
REASON_NO_WORD_AT_POINT = "no-word-at-point"
REASON_WORD_TOO_LONG = "word-too-long"
REASON_ACTIVE_SELECTION = "active-selection"
REASON_VALID = "valid"

PRIMARY_BUTTON = 0

# Numbers, whitespace, punctuation and symbols only.
CONTENTLESS_RE = regex.compile(r"^[\d\s\p{P}\p{S}]+$")
WHITESPACE_RE = regex.compile(r"\s")


def is_contentless(text: str) -> bool:
    return CONTENTLESS_RE.match(text) is not None


def _reject(
    reason: str, text: str = "", *, cleanup: bool = False
) -> ValidationResult:
    logger.debug("Gesture rejected: %s", reason)
    return ValidationResult(
        is_valid=False, text=text, reason=reason, should_cleanup=cleanup
    )


def _trigger_enabled(settings: UserSettings, trigger: Trigger) -> bool:
    if trigger == TRIGGER_ICON:
        return settings.show_icon
    if trigger == TRIGGER_DOUBLE_CLICK_WORD:
        return settings.double_click_translate
    if trigger == TRIGGER_DOUBLE_CLICK_SENTENCE:
        return settings.double_click_sentence_translate
    raise ValueError(f"Unknown trigger '{trigger}'.")


def sentence_key_held(event: PointerEvent, trigger_key: str) -> bool:
    """Whether the configured sentence-mode modifier is down for ``event``."""
    key = trigger_key.lower()
    if key == "meta":
        return event.meta_key
    if key in ("alt", "option"):
        return event.alt_key
    if key == "ctrl":
        return event.ctrl_key
    return False


class SelectionValidationPipeline:
    """Validates gestures against one document snapshot.

    The pipeline holds no state between calls; every verdict depends only on
    its arguments, the snapshot and what the classifier answers.
    """

    def __init__(
        self,
        model: TextPositionModel,
        classifier: LanguageSuppressionClassifier | None = None,
        locator: CaretLocator | None = None,
        *,
        selection_ui_classes: Iterable[str] = SELECTION_UI_CLASSES,
        click_ui_classes: Iterable[str] = CLICK_UI_CLASSES,
        expansion: ExpansionOptions | None = None,
    ) -> None:
        self.model = model
        self.classifier = classifier or LanguageSuppressionClassifier()
        self.resolver = WordResolver(locator) if locator is not None else None
        self.selection_ui_classes: AbstractSet[str] = frozenset(selection_ui_classes)
        self.click_ui_classes: AbstractSet[str] = frozenset(click_ui_classes)
        self.expander = SentenceBoundaryExpander(model, expansion)

    @classmethod
    def from_config(
        cls,
        document: Document,
        config: TapwordConfig,
        classifier: LanguageSuppressionClassifier | None = None,
        locator: CaretLocator | None = None,
    ) -> SelectionValidationPipeline:
        ui_classes = frozenset(config.ui_classes)
        model = TextPositionModel(document, make_ignore_predicate(ui_classes))
        boundary_tags = frozenset(config.boundary_tags or DEFAULT_BOUNDARY_TAGS)
        return cls(
            model,
            classifier,
            locator,
            selection_ui_classes=ui_classes & SELECTION_UI_CLASSES or ui_classes,
            click_ui_classes=ui_classes,
            expansion=ExpansionOptions(boundary_tags=boundary_tags),
        )

    async def validate_selection(
        self,
        selection: TextRange | None,
        settings: UserSettings,
        trigger: Trigger,
    ) -> ValidationResult:
        """Run a selection through the gates for ``trigger``; first failure wins."""
        if selection is None or selection.collapsed:
            return _reject(REASON_NO_SELECTION, cleanup=True)
        if not settings.enable_tap_word:
            return _reject(REASON_FEATURE_DISABLED, cleanup=True)
        if not _trigger_enabled(settings, trigger):
            return _reject(REASON_TRIGGER_DISABLED)

        text = self.model.range_text(selection).strip()
        if not text:
            return _reject(REASON_EMPTY_TEXT, cleanup=True)
        if len(text) > settings.max_selection_length:
            return _reject(REASON_TOO_LONG, text, cleanup=True)
        if is_contentless(text):
            return _reject(REASON_CONTENTLESS, text)

        if trigger != TRIGGER_ICON or settings.suppress_native_language:
            context = surrounding_text(self.model, selection, settings.context_window)
            if await self.classifier.is_native(text, settings.target_language, context):
                return _reject(REASON_SUPPRESSED_NATIVE, text, cleanup=True)

        container = self.model.range_container(selection)
        if is_editable_element(element_of(container)):
            return _reject(REASON_INSIDE_EDITABLE, text, cleanup=True)
        if inside_extension_ui(container, self.selection_ui_classes):
            return _reject(REASON_INSIDE_EXTENSION_UI, text)

        return ValidationResult(
            is_valid=True, text=text, reason=REASON_VALID, range=selection
        )

    async def validate_single_click(
        self,
        event: PointerEvent,
        settings: UserSettings,
        selection: TextRange | None = None,
    ) -> ValidationResult:
        """Decide whether a plain click should translate the word under it."""
        if not settings.enable_tap_word:
            return _reject(REASON_FEATURE_DISABLED)
        if not settings.single_click_translate:
            return _reject(REASON_TRIGGER_DISABLED)
        if event.button != PRIMARY_BUTTON or event.default_prevented:
            return _reject(REASON_INVALID_EVENT)
        if event.has_modifier:
            return _reject(REASON_MODIFIER_PRESSED)
        if is_interactive_element(event.target, event):
            return _reject(REASON_INTERACTIVE_ELEMENT)
        if inside_extension_ui(event.target, self.click_ui_classes):
            return _reject(REASON_INSIDE_EXTENSION_UI)
        if selection is not None and not selection.collapsed:
            return _reject(REASON_ACTIVE_SELECTION)

        word = self.resolver.resolve(event.x, event.y) if self.resolver else None
        if word is None:
            return _reject(REASON_NO_WORD_AT_POINT)

        text = self.model.range_text(word).strip()
        if not text or WHITESPACE_RE.search(text):
            return _reject(REASON_EMPTY_TEXT, text)
        if len(text) > settings.max_word_length:
            return _reject(REASON_WORD_TOO_LONG, text)
        if is_contentless(text):
            return _reject(REASON_CONTENTLESS, text)

        context = surrounding_text(self.model, word, settings.context_window)
        if await self.classifier.is_native(text, settings.target_language, context):
            return _reject(REASON_SUPPRESSED_NATIVE, text, cleanup=True)

        # The caller tears down any visible icon before translating.
        return ValidationResult(
            is_valid=True, text=text, reason=REASON_VALID, should_cleanup=True, range=word
        )

    async def handle_double_click(
        self,
        event: PointerEvent,
        selection: TextRange | None,
        settings: UserSettings,
    ) -> ValidationResult:
        """Validate a double-click and, in sentence mode, widen it to its sentence."""
        sentence_mode = settings.double_click_sentence_translate and sentence_key_held(
            event, settings.double_click_sentence_trigger_key
        )
        trigger = (
            TRIGGER_DOUBLE_CLICK_SENTENCE if sentence_mode else TRIGGER_DOUBLE_CLICK_WORD
        )
        result = await self.validate_selection(selection, settings, trigger)
        if not result.is_valid or not sentence_mode or result.range is None:
            return result

        logger.info(
            "Modifier key (%s) pressed, expanding selection to full sentence.",
            settings.double_click_sentence_trigger_key,
        )
        expanded = self.expander.expand(result.range)
        result.range = expanded
        result.text = collapse_whitespace(self.model.range_text(expanded)).strip()
        return result
