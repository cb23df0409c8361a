"""
tapword package exports the selection and context engine for library consumers.
"""

from __future__ import annotations

from .config import (
    SettingsStore,
    TapwordConfig,
    UserSettings,
    config_from_dict,
    config_from_yaml,
    load_config,
)
from .context import extract_context, surrounding_text
from .detection import build_detector_from_config
from .document import parse_html
from .language import LanguageSuppressionClassifier
from .models import PointerEvent, TextPosition, TextRange, ValidationResult
from .pipeline import SelectionValidationPipeline
from .positions import TextPositionModel
from .sentences import SentenceBoundaryExpander, expand_range_to_sentence
from .words import WordResolver

__all__ = [
    "SettingsStore",
    "TapwordConfig",
    "UserSettings",
    "config_from_dict",
    "config_from_yaml",
    "load_config",
    "extract_context",
    "surrounding_text",
    "build_detector_from_config",
    "parse_html",
    "LanguageSuppressionClassifier",
    "PointerEvent",
    "TextPosition",
    "TextRange",
    "ValidationResult",
    "SelectionValidationPipeline",
    "TextPositionModel",
    "SentenceBoundaryExpander",
    "expand_range_to_sentence",
    "WordResolver",
]

__version__ = "0.1.0"
