"""Native-language suppression.

Decides whether a selection is already written in the user's target language,
in which case the engine stays out of the way. Script checks come first; the
(optional, possibly slow) detector is consulted only for Chinese text with no
Han majority and for languages without a distinctive script.
"""

from __future__ import annotations

import logging

import regex

from .detection import LanguageDetector, NullDetector, normalize_language_code

logger = logging.getLogger(__name__)

KANA_RE = regex.compile(r"[\p{Script=Hiragana}\p{Script=Katakana}]")
HAN_RE = regex.compile(r"\p{Script=Han}")
HANGUL_RE = regex.compile(r"\p{Script=Hangul}")
CYRILLIC_RE = regex.compile(r"\p{Script=Cyrillic}")

CHINESE_RATIO_THRESHOLD = 0.05

__all__ = [
    "CHINESE_RATIO_THRESHOLD",
    "LanguageSuppressionClassifier",
    "han_ratio",
    "normalize_language_code",
]


def han_ratio(text: str) -> float:
    if not text:
        return 0.0
    return len(HAN_RE.findall(text)) / len(text)


class LanguageSuppressionClassifier:
    """Decide whether the engine should offer help for a piece of text."""

    def __init__(self, detector: LanguageDetector | None = None) -> None:
        self.detector = detector or NullDetector()

    async def should_show(
        self, text: str, target_language: str, context: str | None = None
    ) -> bool:
        """Return False when ``text`` is already in ``target_language``."""
        target = normalize_language_code(target_language)

        if target == "zh":
            if KANA_RE.search(text):
                return True
            ratio = han_ratio(text)
            if ratio > CHINESE_RATIO_THRESHOLD:
                logger.debug("Han ratio %.3f marks text as native Chinese", ratio)
                return False
            return not await self._context_matches(context, target)
        if target == "ja":
            return KANA_RE.search(text) is None
        if target == "ko":
            return HANGUL_RE.search(text) is None
        if target == "ru":
            return CYRILLIC_RE.search(text) is None
        if target == "en":
            return True
        return not await self._context_matches(context, target)

    async def is_native(
        self, text: str, target_language: str, context: str | None = None
    ) -> bool:
        return not await self.should_show(text, target_language, context)

    async def _context_matches(self, context: str | None, target: str) -> bool:
        if not context or not context.strip():
            return False
        try:
            detected = await self.detector.detect(context)
        except Exception as exc:
            logger.warning("Language detection failed; showing UI: %s", exc)
            return False
        matched = normalize_language_code(detected) == target
        if matched:
            logger.debug("Context detected as %s; suppressing", target)
        return matched
