from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Union

from .config import TapwordConfig
from .llm.openai_client import DetectionMetadata, OpenAIDetectionClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You identify the language of short passages taken from web pages.\n"
    "Answer with a single ISO 639-1 code in lower case (for example: en, zh, ja).\n"
    "If the passage mixes languages, answer with the dominant one.\n"
    "If the language cannot be determined, answer: und.\n"
    "Output the code only, with no punctuation or commentary."
)

USER_PROMPT_TEMPLATE = (
    "Characters: {char_count}\n"
    "-----\n"
    "{text}\n"
    "-----\n"
    "Return only the language code."
)

UNDETERMINED = "und"

DetectResult = Union[str, None, Awaitable[Union[str, None]]]


def normalize_language_code(code: str | None) -> str:
    """Lower-case a BCP-47 tag and strip its region/script subtags."""
    if not code:
        return ""
    primary = code.strip().replace("_", "-").split("-", 1)[0]
    return primary.lower()


class LanguageDetector(ABC):
    """Abstract interface for detecting the language of a passage."""

    @abstractmethod
    async def detect(self, text: str) -> str | None:
        """Return a language code, or None when undetermined."""
        raise NotImplementedError


class NullDetector(LanguageDetector):
    """Never detects anything."""

    async def detect(self, text: str) -> str | None:
        return None


class CallableDetector(LanguageDetector):
    """Adapt a sync or async callable into the LanguageDetector interface."""

    def __init__(self, func: Callable[[str], DetectResult]) -> None:
        self._func = func

    async def detect(self, text: str) -> str | None:
        result = self._func(text)
        if inspect.isawaitable(result):
            result = await result
        return result


class OpenAILanguageDetector(LanguageDetector):
    """Detector backed by the OpenAI Responses API."""

    def __init__(
        self,
        client: OpenAIDetectionClient,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        user_prompt_template: str = USER_PROMPT_TEMPLATE,
    ) -> None:
        self._client = client
        self._system_prompt = system_prompt
        self._user_prompt_template = user_prompt_template

    async def detect(self, text: str) -> str | None:
        passage = text.strip()
        if not passage:
            return None
        logger.info("Detecting language of %s chars", len(passage))
        user_prompt = self._user_prompt_template.format(
            char_count=len(passage), text=passage
        )
        answer = await asyncio.to_thread(
            self._client.complete,
            system_prompt=self._system_prompt,
            user_prompt=user_prompt,
            metadata=DetectionMetadata(char_count=len(passage)),
        )
        code = normalize_language_code(answer.strip().strip(".\"'`"))
        if not code or code == UNDETERMINED:
            return None
        return code


def build_detector_from_config(
    config: TapwordConfig, api_key: str | None = None, **client_kwargs: Any
) -> LanguageDetector:
    """Instantiate the detector named by ``config.detector_name``."""
    name = config.detector_name.lower()
    if name == "none":
        return NullDetector()
    if name == "openai":
        key = api_key or config.openai.api_key
        if not key:
            raise ValueError("OpenAI API key is required for the openai detector.")
        client = OpenAIDetectionClient(config.openai, api_key=key, **client_kwargs)
        return OpenAILanguageDetector(client)
    raise ValueError(f"Unknown detector '{config.detector_name}'.")
