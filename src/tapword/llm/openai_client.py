from __future__ import annotations

import importlib
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, cast

from ..config import OpenAISettings

logger = logging.getLogger(__name__)

OpenAI: Callable[..., Any] | None = None


@dataclass(slots=True)
class DetectionMetadata:
    """Describes the text being classified, used for logging."""

    char_count: int
    purpose: str = "context"


class OpenAIDetectionClient:
    """Blocking wrapper around the OpenAI Responses API with retries and throttling."""

    def __init__(
        self, settings: OpenAISettings, api_key: str, max_attempts: int = 3
    ) -> None:
        if not api_key:
            raise ValueError("OpenAI API key is required for language detection.")
        self._settings = settings
        self._api_key = api_key
        self._client_factory: Callable[..., Any] = _load_openai_factory()
        self._client: Any | None = None
        self._semaphore: threading.BoundedSemaphore | None = None
        if settings.parallel_requests > 0:
            self._semaphore = threading.BoundedSemaphore(settings.parallel_requests)
        self._max_attempts = max(1, max_attempts)

    @property
    def settings(self) -> OpenAISettings:
        return self._settings

    def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        metadata: DetectionMetadata,
    ) -> str:
        """Send one classification request and return the raw model answer."""
        last_error: Exception | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                with self._acquire_slot():
                    response: Any = self._ensure_client().responses.create(
                        model=self._settings.model,
                        input=[
                            {"role": "system", "content": system_prompt},
                            {"role": "user", "content": user_prompt},
                        ],
                        temperature=self._settings.temperature,
                        max_output_tokens=self._settings.max_output_tokens,
                        timeout=self._settings.request_timeout,
                    )
                answer = self._extract_text(response)
                logger.debug(
                    "Language detection answered %r for %s chars of %s",
                    answer,
                    metadata.char_count,
                    metadata.purpose,
                )
                return answer
            except Exception as exc:  # pragma: no cover - network-related
                last_error = exc
                logger.warning(
                    "Language detection request failed (attempt %s/%s): %s",
                    attempt,
                    self._max_attempts,
                    exc,
                )
                if attempt < self._max_attempts:
                    time.sleep(min(2 ** (attempt - 1), 5))
        raise RuntimeError("OpenAI language detection failed after retries.") from last_error

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(
                api_key=self._api_key,
                base_url=self._settings.base_url,
                organization=self._settings.organization,
            )
        return self._client

    @contextmanager
    def _acquire_slot(self) -> Iterator[None]:
        if self._semaphore is None:
            yield
            return
        with self._semaphore:
            yield

    @staticmethod
    def _extract_text(response: Any) -> str:
        text = getattr(response, "output_text", None)
        if isinstance(text, str) and text:
            return text
        output = getattr(response, "output", None)
        if not output:
            raise RuntimeError("OpenAI response is missing output content.")
        content = _as_dict(output[0]).get("content")
        if not content:
            raise RuntimeError("OpenAI response has no content segments.")
        segment_text = _as_dict(content[0]).get("text")
        if not segment_text:
            raise RuntimeError("OpenAI response segment missing text.")
        return cast(str, segment_text)


def _as_dict(item: Any) -> dict[str, Any]:
    if isinstance(item, dict):
        return cast(dict[str, Any], item)
    if hasattr(item, "model_dump"):
        return cast(dict[str, Any], item.model_dump())
    if hasattr(item, "__dict__"):
        return dict(vars(item))
    raise RuntimeError("Unexpected OpenAI response format.")


def _load_openai_factory() -> Callable[..., Any]:
    """Import the OpenAI client class lazily so the package imports without it."""
    global OpenAI
    if OpenAI is not None:
        return OpenAI
    try:  # pragma: no cover - import guard
        module = importlib.import_module("openai")
    except ImportError as exc:  # pragma: no cover - handled at runtime
        raise RuntimeError(
            "openai package is not installed. Install extras via 'pip install .[llm-openai]'."
        ) from exc
    openai_cls = getattr(module, "OpenAI", None)
    if openai_cls is None:  # pragma: no cover
        raise RuntimeError("openai.OpenAI client class is unavailable in this environment.")
    OpenAI = cast(Callable[..., Any], openai_cls)
    return OpenAI
