"""Minimal example: validate a double-click with OpenAI-backed language detection."""

from __future__ import annotations

import asyncio
import os

from tapword.config import TapwordConfig, UserSettings
from tapword.detection import build_detector_from_config
from tapword.document import parse_html
from tapword.language import LanguageSuppressionClassifier
from tapword.models import PointerEvent
from tapword.pipeline import SelectionValidationPipeline

PAGE = (
    "<p>Hoy hablamos del nuevo iPhone 15 Pro. "
    "Tiene un chip más rápido, y la batería dura más.</p>"
)


def main() -> None:
    config = TapwordConfig(
        settings=UserSettings(target_language="es"), detector_name="openai"
    )
    api_key = os.environ.get(config.openai.api_key_env) or ""
    if not api_key:
        raise RuntimeError(
            "Set the OpenAI API key before running this example "
            f"({config.openai.api_key_env})."
        )

    detector = build_detector_from_config(config, api_key=api_key)
    pipeline = SelectionValidationPipeline.from_config(
        parse_html(PAGE), config, LanguageSuppressionClassifier(detector)
    )
    selection = pipeline.model.find_text("iPhone")
    event = PointerEvent(x=0.0, y=0.0, alt_key=True)
    result = asyncio.run(pipeline.handle_double_click(event, selection, config.settings))
    print("Valid:", result.is_valid)
    print("Reason:", result.reason)
    print("Text:", result.text)


if __name__ == "__main__":
    main()
