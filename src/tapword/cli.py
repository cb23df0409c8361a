from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import asdict, replace as dc_replace
from pathlib import Path
from typing import Any, cast

import typer
import yaml

from .config import DETECTOR_NAMES, OpenAISettings, TapwordConfig, load_config
from .context import ContextOptions, extract_context, surrounding_text
from .detection import LanguageDetector, build_detector_from_config
from .document import Document, DocumentParseError, load_html
from .language import LanguageSuppressionClassifier
from .layout import MonospaceLayout
from .models import PointerEvent, TextRange, ValidationResult
from .pipeline import TRIGGERS, SelectionValidationPipeline, Trigger
from .positions import TextPositionModel
from .words import WordResolver

app = typer.Typer(help="Tapword selection and context engine CLI.", no_args_is_help=True)


@app.callback()
def configure(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log gate decisions at DEBUG level."
    ),
) -> None:
    """Configure logging for every sub-command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def validate(
    input_path: Path = typer.Option(..., "--input", "-i", exists=True, readable=True),
    select: str = typer.Option(..., "--select", "-s", help="Text to select."),
    occurrence: int = typer.Option(0, help="Which occurrence of --select to use."),
    trigger: str = typer.Option("icon", help=f"One of: {', '.join(TRIGGERS)}."),
    config: Path | None = typer.Option(None, "--config", "-c"),
    target_language: str | None = typer.Option(
        None, "--target-language", "-t", help="Override settings.target_language."
    ),
    detector: str | None = typer.Option(
        None, "--detector", "-d", help="Language detector to use ('none' or 'openai')."
    ),
    openai_api_key: str | None = typer.Option(
        None, "--openai-api-key", help="Explicit OpenAI API key (prefer env vars)."
    ),
) -> None:
    """Validate a selection of a document as the given trigger would."""
    if trigger not in TRIGGERS:
        raise typer.BadParameter(
            f"Unknown trigger '{trigger}'. Expected one of: {', '.join(TRIGGERS)}."
        )
    cfg = _load_overridden_config(config, target_language, detector, openai_api_key)
    document = _load_document(input_path)
    pipeline = SelectionValidationPipeline.from_config(
        document, cfg, LanguageSuppressionClassifier(_build_detector(cfg))
    )
    selection = _find_selection(pipeline.model, select, occurrence)
    result = asyncio.run(
        pipeline.validate_selection(selection, cfg.settings, cast(Trigger, trigger))
    )
    typer.echo(json.dumps(_result_dict(result), indent=2, ensure_ascii=False))


@app.command()
def expand(
    input_path: Path = typer.Option(..., "--input", "-i", exists=True, readable=True),
    select: str = typer.Option(..., "--select", "-s", help="Text to select."),
    occurrence: int = typer.Option(0, help="Which occurrence of --select to use."),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Expand a selection to its Greedy-Short sentence."""
    cfg = load_config(config)
    pipeline = SelectionValidationPipeline.from_config(_load_document(input_path), cfg)
    selection = _find_selection(pipeline.model, select, occurrence)
    expanded = pipeline.expander.expand(selection)
    payload = {
        "selection": pipeline.model.range_text(selection),
        "sentence": pipeline.model.range_text(expanded),
        "range": _range_dict(expanded),
    }
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command()
def context(
    input_path: Path = typer.Option(..., "--input", "-i", exists=True, readable=True),
    select: str = typer.Option(..., "--select", "-s", help="Text to select."),
    occurrence: int = typer.Option(0, help="Which occurrence of --select to use."),
    prev_count: int = typer.Option(1, "--prev", help="Previous sentences to include."),
    next_count: int = typer.Option(1, "--next", help="Following sentences to include."),
    window: int | None = typer.Option(
        None, "--window", help="Characters of detection context on each side."
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Extract sentence context and detection context around a selection."""
    cfg = load_config(config)
    pipeline = SelectionValidationPipeline.from_config(_load_document(input_path), cfg)
    model = pipeline.model
    selection = _find_selection(model, select, occurrence)
    extracted = extract_context(
        model,
        selection,
        ContextOptions(
            prev_count=prev_count,
            next_count=next_count,
            boundary_tags=frozenset(cfg.boundary_tags),
        ),
    )
    payload: dict[str, Any] = asdict(extracted)
    payload["detection_context"] = surrounding_text(
        model, selection, cfg.settings.context_window if window is None else window
    )
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command("word-at")
def word_at(
    input_path: Path = typer.Option(..., "--input", "-i", exists=True, readable=True),
    x: float = typer.Option(..., "--x", help="Client X coordinate."),
    y: float = typer.Option(..., "--y", help="Client Y coordinate."),
    char_width: float = typer.Option(8.0, help="Monospace cell width in pixels."),
    line_height: float = typer.Option(16.0, help="Line height in pixels."),
    wrap_column: int | None = typer.Option(None, help="Wrap lines after N cells."),
    single_click: bool = typer.Option(
        False, "--single-click", help="Run the single-click gates for this point."
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
    target_language: str | None = typer.Option(None, "--target-language", "-t"),
    detector: str | None = typer.Option(None, "--detector", "-d"),
    openai_api_key: str | None = typer.Option(None, "--openai-api-key"),
) -> None:
    """Resolve the word under a point of a monospace rendering of the document."""
    cfg = _load_overridden_config(config, target_language, detector, openai_api_key)
    document = _load_document(input_path)
    classifier = (
        LanguageSuppressionClassifier(_build_detector(cfg)) if single_click else None
    )
    pipeline = SelectionValidationPipeline.from_config(document, cfg, classifier)
    layout = MonospaceLayout(
        pipeline.model,
        char_width=char_width,
        line_height=line_height,
        wrap_column=wrap_column,
    )
    if single_click:
        pipeline.resolver = WordResolver(layout)
        settings = dc_replace(cfg.settings, single_click_translate=True)
        caret = layout.caret_from_point(x, y)
        event = PointerEvent(x=x, y=y, target=caret.leaf if caret else None)
        result = asyncio.run(pipeline.validate_single_click(event, settings))
        typer.echo(
            json.dumps(_result_dict(result), indent=2, ensure_ascii=False)
        )
        return
    word = WordResolver(layout).resolve(x, y)
    payload = {
        "word": pipeline.model.range_text(word) if word else None,
        "range": _range_dict(word) if word else None,
    }
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = TapwordConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False, allow_unicode=True))


def main() -> None:
    app()


def _load_overridden_config(
    config: Path | None,
    target_language: str | None,
    detector: str | None,
    openai_api_key: str | None,
) -> TapwordConfig:
    """Load the YAML config (or defaults) and apply CLI overrides."""
    try:
        cfg = load_config(config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if target_language:
        cfg.settings = dc_replace(cfg.settings, target_language=target_language)
    if detector:
        name = detector.lower()
        if name not in DETECTOR_NAMES:
            raise typer.BadParameter(f"Unknown detector '{detector}'.")
        cfg.detector_name = name
    if openai_api_key:
        cfg.openai.api_key = openai_api_key
    return cfg


def _build_detector(config: TapwordConfig) -> LanguageDetector:
    """Instantiate the configured detector for the current run."""
    api_key = (
        _resolve_openai_api_key(config.openai) if config.detector_name == "openai" else None
    )
    return build_detector_from_config(config, api_key=api_key)


def _resolve_openai_api_key(settings: OpenAISettings) -> str:
    """Resolve the API key from explicit config or the configured environment variable."""
    if settings.api_key:
        return settings.api_key
    env_name = settings.api_key_env or "OPENAI_API_KEY"
    if env_name in os.environ:
        return os.environ[env_name]
    raise typer.BadParameter(
        "OpenAI API key not provided. Use --openai-api-key or set the configured environment variable."
    )


def _load_document(path: Path) -> Document:
    try:
        return load_html(path)
    except DocumentParseError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _find_selection(model: TextPositionModel, text: str, occurrence: int) -> TextRange:
    selection = model.find_text(text, occurrence)
    if selection is None:
        raise typer.BadParameter(f"Text not found in document: {text!r}")
    return selection


def _range_dict(text_range: TextRange) -> dict[str, Any]:
    return {
        "start": {"leaf": text_range.start.leaf.index, "offset": text_range.start.offset},
        "end": {"leaf": text_range.end.leaf.index, "offset": text_range.end.offset},
    }


def _result_dict(result: ValidationResult) -> dict[str, Any]:
    return {
        "is_valid": result.is_valid,
        "text": result.text,
        "reason": result.reason,
        "should_cleanup": result.should_cleanup,
        "range": _range_dict(result.range) if result.range else None,
    }
