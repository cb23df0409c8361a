from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields, replace as dc_replace
from pathlib import Path
from typing import Any, Callable, List, Mapping, MutableMapping

import yaml

from .elements import CSS_CLASSES
from .positions import DEFAULT_BOUNDARY_TAGS

logger = logging.getLogger(__name__)

DETECTOR_NAMES = ("none", "openai")


@dataclass(slots=True)
class OpenAISettings:
    """Configuration block for OpenAI-powered language detection."""

    enabled: bool = False
    model: str = "gpt-4.1-mini"
    api_key: str | None = None
    api_key_env: str = "OPENAI_API_KEY"
    base_url: str | None = None
    organization: str | None = None
    temperature: float = 0.0
    max_output_tokens: int = 16
    request_timeout: float = 10.0
    parallel_requests: int = 1


@dataclass(frozen=True, slots=True)
class UserSettings:
    """Immutable snapshot of the user's preferences."""

    target_language: str = "zh"
    enable_tap_word: bool = True
    show_icon: bool = True
    double_click_translate: bool = True
    double_click_sentence_translate: bool = True
    double_click_sentence_trigger_key: str = "alt"
    single_click_translate: bool = False
    suppress_native_language: bool = True
    max_selection_length: int = 500
    max_word_length: int = 30
    context_window: int = 100


@dataclass(slots=True)
class TapwordConfig:
    """Top-level configuration: settings snapshot plus environment wiring."""

    settings: UserSettings = field(default_factory=UserSettings)
    detector_name: str = "none"
    openai: OpenAISettings = field(default_factory=OpenAISettings)
    ui_classes: List[str] = field(default_factory=lambda: sorted(CSS_CLASSES.values()))
    boundary_tags: List[str] = field(
        default_factory=lambda: sorted(DEFAULT_BOUNDARY_TAGS)
    )

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable dictionary representation of the configuration."""
        return dict(asdict(self))


def _filtered(cls: type, data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {item.name for item in fields(cls)}
    return {key: data[key] for key in data if key in allowed}


def settings_from_dict(data: Mapping[str, Any] | None) -> UserSettings:
    """Build a UserSettings snapshot, ignoring unknown keys."""
    if data is None:
        return UserSettings()
    return UserSettings(**_filtered(UserSettings, data))


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    kwargs = _filtered(TapwordConfig, data)
    settings_value = data.get("settings")
    if isinstance(settings_value, Mapping):
        kwargs["settings"] = settings_from_dict(settings_value)
    openai_value = data.get("openai")
    if isinstance(openai_value, Mapping):
        kwargs["openai"] = OpenAISettings(**_filtered(OpenAISettings, openai_value))
    for key in ("ui_classes", "boundary_tags"):
        if key in kwargs:
            kwargs[key] = [str(item) for item in kwargs[key]]
    if "detector_name" in kwargs:
        name = str(kwargs["detector_name"]).lower()
        if name not in DETECTOR_NAMES:
            raise ValueError(
                f"Unknown detector '{kwargs['detector_name']}'. "
                f"Expected one of: {', '.join(DETECTOR_NAMES)}."
            )
        kwargs["detector_name"] = name
    return kwargs


def config_from_dict(data: Mapping[str, Any] | None) -> TapwordConfig:
    """Build a TapwordConfig from a dictionary-like input."""
    if data is None:
        return TapwordConfig()
    return TapwordConfig(**_build_kwargs(data))


def config_from_yaml(path: str | Path) -> TapwordConfig:
    """Load configuration from a YAML file."""
    contents = Path(path).read_text(encoding="utf-8")
    parsed = yaml.safe_load(contents) or {}
    if not isinstance(parsed, MutableMapping):
        raise ValueError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> TapwordConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return TapwordConfig()
    return config_from_yaml(path)


SettingsHandler = Callable[[UserSettings], None]


class SettingsStore:
    """Holds the current settings snapshot and notifies subscribers on change.

    Snapshots are swapped wholesale, so a reader holding an older snapshot
    keeps a consistent view for the rest of its gesture.
    """

    def __init__(self, settings: UserSettings | None = None) -> None:
        self._settings = settings or UserSettings()
        self._handlers: list[SettingsHandler] = []

    @property
    def settings(self) -> UserSettings:
        return self._settings

    def subscribe(self, handler: SettingsHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def replace(self, settings: UserSettings) -> None:
        self._settings = settings
        logger.debug("Settings replaced: %s", settings)
        for handler in list(self._handlers):
            handler(settings)

    def update(self, **changes: Any) -> UserSettings:
        updated = dc_replace(self._settings, **changes)
        self.replace(updated)
        return updated
