from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from tapword.config import (
    SettingsStore,
    TapwordConfig,
    UserSettings,
    config_from_dict,
    config_from_yaml,
    load_config,
    settings_from_dict,
)


def test_default_settings():
    """Defaults match the documented preferences."""
    settings = UserSettings()
    assert settings.target_language == "zh"
    assert settings.enable_tap_word
    assert settings.show_icon
    assert settings.double_click_translate
    assert settings.double_click_sentence_translate
    assert settings.double_click_sentence_trigger_key == "alt"
    assert not settings.single_click_translate
    assert settings.suppress_native_language
    assert settings.max_selection_length == 500
    assert settings.max_word_length == 30


def test_settings_snapshot_is_frozen():
    """Settings snapshots cannot be mutated in place."""
    settings = UserSettings()
    with pytest.raises(FrozenInstanceError):
        settings.show_icon = False  # type: ignore[misc]


def test_settings_from_dict_ignores_unknown_keys():
    """Unknown preference keys are dropped."""
    settings = settings_from_dict({"target_language": "ja", "icon_color": "pink"})
    assert settings.target_language == "ja"


def test_config_from_dict_builds_nested_blocks():
    """Nested settings and openai mappings become dataclasses."""
    cfg = config_from_dict(
        {
            "settings": {"target_language": "ko", "show_icon": False},
            "detector_name": "OpenAI",
            "openai": {"model": "custom", "unknown": 1},
            "boundary_tags": ["p", "section"],
            "extra": True,
        }
    )
    assert cfg.settings.target_language == "ko"
    assert not cfg.settings.show_icon
    assert cfg.detector_name == "openai"
    assert cfg.openai.model == "custom"
    assert cfg.boundary_tags == ["p", "section"]


def test_config_from_dict_rejects_unknown_detector():
    """Detector names are validated."""
    with pytest.raises(ValueError):
        config_from_dict({"detector_name": "magic"})


def test_config_from_yaml(tmp_path: Path):
    """YAML files load into TapwordConfig."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "settings:\n  target_language: ru\n  max_word_length: 12\n", encoding="utf-8"
    )
    cfg = config_from_yaml(path)
    assert cfg.settings.target_language == "ru"
    assert cfg.settings.max_word_length == 12


def test_config_from_yaml_requires_mapping(tmp_path: Path):
    """A YAML list is not a valid configuration."""
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        config_from_yaml(path)


def test_load_config_defaults():
    """No path means default configuration."""
    cfg = load_config(None)
    assert cfg == TapwordConfig()
    data = cfg.to_dict()
    assert data["settings"]["target_language"] == "zh"
    assert "tapword-icon" in data["ui_classes"]


def test_settings_store_notifies_subscribers():
    """update swaps the snapshot and notifies until unsubscribed."""
    store = SettingsStore()
    seen: list[UserSettings] = []
    unsubscribe = store.subscribe(seen.append)
    original = store.settings

    updated = store.update(target_language="fr")
    assert store.settings is updated
    assert original.target_language == "zh"
    assert seen == [updated]

    unsubscribe()
    store.replace(UserSettings(show_icon=False))
    assert len(seen) == 1
    assert not store.settings.show_icon
