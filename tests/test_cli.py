import json
from pathlib import Path

from pytest import MonkeyPatch
from typer.testing import CliRunner

from tapword.cli import app

runner = CliRunner()

ARTICLE = (
    "<html><body>"
    "<p>We are discussing the iPhone 15 Pro. It has a new chip.</p>"
    "<p>你好世界</p>"
    "</body></html>"
)


def _write_article(tmp_path: Path) -> Path:
    path = tmp_path / "article.html"
    path.write_text(ARTICLE, encoding="utf-8")
    return path


def test_cli_validate_outputs_verdict(tmp_path: Path):
    """validate prints the pipeline verdict as JSON."""
    path = _write_article(tmp_path)
    result = runner.invoke(app, ["validate", "--input", str(path), "--select", "iPhone"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["is_valid"] is True
    assert payload["reason"] == "valid"
    assert payload["text"] == "iPhone"


def test_cli_validate_native_text(tmp_path: Path):
    """Native-language selections report the suppression reason."""
    path = _write_article(tmp_path)
    result = runner.invoke(
        app,
        [
            "validate",
            "--input",
            str(path),
            "--select",
            "你好世界",
            "--trigger",
            "doubleClickWord",
            "--target-language",
            "zh-CN",
        ],
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["is_valid"] is False
    assert payload["reason"] == "suppressed-native"
    assert payload["should_cleanup"] is True


def test_cli_validate_rejects_unknown_trigger(tmp_path: Path):
    """Unknown triggers are reported as bad parameters."""
    path = _write_article(tmp_path)
    result = runner.invoke(
        app, ["validate", "--input", str(path), "--select", "iPhone", "--trigger", "hover"]
    )
    assert result.exit_code != 0


def test_cli_validate_missing_text(tmp_path: Path):
    """Selecting text that is not in the document fails."""
    path = _write_article(tmp_path)
    result = runner.invoke(app, ["validate", "--input", str(path), "--select", "Android"])
    assert result.exit_code != 0


def test_cli_validate_openai_requires_key(monkeypatch: MonkeyPatch, tmp_path: Path):
    """The openai detector needs an API key from options, config or env."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    path = _write_article(tmp_path)
    result = runner.invoke(
        app,
        ["validate", "--input", str(path), "--select", "iPhone", "--detector", "openai"],
    )
    assert result.exit_code != 0


def test_cli_validate_uses_config_file(tmp_path: Path):
    """Settings from a YAML config file drive the gates."""
    path = _write_article(tmp_path)
    config_path = tmp_path / "config.yaml"
    config_path.write_text("settings:\n  max_selection_length: 3\n", encoding="utf-8")
    result = runner.invoke(
        app,
        ["validate", "--input", str(path), "--select", "iPhone", "--config", str(config_path)],
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)["reason"] == "too-long"


def test_cli_expand_prints_sentence(tmp_path: Path):
    """expand widens the selection to its sentence."""
    path = _write_article(tmp_path)
    result = runner.invoke(app, ["expand", "--input", str(path), "--select", "15 Pro"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["selection"] == "15 Pro"
    assert payload["sentence"] == "We are discussing the iPhone 15 Pro."


def test_cli_context_prints_sentences(tmp_path: Path):
    """context reports the sentence, its neighbours and detection context."""
    path = _write_article(tmp_path)
    result = runner.invoke(
        app, ["context", "--input", str(path), "--select", "new", "--window", "5"]
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["current_sentence"] == "It has a new chip."
    assert payload["previous_sentences"] == ["We are discussing the iPhone 15 Pro."]
    assert payload["detection_context"] == "as a new chip"


def test_cli_word_at_point(tmp_path: Path):
    """word-at resolves the word under a point of the monospace rendering."""
    path = tmp_path / "words.html"
    path.write_text("<p>Hello world</p>", encoding="utf-8")
    result = runner.invoke(app, ["word-at", "--input", str(path), "--x", "60", "--y", "8"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["word"] == "world"

    result = runner.invoke(app, ["word-at", "--input", str(path), "--x", "44", "--y", "8"])
    assert json.loads(result.stdout)["word"] is None


def test_cli_word_at_single_click(tmp_path: Path):
    """--single-click runs the click gates for the point."""
    path = tmp_path / "words.html"
    path.write_text('<p>Hello <a href="#">world</a></p>', encoding="utf-8")
    result = runner.invoke(
        app, ["word-at", "--input", str(path), "--x", "12", "--y", "8", "--single-click"]
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["is_valid"] is True
    assert payload["text"] == "Hello"

    result = runner.invoke(
        app, ["word-at", "--input", str(path), "--x", "60", "--y", "8", "--single-click"]
    )
    assert json.loads(result.stdout)["reason"] == "interactive-element"


def test_cli_verbose_flag(tmp_path: Path):
    """--verbose is accepted ahead of any sub-command."""
    path = _write_article(tmp_path)
    result = runner.invoke(
        app, ["--verbose", "expand", "--input", str(path), "--select", "chip"]
    )
    assert result.exit_code == 0


def test_cli_print_config():
    """print-config command dumps the default configuration values."""
    result = runner.invoke(app, ["print-config"])
    assert result.exit_code == 0
    assert "target_language" in result.stdout
    assert "tapword-icon" in result.stdout
