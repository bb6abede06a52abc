import json

import pytest

from datewise import cli


@pytest.fixture(autouse=True)
def unconfigured_env(monkeypatch):
    monkeypatch.setenv("OLLAMA_HOST", "")
    monkeypatch.setenv("LMSTUDIO_BASE_URL", "")
    monkeypatch.setenv("DATEWISE_DEFAULT_PROVIDER", "ollama")


def test_providers_table(capsys):
    assert cli.main(["providers"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines()[0].startswith("ID")
    assert "on-device" in out
    assert "Cloud" in out


def test_interpret_falls_back_when_unconfigured(capsys):
    code = cli.main(["interpret", "tomorrow at 3pm", "--timezone", "UTC", "--now", "2025-01-01T00:00:00Z", "--json"])
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["providerId"] == "fallback"
    assert data["value"].startswith("2025-01-02T")


def test_interpret_requires_text(capsys):
    assert cli.main(["interpret"]) == 2
    assert "TEXT is required" in capsys.readouterr().err


def test_interpret_bad_now(capsys):
    assert cli.main(["interpret", "tomorrow", "--now", "yesterday"]) == 2


def test_interpret_unknown_provider(capsys):
    assert cli.main(["interpret", "tomorrow", "--provider", "gemini"]) == 1
    assert "not configured" in capsys.readouterr().err


def test_interpret_unavailable_provider(capsys):
    assert cli.main(["interpret", "tomorrow", "--provider", "cloud"]) == 1
    assert "not yet available" in capsys.readouterr().err


def test_models_without_host(capsys):
    assert cli.main(["models"]) == 0
    assert "No models found" in capsys.readouterr().out
