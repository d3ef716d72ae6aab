from __future__ import annotations

import pytest

from pharmacy_agent_core import ConfigError, load_settings
from pharmacy_agent_core.settings import load_local_env_file

_ENV_NAMES = (
    "OPENAI_API_KEY",
    "OPENAI_API_BASE_URL",
    "PHARMACY_CHAT_MODEL",
    "PHARMACY_TOOL_TEMPERATURE",
    "PHARMACY_REDIRECT_TEMPERATURE",
    "PHARMACY_MAX_ITERATIONS",
    "PHARMACY_CHAT_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so teardown also removes values written by load_local_env_file.
    for name in _ENV_NAMES:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults():
    settings = load_settings()
    assert settings.configured is False
    assert settings.base_url == "https://api.openai.com/v1"
    assert settings.model == "gpt-4o"
    assert (settings.tool_temperature, settings.redirect_temperature) == (0.4, 0.7)
    assert settings.max_iterations == 10
    assert settings.timeout_seconds == 60.0


def test_overrides(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", " sk-live ")
    monkeypatch.setenv("OPENAI_API_BASE_URL", "http://localhost:11434/v1/")
    monkeypatch.setenv("PHARMACY_MAX_ITERATIONS", "3")
    settings = load_settings()
    assert settings.api_key == "sk-live"
    assert settings.configured is True
    assert settings.base_url == "http://localhost:11434/v1"
    assert settings.max_iterations == 3


@pytest.mark.parametrize(
    "name, value",
    [
        ("PHARMACY_MAX_ITERATIONS", "0"),
        ("PHARMACY_MAX_ITERATIONS", "many"),
        ("PHARMACY_CHAT_TIMEOUT_SECONDS", "-1"),
        ("PHARMACY_TOOL_TEMPERATURE", "hot"),
        ("PHARMACY_REDIRECT_TEMPERATURE", "3.5"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError, match=name):
        load_settings()


def test_local_env_file_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comment\nPHARMACY_CHAT_MODEL='gpt-mini'\nOPENAI_API_KEY=from-file\nnot a pair\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("OPENAI_API_KEY", "from-env")
    load_local_env_file(env_file)
    settings = load_settings()
    assert settings.model == "gpt-mini"
    assert settings.api_key == "from-env"
