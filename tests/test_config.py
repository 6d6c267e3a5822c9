"""Tests for settings resolution."""

from unittest.mock import patch

import pytest

from devscope.config import DEFAULT_MODEL, DEFAULT_TIMEOUT, Settings
from devscope.errors import InvalidInput


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("GITHUB_TOKEN", "GEMINI_API_KEY", "API_KEY", "DEVSCOPE_MODEL", "DEVSCOPE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings.from_env(load_env_file=False)
    assert settings.github_token is None
    assert settings.gemini_api_key == ""
    assert settings.model == DEFAULT_MODEL
    assert settings.timeout == DEFAULT_TIMEOUT


def test_reads_environment(clean_env):
    clean_env.setenv("GITHUB_TOKEN", "ghp_x")
    clean_env.setenv("GEMINI_API_KEY", "g")
    clean_env.setenv("DEVSCOPE_MODEL", "gemini-2.5-pro")
    clean_env.setenv("DEVSCOPE_TIMEOUT", "12.5")
    settings = Settings.from_env(load_env_file=False)
    assert settings.github_token == "ghp_x"
    assert settings.gemini_api_key == "g"
    assert settings.model == "gemini-2.5-pro"
    assert settings.timeout == 12.5


def test_api_key_fallback(clean_env):
    clean_env.setenv("API_KEY", "legacy")
    assert Settings.from_env(load_env_file=False).gemini_api_key == "legacy"


def test_bad_timeout(clean_env):
    clean_env.setenv("DEVSCOPE_TIMEOUT", "soon")
    with pytest.raises(InvalidInput, match="DEVSCOPE_TIMEOUT"):
        Settings.from_env(load_env_file=False)


def test_env_file_loaded_only_when_asked(clean_env):
    with patch("devscope.config.load_dotenv") as load:
        Settings.from_env(load_env_file=False)
        load.assert_not_called()
        Settings.from_env()
        load.assert_called_once()
