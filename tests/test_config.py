"""Tests for configuration helpers."""

import pytest

from prox2 import config

REQUIRED = (
    "SLACK_BOT_TOKEN",
    "SLACK_SIGNING_SECRET",
    "CONFESSIONS_CHANNEL",
    "STAGING_CHANNEL",
    "AIRTABLE_API_KEY",
    "AIRTABLE_BASE",
)


def _seed_env(monkeypatch):
    monkeypatch.setenv("SLACK_BOT_TOKEN", "token")
    monkeypatch.setenv("SLACK_SIGNING_SECRET", "secret")
    monkeypatch.setenv("CONFESSIONS_CHANNEL", " CCONFESS ")
    monkeypatch.setenv("STAGING_CHANNEL", "CSTAGING")
    monkeypatch.setenv("AIRTABLE_API_KEY", "key")
    monkeypatch.setenv("AIRTABLE_BASE", "appBASE")
    for optional in ("AIRTABLE_TABLE", "PROX2_FORWARD_URL", "FORWARD_TIMEOUT", "LOG_LEVEL"):
        monkeypatch.delenv(optional, raising=False)
    config.get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_cache():
    yield
    config.get_settings.cache_clear()


def test_get_settings_parses_expected_fields(monkeypatch):
    _seed_env(monkeypatch)

    settings = config.get_settings()

    assert settings.bot_token == "token"
    assert settings.signing_secret == "secret"
    assert settings.confessions_channel == "CCONFESS"
    assert settings.airtable_table == "Confessions"
    assert settings.forward_url is None
    assert settings.forward_timeout == 10.0
    assert settings.log_level == "INFO"


def test_optional_settings_are_read(monkeypatch):
    _seed_env(monkeypatch)
    monkeypatch.setenv("PROX2_FORWARD_URL", "https://worker.example.com")
    monkeypatch.setenv("FORWARD_TIMEOUT", "2.5")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = config.get_settings()

    assert settings.forward_url == "https://worker.example.com"
    assert settings.forward_timeout == 2.5
    assert settings.log_level == "DEBUG"


def test_missing_environment_variables_raise_runtime_error(monkeypatch):
    for var in REQUIRED:
        monkeypatch.delenv(var, raising=False)
    config.get_settings.cache_clear()

    with pytest.raises(RuntimeError) as err:
        config.get_settings()

    message = str(err.value)
    for var in REQUIRED:
        assert var in message


def test_invalid_values_raise_runtime_error(monkeypatch):
    _seed_env(monkeypatch)
    monkeypatch.setenv("FORWARD_TIMEOUT", "0")

    with pytest.raises(RuntimeError, match="Invalid configuration"):
        config.get_settings()
