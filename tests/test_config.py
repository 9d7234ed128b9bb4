from __future__ import annotations

import logging

import pytest

from clearride.infra import config as config_module
from clearride.infra.config import Settings, load_settings, validate_startup_env

_ENV_KEYS = (
    "MONGODB_URI",
    "MONGODB_DB",
    "IMGBB_API_KEY",
    "HANDOFF_HOST",
    "HANDOFF_DESTINATION",
    "HANDOFF_MAX_URL_LENGTH",
    "SESSION_TIMEOUT_SECONDS",
    "HOST",
    "PORT",
    "APP_ENV",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config_module, "load_dotenv", lambda *args, **kwargs: False)


def _settings(**overrides) -> Settings:
    values = dict(
        mongodb_uri="mongodb://localhost:27017",
        mongodb_db="clearride",
        imgbb_api_key="key",
        handoff_host="wa.me",
        handoff_destination="201100434503",
        handoff_max_url_length=8000,
        session_timeout_seconds=900,
        host="0.0.0.0",
        port=8000,
        app_env="prod",
    )
    values.update(overrides)
    return Settings(**values)


def test_defaults_when_only_uri_set(monkeypatch) -> None:
    monkeypatch.setenv("MONGODB_URI", "mongodb://db:27017")

    settings = load_settings()

    assert settings.mongodb_uri == "mongodb://db:27017"
    assert settings.mongodb_db == "clearride"
    assert settings.imgbb_api_key is None
    assert settings.handoff_host == "wa.me"
    assert settings.handoff_destination == "201100434503"
    assert settings.handoff_max_url_length == 8000
    assert settings.session_timeout_seconds == 900
    assert settings.port == 8000
    assert settings.app_env == "prod"


def test_overrides_from_env(monkeypatch) -> None:
    monkeypatch.setenv("MONGODB_URI", "mongodb://db:27017")
    monkeypatch.setenv("MONGODB_DB", "bookings_test")
    monkeypatch.setenv("IMGBB_API_KEY", " abc123 ")
    monkeypatch.setenv("HANDOFF_DESTINATION", "+201000000000")
    monkeypatch.setenv("SESSION_TIMEOUT_SECONDS", "60")
    monkeypatch.setenv("APP_ENV", "Development")

    settings = load_settings()

    assert settings.mongodb_db == "bookings_test"
    assert settings.imgbb_api_key == "abc123"
    assert settings.handoff_destination == "201000000000"
    assert settings.session_timeout_seconds == 60
    assert settings.app_env == "dev"


def test_placeholder_imgbb_key_is_ignored(monkeypatch) -> None:
    monkeypatch.setenv("IMGBB_API_KEY", "YOUR_IMGBB_API_KEY_HERE")

    assert load_settings().imgbb_api_key is None


def test_non_numeric_port_raises(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "http")

    with pytest.raises(ValueError):
        load_settings()


def test_startup_requires_mongodb_uri() -> None:
    with pytest.raises(SystemExit):
        validate_startup_env(_settings(mongodb_uri=""))


def test_startup_rejects_bad_destination() -> None:
    with pytest.raises(SystemExit):
        validate_startup_env(_settings(handoff_destination="20-110"))


def test_startup_warns_when_images_disabled(caplog) -> None:
    caplog.set_level(logging.WARNING)

    enabled = validate_startup_env(_settings(imgbb_api_key=None))

    assert enabled is False
    assert "image uploads disabled" in caplog.text
