from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from clearride.core.handoff import DEFAULT_DESTINATION, DEFAULT_MAX_URL_LENGTH, DEFAULT_MESSAGING_HOST

LOGGER = logging.getLogger(__name__)

DEFAULT_DB_NAME = "clearride"
DEFAULT_SESSION_TIMEOUT_SECONDS = 900
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000
IMGBB_PLACEHOLDER_KEY = "YOUR_IMGBB_API_KEY_HERE"

_DEV_ENVS = {"dev", "development", "local"}


@dataclass(frozen=True)
class Settings:
    mongodb_uri: str
    mongodb_db: str
    imgbb_api_key: str | None
    handoff_host: str
    handoff_destination: str
    handoff_max_url_length: int
    session_timeout_seconds: int
    host: str
    port: int
    app_env: str


def resolve_env_label(raw_env: dict[str, str] | None = None) -> str:
    source = raw_env if raw_env is not None else os.environ
    env = source.get("APP_ENV", "prod").strip().lower()
    return "dev" if env in _DEV_ENVS else "prod"


def validate_startup_env(settings: Settings, *, logger: logging.Logger | None = None) -> bool:
    """Check required settings; returns whether image uploads are available."""
    log = logger or LOGGER
    if not settings.mongodb_uri:
        log.error("startup.env invalid: MONGODB_URI missing")
        raise SystemExit("MONGODB_URI is not set")
    if not settings.handoff_destination.isdigit():
        log.error("startup.env invalid: HANDOFF_DESTINATION=%s", settings.handoff_destination)
        raise SystemExit("HANDOFF_DESTINATION must contain digits only")
    images_enabled = bool(settings.imgbb_api_key)
    if not images_enabled:
        log.warning("startup.env image uploads disabled: IMGBB_API_KEY missing")
    return images_enabled


def load_settings() -> Settings:
    load_dotenv()

    env = os.environ
    imgbb_api_key = (env.get("IMGBB_API_KEY") or "").strip() or None
    if imgbb_api_key == IMGBB_PLACEHOLDER_KEY:
        imgbb_api_key = None
    return Settings(
        mongodb_uri=(env.get("MONGODB_URI") or "").strip(),
        mongodb_db=(env.get("MONGODB_DB") or "").strip() or DEFAULT_DB_NAME,
        imgbb_api_key=imgbb_api_key,
        handoff_host=(env.get("HANDOFF_HOST") or "").strip() or DEFAULT_MESSAGING_HOST,
        handoff_destination=(env.get("HANDOFF_DESTINATION") or "").strip().lstrip("+") or DEFAULT_DESTINATION,
        handoff_max_url_length=_parse_int_with_default(env.get("HANDOFF_MAX_URL_LENGTH"), DEFAULT_MAX_URL_LENGTH),
        session_timeout_seconds=_parse_int_with_default(
            env.get("SESSION_TIMEOUT_SECONDS"),
            DEFAULT_SESSION_TIMEOUT_SECONDS,
        ),
        host=(env.get("HOST") or "").strip() or DEFAULT_HOST,
        port=_parse_int_with_default(env.get("PORT"), DEFAULT_PORT),
        app_env=resolve_env_label(),
    )


def _parse_int_with_default(value: str | None, default: int) -> int:
    if value is None:
        return default
    trimmed = value.strip()
    if not trimmed:
        return default
    return int(trimmed)
