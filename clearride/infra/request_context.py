from __future__ import annotations

import contextvars
import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

LOGGER = logging.getLogger(__name__)

_DEV_ENVS = {"dev", "development", "local"}
_SECRET_KEYS = {"authorization", "api_key", "apikey", "key", "token", "password", "secret", "cookie"}
_PHONE_KEYS = {"phone", "phone_number", "phonenumber"}
_MAX_FIELD_LENGTH = 200

_CURRENT: contextvars.ContextVar[RequestContext | None] = contextvars.ContextVar(
    "clearride_request_context",
    default=None,
)


@dataclass
class RequestContext:
    correlation_id: str
    env: str
    path: str = ""
    ts: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def resolve_env() -> str:
    env = os.getenv("APP_ENV", "prod").strip().lower()
    return "dev" if env in _DEV_ENVS else "prod"


def start_request(correlation_id: str | None = None, *, path: str = "") -> RequestContext:
    context = RequestContext(
        correlation_id=(correlation_id or "").strip() or uuid.uuid4().hex,
        env=resolve_env(),
        path=path,
    )
    _CURRENT.set(context)
    return context


def get_request_context() -> RequestContext | None:
    return _CURRENT.get()


def clear_request_context() -> None:
    _CURRENT.set(None)


def mask_phone(value: str) -> str:
    digits = [char for char in value if char.isdigit()]
    if len(digits) <= 4:
        return "***"
    return "***" + "".join(digits[-4:])


def safe_log_payload(fields: dict[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key, value in fields.items():
        lowered = key.lower()
        if lowered in _SECRET_KEYS:
            payload[key] = "[redacted]"
        elif lowered in _PHONE_KEYS and isinstance(value, str):
            payload[key] = mask_phone(value)
        elif isinstance(value, str) and len(value) > _MAX_FIELD_LENGTH:
            payload[key] = value[:_MAX_FIELD_LENGTH] + "…"
        else:
            payload[key] = value
    return payload


def log_event(
    logger: logging.Logger,
    *,
    component: str,
    event: str,
    status: str = "ok",
    **fields: Any,
) -> None:
    request_context = get_request_context()
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "correlation_id": request_context.correlation_id if request_context else "-",
        "component": component,
        "event": event,
        "status": status,
        "env": request_context.env if request_context else resolve_env(),
    }
    if fields:
        payload.update(safe_log_payload(fields))
    message = json.dumps(payload, ensure_ascii=False, default=str)
    if status == "error":
        logger.error(message)
    elif status == "refused":
        logger.warning(message)
    else:
        logger.info(message)
