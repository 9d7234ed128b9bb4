from __future__ import annotations

import json
import logging

from clearride.infra.request_context import (
    clear_request_context,
    get_request_context,
    log_event,
    mask_phone,
    safe_log_payload,
    start_request,
)


def test_start_request_uses_given_correlation_id() -> None:
    context = start_request("abc-123", path="/health")
    try:
        assert get_request_context() is context
        assert context.correlation_id == "abc-123"
        assert context.path == "/health"
    finally:
        clear_request_context()
    assert get_request_context() is None


def test_start_request_generates_id_when_blank() -> None:
    context = start_request("  ")
    clear_request_context()

    assert len(context.correlation_id) == 32


def test_mask_phone_keeps_last_digits() -> None:
    assert mask_phone("+20 123 456 7890") == "***7890"
    assert mask_phone("12") == "***"


def test_safe_payload_redacts_secrets_and_phones() -> None:
    payload = safe_log_payload({"api_key": "s3cret", "phone_number": "+201234567890", "note": "x" * 300})

    assert payload["api_key"] == "[redacted]"
    assert payload["phone_number"] == "***7890"
    assert len(payload["note"]) == 201


def test_log_event_writes_json_with_correlation_id(caplog) -> None:
    logger = logging.getLogger("test.events")
    caplog.set_level(logging.INFO, logger="test.events")
    start_request("corr-1")
    try:
        log_event(logger, component="wizard", event="wizard.submit", outcome="done", phone_number="+201234567890")
    finally:
        clear_request_context()

    record = caplog.records[-1]
    payload = json.loads(record.message)
    assert record.levelno == logging.INFO
    assert payload["correlation_id"] == "corr-1"
    assert payload["event"] == "wizard.submit"
    assert payload["phone_number"] == "***7890"


def test_log_event_levels_follow_status(caplog) -> None:
    logger = logging.getLogger("test.levels")
    caplog.set_level(logging.INFO, logger="test.levels")

    log_event(logger, component="admin", event="a", status="error")
    log_event(logger, component="admin", event="b", status="refused")

    assert [record.levelno for record in caplog.records[-2:]] == [logging.ERROR, logging.WARNING]
    assert json.loads(caplog.records[-1].message)["correlation_id"] == "-"
