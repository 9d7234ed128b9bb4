"""Tests for logging configuration (LOG_LEVEL, LOG_FILE)."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from clearride.infra.logging_config import configure_logging, resolve_level
from clearride.infra.request_context import clear_request_context, start_request


def test_log_level_defaults_to_info(monkeypatch) -> None:
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    configure_logging()

    assert logging.getLogger().level == logging.INFO


def test_log_level_from_env(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")

    configure_logging()

    assert logging.getLogger().level == logging.DEBUG


def test_log_level_invalid_falls_back_to_info(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "LOUD")

    configure_logging()

    assert logging.getLogger().level == logging.INFO


def test_repeated_configuration_does_not_stack_handlers(monkeypatch) -> None:
    monkeypatch.delenv("LOG_FILE", raising=False)

    configure_logging()
    configure_logging()

    assert len(logging.getLogger().handlers) == 1


def test_log_file_adds_rotating_handler(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    log_path = tmp_path / "logs" / "clearride.log"

    configure_logging(log_file=str(log_path))
    logging.getLogger("clearride.test").info("hello file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert "hello file" in log_path.read_text(encoding="utf-8")
    configure_logging(log_file="")
    file_handlers[0].close()


def test_noisy_loggers_are_quieted() -> None:
    configure_logging(level=logging.DEBUG)

    for name in ("httpx", "httpcore", "pymongo", "uvicorn.access"):
        assert logging.getLogger(name).level == logging.WARNING


def test_records_carry_request_correlation_id(tmp_path) -> None:
    log_path = tmp_path / "clearride.log"
    configure_logging(level=logging.INFO, log_file=str(log_path))
    logger = logging.getLogger("clearride.test.correlation")

    start_request("req-77")
    try:
        logger.info("inside request")
    finally:
        clear_request_context()
    logger.info("outside request")
    file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
    configure_logging(log_file="")
    for handler in file_handlers:
        handler.close()

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert "[req-77] clearride.test.correlation inside request" in lines[0]
    assert "[-] clearride.test.correlation outside request" in lines[1]


def test_resolve_level() -> None:
    assert resolve_level("warning") == logging.WARNING
    assert resolve_level(None) == logging.INFO
    assert resolve_level("LOUD") == logging.INFO
