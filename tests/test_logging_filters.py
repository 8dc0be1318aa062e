"""Tests for log redaction and formatting."""

from __future__ import annotations

import json
import logging
from io import StringIO

from throttle.core.config import LogSettings
from throttle.core.logging import (
    SENSITIVE_KEYS_DEFAULT,
    JsonFormatter,
    SensitiveDataFilter,
    configure_logging,
    hash_key,
)


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_caller_identity():
    logger, stream = _capture("test_caller_redaction")

    logger.warning(
        "rate_limit.denied",
        extra={
            "caller_id": "user-42@example.com",
            "rate_limit_key": "search:user-42@example.com",
            "api": "search",
        },
    )

    output = stream.getvalue()

    assert "user-42@example.com" not in output
    assert "[REDACTED]" in output
    assert "search" in output


def test_sensitive_filter_redacts_nested_dicts():
    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={"request": {"caller_id": "user-7", "path": "/orders"}},
    )

    output = stream.getvalue()

    assert "user-7" not in output
    assert "/orders" in output


def test_default_redaction_covers_only_caller_identity():
    assert SENSITIVE_KEYS_DEFAULT == {"caller", "caller_id", "key", "rate_limit_key"}

    logger, stream = _capture("test_default_keys")
    logger.info(
        "rate_limit.allowed",
        extra={"api": "search", "algorithm": "TOKEN_BUCKET", "key_hash": "ab12", "limit": 5},
    )

    payload = json.loads(stream.getvalue())
    assert payload["api"] == "search"
    assert payload["algorithm"] == "TOKEN_BUCKET"
    assert payload["key_hash"] == "ab12"
    assert payload["limit"] == 5


def test_json_formatter_emits_structured_fields():
    logger, stream = _capture("test_json_fields")

    logger.info("rate_limit.purged", extra={"removed": 3, "max_idle_s": 600})

    payload = json.loads(stream.getvalue())
    assert payload["message"] == "rate_limit.purged"
    assert payload["level"] == "info"
    assert payload["logger"] == "test_json_fields"
    assert payload["removed"] == 3
    assert payload["max_idle_s"] == 600
    assert "timestamp" in payload


def test_hash_key_is_stable_and_opaque():
    assert hash_key("search:user1") == hash_key("search:user1")
    assert hash_key("search:user1") != hash_key("search:user2")
    assert len(hash_key("search:user1")) == 16
    assert "user1" not in hash_key("search:user1")


def test_configure_logging_writes_rotating_file(tmp_path):
    log_file = tmp_path / "logs" / "throttle.log"
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level

    try:
        configure_logging(LogSettings(output="file", file_path=str(log_file), level="WARNING"))
        logging.getLogger("throttle.test").warning("rate_limit.denied", extra={"caller": "bob"})
        for handler in root.handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip()
        payload = json.loads(line)
        assert payload["message"] == "rate_limit.denied"
        assert payload["caller"] == "[REDACTED]"
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
