"""
Tests for request context and log formatting.
"""

import json
import logging

from winecatalog.core.logging import (
    ConsoleFormatter,
    StructuredJsonFormatter,
    bind,
    current_context,
    get_request_id,
    scrub,
    start_request,
)


def _record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("winecatalog.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContext:
    def test_start_request_replaces_previous_context(self):
        start_request("first")
        bind(user_id="u-1")
        start_request("second")

        assert current_context() == {"request_id": "second"}
        assert get_request_id() == "second"

    def test_bind_adds_fields(self):
        start_request("req-1")
        bind(user_id="u-1")

        assert current_context() == {"request_id": "req-1", "user_id": "u-1"}


class TestScrub:
    def test_masks_credential_keys(self):
        result = scrub({"password": "x", "access_token": "y", "user_id": "u-1"})

        assert result == {"password": "[REDACTED]", "access_token": "[REDACTED]", "user_id": "u-1"}


class TestStructuredJsonFormatter:
    def test_includes_context_and_extra(self):
        start_request("req-9")
        bind(user_id="u-9")

        line = StructuredJsonFormatter().format(_record("Imported", imported=3, error_count=1))
        entry = json.loads(line)

        assert entry["msg"] == "Imported"
        assert entry["level"] == "INFO"
        assert entry["service"] == "winecatalog"
        assert entry["request_id"] == "req-9"
        assert entry["user_id"] == "u-9"
        assert entry["imported"] == 3
        assert entry["error_count"] == 1

    def test_redacts_secret_extra(self):
        start_request("req-1")

        entry = json.loads(StructuredJsonFormatter().format(_record(token="abc")))

        assert entry["token"] == "[REDACTED]"


class TestConsoleFormatter:
    def test_tags_request_and_user(self):
        start_request("req-7")
        bind(user_id="u-7")

        line = ConsoleFormatter().format(_record("Created product"))

        assert "[req-7 u-7]" in line
        assert line.endswith("Created product")
