"""
Tests for the JSON log formatter.
"""

import json
import logging

from whatsapp_gateway.core.logging import JsonFormatter
from whatsapp_gateway.core.request_context import clear_request_context, set_request_context


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("whatsapp_gateway.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_includes_request_context(self):
        set_request_context(request_id="req-1", tenant_id="tenant-1")
        try:
            payload = json.loads(JsonFormatter().format(_record("hello")))
        finally:
            clear_request_context()

        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["module"] == "whatsapp_gateway.test"
        assert payload["request_id"] == "req-1"
        assert payload["tenant_id"] == "tenant-1"

    def test_copies_extra_fields(self):
        payload = json.loads(JsonFormatter().format(_record("sent", message_id="wamid.1", session_key="k")))

        assert payload["message_id"] == "wamid.1"
        assert payload["session_key"] == "k"

    def test_masks_secrets(self):
        payload = json.loads(JsonFormatter().format(_record("Authorization: Bearer abc.def token=xyz")))

        assert "abc.def" not in payload["message"]
        assert "xyz" not in payload["message"]
