"""Tests for structured logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

from salon.app.core.logging import (
    ContextFilter,
    JSONFormatter,
    get_log_context,
    get_logger,
    get_logging_config,
    setup_logging,
)


def make_record(msg="Test message", level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:

    def test_basic_json_format(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["source"]["file"] == "test.py"
        assert data["source"]["line"] == 1

    def test_context_fields_promoted(self):
        record = make_record("Record created")
        record.client_ip = "1.2.3.4"
        record.record_id = "record-1"
        record.duration_ms = 12.5

        data = json.loads(JSONFormatter().format(record))
        assert data["client_ip"] == "1.2.3.4"
        assert data["record_id"] == "record-1"
        assert data["duration_ms"] == 12.5
        assert "extra" not in data

    def test_other_fields_go_under_extra(self):
        record = make_record()
        record.retry_after = 600

        data = json.loads(JSONFormatter().format(record))
        assert data["extra"] == {"retry_after": 600}

    def test_none_context_values_are_omitted(self):
        record = make_record()
        ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))
        assert "request_id" not in data
        assert "client_ip" not in data

    def test_exception_included(self):
        try:
            raise ValueError("Sheets down")
        except ValueError:
            record = make_record("Error occurred", logging.ERROR, sys.exc_info())

        data = json.loads(JSONFormatter().format(record))
        text = "".join(data["exception"])
        assert "ValueError" in text
        assert "Sheets down" in text

    def test_unicode_kept_readable(self):
        output = JSONFormatter().format(make_record("Новая запись: Jānis"))
        assert "Новая запись: Jānis" in output


class TestContextFilter:

    def test_adds_missing_fields(self):
        record = make_record()
        assert ContextFilter().filter(record) is True
        assert record.request_id is None
        assert record.client_ip is None

    def test_keeps_existing_values(self):
        record = make_record()
        record.client_ip = "5.6.7.8"
        ContextFilter().filter(record)
        assert record.client_ip == "5.6.7.8"


class TestLoggingConfig:

    def test_json_format(self):
        with patch("salon.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "debug"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["formatters"]["json"]["()"].endswith("JSONFormatter")
        assert config["loggers"]["salon"]["level"] == "DEBUG"

    def test_structured_format(self):
        with patch("salon.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "structured"
            mock_settings.log_level = "INFO"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "structured"
        assert "client_ip" in config["formatters"]["structured"]["format"]

    def test_setup_logging_quiets_httpx(self):
        setup_logging()
        assert logging.getLogger("httpx").level == logging.WARNING
        assert get_logger().name == "salon"


class TestLogContext:

    def test_drops_none_values(self):
        assert get_log_context(client_ip="1.2.3.4") == {"client_ip": "1.2.3.4"}

    def test_extra_values(self):
        context = get_log_context(request_id="req-1", record_id="record-1", retry_after=10)
        assert context == {"request_id": "req-1", "record_id": "record-1", "retry_after": 10}
