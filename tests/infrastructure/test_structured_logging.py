"""Tests for structured JSON logging."""

import json
import logging

from alertbridge.shared.infrastructure.logging import (
    REDACTED, CustomJsonFormatter, get_context_logger, log_latency, setup_logging
)


def make_record(msg="hello world", **extra):
    record = logging.LogRecord(
        name="alertbridge.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCustomJsonFormatter:
    def test_format_basic(self):
        formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="test")
        data = json.loads(formatter.format(make_record()))
        assert data["message"] == "hello world"
        assert data["levelname"] == "INFO"
        assert data["environment"] == "test"
        assert "timestamp" in data

    def test_correlation_id_included(self):
        formatter = CustomJsonFormatter("%(message)s")
        data = json.loads(formatter.format(make_record(correlation_id="abc-123")))
        assert data["correlation_id"] == "abc-123"

    def test_credentials_are_redacted(self):
        formatter = CustomJsonFormatter("%(message)s")
        data = json.loads(formatter.format(make_record(
            api_token="cmdb-token",
            authorization="Bearer prom-token",
            signing_secret="prom-secret",
            ticket_id=42,
        )))
        assert data["api_token"] == REDACTED
        assert data["authorization"] == REDACTED
        assert data["signing_secret"] == REDACTED
        assert data["ticket_id"] == 42


class TestSetupLogging:
    def test_installs_single_json_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            setup_logging("DEBUG", "test")
            setup_logging("WARNING", "test")
            assert root.level == logging.WARNING
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, CustomJsonFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestHelpers:
    def test_context_logger_carries_correlation_id(self):
        adapter = get_context_logger("alertbridge.test", "abc-123")
        assert adapter.extra == {"correlation_id": "abc-123"}

    def test_context_logger_without_id_is_plain(self):
        assert isinstance(get_context_logger("alertbridge.test"), logging.Logger)

    def test_log_latency(self, caplog):
        logger = logging.getLogger("alertbridge.test.latency")
        with caplog.at_level(logging.INFO, logger="alertbridge.test.latency"):
            with log_latency(logger, "cmdb_lookup", ci_id="srv-42"):
                pass
        record = caplog.records[-1]
        assert record.operation == "cmdb_lookup"
        assert record.ci_id == "srv-42"
        assert record.latency_ms >= 0
