"""Unit tests for structured logging and request context binding."""

import json
import logging
import sys

import pytest

from ecoconsole_core.observability.logging import (
    JsonFormatter,
    RequestContext,
    StructuredLogger,
    configure_logging,
    get_logger,
    get_request_context,
    reset_request_context,
    set_request_context,
)


def make_record(msg="Test message", level=logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Tests for JSON log formatter."""

    def test_basic_record(self):
        parsed = json.loads(JsonFormatter(service_name="ecoconsole-core").format(make_record()))

        assert parsed["message"] == "Test message"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test.logger"
        assert parsed["service"] == "ecoconsole-core"
        assert "source" not in parsed

    def test_extra_fields_and_unserializable_values(self):
        parsed = json.loads(
            JsonFormatter().format(make_record(application_id="app-1", payload={1, 2}))
        )

        assert parsed["application_id"] == "app-1"
        assert isinstance(parsed["payload"], str)

    def test_warning_includes_source(self):
        parsed = json.loads(JsonFormatter().format(make_record(level=logging.WARNING)))

        assert parsed["source"]["line"] == 42

    def test_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        parsed = json.loads(JsonFormatter().format(record))

        assert "ValueError: boom" in parsed["exception"]


class TestRequestContext:
    """Tests for request context."""

    def test_to_dict_skips_empty(self):
        context = RequestContext(request_id="req-1", method="GET", extra={"campaign_id": 7})

        assert context.to_dict() == {"request_id": "req-1", "method": "GET", "campaign_id": 7}

    def test_bind_and_reset(self):
        assert get_request_context() is None
        context = RequestContext(request_id="req-1")

        token = set_request_context(context)
        try:
            assert get_request_context() is context
        finally:
            reset_request_context(token)

        assert get_request_context() is None


class TestStructuredLogger:
    """Tests for structured logger."""

    def test_get_logger_caches(self):
        assert get_logger("ecoconsole.test") is get_logger("ecoconsole.test")
        assert isinstance(get_logger("ecoconsole.test"), StructuredLogger)

    def test_fields_become_record_attributes(self, caplog):
        logger = get_logger("ecoconsole.test.fields")

        with caplog.at_level(logging.INFO, logger="ecoconsole.test.fields"):
            logger.info("application submitted", application_id="app-1")

        assert caplog.records[-1].application_id == "app-1"

    def test_bound_context_is_attached(self, caplog):
        logger = get_logger("ecoconsole.test.context")
        token = set_request_context(RequestContext(request_id="req-9", partner_id="p-1"))

        try:
            with caplog.at_level(logging.INFO, logger="ecoconsole.test.context"):
                logger.info("inside request")
        finally:
            reset_request_context(token)

        record = caplog.records[-1]
        assert record.request_id == "req-9"
        assert record.partner_id == "p-1"

    def test_explicit_fields_win_over_context(self, caplog):
        logger = get_logger("ecoconsole.test.override")
        token = set_request_context(RequestContext(request_id="req-9"))

        try:
            with caplog.at_level(logging.INFO, logger="ecoconsole.test.override"):
                logger.info("override", request_id="explicit")
        finally:
            reset_request_context(token)

        assert caplog.records[-1].request_id == "explicit"

    def test_error_with_exc_info(self, caplog):
        logger = get_logger("ecoconsole.test.error")

        with caplog.at_level(logging.ERROR, logger="ecoconsole.test.error"):
            try:
                raise RuntimeError("db down")
            except RuntimeError:
                logger.error("write failed", exc_info=True)

        assert caplog.records[-1].exc_info is not None


class TestConfigureLogging:
    """Tests for logging configuration."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_format(self):
        configure_logging(level="debug", json_format=True, service_name="svc")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.handlers[0].formatter.service_name == "svc"

    def test_plain_format(self):
        configure_logging(level="WARNING", json_format=False)

        assert not isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)
