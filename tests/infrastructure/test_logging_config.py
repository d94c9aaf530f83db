"""Tests for structured logging configuration."""

import json
import logging
import sys

from medledger.infrastructure.logging_config import StructuredFormatter, setup_logging


def make_record(message: str = "granted", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="medledger.domain.services.grants",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for name, value in extra.items():
        setattr(record, name, value)
    return record


class TestStructuredFormatter:

    def test_formats_json(self):
        data = json.loads(StructuredFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "medledger.domain.services.grants"
        assert data["message"] == "granted"
        assert data["timestamp"].endswith("Z")

    def test_includes_extra_fields_and_request_context(self):
        record = make_record(extra_fields={"record_id": "r1"}, endpoint="/api/grants")

        data = json.loads(StructuredFormatter().format(record))

        assert data["record_id"] == "r1"
        assert data["endpoint"] == "/api/grants"

    def test_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(StructuredFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]


class TestSetupLogging:

    def test_json_handler_installed(self):
        setup_logging(use_json=True, log_level="debug")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)

    def test_plain_handler_and_unknown_level(self):
        setup_logging(use_json=False, log_level="chatty")

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert not isinstance(root.handlers[0].formatter, StructuredFormatter)
        assert logging.getLogger("uvicorn").level == logging.WARNING
