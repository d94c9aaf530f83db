"""Structured logging configuration.

Provides JSON formatted logs for production environments and human-readable
formatting for development. Shared by the HTTP API and the CLI.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict


# Attributes attached by LoggingMiddleware through ``extra=``
REQUEST_CONTEXT_FIELDS = ("request_id", "client_ip", "endpoint")


class StructuredFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Domain services attach identifiers (record_id, entity_id, ...) as an
    ``extra_fields`` mapping; the API middleware attaches the request context.
    Both are merged into the top-level object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        log_data.update(getattr(record, "extra_fields", None) or {})
        log_data.update({
            field: getattr(record, field)
            for field in REQUEST_CONTEXT_FIELDS
            if hasattr(record, field)
        })
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(use_json: bool = False, log_level: str = "INFO") -> None:
    """Install a stdout handler on the root logger.

    Parameters:
        use_json: Use JSON formatting (for production)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if use_json:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Third-party loggers
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("fastapi").setLevel(logging.WARNING)
