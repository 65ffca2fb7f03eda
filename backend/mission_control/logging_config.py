"""
Centralized logging configuration for the Mission Control backend.

Provides JSON-structured logging output to stderr for all modules.
Call setup_logging() once at application startup (in main.py).
"""

import logging
import logging.config
import json
from contextvars import ContextVar
from datetime import datetime, timezone

# Set by the request context middleware for the duration of one request
request_id_ctx: ContextVar = ContextVar("request_id", default=None)


class RequestContextFilter(logging.Filter):
    """Stamp the current request id on every record emitted while serving it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_ctx.get()
        return True


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON for structured log ingestion."""

    # Extra attributes callers attach through ``logger.info(..., extra={...})``
    CONTEXT_FIELDS = ("request_id", "deliverable_id", "approval_id", "agent_id")

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for field in self.CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value
        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False, default=str)


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": JSONFormatter,
        },
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        },
    },
    "filters": {
        "request_context": {
            "()": RequestContextFilter,
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "filters": ["request_context"],
            "stream": "ext://sys.stderr",
        },
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
    "loggers": {
        "mission_control": {"level": "INFO"},
        "uvicorn": {"level": "WARNING"},
        "uvicorn.access": {"level": "WARNING"},
        "sqlalchemy.engine": {"level": "WARNING"},
    },
}


def setup_logging(level: str = None) -> None:
    """
    Apply the centralized logging configuration.

    Must be called before the application starts serving so that the JSON
    formatter is active from the first request.
    """
    config = dict(LOGGING_CONFIG)
    if level:
        config["root"] = {**LOGGING_CONFIG["root"], "level": level}
    logging.config.dictConfig(config)
