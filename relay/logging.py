"""
Root logger configuration for the relay.

Console output is human-readable or JSON (LOG_CONSOLE_FORMAT). Errors can
also go to a JSON-lines file (LOG_FILE_PATH) and everything from INFO up to
Loki (LOKI_ENABLED). Each record carries the correlation ID and whatever
fields the current connection put in the log context.
"""

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any

from relay.constants import LOKI_MAX_LOG_SIZE_BYTES
from relay.settings import app_settings

log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# Standard LogRecord attributes; anything else on a record came from `extra=`
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName", "correlation_id"}

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_correlation_id() -> str:
    """Correlation ID of the current context, or "" if there is none."""
    try:
        from relay.middlewares.correlation_id import (
            get_correlation_id as _get_cid,
        )

        return _get_cid()
    except (ImportError, AttributeError, RuntimeError):
        return ""


def set_log_context(**fields: Any) -> None:
    """Merge ``fields`` into the context attached to every record."""
    log_context.set({**log_context.get(), **fields})


def get_log_context() -> dict[str, Any]:
    return log_context.get()


def clear_log_context() -> None:
    log_context.set({})


class StructuredJSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Besides level, logger, message and source location, the object holds the
    correlation ID as ``request_id``, the log context, the environment, any
    ``extra=`` fields and the formatted exception. Oversized messages are cut
    so the line stays under Loki's size limit.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if request_id := get_correlation_id():
            payload["request_id"] = request_id

        payload.update(get_log_context())
        payload["environment"] = app_settings.ENV.value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES
        )

        line = json.dumps(payload, default=str)
        if len(line) > LOKI_MAX_LOG_SIZE_BYTES:
            keep = LOKI_MAX_LOG_SIZE_BYTES - 1000
            payload["message"] = payload["message"][:keep] + "... [TRUNCATED]"
            line = json.dumps(payload, default=str)
        return line


class HumanReadableFormatter(logging.Formatter):
    """
    Console formatter for development.

    INFO lines are short; every other level adds module, function and line.
    """

    SHORT_FMT = "%(asctime)s - [%(correlation_id)s] %(levelname)s: %(message)s"
    DETAILED_FMT = (
        "%(asctime)s - [%(correlation_id)s] %(levelname)s: "
        "%(module)s.%(funcName)s:%(lineno)d - %(message)s"
    )

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._short = logging.Formatter(self.SHORT_FMT, datefmt=DATE_FORMAT)
        self._detailed = logging.Formatter(self.DETAILED_FMT, datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = get_correlation_id() or "-"
        if record.levelno == logging.INFO:
            return self._short.format(record)
        return self._detailed.format(record)


class ExcludePathsFilter(logging.Filter):
    """Drops uvicorn access-log lines for the LOG_EXCLUDED_PATHS endpoints."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(
            f" {path} " in message or message.endswith(f" {path}")
            for path in app_settings.LOG_EXCLUDED_PATHS
        )


def _loki_handler() -> logging.Handler:
    from logging_loki import LokiHandler

    handler = LokiHandler(
        url=f"{app_settings.LOKI_URL}/loki/api/v{app_settings.LOKI_VERSION}/push",
        tags={"application": "room-relay", "environment": app_settings.ENV.value},
        version=app_settings.LOKI_VERSION,
    )
    handler.setLevel(logging.INFO)
    return handler


def setup_logging() -> logging.Logger:
    """
    (Re)configure the root logger from the current settings.

    Returns:
        The root logger.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, app_settings.LOG_LEVEL.upper()))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG)
    console.setFormatter(
        StructuredJSONFormatter()
        if app_settings.LOG_CONSOLE_FORMAT == "json"
        else HumanReadableFormatter()
    )
    root.addHandler(console)

    if app_settings.LOG_FILE_PATH:
        try:
            errors = logging.FileHandler(app_settings.LOG_FILE_PATH)
        except OSError as e:
            root.warning(f"Could not create file handler: {e}")
        else:
            errors.setLevel(logging.ERROR)
            errors.setFormatter(StructuredJSONFormatter())
            root.addHandler(errors)

    if app_settings.LOKI_ENABLED:
        try:
            loki = _loki_handler()
        except Exception as e:
            root.warning(f"Could not configure Loki handler: {e}")
        else:
            loki.setFormatter(StructuredJSONFormatter())
            root.addHandler(loki)
            root.info("Loki handler configured successfully")

    access_logger = logging.getLogger("uvicorn.access")
    if not any(isinstance(f, ExcludePathsFilter) for f in access_logger.filters):
        access_logger.addFilter(ExcludePathsFilter())

    # Keep test output quiet
    if sys.argv[0].split("/")[-1] in ["pytest"]:
        logging.disable(logging.ERROR)

    return root


logger = setup_logging()
