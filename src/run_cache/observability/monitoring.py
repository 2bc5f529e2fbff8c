"""
RunCache — Observability Monitoring

JSON log formatter and logger setup for the ``run_cache`` logger tree.
Every module logs through ``logging.getLogger(__name__)``; this module only
decides how those records are rendered.
"""

import json
import logging
from datetime import UTC, datetime

from ..config.schemas import LogFormat, LogLevel

ROOT_LOGGER_NAME = "run_cache"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    (
        "args",
        "msg",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    )
)

_TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add any extra fields from record.__dict__
        for key, value in record.__dict__.items():
            if key not in log_data and not key.startswith("_") and key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    fmt: LogFormat | str = LogFormat.JSON,
) -> logging.Logger:
    """
    Attach a single stream handler to the ``run_cache`` logger.

    Calling this again replaces the handler it installed previously, so the
    level and format can be changed at runtime without duplicating output.

    Args:
        level: Minimum log level
        fmt: ``json`` for JSONFormatter output, ``text`` for plain lines

    Returns:
        The configured ``run_cache`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    for handler in list(logger.handlers):
        if getattr(handler, "_run_cache_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._run_cache_handler = True  # type: ignore[attr-defined]
    if LogFormat(fmt) is LogFormat.JSON:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(LogLevel(level).value)

    return logger
