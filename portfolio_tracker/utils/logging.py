# portfolio_tracker/utils/logging.py
"""
Logging setup for the portfolio tracker.

Every record carries the correlation ID of the request that produced it,
so the per-symbol warnings emitted from worker threads during a valuation
can be traced back to one GET /portfolio call.

Two output styles, picked by LOG_FORMAT:
    text  2024-06-28 10:30:00 | WARNING  | 7f1c... | portfolio_tracker.services.valuation.engine | Quote unavailable for TSLA ...
    json  {"timestamp": ..., "level": "WARNING", "correlation_id": "7f1c...", ...}

Usage:
    from portfolio_tracker.utils import setup_logging

    setup_logging()                       # level/format from settings
    setup_logging(level="DEBUG")          # override for a script
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from portfolio_tracker.config import settings
from portfolio_tracker.utils.context import get_correlation_id

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Placeholder for records logged outside a request (startup, scripts)
NO_CORRELATION_ID = "no-correlation-id"

# Chatty libraries pinned to WARNING; yfinance logs every HTTP round trip
NOISY_LOGGERS = (
    "yfinance",
    "peewee",
    "urllib3",
    "requests",
    "httpx",
    "httpcore",
    "asyncio",
)

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_BUILTINS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"correlation_id", "message", "asctime"}


class CorrelationIdFilter(logging.Filter):
    """Stamp ``record.correlation_id`` from the request context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra=`` fields are nested under "extra"."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {
            key: _json_safe(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_BUILTINS
        }
        if extra:
            payload["extra"] = extra

        return json.dumps(payload)


def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """
    Replace the root logger's handlers with one stdout handler.

    Safe to call more than once (tests, reloads): previous handlers are
    dropped rather than stacked.

    Raises:
        ValueError: Unknown level name
    """
    level_name = (level or settings.log_level).strip().upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: '{level_name}'")

    output = (log_format or settings.log_format).lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    if output == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, numeric_level))

    logging.getLogger(__name__).info(f"Logging configured: level={level_name}, format={output}")


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value
