# backend/portfolio_tracker/utils/logging.py
"""
Logging configuration for the Portfolio Tracker.

One stdout handler on the root logger, in one of two formats:
- text: "timestamp | level | correlation_id | logger | message"
- json: one object per line, for log aggregation

Every record carries the request's correlation ID (see
middleware/correlation.py), so all lines of one request can be grepped
together. Chatty third-party loggers (yfinance, urllib3, ...) are held at
WARNING.

Usage:
    from portfolio_tracker.utils import setup_logging

    # In main.py, before creating the FastAPI app
    setup_logging()

Log levels as used by the services:
    DEBUG   - Cache hits, provider symbols, per-quote detail
    INFO    - Transactions recorded, snapshots written, backfill summaries
    WARNING - Missing prices, FX fallbacks, retries
    ERROR   - Provider outages, unexpected failures
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from portfolio_tracker.config import settings
from portfolio_tracker.utils.context import get_correlation_id

# =============================================================================
# CONSTANTS
# =============================================================================

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "-"

NOISY_LOGGERS = (
    "yfinance",
    "peewee",
    "urllib3",
    "urllib3.connectionpool",
    "requests",
    "curl_cffi",
    "httpx",
    "httpcore",
    "asyncio",
)

VALID_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Attributes every LogRecord has; anything else came in through `extra=`
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message", "correlation_id", "asctime",
}


# =============================================================================
# FILTER / FORMATTER
# =============================================================================

class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the current correlation ID (or '-')."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Output:
        {"timestamp": "...", "level": "INFO", "logger": "portfolio_tracker...",
         "correlation_id": "...", "message": "...", "extra": {...}}

    Values passed via `extra=` that are not JSON serializable are logged as
    their str().
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


# =============================================================================
# SETUP
# =============================================================================

def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        suppress_noisy_loggers: bool = True,
) -> None:
    """
    Configure the root logger. Safe to call more than once: previous
    handlers are replaced.

    Args:
        level: Log level name; defaults to settings.log_level
        log_format: "text" or "json"; defaults to settings.log_format
        suppress_noisy_loggers: Hold third-party loggers at WARNING

    Raises:
        ValueError: Unknown level name
    """
    level_name = (level or settings.log_level).strip().upper()
    if level_name not in VALID_LEVELS:
        raise ValueError(
            f"Invalid log level: '{level_name}'. Valid levels are: {', '.join(VALID_LEVELS)}"
        )
    format_type = (log_format or settings.log_format).lower()

    handler = logging.StreamHandler(sys.stdout)
    if format_type == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(VALID_LEVELS[level_name])
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if suppress_noisy_loggers:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={level_name}, format={format_type}"
    )
