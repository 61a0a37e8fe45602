"""
Structured logging configuration for audit order reconciliation.

Every corrective action and anomaly is emitted as one record tagged with a
category (insert-correction, update-correction, delete-correction,
data-corruption, retry-resolved, manual-fix-required). trace_id carries the
entity id so one entity's lines can be pulled out of a run.

Environment Variables:
    REORDER_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    REORDER_LOG_FORMAT: Log format (json, text) - default: json

Usage:
    from reorder.logging_config import setup_logging, get_logger, log_event

    setup_logging()
    logger = get_logger(__name__, trace_id="429854")
    log_event(logger, "insert-correction", "order -1 -> 0 for ...")
"""

import logging
import os
import sys
from contextlib import contextmanager
from typing import IO, Iterator, Optional, Union

from pythonjsonlogger.json import JsonFormatter

LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

TEXT_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(category)s] %(message)s [trace_id=%(trace_id)s]"
)
JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(category)s %(message)s %(trace_id)s"

Logger = Union[logging.Logger, logging.LoggerAdapter]


class ContextFieldFilter(logging.Filter):
    """
    Logging filter that fills trace_id and category on every record.

    Attached to the handler so records propagated from any logger get the
    fields the formatters reference.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            record.trace_id = "N/A"  # type: ignore
        if not hasattr(record, "category"):
            record.category = "-"  # type: ignore
        return True


def setup_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Configure root logger with structured logging.

    Arguments override the environment:
    - REORDER_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    - REORDER_LOG_FORMAT: json, text (default: json)
    """
    log_level = (level or os.getenv("REORDER_LOG_LEVEL", "INFO")).upper()
    fmt = (log_format or os.getenv("REORDER_LOG_FORMAT", "json")).lower()
    resolved = LEVEL_MAP.get(log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(resolved)
    handler.addFilter(ContextFieldFilter())

    if fmt == "json":
        formatter: logging.Formatter = JsonFormatter(
            JSON_FORMAT,
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Silence noisy libraries
    logging.getLogger("psycopg").setLevel(logging.WARNING)


def get_logger(name: str, trace_id: Optional[object] = None) -> logging.LoggerAdapter:
    """
    Get a logger with optional trace_id for correlation.

    Args:
        name: Logger name (typically __name__)
        trace_id: Trace ID for correlating logs (typically the entity id)
    """
    logger = logging.getLogger(name)
    return logging.LoggerAdapter(logger, {"trace_id": "N/A" if trace_id is None else str(trace_id)})


def log_event(logger: Logger, category: str, message: str, level: int = logging.INFO) -> None:
    """
    Emit one category-tagged line.

    LoggerAdapter replaces a caller's extra with its own, so the adapter's
    fields are merged here instead.
    """
    extra = {"category": category}
    if isinstance(logger, logging.LoggerAdapter):
        extra = {**(logger.extra or {}), **extra}
        logger = logger.logger
    logger.log(level, message, extra=extra)


@contextmanager
def quieted(*names: str, level: int = logging.CRITICAL) -> Iterator[None]:
    """
    Raise the level of the named loggers for the duration of the block.

    Used around read-only planning so corrections that are never written do
    not show up in the correction log stream.
    """
    loggers = [logging.getLogger(name) for name in names]
    previous = [lg.level for lg in loggers]
    for lg in loggers:
        lg.setLevel(level)
    try:
        yield
    finally:
        for lg, old in zip(loggers, previous):
            lg.setLevel(old)
