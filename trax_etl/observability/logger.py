"""
Structured logging for the trax pipeline

All modules log through get_logger(__name__). Loggers under the "trax_etl"
namespace propagate to the package logger, which owns the single stdout
handler installed by configure_logging. Per-file context (file_path,
platform, line_number, ...) travels in `extra` and becomes top-level JSON
keys.
"""
import logging
import os
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager

from pythonjsonlogger import jsonlogger

ROOT_LOGGER = "trax_etl"

JSON_FIELDS = "%(timestamp)s %(level)s %(logger)s %(message)s"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(module)s:%(lineno)d] %(message)s"


class TraxJsonFormatter(jsonlogger.JsonFormatter):
    """
    One JSON object per line: timestamp, level, logger, source location and
    any extra context. Context keys whose value is None are dropped.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = self.formatTime(record, "%Y-%m-%dT%H:%M:%S")
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["source"] = f"{record.module}:{record.funcName}:{record.lineno}"
        for key in [k for k, v in log_record.items() if v is None]:
            del log_record[key]


def build_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return TraxJsonFormatter(fmt=JSON_FIELDS)
    if format_type == "text":
        return logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    raise ValueError(f"Unknown log format {format_type!r}; expected 'json' or 'text'")


def configure_logging(level: str | None = None, format_type: str = "json") -> logging.Logger:
    """
    Install the package log handler, replacing any earlier one.

    Args:
        level: Level name; defaults to the LOG_LEVEL environment variable,
            then INFO
        format_type: "json" or "text"

    Returns:
        The package logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel((level or os.getenv("LOG_LEVEL") or "INFO").upper())
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(format_type))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Logger for a module, configuring the package logger with defaults if
    nothing has yet.
    """
    if not logging.getLogger(ROOT_LOGGER).handlers:
        configure_logging()
    return logging.getLogger(name)


@contextmanager
def log_operation(operation_name: str, logger: logging.Logger | None = None, **extra_fields) -> Iterator[None]:
    """
    Log start, completion and duration of a block; failures are logged
    with the traceback and re-raised.

    Usage:
        with log_operation("Processing trax files", logger=logger, files=3):
            ...
    """
    logger = logger or get_logger()
    context = {"operation": operation_name, **extra_fields}
    logger.info(f"Starting: {operation_name}", extra=context)
    start = time.perf_counter()
    try:
        yield
    except Exception as e:
        logger.error(
            f"Failed: {operation_name}",
            extra={
                **context,
                "duration_seconds": round(time.perf_counter() - start, 3),
                "status": "error",
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise
    logger.info(
        f"Completed: {operation_name}",
        extra={**context, "duration_seconds": round(time.perf_counter() - start, 3), "status": "success"},
    )
