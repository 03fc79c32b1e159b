"""
Structured JSON logging for nestcheck

All nestcheck loggers are children of the "nestcheck" package logger, which
owns the only handler. Level and format come from NestcheckSettings
(NESTCHECK_LOG_LEVEL, NESTCHECK_LOG_FORMAT), output goes to stderr so that
command output on stdout stays parseable.
"""
import logging
import sys
import time

from pythonjsonlogger import jsonlogger

from nestcheck.config import NestcheckSettings, get_settings

PACKAGE_LOGGER_NAME = "nestcheck"

JSON_FORMAT = "%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s"
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s - %(message)s"


class NestcheckJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter adding the context of the emitting call site.

    Adds: timestamp, level, logger, module, function and thread id.
    The thread id tells apart challenges running concurrently on one Validator.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = str(log_record.get("level") or record.levelname).upper()
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["thread_id"] = record.thread


def configure_logging(settings: NestcheckSettings | None = None) -> logging.Logger:
    """
    (Re)configure the nestcheck package logger.

    Args:
        settings: Source of log_level and log_format (default: from environment)

    Returns:
        The package logger
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level)

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if settings.log_format == "json":
        handler.setFormatter(NestcheckJsonFormatter(fmt=JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    package_logger.addHandler(handler)
    package_logger.propagate = False
    return package_logger


def get_logger(name: str = PACKAGE_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger below the nestcheck package logger.

    The package logger is configured on first use. Names outside the
    package (like "__main__") are moved below it.

    Args:
        name: Logger name, usually __name__
    """
    if name != PACKAGE_LOGGER_NAME and not name.startswith(f"{PACKAGE_LOGGER_NAME}."):
        name = f"{PACKAGE_LOGGER_NAME}.{name}"
    if not logging.getLogger(PACKAGE_LOGGER_NAME).handlers:
        configure_logging()
    return logging.getLogger(name)


class log_operation:
    """
    Context manager logging start, end and duration of an operation

    Usage:
        with log_operation("Loading rule set", logger=logger, rules="rules.yaml"):
            # do work
            pass

    Exceptions are logged and propagate.
    """

    def __init__(self, operation_name: str, logger: logging.Logger | None = None, **extra_fields):
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.started = None

    def __enter__(self):
        self.started = time.perf_counter()
        self.logger.info(
            f"Starting: {self.operation_name}",
            extra={"operation": self.operation_name, **self.extra_fields},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = round((time.perf_counter() - self.started) * 1000, 2)
        fields = {"operation": self.operation_name, "duration_ms": duration_ms, **self.extra_fields}

        if exc_type is None:
            self.logger.info(f"Completed: {self.operation_name}", extra={**fields, "status": "success"})
        else:
            self.logger.error(
                f"Failed: {self.operation_name}: {exc_val}",
                extra={**fields, "status": "error", "error_type": exc_type.__name__},
            )
        return False
