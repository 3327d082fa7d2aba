"""
Structured logging for the API and the sync loop.

JSON lines in production, colored single lines in development. Sync cycles
run outside any HTTP request, so each cycle binds its own correlation ID
(``live-3f2a9c1e``) and every line logged during the cycle carries it.
"""
import logging
import json
import sys
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator
from contextvars import ContextVar

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

# Attributes present on every LogRecord; anything else came in via ``extra``
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_CONSOLE_CONTEXT_FIELDS = ("match_id", "sport", "provider", "outcome")


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Keys: timestamp (UTC ISO 8601), level, logger, message, correlation_id,
    plus ``exception`` and ``extra`` (match_id, sport, ...) when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": correlation_id_var.get(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = _extra_fields(record)
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Console formatter for development, with match context appended."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        level_color = self.COLORS.get(record.levelname, "")
        line = f"{level_color}[{record.levelname}]{self.RESET} {record.name}: {record.getMessage()}"

        context = [
            f"{field}={getattr(record, field)}"
            for field in _CONSOLE_CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        ]
        if correlation_id_var.get():
            context.append(f"cycle={correlation_id_var.get()}")
        if context:
            line += " | " + " ".join(context)

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install a single root handler.

    Args:
        level: Logging level name
        json_output: JSON lines if True, colored console lines otherwise
        handler: Handler to format; defaults to a stdout StreamHandler
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)

    handler.setFormatter(JSONFormatter() if json_output else ColoredFormatter())
    root_logger.addHandler(handler)

    # apscheduler logs every job run at INFO, httpx every request
    for noisy in ("httpx", "httpcore", "apscheduler", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def sync_cycle_context(job: str) -> Iterator[str]:
    """
    Bind a fresh correlation ID for one sync cycle.

    Usage:
        with sync_cycle_context("live") as cycle_id:
            await orchestrator.run_live_cycle()
    """
    cycle_id = f"{job}-{uuid.uuid4().hex[:8]}"
    token = correlation_id_var.set(cycle_id)
    try:
        yield cycle_id
    finally:
        correlation_id_var.reset(token)
