"""Structured logger for the ingestion pipeline.

Provides context-aware logging with JSON or pretty console formatting.

Usage:
    from observability import get_logger, log_context

    logger = get_logger(__name__)

    with log_context(source="SPARK", phase="fetch"):
        logger.info("Fetching page", extra={"offset": 100})
        # Output: {"timestamp": "...", "source": "SPARK", "phase": "fetch", "message": "...", "offset": 100}
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER = "jira_ingest"

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


@dataclass
class LogContext:
    """Context for structured logging.

    Attributes are automatically included in all log messages
    within this context.
    """

    source: str | None = None
    phase: str | None = None
    offset: int | None = None
    attempt: int | None = None
    run_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}


# Context variable to store current log context
_log_context: contextvars.ContextVar[LogContext] = contextvars.ContextVar(
    "log_context",
    default=LogContext(),
)


class _ContextManager:
    """Context manager for setting log context."""

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.token: contextvars.Token[LogContext] | None = None

    def __enter__(self) -> LogContext:
        current = _log_context.get()
        # Merge with current context
        merged = {**asdict(current), **self.kwargs}
        new_context = LogContext(**merged)
        self.token = _log_context.set(new_context)
        return new_context

    def __exit__(self, *args: Any) -> None:
        if self.token is not None:
            _log_context.reset(self.token)


def log_context(**kwargs: Any) -> _ContextManager:
    """Create a context manager for setting log context.

    Args:
        **kwargs: Context fields to set (source, phase, offset, ...)

    Returns:
        Context manager that sets the context

    Example:
        with log_context(source="KAFKA"):
            logger.info("Starting ingestion")
    """
    return _ContextManager(**kwargs)


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


class StructuredFormatter(logging.Formatter):
    """JSON formatter with context support."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = _log_context.get()

        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(ctx.to_dict())
        entry.update(_extras(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class PrettyFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        ctx = _log_context.get()

        color = self.COLORS.get(record.levelname, "")

        prefix_parts = []
        if ctx.source:
            prefix_parts.append(f"[{ctx.source}]")
        if ctx.phase:
            prefix_parts.append(f"[{ctx.phase}]")
        if ctx.offset is not None:
            prefix_parts.append(f"[@{ctx.offset}]")

        prefix = " ".join(prefix_parts)
        if prefix:
            prefix += " "

        timestamp = datetime.now().strftime("%H:%M:%S")
        level = record.levelname[:4]
        message = record.getMessage()

        extras = [f"{key}={value}" for key, value in _extras(record).items()]
        extra_str = " | " + ", ".join(extras) if extras else ""

        formatted = f"{timestamp} {color}{level}{self.RESET} {prefix}{message}{extra_str}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


# Track if logging has been set up
_logging_configured = False


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    quiet: bool = False,
    force: bool = False,
) -> None:
    """Set up logging for the pipeline.

    Args:
        level: Logging level (default: INFO)
        json_format: Use JSON format (default: False, use pretty format)
        quiet: Suppress all output except errors (default: False)
        force: Reconfigure even if logging was already set up
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.propagate = False

    # Remove existing handlers
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.ERROR if quiet else level)
    handler.setFormatter(StructuredFormatter() if json_format else PrettyFormatter())

    root.addHandler(handler)

    # Suppress noisy loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module.

    Args:
        name: Module name (usually __name__)

    Returns:
        Configured logger instance
    """
    setup_logging()

    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"

    return logging.getLogger(name)
