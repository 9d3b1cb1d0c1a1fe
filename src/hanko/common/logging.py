"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

DEFAULT_LEVEL = "WARNING"


class _NamedPrintLogger(structlog.PrintLogger):
    def __init__(self, name: str | None = None):
        # resolve sys.stderr per logger so redirected streams are honoured
        super().__init__(sys.stderr)
        self.name = name


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    return _NamedPrintLogger(args[0] if args else None)


def _add_logger_name(logger: Any, method_name: str, event_dict: Any) -> Any:
    name = getattr(logger, "name", None)
    if name is not None:
        event_dict.setdefault("logger", name)
    return event_dict


def setup_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog for the SDK.

    Args:
        level: Log level name (DEBUG, INFO, ...)
        json_output: Render JSON lines instead of colored console output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


def configure_default_logging() -> None:
    """
    Keep SDK loggers quiet until the application configures structlog.

    Without this, structlog's defaults print every debug line to stdout.
    Only warnings and errors are emitted, as JSON on stderr. Existing
    configuration is left untouched.
    """
    if not structlog.is_configured():
        setup_logging(level=DEFAULT_LEVEL, json_output=True)


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """
    Get a structlog logger for the given module name.

    The logger is lazy: it follows whatever configuration is active when
    it logs, so module-level loggers pick up a later ``setup_logging``.
    """
    configure_default_logging()
    if name is None:
        return structlog.get_logger(**initial_values)
    return structlog.get_logger(name, **initial_values)
