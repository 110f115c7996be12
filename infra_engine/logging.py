# infra_engine/logging.py
"""
Structured logging for the resolution engine.

Every engine component logs an event name plus keyword fields. With
LOG_JSON on (the default) each record is one JSON object:

    {"timestamp": ..., "level": "INFO", "component": "engine",
     "event": "solve_finished", "decisions": 12, "errors": 0}

Usage:
    from infra_engine.logging import get_engine_logger
    logger = get_engine_logger("edge_expansion")
    logger.debug("edge_expanded", source="aws:lambda_function:api", hops=2)

Loggers can carry fixed context:
    solve_logger = logger.bind(providers="aws")
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .settings import settings

ROOT_LOGGER = "infra_engine"
ENGINE_LOGGER = f"{ROOT_LOGGER}.engine"


class StructuredLogFormatter(logging.Formatter):
    """Render a record and its structured fields as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith(ENGINE_LOGGER + "."):
            name = name[len(ENGINE_LOGGER) + 1:]

        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": name,
            "event": record.getMessage(),
        }
        log_data.update(getattr(record, "structured_data", {}))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class PlainLogFormatter(logging.Formatter):
    """Human-readable form: `event key=value ...` after the usual prefix."""

    def __init__(self):
        super().__init__("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = getattr(record, "structured_data", {})
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


class StructuredLogger:
    """
    Thin wrapper over a stdlib logger that accepts keyword fields.

    Fields bound with `bind` are merged into every record; fields given
    at the call site win over bound ones.
    """

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        self._logger = logging.getLogger(name)
        self._context = dict(context or {})

    def bind(self, **fields) -> "StructuredLogger":
        return StructuredLogger(self._logger.name, {**self._context, **fields})

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs):
        if not self._logger.isEnabledFor(level):
            return
        extra = {"structured_data": {**self._context, **kwargs}}
        self._logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)


_configured = False


def configure_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
    log_file: Optional[str] = None,
):
    """
    Attach handlers to the `infra_engine` logger.

    Args:
        level: Log level name, defaults to LOG_LEVEL
        json_output: JSON lines (True) or plain text (False), defaults to LOG_JSON
        log_file: Optional file that always receives JSON lines

    Only the package logger is touched; the host application's root
    logger is left alone.
    """
    global _configured
    _configured = True

    level = level or settings.log_level
    if json_output is None:
        json_output = settings.log_json

    package_logger = logging.getLogger(ROOT_LOGGER)
    package_logger.setLevel(getattr(logging, level.upper()))
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(StructuredLogFormatter() if json_output else PlainLogFormatter())
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredLogFormatter())
        package_logger.addHandler(file_handler)


def get_logger(name: str) -> StructuredLogger:
    """Structured logger for `name`, configuring the package on first use."""
    if not _configured:
        configure_logging()
    return StructuredLogger(name)


def get_engine_logger(component: str) -> StructuredLogger:
    """Get logger for an engine component."""
    return get_logger(f"{ENGINE_LOGGER}.{component}")
