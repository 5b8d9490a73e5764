# src/logging/logger.py — v2
"""Formatters and root logger setup for the ``ofrenda`` namespace.

Modules log through ``logging.getLogger(__name__)``; everything below the
``ofrenda`` logger picks up the handlers installed here. Both formatters
read the pipeline context (run, altar, stage, operation) at format time.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from ofrenda.logging.context import get_context
from ofrenda.logging.handlers import create_rotating_handler, file_handler_from_settings

if TYPE_CHECKING:
    from ofrenda.config.settings import Settings

ROOT_LOGGER = "ofrenda"


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line; context fields nested under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context

        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """``time [LEVEL] logger [run/altar] (stage:operation) — message``"""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        line = (
            f"{_timestamp(record):%Y-%m-%d %H:%M:%S} "
            f"[{record.levelname:8s}] {record.name}"
        )
        ids = [value[:8] for value in (ctx.run_id, ctx.altar_id) if value]
        if ids:
            line += f" [{'/'.join(ids)}]"
        if ctx.stage:
            line += f" ({ctx.stage}:{ctx.operation})" if ctx.operation else f" ({ctx.stage})"
        line += f" — {record.getMessage()}"

        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def make_formatter(log_format: str) -> logging.Formatter:
    return JsonFormatter() if log_format == "json" else TextFormatter()


def configure_root(
    level: str,
    formatter: logging.Formatter,
    extra_handlers: list[logging.Handler] | None = None,
) -> logging.Logger:
    """Install a stderr handler plus ``extra_handlers`` on the ofrenda logger.

    Previous handlers are closed and removed, so calling this again replaces
    the configuration instead of duplicating output.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    # stdout carries CLI output
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    handlers.extend(extra_handlers or [])
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    return root


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Logger:
    """Configure logging from explicit values (file logging when ``log_file`` is set)."""
    extra = [create_rotating_handler(log_file, rotation, retention)] if log_file else []
    return configure_root(level, make_formatter(log_format), extra)


def setup_logging_from_settings(
    settings: Settings, level: str | None = None
) -> logging.Logger:
    """Apply the LOG_* settings; ``level`` overrides LOG_LEVEL."""
    file_handler = file_handler_from_settings(settings)
    return configure_root(
        level or settings.log_level,
        make_formatter(settings.log_format),
        [file_handler] if file_handler is not None else None,
    )
