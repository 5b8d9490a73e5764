# src/logging/handlers.py — v2
"""Log file handlers.

LOG_ROTATION accepts a byte count or a size with a unit ("512KB", "10MB",
"1.5GB"); LOG_RETENTION is the number of rotated files kept next to the
active one.
"""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ofrenda.config.settings import Settings

_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*(B|KB|MB|GB)?$", re.IGNORECASE)
_UNITS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def parse_size(size: str | int) -> int:
    """Return a size in bytes; a bare number is already bytes."""
    if isinstance(size, int):
        if size <= 0:
            raise ValueError(f"Invalid size: {size!r}. Must be positive.")
        return size

    match = _SIZE_PATTERN.match(size.strip())
    if not match:
        raise ValueError(f"Invalid size format: {size!r}. Use e.g. '10MB'.")
    unit = (match.group(2) or "B").upper()
    value = int(float(match.group(1)) * _UNITS[unit])
    if value <= 0:
        raise ValueError(f"Invalid size: {size!r}. Must be positive.")
    return value


def create_rotating_handler(
    log_file: Path | str,
    rotation: str | int = "10MB",
    retention: int = 30,
) -> RotatingFileHandler:
    """Size-rotated UTF-8 file handler; parent directories are created."""
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=str(path),
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )


def file_handler_from_settings(settings: Settings) -> logging.Handler | None:
    """Handler for LOG_FILE, or None when file logging is off."""
    if settings.log_file is None:
        return None
    return create_rotating_handler(
        settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
