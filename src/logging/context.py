# src/logging/context.py — v2
"""Contextual logging support — attach run_id, altar_id, operation, stage to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per pipeline invocation.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_altar_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "altar_id", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    run_id: str | None = None
    altar_id: str | None = None
    operation: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        altar_id=_altar_id.get(),
        operation=_operation.get(),
        stage=_stage.get(),
    )


def set_run_context(run_id: str) -> None:
    """Set invocation-level context (called once per create_altar run)."""
    _run_id.set(run_id)


def set_altar_context(altar_id: str | None) -> None:
    _altar_id.set(altar_id)


def set_stage_context(stage: str, operation: str | None = None) -> None:
    """Set stage-level context (called on every pipeline transition)."""
    _stage.set(stage)
    _operation.set(operation)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _altar_id.set(None)
    _operation.set(None)
    _stage.set(None)
