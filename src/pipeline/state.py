# src/pipeline/state.py — v2
"""Observable state of the altar creation pipeline.

One PipelineState is owned by a PipelineContext. Per-invocation fields
(running flag, progress, stage, error, warning) are reset when a run starts;
the altar collection and the current altar survive across runs.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ofrenda.core.models import AltarRecord
from ofrenda.store.local_store import sort_newest_first

PipelineStage = Literal[
    "idle",
    "uploading",
    "generating",
    "assembling",
    "persisting",
    "done",
    "failed",
]

# Persisting keeps the assembling progress; only DONE reaches 100.
STAGE_PROGRESS: dict[str, int] = {
    "idle": 0,
    "uploading": 25,
    "generating": 50,
    "assembling": 75,
    "persisting": 75,
    "done": 100,
}

TERMINAL_STAGES = frozenset({"done", "failed"})


class PipelineState(BaseModel):
    """Mutable pipeline state read by the presentation layer."""

    is_running: bool = False
    progress: int = 0
    stage: PipelineStage = "idle"
    last_error: str | None = None
    warning: str | None = None

    # === SURVIVES ACROSS RUNS ===
    altars: list[AltarRecord] = Field(default_factory=list)
    current_altar: AltarRecord | None = None

    def begin(self) -> None:
        """Reset per-run fields at the start of a creation run."""
        self.is_running = True
        self.last_error = None
        self.warning = None
        self.stage = "idle"
        self.progress = 0

    def advance(self, stage: PipelineStage) -> None:
        """Move to a non-failed stage and update progress."""
        if self.stage in TERMINAL_STAGES:
            raise RuntimeError(f"Cannot leave terminal stage {self.stage!r}")
        self.stage = stage
        self.progress = STAGE_PROGRESS[stage]

    def fail(self, message: str) -> None:
        """Absorbing failure: keeps the progress reached so far."""
        self.stage = "failed"
        self.last_error = message

    def record_created(self, altar: AltarRecord) -> None:
        """Append a newly created altar, make it current, and finish the run."""
        self.altars.append(altar)
        self.current_altar = altar
        self.stage = "done"
        self.progress = STAGE_PROGRESS["done"]

    def remove_altar(self, altar_id: str) -> None:
        self.altars = [a for a in self.altars if a.id != altar_id]
        if self.current_altar is not None and self.current_altar.id == altar_id:
            self.current_altar = None

    @property
    def sorted_altars(self) -> list[AltarRecord]:
        """Altars newest first."""
        return sort_newest_first(self.altars)

    @property
    def has_altars(self) -> bool:
        return len(self.altars) > 0
