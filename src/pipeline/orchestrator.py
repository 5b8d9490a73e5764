# src/pipeline/orchestrator.py — v2
"""Altar creation orchestrator.

Drives one creation run through its stages:
  UPLOADING (25%)   → photo upload, with retry
  GENERATING (50%)  → altar image generation, with retry
  ASSEMBLING (75%)  → build the immutable AltarRecord
  PERSISTING        → save to the local store
  DONE (100%)

Any remote failure after retries ends the run in FAILED and is raised to the
caller. A local store failure after both remote steps succeeded is a partial
success: the altar is kept in memory and a warning is set instead of an
error. Remote work that already completed is never discarded.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from functools import partial

from ofrenda.core.errors import (
    MESSAGES,
    AltarCreationError,
    ClassifiedError,
    LocalStorageError,
    remote_error,
)
from ofrenda.core.models import (
    AltarRecord,
    CreateAltarRequest,
    GenerateAltarRequest,
)
from ofrenda.logging.context import set_altar_context, set_run_context, set_stage_context
from ofrenda.pipeline.context import PipelineContext
from ofrenda.pipeline.state import PipelineStage, PipelineState
from ofrenda.remote.retry import with_retry
from ofrenda.validation.validators import (
    sanitize_food_description,
    validate_food_description,
)

logger = logging.getLogger(__name__)

UPLOAD_ERROR_PREFIX = "Error al subir la foto: "
GENERATE_ERROR_PREFIX = "Error al generar el altar: "
SAVE_ERROR_MESSAGE = "Error al guardar el altar localmente."
PARTIAL_SUCCESS_WARNING = (
    "Altar creado exitosamente, pero no se pudo guardar localmente: {reason}"
)
UNEXPECTED_ERROR_MESSAGE = (
    "Ocurrió un error inesperado al crear el altar. Por favor, intenta de nuevo."
)
LOAD_ERROR_PREFIX = "Error al cargar altares: "
DELETE_ERROR_PREFIX = "Error al eliminar el altar: "


@contextmanager
def running(state: PipelineState) -> Iterator[PipelineState]:
    """Mark the state as running for the duration of the block, on every exit path."""
    state.is_running = True
    try:
        yield state
    finally:
        state.is_running = False


class AltarOrchestrator:
    """Runs the creation pipeline and the collection operations against a context.

    Args:
        context: Settings, state, store and client for this caller.
    """

    def __init__(self, context: PipelineContext) -> None:
        self._ctx = context

    @property
    def state(self) -> PipelineState:
        return self._ctx.state

    # ------------------------------------------------------------------
    # Creation pipeline
    # ------------------------------------------------------------------

    async def create_altar(self, request: CreateAltarRequest) -> AltarRecord:
        """Upload, generate, assemble and persist a new altar.

        Returns:
            The new AltarRecord (also on partial success, see ``state.warning``).

        Raises:
            AltarCreationError: If a remote step fails after retries, or the
                store fails with something other than a LocalStorageError.
        """
        state = self._ctx.state
        run_id = uuid.uuid4().hex
        set_run_context(run_id)
        set_altar_context(None)

        with running(state):
            state.begin()
            try:
                return await self._run(request)
            except AltarCreationError as exc:
                state.fail(str(exc))
                logger.error("Altar creation failed at %s: %s", exc.stage, exc)
                raise
            except Exception as exc:
                state.fail(str(exc) or UNEXPECTED_ERROR_MESSAGE)
                logger.exception("Altar creation failed unexpectedly")
                raise
            finally:
                set_stage_context(state.stage)

    async def _run(self, request: CreateAltarRequest) -> AltarRecord:
        description = sanitize_food_description(request.food_description)
        check = validate_food_description(
            description,
            self._ctx.settings.description_min_length,
            self._ctx.settings.description_max_length,
        )
        if not check.is_valid:
            # Nothing has been sent yet; sanitizing can shrink a valid description
            raise AltarCreationError(
                check.error or MESSAGES["INVALID_DESCRIPTION_LENGTH"],
                stage="idle",
                error=remote_error(
                    "INVALID_DESCRIPTION_LENGTH", status_code=400, message=check.error
                ),
            )

        # Upload
        self._advance("uploading", "upload_photo")
        upload = await self._remote(
            "upload_photo",
            partial(self._ctx.client.upload_photo, request.photo, request.filename),
        )
        if isinstance(upload, ClassifiedError):
            raise AltarCreationError(
                f"{UPLOAD_ERROR_PREFIX}{upload.message}", stage="uploading", error=upload
            )

        # Generation
        self._advance("generating", "generate_altar")
        generation = await self._remote(
            "generate_altar",
            partial(
                self._ctx.client.generate_altar,
                GenerateAltarRequest(
                    photo_s3_key=upload.s3_key, food_description=description
                ),
            ),
        )
        if isinstance(generation, ClassifiedError):
            raise AltarCreationError(
                f"{GENERATE_ERROR_PREFIX}{generation.message}",
                stage="generating",
                error=generation,
            )

        # Assembly
        self._advance("assembling")
        altar = AltarRecord.assemble(upload, generation, description)
        set_altar_context(altar.id)

        # Persistence
        self._advance("persisting")
        try:
            self._ctx.store.save(altar)
        except LocalStorageError as exc:
            self._ctx.state.record_created(altar)
            self._ctx.state.warning = PARTIAL_SUCCESS_WARNING.format(reason=exc.message)
            logger.warning(
                "Altar %s created but not persisted (%s); kept in memory only",
                altar.id, exc.code,
            )
            return altar
        except Exception as exc:
            raise AltarCreationError(SAVE_ERROR_MESSAGE, stage="persisting") from exc

        self._ctx.state.record_created(altar)
        set_stage_context("done")
        logger.info("Altar %s created and saved", altar.id)
        return altar

    async def _remote(self, operation: str, invoke):
        return await with_retry(
            invoke,
            operation=operation,
            policy=self._ctx.retry_policies.get(operation),
            sleep=self._ctx.sleep,
        )

    def _advance(self, stage: PipelineStage, operation: str | None = None) -> None:
        self._ctx.state.advance(stage)
        set_stage_context(stage, operation)
        logger.debug("Stage %s (%d%%)", stage, self._ctx.state.progress)

    # ------------------------------------------------------------------
    # Collection operations
    # ------------------------------------------------------------------

    def load_altars(self) -> list[AltarRecord]:
        """Resynchronize the in-memory collection from the store.

        Never raises: a store failure is recorded in ``state.last_error`` and
        the collection falls back to empty.
        """
        state = self._ctx.state
        try:
            state.altars = self._ctx.store.get_all()
            state.last_error = None
        except LocalStorageError as exc:
            state.last_error = f"{LOAD_ERROR_PREFIX}{exc.message}"
            state.altars = []
            logger.error("Failed to load altars (%s); continuing empty", exc.code)
        return state.altars

    def delete_altar(self, altar_id: str) -> None:
        """Delete from the store, then from state; clears current if it was deleted.

        Raises:
            LocalStorageError: After recording it in ``state.last_error``.
        """
        state = self._ctx.state
        try:
            self._ctx.store.delete(altar_id)
        except LocalStorageError as exc:
            state.last_error = f"{DELETE_ERROR_PREFIX}{exc.message}"
            logger.error("Failed to delete altar %s (%s)", altar_id, exc.code)
            raise

        state.remove_altar(altar_id)
        state.last_error = None

    def set_current_altar(self, altar: AltarRecord) -> None:
        self._ctx.state.current_altar = altar

    def clear_error(self) -> None:
        self._ctx.state.last_error = None
